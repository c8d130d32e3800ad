"""FastAPI application entry point."""

from doudou_pricing.application import create_app

app = create_app()

__all__ = ["app"]

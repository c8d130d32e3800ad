"""API route registration."""

from fastapi import FastAPI

from doudou_pricing.api.routes import admin, discount_codes, orders, pricing, system


def include_api_routes(app: FastAPI) -> None:
    """Attach all API routers to the application."""

    app.include_router(system.router)
    app.include_router(pricing.router)
    app.include_router(orders.router)
    app.include_router(discount_codes.router)
    app.include_router(admin.router)

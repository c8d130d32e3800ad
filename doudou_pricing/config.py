"""
Configuration settings for the application.
"""

import logging
import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Redis persistence
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    REDIS_KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "doudou:")

    # Automatic discounts
    REPEAT_DOUDOU_DISCOUNT_PERCENT: int = int(
        os.getenv("REPEAT_DOUDOU_DISCOUNT_PERCENT", "30")
    )
    UPSELL_DISCOUNT_PERCENT: int = int(os.getenv("UPSELL_DISCOUNT_PERCENT", "60"))
    UPSELL_MIN_ORDERS: int = int(os.getenv("UPSELL_MIN_ORDERS", "1"))
    UPSELL_MIN_SPENT: Decimal = Decimal(os.getenv("UPSELL_MIN_SPENT", "20"))
    LOYALTY_PROGRAM_MIN_ORDERS: int = int(os.getenv("LOYALTY_PROGRAM_MIN_ORDERS", "3"))

    # Flat prices used when the smart calculation blows up
    FALLBACK_UNIT_PRICE: Decimal = Decimal(os.getenv("FALLBACK_UNIT_PRICE", "15.90"))
    FALLBACK_ADDON_PRICE: Decimal = Decimal(os.getenv("FALLBACK_ADDON_PRICE", "10.00"))

    SEED_CATALOG_ON_STARTUP: bool = (
        os.getenv("SEED_CATALOG_ON_STARTUP", "true").lower() == "true"
    )

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    def __init__(self):
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"debug={self.debug}, log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()

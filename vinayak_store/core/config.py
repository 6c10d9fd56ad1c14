"""
Application configuration

SECURITY: Defaults are fail-safe for production.
- DEBUG defaults to False
- FIRESTORE_PROJECT_ID has no usable default in production
- Runtime validation catches unusable configurations
"""
import os
import logging
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_STORAGE_URL = "sqlite:///./data/local_storage.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # App - defaults are PRODUCTION safe
    APP_NAME: str = "Vinayak Store"
    DEBUG: bool = False  # SECURE DEFAULT: off in production
    ENVIRONMENT: str = "production"  # Explicit env marker
    LOG_LEVEL: str = "INFO"

    # Durable local storage (stands in for the browser's localStorage)
    LOCAL_STORAGE_URL: str = DEFAULT_LOCAL_STORAGE_URL
    CART_STORAGE_KEY: str = "cart"

    # Document store (Firestore REST)
    FIRESTORE_PROJECT_ID: str = Field(
        default="",
        validation_alias=AliasChoices("FIRESTORE_PROJECT_ID", "FIREBASE_PROJECT_ID"),
    )
    FIRESTORE_API_KEY: str = ""
    FIRESTORE_BASE_URL: str = "https://firestore.googleapis.com/v1"
    FIRESTORE_DATABASE: str = "(default)"
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Collection names
    PRODUCTS_COLLECTION: str = "products"
    SERVICES_COLLECTION: str = "services"
    PACKAGES_COLLECTION: str = "packages"
    ORDERS_COLLECTION: str = "orders"

    # Storefront presentation
    CURRENCY_SYMBOL: str = "₹"
    WHATSAPP_COUNTRY_CODE: str = "91"
    STORE_WHATSAPP_NUMBER: str = ""

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or "INFO"
        return v

    @field_validator("FIRESTORE_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @model_validator(mode="after")
    def validate_production_config(self):
        """Runtime validation to catch unusable production configurations."""
        if self.ENVIRONMENT == "production":
            errors = []

            if self.DEBUG:
                errors.append(
                    "DEBUG=True is forbidden in production. "
                    "Set DEBUG=false or ENVIRONMENT=development"
                )

            if not self.FIRESTORE_PROJECT_ID:
                errors.append(
                    "FIRESTORE_PROJECT_ID (or FIREBASE_PROJECT_ID) is required in production."
                )

            if errors:
                raise ValueError(
                    "PRODUCTION CONFIGURATION ERRORS:\n" + "\n".join(f"  - {e}" for e in errors)
                )

        return self


# Try to load settings, provide helpful error on failure
try:
    settings = Settings()
except Exception:
    # In development, allow fallback defaults
    if os.getenv("ENVIRONMENT", "development") == "development":
        logger.warning(
            "Settings validation failed, using development defaults. "
            "Set FIRESTORE_PROJECT_ID in .env file."
        )
        os.environ.setdefault("ENVIRONMENT", "development")
        settings = Settings()
    else:
        raise

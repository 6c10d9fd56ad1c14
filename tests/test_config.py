"""
Tests for Settings loading and production validation.
"""
import logging

import pytest
from pydantic import ValidationError

from vinayak_store.core.config import Settings
from vinayak_store.core.exceptions import (
    EXCEPTION_CATALOG,
    BookingValidationError,
    CartValidationError,
    StoreBaseError,
)
from vinayak_store.core.logging_config import configure_logging


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ENVIRONMENT", "FIRESTORE_PROJECT_ID", "FIREBASE_PROJECT_ID", "DEBUG", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:

    def test_production_requires_project_id(self, clean_env):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None)

        assert "FIRESTORE_PROJECT_ID" in str(exc_info.value)

    def test_production_forbids_debug(self, clean_env):
        clean_env.setenv("FIRESTORE_PROJECT_ID", "vinayak-prod")
        clean_env.setenv("DEBUG", "true")

        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None)

        assert "DEBUG=True is forbidden" in str(exc_info.value)

    def test_firebase_project_id_alias(self, clean_env):
        clean_env.setenv("FIREBASE_PROJECT_ID", "vinayak-store")

        assert Settings(_env_file=None).FIRESTORE_PROJECT_ID == "vinayak-store"

    def test_development_allows_defaults(self, clean_env):
        clean_env.setenv("ENVIRONMENT", "development")
        clean_env.setenv("DEBUG", "true")

        settings = Settings(_env_file=None)

        assert settings.DEBUG is True
        assert settings.CART_STORAGE_KEY == "cart"
        assert settings.CURRENCY_SYMBOL == "₹"

    def test_normalization(self, clean_env):
        clean_env.setenv("ENVIRONMENT", "development")
        clean_env.setenv("LOG_LEVEL", " debug ")
        clean_env.setenv("FIRESTORE_BASE_URL", "https://firestore.example/v1/")

        settings = Settings(_env_file=None)

        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.FIRESTORE_BASE_URL == "https://firestore.example/v1"


class TestExceptions:

    def test_to_dict(self):
        err = BookingValidationError("Please fill in Venue", missing_fields=["venue"])

        assert err.to_dict() == {
            "error_type": "BookingValidationError",
            "code": "BOOKING_INVALID",
            "message": "Please fill in Venue",
            "severity": "P3",
            "details": {"missing_fields": ["venue"]},
        }
        assert isinstance(err, CartValidationError)
        assert isinstance(err, StoreBaseError)

    def test_catalog_matches_classes(self):
        for code, entry in EXCEPTION_CATALOG.items():
            assert entry["class"].default_code == code
            assert entry["class"].default_severity == entry["severity"]


def test_configure_logging_level(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

    configure_logging("warning")

    assert calls["level"] == logging.WARNING

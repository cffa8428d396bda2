"""Billing engine configuration from environment variables and .env file."""

import logging
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class BillingConfig(BaseSettings):
    """Billing configuration loaded from environment variables.

    Pydantic automatically loads values from:
    1. OS environment variables (at instantiation time)
    2. .env file (if present)

    The store backend is chosen here once per process; nothing checks a
    mock/live flag at runtime.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields in .env file
    )

    # memory: process-local stores (development, demos)
    # database: SQLAlchemy stores against database_url
    store_backend: Literal["memory", "database"] = "database"
    database_url: str = "sqlite:///./clubfees.db"
    default_currency: str = "USD"
    log_file: str = "logs/server.log"

    @field_validator("default_currency")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        if len(value) != 3 or not value.isalpha():
            raise ValueError(f"DEFAULT_CURRENCY must be a 3-letter code, got {value!r}")
        return value.upper()


_billing_config_instance: Optional[BillingConfig] = None


def get_billing_config() -> BillingConfig:
    """Get or create billing config instance.

    Lazy-loaded so environment variables set by the entry point (load_dotenv)
    are visible when it is first built.
    """
    global _billing_config_instance
    if _billing_config_instance is None:
        _billing_config_instance = BillingConfig()
        logger.info(
            f"Loaded billing config: store_backend={_billing_config_instance.store_backend}, "
            f"default_currency={_billing_config_instance.default_currency}"
        )
    return _billing_config_instance


def reset_billing_config() -> None:
    """Forget the cached config (used by tests that change the environment)."""
    global _billing_config_instance
    _billing_config_instance = None


__all__ = ["BillingConfig", "get_billing_config", "reset_billing_config"]

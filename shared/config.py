"""
Shared configuration management for the CS-Cart catalog access layer.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CSCART_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="info")
    log_file: Optional[str] = Field(default="data/mcp.log")
    data_dir: str = Field(default="data")


class ShopConfig(BaseConfig):
    """Settings for talking to one CS-Cart shop."""

    # Backend
    shop_url: str
    email: str
    api_key: str
    request_timeout: float = Field(default=30.0)
    page_size: int = Field(default=250, gt=0)

    # Caching; 0 disables the catalog caches
    cache_time: int = Field(default=0, ge=0)

    # Order rendering
    admin_url: str
    product_link_template: str
    telegram_field: Optional[str] = Field(default=None)
    contact_field_label: str = Field(default="Telegram")
    currency: str = Field(default="USD")
    product_code_prefix: str = Field(default="px-")

    @field_validator("shop_url", "admin_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("product_link_template")
    @classmethod
    def _require_placeholder(cls, value: str) -> str:
        if "{id}" not in value:
            raise ValueError("product link template must contain an {id} placeholder")
        return value

    @field_validator("telegram_field")
    @classmethod
    def _blank_is_disabled(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @property
    def products_cache_file(self) -> Path:
        return Path(self.data_dir) / "products.json"

    @property
    def features_cache_file(self) -> Path:
        return Path(self.data_dir) / "features.json"

    @property
    def feature_variants_dir(self) -> Path:
        return Path(self.data_dir) / "feature"


def get_config(**overrides) -> ShopConfig:
    """Load shop configuration from the environment (and .env)."""
    try:
        return ShopConfig(**overrides)
    except PydanticValidationError as exc:
        missing = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
        raise ConfigurationError(
            f"Invalid or missing settings: {', '.join(missing)}",
            details={"errors": [error["msg"] for error in exc.errors()]},
        ) from exc

"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator

from appstore_cli.api.endpoints import (
    AUTH_HOST,
    DEFAULT_PURCHASE_HOST,
    DEFAULT_STORE_HOST,
)
from appstore_cli.api.transport import DEFAULT_USER_AGENT
from appstore_cli.utils.messages import CATALOGS


class ClientConfig(BaseModel):
    """A validated configuration model for the store client."""

    # Endpoints
    auth_host: str = AUTH_HOST
    store_host: str = DEFAULT_STORE_HOST
    purchase_host: str = DEFAULT_PURCHASE_HOST

    # Transport
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: int = 60
    max_redirects: int = 4

    # Presentation
    locale: str = "en"

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("auth_host", "store_host", "purchase_host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Hosts are bare names, optionally with a port."""
        if not v:
            raise ValueError("Host cannot be empty.")
        if "://" in v or "/" in v:
            raise ValueError(f"Host must not contain a scheme or path: {v}")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1 or v > 600:
            raise ValueError("Timeout must be between 1 and 600 seconds.")
        return v

    @field_validator("max_redirects")
    @classmethod
    def validate_redirects(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("Max redirects must be between 1 and 10.")
        return v

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        if v not in CATALOGS:
            raise ValueError(
                f"Locale must be one of: {', '.join(sorted(CATALOGS))}."
            )
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}

"""
Pydantic models for accounts, store items and flow results.

Accounts are immutable snapshots: every flow takes one and hands back a new
one, so callers decide when and how the change is persisted.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator


class Account(BaseModel):
    """An Apple ID together with its current store session."""

    email: str
    password: str = Field(repr=False)
    device_identifier: str
    directory_services_identifier: str = ""
    password_token: str = Field(default="", repr=False)
    apple_id: str = ""
    first_name: str = ""
    last_name: str = ""
    store_front: str = ""
    pod: Optional[str] = None
    cookies: dict[str, str] = Field(default_factory=dict, repr=False)

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError(f"Not an email address: {v!r}")
        return v

    @field_validator("device_identifier")
    @classmethod
    def validate_device_identifier(cls, v: str) -> str:
        if not v:
            raise ValueError("Device identifier cannot be empty.")
        return v

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.apple_id or self.email

    @property
    def store_id(self) -> str:
        """Numeric storefront id, e.g. ``143441`` from ``143441-1,29``."""
        return self.store_front.split("-")[0]

    def with_cookies(self, cookies: dict[str, str]) -> "Account":
        return self.model_copy(update={"cookies": dict(cookies)})

    def with_session(self, session: "Account") -> "Account":
        """
        Returns a copy carrying the session fields of a fresh sign-in.

        The device identifier and password of this snapshot are kept as-is.
        """
        return self.model_copy(
            update={
                "directory_services_identifier": session.directory_services_identifier,
                "password_token": session.password_token,
                "apple_id": session.apple_id,
                "first_name": session.first_name,
                "last_name": session.last_name,
                "store_front": session.store_front,
                "pod": session.pod,
                "cookies": dict(session.cookies),
            }
        )


class Software(BaseModel):
    """A store item as returned by a catalog lookup."""

    id: int
    bundle_id: str = ""
    name: str = ""
    version: str = ""
    version_id: Union[int, str] = 0
    price: float = 0.0

    class Config:
        frozen = True


class PricingParameter(str, Enum):
    STANDARD = "STDQ"
    BUNDLE = "GAME"


class Sinf(BaseModel):
    id: int
    sinf: str  # base64


class DownloadOutput(BaseModel):
    download_url: str
    sinfs: list[Sinf] = Field(min_length=1)
    bundle_short_version_string: str
    bundle_version: str
    itunes_metadata: str  # base64 property list


class DownloadResult(BaseModel):
    output: DownloadOutput
    account: Account
    relogged_in: bool = False

    @property
    def updated_cookies(self) -> dict[str, str]:
        return self.account.cookies


class PurchaseResult(BaseModel):
    account: Account
    pricing_parameter: PricingParameter
    relogged_in: bool = False

    @property
    def updated_cookies(self) -> dict[str, str]:
        return self.account.cookies

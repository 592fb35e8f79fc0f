"""
Defines custom exceptions for the application to allow for more specific error handling.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from appstore_cli.models.account import Account


class FailureKind(str, Enum):
    """Structured reason carried by every store flow failure."""

    SESSION_EXPIRED = "session_expired"
    LICENSE_REQUIRED = "license_required"
    SUBSCRIPTION_REQUIRED = "subscription_required"
    WRONG_PRICING_PARAMETER = "wrong_pricing_parameter"
    BACKEND_REJECTED = "backend_rejected"
    MISSING_REDIRECT_LOCATION = "missing_redirect_location"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    NO_ITEMS = "no_items"
    MISSING_URL = "missing_url"
    MISSING_METADATA = "missing_metadata"
    MISSING_VERSION = "missing_version"
    INVALID_SIGNATURE = "invalid_signature"
    NO_SIGNATURE = "no_signature"
    PAID_NOT_SUPPORTED = "paid_not_supported"


class AppStoreCliError(Exception):
    """Base exception for all application-specific errors."""


class MalformedWireFormat(AppStoreCliError):
    """Raised when a body is not a well-formed store property list."""


class TransportError(AppStoreCliError):
    """Raised when a request could not be completed (network, timeout)."""


class ConfigurationError(AppStoreCliError):
    """Raised for issues related to configuration loading or validation."""


class AccountNotFoundError(AppStoreCliError):
    """Raised when no stored account matches the requested email."""


class AuthenticationError(AppStoreCliError):
    """
    Raised when the store refuses to issue a session.

    ``code_required`` is True when the store is waiting for a two-factor code;
    the caller must authenticate again with the same ``device_identifier`` and
    ``cookies`` plus the code.
    """

    def __init__(
        self,
        message: str,
        code_required: bool = False,
        failure_type: Optional[str] = None,
        device_identifier: Optional[str] = None,
        cookies: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.code_required = code_required
        self.failure_type = failure_type
        self.device_identifier = device_identifier
        self.cookies = dict(cookies or {})


class StoreFlowError(AppStoreCliError):
    """
    Base for download and purchase failures.

    Carries the backend's raw failure code when one was returned, the
    classified kind, and the cookies merged up to the point of failure. When the
    failure happened after a relogin, ``account`` is the refreshed snapshot
    the failed attempt ran with.
    """

    def __init__(
        self,
        message: str,
        kind: FailureKind,
        code: Optional[str] = None,
        cookies: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.cookies = dict(cookies) if cookies is not None else None
        self.account: Optional["Account"] = None


class DownloadError(StoreFlowError):
    """Raised when a download ticket cannot be obtained or is unusable."""


class PurchaseError(StoreFlowError):
    """Raised when acquiring a free item fails."""

"""
Classification of the store's numeric failure codes.

The store reuses a handful of codes across endpoints; this module is the
single place that turns ``failureType``/``customerMessage`` pairs into a
`FailureKind`.
"""

from typing import Any, Optional

from appstore_cli.exceptions import FailureKind, StoreFlowError

SESSION_EXPIRED_CODES = frozenset({"2034", "2042"})
LICENSE_REQUIRED_CODE = "9610"
WRONG_PRICING_PARAMETER_CODE = "2059"
INVALID_CREDENTIALS_CODE = "-5000"

# The only free-text signal honoured: the store sometimes reports an expired
# password token with an unrelated code and this message.
PASSWORD_CHANGED_MESSAGE = "password has changed"


def failure_of(document: dict[str, Any]) -> tuple[Optional[str], Optional[str]]:
    """Returns ``(failureType, customerMessage)``; the code is None on success."""
    failure_type = document.get("failureType")
    message = document.get("customerMessage")
    code = str(failure_type) if failure_type not in (None, "") else None
    return code, (str(message) if message else None)


def classify_failure(
    code: str, customer_message: Optional[str], license_kind: FailureKind
) -> FailureKind:
    """
    Maps a failure code to its kind.

    Args:
        code: Raw ``failureType``.
        customer_message: The backend's customer-facing message, if any.
        license_kind: Kind reported for code 9610, which means a missing
            license on download and a missing subscription on purchase.
    """
    if code in SESSION_EXPIRED_CODES:
        return FailureKind.SESSION_EXPIRED
    if code == LICENSE_REQUIRED_CODE:
        return license_kind
    if code == WRONG_PRICING_PARAMETER_CODE:
        return FailureKind.WRONG_PRICING_PARAMETER
    if customer_message and PASSWORD_CHANGED_MESSAGE in customer_message.lower():
        return FailureKind.SESSION_EXPIRED
    return FailureKind.BACKEND_REJECTED


def is_session_expired(error: BaseException) -> bool:
    """True if the failure means the session must be re-established."""
    if not isinstance(error, StoreFlowError):
        return False
    return (
        error.kind is FailureKind.SESSION_EXPIRED
        or error.code in SESSION_EXPIRED_CODES
    )

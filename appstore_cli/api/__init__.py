"""
Store Protocol Layer.

This package handles all communication with the store's private endpoints:
the property-list codec, cookie continuity, transport and authentication.
"""

from .auth import StoreAuthenticator
from .relogin import SessionExpiryPolicy
from .transport import AiohttpTransport, StoreRequest, StoreResponse, Transport

__all__ = [
    "AiohttpTransport",
    "SessionExpiryPolicy",
    "StoreAuthenticator",
    "StoreRequest",
    "StoreResponse",
    "Transport",
]

"""
Data Models Layer.

This package contains Pydantic models that define the core data structures
used throughout the application: accounts, store items, flow results and
configuration.
"""

from .account import (
    Account,
    DownloadOutput,
    DownloadResult,
    PricingParameter,
    PurchaseResult,
    Sinf,
    Software,
)
from .config import ClientConfig

__all__ = [
    "Account",
    "ClientConfig",
    "DownloadOutput",
    "DownloadResult",
    "PricingParameter",
    "PurchaseResult",
    "Sinf",
    "Software",
]

"""
Core transaction flows.

`StoreClient` is the entry point; it delegates downloads to `DownloadFlow`
and acquisitions to `PurchaseFlow`, both wrapped by the session-expiry policy.
"""

from .client import StoreClient
from .download import DownloadFlow
from .purchase import PurchaseFlow

__all__ = ["DownloadFlow", "PurchaseFlow", "StoreClient"]

"""
Hosts, paths and header names of the store's private endpoints.
"""

from typing import Optional
from urllib.parse import quote, urljoin, urlsplit

from .codec import CONTENT_TYPE

AUTH_HOST = "auth.itunes.apple.com"
AUTH_PATH = "/auth/v1/native/fast"
DOWNLOAD_PATH = "/WebObjects/MZFinance.woa/wa/volumeStoreDownloadProduct"
PURCHASE_PATH = "/WebObjects/MZFinance.woa/wa/buyProduct"

DEFAULT_STORE_HOST = "p25-buy.itunes.apple.com"
DEFAULT_PURCHASE_HOST = "buy.itunes.apple.com"

HEADER_STOREFRONT = "X-Set-Apple-Store-Front"
HEADER_POD = "pod"
HEADER_LOCATION = "Location"


def pod_host(pod: Optional[str], fallback: str) -> str:
    """Routes to the account's pod cluster, or to ``fallback`` if the pod is unknown."""
    if pod:
        return f"p{pod}-buy.itunes.apple.com"
    return fallback


def with_guid(path: str, device_identifier: str) -> str:
    return f"{path}?guid={quote(device_identifier)}"


def identity_headers(directory_services_identifier: str) -> dict[str, str]:
    """Headers sent on every authenticated request; both slots carry the same id."""
    return {
        "Content-Type": CONTENT_TYPE,
        "iCloud-DSID": directory_services_identifier,
        "X-Dsid": directory_services_identifier,
    }


def resolve_location(location: str, host: str, path: str) -> tuple[str, str]:
    """Resolves a redirect Location against the current URL into ``(host, path)``."""
    target = urlsplit(urljoin(f"https://{host}{path}", location))
    new_path = target.path or "/"
    if target.query:
        new_path = f"{new_path}?{target.query}"
    return target.netloc or host, new_path

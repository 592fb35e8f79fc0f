"""
HTTP transport for store requests. Sends one request and returns the raw
response; redirects, retries and interpretation are left to the callers.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

import aiohttp

from appstore_cli.exceptions import TransportError

from .cookies import format_cookie_header

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Configurator/2.15 (Macintosh; OS X 11.0.0; 16G29) AppleWebKit/2603.3.8"
)


@dataclass(frozen=True)
class StoreRequest:
    method: str
    host: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class StoreResponse:
    """A received response; ``raw_headers`` keeps repeated header names."""

    status: int
    raw_headers: tuple[tuple[str, str], ...]
    body: bytes

    def get_header(self, name: str) -> Optional[str]:
        """Returns the first value of a header, compared case-insensitively."""
        wanted = name.lower()
        for key, value in self.raw_headers:
            if key.lower() == wanted:
                return value
        return None

    @property
    def headers(self) -> dict[str, list[str]]:
        """All headers grouped by lower-cased name."""
        grouped: dict[str, list[str]] = {}
        for key, value in self.raw_headers:
            grouped.setdefault(key.lower(), []).append(value)
        return grouped


class Transport(Protocol):
    async def send(self, request: StoreRequest) -> StoreResponse: ...


class AiohttpTransport:
    """
    Store transport backed by a single aiohttp session.

    The session never stores cookies itself; every request carries exactly the
    cookies of the account snapshot it was built from.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: float = 60,
        scheme: str = "https",
    ):
        """
        Initializes the transport.

        Args:
            user_agent: Value of the User-Agent header sent with every request.
            timeout_seconds: Total time allowed for one request.
            scheme: URL scheme; only tests use anything but https.
        """
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.scheme = scheme
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                cookie_jar=aiohttp.DummyCookieJar(),
                headers={"User-Agent": self.user_agent},
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout_seconds, connect=15
                ),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "AiohttpTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def send(self, request: StoreRequest) -> StoreResponse:
        await self._initialize_session()

        headers = dict(request.headers)
        if request.cookies:
            headers["Cookie"] = format_cookie_header(request.cookies)

        url = f"{self.scheme}://{request.host}{request.path}"
        start_time = time.monotonic()
        try:
            async with self._session.request(
                request.method,
                url,
                headers=headers,
                data=request.body or None,
                allow_redirects=False,
            ) as r:
                body = await r.read()
                raw_headers = tuple(
                    (key.decode("latin-1"), value.decode("latin-1"))
                    for key, value in r.raw_headers
                )
                status = r.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.debug(f"{request.method} {request.host}{request.path} failed: {e!r}")
            raise TransportError(
                f"Request to {request.host} failed: {e or type(e).__name__}"
            ) from e

        duration_ms = (time.monotonic() - start_time) * 1000
        log.debug(
            f"{request.method} {request.host}{request.path.split('?')[0]} -> "
            f"{status} ({duration_ms:.0f} ms)"
        )
        return StoreResponse(status=status, raw_headers=raw_headers, body=body)

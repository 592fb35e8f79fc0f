"""
High-level store client wiring the transport, authenticator, session-expiry
policy and transaction flows together.
"""

import logging
from typing import Optional

from appstore_cli.api.auth import StoreAuthenticator
from appstore_cli.api.relogin import SessionExpiryPolicy
from appstore_cli.api.transport import AiohttpTransport, Transport
from appstore_cli.models.account import (
    Account,
    DownloadResult,
    PurchaseResult,
    Software,
)
from appstore_cli.models.config import ClientConfig

from .download import DownloadFlow
from .purchase import PurchaseFlow

log = logging.getLogger(__name__)


class StoreClient:
    """
    Async client for the store's private endpoints.

    Every operation takes an account snapshot and returns a new one; nothing is
    persisted here.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Initializes the client.

        Args:
            config: Client configuration; defaults are used when omitted.
            transport: Transport override. An aiohttp transport built from
                ``config`` is used when omitted.
        """
        self.config = config or ClientConfig()
        self._transport = transport or AiohttpTransport(
            user_agent=self.config.user_agent,
            timeout_seconds=self.config.timeout_seconds,
        )
        self._authenticator = StoreAuthenticator(self._transport, self.config)
        self._policy = SessionExpiryPolicy(self._authenticator)
        self._downloads = DownloadFlow(self._transport, self._policy, self.config)
        self._purchases = PurchaseFlow(self._transport, self._policy, self.config)

    @property
    def authenticator(self) -> StoreAuthenticator:
        """Provides access to the authentication helper."""
        return self._authenticator

    async def close(self) -> None:
        """Closes the underlying transport if it owns network resources."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "StoreClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def login(
        self,
        email: str,
        password: str,
        code: Optional[str] = None,
        cookies: Optional[dict[str, str]] = None,
        device_identifier: Optional[str] = None,
    ) -> Account:
        return await self._authenticator.authenticate(
            email, password, code, cookies, device_identifier
        )

    async def get_download_info(
        self,
        account: Account,
        app: Software,
        external_version_id: Optional[str] = None,
    ) -> DownloadResult:
        return await self._downloads.get_download_info(
            account, app, external_version_id
        )

    async def purchase_app(self, account: Account, app: Software) -> PurchaseResult:
        return await self._purchases.purchase_app(account, app)

"""
Re-authenticates once when a store action fails because the session expired.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Generic, Optional, TypeVar

from appstore_cli.exceptions import StoreFlowError
from appstore_cli.models.account import Account

from .auth import StoreAuthenticator
from .failures import is_session_expired

log = logging.getLogger(__name__)

T = TypeVar("T")


class ReloginOutcome(Generic[T]):
    """Result of an action plus the refreshed account, if a relogin happened."""

    __slots__ = ("result", "refreshed_account")

    def __init__(self, result: T, refreshed_account: Optional[Account] = None):
        self.result = result
        self.refreshed_account = refreshed_account

    @property
    def relogged_in(self) -> bool:
        return self.refreshed_account is not None


class SessionExpiryPolicy:
    """
    Runs an action against an account, re-authenticating and retrying exactly
    once if the action fails with an expired session.

    The retry always reuses the account's device identifier. A failure of the
    retried action propagates with the refreshed snapshot attached as
    ``error.account``.
    """

    def __init__(self, authenticator: StoreAuthenticator):
        self._authenticator = authenticator

    async def run(
        self,
        account: Account,
        action: Callable[[Account], Awaitable[T]],
    ) -> ReloginOutcome[T]:
        try:
            return ReloginOutcome(await action(account))
        except Exception as e:
            if not is_session_expired(e):
                raise
            log.info(
                f"[yellow]Session expired for {account.email}, signing in again...[/yellow]"
            )
            # Cookies set by the rejected response are newer than the snapshot's.
            cookies = getattr(e, "cookies", None) or account.cookies
            expired = e

        session = await self._authenticator.authenticate(
            account.email,
            account.password,
            cookies=cookies,
            device_identifier=account.device_identifier,
        )
        refreshed = account.with_session(session)
        log.debug(
            f"Retrying after relogin (previous failure: {getattr(expired, 'code', None)})"
        )
        try:
            result = await action(refreshed)
        except StoreFlowError as e:
            # The error cookies belong to this session, not the original one.
            e.account = refreshed
            raise
        return ReloginOutcome(result, refreshed)

"""Tests for the relogin-on-expiry policy."""

import pytest

from appstore_cli.api.auth import StoreAuthenticator
from appstore_cli.api.relogin import SessionExpiryPolicy
from appstore_cli.exceptions import (
    AuthenticationError,
    DownloadError,
    FailureKind,
    PurchaseError,
)
from appstore_cli.models.account import Account

from tests.conftest import FakeTransport, login_success, plist_response


def expired(cookies=None) -> DownloadError:
    return DownloadError(
        "expired", FailureKind.SESSION_EXPIRED, code="2034", cookies=cookies
    )


class ScriptedAction:
    """An action that raises or returns scripted values, recording its inputs."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.accounts: list[Account] = []

    async def __call__(self, account: Account):
        self.accounts.append(account)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


async def test_success_without_relogin(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    action = ScriptedAction("done")

    outcome = await policy.run(account, action)

    assert outcome.result == "done"
    assert outcome.relogged_in is False
    assert outcome.refreshed_account is None
    assert transport.requests == []


async def test_expiry_triggers_one_relogin_and_one_retry(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    transport.queue(login_success(token="token-2"))
    action = ScriptedAction(expired(), "done")

    outcome = await policy.run(account, action)

    assert outcome.result == "done"
    assert outcome.relogged_in is True
    assert len(action.accounts) == 2
    assert len(transport.requests) == 1
    assert action.accounts[1].password_token == "token-2"
    assert outcome.refreshed_account == action.accounts[1]


async def test_relogin_keeps_device_identifier(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    transport.queue(login_success())
    action = ScriptedAction(expired(), "done")

    outcome = await policy.run(account, action)

    assert transport.sent_payloads()[0]["guid"] == account.device_identifier
    assert transport.sent_payloads()[0]["password"] == account.password
    assert outcome.refreshed_account.device_identifier == account.device_identifier


async def test_relogin_uses_cookies_from_failed_attempt(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    transport.queue(login_success())
    action = ScriptedAction(expired(cookies={"mz_at0": "newer"}), "done")

    await policy.run(account, action)

    assert transport.requests[0].cookies == {"mz_at0": "newer"}


async def test_second_expiry_propagates(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    transport.queue(login_success())
    action = ScriptedAction(expired(), expired())

    with pytest.raises(DownloadError) as exc_info:
        await policy.run(account, action)

    assert exc_info.value.kind is FailureKind.SESSION_EXPIRED
    assert len(action.accounts) == 2
    assert len(transport.requests) == 1


async def test_other_failures_are_not_retried(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    error = PurchaseError("nope", FailureKind.SUBSCRIPTION_REQUIRED, code="9610")
    action = ScriptedAction(error)

    with pytest.raises(PurchaseError) as exc_info:
        await policy.run(account, action)

    assert exc_info.value is error
    assert transport.requests == []


async def test_expired_code_alone_triggers_relogin(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    transport.queue(login_success())
    error = PurchaseError("rejected", FailureKind.BACKEND_REJECTED, code="2042")
    action = ScriptedAction(error, "done")

    outcome = await policy.run(account, action)

    assert outcome.relogged_in is True


async def test_failed_relogin_propagates(
    account: Account, transport: FakeTransport
) -> None:
    transport.queue(plist_response({"failureType": "-5000"}))
    policy = SessionExpiryPolicy(StoreAuthenticator(transport))
    action = ScriptedAction(expired(), "unreachable")

    with pytest.raises(AuthenticationError):
        await policy.run(account, action)

    assert len(action.accounts) == 1


async def test_relogin_sends_password_verbatim(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    spaced = account.model_copy(update={"password": "  pass word  "})
    spaced = Account.model_validate(spaced.model_dump())
    transport.queue(login_success())
    action = ScriptedAction(expired(), "done")

    await policy.run(spaced, action)

    assert spaced.password == "  pass word  "
    assert transport.sent_payloads()[0]["password"] == "  pass word  "


async def test_failure_after_relogin_carries_refreshed_account(
    account: Account, transport: FakeTransport, policy: SessionExpiryPolicy
) -> None:
    transport.queue(login_success(token="token-2"))
    action = ScriptedAction(expired(), expired(cookies={"mz_at0": "second"}))

    with pytest.raises(DownloadError) as exc_info:
        await policy.run(account, action)

    refreshed = exc_info.value.account
    assert refreshed == action.accounts[1]
    assert refreshed.password_token == "token-2"
    assert exc_info.value.cookies == {"mz_at0": "second"}


async def test_failure_without_relogin_has_no_account(
    account: Account, policy: SessionExpiryPolicy
) -> None:
    action = ScriptedAction(
        PurchaseError("nope", FailureKind.SUBSCRIPTION_REQUIRED, code="9610")
    )

    with pytest.raises(PurchaseError) as exc_info:
        await policy.run(account, action)

    assert exc_info.value.account is None

import plistlib
from typing import Any

import pytest

from appstore_cli.api.auth import StoreAuthenticator
from appstore_cli.api.relogin import SessionExpiryPolicy
from appstore_cli.api.transport import StoreRequest, StoreResponse
from appstore_cli.models.account import Account
from appstore_cli.utils.messages import set_locale


class FakeTransport:
    """Replays scripted responses and records every request sent."""

    def __init__(self, *responses: StoreResponse):
        self.responses = list(responses)
        self.requests: list[StoreRequest] = []

    def queue(self, *responses: StoreResponse) -> None:
        self.responses.extend(responses)

    async def send(self, request: StoreRequest) -> StoreResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request to {request.host}{request.path}")
        return self.responses.pop(0)

    def sent_payloads(self) -> list[dict[str, Any]]:
        return [plistlib.loads(r.body) for r in self.requests]


def plist_response(
    document: dict[str, Any],
    status: int = 200,
    headers: list[tuple[str, str]] | None = None,
) -> StoreResponse:
    return StoreResponse(
        status=status,
        raw_headers=tuple(headers or ()),
        body=plistlib.dumps(document, fmt=plistlib.FMT_XML),
    )


def redirect_response(
    location: str | None, headers: list[tuple[str, str]] | None = None
) -> StoreResponse:
    raw = list(headers or [])
    if location is not None:
        raw.append(("Location", location))
    return StoreResponse(status=302, raw_headers=tuple(raw), body=b"")


def login_success(
    dsid: str = "1234567890",
    token: str = "token-1",
    cookies: list[str] | None = None,
    pod: str = "42",
) -> StoreResponse:
    headers = [("X-Set-Apple-Store-Front", "143441-1,29"), ("pod", pod)]
    headers.extend(("Set-Cookie", c) for c in (cookies or []))
    return plist_response(
        {
            "passwordToken": token,
            "dsPersonId": dsid,
            "accountInfo": {
                "appleId": "user@example.com",
                "address": {"firstName": "Jane", "lastName": "Appleseed"},
            },
        },
        headers=headers,
    )


def ticket_document(**overrides: Any) -> dict[str, Any]:
    item = {
        "URL": "https://iosapps.itunes.apple.com/app.ipa",
        "metadata": {
            "bundleShortVersionString": "2.1.0",
            "bundleVersion": "210",
            "itemName": "Example",
            "passwordToken": "must-not-leak",
        },
        "sinfs": [{"id": 0, "sinf": b"\x00\x01sinf-bytes"}],
    }
    item.update(overrides)
    return {"songList": [item]}


@pytest.fixture(autouse=True)
def english_messages():
    set_locale("en")
    yield
    set_locale("en")


@pytest.fixture
def account() -> Account:
    return Account(
        email="user@example.com",
        password="hunter2",
        device_identifier="AABBCCDDEEFF",
        directory_services_identifier="1234567890",
        password_token="token-0",
        store_front="143441-1,29",
        pod="42",
        cookies={"mz_at0": "old", "itspod": "42"},
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def policy(transport: FakeTransport) -> SessionExpiryPolicy:
    return SessionExpiryPolicy(StoreAuthenticator(transport))

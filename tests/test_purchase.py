"""Tests for the purchase flow."""

import pytest

from appstore_cli.api.relogin import SessionExpiryPolicy
from appstore_cli.core.purchase import PurchaseFlow
from appstore_cli.exceptions import FailureKind, PurchaseError
from appstore_cli.models.account import Account, PricingParameter, Software

from tests.conftest import FakeTransport, login_success, plist_response

FREE_APP = Software(id=544007664, name="Free App", version_id=874501, price=0)
SUCCESS = {"jingleDocType": "purchaseSuccess", "status": 0}


@pytest.fixture
def flow(transport: FakeTransport, policy: SessionExpiryPolicy) -> PurchaseFlow:
    return PurchaseFlow(transport, policy)


async def test_paid_item_is_rejected_without_requests(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    paid = FREE_APP.model_copy(update={"price": 0.99})

    with pytest.raises(PurchaseError) as exc_info:
        await flow.purchase_app(account, paid)

    assert exc_info.value.kind is FailureKind.PAID_NOT_SUPPORTED
    assert exc_info.value.cookies is None
    assert transport.requests == []


async def test_standard_pricing_success(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(plist_response(SUCCESS, headers=[("Set-Cookie", "bought=1")]))

    result = await flow.purchase_app(account, FREE_APP)

    assert result.pricing_parameter is PricingParameter.STANDARD
    assert result.relogged_in is False
    assert result.updated_cookies == {**account.cookies, "bought": "1"}
    assert len(transport.requests) == 1


async def test_request_payload(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(plist_response(SUCCESS))

    await flow.purchase_app(account, FREE_APP)

    request = transport.requests[0]
    payload = transport.sent_payloads()[0]
    assert request.host == "p42-buy.itunes.apple.com"
    assert request.path.endswith("/buyProduct")
    assert request.headers["X-Dsid"] == "1234567890"
    assert payload["salableAdamId"] == FREE_APP.id
    assert payload["appExtVrsId"] == "874501"
    assert payload["pricingParameter"] == "STDQ"
    assert payload["price"] == "0"
    assert payload["guid"] == account.device_identifier


async def test_wrong_pricing_falls_back_to_bundle(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(
        plist_response({"failureType": "2059"}, headers=[("Set-Cookie", "step=1")]),
        plist_response(SUCCESS),
    )

    result = await flow.purchase_app(account, FREE_APP)

    payloads = transport.sent_payloads()
    assert [p["pricingParameter"] for p in payloads] == ["STDQ", "GAME"]
    assert transport.requests[1].cookies["step"] == "1"
    assert result.pricing_parameter is PricingParameter.BUNDLE
    assert result.updated_cookies["step"] == "1"


async def test_bundle_rejection_is_final(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(
        plist_response({"failureType": "2059"}),
        plist_response({"failureType": "2059"}),
    )

    with pytest.raises(PurchaseError) as exc_info:
        await flow.purchase_app(account, FREE_APP)

    assert exc_info.value.kind is FailureKind.WRONG_PRICING_PARAMETER
    assert "2059" in str(exc_info.value)
    assert len(transport.requests) == 2


async def test_subscription_required(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(plist_response({"failureType": "9610"}))

    with pytest.raises(PurchaseError) as exc_info:
        await flow.purchase_app(account, FREE_APP)

    assert exc_info.value.kind is FailureKind.SUBSCRIPTION_REQUIRED
    assert len(transport.requests) == 1


async def test_other_failure_uses_customer_message(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(
        plist_response({"failureType": "5002", "customerMessage": "Not available."})
    )

    with pytest.raises(PurchaseError, match="Not available.") as exc_info:
        await flow.purchase_app(account, FREE_APP)

    assert exc_info.value.kind is FailureKind.BACKEND_REJECTED
    assert exc_info.value.code == "5002"


async def test_expiry_relogins_and_restarts_from_standard(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(
        plist_response({"failureType": "2059"}),
        plist_response({"failureType": "2034"}),
        login_success(token="token-2"),
        plist_response(SUCCESS),
    )

    result = await flow.purchase_app(account, FREE_APP)

    payloads = transport.sent_payloads()
    assert payloads[0]["pricingParameter"] == "STDQ"
    assert payloads[1]["pricingParameter"] == "GAME"
    assert "appleId" in payloads[2]
    assert payloads[3]["pricingParameter"] == "STDQ"
    assert result.relogged_in is True
    assert result.pricing_parameter is PricingParameter.STANDARD
    assert result.account.password_token == "token-2"


async def test_second_expiry_propagates(
    flow: PurchaseFlow, transport: FakeTransport, account: Account
) -> None:
    transport.queue(
        plist_response({"failureType": "2034"}),
        login_success(),
        plist_response({"failureType": "2034"}),
    )

    with pytest.raises(PurchaseError) as exc_info:
        await flow.purchase_app(account, FREE_APP)

    assert exc_info.value.kind is FailureKind.SESSION_EXPIRED
    assert len(transport.requests) == 3

"""
Purchase flow: acquires a free item for an account, falling back to the
bundle pricing parameter when the store rejects the standard one.
"""

import logging
from typing import Optional

from appstore_cli.api import codec
from appstore_cli.api.cookies import merge_cookies
from appstore_cli.api.endpoints import PURCHASE_PATH, identity_headers, pod_host
from appstore_cli.api.failures import classify_failure, failure_of
from appstore_cli.api.relogin import SessionExpiryPolicy
from appstore_cli.api.transport import StoreRequest, Transport
from appstore_cli.exceptions import FailureKind, PurchaseError
from appstore_cli.models.account import (
    Account,
    PricingParameter,
    PurchaseResult,
    Software,
)
from appstore_cli.models.config import ClientConfig
from appstore_cli.utils.messages import translate

log = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    FailureKind.SESSION_EXPIRED: "errors.purchase.passwordExpired",
    FailureKind.SUBSCRIPTION_REQUIRED: "errors.purchase.subscriptionRequired",
}


class PurchaseFlow:
    """Acquires free items, re-authenticating once on an expired session."""

    def __init__(
        self,
        transport: Transport,
        policy: SessionExpiryPolicy,
        config: Optional[ClientConfig] = None,
    ):
        self._transport = transport
        self._policy = policy
        self._config = config or ClientConfig()

    async def purchase_app(self, account: Account, app: Software) -> PurchaseResult:
        """
        Acquires ``app`` for ``account``.

        Paid items are rejected before any request is made.

        Raises:
            PurchaseError: With kind ``PAID_NOT_SUPPORTED`` for paid items, or
                the classified store failure.
        """
        if app.price > 0:
            raise PurchaseError(
                translate("errors.purchase.paidNotSupported"),
                FailureKind.PAID_NOT_SUPPORTED,
            )

        outcome = await self._policy.run(account, lambda acc: self._acquire(acc, app))
        pricing, cookies = outcome.result
        base = outcome.refreshed_account or account
        log.info(f"[green]✓ Acquired {app.name or app.id} ({pricing.value})[/green]")
        return PurchaseResult(
            account=base.with_cookies(cookies),
            pricing_parameter=pricing,
            relogged_in=outcome.relogged_in,
        )

    async def _acquire(
        self, account: Account, app: Software
    ) -> tuple[PricingParameter, dict[str, str]]:
        """Tries the standard pricing parameter, then the bundle one exactly once."""
        try:
            cookies = await self._purchase_with_params(
                account, app, PricingParameter.STANDARD
            )
            return PricingParameter.STANDARD, cookies
        except PurchaseError as e:
            if e.kind is not FailureKind.WRONG_PRICING_PARAMETER:
                raise
            log.debug(f"Pricing parameter rejected for {app.id}, retrying as bundle")
            account = account.with_cookies(e.cookies or account.cookies)

        cookies = await self._purchase_with_params(account, app, PricingParameter.BUNDLE)
        return PricingParameter.BUNDLE, cookies

    async def _purchase_with_params(
        self, account: Account, app: Software, pricing: PricingParameter
    ) -> dict[str, str]:
        payload = {
            "appExtVrsId": str(app.version_id),
            "buyWithoutAuthorization": "true",
            "guid": account.device_identifier,
            "hasAskedToFulfillPreorder": "true",
            "needDiv": "0",
            "origPage": "SoftwarePage",
            "price": "0",
            "pricingParameter": pricing.value,
            "productType": "C",
            "salableAdamId": app.id,
        }
        response = await self._transport.send(
            StoreRequest(
                method="POST",
                host=pod_host(account.pod, self._config.purchase_host),
                path=PURCHASE_PATH,
                headers=identity_headers(account.directory_services_identifier),
                cookies=dict(account.cookies),
                body=codec.encode(payload),
            )
        )
        cookies = merge_cookies(account.cookies, response.raw_headers)

        document = codec.decode(response.body)
        failure_type, customer_message = failure_of(document)
        if not failure_type:
            return cookies

        kind = classify_failure(
            failure_type, customer_message, FailureKind.SUBSCRIPTION_REQUIRED
        )
        if kind in FAILURE_MESSAGES:
            message = translate(FAILURE_MESSAGES[kind])
        elif kind is FailureKind.WRONG_PRICING_PARAMETER:
            message = translate("errors.purchase.failed", failure_type=failure_type)
        else:
            message = customer_message or translate(
                "errors.purchase.failed", failure_type=failure_type
            )
        raise PurchaseError(message, kind, code=failure_type, cookies=cookies)

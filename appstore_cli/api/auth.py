"""
Handles authentication with the store: exchanging credentials and a device
identity for a session, including the two-factor challenge branch.
"""

import logging
from typing import Any, Optional

from appstore_cli.exceptions import AuthenticationError
from appstore_cli.models.account import Account
from appstore_cli.models.config import ClientConfig
from appstore_cli.utils.device import generate_device_identifier
from appstore_cli.utils.messages import translate

from . import codec
from .cookies import merge_cookies
from .endpoints import (
    AUTH_PATH,
    HEADER_LOCATION,
    HEADER_POD,
    HEADER_STOREFRONT,
    resolve_location,
    with_guid,
)
from .failures import INVALID_CREDENTIALS_CODE, failure_of
from .transport import StoreRequest, StoreResponse, Transport

log = logging.getLogger(__name__)

CODE_REQUIRED_MESSAGE = "MZFinance.BadLogin.Configurator_message"


class StoreAuthenticator:
    """
    Signs an Apple ID into the store.

    No retries happen here; re-authentication after an expired session is
    orchestrated by `SessionExpiryPolicy`.
    """

    def __init__(self, transport: Transport, config: Optional[ClientConfig] = None):
        """
        Initializes the authenticator.

        Args:
            transport: Transport used to reach the authentication endpoint.
            config: Client configuration; defaults are used when omitted.
        """
        self._transport = transport
        self._config = config or ClientConfig()

    async def authenticate(
        self,
        email: str,
        password: str,
        code: Optional[str] = None,
        cookies: Optional[dict[str, str]] = None,
        device_identifier: Optional[str] = None,
    ) -> Account:
        """
        Authenticates and returns a populated account snapshot.

        Args:
            email: The Apple ID.
            password: The account password.
            code: Two-factor code, when resuming a challenge.
            cookies: Cookies from a previous attempt; required to resume a
                two-factor challenge.
            device_identifier: Device id to present. A new one is generated
                when omitted and returned on the account.

        Raises:
            AuthenticationError: ``code_required`` is True when the store asks
                for a two-factor code.
        """
        device_identifier = device_identifier or generate_device_identifier()
        code = code.replace(" ", "") if code else None
        current_cookies = dict(cookies or {})

        log.info(f"Authenticating as: {email}")

        payload = {
            "appleId": email,
            "attempt": "2" if code else "4",
            "createSession": "true",
            "guid": device_identifier,
            "password": f"{password}{code or ''}",
            "rmp": "0",
            "why": "signIn",
        }
        body = codec.encode(payload)

        host = self._config.auth_host
        path = with_guid(AUTH_PATH, device_identifier)
        response: Optional[StoreResponse] = None

        for _ in range(self._config.max_redirects + 1):
            response = await self._transport.send(
                StoreRequest(
                    method="POST",
                    host=host,
                    path=path,
                    headers={"Content-Type": codec.CONTENT_TYPE},
                    cookies=current_cookies,
                    body=body,
                )
            )
            current_cookies = merge_cookies(current_cookies, response.raw_headers)

            if response.status != 302:
                break

            location = response.get_header(HEADER_LOCATION)
            if not location:
                raise AuthenticationError(
                    translate("errors.auth.invalidResponse"),
                    device_identifier=device_identifier,
                    cookies=current_cookies,
                )
            host, path = resolve_location(location, host, path)
            log.debug(f"Sign-in redirected to {host}")
        else:
            raise AuthenticationError(
                translate("errors.auth.tooManyRedirects"),
                device_identifier=device_identifier,
                cookies=current_cookies,
            )

        document = codec.decode(response.body)
        self._raise_for_failure(document, code, device_identifier, current_cookies)

        password_token = document.get("passwordToken")
        dsid = document.get("dsPersonId")
        if not password_token or not dsid:
            raise AuthenticationError(
                translate("errors.auth.invalidResponse"),
                device_identifier=device_identifier,
                cookies=current_cookies,
            )

        account_info: dict[str, Any] = document.get("accountInfo") or {}
        address: dict[str, Any] = account_info.get("address") or {}

        account = Account(
            email=email,
            password=password,
            device_identifier=device_identifier,
            directory_services_identifier=str(dsid),
            password_token=str(password_token),
            apple_id=str(account_info.get("appleId", email)),
            first_name=str(address.get("firstName", "")),
            last_name=str(address.get("lastName", "")),
            store_front=response.get_header(HEADER_STOREFRONT) or "",
            pod=response.get_header(HEADER_POD),
            cookies=current_cookies,
        )
        log.info(
            f"[green]✓ Signed in as {account.display_name} "
            f"(store {account.store_id or '?'}, pod {account.pod or '-'})[/green]"
        )
        return account

    @staticmethod
    def _raise_for_failure(
        document: dict[str, Any],
        code: Optional[str],
        device_identifier: str,
        cookies: dict[str, str],
    ) -> None:
        failure_type, customer_message = failure_of(document)

        if not failure_type and not code and customer_message == CODE_REQUIRED_MESSAGE:
            log.info("[yellow]Two-factor verification code required.[/yellow]")
            raise AuthenticationError(
                translate("errors.auth.codeRequired"),
                code_required=True,
                device_identifier=device_identifier,
                cookies=cookies,
            )

        if not failure_type:
            return

        if failure_type == INVALID_CREDENTIALS_CODE:
            message = translate("errors.auth.invalidCredentials")
        else:
            message = customer_message or translate(
                "errors.auth.failed", failure_type=failure_type
            )
        raise AuthenticationError(
            message,
            failure_type=failure_type,
            device_identifier=device_identifier,
            cookies=cookies,
        )

"""
Download flow: obtains a download ticket for an item the account owns,
following store redirects and assembling the install metadata.
"""

import logging
from typing import Any, Optional

from appstore_cli.api import codec
from appstore_cli.api.cookies import merge_cookies
from appstore_cli.api.endpoints import (
    DOWNLOAD_PATH,
    HEADER_LOCATION,
    identity_headers,
    pod_host,
    resolve_location,
    with_guid,
)
from appstore_cli.api.failures import classify_failure, failure_of
from appstore_cli.api.relogin import SessionExpiryPolicy
from appstore_cli.api.transport import StoreRequest, Transport
from appstore_cli.exceptions import DownloadError, FailureKind, MalformedWireFormat
from appstore_cli.models.account import (
    Account,
    DownloadOutput,
    DownloadResult,
    Sinf,
    Software,
)
from appstore_cli.models.config import ClientConfig
from appstore_cli.utils.messages import translate

log = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    FailureKind.SESSION_EXPIRED: "errors.download.passwordExpired",
    FailureKind.LICENSE_REQUIRED: "errors.download.licenseRequired",
}

# Metadata keys that must never reach the install artifact.
PRIVATE_METADATA_KEYS = ("passwordToken",)


class DownloadFlow:
    """Requests download tickets, re-authenticating once on an expired session."""

    def __init__(
        self,
        transport: Transport,
        policy: SessionExpiryPolicy,
        config: Optional[ClientConfig] = None,
    ):
        self._transport = transport
        self._policy = policy
        self._config = config or ClientConfig()

    async def get_download_info(
        self,
        account: Account,
        app: Software,
        external_version_id: Optional[str] = None,
    ) -> DownloadResult:
        """
        Returns the download ticket for ``app`` and the updated account snapshot.

        Args:
            account: Signed-in account snapshot; it is never modified.
            app: The item to download.
            external_version_id: Targets a specific historical version.
        """

        async def attempt(acc: Account) -> tuple[DownloadOutput, dict[str, str]]:
            return await self._request_ticket(acc, app, external_version_id)

        outcome = await self._policy.run(account, attempt)
        output, cookies = outcome.result
        base = outcome.refreshed_account or account
        log.info(
            f"Download ticket for {app.id} issued "
            f"(version {output.bundle_short_version_string})"
        )
        return DownloadResult(
            output=output,
            account=base.with_cookies(cookies),
            relogged_in=outcome.relogged_in,
        )

    async def _request_ticket(
        self,
        account: Account,
        app: Software,
        external_version_id: Optional[str],
    ) -> tuple[DownloadOutput, dict[str, str]]:
        payload: dict[str, Any] = {
            "creditDisplay": "",
            "guid": account.device_identifier,
            "salableAdamId": app.id,
        }
        if external_version_id:
            payload["externalVersionId"] = external_version_id
        body = codec.encode(payload)

        host = pod_host(account.pod, self._config.store_host)
        path = with_guid(DOWNLOAD_PATH, account.device_identifier)
        headers = identity_headers(account.directory_services_identifier)
        cookies = dict(account.cookies)

        for redirects in range(self._config.max_redirects + 1):
            response = await self._transport.send(
                StoreRequest(
                    method="POST",
                    host=host,
                    path=path,
                    headers=headers,
                    cookies=cookies,
                    body=body,
                )
            )
            cookies = merge_cookies(cookies, response.raw_headers)

            if response.status == 302:
                location = response.get_header(HEADER_LOCATION)
                if not location:
                    raise DownloadError(
                        translate("errors.download.redirectLocation"),
                        FailureKind.MISSING_REDIRECT_LOCATION,
                        cookies=cookies,
                    )
                host, path = resolve_location(location, host, path)
                log.debug(f"Download request redirected to {host} ({redirects + 1})")
                continue

            document = codec.decode(response.body)
            return self._parse_ticket(document, account, cookies), cookies

        raise DownloadError(
            translate("errors.download.tooManyRedirects"),
            FailureKind.TOO_MANY_REDIRECTS,
            cookies=cookies,
        )

    def _parse_ticket(
        self, document: dict[str, Any], account: Account, cookies: dict[str, str]
    ) -> DownloadOutput:
        def fail(key: str, kind: FailureKind, code: Optional[str] = None):
            return DownloadError(translate(key), kind, code=code, cookies=cookies)

        failure_type, customer_message = failure_of(document)
        if failure_type:
            kind = classify_failure(
                failure_type, customer_message, FailureKind.LICENSE_REQUIRED
            )
            if kind in FAILURE_MESSAGES:
                raise fail(FAILURE_MESSAGES[kind], kind, failure_type)
            raise DownloadError(
                customer_message
                or translate(
                    "errors.download.downloadFailed", failure_type=failure_type
                ),
                kind,
                code=failure_type,
                cookies=cookies,
            )

        items = document.get("songList")
        if not isinstance(items, list) or not items:
            raise fail("errors.download.noItems", FailureKind.NO_ITEMS)
        item = items[0]
        if not isinstance(item, dict):
            raise fail("errors.download.noItems", FailureKind.NO_ITEMS)

        url = item.get("URL")
        if not url:
            raise fail("errors.download.missingUrl", FailureKind.MISSING_URL)

        metadata = item.get("metadata")
        if not isinstance(metadata, dict):
            raise fail("errors.download.missingMetadata", FailureKind.MISSING_METADATA)

        version = metadata.get("bundleShortVersionString")
        bundle_version = metadata.get("bundleVersion")
        if not version or not bundle_version:
            raise fail("errors.download.missingVersion", FailureKind.MISSING_VERSION)

        sinfs = []
        for entry in item.get("sinfs") or []:
            if not isinstance(entry, dict):
                raise fail("errors.download.invalidSinf", FailureKind.INVALID_SIGNATURE)
            sinf_id = entry.get("id")
            blob = entry.get("sinf")
            if sinf_id is None or not blob:
                continue
            try:
                data = codec.coerce_blob(blob)
                sinfs.append(Sinf(id=int(sinf_id), sinf=codec.to_base64(data)))
            except (MalformedWireFormat, TypeError, ValueError) as e:
                raise fail(
                    "errors.download.invalidSinf", FailureKind.INVALID_SIGNATURE
                ) from e

        if not sinfs:
            raise fail("errors.download.noSinf", FailureKind.NO_SIGNATURE)

        return DownloadOutput(
            download_url=str(url),
            sinfs=sinfs,
            bundle_short_version_string=str(version),
            bundle_version=str(bundle_version),
            itunes_metadata=build_install_metadata(metadata, account),
        )


def build_install_metadata(metadata: dict[str, Any], account: Account) -> str:
    """
    Builds the base64 iTunesMetadata property list for the install artifact.

    The item metadata is stamped with the account email as owner and display
    name; session tokens are stripped.
    """
    document = dict(metadata)
    document["apple-id"] = account.email
    document["userName"] = account.email
    for key in PRIVATE_METADATA_KEYS:
        document.pop(key, None)
    return codec.to_base64(codec.encode(document))

"""
Translated, user-visible messages for every failure the client can report.
"""

import logging

log = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        "errors.auth.codeRequired": "A two-factor verification code is required.",
        "errors.auth.invalidCredentials": "Invalid Apple ID or password.",
        "errors.auth.failed": "Authentication failed ({failure_type}).",
        "errors.auth.invalidResponse": "The store returned an incomplete sign-in response.",
        "errors.auth.tooManyRedirects": "Too many redirects while signing in.",
        "errors.download.passwordExpired": "Your session has expired. Please sign in again.",
        "errors.download.licenseRequired": "You do not own a license for this app.",
        "errors.download.downloadFailed": "Download failed ({failure_type}).",
        "errors.download.redirectLocation": "The store sent a redirect without a location.",
        "errors.download.tooManyRedirects": "Too many redirects while requesting the download.",
        "errors.download.noItems": "The store returned no downloadable items.",
        "errors.download.missingUrl": "The download ticket has no URL.",
        "errors.download.missingMetadata": "The download ticket has no metadata.",
        "errors.download.missingVersion": "The download ticket has no version information.",
        "errors.download.invalidSinf": "The download ticket contains an invalid signature.",
        "errors.download.noSinf": "The download ticket has no signatures.",
        "errors.purchase.paidNotSupported": "Paid apps cannot be purchased with this client.",
        "errors.purchase.passwordExpired": "Your session has expired. Please sign in again.",
        "errors.purchase.subscriptionRequired": "A subscription is required to get this app.",
        "errors.purchase.failed": "Purchase failed ({failure_type}).",
    },
    "vi": {
        "errors.auth.codeRequired": "Cần mã xác minh hai yếu tố.",
        "errors.auth.invalidCredentials": "Apple ID hoặc mật khẩu không đúng.",
        "errors.auth.failed": "Đăng nhập thất bại ({failure_type}).",
        "errors.auth.invalidResponse": "Phản hồi đăng nhập từ store không đầy đủ.",
        "errors.auth.tooManyRedirects": "Quá nhiều chuyển hướng khi đăng nhập.",
        "errors.download.passwordExpired": "Phiên đăng nhập đã hết hạn. Vui lòng đăng nhập lại.",
        "errors.download.licenseRequired": "Bạn chưa sở hữu giấy phép cho ứng dụng này.",
        "errors.download.downloadFailed": "Tải xuống thất bại ({failure_type}).",
        "errors.download.redirectLocation": "Store chuyển hướng nhưng không có địa chỉ.",
        "errors.download.tooManyRedirects": "Quá nhiều chuyển hướng khi yêu cầu tải xuống.",
        "errors.download.noItems": "Store không trả về mục nào để tải.",
        "errors.download.missingUrl": "Vé tải xuống không có URL.",
        "errors.download.missingMetadata": "Vé tải xuống không có metadata.",
        "errors.download.missingVersion": "Vé tải xuống không có thông tin phiên bản.",
        "errors.download.invalidSinf": "Vé tải xuống chứa chữ ký không hợp lệ.",
        "errors.download.noSinf": "Vé tải xuống không có chữ ký.",
        "errors.purchase.paidNotSupported": "Không hỗ trợ mua ứng dụng trả phí.",
        "errors.purchase.passwordExpired": "Phiên đăng nhập đã hết hạn. Vui lòng đăng nhập lại.",
        "errors.purchase.subscriptionRequired": "Cần đăng ký gói để tải ứng dụng này.",
        "errors.purchase.failed": "Mua thất bại ({failure_type}).",
    },
}

_active_locale = DEFAULT_LOCALE


def set_locale(locale: str) -> None:
    """Selects the catalog used by `translate`. Unknown locales are rejected."""
    global _active_locale
    if locale not in CATALOGS:
        raise ValueError(f"Unsupported locale: {locale}")
    _active_locale = locale


def translate(key: str, **params: object) -> str:
    """Looks up a message in the active catalog, falling back to English."""
    template = CATALOGS[_active_locale].get(key) or CATALOGS[DEFAULT_LOCALE].get(key)
    if template is None:
        log.debug(f"Missing message key '{key}'")
        return key
    return template.format(**params)

"""Tests for the message catalogs."""

import pytest

from appstore_cli.utils.messages import CATALOGS, set_locale, translate


def test_catalogs_define_the_same_keys() -> None:
    assert set(CATALOGS["vi"]) == set(CATALOGS["en"])


def test_translate_with_parameters() -> None:
    assert translate("errors.purchase.failed", failure_type="1008") == (
        "Purchase failed (1008)."
    )


def test_switching_locale() -> None:
    set_locale("vi")

    assert translate("errors.download.noSinf") == CATALOGS["vi"]["errors.download.noSinf"]


def test_unknown_key_falls_back_to_key() -> None:
    assert translate("errors.unknown") == "errors.unknown"


def test_unknown_locale_is_rejected() -> None:
    with pytest.raises(ValueError):
        set_locale("xx")
    assert translate("errors.download.noSinf") == CATALOGS["en"]["errors.download.noSinf"]

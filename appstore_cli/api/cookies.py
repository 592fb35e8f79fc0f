"""
Merges cookies set by a store response into an account's cookie map.
"""

import logging
from collections.abc import Iterable, Mapping

log = logging.getLogger(__name__)

SET_COOKIE = "set-cookie"


def parse_set_cookie(line: str) -> tuple[str, str] | None:
    """Extracts ``(name, value)`` from one Set-Cookie value, or None if malformed."""
    pair = line.split(";", 1)[0]
    name, sep, value = pair.partition("=")
    name = name.strip()
    if not sep or not name:
        return None
    return name, value.strip()


def merge_cookies(
    existing: Mapping[str, str], raw_headers: Iterable[tuple[str, str]]
) -> dict[str, str]:
    """
    Returns a new cookie map with every Set-Cookie line applied.

    Names absent from the response keep their old value; names present in the
    response are overwritten, the last line winning when a name repeats.
    Malformed lines are skipped.
    """
    merged = dict(existing)
    for name, value in raw_headers:
        if name.lower() != SET_COOKIE:
            continue
        parsed = parse_set_cookie(value)
        if parsed is None:
            log.debug("Skipping malformed Set-Cookie header")
            continue
        merged[parsed[0]] = parsed[1]
    return merged


def format_cookie_header(cookies: Mapping[str, str]) -> str:
    return "; ".join(f"{name}={value}" for name, value in cookies.items())

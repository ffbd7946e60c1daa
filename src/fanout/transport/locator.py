# src/fanout/transport/locator.py
"""Target locator validation.

A locator is an absolute http(s) URL with a host. Validation happens when
a locator is bound to a handle, so a malformed target is caught before
the handle is registered with the multiplexer.
"""

from __future__ import annotations

import httpx

from fanout.contracts.status import LocatorCode, Status

SUPPORTED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def parse_locator(raw: str) -> tuple[httpx.URL | None, Status]:
    """Parse and validate a locator.

    Args:
        raw: Locator string as supplied by the caller

    Returns:
        Tuple of (url, status)
        - On success: (parsed httpx.URL, ok locator status)
        - On failure: (None, non-ok locator status explaining why)
    """
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as e:
        return None, Status.locator(LocatorCode.MALFORMED, f"Malformed locator {raw!r}: {e}")

    if not url.scheme:
        return None, Status.locator(LocatorCode.MISSING_SCHEME, f"Locator {raw!r} has no scheme")
    if url.scheme not in SUPPORTED_SCHEMES:
        return None, Status.locator(
            LocatorCode.UNSUPPORTED_SCHEME,
            f"Locator {raw!r} uses unsupported scheme {url.scheme!r}",
        )
    if not url.host:
        return None, Status.locator(LocatorCode.MISSING_HOST, f"Locator {raw!r} has no host")
    return url, Status.locator(LocatorCode.OK)

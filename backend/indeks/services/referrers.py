"""Referrer URL normalization."""

from __future__ import annotations

from urllib.parse import urlparse


def referrer_domain(referrer: str | None) -> str:
    """
    Return the host of a referrer URL.

    Anything that does not parse as an absolute URL with a host comes back unchanged.
    """
    raw = "" if referrer is None else str(referrer)
    if not raw:
        return raw
    try:
        parsed = urlparse(raw)
        host = parsed.hostname
    except ValueError:
        return raw
    if not parsed.scheme or not host:
        return raw
    return host

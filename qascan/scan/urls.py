"""User input → crawlable root URL."""

from __future__ import annotations

import re

# Octet values are not range-checked: "999.999.999.999" still counts.
_IPV4 = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")


def normalize_url(raw: str) -> str:
    """Return *raw* with an explicit scheme.

    Existing ``http://`` / ``https://`` prefixes are kept.  Bare dotted-quad
    addresses get ``http://`` (devices on a LAN rarely serve TLS); anything
    else gets ``https://``.

    >>> normalize_url("  example.com ")
    'https://example.com'
    >>> normalize_url("192.168.1.1")
    'http://192.168.1.1'
    """
    url = raw.strip()
    if url.startswith(("http://", "https://")):
        return url
    if _IPV4.match(url):
        return f"http://{url}"
    return f"https://{url}"

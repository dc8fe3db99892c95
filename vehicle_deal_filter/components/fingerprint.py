"""Fingerprinting of listings for deduplication."""

from typing import Any, Mapping, Union
from urllib.parse import urlsplit

from ..models.listing import URL_FIELDS, Listing, first_present

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """
    Reduce a listing URL to scheme, host and path.

    Query strings and fragments carry ranking and tracking parameters, so
    they are dropped. Strings that are not absolute URLs are truncated at
    the first ``#`` or ``?``.

    Args:
        url: Raw URL text

    Returns:
        Normalized URL string
    """
    url = (url or "").strip()

    try:
        parts = urlsplit(url)
        host = parts.hostname
        port = parts.port
    except ValueError:
        parts = None

    if parts is None or not parts.scheme or not host:
        return url.split("#")[0].split("?")[0]

    scheme = parts.scheme.lower()
    netloc = f"[{host}]" if ":" in host else host
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{netloc}:{port}"

    return f"{scheme}://{netloc}{parts.path or '/'}"


def fingerprint(listing: Union[Listing, Mapping[str, Any]]) -> str:
    """
    Return the stable identity of a listing.

    Accepts a parsed ``Listing`` or a raw provider record; for records the
    first non-empty of ``url``, ``link`` and ``detailUrl`` is used.
    """
    if isinstance(listing, Listing):
        url = listing.url
    else:
        url = first_present(listing, URL_FIELDS) or ""

    return normalize_url(str(url))

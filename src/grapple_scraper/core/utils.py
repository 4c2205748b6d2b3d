from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

from .errors import ResolutionError


def resolve_url(href: object, base: str) -> str:
    """
    Resolve a structured-data or anchor reference against the site origin.
    Drops the fragment. Raises ResolutionError for anything that does not end up
    as an absolute http(s) URL.
    """
    if not isinstance(href, str) or not href.strip():
        raise ResolutionError(repr(href), "empty or not a string")
    try:
        u = urljoin(base, href.strip())
        parts = urlsplit(u)
        # .port raises ValueError on garbage like "http://host:abc/"
        _ = parts.port
    except ValueError as e:
        raise ResolutionError(href, str(e)) from e
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ResolutionError(href, "not an absolute http(s) URL")
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


def _site_host(url: str) -> str:
    host = (urlsplit(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def same_site(url: str, base: str) -> bool:
    """True for the base host, its bare apex and any of its subdomains."""
    host, base_host = _site_host(url), _site_host(base)
    if not host or not base_host:
        return False
    return host == base_host or host.endswith("." + base_host)

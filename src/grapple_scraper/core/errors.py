from __future__ import annotations

from typing import Optional


class ScrapeError(Exception):
    """Base class for everything the scrape pipeline raises on purpose."""


class FetchError(ScrapeError):
    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        detail = f"status={status_code}" if status_code is not None else (reason or "transport error")
        super().__init__(f"GET {url} -> {detail}")


class ParseError(ScrapeError):
    """A JSON-LD island that could not be decoded."""


class MissingDateError(ScrapeError):
    """An event candidate with no usable start or end timestamp."""


class ResolutionError(ScrapeError):
    def __init__(self, href: str, reason: str = "") -> None:
        self.href = href
        super().__init__(f"cannot resolve {href!r}" + (f": {reason}" if reason else ""))


class FatalOutputError(ScrapeError):
    """Feed serialization or write failure. Ends the run with a non-zero status."""

from pathlib import Path
from typing import Dict, List, Union

import pytest

from grapple_scraper.config import SiteConfig
from grapple_scraper.core.errors import FetchError


def read_fixture(name: str) -> str:
    p = Path(__file__).parent / "fixtures" / name
    return p.read_text(encoding="utf-8")


class FakeFetcher:
    """Serves canned HTML by URL. A value that is an Exception is raised instead."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, status_code=404)
        if isinstance(page, Exception):
            raise page
        return page

    def close(self) -> None:
        pass


@pytest.fixture
def config() -> SiteConfig:
    return SiteConfig(months_ahead=0, request_delay_s=0, render=False, min_request_spacing_s=0)

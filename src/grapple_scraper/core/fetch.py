from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from grapple_scraper.config import DEFAULT_UA, SiteConfig
from .errors import FetchError

DEFAULT_HEADERS = {
    "User-Agent": DEFAULT_UA,
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}

LD_JSON_SELECTOR = 'script[type="application/ld+json"]'


@dataclass
class FetchResult:
    url: str
    status_code: int
    text: str
    rendered: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Fetcher:
    """Plain HTTP GET. Good enough when the site serves complete HTML."""

    def __init__(
        self,
        timeout_s: float = 30.0,
        min_delay_s: float = 0.5,
        user_agent: str = DEFAULT_UA,
        log: Optional[logging.Logger] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.min_delay_s = min_delay_s
        self.user_agent = user_agent
        self.log = log or logging.getLogger(__name__)
        self._client = self._make_client(transport)
        self._last_request_ts = 0.0

    def _make_client(self, transport: Optional[httpx.BaseTransport]) -> Optional[httpx.Client]:
        return httpx.Client(
            timeout=self.timeout_s,
            headers={**DEFAULT_HEADERS, "User-Agent": self.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _sleep_polite(self) -> None:
        now = time.time()
        elapsed = now - self._last_request_ts
        if elapsed < self.min_delay_s:
            time.sleep(self.min_delay_s - elapsed)
        self._last_request_ts = time.time()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
        reraise=True,
    )
    def get_text(self, url: str) -> FetchResult:
        self._sleep_polite()
        resp = self._client.get(url)
        return FetchResult(url=str(resp.url), status_code=resp.status_code, text=resp.text)

    def fetch(self, url: str) -> str:
        """HTML for url. Raises FetchError on transport failure, timeout or non-2xx."""
        try:
            res = self.get_text(url)
        except httpx.HTTPError as e:
            raise FetchError(url, reason=f"{type(e).__name__}: {e}") from e
        if not res.ok:
            raise FetchError(url, status_code=res.status_code)
        self.log.debug(
            "GET %s -> %s (%s bytes%s)", url, res.status_code, len(res.text), ", rendered" if res.rendered else ""
        )
        return res.text


class RenderedFetcher(Fetcher):
    """
    Loads the page in headless Chromium so client-side rendered JSON-LD is present.

    One browser per call. It waits for the structured-data marker to be attached
    or for network idle, whichever comes first, bounded by render_timeout_ms.
    """

    WAIT_STEP_MS = 500

    def __init__(
        self,
        render_timeout_ms: int = 30000,
        wait_selector: str = LD_JSON_SELECTOR,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.render_timeout_ms = render_timeout_ms
        self.wait_selector = wait_selector

    def _make_client(self, transport: Optional[httpx.BaseTransport]) -> Optional[httpx.Client]:
        return None

    def _wait_for_data(self, page, url: str, timeout_error: type) -> None:
        """
        Wait until the ld+json marker is attached or the network goes idle,
        whichever comes first. Idle waits are sliced so the marker is rechecked
        between slices; all slices together never exceed render_timeout_ms.
        """
        remaining = self.render_timeout_ms
        while remaining > 0:
            if page.query_selector(self.wait_selector) is not None:
                return
            step = min(self.WAIT_STEP_MS, remaining)
            try:
                page.wait_for_load_state("networkidle", timeout=step)
                return
            except timeout_error:
                remaining -= step
        self.log.info("no %s and no network idle on %s; using what rendered", self.wait_selector, url)

    def get_text(self, url: str) -> FetchResult:
        # Imported here so the static path works without browsers installed
        from playwright.sync_api import sync_playwright, Error as PlaywrightError
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

        self._sleep_polite()
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=True, args=["--no-sandbox", "--disable-dev-shm-usage"])
                try:
                    context = browser.new_context(
                        user_agent=self.user_agent,
                        locale="en-US",
                        extra_http_headers={"Accept-Language": DEFAULT_HEADERS["Accept-Language"]},
                    )
                    page = context.new_page()
                    page.set_default_timeout(self.render_timeout_ms)

                    resp = page.goto(url, wait_until="domcontentloaded", timeout=self.render_timeout_ms)
                    status = resp.status if resp is not None else 200
                    if 200 <= status < 300:
                        self._wait_for_data(page, url, PlaywrightTimeoutError)
                    html = page.content()
                    final_url = page.url
                finally:
                    browser.close()
        except PlaywrightTimeoutError as e:
            raise FetchError(url, reason=f"render timeout: {e}") from e
        except PlaywrightError as e:
            raise FetchError(url, reason=f"browser error: {e}") from e

        return FetchResult(url=final_url or url, status_code=status, text=html, rendered=True)


def build_fetcher(config: SiteConfig, log: Optional[logging.Logger] = None) -> Fetcher:
    common = dict(
        timeout_s=config.timeout_s,
        min_delay_s=config.min_request_spacing_s,
        user_agent=config.user_agent,
        log=log,
    )
    if config.render:
        return RenderedFetcher(
            render_timeout_ms=config.render_timeout_ms,
            wait_selector=config.wait_selector,
            **common,
        )
    return Fetcher(**common)

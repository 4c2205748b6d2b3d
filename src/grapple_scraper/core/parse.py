from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

from bs4 import BeautifulSoup

from grapple_scraper.config import SiteConfig
from .errors import MissingDateError, ResolutionError
from .extract import extract_blocks
from .fetch import Fetcher
from .graph import walk, is_event_type
from .models import EventRecord
from .normalize import (
    clean_name,
    flatten_location,
    normalize_date_iso,
    parse_loose_date,
    parse_timestamp,
)
from .utils import resolve_url

log = logging.getLogger(__name__)

DATE_KEYS = ("startDate", "endDate")

# 2025-10-18T19:00, 2025-10-18T19:00:00.000Z, 2025-10-18T19:00:00-04:00
ISO_TS_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?"
)


def _has_date(node: dict) -> bool:
    return any(isinstance(node.get(k), str) and node[k].strip() for k in DATE_KEYS)


def select_event_node(blocks: Iterable[Any]) -> Optional[dict]:
    """First Event-like node (walk order) that carries startDate or endDate."""
    for block in blocks:
        for node in walk(block):
            if isinstance(node, dict) and is_event_type(node) and _has_date(node):
                return node
    return None


def _resolved_date(raw: Any) -> str:
    iso = normalize_date_iso(raw)
    if not iso or parse_timestamp(iso) is None:
        raise MissingDateError(f"unusable timestamp {raw!r}")
    return iso


def _canonical_url(node: dict, fallback_url: str, base_url: str) -> str:
    for key in ("url", "@id"):
        try:
            return resolve_url(node.get(key), base_url)
        except ResolutionError:
            continue
    return fallback_url


def event_from_node(node: dict, fallback_url: str, config: SiteConfig) -> EventRecord:
    try:
        date_iso = _resolved_date(node.get("startDate"))
    except MissingDateError:
        # a TBA or garbled startDate still leaves endDate usable
        date_iso = _resolved_date(node.get("endDate"))
    return EventRecord(
        name=clean_name(node.get("name"), config.name_placeholder),
        date_iso=date_iso,
        location=flatten_location(node.get("location"), config.location_placeholder),
        url=_canonical_url(node, fallback_url, config.base_url),
    )


def _meta(soup: BeautifulSoup, prop: str) -> str:
    tag = soup.select_one(f'meta[property="{prop}"]')
    return (tag.get("content") or "").strip() if tag else ""


def _dom_name(soup: BeautifulSoup) -> str:
    name = _meta(soup, "og:title")
    if name:
        return name
    for sel in ("h1", "title"):
        tag = soup.select_one(sel)
        txt = tag.get_text(" ", strip=True) if tag else ""
        if txt:
            return txt
    return ""


def _dom_date(soup: BeautifulSoup) -> str:
    # 1) <time datetime="...">
    for t in soup.select("time[datetime]"):
        iso = normalize_date_iso(t.get("datetime"))
        if parse_timestamp(iso):
            return iso

    # 2) ISO-looking string inside inline scripts (hydration state etc.)
    for s in soup.find_all("script"):
        if s.get("src"):
            continue
        m = ISO_TS_RE.search(s.string or s.get_text() or "")
        if m:
            iso = normalize_date_iso(m.group(0))
            if parse_timestamp(iso):
                return iso

    # 3) visible date text
    tag = soup.select_one('[class*="date"], [data-testid*="date"]')
    if tag:
        return parse_loose_date(tag.get_text(" ", strip=True))
    return ""


def _dom_location(soup: BeautifulSoup) -> str:
    tag = soup.select_one('[class*="location"], [data-testid*="location"]')
    return tag.get_text(" ", strip=True) if tag else ""


def event_from_dom(html: str, fallback_url: str, config: SiteConfig) -> EventRecord:
    soup = BeautifulSoup(html or "", "lxml")
    return EventRecord(
        name=clean_name(_dom_name(soup), config.name_placeholder),
        date_iso=_resolved_date(_dom_date(soup)),
        location=flatten_location(_dom_location(soup), config.location_placeholder),
        url=fallback_url,
    )


def parse_event(
    blocks: Iterable[Any],
    fallback_url: str,
    config: SiteConfig,
    html: Optional[str] = None,
) -> Optional[EventRecord]:
    """
    Structured data first; DOM heuristics only when no dated Event node exists.
    Returns None when no start/end timestamp can be resolved.
    """
    node = select_event_node(blocks)
    try:
        if node is not None:
            return event_from_node(node, fallback_url, config)
        if html is not None:
            return event_from_dom(html, fallback_url, config)
    except MissingDateError as e:
        log.info("skip %s: %s", fallback_url, e)
        return None
    log.info("skip %s: no dated event data", fallback_url)
    return None


def scrape_event(fetcher: Fetcher, url: str, config: SiteConfig) -> Optional[EventRecord]:
    try:
        html = fetcher.fetch(url)
        return parse_event(extract_blocks(html), url, config, html=html)
    except Exception as e:
        log.warning("scrape failed: %s (%r)", url, e)
        return None

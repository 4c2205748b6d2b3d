from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Iterable, Iterator, List, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from bs4 import BeautifulSoup

from grapple_scraper.config import SiteConfig
from .errors import FetchError, ResolutionError
from .extract import extract_blocks
from .fetch import Fetcher
from .graph import walk, is_event_type, is_list_type
from .utils import resolve_url, same_site

log = logging.getLogger(__name__)


def _add_months(d: date, n: int) -> date:
    y, m = divmod(d.month - 1 + n, 12)
    return date(d.year + y, m + 1, 1)


def _with_query(url: str, key: str, value: str) -> str:
    parts = urlsplit(url)
    q = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    q.append((key, value))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(q), parts.fragment))


def index_page_urls(config: SiteConfig, today: Optional[date] = None) -> List[str]:
    """
    The listing page, then one page per month (current month first) when
    months_ahead > 0. Months are addressed by month_param=YYYY-MM-01.
    """
    urls = [config.listing_url]
    if config.months_ahead <= 0 or not config.month_param:
        return urls
    first = (today or date.today()).replace(day=1)
    for i in range(config.months_ahead + 1):
        month = _add_months(first, i)
        urls.append(_with_query(config.listing_url, config.month_param, month.isoformat()))
    return urls


def _ref(node: Any) -> Optional[str]:
    """url, then @id, then the node itself when it is a bare string."""
    if isinstance(node, str):
        return node
    if isinstance(node, dict):
        for key in ("url", "@id"):
            v = node.get(key)
            if isinstance(v, str) and v.strip():
                return v
    return None


def _list_item_refs(node: dict) -> Iterator[str]:
    items = node.get("itemListElement")
    if isinstance(items, dict):
        items = [items]
    if not isinstance(items, list):
        return
    for it in items:
        if isinstance(it, str):
            yield it
            continue
        if not isinstance(it, dict):
            continue
        # ListItem.url, then ListItem.item (string or object), then ListItem.@id
        u = it.get("url")
        if isinstance(u, str) and u.strip():
            yield u
            continue
        inner = _ref(it.get("item"))
        if inner:
            yield inner
            continue
        if isinstance(it.get("@id"), str):
            yield it["@id"]


def _sub_event_refs(node: dict) -> Iterator[str]:
    subs = node.get("subEvent")
    if isinstance(subs, dict):
        subs = [subs]
    if not isinstance(subs, list):
        return
    for sub in subs:
        if is_event_type(sub):
            r = _ref(sub)
            if r:
                yield r


def candidate_refs(blocks: Iterable[Any]) -> Iterator[str]:
    """Raw URL strings found in structured data, in walk order."""
    for block in blocks:
        for node in walk(block):
            if not isinstance(node, dict):
                continue
            if is_event_type(node):
                r = _ref(node)
                if r:
                    yield r
            if is_list_type(node):
                yield from _list_item_refs(node)
            if "subEvent" in node:
                yield from _sub_event_refs(node)


def _accept(href: str, config: SiteConfig, pattern: re.Pattern) -> Optional[str]:
    try:
        u = resolve_url(href, config.base_url)
    except ResolutionError as e:
        log.debug("dropping candidate: %s", e)
        return None
    if not same_site(u, config.base_url):
        return None
    if not pattern.search(urlsplit(u).path):
        return None
    return u


def urls_from_blocks(blocks: Iterable[Any], config: SiteConfig) -> List[str]:
    pattern = re.compile(config.event_path_pattern)
    out: List[str] = []
    for href in candidate_refs(blocks):
        u = _accept(href, config, pattern)
        if u and u not in out:
            out.append(u)
    return out


def urls_from_anchors(html: str, config: SiteConfig) -> List[str]:
    pattern = re.compile(config.event_path_pattern)
    soup = BeautifulSoup(html or "", "lxml")
    out: List[str] = []
    for a in soup.select("a[href]"):
        u = _accept(a.get("href") or "", config, pattern)
        if u and u not in out:
            out.append(u)
    return out


def discover_event_urls(fetcher: Fetcher, config: SiteConfig, today: Optional[date] = None) -> List[str]:
    found: List[str] = []
    seen = set()

    def _merge(urls: Iterable[str]) -> int:
        added = 0
        for u in urls:
            if u not in seen:
                seen.add(u)
                found.append(u)
                added += 1
        return added

    for idx in index_page_urls(config, today):
        if len(found) >= config.max_events:
            break
        try:
            html = fetcher.fetch(idx)
        except FetchError as e:
            log.warning("index page skipped: %s", e)
            continue

        from_ld = _merge(urls_from_blocks(extract_blocks(html), config))
        from_dom = _merge(urls_from_anchors(html, config))
        log.info("index=%s ld+json=+%s anchors=+%s total=%s", idx, from_ld, from_dom, len(found))

    if len(found) > config.max_events:
        log.info("capping %s discovered urls at %s", len(found), config.max_events)
    return found[: config.max_events]

from dataclasses import replace
from datetime import date

from conftest import FakeFetcher, read_fixture
from grapple_scraper.core.discover import (
    discover_event_urls,
    index_page_urls,
    urls_from_anchors,
    urls_from_blocks,
)
from grapple_scraper.core.extract import extract_blocks
from grapple_scraper.core.errors import FetchError

BASE = "https://www.flograppling.com"


def test_urls_from_blocks_covers_lists_events_and_sub_events(config):
    urls = urls_from_blocks(extract_blocks(read_fixture("listing.html")), config)
    assert urls == [
        f"{BASE}/events/101-adcc-open",
        f"{BASE}/events/102-who-s-number-one",
        f"{BASE}/events/103-pan-ams",
        f"{BASE}/events/104-grand-prix",
        f"{BASE}/events/105-grand-prix-day-2",
    ]


def test_references_resolving_to_same_url_are_kept_once(config):
    blocks = [
        {"@type": "Event", "url": "/events/200-x"},
        {"@type": "Event", "url": f"{BASE}/events/200-x"},
        {"@type": "ItemList", "itemListElement": [{"url": "/events/200-x#live"}]},
    ]
    assert urls_from_blocks(blocks, config) == [f"{BASE}/events/200-x"]


def test_bad_and_foreign_candidates_are_dropped(config):
    blocks = [
        {"@type": "Event", "url": "http://[::1"},
        {"@type": "Event", "url": 42},
        {"@type": "Event", "url": "mailto:someone@example.com"},
        {"@type": "Event", "url": "https://elsewhere.example.com/events/1"},
        {"@type": "Event", "url": "/news/1"},
        {"@type": "Event", "@id": "/events/300-ok"},
    ]
    assert urls_from_blocks(blocks, config) == [f"{BASE}/events/300-ok"]


def test_urls_from_anchors(config):
    urls = urls_from_anchors(read_fixture("listing.html"), config)
    assert urls == [f"{BASE}/events/106-craig-jones-invitational", f"{BASE}/events/103-pan-ams"]


def test_index_pages_by_month(config):
    cfg = replace(config, months_ahead=2)
    assert index_page_urls(cfg, today=date(2026, 11, 20)) == [
        f"{BASE}/events",
        f"{BASE}/events?date=2026-11-01",
        f"{BASE}/events?date=2026-12-01",
        f"{BASE}/events?date=2027-01-01",
    ]
    assert index_page_urls(config) == [f"{BASE}/events"]


def test_discover_merges_sources_in_first_seen_order(config):
    fetcher = FakeFetcher({f"{BASE}/events": read_fixture("listing.html")})
    urls = discover_event_urls(fetcher, config)
    assert urls == [
        f"{BASE}/events/101-adcc-open",
        f"{BASE}/events/102-who-s-number-one",
        f"{BASE}/events/103-pan-ams",
        f"{BASE}/events/104-grand-prix",
        f"{BASE}/events/105-grand-prix-day-2",
        f"{BASE}/events/106-craig-jones-invitational",
    ]


def test_discover_applies_cap(config):
    fetcher = FakeFetcher({f"{BASE}/events": read_fixture("listing.html")})
    urls = discover_event_urls(fetcher, replace(config, max_events=3))
    assert len(urls) == 3
    assert urls[0] == f"{BASE}/events/101-adcc-open"


def test_discover_skips_failing_index_pages(config):
    cfg = replace(config, months_ahead=1)
    pages = {
        f"{BASE}/events": FetchError(f"{BASE}/events", status_code=503),
        f"{BASE}/events?date=2026-10-01": '<a href="/events/400-a">a</a>',
        f"{BASE}/events?date=2026-11-01": '<a href="/events/400-a">a</a><a href="/events/401-b">b</a>',
    }
    urls = discover_event_urls(FakeFetcher(pages), cfg, today=date(2026, 10, 18))
    assert urls == [f"{BASE}/events/400-a", f"{BASE}/events/401-b"]


def test_apex_and_subdomain_references_are_kept(config):
    blocks = [
        {"@type": "Event", "url": "https://flograppling.com/events/501-apex"},
        {"@type": "Event", "url": "https://m.flograppling.com/events/502-mobile"},
        {"@type": "Event", "url": "https://notflograppling.com/events/503-other"},
    ]
    assert urls_from_blocks(blocks, config) == [
        "https://flograppling.com/events/501-apex",
        "https://m.flograppling.com/events/502-mobile",
    ]

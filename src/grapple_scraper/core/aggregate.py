from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from grapple_scraper.config import SiteConfig
from .discover import discover_event_urls
from .fetch import Fetcher
from .models import EventRecord
from .parse import scrape_event

log = logging.getLogger(__name__)


def within_window(start: datetime, now: datetime, lookback_days: int = 30, lookahead_days: int = 365) -> bool:
    # Both bounds inclusive
    return now - timedelta(days=lookback_days) <= start <= now + timedelta(days=lookahead_days)


def window_events(
    records: Iterable[EventRecord],
    now: datetime,
    lookback_days: int = 30,
    lookahead_days: int = 365,
) -> List[EventRecord]:
    kept = [r for r in records if within_window(r.start, now, lookback_days, lookahead_days)]
    return kept


def sort_events(records: Iterable[EventRecord]) -> List[EventRecord]:
    # sorted() is stable: equal start times keep discovery order
    return sorted(records, key=lambda r: r.start)


def scrape_all(
    fetcher: Fetcher,
    urls: Iterable[str],
    config: SiteConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> List[EventRecord]:
    """One URL at a time; a failing URL yields nothing and the loop moves on."""
    records: List[EventRecord] = []
    for u in urls:
        r = scrape_event(fetcher, u, config)
        if r:
            records.append(r)
        if config.request_delay_s > 0:
            sleep(config.request_delay_s)
    return records


def get_all_events(
    fetcher: Fetcher,
    config: SiteConfig,
    now: Optional[datetime] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[EventRecord]:
    now = now or datetime.now(timezone.utc)

    urls = discover_event_urls(fetcher, config, today=now.date())
    log.info("Event URLs found: %s", len(urls))
    for u in urls:
        log.debug("  %s", u)

    records = scrape_all(fetcher, urls, config, sleep=sleep)
    kept = window_events(records, now, config.lookback_days, config.lookahead_days)
    log.info(
        "parsed=%s kept=%s (window -%sd/+%sd)",
        len(records), len(kept), config.lookback_days, config.lookahead_days,
    )
    return sort_events(kept)

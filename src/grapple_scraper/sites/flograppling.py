from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from grapple_scraper.config import SiteConfig
from grapple_scraper.core.aggregate import get_all_events
from grapple_scraper.core.fetch import Fetcher
from grapple_scraper.core.models import EventRecord

log = logging.getLogger(__name__)

SITE = "flograppling"

# FloGrappling renders its event list client-side; detail pages are /events/<id>-<slug>
DEFAULTS = SiteConfig()


def scrape(fetcher: Fetcher, config: SiteConfig = DEFAULTS, now: Optional[datetime] = None) -> List[EventRecord]:
    log.info("%s: scraping %s (render=%s)", SITE, config.listing_url, config.render)
    events = get_all_events(fetcher, config, now=now)
    log.info("%s: %s events in window", SITE, len(events))
    return events

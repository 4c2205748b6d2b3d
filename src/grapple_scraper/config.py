from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml

DEFAULT_UA = "Mozilla/5.0 (compatible; EventCalendarBot/1.0)"


@dataclass(frozen=True)
class SiteConfig:
    """
    Everything that tunes one scrape run. Defaults target FloGrappling.

    base_url            site origin; every relative URL is resolved against it
    listing_path        index page listing upcoming events
    event_path_pattern  regex an event-detail path must match
    month_param         query parameter used to page the listing by month
    months_ahead        extra months to page through (0 = listing only)
    max_events          cap on discovered URLs
    request_delay_s     pause after every event scrape
    lookback_days       keep events starting this many days before the run
    lookahead_days      ... up to this many days after the run
    render              use a headless browser instead of plain HTTP
    """

    base_url: str = "https://www.flograppling.com"
    listing_path: str = "/events"
    event_path_pattern: str = r"^/events/\d+"
    month_param: str = "date"
    months_ahead: int = 3
    max_events: int = 30
    request_delay_s: float = 0.2
    lookback_days: int = 30
    lookahead_days: int = 365
    render: bool = True
    user_agent: str = DEFAULT_UA
    timeout_s: float = 30.0
    render_timeout_ms: int = 30000
    min_request_spacing_s: float = 0.5
    wait_selector: str = 'script[type="application/ld+json"]'
    name_placeholder: str = "FloGrappling Event"
    location_placeholder: str = "TBA"
    calendar_name: str = "FloGrappling"
    event_hours: int = 3
    alarm_minutes: int = 30
    description_tz: str = "America/Toronto"

    @property
    def listing_url(self) -> str:
        return self.base_url.rstrip("/") + "/" + self.listing_path.lstrip("/")

    def with_overrides(self, overrides: Dict[str, Any]) -> "SiteConfig":
        known = {f.name: f for f in fields(self)}
        unknown = sorted(k for k in overrides if k not in known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")
        clean: Dict[str, Any] = {}
        for k, v in overrides.items():
            if v is None:
                continue
            default = getattr(self, k)
            # YAML gives us ints for floats and strings for everything else; coerce to the default's type
            if isinstance(default, bool):
                clean[k] = v if isinstance(v, bool) else str(v).strip().lower() in {"1", "true", "yes", "on"}
            elif isinstance(default, (int, float)):
                try:
                    clean[k] = type(default)(v)
                except (TypeError, ValueError) as e:
                    raise ValueError(f"Config key {k!r} expects {type(default).__name__}, got {v!r}") from e
            else:
                clean[k] = str(v)
        return replace(self, **clean)


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> SiteConfig:
    cfg = SiteConfig()
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        # Support both a flat mapping and {"site": {...}}
        site = data.get("site")
        cfg = cfg.with_overrides(site if isinstance(site, dict) else data)
    if overrides:
        cfg = cfg.with_overrides(overrides)
    return cfg

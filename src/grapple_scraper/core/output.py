from __future__ import annotations

import csv
import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from ics import Calendar, Event
from ics.alarm import DisplayAlarm
from ics.grammar.parse import ContentLine

from grapple_scraper.config import SiteConfig
from .errors import FatalOutputError
from .models import EventRecord

log = logging.getLogger(__name__)


def _as_of(now: datetime, tz_name: str) -> str:
    # "Oct 18, 7:05 PM EDT"
    local = now.astimezone(ZoneInfo(tz_name))
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {hour}:{local:%M %p %Z}"


def to_ics_event(record: EventRecord, config: SiteConfig, generated_at: datetime) -> Event:
    e = Event(
        name=record.name,
        begin=record.start,
        duration=timedelta(hours=config.event_hours),
        description=f"{record.url}\n\nAccurate as of {_as_of(generated_at, config.description_tz)}",
        location=record.location,
        uid=record.url,
        url=record.url,
        alarms=[
            DisplayAlarm(
                display_text=f"{record.name} starting soon!",
                trigger=timedelta(minutes=-config.alarm_minutes),
            )
        ],
    )
    return e


def build_calendar(records: List[EventRecord], config: SiteConfig, generated_at: Optional[datetime] = None) -> Calendar:
    generated_at = generated_at or datetime.now(timezone.utc)
    cal = Calendar()
    cal.extra.append(ContentLine(name="X-WR-CALNAME", value=config.calendar_name))
    for r in records:
        cal.events.add(to_ics_event(r, config, generated_at))
    return cal


def _write_text(path: str, text: str) -> None:
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        raise FatalOutputError(f"cannot write {path}: {e}") from e


def write_ics(path: str, records: List[EventRecord], config: SiteConfig, generated_at: Optional[datetime] = None) -> int:
    """Serialize the feed and write it. Returns the number of bytes written."""
    try:
        text = "".join(build_calendar(records, config, generated_at).serialize_iter())
    except Exception as e:
        raise FatalOutputError(f"cannot encode calendar: {e}") from e
    _write_text(path, text)
    size = len(text.encode("utf-8"))
    log.info("Wrote %s (%s events, %s bytes)", path, len(records), size)
    return size


def write_csv(path: str, records: List[EventRecord]) -> None:
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(
                f,
                fieldnames=["name", "date", "location", "url"],
            )
            writer.writeheader()
            for r in records:
                writer.writerow(r.to_row())
    except OSError as e:
        raise FatalOutputError(f"cannot write {path}: {e}") from e


def write_json(path: str, records: List[EventRecord]) -> None:
    _write_text(path, json.dumps([r.to_json() for r in records], ensure_ascii=False, indent=2))

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, List, Optional

import dateparser

TBA = "TBA"

TBA_RE = re.compile(r"\b(tba|tbd|tbc|to be (announced|confirmed|determined))\b", re.I)

ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)\b", re.I)

DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# "Z" or a numeric offset at the very end: +05:00, -0500, +05
ZONE_SUFFIX_RE = re.compile(r"(?:Z|[+-]\d{2}(?::?\d{2})?)$", re.I)

ADDRESS_KEYS = ("addressLocality", "addressRegion", "addressCountry")


def normalize_date_iso(value: Any) -> str:
    """
    Make a structured-data timestamp zone-qualified.

    Date-only values get midnight; anything without a trailing "Z" or numeric
    offset gets "Z". Running it on its own output changes nothing.
    """
    s = value.strip() if isinstance(value, str) else ""
    if not s:
        return ""
    if DATE_ONLY_RE.match(s):
        s = f"{s}T00:00:00"
    if not ZONE_SUFFIX_RE.search(s):
        s = f"{s}Z"
    return s


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Aware datetime for a zone-qualified ISO string, otherwise None."""
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    if s[-1] in "zZ":
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return None
    return dt


def parse_loose_date(raw: str) -> str:
    """
    Best-effort parse of a visible date string ("Sat, Oct 18th 2025 7:00 PM").
    Returns a zone-qualified ISO string (UTC when the text carries no zone) or "".
    """
    raw_clean = " ".join((raw or "").split()).strip()
    if not raw_clean:
        return ""

    if TBA_RE.search(raw_clean):
        return ""

    # remove ordinals: "18th Oct" -> "18 Oct"
    no_ord = ORDINAL_RE.sub(r"\1", raw_clean)

    dt = dateparser.parse(
        no_ord,
        settings={
            "TIMEZONE": "UTC",
            "RETURN_AS_TIMEZONE_AWARE": True,
            "PREFER_DATES_FROM": "future",
        },
        languages=["en"],
    )
    if not dt:
        return ""
    return dt.isoformat()


def clean_name(value: Any, placeholder: str) -> str:
    name = " ".join(value.split()) if isinstance(value, str) else ""
    return name or placeholder


def _text(x: Any) -> str:
    if isinstance(x, str):
        return x.strip()
    if isinstance(x, dict):
        # addressCountry is sometimes {"@type": "Country", "name": "US"}
        nm = x.get("name")
        return nm.strip() if isinstance(nm, str) else ""
    return ""


def flatten_location(loc: Any, placeholder: str = TBA) -> str:
    """
    Turn a schema.org location into one display line.

    - string: used as is
    - Place object: venue name, locality, region, country joined with ", "
      (address may be a string, then it follows the venue name)
    - list: first entry that yields something
    - anything else: placeholder
    """
    if isinstance(loc, list):
        for item in loc:
            flat = flatten_location(item, placeholder="")
            if flat:
                return flat
        return placeholder

    if isinstance(loc, str):
        return loc.strip() or placeholder

    if isinstance(loc, dict):
        parts: List[str] = []
        venue = _text(loc.get("name"))
        if venue:
            parts.append(venue)
        addr = loc.get("address")
        if isinstance(addr, str):
            if addr.strip():
                parts.append(addr.strip())
        elif isinstance(addr, dict):
            parts.extend(p for p in (_text(addr.get(k)) for k in ADDRESS_KEYS) if p)
        return ", ".join(parts) or placeholder

    return placeholder

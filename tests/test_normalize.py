from datetime import datetime, timezone, timedelta

from grapple_scraper.core.normalize import (
    clean_name,
    flatten_location,
    normalize_date_iso,
    parse_loose_date,
    parse_timestamp,
)


def test_normalize_appends_exactly_one_utc_marker():
    assert normalize_date_iso("2026-11-14T15:00:00") == "2026-11-14T15:00:00Z"
    assert normalize_date_iso("  2026-11-14T15:00  ") == "2026-11-14T15:00Z"


def test_normalize_is_idempotent():
    for value in (
        "2026-11-14T15:00:00",
        "2026-11-14T15:00:00Z",
        "2026-11-14T15:00:00-05:00",
        "2026-11-14T15:00:00+0530",
        "2026-11-14",
    ):
        once = normalize_date_iso(value)
        assert normalize_date_iso(once) == once


def test_normalize_leaves_qualified_values_alone():
    assert normalize_date_iso("2026-11-14T15:00:00Z") == "2026-11-14T15:00:00Z"
    assert normalize_date_iso("2026-11-14T15:00:00-05:00") == "2026-11-14T15:00:00-05:00"


def test_normalize_date_only_and_empty():
    assert normalize_date_iso("2026-11-14") == "2026-11-14T00:00:00Z"
    assert normalize_date_iso("") == ""
    assert normalize_date_iso(None) == ""
    assert normalize_date_iso(20261114) == ""


def test_parse_timestamp():
    assert parse_timestamp("2026-11-14T15:00:00Z") == datetime(2026, 11, 14, 15, tzinfo=timezone.utc)
    dt = parse_timestamp("2026-11-14T15:00:00-05:00")
    assert dt.utcoffset() == timedelta(hours=-5)
    assert parse_timestamp("2026-11-14T15:00:00") is None
    assert parse_timestamp("not a date") is None
    assert parse_timestamp("") is None


def test_parse_loose_date():
    iso = parse_loose_date("Saturday, November 14th 2026 3:00 PM")
    dt = parse_timestamp(iso)
    assert dt is not None
    assert (dt.year, dt.month, dt.day, dt.hour) == (2026, 11, 14, 15)
    assert parse_loose_date("Date TBA") == ""
    assert parse_loose_date("   ") == ""


def test_location_object_is_flattened():
    loc = {"name": "Arena", "address": {"addressLocality": "City", "addressCountry": "US"}}
    assert flatten_location(loc) == "Arena, City, US"


def test_location_venue_only():
    assert flatten_location({"name": "Arena", "address": {}}) == "Arena"
    assert flatten_location({"name": "Arena"}) == "Arena"


def test_location_missing_is_tba():
    assert flatten_location(None) == "TBA"
    assert flatten_location({}) == "TBA"
    assert flatten_location("   ") == "TBA"
    assert flatten_location([]) == "TBA"


def test_location_other_shapes():
    assert flatten_location("  Online  ") == "Online"
    assert flatten_location({"name": "Hall", "address": "1 Main St, Austin"}) == "Hall, 1 Main St, Austin"
    assert flatten_location(
        {"address": {"addressRegion": "TX", "addressCountry": {"@type": "Country", "name": "US"}}}
    ) == "TX, US"
    assert flatten_location([{}, {"name": "Second"}]) == "Second"


def test_clean_name():
    assert clean_name("  ADCC   Open ", "Placeholder") == "ADCC Open"
    assert clean_name("", "Placeholder") == "Placeholder"
    assert clean_name(None, "Placeholder") == "Placeholder"

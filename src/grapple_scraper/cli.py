from __future__ import annotations

import argparse
import sys
import os
import logging
from typing import Any, Dict, List

from rich.console import Console
from rich.table import Table

from grapple_scraper.config import load_config
from grapple_scraper.core.errors import FatalOutputError
from grapple_scraper.core.fetch import build_fetcher
from grapple_scraper.core.output import write_csv, write_ics, write_json
from grapple_scraper.core.models import EventRecord

from grapple_scraper.sites import flograppling

console = Console()

SITE_DRIVERS = {
    "flograppling": flograppling.scrape,
}


def parse_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Build an ICS feed of upcoming grappling events")
    p.add_argument("--site", default="flograppling", help=f"One of: {', '.join(sorted(SITE_DRIVERS))}")
    p.add_argument("--config", default="", help="Optional YAML file with site overrides")
    p.add_argument("--out", default="FloGrappling.ics", help="ICS output path")
    p.add_argument("--csv", default="", help="Optional CSV output path")
    p.add_argument("--json", default="", help="Optional JSON output path")
    p.add_argument("--log", default="", help="Optional log file path")
    p.add_argument("--render", dest="render", action="store_true", default=None, help="Fetch pages with a headless browser")
    p.add_argument("--no-render", dest="render", action="store_false", help="Fetch pages with plain HTTP")
    p.add_argument("--max-events", type=int, default=None, help="Cap on discovered event URLs")
    p.add_argument("--lookback-days", type=int, default=None, help="Keep events this many days in the past")
    p.add_argument("--lookahead-days", type=int, default=None, help="Keep events this many days ahead")
    p.add_argument("--delay", type=float, default=None, help="Seconds to wait between event pages")
    p.add_argument("--preview", type=int, default=20, help="Rows to show in the preview table (0 to hide)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def setup_logging(log_path: str = "", verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("grapple_scraper")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")

    # stdout
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    # file
    if log_path:
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def render_preview(records: List[EventRecord], limit: int = 20) -> None:
    t = Table(title=f"Preview (first {min(limit, len(records))} of {len(records)})")
    t.add_column("date")
    t.add_column("name")
    t.add_column("location")
    t.add_column("url")
    for r in records[:limit]:
        t.add_row(r.date_iso, r.name, r.location, r.url)
    console.print(t)


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "render": args.render,
        "max_events": args.max_events,
        "lookback_days": args.lookback_days,
        "lookahead_days": args.lookahead_days,
        "request_delay_s": args.delay,
    }


def main(argv: List[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    log = setup_logging(args.log, args.verbose)

    driver = SITE_DRIVERS.get(args.site.strip().lower())
    if driver is None:
        console.print(f"[red]Unknown site:[/red] {args.site}")
        return 2

    try:
        cfg = load_config(args.config or None, _cli_overrides(args))
    except (OSError, ValueError) as e:
        console.print(f"[red]Bad configuration:[/red] {e}")
        return 2

    log.info("Fetching %s events ...", args.site)
    fetcher = build_fetcher(cfg, log=log)
    try:
        records = driver(fetcher, cfg)
    finally:
        fetcher.close()
    log.info("Retrieved %s events.", len(records))

    try:
        write_ics(args.out, records, cfg)
        if args.csv:
            write_csv(args.csv, records)
        if args.json:
            write_json(args.json, records)
    except FatalOutputError as e:
        log.error("Error generating output: %s", e)
        return 1

    if args.preview > 0:
        render_preview(records, args.preview)
    log.info("Wrote ICS: %s", args.out)
    if args.csv:
        log.info("Wrote CSV: %s", args.csv)
    if args.json:
        log.info("Wrote JSON: %s", args.json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

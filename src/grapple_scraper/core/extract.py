from __future__ import annotations

import json
import logging
import re
from typing import Any, List

from bs4 import BeautifulSoup

from .errors import ParseError

log = logging.getLogger(__name__)

LD_JSON_TYPE_RE = re.compile(r"^\s*application/ld\+json\b", re.I)


def parse_block(raw: str) -> Any:
    """Decode one JSON-LD island. Raises ParseError on empty or malformed text."""
    raw = (raw or "").strip()
    if not raw:
        raise ParseError("empty ld+json island")
    # Some CMSes wrap the payload in an HTML comment
    if raw.startswith("<!--") and raw.endswith("-->"):
        raw = raw[4:-3].strip()
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ParseError(f"invalid ld+json: {e}") from e


def extract_blocks(html: str) -> List[Any]:
    """
    Return every parsed application/ld+json island in document order.
    A bad island is skipped; it never stops the others from being read.
    """
    soup = BeautifulSoup(html or "", "lxml")
    blocks: List[Any] = []
    for i, s in enumerate(soup.find_all("script", attrs={"type": LD_JSON_TYPE_RE})):
        try:
            blocks.append(parse_block(s.string or s.get_text() or ""))
        except ParseError as e:
            log.debug("skipping ld+json island #%s: %s", i, e)
    return blocks

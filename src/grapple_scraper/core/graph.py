from __future__ import annotations

from typing import Any, Iterator, List

# JSON-LD from event sites is tree-shaped; the cap only guards against
# absurd nesting, not cycles.
MAX_DEPTH = 64


def walk(node: Any, _depth: int = 0) -> Iterator[Any]:
    """
    Pre-order depth-first walk over a parsed JSON graph.

    Yields the root first, then every value reachable through dicts (in key order)
    and lists (in index order). Scalars yield only themselves. Each call returns a
    fresh generator, so the walk can be restarted.
    """
    yield node
    if _depth >= MAX_DEPTH:
        return
    if isinstance(node, dict):
        for v in node.values():
            yield from walk(v, _depth + 1)
    elif isinstance(node, list):
        for v in node:
            yield from walk(v, _depth + 1)


def type_tags(node: Any) -> List[str]:
    if not isinstance(node, dict):
        return []
    t = node.get("@type")
    if isinstance(t, str):
        return [t.strip()]
    if isinstance(t, list):
        return [x.strip() for x in t if isinstance(x, str)]
    return []


def is_event_type(node: Any) -> bool:
    # Suffix match: Event, SportsEvent, BroadcastEvent, schema:Event ...
    return any(t.endswith("Event") for t in type_tags(node))


def is_list_type(node: Any) -> bool:
    return any(t.endswith("ItemList") for t in type_tags(node))

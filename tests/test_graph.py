from grapple_scraper.core.graph import walk, type_tags, is_event_type, is_list_type


def test_walk_is_preorder_and_includes_root():
    graph = {"a": [1, {"b": 2}], "c": "x"}
    nodes = list(walk(graph))
    assert nodes[0] is graph
    assert nodes[1] == [1, {"b": 2}]
    assert nodes[2] == 1
    assert nodes[3] == {"b": 2}
    assert nodes[4] == 2
    assert nodes[5] == "x"
    assert len(nodes) == 6


def test_walk_scalar_yields_only_itself():
    assert list(walk("just a string")) == ["just a string"]
    assert list(walk(None)) == [None]


def test_walk_can_be_restarted():
    graph = [{"@type": "Event"}, {"@type": "Place"}]
    assert list(walk(graph)) == list(walk(graph))


def test_walk_stops_at_depth_cap():
    deep = current = {}
    for _ in range(200):
        current["child"] = {}
        current = current["child"]
    # finishes and stays bounded
    assert 0 < len(list(walk(deep))) < 200


def test_type_matching_is_suffix_based():
    assert is_event_type({"@type": "Event"})
    assert is_event_type({"@type": "SportsEvent"})
    assert is_event_type({"@type": ["Thing", "BroadcastEvent"]})
    assert not is_event_type({"@type": "EventVenue"})
    assert not is_event_type({"name": "no type"})
    assert not is_event_type("Event")
    assert is_list_type({"@type": "ItemList"})
    assert not is_list_type({"@type": "ListItem"})
    assert type_tags({"@type": [" Event ", 3]}) == ["Event"]

import json
from itertools import count

import pytest

from graphai.graph import Edge, Node
from graphai.storage import GraphStore, JsonGraphStore, SavedGraph


@pytest.fixture
def clock():
    ticks = count(1000, 500)
    return lambda: next(ticks)


@pytest.fixture
def store(tmp_path, clock):
    return JsonGraphStore(tmp_path / "db" / "saved_graphs.json", clock=clock)


NODES = [Node("A", "Alpha", x=1.0, y=2.0), Node("B", "Beta", color="#fff")]
EDGES = [Edge("A", "B", label="knows")]


def test_store_satisfies_protocol(store):
    assert isinstance(store, GraphStore)


def test_list_is_empty_without_file(store):
    assert store.list() == []
    assert store.get("graph_1") is None


def test_save_creates_file_and_record(store):
    saved = store.save("Friends", NODES, EDGES)

    assert saved.id == "graph_1000"
    assert saved.name == "Friends"
    assert saved.created_at == saved.updated_at == 1000
    assert store.path.exists()

    with store.path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    assert raw == [{
        "id": "graph_1000",
        "name": "Friends",
        "nodes": [
            {"id": "A", "label": "Alpha", "x": 1.0, "y": 2.0},
            {"id": "B", "label": "Beta", "color": "#fff"},
        ],
        "edges": [{"source": "A", "target": "B", "label": "knows"}],
        "createdAt": 1000,
        "updatedAt": 1000,
    }]


def test_get_reloads_equal_graph(store, tmp_path):
    saved = store.save("Friends", NODES, EDGES)

    reloaded = JsonGraphStore(store.path).get(saved.id)

    assert reloaded == saved
    assert reloaded.nodes == NODES
    assert reloaded.edges == EDGES


def test_ids_stay_unique_within_same_millisecond(tmp_path):
    store = JsonGraphStore(tmp_path / "graphs.json", clock=lambda: 42)
    first = store.save("one", [], [])
    second = store.save("two", [], [])
    assert (first.id, second.id) == ("graph_42", "graph_42_1")


def test_blank_name_gets_default(store):
    assert store.save("   ", [], []).name == "Untitled graph"


def test_update_replaces_content_and_bumps_timestamp(store):
    saved = store.save("Friends", NODES, EDGES)

    updated = store.update(saved.id, NODES[:1], [])

    assert updated.nodes == NODES[:1]
    assert updated.edges == []
    assert updated.created_at == 1000
    assert updated.updated_at == 1500
    assert store.get(saved.id) == updated
    assert store.update("missing", [], []) is None


def test_delete(store):
    first = store.save("one", NODES, EDGES)
    second = store.save("two", [], [])

    store.delete(first.id)
    store.delete("missing")

    assert [g.id for g in store.list()] == [second.id]


def test_corrupt_file_reads_as_empty(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")
    assert store.list() == []


def test_unreadable_record_does_not_cost_other_graphs(store):
    store.save("keep me", NODES, EDGES)
    store.save("me too", [], [])
    with store.path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    broken = {"id": "graph_x", "name": "broken", "nodes": [{"label": "no id"}]}
    raw.append(broken)
    store.path.write_text(json.dumps(raw), encoding="utf-8")

    assert [g.name for g in store.list()] == ["keep me", "me too"]

    store.save("new", [], [])

    assert [g.name for g in store.list()] == ["keep me", "me too", "new"]
    with store.path.open("r", encoding="utf-8") as f:
        assert broken in json.load(f)


def test_saving_over_corrupt_file_keeps_a_backup(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    store.save("fresh", [], [])

    assert [g.name for g in store.list()] == ["fresh"]
    backup = store.path.with_name("saved_graphs.json.corrupt")
    assert backup.read_text(encoding="utf-8") == "{not json"


def test_saved_graph_snapshot():
    graph = SavedGraph(id="g", name="n", nodes=NODES, edges=EDGES)
    snapshot = graph.snapshot()
    assert snapshot.nodes == tuple(NODES)
    assert snapshot.edges == tuple(EDGES)

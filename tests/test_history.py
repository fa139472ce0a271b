import pytest

from graphai.graph import EMPTY_SNAPSHOT, GraphDocument
from graphai.history import HistoryRecorder, shortcut_action


@pytest.fixture
def document():
    return GraphDocument()


@pytest.fixture
def history(document):
    return HistoryRecorder(document)


def test_starts_with_single_empty_entry(history):
    assert history.entries == [EMPTY_SNAPSHOT]
    assert history.cursor == 0
    assert not history.can_undo
    assert not history.can_redo


def test_each_user_edit_is_recorded(document, history):
    document.add_node()
    document.add_node()
    document.add_edge("N1", "N2")

    assert len(history.entries) == 4
    assert history.cursor == 3
    assert history.current == document.snapshot()


def test_undo_then_redo_restores_state(document, history):
    document.add_node()
    document.add_node()
    document.add_edge("N1", "N2")
    before_undo = document.snapshot()

    assert history.undo() is True
    assert document.edges == []
    assert history.redo() is True
    assert document.snapshot() == before_undo
    # Replays never add entries
    assert len(history.entries) == 4


def test_undo_past_start_is_clamped(document, history):
    for _ in range(5):
        document.add_node()
    for _ in range(5):
        assert history.undo() is True

    state = document.snapshot()
    assert history.undo() is False
    assert history.cursor == 0
    assert document.snapshot() == state == EMPTY_SNAPSHOT


def test_redo_at_end_returns_false(document, history):
    document.add_node()
    assert history.redo() is False
    assert history.cursor == 1


def test_new_edit_after_undo_truncates_redo_branch(document, history):
    document.add_node(label="first")
    document.add_node(label="second")
    history.undo()
    assert history.can_redo

    document.add_node(label="other")

    assert not history.can_redo
    assert len(history.entries) == 3
    assert [n.label for n in history.current.nodes] == ["first", "other"]


def test_replay_is_not_recorded_as_new_state(document, history):
    document.add_node()
    document.add_node()
    history.undo()
    history.undo()
    history.redo()

    assert len(history.entries) == 3
    assert history.cursor == 1


def test_identical_state_is_not_recorded(document, history):
    document.add_node(id="A")
    document.remove_node("A")
    document.add_node(id="A")
    # Remove then re-add produces states equal to previous ones but each
    # differs from the entry at the cursor, so all three are kept
    assert len(history.entries) == 4

    assert history.record(document.snapshot()) is False
    assert len(history.entries) == 4


def test_history_is_bounded_and_cursor_rebased(document):
    history = HistoryRecorder(document, max_entries=50)
    for _ in range(60):
        document.add_node()

    assert len(history.entries) == 50
    assert history.cursor == 49
    assert history.current == document.snapshot()
    # Oldest surviving entry holds 11 nodes (entries for 0..10 nodes were dropped)
    assert len(history.entries[0].nodes) == 11

    for _ in range(49):
        assert history.undo()
    assert not history.undo()
    assert len(document.nodes) == 11


def test_cursor_stays_in_bounds_under_mixed_operations(document):
    history = HistoryRecorder(document, max_entries=5)
    for step in range(30):
        if step % 4 == 3:
            history.undo()
        elif step % 7 == 6:
            history.redo()
        else:
            document.add_node()
        assert 0 <= history.cursor < len(history.entries) <= 5


def test_clear_is_recorded_and_undoable(document, history):
    document.add_node()
    document.add_node()
    document.clear()

    assert document.nodes == []
    assert history.undo()
    assert len(document.nodes) == 2


def test_replace_all_is_recorded_once(document, history):
    document.add_node()
    document.replace_all([{"id": "A"}, {"id": "B"}], [{"source": "A", "target": "B"}])

    assert len(history.entries) == 3
    history.undo()
    assert [n.id for n in document.nodes] == ["N1"]


def test_on_change_callback_fires_for_records_and_replays(document, history):
    calls = []
    history.set_on_change(lambda h: calls.append(h.cursor))
    document.add_node()
    history.undo()
    history.redo()
    assert calls == [1, 0, 1]


def test_recorder_attached_to_populated_document_starts_from_it(document):
    document.add_node()
    history = HistoryRecorder(document)
    assert history.entries == [document.snapshot()]
    assert not history.can_undo


def test_detach_stops_recording(document, history):
    history.detach()
    document.add_node()
    assert len(history.entries) == 1


@pytest.mark.parametrize("key,ctrl,meta,shift,expected", [
    ("z", True, False, False, "undo"),
    ("Z", False, True, False, "undo"),
    ("z", True, False, True, "redo"),
    ("y", True, False, False, "redo"),
    ("y", False, True, False, "redo"),
    ("z", False, False, False, None),
    ("x", True, False, False, None),
])
def test_shortcut_action(key, ctrl, meta, shift, expected):
    assert shortcut_action(key, ctrl=ctrl, meta=meta, shift=shift) == expected

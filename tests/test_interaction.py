import pytest

from graphai.graph import Edge, EdgeKey, GraphDocument
from graphai.history import HistoryRecorder
from graphai.interaction import InteractionController, InteractionState, Mode
from graphai.results import EdgeRejectReason, InsufficientNodes


@pytest.fixture
def document():
    return GraphDocument()


@pytest.fixture
def controller(document):
    return InteractionController(document)


@pytest.fixture
def three_nodes(document):
    for node_id in ("A", "B", "C"):
        document.add_node(id=node_id)
    return document


class TestEdgeMode:

    def test_toggle_with_one_node_is_rejected(self, document, controller):
        document.add_node()
        result = controller.toggle_edge_mode()

        assert not result.ok
        assert result.error == InsufficientNodes(node_count=1, required=2)
        assert controller.state.mode == Mode.IDLE

    def test_toggle_on_and_off(self, three_nodes, controller):
        assert controller.toggle_edge_mode().value == Mode.EDGE_DRAWING
        assert controller.state == InteractionState(mode=Mode.EDGE_DRAWING)
        assert controller.toggle_edge_mode().value == Mode.IDLE
        assert controller.state.mode == Mode.IDLE

    def test_entering_edge_mode_clears_selection(self, three_nodes, controller):
        controller.select_node("A")
        controller.toggle_edge_mode()
        assert not controller.state.has_selection

    def test_two_node_taps_create_edge_and_return_to_idle(self, three_nodes, controller):
        controller.toggle_edge_mode()
        first = controller.select_node("A")
        assert first.ok and first.value is None
        assert controller.state.edge_source == "A"

        second = controller.select_node("B")

        assert second.ok
        assert second.value == Edge("A", "B")
        assert three_nodes.edges == [Edge("A", "B")]
        assert controller.state == InteractionState()

    def test_rejected_edge_still_consumes_attempt(self, three_nodes, controller):
        three_nodes.add_edge("A", "B")
        controller.toggle_edge_mode()
        controller.select_node("B")
        result = controller.select_node("A")

        assert not result.ok
        assert result.error.reason == EdgeRejectReason.DUPLICATE
        assert controller.state.mode == Mode.IDLE
        assert len(three_nodes.edges) == 1

    def test_reselecting_source_is_noop(self, three_nodes, controller):
        controller.toggle_edge_mode()
        controller.select_node("A")
        result = controller.select_node("A")

        assert result.ok and result.value is None
        assert controller.state.mode == Mode.EDGE_DRAWING
        assert controller.state.edge_source == "A"
        assert three_nodes.edges == []

    def test_background_and_edge_taps_ignored_while_drawing(self, three_nodes, controller):
        three_nodes.add_edge("A", "B")
        controller.toggle_edge_mode()
        controller.select_node("A")

        controller.on_background_tap()
        controller.on_edge_tap("A", "B")
        controller.select_node(None)

        assert controller.state == InteractionState(mode=Mode.EDGE_DRAWING, edge_source="A")

    def test_cancel_edge_mode(self, three_nodes, controller):
        controller.toggle_edge_mode()
        controller.select_node("C")
        controller.cancel_edge_mode()
        assert controller.state == InteractionState()


class TestSelection:

    def test_node_and_edge_selection_are_exclusive(self, three_nodes, controller):
        three_nodes.add_edge("A", "B")

        controller.select_node("A")
        assert controller.state.selected_node_id == "A"

        controller.select_edge(("A", "B"))
        assert controller.state.selected_edge == EdgeKey("A", "B")
        assert controller.state.selected_node_id is None

        controller.select_node("C")
        assert controller.state.selected_node_id == "C"
        assert controller.state.selected_edge is None

    def test_unknown_ids_select_nothing(self, three_nodes, controller):
        controller.select_node("ghost")
        controller.select_edge(("A", "C"))
        assert not controller.state.has_selection

    def test_background_tap_clears_selection(self, three_nodes, controller):
        controller.on_node_tap("B")
        controller.on_background_tap()
        assert not controller.state.has_selection

    def test_delete_selected_node_removes_its_edges(self, three_nodes, controller):
        three_nodes.add_edge("A", "B")
        three_nodes.add_edge("B", "C")
        controller.select_node("B")

        assert controller.delete_selected() == "Removed node B"
        assert not three_nodes.has_node("B")
        assert three_nodes.edges == []
        assert not controller.state.has_selection

    def test_delete_selected_edge(self, three_nodes, controller):
        three_nodes.add_edge("A", "B")
        controller.on_edge_tap("A", "B")

        assert controller.delete_selected() == "Removed edge A -> B"
        assert three_nodes.edges == []
        assert len(three_nodes.nodes) == 3

    def test_delete_with_nothing_selected_is_noop(self, three_nodes, controller):
        before = three_nodes.snapshot()
        assert controller.delete_selected() is None
        assert three_nodes.snapshot() == before


class TestReconciliation:

    def test_undo_removing_selected_node_drops_selection(self, document, controller):
        history = HistoryRecorder(document)
        document.add_node(id="A")
        document.add_node(id="B")
        controller.select_node("B")

        history.undo()

        assert controller.state.selected_node_id is None

    def test_edge_mode_falls_back_to_idle_when_nodes_disappear(self, three_nodes, controller):
        controller.toggle_edge_mode()
        controller.select_node("A")
        three_nodes.replace_all([{"id": "X"}], [])
        assert controller.state == InteractionState()

    def test_missing_edge_source_is_dropped(self, three_nodes, controller):
        controller.toggle_edge_mode()
        controller.select_node("A")
        three_nodes.remove_node("A")
        assert controller.state == InteractionState(mode=Mode.EDGE_DRAWING)

    def test_state_change_callback(self, three_nodes, controller):
        seen = []
        controller.set_on_state_change(seen.append)
        controller.select_node("A")
        controller.select_node("A")
        assert seen == [InteractionState(selected_node_id="A")]


def test_clear_graph_resets_everything(three_nodes, controller):
    controller.toggle_edge_mode()
    controller.select_node("A")
    controller.clear_graph()

    assert three_nodes.nodes == []
    assert controller.state == InteractionState()


def test_drag_end_moves_nodes(three_nodes, controller):
    controller.on_drag_end({"A": (1.5, 2.5)})
    node = three_nodes.get_node("A")
    assert (node.x, node.y) == (1.5, 2.5)

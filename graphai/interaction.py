"""
Interaction Controller - Selection and edge-drawing state machine.

Maps user gestures (taps, toolbar actions, drags) onto GraphDocument
mutations. Two modes:

    IDLE                  taps select a node or an edge
    EDGE_DRAWING(source)  the first node tap picks the source, the second
                          creates source -> target and returns to IDLE

The controller also keeps its own state consistent with the document: when
an undo or a generated graph removes the selected element or the chosen edge
source, that reference is dropped.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Mapping, Optional, Tuple

from graphai.graph import EdgeKey, GraphDocument, MutationOrigin
from graphai.results import InsufficientNodes, Result

logger = logging.getLogger(__name__)

MIN_NODES_FOR_EDGE_MODE = 2


class Mode(str, Enum):
    IDLE = "idle"
    EDGE_DRAWING = "edge_drawing"


@dataclass(frozen=True)
class InteractionState:
    """Immutable snapshot of the current interaction state."""
    mode: Mode = Mode.IDLE
    edge_source: Optional[str] = None
    selected_node_id: Optional[str] = None
    selected_edge: Optional[EdgeKey] = None

    @property
    def is_drawing_edge(self) -> bool:
        return self.mode == Mode.EDGE_DRAWING

    @property
    def has_selection(self) -> bool:
        return self.selected_node_id is not None or self.selected_edge is not None


class InteractionController:
    """Owns the selection and mode; the only writer of gesture-driven mutations."""

    def __init__(self, document: GraphDocument):
        self._document = document
        self._state = InteractionState()
        self._on_state_change: Optional[Callable[[InteractionState], None]] = None
        self._unsubscribe = document.subscribe(self._on_document_change)

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def document(self) -> GraphDocument:
        return self._document

    def set_on_state_change(self, callback: Callable[[InteractionState], None]) -> None:
        self._on_state_change = callback

    def detach(self) -> None:
        self._unsubscribe()

    def _set_state(self, state: InteractionState) -> InteractionState:
        if state != self._state:
            self._state = state
            if self._on_state_change:
                self._on_state_change(state)
        return self._state

    # --- Mode ---

    def toggle_edge_mode(self) -> Result:
        """Enter or leave edge drawing. Entering needs at least two nodes."""
        if self._state.is_drawing_edge:
            self._set_state(InteractionState(
                selected_node_id=self._state.selected_node_id,
                selected_edge=self._state.selected_edge,
            ))
            return Result.success(Mode.IDLE)

        node_count = len(self._document)
        if node_count < MIN_NODES_FOR_EDGE_MODE:
            return Result.failure(InsufficientNodes(node_count, MIN_NODES_FOR_EDGE_MODE))

        self._set_state(InteractionState(mode=Mode.EDGE_DRAWING))
        return Result.success(Mode.EDGE_DRAWING)

    def cancel_edge_mode(self) -> None:
        if self._state.is_drawing_edge:
            self._set_state(InteractionState())

    # --- Selection ---

    def select_node(self, node_id: Optional[str]) -> Result:
        """
        Handle a node selection.

        In edge mode the second distinct node creates an edge; the result then
        carries the new Edge or the EdgeRejected reason. Otherwise the result
        value is None.
        """
        state = self._state
        if not state.is_drawing_edge:
            if node_id is not None and not self._document.has_node(node_id):
                node_id = None
            self._set_state(replace(state, selected_node_id=node_id, selected_edge=None))
            return Result.success()

        if node_id is None or not self._document.has_node(node_id):
            return Result.success()

        if state.edge_source is None:
            self._set_state(replace(state, edge_source=node_id))
            return Result.success()

        if node_id == state.edge_source:
            # Re-selecting the source keeps waiting for a target
            return Result.success()

        source = state.edge_source
        # Leave edge mode before mutating so observers see a consistent state
        self._set_state(InteractionState())
        result = self._document.add_edge(source, node_id)
        if result.ok:
            logger.info(f"Connected {source} -> {node_id}")
        else:
            logger.info(f"Edge {source} -> {node_id} rejected: {result.error.reason.value}")
        return result

    def select_edge(self, edge: Optional[Tuple[str, str]]) -> None:
        if self._state.is_drawing_edge:
            return
        key = EdgeKey(*edge) if edge is not None else None
        if key is not None and self._document.get_edge(*key) is None:
            key = None
        self._set_state(replace(self._state, selected_edge=key, selected_node_id=None))

    def clear_selection(self) -> None:
        self._set_state(replace(self._state, selected_node_id=None, selected_edge=None))

    def delete_selected(self) -> Optional[str]:
        """
        Delete the selected node or edge.

        Returns a short description of what was removed, or None if nothing
        was selected.
        """
        state = self._state
        if state.selected_node_id is not None:
            node_id = state.selected_node_id
            self._set_state(replace(state, selected_node_id=None))
            self._document.remove_node(node_id)
            return f"Removed node {node_id}"
        if state.selected_edge is not None:
            source, target = state.selected_edge
            self._set_state(replace(state, selected_edge=None))
            self._document.remove_edge(source, target)
            return f"Removed edge {source} -> {target}"
        return None

    def clear_graph(self) -> None:
        """Empty the document and reset selection and mode."""
        self._set_state(InteractionState())
        self._document.clear()

    # --- Render events ---

    def on_node_tap(self, node_id: str) -> Result:
        return self.select_node(node_id)

    def on_edge_tap(self, source: str, target: str) -> None:
        self.select_edge((source, target))

    def on_background_tap(self) -> None:
        if not self._state.is_drawing_edge:
            self.clear_selection()

    def on_drag_end(self, positions: Mapping[str, Tuple[float, float]]) -> None:
        self._document.move_nodes(positions)

    # --- Reconciliation ---

    def _on_document_change(self, document: GraphDocument, origin: MutationOrigin) -> None:
        state = self._state
        selected_node_id = state.selected_node_id
        if selected_node_id is not None and not document.has_node(selected_node_id):
            selected_node_id = None
        selected_edge = state.selected_edge
        if selected_edge is not None and document.get_edge(*selected_edge) is None:
            selected_edge = None

        mode, edge_source = state.mode, state.edge_source
        if mode == Mode.EDGE_DRAWING:
            if len(document) < MIN_NODES_FOR_EDGE_MODE:
                mode, edge_source = Mode.IDLE, None
            elif edge_source is not None and not document.has_node(edge_source):
                edge_source = None

        self._set_state(InteractionState(
            mode=mode,
            edge_source=edge_source,
            selected_node_id=selected_node_id,
            selected_edge=selected_edge,
        ))

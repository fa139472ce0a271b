"""
Draft values for the node/edge customiser panel.

The panel edits a draft; nothing reaches the document until apply(), which
makes one update_node/update_edge call. A whole customisation is therefore a
single history entry, however many keystrokes or slider ticks produced it.
"""

import logging
from typing import Any, Dict, Optional, Union

from graphai.graph import EdgeKey, GraphDocument
from graphai.interaction import InteractionState

logger = logging.getLogger(__name__)

NODE_FIELDS = ("label", "color", "size")
EDGE_FIELDS = ("label", "color", "width")


class Customizer:

    def __init__(self, document: GraphDocument):
        self._document = document
        self._target: Optional[Union[str, EdgeKey]] = None
        self._values: Dict[str, Any] = {}

    @property
    def target(self) -> Optional[Union[str, EdgeKey]]:
        """Node id or EdgeKey being edited, None when nothing is selected."""
        return self._target

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    @property
    def is_dirty(self) -> bool:
        return self._target is not None and self._values != self._stored()

    def load(self, state: InteractionState) -> None:
        """Point the draft at the current selection and reset it to the stored values."""
        self._target = None
        if state.selected_node_id is not None and self._document.has_node(state.selected_node_id):
            self._target = state.selected_node_id
        elif state.selected_edge is not None and self._document.get_edge(*state.selected_edge) is not None:
            self._target = state.selected_edge
        self._values = self._stored()

    def set(self, **values) -> None:
        unknown = set(values) - set(self._values)
        if unknown:
            raise TypeError(f"Cannot customise {', '.join(sorted(unknown))} here")
        self._values.update(values)

    def apply(self) -> bool:
        """Write the draft to the document. Returns False when there was nothing to write."""
        if not self.is_dirty:
            return False
        if isinstance(self._target, EdgeKey):
            self._document.update_edge(*self._target, **self._values)
        else:
            self._document.update_node(self._target, **self._values)
        logger.debug(f"Applied customisation to {self._target}")
        return True

    def _stored(self) -> Dict[str, Any]:
        if self._target is None:
            return {}
        if isinstance(self._target, EdgeKey):
            edge = self._document.get_edge(*self._target)
            return {k: getattr(edge, k) for k in EDGE_FIELDS} if edge else {}
        node = self._document.get_node(self._target)
        return {k: getattr(node, k) for k in NODE_FIELDS} if node else {}

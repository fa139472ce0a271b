"""
Undo/redo history for a GraphDocument.

The recorder listens to the document and keeps a bounded, linear list of
snapshots with a cursor pointing at the active one:

    entries: [s0, s1, s2, s3]      cursor: 2  (s3 is redo-able)

- A user edit that differs from the entry at the cursor drops everything
  after the cursor, appends the new snapshot and moves the cursor to it.
- undo/redo only move the cursor and replay the snapshot into the document,
  tagged as HISTORY_REPLAY so the recorder ignores its own update.
- At most `max_entries` snapshots are kept; the oldest is discarded first.
"""

import logging
from typing import Callable, List, Optional

from graphai.graph import EMPTY_SNAPSHOT, GraphDocument, GraphSnapshot, MutationOrigin

logger = logging.getLogger(__name__)

MAX_HISTORY = 50


class HistoryRecorder:

    def __init__(self, document: GraphDocument, max_entries: int = MAX_HISTORY):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._document = document
        self._max_entries = max_entries
        self._entries: List[GraphSnapshot] = [EMPTY_SNAPSHOT]
        self._cursor = 0
        self._on_change: Optional[Callable[["HistoryRecorder"], None]] = None
        self._unsubscribe = document.subscribe(self._on_document_change)
        # A document that already holds data starts its history from that state
        if document.snapshot() != EMPTY_SNAPSHOT:
            self._entries = [document.snapshot()]

    # --- State ---

    @property
    def entries(self) -> List[GraphSnapshot]:
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> GraphSnapshot:
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def set_on_change(self, callback: Callable[["HistoryRecorder"], None]) -> None:
        self._on_change = callback

    def detach(self) -> None:
        """Stop observing the document."""
        self._unsubscribe()

    # --- Recording ---

    def _on_document_change(self, document: GraphDocument, origin: MutationOrigin) -> None:
        if origin == MutationOrigin.HISTORY_REPLAY:
            return
        self.record(document.snapshot())

    def record(self, snapshot: GraphSnapshot) -> bool:
        """Append `snapshot` after the cursor unless it equals the active entry."""
        if snapshot == self._entries[self._cursor]:
            return False

        del self._entries[self._cursor + 1:]
        self._entries.append(snapshot)
        if len(self._entries) > self._max_entries:
            del self._entries[:len(self._entries) - self._max_entries]
        self._cursor = len(self._entries) - 1
        logger.debug(f"History recorded entry {self._cursor + 1}/{len(self._entries)}")
        self._notify()
        return True

    # --- Replay ---

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._cursor -= 1
        self._replay()
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._cursor += 1
        self._replay()
        return True

    def _replay(self) -> None:
        self._document.restore(self._entries[self._cursor], MutationOrigin.HISTORY_REPLAY)
        self._notify()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self)


def shortcut_action(key: str, ctrl: bool = False, meta: bool = False, shift: bool = False) -> Optional[str]:
    """
    Map a key press to 'undo', 'redo' or None.

    Ctrl/Cmd+Z undoes; Ctrl/Cmd+Y and Ctrl/Cmd+Shift+Z redo.
    """
    if not (ctrl or meta):
        return None
    key = (key or "").lower()
    if key == "z":
        return "redo" if shift else "undo"
    if key == "y":
        return "redo"
    return None

"""
Editor session: one document with its history, interaction controller,
command pipeline and (optionally) a saved-graph store.

This is the object the UI talks to. Components are wired through the
document's change notifications, so every mutation path (gestures, toolbar
actions, generated graphs, loaded graphs) is recorded in the same history.
"""

import logging
from typing import Optional

from graphai import config
from graphai.commands import CommandPipeline, Notifier
from graphai.customizer import Customizer
from graphai.generation import GraphGenerator, TemplateGraphGenerator, create_generator
from graphai.graph import GraphDocument, NodeIdGenerator
from graphai.history import MAX_HISTORY, HistoryRecorder, shortcut_action
from graphai.interaction import InteractionController
from graphai.paths import get_saved_graphs_path
from graphai.results import Result, ValidationError
from graphai.storage import GraphStore, JsonGraphStore, SavedGraph

logger = logging.getLogger(__name__)


class EditorSession:

    def __init__(
        self,
        generator: Optional[GraphGenerator] = None,
        store: Optional[GraphStore] = None,
        notify: Optional[Notifier] = None,
        id_generator: Optional[NodeIdGenerator] = None,
        max_history: int = MAX_HISTORY,
    ):
        self.document = GraphDocument(id_generator)
        self.history = HistoryRecorder(self.document, max_history)
        self.interaction = InteractionController(self.document)
        self.customizer = Customizer(self.document)
        self.pipeline = CommandPipeline(self.document, generator or TemplateGraphGenerator(), notify)
        self.store = store

    @classmethod
    def from_config(cls, notify: Optional[Notifier] = None) -> "EditorSession":
        """Session using the configured generator and the default saved-graphs file."""
        generator = create_generator(
            api_key=config.get_api_key(),
            model=config.get_model(),
            temperature=config.get_temperature(),
        )
        return cls(generator=generator, store=JsonGraphStore(get_saved_graphs_path()), notify=notify)

    def use_api_key(self, api_key: str) -> None:
        """Store a new OpenAI key and switch the pipeline to the AI generator."""
        config.set_api_key(api_key)
        self.pipeline.generator = create_generator(
            api_key=api_key,
            model=config.get_model(),
            temperature=config.get_temperature(),
        )
        logger.info("Switched to the OpenAI graph generator")

    # --- Editing ---

    def add_node(self, **attrs) -> str:
        return self.document.add_node(**attrs)

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    def handle_shortcut(self, key: str, ctrl: bool = False, meta: bool = False, shift: bool = False) -> bool:
        """Run undo/redo for a keyboard shortcut. Returns True if the key was handled."""
        action = shortcut_action(key, ctrl=ctrl, meta=meta, shift=shift)
        if action == "undo":
            self.undo()
        elif action == "redo":
            self.redo()
        return action is not None

    async def submit_command(self, text: str) -> Result:
        return await self.pipeline.submit_command(text)

    # --- Saved graphs ---

    def _require_store(self) -> GraphStore:
        if self.store is None:
            raise RuntimeError("No graph store configured for this session")
        return self.store

    def save_graph(self, name: str) -> SavedGraph:
        return self._require_store().save(name, self.document.nodes, self.document.edges)

    def update_saved_graph(self, graph_id: str) -> Optional[SavedGraph]:
        return self._require_store().update(graph_id, self.document.nodes, self.document.edges)

    def load_graph(self, graph_id: str) -> Result:
        """Replace the document with a saved graph; recorded like any other edit."""
        saved = self._require_store().get(graph_id)
        if saved is None:
            return Result.failure(ValidationError([f"No saved graph with id '{graph_id}'"]))
        result = self.document.replace_all(saved.nodes, saved.edges)
        if result.ok:
            logger.info(f"Loaded saved graph '{saved.name}'")
            return Result.success(saved)
        return result

    def delete_saved_graph(self, graph_id: str) -> None:
        self._require_store().delete(graph_id)

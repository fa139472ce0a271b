"""
Command ingestion: free-text command -> generated graph -> document.

The pipeline delegates to a GraphGenerator, normalises its payload, and
applies it to the document as one atomic replacement. Failures of any kind
come back as a GenerationError result and leave the document untouched.

Callers are expected to check `is_processing` before submitting; overlapping
generations are not queued or cancelled here.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from graphai.generation import GenerationFailure, GraphGenerator
from graphai.graph import Edge, GraphDocument, Node
from graphai.results import GenerationError, GenerationErrorKind, Result

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_MESSAGE = "Graph generated successfully!"

Notifier = Callable[[str], None]


@dataclass(frozen=True)
class GeneratedGraph:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    message: str = DEFAULT_SUCCESS_MESSAGE


def normalize_payload(payload: Any) -> Dict[str, Any]:
    """
    Coerce a generator payload to {'nodes': list, 'edges': list, 'message': str}.

    Missing or non-list node/edge fields become empty lists; a missing message
    becomes the default confirmation.
    """
    if not isinstance(payload, dict):
        payload = {}
    nodes = payload.get("nodes")
    edges = payload.get("edges")
    message = payload.get("message")
    return {
        "nodes": nodes if isinstance(nodes, list) else [],
        "edges": edges if isinstance(edges, list) else [],
        "message": message if isinstance(message, str) and message.strip() else DEFAULT_SUCCESS_MESSAGE,
    }


class CommandPipeline:

    def __init__(
        self,
        document: GraphDocument,
        generator: GraphGenerator,
        notify: Optional[Notifier] = None,
    ):
        self.document = document
        self.generator = generator
        self._notify = notify
        self._processing = False

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def submit_command(self, text: str) -> Result:
        """Generate a graph for `text` and make it the document."""
        self._processing = True
        try:
            result = await self._run(text)
        finally:
            self._processing = False

        if result.ok:
            self._emit(result.value.message)
        else:
            logger.warning(f"Command failed ({result.error.kind.value}): {result.error.cause}")
            self._emit(str(result.error))
        return result

    async def _run(self, text: str) -> Result:
        if not (text or "").strip():
            return Result.failure(GenerationError(GenerationErrorKind.UNKNOWN, "Command is required"))

        try:
            payload = await self.generator.generate(text)
        except GenerationFailure as e:
            return Result.failure(GenerationError(e.kind, e.cause))
        except Exception as e:
            logger.exception("Unexpected error from graph generator")
            return Result.failure(GenerationError(GenerationErrorKind.UNKNOWN, f"{type(e).__name__}: {e}"))

        data = normalize_payload(payload)
        applied = self.document.replace_all(data["nodes"], data["edges"])
        if not applied.ok:
            return Result.failure(GenerationError(GenerationErrorKind.INVALID_GRAPH, applied.error.message))

        graph = GeneratedGraph(
            nodes=self.document.nodes,
            edges=self.document.edges,
            message=data["message"],
        )
        logger.info(f"Applied generated graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
        return Result.success(graph)

    def _emit(self, message: str) -> None:
        if self._notify:
            self._notify(message)

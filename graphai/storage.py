"""
Saved-graph storage.

Defines the persistence interface the editor consumes and a file-backed
implementation that keeps every saved graph in one JSON file:

    [
      {"id": "graph_1760860800000", "name": "My tree",
       "nodes": [...], "edges": [...],
       "createdAt": 1760860800000, "updatedAt": 1760860800000},
      ...
    ]
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, Union, runtime_checkable

from graphai.graph import Edge, GraphSnapshot, Node

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SavedGraph:
    id: str
    name: str
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(tuple(self.nodes), tuple(self.edges))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedGraph":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            nodes=[Node.from_dict(n) for n in data.get("nodes", [])],
            edges=[Edge.from_dict(e) for e in data.get("edges", [])],
            created_at=int(data.get("createdAt", 0)),
            updated_at=int(data.get("updatedAt", 0)),
        )


@runtime_checkable
class GraphStore(Protocol):
    """Persistence capability for named graphs."""

    def list(self) -> List[SavedGraph]:
        ...

    def save(self, name: str, nodes: Iterable[Node], edges: Iterable[Edge]) -> SavedGraph:
        ...

    def update(self, graph_id: str, nodes: Iterable[Node], edges: Iterable[Edge]) -> Optional[SavedGraph]:
        ...

    def delete(self, graph_id: str) -> None:
        ...

    def get(self, graph_id: str) -> Optional[SavedGraph]:
        ...


class JsonGraphStore:
    """GraphStore backed by a single JSON file."""

    def __init__(self, path: Union[str, Path], clock: Callable[[], int] = _now_ms):
        self.path = Path(path)
        self._clock = clock

    # --- File I/O Helpers ---

    def _read(self) -> Tuple[List[SavedGraph], List[Any], bool]:
        """
        Read the file record by record.

        Returns (graphs, unparsed_records, readable). A record that cannot be
        parsed is skipped and kept raw so a later write puts it back. When the
        file itself is unreadable, readable is False.
        """
        if not self.path.exists():
            return [], [], True
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to load saved graphs from {self.path}: {e}")
            return [], [], False
        if not isinstance(raw, list):
            logger.warning(f"Failed to load saved graphs from {self.path}: expected a list")
            return [], [], False

        graphs: List[SavedGraph] = []
        unparsed: List[Any] = []
        for item in raw:
            try:
                graphs.append(SavedGraph.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable saved graph in {self.path}: {e}")
                unparsed.append(item)
        return graphs, unparsed, True

    def _load(self) -> List[SavedGraph]:
        return self._read()[0]

    def _write(self, graphs: List[SavedGraph], unparsed: List[Any], readable: bool) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not readable and self.path.exists():
            backup = self.path.with_name(self.path.name + ".corrupt")
            self.path.replace(backup)
            logger.warning(f"Moved unreadable {self.path} to {backup}")
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump([g.to_dict() for g in graphs] + unparsed, f, indent=2, ensure_ascii=False)

    # --- GraphStore ---

    def list(self) -> List[SavedGraph]:
        return self._load()

    def get(self, graph_id: str) -> Optional[SavedGraph]:
        for graph in self._load():
            if graph.id == graph_id:
                return graph
        return None

    def save(self, name: str, nodes: Iterable[Node], edges: Iterable[Edge]) -> SavedGraph:
        graphs, unparsed, readable = self._read()
        now = self._clock()
        taken = {g.id for g in graphs}
        taken.update(str(item.get("id")) for item in unparsed if isinstance(item, dict))
        graph_id = f"graph_{now}"
        suffix = 1
        while graph_id in taken:
            graph_id = f"graph_{now}_{suffix}"
            suffix += 1

        graph = SavedGraph(
            id=graph_id,
            name=name.strip() or "Untitled graph",
            nodes=list(nodes),
            edges=list(edges),
            created_at=now,
            updated_at=now,
        )
        graphs.append(graph)
        self._write(graphs, unparsed, readable)
        logger.info(f"Saved graph '{graph.name}' as {graph.id}")
        return graph

    def update(self, graph_id: str, nodes: Iterable[Node], edges: Iterable[Edge]) -> Optional[SavedGraph]:
        graphs, unparsed, readable = self._read()
        for graph in graphs:
            if graph.id == graph_id:
                graph.nodes = list(nodes)
                graph.edges = list(edges)
                graph.updated_at = self._clock()
                self._write(graphs, unparsed, readable)
                return graph
        return None

    def delete(self, graph_id: str) -> None:
        graphs, unparsed, readable = self._read()
        remaining = [g for g in graphs if g.id != graph_id]
        if len(remaining) != len(graphs):
            self._write(remaining, unparsed, readable)
            logger.info(f"Deleted saved graph {graph_id}")

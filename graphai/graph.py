"""
Graph document model for the editor.

Holds the canonical node/edge data and enforces the structural invariants:
- node ids are unique,
- an edge never connects a node to itself,
- at most one edge exists between any unordered pair of nodes,
- every edge endpoint references a present node.

Every effective mutation is a single observable transition: subscribers are
notified exactly once, after the document is consistent again, together with
the origin of the change (a user edit or a history replay).
"""

import logging
import re
from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

import networkx as nx

from graphai.results import EdgeRejected, EdgeRejectReason, Result, ValidationError

logger = logging.getLogger(__name__)


class MutationOrigin(str, Enum):
    USER_EDIT = "user_edit"
    HISTORY_REPLAY = "history_replay"


class EdgeKey(NamedTuple):
    """Composite identity of a directed edge."""
    source: str
    target: str

    def pair(self) -> frozenset:
        return frozenset((self.source, self.target))


NODE_ATTRS = ("label", "x", "y", "color", "size")
EDGE_ATTRS = ("label", "color", "width")


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class Node:
    id: str
    label: str = ""
    x: Optional[float] = None
    y: Optional[float] = None
    color: Optional[str] = None
    size: Optional[float] = None

    @property
    def display_label(self) -> str:
        return self.label or self.id

    def to_dict(self) -> Dict[str, Any]:
        return _compact(asdict(self))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Node":
        """Build a node from a JSON-like mapping. Raises ValueError on a missing id."""
        if not isinstance(data, Mapping):
            raise ValueError(f"node must be an object, got {type(data).__name__}")
        node_id = data.get("id")
        if node_id is None or str(node_id) == "":
            raise ValueError(f"node without id: {dict(data)}")
        label = data.get("label")
        return cls(
            id=str(node_id),
            label=str(label) if label is not None else str(node_id),
            x=data.get("x"),
            y=data.get("y"),
            color=data.get("color"),
            size=data.get("size"),
        )


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    label: Optional[str] = None
    color: Optional[str] = None
    width: Optional[float] = None

    @property
    def key(self) -> EdgeKey:
        return EdgeKey(self.source, self.target)

    def to_dict(self) -> Dict[str, Any]:
        return _compact(asdict(self))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Edge":
        if not isinstance(data, Mapping):
            raise ValueError(f"edge must be an object, got {type(data).__name__}")
        source, target = data.get("source"), data.get("target")
        if source is None or target is None:
            raise ValueError(f"edge without source/target: {dict(data)}")
        return cls(
            source=str(source),
            target=str(target),
            label=data.get("label"),
            color=data.get("color"),
            width=data.get("width"),
        )


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable copy of the whole document. Compared structurally."""
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


EMPTY_SNAPSHOT = GraphSnapshot()

Listener = Callable[["GraphDocument", MutationOrigin], None]


class NodeIdGenerator:
    """Monotonic `N<k>` ids owned by one document."""

    _NUMBER = re.compile(r"\d+")

    def __init__(self, prefix: str = "N", start: int = 1):
        self.prefix = prefix
        self._start = start
        self._next = start

    def next(self, taken: Iterable[str] = ()) -> Tuple[str, int]:
        taken = set(taken)
        while True:
            number = self._next
            self._next += 1
            node_id = f"{self.prefix}{number}"
            if node_id not in taken:
                return node_id, number

    def reseed(self, ids: Iterable[str]) -> None:
        """Continue after the highest number found in `ids`."""
        highest = 0
        for node_id in ids:
            match = self._NUMBER.search(node_id)
            if match:
                highest = max(highest, int(match.group()))
        self._next = highest + 1

    def reset(self, start: Optional[int] = None) -> None:
        if start is not None:
            self._start = start
        self._next = self._start


NodeLike = Union[Node, Mapping[str, Any]]
EdgeLike = Union[Edge, Mapping[str, Any]]


class GraphDocument:
    """Mutable node/edge document with observable, atomic transitions."""

    def __init__(self, id_generator: Optional[NodeIdGenerator] = None):
        self._nodes: Dict[str, Node] = {}
        self._edges: Dict[EdgeKey, Edge] = {}
        self._ids = id_generator or NodeIdGenerator()
        self._listeners: List[Listener] = []

    # --- Observation ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _commit(self, origin: MutationOrigin) -> None:
        for listener in list(self._listeners):
            listener(self, origin)

    # --- Lookups ---

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    @property
    def id_generator(self) -> NodeIdGenerator:
        return self._ids

    def __len__(self) -> int:
        return len(self._nodes)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get_edge(self, source: str, target: str) -> Optional[Edge]:
        return self._edges.get(EdgeKey(source, target))

    def edge_between(self, a: str, b: str) -> Optional[Edge]:
        """The edge joining a and b in either direction, if any."""
        return self._edges.get(EdgeKey(a, b)) or self._edges.get(EdgeKey(b, a))

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(tuple(self._nodes.values()), tuple(self._edges.values()))

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return self.snapshot().to_dict()

    def to_networkx(self) -> nx.DiGraph:
        G = nx.DiGraph()
        for node in self._nodes.values():
            G.add_node(node.id, **_compact({k: getattr(node, k) for k in NODE_ATTRS}))
        for edge in self._edges.values():
            G.add_edge(edge.source, edge.target, **_compact({k: getattr(edge, k) for k in EDGE_ATTRS}))
        return G

    # --- Mutations ---

    def add_node(self, label: Optional[str] = None, id: Optional[str] = None, **attrs) -> str:
        """
        Append a node and return its id.

        An explicit `id` is kept when it is free; otherwise a fresh id is drawn
        from the document's generator. The label defaults to `Node <k>`.
        """
        _check_attrs(attrs, NODE_ATTRS, "node")
        if id is not None and str(id) and str(id) not in self._nodes:
            node_id = str(id)
            default_label = node_id
        else:
            node_id, number = self._ids.next(self._nodes)
            default_label = f"Node {number}"
        node = Node(id=node_id, label=label if label is not None else default_label, **attrs)
        self._nodes[node_id] = node
        logger.debug(f"Added node {node_id}")
        self._commit(MutationOrigin.USER_EDIT)
        return node_id

    def add_edge(self, source: str, target: str, **attrs) -> Result:
        """Append a directed edge, refusing self-loops and already-connected pairs."""
        _check_attrs(attrs, EDGE_ATTRS, "edge")
        if source == target:
            return Result.failure(EdgeRejected(EdgeRejectReason.SELF_LOOP, source, target))
        if source not in self._nodes or target not in self._nodes:
            return Result.failure(EdgeRejected(EdgeRejectReason.MISSING_NODE, source, target))
        if self.edge_between(source, target) is not None:
            return Result.failure(EdgeRejected(EdgeRejectReason.DUPLICATE, source, target))
        edge = Edge(source=source, target=target, **attrs)
        self._edges[edge.key] = edge
        logger.debug(f"Added edge {source} -> {target}")
        self._commit(MutationOrigin.USER_EDIT)
        return Result.success(edge)

    def remove_node(self, node_id: str) -> None:
        if node_id not in self._nodes:
            return
        del self._nodes[node_id]
        self._edges = {
            key: edge for key, edge in self._edges.items()
            if node_id not in (edge.source, edge.target)
        }
        self._commit(MutationOrigin.USER_EDIT)

    def remove_edge(self, source: str, target: str) -> None:
        key = EdgeKey(source, target)
        if key not in self._edges:
            return
        del self._edges[key]
        self._commit(MutationOrigin.USER_EDIT)

    def update_node(self, node_id: str, **patch) -> None:
        _check_attrs(patch, NODE_ATTRS, "node")
        current = self._nodes.get(node_id)
        if current is None:
            return
        updated = replace(current, **patch)
        if updated == current:
            return
        self._nodes[node_id] = updated
        self._commit(MutationOrigin.USER_EDIT)

    def update_edge(self, source: str, target: str, **patch) -> None:
        _check_attrs(patch, EDGE_ATTRS, "edge")
        key = EdgeKey(source, target)
        current = self._edges.get(key)
        if current is None:
            return
        updated = replace(current, **patch)
        if updated == current:
            return
        self._edges[key] = updated
        self._commit(MutationOrigin.USER_EDIT)

    def move_nodes(self, positions: Mapping[str, Tuple[float, float]]) -> None:
        """Apply final drag positions as one transition. Unknown ids are ignored."""
        changed = False
        for node_id, (x, y) in positions.items():
            current = self._nodes.get(node_id)
            if current is None or (current.x, current.y) == (x, y):
                continue
            self._nodes[node_id] = replace(current, x=x, y=y)
            changed = True
        if changed:
            self._commit(MutationOrigin.USER_EDIT)

    def replace_all(self, nodes: Iterable[NodeLike], edges: Iterable[EdgeLike]) -> Result:
        """
        Atomically swap in a whole new graph.

        Items may be Node/Edge values or JSON-like dicts. If anything is invalid
        the document is left untouched and a ValidationError listing every
        problem is returned.
        """
        problems: List[str] = []
        new_nodes: Dict[str, Node] = {}
        for item in nodes:
            try:
                node = item if isinstance(item, Node) else Node.from_dict(item)
            except ValueError as e:
                problems.append(str(e))
                continue
            if node.id in new_nodes:
                problems.append(f"duplicate node id '{node.id}'")
                continue
            new_nodes[node.id] = node

        new_edges: Dict[EdgeKey, Edge] = {}
        pairs = set()
        for item in edges:
            try:
                edge = item if isinstance(item, Edge) else Edge.from_dict(item)
            except ValueError as e:
                problems.append(str(e))
                continue
            for endpoint in (edge.source, edge.target):
                if endpoint not in new_nodes:
                    problems.append(f"edge {edge.source}->{edge.target} references missing node '{endpoint}'")
            if edge.source == edge.target:
                problems.append(f"self-loop on '{edge.source}'")
                continue
            if edge.key.pair() in pairs:
                problems.append(f"duplicate edge between '{edge.source}' and '{edge.target}'")
                continue
            pairs.add(edge.key.pair())
            new_edges[edge.key] = edge

        if problems:
            logger.warning(f"Rejected graph replacement: {problems}")
            return Result.failure(ValidationError(problems))

        self._nodes = new_nodes
        self._edges = new_edges
        self._ids.reseed(new_nodes)
        self._commit(MutationOrigin.USER_EDIT)
        return Result.success()

    def restore(self, snapshot: GraphSnapshot, origin: MutationOrigin = MutationOrigin.HISTORY_REPLAY) -> None:
        """Apply a snapshot wholesale. Snapshots are valid by construction."""
        self._nodes = {n.id: n for n in snapshot.nodes}
        self._edges = {e.key: e for e in snapshot.edges}
        self._commit(origin)

    def clear(self) -> None:
        self._ids.reset()
        if not self._nodes and not self._edges:
            return
        self._nodes = {}
        self._edges = {}
        self._commit(MutationOrigin.USER_EDIT)


def _check_attrs(attrs: Mapping[str, Any], allowed: Tuple[str, ...], kind: str) -> None:
    unknown = set(attrs) - set(allowed)
    if unknown:
        raise TypeError(f"Unknown {kind} attribute(s): {', '.join(sorted(unknown))}")

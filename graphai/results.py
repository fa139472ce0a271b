"""
Result values and error taxonomy for the graph editor core.

Core operations never raise across component boundaries. They return a
`Result` carrying either a value or one of the error records below, and the
caller decides whether to surface a notification.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Either a value (ok) or an error."""
    value: Optional[T] = None
    error: Optional[E] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Any) -> "Result":
        return cls(error=error)


class EdgeRejectReason(str, Enum):
    SELF_LOOP = "self_loop"
    DUPLICATE = "duplicate"
    MISSING_NODE = "missing_node"


@dataclass(frozen=True)
class EdgeRejected:
    reason: EdgeRejectReason
    source: str
    target: str

    @property
    def message(self) -> str:
        if self.reason == EdgeRejectReason.SELF_LOOP:
            return "Cannot connect a node to itself"
        if self.reason == EdgeRejectReason.DUPLICATE:
            return "This edge already exists"
        return f"Cannot connect {self.source} to {self.target}: node not found"


@dataclass(frozen=True)
class ValidationError:
    """A bulk replacement was refused; `problems` lists every violation found."""
    problems: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return "; ".join(self.problems) or "Invalid graph"


@dataclass(frozen=True)
class InsufficientNodes:
    node_count: int
    required: int = 2

    @property
    def message(self) -> str:
        return f"Edge mode needs at least {self.required} nodes (have {self.node_count})"


class GenerationErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVALID_GRAPH = "invalid_graph"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


FRIENDLY_GENERATION_MESSAGES = {
    GenerationErrorKind.RATE_LIMITED: "Rate limit exceeded. Please try again in a moment.",
    GenerationErrorKind.QUOTA_EXHAUSTED: "AI credits exhausted. Please add more credits.",
    GenerationErrorKind.SERVICE_UNAVAILABLE: "The graph generator is unavailable right now.",
    GenerationErrorKind.INVALID_GRAPH: "The generated graph was not valid, so nothing was changed.",
    GenerationErrorKind.MALFORMED_RESPONSE: "Failed to parse graph data from the generator.",
    GenerationErrorKind.UNKNOWN: "Sorry, I couldn't generate that graph.",
}


@dataclass(frozen=True)
class GenerationError:
    kind: GenerationErrorKind
    cause: str = ""

    @property
    def friendly_message(self) -> str:
        return FRIENDLY_GENERATION_MESSAGES[self.kind]

    def __str__(self) -> str:
        if self.cause:
            return f"{self.friendly_message} ({self.cause})"
        return self.friendly_message

"""
Graph generators: turn a free-text command into a graph payload.

Every generator returns a JSON-like dict:
    {"nodes": [{"id", "label"}, ...], "edges": [{"source", "target"}, ...], "message": str}
and signals failure by raising GenerationFailure with a classified kind.

- OpenAIGraphGenerator asks a chat model for the graph.
- TemplateGraphGenerator builds common shapes locally (no network), and is
  used when no API key is configured.
"""

import json
import logging
import random
import re
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import openai

from graphai.results import GenerationErrorKind

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7

SYSTEM_PROMPT = """You are a graph structure generator. Your task is to interpret user commands and generate graph data structures.

When the user asks for a graph, you MUST respond with ONLY a valid JSON object in this exact format:
{
  "nodes": [{"id": "unique_id", "label": "display_label"}, ...],
  "edges": [{"source": "node_id", "target": "node_id"}, ...],
  "message": "A friendly message describing what you created"
}

Rules:
1. Node IDs must be unique strings (use letters or numbers like "A", "B", "N1", "N2", etc.)
2. Edge source and target must reference existing node IDs
3. Never connect a node to itself, and never connect the same two nodes twice
4. Always include a helpful message describing the graph you created
5. DO NOT include any text before or after the JSON object
6. When the user specifies names for nodes (like person names), use those names as labels

Graph types you can create: binary trees, linked lists, mutex/lock graphs, random graphs,
cycle graphs, state machines, DAGs, complete graphs, bipartite graphs, star graphs and
friendship/social networks. For equations like "y = x^2", create nodes for x values and
edges showing relationships."""


class GenerationFailure(Exception):
    """Raised by generators; carries the classified failure kind."""

    def __init__(self, kind: GenerationErrorKind, cause: str = ""):
        super().__init__(cause or kind.value)
        self.kind = kind
        self.cause = cause


@runtime_checkable
class GraphGenerator(Protocol):

    async def generate(self, command: str) -> Dict[str, Any]:
        """Return the raw graph payload for `command` or raise GenerationFailure."""
        ...


def parse_graph_content(content: Optional[str]) -> Dict[str, Any]:
    """
    Parse a model reply into a dict, tolerating markdown code fences.

    Raises GenerationFailure(MALFORMED_RESPONSE) if the reply is empty or is
    not a JSON object.
    """
    if not content or not content.strip():
        raise GenerationFailure(GenerationErrorKind.MALFORMED_RESPONSE, "No response from AI")

    clean = content.strip()
    if clean.startswith("```json"):
        clean = clean[7:]
    elif clean.startswith("```"):
        clean = clean[3:]
    if clean.endswith("```"):
        clean = clean[:-3]
    clean = clean.strip()

    try:
        data = json.loads(clean)
    except json.JSONDecodeError as e:
        raise GenerationFailure(
            GenerationErrorKind.MALFORMED_RESPONSE,
            f"Failed to parse AI response as JSON: {e}",
        ) from e
    if not isinstance(data, dict):
        raise GenerationFailure(
            GenerationErrorKind.MALFORMED_RESPONSE,
            f"Expected a JSON object, got {type(data).__name__}",
        )
    return data


def classify_openai_error(error: Exception) -> GenerationFailure:
    """Translate an openai exception into a GenerationFailure."""
    code = getattr(error, "code", None)
    if code == "insufficient_quota":
        return GenerationFailure(GenerationErrorKind.QUOTA_EXHAUSTED, str(error))
    if isinstance(error, openai.RateLimitError):
        return GenerationFailure(GenerationErrorKind.RATE_LIMITED, str(error))
    if isinstance(error, (openai.APIConnectionError, openai.APITimeoutError)):
        return GenerationFailure(GenerationErrorKind.SERVICE_UNAVAILABLE, str(error))
    if isinstance(error, openai.APIStatusError):
        status = error.status_code
        if status == 429:
            return GenerationFailure(GenerationErrorKind.RATE_LIMITED, str(error))
        if status == 402:
            return GenerationFailure(GenerationErrorKind.QUOTA_EXHAUSTED, str(error))
        if status >= 500:
            return GenerationFailure(GenerationErrorKind.SERVICE_UNAVAILABLE, str(error))
    return GenerationFailure(GenerationErrorKind.UNKNOWN, f"{type(error).__name__}: {error}")


class OpenAIGraphGenerator:
    """Generates graphs with an OpenAI chat model."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        self.client = client or openai.AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature

    async def generate(self, command: str) -> Dict[str, Any]:
        logger.info(f"Sending graph command to {self.model}: {command[:120]}")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": command},
                ],
            )
        except openai.OpenAIError as e:
            failure = classify_openai_error(e)
            logger.warning(f"Graph generation failed ({failure.kind.value}): {e}")
            raise failure from e

        if not response.choices:
            raise GenerationFailure(GenerationErrorKind.MALFORMED_RESPONSE, "No response from AI")
        content = response.choices[0].message.content
        logger.debug(f"Model reply: {content[:200] if content else content}")
        return parse_graph_content(content)


class TemplateGraphGenerator:
    """
    Offline generator recognising a few graph shapes by keyword.

    Supported: binary tree, mutex/lock, linked list, random graph, cycle.
    Anything else yields a small square graph with a hint message.
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    async def generate(self, command: str) -> Dict[str, Any]:
        return self.build(command)

    @staticmethod
    def _count(command: str, default: int) -> int:
        match = re.search(r"\d+", command)
        return int(match.group()) if match else default

    def build(self, command: str) -> Dict[str, Any]:
        text = (command or "").lower()
        if "binary tree" in text or "tree" in text:
            return self._binary_tree(min(self._count(text, 7), 15))
        if "mutex" in text or "lock" in text:
            return self._mutex()
        if "linked list" in text or "list" in text:
            return self._linked_list(self._count(text, 4))
        if "cycle" in text or "circular" in text:
            return self._cycle(self._count(text, 5))
        if "random" in text or "graph" in text:
            return self._random(self._count(text, 5))
        return {
            "nodes": [{"id": c, "label": c} for c in "ABCD"],
            "edges": [
                {"source": "A", "target": "B"},
                {"source": "B", "target": "C"},
                {"source": "C", "target": "D"},
                {"source": "D", "target": "A"},
            ],
            "message": "I created a simple graph. Try commands like 'binary tree with 7 nodes', "
                       "'mutex graph', or 'random graph with 6 nodes'!",
        }

    def _binary_tree(self, count: int) -> Dict[str, Any]:
        nodes = [{"id": f"N{i}", "label": str(i)} for i in range(1, count + 1)]
        edges: List[Dict[str, str]] = []
        for i in range(1, count // 2 + 1):
            for child in (2 * i, 2 * i + 1):
                if child <= count:
                    edges.append({"source": f"N{i}", "target": f"N{child}"})
        return {"nodes": nodes, "edges": edges, "message": f"Created a binary tree with {count} nodes!"}

    def _mutex(self) -> Dict[str, Any]:
        return {
            "nodes": [
                {"id": "P1", "label": "Process 1"},
                {"id": "P2", "label": "Process 2"},
                {"id": "P3", "label": "Process 3"},
                {"id": "M1", "label": "Mutex"},
            ],
            "edges": [{"source": p, "target": "M1"} for p in ("P1", "P2", "P3")],
            "message": "Created a mutex graph with 3 processes competing for 1 mutex!",
        }

    def _linked_list(self, count: int) -> Dict[str, Any]:
        nodes = [{"id": f"N{i}", "label": f"Node {i}"} for i in range(1, count + 1)]
        edges = [{"source": f"N{i - 1}", "target": f"N{i}"} for i in range(2, count + 1)]
        return {"nodes": nodes, "edges": edges, "message": f"Created a linked list with {count} nodes!"}

    def _random(self, count: int) -> Dict[str, Any]:
        # Letters only go up to Z
        count = max(1, min(count, 26))
        nodes = [{"id": f"N{i}", "label": chr(64 + i)} for i in range(1, count + 1)]
        edges = []
        for i in range(count):
            for j in range(i + 1, count):
                if self._rng.random() > 0.5:
                    edges.append({"source": nodes[i]["id"], "target": nodes[j]["id"]})
        if not edges and count > 1:
            edges.append({"source": nodes[0]["id"], "target": nodes[1]["id"]})
        return {
            "nodes": nodes,
            "edges": edges,
            "message": f"Created a random graph with {count} nodes and {len(edges)} edges!",
        }

    def _cycle(self, count: int) -> Dict[str, Any]:
        # A cycle needs three nodes to avoid a self-loop or a doubled pair
        count = max(3, count)
        nodes = [{"id": f"N{i}", "label": str(i)} for i in range(1, count + 1)]
        edges = [
            {"source": f"N{i}", "target": f"N{1 if i == count else i + 1}"}
            for i in range(1, count + 1)
        ]
        return {"nodes": nodes, "edges": edges, "message": f"Created a cycle graph with {count} nodes!"}


def create_generator(
    api_key: Optional[str] = None,
    model: str = DEFAULT_MODEL,
    temperature: float = DEFAULT_TEMPERATURE,
) -> GraphGenerator:
    """OpenAI-backed generator when a key is available, otherwise the offline one."""
    if api_key:
        return OpenAIGraphGenerator(api_key=api_key, model=model, temperature=temperature)
    logger.info("No OpenAI API key configured; using offline template generator")
    return TemplateGraphGenerator()

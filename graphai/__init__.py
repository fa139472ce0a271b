"""
Interactive graph editor core.

- GraphDocument: node/edge data and its invariants
- InteractionController: selection and edge-drawing modes
- HistoryRecorder: bounded linear undo/redo
- CommandPipeline: natural-language commands -> generated graphs
- EditorSession: all of the above wired together

Usage:
    from graphai import EditorSession
    session = EditorSession()
    a = session.add_node(label="A")
"""

__version__ = "0.1.0"

from graphai.graph import Edge, EdgeKey, GraphDocument, GraphSnapshot, MutationOrigin, Node, NodeIdGenerator
from graphai.history import HistoryRecorder
from graphai.interaction import InteractionController, InteractionState, Mode
from graphai.commands import CommandPipeline, GeneratedGraph
from graphai.customizer import Customizer
from graphai.session import EditorSession

__all__ = [
    'Edge',
    'EdgeKey',
    'GraphDocument',
    'GraphSnapshot',
    'MutationOrigin',
    'Node',
    'NodeIdGenerator',
    'HistoryRecorder',
    'InteractionController',
    'InteractionState',
    'Mode',
    'CommandPipeline',
    'GeneratedGraph',
    'Customizer',
    'EditorSession',
]

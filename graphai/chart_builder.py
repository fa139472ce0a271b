"""
ECharts options builder for the graph editor.

Converts the document plus the interaction state into an ECharts option
dict for NiceGUI's ui.echart, and decodes chart click payloads back into
canvas events (node tap, edge tap, background tap).

Nodes with a stored position are pinned there; the rest are placed by the
force layout.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from graphai.graph import EdgeKey, GraphDocument
from graphai.interaction import InteractionState

# Event keys we request from ECharts click events
REQUESTED_EVENT_KEYS = ['componentType', 'dataType', 'name', 'data']

NODE_COLOR = '#00d4ff'
NODE_SIZE = 50
EDGE_COLOR = '#0891b2'
EDGE_WIDTH = 2
SELECTED_COLOR = '#a855f7'
EDGE_SOURCE_COLOR = '#22c55e'
BACKGROUND_COLOR = '#0a1628'


def build_echart_options(document: GraphDocument, state: Optional[InteractionState] = None) -> Dict[str, Any]:
    """
    Build ECharts options from the document.

    Args:
        document: The graph to draw
        state: Selection/mode to highlight (None = nothing highlighted)

    Returns:
        ECharts options dict ready for ui.echart()
    """
    state = state or InteractionState()
    G = document.to_networkx()

    data: List[Dict[str, Any]] = []
    for node_id, attrs in G.nodes(data=True):
        color = attrs.get('color') or NODE_COLOR
        border_color = color
        border_width = 2
        if node_id == state.edge_source:
            color = border_color = EDGE_SOURCE_COLOR
            border_width = 3
        elif node_id == state.selected_node_id:
            color = SELECTED_COLOR
            border_color = '#ffffff'
            border_width = 3

        label = attrs.get('label') or node_id
        item = {
            'id': node_id,
            'name': node_id,
            'symbolSize': attrs.get('size') or NODE_SIZE,
            'itemStyle': {'color': color, 'borderColor': border_color, 'borderWidth': border_width},
            'label': {'show': True, 'formatter': label, 'color': '#ffffff'},
        }
        if attrs.get('x') is not None and attrs.get('y') is not None:
            item.update({'x': attrs['x'], 'y': attrs['y'], 'fixed': True})
        data.append(item)

    links: List[Dict[str, Any]] = []
    for source, target, attrs in G.edges(data=True):
        selected = state.selected_edge == EdgeKey(source, target)
        color = SELECTED_COLOR if selected else (attrs.get('color') or EDGE_COLOR)
        width = attrs.get('width') or EDGE_WIDTH
        link = {
            'source': source,
            'target': target,
            'lineStyle': {'color': color, 'width': width + 1 if selected else width, 'opacity': 0.9},
        }
        if attrs.get('label'):
            link['label'] = {'show': True, 'formatter': attrs['label']}
        links.append(link)

    return {
        'backgroundColor': BACKGROUND_COLOR,
        'series': [
            {
                'type': 'graph',
                'layout': 'force',
                'roam': True,
                'draggable': True,
                'data': data,
                'links': links,
                'edgeSymbol': ['none', 'arrow'],
                'edgeSymbolSize': [0, 8],
                'force': {'repulsion': 300, 'edgeLength': [80, 160]},
                'emphasis': {'focus': 'adjacency'},
            }
        ],
    }


@dataclass(frozen=True)
class CanvasEvent:
    kind: str  # 'node', 'edge' or 'background'
    node_id: Optional[str] = None
    edge: Optional[EdgeKey] = None


BACKGROUND_TAP = CanvasEvent('background')


def normalize_click_payload(raw_payload: Any) -> Dict[str, Any]:
    """Normalize NiceGUI chart click payloads into a dictionary for easier parsing."""
    if isinstance(raw_payload, dict):
        return raw_payload
    if isinstance(raw_payload, (list, tuple)):
        return {
            REQUESTED_EVENT_KEYS[i]: raw_payload[i]
            for i in range(min(len(raw_payload), len(REQUESTED_EVENT_KEYS)))
        }
    if isinstance(raw_payload, str):
        return {'name': raw_payload}
    return {}


def resolve_node_id(name: Optional[str], document: GraphDocument) -> Optional[str]:
    """Return the node id for a clicked item name, falling back to a label match."""
    if not name:
        return None
    if document.has_node(name):
        return name
    for node in document.nodes:
        if node.label == name:
            return node.id
    return None


def decode_click(raw_payload: Any, document: GraphDocument) -> CanvasEvent:
    """Turn a chart click payload into a CanvasEvent."""
    payload = normalize_click_payload(raw_payload)
    if payload.get('componentType') not in (None, 'series'):
        return BACKGROUND_TAP

    data = payload.get('data') if isinstance(payload.get('data'), dict) else {}
    if payload.get('dataType') == 'edge':
        source, target = data.get('source'), data.get('target')
        if source is not None and target is not None and document.get_edge(source, target):
            return CanvasEvent('edge', edge=EdgeKey(source, target))
        return BACKGROUND_TAP

    node_id = resolve_node_id(data.get('id') or payload.get('name'), document)
    if node_id is None:
        return BACKGROUND_TAP
    return CanvasEvent('node', node_id=node_id)

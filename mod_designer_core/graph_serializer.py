"""
Graph persistence.

The exported document is a direct structural dump of the graph::

    {
      "version": 2,
      "modName": "my-mod",
      "nodes": [{"id", "type", "label", "x", "y", "params",
                 "hasInput", "hasOutput", "color", "customCode"}, ...],
      "connections": [{"id", "from", "to"}, ...]
    }

Import is all-or-nothing: the payload is validated and a complete new Graph
is built before the caller swaps it in.  Missing optional fields are filled
with defaults and the id counters are re-based past the largest imported ids.
"""

import json
import logging
import math
import os
from typing import Any, Dict, List, Optional

from .config import DEFAULT_MOD_NAME
from .exceptions import GraphImportError
from .models import Connection, Graph, Node, DEFAULT_NODE_COLOR
from .node_registry import DesignerRegistry


logger = logging.getLogger(__name__)

FORMAT_VERSION = 2
DEFAULT_NODE_TYPE = 'log'
DEFAULT_COORDINATE = 40.0


# =============================================================================
# EXPORT
# =============================================================================

def node_to_dict(node: Node) -> Dict[str, Any]:
    return {
        'id': node.id,
        'type': node.type,
        'label': node.label,
        'x': node.position[0],
        'y': node.position[1],
        'params': node.params,
        'hasInput': node.accepts_input,
        'hasOutput': node.produces_output,
        'color': node.color,
        'customCode': node.custom_code,
    }


def connection_to_dict(connection: Connection) -> Dict[str, Any]:
    return {'id': connection.id, 'from': connection.source_id, 'to': connection.target_id}


def export_graph(graph: Graph) -> Dict[str, Any]:
    """Serialize a graph to the persistence document."""
    return {
        'version': FORMAT_VERSION,
        'modName': graph.mod_name,
        'nodes': [node_to_dict(node) for node in graph.nodes.values()],
        'connections': [connection_to_dict(conn) for conn in graph.connections],
    }


# =============================================================================
# IMPORT
# =============================================================================

def _as_id(value: Any) -> Optional[int]:
    """Positive integer id, or None when missing, zero, fractional or non-numeric."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    number = int(number)
    return number if number > 0 else None


def _as_coordinate(value: Any) -> float:
    if isinstance(value, bool):
        return DEFAULT_COORDINATE
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_COORDINATE
    if not math.isfinite(number):
        return DEFAULT_COORDINATE
    return number


def _assign_ids(entries: List[Dict[str, Any]], kind: str) -> List[int]:
    """
    Pick an id for every entry of one document section.

    Entries without a usable id, and entries repeating an id already taken,
    get fresh ids past every explicit id so they never collide.
    """
    explicit = [_as_id(entry.get('id')) for entry in entries]
    next_fresh = max([i for i in explicit if i is not None], default=0) + 1
    taken = set()
    ids = []
    for entry, entry_id in zip(entries, explicit):
        if entry_id in taken:
            logger.warning("Duplicate %s id %r; assigning #%s", kind, entry.get('id'), next_fresh)
            entry_id = None
        if entry_id is None:
            entry_id = next_fresh
            next_fresh += 1
        taken.add(entry_id)
        ids.append(entry_id)
    return ids


def import_graph(payload: Any, registry: Optional[DesignerRegistry] = None,
                 default_mod_name: str = DEFAULT_MOD_NAME) -> Graph:
    """
    Build a Graph from a persistence document.

    Raises:
        GraphImportError: if the payload is not a mapping with a ``nodes`` list.
    """
    if not isinstance(payload, dict):
        raise GraphImportError("Graph document must be a JSON object")
    raw_nodes = payload.get('nodes')
    if not isinstance(raw_nodes, list):
        raise GraphImportError("JSON has no 'nodes' array")
    raw_connections = payload.get('connections') or []
    if not isinstance(raw_connections, list):
        raise GraphImportError("'connections' must be an array")

    for index, entry in enumerate(raw_nodes):
        if not isinstance(entry, dict):
            raise GraphImportError(f"Node entry {index} is not an object",
                                   details={'index': index})
    for index, entry in enumerate(raw_connections):
        if not isinstance(entry, dict):
            raise GraphImportError(f"Connection entry {index} is not an object",
                                   details={'index': index})

    graph = Graph(mod_name=payload.get('modName') or default_mod_name)

    for entry, node_id in zip(raw_nodes, _assign_ids(raw_nodes, 'node')):
        graph.add_node(_node_from_dict(entry, node_id, registry))

    for entry, connection_id in zip(raw_connections, _assign_ids(raw_connections, 'connection')):
        source_id = _as_id(entry.get('from'))
        target_id = _as_id(entry.get('to'))
        if source_id not in graph.nodes or target_id not in graph.nodes:
            logger.warning("Dropping connection #%s: references unknown node (%r -> %r)",
                           connection_id, entry.get('from'), entry.get('to'))
            continue
        graph.connections.append(Connection(connection_id, source_id, target_id))

    graph.next_node_id = max(graph.nodes, default=0) + 1
    graph.next_connection_id = max((conn.id for conn in graph.connections), default=0) + 1
    return graph


def _node_from_dict(entry: Dict[str, Any], node_id: int,
                    registry: Optional[DesignerRegistry]) -> Node:
    node_type = entry.get('type') or DEFAULT_NODE_TYPE
    label = entry.get('label')
    if not label:
        label = registry.label_for(node_type) if registry else node_type

    params = entry.get('params')
    custom_code = entry.get('customCode')
    return Node(
        id=node_id,
        type=str(node_type),
        label=str(label),
        position=(_as_coordinate(entry.get('x')), _as_coordinate(entry.get('y'))),
        params=params if isinstance(params, dict) else {},
        accepts_input=bool(entry['hasInput']) if entry.get('hasInput') is not None else True,
        produces_output=bool(entry['hasOutput']) if entry.get('hasOutput') is not None else True,
        color=entry.get('color') or DEFAULT_NODE_COLOR,
        custom_code=custom_code if isinstance(custom_code, str) else "",
    )


# =============================================================================
# TEXT AND FILES
# =============================================================================

def dumps(graph: Graph) -> str:
    return json.dumps(export_graph(graph), indent=2, ensure_ascii=False)


def loads(text: str, registry: Optional[DesignerRegistry] = None,
          default_mod_name: str = DEFAULT_MOD_NAME) -> Graph:
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        raise GraphImportError(f"Invalid JSON: {e}") from e
    return import_graph(payload, registry, default_mod_name)


def save_graph(graph: Graph, path: str):
    """Write the graph document to a temp file, then atomically rename."""
    tmp_path = path + '.tmp'
    with open(tmp_path, 'w', encoding='utf-8') as f:
        f.write(dumps(graph))
    os.replace(tmp_path, path)
    logger.info("Saved graph with %d node(s) to %s", len(graph.nodes), path)


def load_graph(path: str, registry: Optional[DesignerRegistry] = None,
               default_mod_name: str = DEFAULT_MOD_NAME) -> Graph:
    with open(path, 'r', encoding='utf-8') as f:
        return loads(f.read(), registry, default_mod_name)

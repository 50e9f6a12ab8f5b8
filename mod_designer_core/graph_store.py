"""
Graph Store for the designer workspace.

The store owns the in-memory graph (nodes, wires, mod name, id counters) and is
the only place the graph is mutated.  It enforces the structural rules of the
graph: ids are never reused within a session, wires only run from a node with
an output port to a node with an input port, an ordered pair of nodes is wired
at most once, and deleting a node deletes every wire touching it.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .config import DEFAULT_MOD_NAME
from .models import Node, Connection, Graph
from .node_registry import DesignerRegistry


class ConnectionRejection(Enum):
    """Reasons a requested wire is refused."""
    DUPLICATE = "Connection already exists"
    MISSING_NODE = "Connection references a node that does not exist"
    TARGET_HAS_NO_INPUT = "Target node doesn't accept input connections"
    SOURCE_HAS_NO_OUTPUT = "Source node doesn't have output"
    WOULD_CREATE_CYCLE = "Connection would create a cycle"


class GraphStore:
    """Manages the node graph and the current selection."""

    def __init__(self, graph: Optional[Graph] = None, reject_cycles: bool = False,
                 default_mod_name: str = DEFAULT_MOD_NAME):
        self.graph = graph or Graph(mod_name=default_mod_name)
        self.reject_cycles = reject_cycles
        self.default_mod_name = default_mod_name
        self.selected_node_id: Optional[int] = None
        self.logger = logging.getLogger(__name__)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def create_node(self, registry: DesignerRegistry, type_name: str,
                    x: float = 0.0, y: float = 0.0) -> Node:
        """Instantiate a node of the given type and select it."""
        definition = registry.get_node_type(type_name)
        if definition is None:
            self.logger.debug("Unknown node type %r, using generic definition", type_name)
            definition = registry.definition_for(type_name)

        node = Node.from_definition(self.graph.next_node_id, definition, (x, y))
        self.graph.next_node_id += 1
        self.graph.add_node(node)
        self.selected_node_id = node.id
        return node

    def delete_node(self, node_id: int) -> bool:
        """Delete a node together with all connections to or from it."""
        removed = self.graph.remove_node(node_id)
        if removed and self.selected_node_id == node_id:
            self.selected_node_id = None
        return removed

    def get_node(self, node_id: int) -> Optional[Node]:
        return self.graph.get_node(node_id)

    def update_label(self, node_id: int, label: str) -> bool:
        node = self.graph.get_node(node_id)
        if node is None:
            return False
        node.label = label
        return True

    def update_params(self, node_id: int, params: Dict[str, Any]) -> bool:
        node = self.graph.get_node(node_id)
        if node is None:
            return False
        node.params = dict(params)
        return True

    def update_params_json(self, node_id: int, text: str) -> bool:
        """Replace a node's params from sidebar JSON; invalid input is ignored."""
        try:
            params = json.loads(text)
        except (TypeError, ValueError):
            return False
        if not isinstance(params, dict):
            return False
        return self.update_params(node_id, params)

    def set_custom_code(self, node_id: int, code: str) -> bool:
        node = self.graph.get_node(node_id)
        if node is None:
            return False
        node.custom_code = code or ""
        return True

    def move_node(self, node_id: int, position: Tuple[float, float]) -> bool:
        node = self.graph.get_node(node_id)
        if node is None:
            return False
        node.position = (float(position[0]), float(position[1]))
        return True

    def set_mod_name(self, name: str):
        self.graph.mod_name = name or self.default_mod_name

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_node(self, node_id: int) -> bool:
        if node_id not in self.graph.nodes:
            return False
        self.selected_node_id = node_id
        return True

    def clear_selection(self):
        self.selected_node_id = None

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def validate_connection(self, source_id: int, target_id: int) -> Optional[ConnectionRejection]:
        """Return why a wire from source to target is refused, or None if allowed."""
        if self.graph.has_connection(source_id, target_id):
            return ConnectionRejection.DUPLICATE

        target = self.graph.get_node(target_id)
        source = self.graph.get_node(source_id)
        if target is None or source is None:
            return ConnectionRejection.MISSING_NODE

        if not target.accepts_input:
            return ConnectionRejection.TARGET_HAS_NO_INPUT

        if not source.produces_output:
            return ConnectionRejection.SOURCE_HAS_NO_OUTPUT

        if self.reject_cycles and self.graph.has_path(target_id, source_id):
            return ConnectionRejection.WOULD_CREATE_CYCLE

        return None

    def create_connection(self, source_id: int, target_id: int) -> Optional[Connection]:
        """Wire source to target; returns None without mutating when refused."""
        rejection = self.validate_connection(source_id, target_id)
        if rejection is not None:
            self.logger.debug("Rejected connection %s -> %s: %s",
                              source_id, target_id, rejection.value)
            return None

        connection = Connection(
            id=self.graph.next_connection_id,
            source_id=source_id,
            target_id=target_id,
        )
        self.graph.next_connection_id += 1
        self.graph.connections.append(connection)
        return connection

    def delete_connection(self, connection_id: int) -> bool:
        return self.graph.remove_connection(connection_id)

    # -------------------------------------------------------------------------
    # Whole-graph operations
    # -------------------------------------------------------------------------

    def clear(self):
        """Start a fresh graph; the mod name is kept and id counters restart at 1."""
        self.graph = Graph(mod_name=self.graph.mod_name)
        self.selected_node_id = None

    def replace(self, graph: Graph):
        """Swap in a fully built graph, e.g. the result of an import."""
        self.graph = graph
        self.selected_node_id = None

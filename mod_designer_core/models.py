"""
Core data models for the Mod Designer.

This module defines the fundamental data structures used throughout the designer,
including node type definitions, variable schemas, graph nodes, connections, and
the overall graph representation.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Tuple, Optional
import copy


DEFAULT_NODE_COLOR = "#868e96"


@dataclass(frozen=True)
class NodeTypeDefinition:
    """Registry entry describing one kind of node."""
    type: str
    label: str
    color: str = DEFAULT_NODE_COLOR
    accepts_input: bool = True
    produces_output: bool = True
    default_params: Dict[str, Any] = field(default_factory=dict)
    provides: Tuple[str, ...] = ()
    category: str = "General"
    description: str = ""

    @classmethod
    def fallback(cls, type_name: str) -> 'NodeTypeDefinition':
        """Generic definition used when a type is not in the registry."""
        return cls(type=type_name, label=type_name)

    def matches_search(self, query: str) -> bool:
        """Check if this definition matches a toolbox search query."""
        query_lower = query.lower()
        return (
            query_lower in self.type.lower() or
            query_lower in self.label.lower() or
            query_lower in self.description.lower() or
            query_lower in self.category.lower()
        )


@dataclass(frozen=True)
class PropertySchema:
    """One documented property of a contextual variable."""
    name: str
    type: str = "any"
    description: str = ""
    example: Optional[str] = None
    schema: Optional[str] = None  # name of a nested variable schema


@dataclass(frozen=True)
class VariableSchema:
    """Registry entry documenting a contextual variable."""
    name: str
    description: str = ""
    type: Optional[str] = None
    properties: Dict[str, PropertySchema] = field(default_factory=dict)
    extends: Optional[str] = None
    example: Optional[str] = None
    category: str = "General"


@dataclass
class Node:
    """Represents one node instance placed in the graph."""
    id: int
    type: str
    label: str = ""
    position: Tuple[float, float] = (0.0, 0.0)
    params: Dict[str, Any] = field(default_factory=dict)
    accepts_input: bool = True
    produces_output: bool = True
    color: str = DEFAULT_NODE_COLOR
    custom_code: str = ""

    @classmethod
    def from_definition(cls, node_id: int, definition: NodeTypeDefinition,
                        position: Tuple[float, float] = (0.0, 0.0)) -> 'Node':
        """Instantiate a node, copying everything it needs from its definition."""
        return cls(
            id=node_id,
            type=definition.type,
            label=definition.label,
            position=position,
            params=copy.deepcopy(definition.default_params),
            accepts_input=definition.accepts_input,
            produces_output=definition.produces_output,
            color=definition.color,
        )

    @property
    def is_root(self) -> bool:
        """Nodes without an input port are program entry points."""
        return not self.accepts_input


@dataclass
class Connection:
    """Represents a directed wire from one node's output to another's input."""
    id: int
    source_id: int
    target_id: int


@dataclass
class Graph:
    """Represents a complete designer graph."""
    nodes: Dict[int, Node] = field(default_factory=dict)
    connections: List[Connection] = field(default_factory=list)
    mod_name: str = "designer-mod"
    next_node_id: int = 1
    next_connection_id: int = 1

    def add_node(self, node: Node) -> int:
        """Add a node to the graph and return its ID."""
        self.nodes[node.id] = node
        self.next_node_id = max(self.next_node_id, node.id + 1)
        return node.id

    def get_node(self, node_id: int) -> Optional[Node]:
        return self.nodes.get(node_id)

    def get_connection(self, connection_id: int) -> Optional[Connection]:
        for connection in self.connections:
            if connection.id == connection_id:
                return connection
        return None

    def has_connection(self, source_id: int, target_id: int) -> bool:
        return any(
            conn.source_id == source_id and conn.target_id == target_id
            for conn in self.connections
        )

    def incoming(self, node_id: int) -> List[Connection]:
        """Connections whose target is the given node, in creation order."""
        return [conn for conn in self.connections if conn.target_id == node_id]

    def outgoing(self, node_id: int) -> List[Connection]:
        """Connections whose source is the given node, in creation order."""
        return [conn for conn in self.connections if conn.source_id == node_id]

    def remove_node(self, node_id: int) -> bool:
        """Remove a node and all its connections from the graph."""
        if node_id not in self.nodes:
            return False

        self.connections = [
            conn for conn in self.connections
            if conn.source_id != node_id and conn.target_id != node_id
        ]

        del self.nodes[node_id]
        return True

    def remove_connection(self, connection_id: int) -> bool:
        for i, connection in enumerate(self.connections):
            if connection.id == connection_id:
                del self.connections[i]
                return True
        return False

    def root_nodes(self) -> List[Node]:
        """Entry-point nodes in creation order."""
        return [node for node in self.nodes.values() if node.is_root]

    def has_path(self, start_id: int, end_id: int) -> bool:
        """Check whether end_id is reachable from start_id along outgoing wires."""
        visited = set()
        stack = [start_id]

        while stack:
            current = stack.pop()
            if current == end_id:
                return True
            if current in visited:
                continue
            visited.add(current)
            stack.extend(conn.target_id for conn in self.outgoing(current))

        return False

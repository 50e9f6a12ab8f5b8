"""
Scope and variable-schema resolution.

A node's scope is the set of contextual variable names its parameters may
reference.  It is collected from every ancestor reachable by walking incoming
wires backwards; each ancestor contributes the ``provides`` list of its type.
Names provided by several ancestors collapse into one entry: the designer
reports availability, not shadowing.

Schema resolution turns a variable name into documentation for the sidebar
and autocomplete: description, type and addressable property paths.  A schema
may ``extend`` exactly one parent schema; the parent's properties are merged
underneath its own.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .models import Graph, PropertySchema
from .node_registry import DesignerRegistry


class ScopeResolver:
    """Computes the variables available to a node from its ancestor chains."""

    def __init__(self, registry: DesignerRegistry):
        self.registry = registry

    def resolve(self, graph: Graph, node_id: int) -> List[str]:
        """Return the sorted, distinct variable names visible at ``node_id``."""
        visited: Set[int] = set()
        collected: Set[str] = set()

        stack = [node_id]
        while stack:
            current = stack.pop()
            for connection in graph.incoming(current):
                parent_id = connection.source_id
                if parent_id in visited:
                    continue
                visited.add(parent_id)

                parent = graph.get_node(parent_id)
                if parent is None:
                    continue
                collected.update(self.registry.provides(parent.type))
                stack.append(parent_id)

        return sorted(collected)


@dataclass
class ResolvedSchema:
    """Effective schema of a variable after one level of ``extends``."""
    name: str
    description: str = ""
    type: Optional[str] = None
    properties: Dict[str, PropertySchema] = field(default_factory=dict)
    example: Optional[str] = None
    known: bool = True

    @classmethod
    def unknown(cls, name: str) -> 'ResolvedSchema':
        return cls(name=name, known=False)


@dataclass
class PropertyPath:
    """One addressable path below a variable, e.g. ``player.name`` or ``args[0]``."""
    path: str
    type: str
    description: str = ""
    example: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'path': self.path, 'type': self.type, 'description': self.description}
        if self.example is not None:
            data['example'] = self.example
        return data


@dataclass
class VariableInfo:
    """A variable in scope together with its documented property paths."""
    name: str
    type: Optional[str] = None
    description: str = ""
    properties: List[PropertyPath] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type,
            'description': self.description,
            'properties': [prop.to_dict() for prop in self.properties],
        }


def property_path(var_name: str, prop_name: str) -> str:
    """Bracketed keys are appended verbatim, others joined with a dot."""
    if prop_name.startswith('['):
        return f"{var_name}{prop_name}"
    return f"{var_name}.{prop_name}"


class VariableSchemaResolver:
    """Resolves variable names to their documentation schema."""

    def __init__(self, registry: DesignerRegistry, scope_resolver: Optional[ScopeResolver] = None):
        self.registry = registry
        self.scope_resolver = scope_resolver or ScopeResolver(registry)

    def resolve(self, name: str) -> ResolvedSchema:
        schema = self.registry.get_variable_schema(name)
        if schema is None:
            return ResolvedSchema.unknown(name)

        properties = dict(schema.properties)
        schema_type = schema.type
        if schema.extends:
            base = self.registry.get_variable_schema(schema.extends)
            if base is not None:
                merged = dict(base.properties)
                merged.update(properties)
                properties = merged
                schema_type = schema_type or base.type

        return ResolvedSchema(
            name=name,
            description=schema.description,
            type=schema_type,
            properties=properties,
            example=schema.example,
        )

    def property_paths(self, name: str) -> List[PropertyPath]:
        resolved = self.resolve(name)
        return [
            PropertyPath(
                path=property_path(name, prop_name),
                type=prop.type,
                description=prop.description,
                example=prop.example,
            )
            for prop_name, prop in resolved.properties.items()
        ]

    def resolve_with_schema(self, graph: Graph, node_id: int) -> List[VariableInfo]:
        """Variables in scope at a node, each with its full property-path list."""
        result = []
        for var_name in self.scope_resolver.resolve(graph, node_id):
            resolved = self.resolve(var_name)
            if not resolved.known:
                result.append(VariableInfo(name=var_name))
                continue
            result.append(VariableInfo(
                name=var_name,
                type=resolved.type,
                description=resolved.description,
                properties=self.property_paths(var_name),
            ))
        return result

    def variable_reference(self) -> List[Dict[str, Any]]:
        """The whole schema catalog grouped by category, for the reference panel."""
        categories = []
        for category, names in self.registry.variable_categories.items():
            entries = []
            for name in names:
                resolved = self.resolve(name)
                entries.append({
                    'name': name,
                    'description': resolved.description,
                    'type': resolved.type,
                    'example': resolved.example,
                    'properties': [prop.to_dict() for prop in self.property_paths(name)],
                })
            categories.append({'category': category, 'variables': entries})
        return categories

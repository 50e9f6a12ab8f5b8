"""
Node Registry: read-only catalogs of node types and variable schemas.

The designer consumes two catalogs, each organised as named categories:

    node catalog                         variable catalog
    ------------                         ----------------
    categories:                          categories:
      Events:                              Core Variables:
        nodes:                               player: {description, properties}
          onPlayerJoin: {label, color,       evt.player: {extends: player}
                         hasInput,         Data & Collections:
                         hasOutput,          players: {type: array, ...}
                         params, provides}

Catalogs are plain data: they can come from the packaged JSON files, from a
versioned YAML file, or be built in memory.  Once built, a DesignerRegistry is
never mutated.  Hot-swapping a catalog means building a new registry and
replacing the reference held by the designer; graph nodes keep the parameters
they copied at creation time.
"""

import os
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .exceptions import CatalogError
from .models import (
    NodeTypeDefinition, PropertySchema, VariableSchema, DEFAULT_NODE_COLOR
)


logger = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data')
DEFAULT_NODE_CATALOG = os.path.join(DATA_DIR, 'node_definitions.json')
DEFAULT_VARIABLE_CATALOG = os.path.join(DATA_DIR, 'variable_schemas.json')


# =============================================================================
# CATALOG PARSING
# =============================================================================

def load_catalog_file(path: str) -> Dict[str, Any]:
    """Read a catalog document from a ``.json``, ``.yaml`` or ``.yml`` file."""
    if not os.path.exists(path):
        raise CatalogError(f"Catalog file not found: {path}", source=path)

    with open(path, 'r', encoding='utf-8') as f:
        try:
            if path.lower().endswith(('.yaml', '.yml')):
                loaded = yaml.safe_load(f)
            else:
                loaded = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise CatalogError(f"Catalog file is malformed: {e}", source=path) from e

    if not isinstance(loaded, dict):
        raise CatalogError(
            f"Catalog must be a mapping, got {type(loaded).__name__}", source=path
        )
    return loaded


def _mapping(value: Any, what: str, source: Optional[str]) -> Dict[str, Any]:
    """``value`` itself when it is a mapping; ``None`` reads as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CatalogError(f"{what} must be a mapping, got {type(value).__name__}", source=source)
    return value


def _categories(data: Dict[str, Any], source: Optional[str]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise CatalogError(f"Catalog must be a mapping, got {type(data).__name__}", source=source)
    categories = data.get('categories', data)
    if not isinstance(categories, dict):
        raise CatalogError("Catalog 'categories' must be a mapping", source=source)
    return categories


def parse_node_catalog(data: Dict[str, Any],
                       source: Optional[str] = None) -> Tuple[Dict[str, NodeTypeDefinition], Dict[str, List[str]]]:
    """Turn a node catalog document into definitions plus category membership."""
    definitions: Dict[str, NodeTypeDefinition] = {}
    categories: Dict[str, List[str]] = {}

    for category_name, category in _categories(data, source).items():
        entries = category.get('nodes') if isinstance(category, dict) else None
        if not isinstance(entries, dict):
            raise CatalogError(f"Category '{category_name}' has no node mapping", source=source)

        members = categories.setdefault(category_name, [])
        for type_name, entry in entries.items():
            entry = _mapping(entry, f"Node '{type_name}' in category '{category_name}'", source)
            params = _mapping(entry.get('params'), f"Params of node '{type_name}'", source)
            provides = entry.get('provides') or ()
            if not isinstance(provides, (list, tuple)):
                raise CatalogError(f"'provides' of node '{type_name}' must be a list", source=source)
            definitions[type_name] = NodeTypeDefinition(
                type=type_name,
                label=entry.get('label', type_name),
                color=entry.get('color', DEFAULT_NODE_COLOR),
                accepts_input=bool(entry.get('hasInput', True)),
                produces_output=bool(entry.get('hasOutput', True)),
                default_params=dict(params),
                provides=tuple(provides),
                category=category_name,
                description=entry.get('description', ''),
            )
            members.append(type_name)

    return definitions, categories


def _parse_property(name: str, entry: Dict[str, Any], source: Optional[str] = None) -> PropertySchema:
    entry = _mapping(entry, f"Property '{name}'", source)
    return PropertySchema(
        name=name,
        type=entry.get('type', 'any'),
        description=entry.get('description', ''),
        example=entry.get('example'),
        schema=entry.get('schema'),
    )


def parse_variable_catalog(data: Dict[str, Any],
                           source: Optional[str] = None) -> Tuple[Dict[str, VariableSchema], Dict[str, List[str]]]:
    """Turn a variable catalog document into schemas plus category membership."""
    schemas: Dict[str, VariableSchema] = {}
    categories: Dict[str, List[str]] = {}

    for category_name, entries in _categories(data, source).items():
        if not isinstance(entries, dict):
            raise CatalogError(f"Category '{category_name}' must be a mapping", source=source)

        members = categories.setdefault(category_name, [])
        for var_name, entry in entries.items():
            entry = _mapping(entry, f"Variable '{var_name}' in category '{category_name}'", source)
            properties = _mapping(entry.get('properties'), f"Properties of variable '{var_name}'", source)
            schemas[var_name] = VariableSchema(
                name=var_name,
                description=entry.get('description', ''),
                type=entry.get('type'),
                properties={
                    prop_name: _parse_property(prop_name, prop, source)
                    for prop_name, prop in properties.items()
                },
                extends=entry.get('extends'),
                example=entry.get('example'),
                category=category_name,
            )
            members.append(var_name)

    return schemas, categories


# =============================================================================
# REGISTRY
# =============================================================================

@dataclass(frozen=True)
class DesignerRegistry:
    """
    Immutable snapshot of both catalogs.

    Lookups never raise: unknown node types resolve to a generic fallback
    definition and unknown variables resolve to None.
    """
    node_types: Dict[str, NodeTypeDefinition] = field(default_factory=dict)
    node_categories: Dict[str, List[str]] = field(default_factory=dict)
    variable_schemas: Dict[str, VariableSchema] = field(default_factory=dict)
    variable_categories: Dict[str, List[str]] = field(default_factory=dict)
    version: str = ''

    @classmethod
    def from_data(cls, node_catalog: Dict[str, Any],
                  variable_catalog: Optional[Dict[str, Any]] = None) -> 'DesignerRegistry':
        node_types, node_categories = parse_node_catalog(node_catalog)
        schemas, variable_categories = parse_variable_catalog(variable_catalog or {})
        return cls(
            node_types=node_types,
            node_categories=node_categories,
            variable_schemas=schemas,
            variable_categories=variable_categories,
            version=str(node_catalog.get('version', '')),
        )

    @classmethod
    def from_files(cls, node_catalog_path: Optional[str] = None,
                   variable_catalog_path: Optional[str] = None) -> 'DesignerRegistry':
        """Load both catalogs, falling back to the packaged defaults."""
        node_path = node_catalog_path or DEFAULT_NODE_CATALOG
        variable_path = variable_catalog_path or DEFAULT_VARIABLE_CATALOG

        node_data = load_catalog_file(node_path)
        node_types, node_categories = parse_node_catalog(node_data, node_path)
        schemas, variable_categories = parse_variable_catalog(
            load_catalog_file(variable_path), variable_path
        )

        logger.info("Loaded %d node types and %d variable schemas (%s, %s)",
                    len(node_types), len(schemas), node_path, variable_path)
        return cls(
            node_types=node_types,
            node_categories=node_categories,
            variable_schemas=schemas,
            variable_categories=variable_categories,
            version=str(node_data.get('version', '')),
        )

    @classmethod
    def default(cls) -> 'DesignerRegistry':
        return cls.from_files()

    # -------------------------------------------------------------------------
    # Node types
    # -------------------------------------------------------------------------

    def get_node_type(self, type_name: str) -> Optional[NodeTypeDefinition]:
        return self.node_types.get(type_name)

    def definition_for(self, type_name: str) -> NodeTypeDefinition:
        """Registry definition, or the generic fallback for unknown types."""
        definition = self.node_types.get(type_name)
        if definition is None:
            return NodeTypeDefinition.fallback(type_name)
        return definition

    def provides(self, type_name: str) -> Tuple[str, ...]:
        definition = self.node_types.get(type_name)
        return definition.provides if definition else ()

    def label_for(self, type_name: str) -> str:
        definition = self.node_types.get(type_name)
        return definition.label if definition else type_name

    def search(self, query: str, limit: int = 50) -> List[NodeTypeDefinition]:
        """Toolbox search over type names, labels and categories."""
        if not query.strip():
            return list(self.node_types.values())[:limit]

        results = []
        query_lower = query.lower()
        for definition in self.node_types.values():
            score = 0
            if definition.type.lower() == query_lower or definition.label.lower() == query_lower:
                score += 100
            elif query_lower in definition.label.lower() or query_lower in definition.type.lower():
                score += 50
            if query_lower in definition.description.lower():
                score += 20
            if query_lower in definition.category.lower():
                score += 10
            if score > 0:
                results.append((score, definition))

        results.sort(key=lambda x: x[0], reverse=True)
        return [definition for score, definition in results[:limit]]

    # -------------------------------------------------------------------------
    # Variable schemas
    # -------------------------------------------------------------------------

    def get_variable_schema(self, name: str) -> Optional[VariableSchema]:
        return self.variable_schemas.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """Catalog summary for the toolbox UI."""
        return {
            'version': self.version,
            'categories': {
                category: [
                    {
                        'type': type_name,
                        'label': self.node_types[type_name].label,
                        'color': self.node_types[type_name].color,
                        'hasInput': self.node_types[type_name].accepts_input,
                        'hasOutput': self.node_types[type_name].produces_output,
                        'params': dict(self.node_types[type_name].default_params),
                        'provides': list(self.node_types[type_name].provides),
                    }
                    for type_name in members
                ]
                for category, members in self.node_categories.items()
            },
        }

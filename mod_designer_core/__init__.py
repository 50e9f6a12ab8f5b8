"""
Mod Designer Core - graph-to-code compiler for the node-based mod designer.

A user wires event, action and control nodes into a directed graph; this
package keeps that graph, works out which contextual variables each node can
reference, and compiles the graph into the JavaScript source of a mod.
"""

__version__ = "0.1.0"
__author__ = "Mod Designer Development Team"

from .models import (
    NodeTypeDefinition, PropertySchema, VariableSchema, Node, Connection, Graph
)
from .exceptions import DesignerError, GraphImportError, CatalogError
from .config import DesignerSettings
from .node_registry import DesignerRegistry
from .graph_store import GraphStore, ConnectionRejection
from .scope_resolver import ScopeResolver, VariableSchemaResolver
from .value_substitution import substitute
from .statement_templates import StatementTemplate, BlockTemplate, register_template
from .code_generator import ModCodeGenerator, sanitize_mod_name
from .graph_serializer import export_graph, import_graph
from .designer import Designer

__all__ = [
    'NodeTypeDefinition', 'PropertySchema', 'VariableSchema', 'Node', 'Connection', 'Graph',
    'DesignerError', 'GraphImportError', 'CatalogError',
    'DesignerSettings',
    'DesignerRegistry',
    'GraphStore', 'ConnectionRejection',
    'ScopeResolver', 'VariableSchemaResolver',
    'substitute',
    'StatementTemplate', 'BlockTemplate', 'register_template',
    'ModCodeGenerator', 'sanitize_mod_name',
    'export_graph', 'import_graph',
    'Designer',
]

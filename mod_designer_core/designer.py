"""
Designer: the command surface used by the UI.

Every command mutates the graph store (or leaves it untouched when refused),
re-runs the code generator over the whole graph and records a one-line status
message.  Generation is never incremental.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .code_generator import ModCodeGenerator, download_filename
from .config import DesignerSettings
from .exceptions import GraphImportError
from .graph_serializer import export_graph, import_graph, load_graph, save_graph
from .graph_store import GraphStore
from .models import Connection, Graph, Node
from .node_registry import DesignerRegistry
from .scope_resolver import ScopeResolver, VariableInfo, VariableSchemaResolver


READY_STATUS = "Ready. Click nodes from the toolbox to get started."
NO_VARIABLES = "No variables available from parent nodes"


class Designer:
    """Facade tying the registry, graph store, resolvers and generator together."""

    def __init__(self, registry: Optional[DesignerRegistry] = None,
                 settings: Optional[DesignerSettings] = None,
                 graph: Optional[Graph] = None):
        self.settings = settings or DesignerSettings()
        self.store = GraphStore(
            graph,
            reject_cycles=self.settings.reject_cycles,
            default_mod_name=self.settings.default_mod_name,
        )
        self.logger = logging.getLogger(__name__)
        self.code = ""
        self.status = READY_STATUS
        self.status_is_error = False
        self._bind_registry(registry or DesignerRegistry.from_files(
            self.settings.node_catalog_path, self.settings.variable_catalog_path
        ))
        self.regenerate()

    @property
    def graph(self) -> Graph:
        return self.store.graph

    def _bind_registry(self, registry: DesignerRegistry):
        self.registry = registry
        self.scope_resolver = ScopeResolver(registry)
        self.schema_resolver = VariableSchemaResolver(registry, self.scope_resolver)
        self.generator = ModCodeGenerator(registry, self.settings)

    def _set_status(self, text: str, is_error: bool = False):
        self.status = text
        self.status_is_error = is_error
        if is_error:
            self.logger.warning(text)
        else:
            self.logger.debug(text)

    def regenerate(self) -> str:
        self.code = self.generator.generate(self.store.graph)
        return self.code

    # -------------------------------------------------------------------------
    # Graph commands
    # -------------------------------------------------------------------------

    def create_node(self, type_name: str, x: float = 0.0, y: float = 0.0) -> Node:
        node = self.store.create_node(self.registry, type_name, x, y)
        self._set_status(f"Added node: {self.registry.label_for(type_name)}")
        self.regenerate()
        return node

    def delete_node(self, node_id: int) -> bool:
        removed = self.store.delete_node(node_id)
        if removed:
            self._set_status(f"Deleted node #{node_id}.")
        self.regenerate()
        return removed

    def create_connection(self, source_id: int, target_id: int) -> Optional[Connection]:
        rejection = self.store.validate_connection(source_id, target_id)
        if rejection is not None:
            self._set_status(rejection.value, is_error=True)
            return None

        connection = self.store.create_connection(source_id, target_id)
        self._set_status(f"Connected node #{source_id} to node #{target_id}.")
        self.regenerate()
        return connection

    def delete_connection(self, connection_id: int) -> bool:
        removed = self.store.delete_connection(connection_id)
        if removed:
            self._set_status(f"Deleted connection #{connection_id}.")
        self.regenerate()
        return removed

    def clear(self):
        self.store.clear()
        self._set_status("Graph cleared.")
        self.regenerate()

    def export_graph(self) -> Dict[str, Any]:
        data = export_graph(self.store.graph)
        self._set_status("Exported graph JSON.")
        return data

    def import_graph(self, payload: Any) -> bool:
        """Replace the graph with an imported document; the graph is untouched on failure."""
        try:
            graph = import_graph(payload, self.registry, self.settings.default_mod_name)
        except GraphImportError as e:
            self._set_status(f"Failed to import graph: {e}", is_error=True)
            return False

        return self._replace_graph(graph)

    def save(self, path: str):
        save_graph(self.store.graph, path)
        self._set_status(f"Saved graph to {path}.")

    def load(self, path: str) -> bool:
        try:
            graph = load_graph(path, self.registry, self.settings.default_mod_name)
        except (GraphImportError, OSError) as e:
            self._set_status(f"Failed to import graph: {e}", is_error=True)
            return False
        return self._replace_graph(graph)

    def _replace_graph(self, graph: Graph) -> bool:
        self.store.replace(graph)
        self._set_status(
            f"Imported graph with {len(graph.nodes)} node(s) "
            f"and {len(graph.connections)} connection(s)."
        )
        self.regenerate()
        return True

    # -------------------------------------------------------------------------
    # Node edits
    # -------------------------------------------------------------------------

    def update_label(self, node_id: int, label: str) -> bool:
        return self._after_edit(self.store.update_label(node_id, label))

    def update_params(self, node_id: int, params: Dict[str, Any]) -> bool:
        return self._after_edit(self.store.update_params(node_id, params))

    def update_params_json(self, node_id: int, text: str) -> bool:
        return self._after_edit(self.store.update_params_json(node_id, text))

    def set_custom_code(self, node_id: int, code: str) -> bool:
        return self._after_edit(self.store.set_custom_code(node_id, code))

    def move_node(self, node_id: int, x: float, y: float) -> bool:
        # Positions do not affect the generated code.
        return self.store.move_node(node_id, (x, y))

    def set_mod_name(self, name: str):
        self.store.set_mod_name(name)
        self.regenerate()

    def select_node(self, node_id: Optional[int]) -> bool:
        if node_id is None:
            self.store.clear_selection()
            return True
        return self.store.select_node(node_id)

    def _after_edit(self, changed: bool) -> bool:
        if changed:
            self.regenerate()
        return changed

    # -------------------------------------------------------------------------
    # Registry and scope queries
    # -------------------------------------------------------------------------

    def swap_registry(self, registry: DesignerRegistry):
        """Replace both catalogs at once; existing nodes keep their own copies."""
        self._bind_registry(registry)
        self._set_status(f"Loaded {len(registry.node_types)} node types.")
        self.regenerate()

    def available_variables(self, node_id: int) -> List[str]:
        return self.scope_resolver.resolve(self.store.graph, node_id)

    def variables_with_schema(self, node_id: int) -> List[VariableInfo]:
        return self.schema_resolver.resolve_with_schema(self.store.graph, node_id)

    def describe_scope(self, node_id: int) -> str:
        """One-line sidebar summary of the variables available at a node."""
        details = self.variables_with_schema(node_id)
        if not details:
            return NO_VARIABLES
        summary = ", ".join(info.name for info in details)
        property_count = sum(len(info.properties) for info in details)
        return f"Available: {summary} ({property_count} properties) - See Variable Reference below"

    def download(self) -> Tuple[str, str]:
        """File name and contents for the generated mod."""
        filename = download_filename(self.store.graph.mod_name, self.settings.default_mod_name)
        self._set_status("Downloaded generated mod file.")
        return filename, self.code

"""
Mod Code Generator.

Compiles a designer graph into the JavaScript source of a single mod:

    // Auto-generated by Mod Designer
    // Edit parameters and add custom logic as needed

    api.registerMod('<mod-name>', {
      onInitialize(api) {

        // Node #1: On Player Join
        api.onPlayerJoin((player) => {

          // → Log Message
          api.log(player);
        });
      }
    });

Root nodes (no input port) are emitted in creation order.  Each node is
rendered by the template registered for its type; its direct descendants are
emitted in connection-creation order, nested one level deeper under block
templates and at the same level after plain statements.
"""

import logging
import re
from typing import Dict, List, Optional, Set

from .config import DEFAULT_MOD_NAME, DesignerSettings
from .models import Graph, Node
from .node_registry import DesignerRegistry
from .scope_resolver import ScopeResolver
from .statement_templates import RenderContext, StatementTemplate, get_template


HEADER_LINES = [
    "// Auto-generated by Mod Designer",
    "// Edit parameters and add custom logic as needed",
]

ROOT_LEVEL = 2

_UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9_-]')


def sanitize_mod_name(name: Optional[str], default: str = DEFAULT_MOD_NAME) -> str:
    """Replace every character outside ``[A-Za-z0-9_-]`` with a hyphen."""
    return _UNSAFE_NAME_CHARS.sub('-', name or default)


def download_filename(name: Optional[str], default: str = DEFAULT_MOD_NAME) -> str:
    return f"{sanitize_mod_name(name, default)}.js"


class ModCodeGenerator:
    """Generates mod JavaScript from a designer graph."""

    def __init__(self, registry: DesignerRegistry, settings: Optional[DesignerSettings] = None,
                 templates: Optional[Dict[str, StatementTemplate]] = None):
        self.registry = registry
        self.settings = settings or DesignerSettings()
        self.templates = templates
        self.scope_resolver = ScopeResolver(registry)
        self.indent_size = self.settings.indent_size
        self.logger = logging.getLogger(__name__)

    def generate(self, graph: Graph) -> str:
        """Generate the full program text for the graph."""
        safe_name = sanitize_mod_name(graph.mod_name, self.settings.default_mod_name)

        lines = list(HEADER_LINES)
        lines.append("")
        lines.append(f"api.registerMod('{safe_name}', {{")
        lines.append(self._indent("onInitialize(api) {", 1))

        emitted: Set[int] = set()
        for root in graph.root_nodes():
            lines.append("")
            lines.append(self._indent(f"// Node #{root.id}: {root.label}", ROOT_LEVEL))
            lines.extend(self._emit_node(graph, root, ROOT_LEVEL, frozenset(), emitted))

        lines.append(self._indent("}", 1))
        lines.append("});")
        lines.append("")

        return "\n".join(lines)

    def generate_node(self, graph: Graph, node_id: int, level: int = 0) -> List[str]:
        """Code for one node and its descendants, e.g. for a sidebar preview."""
        node = graph.get_node(node_id)
        if node is None:
            return []
        return self._emit_node(graph, node, level, frozenset(), set())

    def template_for(self, node_type: str) -> StatementTemplate:
        if self.templates is not None and node_type in self.templates:
            return self.templates[node_type]
        return get_template(node_type)

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def _emit_node(self, graph: Graph, node: Node, level: int,
                   path: frozenset, emitted: Set[int]) -> List[str]:
        emitted.add(node.id)
        template = self.template_for(node.type)
        ctx = RenderContext(
            node, level, self.indent_size,
            scope=lambda: self.scope_resolver.resolve(graph, node.id),
        )

        child_level = level + 1 if template.opens_block else level
        children = self._emit_descendants(graph, node, child_level, path | {node.id}, emitted)
        return template.render(ctx, children)

    def _emit_descendants(self, graph: Graph, node: Node, level: int,
                          path: frozenset, emitted: Set[int]) -> List[str]:
        lines = []
        for connection in graph.outgoing(node.id):
            target = graph.get_node(connection.target_id)
            if target is None:
                continue

            if target.id in path:
                self.logger.debug("Cycle at node #%s, not expanding again", target.id)
                lines.append("")
                lines.append(self._indent(f"// → {target.label}", level))
                lines.append(self._indent(
                    f"// cycle: Node #{target.id} is already generated above", level))
                continue

            if self.settings.dedupe_shared_descendants and target.id in emitted:
                continue

            lines.append("")
            lines.append(self._indent(f"// → {target.label}", level))
            lines.extend(self._emit_node(graph, target, level, path, emitted))
        return lines

    def _indent(self, line: str, level: int) -> str:
        return " " * (level * self.indent_size) + line

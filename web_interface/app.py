"""
Flask web interface for the Mod Designer.

Exposes the designer command surface as a small JSON API.  Every response has
the shape ``{"success": bool, ...}``; successful commands also return the
status line and, where the graph changed, the regenerated code.
"""

import logging
from typing import Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from mod_designer_core.config import DesignerSettings
from mod_designer_core.designer import Designer
from mod_designer_core.exceptions import CatalogError
from mod_designer_core.graph_serializer import node_to_dict, connection_to_dict
from mod_designer_core.node_registry import DesignerRegistry


logger = logging.getLogger(__name__)


def create_app(designer: Optional[Designer] = None,
               settings: Optional[DesignerSettings] = None) -> Flask:
    """Build the Flask app around a single designer session."""
    settings = settings or (designer.settings if designer else DesignerSettings.from_env())
    designer = designer or Designer(settings=settings)

    app = Flask(__name__)
    CORS(app)
    app.config['DESIGNER'] = designer

    def _ok(**payload):
        payload.setdefault('status', designer.status)
        return jsonify({'success': True, **payload})

    def _fail(message: str, code: int = 400):
        return jsonify({'success': False, 'error': message}), code

    def _code_payload():
        return {'code': designer.code, 'status': designer.status}

    def _json_object():
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error in designer API")
        return _fail(str(e), 500)

    # ── Registry ────────────────────────────────────────────────────────────

    @app.route('/api/registry', methods=['GET'])
    def get_registry():
        """Node catalog grouped by category, for the toolbox."""
        return _ok(data=designer.registry.to_dict())

    @app.route('/api/registry', methods=['PUT'])
    def swap_registry():
        """Hot-swap both catalogs."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return _fail("Registry body must be a JSON object")
        try:
            registry = DesignerRegistry.from_data(body.get('nodes') or {}, body.get('variables'))
        except CatalogError as e:
            return _fail(str(e))
        designer.swap_registry(registry)
        return _ok(**_code_payload())

    @app.route('/api/registry/search', methods=['GET'])
    def search_registry():
        query = request.args.get('q', '')
        results = designer.registry.search(query)
        return _ok(data=[{'type': d.type, 'label': d.label, 'category': d.category} for d in results])

    @app.route('/api/variables', methods=['GET'])
    def get_variable_reference():
        return _ok(data=designer.schema_resolver.variable_reference())

    # ── Graph ───────────────────────────────────────────────────────────────

    @app.route('/api/graph', methods=['GET'])
    def get_graph():
        return _ok(data=designer.export_graph())

    @app.route('/api/graph', methods=['POST'])
    def import_graph():
        if not designer.import_graph(request.get_json(silent=True)):
            return _fail(designer.status)
        return _ok(**_code_payload())

    @app.route('/api/graph', methods=['DELETE'])
    def clear_graph():
        designer.clear()
        return _ok(**_code_payload())

    @app.route('/api/graph/mod-name', methods=['PUT'])
    def set_mod_name():
        body = _json_object()
        designer.set_mod_name(body.get('modName', ''))
        return _ok(modName=designer.graph.mod_name, **_code_payload())

    # ── Nodes ───────────────────────────────────────────────────────────────

    @app.route('/api/nodes', methods=['POST'])
    def create_node():
        body = _json_object()
        node_type = body.get('type')
        if not node_type:
            return _fail("Missing node type")
        node = designer.create_node(node_type, body.get('x', 0.0), body.get('y', 0.0))
        return _ok(data=node_to_dict(node), **_code_payload())

    @app.route('/api/nodes/<int:node_id>', methods=['PATCH'])
    def update_node(node_id):
        if designer.store.get_node(node_id) is None:
            return _fail(f"Node {node_id} not found", 404)

        body = _json_object()
        if 'label' in body:
            designer.update_label(node_id, body['label'])
        if 'params' in body and isinstance(body['params'], dict):
            designer.update_params(node_id, body['params'])
        if 'paramsJson' in body:
            designer.update_params_json(node_id, body['paramsJson'])
        if 'customCode' in body:
            designer.set_custom_code(node_id, body['customCode'])
        if 'x' in body and 'y' in body:
            designer.move_node(node_id, body['x'], body['y'])

        return _ok(data=node_to_dict(designer.store.get_node(node_id)), **_code_payload())

    @app.route('/api/nodes/<int:node_id>', methods=['DELETE'])
    def delete_node(node_id):
        designer.delete_node(node_id)
        return _ok(**_code_payload())

    @app.route('/api/nodes/<int:node_id>/scope', methods=['GET'])
    def get_node_scope(node_id):
        if designer.store.get_node(node_id) is None:
            return _fail(f"Node {node_id} not found", 404)
        return _ok(
            summary=designer.describe_scope(node_id),
            data=[info.to_dict() for info in designer.variables_with_schema(node_id)],
        )

    # ── Connections ─────────────────────────────────────────────────────────

    @app.route('/api/connections', methods=['POST'])
    def create_connection():
        body = _json_object()
        try:
            source_id, target_id = int(body['from']), int(body['to'])
        except (KeyError, TypeError, ValueError):
            return _fail("Connection needs integer 'from' and 'to'")

        connection = designer.create_connection(source_id, target_id)
        if connection is None:
            return _fail(designer.status)
        return _ok(data=connection_to_dict(connection), **_code_payload())

    @app.route('/api/connections/<int:connection_id>', methods=['DELETE'])
    def delete_connection(connection_id):
        designer.delete_connection(connection_id)
        return _ok(**_code_payload())

    # ── Code ────────────────────────────────────────────────────────────────

    @app.route('/api/code', methods=['GET'])
    def get_code():
        return _ok(code=designer.code)

    @app.route('/api/code/download', methods=['GET'])
    def download_code():
        filename, code = designer.download()
        return Response(
            code,
            mimetype='text/javascript',
            headers={'Content-Disposition': f'attachment; filename="{filename}"'},
        )

    return app


def main():
    settings = DesignerSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app = create_app(settings=settings)
    logger.info("Starting Mod Designer API on http://localhost:5000")
    app.run(debug=False, host='0.0.0.0', port=5000)


if __name__ == '__main__':
    main()

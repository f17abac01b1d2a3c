"""
Flask web application exposing the table store.

Two endpoints over the same DatabaseService:
- POST /api  JSON request/response, dispatched on "action"
- POST /rpc  JSON-RPC 2.0 with structured payload shapes

JSON API request:
    {"action": "select_records", "dbName": "shop",
     "payload": {"tableName": "items", "criteria": {...}}}

JSON API response:
    {"status": "success", "message": "...", "data": ...}
    {"status": "error", "message": "...", "kind": "NotFound"}
"""

from flask import Flask, request, jsonify
from loguru import logger

from tablestore.config import StoreConfig
from tablestore.logging_config import setup_logging
from tablestore.query.normalizer import (
    columns_from_json,
    conditions_from_json,
    criteria_from_json,
    record_from_json,
)
from tablestore.rpc.methods import RPCMethodRegistry
from tablestore.rpc.protocol import create_error_response, to_wire, RPCErrorCode
from tablestore.service import DatabaseService
from tablestore.utils.exceptions import TableStoreError, InvalidNameError
from tablestore.utils.row_utils import decode_blobs


class BadRequest(Exception):
    """Missing or malformed request fields, reported with status 400."""


def success(data=None, message='Operation successful', status=200):
    return jsonify({'status': 'success', 'message': message, 'data': data}), status


def error(message, status=400, kind=None):
    body = {'status': 'error', 'message': message}
    if kind:
        body['kind'] = kind
    return jsonify(body), status


# ----- Action handlers -----
# Each handler takes (service, db_name, payload) and returns (data, message).

def _require(payload, key, action):
    value = payload.get(key)
    if not value:
        raise BadRequest(f"Missing '{key}' in payload for {action}.")
    return value


def _require_db(db_name, action):
    if not db_name:
        raise BadRequest(f"Database not selected. Provide 'dbName' for {action}.")
    return db_name


def _table_name(payload, action):
    table_name = payload.get('tableName')
    if not table_name:
        raise InvalidNameError('', f"Missing 'tableName' in payload for table operation '{action}'.")
    return table_name


def create_database(service, db_name, payload):
    name = _require(payload, 'dbName', 'create_database')
    service.create_database(name)
    return None, f"Database '{name}' created successfully."


def delete_database(service, db_name, payload):
    name = _require(payload, 'dbName', 'delete_database')
    service.delete_database(name)
    return None, f"Database '{name}' deleted successfully."


def backup_database(service, db_name, payload):
    name = _require_db(db_name or payload.get('dbName'), 'backup_database')
    path = service.backup_database(name)
    return {'backup_path': path}, f"Database '{name}' backed up successfully."


def restore_database(service, db_name, payload):
    target = payload.get('dbNameToRestore') or db_name
    if not target:
        raise BadRequest("Missing 'dbNameToRestore' or current 'dbName'.")
    backup_file = _require(payload, 'backupFileName', 'restore_database')
    service.restore_database(target, backup_file)
    return None, f"Database '{target}' restored successfully from '{backup_file}'."


def list_tables(service, db_name, payload):
    name = _require_db(db_name, 'list_tables')
    return service.list_tables(name), f"Tables in '{name}'."


def list_databases(service, db_name, payload):
    return service.list_databases(), "Databases listed."


def list_backups(service, db_name, payload):
    return service.list_backups(payload.get('dbName') or db_name), "Backups listed."


def create_table(service, db_name, payload):
    table = _table_name(payload, 'create_table')
    service.create_table(_require_db(db_name, 'create_table'), table,
                         columns_from_json(payload.get('columns')))
    return None, f"Table '{table}' created successfully."


def delete_table(service, db_name, payload):
    table = _table_name(payload, 'delete_table')
    service.delete_table(_require_db(db_name, 'delete_table'), table)
    return None, f"Table '{table}' deleted successfully."


def get_table_schema(service, db_name, payload):
    table = _table_name(payload, 'get_table_schema')
    schema = service.get_table_schema(_require_db(db_name, 'get_table_schema'), table)
    return schema, f"Schema for table '{table}'."


def insert_record(service, db_name, payload):
    table = _table_name(payload, 'insert_record')
    last_id = service.insert_record(_require_db(db_name, 'insert_record'), table,
                                    record_from_json(payload.get('data')))
    return {'last_insert_id': last_id}, f"Record inserted into '{table}'."


def select_records(service, db_name, payload):
    table = _table_name(payload, 'select_records')
    rows = service.select_records(_require_db(db_name, 'select_records'), table,
                                  criteria_from_json(payload.get('criteria')))
    return [decode_blobs(row) for row in rows], f"Records selected from '{table}'."


def update_records(service, db_name, payload):
    table = _table_name(payload, 'update_records')
    affected = service.update_records(_require_db(db_name, 'update_records'), table,
                                      record_from_json(payload.get('data')),
                                      conditions_from_json(payload.get('where')))
    return {'affected_rows': affected}, f"{affected} record(s) updated in '{table}'."


def delete_records(service, db_name, payload):
    table = _table_name(payload, 'delete_records')
    affected = service.delete_records(_require_db(db_name, 'delete_records'), table,
                                      conditions_from_json(payload.get('where')))
    return {'affected_rows': affected}, f"{affected} record(s) deleted from '{table}'."


ACTIONS = {
    'create_database': create_database,
    'delete_database': delete_database,
    'backup_database': backup_database,
    'restore_database': restore_database,
    'list_tables': list_tables,
    'list_databases': list_databases,
    'list_backups': list_backups,
    'create_table': create_table,
    'delete_table': delete_table,
    'get_table_schema': get_table_schema,
    'insert_record': insert_record,
    'select_records': select_records,
    'update_records': update_records,
    'delete_records': delete_records,
}


def create_app(config=None):
    """
    Build the Flask application.

    Args:
        config: StoreConfig (defaults to StoreConfig.from_env())
    """
    config = config or StoreConfig.from_env()
    setup_logging(config.log_level)

    app = Flask(__name__)
    service = DatabaseService(config)
    registry = RPCMethodRegistry(service)
    app.config['TABLESTORE'] = config

    @app.route('/api', methods=['POST'])
    def api():
        """Dispatch one JSON API action."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return error('Invalid JSON input: expected a JSON object.', 400)

        action = body.get('action')
        handler = ACTIONS.get(action) if isinstance(action, str) else None
        if handler is None:
            return error('Invalid action specified.', 404)

        payload = body.get('payload') or {}
        if not isinstance(payload, dict):
            return error("'payload' must be a JSON object.", 400)

        try:
            data, message = handler(service, body.get('dbName'), payload)
        except BadRequest as e:
            return error(str(e), 400)
        except TableStoreError as e:
            logger.warning(f"{action} failed: {e.kind}: {e}")
            return error(str(e), e.status_code, e.kind)

        return success(data, message)

    @app.route('/rpc', methods=['POST'])
    def rpc():
        """Dispatch one JSON-RPC 2.0 call."""
        body = request.get_json(silent=True)
        if body is None:
            response = create_error_response(RPCErrorCode.PARSE_ERROR, 'Parse error')
        else:
            response = registry.dispatch(body)
        status = 500 if response.error is not None and response.error.code == RPCErrorCode.SERVER_FAULT else 200
        return jsonify(to_wire(response)), status

    return app


if __name__ == '__main__':
    print("\n" + "="*60)
    print("Table store API running!")
    print("JSON API: POST http://localhost:5000/api")
    print("RPC:      POST http://localhost:5000/rpc")
    print("="*60 + "\n")
    create_app().run(debug=True, port=5000)

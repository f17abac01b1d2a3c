"""
JSON-RPC method implementations.

Maps RPC method names to DatabaseService operations. Parameters use the
structured, SOAP-style shapes (``{"item": [...]}``, ``{"condition": [...]}``,
``{"column": [...]}``) and are normalized before the service sees them.
"""

import inspect
from typing import Any, Dict, Optional, Callable

from loguru import logger

from ..query.normalizer import (
    columns_from_rpc,
    conditions_from_rpc,
    criteria_from_rpc,
    record_from_key_values,
    record_to_key_values,
)
from ..service import DatabaseService
from ..utils.exceptions import TableStoreError, EmptyInputError, MissingWhereError, InvalidNameError
from ..utils.row_utils import decode_blobs
from .protocol import (
    JSONRPCResponse,
    create_success_response,
    create_error_response,
    create_fault_response,
    parse_rpc_request,
    RPCErrorCode,
)


class RPCMethodRegistry:
    """
    Registry of available RPC methods.
    """

    def __init__(self, service: DatabaseService):
        self.service = service

        # Method registry: method_name -> handler_function
        self.methods: Dict[str, Callable] = {
            # Databases
            "createDatabase": self.create_database,
            "deleteDatabase": self.delete_database,
            "backupDatabase": self.backup_database,
            "restoreDatabase": self.restore_database,
            "listTables": self.list_tables,
            "listDatabases": self.list_databases,
            "listBackups": self.list_backups,

            # Tables
            "createTable": self.create_table,
            "deleteTable": self.delete_table,
            "getTableSchema": self.get_table_schema,

            # Records
            "insertRecord": self.insert_record,
            "selectRecords": self.select_records,
            "updateRecords": self.update_records,
            "deleteRecords": self.delete_records,

            # Meta
            "listMethods": self.list_methods,
        }

    def dispatch(self, payload: Any) -> JSONRPCResponse:
        """
        Handle one raw JSON-RPC payload.

        Returns:
            The response envelope (never raises for client or store errors)
        """
        request = parse_rpc_request(payload)
        if isinstance(request, JSONRPCResponse):
            return request

        handler = self.methods.get(request.method)
        if handler is None:
            return create_error_response(
                code=RPCErrorCode.METHOD_NOT_FOUND,
                message=f"Method not found: {request.method}",
                request_id=request.id,
            )

        args = request.params if isinstance(request.params, list) else []
        kwargs = request.params if isinstance(request.params, dict) else {}
        try:
            inspect.signature(handler).bind(*args, **kwargs)
        except TypeError as e:
            return create_error_response(
                code=RPCErrorCode.INVALID_PARAMS,
                message=f"Invalid params for {request.method}: {e}",
                request_id=request.id,
            )

        try:
            result = handler(*args, **kwargs)
        except TableStoreError as e:
            logger.warning(f"RPC {request.method} failed: {e}")
            return create_fault_response(str(e), e.kind, request.id)
        except Exception as e:
            logger.exception(f"RPC {request.method} crashed")
            return create_error_response(
                code=RPCErrorCode.INTERNAL_ERROR,
                message=f"Internal error: {e}",
                request_id=request.id,
            )

        return create_success_response(result, request.id)

    # ----- Databases -----

    def create_database(self, dbName: str) -> Dict[str, Any]:
        name = self.service.create_database(dbName)
        return {"message": f"Database '{name}' created successfully."}

    def delete_database(self, dbName: str) -> Dict[str, Any]:
        self.service.delete_database(dbName)
        return {"message": f"Database '{dbName}' deleted successfully."}

    def backup_database(self, dbName: str) -> Dict[str, Any]:
        return {"backupPath": self.service.backup_database(dbName)}

    def restore_database(self, dbNameToRestore: str, backupFileName: str) -> Dict[str, Any]:
        self.service.restore_database(dbNameToRestore, backupFileName)
        return {
            "message": f"Database '{dbNameToRestore}' restored successfully from '{backupFileName}'."
        }

    def list_tables(self, dbName: str) -> Dict[str, Any]:
        schema = self.service.list_tables(dbName)
        return {
            "tables": [
                {"tableName": name, "fields": fields} for name, fields in schema.items()
            ]
        }

    def list_databases(self) -> Dict[str, Any]:
        return {"databases": self.service.list_databases()}

    def list_backups(self, dbName: Optional[str] = None) -> Dict[str, Any]:
        return {"backups": self.service.list_backups(dbName)}

    # ----- Tables -----

    def create_table(self, dbName: str, tableName: str, columns: Any) -> Dict[str, Any]:
        self._require_table_name(tableName)
        self.service.create_table(dbName, tableName, columns_from_rpc(columns))
        return {"message": f"Table '{tableName}' created successfully."}

    def delete_table(self, dbName: str, tableName: str) -> Dict[str, Any]:
        self._require_table_name(tableName)
        self.service.delete_table(dbName, tableName)
        return {"message": f"Table '{tableName}' deleted successfully."}

    def get_table_schema(self, dbName: str, tableName: str) -> Dict[str, Any]:
        self._require_table_name(tableName)
        return {"schema": self.service.get_table_schema(dbName, tableName)}

    # ----- Records -----

    def insert_record(self, dbName: str, tableName: str, data: Any) -> Dict[str, Any]:
        self._require_table_name(tableName)
        record = record_from_key_values(data)
        if not record:
            raise EmptyInputError("No data provided for insert operation.")
        return {"lastInsertId": self.service.insert_record(dbName, tableName, record)}

    def select_records(self, dbName: str, tableName: str, criteria: Any = None) -> Dict[str, Any]:
        self._require_table_name(tableName)
        rows = self.service.select_records(dbName, tableName, criteria_from_rpc(criteria))
        return {"records": [record_to_key_values(decode_blobs(row)) for row in rows]}

    def update_records(self, dbName: str, tableName: str, data: Any, where: Any) -> Dict[str, Any]:
        self._require_table_name(tableName)
        record = record_from_key_values(data)
        conditions = conditions_from_rpc(where)
        if not record:
            raise EmptyInputError("No data provided for update.")
        if not conditions:
            raise MissingWhereError("WHERE clause is mandatory for update.")
        return {"affectedRows": self.service.update_records(dbName, tableName, record, conditions)}

    def delete_records(self, dbName: str, tableName: str, where: Any) -> Dict[str, Any]:
        self._require_table_name(tableName)
        conditions = conditions_from_rpc(where)
        if not conditions:
            raise MissingWhereError("WHERE clause is mandatory for delete.")
        return {"affectedRows": self.service.delete_records(dbName, tableName, conditions)}

    # ----- Meta -----

    def list_methods(self) -> Dict[str, Any]:
        return {"methods": sorted(self.methods)}

    @staticmethod
    def _require_table_name(table_name: Any) -> None:
        if not table_name:
            raise InvalidNameError('', "Table name (tableName) cannot be empty.")

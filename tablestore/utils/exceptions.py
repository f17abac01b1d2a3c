"""
Centralized exception hierarchy for the table store.

All custom exceptions inherit from TableStoreError so adapters can catch
one base type. Each class carries a ``kind`` (the stable error name sent
to clients) and a ``status_code`` used by the JSON transport to tell
client errors from server errors.
"""


class TableStoreError(Exception):
    """Base exception for all table store errors."""
    kind = "Error"
    status_code = 500

    def to_dict(self) -> dict:
        return {'kind': self.kind, 'message': str(self)}


class ClientError(TableStoreError):
    """Errors caused by the request itself."""
    status_code = 400


# ----- Validation errors (raised before any backend call) -----

class InvalidNameError(ClientError):
    """Raised when a database or table name is unusable."""
    kind = "InvalidName"

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid name '{name}': {reason}")


class InvalidColumnError(ClientError):
    """Raised when a column definition or column reference is invalid."""
    kind = "InvalidColumn"

    def __init__(self, message: str, column_name: str = None):
        self.column_name = column_name
        super().__init__(message)


class InvalidOperatorError(ClientError):
    """Raised when a WHERE operator is not in the whitelist."""
    kind = "InvalidOperator"

    def __init__(self, operator):
        self.operator = operator
        super().__init__(f"Invalid operator: {operator}")


class InvalidValueError(ClientError):
    """Raised when a condition value does not fit its operator."""
    kind = "InvalidValue"


class EmptyInputError(ClientError):
    """Raised when an insert or update carries no data."""
    kind = "EmptyInput"


class MissingWhereError(ClientError):
    """Raised when UPDATE/DELETE would run without a WHERE clause."""
    kind = "MissingWhere"


# ----- Lifecycle errors -----

class AlreadyExistsError(ClientError):
    """Raised when creating a database or table that already exists."""
    kind = "AlreadyExists"


class NotFoundError(ClientError):
    """Raised when a database, table or backup artifact does not exist."""
    kind = "NotFound"


class NotConnectedError(ClientError):
    """Raised when an operation needs a live connection and there is none."""
    kind = "NotConnected"


# ----- Server-side errors -----

class BackendError(TableStoreError):
    """Wraps a failure reported by SQLite, message kept verbatim."""
    kind = "BackendError"

    def __init__(self, message: str, sql: str = None):
        self.sql = sql
        if sql:
            message += f" (SQL: {sql})"
        super().__init__(message)


class StorageIOError(TableStoreError):
    """Raised when a filesystem step (remove, copy) fails."""
    kind = "IOError"

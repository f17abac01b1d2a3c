"""
Unit tests for utility modules (validators, row_utils, exceptions).
"""

import re
import sqlite3

import pytest
from tablestore.utils.validators import (
    sanitize_database_name,
    validate_table_name,
    sanitize_field,
    sanitize_column_name,
    validate_column_type,
    validate_constraints,
    is_scalar,
    coerce_int,
)
from tablestore.config import StoreConfig
from tablestore.utils.row_utils import row_to_dict, decode_blobs
from tablestore.utils.exceptions import (
    TableStoreError,
    ClientError,
    InvalidNameError,
    InvalidColumnError,
    InvalidOperatorError,
    InvalidValueError,
    EmptyInputError,
    MissingWhereError,
    AlreadyExistsError,
    NotFoundError,
    NotConnectedError,
    BackendError,
    StorageIOError,
)


class TestValidators:
    """Test sanitizer and validator functions."""

    def test_sanitize_database_name_strips_invalid(self):
        """Test characters outside [A-Za-z0-9_-] are removed."""
        assert sanitize_database_name("shop") == "shop"
        assert sanitize_database_name("my-shop_2") == "my-shop_2"
        assert sanitize_database_name("../../etc/passwd") == "etcpasswd"
        assert sanitize_database_name("sh op!") == "shop"

    def test_sanitize_database_name_output_shape(self):
        """Test sanitized names always match the database name pattern."""
        for raw in ["a b", "x/y\\z", "ümlaut1", "--", "__init__", "1.2.3"]:
            assert re.match(r'^[A-Za-z0-9_-]+$', sanitize_database_name(raw))

    def test_sanitize_database_name_empty(self):
        """Test empty results raise InvalidNameError."""
        for raw in ["", "   ", "!!!", "../", None]:
            with pytest.raises(InvalidNameError):
                sanitize_database_name(raw)

    def test_validate_table_name(self):
        """Test valid and invalid table names."""
        assert validate_table_name("items") == "items"
        assert validate_table_name("_private") == "_private"
        assert validate_table_name("Items2") == "Items2"

        for name in ["", "2items", "my-table", "items; DROP TABLE x", "a b", None]:
            with pytest.raises(InvalidNameError):
                validate_table_name(name)

    def test_sanitize_field(self):
        """Test field references keep only [A-Za-z0-9_]."""
        assert sanitize_field("name") == "name"
        assert sanitize_field("na`me") == "name"
        assert sanitize_field('id" OR 1=1 --') == "idOR11"
        assert sanitize_field("---") == ""
        assert sanitize_field(None) == ""

    def test_sanitize_column_name(self):
        """Test column names match the identifier pattern."""
        assert sanitize_column_name("price") == "price"
        assert sanitize_column_name("unit price") == "unitprice"
        assert sanitize_column_name("2fast") == "fast"
        for raw in ["a-b", "9lives", "_x$"]:
            assert re.match(r'^[A-Za-z_][A-Za-z0-9_]*$', sanitize_column_name(raw))

    def test_sanitize_column_name_empty(self):
        """Test unusable column names raise InvalidColumnError."""
        for raw in ["", "123", "$$$"]:
            with pytest.raises(InvalidColumnError):
                sanitize_column_name(raw)

    def test_validate_column_type(self):
        """Test types are uppercased and filtered."""
        assert validate_column_type("id", "integer") == "INTEGER"
        assert validate_column_type("name", "varchar(50)") == "VARCHAR(50)"
        assert validate_column_type("amount", "decimal(10, 2)") == "DECIMAL(10, 2)"

        with pytest.raises(InvalidColumnError):
            validate_column_type("name", "TEXT); DROP TABLE items; --")

    def test_validate_constraints(self):
        """Test constraints allow-list."""
        assert validate_constraints("id", "PRIMARY KEY AUTOINCREMENT") == "PRIMARY KEY AUTOINCREMENT"
        assert validate_constraints("id", None) == ""
        assert validate_constraints("id", "  ") == ""

        with pytest.raises(InvalidColumnError):
            validate_constraints("name", "DEFAULT 'x'")
        with pytest.raises(InvalidColumnError):
            validate_constraints("name", "NOT NULL, price REAL")

    def test_is_scalar(self):
        """Test scalar detection."""
        for value in ["a", 1, 1.5, True, None, b"x"]:
            assert is_scalar(value)
        for value in [[1], (1,), {"a": 1}, {1}]:
            assert not is_scalar(value)

    def test_coerce_int(self):
        """Test LIMIT/OFFSET coercion."""
        assert coerce_int(10) == 10
        assert coerce_int("25") == 25
        assert coerce_int("7.9") == 7
        assert coerce_int("abc") == 0
        assert coerce_int(None) == 0
        assert coerce_int([]) == 0
        assert coerce_int(-5) == 0


class TestRowUtils:
    """Test row conversion helpers."""

    def test_row_to_dict_keeps_order(self):
        """Test sqlite3.Row conversion preserves column order."""
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        row = conn.execute("SELECT 1 AS id, 'Widget' AS name, 9.99 AS price").fetchone()
        conn.close()

        converted = row_to_dict(row)
        assert converted == {"id": 1, "name": "Widget", "price": 9.99}
        assert list(converted) == ["id", "name", "price"]

    def test_decode_blobs(self):
        """Test BLOBs become text or hex."""
        row = {"a": b"hello", "b": b"\xff\x00", "c": 3}
        assert decode_blobs(row) == {"a": "hello", "b": "ff00", "c": 3}


class TestExceptions:
    """Test exception hierarchy."""

    def test_all_errors_share_base(self):
        """Test that all custom exceptions inherit from TableStoreError."""
        for cls in [InvalidNameError, InvalidColumnError, InvalidOperatorError,
                    InvalidValueError, EmptyInputError, MissingWhereError,
                    AlreadyExistsError, NotFoundError, NotConnectedError,
                    BackendError, StorageIOError]:
            assert issubclass(cls, TableStoreError)

    def test_status_classes(self):
        """Test client errors map to 400 and server errors to 500."""
        assert issubclass(MissingWhereError, ClientError)
        assert MissingWhereError("x").status_code == 400
        assert NotFoundError("x").status_code == 400
        assert BackendError("x").status_code == 500
        assert StorageIOError("x").status_code == 500

    def test_kinds(self):
        """Test error kinds are stable names."""
        assert InvalidOperatorError("~=").kind == "InvalidOperator"
        assert StorageIOError("x").kind == "IOError"
        assert InvalidNameError("x", "bad").to_dict() == {
            "kind": "InvalidName",
            "message": "Invalid name 'x': bad",
        }

    def test_backend_error_includes_sql(self):
        """Test SQL text is appended for diagnostics."""
        err = BackendError("Select failed: no such column: nope", "SELECT `nope` FROM `items`")
        assert "no such column" in str(err)
        assert "SQL: SELECT" in str(err)
        assert err.sql.startswith("SELECT")


class TestStoreConfig:
    """Test directory configuration."""

    def test_from_env(self, monkeypatch, tmp_path):
        """Test environment overrides."""
        monkeypatch.setenv("TABLESTORE_DATABASES_DIR", str(tmp_path / "dbs"))
        monkeypatch.setenv("TABLESTORE_BACKUPS_DIR", str(tmp_path / "bak"))
        monkeypatch.setenv("TABLESTORE_LOG_LEVEL", "debug")

        config = StoreConfig.from_env()
        assert config.databases_dir == tmp_path / "dbs"
        assert config.backups_dir == tmp_path / "bak"
        assert config.log_level == "DEBUG"
        assert config.extension == "sqlite"

    def test_paths(self, tmp_path):
        config = StoreConfig(tmp_path / "dbs", tmp_path / "bak", extension=".db")
        assert config.database_path("shop") == tmp_path / "dbs" / "shop.db"
        assert config.backup_path("shop_backup_1.db") == tmp_path / "bak" / "shop_backup_1.db"

        config.ensure_dirs()
        assert config.databases_dir.is_dir()
        assert config.backups_dir.is_dir()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Tests for the interactive shell and its result formatter.
"""

import pytest
from tablestore.formatter import (
    format_select_result,
    format_schema,
    format_modify_result,
    format_insert_result,
    format_ddl_result,
)
from tablestore.repl import Session, run_line, execute_command, handle_special_command


class TestFormatter:
    """Test presentation helpers."""

    def test_select_empty(self):
        assert format_select_result([]) == "(0 rows)"

    def test_select_grid(self):
        output = format_select_result([{"id": 1, "name": "Widget"}, {"id": 2, "name": "Gadget"}])
        assert "| id" in output
        assert "Widget" in output
        assert output.endswith("(2 rows)")

    def test_select_single_row(self):
        assert format_select_result([{"id": 1}]).endswith("(1 row)")

    def test_schema(self):
        schema = [
            {"cid": 0, "name": "id", "type": "INTEGER", "notnull": 0, "dflt_value": None, "pk": 1},
            {"cid": 1, "name": "name", "type": "TEXT", "notnull": 1, "dflt_value": None, "pk": 0},
        ]
        output = format_schema("items", schema)
        assert "column" in output
        assert "INTEGER" in output
        assert "YES" in output

    def test_schema_missing_table(self):
        assert format_schema("ghost", []) == "Table 'ghost' does not exist."

    def test_messages(self):
        assert format_modify_result(1, "UPDATE") == "UPDATE OK, 1 row affected"
        assert format_modify_result(3, "DELETE") == "DELETE OK, 3 rows affected"
        assert format_insert_result(7) == "INSERT OK, id 7"
        assert format_ddl_result("CREATE TABLE", "items") == "CREATE TABLE OK: items"


class TestShell:
    """Test command dispatch without a terminal."""

    @pytest.fixture()
    def session(self, service):
        return Session(service)

    def test_prompt(self, session):
        assert session.prompt == "tablestore> "
        session.db_name = "shop"
        assert session.prompt == "shop> "

    def test_exit(self, session, capsys):
        assert run_line(".exit", session) is False
        assert run_line(".quit", session) is False
        assert "Goodbye!" in capsys.readouterr().out

    def test_blank_line(self, session):
        assert run_line("   ", session) is True

    def test_create_and_open(self, session, capsys):
        """Test .create opens the new database."""
        run_line(".create shop", session)
        assert session.db_name == "shop"
        assert "CREATE DATABASE OK: shop" in capsys.readouterr().out

        session.db_name = None
        run_line(".open shop", session)
        assert session.db_name == "shop"

    def test_open_missing(self, session, capsys):
        run_line(".open ghost", session)
        assert session.db_name is None
        assert "does not exist" in capsys.readouterr().out

    def test_table_workflow(self, session, capsys):
        """Test create, insert, select, update and delete from the shell."""
        run_line(".create shop", session)
        run_line('create items [{"name": "id", "type": "INTEGER", "constraints": "PRIMARY KEY"},'
                 ' {"name": "name", "type": "TEXT"}]', session)
        run_line('insert items {"name": "Widget"}', session)
        run_line('select items {"where": [{"field": "id", "operator": "=", "value": 1}]}', session)
        run_line('update items {"data": {"name": "Gadget"}, "where": [{"field": "id", "operator": "=", "value": 1}]}', session)
        run_line('delete items {"where": [{"field": "id", "operator": "=", "value": 1}]}', session)

        output = capsys.readouterr().out
        assert "CREATE TABLE OK: items" in output
        assert "INSERT OK, id 1" in output
        assert "Widget" in output
        assert "(1 row)" in output
        assert "UPDATE OK, 1 row affected" in output
        assert "DELETE OK, 1 row affected" in output

    def test_tables_and_schema(self, session, capsys):
        run_line(".create shop", session)
        run_line('create items [{"name": "id", "type": "INTEGER"}]', session)
        capsys.readouterr()

        run_line(".tables", session)
        run_line(".schema items", session)
        output = capsys.readouterr().out
        assert "items (1 columns)" in output
        assert "INTEGER" in output

    def test_backup_and_restore(self, session, capsys, config):
        run_line(".create shop", session)
        run_line(".backup", session)
        backups = session.service.list_backups("shop")
        assert len(backups) == 1

        run_line(f".restore {backups[0]}", session)
        output = capsys.readouterr().out
        assert "BACKUP OK" in output
        assert "RESTORE OK: shop" in output

    def test_store_error_printed(self, session, capsys):
        """Test store errors are reported with their kind, not raised."""
        run_line(".create shop", session)
        run_line('create items [{"name": "id", "type": "INTEGER"}]', session)
        assert run_line("delete items", session) is True
        assert "Error (MissingWhere)" in capsys.readouterr().out

    def test_no_database_open(self, session, capsys):
        run_line(".tables", session)
        assert "No database open" in capsys.readouterr().out

    def test_invalid_json(self, session, capsys):
        run_line(".create shop", session)
        run_line("insert items {name: 1}", session)
        assert "Invalid JSON" in capsys.readouterr().out

    def test_unknown_dot_command(self, session, capsys):
        assert handle_special_command(".frobnicate", session) is True
        assert "Unknown command: .frobnicate" in capsys.readouterr().out

    def test_execute_command_raises(self, session):
        """Test execute_command leaves error reporting to the caller."""
        session.db_name = "shop"
        with pytest.raises(ValueError):
            execute_command("select", session)
        with pytest.raises(ValueError):
            execute_command("explode items", session)

"""
REPL (Read-Eval-Print Loop) for operating the table store interactively.

Provides a command-line interface over DatabaseService. Dot-commands
manage databases; operation commands take a table name and a JSON
argument, e.g.::

    select items {"where": [{"field": "price", "operator": ">", "value": 5}]}
"""

import json
import sys

from .config import StoreConfig
from .logging_config import setup_logging
from .service import DatabaseService
from .formatter import (
    format_select_result,
    format_schema,
    format_modify_result,
    format_insert_result,
    format_ddl_result,
)
from .query.normalizer import (
    columns_from_json,
    conditions_from_json,
    criteria_from_json,
    record_from_json,
)
from .utils.exceptions import TableStoreError


class Session:
    """Shell state: the service and the currently opened database."""

    def __init__(self, service: DatabaseService, db_name: str = None):
        self.service = service
        self.db_name = db_name

    @property
    def prompt(self) -> str:
        return f"{self.db_name or 'tablestore'}> "

    def require_db(self) -> str:
        if not self.db_name:
            raise ValueError("No database open. Use .open NAME or .create NAME")
        return self.db_name


def print_banner():
    """Print welcome banner."""
    print("=" * 60)
    print("  Table Store - Interactive Shell")
    print("=" * 60)
    print("Type .help for commands, .exit to quit")
    print("=" * 60)
    print()


def print_help():
    """Print help message."""
    print("\n--- Help ---")
    print("Database commands:")
    print("  .databases          - List databases")
    print("  .open NAME          - Open a database")
    print("  .create NAME        - Create and open a database")
    print("  .dropdb NAME        - Delete a database")
    print("  .backup             - Back up the open database")
    print("  .backups            - List backups of the open database")
    print("  .restore FILE       - Restore the open database from a backup")
    print("  .tables             - List tables")
    print("  .schema TABLE       - Show table schema")
    print("  .exit / .quit       - Exit")
    print("\nTable commands (JSON argument):")
    print('  create TABLE [{"name": "id", "type": "INTEGER", "constraints": "PRIMARY KEY"}]')
    print("  drop TABLE")
    print('  insert TABLE {"col": "value"}')
    print('  select TABLE {"fields": [...], "where": [...], "orderBy": [...], "limit": 10}')
    print('  update TABLE {"data": {...}, "where": [...]}')
    print('  delete TABLE {"where": [...]}')
    print()


def handle_special_command(command: str, session: Session) -> bool:
    """
    Handle dot-commands.

    Args:
        command: Command string
        session: Shell session

    Returns:
        True if should continue REPL, False to exit
    """
    parts = command.strip().split(None, 1)
    name = parts[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ''
    service = session.service

    if name in ['.exit', '.quit']:
        print("Goodbye!")
        return False

    elif name == '.help':
        print_help()

    elif name == '.databases':
        databases = service.list_databases()
        if databases:
            print("\nDatabases:")
            for db in databases:
                marker = ' *' if db == session.db_name else ''
                print(f"  - {db}{marker}")
        else:
            print("\nNo databases.")
        print()

    elif name == '.open':
        if not arg:
            print("Usage: .open NAME")
        elif arg not in service.list_databases():
            print(f"Database '{arg}' does not exist. Use .create {arg}\n")
        else:
            session.db_name = arg
            print(f"Opened '{arg}'\n")

    elif name == '.create':
        if not arg:
            print("Usage: .create NAME")
        else:
            session.db_name = service.create_database(arg)
            print(format_ddl_result("CREATE DATABASE", session.db_name) + "\n")

    elif name == '.dropdb':
        if not arg:
            print("Usage: .dropdb NAME")
        else:
            service.delete_database(arg)
            if session.db_name == arg:
                session.db_name = None
            print(format_ddl_result("DELETE DATABASE", arg) + "\n")

    elif name == '.backup':
        path = service.backup_database(session.require_db())
        print(format_ddl_result("BACKUP", path) + "\n")

    elif name == '.backups':
        backups = service.list_backups(session.db_name)
        if backups:
            for backup in backups:
                print(f"  - {backup}")
        else:
            print("No backups.")
        print()

    elif name == '.restore':
        if not arg:
            print("Usage: .restore FILE")
        else:
            service.restore_database(session.require_db(), arg)
            print(format_ddl_result("RESTORE", session.db_name) + "\n")

    elif name == '.tables':
        tables = service.list_tables(session.require_db())
        if tables:
            print("\nTables:")
            for table, columns in tables.items():
                print(f"  - {table} ({len(columns)} columns)")
        else:
            print("\nNo tables.")
        print()

    elif name == '.schema':
        if not arg:
            print("Usage: .schema TABLE_NAME")
        else:
            schema = service.get_table_schema(session.require_db(), arg)
            print(f"\nSchema for table '{arg}':")
            print(format_schema(arg, schema))
            print()

    else:
        print(f"Unknown command: {name}")
        print("Type .help for available commands\n")

    return True


def _object_argument(argument, command):
    if argument is None:
        return {}
    if not isinstance(argument, dict):
        raise ValueError(f"{command} expects a JSON object argument")
    return argument


def execute_command(line: str, session: Session) -> None:
    """
    Run one table command and print its result.

    Raises:
        TableStoreError: On validation or backend failures
        ValueError: On malformed commands or JSON
    """
    parts = line.strip().split(None, 2)
    if len(parts) < 2:
        raise ValueError("Usage: COMMAND TABLE [JSON]")
    command, table = parts[0].lower(), parts[1]
    argument = json.loads(parts[2]) if len(parts) > 2 else None
    service = session.service
    db_name = session.require_db()

    if command == 'create':
        service.create_table(db_name, table, columns_from_json(argument))
        print(format_ddl_result("CREATE TABLE", table))
    elif command == 'drop':
        service.delete_table(db_name, table)
        print(format_ddl_result("DROP TABLE", table))
    elif command == 'insert':
        row_id = service.insert_record(db_name, table, record_from_json(argument))
        print(format_insert_result(row_id))
    elif command == 'select':
        rows = service.select_records(db_name, table, criteria_from_json(argument))
        print(format_select_result(rows))
    elif command == 'update':
        argument = _object_argument(argument, command)
        count = service.update_records(
            db_name, table,
            record_from_json(argument.get('data')),
            conditions_from_json(argument.get('where')),
        )
        print(format_modify_result(count, "UPDATE"))
    elif command == 'delete':
        argument = _object_argument(argument, command)
        count = service.delete_records(db_name, table, conditions_from_json(argument.get('where')))
        print(format_modify_result(count, "DELETE"))
    else:
        raise ValueError(f"Unknown command: {command}")


def run_line(line: str, session: Session) -> bool:
    """
    Dispatch one input line, printing errors instead of raising.

    Returns:
        True if should continue REPL, False to exit
    """
    line = line.strip()
    if not line:
        return True
    try:
        if line.startswith('.'):
            return handle_special_command(line, session)
        execute_command(line, session)
        print()
    except TableStoreError as e:
        print(f"Error ({e.kind}): {e}\n")
    except json.JSONDecodeError as e:
        print(f"Invalid JSON: {e}\n")
    except ValueError as e:
        print(f"Error: {e}\n")
    return True


def repl(config: StoreConfig = None):
    """
    Run the interactive REPL.

    Reads one command per line, executes it, and displays results.
    """
    config = config or StoreConfig.from_env()
    setup_logging(config.log_level)
    print_banner()

    session = Session(DatabaseService(config))

    while True:
        try:
            sys.stdout.write(session.prompt)
            sys.stdout.flush()
            line = sys.stdin.readline()
            if not line:  # EOF
                print("\nGoodbye!")
                return
            if not run_line(line, session):
                break
        except KeyboardInterrupt:
            print("\n\nInterrupted. Type .exit to quit.\n")
            continue


def main():
    repl()


# Entry point for running as module
if __name__ == "__main__":
    main()

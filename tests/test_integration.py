"""
Integration tests: end-to-end scenarios through DatabaseService.

Every service call opens and closes its own connection, so these also
check that state really lives in the database files.
"""

import re

import pytest
from tablestore.query.criteria import Condition, Criteria, OrderBy, SortDirection
from tablestore.utils.exceptions import (
    NotConnectedError,
    NotFoundError,
    MissingWhereError,
    InvalidOperatorError,
)

from conftest import ITEMS_COLUMNS


class TestEndToEnd:
    """Test complete workflows."""

    def test_shop_workflow(self, service):
        """Test create, insert, select, update, delete on one table."""
        assert service.create_database("shop") == "shop"
        service.create_table("shop", "items", ITEMS_COLUMNS)

        assert service.insert_record("shop", "items", {"name": "Widget", "price": 9.99}) == 1
        assert service.select_records("shop", "items") == [
            {"id": 1, "name": "Widget", "price": 9.99}
        ]

        affected = service.update_records("shop", "items", {"price": 12.5},
                                          [Condition("id", "=", 1)])
        assert affected == 1
        assert service.select_records("shop", "items")[0]["price"] == 12.5

        assert service.delete_records("shop", "items", [Condition("id", "=", 1)]) == 1
        assert service.select_records("shop", "items") == []

    def test_insert_select_by_id(self, service):
        """Test a returned id selects exactly the inserted row."""
        service.create_database("shop")
        service.create_table("shop", "items", ITEMS_COLUMNS)
        service.insert_record("shop", "items", {"name": "Gadget", "price": 1.0})

        data = {"name": "Widget", "price": 9.99}
        row_id = service.insert_record("shop", "items", data)
        rows = service.select_records(
            "shop", "items", Criteria(where=[Condition("id", "=", row_id)])
        )
        assert rows == [{"id": row_id, **data}]

    def test_backup_delete_restore(self, service, config):
        """Test a backup brings a deleted database back."""
        service.create_database("shop")
        service.create_table("shop", "items", ITEMS_COLUMNS)
        service.insert_record("shop", "items", {"name": "Widget", "price": 9.99})

        backup_path = service.backup_database("shop")
        backup_name = backup_path.replace("\\", "/").rsplit("/", 1)[-1]
        assert re.match(r'^shop_backup_\d{14}\.sqlite$', backup_name)

        service.delete_database("shop")
        with pytest.raises(NotConnectedError):
            service.select_records("shop", "items")

        service.restore_database("shop", backup_name)
        assert service.select_records("shop", "items") == [
            {"id": 1, "name": "Widget", "price": 9.99}
        ]

    def test_restore_rolls_back_changes(self, service):
        """Test restoring over a live database discards later writes."""
        service.create_database("shop")
        service.create_table("shop", "items", ITEMS_COLUMNS)
        backup_name = service.backup_database("shop").replace("\\", "/").rsplit("/", 1)[-1]

        service.insert_record("shop", "items", {"name": "Widget"})
        service.restore_database("shop", backup_name)
        assert service.select_records("shop", "items") == []

    def test_list_tables_and_schema(self, service):
        service.create_database("shop")
        service.create_table("shop", "items", ITEMS_COLUMNS)

        tables = service.list_tables("shop")
        assert list(tables) == ["items"]
        assert tables["items"] == service.get_table_schema("shop", "items")

    def test_delete_table(self, service):
        service.create_database("shop")
        service.create_table("shop", "items", ITEMS_COLUMNS)
        service.delete_table("shop", "items")
        assert service.list_tables("shop") == {}
        with pytest.raises(NotFoundError):
            service.delete_table("shop", "items")

    def test_query_options(self, service):
        """Test ordering, paging and IN together."""
        service.create_database("shop")
        service.create_table("shop", "items", ITEMS_COLUMNS)
        for i, name in enumerate(["A", "B", "C", "D", "E"], start=1):
            service.insert_record("shop", "items", {"name": name, "price": float(i)})

        rows = service.select_records("shop", "items", Criteria(
            fields=["name"],
            where=[Condition("id", "NOT IN", [2])],
            order_by=[OrderBy("price", SortDirection.DESC)],
            limit=2,
            offset=1,
        ))
        assert rows == [{"name": "D"}, {"name": "C"}]


class TestSafety:
    """Test guard rails around destructive or malformed operations."""

    @pytest.fixture()
    def stocked(self, service):
        service.create_database("shop")
        service.create_table("shop", "items", ITEMS_COLUMNS)
        service.insert_record("shop", "items", {"name": "Widget", "price": 9.99})
        return service

    def test_delete_without_where_keeps_rows(self, stocked):
        with pytest.raises(MissingWhereError):
            stocked.delete_records("shop", "items", [])
        assert len(stocked.select_records("shop", "items")) == 1

    def test_update_without_where_keeps_rows(self, stocked):
        with pytest.raises(MissingWhereError):
            stocked.update_records("shop", "items", {"price": 0}, [])
        assert stocked.select_records("shop", "items")[0]["price"] == 9.99

    def test_injection_in_value_is_inert(self, stocked):
        """Test hostile values are compared, never executed."""
        rows = stocked.select_records("shop", "items", Criteria(
            where=[Condition("name", "=", "x' OR '1'='1")]
        ))
        assert rows == []
        assert stocked.list_tables("shop") != {}

    def test_invalid_operator_rejected(self, stocked):
        with pytest.raises(InvalidOperatorError):
            stocked.delete_records("shop", "items", [Condition("id", "OR", 1)])
        assert len(stocked.select_records("shop", "items")) == 1

    def test_missing_database(self, service):
        """Test table operations on a missing database."""
        with pytest.raises(NotConnectedError) as exc:
            service.list_tables("ghost")
        assert "not found or not connected" in str(exc.value)
        with pytest.raises(NotConnectedError):
            service.insert_record("ghost", "items", {"name": "x"})

    def test_missing_database_not_created(self, service, config):
        """Test touching a missing database does not create its file."""
        with pytest.raises(NotConnectedError):
            service.select_records("ghost", "items")
        assert not (config.databases_dir / "ghost.sqlite").exists()
        assert service.list_databases() == []

    def test_backup_missing_database(self, service):
        with pytest.raises(NotFoundError):
            service.backup_database("ghost")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

import pytest

from tablestore.config import StoreConfig
from tablestore.query.criteria import ColumnDefinition
from tablestore.service import DatabaseService
from tablestore.storage.catalog import CatalogManager


ITEMS_COLUMNS = [
    ColumnDefinition("id", "INTEGER", "PRIMARY KEY AUTOINCREMENT"),
    ColumnDefinition("name", "TEXT", "NOT NULL"),
    ColumnDefinition("price", "REAL"),
]


@pytest.fixture()
def config(tmp_path):
    return StoreConfig(
        databases_dir=tmp_path / 'databases',
        backups_dir=tmp_path / 'backups',
    )


@pytest.fixture()
def catalog(config):
    manager = CatalogManager(config)
    yield manager
    manager.close_connection()


@pytest.fixture()
def shop(catalog):
    """Catalog with database 'shop' created and selected."""
    catalog.create_database('shop')
    return catalog


@pytest.fixture()
def service(config):
    return DatabaseService(config)

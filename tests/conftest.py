from decimal import Decimal

import pytest

from bistro_pos.ledger import OrderLedger
from bistro_pos.menu import MenuCatalog
from bistro_pos.models import CatalogEntry, MenuItem
from bistro_pos.storage import MenuStore, PersistenceError, SalesStore


class BrokenStore:
    """store whose writes always fail"""
    def __init__(self, path="unwritable.txt"):
        self.path = path
        self.attempts = 0

    def load(self):
        return []

    def save(self, _):
        self.attempts += 1
        raise PersistenceError(f"could not save {self.path}: read-only")


@pytest.fixture
def entries():
    return [
        CatalogEntry(MenuItem("Burger", "Mains", Decimal("10.00"))),
        CatalogEntry(MenuItem("Lemonade", "Drinks", Decimal("5.00"))),
        CatalogEntry(MenuItem("Fries", "Sides", Decimal("3.50"))),
    ]


@pytest.fixture
def catalog(entries):
    return MenuCatalog(entries)


@pytest.fixture
def ledger(catalog):
    return OrderLedger(catalog)


@pytest.fixture
def menu_store(tmp_path):
    return MenuStore(tmp_path / "menu_data.txt")


@pytest.fixture
def sales_store(tmp_path):
    return SalesStore(tmp_path / "sales_data.txt")


@pytest.fixture
def stored_ledger(entries, menu_store, sales_store):
    """ledger + catalog that write through to files under tmp_path"""
    catalog = MenuCatalog(entries, menu_store)
    return OrderLedger(catalog, sales_store)


@pytest.fixture
def broken_store():
    return BrokenStore()

"""menu catalog: the list of things that can be ordered"""

import logging

from bistro_pos.config import FIELD_DELIMITER
from bistro_pos.helpers import to_money
from bistro_pos.models import CatalogEntry, MenuItem
from bistro_pos.storage import MenuStore

logger = logging.getLogger(__name__)


class MenuCatalog:
    """ordered menu entries with popularity counters"""
    def __init__(self, entries: list[CatalogEntry] | None = None, store: MenuStore | None = None):
        self._entries: list[CatalogEntry] = list(entries or [])
        self.store = store

    @classmethod
    def from_store(cls, store: MenuStore) -> "MenuCatalog":
        """load the catalog from its file"""
        catalog = cls(store.load(), store)
        logger.info("loaded %d menu items from %s", len(catalog), store.path)
        return catalog

    def __len__(self):
        return len(self._entries)

    def items(self) -> tuple[CatalogEntry, ...]:
        return tuple(self._entries)

    def get(self, index: int) -> CatalogEntry | None:
        """entry at 0-based position, none if out of range"""
        if 0 <= index < len(self._entries):
            return self._entries[index]
        return None

    def find(self, name: str) -> CatalogEntry | None:
        """exact name lookup, case-insensitive"""
        return next((e for e in self._entries if e.item.name.lower() == name.strip().lower()), None)

    def search(self, term: str) -> list[tuple[int, CatalogEntry]]:
        """(index, entry) pairs whose name or category contains term, case-insensitive"""
        term = term.strip().lower()
        return [
            (i, e) for i, e in enumerate(self._entries)
            if term in e.item.name.lower() or term in e.item.category.lower()
        ]

    def add_item(self, name: str, category: str, price) -> CatalogEntry:
        """validate and append a new item; raises valueerror on bad input"""
        name, category = name.strip(), category.strip()
        if FIELD_DELIMITER in name or FIELD_DELIMITER in category:
            raise ValueError(f"names cannot contain '{FIELD_DELIMITER}'")
        if self.find(name):
            raise ValueError(f"'{name}' is already on the menu")
        entry = CatalogEntry(MenuItem(name, category, to_money(price)))
        self._entries.append(entry)
        return entry

    def remove_item(self, index: int) -> CatalogEntry | None:
        """drop entry at 0-based position; existing orders keep their copies"""
        if self.get(index) is None:
            return None
        return self._entries.pop(index)

    def record_order(self, index: int, quantity: int):
        """bump the popularity counter of an entry"""
        self._entries[index].times_ordered += quantity

    def save(self):
        """write the catalog out; raises persistenceerror"""
        if self.store is not None:
            self.store.save(self._entries)

"""order ledger: order history, the current order and the order lifecycle

every public operation returns a Result instead of raising; the outcome says
what happened and doubles as the message shown to the user.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from bistro_pos.config import MAX_QUANTITY
from bistro_pos.menu import MenuCatalog
from bistro_pos.models import Order, OrderLine, OrderView
from bistro_pos.storage import PersistenceError, SalesStore

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """result of a ledger operation"""
    OK = "ok"
    BLOCKED = "finish or pay the current order first"
    NO_CURRENT_ORDER = "no active order, start one first"
    ORDER_CLOSED = "current order is already closed"
    ALREADY_PAID = "order already paid, it cannot be cancelled"
    INVALID_ITEM = "invalid item number"
    INVALID_QUANTITY = "quantity must be at least 1"
    QUANTITY_TOO_LARGE = f"quantity cannot be more than {MAX_QUANTITY} at a time"
    INVALID_LINE = "invalid line number"
    EMPTY_ORDER = "order is empty, add items first"
    DISCOUNT_IGNORED = "discount must be between 0 and 100, line left unchanged"


@dataclass(frozen=True)
class Result:
    """outcome of a ledger operation plus whatever it produced"""
    outcome: Outcome
    order_id: int | None = None
    value: Any = None
    warnings: tuple[str, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.OK, Outcome.DISCOUNT_IGNORED)

    @property
    def message(self) -> str:
        return self.outcome.value


class IdAllocator:
    """hands out increasing order ids, never reusing one"""
    def __init__(self, next_id: int = 1):
        self.next_id = next_id

    def allocate(self) -> int:
        oid = self.next_id
        self.next_id += 1
        return oid

    def observe(self, oid: int):
        """keep the counter ahead of an id that already exists"""
        if oid >= self.next_id:
            self.next_id = oid + 1


class OrderLedger:
    """all orders ever created, plus the one currently being built"""
    def __init__(self, catalog: MenuCatalog, store: SalesStore | None = None):
        self.catalog = catalog
        self.store = store
        self._orders: list[Order] = []
        self._current: Order | None = None
        self._ids = IdAllocator()

    @classmethod
    def from_store(cls, catalog: MenuCatalog, store: SalesStore) -> "OrderLedger":
        """load order history from its file"""
        ledger = cls(catalog, store)
        ledger.restore(store.load())
        return ledger

    def restore(self, orders: Iterable[Order]):
        """replace history with previously saved orders

        ids are kept as stored and the allocator moves past the largest one.
        if the last saved order is still active it becomes current again.
        """
        self._orders = list(orders)
        self._ids = IdAllocator()
        for order in self._orders:
            self._ids.observe(order.id)
        self._current = None
        if self._orders and self._orders[-1].is_active:
            self._current = self._orders[-1]
            logger.info("resuming order #%d", self._current.id)
        logger.info("restored %d orders, next id %d", len(self._orders), self._ids.next_id)

    # persistence
    def _persist(self, catalog_changed: bool = False) -> tuple[str, ...]:
        """write ledger (and catalog) out; failures become warnings, memory stays as is"""
        warnings = []
        saves = [("sales", self._save_orders)]
        if catalog_changed:
            saves.append(("menu", self.catalog.save))
        for label, save in saves:
            try:
                save()
            except PersistenceError as e:
                logger.exception("failed to save %s data", label)
                warnings.append(f"{label} data not saved: {e}")
        return tuple(warnings)

    def _save_orders(self):
        if self.store is not None:
            self.store.save(self._orders)

    # guards
    def _open_order(self) -> tuple[Order | None, Outcome]:
        """current order if it can still be changed"""
        if self._current is None:
            return None, Outcome.NO_CURRENT_ORDER
        if not self._current.is_active:
            return None, Outcome.ORDER_CLOSED
        return self._current, Outcome.OK

    # lifecycle
    def new_order(self) -> Result:
        """start a new order and make it current"""
        if self._current is not None and self._current.is_active:
            return Result(Outcome.BLOCKED, self._current.id)
        order = Order(self._ids.allocate())
        self._orders.append(order)
        self._current = order
        logger.info("order #%d started", order.id)
        return Result(Outcome.OK, order.id, warnings=self._persist())

    def add_line(self, item_index: int, quantity: int) -> Result:
        """add quantity x catalog item (0-based) to the current order"""
        order, outcome = self._open_order()
        if order is None:
            return Result(outcome)
        entry = self.catalog.get(item_index)
        if entry is None:
            return Result(Outcome.INVALID_ITEM, order.id)
        if quantity < 1:
            return Result(Outcome.INVALID_QUANTITY, order.id)
        if quantity > MAX_QUANTITY:
            return Result(Outcome.QUANTITY_TOO_LARGE, order.id)
        line = OrderLine(entry.item, quantity)
        order.add_line(line)
        self.catalog.record_order(item_index, quantity)
        logger.info("order #%d: added %dx %s", order.id, quantity, entry.item.name)
        return Result(Outcome.OK, order.id, line.copy(), self._persist(catalog_changed=True))

    def remove_line(self, line_index: int) -> Result:
        """drop a line (0-based) from the current order"""
        order, outcome = self._open_order()
        if order is None:
            return Result(outcome)
        if not 0 <= line_index < len(order.lines):
            return Result(Outcome.INVALID_LINE, order.id)
        line = order.remove_line(line_index)
        logger.info("order #%d: removed %dx %s", order.id, line.quantity, line.item.name)
        return Result(Outcome.OK, order.id, line, self._persist())

    def apply_discount(self, line_index: int, percent) -> Result:
        """set the discount percentage of a line (0-based)

        a percentage outside 0-100 is not an error: the line keeps its old
        discount and the outcome is DISCOUNT_IGNORED.
        """
        order, outcome = self._open_order()
        if order is None:
            return Result(outcome)
        if not 0 <= line_index < len(order.lines):
            return Result(Outcome.INVALID_LINE, order.id)
        if not order.apply_discount(line_index, percent):
            return Result(Outcome.DISCOUNT_IGNORED, order.id, order.lines[line_index].copy())
        line = order.lines[line_index]
        logger.info("order #%d: %s%% off %s", order.id, line.discount, line.item.name)
        return Result(Outcome.OK, order.id, line.copy(), self._persist())

    def pay(self) -> Result:
        """settle the current order; value is the amount charged"""
        order, outcome = self._open_order()
        if order is None:
            return Result(outcome)
        if not order.lines:
            return Result(Outcome.EMPTY_ORDER, order.id)
        order.mark_paid()
        self._current = None
        total = order.total()
        logger.info("order #%d paid: %s", order.id, total)
        return Result(Outcome.OK, order.id, total, self._persist())

    def cancel_current(self) -> Result:
        """cancel the current order, dropping its lines"""
        if self._current is None:
            return Result(Outcome.NO_CURRENT_ORDER)
        order = self._current
        if order.is_paid:
            return Result(Outcome.ALREADY_PAID, order.id)
        if order.is_cancelled:
            self._current = None
            return Result(Outcome.ORDER_CLOSED, order.id)
        order.cancel()
        self._current = None
        logger.info("order #%d cancelled", order.id)
        return Result(Outcome.OK, order.id, warnings=self._persist())

    # read-only views
    def current_order(self) -> OrderView | None:
        return self._current.snapshot() if self._current else None

    def all_orders(self) -> tuple[OrderView, ...]:
        return tuple(o.snapshot() for o in self._orders)

    def unpaid_orders(self) -> tuple[OrderView, ...]:
        """active orders only; cancelled ones are not unpaid"""
        return tuple(o.snapshot() for o in self._orders if o.is_active)

    def find_order(self, order_id: int) -> OrderView | None:
        return next((o.snapshot() for o in self._orders if o.id == order_id), None)

    def orders(self) -> tuple[Order, ...]:
        """the live orders, for read-only aggregation"""
        return tuple(self._orders)

    @property
    def next_id(self) -> int:
        return self._ids.next_id

    def __len__(self):
        return len(self._orders)

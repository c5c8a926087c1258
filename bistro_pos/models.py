"""domain models: menu item snapshots, order lines, orders"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from bistro_pos.config import MAX_PRICE, MAX_QUANTITY
from bistro_pos.helpers import round_cents, to_money


class OrderStateError(Exception):
    """raised when a terminal order is mutated directly"""


@dataclass(frozen=True)
class MenuItem:
    """name / category / price of something on the menu; copied into order lines"""
    name: str
    category: str
    price: Decimal

    def __post_init__(self):
        if not self.name.strip():
            raise ValueError("menu item name cannot be empty")
        if not self.category.strip():
            raise ValueError("menu item category cannot be empty")
        price = to_money(self.price)
        if not price.is_finite():
            raise ValueError(f"menu item price must be a number, got {price}")
        if price < 0:
            raise ValueError("menu item price cannot be negative")
        if price > MAX_PRICE:
            raise ValueError(f"menu item price cannot be above {MAX_PRICE}")
        object.__setattr__(self, "price", price)


@dataclass
class CatalogEntry:
    """a menu item plus how many times it has been ordered"""
    item: MenuItem
    times_ordered: int = 0


def _valid_discount(percent: Decimal) -> bool:
    return percent.is_finite() and 0 <= percent <= 100


class OrderLine:
    """one menu item + quantity + discount entry within an order"""

    def __init__(self, item: MenuItem, quantity: int, discount: Decimal | int = 0):
        if not 1 <= quantity <= MAX_QUANTITY:
            raise ValueError(f"quantity must be between 1 and {MAX_QUANTITY}")
        self.item = item
        self.quantity = quantity
        self._discount = Decimal(0)
        self.discount = discount

    @property
    def discount(self) -> Decimal:
        """discount percentage, 0-100"""
        return self._discount

    @discount.setter
    def discount(self, percent):
        # out of range values are ignored, the old value stays
        percent = to_money(percent)
        if _valid_discount(percent):
            self._discount = percent

    @property
    def original_subtotal(self) -> Decimal:
        return self.item.price * self.quantity

    @property
    def subtotal(self) -> Decimal:
        return round_cents(self.original_subtotal * (1 - self._discount / 100))

    def copy(self) -> "OrderLine":
        return OrderLine(self.item, self.quantity, self._discount)

    def __eq__(self, other):
        if not isinstance(other, OrderLine):
            return NotImplemented
        return (self.item, self.quantity, self._discount) == (other.item, other.quantity, other._discount)

    def __repr__(self):
        return f"OrderLine({self.quantity}x {self.item.name!r} @ {self.item.price}, -{self._discount}%)"


class OrderStatus(Enum):
    """order lifecycle"""
    ACTIVE = "active"
    PAID = "paid"
    CANCELLED = "cancelled"


@dataclass
class Order:
    """one customer transaction"""
    id: int
    lines: list[OrderLine] = field(default_factory=list)
    status: OrderStatus = OrderStatus.ACTIVE
    created_at: datetime = field(default_factory=datetime.now)
    paid_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status is OrderStatus.ACTIVE

    @property
    def is_paid(self) -> bool:
        return self.status is OrderStatus.PAID

    @property
    def is_cancelled(self) -> bool:
        return self.status is OrderStatus.CANCELLED

    def _require_active(self):
        if not self.is_active:
            raise OrderStateError(f"order #{self.id} is {self.status.value}")

    def add_line(self, line: OrderLine):
        self._require_active()
        self.lines.append(line)

    def remove_line(self, index: int) -> OrderLine:
        self._require_active()
        return self.lines.pop(index)

    def apply_discount(self, index: int, percent) -> bool:
        """set a line discount; false if the value was out of range and ignored"""
        self._require_active()
        percent = to_money(percent)
        if not _valid_discount(percent):
            return False
        self.lines[index].discount = percent
        return True

    def mark_paid(self, when: datetime | None = None):
        self._require_active()
        self.status = OrderStatus.PAID
        self.paid_at = when or datetime.now()

    def cancel(self):
        """cancel and drop every line; not reversible"""
        self._require_active()
        self.status = OrderStatus.CANCELLED
        self.lines.clear()

    def total(self) -> Decimal:
        """sum of line subtotals after discount"""
        return sum((line.subtotal for line in self.lines), Decimal(0))

    def original_total(self) -> Decimal:
        """sum of line subtotals before discount"""
        return sum((line.original_subtotal for line in self.lines), Decimal(0))

    def discount_total(self) -> Decimal:
        return self.original_total() - self.total()

    def snapshot(self) -> "OrderView":
        return OrderView(
            id=self.id,
            status=self.status,
            lines=tuple(line.copy() for line in self.lines),
            created_at=self.created_at,
            paid_at=self.paid_at,
        )


@dataclass(frozen=True)
class OrderView:
    """detached, read-only copy of an order for display"""
    id: int
    status: OrderStatus
    lines: tuple[OrderLine, ...]
    created_at: datetime
    paid_at: datetime | None

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal(0))

    def original_total(self) -> Decimal:
        return sum((line.original_subtotal for line in self.lines), Decimal(0))

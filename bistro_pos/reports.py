"""read-only sales reports derived from the order ledger"""

from dataclasses import dataclass
from decimal import Decimal

from bistro_pos.config import TOP_ITEMS_LIMIT
from bistro_pos.helpers import round_cents
from bistro_pos.ledger import OrderLedger
from bistro_pos.menu import MenuCatalog
from bistro_pos.models import CatalogEntry, OrderStatus


@dataclass(frozen=True)
class SalesSummary:
    """order counts and money totals across the whole ledger"""
    total_orders: int = 0
    paid_orders: int = 0
    unpaid_orders: int = 0
    cancelled_orders: int = 0
    revenue: Decimal = Decimal(0)
    discount_given: Decimal = Decimal(0)
    paid_lines: int = 0
    unpaid_lines: int = 0


@dataclass(frozen=True)
class OrderValueStats:
    """spread of paid order totals"""
    count: int
    average: Decimal
    minimum: Decimal
    maximum: Decimal


@dataclass(frozen=True)
class DiscountUsage:
    """paid orders with at least one discounted line"""
    discounted: int
    total: int

    @property
    def percent(self) -> float:
        return self.discounted / self.total * 100 if self.total else 0.0


class ReportingEngine:
    """aggregate views over a ledger; never changes it"""
    def __init__(self, ledger: OrderLedger):
        self.ledger = ledger

    def summary(self) -> SalesSummary:
        """counts, revenue and discounts in one pass"""
        counts = {status: 0 for status in OrderStatus}
        revenue = discount = Decimal(0)
        paid_lines = unpaid_lines = 0
        orders = self.ledger.orders()
        for order in orders:
            counts[order.status] += 1
            if order.is_paid:
                revenue += order.total()
                discount += order.discount_total()
                paid_lines += len(order.lines)
            elif order.is_active:
                unpaid_lines += len(order.lines)
        return SalesSummary(
            total_orders=len(orders),
            paid_orders=counts[OrderStatus.PAID],
            unpaid_orders=counts[OrderStatus.ACTIVE],
            cancelled_orders=counts[OrderStatus.CANCELLED],
            revenue=revenue,
            discount_given=discount,
            paid_lines=paid_lines,
            unpaid_lines=unpaid_lines,
        )

    def revenue_by_category(self) -> dict[str, Decimal]:
        """paid revenue per category, in the order categories were first sold"""
        totals: dict[str, Decimal] = {}
        for order in self.ledger.orders():
            if not order.is_paid:
                continue
            for line in order.lines:
                category = line.item.category
                totals[category] = totals.get(category, Decimal(0)) + line.subtotal
        return totals

    def order_value_stats(self) -> OrderValueStats | None:
        """avg / min / max of paid order totals, none without paid orders"""
        totals = [o.total() for o in self.ledger.orders() if o.is_paid]
        if not totals:
            return None
        return OrderValueStats(
            count=len(totals),
            average=round_cents(sum(totals, Decimal(0)) / len(totals)),
            minimum=min(totals),
            maximum=max(totals),
        )

    def discount_usage(self) -> DiscountUsage:
        paid = [o for o in self.ledger.orders() if o.is_paid]
        discounted = sum(1 for o in paid if any(line.discount > 0 for line in o.lines))
        return DiscountUsage(discounted, len(paid))

    @staticmethod
    def top_items(catalog: MenuCatalog, limit: int = TOP_ITEMS_LIMIT) -> list[CatalogEntry]:
        """most ordered menu items, never-ordered ones left out"""
        ordered = [e for e in catalog.items() if e.times_ordered > 0]
        ordered.sort(key=lambda e: (-e.times_ordered, e.item.name.lower()))
        return ordered[:limit]

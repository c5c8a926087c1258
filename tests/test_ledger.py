from decimal import Decimal

from bistro_pos.ledger import IdAllocator, OrderLedger, Outcome
from bistro_pos.models import Order, OrderLine, OrderStatus


def test_new_order_allocates_sequential_ids(ledger):
    first = ledger.new_order()
    assert first.ok and first.order_id == 1
    ledger.add_line(0, 1)
    ledger.pay()
    assert ledger.new_order().order_id == 2


def test_new_order_blocked_while_current_active(ledger):
    ledger.new_order()
    before = (len(ledger), ledger.current_order().id, ledger.next_id)
    result = ledger.new_order()
    assert result.outcome is Outcome.BLOCKED
    assert not result.ok
    assert result.order_id == 1
    assert (len(ledger), ledger.current_order().id, ledger.next_id) == before


def test_add_line_snapshots_item_and_counts_popularity(ledger, catalog):
    ledger.new_order()
    result = ledger.add_line(0, 2)
    assert result.ok
    assert catalog.get(0).times_ordered == 2
    line = ledger.current_order().lines[0]
    assert line.item == catalog.get(0).item
    assert line.quantity == 2


def test_menu_edits_do_not_touch_existing_lines(ledger, catalog):
    ledger.new_order()
    ledger.add_line(0, 1)
    catalog.remove_item(0)
    assert ledger.current_order().lines[0].item.name == "Burger"


def test_add_line_preconditions(ledger, catalog):
    assert ledger.add_line(0, 1).outcome is Outcome.NO_CURRENT_ORDER
    ledger.new_order()
    assert ledger.add_line(99, 1).outcome is Outcome.INVALID_ITEM
    assert ledger.add_line(-1, 1).outcome is Outcome.INVALID_ITEM
    assert ledger.add_line(0, 0).outcome is Outcome.INVALID_QUANTITY
    assert ledger.add_line(0, -3).outcome is Outcome.INVALID_QUANTITY
    assert ledger.current_order().lines == ()
    assert catalog.get(0).times_ordered == 0


def test_remove_line(ledger):
    ledger.new_order()
    ledger.add_line(0, 1)
    ledger.add_line(1, 1)
    result = ledger.remove_line(0)
    assert result.ok
    assert result.value.item.name == "Burger"
    assert [line.item.name for line in ledger.current_order().lines] == ["Lemonade"]
    assert ledger.remove_line(5).outcome is Outcome.INVALID_LINE


def test_apply_discount_in_range(ledger):
    ledger.new_order()
    ledger.add_line(0, 2)
    result = ledger.apply_discount(0, 25)
    assert result.outcome is Outcome.OK
    assert ledger.current_order().lines[0].subtotal == Decimal("15.00")


def test_apply_discount_out_of_range_leaves_line_unchanged(ledger):
    ledger.new_order()
    ledger.add_line(0, 2)
    ledger.apply_discount(0, 10)
    result = ledger.apply_discount(0, 150)
    assert result.ok
    assert result.outcome is Outcome.DISCOUNT_IGNORED
    line = ledger.current_order().lines[0]
    assert line.discount == 10
    assert line.subtotal == Decimal("18.00")


def test_apply_discount_bad_line(ledger):
    ledger.new_order()
    assert ledger.apply_discount(0, 10).outcome is Outcome.INVALID_LINE


def test_pay_returns_total_and_clears_current(ledger):
    ledger.new_order()
    ledger.add_line(0, 1)
    result = ledger.pay()
    assert result.ok and result.value == Decimal("10.00")
    assert ledger.current_order() is None
    paid = ledger.find_order(1)
    assert paid.status is OrderStatus.PAID
    assert paid.paid_at is not None


def test_pay_twice_fails_and_keeps_record(ledger):
    ledger.new_order()
    ledger.add_line(1, 2)
    ledger.pay()
    before = ledger.find_order(1)
    second = ledger.pay()
    assert not second.ok
    assert second.outcome is Outcome.NO_CURRENT_ORDER
    after = ledger.find_order(1)
    assert after.total() == before.total()
    assert after.paid_at == before.paid_at


def test_pay_empty_order(ledger):
    ledger.new_order()
    result = ledger.pay()
    assert result.outcome is Outcome.EMPTY_ORDER
    assert ledger.current_order().status is OrderStatus.ACTIVE


def test_cancel_current_clears_lines(ledger):
    ledger.new_order()
    for index in range(3):
        ledger.add_line(index, 1)
    result = ledger.cancel_current()
    assert result.ok
    view = ledger.find_order(1)
    assert view.status is OrderStatus.CANCELLED
    assert view.lines == ()
    assert view.total() == 0
    assert ledger.current_order() is None
    assert ledger.new_order().order_id == 2


def test_cancel_without_current(ledger):
    assert ledger.cancel_current().outcome is Outcome.NO_CURRENT_ORDER


def test_cancel_restored_paid_current_is_rejected(ledger, catalog):
    # a paid order can only be current if something external put it there
    order = Order(4, [OrderLine(catalog.get(0).item, 1)])
    ledger.restore([order])
    order.mark_paid()
    result = ledger.cancel_current()
    assert result.outcome is Outcome.ALREADY_PAID
    assert ledger.current_order().id == 4
    assert ledger.current_order().status is OrderStatus.PAID


def test_closed_current_cannot_be_mutated(ledger, catalog):
    order = Order(2, [OrderLine(catalog.get(0).item, 1)])
    ledger.restore([order])
    order.mark_paid()
    assert ledger.add_line(0, 1).outcome is Outcome.ORDER_CLOSED
    assert ledger.remove_line(0).outcome is Outcome.ORDER_CLOSED
    assert ledger.apply_discount(0, 5).outcome is Outcome.ORDER_CLOSED
    assert ledger.pay().outcome is Outcome.ORDER_CLOSED


def test_unpaid_orders_excludes_paid_and_cancelled(ledger):
    ledger.new_order()
    ledger.add_line(0, 1)
    ledger.pay()
    ledger.new_order()
    ledger.cancel_current()
    ledger.new_order()
    assert [v.id for v in ledger.unpaid_orders()] == [3]
    assert [v.id for v in ledger.all_orders()] == [1, 2, 3]


def test_current_order_view_is_a_copy(ledger):
    ledger.new_order()
    ledger.add_line(0, 1)
    view = ledger.current_order()
    view.lines[0].discount = 90
    assert ledger.current_order().lines[0].discount == 0


def test_restore_reseeds_ids_and_resumes_last_active(ledger, catalog):
    item = catalog.get(0).item
    paid = Order(3, [OrderLine(item, 1)], OrderStatus.PAID)
    active = Order(9, [OrderLine(item, 2)])
    ledger.restore([paid, active])
    assert ledger.current_order().id == 9
    assert ledger.next_id == 10
    ledger.add_line(1, 1)
    ledger.pay()
    assert ledger.new_order().order_id == 10


def test_restore_does_not_resume_closed_last_order(ledger, catalog):
    active = Order(1)
    cancelled = Order(2, status=OrderStatus.CANCELLED)
    ledger.restore([active, cancelled])
    assert ledger.current_order() is None
    assert ledger.new_order().order_id == 3


def test_ledgers_have_independent_counters(catalog):
    a, b = OrderLedger(catalog), OrderLedger(catalog)
    a.new_order()
    assert b.new_order().order_id == 1


def test_id_allocator_never_goes_back():
    ids = IdAllocator()
    ids.observe(5)
    ids.observe(2)
    assert ids.allocate() == 6
    assert ids.allocate() == 7


def test_persistence_failure_is_reported_not_raised(catalog, broken_store):
    ledger = OrderLedger(catalog, broken_store)
    result = ledger.new_order()
    assert result.ok
    assert result.warnings and "not saved" in result.warnings[0]
    assert ledger.current_order().id == 1
    assert ledger.add_line(0, 1).ok
    assert len(ledger.current_order().lines) == 1


def test_mutations_write_through(stored_ledger, sales_store, menu_store):
    stored_ledger.new_order()
    stored_ledger.add_line(0, 2)
    assert "ORDER|1|false|false" in sales_store.path.read_text()
    assert menu_store.path.read_text().splitlines()[0] == "Burger|Mains|10.00|2"


def test_end_to_end_scenario(catalog):
    from bistro_pos.reports import ReportingEngine

    ledger = OrderLedger(catalog)
    assert ledger.new_order().order_id == 1
    ledger.add_line(0, 2)
    ledger.add_line(1, 1)
    assert [(l.quantity, l.item.name) for l in ledger.current_order().lines] == [(2, "Burger"), (1, "Lemonade")]
    ledger.apply_discount(0, 50)
    assert ledger.current_order().lines[0].subtotal == Decimal("10.00")
    result = ledger.pay()
    assert result.value == Decimal("15.00")
    assert ledger.current_order() is None
    summary = ReportingEngine(ledger).summary()
    assert summary.total_orders == 1
    assert summary.paid_orders == 1
    assert summary.revenue == Decimal("15.00")
    assert summary.discount_given == Decimal("10.00")


def test_add_line_rejects_huge_quantity(ledger, catalog):
    ledger.new_order()
    result = ledger.add_line(0, 10**26)
    assert result.outcome is Outcome.QUANTITY_TOO_LARGE
    assert not result.ok
    assert ledger.current_order().lines == ()
    assert ledger.current_order().total() == 0
    assert catalog.get(0).times_ordered == 0
    assert ledger.add_line(0, 1000).ok


def test_apply_discount_nan_is_ignored(ledger):
    ledger.new_order()
    ledger.add_line(0, 1)
    result = ledger.apply_discount(0, float("nan"))
    assert result.outcome is Outcome.DISCOUNT_IGNORED
    assert ledger.current_order().lines[0].discount == 0

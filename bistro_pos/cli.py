"""interactive shell: commands, repl and application wiring

numbers typed by the user (menu items, order lines) are 1-based; they are
turned into 0-based positions before reaching the catalog or the ledger.
"""

import inspect
import logging
import signal
import sys
from pathlib import Path
from typing import Callable

from termcolor import cprint, colored
from colorama import just_fix_windows_console as enable_windows_ansi_interpretation

from bistro_pos import config
from bistro_pos.helpers import (
    color_money, configure_logging, format_money, parse_boolean_input, safe_decimal, safe_int,
)
from bistro_pos.ledger import OrderLedger, Outcome, Result
from bistro_pos.menu import MenuCatalog
from bistro_pos.models import OrderStatus, OrderView
from bistro_pos.reports import ReportingEngine
from bistro_pos.storage import MenuStore, PersistenceError, SalesStore

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    OrderStatus.ACTIVE: "yellow",
    OrderStatus.PAID: "green",
    OrderStatus.CANCELLED: "red",
}


def _percent(value) -> str:
    return f"{value.normalize():f}"


def report_result(result: Result, success: str | None = None) -> bool:
    """print the outcome of a ledger call; true if it went through"""
    if result.outcome is Outcome.OK:
        if success:
            cprint(success, "green")
    elif result.ok:
        cprint(result.message, "yellow")
    else:
        cprint(result.message, "red")
    for warning in result.warnings:
        cprint(f"warning: {warning}", "yellow")
    return result.ok


def print_order(view: OrderView):
    """print one order with its lines"""
    cprint(f"order #{view.id} [{view.status.value}]", STATUS_COLORS[view.status], attrs=["bold"])
    if not view.lines:
        print("\t(empty)")
    for i, line in enumerate(view.lines, start=1):
        off = f" -{_percent(line.discount)}%" if line.discount else ""
        print(f"\t{i}. {line.quantity}x {line.item.name} @ {format_money(line.item.price)}{off}"
              f" = {color_money(line.subtotal)}")
    total = view.total()
    if view.original_total() != total:
        print(f"\ttotal: {color_money(total)} (was {format_money(view.original_total())})")
    else:
        print(f"\ttotal: {color_money(total)}")
    print(f"\tcreated: {view.created_at:%Y-%m-%d %H:%M}")
    if view.paid_at:
        print(f"\tpaid: {view.paid_at:%Y-%m-%d %H:%M}")


# menu commands
class MenuConsole:
    """menu browsing and editing"""
    def __init__(self, catalog: MenuCatalog):
        self.catalog = catalog

    def _save(self):
        try:
            self.catalog.save()
        except PersistenceError as e:
            logger.exception("failed to save menu")
            cprint(f"warning: menu not saved: {e}", "yellow")

    def show_menu(self):
        """print the menu with item numbers"""
        if not len(self.catalog):
            cprint("menu empty", "red"); return
        cprint(f"  {'#':>3}  {'name':<22} {'category':<12} {'price':>8}  sold", attrs=["bold"])
        for i, entry in enumerate(self.catalog.items(), start=1):
            self._print_entry(i, entry)

    @staticmethod
    def _print_entry(number, entry):
        item = entry.item
        print(f"  {number:>3}. {item.name:<22} {item.category:<12} "
              f"{colored(f'{format_money(item.price):>8}', 'green')}  {entry.times_ordered}")

    def add_item(self, name: str | None = None, category: str | None = None, price: str | None = None):
        """add a menu item"""
        if name is None:
            name = input("item name: ").strip()
        if category is None:
            category = input("category: ").strip()
        if price is None:
            price = input("price: ").strip()
        p = safe_decimal(price, minimum=0)
        if p is None:
            cprint("invalid price", "red"); return
        try:
            entry = self.catalog.add_item(name, category, p)
        except ValueError as e:
            cprint(str(e), "red"); return
        self._save()
        cprint(f"{entry.item.name} added to the menu", "green")

    def remove_item(self, number: str | None = None):
        """remove a menu item by its number"""
        if number is None:
            self.show_menu()
            if not len(self.catalog):
                return
            number = input("item # to remove: ").strip()
        n = safe_int(number, minimum=1)
        entry = self.catalog.remove_item(n - 1) if n is not None else None
        if entry is None:
            cprint("invalid item number", "red"); return
        self._save()
        cprint(f"{entry.item.name} removed", "green")

    def search(self, term: str | None = None):
        """search menu by name or category"""
        if term is None:
            term = input("search for: ").strip()
        hits = self.catalog.search(term)
        if not hits:
            cprint("no matching items", "yellow"); return
        for i, entry in hits:
            self._print_entry(i + 1, entry)


# order + report commands
class OrderConsole:
    """order taking, payment and sales reports"""
    def __init__(self, ledger: OrderLedger, menu_console: MenuConsole):
        self.ledger = ledger
        self.menu_console = menu_console
        self.reports = ReportingEngine(ledger)

    def new_order(self):
        """start a new order"""
        result = self.ledger.new_order()
        if result.outcome is Outcome.BLOCKED:
            cprint(f"{result.message} (order #{result.order_id})", "red")
            return
        report_result(result, f"order #{result.order_id} started")

    def add_item(self, item: str | None = None, quantity: str | None = None):
        """add a menu item to the current order"""
        if item is None:
            self.menu_console.show_menu()
            item = input("item #: ").strip()
        n = safe_int(item, minimum=1)
        if n is None:
            cprint(Outcome.INVALID_ITEM.value, "red"); return
        if quantity is None:
            quantity = input("quantity: ").strip()
        qty = safe_int(quantity)
        if qty is None:
            cprint("invalid quantity", "red"); return
        result = self.ledger.add_line(n - 1, qty)
        if result.ok:
            line = result.value
            report_result(result, f"added {line.quantity}x {line.item.name} to order #{result.order_id}")
        else:
            report_result(result)

    def remove_item(self, line: str | None = None):
        """remove a line from the current order"""
        if line is None:
            if not self.view_current():
                return
            line = input("line # to remove: ").strip()
        n = safe_int(line, minimum=1)
        if n is None:
            cprint(Outcome.INVALID_LINE.value, "red"); return
        result = self.ledger.remove_line(n - 1)
        if result.ok:
            report_result(result, f"removed {result.value.quantity}x {result.value.item.name}")
        else:
            report_result(result)

    def discount(self, line: str | None = None, percent: str | None = None):
        """discount a line of the current order by a percentage"""
        if line is None:
            if not self.view_current():
                return
            line = input("line # to discount: ").strip()
        n = safe_int(line, minimum=1)
        if n is None:
            cprint(Outcome.INVALID_LINE.value, "red"); return
        if percent is None:
            percent = input("discount % (0-100): ").strip()
        pct = safe_decimal(percent)
        if pct is None:
            cprint("invalid percentage", "red"); return
        result = self.ledger.apply_discount(n - 1, pct)
        if result.ok:
            report_result(result, f"{_percent(pct)}% off line {n}, now {format_money(result.value.subtotal)}")
        else:
            report_result(result)

    def view_current(self) -> bool:
        """show the order being built"""
        view = self.ledger.current_order()
        if view is None:
            cprint("no active order", "yellow")
            return False
        print_order(view)
        return True

    def show_order(self, order_id: str):
        """show any order by id"""
        oid = safe_int(order_id, minimum=1)
        view = self.ledger.find_order(oid) if oid is not None else None
        if view is None:
            cprint("order not found", "red"); return
        print_order(view)

    def pay(self):
        """take payment for the current order"""
        view = self.ledger.current_order()
        if view is not None and view.status is OrderStatus.ACTIVE and view.lines:
            print(f"total for order #{view.id} is {color_money(view.total())}.")
            ans = input("pay now? (y/N): ")
            if not parse_boolean_input(ans):
                cprint("payment cancelled", "yellow"); return
        result = self.ledger.pay()
        if result.ok:
            report_result(result, f"payment of {format_money(result.value)} received for order #{result.order_id}")
        else:
            report_result(result)

    def cancel(self):
        """cancel the current order"""
        view = self.ledger.current_order()
        if view is not None and view.status is OrderStatus.ACTIVE:
            ans = input(colored(f"cancel order #{view.id}? its items will be dropped. (y/N): ", "red"))
            if not parse_boolean_input(ans):
                cprint("order kept", "yellow"); return
        result = self.ledger.cancel_current()
        report_result(result, f"order #{result.order_id} cancelled")

    def list_orders(self):
        """list every order"""
        views = self.ledger.all_orders()
        if not views:
            cprint("no orders yet", "red"); return
        for view in views:
            print_order(view)

    def list_unpaid(self):
        """list orders still open"""
        views = self.ledger.unpaid_orders()
        if not views:
            cprint("no unpaid orders", "green"); return
        for view in views:
            print_order(view)

    # reports
    def summary(self):
        """sales summary"""
        s = self.reports.summary()
        cprint("sales summary", "green", attrs=["bold"])
        print(f"  total orders  : {s.total_orders}")
        print(f"  paid          : {s.paid_orders} ({s.paid_lines} lines)")
        print(f"  unpaid        : {s.unpaid_orders} ({s.unpaid_lines} lines)")
        print(f"  cancelled     : {s.cancelled_orders}")
        print(f"  revenue       : {color_money(s.revenue)}")
        if s.discount_given:
            print(f"  discounts     : {format_money(s.discount_given)}")

    def revenue_by_category(self):
        """paid revenue per category"""
        totals = self.reports.revenue_by_category()
        if not totals:
            cprint("no sales", "red"); return
        cprint("revenue by category", "green", attrs=["bold"])
        width = max(len(c) for c in totals)
        for category, amount in totals.items():
            print(f"  {category:<{width}} : {color_money(amount)}")

    def order_stats(self):
        """avg/min/max paid order value"""
        stats = self.reports.order_value_stats()
        cprint("order value stats", "green", attrs=["bold"])
        if stats is None:
            print("no paid orders"); return
        print(f"orders: {stats.count} | avg {color_money(stats.average)} | "
              f"min {color_money(stats.minimum)} | max {color_money(stats.maximum)}")

    def discount_usage(self):
        """how many paid orders got a discount"""
        usage = self.reports.discount_usage()
        if not usage.total:
            cprint("no paid orders", "red"); return
        cprint("discount usage", "green", attrs=["bold"])
        print(f"{usage.discounted} / {usage.total} paid orders ({usage.percent:.1f}%) had a discount")

    def top_items(self):
        """most ordered menu items"""
        entries = self.reports.top_items(self.ledger.catalog)
        if not entries:
            cprint("no data", "red"); return
        cprint("top menu items", "green", attrs=["bold"])
        for entry in entries:
            print(f"{entry.item.name}: {entry.times_ordered} ordered")


# command infrastructure
class Command:
    """bind a command name to a function"""
    def __init__(self, name: str, function: Callable, description: str):
        self.name = name
        self._fn = function
        self.description = description

    def execute(self, tokens: list[str]):
        """validate arg count and invoke function"""
        sig = inspect.signature(self._fn)
        params = list(sig.parameters.values())
        required = sum(
            p.default == inspect.Parameter.empty and p.kind in (
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                inspect.Parameter.POSITIONAL_ONLY
            )
            for p in params
        )
        if not (required <= len(tokens) <= len(params)):
            cprint(f"invalid args for '{self.name}' (expected {required}-{len(params)}, got {len(tokens)})", "red")
            return
        return self._fn(*tokens)


class CommandParser:
    """simple repl parser"""
    def __init__(self):
        self.commands: list[Command] = [
            Command("help", self.show_help, "show this help"),
            Command("h", self.show_help, "alias help"),
            Command("quit", self.quit, "exit program"),
            Command("exit", self.quit, "alias quit"),
        ]

    def parse_and_execute(self, input_str: str):
        """parse the raw input string and attempt to execute a command"""
        tokens = input_str.strip().split()
        if not tokens:
            return
        # longest name first so "menu add" wins over "menu"
        for cmd in sorted(self.commands, key=lambda c: -len(c.name.split())):
            parts = cmd.name.split()
            if [t.lower() for t in tokens[:len(parts)]] != parts:
                continue
            return cmd.execute(tokens[len(parts):])
        cprint("unknown command. type 'help'", "red")

    def show_help(self):
        """display help with all available command names and descriptions"""
        cprint("available commands:", "green", attrs=["bold"])
        width = max(len(c.name) for c in self.commands)
        for cmd in self.commands:
            sig = inspect.signature(cmd._fn)
            params = " ".join(
                f"<{p}>" if prm.default == inspect.Parameter.empty else f"[{p}]"
                for p, prm in sig.parameters.items()
            )
            line = f"{colored(cmd.name, 'blue')} {colored(params, 'cyan')}".strip()
            print(line.ljust(width + 25), "-", cmd.description)

    @staticmethod
    def quit():
        """interactive quit confirmation"""
        ans = input(colored("are you sure you want to quit? (y/N): ", "yellow"))
        if parse_boolean_input(ans):
            cprint("goodbye!", "green")
            sys.exit(0)
        cprint("continuing...", "green")

    def start_repl(self):
        """main repl loop"""
        while True:
            try:
                user_input = input(colored("\n> ", "blue")).strip()
            except EOFError:
                print()
                break
            if user_input:
                self.parse_and_execute(user_input)


# application wiring
class Application:
    """load both stores and register every command"""
    def __init__(self, data_dir: str | Path | None = None):
        data_dir = Path(data_dir) if data_dir is not None else None
        menu_store = MenuStore(data_dir / config.MENU_FILE.name if data_dir else config.MENU_FILE)
        sales_store = SalesStore(data_dir / config.SALES_FILE.name if data_dir else config.SALES_FILE)
        self.catalog = MenuCatalog.from_store(menu_store)
        self.ledger = OrderLedger.from_store(self.catalog, sales_store)
        self.menu_console = MenuConsole(self.catalog)
        self.order_console = OrderConsole(self.ledger, self.menu_console)
        self.parser = CommandParser()

        menu, orders = self.menu_console, self.order_console
        self.parser.commands += [
            Command("menu", menu.show_menu, "show menu"),
            Command("menu add", menu.add_item, "add menu item"),
            Command("menu remove", menu.remove_item, "remove menu item"),
            Command("menu search", menu.search, "search menu by name or category"),
            Command("order new", orders.new_order, "start a new order"),
            Command("order add", orders.add_item, "add item to current order"),
            Command("order remove", orders.remove_item, "remove line from current order"),
            Command("order discount", orders.discount, "discount a line (0-100%)"),
            Command("order view", orders.view_current, "show current order"),
            Command("order show", orders.show_order, "show any order by id"),
            Command("order pay", orders.pay, "pay current order"),
            Command("order cancel", orders.cancel, "cancel current order"),
            Command("order list", orders.list_orders, "list all orders"),
            Command("order unpaid", orders.list_unpaid, "list unpaid orders"),
            Command("report summary", orders.summary, "sales summary"),
            Command("report categories", orders.revenue_by_category, "revenue by category"),
            Command("report stats", orders.order_stats, "order value stats"),
            Command("report discounts", orders.discount_usage, "discount usage"),
            Command("report top-items", orders.top_items, "most ordered items"),
        ]

    def run(self, *args: str):
        """greet, run any command given on the command line, then the repl"""
        cprint("\nbistro-pos: restaurant orders & sales\n", "green", attrs=["bold"])
        print("type 'help' or 'h' for commands, 'quit' to exit.")
        current = self.ledger.current_order()
        if current is not None:
            cprint(f"resuming unfinished order #{current.id}", "yellow")
        if args:
            self.parser.parse_and_execute(" ".join(args))
        self.parser.start_repl()


# signal handler
class SignalHandler:
    """ctrl+c handler: everything is already saved, just leave"""
    @staticmethod
    def sigint(_, __):
        """handle ctrl+c"""
        cprint("\nnext time, use quit!", "yellow")
        sys.exit(0)


# entry point
def main():
    """entrypoint wrapper"""
    # fix windows terminal misinterpreting ansi escape sequences
    enable_windows_ansi_interpretation()
    configure_logging()
    signal.signal(signal.SIGINT, SignalHandler.sigint)
    Application().run(*sys.argv[1:])

"""flat-file persistence for the menu catalog and the sales ledger

menu store, one item per line:

    Name|Category|Price|TimesOrdered

sales store, one block per order:

    ORDER|<id>|<paid>|<cancelled>|<createdAt>|<paidAt>
    ITEM|<name>|<category>|<price>|<quantity>|<discountPercent>
    END_ORDER

older files may lack TimesOrdered, the cancelled flag, the timestamps or the
discount column; all of them default sensibly on read. both files are
rewritten in full on every save.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable

from bistro_pos.config import FIELD_DELIMITER
from bistro_pos.models import CatalogEntry, MenuItem, Order, OrderLine, OrderStatus

logger = logging.getLogger(__name__)

ORDER_TAG = "ORDER"
ITEM_TAG = "ITEM"
END_TAG = "END_ORDER"


class PersistenceError(Exception):
    """raised when a store cannot be written"""


# field helpers
def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() == "true"


def _format_decimal(value: Decimal) -> str:
    return format(value, "f")


def _format_time(value: datetime | None) -> str:
    return value.isoformat(timespec="seconds") if value else ""


def _parse_time(raw: str) -> datetime | None:
    """iso timestamp or none; an unreadable value is logged and dropped"""
    raw = raw.strip()
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("bad timestamp %r ignored", raw)
        return None


def _join(*fields) -> str:
    return FIELD_DELIMITER.join(str(f) for f in fields)


# menu codec
def encode_menu(entries: Iterable[CatalogEntry]) -> list[str]:
    """menu entries -> store lines"""
    return [
        _join(e.item.name, e.item.category, _format_decimal(e.item.price), e.times_ordered)
        for e in entries
    ]


def decode_menu(lines: Iterable[str]) -> list[CatalogEntry]:
    """store lines -> menu entries; bad lines are skipped"""
    entries = []
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue
        fields = line.split(FIELD_DELIMITER)
        if len(fields) not in (3, 4):
            logger.warning("menu line %d: expected 3 or 4 fields, got %d", number, len(fields))
            continue
        try:
            item = MenuItem(fields[0], fields[1], Decimal(fields[2].strip()))
            times_ordered = int(fields[3]) if len(fields) == 4 else 0
        except (ValueError, InvalidOperation) as e:
            logger.warning("menu line %d skipped: %s", number, e)
            continue
        entries.append(CatalogEntry(item, max(times_ordered, 0)))
    return entries


# sales codec
def encode_sales(orders: Iterable[Order]) -> list[str]:
    """orders -> store lines"""
    out = []
    for order in orders:
        out.append(_join(
            ORDER_TAG,
            order.id,
            _format_bool(order.is_paid),
            _format_bool(order.is_cancelled),
            _format_time(order.created_at),
            _format_time(order.paid_at),
        ))
        for line in order.lines:
            out.append(_join(
                ITEM_TAG,
                line.item.name,
                line.item.category,
                _format_decimal(line.item.price),
                line.quantity,
                _format_decimal(line.discount),
            ))
        out.append(END_TAG)
    return out


def _decode_order_header(fields: list[str]) -> tuple[Order, bool, bool] | None:
    """ORDER fields -> (order, paid, cancelled) or none if malformed"""
    try:
        order_id = int(fields[1])
        paid = len(fields) > 2 and _parse_bool(fields[2])
        cancelled = len(fields) > 3 and _parse_bool(fields[3])
    except (ValueError, IndexError):
        return None
    created_at = _parse_time(fields[4]) if len(fields) > 4 else None
    paid_at = _parse_time(fields[5]) if len(fields) > 5 else None
    order = Order(order_id, paid_at=paid_at)
    if created_at is not None:
        order.created_at = created_at
    return order, paid, cancelled


def _decode_item(fields: list[str]) -> OrderLine:
    """ITEM fields -> order line; raises on malformed input"""
    item = MenuItem(fields[1], fields[2], Decimal(fields[3].strip()))
    discount = Decimal(fields[5].strip()) if len(fields) > 5 and fields[5].strip() else Decimal(0)
    return OrderLine(item, int(fields[4]), discount)


def _commit(order: Order, paid: bool, cancelled: bool) -> Order:
    """apply the stored lifecycle flags to a fully read order block"""
    if paid:
        order.status = OrderStatus.PAID
    elif cancelled:
        order.status = OrderStatus.CANCELLED
        order.lines.clear()
        order.paid_at = None
    else:
        order.paid_at = None
    return order


def decode_sales(lines: Iterable[str]) -> list[Order]:
    """store lines -> orders, in stored order

    ITEM lines outside an open block are ignored, a block that is never closed
    (interrupted by another ORDER or the end of input) is dropped.
    """
    orders: list[Order] = []
    pending: tuple[Order, bool, bool] | None = None
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue
        fields = line.split(FIELD_DELIMITER)
        tag = fields[0]
        if tag == ORDER_TAG:
            if pending is not None:
                logger.warning("sales line %d: order #%d never closed, dropped", number, pending[0].id)
            pending = _decode_order_header(fields)
            if pending is None:
                logger.warning("sales line %d: bad order header, block ignored", number)
        elif tag == ITEM_TAG:
            if pending is None:
                logger.warning("sales line %d: item outside an order, ignored", number)
                continue
            try:
                pending[0].lines.append(_decode_item(fields))
            except (ValueError, IndexError, InvalidOperation) as e:
                logger.warning("sales line %d: bad item skipped: %s", number, e)
        elif tag == END_TAG:
            if pending is not None:
                orders.append(_commit(*pending))
                pending = None
        else:
            logger.warning("sales line %d: unknown record %r ignored", number, tag)
    if pending is not None:
        logger.warning("sales store ends inside order #%d, dropped", pending[0].id)
    return orders


# file stores
class _FileStore:
    """whole-file read / overwrite of a text store"""
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_lines(self) -> list[str]:
        """return stored lines; a missing file is an empty store"""
        if not self.path.exists():
            logger.info("%s not found, starting empty", self.path)
            return []
        try:
            return self.path.read_text(encoding="utf-8").splitlines()
        except OSError:
            logger.exception("could not read %s, starting empty", self.path)
            return []

    def _write_lines(self, lines: list[str]):
        text = "".join(f"{line}\n" for line in lines)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"could not save {self.path}: {e}") from e
        logger.debug("wrote %d lines to %s", len(lines), self.path)


class MenuStore(_FileStore):
    """menu catalog file"""
    def load(self) -> list[CatalogEntry]:
        return decode_menu(self._read_lines())

    def save(self, entries: Iterable[CatalogEntry]):
        self._write_lines(encode_menu(entries))


class SalesStore(_FileStore):
    """sales ledger file"""
    def load(self) -> list[Order]:
        return decode_sales(self._read_lines())

    def save(self, orders: Iterable[Order]):
        self._write_lines(encode_sales(orders))

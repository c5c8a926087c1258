"""small shared helpers: input parsing, money, logging setup"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

from termcolor import cprint, colored

from bistro_pos import config

CENT = Decimal("0.01")


def safe_int(value: str, minimum: int | None = None):
    """return int value or none if invalid / below minimum"""
    try:
        v = int(value)
        if minimum is not None and v < minimum:
            return None
        return v
    except ValueError:
        return None


def safe_decimal(value: str, minimum: Decimal | int | None = None):
    """return decimal value or none if invalid / below minimum"""
    try:
        v = Decimal(value.strip())
    except InvalidOperation:
        return None
    if not v.is_finite():
        return None
    if minimum is not None and v < minimum:
        return None
    return v


def to_money(value) -> Decimal:
    """coerce int / str / float / decimal into a decimal without float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_cents(amount: Decimal) -> Decimal:
    """round half-up to whole cents"""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    """plain money string, e.g. $12.50"""
    return f"{config.CURRENCY_SYMBOL}{round_cents(amount):.2f}"


def color_money(amount: Decimal) -> str:
    """format amount as green money string"""
    return colored(format_money(amount), "green")


def parse_boolean_input(prompt: str, handle_invalid: bool = False) -> bool:
    """parse y/n style input; optionally warn on invalid"""
    p = prompt.lower().strip()
    if p in ("y", "yes"):
        return True
    if p in ("n", "no"):
        return False
    if handle_invalid:
        cprint("invalid input, please try again.", "red")
    return False


def configure_logging(level: str | None = None, filename: str | None = None):
    """basic logging setup, called once by the application"""
    logging.basicConfig(
        level=getattr(logging, level or config.LOG_LEVEL, logging.WARNING),
        filename=filename or config.LOG_FILE,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

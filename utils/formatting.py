"""Display formatting for money and dates (es-AR conventions)."""

from datetime import datetime

from core.pricing import round_money
from utils.timezone import DEFAULT_DISPLAY_TIMEZONE, to_local


def format_currency(value, symbol: str = "$") -> str:
    """
    Format an amount as es-AR currency: '$ 1.234,50'.

    Rounds once, here, to two decimals.
    """
    amount = round_money(value)
    sign = "-" if amount < 0 else ""
    integer, _, cents = f"{abs(amount):.2f}".partition(".")

    groups = []
    while len(integer) > 3:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    groups.insert(0, integer)

    return f"{sign}{symbol} {'.'.join(groups)},{cents}"


def format_date(dt: datetime | None, tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    """Format a timestamp as dd/mm/yyyy in the display timezone. None renders as '-'."""
    if dt is None:
        return "-"
    return to_local(dt, tz_name).strftime("%d/%m/%Y")

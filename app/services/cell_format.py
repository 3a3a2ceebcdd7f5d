"""Display formatting and input coercion per cell kind."""

import re
from typing import Any, Optional, Tuple

from app.infra.error_handler import ValidationError
from app.models.grid import CellKind, ColumnDescriptor, Row
from app.services.grid_engine import parse_date, parse_number

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
}

_TRUE_WORDS = {"true", "yes", "ja", "1", "y"}
_FALSE_WORDS = {"false", "no", "nein", "0", "n"}
_GERMAN_THOUSANDS = re.compile(r"-?\d{1,3}(\.\d{3})+")


def format_currency(amount: float, currency: str = "EUR") -> str:
    """German notation: 1.234,56 €"""
    grouped = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if amount < 0 else ""
    return f"{sign}{grouped} {CURRENCY_SYMBOLS.get(currency, currency)}"


def format_date(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%d.%m.%Y")


def parse_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def option_label(column: ColumnDescriptor, value: Any) -> Optional[str]:
    for option in column.options:
        if option.value == value or str(option.value) == str(value):
            return option.label
    return None


def format_cell(column: ColumnDescriptor, row: Row) -> Tuple[str, Optional[str]]:
    """Return (display text, href) for one cell."""
    value = row.get(column.key)

    if column.cell_kind == CellKind.LINK:
        title = row.get(column.title_field or column.key)
        href = value if isinstance(value, str) and value.startswith(("http://", "https://")) else None
        return ("" if title is None else str(title)), href

    if value is None or value == "":
        return "", None

    if column.cell_kind == CellKind.CURRENCY:
        amount = parse_number(value)
        return (format_currency(amount, column.currency) if amount is not None else str(value)), None

    if column.cell_kind == CellKind.DATE:
        return format_date(value), None

    if column.cell_kind == CellKind.BOOLEAN:
        flag = parse_bool(value)
        if flag is None:
            return str(value), None
        return ("Yes" if flag else "No"), None

    if column.cell_kind == CellKind.DROPDOWN:
        label = option_label(column, value)
        return (label if label is not None else str(value)), None

    return str(value), None


def parse_amount(raw: str, currency: str = "EUR") -> float:
    """
    Parse user-typed amounts in German (1.234,56) or plain (1234.56) notation.

    For EUR, dots followed by groups of exactly three digits and no decimal
    comma are thousands separators: "1.234" is 1234.
    """
    cleaned = re.sub(r"[^\d,.\-]", "", raw)
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif currency == "EUR" and _GERMAN_THOUSANDS.fullmatch(cleaned):
        cleaned = cleaned.replace(".", "")
    number = parse_number(cleaned)
    if number is None:
        raise ValidationError(f"Not a valid amount: {raw!r}")
    return number


def coerce_input(column: ColumnDescriptor, raw: Any) -> Any:
    """
    Convert an edited value into the type stored for the column.

    Raises:
        ValidationError: If the value cannot be converted
    """
    if column.cell_kind == CellKind.CURRENCY:
        if raw is None or raw == "":
            return None
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
        return parse_amount(str(raw), column.currency)

    if column.cell_kind == CellKind.BOOLEAN:
        flag = parse_bool(raw)
        if flag is None and raw not in (None, ""):
            raise ValidationError(f"Not a valid yes/no value: {raw!r}")
        return flag

    if column.cell_kind == CellKind.DATE:
        if raw is None or raw == "":
            return None
        parsed = parse_date(raw)
        if parsed is None:
            raise ValidationError(f"Not a valid date: {raw!r}")
        return parsed.date().isoformat()

    return raw

"""Month-over-month bookkeeping summary."""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.infra.config import config
from app.infra.error_handler import ValidationError
from app.services.grid_engine import parse_date, parse_number

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
UNKNOWN_PARTNER = "Unknown"


def parse_month(value: str) -> Tuple[int, int]:
    """Parse "YYYY-MM" into (year, month)."""
    try:
        year_part, month_part = value.split("-")
        year, month = int(year_part), int(month_part)
    except ValueError:
        raise ValidationError(f"Invalid month (expected YYYY-MM): {value!r}")
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month (expected YYYY-MM): {value!r}")
    return year, month


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def _in_month(row: Mapping[str, Any], year: int, month: int) -> bool:
    parsed = parse_date(row.get("date"))
    return parsed is not None and parsed.year == year and parsed.month == month


def _abs_amount(row: Mapping[str, Any]) -> float:
    return abs(parse_number(row.get("amount")) or 0.0)


def _is_rent(row: Mapping[str, Any], rent_category: str) -> bool:
    return row.get("booking_category") == rent_category


def _is_expense(row: Mapping[str, Any], rent_category: str) -> bool:
    amount = parse_number(row.get("amount")) or 0.0
    category = row.get("booking_category")
    return amount < 0 or bool(category and rent_category not in category)


def _growth(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def _breakdown(rows: Iterable[Mapping[str, Any]], field: str, fallback: str) -> List[Dict[str, Any]]:
    groups: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        name = row.get(field) or fallback
        entry = groups.setdefault(name, {"name": name, "count": 0, "amount": 0.0})
        entry["count"] += 1
        entry["amount"] += _abs_amount(row)
    for entry in groups.values():
        entry["amount"] = round(entry["amount"], 2)
    return sorted(groups.values(), key=lambda entry: entry["amount"], reverse=True)


def build_monthly_summary(
    transactions: Iterable[Mapping[str, Any]],
    month: str,
    rent_category: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Summarize one month of transactions against the month before it.

    Amounts are summed by absolute value. Expenses are negative amounts or any
    categorized transaction outside the rent category.
    """
    rent_category = rent_category or config.RENT_CATEGORY
    year, month_number = parse_month(month)
    prev_year, prev_month = previous_month(year, month_number)

    transactions = list(transactions)
    current = [t for t in transactions if _in_month(t, year, month_number)]
    previous = [t for t in transactions if _in_month(t, prev_year, prev_month)]

    current_total = sum(_abs_amount(t) for t in current)
    previous_total = sum(_abs_amount(t) for t in previous)
    current_rent = sum(_abs_amount(t) for t in current if _is_rent(t, rent_category))
    previous_rent = sum(_abs_amount(t) for t in previous if _is_rent(t, rent_category))
    expenses = sum(_abs_amount(t) for t in current if _is_expense(t, rent_category))

    return {
        "month": date(year, month_number, 1).strftime("%Y-%m"),
        "previous_month": date(prev_year, prev_month, 1).strftime("%Y-%m"),
        "current": {
            "total": round(current_total, 2),
            "rent": round(current_rent, 2),
            "expenses": round(expenses, 2),
            "transaction_count": len(current),
        },
        "previous": {
            "total": round(previous_total, 2),
            "rent": round(previous_rent, 2),
            "transaction_count": len(previous),
        },
        "total_growth": _growth(current_total, previous_total),
        "rent_growth": _growth(current_rent, previous_rent),
        "categories": _breakdown(current, "booking_category", UNCATEGORIZED),
        "partners": _breakdown(current, "partner", UNKNOWN_PARTNER),
    }

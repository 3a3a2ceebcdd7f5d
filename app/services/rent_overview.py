"""Yearly rent payment matrix: property -> partner -> month."""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.infra.config import config
from app.infra.database import get_db_session, row_to_dict
from app.infra.error_handler import FetchError, ValidationError
from app.services.grid_engine import parse_number

logger = logging.getLogger(__name__)

PAID_THRESHOLD = 500
PARTIAL_THRESHOLD = 200

UNKNOWN_PROPERTY = "Unknown Property"
UNKNOWN_PARTNER = "Unknown Tenant"


def payment_status(amount: float, payer: Any, public_payers: Sequence[str]) -> str:
    """Classify one rent payment."""
    if amount <= 0:
        return "missing"
    if payer in public_payers:
        return "city"
    if amount >= PAID_THRESHOLD:
        return "paid"
    if amount >= PARTIAL_THRESHOLD:
        return "partial"
    return "paid"


def _month_of(date_value: Any) -> str:
    return str(date_value)[5:7]


def build_rent_matrix(
    transactions: Iterable[Mapping[str, Any]],
    year: str,
    public_payers: Sequence[str],
) -> Dict[str, Dict[str, Dict[str, Dict[str, Any]]]]:
    """
    Group a year's rent payments into property -> partner -> "MM" cells.

    Multiple payments of one partner in one month are summed; the cell keeps
    the status, payer and date of the first payment seen.
    """
    matrix: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = {}

    for item in transactions:
        date_value = item.get("date")
        if not date_value or not str(date_value).startswith(year):
            continue

        prop = item.get("property") or UNKNOWN_PROPERTY
        partner = item.get("partner") or UNKNOWN_PARTNER
        month = _month_of(date_value)
        amount = parse_number(item.get("amount")) or 0.0

        cells = matrix.setdefault(prop, {}).setdefault(partner, {})
        if month in cells:
            cells[month]["amount"] += amount
        else:
            cells[month] = {
                "amount": amount,
                "status": payment_status(amount, item.get("payer"), public_payers),
                "payer": item.get("payer"),
                "date": str(date_value),
            }

    return matrix


def summarize_rent(transactions: Sequence[Mapping[str, Any]], public_payers: Sequence[str]) -> Dict[str, Any]:
    """Headline figures for the rent summary cards."""
    amounts = [parse_number(t.get("amount")) or 0.0 for t in transactions]
    total = sum(amounts)
    count = len(transactions)

    partners = {t.get("partner") for t in transactions if t.get("partner") and str(t.get("partner")).strip()}
    properties = {t.get("property") or UNKNOWN_PROPERTY for t in transactions}
    public_count = sum(1 for t in transactions if t.get("payer") in public_payers)

    return {
        "total_rent": round(total, 2),
        "transaction_count": count,
        "unique_partners": len(partners),
        "unique_properties": len(properties),
        "average_rent": round(total / count, 2) if count else 0.0,
        "public_payments": public_count,
        "direct_payments": count - public_count,
    }


def _validate_year(year: str) -> str:
    if not (len(year) == 4 and year.isdigit()):
        raise ValidationError(f"Invalid year: {year!r}")
    return year


def fetch_rent_transactions(tenant_id: str, year: str) -> List[Dict[str, Any]]:
    """Rent-category bank transactions of one year, newest first."""
    try:
        with get_db_session(tenant_id) as session:
            result = session.execute(
                text("""
                    SELECT * FROM bank_transactions
                    WHERE booking_category = :category
                      AND date >= :start AND date <= :end
                    ORDER BY date DESC
                """),
                {"category": config.RENT_CATEGORY, "start": f"{year}-01-01", "end": f"{year}-12-31"}
            )
            return [row_to_dict(row) for row in result.fetchall()]
    except SQLAlchemyError as e:
        logger.error("Error fetching rent transactions", extra={"year": year, "error": str(e)})
        raise FetchError("Failed to fetch rent transactions", section="rent_overview") from e


def get_rent_overview(tenant_id: str, year: str) -> Dict[str, Any]:
    """
    Rent matrix plus summary for one tenant and year.

    Raises:
        ValidationError: If the year is malformed
        FetchError: If the transactions cannot be read
    """
    year = _validate_year(year)
    transactions = fetch_rent_transactions(tenant_id, year)
    public_payers = config.PUBLIC_RENT_PAYERS

    logger.debug("Rent transactions loaded", extra={"year": year, "count": len(transactions)})

    return {
        "year": year,
        "matrix": build_rent_matrix(transactions, year, public_payers),
        "summary": summarize_rent(transactions, public_payers),
        "transactions": transactions,
    }

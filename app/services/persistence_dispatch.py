"""Route a single cell edit to one atomic update on the tenant's data."""

import logging
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.infra.database import row_to_dict
from app.infra.error_handler import PersistenceError
from app.infra.metrics import cell_updates_total
from app.infra.validation import (
    parse_partner_selection,
    quote_identifier,
    validate_field_name,
    validate_table_name,
)

logger = logging.getLogger(__name__)

# Mutually exclusive foreign keys on bank_transactions
PARTNER_COLUMNS = {
    "tenant": "tenant_ref",
    "business_partner": "business_partner_ref",
}
_SIBLING_COLUMN = {
    "tenant_ref": "business_partner_ref",
    "business_partner_ref": "tenant_ref",
}


def resolve_assignments(table: str, field: str, value: Any) -> Dict[str, Any]:
    """
    Translate (field, value) into the column assignments of one UPDATE.

    Composite selectors expand to several columns; everything else is a
    single column.

    Raises:
        ValidationError: If the table, field or composite payload is invalid
    """
    validate_table_name(table)

    if table == "bank_transactions":
        if field == "partner_selection":
            payload = parse_partner_selection(value)
            chosen = PARTNER_COLUMNS[payload["partnerType"]]
            return {chosen: payload["partnerId"], _SIBLING_COLUMN[chosen]: None}

        if field in _SIBLING_COLUMN:
            # Setting one partner reference clears the other
            return {field: value, _SIBLING_COLUMN[field]: None} if value not in (None, "") else {field: None}

    validate_field_name(field)
    return {field: value}


def build_update(table: str, row_id: Any, assignments: Dict[str, Any]):
    """Build the parameterized UPDATE ... RETURNING * statement."""
    set_clauses = []
    params: Dict[str, Any] = {"row_id": row_id}
    for index, (column, column_value) in enumerate(assignments.items()):
        params[f"v{index}"] = column_value
        set_clauses.append(f"{quote_identifier(column)} = :v{index}")

    statement = text(
        f"UPDATE {quote_identifier(table)} SET {', '.join(set_clauses)} "
        f"WHERE id = :row_id RETURNING *"
    )
    return statement, params


def dispatch_update(session: Session, table: str, row_id: Any, field: str, value: Any) -> Dict[str, Any]:
    """
    Persist one cell edit and return the updated row.

    Validation happens before any statement is sent. Cross-field effects are
    applied in the same statement, so readers never see a half-applied
    change.

    Raises:
        ValidationError: If the request is rejected before mutation
        PersistenceError: If the row does not exist or the update fails
    """
    assignments = resolve_assignments(table, field, value)
    mode = "composite" if len(assignments) > 1 else "simple"
    statement, params = build_update(table, row_id, assignments)

    try:
        row = session.execute(statement, params).fetchone()
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        cell_updates_total.labels(table, mode, "error").inc()
        logger.error(
            "Update failed",
            extra={"table": table, "field": field, "row_id": str(row_id), "error": str(e)},
        )
        raise PersistenceError(f"Failed to update {table}.{field}") from e

    if row is None:
        cell_updates_total.labels(table, mode, "not_found").inc()
        raise PersistenceError(f"Record {row_id} not found in {table}", status_code=404)

    cell_updates_total.labels(table, mode, "ok").inc()
    logger.info(
        "Cell updated",
        extra={"table": table, "field": field, "row_id": str(row_id), "columns": list(assignments)},
    )
    return row_to_dict(row)

"""Tenant-scoped reads through remote database functions."""

import logging
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.infra.database import call_rpc, get_db_session, row_to_dict
from app.infra.error_handler import FetchError, ValidationError
from app.infra.metrics import rpc_calls_total
from app.infra.validation import encode_partner_selection

logger = logging.getLogger(__name__)

# Display functions per table, all taking tenant_uuid
TABLE_FUNCTIONS = {
    "bank_transactions": "get_bank_transactions_display",
    "tenants": "get_renters_display",
    "business_partners": "get_business_partners_display",
    "tenant_rent_milestones": "get_tenant_rent_milestones_display",
}

# booking_categories is a shared lookup table read directly
DISPLAY_TABLES = frozenset(TABLE_FUNCTIONS) | {"booking_categories"}

# Option functions, all taking org_tenant_id
OPTION_FUNCTIONS = {
    "tenants": "get_tenant_dropdown_options",
    "business_partners": "get_business_partner_dropdown_options",
    "properties": "get_property_dropdown_options",
}

OPTION_KINDS = ("tenants", "business_partners", "properties", "booking_categories", "combined_partners")

# Option lists each table section needs for its dropdown columns
SECTION_OPTIONS = {
    "bank_transactions": ("booking_categories", "properties", "combined_partners"),
    "tenant_rent_milestones": ("tenants",),
}


def _rpc(session: Session, function_name: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    try:
        rows = call_rpc(session, function_name, params)
    except SQLAlchemyError:
        rpc_calls_total.labels(function_name, "error").inc()
        raise
    rpc_calls_total.labels(function_name, "ok").inc()
    return rows


def ensure_row_ids(rows: List[Dict[str, Any]], table: str) -> List[Dict[str, Any]]:
    """Drop rows lacking the mandatory id field."""
    valid = [row for row in rows if row.get("id") is not None]
    dropped = len(rows) - len(valid)
    if dropped:
        logger.warning("Dropped rows without id", extra={"table": table, "dropped": dropped})
    return valid


def with_partner_selection(row: Dict[str, Any]) -> Dict[str, Any]:
    """Expose the tenant/business-partner pair as one selectable value."""
    if row.get("tenant_ref"):
        row["partner_selection"] = encode_partner_selection(row["tenant_ref"], "tenant")
    elif row.get("business_partner_ref"):
        row["partner_selection"] = encode_partner_selection(row["business_partner_ref"], "business_partner")
    else:
        row.setdefault("partner_selection", None)
    return row


def _fetch_rows(session: Session, tenant_id: str, table: str) -> List[Dict[str, Any]]:
    if table == "booking_categories":
        result = session.execute(
            text("SELECT * FROM booking_categories ORDER BY created_at DESC LIMIT 1000")
        )
        rows = [row_to_dict(row) for row in result.fetchall()]
    else:
        rows = _rpc(session, TABLE_FUNCTIONS[table], {"tenant_uuid": tenant_id})

    rows = ensure_row_ids(rows, table)
    if table == "bank_transactions":
        rows = [with_partner_selection(row) for row in rows]
    return rows


def _fetch_options(session: Session, tenant_id: str, kind: str) -> List[Dict[str, Any]]:
    if kind == "booking_categories":
        result = session.execute(text('SELECT "Name" FROM booking_categories ORDER BY "Name"'))
        return [{"label": row.Name, "value": row.Name} for row in result.fetchall()]

    if kind == "properties":
        return [
            {"id": str(item["id"]), "label": item.get("display_name") or item.get("name"), "value": str(item["id"])}
            for item in _rpc(session, OPTION_FUNCTIONS["properties"], {"org_tenant_id": tenant_id})
        ]

    if kind == "tenants":
        return [
            {"id": str(item["id"]), "label": f"{item['name']} (Tenant)", "value": str(item["id"]), "type": "tenant"}
            for item in _rpc(session, OPTION_FUNCTIONS["tenants"], {"org_tenant_id": tenant_id})
        ]

    if kind == "business_partners":
        return [
            {
                "id": str(item["id"]),
                "label": f"{item['name']} (Business)",
                "value": str(item["id"]),
                "type": "business_partner",
            }
            for item in _rpc(session, OPTION_FUNCTIONS["business_partners"], {"org_tenant_id": tenant_id})
        ]

    # combined_partners: one dropdown for both FK columns, values are tagged payloads
    combined = []
    for option in _fetch_options(session, tenant_id, "tenants") + _fetch_options(session, tenant_id, "business_partners"):
        combined.append({**option, "value": encode_partner_selection(option["id"], option["type"])})
    return combined


def fetch_table_rows(tenant_id: str, table: str) -> List[Dict[str, Any]]:
    """
    Fetch the display rows of one table for a tenant.

    Raises:
        ValidationError: If the table has no display source
        FetchError: If the remote call fails
    """
    if table not in DISPLAY_TABLES:
        raise ValidationError(f"Unknown table: {table}")

    try:
        with get_db_session(tenant_id) as session:
            return _fetch_rows(session, tenant_id, table)
    except SQLAlchemyError as e:
        logger.error("Error fetching rows", extra={"table": table, "error": str(e)})
        raise FetchError(f"Failed to fetch {table}", section=table) from e


def fetch_option_list(tenant_id: str, kind: str) -> List[Dict[str, Any]]:
    """
    Fetch one dropdown option list for a tenant.

    Raises:
        ValidationError: If the kind is unknown
        FetchError: If the remote call fails
    """
    if kind not in OPTION_KINDS:
        raise ValidationError(f"Invalid type parameter. Must be one of: {', '.join(OPTION_KINDS)}")

    try:
        with get_db_session(tenant_id) as session:
            return _fetch_options(session, tenant_id, kind)
    except SQLAlchemyError as e:
        logger.error("Error fetching options", extra={"kind": kind, "error": str(e)})
        raise FetchError(f"Failed to fetch {kind} options", section=kind) from e


def fetch_section(tenant_id: str, table: str) -> Dict[str, Any]:
    """
    Rows plus the option lists the table's dropdown columns need.

    Rows failing is an error; an option list failing degrades to an empty list.
    """
    rows = fetch_table_rows(tenant_id, table)

    options: Dict[str, List[Dict[str, Any]]] = {}
    for kind in SECTION_OPTIONS.get(table, ()):
        try:
            options[kind] = fetch_option_list(tenant_id, kind)
        except FetchError:
            logger.warning("Option list unavailable, continuing without it", extra={"table": table, "kind": kind})
            options[kind] = []

    return {"data": rows, "options": options}

"""Input validation for identifiers that reach SQL."""

import json
import re
import uuid
from typing import Any, Dict

from app.infra.error_handler import ValidationError

# Tables the update dispatcher is permitted to mutate
ALLOWED_TABLES = frozenset({
    "bank_transactions",
    "booking_categories",
    "business_partners",
    "tenants",
    "properties",
    "tenant_rent_milestones",
})

# Columns that are never writable through the generic update path
PROTECTED_FIELDS = frozenset({"id", "tenant_id", "created_at"})

# Booking category columns carry spaces and dashes ("Business - Main Category")
_FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_ \-]{0,62}$")

PARTNER_TYPES = ("tenant", "business_partner")


def validate_tenant_id(tenant_id: str) -> None:
    """
    Validate tenant_id format (UUID).

    Raises:
        ValueError: If validation fails
    """
    if not tenant_id:
        raise ValueError("tenant_id cannot be empty")

    if len(tenant_id) > 128:
        raise ValueError("tenant_id too long")

    try:
        uuid.UUID(tenant_id)
    except ValueError:
        raise ValueError(f"Invalid tenant_id format (must be UUID): {tenant_id}")


def validate_table_name(table: str) -> str:
    """Reject any table outside the allow-list."""
    if table not in ALLOWED_TABLES:
        raise ValidationError(f"Invalid table name: {table}")
    return table


def validate_field_name(field: str) -> str:
    """Reject unsafe or protected column names."""
    if not field or not _FIELD_NAME_PATTERN.match(field):
        raise ValidationError(f"Invalid field name: {field!r}")
    if field in PROTECTED_FIELDS:
        raise ValidationError(f"Field '{field}' cannot be updated")
    return field


def quote_identifier(name: str) -> str:
    """Double-quote an already validated identifier."""
    return '"' + name.replace('"', '""') + '"'


def encode_partner_selection(partner_id: Any, partner_type: str) -> str:
    """JSON form used both as dropdown option value and as the row's display value."""
    return json.dumps({"partnerId": str(partner_id), "partnerType": partner_type})


def parse_partner_selection(value: Any) -> Dict[str, str]:
    """
    Parse the tagged partner payload {partnerId, partnerType}.

    Accepts a dict or its JSON encoding (dropdown values are JSON strings).

    Raises:
        ValidationError: If the payload is malformed
    """
    payload = value
    if isinstance(value, str):
        try:
            payload = json.loads(value)
        except json.JSONDecodeError:
            raise ValidationError("partner_selection value must be JSON with partnerId and partnerType")

    if not isinstance(payload, dict):
        raise ValidationError("partner_selection value must be an object")

    partner_id = payload.get("partnerId")
    partner_type = payload.get("partnerType")

    if partner_type not in PARTNER_TYPES:
        raise ValidationError(
            f"Invalid partnerType. Must be one of: {', '.join(PARTNER_TYPES)}"
        )
    if partner_id is None or str(partner_id).strip() == "":
        raise ValidationError("partnerId is required")

    return {"partnerId": str(partner_id), "partnerType": partner_type}

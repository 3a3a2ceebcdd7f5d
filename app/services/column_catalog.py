"""Column descriptors for each dashboard table."""

from typing import Any, Callable, Dict, List, Mapping, Sequence

from app.infra.error_handler import ValidationError
from app.models.grid import CellKind, ColumnDescriptor, DropdownOption

OptionLists = Mapping[str, Sequence[Mapping[str, Any]]]

RENT_TYPES = ("Base Rent", "Increased Rent", "Reduced Rent", "Market Adjustment")


def to_dropdown_options(items: Sequence[Mapping[str, Any]]) -> List[DropdownOption]:
    return [DropdownOption(label=str(item["label"]), value=item["value"]) for item in items]


def bank_transaction_columns(options: OptionLists) -> List[ColumnDescriptor]:
    return [
        ColumnDescriptor("description", "Description", CellKind.LINK, title_field="description"),
        ColumnDescriptor("amount", "Amount", CellKind.CURRENCY, currency="EUR"),
        ColumnDescriptor("payer", "Payer", CellKind.TEXT, editable=True),
        ColumnDescriptor("date", "Date", CellKind.DATE),
        ColumnDescriptor(
            "booking_category", "Booking Category", CellKind.DROPDOWN, editable=True,
            options=to_dropdown_options(options.get("booking_categories", [])),
        ),
        ColumnDescriptor(
            "partner_selection", "Partner", CellKind.DROPDOWN, editable=True,
            options=to_dropdown_options(options.get("combined_partners", [])),
        ),
        ColumnDescriptor(
            "property_ref", "Property", CellKind.DROPDOWN, editable=True,
            options=to_dropdown_options(options.get("properties", [])),
        ),
    ]


def booking_category_columns(options: OptionLists) -> List[ColumnDescriptor]:
    return [
        ColumnDescriptor("Name", "Name", CellKind.LINK, title_field="Name"),
        ColumnDescriptor("Business - Main Category", "Main Category", CellKind.TEXT, editable=True),
        ColumnDescriptor("Business - Sub Category", "Sub Category", CellKind.TEXT, editable=True),
        ColumnDescriptor("Schedule E - ID", "Schedule E", CellKind.TEXT),
        ColumnDescriptor("Schedule C - ID", "Schedule C", CellKind.TEXT),
        ColumnDescriptor("Comment", "Comment", CellKind.TEXT, editable=True),
    ]


def renter_columns(options: OptionLists) -> List[ColumnDescriptor]:
    return [
        ColumnDescriptor("full_name", "Name", CellKind.LINK, title_field="full_name"),
        ColumnDescriptor("status", "Status", CellKind.TEXT, editable=True),
        ColumnDescriptor("email", "Email", CellKind.TEXT, editable=True),
        ColumnDescriptor("phone", "Phone", CellKind.TEXT, editable=True),
        ColumnDescriptor("cold_rent", "Cold Rent", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("total_rent", "Total Rent", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("lease_start_date", "Lease Start", CellKind.DATE, editable=True),
        ColumnDescriptor("lease_end_date", "Lease End", CellKind.DATE, editable=True),
    ]


def business_partner_columns(options: OptionLists) -> List[ColumnDescriptor]:
    return [
        ColumnDescriptor("full_name", "Name", CellKind.LINK, title_field="full_name"),
        ColumnDescriptor("business_type", "Business Type", CellKind.TEXT, editable=True),
        ColumnDescriptor("status", "Status", CellKind.TEXT, editable=True),
        ColumnDescriptor("contact_email", "Email", CellKind.TEXT, editable=True),
        ColumnDescriptor("contact_phone", "Phone", CellKind.TEXT, editable=True),
        ColumnDescriptor("comment", "Comment", CellKind.TEXT, editable=True),
    ]


def rent_milestone_columns(options: OptionLists) -> List[ColumnDescriptor]:
    return [
        ColumnDescriptor("tenant_name", "Tenant", CellKind.TEXT),
        ColumnDescriptor(
            "tenant_id", "Tenant Record", CellKind.DROPDOWN, hidden=True,
            options=to_dropdown_options(options.get("tenants", [])),
        ),
        ColumnDescriptor(
            "rent_type", "Rent Type", CellKind.DROPDOWN, editable=True,
            options=[DropdownOption(label=rent_type, value=rent_type) for rent_type in RENT_TYPES],
        ),
        ColumnDescriptor("monthly_rent", "Monthly Rent", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("cold_rent", "Cold Rent", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("heizkosten", "Heating", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("nebenkosten", "Utilities", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("other_costs", "Other Costs", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("total_monthly_cost", "Total Monthly", CellKind.CURRENCY),
        ColumnDescriptor("effective_from", "Effective From", CellKind.DATE, editable=True),
        ColumnDescriptor("effective_until", "Effective Until", CellKind.DATE, editable=True),
        ColumnDescriptor("increase_reason", "Reason", CellKind.TEXT, editable=True),
        ColumnDescriptor("legal_notice_date", "Notice Date", CellKind.DATE, editable=True),
        ColumnDescriptor("notes", "Notes", CellKind.TEXT, editable=True),
    ]


COLUMN_BUILDERS: Dict[str, Callable[[OptionLists], List[ColumnDescriptor]]] = {
    "bank_transactions": bank_transaction_columns,
    "booking_categories": booking_category_columns,
    "tenants": renter_columns,
    "business_partners": business_partner_columns,
    "tenant_rent_milestones": rent_milestone_columns,
}


def columns_for(table: str, options: OptionLists) -> List[ColumnDescriptor]:
    """Descriptors for a table with its option lists injected."""
    builder = COLUMN_BUILDERS.get(table)
    if builder is None:
        raise ValidationError(f"No column layout for table: {table}")
    return builder(options)

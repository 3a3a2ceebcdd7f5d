"""Pytest configuration and fixtures."""

import pytest
import os
from dotenv import load_dotenv

# Load test environment variables
load_dotenv()

# Set test environment (before app modules read their configuration)
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")

from app.models.grid import CellKind, ColumnDescriptor, DropdownOption
from app.models.tenant import AuthorizedTenant

TENANT_A = "11111111-1111-1111-1111-111111111111"
TENANT_B = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def authorized_tenants():
    """Two tenants the test user may act as, ordered by name."""
    return [
        AuthorizedTenant(tenant_id=TENANT_A, display_name="Alpha Immobilien", plan_tier="pro", role="owner"),
        AuthorizedTenant(tenant_id=TENANT_B, display_name="Beta Verwaltung", plan_tier="free", role="member"),
    ]


@pytest.fixture
def transaction_columns():
    """Column descriptors resembling the bank transactions table."""
    return [
        ColumnDescriptor("description", "Description", CellKind.TEXT),
        ColumnDescriptor("amount", "Amount", CellKind.CURRENCY, editable=True),
        ColumnDescriptor("date", "Date", CellKind.DATE),
        ColumnDescriptor(
            "booking_category",
            "Booking Category",
            CellKind.DROPDOWN,
            editable=True,
            options=[
                DropdownOption("Miete", "Rent"),
                DropdownOption("Nebenkosten", "Utilities"),
                DropdownOption("Reparatur", "Repairs"),
            ],
        ),
    ]


@pytest.fixture
def transaction_rows():
    return [
        {"id": "1", "description": "Zahlung Mai", "amount": 1200, "date": "2025-05-03", "booking_category": "Rent"},
        {"id": "2", "description": "Stadtwerke", "amount": -85.5, "date": "2025-05-10", "booking_category": "Utilities"},
        {"id": "3", "description": "Handwerker", "amount": -430, "date": "2025-04-28", "booking_category": "Repairs"},
        {"id": "4", "description": "Zahlung Juni", "amount": 1200, "date": "2025-06-02", "booking_category": "Rent"},
        {"id": "5", "description": "Wasser", "amount": -40, "date": "2025-06-15", "booking_category": "Utilities"},
    ]

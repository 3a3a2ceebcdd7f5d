"""Tests for rent overview and monthly summary."""

import pytest
from unittest.mock import patch, MagicMock

from app.infra.error_handler import ValidationError
from app.services.monthly_summary import build_monthly_summary, parse_month, previous_month
from app.services.rent_overview import (
    build_rent_matrix,
    get_rent_overview,
    payment_status,
    summarize_rent,
)

PUBLIC_PAYERS = ["Stadt Osnabrueck", "Bundesagentur fuer Arbeit-Service-Haus"]


@pytest.fixture
def rent_transactions():
    return [
        {"id": 1, "amount": 650, "payer": "Max Muster", "partner": "Max Muster", "property": "Iburgerstrasse 107", "date": "2025-01-03"},
        {"id": 2, "amount": 300, "payer": "Max Muster", "partner": "Max Muster", "property": "Iburgerstrasse 107", "date": "2025-02-03"},
        {"id": 3, "amount": 250, "payer": "Max Muster", "partner": "Max Muster", "property": "Iburgerstrasse 107", "date": "2025-02-20"},
        {"id": 4, "amount": 480, "payer": "Stadt Osnabrueck", "partner": "Erika Beispiel", "property": None, "date": "2025-01-05"},
        {"id": 5, "amount": 600, "payer": "Max Muster", "partner": "Max Muster", "property": "Iburgerstrasse 107", "date": "2024-12-30"},
    ]


class TestRentOverview:

    @pytest.mark.parametrize("amount,payer,expected", [
        (480, "Stadt Osnabrueck", "city"),
        (650, "Max Muster", "paid"),
        (300, "Max Muster", "partial"),
        (50, "Max Muster", "paid"),
        (0, "Max Muster", "missing"),
        (-20, "Stadt Osnabrueck", "missing"),
    ])
    def test_payment_status(self, amount, payer, expected):
        assert payment_status(amount, payer, PUBLIC_PAYERS) == expected

    def test_matrix_groups_and_sums_per_month(self, rent_transactions):
        matrix = build_rent_matrix(rent_transactions, "2025", PUBLIC_PAYERS)

        max_cells = matrix["Iburgerstrasse 107"]["Max Muster"]
        assert set(max_cells) == {"01", "02"}
        assert max_cells["02"]["amount"] == 550
        assert max_cells["02"]["status"] == "partial"
        assert matrix["Unknown Property"]["Erika Beispiel"]["01"]["status"] == "city"

    def test_summary(self, rent_transactions):
        summary = summarize_rent(rent_transactions[:4], PUBLIC_PAYERS)
        assert summary["total_rent"] == 1680
        assert summary["transaction_count"] == 4
        assert summary["unique_partners"] == 2
        assert summary["unique_properties"] == 2
        assert summary["average_rent"] == 420
        assert summary["public_payments"] == 1
        assert summary["direct_payments"] == 3

    def test_invalid_year_rejected(self):
        with pytest.raises(ValidationError):
            get_rent_overview("tenant", "25")

    def test_get_rent_overview_reads_rent_category(self, rent_transactions):
        with patch("app.services.rent_overview.get_db_session") as mock_db:
            mock_session = MagicMock()
            mock_db.return_value.__enter__.return_value = mock_session
            rows = []
            for item in rent_transactions[:4]:
                row = MagicMock()
                row._mapping = item
                rows.append(row)
            mock_session.execute.return_value.fetchall.return_value = rows

            overview = get_rent_overview("tenant-1", "2025")

        mock_db.assert_called_once_with("tenant-1")
        params = mock_session.execute.call_args[0][1]
        assert params["category"] == "Miete"
        assert params["start"] == "2025-01-01"
        assert overview["summary"]["transaction_count"] == 4
        assert "Iburgerstrasse 107" in overview["matrix"]


class TestMonthlySummary:

    @pytest.fixture
    def transactions(self):
        return [
            {"id": 1, "amount": 1200, "booking_category": "Miete", "partner": "Max", "date": "2025-05-03"},
            {"id": 2, "amount": -300, "booking_category": "Reparatur", "partner": "Handwerk GmbH", "date": "2025-05-10"},
            {"id": 3, "amount": -50, "booking_category": None, "partner": None, "date": "2025-05-20"},
            {"id": 4, "amount": 1000, "booking_category": "Miete", "partner": "Max", "date": "2025-04-03"},
            {"id": 5, "amount": 999, "booking_category": "Miete", "partner": "Max", "date": ""},
        ]

    def test_parse_month(self):
        assert parse_month("2025-05") == (2025, 5)
        with pytest.raises(ValidationError):
            parse_month("2025-13")
        with pytest.raises(ValidationError):
            parse_month("May 2025")

    def test_previous_month_wraps_year(self):
        assert previous_month(2025, 1) == (2024, 12)

    def test_summary_figures(self, transactions):
        summary = build_monthly_summary(transactions, "2025-05", rent_category="Miete")

        assert summary["previous_month"] == "2025-04"
        assert summary["current"]["total"] == 1550
        assert summary["current"]["rent"] == 1200
        assert summary["current"]["expenses"] == 350
        assert summary["current"]["transaction_count"] == 3
        assert summary["previous"]["total"] == 1000
        assert summary["total_growth"] == 55.0
        assert summary["rent_growth"] == 20.0

    def test_category_breakdown_sorted_by_amount(self, transactions):
        summary = build_monthly_summary(transactions, "2025-05", rent_category="Miete")
        assert [c["name"] for c in summary["categories"]] == ["Miete", "Reparatur", "Uncategorized"]

    def test_no_previous_month_gives_zero_growth(self, transactions):
        summary = build_monthly_summary(transactions, "2025-04", rent_category="Miete")
        assert summary["total_growth"] == 0.0

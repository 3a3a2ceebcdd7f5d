"""Tests for cell display formatting and input coercion."""

import pytest

from app.infra.error_handler import ValidationError
from app.models.grid import CellKind, ColumnDescriptor, DropdownOption
from app.services.cell_format import coerce_input, format_cell, format_currency, parse_amount


class TestFormatting:

    @pytest.mark.parametrize("amount,expected", [
        (1234.56, "1.234,56 €"),
        (-85.5, "-85,50 €"),
        (0, "0,00 €"),
        (1000000, "1.000.000,00 €"),
    ])
    def test_currency_german_notation(self, amount, expected):
        assert format_currency(amount) == expected

    def test_other_currency_symbol(self):
        assert format_currency(10, "USD") == "10,00 $"

    def test_missing_value_renders_empty(self):
        column = ColumnDescriptor("amount", "Amount", CellKind.CURRENCY)
        assert format_cell(column, {"id": 1}) == ("", None)

    def test_boolean_cell(self):
        column = ColumnDescriptor("active", "Active", CellKind.BOOLEAN)
        assert format_cell(column, {"active": True})[0] == "Yes"
        assert format_cell(column, {"active": "false"})[0] == "No"

    def test_dropdown_shows_option_label(self):
        column = ColumnDescriptor(
            "property_ref", "Property", CellKind.DROPDOWN, options=[DropdownOption("Iburgerstrasse 107", "p-1")]
        )
        assert format_cell(column, {"property_ref": "p-1"})[0] == "Iburgerstrasse 107"
        assert format_cell(column, {"property_ref": "p-9"})[0] == "p-9"

    def test_link_cell_uses_title_field(self):
        column = ColumnDescriptor("url", "Document", CellKind.LINK, title_field="name")
        row = {"url": "https://example.com/doc.pdf", "name": "Mietvertrag"}
        assert format_cell(column, row) == ("Mietvertrag", "https://example.com/doc.pdf")

    def test_link_without_url_has_no_href(self):
        column = ColumnDescriptor("full_name", "Name", CellKind.LINK, title_field="full_name")
        assert format_cell(column, {"full_name": "Erika Muster"}) == ("Erika Muster", None)


class TestCoercion:

    @pytest.mark.parametrize("raw,expected", [
        ("1.234,56", 1234.56),
        ("1234.56", 1234.56),
        ("-85,50 €", -85.5),
        ("700", 700.0),
        ("1.234", 1234.0),
        ("-1.250.000", -1250000.0),
        ("12.5", 12.5),
    ])
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == pytest.approx(expected)

    def test_dot_grouping_is_decimal_outside_eur(self):
        assert parse_amount("1.234", "USD") == pytest.approx(1.234)

    def test_currency_cell_reads_german_thousands(self):
        column = ColumnDescriptor("amount", "Amount", CellKind.CURRENCY, currency="EUR")
        assert coerce_input(column, "1.500") == 1500.0

    def test_currency_blank_is_none(self):
        column = ColumnDescriptor("amount", "Amount", CellKind.CURRENCY)
        assert coerce_input(column, "") is None

    def test_date_input_normalized_to_iso(self):
        column = ColumnDescriptor("date", "Date", CellKind.DATE)
        assert coerce_input(column, "03.05.2025") == "2025-05-03"

    def test_invalid_date_rejected(self):
        column = ColumnDescriptor("date", "Date", CellKind.DATE)
        with pytest.raises(ValidationError):
            coerce_input(column, "someday")

    def test_boolean_words(self):
        column = ColumnDescriptor("active", "Active", CellKind.BOOLEAN)
        assert coerce_input(column, "ja") is True
        with pytest.raises(ValidationError):
            coerce_input(column, "maybe")

    def test_text_passes_through(self):
        column = ColumnDescriptor("payer", "Payer", CellKind.TEXT)
        assert coerce_input(column, "Stadt Osnabrueck") == "Stadt Osnabrueck"

"""Tests for tenant-scoped reads and option lists."""

import json

import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy.exc import OperationalError

from app.infra.error_handler import FetchError, ValidationError
from app.models.grid import CellKind
from app.infra.validation import encode_partner_selection
from app.services.column_catalog import COLUMN_BUILDERS, columns_for
from app.services.persistence_dispatch import resolve_assignments
from app.services.rpc_service import (
    fetch_option_list,
    fetch_section,
    fetch_table_rows,
    with_partner_selection,
)

TENANT = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def db_session():
    with patch("app.services.rpc_service.get_db_session") as mock_db:
        session = MagicMock()
        mock_db.return_value.__enter__.return_value = session
        yield mock_db, session


class TestFetchTableRows:

    def test_rpc_called_with_tenant_and_rows_without_id_dropped(self, db_session):
        mock_db, session = db_session
        with patch("app.services.rpc_service.call_rpc") as mock_rpc:
            mock_rpc.return_value = [
                {"id": "1", "full_name": "Erika Beispiel"},
                {"full_name": "Ghost Row"},
            ]
            rows = fetch_table_rows(TENANT, "tenants")

        mock_db.assert_called_once_with(TENANT)
        mock_rpc.assert_called_once_with(session, "get_renters_display", {"tenant_uuid": TENANT})
        assert rows == [{"id": "1", "full_name": "Erika Beispiel"}]

    def test_bank_transactions_get_partner_selection(self, db_session):
        with patch("app.services.rpc_service.call_rpc") as mock_rpc:
            mock_rpc.return_value = [{"id": "42", "tenant_ref": "7", "business_partner_ref": None}]
            rows = fetch_table_rows(TENANT, "bank_transactions")

        assert json.loads(rows[0]["partner_selection"]) == {"partnerId": "7", "partnerType": "tenant"}

    def test_unknown_table_rejected(self):
        with pytest.raises(ValidationError):
            fetch_table_rows(TENANT, "users")

    def test_database_failure_becomes_fetch_error(self, db_session):
        with patch("app.services.rpc_service.call_rpc") as mock_rpc:
            mock_rpc.side_effect = OperationalError("SELECT", {}, Exception("timeout"))
            with pytest.raises(FetchError) as exc_info:
                fetch_table_rows(TENANT, "business_partners")

        assert exc_info.value.section == "business_partners"
        assert exc_info.value.status_code == 502


class TestOptions:

    def test_combined_partners_values_are_tagged(self, db_session):
        with patch("app.services.rpc_service.call_rpc") as mock_rpc:
            mock_rpc.side_effect = [
                [{"id": "7", "name": "Erika Beispiel"}],
                [{"id": "9", "name": "Handwerk GmbH"}],
            ]
            options = fetch_option_list(TENANT, "combined_partners")

        assert [o["label"] for o in options] == ["Erika Beispiel (Tenant)", "Handwerk GmbH (Business)"]
        assert json.loads(options[1]["value"]) == {"partnerId": "9", "partnerType": "business_partner"}

    def test_option_value_matches_row_value(self, db_session):
        with patch("app.services.rpc_service.call_rpc") as mock_rpc:
            mock_rpc.side_effect = [[{"id": "7", "name": "Erika Beispiel"}], []]
            options = fetch_option_list(TENANT, "combined_partners")

        row = with_partner_selection({"id": "1", "tenant_ref": "7"})
        assert row["partner_selection"] == options[0]["value"]

    def test_invalid_kind(self):
        with pytest.raises(ValidationError):
            fetch_option_list(TENANT, "users")

    def test_section_degrades_when_options_fail(self):
        rows = [{"id": "1", "tenant_name": "Erika"}]
        with patch("app.services.rpc_service.fetch_table_rows", return_value=rows), \
             patch("app.services.rpc_service.fetch_option_list", side_effect=FetchError("down", section="tenants")):
            section = fetch_section(TENANT, "tenant_rent_milestones")

        assert section == {"data": rows, "options": {"tenants": []}}


class TestColumnCatalog:

    def test_options_injected_into_dropdowns(self):
        columns = columns_for("bank_transactions", {"properties": [{"label": "Iburgerstrasse 107", "value": "p-1"}]})
        by_key = {column.key: column for column in columns}

        assert by_key["property_ref"].cell_kind == CellKind.DROPDOWN
        assert by_key["property_ref"].options[0].label == "Iburgerstrasse 107"
        assert by_key["partner_selection"].options == []
        assert by_key["amount"].editable is False

    def test_unknown_table(self):
        with pytest.raises(ValidationError):
            columns_for("properties", {})

    @pytest.mark.parametrize("table", sorted(COLUMN_BUILDERS))
    def test_editable_columns_are_writable(self, table):
        for column in columns_for(table, {}):
            if not column.editable:
                continue
            value = encode_partner_selection("7", "tenant") if column.key == "partner_selection" else "x"
            assert resolve_assignments(table, column.key, value)

    def test_rent_milestone_tenant_link_is_read_only(self):
        by_key = {column.key: column for column in columns_for("tenant_rent_milestones", {})}
        assert by_key["tenant_id"].editable is False

"""Tests for the tenant-scoped update dispatcher."""

import json

import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError

from app.infra.error_handler import PersistenceError, ValidationError
from app.services.persistence_dispatch import dispatch_update, resolve_assignments


def session_returning(row):
    session = MagicMock()
    session.execute.return_value.fetchone.return_value = row
    return session


def returned_row(**values):
    row = MagicMock()
    row._mapping = values
    return row


def executed_sql(session):
    statement, params = session.execute.call_args[0]
    return str(statement), params


class TestResolveAssignments:
    """Test translation of edits into column assignments."""

    def test_partner_selection_tenant(self):
        assignments = resolve_assignments(
            "bank_transactions", "partner_selection", {"partnerId": "7", "partnerType": "tenant"}
        )
        assert assignments == {"tenant_ref": "7", "business_partner_ref": None}

    def test_partner_selection_business_partner_from_json(self):
        value = json.dumps({"partnerId": "9", "partnerType": "business_partner"})
        assignments = resolve_assignments("bank_transactions", "partner_selection", value)
        assert assignments == {"business_partner_ref": "9", "tenant_ref": None}

    @pytest.mark.parametrize("value", [
        {"partnerId": "7", "partnerType": "landlord"},
        {"partnerType": "tenant"},
        "not json",
        ["7", "tenant"],
    ])
    def test_partner_selection_invalid(self, value):
        with pytest.raises(ValidationError):
            resolve_assignments("bank_transactions", "partner_selection", value)

    def test_direct_partner_ref_clears_sibling(self):
        assert resolve_assignments("bank_transactions", "tenant_ref", "7") == {
            "tenant_ref": "7",
            "business_partner_ref": None,
        }

    def test_simple_field(self):
        assert resolve_assignments("bank_transactions", "booking_category", "Miete") == {"booking_category": "Miete"}

    def test_unknown_table_rejected(self):
        with pytest.raises(ValidationError):
            resolve_assignments("users", "email", "x@example.com")

    @pytest.mark.parametrize("field", ["id", "tenant_id", "created_at", "amount; DROP TABLE x", ""])
    def test_protected_or_unsafe_field_rejected(self, field):
        with pytest.raises(ValidationError):
            resolve_assignments("tenants", field, "x")

    def test_booking_category_columns_with_spaces_allowed(self):
        assert resolve_assignments("booking_categories", "Business - Main Category", "Wohnen") == {
            "Business - Main Category": "Wohnen"
        }


class TestDispatchUpdate:
    """Test the single-statement update."""

    def test_partner_selection_is_one_statement(self):
        session = session_returning(returned_row(id="42", tenant_ref="7", business_partner_ref=None))

        row = dispatch_update(
            session, "bank_transactions", "42", "partner_selection", {"partnerId": "7", "partnerType": "tenant"}
        )

        assert session.execute.call_count == 1
        sql, params = executed_sql(session)
        assert sql.startswith('UPDATE "bank_transactions" SET "tenant_ref" = :v0, "business_partner_ref" = :v1')
        assert "RETURNING *" in sql
        assert params == {"row_id": "42", "v0": "7", "v1": None}
        session.commit.assert_called_once()
        assert row == {"id": "42", "tenant_ref": "7", "business_partner_ref": None}

    def test_simple_update(self):
        session = session_returning(returned_row(id=5, status="active"))

        row = dispatch_update(session, "tenants", 5, "status", "active")

        sql, params = executed_sql(session)
        assert 'UPDATE "tenants" SET "status" = :v0 WHERE id = :row_id' in sql
        assert params == {"row_id": 5, "v0": "active"}
        assert row["status"] == "active"

    def test_validation_happens_before_any_statement(self):
        session = MagicMock()
        with pytest.raises(ValidationError):
            dispatch_update(session, "bank_transactions", "42", "id", "43")
        session.execute.assert_not_called()

    def test_missing_row_is_404(self):
        session = session_returning(None)
        with pytest.raises(PersistenceError) as exc_info:
            dispatch_update(session, "tenants", "missing", "status", "active")
        assert exc_info.value.status_code == 404

    def test_database_failure_rolls_back(self):
        session = MagicMock()
        session.execute.side_effect = OperationalError("UPDATE", {}, Exception("server closed the connection"))

        with pytest.raises(PersistenceError) as exc_info:
            dispatch_update(session, "tenants", "1", "status", "active")

        assert exc_info.value.status_code == 500
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

"""Rent overview and monthly summary API router."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.api.models import MonthlySummaryResponse, RentOverviewResponse
from app.api.utils import get_tenant_selection
from app.models.tenant import TenantSelection
from app.services.monthly_summary import build_monthly_summary
from app.services.rent_overview import get_rent_overview
from app.services.rpc_service import fetch_table_rows

router = APIRouter()


@router.get("/api/rent-overview", tags=["Reports"], response_model=RentOverviewResponse)
async def rent_overview(
    year: Optional[str] = Query(None, description="Four-digit year, defaults to the current year"),
    selection: TenantSelection = Depends(get_tenant_selection),
):
    """Rent payments of one year as a property -> partner -> month matrix."""
    return get_rent_overview(selection.tenant_id, year or str(date.today().year))


@router.get("/api/monthly-summary", tags=["Reports"], response_model=MonthlySummaryResponse)
async def monthly_summary(
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    selection: TenantSelection = Depends(get_tenant_selection),
):
    """Totals, rent income, expenses and category breakdown against the previous month."""
    transactions = fetch_table_rows(selection.tenant_id, "bank_transactions")
    return build_monthly_summary(transactions, month or date.today().strftime("%Y-%m"))

"""API request/response models."""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field

from app.models.grid import SortDirection


# ============================================================================
# Tenant Models
# ============================================================================

class TenantResponse(BaseModel):
    """One tenant the caller is authorized for."""
    tenant_id: str
    display_name: str
    plan_tier: Optional[str] = None
    role: Optional[str] = None
    subdomain: Optional[str] = None


class TenantListResponse(BaseModel):
    """Response model for listing authorized tenants."""
    items: List[TenantResponse]
    count: int


class CurrentTenantResponse(BaseModel):
    """The tenant resolved for this request."""
    tenant_id: str
    source: str = Field(..., description="url, cookie, demo_fallback or first_authorized", example="cookie")
    tenant: Optional[TenantResponse] = None


class SwitchTenantRequest(BaseModel):
    """Request model for switching the active tenant."""
    tenant_id: str = Field(..., description="Tenant to switch to", example="8f14e45f-ceea-467f-a3b1-4f0f3c2f7a10")


# ============================================================================
# Table Models
# ============================================================================

class TableSectionResponse(BaseModel):
    """Rows of one table plus the option lists its dropdown columns need."""
    data: List[Dict[str, Any]]
    options: Dict[str, List[Dict[str, Any]]] = {}


class GridViewRequest(BaseModel):
    """Server-side grid state for rendering one page."""
    sort_key: Optional[str] = Field(None, example="amount")
    sort_direction: SortDirection = SortDirection.ASC
    filters: Dict[str, List[Any]] = Field(default_factory=dict, description="Column key -> allowed values")
    global_filter: str = Field("", example="Miete")
    page_index: int = Field(0, ge=0)
    page_size: Optional[int] = Field(None, ge=1, le=500)


class DropdownOptionsResponse(BaseModel):
    """Option list for a dropdown column."""
    type: str
    options: List[Dict[str, Any]]


# ============================================================================
# Update Models
# ============================================================================

class UpdateRequest(BaseModel):
    """Request model for a single cell update."""
    table: str = Field(..., example="bank_transactions")
    id: Any = Field(..., description="Row id (UUID string or integer)", example="42")
    field: str = Field(..., example="booking_category")
    value: Any = Field(None, example="Miete")


class UpdateResponse(BaseModel):
    """The updated row as stored."""
    data: Dict[str, Any]


# ============================================================================
# Reporting Models
# ============================================================================

class RentSummary(BaseModel):
    total_rent: float
    transaction_count: int
    unique_partners: int
    unique_properties: int
    average_rent: float
    public_payments: int
    direct_payments: int


class RentOverviewResponse(BaseModel):
    """Rent matrix property -> partner -> month ("01".."12")."""
    year: str
    matrix: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]]
    summary: RentSummary
    transactions: List[Dict[str, Any]]


class MonthlySummaryResponse(BaseModel):
    """Month-over-month summary of bank transactions."""
    month: str
    previous_month: str
    current: Dict[str, Any]
    previous: Dict[str, Any]
    total_growth: float
    rent_growth: float
    categories: List[Dict[str, Any]]
    partners: List[Dict[str, Any]]


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Structured error body."""
    detail: str
    category: str

"""Tenant selection API router."""

import logging
from typing import List
from fastapi import APIRouter, Depends, Response

from app.infra.config import config
from app.infra.error_handler import AuthError
from app.api.models import (
    CurrentTenantResponse,
    SwitchTenantRequest,
    TenantListResponse,
    TenantResponse,
)
from app.api.utils import get_authorized_tenants, get_tenant_selection
from app.models.tenant import AuthorizedTenant, TenantSelection

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/api/tenants", tags=["Tenants"], response_model=TenantListResponse)
async def list_tenants(authorized_tenants: List[AuthorizedTenant] = Depends(get_authorized_tenants)):
    """List the tenants the caller is authorized for, ordered by name."""
    items = [TenantResponse(**tenant.to_dict()) for tenant in authorized_tenants]
    return TenantListResponse(items=items, count=len(items))


@router.get("/api/tenants/current", tags=["Tenants"], response_model=CurrentTenantResponse)
async def current_tenant(
    selection: TenantSelection = Depends(get_tenant_selection),
    authorized_tenants: List[AuthorizedTenant] = Depends(get_authorized_tenants),
):
    """Return the tenant this request resolves to and how it was chosen."""
    tenant = next((t for t in authorized_tenants if t.tenant_id == selection.tenant_id), None)
    return CurrentTenantResponse(
        tenant_id=selection.tenant_id,
        source=selection.source.value,
        tenant=TenantResponse(**tenant.to_dict()) if tenant else None,
    )


@router.post("/api/tenants/switch", tags=["Tenants"], response_model=TenantResponse)
async def switch_tenant(
    request: SwitchTenantRequest,
    response: Response,
    authorized_tenants: List[AuthorizedTenant] = Depends(get_authorized_tenants),
):
    """
    Switch the active tenant.

    Sets the tenant cookie (30 days, path /) read by later requests.

    **Example Request:**
    ```json
    {
        "tenant_id": "8f14e45f-ceea-467f-a3b1-4f0f3c2f7a10"
    }
    ```
    """
    tenant = next((t for t in authorized_tenants if t.tenant_id == request.tenant_id), None)
    if tenant is None:
        raise AuthError("Not authorized for this tenant", status_code=403)

    response.set_cookie(
        key=config.TENANT_COOKIE_NAME,
        value=tenant.tenant_id,
        max_age=config.TENANT_COOKIE_MAX_AGE,
        path="/",
        samesite="lax",
    )
    logger.info("Tenant switched", extra={"tenant_id": tenant.tenant_id})
    return TenantResponse(**tenant.to_dict())

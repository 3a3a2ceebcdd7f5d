"""Request dependencies shared by the dashboard routers."""

import logging
from typing import List, Optional
from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.infra.auth import get_current_user_id
from app.infra.config import config
from app.infra.database import get_db, set_tenant_scope
from app.infra.error_handler import FetchError
from app.infra.logging import bind_tenant
from app.models.tenant import AuthorizedTenant, TenantSelection
from app.services.tenant_context_service import load_authorized_tenants, resolve_request_tenant

logger = logging.getLogger(__name__)


async def get_authorized_tenants(user_id: str = Depends(get_current_user_id)) -> List[AuthorizedTenant]:
    """Tenants the calling user may act as, ordered by name."""
    try:
        return load_authorized_tenants(user_id)
    except SQLAlchemyError as e:
        logger.error("Error loading authorized tenants", extra={"user_id": user_id, "error": str(e)})
        raise FetchError("Failed to load authorized tenants", section="tenants") from e


async def get_tenant_selection(
    request: Request,
    authorized_tenants: List[AuthorizedTenant] = Depends(get_authorized_tenants),
    tenant_id: Optional[str] = Query(None, alias="tenantId", description="Explicit tenant override"),
) -> TenantSelection:
    """
    Resolve the tenant for this request from the URL and the tenant cookie.

    The cookie is only read here; it is written by the switch endpoint.
    """
    cookie_value = request.cookies.get(config.TENANT_COOKIE_NAME)
    selection = resolve_request_tenant(authorized_tenants, cookie_value, url_param=tenant_id)
    bind_tenant(selection.tenant_id)
    logger.debug("Tenant resolved", extra={"source": selection.source.value})
    return selection


async def get_tenant_db(
    selection: TenantSelection = Depends(get_tenant_selection),
    db: Session = Depends(get_db),
) -> Session:
    """Database session scoped to the resolved tenant for RLS."""
    set_tenant_scope(db, selection.tenant_id)
    return db

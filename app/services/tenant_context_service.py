"""Resolve which tenant a session operates on."""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import text

from app.infra.config import config
from app.infra.database import get_db_session
from app.infra.error_handler import NoTenantAccessError
from app.infra.metrics import tenant_resolutions_total
from app.models.tenant import AuthorizedTenant, SelectionSource, TenantSelection

logger = logging.getLogger(__name__)


def load_authorized_tenants(user_id: str) -> List[AuthorizedTenant]:
    """
    Load the tenants a user may act as, ordered by name.

    Reads the tenant_users_detailed view, which is not tenant-scoped.
    """
    with get_db_session() as session:
        rows = session.execute(
            text("""
                SELECT tenant_id, tenant_name, tenant_subdomain, tenant_plan, role
                FROM tenant_users_detailed
                WHERE user_id = :user_id
                ORDER BY tenant_name
            """),
            {"user_id": user_id}
        ).fetchall()

    return [
        AuthorizedTenant(
            tenant_id=str(row.tenant_id),
            display_name=row.tenant_name,
            plan_tier=row.tenant_plan,
            role=row.role,
            subdomain=row.tenant_subdomain,
        )
        for row in rows
    ]


def _is_authorized(tenant_id: Optional[str], authorized_tenants: Sequence[AuthorizedTenant]) -> bool:
    return bool(tenant_id) and any(t.tenant_id == tenant_id for t in authorized_tenants)


def resolve_initial_tenant(
    authorized_tenants: Sequence[AuthorizedTenant],
    url_param: Optional[str],
    saved_preference: Optional[str],
) -> Optional[TenantSelection]:
    """
    Pick the active tenant: URL parameter, then saved preference, then the
    first authorized tenant. Candidates the user is not authorized for are
    skipped.

    Returns:
        The selection, or None when the user has no authorized tenants
    """
    if not authorized_tenants:
        return None

    if _is_authorized(url_param, authorized_tenants):
        return TenantSelection(tenant_id=url_param, source=SelectionSource.URL)

    if _is_authorized(saved_preference, authorized_tenants):
        return TenantSelection(tenant_id=saved_preference, source=SelectionSource.PREFERENCE)

    return TenantSelection(tenant_id=authorized_tenants[0].tenant_id, source=SelectionSource.FIRST_AUTHORIZED)


def resolve_request_tenant(
    authorized_tenants: Sequence[AuthorizedTenant],
    cookie_value: Optional[str],
    url_param: Optional[str] = None,
) -> TenantSelection:
    """
    Server-side resolution for one request.

    A cookie naming a tenant outside the authorized list is treated as
    absent. Server requests have no local preference, so re-resolution goes
    straight to the first authorized tenant.

    Raises:
        NoTenantAccessError: If the user has no authorized tenants
    """
    if not authorized_tenants:
        logger.warning("No authorized tenants for user")
        raise NoTenantAccessError()

    if _is_authorized(url_param, authorized_tenants):
        selection = TenantSelection(tenant_id=url_param, source=SelectionSource.URL)
    elif _is_authorized(cookie_value, authorized_tenants):
        selection = TenantSelection(tenant_id=cookie_value, source=SelectionSource.COOKIE)
    elif (
        not cookie_value
        and config.ALLOW_DEMO_TENANT_FALLBACK
        and _is_authorized(config.DEMO_TENANT_ID, authorized_tenants)
    ):
        selection = TenantSelection(tenant_id=config.DEMO_TENANT_ID, source=SelectionSource.DEMO_FALLBACK)
    else:
        if cookie_value:
            logger.info("Ignoring tenant cookie outside the authorized list", extra={"cookie_tenant_id": cookie_value})
        selection = resolve_initial_tenant(authorized_tenants, None, None)

    tenant_resolutions_total.labels(selection.source.value).inc()
    return selection

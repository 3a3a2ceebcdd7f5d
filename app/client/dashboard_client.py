"""Async HTTP client for the dashboard API."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.infra.config import config
from app.infra.error_handler import (
    AuthError,
    DashboardError,
    ErrorCategory,
    FetchError,
    NoTenantAccessError,
    PersistenceError,
    ValidationError,
)
from app.models.tenant import AuthorizedTenant

logger = logging.getLogger(__name__)


def error_from_response(response: httpx.Response, section: Optional[str] = None) -> DashboardError:
    """Rebuild the typed error the API rendered as {detail, category}."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail") if isinstance(body, dict) else None
    category = body.get("category") if isinstance(body, dict) else None
    message = detail if isinstance(detail, str) else f"HTTP {response.status_code}"

    if category == ErrorCategory.RESOLUTION.value:
        return NoTenantAccessError(message)
    if category == ErrorCategory.VALIDATION.value or response.status_code in (400, 422):
        return ValidationError(message)
    if category == ErrorCategory.AUTH.value or response.status_code in (401, 403):
        return AuthError(message, status_code=response.status_code)
    if category == ErrorCategory.PERSISTENCE.value:
        return PersistenceError(message, status_code=response.status_code)
    if section is not None:
        return FetchError(message, section=section, retryable=response.status_code >= 500)
    return DashboardError(
        message,
        ErrorCategory.NETWORK if response.status_code == 504 else ErrorCategory.UNKNOWN,
        status_code=response.status_code,
        retryable=response.status_code >= 500,
    )


class DashboardClient:
    """
    Thin wrapper over httpx.AsyncClient.

    Holds the API key header and the cookie jar that carries the active
    tenant to the server.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {}
        api_key = api_key or config.DASHBOARD_API_KEY
        if api_key:
            headers["X-API-Key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url or config.DASHBOARD_API_URL,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # Tenant cookie -------------------------------------------------------

    @property
    def tenant_cookie(self) -> Optional[str]:
        return self._client.cookies.get(config.TENANT_COOKIE_NAME)

    def set_tenant_cookie(self, tenant_id: str) -> None:
        self._client.cookies.set(config.TENANT_COOKIE_NAME, tenant_id)

    def clear_tenant_cookie(self) -> None:
        self._client.cookies.delete(config.TENANT_COOKIE_NAME)

    # Requests ------------------------------------------------------------

    async def _request(self, method: str, path: str, section: Optional[str] = None, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("Request failed", extra={"method": method, "path": path, "error": str(e)})
            if section is not None:
                raise FetchError(f"Failed to reach dashboard API: {e}", section=section) from e
            raise DashboardError(f"Failed to reach dashboard API: {e}", ErrorCategory.NETWORK, retryable=True) from e

        if response.is_error:
            raise error_from_response(response, section=section)
        return response.json()

    async def list_tenants(self) -> List[AuthorizedTenant]:
        body = await self._request("GET", "/api/tenants", section="tenants")
        return [AuthorizedTenant.from_dict(item) for item in body.get("items", [])]

    async def fetch_section(self, table: str) -> Dict[str, Any]:
        """Rows and option lists for one table."""
        body = await self._request("GET", f"/api/database/{table}", section=table)
        return {"data": body.get("data", []), "options": body.get("options", {})}

    async def fetch_options(self, kind: str) -> List[Dict[str, Any]]:
        body = await self._request("GET", "/api/dropdown-options", section=kind, params={"type": kind})
        return body.get("options", [])

    async def update_cell(self, table: str, row_id: Any, field: str, value: Any) -> Dict[str, Any]:
        """Persist one cell; returns the updated row."""
        body = await self._request(
            "POST",
            "/api/database/update",
            json={"table": table, "id": row_id, "field": field, "value": value},
        )
        return body.get("data", {})

    async def rent_overview(self, year: str) -> Dict[str, Any]:
        return await self._request("GET", "/api/rent-overview", section="rent_overview", params={"year": year})

    async def monthly_summary(self, month: str) -> Dict[str, Any]:
        return await self._request("GET", "/api/monthly-summary", section="monthly_summary", params={"month": month})

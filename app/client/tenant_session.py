"""Client-side tenant context: resolution, persistence and switching."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Union

from app.client.dashboard_client import DashboardClient
from app.client.preference_store import SELECTED_TENANT_KEY, PreferenceStore
from app.infra.error_handler import NoTenantAccessError, ValidationError
from app.models.tenant import AuthorizedTenant, SelectionSource, TenantSelection
from app.services.tenant_context_service import resolve_initial_tenant

logger = logging.getLogger(__name__)

ReloadHook = Callable[[str], Awaitable[None]]


class TenantSession:
    """
    Holds the active tenant for one signed-in user.

    The choice is written to the preference file and the client cookie jar
    before anything that depends on it is fetched, so every request after a
    switch already carries the new tenant.
    """

    def __init__(self, client: DashboardClient, preferences: PreferenceStore):
        self.client = client
        self.preferences = preferences
        self.authorized_tenants: List[AuthorizedTenant] = []
        self.selection: Optional[TenantSelection] = None
        self._reload_hooks: List[ReloadHook] = []

    @property
    def tenant_id(self) -> Optional[str]:
        return self.selection.tenant_id if self.selection else None

    @property
    def current_tenant(self) -> Optional[AuthorizedTenant]:
        return self._find(self.tenant_id)

    def _find(self, tenant_id: Optional[str]) -> Optional[AuthorizedTenant]:
        return next((t for t in self.authorized_tenants if t.tenant_id == tenant_id), None)

    def on_tenant_change(self, hook: ReloadHook) -> None:
        """Register a coroutine called with the new tenant id after a switch."""
        self._reload_hooks.append(hook)

    def _persist(self, tenant_id: str) -> None:
        self.preferences.set(SELECTED_TENANT_KEY, tenant_id)
        self.client.set_tenant_cookie(tenant_id)

    async def load(self, url_param: Optional[str] = None) -> TenantSelection:
        """
        Fetch the user's tenants and resolve the active one.

        Raises:
            NoTenantAccessError: If the user has no authorized tenants
            FetchError: If the tenant list cannot be loaded
        """
        self.authorized_tenants = await self.client.list_tenants()
        saved = self.preferences.get(SELECTED_TENANT_KEY)

        selection = resolve_initial_tenant(self.authorized_tenants, url_param, saved)
        if selection is None:
            self.selection = None
            raise NoTenantAccessError()

        if saved and selection.source != SelectionSource.PREFERENCE:
            logger.info("Saved tenant preference not used", extra={"saved_tenant_id": saved})

        self._persist(selection.tenant_id)
        self.selection = selection
        return selection

    async def switch_tenant(self, tenant: Union[AuthorizedTenant, str]) -> TenantSelection:
        """
        Make another authorized tenant active and reload every registered view.

        Raises:
            ValidationError: If the tenant is not in the authorized list
        """
        tenant_id = tenant.tenant_id if isinstance(tenant, AuthorizedTenant) else tenant
        if self._find(tenant_id) is None:
            raise ValidationError(f"Not authorized for tenant: {tenant_id}")

        self.selection = TenantSelection(tenant_id=tenant_id, source=SelectionSource.PREFERENCE)
        self._persist(tenant_id)
        logger.info("Switched tenant", extra={"tenant_id": tenant_id})

        await asyncio.gather(*(hook(tenant_id) for hook in self._reload_hooks))
        return self.selection

    def sign_out(self) -> None:
        """Forget the tenant choice on this machine."""
        self.preferences.remove(SELECTED_TENANT_KEY)
        self.client.clear_tenant_cookie()
        self.authorized_tenants = []
        self.selection = None

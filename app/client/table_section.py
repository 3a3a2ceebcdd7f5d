"""One table of the dashboard: fetch, grid state, save and error banner."""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional

from app.client.dashboard_client import DashboardClient
from app.client.preference_store import PreferenceStore
from app.client.tenant_session import TenantSession
from app.infra.config import config
from app.infra.error_handler import DashboardError, ErrorDescriptor, FetchError, describe_error
from app.models.grid import CommitOutcome, CommitStatus, GridConfig, RowId
from app.models.tenant import TenantSelection
from app.services.column_catalog import columns_for
from app.services.data_grid import DataGrid

logger = logging.getLogger(__name__)

DASHBOARD_TABLES = (
    "bank_transactions",
    "booking_categories",
    "tenants",
    "business_partners",
    "tenant_rent_milestones",
)


class TableSection:
    """
    A table section renders independently: a failed fetch sets `error` on
    this section only and leaves the others untouched.
    """

    def __init__(
        self,
        client: DashboardClient,
        table: str,
        grid_config: Optional[GridConfig] = None,
        refresh_after_save: bool = True,
    ):
        self.client = client
        self.table = table
        self.grid_config = grid_config or GridConfig(default_page_size=config.DEFAULT_PAGE_SIZE)
        self.refresh_after_save = refresh_after_save
        self.grid: Optional[DataGrid] = None
        self.error: Optional[ErrorDescriptor] = None
        self.last_save_error: Optional[ErrorDescriptor] = None

    async def _save(self, row_id: RowId, key: str, value: Any) -> Dict[str, Any]:
        return await self.client.update_cell(self.table, row_id, key, value)

    def _on_save_error(self, outcome: CommitOutcome) -> None:
        self.last_save_error = outcome.error
        logger.warning(
            "Cell save failed",
            extra={"table": self.table, "row_id": str(outcome.row_id), "field": outcome.column_key},
        )

    def reset(self) -> None:
        """Drop grid state, e.g. when the tenant changes."""
        self.grid = None
        self.error = None
        self.last_save_error = None

    async def load(self) -> None:
        """Fetch rows and options; failures are kept on the section."""
        try:
            section = await self.client.fetch_section(self.table)
        except DashboardError as e:
            self.error = describe_error(e)
            logger.warning("Section failed to load", extra={"table": self.table, "error": e.message})
            return

        self.error = None
        columns = columns_for(self.table, section["options"])
        if self.grid is None:
            self.grid = DataGrid(
                section["data"],
                columns,
                self.grid_config,
                save=self._save,
                on_error=self._on_save_error,
            )
        else:
            self.grid.columns = list(columns)
            self.grid.refresh(section["data"])

    async def commit_cell(self, row_id: RowId, key: str, value: Any) -> CommitOutcome:
        """Commit through the grid, then refresh so saved edits reconcile."""
        if self.grid is None:
            raise FetchError(f"Section {self.table} is not loaded", section=self.table, retryable=False)
        outcome = await self.grid.commit_cell(row_id, key, value)
        if outcome.status == CommitStatus.SAVED and self.refresh_after_save:
            await self.load()
        return outcome


class DashboardPage:
    """All table sections of the dashboard bound to one tenant session."""

    def __init__(self, session: TenantSession, tables: Iterable[str] = DASHBOARD_TABLES):
        self.session = session
        self.sections: Dict[str, TableSection] = {
            table: TableSection(session.client, table) for table in tables
        }
        session.on_tenant_change(self.reload_all)

    async def open(self, url_param: Optional[str] = None) -> TenantSelection:
        """Resolve the tenant, then load every section."""
        selection = await self.session.load(url_param)
        await self.reload_all(selection.tenant_id)
        return selection

    async def reload_all(self, tenant_id: Optional[str] = None) -> None:
        for section in self.sections.values():
            section.reset()
        await asyncio.gather(*(section.load() for section in self.sections.values()))


def open_dashboard_client(
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
    preferences_path: Optional[str] = None,
) -> DashboardPage:
    """Wire a client, a preference file and a session into a dashboard page."""
    client = DashboardClient(base_url=base_url, api_key=api_key)
    preferences = PreferenceStore(preferences_path or config.CLIENT_PREFERENCES_PATH)
    return DashboardPage(TenantSession(client, preferences))

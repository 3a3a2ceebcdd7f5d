"""Table data API router: sections, rendered grid views and option lists."""

import logging
from fastapi import APIRouter, Depends, Query

from app.infra.config import config
from app.api.models import DropdownOptionsResponse, GridViewRequest, TableSectionResponse
from app.api.utils import get_tenant_selection
from app.models.grid import GridConfig
from app.models.tenant import TenantSelection
from app.services.column_catalog import columns_for
from app.services.data_grid import DataGrid
from app.services.rpc_service import fetch_option_list, fetch_section

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/api/database/{table}", tags=["Tables"], response_model=TableSectionResponse)
async def get_table_section(
    table: str,
    selection: TenantSelection = Depends(get_tenant_selection),
):
    """
    Rows of one table for the active tenant, plus the option lists its
    dropdown columns need.

    Rows without an id are dropped. An unavailable option list comes back
    empty instead of failing the section.
    """
    return fetch_section(selection.tenant_id, table)


@router.post("/api/database/{table}/view", tags=["Tables"])
async def render_table_view(
    table: str,
    request: GridViewRequest,
    selection: TenantSelection = Depends(get_tenant_selection),
):
    """
    Render one page of a table server-side.

    Applies the same sorting, filtering and pagination as the dashboard grid.

    **Example Request:**
    ```json
    {
        "sort_key": "amount",
        "sort_direction": "desc",
        "filters": {"booking_category": ["Miete"]},
        "global_filter": "",
        "page_index": 0,
        "page_size": 25
    }
    ```
    """
    section = fetch_section(selection.tenant_id, table)
    columns = columns_for(table, section["options"])

    grid = DataGrid(
        section["data"],
        columns,
        GridConfig(default_page_size=request.page_size or config.DEFAULT_PAGE_SIZE),
    )
    if request.sort_key:
        grid.set_sort(request.sort_key, request.sort_direction)
    for key, values in request.filters.items():
        grid.set_column_filter(key, values)
    grid.set_global_filter(request.global_filter)
    grid.set_page(request.page_index)

    return grid.render().to_dict()


@router.get("/api/dropdown-options", tags=["Tables"], response_model=DropdownOptionsResponse)
async def get_dropdown_options(
    type: str = Query(..., description="tenants, business_partners, properties, booking_categories or combined_partners"),
    selection: TenantSelection = Depends(get_tenant_selection),
):
    """Option list for one dropdown kind."""
    return DropdownOptionsResponse(type=type, options=fetch_option_list(selection.tenant_id, type))

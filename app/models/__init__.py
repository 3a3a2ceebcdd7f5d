from .tenant import AuthorizedTenant, SelectionSource, TenantSelection
from .grid import (
    CellKind,
    ColumnDescriptor,
    CommitOutcome,
    CommitStatus,
    DropdownOption,
    GridConfig,
    GridView,
    OptimisticEdit,
    SortDirection,
    SortState,
)

__all__ = [
    "AuthorizedTenant",
    "SelectionSource",
    "TenantSelection",
    "CellKind",
    "ColumnDescriptor",
    "CommitOutcome",
    "CommitStatus",
    "DropdownOption",
    "GridConfig",
    "GridView",
    "OptimisticEdit",
    "SortDirection",
    "SortState",
]

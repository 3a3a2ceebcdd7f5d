"""Data grid models: column descriptors, grid state and edit outcomes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from app.infra.error_handler import ErrorDescriptor

RowId = Union[str, int]
Row = Dict[str, Any]


class CellKind(str, Enum):
    """Rendering/editing strategy of a column."""
    TEXT = "text"
    CURRENCY = "currency"
    DATE = "date"
    BOOLEAN = "boolean"
    DROPDOWN = "dropdown"
    LINK = "link"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class DropdownOption:
    label: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass
class ColumnDescriptor:
    """How to render and optionally edit one field of every row."""
    key: str
    label: str
    cell_kind: CellKind = CellKind.TEXT
    editable: bool = False
    options: List[DropdownOption] = field(default_factory=list)  # dropdown
    currency: str = "EUR"  # currency
    title_field: Optional[str] = None  # link
    sortable: bool = True
    filterable: bool = True
    hidden: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "cell_kind": self.cell_kind.value,
            "editable": self.editable,
            "options": [option.to_dict() for option in self.options],
            "currency": self.currency,
            "title_field": self.title_field,
            "sortable": self.sortable,
            "filterable": self.filterable,
            "hidden": self.hidden,
        }


@dataclass
class GridConfig:
    enable_sorting: bool = True
    enable_filtering: bool = True
    enable_pagination: bool = True
    enable_row_selection: bool = False
    enable_drag_reorder: bool = False
    default_page_size: int = 25


@dataclass(frozen=True)
class SortState:
    key: str
    direction: SortDirection = SortDirection.ASC


@dataclass
class OptimisticEdit:
    """
    Local override of one cell, displayed before the server confirms it.

    previous is the edit this one replaced, so a failed save can restore
    exactly what was displayed before.
    """
    row_id: RowId
    column_key: str
    value: Any
    previous: Optional["OptimisticEdit"] = None
    confirmed: bool = False


class CommitStatus(str, Enum):
    SAVED = "saved"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    REJECTED = "rejected"  # Not editable, unknown row, or save already in flight


@dataclass(frozen=True)
class CommitOutcome:
    row_id: RowId
    column_key: str
    status: CommitStatus
    value: Any = None
    error: Optional[ErrorDescriptor] = None

    @property
    def ok(self) -> bool:
        return self.status in (CommitStatus.SAVED, CommitStatus.UNCHANGED)


@dataclass(frozen=True)
class RenderedCell:
    value: Any
    display: str
    editing: bool = False
    draft: Any = None
    pending: bool = False  # An optimistic edit is displayed
    href: Optional[str] = None


@dataclass(frozen=True)
class RenderedRow:
    id: RowId
    cells: Dict[str, RenderedCell]
    selected: bool = False


@dataclass(frozen=True)
class GridView:
    """Visible page of a grid."""
    columns: List[ColumnDescriptor]
    rows: List[RenderedRow]
    page_index: int
    page_count: int
    page_size: int
    total_rows: int
    filtered_rows: int
    sort: Optional[SortState] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": [column.to_dict() for column in self.columns],
            "rows": [
                {
                    "id": row.id,
                    "selected": row.selected,
                    "cells": {
                        key: {
                            "value": cell.value,
                            "display": cell.display,
                            "pending": cell.pending,
                            "href": cell.href,
                        }
                        for key, cell in row.cells.items()
                    },
                }
                for row in self.rows
            ],
            "page_index": self.page_index,
            "page_count": self.page_count,
            "page_size": self.page_size,
            "total_rows": self.total_rows,
            "filtered_rows": self.filtered_rows,
            "sort": {"key": self.sort.key, "direction": self.sort.direction.value} if self.sort else None,
        }

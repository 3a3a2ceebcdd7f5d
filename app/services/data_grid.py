"""Schema-driven data grid with optimistic inline editing."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from app.infra.error_handler import ErrorDescriptor, ErrorCategory, ValidationError, describe_error
from app.models.grid import (
    CellKind,
    ColumnDescriptor,
    CommitOutcome,
    CommitStatus,
    GridConfig,
    GridView,
    OptimisticEdit,
    RenderedCell,
    RenderedRow,
    Row,
    RowId,
    SortDirection,
    SortState,
)
from app.services.cell_format import coerce_input, format_cell
from app.services.grid_engine import (
    facet_values,
    filter_rows,
    move_item,
    paginate,
    parse_date,
    parse_number,
    sort_rows,
)

logger = logging.getLogger(__name__)

SaveCallback = Callable[[RowId, str, Any], Awaitable[Any]]
ErrorCallback = Callable[[CommitOutcome], Any]
CellRef = Tuple[RowId, str]


def values_equal(column: Optional[ColumnDescriptor], a: Any, b: Any) -> bool:
    """
    Compare a stored cell value with an edited one.

    Currency cells tolerate numeric representation differences (1200 vs
    "1200.0") and date cells tolerate date spellings. Every other kind,
    text included, compares exactly so "0541" and "541" stay distinct.
    """
    if a == b:
        return True
    if a is None or b is None or column is None:
        return False
    if column.cell_kind == CellKind.CURRENCY:
        num_a, num_b = parse_number(a), parse_number(b)
        return num_a is not None and num_b is not None and num_a == num_b
    if column.cell_kind == CellKind.DATE:
        date_a, date_b = parse_date(a), parse_date(b)
        return date_a is not None and date_b is not None and date_a == date_b
    return False


class DataGrid:
    """
    Client-side table state for one set of rows and column descriptors.

    The grid knows nothing about the business meaning of its rows. Edits are
    displayed immediately as OptimisticEdits, persisted through the caller's
    save callback, rolled back when the save fails and discarded once a
    refresh shows the server holding the same value.
    """

    def __init__(
        self,
        rows: Iterable[Row],
        columns: Sequence[ColumnDescriptor],
        config: Optional[GridConfig] = None,
        save: Optional[SaveCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.columns: List[ColumnDescriptor] = list(columns)
        self.config = config or GridConfig()
        self._save = save
        self._on_error = on_error

        self._rows_by_id: Dict[RowId, Row] = {}
        self._order: List[RowId] = []
        self._edits: Dict[CellRef, OptimisticEdit] = {}
        self._in_flight: Set[CellRef] = set()

        self.sort: Optional[SortState] = None
        self.column_filters: Dict[str, Set[Any]] = {}
        self.global_filter: str = ""
        self.page_index: int = 0
        self.page_size: int = max(1, self.config.default_page_size)
        self.selected: Set[RowId] = set()

        self.editing: Optional[CellRef] = None
        self.draft: Any = None

        self._load(rows)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def _load(self, rows: Iterable[Row]) -> None:
        rows_by_id: Dict[RowId, Row] = {}
        incoming: List[RowId] = []
        for row in rows:
            row_id = row.get("id")
            if row_id is None:
                logger.warning("Dropping row without id", extra={"fields": sorted(row.keys())})
                continue
            if row_id not in rows_by_id:
                incoming.append(row_id)
            rows_by_id[row_id] = dict(row)

        # Known rows keep their (possibly reordered) position, new rows follow in server order
        order = [row_id for row_id in self._order if row_id in rows_by_id]
        known = set(order)
        order.extend(row_id for row_id in incoming if row_id not in known)

        self._rows_by_id = rows_by_id
        self._order = order

    def refresh(self, rows: Iterable[Row]) -> None:
        """Replace the rows with a fresh server copy and reconcile optimistic edits."""
        self._load(rows)

        for cell, edit in list(self._edits.items()):
            if cell in self._in_flight:
                continue
            row = self._rows_by_id.get(edit.row_id)
            if row is None:
                del self._edits[cell]
            elif edit.confirmed and values_equal(
                self.column(edit.column_key), row.get(edit.column_key), edit.value
            ):
                del self._edits[cell]

        self.selected &= set(self._rows_by_id)
        if self.editing and self.editing[0] not in self._rows_by_id:
            self.cancel_edit()
        self._clamp_page()

    @property
    def row_order(self) -> List[RowId]:
        return list(self._order)

    @property
    def pending_edits(self) -> List[OptimisticEdit]:
        return list(self._edits.values())

    def column(self, key: str) -> Optional[ColumnDescriptor]:
        for column in self.columns:
            if column.key == key:
                return column
        return None

    def displayed_row(self, row_id: RowId) -> Row:
        row = dict(self._rows_by_id[row_id])
        for (edit_row_id, key), edit in self._edits.items():
            if edit_row_id == row_id:
                row[key] = edit.value
        return row

    def displayed_value(self, row_id: RowId, key: str) -> Any:
        edit = self._edits.get((row_id, key))
        if edit is not None:
            return edit.value
        return self._rows_by_id[row_id].get(key)

    def displayed_rows(self) -> List[Row]:
        return [self.displayed_row(row_id) for row_id in self._order]

    # ------------------------------------------------------------------
    # Sort, filter, paginate
    # ------------------------------------------------------------------

    def toggle_sort(self, key: str) -> None:
        """New column sorts ascending; the same column flips direction."""
        column = self.column(key)
        if not self.config.enable_sorting or column is None or not column.sortable:
            return
        if self.sort and self.sort.key == key:
            direction = SortDirection.DESC if self.sort.direction == SortDirection.ASC else SortDirection.ASC
        else:
            direction = SortDirection.ASC
        self.sort = SortState(key=key, direction=direction)
        self.page_index = 0

    def set_sort(self, key: str, direction: SortDirection = SortDirection.ASC) -> None:
        column = self.column(key)
        if not self.config.enable_sorting or column is None or not column.sortable:
            return
        self.sort = SortState(key=key, direction=direction)
        self.page_index = 0

    def set_column_filter(self, key: str, values: Iterable[Any]) -> None:
        """Restrict a column to a set of allowed values; an empty set clears it."""
        if not self.config.enable_filtering:
            return
        allowed = set(values)
        if allowed:
            self.column_filters[key] = allowed
        else:
            self.column_filters.pop(key, None)
        self.page_index = 0

    def set_global_filter(self, text: str) -> None:
        if not self.config.enable_filtering:
            return
        self.global_filter = text or ""
        self.page_index = 0

    def clear_filters(self) -> None:
        self.column_filters = {}
        self.global_filter = ""
        self.page_index = 0

    def facet_values(self, key: str) -> List[Any]:
        return facet_values(self.displayed_rows(), key)

    def visible_rows(self) -> List[Row]:
        """Displayed rows after filtering and sorting, before pagination."""
        rows = self.displayed_rows()
        if self.config.enable_filtering:
            rows = filter_rows(rows, self.columns, self.column_filters, self.global_filter)
        if self.config.enable_sorting and self.sort:
            rows = sort_rows(rows, self.sort.key, self.sort.direction)
        return rows

    def set_page(self, page_index: int) -> None:
        self.page_index = page_index
        self._clamp_page()

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValidationError("page_size must be at least 1")
        self.page_size = page_size
        self.page_index = 0

    def _clamp_page(self) -> None:
        _, pages = paginate(self.visible_rows(), 0, self.page_size)
        self.page_index = min(max(self.page_index, 0), pages - 1)

    # ------------------------------------------------------------------
    # Selection and reordering
    # ------------------------------------------------------------------

    def toggle_row_selection(self, row_id: RowId) -> None:
        if not self.config.enable_row_selection or row_id not in self._rows_by_id:
            return
        if row_id in self.selected:
            self.selected.discard(row_id)
        else:
            self.selected.add(row_id)

    def select_page(self) -> None:
        if not self.config.enable_row_selection:
            return
        self.selected.update(row.id for row in self.render().rows)

    def clear_selection(self) -> None:
        self.selected.clear()

    def move_row(self, row_id: RowId, over_row_id: RowId) -> List[RowId]:
        """Move a row to where over_row_id sits. Local only; the caller persists if needed."""
        if self.config.enable_drag_reorder:
            self._order = move_item(self._order, row_id, over_row_id)
        return self.row_order

    # ------------------------------------------------------------------
    # Inline editing
    # ------------------------------------------------------------------

    async def begin_edit(self, row_id: RowId, key: str) -> bool:
        """
        Enter editing mode for a cell; the draft starts at the displayed value.

        Moving to another cell blurs the one being edited, which commits its draft.
        """
        column = self.column(key)
        if column is None or not column.editable or row_id not in self._rows_by_id:
            return False
        if self.editing == (row_id, key):
            return True
        if (row_id, key) in self._in_flight:
            return False
        if self.editing is not None:
            await self.blur()
            if row_id not in self._rows_by_id:
                return False
        self.editing = (row_id, key)
        self.draft = self.displayed_value(row_id, key)
        return True

    def update_draft(self, value: Any) -> None:
        if self.editing is None:
            return
        self.draft = value

    def cancel_edit(self) -> None:
        """Leave editing mode, discarding the draft."""
        self.editing = None
        self.draft = None

    async def press_key(self, key: str) -> Optional[CommitOutcome]:
        """Enter commits the draft, Escape cancels it."""
        if self.editing is None:
            return None
        if key == "Enter":
            return await self._commit_draft()
        if key == "Escape":
            self.cancel_edit()
        return None

    async def blur(self) -> Optional[CommitOutcome]:
        if self.editing is None:
            return None
        return await self._commit_draft()

    async def _commit_draft(self) -> CommitOutcome:
        row_id, key = self.editing
        value = self.draft
        self.cancel_edit()
        return await self.commit_cell(row_id, key, value)

    async def commit_cell(self, row_id: RowId, key: str, new_value: Any) -> CommitOutcome:
        """
        Apply an edit optimistically and persist it through the save callback.

        Never raises: failures are rolled back and returned as an outcome.
        """
        column = self.column(key)
        if column is None or not column.editable:
            return await self._reject(row_id, key, f"Column '{key}' is not editable")
        if row_id not in self._rows_by_id:
            return await self._reject(row_id, key, f"Unknown row: {row_id}")
        cell = (row_id, key)
        if cell in self._in_flight:
            return await self._reject(row_id, key, "A save for this cell is still in progress")
        if self._save is None:
            return await self._reject(row_id, key, "Grid has no save handler")

        try:
            value = coerce_input(column, new_value)
        except ValidationError as e:
            return await self._reject(row_id, key, e.message)

        if values_equal(column, self.displayed_value(row_id, key), value):
            return CommitOutcome(row_id=row_id, column_key=key, status=CommitStatus.UNCHANGED, value=value)

        edit = OptimisticEdit(row_id=row_id, column_key=key, value=value, previous=self._edits.get(cell))
        self._edits[cell] = edit
        self._in_flight.add(cell)

        try:
            await self._save(row_id, key, value)
        except Exception as exc:
            self._rollback(cell, edit)
            descriptor = describe_error(exc)
            logger.warning(
                "Cell save failed, optimistic edit rolled back",
                extra={"row_id": row_id, "column_key": key, "category": descriptor.category.value},
            )
            outcome = CommitOutcome(
                row_id=row_id, column_key=key, status=CommitStatus.FAILED, value=value, error=descriptor
            )
            await self._notify(outcome)
            return outcome
        finally:
            self._in_flight.discard(cell)

        edit.confirmed = True
        return CommitOutcome(row_id=row_id, column_key=key, status=CommitStatus.SAVED, value=value)

    def _rollback(self, cell: CellRef, edit: OptimisticEdit) -> None:
        if self._edits.get(cell) is not edit:
            return
        if edit.previous is not None:
            self._edits[cell] = edit.previous
        else:
            del self._edits[cell]

    async def _reject(self, row_id: RowId, key: str, message: str) -> CommitOutcome:
        outcome = CommitOutcome(
            row_id=row_id,
            column_key=key,
            status=CommitStatus.REJECTED,
            error=ErrorDescriptor(category=ErrorCategory.VALIDATION, message=message),
        )
        await self._notify(outcome)
        return outcome

    async def _notify(self, outcome: CommitOutcome) -> None:
        if self._on_error is None:
            return
        # Handle both sync and async callbacks
        result = self._on_error(outcome)
        if asyncio.iscoroutine(result):
            await result

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> GridView:
        """Visible page of rows in visible column order."""
        rows = self.visible_rows()
        if self.config.enable_pagination:
            page_rows, pages = paginate(rows, self.page_index, self.page_size)
        else:
            page_rows, pages = rows, 1

        visible_columns = [column for column in self.columns if not column.hidden]
        rendered_rows = []
        for row in page_rows:
            row_id = row["id"]
            cells = {}
            for column in visible_columns:
                display, href = format_cell(column, row)
                is_editing = self.editing == (row_id, column.key)
                cells[column.key] = RenderedCell(
                    value=row.get(column.key),
                    display=display,
                    editing=is_editing,
                    draft=self.draft if is_editing else None,
                    pending=(row_id, column.key) in self._edits,
                    href=href,
                )
            rendered_rows.append(RenderedRow(id=row_id, cells=cells, selected=row_id in self.selected))

        return GridView(
            columns=visible_columns,
            rows=rendered_rows,
            page_index=min(self.page_index, pages - 1),
            page_count=pages,
            page_size=self.page_size,
            total_rows=len(self._order),
            filtered_rows=len(rows),
            sort=self.sort,
        )

"""Pure row operations behind the data grid: compare, sort, filter, paginate, reorder."""

import math
from datetime import date, datetime, timezone
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from app.models.grid import ColumnDescriptor, Row, RowId, SortDirection

_DATE_FORMATS = ("%d.%m.%Y", "%d.%m.%Y %H:%M")


def parse_number(value: Any) -> Optional[float]:
    """Return value as a float if it is (or spells) a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_date(value: Any) -> Optional[datetime]:
    """Return value as a naive UTC datetime if it is a date or a date string."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        parsed = None
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            for fmt in _DATE_FORMATS:
                try:
                    parsed = datetime.strptime(raw, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    else:
        return None

    # Mixed aware/naive values must stay comparable
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def compare_values(a: Any, b: Any) -> int:
    """
    Compare two cell values.

    Numeric when both parse as numbers, chronological when both parse as
    dates, otherwise case-sensitive string comparison. Missing values sort
    after everything else.
    """
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1

    num_a, num_b = parse_number(a), parse_number(b)
    if num_a is not None and num_b is not None:
        return (num_a > num_b) - (num_a < num_b)

    date_a, date_b = parse_date(a), parse_date(b)
    if date_a is not None and date_b is not None:
        return (date_a > date_b) - (date_a < date_b)

    str_a, str_b = str(a), str(b)
    return (str_a > str_b) - (str_a < str_b)


def sort_rows(rows: Sequence[Row], key: str, direction: SortDirection) -> List[Row]:
    """Sort rows on one column. Descending is exactly the reverse of ascending."""
    ascending = sorted(rows, key=cmp_to_key(lambda left, right: compare_values(left.get(key), right.get(key))))
    if direction == SortDirection.DESC:
        ascending.reverse()
    return ascending


def matches_column_filters(row: Row, column_filters: Dict[str, Set[Any]]) -> bool:
    """A row passes when each active filter's set contains its value."""
    for key, allowed in column_filters.items():
        if allowed and row.get(key) not in allowed:
            return False
    return True


def matches_global_filter(row: Row, columns: Iterable[ColumnDescriptor], needle: str) -> bool:
    """Case-insensitive substring match against any filterable visible column."""
    if not needle:
        return True
    needle = needle.lower()
    for column in columns:
        if column.hidden or not column.filterable:
            continue
        value = row.get(column.key)
        if value is None:
            continue
        if needle in str(value).lower():
            return True
    return False


def filter_rows(
    rows: Sequence[Row],
    columns: Sequence[ColumnDescriptor],
    column_filters: Dict[str, Set[Any]],
    global_filter: str,
) -> List[Row]:
    return [
        row for row in rows
        if matches_column_filters(row, column_filters) and matches_global_filter(row, columns, global_filter)
    ]


def page_count(total: int, page_size: int) -> int:
    """Number of pages; an empty result still has one (empty) page."""
    if page_size <= 0:
        return 1
    return max(1, math.ceil(total / page_size))


def paginate(rows: Sequence[Row], page_index: int, page_size: int) -> Tuple[List[Row], int]:
    """Return the rows of one page and the page count."""
    pages = page_count(len(rows), page_size)
    page_index = min(max(page_index, 0), pages - 1)
    start = page_index * page_size
    return list(rows[start:start + page_size]), pages


def move_item(order: List[RowId], active_id: RowId, over_id: RowId) -> List[RowId]:
    """Move active_id to the position of over_id (drag and drop semantics)."""
    if active_id == over_id or active_id not in order or over_id not in order:
        return list(order)
    new_order = list(order)
    old_index = new_order.index(active_id)
    new_index = new_order.index(over_id)
    new_order.insert(new_index, new_order.pop(old_index))
    return new_order


def facet_values(rows: Iterable[Row], key: str) -> List[Any]:
    """Distinct non-null values of a column, in ascending order."""
    seen: List[Any] = []
    for row in rows:
        value = row.get(key)
        if value is not None and value not in seen:
            seen.append(value)
    return sorted(seen, key=cmp_to_key(compare_values))

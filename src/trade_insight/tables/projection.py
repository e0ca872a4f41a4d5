"""
Table projection: filter, sort and paginate.

One pure pipeline shared by the holdings, trades, dividends, lots and
transfers tables. The caller owns a TableQuery; every change that alters
the result set returns a new query with the page reset to 1.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar, Union

from trade_insight.models import SortDirection


T = TypeVar("T")

Predicate = Callable[[Any], bool]
SortField = Union[str, Callable[[Any], Any], None]
PageSize = Union[int, str]

ALL_PAGES = "all"
DEFAULT_PAGE_SIZE = 10
PAGE_SIZE_OPTIONS: tuple[PageSize, ...] = (10, 25, 50, 100, ALL_PAGES)


class ProjectionError(ValueError):
    """Raised for an invalid page size or an unsortable field."""
    pass


@dataclass(frozen=True)
class TableQuery:
    """
    Immutable table state: sort, filter and page.

    Attributes:
        sort_field: Attribute name, key function, or None for input order
        direction: Sort direction
        filter_predicate: Row filter, or None to keep every row
        page: 1-based page number
        page_size: Rows per page, or "all" to disable pagination
    """
    sort_field: SortField = None
    direction: SortDirection = SortDirection.DESC
    filter_predicate: Optional[Predicate] = None
    page: int = 1
    page_size: PageSize = DEFAULT_PAGE_SIZE

    def with_sort(self, sort_field: SortField) -> "TableQuery":
        """Sort by a field; the current field toggles direction."""
        if sort_field == self.sort_field:
            direction = (
                SortDirection.ASC
                if self.direction == SortDirection.DESC
                else SortDirection.DESC
            )
        else:
            direction = SortDirection.DESC
        return replace(self, sort_field=sort_field, direction=direction, page=1)

    def with_filter(self, predicate: Optional[Predicate]) -> "TableQuery":
        return replace(self, filter_predicate=predicate, page=1)

    def with_page(self, page: int) -> "TableQuery":
        return replace(self, page=page)

    def with_page_size(self, page_size: PageSize) -> "TableQuery":
        return replace(self, page_size=_validate_page_size(page_size), page=1)

    def for_new_items(self) -> "TableQuery":
        """Query to use after the underlying items were replaced."""
        return replace(self, page=1)


@dataclass
class ProjectionResult(Generic[T]):
    """One projected page plus counts for the pager."""
    page_items: list[T]
    total_filtered: int
    page: int
    total_pages: int
    page_size: PageSize
    total_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total_filtered == 0


def _validate_page_size(page_size: PageSize) -> PageSize:
    if isinstance(page_size, str):
        if page_size.strip().lower() == ALL_PAGES:
            return ALL_PAGES
        try:
            page_size = int(page_size)
        except ValueError:
            raise ProjectionError(f"Invalid page size: {page_size!r}")
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ProjectionError(
            f"Page size must be a positive integer or '{ALL_PAGES}', got {page_size!r}"
        )
    return page_size


def field_value(item: Any, name: str) -> Any:
    """Read a named field from an object or a mapping."""
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _epoch_millis(value: date) -> int:
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    else:
        moment = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def sort_key(value: Any) -> Any:
    """
    Comparable key for one cell value.

    Strings order case-insensitively with lowercase ahead of uppercase on
    ties; dates and datetimes order by epoch milliseconds; numbers by value.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return (value.casefold(), value.swapcase())
    if isinstance(value, (date, datetime)):
        return _epoch_millis(value)
    if isinstance(value, (int, float, Decimal)):
        return value
    raise ProjectionError(f"Cannot sort values of type {type(value).__name__}")


def _extractor(sort_field: SortField) -> Callable[[Any], Any]:
    if callable(sort_field):
        return sort_field
    if isinstance(sort_field, str):
        return lambda item: field_value(item, sort_field)
    raise ProjectionError(f"Invalid sort field: {sort_field!r}")


def sort_items(
    items: list[T],
    sort_field: SortField,
    direction: SortDirection = SortDirection.DESC,
) -> list[T]:
    """
    Stable sort returning a new list.

    Items whose sort value is None ("n/a") go last in either direction and
    keep their input order.
    """
    if sort_field is None:
        return list(items)

    extract = _extractor(sort_field)
    keyed = []
    missing = []
    for item in items:
        value = extract(item)
        if value is None:
            missing.append(item)
        else:
            keyed.append((sort_key(value), item))

    try:
        keyed.sort(key=lambda pair: pair[0], reverse=direction == SortDirection.DESC)
    except TypeError as e:
        raise ProjectionError(f"Sort field {sort_field!r} mixes incomparable values: {e}")

    return [item for _, item in keyed] + missing


def project(items: Iterable[T], query: TableQuery) -> ProjectionResult[T]:
    """
    Filter, then sort, then paginate.

    Args:
        items: Source rows (never mutated)
        query: Table state

    Returns:
        ProjectionResult with the requested page. A page past the end clamps
        to the last page and a page below 1 clamps to the first.

    Raises:
        ProjectionError: If the page size or sort field is invalid
    """
    source = list(items)
    page_size = _validate_page_size(query.page_size)

    if query.filter_predicate is None:
        filtered = source
    else:
        filtered = [item for item in source if query.filter_predicate(item)]

    ordered = sort_items(filtered, query.sort_field, query.direction)
    total_filtered = len(ordered)

    if page_size == ALL_PAGES:
        return ProjectionResult(
            page_items=ordered,
            total_filtered=total_filtered,
            page=1,
            total_pages=1,
            page_size=page_size,
            total_count=len(source),
        )

    total_pages = max(1, math.ceil(total_filtered / page_size))
    page = min(max(query.page, 1), total_pages)
    start = (page - 1) * page_size

    return ProjectionResult(
        page_items=ordered[start:start + page_size],
        total_filtered=total_filtered,
        page=page,
        total_pages=total_pages,
        page_size=page_size,
        total_count=len(source),
    )


def _comparable(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value.strip().casefold()
    return value


def text_search(query: Optional[str], *fields: str) -> Predicate:
    """
    Case-insensitive substring match over one or more fields.

    A blank query matches every row.
    """
    needle = (query or "").strip().casefold()

    def predicate(item: Any) -> bool:
        if not needle:
            return True
        for name in fields:
            value = field_value(item, name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            if needle in str(value).casefold():
                return True
        return False

    return predicate


def field_equals(name: str, value: Any) -> Predicate:
    """Match rows whose field equals ``value``; "all" or None matches every row."""
    if value is None or (isinstance(value, str) and value.strip().lower() == "all"):
        return lambda item: True

    wanted = _comparable(value)
    return lambda item: _comparable(field_value(item, name)) == wanted


def all_of(*predicates: Optional[Predicate]) -> Predicate:
    """Combine predicates with AND, skipping None."""
    active = [p for p in predicates if p is not None]
    return lambda item: all(p(item) for p in active)

"""
CSV export of projected tables.

Exports always cover the full filtered and sorted list, never the current
page. Cells are joined with commas and rows with newlines; embedded commas,
quotes and newlines are not escaped.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from trade_insight.periods import DateLike, to_date
from trade_insight.tables.columns import ExportColumn
from trade_insight.tables.projection import ALL_PAGES, TableQuery, project


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """
    Render headers and rows as CSV text.

    Args:
        headers: Column headers
        rows: Row cells; None renders as an empty cell

    Returns:
        Header line followed by one line per row, newline separated
    """
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(_cell(value) for value in row))
    return "\n".join(lines)


def export_table(
    items: Iterable[Any],
    columns: Sequence[ExportColumn],
    query: Optional[TableQuery] = None,
) -> str:
    """
    Export a table with its current filter and sort applied.

    Args:
        items: Source rows
        columns: Column set to export
        query: Current table state; its page and page size are ignored

    Returns:
        CSV text with one line per filtered row plus the header
    """
    full_query = (query or TableQuery()).with_page_size(ALL_PAGES)
    result = project(items, full_query)

    rows = [[column.extract(item) for column in columns] for item in result.page_items]
    return to_csv([column.header for column in columns], rows)


def export_filename(entity: str, on_date: DateLike) -> str:
    """File name for an export, e.g. ``holdings-2024-06-01.csv``."""
    return f"{entity}-{to_date(on_date).isoformat()}.csv"


def write_csv(text: str, output_path: str | Path) -> Path:
    """
    Write CSV text to disk.

    Args:
        text: CSV content from to_csv or export_table
        output_path: Destination file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="") as f:
        f.write(text + "\n")

    return output_path

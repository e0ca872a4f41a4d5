"""
Table module for the Trade Insight engine.

Provides the shared filter/sort/paginate projection and CSV export.
"""

from trade_insight.tables.projection import (
    ALL_PAGES,
    ProjectionError,
    ProjectionResult,
    TableQuery,
    all_of,
    field_equals,
    project,
    text_search,
)
from trade_insight.tables.columns import COLUMN_SETS, ExportColumn
from trade_insight.tables.export import (
    export_filename,
    export_table,
    to_csv,
    write_csv,
)

__all__ = [
    "ALL_PAGES",
    "ProjectionError",
    "ProjectionResult",
    "TableQuery",
    "all_of",
    "field_equals",
    "project",
    "text_search",
    "COLUMN_SETS",
    "ExportColumn",
    "export_filename",
    "export_table",
    "to_csv",
    "write_csv",
]

"""
DataTable Mixin for consistent table setup.

Provides reusable methods for:
- _configure_table(): Apply configuration to a DataTable
- _reset_table(): Clear rows and columns, then configure again
"""

from __future__ import annotations

from textual.widgets import DataTable


class DataTableMixin:
    """Mixin providing consistent DataTable setup."""

    def _configure_table(
        self,
        table: DataTable,
        columns: list[tuple[str, int | None]],
        *,
        cursor_type: str = "row",
        zebra_stripes: bool = True,
    ) -> None:
        """Apply configuration to a DataTable.

        Args:
            table: The DataTable instance to configure.
            columns: List of (column_name, width) tuples. Width can be None.
            cursor_type: Cursor type ('row', 'cell', or 'none').
            zebra_stripes: Whether to enable zebra striping.
        """
        table.cursor_type = cursor_type
        table.zebra_stripes = zebra_stripes
        for name, width in columns:
            table.add_column(name, width=width)

    def _reset_table(
        self,
        table: DataTable,
        columns: list[tuple[str, int | None]],
        **options: object,
    ) -> None:
        """Drop every row and column, then configure the table again."""
        table.clear(columns=True)
        self._configure_table(table, columns, **options)

"""
Compare Screen for diffing an execution against a baseline.

Both executions' results are fetched in parallel; the path-level diff is
computed once both have arrived and listed as New / Removed / Unchanged
items.
"""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Static

from binmave.errors import BinmaveError
from binmave.results.models import ExecutionResult
from binmave.tui.mixins import BackgroundTaskMixin, DataTableMixin, VimNavigationMixin
from binmave.tui.render import (
    NO_DIFFERENCES,
    STYLES,
    format_diff_summary,
    render_diff_row,
)
from binmave.tui.state import CompareState
from binmave.tui.widgets import NodeDetailModal


class CompareScreen(BackgroundTaskMixin, DataTableMixin, VimNavigationMixin, Screen):
    """Path-level diff between an execution and its baseline."""

    CSS = """
    CompareScreen {
        layout: vertical;
    }

    #summary, #filter {
        height: 1;
        padding: 0 1;
    }

    #error-banner {
        height: auto;
        padding: 0 1;
        color: $error;
        display: none;
    }

    #diff-table {
        height: 1fr;
        border: solid $primary;
    }

    #diff-empty {
        height: 1fr;
        padding: 1 2;
        color: $text-muted;
        display: none;
    }
    """

    BINDINGS = VimNavigationMixin.VIM_BINDINGS + [
        Binding("d", "diffs_only", "Diffs Only"),
        Binding("a", "show_all", "Show All"),
        Binding("i", "show_detail", "Detail"),
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        source: Any,
        execution_id: str,
        baseline_id: str,
        baseline_source: Any | None = None,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        """Initialize the CompareScreen.

        Args:
            source: Result source for the execution under review.
            execution_id: Execution under review.
            baseline_id: Baseline execution.
            baseline_source: Result source for the baseline; defaults to
                ``source``.
            name: Optional name for the screen.
            id: Optional ID for the screen.
            classes: Optional CSS classes for the screen.
        """
        super().__init__(name=name, id=id, classes=classes)
        self.source = source
        self.baseline_source = baseline_source or source
        self.state = CompareState(execution_id, baseline_id)

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        yield Static(id="summary")
        yield Static(id="filter")
        yield Static(id="error-banner")
        yield DataTable(id="diff-table")
        yield Static(NO_DIFFERENCES, id="diff-empty")
        yield Footer()

    def on_mount(self) -> None:
        """Fetch both result sets when the screen is mounted."""
        state = self.state
        self.title = f"Compare: {state.execution_id[:8]} vs {state.baseline_id[:8]}"
        self._configure_table(self.query_one("#diff-table", DataTable), [("Change", None)])
        self._refresh_view()

        self._run_fetch(
            "baseline",
            lambda: self.baseline_source.get_all_execution_results(state.baseline_id),
            self._on_baseline,
            self._on_fetch_error,
        )
        self._run_fetch(
            "current",
            lambda: self.source.get_all_execution_results(state.execution_id),
            self._on_current,
            self._on_fetch_error,
        )

    def _on_baseline(self, results: list[ExecutionResult]) -> None:
        self.state.apply_baseline(results)
        self._populate_table()
        self._refresh_view()

    def _on_current(self, results: list[ExecutionResult]) -> None:
        self.state.apply_current(results)
        self._populate_table()
        self._refresh_view()

    def _on_fetch_error(self, source: str, error: BinmaveError) -> None:
        self.state.apply_error(source, error)
        self.notify(f"{source}: {error}", severity="error")
        self._refresh_view()

    def _populate_table(self) -> None:
        table = self.query_one("#diff-table", DataTable)
        self._reset_table(table, [("Change", None)])
        width = max(table.size.width - 4, 20)
        for index, item in enumerate(self.state.visible_items()):
            table.add_row(render_diff_row(item, width=width), key=str(index))
        if table.row_count:
            table.move_cursor(row=self.state.selected_index)

    def _refresh_view(self) -> None:
        state = self.state

        summary = self.query_one("#summary", Static)
        if state.diff is None:
            summary.update(Text("Loading results...", style=STYLES["muted"]))
        else:
            summary.update(format_diff_summary(state.diff))

        filter_text = Text("Showing: ")
        filter_text.append(
            "Diffs only" if state.show_diffs_only else "All items", style=STYLES["header"]
        )
        self.query_one("#filter", Static).update(filter_text)

        banner = self.query_one("#error-banner", Static)
        banner.display = state.error is not None
        if state.error is not None:
            banner.update(Text(f"Error: {state.error}", style=STYLES["error"]))

        has_items = bool(state.visible_items())
        table = self.query_one("#diff-table", DataTable)
        table.display = has_items
        self.query_one("#diff-empty", Static).display = state.diff is not None and not has_items
        if has_items and self.focused is not table:
            table.focus()

    def _set_filter(self, diffs_only: bool) -> None:
        if self.state.show_diffs_only == diffs_only:
            return
        self.state.set_show_diffs_only(diffs_only)
        self._populate_table()
        self._refresh_view()

    def action_diffs_only(self) -> None:
        self._set_filter(True)

    def action_show_all(self) -> None:
        self._set_filter(False)

    def action_show_detail(self) -> None:
        """Show the full path and every contributing agent."""
        item = self.state.selected_item
        if item is None:
            return
        body = "\n".join([item.path, "", "Agents:"] + [f"  {name}" for name in item.agent_names])
        self.app.push_screen(NodeDetailModal(item.type.value.capitalize(), body))

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit()

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self.state.selected_index = event.cursor_row

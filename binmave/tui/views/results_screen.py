"""
Results Screen for one execution.

Shows the execution's per-agent results as a table, as per-agent trees, or
as one aggregated tree with prevalence counts and anomaly flags. Status and
results are fetched in background workers and re-fetched on a timer until
the execution reaches a terminal state.
"""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Static

from binmave.config import DEFAULT_POLL_INTERVAL
from binmave.errors import BinmaveError
from binmave.results.models import Execution, ExecutionResult, ExecutionStatus
from binmave.tui.mixins import BackgroundTaskMixin, DataTableMixin, VimNavigationMixin
from binmave.tui.render import (
    NO_TABLE_DATA,
    STYLES,
    format_progress,
    format_tab_bar,
    format_view_mode_bar,
)
from binmave.tui.state import ResultsState, ResultsTab, ViewMode
from binmave.tui.widgets import NodeDetailModal, ResultTree

AGENT_COLUMN_WIDTH = 20


class ResultsScreen(BackgroundTaskMixin, DataTableMixin, VimNavigationMixin, Screen):
    """Table / tree / aggregated view of one execution's results."""

    CSS = """
    ResultsScreen {
        layout: vertical;
    }

    #progress, #tab-bar {
        height: 1;
        padding: 0 1;
    }

    #error-banner {
        height: auto;
        padding: 0 1;
        color: $error;
        display: none;
    }

    #results-table {
        height: 1fr;
        border: solid $primary;
    }

    #table-empty {
        height: 1fr;
        padding: 1 2;
        color: $text-muted;
        display: none;
    }

    #result-tree {
        border: solid $primary;
    }
    """

    BINDINGS = VimNavigationMixin.VIM_BINDINGS + [
        Binding("tab", "next_tab", "Next Tab", priority=True),
        Binding("1", "view_table", "Table"),
        Binding("2", "view_tree", "Tree"),
        Binding("3", "view_aggregated", "Aggregated"),
        Binding("a", "toggle_anomalies", "Anomalies Only"),
        Binding("i", "show_detail", "Detail", show=False),
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        source: Any,
        execution_id: str,
        view_mode: ViewMode = ViewMode.TABLE,
        anomalies_only: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        """Initialize the ResultsScreen.

        Args:
            source: Result source (ResultsClient or ResultsFile).
            execution_id: Execution to show.
            view_mode: Presentation to start in, once the data allows it.
            anomalies_only: Start the aggregated view filtered to anomalies.
            poll_interval: Seconds between refreshes while running.
            name: Optional name for the screen.
            id: Optional ID for the screen.
            classes: Optional CSS classes for the screen.
        """
        super().__init__(name=name, id=id, classes=classes)
        self.source = source
        self.poll_interval = poll_interval
        self.state = ResultsState(execution_id, view_mode, anomalies_only)
        self._poll_timer: Timer | None = None

    @property
    def execution_id(self) -> str:
        return self.state.execution_id

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        yield Static(id="progress")
        yield Static(id="error-banner")
        yield Static(id="tab-bar")
        yield DataTable(id="results-table")
        yield Static(NO_TABLE_DATA, id="table-empty")
        yield ResultTree(self.state.navigator, id="result-tree")
        yield Footer()

    def on_mount(self) -> None:
        """Start fetching when the screen is mounted."""
        self.title = f"Results: {self.execution_id[:8]}"
        self._populate_table()
        self._refresh_view()
        self._run_fetch(
            "execution",
            lambda: self.source.get_execution(self.execution_id),
            self._on_execution,
            self._on_fetch_error,
        )
        self._fetch_status()
        self._fetch_results()

    # Fetching

    def _fetch_status(self) -> None:
        self._run_fetch(
            "status",
            lambda: self.source.get_execution_status(self.execution_id),
            self._on_status,
            self._on_fetch_error,
        )

    def _fetch_results(self) -> None:
        self._run_fetch(
            "results",
            lambda: self.source.get_all_execution_results(self.execution_id),
            self._on_results,
            self._on_fetch_error,
        )

    def _poll(self) -> None:
        """Timer tick: refresh status, and results while still running."""
        self._fetch_status()
        if self.state.polling:
            self._fetch_results()

    def _ensure_polling(self) -> None:
        if self._poll_timer is None:
            self._poll_timer = self.set_interval(self.poll_interval, self._poll)

    def _stop_polling(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.stop()
            self._poll_timer = None

    def _on_execution(self, execution: Execution) -> None:
        if execution.script_name:
            self.sub_title = execution.script_name

    def _on_status(self, status: ExecutionStatus) -> None:
        was_polling = self._poll_timer is not None
        if self.state.apply_status(status):
            self._ensure_polling()
        else:
            self._stop_polling()
            if was_polling:
                # Pick up results that arrived since the last tick
                self._fetch_results()
        self._refresh_view()

    def _on_results(self, results: list[ExecutionResult]) -> None:
        self.state.apply_results(results)
        self._populate_table()
        self._refresh_view()

    def _on_fetch_error(self, source: str, error: BinmaveError) -> None:
        self.state.apply_error(source, error)
        self.notify(f"{source}: {error}", severity="error")
        if self.state.polling:
            self._ensure_polling()
        self._refresh_view()

    # Rendering

    def _populate_table(self) -> None:
        """Fill the DataTable from the state's table rows."""
        table = self.query_one("#results-table", DataTable)
        columns: list[tuple[str, int | None]] = [("Agent", AGENT_COLUMN_WIDTH)]
        columns.extend((column, None) for column in self.state.table_columns)
        self._reset_table(table, columns)

        for index, row in enumerate(self.state.table_rows):
            style = STYLES["error"] if row.has_error else ""
            cells = [Text(row.agent_name, style=style)]
            cells.extend(
                Text(row.data.get(column, ""), style=style)
                for column in self.state.table_columns
            )
            table.add_row(*cells, key=str(index))

        if self.state.table_rows:
            table.move_cursor(row=self.state.table_cursor)

    def _refresh_view(self) -> None:
        """Re-render every part of the screen from the state."""
        state = self.state

        if state.status is None and state.loading:
            progress = Text("Loading...", style=STYLES["muted"])
        else:
            progress = format_progress(state.status)
        self.query_one("#progress", Static).update(progress)

        banner = self.query_one("#error-banner", Static)
        banner.display = state.error is not None
        if state.error is not None:
            banner.update(Text(f"Error: {state.error}", style=STYLES["error"]))

        results_count, errors_count = state.tab_counts()
        bar = format_tab_bar(
            [(ResultsTab.RESULTS.label, results_count), (ResultsTab.ERRORS.label, errors_count)],
            state.tab.value,
        )
        bar.append("   ")
        bar.append_text(format_view_mode_bar(state.view_mode.value, state.hierarchical))
        self.query_one("#tab-bar", Static).update(bar)

        table = self.query_one("#results-table", DataTable)
        empty = self.query_one("#table-empty", Static)
        tree = self.query_one("#result-tree", ResultTree)

        in_table = state.view_mode is ViewMode.TABLE
        table.display = in_table and bool(state.table_rows)
        empty.display = in_table and not state.table_rows and not state.loading
        tree.display = not in_table
        tree.refresh()

        if in_table and table.display and self.focused is not table:
            table.focus()
        elif not in_table and self.focused is not tree:
            tree.focus()

    # Actions

    def action_next_tab(self) -> None:
        self.state.next_tab()
        self._populate_table()
        self._refresh_view()

    def _set_view_mode(self, mode: ViewMode) -> None:
        if not self.state.set_view_mode(mode):
            self.notify("Tree views need hierarchical results", severity="warning")
            return
        self._refresh_view()

    def action_view_table(self) -> None:
        self._set_view_mode(ViewMode.TABLE)

    def action_view_tree(self) -> None:
        self._set_view_mode(ViewMode.TREE)

    def action_view_aggregated(self) -> None:
        self._set_view_mode(ViewMode.AGGREGATED)

    def action_toggle_anomalies(self) -> None:
        """Toggle the anomalies-only filter in the aggregated view."""
        if not self.state.toggle_anomalies():
            return
        status = "on" if self.state.anomalies_only else "off"
        self.notify(f"Anomalies only {status}")
        self._refresh_view()

    def action_show_detail(self) -> None:
        """Show the selected table row in a modal (tree rows use ResultTree)."""
        if self.state.view_mode is not ViewMode.TABLE or not self.state.table_rows:
            return
        row = self.state.table_rows[self.state.table_cursor]
        self.app.push_screen(NodeDetailModal.for_table_row(row))

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit()

    # Events

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if event.data_table.id == "results-table":
            self.state.table_cursor = event.cursor_row

    def on_result_tree_detail_requested(self, message: ResultTree.DetailRequested) -> None:
        self.app.push_screen(NodeDetailModal.for_tree_row(message.row))

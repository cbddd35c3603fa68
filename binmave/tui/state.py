"""
View state for the results and compare screens.

Each screen owns exactly one state object and mutates it only from the
event loop: key handlers call the methods below, and fetch workers hand
their results back through ``call_from_thread`` before any method runs.
The screens then re-render from the state; nothing here touches widgets.
"""

from __future__ import annotations

import logging
from enum import Enum

from binmave.results.aggregator import build_aggregate_tree
from binmave.results.differ import DiffItem, DiffResult, compute_diff
from binmave.results.flatten import build_table_rows
from binmave.results.models import AgentTree, ExecutionResult, ExecutionStatus, TableRow
from binmave.results.normalizer import build_agent_trees
from binmave.results.structure import results_are_hierarchical
from binmave.tui.navigator import TreeNavigator

logger = logging.getLogger(__name__)


class ViewMode(Enum):
    """Results presentation; values are the 1/2/3 key order."""

    TABLE = 0
    TREE = 1
    AGGREGATED = 2

    @classmethod
    def from_name(cls, name: str) -> ViewMode:
        """Parse a CLI view name (``table``, ``tree``, ``aggregated``/``agg``)."""
        lowered = name.lower()
        if lowered in ("agg", "aggregated"):
            return cls.AGGREGATED
        if lowered == "tree":
            return cls.TREE
        return cls.TABLE

    @property
    def is_tree(self) -> bool:
        return self is not ViewMode.TABLE


class ResultsTab(Enum):
    RESULTS = 0
    ERRORS = 1

    @property
    def label(self) -> str:
        return "Results" if self is ResultsTab.RESULTS else "Errors"


class ResultsState:
    """State of one results screen.

    Attributes:
        execution_id: Execution being shown.
        view_mode: Active presentation (forced to Table when flat).
        preferred_mode: Mode asked for by the user or the CLI; restored
            once the data turns out to be hierarchical.
        tab: Active tab.
        anomalies_only: Aggregated view shows anomalous paths only.
        loading: True until the first results fetch completes.
        error: Banner text of the last failed fetch, or None.
        status: Last fetched status.
        results: All fetched results, or None before the first fetch.
        agent_trees: One tree per result of the active tab.
        table_rows: Flat rows of the active tab.
        table_columns: Ordered columns of table_rows.
        table_cursor: Selected table row.
        hierarchical: Whether tree views are available.
        navigator: Tree navigation state.
    """

    def __init__(
        self,
        execution_id: str,
        view_mode: ViewMode = ViewMode.TABLE,
        anomalies_only: bool = False,
    ) -> None:
        self.execution_id = execution_id
        self.view_mode = ViewMode.TABLE
        self.preferred_mode = view_mode
        self.tab = ResultsTab.RESULTS
        self.anomalies_only = anomalies_only
        self.loading = True
        self.error: str | None = None
        self.status: ExecutionStatus | None = None
        self.results: list[ExecutionResult] | None = None
        self.agent_trees: list[AgentTree] = []
        self.table_rows: list[TableRow] = []
        self.table_columns: list[str] = []
        self.table_cursor = 0
        self.hierarchical = False
        self.navigator = TreeNavigator()

    def current_results(self) -> list[ExecutionResult]:
        """Results of the active tab: non-error on Results, error on Errors."""
        want_errors = self.tab is ResultsTab.ERRORS
        return [r for r in self.results or [] if r.has_error == want_errors]

    # Fetch completions

    def apply_results(self, results: list[ExecutionResult]) -> None:
        self.results = list(results)
        self.loading = False
        self.error = None
        self.rebuild()

    def apply_status(self, status: ExecutionStatus) -> bool:
        """Store the status; returns whether polling must continue."""
        self.status = status
        self.error = None
        return not status.is_terminal

    def apply_error(self, source: str, exc: BaseException) -> None:
        """Record a failed fetch for the error banner."""
        self.loading = False
        self.error = f"{source}: {exc}"
        logger.warning("Fetch failed (%s) for %s: %s", source, self.execution_id, exc)

    # Derived data

    def rebuild(self) -> None:
        """Recompute trees, table rows and the navigator forest for the tab."""
        current = self.current_results()
        self.agent_trees = build_agent_trees(current)
        self.hierarchical = results_are_hierarchical(current)
        self.view_mode = self.preferred_mode if self.hierarchical else ViewMode.TABLE
        self.table_rows, self.table_columns = build_table_rows(current)
        self.table_cursor = min(self.table_cursor, max(0, len(self.table_rows) - 1))
        self.refresh_forest()

    def refresh_forest(self) -> None:
        """Point the navigator at per-agent trees or the aggregate."""
        if self.view_mode is ViewMode.AGGREGATED:
            if self.agent_trees:
                forest = [build_aggregate_tree(self.agent_trees, self.anomalies_only)]
            else:
                forest = []
            self.navigator.set_agents(forest)
        else:
            self.navigator.set_agents(self.agent_trees)

    # User actions

    def set_view_mode(self, mode: ViewMode) -> bool:
        """Switch presentation; tree modes are refused for flat data."""
        if mode.is_tree and not self.hierarchical:
            return False
        self.view_mode = self.preferred_mode = mode
        self.refresh_forest()
        return True

    def next_tab(self) -> None:
        self.tab = ResultsTab((self.tab.value + 1) % len(ResultsTab))
        self.table_cursor = 0
        self.rebuild()

    def toggle_anomalies(self) -> bool:
        """Flip anomalies-only; only meaningful in the aggregated view."""
        if self.view_mode is not ViewMode.AGGREGATED:
            return False
        self.anomalies_only = not self.anomalies_only
        self.refresh_forest()
        return True

    def tab_counts(self) -> tuple[int, int]:
        """(results, errors) from loaded results, else from the status."""
        if self.results is not None:
            errors = sum(1 for r in self.results if r.has_error)
            return len(self.results) - errors, errors
        if self.status is not None:
            return self.status.received - self.status.errors, self.status.errors
        return 0, 0

    @property
    def polling(self) -> bool:
        """True while the execution has not reached a terminal state."""
        return self.status is None or not self.status.is_terminal


class CompareState:
    """State of one compare screen.

    The two fetches may finish in either order; the diff is computed once
    both sides have arrived (``ready == 2``).
    """

    SIDES = 2

    def __init__(self, execution_id: str, baseline_id: str) -> None:
        self.execution_id = execution_id
        self.baseline_id = baseline_id
        self.baseline_results: list[ExecutionResult] | None = None
        self.current_results: list[ExecutionResult] | None = None
        self.ready = 0
        self.show_diffs_only = True
        self.diff: DiffResult | None = None
        self.error: str | None = None
        self.selected_index = 0

    @property
    def loading(self) -> bool:
        return self.ready < self.SIDES and self.error is None

    def apply_baseline(self, results: list[ExecutionResult]) -> None:
        if self.baseline_results is None:
            self.ready += 1
        self.baseline_results = list(results)
        self._maybe_compute()

    def apply_current(self, results: list[ExecutionResult]) -> None:
        if self.current_results is None:
            self.ready += 1
        self.current_results = list(results)
        self._maybe_compute()

    def apply_error(self, source: str, exc: BaseException) -> None:
        self.error = f"{source}: {exc}"
        logger.warning("Fetch failed (%s) comparing %s: %s", source, self.execution_id, exc)

    def _maybe_compute(self) -> None:
        if self.ready < self.SIDES:
            return
        self.diff = compute_diff(
            self.baseline_results, self.current_results, include_unchanged=True
        )
        self._clamp_selection()

    def visible_items(self) -> list[DiffItem]:
        if self.diff is None:
            return []
        return self.diff.visible_items(self.show_diffs_only)

    def set_show_diffs_only(self, diffs_only: bool) -> None:
        self.show_diffs_only = diffs_only
        self._clamp_selection()

    @property
    def selected_item(self) -> DiffItem | None:
        items = self.visible_items()
        if 0 <= self.selected_index < len(items):
            return items[self.selected_index]
        return None

    def _clamp_selection(self) -> None:
        count = len(self.visible_items())
        self.selected_index = max(0, min(self.selected_index, count - 1))

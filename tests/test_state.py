"""Tests for screen state objects in binmave/tui/state.py."""

from __future__ import annotations

import pytest

from binmave.errors import ConnectionFailedError
from binmave.results.differ import DiffType
from binmave.results.models import ExecutionStatus
from binmave.tui.state import CompareState, ResultsState, ResultsTab, ViewMode
from conftest import make_result


class TestViewMode:
    """Tests for ViewMode.from_name()."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("table", ViewMode.TABLE),
            ("tree", ViewMode.TREE),
            ("aggregated", ViewMode.AGGREGATED),
            ("agg", ViewMode.AGGREGATED),
            ("TREE", ViewMode.TREE),
            ("unknown", ViewMode.TABLE),
        ],
    )
    def test_from_name(self, name, expected):
        """CLI names map to view modes, defaulting to Table."""
        assert ViewMode.from_name(name) is expected

    def test_is_tree(self):
        """Only Table is not a tree mode."""
        assert not ViewMode.TABLE.is_tree
        assert ViewMode.TREE.is_tree
        assert ViewMode.AGGREGATED.is_tree


class TestResultsStateLoading:
    """Tests for ResultsState fetch completions."""

    def test_initial_state(self):
        """A new state is loading with no data."""
        state = ResultsState("exec-1", ViewMode.TREE)
        assert state.loading
        assert state.results is None
        assert state.view_mode is ViewMode.TABLE
        assert state.preferred_mode is ViewMode.TREE
        assert state.tab_counts() == (0, 0)
        assert len(state.navigator) == 0

    def test_hierarchical_results_restore_requested_mode(self, process_results):
        """The requested tree mode is applied once data is hierarchical."""
        state = ResultsState("exec-1", ViewMode.TREE)
        state.apply_results(process_results)
        assert not state.loading
        assert state.hierarchical
        assert state.view_mode is ViewMode.TREE
        assert [agent.agent_name for agent in state.navigator.agents] == [
            "host-1",
            "host-2",
            "host-3",
        ]

    def test_flat_results_force_table(self, flat_results):
        """Flat data keeps the table view and refuses tree modes."""
        state = ResultsState("exec-1", ViewMode.AGGREGATED)
        state.apply_results(flat_results)
        assert state.view_mode is ViewMode.TABLE
        assert not state.set_view_mode(ViewMode.TREE)
        assert state.view_mode is ViewMode.TABLE
        assert len(state.table_rows) == 3

    def test_aggregated_forest(self, process_results):
        """The aggregated view shows one All Agents tree."""
        state = ResultsState("exec-1", ViewMode.AGGREGATED)
        state.apply_results(process_results)
        assert [agent.agent_name for agent in state.navigator.agents] == ["All Agents (3)"]

    def test_status_controls_polling(self):
        """Polling continues until a terminal state arrives."""
        state = ResultsState("exec-1")
        assert state.polling
        assert state.apply_status(ExecutionStatus(expected=3, received=1, state="Running"))
        assert state.polling
        assert not state.apply_status(ExecutionStatus(expected=3, received=3, state="Completed"))
        assert not state.polling

    def test_error_and_recovery(self, process_results):
        """A failed fetch sets the banner; the next success clears it."""
        state = ResultsState("exec-1")
        state.apply_error("results", ConnectionFailedError("timed out"))
        assert state.error == "results: timed out"
        assert not state.loading
        state.apply_results(process_results)
        assert state.error is None

    def test_tab_counts_from_status(self):
        """Before results arrive, tab counts come from the status."""
        state = ResultsState("exec-1")
        state.apply_status(ExecutionStatus(expected=9, received=5, errors=2, state="Running"))
        assert state.tab_counts() == (3, 2)

    def test_empty_results(self):
        """No results give an empty table and an empty forest."""
        state = ResultsState("exec-1", ViewMode.AGGREGATED)
        state.apply_results([])
        assert state.table_rows == []
        assert state.navigator.agents == []
        assert state.view_mode is ViewMode.TABLE


class TestResultsStateActions:
    """Tests for ResultsState user actions."""

    @pytest.fixture
    def mixed_results(self, process_results):
        """Return process results plus one failed agent."""
        return process_results + [make_result("host-9", "", has_error=True, raw=True)]

    def test_tabs_split_errors(self, mixed_results):
        """Results and Errors tabs partition the results."""
        state = ResultsState("exec-1")
        state.apply_results(mixed_results)
        assert state.tab_counts() == (3, 1)
        assert [r.agent_name for r in state.current_results()] == ["host-1", "host-2", "host-3"]

        state.next_tab()
        assert state.tab is ResultsTab.ERRORS
        assert [r.agent_name for r in state.current_results()] == ["host-9"]
        assert state.table_cursor == 0

        state.next_tab()
        assert state.tab is ResultsTab.RESULTS

    def test_tab_switch_keeps_preferred_mode(self, mixed_results):
        """A flat Errors tab shows the table; returning restores the tree."""
        state = ResultsState("exec-1", ViewMode.TREE)
        state.apply_results(mixed_results)
        state.next_tab()
        assert state.view_mode is ViewMode.TABLE
        state.next_tab()
        assert state.view_mode is ViewMode.TREE

    def test_set_view_mode(self, process_results):
        """Switching modes swaps the navigator forest."""
        state = ResultsState("exec-1")
        state.apply_results(process_results)
        assert state.set_view_mode(ViewMode.AGGREGATED)
        assert len(state.navigator.agents) == 1
        assert state.set_view_mode(ViewMode.TREE)
        assert len(state.navigator.agents) == 3

    def test_toggle_anomalies_only_in_aggregated(self, process_results):
        """The anomalies filter is ignored outside the aggregated view."""
        state = ResultsState("exec-1", ViewMode.TREE)
        state.apply_results(process_results)
        assert not state.toggle_anomalies()
        assert not state.anomalies_only

        state.set_view_mode(ViewMode.AGGREGATED)
        assert state.toggle_anomalies()
        assert state.anomalies_only
        assert state.navigator.agents[0].roots == []


class TestCompareState:
    """Tests for CompareState."""

    def _pair(self):
        baseline = [make_result("h1", {"keep": {}, "old": {}})]
        current = [make_result("h1", {"keep": {}, "new": {}})]
        return baseline, current

    def test_waits_for_both_sides(self):
        """The diff is computed only once both sides have arrived."""
        baseline, current = self._pair()
        state = CompareState("exec-2", "exec-1")
        state.apply_current(current)
        assert state.diff is None
        assert state.loading
        state.apply_baseline(baseline)
        assert state.diff is not None
        assert not state.loading

    def test_order_independent(self):
        """Either arrival order gives the same diff."""
        baseline, current = self._pair()
        first = CompareState("exec-2", "exec-1")
        first.apply_baseline(baseline)
        first.apply_current(current)
        second = CompareState("exec-2", "exec-1")
        second.apply_current(current)
        second.apply_baseline(baseline)
        assert [i.path for i in first.visible_items()] == [i.path for i in second.visible_items()]

    def test_repeated_side_counts_once(self):
        """The same side arriving twice does not complete readiness."""
        baseline, _ = self._pair()
        state = CompareState("exec-2", "exec-1")
        state.apply_baseline(baseline)
        state.apply_baseline(baseline)
        assert state.ready == 1
        assert state.diff is None

    def test_filter(self):
        """Diffs only hides unchanged items; show all lists them."""
        baseline, current = self._pair()
        state = CompareState("exec-2", "exec-1")
        state.apply_baseline(baseline)
        state.apply_current(current)
        assert [i.type for i in state.visible_items()] == [DiffType.NEW, DiffType.REMOVED]
        state.set_show_diffs_only(False)
        assert [i.path for i in state.visible_items()] == ["/new", "/old", "/keep"]
        assert state.diff.unchanged_count == 1

    def test_selection_clamped_on_filter(self):
        """Narrowing the list pulls the selection back in range."""
        baseline, current = self._pair()
        state = CompareState("exec-2", "exec-1")
        state.apply_baseline(baseline)
        state.apply_current(current)
        state.set_show_diffs_only(False)
        state.selected_index = 2
        assert state.selected_item.path == "/keep"
        state.set_show_diffs_only(True)
        assert state.selected_index == 1
        assert state.selected_item.path == "/old"

    def test_no_selection_when_empty(self, process_results):
        """Identical sides leave nothing to select."""
        state = CompareState("exec-2", "exec-1")
        state.apply_baseline(process_results)
        state.apply_current(process_results)
        assert state.visible_items() == []
        assert state.selected_item is None
        assert state.selected_index == 0

    def test_error_stops_loading(self):
        """A failed fetch ends the loading state."""
        state = CompareState("exec-2", "exec-1")
        state.apply_error("baseline", ConnectionFailedError("refused"))
        assert state.error == "baseline: refused"
        assert not state.loading

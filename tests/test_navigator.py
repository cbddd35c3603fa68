"""Tests for tree navigation in binmave/tui/navigator.py."""

from __future__ import annotations

import random

import pytest

from binmave.results.normalizer import build_agent_trees
from binmave.tui.navigator import TreeNavigator


def visible_nodes(agents):
    """Nodes a correct flat list shows, walking only expanded parents."""
    shown = []

    def walk(nodes):
        for node in nodes:
            shown.append(node)
            if node.expanded:
                walk(node.children)

    for agent in agents:
        shown.append(agent)
        if agent.expanded:
            walk(agent.roots)
    return shown


def row_items(navigator):
    return [row.agent if row.is_agent else row.node for row in navigator.rows]


@pytest.fixture
def navigator(process_results):
    """Return a navigator over the three process agents."""
    nav = TreeNavigator(viewport_height=5)
    nav.set_agents(build_agent_trees(process_results))
    return nav


class TestRebuildFlatList:
    """Tests for flat list derivation."""

    def test_collapsed_headers_only(self, navigator):
        """Collapsed agents show only their header rows."""
        assert len(navigator) == 3
        assert all(row.is_agent for row in navigator.rows)
        assert [row.indent for row in navigator.rows] == [0, 0, 0]

    def test_expand_all(self, navigator):
        """Expanding everything lists every node depth-first."""
        navigator.expand_all()
        labels = [row.agent.agent_name if row.is_agent else row.node.label for row in navigator.rows]
        assert labels[:6] == ["host-1", "procs", "a.exe", "name: a.exe", "b.exe", "name: b.exe"]
        assert len(navigator) == 14

    def test_connector_metadata(self, navigator):
        """Rows carry indent, last-sibling flag and ancestor flags."""
        navigator.expand_all()
        procs, a_exe, name = navigator.rows[1:4]
        assert (procs.indent, procs.is_last, procs.parent_path) == (1, True, (True,))
        assert (a_exe.indent, a_exe.is_last, a_exe.parent_path) == (2, False, (True, False))
        assert (name.indent, name.is_last, name.parent_path) == (3, True, (True, False, True))

    def test_collapsed_node_hides_descendants(self, navigator):
        """Children of a collapsed node are not listed."""
        navigator.expand_all()
        navigator.select(1)
        navigator.collapse()
        assert row_items(navigator) == visible_nodes(navigator.agents)
        assert len(navigator) == 10

    def test_empty_forest(self):
        """An empty forest has no rows and selection 0."""
        nav = TreeNavigator()
        nav.set_agents([])
        assert len(nav) == 0
        assert nav.selected_index == 0
        assert nav.selected_row is None
        nav.toggle()
        nav.move_down()
        assert nav.selected_index == 0


class TestMovement:
    """Tests for cursor movement."""

    def test_move_down_and_up(self, navigator):
        """The cursor moves one row at a time."""
        navigator.move_down()
        assert navigator.selected_index == 1
        navigator.move_up()
        assert navigator.selected_index == 0

    def test_no_wraparound(self, navigator):
        """Movement clamps at both ends."""
        navigator.move_up()
        assert navigator.selected_index == 0
        navigator.move_to_bottom()
        navigator.move_down()
        assert navigator.selected_index == 2

    def test_select_clamped(self, navigator):
        """Selecting beyond the list clamps to the last row."""
        navigator.select(99)
        assert navigator.selected_index == 2
        navigator.select(-4)
        assert navigator.selected_index == 0

    def test_selected_accessors(self, navigator):
        """Header rows select an agent but no node."""
        assert navigator.selected_node is None
        assert navigator.selected_agent.agent_name == "host-1"
        navigator.expand()
        navigator.move_down()
        assert navigator.selected_node.label == "procs"
        assert navigator.selected_agent.agent_name == "host-1"


class TestExpansion:
    """Tests for toggle, expand and collapse."""

    def test_toggle_header(self, navigator):
        """Toggling a header shows its roots."""
        navigator.toggle()
        assert navigator.agents[0].expanded
        assert len(navigator) == 4
        navigator.toggle()
        assert len(navigator) == 3

    def test_expand_idempotent(self, navigator):
        """Expanding twice equals expanding once."""
        navigator.expand()
        navigator.expand()
        assert navigator.agents[0].expanded
        assert len(navigator) == 4

    def test_collapse_idempotent(self, navigator):
        """Collapsing a collapsed row is a no-op."""
        navigator.collapse()
        assert not navigator.agents[0].expanded
        assert len(navigator) == 3

    def test_toggle_leaf_flips_flag(self, navigator):
        """Toggle flips even a leaf's flag without changing the rows."""
        navigator.expand_all()
        navigator.select(3)
        leaf = navigator.selected_node
        assert not leaf.has_children
        before = leaf.expanded
        navigator.toggle()
        assert leaf.expanded is not before
        navigator.toggle()
        assert leaf.expanded is before
        assert len(navigator) == 14

    def test_expand_leaf_noop(self, navigator):
        """Expand leaves a leaf's flag alone."""
        navigator.expand_all()
        navigator.collapse_all()
        navigator.expand()
        navigator.select(1)
        navigator.expand()
        navigator.select(2)
        navigator.expand()
        navigator.select(3)
        leaf = navigator.selected_node
        navigator.expand()
        assert not leaf.expanded

    def test_collapse_all_clamps_selection(self, navigator):
        """Shrinking the list pulls the selection back in range."""
        navigator.expand_all()
        navigator.move_to_bottom()
        navigator.collapse_all()
        assert navigator.selected_index == 2
        assert not any(agent.expanded for agent in navigator.agents)


class TestViewport:
    """Tests for viewport scrolling."""

    def test_scrolls_down_minimally(self, navigator):
        """Selecting below the window scrolls just enough."""
        navigator.expand_all()
        navigator.select(10)
        assert navigator.viewport_start == 6
        assert [index for index, _ in navigator.visible_rows()] == [6, 7, 8, 9, 10]

    def test_scrolls_up(self, navigator):
        """Selecting above the window scrolls up to it."""
        navigator.expand_all()
        navigator.select(10)
        navigator.select(4)
        assert navigator.viewport_start == 4

    def test_window_clipped_at_end(self, navigator):
        """The window never lists rows past the end."""
        assert [index for index, _ in navigator.visible_rows()] == [0, 1, 2]

    def test_resize_keeps_selection_visible(self, navigator):
        """Shrinking the viewport keeps the cursor inside it."""
        navigator.expand_all()
        navigator.select(4)
        navigator.set_viewport_height(2)
        assert navigator.viewport_start <= 4 < navigator.viewport_start + 2


class TestInvariants:
    """Randomized operation sequences keep the navigator consistent."""

    def test_random_operations(self, process_results):
        """Selection stays in range and rows match the expanded forest."""
        rng = random.Random(1234)
        nav = TreeNavigator(viewport_height=4)
        nav.set_agents(build_agent_trees(process_results))
        operations = [
            nav.expand_all,
            nav.collapse_all,
            nav.toggle,
            nav.expand,
            nav.collapse,
            nav.move_up,
            nav.move_down,
            nav.move_to_top,
            nav.move_to_bottom,
        ]

        for _ in range(500):
            rng.choice(operations)()
            if len(nav):
                assert 0 <= nav.selected_index < len(nav)
            else:
                assert nav.selected_index == 0
            assert nav.viewport_start <= nav.selected_index < nav.viewport_start + nav.viewport_height
            assert row_items(nav) == visible_nodes(nav.agents)

"""
Keyboard navigation over a forest of agent trees.

The forest (AgentTree headers plus each node's ``expanded`` flag) is the
source of truth. The flat list of visible rows is derived from it by
rebuild_flat_list() after every mutation, and the selection index is
clamped to the new list each time.

Rows carry what the renderer needs for connector glyphs: the indent, whether
the node is the last of its siblings, and the same flag for every ancestor
(``parent_path``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from binmave.results.models import AgentTree, TreeNode

DEFAULT_VIEWPORT_HEIGHT = 20


@dataclass
class FlatRow:
    """One visible row: an agent header or a tree node.

    Attributes:
        agent: The agent tree the row belongs to.
        node: The node, or None for the agent header row.
        indent: 0 for headers, 1 for root nodes, +1 per level below.
        is_last: Whether the node is the last of its siblings.
        parent_path: ``is_last`` of every ancestor level, ending with the
            node's own flag.
    """

    agent: AgentTree
    node: TreeNode | None = None
    indent: int = 0
    is_last: bool = False
    parent_path: tuple[bool, ...] = field(default_factory=tuple)

    @property
    def is_agent(self) -> bool:
        return self.node is None


def _set_expanded(nodes: Iterable[TreeNode], expanded: bool) -> None:
    stack = list(nodes)
    while stack:
        node = stack.pop()
        node.expanded = expanded
        stack.extend(node.children)


class TreeNavigator:
    """Selection, expansion and scrolling state for the tree views."""

    def __init__(self, viewport_height: int = DEFAULT_VIEWPORT_HEIGHT) -> None:
        self.agents: list[AgentTree] = []
        self._rows: list[FlatRow] = []
        self.selected_index = 0
        self.viewport_start = 0
        self.viewport_height = max(1, viewport_height)

    @property
    def rows(self) -> list[FlatRow]:
        """All rows of the flat list (not just the visible window)."""
        return self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def set_agents(self, agents: list[AgentTree]) -> None:
        """Replace the forest and rebuild the flat list."""
        self.agents = list(agents)
        self.rebuild_flat_list()

    def rebuild_flat_list(self) -> None:
        """Derive the visible rows from the forest, then clamp the selection."""
        rows: list[FlatRow] = []
        for agent in self.agents:
            rows.append(FlatRow(agent=agent))
            if agent.expanded:
                last = len(agent.roots) - 1
                for i, root in enumerate(agent.roots):
                    self._flatten_node(rows, root, agent, 1, i == last, ())
        self._rows = rows
        self._clamp_selection()

    def _flatten_node(
        self,
        rows: list[FlatRow],
        node: TreeNode,
        agent: AgentTree,
        indent: int,
        is_last: bool,
        parent_path: tuple[bool, ...],
    ) -> None:
        path = parent_path + (is_last,)
        rows.append(
            FlatRow(agent=agent, node=node, indent=indent, is_last=is_last, parent_path=path)
        )
        if node.expanded:
            last = len(node.children) - 1
            for i, child in enumerate(node.children):
                self._flatten_node(rows, child, agent, indent + 1, i == last, path)

    def _clamp_selection(self) -> None:
        if self.selected_index >= len(self._rows):
            self.selected_index = len(self._rows) - 1
        if self.selected_index < 0:
            self.selected_index = 0
        self.ensure_selected_visible()

    # Selection

    def move_up(self) -> None:
        if self.selected_index > 0:
            self.selected_index -= 1
            self.ensure_selected_visible()

    def move_down(self) -> None:
        if self.selected_index < len(self._rows) - 1:
            self.selected_index += 1
            self.ensure_selected_visible()

    def move_to_top(self) -> None:
        self.select(0)

    def move_to_bottom(self) -> None:
        self.select(len(self._rows) - 1)

    def select(self, index: int) -> None:
        """Select a row by index, clamped to the flat list."""
        self.selected_index = index
        self._clamp_selection()

    @property
    def selected_row(self) -> FlatRow | None:
        if 0 <= self.selected_index < len(self._rows):
            return self._rows[self.selected_index]
        return None

    @property
    def selected_node(self) -> TreeNode | None:
        """The selected node, or None when an agent header is selected."""
        row = self.selected_row
        return row.node if row is not None else None

    @property
    def selected_agent(self) -> AgentTree | None:
        """The agent tree containing the selected row."""
        row = self.selected_row
        return row.agent if row is not None else None

    # Expansion

    def toggle(self) -> None:
        """Flip the expanded flag of the selected row."""
        row = self.selected_row
        if row is None:
            return
        if row.is_agent:
            row.agent.expanded = not row.agent.expanded
        else:
            row.node.expanded = not row.node.expanded
        self.rebuild_flat_list()

    def expand(self) -> None:
        """Expand the selected row; no-op if already expanded or a leaf."""
        row = self.selected_row
        if row is None:
            return
        if row.is_agent:
            if not row.agent.expanded:
                row.agent.expanded = True
                self.rebuild_flat_list()
        elif row.node.has_children and not row.node.expanded:
            row.node.expanded = True
            self.rebuild_flat_list()

    def collapse(self) -> None:
        """Collapse the selected row; no-op if already collapsed."""
        row = self.selected_row
        if row is None:
            return
        if row.is_agent:
            if row.agent.expanded:
                row.agent.expanded = False
                self.rebuild_flat_list()
        elif row.node.expanded:
            row.node.expanded = False
            self.rebuild_flat_list()

    def expand_all(self) -> None:
        for agent in self.agents:
            agent.expanded = True
            _set_expanded(agent.roots, True)
        self.rebuild_flat_list()

    def collapse_all(self) -> None:
        for agent in self.agents:
            agent.expanded = False
            _set_expanded(agent.roots, False)
        self.rebuild_flat_list()

    # Viewport

    def set_viewport_height(self, height: int) -> None:
        self.viewport_height = max(1, height)
        self.ensure_selected_visible()

    def ensure_selected_visible(self) -> None:
        """Scroll minimally so the selected row is inside the viewport."""
        if self.selected_index < self.viewport_start:
            self.viewport_start = self.selected_index
        if self.selected_index >= self.viewport_start + self.viewport_height:
            self.viewport_start = self.selected_index - self.viewport_height + 1
        if self.viewport_start < 0:
            self.viewport_start = 0

    def visible_rows(self) -> list[tuple[int, FlatRow]]:
        """``(index, row)`` pairs inside the viewport window."""
        end = min(self.viewport_start + self.viewport_height, len(self._rows))
        return [(i, self._rows[i]) for i in range(self.viewport_start, end)]

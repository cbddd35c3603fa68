"""
Text rendering for the results and compare screens.

Builds rich Text lines from navigator rows, tab counts, status and diff
items. The functions here only format; they never mutate view state.
"""

from __future__ import annotations

from typing import Sequence

from rich.text import Text

from binmave.results.differ import DiffItem, DiffResult, DiffType
from binmave.results.models import ExecutionStatus
from binmave.results.normalizer import truncate
from binmave.tui.navigator import FlatRow, TreeNavigator

# Tree glyphs
TREE_VERTICAL = "│"
TREE_HORIZONTAL = "─"
TREE_CORNER = "└"
TREE_TEE = "├"
TREE_EXPANDED = "▼"
TREE_COLLAPSED = "▶"
ANOMALY_MARKER = "⚠"

NO_TREE_DATA = "No data to display"
NO_TABLE_DATA = "No results to display"
NO_DIFFERENCES = "No differences found"

MIN_LABEL_WIDTH = 10
PROGRESS_BAR_WIDTH = 40

# Style names for each kind of row fragment
STYLES: dict[str, str] = {
    "branch": "#6B7280",
    "node": "#F9FAFB",
    "expanded": "bold #22C55E",
    "collapsed": "#6B7280",
    "header": "bold #7C3AED",
    "muted": "#6B7280",
    "count": "bold #3B82F6",
    "anomaly": "bold #F59E0B",
    "selected": "#F9FAFB on #3B82F6",
    "error": "#EF4444",
    "progress_full": "#22C55E",
    "progress_empty": "#6B7280",
    "tab_active": "bold underline #7C3AED",
    "tab_inactive": "#6B7280",
}

DIFF_STYLES: dict[DiffType, str] = {
    DiffType.NEW: "#22C55E",
    DiffType.REMOVED: "#EF4444",
    DiffType.MODIFIED: "#F59E0B",
    DiffType.UNCHANGED: "#6B7280",
}

VIEW_MODES = ("Table", "Tree", "Aggregated")


def build_prefix(row: FlatRow) -> str:
    """Connector glyphs drawn before a node label.

    Ancestor levels get ``│   `` (or blanks when that ancestor was the
    last sibling); the node's own level gets ``├─ `` or ``└─ ``.
    """
    if row.indent == 0:
        return ""
    parts = [
        "    " if ancestor_is_last else f"{TREE_VERTICAL}   "
        for ancestor_is_last in row.parent_path[:-1]
    ]
    parts.append(f"{TREE_CORNER if row.is_last else TREE_TEE}{TREE_HORIZONTAL} ")
    return "".join(parts)


def count_badge(row: FlatRow) -> str:
    """``" [count/total]"`` for aggregate nodes, plus the anomaly marker."""
    node = row.node
    if node is None or not node.is_aggregate:
        return ""
    badge = f" [{node.count}/{node.total_count}]"
    if node.is_anomaly:
        badge += f" {ANOMALY_MARKER}"
    return badge


def render_tree_row(row: FlatRow, selected: bool = False, width: int = 80) -> Text:
    """Render one navigator row."""
    if row.is_agent:
        agent = row.agent
        glyph = TREE_EXPANDED if agent.expanded else TREE_COLLAPSED
        if selected:
            return Text(f"{glyph} {agent.agent_name} ({agent.node_count} items)", style=STYLES["selected"])
        text = Text()
        text.append(glyph, style=STYLES["expanded"])
        text.append(" ")
        text.append(agent.agent_name, style=STYLES["error"] if agent.has_error else STYLES["header"])
        text.append(f" ({agent.node_count} items)", style=STYLES["muted"])
        return text

    node = row.node
    prefix = build_prefix(row)
    expand = ""
    if node.has_children:
        expand = f"{TREE_EXPANDED if node.expanded else TREE_COLLAPSED} "
    badge = count_badge(row)

    max_label = max(MIN_LABEL_WIDTH, width - len(prefix) - len(expand) - len(badge) - 4)
    label = truncate(node.label, max_label)

    if selected:
        return Text(prefix + expand + label + badge, style=STYLES["selected"])

    text = Text()
    text.append(prefix, style=STYLES["branch"])
    if expand:
        text.append(expand, style=STYLES["expanded" if node.expanded else "collapsed"])
    text.append(label, style=STYLES["node"])
    if badge:
        text.append(badge, style=STYLES["anomaly" if node.is_anomaly else "count"])
    return text


def render_tree(navigator: TreeNavigator, width: int = 80) -> Text:
    """Render the navigator's viewport window, or the empty placeholder."""
    if not navigator.rows:
        return Text(NO_TREE_DATA, style=STYLES["muted"])
    lines = [
        render_tree_row(row, selected=index == navigator.selected_index, width=width)
        for index, row in navigator.visible_rows()
    ]
    return Text("\n").join(lines)


def format_count(count: int) -> str:
    """Compact count for tab labels: ``1234`` -> ``1K``."""
    if count >= 1000:
        return f"{count // 1000}K"
    return str(count)


def format_tab_bar(tabs: Sequence[tuple[str, int]], active_index: int) -> Text:
    """Tab labels with counts; zero counts are omitted."""
    text = Text()
    for i, (label, count) in enumerate(tabs):
        if count > 0:
            label = f"{label} ({format_count(count)})"
        if i:
            text.append("  ")
        text.append(f" {label} ", style=STYLES["tab_active" if i == active_index else "tab_inactive"])
    return text


def format_view_mode_bar(active_index: int, tree_enabled: bool) -> Text:
    """``View: [1]Table 2 Tree 3 Agg``; only Table when trees are disabled."""
    text = Text("View: ", style=STYLES["muted"])
    if not tree_enabled:
        text.append("[1]Table", style=STYLES["count"])
        return text

    for i, mode in enumerate(VIEW_MODES):
        if i:
            text.append(" ")
        key = str(i + 1)
        if i == active_index:
            text.append(f"[{key}]{mode}", style=STYLES["count"])
        else:
            short = mode[:3] if len(mode) > 5 else mode
            text.append(f"{key} {short}", style=STYLES["muted"])
    return text


def progress_bar(percent: int, width: int = PROGRESS_BAR_WIDTH) -> Text:
    filled = min(width, percent * width // 100)
    text = Text()
    text.append("█" * filled, style=STYLES["progress_full"])
    text.append("░" * (width - filled), style=STYLES["progress_empty"])
    return text


def format_progress(status: ExecutionStatus | None, width: int = PROGRESS_BAR_WIDTH) -> Text:
    """``Progress: received/expected <bar> N% | state | N errors``."""
    if status is None or status.expected == 0:
        return Text("Progress: N/A", style=STYLES["muted"])

    percent = status.received * 100 // status.expected
    text = Text(f"Progress: {status.received}/{status.expected} ")
    text.append_text(progress_bar(percent, width))
    text.append(f" {percent}%")
    text.append(f" | {status.state}", style=STYLES["muted"])
    if status.errors:
        text.append(f" | {status.errors} errors", style=STYLES["error"])
    return text


def format_diff_summary(diff: DiffResult) -> Text:
    """``Changes: N new | N removed | N modified``."""
    text = Text("Changes: ")
    text.append(f"{diff.new_count} new", style=DIFF_STYLES[DiffType.NEW])
    text.append(" | ")
    text.append(f"{diff.removed_count} removed", style=DIFF_STYLES[DiffType.REMOVED])
    text.append(" | ")
    text.append(f"{diff.modified_count} modified", style=DIFF_STYLES[DiffType.MODIFIED])
    return text


def format_agent_info(item: DiffItem) -> str:
    if item.agent_count == 0:
        return ""
    if item.agent_count == 1:
        return f" ({item.agent_names[0]})"
    return f" ({item.agent_count} agents)"


def render_diff_row(item: DiffItem, selected: bool = False, width: int = 80) -> Text:
    """``<marker><label> (<agent>|<n> agents)``, label cut to the width."""
    marker = item.type.marker
    info = format_agent_info(item)
    label = truncate(item.label, max(MIN_LABEL_WIDTH, width - len(marker) - len(info) - 4))
    if selected:
        return Text(marker + label + info, style=STYLES["selected"])
    text = Text(marker + label, style=DIFF_STYLES[item.type])
    text.append(info, style=STYLES["muted"])
    return text

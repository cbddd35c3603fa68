"""Modal screen for displaying the full content of a tree or table row."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import ScrollableContainer, Vertical
from textual.screen import ModalScreen
from textual.widgets import Label, Static

from binmave.results.models import TableRow
from binmave.tui.navigator import FlatRow


def describe_tree_row(row: FlatRow) -> tuple[str, str]:
    """Return ``(heading, body)`` for a navigator row."""
    agent = row.agent
    if row.is_agent:
        body = f"Agent ID: {agent.agent_id}\nItems: {agent.node_count}"
        if agent.has_error:
            body += "\nReported an error"
        return agent.agent_name, body

    node = row.node
    lines = [node.label]
    if node.is_aggregate:
        lines.append("")
        lines.append(f"Seen on: {node.count}/{node.total_count} agents")
        if node.is_anomaly:
            lines.append("Anomaly: yes")
        lines.append("")
        lines.append("Agents:")
        lines.extend(f"  {name}" for name in sorted(set(node.agent_names)))
    return agent.agent_name, "\n".join(lines)


def describe_table_row(row: TableRow) -> tuple[str, str]:
    """Return ``(heading, body)`` for a table row, one column per line."""
    body = "\n".join(f"{column}: {value}" for column, value in row.data.items())
    return f"{row.agent_name} (row {row.row_index})", body


class NodeDetailModal(ModalScreen[None]):
    """A modal screen that displays the full content of the selected row."""

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("enter", "close", "Close"),
        Binding("q", "quit", "Quit App"),
    ]

    CSS = """
    NodeDetailModal {
        align: center middle;
    }

    NodeDetailModal > Vertical {
        width: 80%;
        height: 80%;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    NodeDetailModal .modal-header {
        dock: top;
        height: auto;
        padding: 1 2;
        background: $primary;
        color: $text;
        text-align: center;
        text-style: bold;
    }

    NodeDetailModal .content-container {
        height: 1fr;
        padding: 1 2;
        background: $surface-darken-2;
    }

    NodeDetailModal .detail-content {
        width: 100%;
        height: auto;
    }

    NodeDetailModal .close-hint {
        dock: bottom;
        height: auto;
        padding: 1 2;
        text-align: center;
        color: $text-muted;
    }
    """

    def __init__(
        self,
        heading: str,
        body: str,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        """Initialize the detail modal.

        Args:
            heading: Title line, usually the agent name.
            body: Full text to show, never truncated.
            name: Optional name for the widget.
            id: Optional ID for the widget.
            classes: Optional CSS classes.
        """
        super().__init__(name=name, id=id, classes=classes)
        self.heading = heading
        self.body = body

    @classmethod
    def for_tree_row(cls, row: FlatRow) -> NodeDetailModal:
        return cls(*describe_tree_row(row))

    @classmethod
    def for_table_row(cls, row: TableRow) -> NodeDetailModal:
        return cls(*describe_table_row(row))

    def compose(self) -> ComposeResult:
        """Compose the modal content."""
        with Vertical():
            yield Label(self.heading, classes="modal-header", markup=False)
            with ScrollableContainer(classes="content-container"):
                yield Static(self.body, classes="detail-content", markup=False)
            yield Label("Press [ESC] or [ENTER] to close", classes="close-hint", markup=False)

    def action_close(self) -> None:
        """Close the modal."""
        self.dismiss(None)

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit()

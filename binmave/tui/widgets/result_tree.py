"""
Result tree widget for displaying agent trees and the aggregated tree.

Unlike Textual's Tree, this widget keeps no node state of its own: it
renders the rows of a TreeNavigator and forwards key presses to it, so the
same navigator drives per-agent and aggregated views.
"""

from __future__ import annotations

from rich.text import Text
from textual import events
from textual.binding import Binding
from textual.message import Message
from textual.widget import Widget

from binmave.tui.navigator import FlatRow, TreeNavigator
from binmave.tui.render import render_tree


class ResultTree(Widget):
    """
    Focusable tree view over a TreeNavigator.

    Rows look like:
        - Agent headers: ``▼ host-01 (12 items)``
        - Nodes: ``├─ ▶ procs`` with connector glyphs per level
        - Aggregate nodes: ``└─ b.exe [1/3] ⚠``
    """

    can_focus = True

    DEFAULT_CSS = """
    ResultTree {
        height: 1fr;
        padding: 0 1;
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("enter", "toggle", "Toggle"),
        Binding("space", "toggle", "Toggle", show=False),
        Binding("right", "expand", "Expand", show=False),
        Binding("left", "collapse", "Collapse", show=False),
        Binding("e", "expand_all", "Expand All"),
        Binding("c", "collapse_all", "Collapse All"),
        Binding("i", "show_detail", "Detail"),
    ]

    class DetailRequested(Message):
        """Posted when the detail modal is requested for the selected row.

        Attributes:
            row: The selected row.
        """

        def __init__(self, row: FlatRow) -> None:
            self.row = row
            super().__init__()

    def __init__(
        self,
        navigator: TreeNavigator | None = None,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        """Initialize the tree.

        Args:
            navigator: Navigation state to render; a fresh one if None.
            name: Optional name for the widget.
            id: Optional ID for the widget.
            classes: Optional CSS classes.
        """
        super().__init__(name=name, id=id, classes=classes)
        self.navigator = navigator or TreeNavigator()

    def render(self) -> Text:
        return render_tree(self.navigator, width=self.size.width or 80)

    def on_resize(self, event: events.Resize) -> None:
        self.navigator.set_viewport_height(event.size.height)
        self.refresh()

    def action_cursor_up(self) -> None:
        self.navigator.move_up()
        self.refresh()

    def action_cursor_down(self) -> None:
        self.navigator.move_down()
        self.refresh()

    def action_cursor_top(self) -> None:
        self.navigator.move_to_top()
        self.refresh()

    def action_cursor_bottom(self) -> None:
        self.navigator.move_to_bottom()
        self.refresh()

    def action_toggle(self) -> None:
        self.navigator.toggle()
        self.refresh()

    def action_expand(self) -> None:
        self.navigator.expand()
        self.refresh()

    def action_collapse(self) -> None:
        self.navigator.collapse()
        self.refresh()

    def action_expand_all(self) -> None:
        self.navigator.expand_all()
        self.refresh()

    def action_collapse_all(self) -> None:
        self.navigator.collapse_all()
        self.refresh()

    def action_show_detail(self) -> None:
        row = self.navigator.selected_row
        if row is not None:
            self.post_message(self.DetailRequested(row))

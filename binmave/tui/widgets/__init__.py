"""TUI widgets for the results viewer."""

from binmave.tui.widgets.node_detail_modal import NodeDetailModal
from binmave.tui.widgets.result_tree import ResultTree

__all__ = [
    # Tree view over the navigator
    "ResultTree",
    # Detail modal
    "NodeDetailModal",
]

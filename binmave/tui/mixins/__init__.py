"""Mixins for the TUI screens."""

from binmave.tui.mixins.background_task import BackgroundTaskMixin
from binmave.tui.mixins.data_table import DataTableMixin
from binmave.tui.mixins.vim_navigation import VimNavigationMixin

__all__ = [
    "BackgroundTaskMixin",
    "DataTableMixin",
    "VimNavigationMixin",
]

"""TUI views for the results viewer."""

from binmave.tui.views.compare_screen import CompareScreen
from binmave.tui.views.results_screen import ResultsScreen

__all__ = ["CompareScreen", "ResultsScreen"]

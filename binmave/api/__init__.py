"""
Result sources for the TUI and the watch command.

Both sources expose the same methods (get_execution,
get_execution_status, get_all_execution_results), so screens work the
same whether results come from the service or from a saved file.
"""

from binmave.api.client import ResultsClient, ResultsPage
from binmave.api.results_file import ResultsFile

__all__ = ["ResultsClient", "ResultsPage", "ResultsFile"]

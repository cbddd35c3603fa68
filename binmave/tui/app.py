"""
Main Textual application and command-line entry point.

Sub-commands:
    results   Browse one execution as table, tree or aggregated tree
    compare   Diff an execution against a baseline execution
    watch     Follow an execution's progress without the TUI

Results can come from the service (BINMAVE_TOKEN must be set) or from a
saved JSON file (--results-file / --baseline-file).
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any

from textual.app import App
from textual.binding import Binding
from textual.screen import Screen

from binmave.api import ResultsClient, ResultsFile
from binmave.config import WATCH_REQUEST_TIMEOUT, Settings, load_settings
from binmave.errors import BinmaveError
from binmave.logging_config import configure_logging
from binmave.tui.state import ViewMode
from binmave.tui.views import CompareScreen, ResultsScreen
from binmave.watch import watch_execution

VIEW_CHOICES = ["table", "tree", "aggregated", "agg"]


class BinmaveApp(App):
    """A Textual app for browsing execution results."""

    TITLE = "Binmave Results"

    CSS = """
    Screen {
        background: $surface;
    }

    Header {
        dock: top;
        height: 3;
        background: $primary;
        color: $text;
    }

    Footer {
        dock: bottom;
        height: 1;
        background: $primary-darken-2;
    }

    DataTable {
        background: $surface;
    }

    DataTable > .datatable--header {
        background: $primary-darken-1;
        color: $text;
        text-style: bold;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
        color: $text;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
    ]

    def __init__(self, initial_screen: Screen) -> None:
        """Initialize the app with the screen to show.

        Args:
            initial_screen: ResultsScreen or CompareScreen to push on mount.
        """
        super().__init__()
        self._initial_screen = initial_screen

    def on_mount(self) -> None:
        """Push the requested screen."""
        self.push_screen(self._initial_screen)


def _make_source(settings: Settings, results_file: str | None, timeout: float | None = None) -> Any:
    """Return a ResultsFile for a path, otherwise an HTTP client."""
    if results_file:
        source = ResultsFile(results_file)
        source.load()
        return source
    return ResultsClient(settings, timeout=timeout)


def cmd_results(args: argparse.Namespace, settings: Settings) -> int:
    """Open the results screen."""
    execution_id = args.execution_id
    if not execution_id:
        if not args.results_file:
            raise BinmaveError("an execution id or --results-file is required")
        execution_id = os.path.splitext(os.path.basename(args.results_file))[0]

    source = _make_source(settings, args.results_file)
    # Fail before the TUI starts when the execution does not exist
    source.get_execution(execution_id)

    view_mode = ViewMode.from_name(args.view)
    screen = ResultsScreen(
        source,
        execution_id,
        view_mode=view_mode,
        anomalies_only=args.anomalies and view_mode is ViewMode.AGGREGATED,
        poll_interval=settings.poll_interval,
    )
    BinmaveApp(screen).run()
    return 0


def cmd_compare(args: argparse.Namespace, settings: Settings) -> int:
    """Open the compare screen."""
    source = _make_source(settings, args.results_file)
    if args.baseline_file:
        baseline_source = _make_source(settings, args.baseline_file)
    elif args.results_file:
        raise BinmaveError("--baseline-file is required with --results-file")
    else:
        baseline_source = source

    source.get_execution(args.execution_id)
    baseline_source.get_execution(args.baseline)

    screen = CompareScreen(
        source,
        args.execution_id,
        args.baseline,
        baseline_source=baseline_source,
    )
    BinmaveApp(screen).run()
    return 0


def cmd_watch(args: argparse.Namespace, settings: Settings) -> int:
    """Follow progress in the terminal."""
    source = ResultsClient(settings, timeout=WATCH_REQUEST_TIMEOUT)
    interval = args.interval if args.interval is not None else settings.poll_interval
    try:
        return watch_execution(source, args.execution_id, interval=interval)
    finally:
        source.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all sub-commands."""
    parser = argparse.ArgumentParser(
        prog="binmave",
        description="Browse endpoint script execution results in a terminal UI.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--server", default=None, help="Service base URL (default: $BINMAVE_SERVER)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: $BINMAVE_TIMEOUT or 30)",
    )
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Results command
    results_parser = subparsers.add_parser("results", help="View execution results")
    results_parser.add_argument("execution_id", nargs="?", help="Execution ID")
    results_parser.add_argument(
        "-v",
        "--view",
        choices=VIEW_CHOICES,
        default="table",
        help="Initial view mode (default: table)",
    )
    results_parser.add_argument(
        "-a",
        "--anomalies",
        action="store_true",
        help="Show only anomalies (aggregated view)",
    )
    results_parser.add_argument("--results-file", help="Read results from a saved JSON file")
    results_parser.set_defaults(func=cmd_results)

    # Compare command
    compare_parser = subparsers.add_parser("compare", help="Compare results against a baseline")
    compare_parser.add_argument("execution_id", help="Execution ID")
    compare_parser.add_argument(
        "-b", "--baseline", required=True, help="Baseline execution ID to compare against"
    )
    compare_parser.add_argument("--results-file", help="Read the execution's results from a file")
    compare_parser.add_argument("--baseline-file", help="Read the baseline's results from a file")
    compare_parser.set_defaults(func=cmd_compare)

    # Watch command
    watch_parser = subparsers.add_parser("watch", help="Watch execution progress")
    watch_parser.add_argument("execution_id", help="Execution ID")
    watch_parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=None,
        help="Polling interval in seconds (default: $BINMAVE_POLL_INTERVAL or 2)",
    )
    watch_parser.set_defaults(func=cmd_watch)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run the selected command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level, args.log_file)

    try:
        settings = load_settings(server=args.server, request_timeout=args.timeout)
        code = args.func(args, settings)
    except BinmaveError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()

"""
Watch an execution's progress from the command line.

Polls the execution status on a fixed interval and redraws a progress bar
whenever the received count changes. Stops on Completed / Failed with a
summary, or on Ctrl-C (the execution keeps running on the service).
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Any, Callable, TextIO

from tqdm import tqdm

from binmave.config import DEFAULT_POLL_INTERVAL
from binmave.errors import BinmaveError
from binmave.results.models import ExecutionStatus

logger = logging.getLogger(__name__)

STATE_ICONS = {
    "Completed": "✓",
    "Failed": "✗",
    "Pending": "○",
}
RUNNING_ICON = "⟳"

SUMMARY_RULE = "━" * 43


def format_postfix(status: ExecutionStatus) -> str:
    """``<icon> <state>`` plus the error count when there are errors."""
    icon = STATE_ICONS.get(status.state, RUNNING_ICON)
    text = f"{icon} {status.state}"
    if status.errors:
        text += f" ({status.errors} errors)"
    return text


def format_final_summary(execution_id: str, status: ExecutionStatus) -> str:
    """Summary printed once the execution reaches a terminal state."""
    lines = ["", SUMMARY_RULE]
    if status.state == "Completed" and status.errors == 0:
        lines.append("✓ Execution completed successfully!")
    elif status.state == "Completed":
        lines.append(f"⚠ Execution completed with {status.errors} errors")
    else:
        lines.append(f"✗ Execution failed ({status.received}/{status.expected} completed)")

    lines.append("")
    lines.append(f"Results: {status.received}/{status.expected} agents responded")
    if status.errors:
        lines.append(f"Errors:  {status.errors} agents had errors")
    lines.append("")
    lines.append(f"View results: binmave results {execution_id}")
    return "\n".join(lines)


def watch_execution(
    source: Any,
    execution_id: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    out: TextIO | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Poll an execution until it finishes or the user interrupts.

    Args:
        source: Result source; its requests should carry a short timeout.
        execution_id: Execution to watch.
        interval: Seconds between polls.
        out: Stream to write to (default stdout).
        sleep: Sleep function, replaceable in tests.

    Returns:
        Process exit code (0 on completion, failure or interruption).

    Raises:
        BinmaveError: If the execution itself cannot be fetched.
    """
    out = out or sys.stdout
    execution = source.get_execution(execution_id)

    print(f"Watching execution {execution_id}", file=out)
    print(f"Script: {execution.script_name}", file=out)
    print("Press Ctrl+C to stop watching\n", file=out)

    pbar: tqdm | None = None
    last_received = -1

    try:
        while True:
            sleep(interval)
            try:
                status = source.get_execution_status(execution_id)
            except BinmaveError as e:
                logger.warning("Status poll failed for %s: %s", execution_id, e)
                print(f"⚠ Error getting status: {e}", file=out)
                continue

            if pbar is None:
                pbar = tqdm(
                    total=status.expected,
                    desc="Agents",
                    unit="agent",
                    file=out,
                    bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}] {postfix}",
                )

            if status.received != last_received:
                last_received = status.received
                pbar.total = status.expected
                pbar.n = status.received
                pbar.set_postfix_str(format_postfix(status), refresh=False)
                pbar.refresh()

            if status.is_terminal:
                pbar.close()
                print(format_final_summary(execution_id, status), file=out)
                return 0

    except KeyboardInterrupt:
        if pbar is not None:
            pbar.close()
        print("\nStopped watching. Execution continues in background.", file=out)
        return 0

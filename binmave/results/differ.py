"""
Baseline comparison of two result collections.

Each agent answer is reduced to a set of canonical paths:

    - ``/key`` for every object key traversed,
    - ``/key=value`` for scalar object values (so a changed value is a
      different path, not a modification),
    - ``prefix[i]`` for array elements, or ``prefix/<label>`` when the
      element is an object with a name-like field.

Paths are mapped to the agents reporting them, independently for the
baseline and the current collection, and classified by set difference.

Diff Types:
    - new: path present in current only
    - removed: path present in baseline only
    - modified: part of the taxonomy, never produced by set difference
    - unchanged: path present in both
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from binmave.results.models import ExecutionResult
from binmave.results.normalizer import (
    MAX_TREE_DEPTH,
    find_label,
    is_container,
    is_parsed,
    parse_answer,
    stringify,
)

logger = logging.getLogger(__name__)


class DiffType(Enum):
    """Kind of difference; declaration order is the display order."""

    NEW = "new"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"

    @property
    def sort_rank(self) -> int:
        return list(DiffType).index(self)

    @property
    def marker(self) -> str:
        """Two-character prefix used in the diff list."""
        return {
            DiffType.NEW: "+ ",
            DiffType.REMOVED: "- ",
            DiffType.MODIFIED: "~ ",
        }.get(self, "  ")


@dataclass
class DiffItem:
    """One classified path.

    Attributes:
        path: Canonical path string.
        label: Last path segment.
        type: Classification.
        agent_names: Sorted agents reporting the path on either side.
    """

    path: str
    label: str
    type: DiffType
    agent_names: list[str] = field(default_factory=list)

    @property
    def agent_count(self) -> int:
        return len(self.agent_names)


@dataclass
class DiffResult:
    """Sorted diff items plus per-type counts."""

    items: list[DiffItem] = field(default_factory=list)
    new_count: int = 0
    removed_count: int = 0
    modified_count: int = 0
    unchanged_count: int = 0

    def visible_items(self, diffs_only: bool = True) -> list[DiffItem]:
        """Items to list; Unchanged ones are hidden in diffs-only mode."""
        if not diffs_only:
            return list(self.items)
        return [item for item in self.items if item.type is not DiffType.UNCHANGED]


def _extract_recursive(data: Any, prefix: str, paths: list[str], depth: int = 0) -> None:
    if depth >= MAX_TREE_DEPTH:
        return

    if isinstance(data, dict):
        for key, value in data.items():
            key_path = f"{prefix}/{key}"
            paths.append(key_path)
            if is_container(value):
                _extract_recursive(value, key_path, paths, depth + 1)
            else:
                paths.append(f"{key_path}={stringify(value)}")

    elif isinstance(data, list):
        for idx, item in enumerate(data):
            item_path = f"{prefix}[{idx}]"
            if isinstance(item, dict):
                label = find_label(item)
                if label:
                    item_path = f"{prefix}/{label}"
            paths.append(item_path)
            _extract_recursive(item, item_path, paths, depth + 1)


def extract_paths(answer_json: str) -> list[str]:
    """
    Extract canonical paths from one agent answer.

    Args:
        answer_json: The agent's JSON-encoded answer.

    Returns:
        Paths in traversal order; empty for unparseable answers.

    Examples:
        >>> extract_paths('{"os": {"name": "linux"}}')
        ['/os', '/os/name', '/os/name=linux']
    """
    data = parse_answer(answer_json)
    if not is_parsed(data):
        return []
    paths: list[str] = []
    _extract_recursive(data, "", paths)
    return paths


def path_to_label(path: str) -> str:
    """Last ``/`` segment of a path."""
    return path.rsplit("/", 1)[-1]


def build_path_index(results: list[ExecutionResult]) -> dict[str, set[str]]:
    """Map every path to the names of the agents reporting it."""
    index: dict[str, set[str]] = {}
    for result in results:
        for path in extract_paths(result.answer_json):
            index.setdefault(path, set()).add(result.agent_name)
    return index


def compute_diff(
    baseline_results: list[ExecutionResult],
    current_results: list[ExecutionResult],
    include_unchanged: bool = False,
) -> DiffResult:
    """
    Classify every path of two result collections.

    Args:
        baseline_results: Results of the baseline execution.
        current_results: Results of the execution under review.
        include_unchanged: Also emit Unchanged items (for "show all").

    Returns:
        A DiffResult whose items are sorted by type (New, Removed,
        Modified, Unchanged) then path. modified_count is always 0.
    """
    baseline = build_path_index(baseline_results)
    current = build_path_index(current_results)
    result = DiffResult()

    for path, agents in current.items():
        if path not in baseline:
            result.items.append(_make_item(path, DiffType.NEW, agents))
            result.new_count += 1

    for path, agents in baseline.items():
        if path not in current:
            result.items.append(_make_item(path, DiffType.REMOVED, agents))
            result.removed_count += 1

    for path, agents in current.items():
        if path in baseline:
            result.unchanged_count += 1
            if include_unchanged:
                result.items.append(
                    _make_item(path, DiffType.UNCHANGED, agents | baseline[path])
                )

    result.items.sort(key=lambda item: (item.type.sort_rank, item.path))
    logger.debug(
        "Diff computed: %d new, %d removed, %d unchanged",
        result.new_count,
        result.removed_count,
        result.unchanged_count,
    )
    return result


def _make_item(path: str, diff_type: DiffType, agents: set[str]) -> DiffItem:
    return DiffItem(
        path=path,
        label=path_to_label(path),
        type=diff_type,
        agent_names=sorted(agents),
    )

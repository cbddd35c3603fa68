"""
Structure detection for result sets.

Decides whether a dataset is hierarchical enough for the tree and
aggregated views. Only the first agent's answer is sampled, so agents with
a different shape are not considered. Detection is a best-effort boolean,
never an error.

A flat row set can still describe a tree when one column points at
another (``parent`` -> ``id``). detect_self_reference() looks for such a
pair of columns.
"""

from __future__ import annotations

from itertools import permutations
from typing import Any

from binmave.results.models import ExecutionResult
from binmave.results.normalizer import is_container, is_parsed, parse_answer, stringify

# Minimum share of rows whose parent reference resolves
MIN_VALID_REFERENCE_RATIO = 0.80

# Parent values that mark a root row
_ROOT_MARKERS = ("", "0")


def _has_nested_value(obj: dict[str, Any]) -> bool:
    return any(is_container(value) for value in obj.values())


def _is_scalar(value: Any) -> bool:
    return value is not None and not is_container(value)


def _shared_columns(rows: list[dict[str, Any]]) -> list[str]:
    """Keys present in every row, in first-row order."""
    columns = list(rows[0])
    for row in rows[1:]:
        columns = [column for column in columns if column in row]
    return columns


def detect_self_reference(rows: list[Any]) -> bool:
    """
    Detect a parent/child relationship between two columns of flat rows.

    For every ordered pair of distinct shared columns (id, parent), the
    scalar values of the id column form the reference set. A row's parent
    value is valid when it is null, empty, "0" or found in that set; the
    first three also count as roots. A pair is accepted when at least 80%
    of rows are valid and at least one root exists.

    Args:
        rows: Parsed answer rows; anything but objects disables detection.

    Returns:
        True as soon as one pair of columns qualifies.

    Examples:
        >>> detect_self_reference([
        ...     {"id": 1, "parent": None},
        ...     {"id": 2, "parent": 1},
        ...     {"id": 3, "parent": 1},
        ... ])
        True
    """
    if len(rows) < 2 or not all(isinstance(row, dict) for row in rows):
        return False

    columns = _shared_columns(rows)
    if len(columns) < 2:
        return False

    for id_column, parent_column in permutations(columns, 2):
        ids = {
            stringify(row[id_column])
            for row in rows
            if id_column in row and _is_scalar(row[id_column])
        }

        valid = 0
        has_root = False
        for row in rows:
            parent = row.get(parent_column)
            if parent is None:
                valid += 1
                has_root = True
                continue
            if is_container(parent):
                continue
            reference = stringify(parent)
            if reference in _ROOT_MARKERS:
                valid += 1
                has_root = True
            elif reference in ids:
                valid += 1

        if has_root and valid / len(rows) >= MIN_VALID_REFERENCE_RATIO:
            return True

    return False


def is_hierarchical(sample: Any) -> bool:
    """
    Decide whether a parsed answer warrants the tree views.

    True when the value is an object with a nested object/array value, a
    non-empty array whose first element is such an object, or a non-empty
    array of objects with a parent/child column pair.

    Args:
        sample: The first agent's parsed answer.

    Returns:
        Whether tree and aggregated views should be enabled.
    """
    if isinstance(sample, dict):
        return _has_nested_value(sample)

    if isinstance(sample, list) and sample:
        first = sample[0]
        if isinstance(first, dict) and _has_nested_value(first):
            return True
        return detect_self_reference(sample)

    return False


def results_are_hierarchical(results: list[ExecutionResult]) -> bool:
    """Sample the first result's answer; unparseable answers are flat."""
    if not results:
        return False
    sample = parse_answer(results[0].answer_json)
    return is_parsed(sample) and is_hierarchical(sample)

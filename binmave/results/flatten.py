"""
Flat (table) projection of agent answers.

An answer that is an array of objects gives one row per element; a single
object gives one row. Nested objects are merged into dot-joined column
names (``a.b.c``), short arrays are shown inline and long ones summarised.
Anything else yields no structured rows and the caller shows the raw
answer in a single ``Value`` column.
"""

from __future__ import annotations

from typing import Any, Iterable

from binmave.results.models import ExecutionResult, TableRow
from binmave.results.normalizer import (
    MAX_TREE_DEPTH,
    is_parsed,
    parse_answer,
    stringify,
)

# Arrays up to this length are rendered inline
INLINE_ARRAY_LIMIT = 3

# Column used when an answer has no structured rows
RAW_VALUE_COLUMN = "Value"

# Columns shown first, in this order; casing variants share a slot
PRIORITY_COLUMNS = ("name", "user", "group", "path", "value", "status", "type", "id")


def format_array(items: list[Any]) -> str:
    """Render an array cell: inline for short arrays, a count otherwise."""
    if len(items) > INLINE_ARRAY_LIMIT:
        return f"[{len(items)} items]"
    return ", ".join(stringify(item) for item in items)


def flatten_object(
    obj: dict[str, Any],
    prefix: str = "",
    depth: int = 0,
) -> dict[str, str]:
    """
    Flatten a JSON object into dot-path columns.

    Args:
        obj: The object to flatten.
        prefix: Column prefix for nested calls.
        depth: Current recursion depth.

    Returns:
        Mapping of dot-joined key path to stringified cell value. Empty
        nested objects keep their column with an empty value.

    Examples:
        >>> flatten_object({"a": {"b": 1}, "tags": ["x", "y"]})
        {'a.b': '1', 'tags': 'x, y'}
    """
    flat: dict[str, str] = {}
    for key, value in obj.items():
        column = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            if value and depth + 1 < MAX_TREE_DEPTH:
                flat.update(flatten_object(value, column, depth + 1))
            else:
                flat[column] = stringify(value) if value else ""
        elif isinstance(value, list):
            flat[column] = format_array(value)
        else:
            flat[column] = stringify(value)
    return flat


def flatten_to_rows(value: Any) -> list[tuple[int, dict[str, str]]]:
    """
    Project a parsed answer onto table rows.

    Args:
        value: Parsed JSON answer.

    Returns:
        ``(row_index, flattened_row)`` pairs: one per element for a
        non-empty array of objects, exactly one for an object, none for
        anything else (scalars, empty arrays, arrays with non-objects).
    """
    if isinstance(value, dict):
        return [(0, flatten_object(value))]
    if isinstance(value, list) and value and all(isinstance(item, dict) for item in value):
        return [(idx, flatten_object(item)) for idx, item in enumerate(value)]
    return []


def _column_sort_key(column: str) -> tuple[int, str]:
    lowered = column.lower()
    if lowered in PRIORITY_COLUMNS:
        return (PRIORITY_COLUMNS.index(lowered), column)
    return (len(PRIORITY_COLUMNS), column)


def order_columns(columns: Iterable[str]) -> list[str]:
    """Sort columns: priority names first (Name, User, ... ID), then A-Z.

    Examples:
        >>> order_columns(["zeta", "ID", "alpha", "name"])
        ['name', 'ID', 'alpha', 'zeta']
    """
    return sorted(set(columns), key=_column_sort_key)


def build_table_rows(results: list[ExecutionResult]) -> tuple[list[TableRow], list[str]]:
    """
    Build the table view for a set of results.

    Answers without structured rows fall back to one row whose ``Value``
    cell holds the raw answer (or the raw error text when the answer is
    empty).

    Args:
        results: Results of the active tab.

    Returns:
        ``(rows, columns)`` where columns is the ordered union of every
        row's keys.
    """
    rows: list[TableRow] = []
    columns: set[str] = set()

    for result in results:
        parsed = parse_answer(result.answer_json)
        flattened = flatten_to_rows(parsed) if is_parsed(parsed) else []

        if not flattened:
            raw = result.answer_json or result.raw_std_error
            flattened = [(0, {RAW_VALUE_COLUMN: raw})]

        for row_index, data in flattened:
            columns.update(data)
            rows.append(
                TableRow(
                    data=data,
                    agent_name=result.agent_name,
                    agent_id=result.agent_id,
                    row_index=row_index,
                    has_error=result.has_error,
                )
            )

    return rows, order_columns(columns)

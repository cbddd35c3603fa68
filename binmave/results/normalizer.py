"""
JSON-to-tree normalization for agent answers.

Each agent answers with an opaque JSON string. This module parses it and
turns the parsed value into a forest of TreeNode objects:

    - Objects: one node per key, labelled ``key`` when the value is an
      object or array (children follow), ``key: value`` otherwise.
    - Arrays: one node per element. Objects are labelled with their
      name-like field (see find_label) or ``[i]``, nested arrays with
      ``[i] (N items)``, scalars with ``[i]: value``.
    - Scalars at the top level produce no nodes; build_agent_tree wraps
      them in a single synthetic node holding the raw text.

Payloads that fail to parse are not errors: they degrade to a single leaf
whose label is the truncated raw text.
"""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any, Iterator

from binmave.results.models import AgentTree, ExecutionResult, TreeNode

logger = logging.getLogger(__name__)

# Maximum nesting depth followed before a placeholder leaf is emitted
MAX_TREE_DEPTH = 100

# Maximum label length for payloads that are not a JSON object or array
RAW_LABEL_LENGTH = 100

# Keys tried, in order, when labelling an object inside an array
LABEL_KEYS = (
    "name", "Name",
    "label", "Label",
    "title", "Title",
    "path", "Path",
    "key", "Key",
    "id", "Id", "ID",
)

_NOT_PARSED = object()


def truncate(text: str, max_len: int) -> str:
    """
    Flatten newlines and cut text to max_len characters.

    Args:
        text: The text to truncate.
        max_len: Maximum length of the output string (including ellipsis).

    Returns:
        The single-line text, ending in "..." if it exceeded max_len.

    Examples:
        >>> truncate("Hello, World!", 10)
        'Hello, ...'
        >>> truncate("a\\nb", 10)
        'a b'
    """
    text = text.replace("\n", " ").replace("\r", "")
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    return text[: max_len - 3] + "..."


def stringify(value: Any) -> str:
    """Render a scalar the same way in tree labels, table cells and diffs.

    Null becomes an empty string, booleans ``true``/``false``, integral
    floats lose their ``.0``. Objects and arrays fall back to compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def parse_answer(text: str | None) -> Any:
    """Parse an agent answer, returning a sentinel on failure.

    Use is_parsed() on the return value; None is a valid parse (``null``).
    """
    if text is None:
        return _NOT_PARSED
    try:
        return json.loads(text)
    except (ValueError, TypeError, RecursionError):
        logger.debug("Answer is not valid JSON: %s", truncate(text, 60))
        return _NOT_PARSED


def is_parsed(value: Any) -> bool:
    return value is not _NOT_PARSED


def find_label(obj: dict[str, Any]) -> str:
    """Return the first non-empty string among the LABEL_KEYS fields.

    Args:
        obj: An object element of an array.

    Returns:
        The label, or "" when no name-like field holds a non-empty string.

    Examples:
        >>> find_label({"id": "7", "Name": "svchost.exe"})
        'svchost.exe'
        >>> find_label({"id": 7})
        ''
    """
    for key in LABEL_KEYS:
        value = obj.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


class _TreeBuilder:
    """Builds nodes while numbering them for unique ids."""

    def __init__(self) -> None:
        self._counter: Iterator[int] = itertools.count(1)
        self.node_count = 0

    def _next_id(self, suffix: str) -> str:
        self.node_count += 1
        return f"{next(self._counter)}-{suffix}"

    def build(self, value: Any, depth: int) -> list[TreeNode]:
        if depth >= MAX_TREE_DEPTH:
            return [
                TreeNode(
                    id=self._next_id("depth-limit"),
                    label=f"... (depth limit {MAX_TREE_DEPTH} reached)",
                    depth=depth,
                )
            ]
        if isinstance(value, dict):
            return self._build_object(value, depth)
        if isinstance(value, list):
            return self._build_array(value, depth)
        return []

    def _build_object(self, data: dict[str, Any], depth: int) -> list[TreeNode]:
        nodes: list[TreeNode] = []
        for key, value in data.items():
            node = TreeNode(id=self._next_id(key), label=key, depth=depth)
            if is_container(value):
                node.children = self.build(value, depth + 1)
            else:
                node.label = f"{key}: {stringify(value)}"
            nodes.append(node)
        return nodes

    def _build_array(self, data: list[Any], depth: int) -> list[TreeNode]:
        nodes: list[TreeNode] = []
        for idx, item in enumerate(data):
            node = TreeNode(id=self._next_id(f"[{idx}]"), label="", depth=depth)
            if isinstance(item, dict):
                node.label = find_label(item) or f"[{idx}]"
                node.children = self.build(item, depth + 1)
            elif isinstance(item, list):
                node.label = f"[{idx}] ({len(item)} items)"
                node.children = self.build(item, depth + 1)
            else:
                node.label = f"[{idx}]: {stringify(item)}"
            nodes.append(node)
        return nodes


def build_tree(value: Any, depth: int = 0) -> list[TreeNode]:
    """
    Convert a parsed JSON value into a forest of tree nodes.

    Args:
        value: Parsed JSON (dict, list or scalar).
        depth: Depth assigned to the returned root nodes.

    Returns:
        One node per object key or array element; an empty list for
        scalars and empty containers.
    """
    return _TreeBuilder().build(value, depth)


def count_nodes(nodes: list[TreeNode]) -> int:
    """Count nodes in a forest, descendants included."""
    total = 0
    stack = list(nodes)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.children)
    return total


def build_agent_tree(result: ExecutionResult) -> AgentTree:
    """
    Normalize one agent's result into an AgentTree.

    Unparseable answers become a single leaf holding the first 100
    characters of the raw text. Valid JSON scalars are wrapped the same
    way so every agent contributes at least one row.

    Args:
        result: The agent's execution result.

    Returns:
        A collapsed AgentTree for the agent.
    """
    tree = AgentTree(
        agent_id=result.agent_id,
        agent_name=result.agent_name,
        has_error=result.has_error,
    )

    data = parse_answer(result.answer_json)
    if not is_parsed(data) or not is_container(data):
        tree.roots = [TreeNode(id="0", label=truncate(result.answer_json or "", RAW_LABEL_LENGTH))]
        tree.node_count = 1
        return tree

    builder = _TreeBuilder()
    tree.roots = builder.build(data, 0)
    tree.node_count = builder.node_count
    return tree


def build_agent_trees(results: list[ExecutionResult]) -> list[AgentTree]:
    """Normalize every result, one AgentTree per result, in order."""
    return [build_agent_tree(result) for result in results]

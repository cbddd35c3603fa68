"""
Data model for execution results and the trees built from them.

Result records (ExecutionResult, ExecutionStatus, Execution) mirror the
service's JSON with snake_case names. Tree records (TreeNode, AgentTree)
are the normalized, navigable form of one or many agents' answers, and
TableRow is the flat projection used by the table view.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

TERMINAL_STATES = frozenset({"Completed", "Failed"})


def _answer_text(value: Any) -> str:
    """Coerce an answer that arrived already decoded back into JSON text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


@dataclass
class ExecutionResult:
    """One agent's answer to an execution.

    Attributes:
        result_id: Service-side result identifier.
        agent_id: Identifier of the reporting agent.
        agent_name: Display name of the reporting agent.
        answer_json: The agent's answer as an opaque JSON-encoded string.
        raw_std_error: Raw error output when the script failed.
        execution_time_seconds: Script run time on the agent.
        result_received: ISO timestamp of arrival (may be empty).
        has_error: Whether the agent reported an error.
    """

    agent_id: str = ""
    agent_name: str = ""
    answer_json: str = ""
    has_error: bool = False
    raw_std_error: str = ""
    result_id: int = 0
    execution_time_seconds: int = 0
    result_received: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionResult:
        """Build a result from the service's camelCase JSON object."""
        return cls(
            agent_id=str(data.get("agentId") or ""),
            agent_name=str(data.get("agentName") or ""),
            answer_json=_answer_text(data.get("answerJson")),
            has_error=bool(data.get("hasError", False)),
            raw_std_error=str(data.get("rawStdError") or ""),
            result_id=int(data.get("resultId") or 0),
            execution_time_seconds=int(data.get("executionTimeSeconds") or 0),
            result_received=str(data.get("resultReceived") or ""),
        )


@dataclass
class ExecutionStatus:
    """Progress of an execution across its expected agents."""

    expected: int = 0
    received: int = 0
    errors: int = 0
    state: str = "Pending"

    @property
    def is_terminal(self) -> bool:
        """True once the execution is Completed or Failed."""
        return self.state in TERMINAL_STATES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionStatus:
        return cls(
            expected=int(data.get("expected") or 0),
            received=int(data.get("received") or 0),
            errors=int(data.get("errors") or 0),
            state=str(data.get("state") or "Pending"),
        )


@dataclass
class Execution:
    """Execution metadata shown in screen titles."""

    execution_id: str = ""
    script_id: int = 0
    script_name: str = ""
    created_by: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Execution:
        return cls(
            execution_id=str(data.get("executionId") or ""),
            script_id=int(data.get("scriptId") or 0),
            script_name=str(data.get("scriptName") or ""),
            created_by=str(data.get("createdBy") or ""),
        )


@dataclass(eq=False)
class TreeNode:
    """One node of a per-agent or aggregated tree.

    Nodes compare by identity: the navigator tracks them by reference and
    two nodes with the same label are still different rows.

    Attributes:
        id: Identifier, unique within its tree.
        label: Display string (``key``, ``key: value``, ``[i]``, ...).
        children: Ordered child nodes (empty for leaves).
        expanded: UI state, whether children are shown.
        depth: Nesting level from the forest root, starting at 0.
        count: Aggregation only, occurrences of this label-path.
        total_count: Aggregation only, number of agents considered.
        agent_names: Aggregation only, contributing agents (may repeat).
        is_anomaly: Aggregation only, ``count <= max(1, total // 10)``.
    """

    id: str
    label: str
    children: list[TreeNode] = field(default_factory=list)
    expanded: bool = False
    depth: int = 0
    count: int = 0
    total_count: int = 0
    agent_names: list[str] = field(default_factory=list)
    is_anomaly: bool = False

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def is_aggregate(self) -> bool:
        """True for nodes produced by the aggregator."""
        return self.total_count > 0


@dataclass(eq=False)
class AgentTree:
    """One agent's normalized result, shown under a header row.

    Attributes:
        agent_id: Identifier of the agent ("aggregated" for the merged tree).
        agent_name: Header label.
        roots: Top-level nodes.
        node_count: Total nodes in the tree, shown as "(N items)".
        expanded: Whether the roots are listed under the header.
        has_error: Whether the source result was an error result.
    """

    agent_id: str
    agent_name: str
    roots: list[TreeNode] = field(default_factory=list)
    node_count: int = 0
    expanded: bool = False
    has_error: bool = False


@dataclass
class TableRow:
    """One row of the flat table view.

    Attributes:
        data: Flattened dot-path column name -> stringified value.
        agent_name: Reporting agent.
        agent_id: Reporting agent identifier.
        row_index: Position of the row within the agent's answer.
        has_error: Whether the source result was an error result.
    """

    data: dict[str, str]
    agent_name: str
    agent_id: str
    row_index: int = 0
    has_error: bool = False

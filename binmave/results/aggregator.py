"""
Aggregation of per-agent trees into one tree with prevalence counts.

Every node is keyed by its label-path: the ``/``-joined labels from its
forest root (``/procs/a.exe``). Paths are counted across all agents, then
rebuilt into a tree where each node carries ``count/total`` and an anomaly
flag for paths seen on at most 10% of agents (minimum 1).

Label-paths join labels, not keys and indices, so differently shaped
nodes that render the same label merge into one path. A label that itself
contains ``/`` yields a path whose parent prefix never exists, and such a
node is not reachable in the rebuilt tree.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from binmave.results.models import AgentTree, TreeNode

AGGREGATE_AGENT_ID = "aggregated"


@dataclass
class AggregatedPath:
    """Accumulator for one label-path.

    Attributes:
        label: Last path segment.
        count: Occurrences across all agents (an agent repeating the same
            label-path counts once per occurrence).
        agent_names: Agent name per occurrence, not deduplicated.
    """

    label: str
    count: int = 0
    agent_names: list[str] = field(default_factory=list)


def anomaly_threshold(total_agents: int) -> int:
    """Counts at or below this value are anomalous: max(1, total // 10)."""
    return max(1, total_agents // 10)


def collect_paths(
    nodes: list[TreeNode],
    prefix: str,
    agent_name: str,
    paths: dict[str, AggregatedPath],
) -> None:
    """Accumulate every node below ``prefix`` into ``paths`` (depth-first)."""
    for node in nodes:
        path = f"{prefix}/{node.label}"
        entry = paths.get(path)
        if entry is None:
            entry = paths[path] = AggregatedPath(label=node.label)
        entry.count += 1
        entry.agent_names.append(agent_name)

        if node.children:
            collect_paths(node.children, path, agent_name, paths)


def _index_children(paths: dict[str, AggregatedPath]) -> dict[str, list[str]]:
    """Group paths under their direct parent prefix.

    ``path`` is a direct child of ``prefix`` when it starts with
    ``prefix + "/"`` and the remainder holds no further ``/``, which is
    exactly ``path.rpartition("/")[0] == prefix``.
    """
    children: dict[str, list[str]] = defaultdict(list)
    for path in paths:
        parent, _, _ = path.rpartition("/")
        children[parent].append(path)
    return children


def _build_nodes(
    paths: dict[str, AggregatedPath],
    children_index: dict[str, list[str]],
    prefix: str,
    total_agents: int,
    anomalies_only: bool,
    depth: int,
) -> list[TreeNode]:
    threshold = anomaly_threshold(total_agents)
    candidates = sorted(
        children_index.get(prefix, []),
        key=lambda path: (-paths[path].count, paths[path].label, path),
    )

    nodes: list[TreeNode] = []
    for path in candidates:
        entry = paths[path]
        is_anomaly = entry.count <= threshold

        # Pruning is per node; descendants of a skipped node are dropped too
        if anomalies_only and not is_anomaly:
            continue

        node = TreeNode(
            id=path,
            label=entry.label,
            depth=depth,
            count=entry.count,
            total_count=total_agents,
            agent_names=list(entry.agent_names),
            is_anomaly=is_anomaly,
        )
        node.children = _build_nodes(
            paths, children_index, path, total_agents, anomalies_only, depth + 1
        )
        nodes.append(node)

    return nodes


def build_aggregated_nodes(
    paths: dict[str, AggregatedPath],
    total_agents: int,
    anomalies_only: bool = False,
    prefix: str = "",
) -> list[TreeNode]:
    """
    Rebuild a tree from accumulated label-paths.

    Args:
        paths: Accumulated paths from collect_paths().
        total_agents: Number of agents considered.
        anomalies_only: Skip every node that is not itself anomalous.
        prefix: Path whose direct children are returned ("" for roots).

    Returns:
        Nodes sorted by count (descending), then label.
    """
    return _build_nodes(
        paths, _index_children(paths), prefix, total_agents, anomalies_only, depth=0
    )


def collect_agent_paths(agent_trees: list[AgentTree]) -> dict[str, AggregatedPath]:
    """Collect the label-paths of every agent tree into one map."""
    paths: dict[str, AggregatedPath] = {}
    for tree in agent_trees:
        collect_paths(tree.roots, "", tree.agent_name, paths)
    return paths


def aggregate(
    agent_trees: list[AgentTree],
    total_agents: int | None = None,
    anomalies_only: bool = False,
    paths: dict[str, AggregatedPath] | None = None,
) -> list[TreeNode]:
    """
    Merge per-agent trees into one forest keyed by label-path.

    Args:
        agent_trees: One tree per agent.
        total_agents: Number of agents considered; defaults to
            ``len(agent_trees)``.
        anomalies_only: Keep only anomalous nodes (per node, see
            build_aggregated_nodes).
        paths: Label-paths already collected from agent_trees with
            collect_agent_paths(); collected here when omitted.

    Returns:
        The aggregated forest. For three agents reporting ``a.exe`` and
        one of them also ``b.exe`` under ``procs``, ``/procs/a.exe`` has
        count 3 and ``/procs/b.exe`` count 1 (anomalous).
    """
    if total_agents is None:
        total_agents = len(agent_trees)
    if paths is None:
        paths = collect_agent_paths(agent_trees)

    return build_aggregated_nodes(paths, total_agents, anomalies_only)


def build_aggregate_tree(
    agent_trees: list[AgentTree],
    anomalies_only: bool = False,
) -> AgentTree:
    """
    Wrap the aggregated forest as a single pre-expanded "All Agents (N)" tree.

    Args:
        agent_trees: One tree per agent.
        anomalies_only: Passed through to aggregate().

    Returns:
        The synthetic aggregate AgentTree; node_count is the number of
        distinct label-paths.
    """
    total_agents = len(agent_trees)
    paths = collect_agent_paths(agent_trees)

    return AgentTree(
        agent_id=AGGREGATE_AGENT_ID,
        agent_name=f"All Agents ({total_agents})",
        roots=aggregate(agent_trees, total_agents, anomalies_only, paths=paths),
        node_count=len(paths),
        expanded=True,
    )

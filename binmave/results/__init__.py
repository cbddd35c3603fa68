"""
Data-shaping core for execution results.

Everything here is pure: it takes parsed service records and returns
trees, table rows, aggregates and diffs. Nothing performs I/O and
malformed agent payloads never raise.

Usage:
    from binmave.results import build_agent_trees, build_aggregate_tree

    trees = build_agent_trees(results)
    merged = build_aggregate_tree(trees, anomalies_only=True)
"""

from binmave.results.aggregator import (
    AGGREGATE_AGENT_ID,
    AggregatedPath,
    aggregate,
    anomaly_threshold,
    build_aggregate_tree,
    build_aggregated_nodes,
    collect_agent_paths,
    collect_paths,
)
from binmave.results.differ import (
    DiffItem,
    DiffResult,
    DiffType,
    compute_diff,
    extract_paths,
    path_to_label,
)
from binmave.results.flatten import (
    build_table_rows,
    flatten_object,
    flatten_to_rows,
    order_columns,
)
from binmave.results.models import (
    AgentTree,
    Execution,
    ExecutionResult,
    ExecutionStatus,
    TableRow,
    TreeNode,
)
from binmave.results.normalizer import (
    MAX_TREE_DEPTH,
    build_agent_tree,
    build_agent_trees,
    build_tree,
    count_nodes,
    find_label,
    truncate,
)
from binmave.results.structure import (
    detect_self_reference,
    is_hierarchical,
    results_are_hierarchical,
)

__all__ = [
    # Records
    "AgentTree",
    "Execution",
    "ExecutionResult",
    "ExecutionStatus",
    "TableRow",
    "TreeNode",
    # Normalization
    "MAX_TREE_DEPTH",
    "build_agent_tree",
    "build_agent_trees",
    "build_tree",
    "count_nodes",
    "find_label",
    "truncate",
    # Table projection
    "build_table_rows",
    "flatten_object",
    "flatten_to_rows",
    "order_columns",
    # Structure detection
    "detect_self_reference",
    "is_hierarchical",
    "results_are_hierarchical",
    # Aggregation
    "AGGREGATE_AGENT_ID",
    "AggregatedPath",
    "aggregate",
    "anomaly_threshold",
    "build_aggregate_tree",
    "build_aggregated_nodes",
    "collect_agent_paths",
    "collect_paths",
    # Baseline diff
    "DiffItem",
    "DiffResult",
    "DiffType",
    "compute_diff",
    "extract_paths",
    "path_to_label",
]

"""Tests for JSON-to-tree normalization in binmave/results/normalizer.py."""

from __future__ import annotations

import json

from binmave.results.normalizer import (
    MAX_TREE_DEPTH,
    build_agent_tree,
    build_agent_trees,
    build_tree,
    count_nodes,
    find_label,
    is_parsed,
    parse_answer,
    stringify,
    truncate,
)
from conftest import make_result


def labels(nodes):
    return [node.label for node in nodes]


def walk(nodes):
    for node in nodes:
        yield node
        yield from walk(node.children)


class TestTruncate:
    """Tests for truncate()."""

    def test_short_text_unchanged(self):
        """Text within the limit is returned as-is."""
        assert truncate("hello", 10) == "hello"

    def test_long_text_gets_ellipsis(self):
        """Long text is cut to max_len including the ellipsis."""
        result = truncate("Hello, World!", 10)
        assert result == "Hello, ..."
        assert len(result) == 10

    def test_newlines_flattened(self):
        """Newlines become spaces and carriage returns are dropped."""
        assert truncate("a\r\nb", 10) == "a b"

    def test_tiny_limit(self):
        """Limits of three or less cut without an ellipsis."""
        assert truncate("abcdef", 2) == "ab"


class TestStringify:
    """Tests for stringify()."""

    def test_null_is_empty(self):
        """None renders as an empty string."""
        assert stringify(None) == ""

    def test_booleans(self):
        """Booleans render in JSON spelling."""
        assert stringify(True) == "true"
        assert stringify(False) == "false"

    def test_integral_float(self):
        """Integral floats lose their fractional part."""
        assert stringify(2.0) == "2"
        assert stringify(1.5) == "1.5"

    def test_containers_as_compact_json(self):
        """Containers fall back to compact JSON."""
        assert stringify({"a": [1, 2]}) == '{"a":[1,2]}'


class TestParseAnswer:
    """Tests for parse_answer() and is_parsed()."""

    def test_valid_json(self):
        """Valid JSON is parsed."""
        assert parse_answer('{"a": 1}') == {"a": 1}

    def test_null_is_a_valid_parse(self):
        """JSON null parses to None, which is not a failure."""
        value = parse_answer("null")
        assert value is None
        assert is_parsed(value)

    def test_invalid_json(self):
        """Invalid JSON yields the not-parsed sentinel."""
        assert not is_parsed(parse_answer("{oops"))

    def test_none_input(self):
        """A missing answer is not parsed."""
        assert not is_parsed(parse_answer(None))


class TestFindLabel:
    """Tests for find_label()."""

    def test_priority_order(self):
        """Name-like keys win over id keys."""
        assert find_label({"id": "7", "Name": "svchost.exe"}) == "svchost.exe"

    def test_skips_empty_and_non_string(self):
        """Empty strings and non-strings are skipped."""
        assert find_label({"name": "", "title": 5, "path": "/bin/sh"}) == "/bin/sh"

    def test_no_label(self):
        """Objects without name-like strings have no label."""
        assert find_label({"id": 7, "size": 10}) == ""


class TestBuildTree:
    """Tests for build_tree()."""

    def test_object_keys(self):
        """Scalar values are inlined; containers become parents."""
        nodes = build_tree({"a": 1, "b": {"c": None}})
        assert labels(nodes) == ["a: 1", "b"]
        assert labels(nodes[1].children) == ["c: "]
        assert nodes[1].children[0].depth == 1

    def test_array_elements(self):
        """Array elements are labelled by name, index or value."""
        nodes = build_tree([{"name": "x"}, {"v": 1}, [1, 2], 3, True])
        assert labels(nodes) == ["x", "[1]", "[2] (2 items)", "[3]: 3", "[4]: true"]
        assert labels(nodes[2].children) == ["[0]: 1", "[1]: 2"]

    def test_empty_containers(self):
        """Empty containers produce childless parents."""
        nodes = build_tree({"empty": {}, "none": []})
        assert labels(nodes) == ["empty", "none"]
        assert all(not node.children for node in nodes)

    def test_scalar_has_no_nodes(self):
        """Top-level scalars produce no nodes."""
        assert build_tree(42) == []

    def test_nodes_start_collapsed(self):
        """Freshly built nodes are collapsed."""
        nodes = build_tree({"a": {"b": {"c": 1}}})
        assert not any(node.expanded for node in walk(nodes))

    def test_ids_unique(self):
        """Every node in a tree has a distinct id."""
        nodes = build_tree({"a": [{"name": "x"}, {"name": "x"}], "b": {"a": 1}})
        ids = [node.id for node in walk(nodes)]
        assert len(ids) == len(set(ids))

    def test_depth_limit_placeholder(self):
        """Nesting beyond the limit ends in a placeholder leaf."""
        value = {}
        for _ in range(MAX_TREE_DEPTH + 20):
            value = {"k": value}

        nodes = build_tree(value)
        deepest = max(walk(nodes), key=lambda node: node.depth)
        assert deepest.depth == MAX_TREE_DEPTH
        assert "depth limit" in deepest.label
        assert not deepest.children


class TestCountNodes:
    """Tests for count_nodes()."""

    def test_counts_descendants(self):
        """All nodes of the forest are counted."""
        assert count_nodes(build_tree({"a": {"b": 1, "c": [1, 2]}})) == 5

    def test_empty(self):
        """An empty forest has no nodes."""
        assert count_nodes([]) == 0


class TestBuildAgentTree:
    """Tests for build_agent_tree() and build_agent_trees()."""

    def test_structured_answer(self):
        """Structured answers become a collapsed tree with a node count."""
        tree = build_agent_tree(make_result("host-1", {"os": {"name": "linux"}}))
        assert tree.agent_name == "host-1"
        assert tree.agent_id == "id-host-1"
        assert labels(tree.roots) == ["os"]
        assert tree.node_count == 2
        assert not tree.expanded

    def test_invalid_json_is_single_leaf(self):
        """Unparseable answers become one leaf with the raw text."""
        tree = build_agent_tree(make_result("host-1", "not json at all", raw=True))
        assert labels(tree.roots) == ["not json at all"]
        assert tree.node_count == 1
        assert not tree.roots[0].children

    def test_long_raw_text_truncated(self):
        """Raw leaves are limited to 100 characters."""
        tree = build_agent_tree(make_result("host-1", "x" * 150, raw=True))
        assert len(tree.roots[0].label) == 100
        assert tree.roots[0].label.endswith("...")

    def test_scalar_answer_is_single_leaf(self):
        """Valid JSON scalars are shown as their raw text."""
        tree = build_agent_tree(make_result("host-1", 42))
        assert labels(tree.roots) == ["42"]
        assert tree.node_count == 1

    def test_error_flag_carried(self):
        """The error flag of the result is kept on the tree."""
        tree = build_agent_tree(make_result("host-1", "", has_error=True, raw=True))
        assert tree.has_error
        assert tree.node_count == 1

    def test_one_tree_per_result(self, process_results):
        """Every result gets a tree, in order."""
        trees = build_agent_trees(process_results)
        assert [tree.agent_name for tree in trees] == ["host-1", "host-2", "host-3"]

    def test_same_json_same_labels(self):
        """Identical answers normalize to identical label structures."""
        answer = json.dumps({"procs": [{"name": "a"}, {"pid": 3}]})
        first = build_agent_tree(make_result("h1", answer, raw=True))
        second = build_agent_tree(make_result("h2", answer, raw=True))
        assert labels(walk(first.roots)) == labels(walk(second.roots))

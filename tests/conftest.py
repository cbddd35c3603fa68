"""Pytest configuration and shared fixtures for binmave tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from binmave.config import Settings
from binmave.results.models import ExecutionResult


def make_result(
    agent_name: str,
    answer: Any,
    has_error: bool = False,
    raw: bool = False,
    **kwargs: Any,
) -> ExecutionResult:
    """Helper to build a result; ``answer`` is JSON-encoded unless raw."""
    answer_json = answer if raw else json.dumps(answer)
    return ExecutionResult(
        agent_id=kwargs.pop("agent_id", f"id-{agent_name}"),
        agent_name=agent_name,
        answer_json=answer_json,
        has_error=has_error,
        **kwargs,
    )


def result_dict(agent_name: str, answer: Any, has_error: bool = False) -> dict[str, Any]:
    """Helper to build a result object as the service returns it."""
    return {
        "resultId": 1,
        "agentId": f"id-{agent_name}",
        "agentName": agent_name,
        "answerJson": json.dumps(answer),
        "hasError": has_error,
        "rawStdError": "boom" if has_error else "",
        "executionTimeSeconds": 2,
        "resultReceived": "2024-01-01T00:00:00Z",
    }


@pytest.fixture
def settings() -> Settings:
    """Return settings with a token and a small page size."""
    return Settings(server="https://example.test", token="secret", page_size=2)


@pytest.fixture
def process_results() -> list[ExecutionResult]:
    """Return three agents reporting processes; only one runs b.exe."""
    return [
        make_result("host-1", {"procs": [{"name": "a.exe"}, {"name": "b.exe"}]}),
        make_result("host-2", {"procs": [{"name": "a.exe"}]}),
        make_result("host-3", {"procs": [{"name": "a.exe"}]}),
    ]


@pytest.fixture
def flat_results() -> list[ExecutionResult]:
    """Return results whose answers are flat arrays of objects."""
    return [
        make_result("host-1", [{"user": "alice", "uid": 1000}, {"user": "bob", "uid": 1001}]),
        make_result("host-2", [{"user": "carol", "uid": 1002}]),
    ]


@pytest.fixture
def results_file(tmp_path: Path) -> Path:
    """Return a saved results file with one good and one failed agent."""
    path = tmp_path / "exec-123.json"
    data = [
        result_dict("host-1", {"os": {"name": "linux"}}),
        result_dict("host-2", "", has_error=True),
    ]
    path.write_text(json.dumps(data), encoding="utf-8")
    return path

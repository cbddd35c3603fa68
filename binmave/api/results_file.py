"""
Offline result source backed by a saved JSON file.

The file can contain:
- An array of result objects: [{...}, {...}, ...]
- A single result object: {...}
- A results page: {"results": [...], "totalCount": N, ...}

A file is a finished snapshot, so its status is always Completed.
"""

from __future__ import annotations

import json
import os
from typing import Any

from binmave.errors import ResultsFileError
from binmave.results.models import Execution, ExecutionResult, ExecutionStatus


class ResultsFile:
    """Result source reading a saved JSON file.

    Attributes:
        path: Path of the JSON file.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._results: list[ExecutionResult] | None = None

    def _load_json_data(self) -> list[dict[str, Any]]:
        """Read the file and return the raw result objects.

        Raises:
            ResultsFileError: If the file is missing, not JSON, or not one
                of the supported shapes.
        """
        if not os.path.exists(self.path):
            raise ResultsFileError(f"Results file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ResultsFileError(f"Cannot read {self.path}: {e}") from e

        # Page wrapper
        if isinstance(data, dict) and isinstance(data.get("results"), list):
            data = data["results"]

        if isinstance(data, dict):
            return [data]

        if isinstance(data, list):
            for i, item in enumerate(data):
                if not isinstance(item, dict):
                    raise ResultsFileError(
                        f"Result at index {i} is not an object (got {type(item).__name__})"
                    )
            return data

        raise ResultsFileError(
            f"{self.path} must contain a result object or an array of results "
            f"(got {type(data).__name__})"
        )

    def load(self) -> list[ExecutionResult]:
        """Parse the file once and cache the results."""
        if self._results is None:
            items = self._load_json_data()
            try:
                self._results = [ExecutionResult.from_dict(item) for item in items]
            except (TypeError, ValueError) as e:
                raise ResultsFileError(f"Invalid result in {self.path}: {e}") from e
        return self._results

    def get_execution(self, execution_id: str) -> Execution:
        return Execution(
            execution_id=execution_id,
            script_name=os.path.basename(self.path),
        )

    def get_execution_status(self, execution_id: str) -> ExecutionStatus:
        results = self.load()
        errors = sum(1 for result in results if result.has_error)
        return ExecutionStatus(
            expected=len(results),
            received=len(results),
            errors=errors,
            state="Completed",
        )

    def get_all_execution_results(self, execution_id: str) -> list[ExecutionResult]:
        return list(self.load())

    def get_execution_errors(self, execution_id: str) -> list[ExecutionResult]:
        return [result for result in self.load() if result.has_error]

    def close(self) -> None:
        """Nothing to release; present for parity with ResultsClient."""

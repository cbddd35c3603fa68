"""
HTTP client for the execution results service.

Thin wrapper around a requests.Session: every call carries the bearer
token and the configured timeout, and every failure is converted into a
BinmaveError subclass so callers only need one except clause.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import requests

from binmave.config import Settings
from binmave.errors import (
    APIError,
    AuthenticationError,
    ConnectionFailedError,
    NotLoggedInError,
)
from binmave.results.models import Execution, ExecutionResult, ExecutionStatus

logger = logging.getLogger(__name__)

EXECUTIONS_PATH = "/api/scripts/executions"


@dataclass
class ResultsPage:
    """One page of execution results."""

    results: list[ExecutionResult] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResultsPage:
        return cls(
            results=[ExecutionResult.from_dict(item) for item in data.get("results") or []],
            total_count=int(data.get("totalCount") or 0),
            page=int(data.get("page") or 1),
            page_size=int(data.get("pageSize") or 0),
        )


class ResultsClient:
    """Authenticated client for execution status and results.

    Args:
        settings: Resolved settings; ``token`` must be set.
        session: Optional session to use instead of a new one.
        timeout: Per-request timeout overriding ``settings.request_timeout``.

    Raises:
        NotLoggedInError: If no token is configured.
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        if not settings.token:
            raise NotLoggedInError()
        self.settings = settings
        self.base_url = settings.server.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {settings.token}",
                "Accept": "application/json",
            }
        )

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        decode: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Issue a GET and return the JSON body, passed through ``decode``.

        A body that is not JSON, or that ``decode`` cannot turn into a
        record, raises APIError.
        """
        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ConnectionFailedError(f"request failed: {e}") from e

        if resp.status_code == 401:
            raise AuthenticationError(resp.text)
        if not 200 <= resp.status_code < 300:
            raise APIError(resp.status_code, resp.text)

        try:
            data = resp.json()
            return decode(data) if decode is not None else data
        except (ValueError, TypeError, AttributeError) as e:
            raise APIError(resp.status_code, f"failed to decode response: {e}") from e

    def get_execution(self, execution_id: str) -> Execution:
        """Fetch execution metadata."""
        return self._get(f"{EXECUTIONS_PATH}/{execution_id}", decode=Execution.from_dict)

    def get_execution_status(self, execution_id: str) -> ExecutionStatus:
        """Fetch progress counters and state."""
        return self._get(
            f"{EXECUTIONS_PATH}/{execution_id}/status", decode=ExecutionStatus.from_dict
        )

    def get_execution_results(
        self,
        execution_id: str,
        page: int = 1,
        page_size: int | None = None,
    ) -> ResultsPage:
        """Fetch one page of results (pages start at 1)."""
        if page_size is None:
            page_size = self.settings.page_size
        return self._get(
            f"{EXECUTIONS_PATH}/{execution_id}/results",
            params={"page": page, "pageSize": page_size},
            decode=ResultsPage.from_dict,
        )

    def get_all_execution_results(self, execution_id: str) -> list[ExecutionResult]:
        """Collect every page of results.

        Stops once the collected count reaches ``totalCount`` or a page
        comes back shorter than the page size.
        """
        page_size = self.settings.page_size
        results: list[ExecutionResult] = []
        page = 1

        while True:
            batch = self.get_execution_results(execution_id, page, page_size)
            results.extend(batch.results)
            if len(results) >= batch.total_count or len(batch.results) < page_size:
                break
            page += 1

        logger.debug("Fetched %d results for %s in %d page(s)", len(results), execution_id, page)
        return results

    def get_execution_errors(self, execution_id: str) -> list[ExecutionResult]:
        """Collect only the results that reported an error."""
        return [r for r in self.get_all_execution_results(execution_id) if r.has_error]

    def close(self) -> None:
        self.session.close()

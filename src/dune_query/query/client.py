"""Dune API client driving query executions from submission to results.

Provides:
- Query submission with typed parameters and a performance tier
- Single status checks and cancellation
- Result fetching decoded into a caller-supplied row type
- ``refresh``: submit, poll until terminal, fetch results
"""

from __future__ import annotations

import time
from urllib.parse import quote
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from dune_query.config import get_settings
from dune_query.errors import DuneTransportError
from dune_query.models.execution import ExecutionStatus, Performance
from dune_query.models.response import (
    CancellationResponse,
    ExecutionResponse,
    GetResultResponse,
    GetStatusResponse,
)
from dune_query.observability import (
    get_logger,
    get_tracer,
    record_execution_duration,
    record_result_rows,
    record_status_poll,
)
from dune_query.query.parameters import parameters_to_payload
from dune_query.query.transport import ApiTransport

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    import httpx
    from pydantic import BaseModel

    from dune_query.config import DuneSettings
    from dune_query.query.parameters import Parameter

    ModelT = TypeVar("ModelT", bound=BaseModel)

RowT = TypeVar("RowT")

logger = get_logger(__name__)


def _decode(model: type[ModelT], body: Any) -> ModelT:
    """Validate a response body, reporting shape mismatches as transport errors."""
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise DuneTransportError(
            f"Failed to decode {model.__name__}: {e.error_count()} validation error(s): "
            f"{e.errors(include_url=False)}"
        ) from e


def _execution_path(execution_id: str, action: str) -> str:
    """Build an execution endpoint path with the ID escaped as one segment."""
    return f"execution/{quote(execution_id, safe='')}/{action}"


class DuneClient:
    """Client for the Dune query execution API.

    Each execution is tracked only by its execution ID, so the client holds no
    per-execution state and can be shared between threads.

    Example::

        client = DuneClient.from_env()
        response = client.refresh(971694, row_type=Row)
        rows = response.get_rows()
    """

    def __init__(
        self,
        api_key: str,
        settings: DuneSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Dune API key.
            settings: Client settings. If None, uses cached settings.
            transport: httpx transport override for the HTTP layer.
        """
        self._settings = settings or get_settings()
        self._api = ApiTransport(api_key, self._settings, transport=transport)

    @classmethod
    def from_env(
        cls,
        settings: DuneSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> DuneClient:
        """Create a client using the API key from ``DUNE_API_KEY``.

        Raises:
            ValueError: If no API key is configured.
        """
        settings = settings or get_settings()
        if not settings.api_key:
            raise ValueError("DUNE_API_KEY is not set")
        return cls(settings.api_key, settings=settings, transport=transport)

    def __enter__(self) -> DuneClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._api.close()

    def execute_query(
        self,
        query_id: int,
        parameters: Iterable[Parameter] | None = None,
        performance: Performance | str | None = None,
    ) -> ExecutionResponse:
        """Submit a query for execution.

        Args:
            query_id: Dune query ID.
            parameters: Query parameters; names must match the query's parameters.
            performance: Engine size to run on, as a ``Performance`` or its value.
                Dune's default when None.

        Returns:
            ExecutionResponse with the execution ID and initial state.

        Raises:
            ValueError: If ``performance`` is not a known tier.
            DuneAPIError: If Dune rejects the submission.
            DuneTransportError: If the request fails.
        """
        payload: dict[str, Any] = {"query_parameters": parameters_to_payload(parameters)}
        if performance is not None:
            payload["performance"] = Performance(performance).value

        with get_tracer().start_as_current_span("dune.execute_query") as span:
            span.set_attribute("dune.query_id", query_id)
            body = self._api.post(f"query/{query_id}/execute", json=payload)
            response = _decode(ExecutionResponse, body)
            span.set_attribute("dune.execution_id", response.execution_id)

        logger.info(
            "query_submitted",
            query_id=query_id,
            execution_id=response.execution_id,
            state=response.state.name,
        )
        return response

    def get_status(self, execution_id: str) -> GetStatusResponse:
        """Check the status of an execution once.

        Raises:
            DuneAPIError: If Dune rejects the request (e.g. unknown execution ID).
            DuneTransportError: If the request fails.
        """
        with get_tracer().start_as_current_span("dune.get_status") as span:
            span.set_attribute("dune.execution_id", execution_id)
            body = self._api.get(_execution_path(execution_id, "status"))
            status = _decode(GetStatusResponse, body)
            span.set_attribute("dune.state", status.state.name)

        record_status_poll(status.state.name)
        return status

    def get_results(
        self,
        execution_id: str,
        row_type: type[RowT] = dict[str, Any],  # type: ignore[assignment]
        limit: int | None = None,
        offset: int | None = None,
        columns: Sequence[str] | None = None,
    ) -> GetResultResponse[RowT]:
        """Fetch the result set of an execution.

        Rows are only meaningful once the execution is complete. Paging and
        column selection are forwarded to Dune as given.

        Args:
            execution_id: Execution to fetch.
            row_type: Type each row is decoded into.
            limit: Maximum number of rows to return.
            offset: Number of rows to skip.
            columns: Subset of columns to return.

        Returns:
            GetResultResponse whose rows are instances of ``row_type``.

        Raises:
            DuneAPIError: If Dune rejects the request (e.g. expired results).
            DuneTransportError: If the request fails or rows do not match ``row_type``.
        """
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        if columns:
            params["columns"] = ",".join(columns)

        with get_tracer().start_as_current_span("dune.get_results") as span:
            span.set_attribute("dune.execution_id", execution_id)
            body = self._api.get(_execution_path(execution_id, "results"), params=params or None)
            results = _decode(GetResultResponse[row_type], body)
            span.set_attribute("dune.row_count", len(results.result.rows))

        record_result_rows(len(results.result.rows))
        return results

    def cancel_execution(self, execution_id: str) -> CancellationResponse:
        """Request cancellation of an execution.

        ``success`` reports whether Dune accepted the request, not whether the
        execution was still running.
        """
        with get_tracer().start_as_current_span("dune.cancel_execution") as span:
            span.set_attribute("dune.execution_id", execution_id)
            body = self._api.post(_execution_path(execution_id, "cancel"))
            response = _decode(CancellationResponse, body)

        logger.info(
            "execution_cancel_requested", execution_id=execution_id, success=response.success
        )
        return response

    def wait_for_completion(
        self, execution_id: str, poll_interval: float | None = None
    ) -> GetStatusResponse:
        """Poll an execution until it reaches a terminal state.

        Sleeps ``poll_interval`` seconds before every status check. There is no
        overall time limit; Dune fails executions that run past its own limit.
        Transport errors are tolerated up to ``polling.transport_retries``
        consecutive times; service errors always abort.

        Args:
            execution_id: Execution to wait for.
            poll_interval: Seconds between checks. Defaults to ``polling.interval``.

        Returns:
            The first status response with a terminal state.

        Raises:
            DuneAPIError: If Dune rejects a status check.
            DuneTransportError: If status checks fail more often than allowed.
        """
        interval = self._settings.polling.interval if poll_interval is None else poll_interval
        max_retries = self._settings.polling.transport_retries
        failures = 0
        started = time.monotonic()

        while True:
            time.sleep(interval)
            try:
                status = self.get_status(execution_id)
            except DuneTransportError as e:
                failures += 1
                if failures > max_retries:
                    raise
                logger.warning(
                    "status_check_failed",
                    execution_id=execution_id,
                    attempt=failures,
                    max_retries=max_retries,
                    error=e.message,
                )
                continue

            failures = 0
            logger.debug(
                "execution_status",
                execution_id=execution_id,
                state=status.state.name,
                queue_position=status.queue_position,
            )
            if status.state.is_terminal():
                record_execution_duration(time.monotonic() - started, status.state.name)
                return status

    def refresh(
        self,
        query_id: int,
        parameters: Iterable[Parameter] | None = None,
        poll_interval: float | None = None,
        row_type: type[RowT] = dict[str, Any],  # type: ignore[assignment]
        performance: Performance | str | None = None,
    ) -> GetResultResponse[RowT]:
        """Execute a query, wait for it to finish and return its results.

        Results are fetched for every terminal state. A cancelled or failed
        execution is reported through the ``state`` of the returned response,
        or by the error Dune returns when fetching its results.

        Args:
            query_id: Dune query ID.
            parameters: Query parameters.
            poll_interval: Seconds between status checks.
            row_type: Type each row is decoded into.
            performance: Engine size to run on.

        Returns:
            GetResultResponse of the finished execution.

        Raises:
            DuneAPIError: If Dune rejects any step.
            DuneTransportError: If any step fails at the transport level.
        """
        with get_tracer().start_as_current_span("dune.refresh") as span:
            span.set_attribute("dune.query_id", query_id)
            execution = self.execute_query(query_id, parameters, performance=performance)
            status = self.wait_for_completion(execution.execution_id, poll_interval)
            span.set_attribute("dune.state", status.state.name)
            if status.state is not ExecutionStatus.COMPLETE:
                logger.warning(
                    "execution_not_completed",
                    query_id=query_id,
                    execution_id=execution.execution_id,
                    state=status.state.name,
                )
            return self.get_results(execution.execution_id, row_type=row_type)

"""Response models for Dune API methods.

Most callers only need ``GetResultResponse`` and its ``get_rows`` method. The
type parameter is the caller's row schema: a pydantic model, a ``TypedDict``, a
dataclass, or the default ``dict[str, Any]``.

Status and result responses carry their timestamps at the top level of the
JSON object. The models gather them into an ``ExecutionTimes`` value on the
``times`` attribute and flatten them back out when serialized.
"""

from __future__ import annotations

from typing import Annotated, Any, Generic, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)

from dune_query.models.execution import ExecutionStatus
from dune_query.parse_utils import DuneDatetime, OptionalDuneDatetime


def _decode_status(value: Any) -> Any:
    if isinstance(value, str):
        return ExecutionStatus.from_str(value)
    return value


WireStatus = Annotated[ExecutionStatus, BeforeValidator(_decode_status)]

RowT = TypeVar("RowT")

_TIME_FIELDS = (
    "submitted_at",
    "expires_at",
    "execution_started_at",
    "execution_ended_at",
    "cancelled_at",
)


class ExecutionResponse(BaseModel):
    """Returned after submitting a query for execution."""

    execution_id: str = Field(..., description="ID used to poll status and fetch results.")
    state: WireStatus = Field(..., description="Initial execution state.")


class CancellationResponse(BaseModel):
    """Returned after requesting cancellation of an execution."""

    success: bool = Field(..., description="True when Dune accepted the cancellation.")


class ResultMetaData(BaseModel):
    """Column names, row counts, sizes and timings of a result set."""

    column_names: list[str] = Field(..., description="Names of columns in the result set.")
    column_types: list[str] | None = Field(
        default=None, description="Dune type names for each column."
    )
    row_count: int | None = Field(default=None, ge=0, description="Rows in this page.")
    result_set_bytes: int = Field(..., ge=0, description="Size in bytes of this page.")
    total_result_set_bytes: int | None = Field(
        default=None, ge=0, description="Size in bytes across all pages."
    )
    total_row_count: int = Field(..., ge=0, description="Rows across all pages.")
    datapoint_count: int = Field(..., ge=0, description="Number of datapoints.")
    pending_time_millis: int | None = Field(
        default=None, ge=0, description="Time spent queued before execution."
    )
    execution_time_millis: int = Field(..., ge=0, description="Time spent executing.")


class ExecutionTimes(BaseModel):
    """UTC timestamps of the execution lifecycle.

    Optional fields stay ``None`` until the corresponding event has happened.
    """

    submitted_at: DuneDatetime
    expires_at: OptionalDuneDatetime = None
    execution_started_at: OptionalDuneDatetime = None
    execution_ended_at: OptionalDuneDatetime = None
    cancelled_at: OptionalDuneDatetime = None


class _TimedResponse(BaseModel):
    """Base for responses whose timestamps are flattened on the wire."""

    times: ExecutionTimes

    @model_validator(mode="before")
    @classmethod
    def nest_times(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "times" in data:
            return data
        data = dict(data)
        data["times"] = {key: data.pop(key) for key in _TIME_FIELDS if key in data}
        return data

    @model_serializer(mode="wrap")
    def flatten_times(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        times = data.pop("times", None)
        if isinstance(times, dict):
            data.update(times)
        return data


class GetStatusResponse(_TimedResponse):
    """Current state of an execution along with some metadata."""

    execution_id: str
    query_id: int
    state: WireStatus
    queue_position: int | None = Field(
        default=None, description="Queue position, reported while the execution is pending."
    )
    result_metadata: ResultMetaData | None = Field(
        default=None, description="Present once the execution has produced a result set."
    )


class ExecutionResult(BaseModel, Generic[RowT]):
    """Result rows together with their metadata."""

    rows: list[RowT]
    metadata: ResultMetaData


class GetResultResponse(_TimedResponse, Generic[RowT]):
    """Result of an execution.

    Mirrors ``GetStatusResponse`` except that the metadata lives inside
    ``result``.
    """

    execution_id: str
    query_id: int
    is_execution_finished: bool | None = None
    state: WireStatus
    result: ExecutionResult[RowT]

    def get_rows(self) -> list[RowT]:
        """Return the rows of the result set."""
        return self.result.rows

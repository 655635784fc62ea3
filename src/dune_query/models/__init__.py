"""Models package for the Dune query client."""

from dune_query.models.execution import ExecutionStatus, Performance
from dune_query.models.response import (
    CancellationResponse,
    ExecutionResponse,
    ExecutionResult,
    ExecutionTimes,
    GetResultResponse,
    GetStatusResponse,
    ResultMetaData,
)

__all__ = [
    "CancellationResponse",
    "ExecutionResponse",
    "ExecutionResult",
    "ExecutionStatus",
    "ExecutionTimes",
    "GetResultResponse",
    "GetStatusResponse",
    "Performance",
    "ResultMetaData",
]

"""Execution state and performance tier enumerations."""

from __future__ import annotations

from enum import Enum


class ExecutionStatus(str, Enum):
    """Represents all possible states of a query execution.

    Values are the wire tokens Dune uses. Executions fail when they run longer
    than the service limit (30 minutes). Pending executions also report a
    queue position in the status response.
    """

    COMPLETE = "QUERY_STATE_COMPLETED"
    EXECUTING = "QUERY_STATE_EXECUTING"
    PENDING = "QUERY_STATE_PENDING"
    CANCELLED = "QUERY_STATE_CANCELLED"
    FAILED = "QUERY_STATE_FAILED"

    @classmethod
    def from_str(cls, token: str) -> ExecutionStatus:
        """Decode a wire token, matching exactly.

        Args:
            token: State string such as ``"QUERY_STATE_PENDING"``.

        Returns:
            The matching status.

        Raises:
            ValueError: If the token is not one of the five known states.
        """
        for status in cls:
            if status.value == token:
                return status
        raise ValueError(f"Parse Error {token}")

    def is_terminal(self) -> bool:
        """Check whether the execution will not change state again."""
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {ExecutionStatus.COMPLETE, ExecutionStatus.CANCELLED, ExecutionStatus.FAILED}
)


class Performance(str, Enum):
    """Engine size used to run a query execution."""

    MEDIUM = "medium"
    LARGE = "large"

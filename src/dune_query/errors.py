"""Errors raised by the Dune query client.

Every call to the Dune API either returns a decoded response or raises one of
two exceptions:

- ``DuneAPIError``: the request reached Dune, which rejected it. Common messages
  include ``"invalid API Key"``, ``"Query not found"`` and
  ``"The requested execution ID (ID: ...) is invalid."``
- ``DuneTransportError``: no valid response was obtained (connection failure,
  timeout, malformed URL, non-2xx status without an error body, or a body that
  does not match the expected response shape).

Both derive from ``DuneRequestError`` so callers can catch either kind at once.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DuneError(BaseModel):
    """Error payload returned by the Dune API when a request fails."""

    error: str = Field(..., description="Human-readable error message from Dune.")


class DuneRequestError(Exception):
    """Base class for all errors raised while calling the Dune API."""

    prefix = "Dune request failed"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DuneRequestError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class DuneAPIError(DuneRequestError):
    """Raised when the Dune API rejects a request."""

    prefix = "Dune API error"

    @classmethod
    def from_body(cls, body: DuneError) -> DuneAPIError:
        """Build the error from a decoded ``{"error": ...}`` body."""
        return cls(body.error)


class DuneTransportError(DuneRequestError):
    """Raised when no valid response could be obtained from the Dune API."""

    prefix = "request error"

    @classmethod
    def from_exception(cls, exc: Exception) -> DuneTransportError:
        """Flatten a transport library exception into a message string."""
        return cls(str(exc) or type(exc).__name__)

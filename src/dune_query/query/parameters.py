"""Query parameters for parameterized Dune queries.

Dune supports four parameter types and all of them are sent to the API as
strings. The parameter name must match the name defined on the query; a
mismatch is only reported by Dune when the execution is submitted.

Example::

    params = [
        Parameter.text("WalletAddress", "0x1234..."),
        Parameter.number("MinAmount", "100"),
        Parameter.list("Token", "ETH"),
        Parameter.date("StartDate", datetime.now(timezone.utc)),
    ]
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ParameterType(str, Enum):
    """Kinds of query parameters."""

    TEXT = "text"
    NUMBER = "number"
    ENUM = "enum"
    DATE = "date"


@dataclass(frozen=True)
class Parameter:
    """A single query parameter."""

    key: str
    kind: ParameterType
    value: str

    @classmethod
    def text(cls, name: str, value: str) -> Parameter:
        """Build a text parameter (addresses, hashes, plain strings)."""
        return cls(key=name, kind=ParameterType.TEXT, value=value)

    @classmethod
    def number(cls, name: str, value: str) -> Parameter:
        """Build a number parameter from its string form, e.g. ``"3.14"``."""
        return cls(key=name, kind=ParameterType.NUMBER, value=value)

    @classmethod
    def list(cls, name: str, value: str) -> Parameter:
        """Build a list (dropdown) parameter; value must be one of the query's options."""
        return cls(key=name, kind=ParameterType.ENUM, value=value)

    enum = list

    @classmethod
    def date(cls, name: str, value: datetime) -> Parameter:
        """Build a date parameter, sent as ``YYYY-MM-DD HH:MM:SS`` in UTC.

        Dune date precision is to the second, so fractional seconds are
        dropped. Naive datetimes are taken to be UTC.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        formatted = value.astimezone(timezone.utc).strftime(DATE_FORMAT)
        return cls(key=name, kind=ParameterType.DATE, value=formatted)


def parameters_to_payload(parameters: Iterable[Parameter] | None) -> dict[str, str]:
    """Build the ``query_parameters`` mapping of an execute request.

    Args:
        parameters: Parameters to send. Later entries win on duplicate keys.

    Returns:
        Mapping of parameter name to string value.
    """
    if not parameters:
        return {}
    return {param.key: param.value for param in parameters}

"""Decoders for values Dune does not type consistently.

Timestamps arrive as ISO-8601 strings with a varying number of fractional
digits, and some numeric columns arrive as quoted strings. The helpers here
accept both forms and are usable directly or as pydantic validators through the
``DuneDatetime``, ``OptionalDuneDatetime`` and ``DuneFloat`` aliases.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")


def date_parse(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken to be UTC. Fractional digits beyond
    microseconds are dropped.

    Args:
        value: Timestamp string such as ``"2022-01-01T01:02:03.123Z"``.

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        ValueError: If the string is not a valid timestamp.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_PATTERN.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def datetime_from_str(value: Any) -> datetime:
    """Decode a required timestamp field.

    Raises:
        ValueError: If the value is missing or malformed.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"Expected timestamp string, got {type(value).__name__}")
    return date_parse(value)


def optional_datetime_from_str(value: Any) -> datetime | None:
    """Decode an optional timestamp field; ``None`` stays ``None``."""
    if value is None:
        return None
    return datetime_from_str(value)


def float_from_str(value: Any) -> float:
    """Decode a number that may be sent either quoted or as a JSON number.

    Raises:
        ValueError: If the value is a boolean or not numeric.
    """
    # bool is an int subclass; JSON true/false is never a valid number here
    if isinstance(value, bool):
        raise ValueError(f"Expected number, got {value!r}")
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as e:
            raise ValueError(f"Invalid number: {value!r}") from e
    raise ValueError(f"Expected number or numeric string, got {type(value).__name__}")


def serialize_datetime(value: datetime) -> str:
    """Render a UTC datetime in Dune's wire format."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


DuneDatetime = Annotated[
    datetime,
    BeforeValidator(datetime_from_str),
    PlainSerializer(serialize_datetime, return_type=str, when_used="json"),
]

OptionalDuneDatetime = Annotated[
    datetime | None,
    BeforeValidator(optional_datetime_from_str),
    PlainSerializer(
        lambda v: serialize_datetime(v) if v is not None else None,
        return_type=str | None,
        when_used="json",
    ),
]

DuneFloat = Annotated[float, BeforeValidator(float_from_str)]

"""Tests for timestamp and numeric decoders."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import BaseModel

from dune_query.parse_utils import (
    DuneDatetime,
    DuneFloat,
    OptionalDuneDatetime,
    date_parse,
    datetime_from_str,
    float_from_str,
    optional_datetime_from_str,
)


class TestDateParse:
    """Tests for date_parse."""

    def test_zulu_with_millis(self):
        parsed = date_parse("2022-01-01T01:02:03.123Z")
        assert parsed == datetime(2022, 1, 1, 1, 2, 3, 123000, tzinfo=timezone.utc)

    def test_nanosecond_precision_is_truncated(self):
        parsed = date_parse("2022-12-21T18:13:48.891230123Z")
        assert parsed.microsecond == 891230

    def test_offset_is_converted_to_utc(self):
        parsed = date_parse("2022-01-01T03:00:00+02:00")
        assert parsed == datetime(2022, 1, 1, 1, 0, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_is_utc(self):
        parsed = date_parse("2022-01-01 01:02:03")
        assert parsed.tzinfo == timezone.utc

    def test_malformed(self):
        with pytest.raises(ValueError, match="Invalid timestamp"):
            date_parse("yesterday")


class TestDatetimeFromStr:
    """Tests for required and optional timestamp decoders."""

    def test_required_string(self):
        assert datetime_from_str("2024-03-01T00:00:00Z") == datetime(
            2024, 3, 1, tzinfo=timezone.utc
        )

    def test_required_datetime_passthrough(self):
        value = datetime(2024, 3, 1, 12, 0)
        assert datetime_from_str(value) == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_required_rejects_none(self):
        with pytest.raises(ValueError):
            datetime_from_str(None)

    def test_required_rejects_number(self):
        with pytest.raises(ValueError):
            datetime_from_str(1700000000)

    def test_optional_none(self):
        assert optional_datetime_from_str(None) is None

    def test_optional_value(self):
        assert optional_datetime_from_str("2024-03-01T00:00:00Z") == datetime(
            2024, 3, 1, tzinfo=timezone.utc
        )

    def test_optional_malformed_still_fails(self):
        with pytest.raises(ValueError):
            optional_datetime_from_str("not a date")


class TestFloatFromStr:
    """Tests for float_from_str."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("3.14", 3.14),
            (" 42 ", 42.0),
            ("1e3", 1000.0),
            (7, 7.0),
            (2.5, 2.5),
        ],
    )
    def test_accepts_numbers_and_strings(self, value, expected):
        assert float_from_str(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", True, None, [1]])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(ValueError):
            float_from_str(value)


class PriceRow(BaseModel):
    symbol: str
    max_price: DuneFloat
    day: DuneDatetime
    updated: OptionalDuneDatetime = None


class TestAnnotatedAliases:
    """Tests for the pydantic aliases used in row schemas."""

    def test_quoted_number_and_timestamp(self):
        row = PriceRow.model_validate(
            {"symbol": "ETH", "max_price": "1234.5", "day": "2024-01-02T00:00:00.000Z"}
        )
        assert row.max_price == 1234.5
        assert row.day == datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert row.updated is None

    def test_native_number(self):
        row = PriceRow.model_validate(
            {"symbol": "ETH", "max_price": 10, "day": "2024-01-02T00:00:00Z"}
        )
        assert row.max_price == 10.0

    def test_json_serialization_uses_zulu(self):
        row = PriceRow(
            symbol="ETH",
            max_price=1.0,
            day=datetime(2024, 1, 2, tzinfo=timezone.utc),
        )
        dumped = row.model_dump(mode="json")
        assert dumped["day"] == "2024-01-02T00:00:00Z"
        assert dumped["updated"] is None

    def test_invalid_timestamp_fails_validation(self):
        with pytest.raises(ValueError):
            PriceRow.model_validate({"symbol": "ETH", "max_price": 1, "day": "soon"})

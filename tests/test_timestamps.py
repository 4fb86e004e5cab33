"""Tests for timestamp normalization utilities."""

from datetime import datetime, timezone

import pytest
from dateutil.tz import tzoffset

from apic_client.utils.timestamps import normalize_timestamp


class TestNormalizeTimestamp:
    """Tests for normalize_timestamp function."""

    def test_apic_timestamp(self) -> None:
        """APIC attribute timestamps with milliseconds and offset are parsed."""
        result = normalize_timestamp("2024-01-12T20:00:00.123+00:00")
        assert result.year == 2024
        assert result.month == 1
        assert result.day == 12
        assert result.hour == 20
        assert result.microsecond == 123000
        assert result.tzinfo == timezone.utc

    def test_apic_timestamp_with_offset(self) -> None:
        """Offsets are converted to UTC."""
        # 2024-01-12T15:00:00-05:00 = 2024-01-12T20:00:00Z
        result = normalize_timestamp("2024-01-12T15:00:00.000-05:00")
        assert result.hour == 20
        assert result.tzinfo == timezone.utc

    def test_iso_string_with_z(self) -> None:
        """Other ISO forms fall back to dateutil."""
        result = normalize_timestamp("2024-01-12T20:00:00Z")
        assert result.hour == 20
        assert result.tzinfo == timezone.utc

    def test_naive_string_assume_utc(self) -> None:
        result = normalize_timestamp("2024-01-12 20:00:00")
        assert result.hour == 20
        assert result.tzinfo == timezone.utc

    def test_naive_datetime_assume_utc_true(self) -> None:
        """Naive datetimes are treated as UTC when assume_utc=True."""
        dt = datetime(2024, 1, 12, 20, 0, 0)
        result = normalize_timestamp(dt, assume_utc=True)
        assert result.hour == 20
        assert result.tzinfo == timezone.utc

    def test_naive_datetime_assume_utc_false(self) -> None:
        """Naive datetimes are treated as local time when assume_utc=False."""
        dt = datetime(2024, 1, 12, 20, 0, 0)
        result = normalize_timestamp(dt, assume_utc=False)
        assert result.tzinfo == timezone.utc

    def test_aware_datetime_conversion(self) -> None:
        """Aware datetimes are converted to UTC."""
        eastern = tzoffset("EST", -5 * 3600)
        dt = datetime(2024, 1, 12, 15, 0, 0, tzinfo=eastern)
        result = normalize_timestamp(dt)
        assert result.hour == 20
        assert result.tzinfo == timezone.utc

    def test_invalid_type_raises_valueerror(self) -> None:
        """Non-string, non-datetime values are rejected."""
        with pytest.raises(ValueError, match="Cannot parse timestamp"):
            normalize_timestamp(1705084800)

    def test_invalid_string_raises_valueerror(self) -> None:
        with pytest.raises(ValueError, match="Cannot parse timestamp"):
            normalize_timestamp("not a date")

    def test_none_raises_valueerror(self) -> None:
        with pytest.raises(ValueError, match="Cannot parse timestamp"):
            normalize_timestamp(None)

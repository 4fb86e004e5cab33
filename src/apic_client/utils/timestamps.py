"""Timestamp normalization utilities for APIC attribute values."""

from datetime import datetime, timezone
from typing import Any

from dateutil import parser as dateutil_parser

# Format of timestamps returned by the APIC, e.g. 2024-01-12T20:00:00.123+00:00
ACI_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def normalize_timestamp(
    value: Any,
    assume_utc: bool = True,
) -> datetime:
    """Convert an APIC timestamp to a UTC datetime.

    Handles:
    - str: APIC format (``2024-01-12T20:00:00.123+00:00``) or anything dateutil parses
    - datetime: Returns as UTC if aware, converts if naive

    Args:
        value: Timestamp as str or datetime
        assume_utc: If True, treat naive timestamps as UTC (default True)

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ValueError: If value cannot be parsed as a timestamp

    Example:
        >>> normalize_timestamp("2024-01-12T15:00:00.000-05:00")
        datetime.datetime(2024, 1, 12, 20, 0, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.strptime(value, ACI_TIMESTAMP_FORMAT)
        except ValueError:
            try:
                dt = dateutil_parser.parse(value)
            except (ValueError, OverflowError) as e:
                raise ValueError(f"Cannot parse timestamp: {value!r}") from e
    else:
        raise ValueError(f"Cannot parse timestamp: {value!r} (type: {type(value).__name__})")

    if dt.tzinfo is None:
        if assume_utc:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            # Treat as local time, then convert to UTC
            dt = dt.astimezone(timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt

"""
Shared utility functions for Intune App Status.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

# Graph reports devices that never synced with the minimum DateTimeOffset
NEVER_SYNCED_PREFIX = "0001-01-01"


def format_percentage(numerator: int, denominator: int) -> str:
    """
    Format numerator/denominator as a percentage rounded half-up to two decimals.

    Args:
        numerator: Count being measured
        denominator: Total count; zero yields "0.00%"

    Returns:
        Percentage string such as "33.33%"

    Examples:
        >>> format_percentage(1, 2)
        '50.00%'
        >>> format_percentage(2, 3)
        '66.67%'
        >>> format_percentage(0, 0)
        '0.00%'
    """
    if denominator == 0:
        return "0.00%"
    value = (Decimal(numerator) * 100 / Decimal(denominator)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{value}%"


def parse_graph_datetime(date_str: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO8601 timestamp returned by Graph into an aware UTC datetime.

    Returns None for empty values, unparseable values and the
    "0001-01-01T00:00:00Z" placeholder Graph uses for devices that never synced.
    """
    if not date_str or date_str.startswith(NEVER_SYNCED_PREFIX):
        return None
    # Graph emits up to seven fractional digits; fromisoformat accepts at most six
    normalized = re.sub(r"(\.\d{6})\d+", r"\1", date_str.replace("Z", "+00:00"))
    try:
        dt = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_sync_time(date_str: Optional[str]) -> str:
    """Render a Graph sync timestamp for report tables ("" when never synced)."""
    dt = parse_graph_datetime(date_str)
    if dt is None:
        return ""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def report_timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp used as a prefix for report file names."""
    return (now or datetime.now(timezone.utc)).strftime("%Y%m%d-%H%M%S")

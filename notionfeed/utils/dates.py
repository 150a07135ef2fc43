"""
Date Normalization
=================

Parsing of the timestamp formats found in syndication feeds and of the
free-text month offsets stored on source records.
"""

import calendar
import re
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

# "1 month" or "<n> months" with n >= 2, nothing else.
_MONTH_OFFSET_RE = re.compile(r"(?:1 month|(?P<count>[2-9]|[1-9]\d+) months)")

# Fractional seconds; fromisoformat before 3.11 takes only 3 or 6 digits.
_FRACTION_RE = re.compile(r"(?<=:\d\d)\.(\d+)")


def _parse_rfc2822(raw: str) -> Optional[date]:
    try:
        return parsedate_to_datetime(raw).date()
    except (TypeError, ValueError, IndexError):
        return None


def _parse_iso8601(raw: str) -> Optional[date]:
    value = raw
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def _parse_date_only(raw: str) -> Optional[date]:
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Parse a feed timestamp into a calendar date.

    Formats are tried in order: RFC 2822 (RSS ``pubDate``), ISO 8601 /
    RFC 3339 (Atom), then a bare ``YYYY-MM-DD``. The date is taken in the
    timestamp's own offset; the time of day is discarded.

    Args:
        raw: Timestamp string as found in the feed

    Returns:
        The calendar date, or None when no format matches
    """
    if not raw or not isinstance(raw, str):
        return None

    raw = raw.strip()
    if not raw:
        return None

    for parser in (_parse_rfc2822, _parse_iso8601, _parse_date_only):
        parsed = parser(raw)
        if parsed is not None:
            return parsed

    return None


def parse_month_offset(raw: Optional[str]) -> int:
    """Parse an offset label such as ``"1 month"`` or ``"6 months"``.

    Only the singular form with exactly one and the plural form with two or
    more are accepted. Anything else, including ``"0 month"``, ``"1 months"``
    and ``"12 month"``, yields 0.
    """
    if not raw or not isinstance(raw, str):
        return 0

    match = _MONTH_OFFSET_RE.fullmatch(raw)
    if not match:
        return 0

    count = match.group("count")
    return int(count) if count else 1


def subtract_months(day: date, months: int) -> date:
    """Subtract calendar months, clamping to the last day of a shorter month."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def cutoff_from_offset(months: int, today: Optional[date] = None) -> Optional[date]:
    """Earliest publish date allowed for a source, or None when unrestricted.

    Args:
        months: Offset in calendar months
        today: Reference day (defaults to the current UTC date)
    """
    if months <= 0:
        return None

    if today is None:
        today = datetime.now(timezone.utc).date()

    return subtract_months(today, months)

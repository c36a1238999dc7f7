"""Time classification and comparison for real and fictional time values.

A time value is either empty, a real calendar date (absolute), or any other
string (fictional). Real dates always sort before fictional labels, and
fictional labels are compared as plain strings.
"""

import re
from datetime import datetime, timezone

from chronicle.models import TimeKind
from chronicle.services.errors import InvalidTimeValueError

_YEAR_ONLY = re.compile(r"^\d{4}$")
_YEAR_MONTH = re.compile(r"^\d{4}-\d{2}$")

_WRITTEN_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%B %Y",
    "%b %Y",
)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        # Offset pushes the instant past year 1 or 9999; keep the wall time.
        return value.replace(tzinfo=timezone.utc)


def parse_absolute(value: str | None) -> datetime | None:
    """
    Parse a time value as a real calendar instant.

    Naive values are taken as UTC.

    :param value: Raw time value
    :type value: str | None
    :return: Timezone-aware UTC datetime, or None when the value is not a date
    :rtype: datetime | None
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    if _YEAR_ONLY.match(text) or _YEAR_MONTH.match(text):
        try:
            return datetime.strptime(text, "%Y-%m" if "-" in text else "%Y").replace(tzinfo=timezone.utc)
        except ValueError:
            # Year 0000 or month 13.
            return None

    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass

    for fmt in _WRITTEN_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def classify(value: str | None) -> TimeKind:
    """
    Classify a raw time value.

    :param value: Raw time value
    :type value: str | None
    :return: EMPTY for missing or blank values, ABSOLUTE for real dates, FICTIONAL otherwise
    :rtype: TimeKind
    """
    if value is None or not value.strip():
        return TimeKind.EMPTY
    if parse_absolute(value) is not None:
        return TimeKind.ABSOLUTE
    return TimeKind.FICTIONAL


def has_time(value: str | None) -> bool:
    return classify(value) is not TimeKind.EMPTY


def require_absolute(value: str | None) -> datetime:
    """
    Parse a value that must be a real date.

    :param value: Raw time value
    :type value: str | None
    :return: Parsed UTC datetime
    :rtype: datetime
    :raises InvalidTimeValueError: If the value is empty or fictional
    """
    parsed = parse_absolute(value)
    if parsed is None:
        raise InvalidTimeValueError(value)
    return parsed


def _sign(delta: float) -> int:
    if delta < 0:
        return -1
    if delta > 0:
        return 1
    return 0


def compare_times(a: str | None, b: str | None) -> int:
    """
    Compare two time values for sorting.

    Empty values sort after any non-empty value, real dates sort before
    fictional labels, and two fictional labels compare lexicographically.

    :param a: First time value
    :type a: str | None
    :param b: Second time value
    :type b: str | None
    :return: -1 if a sorts first, 1 if b sorts first, 0 if equal
    :rtype: int
    """
    kind_a = classify(a)
    kind_b = classify(b)

    if kind_a is TimeKind.EMPTY and kind_b is TimeKind.EMPTY:
        return 0
    if kind_a is TimeKind.EMPTY:
        return 1
    if kind_b is TimeKind.EMPTY:
        return -1

    if kind_a is TimeKind.ABSOLUTE and kind_b is TimeKind.ABSOLUTE:
        return _sign((parse_absolute(a) - parse_absolute(b)).total_seconds())
    if kind_a is TimeKind.ABSOLUTE:
        return -1
    if kind_b is TimeKind.ABSOLUTE:
        return 1

    if a < b:
        return -1
    if a > b:
        return 1
    return 0

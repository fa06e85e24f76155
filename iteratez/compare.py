"""
Comparator and equality presets.

All presets share one policy for values of the wrong type: such values are
equal to each other, unequal to any valid value, and ordered entirely before
(``nulls_first``) or after all valid values.
"""

import math
import numbers
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable

from iteratez.models import (
    CompareOptions,
    Comparator,
    DateEqualityOptions,
    Equality,
    StringCompareOptions,
)


def default_equality(a: Any, b: Any) -> bool:
    """Same object or equal value"""
    return a is b or a == b


def compare_typed(ascending: bool, nulls_first: bool, a: Any, b: Any,
                  is_type: Callable[[Any], bool], comparator: Comparator) -> float:
    """Order two values that may not be of the type ``comparator`` expects"""
    invalid_a = not is_type(a)
    invalid_b = not is_type(b)

    if invalid_a != invalid_b:
        return -1 if (invalid_a if nulls_first else invalid_b) else 1
    if invalid_a:
        return 0

    return comparator(a, b) if ascending else comparator(b, a)


def equals_typed(a: Any, b: Any, is_type: Callable[[Any], bool], equality: Equality) -> bool:
    """Equality for two values that may not be of the type ``equality`` expects"""
    invalid_a = not is_type(a)
    invalid_b = not is_type(b)

    if invalid_a != invalid_b:
        return False
    if invalid_a:
        return True

    return bool(equality(a, b))


def is_number(x: Any) -> bool:
    return (isinstance(x, numbers.Real)
            and not isinstance(x, bool)
            and math.isfinite(x))


def is_string(x: Any) -> bool:
    return isinstance(x, str)


def is_date(x: Any) -> bool:
    return isinstance(x, date)


def _three_way(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def number_comparator(ascending: bool = True, nulls_first: bool = False) -> Comparator:
    """Numeric ordering; NaN, infinities and non-numbers are treated as nulls"""
    options = CompareOptions(ascending=ascending, nulls_first=nulls_first)

    def compare(a, b):
        return compare_typed(options.ascending, options.nulls_first, a, b, is_number, _three_way)

    return compare


def string_comparator(sensitive: bool = True, ascending: bool = True,
                      nulls_first: bool = False) -> Comparator:
    """Lexical ordering of strings, optionally ignoring case"""
    options = StringCompareOptions(sensitive=sensitive, ascending=ascending, nulls_first=nulls_first)

    if options.sensitive:
        comparator = _three_way
    else:
        comparator = lambda a, b: _three_way(a.casefold(), b.casefold())

    def compare(a, b):
        return compare_typed(options.ascending, options.nulls_first, a, b, is_string, comparator)

    return compare


def _instant(x: date) -> float:
    """Seconds since the epoch; naive values are read as UTC"""
    if not isinstance(x, datetime):
        x = datetime.combine(x, time())
    if x.tzinfo is None:
        x = x.replace(tzinfo=timezone.utc)
    return x.timestamp()


def _wall_clock(x: date) -> float:
    """Seconds since the epoch of the local wall-clock reading, ignoring offsets"""
    if isinstance(x, datetime):
        x = x.replace(tzinfo=None)
    return _instant(x)


def date_comparator(ascending: bool = True, nulls_first: bool = False) -> Comparator:
    """Chronological ordering of dates and datetimes"""
    options = CompareOptions(ascending=ascending, nulls_first=nulls_first)
    comparator = lambda a, b: _three_way(_instant(a), _instant(b))

    def compare(a, b):
        return compare_typed(options.ascending, options.nulls_first, a, b, is_date, comparator)

    return compare


def date_equality(equality_timespan: timedelta = timedelta(milliseconds=1),
                  utc: bool = True) -> Equality:
    """
    Dates are equal when they fall in the same span of ``equality_timespan``.

    Spans are aligned to the epoch, so with a one day timespan two datetimes
    are equal when they share a calendar day (in UTC, or in their own local
    time when ``utc`` is False).
    """
    options = DateEqualityOptions(timespan=equality_timespan, utc=utc)
    span = options.timespan.total_seconds()
    get_time = _instant if options.utc else _wall_clock

    def equality(a, b):
        return math.floor(get_time(a) / span) == math.floor(get_time(b) / span)

    return lambda a, b: equals_typed(a, b, is_date, equality)

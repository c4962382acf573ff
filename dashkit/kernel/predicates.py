"""
dashkit Kernel — Filter Predicates

Values accepted in ViewParameters.filters (field name → constraint):

  None, "", ANY, "all"/"All", empty list  → no constraint
  plain value                             → Equals (membership for list fields)
  list / tuple / set                      → OneOf
  callable                                → Where (called with the field value)
  Predicate instance                      → used as-is

Relative date windows read the clock from ViewParameters.now, never from the
system, so the engine stays deterministic.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Any

from dashkit.kernel.types import parse_instant

# ---------------------------------------------------------------------------
# "No constraint" sentinel
# ---------------------------------------------------------------------------


class _AnyValue:
    """Dropdown "All" option. Imposes no constraint."""

    _instance: _AnyValue | None = None

    def __new__(cls) -> _AnyValue:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ANY"


ANY = _AnyValue()

_ANY_LABELS = {"all", "All"}


def is_unconstrained(value: Any) -> bool:
    """True if a filter value means "any value of this field"."""
    if value is None or value is ANY:
        return True
    if isinstance(value, str):
        return value == "" or value in _ANY_LABELS
    if isinstance(value, list | tuple | set | frozenset):
        return len(value) == 0
    return False


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


class Predicate:
    """A constraint on one field. Subclasses implement matches()."""

    needs_clock = False

    def matches(self, value: Any, record: dict[str, Any], now: datetime | None) -> bool:
        raise NotImplementedError


class Equals(Predicate):
    def __init__(self, expected: Any) -> None:
        self.expected = expected

    def matches(self, value: Any, record: dict[str, Any], now: datetime | None) -> bool:
        if isinstance(value, list):
            return self.expected in value
        return value == self.expected

    def __repr__(self) -> str:
        return f"Equals({self.expected!r})"


class OneOf(Predicate):
    def __init__(self, options: Any) -> None:
        self.options = tuple(options)

    def matches(self, value: Any, record: dict[str, Any], now: datetime | None) -> bool:
        if isinstance(value, list):
            return any(v in self.options for v in value)
        return value in self.options

    def __repr__(self) -> str:
        return f"OneOf({list(self.options)!r})"


class Contains(Predicate):
    """Case-folded substring match."""

    def __init__(self, text: str) -> None:
        self.text = text.casefold()

    def matches(self, value: Any, record: dict[str, Any], now: datetime | None) -> bool:
        if value is None:
            return False
        if isinstance(value, list):
            return any(self.text in str(v).casefold() for v in value)
        return self.text in str(value).casefold()

    def __repr__(self) -> str:
        return f"Contains({self.text!r})"


class Range(Predicate):
    """
    Inclusive bounds on a numeric or temporal field. Either bound may be None.

    Temporal bounds are compared chronologically; a date-only high bound
    means midnight of that day.
    """

    def __init__(self, low: Any = None, high: Any = None) -> None:
        self.low = low
        self.high = high
        self._low = _comparable(low) if low is not None else None
        self._high = _comparable(high) if high is not None else None
        if (low is not None and self._low is None) or (high is not None and self._high is None):
            raise ValueError(f"Range bounds must be numbers or ISO dates, got {low!r}..{high!r}")

    def matches(self, value: Any, record: dict[str, Any], now: datetime | None) -> bool:
        current = _comparable(value)
        if current is None:
            return False
        try:
            if self._low is not None and current < self._low:
                return False
            if self._high is not None and current > self._high:
                return False
        except TypeError:
            # number bound against a date value, or the reverse
            return False
        return True

    def __repr__(self) -> str:
        return f"Range({self.low!r}, {self.high!r})"


DATE_PERIODS: set[str] = {"today", "this_week", "this_month", "this_year"}


class DateWindow(Predicate):
    """
    Calendar window relative to ViewParameters.now.

    period: "today", "this_week" (weeks start on Sunday), "this_month",
    "this_year"; or days=n for the last n days including today.
    Windows are half-open: [start, end).
    """

    needs_clock = True

    def __init__(self, period: str | None = None, *, days: int | None = None) -> None:
        if (period is None) == (days is None):
            raise ValueError("DateWindow takes exactly one of period or days")
        if period is not None and period not in DATE_PERIODS:
            raise ValueError(f"Unknown date period {period!r} (expected one of {sorted(DATE_PERIODS)})")
        if days is not None and days < 1:
            raise ValueError("DateWindow days must be >= 1")
        self.period = period
        self.days = days

    def window(self, now: datetime) -> tuple[date, date]:
        today = now.date()
        if self.days is not None:
            return today - timedelta(days=self.days - 1), today + timedelta(days=1)
        if self.period == "today":
            return today, today + timedelta(days=1)
        if self.period == "this_week":
            start = today - timedelta(days=(today.weekday() + 1) % 7)
            return start, start + timedelta(days=7)
        if self.period == "this_month":
            last = calendar.monthrange(today.year, today.month)[1]
            start = today.replace(day=1)
            return start, start + timedelta(days=last)
        return date(today.year, 1, 1), date(today.year + 1, 1, 1)

    def matches(self, value: Any, record: dict[str, Any], now: datetime | None) -> bool:
        if now is None:
            raise ValueError("DateWindow needs an explicit 'now'")
        clock = now if now.tzinfo is not None else now.replace(tzinfo=UTC)
        day = _calendar_date(value, clock.tzinfo)
        if day is None:
            return False
        start, end = self.window(clock)
        return start <= day < end

    def __repr__(self) -> str:
        if self.days is not None:
            return f"DateWindow(days={self.days})"
        return f"DateWindow({self.period!r})"


class Where(Predicate):
    """
    Arbitrary callable. Receives the field value, or the whole record when
    whole_record=True (cross-field rules like quantity <= reorder_level).
    """

    def __init__(self, fn: Callable[[Any], bool], *, whole_record: bool = False) -> None:
        self.fn = fn
        self.whole_record = whole_record

    def matches(self, value: Any, record: dict[str, Any], now: datetime | None) -> bool:
        return bool(self.fn(record if self.whole_record else value))

    def __repr__(self) -> str:
        return f"Where({getattr(self.fn, '__name__', self.fn)!r})"


def as_predicate(spec: Any) -> Predicate:
    """Normalize a filter value into a Predicate. Callers skip unconstrained values first."""
    if isinstance(spec, Predicate):
        return spec
    if isinstance(spec, list | tuple | set | frozenset):
        return OneOf(spec)
    if callable(spec):
        return Where(spec)
    return Equals(spec)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _comparable(value: Any) -> Any:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    return parse_instant(value)


def _calendar_date(value: Any, tz: tzinfo | None) -> date | None:
    """Calendar day of a record value; date-only values are never shifted by timezone."""
    if isinstance(value, datetime):
        instant = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
        return instant.astimezone(tz).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    instant = parse_instant(value)
    if instant is None:
        return None
    return instant.astimezone(tz).date()

"""
Cron expressions for the reminder scheduler.

Contract:
    ``parse_cron()``, ``matches_cron()`` and ``next_match()`` are pure:
    the caller supplies every timestamp.

Supported field syntax: ``*``, ``N``, ``N-M``, ``*/S``, ``N-M/S``, ``N/S``
and comma-separated lists of those.  Day of week follows cron
(0 = Sunday ... 6 = Saturday; 7 is accepted as Sunday).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

# (name, lowest, highest) in field order
_FIELDS = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day_of_month", 1, 31),
    ("month", 1, 12),
    ("day_of_week", 0, 7),
)

_SEARCH_LIMIT = timedelta(days=366)


@dataclass(frozen=True)
class CronSpec:
    """Parsed five-field cron expression; each field is the set of allowed values."""

    minutes: frozenset[int] = field(default_factory=lambda: frozenset(range(60)))
    hours: frozenset[int] = field(default_factory=lambda: frozenset(range(24)))
    days_of_month: frozenset[int] = field(default_factory=lambda: frozenset(range(1, 32)))
    months: frozenset[int] = field(default_factory=lambda: frozenset(range(1, 13)))
    days_of_week: frozenset[int] = field(default_factory=lambda: frozenset(range(7)))
    expression: str = "* * * * *"


def _bounded(value: str, name: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ValueError(f"Cron {name} field has non-numeric value {value!r}") from None
    if not low <= number <= high:
        raise ValueError(f"Cron {name} value {number} outside [{low}, {high}]")
    return number


def _parse_field(text: str, name: str, low: int, high: int) -> frozenset[int]:
    """Expand one cron field into the set of values it allows.

    Raises:
        ValueError: malformed syntax or a value outside [low, high].
    """
    values: set[int] = set()

    for part in text.split(","):
        part = part.strip()
        if not part:
            raise ValueError(f"Cron {name} field has an empty list entry")

        step = 1
        stepped = "/" in part
        if stepped:
            part, step_text = part.split("/", 1)
            step = _bounded(step_text, name, 1, high - low + 1)

        if part == "*":
            start, end = low, high
        elif "-" in part:
            start_text, end_text = part.split("-", 1)
            start = _bounded(start_text, name, low, high)
            end = _bounded(end_text, name, low, high)
            if start > end:
                raise ValueError(f"Cron {name} range {start}-{end} is reversed")
        else:
            start = _bounded(part, name, low, high)
            end = high if stepped else start

        values.update(range(start, end + 1, step))

    return frozenset(values)


def parse_cron(expression: str) -> CronSpec:
    """Parse ``minute hour day_of_month month day_of_week``.

    Raises:
        ValueError: wrong number of fields or an invalid field.
    """
    parts = expression.split()
    if len(parts) != len(_FIELDS):
        raise ValueError(
            f"Cron expression must have {len(_FIELDS)} fields, got {len(parts)}: {expression!r}"
        )

    minutes, hours, days, months, weekdays = (
        _parse_field(part, name, low, high)
        for part, (name, low, high) in zip(parts, _FIELDS)
    )
    # 7 is an alias for Sunday
    if 7 in weekdays:
        weekdays = (weekdays - {7}) | {0}

    return CronSpec(
        minutes=minutes,
        hours=hours,
        days_of_month=days,
        months=months,
        days_of_week=weekdays,
        expression=" ".join(parts),
    )


def matches_cron(spec: CronSpec, moment: datetime) -> bool:
    """True when ``moment`` falls in a minute the schedule allows."""
    # datetime.weekday(): Monday = 0; cron: Sunday = 0
    weekday = (moment.weekday() + 1) % 7
    return (
        moment.minute in spec.minutes
        and moment.hour in spec.hours
        and moment.day in spec.days_of_month
        and moment.month in spec.months
        and weekday in spec.days_of_week
    )


def next_match(spec: CronSpec, after: datetime) -> datetime:
    """First whole minute strictly after ``after`` that matches the expression.

    Raises:
        ValueError: no match within a year (e.g. ``0 0 31 2 *``).
    """
    candidate = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
    limit = candidate + _SEARCH_LIMIT
    while candidate < limit:
        if matches_cron(spec, candidate):
            return candidate
        candidate += timedelta(minutes=1)
    raise ValueError(f"Cron expression {spec.expression!r} never fires after {after}")

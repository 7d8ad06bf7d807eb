"""Recurrence expansion: turn a start instant and a rule into occurrence starts.

All arithmetic runs on naive wall-clock datetimes. Month and year steps are
computed from the anchor (``first + k * interval``) so a clamped day never
drifts: Jan 31 monthly gives Feb 29, Mar 31, Apr 30 and so on.
"""

import datetime
from collections.abc import Iterator

from dateutil.relativedelta import relativedelta

from scheduling.constants import DEFAULT_MAX_INTERVAL, MAX_MONTH_DAY, EndMode, RepeatUnit
from scheduling.services.dataclasses import RecurrenceRuleData


def clamp_int(value, minimum: int, maximum: int) -> int:
    """Clamp ``value`` into ``[minimum, maximum]``. Non numeric input becomes ``minimum``."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return minimum
    return max(minimum, min(maximum, number))


def sunday_based_weekday(value: datetime.date) -> int:
    """Weekday index with 0=Sunday..6=Saturday."""
    return (value.weekday() + 1) % 7


def add_days(value: datetime.datetime, days: int) -> datetime.datetime:
    return value + datetime.timedelta(days=days)


def add_months_keep_time(value: datetime.datetime, months: int) -> datetime.datetime:
    """
    Add ``months`` keeping the time of day. The day is clamped to the last day
    of the target month (Jan 31 + 1 month is Feb 28 or Feb 29).
    """
    return value + relativedelta(months=months)


def add_years_keep_time(value: datetime.datetime, years: int) -> datetime.datetime:
    """Add ``years`` keeping the time of day. Feb 29 lands on Feb 28 off leap years."""
    return value + relativedelta(years=years)


def end_of_day(value: datetime.date) -> datetime.datetime:
    return datetime.datetime.combine(value, datetime.time.max)


def parse_end_on_date(value) -> datetime.date | None:
    """
    Read an end date given as a ``date``, a ``datetime`` or a ``YYYY-MM-DD``
    string. Empty or unreadable values give ``None``.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


class OccurrenceGenerator:
    """Expands a recurrence rule into occurrence start instants. Never raises."""

    @staticmethod
    def generate(
        start: datetime.datetime, rule: RecurrenceRuleData, max_count_cap: int
    ) -> list[datetime.datetime]:
        """
        Return the occurrence starts of ``rule`` beginning at ``start``, strictly
        increasing.

        ``after_count`` stops after ``end_after_count`` items (at most
        ``max_count_cap``), ``never`` stops at ``max_count_cap`` and ``on_date``
        stops at the first candidate past the end of ``end_on_date``. An
        ``on_date`` rule without a usable end date gives ``[start]``.
        """
        max_count_cap = max(0, int(max_count_cap))
        target_count = max_count_cap
        end_on: datetime.datetime | None = None

        if rule.end_mode == EndMode.AFTER_COUNT:
            target_count = min(clamp_int(rule.end_after_count or 1, 1, max_count_cap), max_count_cap)
        elif rule.end_mode == EndMode.ON_DATE:
            end_on_date = parse_end_on_date(rule.end_on_date)
            if end_on_date is None:
                return [start]
            end_on = end_of_day(end_on_date)

        occurrences: list[datetime.datetime] = []
        candidates = OccurrenceGenerator.iter_candidates(start, rule)
        while True:
            try:
                candidate = next(candidates)
            except (OverflowError, ValueError):
                # stepped past datetime.max
                break
            if end_on is not None:
                if candidate > end_on:
                    break
            elif len(occurrences) >= target_count:
                break
            occurrences.append(candidate)
        return occurrences

    @staticmethod
    def exceeds_on_date_limit(
        start: datetime.datetime, rule: RecurrenceRuleData, limit: int
    ) -> bool:
        """
        Whether an ``on_date`` rule would yield more than ``limit`` occurrences.
        Looks at ``limit + 1`` candidates at most. Other end modes are bounded by
        the cap and always give ``False``.
        """
        if rule.end_mode != EndMode.ON_DATE:
            return False
        end_on_date = parse_end_on_date(rule.end_on_date)
        if end_on_date is None:
            return False

        end_on = end_of_day(end_on_date)
        candidates = OccurrenceGenerator.iter_candidates(start, rule)
        for _ in range(max(0, int(limit)) + 1):
            try:
                candidate = next(candidates)
            except (OverflowError, ValueError):
                return False
            if candidate > end_on:
                return False
        return True

    @staticmethod
    def iter_candidates(
        start: datetime.datetime, rule: RecurrenceRuleData
    ) -> Iterator[datetime.datetime]:
        """Endless, strictly increasing candidates for ``rule``. Callers stop it."""
        interval = clamp_int(rule.interval or 1, 1, DEFAULT_MAX_INTERVAL)

        if rule.unit == RepeatUnit.DAY:
            step = 0
            while True:
                yield add_days(start, step * interval)
                step += 1

        elif rule.unit == RepeatUnit.WEEK:
            target_weekday = sunday_based_weekday(start)
            if rule.weekdays:
                target_weekday = clamp_int(rule.weekdays[0], 0, 6)
            delta = (target_weekday - sunday_based_weekday(start) + 7) % 7
            first = add_days(start, delta)
            step = 0
            while True:
                yield add_days(first, step * interval * 7)
                step += 1

        elif rule.unit == RepeatUnit.MONTH:
            if rule.month_day is None:
                # Follows the start's own day of month, clamped per target month
                first = start
            else:
                month_day = clamp_int(rule.month_day, 1, MAX_MONTH_DAY)
                first = start.replace(day=month_day)
                if first < start:
                    first = add_months_keep_time(first, interval)
            step = 0
            while True:
                yield add_months_keep_time(first, step * interval)
                step += 1

        else:
            step = 0
            while True:
                yield add_years_keep_time(start, step * interval)
                step += 1

"""
Recurrence date arithmetic.

Pure functions over a RecurrenceRule; nothing here touches the database or
the wall clock, so the same rule always yields the same dates.
"""
import calendar
from datetime import date, timedelta
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from taskhub.models.enums import RecurrenceFrequency
from taskhub.models.recurring_template import RecurringTaskTemplate


class RecurrenceRule(BaseModel):
    """The fields of a template that drive date calculation."""

    model_config = ConfigDict(frozen=True)

    frequency: RecurrenceFrequency
    interval: int = 1
    days_of_week: Optional[List[int]] = None  # 0-6, Sunday first
    day_of_month: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None

    @classmethod
    def from_template(cls, template: RecurringTaskTemplate) -> "RecurrenceRule":
        """Project a stored template down to its recurrence settings."""
        return cls(
            frequency=template.frequency,
            interval=template.interval,
            days_of_week=template.days_of_week,
            day_of_month=template.day_of_month,
            start_date=template.start_date,
            end_date=template.end_date,
        )


def sunday_weekday(day: date) -> int:
    """Weekday number with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    max_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, max_day))


def matches_pattern(rule: RecurrenceRule, day: date) -> bool:
    """Check whether a date fits the rule's shape, ignoring interval stepping."""
    if rule.frequency == RecurrenceFrequency.WEEKLY:
        if not rule.days_of_week:
            return True
        return sunday_weekday(day) in rule.days_of_week

    if rule.frequency == RecurrenceFrequency.MONTHLY:
        if not rule.day_of_month:
            return True
        return day.day == rule.day_of_month

    # DAILY and YEARLY accept any date
    return True


def next_occurrence(rule: RecurrenceRule, from_date: date) -> date:
    """Advance from a date to the next occurrence of the rule."""
    if rule.frequency == RecurrenceFrequency.DAILY:
        return from_date + timedelta(days=rule.interval)
    if rule.frequency == RecurrenceFrequency.WEEKLY:
        return _next_weekly_occurrence(rule, from_date)
    if rule.frequency == RecurrenceFrequency.MONTHLY:
        return _next_monthly_occurrence(rule, from_date)
    if rule.frequency == RecurrenceFrequency.YEARLY:
        return add_months(from_date, 12 * rule.interval)
    raise ValueError(f"Unknown frequency: {rule.frequency}")


def _week_start(day: date) -> date:
    return day - timedelta(days=sunday_weekday(day))


def _next_weekly_occurrence(rule: RecurrenceRule, from_date: date) -> date:
    if not rule.days_of_week:
        return from_date + timedelta(weeks=rule.interval)

    sorted_days = sorted(set(rule.days_of_week))
    current_day = sunday_weekday(from_date)

    # Cycle weeks are counted from the calendar week holding start_date
    anchor = _week_start(rule.start_date)
    week_index = (_week_start(from_date) - anchor).days // 7

    if week_index % rule.interval == 0:
        for day in sorted_days:
            if day > current_day:
                return from_date + timedelta(days=day - current_day)

    next_cycle_index = (week_index // rule.interval + 1) * rule.interval
    next_cycle_start = anchor + timedelta(weeks=next_cycle_index)
    return next_cycle_start + timedelta(days=sorted_days[0])


def _next_monthly_occurrence(rule: RecurrenceRule, from_date: date) -> date:
    next_date = add_months(from_date, rule.interval)
    if not rule.day_of_month:
        return next_date

    # Day 31 in a 30-day month lands on the 30th, never in the following month
    max_day = calendar.monthrange(next_date.year, next_date.month)[1]
    return next_date.replace(day=min(rule.day_of_month, max_day))


def calculate_occurrences(
    rule: RecurrenceRule,
    count: int,
    existing_dates: Optional[Iterable[date]] = None,
    not_before: Optional[date] = None,
) -> List[date]:
    """
    Compute up to `count` occurrence dates that are not already materialized.

    Args:
        rule: Recurrence settings
        count: Number of new dates wanted
        existing_dates: Dates that already have an occurrence
        not_before: Skip occurrences earlier than this date

    Returns:
        New dates in ascending order. Fewer than `count` when the end date is
        reached or the iteration cap (count x 100) is hit.
    """
    existing = set(existing_dates or ())
    occurrences: List[date] = []
    if count <= 0:
        return occurrences

    current = rule.start_date
    end_date = rule.end_date
    max_iterations = count * 100

    first_matches = matches_pattern(rule, current)
    if not_before is not None and current < not_before:
        # Walk the same chain forward so week alignment is preserved
        while current < not_before:
            advanced = next_occurrence(rule, current)
            if advanced <= current:
                return occurrences
            current = advanced
            if end_date is not None and current > end_date:
                return occurrences
        first_matches = True

    if first_matches and (end_date is None or current <= end_date) and current not in existing:
        occurrences.append(current)

    iterations = 0
    while len(occurrences) < count and iterations < max_iterations:
        iterations += 1
        advanced = next_occurrence(rule, current)
        if advanced <= current:
            # A corrupted rule (interval < 1) cannot make progress
            break
        current = advanced

        if end_date is not None and current > end_date:
            break

        if current not in existing:
            occurrences.append(current)

    return occurrences

# tests/test_recurrence_validator.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from taskhub.models import RecurrenceFrequency
from taskhub.services.recurrence_validator import RecurrenceValidator


def template(**overrides):
    data = {
        "title": "Stand-up notes",
        "frequency": RecurrenceFrequency.DAILY,
        "start_date": date(2026, 3, 2),
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize(
    "days, error",
    [
        ("1,3", "days_of_week must be an array"),
        ([], "days_of_week cannot be empty for weekly recurrence"),
        ([1, 7], "days_of_week must contain integers between 0 and 6"),
        ([-1], "days_of_week must contain integers between 0 and 6"),
        ([1.5], "days_of_week must contain integers between 0 and 6"),
        ([1, 1], "days_of_week contains duplicate values"),
    ],
)
def test_invalid_days_of_week(days, error) -> None:
    result = RecurrenceValidator.validate_days_of_week(days)

    assert result["valid"] is False
    assert result["errors"] == [error]


def test_valid_days_of_week() -> None:
    assert RecurrenceValidator.validate_days_of_week([0, 3, 6])["valid"] is True


@pytest.mark.parametrize(
    "day, error",
    [
        ("15", "day_of_month must be a number"),
        (15.5, "day_of_month must be an integer"),
        (0, "day_of_month must be between 1 and 31"),
        (32, "day_of_month must be between 1 and 31"),
    ],
)
def test_invalid_day_of_month(day, error) -> None:
    assert RecurrenceValidator.validate_day_of_month(day)["errors"] == [error]


def test_late_day_of_month_warns_about_clamping() -> None:
    result = RecurrenceValidator.validate_day_of_month(31)

    assert result["valid"] is True
    assert len(result["warnings"]) == 1
    assert "31" in result["warnings"][0]


def test_interval_must_be_positive_integer() -> None:
    assert RecurrenceValidator.validate_interval(0)["errors"] == ["interval must be at least 1"]
    assert RecurrenceValidator.validate_interval(2.5)["errors"] == ["interval must be an integer"]
    assert RecurrenceValidator.validate_interval("2")["errors"] == ["interval must be a number"]
    assert RecurrenceValidator.validate_interval(3)["valid"] is True


def test_date_range() -> None:
    start = date(2026, 3, 2)

    assert RecurrenceValidator.validate_date_range(None)["errors"] == ["start_date is required"]
    assert RecurrenceValidator.validate_date_range("not a date")["errors"] == [
        "start_date is not a valid date"
    ]
    assert RecurrenceValidator.validate_date_range(start, start)["errors"] == [
        "end_date must be after start_date"
    ]
    assert RecurrenceValidator.validate_date_range(start, "2026-03-01")["errors"] == [
        "end_date must be after start_date"
    ]
    assert RecurrenceValidator.validate_date_range(datetime(2026, 3, 2, 9), "2026-04-01")["valid"]


def test_weekly_requires_days_of_week() -> None:
    result = RecurrenceValidator.validate_template_data(
        template(frequency=RecurrenceFrequency.WEEKLY)
    )

    assert result["errors"] == ["days_of_week is required for weekly recurrence"]


def test_monthly_requires_day_of_month() -> None:
    result = RecurrenceValidator.validate_template_data(
        template(frequency=RecurrenceFrequency.MONTHLY)
    )

    assert result["errors"] == ["day_of_month is required for monthly recurrence"]


@pytest.mark.parametrize(
    "frequency, field, value",
    [
        (RecurrenceFrequency.DAILY, "days_of_week", [1]),
        (RecurrenceFrequency.DAILY, "day_of_month", 5),
        (RecurrenceFrequency.YEARLY, "day_of_month", 5),
    ],
)
def test_foreign_fields_are_rejected(frequency, field, value) -> None:
    result = RecurrenceValidator.validate_template_data(template(frequency=frequency, **{field: value}))

    assert result["valid"] is False
    assert result["errors"] == [
        f"{field} should not be set for {frequency.value.lower()} recurrence"
    ]


def test_weekly_rejects_day_of_month() -> None:
    result = RecurrenceValidator.validate_template_data(
        template(frequency=RecurrenceFrequency.WEEKLY, days_of_week=[1], day_of_month=3)
    )

    assert result["errors"] == ["day_of_month should not be set for weekly recurrence"]


def test_template_requires_title_and_frequency() -> None:
    assert RecurrenceValidator.validate_template_data(template(title="  "))["errors"] == [
        "title is required and must be a non-empty string"
    ]
    assert RecurrenceValidator.validate_template_data(template(frequency=None))["errors"] == [
        "frequency is required"
    ]

    unknown = RecurrenceValidator.validate_template_data(template(frequency="HOURLY"))
    assert unknown["errors"][0].startswith("frequency must be one of:")


def test_complete_monthly_template_passes_with_warning() -> None:
    result = RecurrenceValidator.validate_template_data(
        template(frequency=RecurrenceFrequency.MONTHLY, day_of_month=30, interval=2)
    )

    assert result["valid"] is True
    assert result["errors"] == []
    assert len(result["warnings"]) == 1


@pytest.mark.parametrize("field", ["interval", "priority", "unit", "goal_type"])
def test_explicit_null_is_rejected(field) -> None:
    result = RecurrenceValidator.validate_template_data(template(**{field: None}))

    assert result["errors"] == [f"{field} cannot be null"]

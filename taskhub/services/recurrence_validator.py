"""Recurrence Validator."""
from datetime import date, datetime
from typing import Any, Dict, Optional

from taskhub.models.enums import RecurrenceFrequency

# Template columns declared NOT NULL
NON_NULLABLE_FIELDS = ("interval", "priority", "unit", "goal_type")


def _result() -> Dict[str, Any]:
    return {
        "valid": True,
        "errors": [],
        "warnings": []
    }


def _fail(result: Dict[str, Any], message: str) -> Dict[str, Any]:
    result["valid"] = False
    result["errors"].append(message)
    return result


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class RecurrenceValidator:
    """Validate recurring template data before it reaches the generator."""

    @staticmethod
    def validate_days_of_week(days_of_week: Any) -> Dict[str, Any]:
        """
        Validate a weekday set for weekly recurrence.

        Args:
            days_of_week: Sequence of weekday numbers, 0 (Sunday) to 6 (Saturday)

        Returns:
            Dict with validation result
        """
        result = _result()

        if not isinstance(days_of_week, (list, tuple)):
            return _fail(result, "days_of_week must be an array")

        if len(days_of_week) == 0:
            return _fail(result, "days_of_week cannot be empty for weekly recurrence")

        if not all(_is_int(day) and 0 <= day <= 6 for day in days_of_week):
            return _fail(result, "days_of_week must contain integers between 0 and 6")

        if len(set(days_of_week)) != len(days_of_week):
            return _fail(result, "days_of_week contains duplicate values")

        return result

    @staticmethod
    def validate_day_of_month(day_of_month: Any) -> Dict[str, Any]:
        """
        Validate a day of month for monthly recurrence.

        Args:
            day_of_month: Day number, 1 to 31

        Returns:
            Dict with validation result
        """
        result = _result()

        if isinstance(day_of_month, bool) or not isinstance(day_of_month, (int, float)):
            return _fail(result, "day_of_month must be a number")

        if not _is_int(day_of_month) and not float(day_of_month).is_integer():
            return _fail(result, "day_of_month must be an integer")

        if not 1 <= day_of_month <= 31:
            return _fail(result, "day_of_month must be between 1 and 31")

        if day_of_month > 28:
            result["warnings"].append(
                f"day_of_month {int(day_of_month)} is clamped to the last day in shorter months"
            )

        return result

    @staticmethod
    def validate_interval(interval: Any) -> Dict[str, Any]:
        """
        Validate a recurrence interval.

        Args:
            interval: Number of periods between occurrences

        Returns:
            Dict with validation result
        """
        result = _result()

        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            return _fail(result, "interval must be a number")

        if not _is_int(interval) and not float(interval).is_integer():
            return _fail(result, "interval must be an integer")

        if interval < 1:
            return _fail(result, "interval must be at least 1")

        return result

    @staticmethod
    def validate_date_range(start_date: Any, end_date: Any = None) -> Dict[str, Any]:
        """
        Validate a start date and an optional end date.

        Args:
            start_date: First day the recurrence may produce
            end_date: Last day the recurrence may produce, inclusive

        Returns:
            Dict with validation result
        """
        result = _result()

        if start_date is None:
            return _fail(result, "start_date is required")

        start = RecurrenceValidator._coerce_date(start_date)
        if start is None:
            return _fail(result, "start_date is not a valid date")

        if end_date is None:
            return result

        end = RecurrenceValidator._coerce_date(end_date)
        if end is None:
            return _fail(result, "end_date is not a valid date")

        if end <= start:
            return _fail(result, "end_date must be after start_date")

        return result

    @staticmethod
    def validate_recurrence_requirements(
        frequency: RecurrenceFrequency,
        data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Check that the frequency-specific fields are present, valid, or absent.

        Args:
            frequency: Recurrence frequency
            data: Dict with optional days_of_week, day_of_month and interval

        Returns:
            Dict with validation result
        """
        result = _result()
        days_of_week = data.get("days_of_week")
        day_of_month = data.get("day_of_month")
        name = frequency.value.lower()

        if frequency == RecurrenceFrequency.WEEKLY:
            if days_of_week is None:
                return _fail(result, "days_of_week is required for weekly recurrence")
            check = RecurrenceValidator.validate_days_of_week(days_of_week)
            if not check["valid"]:
                return check
            if day_of_month is not None:
                return _fail(result, "day_of_month should not be set for weekly recurrence")

        elif frequency == RecurrenceFrequency.MONTHLY:
            if day_of_month is None:
                return _fail(result, "day_of_month is required for monthly recurrence")
            check = RecurrenceValidator.validate_day_of_month(day_of_month)
            if not check["valid"]:
                return check
            result["warnings"].extend(check["warnings"])
            if days_of_week is not None:
                return _fail(result, "days_of_week should not be set for monthly recurrence")

        else:
            if days_of_week is not None:
                return _fail(result, f"days_of_week should not be set for {name} recurrence")
            if day_of_month is not None:
                return _fail(result, f"day_of_month should not be set for {name} recurrence")

        if data.get("interval") is not None:
            check = RecurrenceValidator.validate_interval(data["interval"])
            if not check["valid"]:
                return check

        return result

    @staticmethod
    def validate_template_data(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a complete recurring template payload.

        Args:
            data: Template fields (title, frequency, start_date, end_date, and
                the frequency-specific fields)

        Returns:
            Dict with validation result
        """
        result = _result()

        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            return _fail(result, "title is required and must be a non-empty string")

        for field in NON_NULLABLE_FIELDS:
            if field in data and data[field] is None:
                return _fail(result, f"{field} cannot be null")

        frequency = data.get("frequency")
        if frequency is None:
            return _fail(result, "frequency is required")
        try:
            frequency = RecurrenceFrequency(frequency)
        except ValueError:
            allowed = ", ".join(f.value for f in RecurrenceFrequency)
            return _fail(result, f"frequency must be one of: {allowed}")

        dates = RecurrenceValidator.validate_date_range(data.get("start_date"), data.get("end_date"))
        if not dates["valid"]:
            return dates

        requirements = RecurrenceValidator.validate_recurrence_requirements(frequency, data)
        if not requirements["valid"]:
            return requirements
        result["warnings"].extend(requirements["warnings"])

        return result

    @staticmethod
    def _coerce_date(value: Any) -> Optional[date]:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value[:10])
            except ValueError:
                return None
        return None

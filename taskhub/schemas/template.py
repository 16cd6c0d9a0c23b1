"""Recurring template schemas."""
from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, List

from taskhub.models.enums import GoalType, RecurrenceFrequency, TaskPriority, TaskUnit

# Template fields whose change invalidates already generated future occurrences
RECURRENCE_FIELDS = ("frequency", "interval", "days_of_week", "day_of_month", "start_date", "end_date")


class TemplateCreate(BaseModel):
    """Schema for creating a recurring task template."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None)
    priority: TaskPriority = TaskPriority.MEDIUM
    unit: TaskUnit = TaskUnit.NONE
    target_quantity: Optional[float] = Field(None, ge=0)
    goal_type: GoalType = GoalType.OPEN
    created_by: str  # owning user id
    frequency: RecurrenceFrequency
    interval: int = 1
    days_of_week: Optional[List[int]] = None  # 0-6, Sunday first (weekly only)
    day_of_month: Optional[int] = None  # 1-31 (monthly only)
    start_date: date
    end_date: Optional[date] = None  # inclusive


class TemplateUpdate(BaseModel):
    """Schema for partially updating a recurring task template.

    Only fields explicitly set are applied; an explicit None clears a nullable field.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    unit: Optional[TaskUnit] = None
    target_quantity: Optional[float] = Field(None, ge=0)
    goal_type: Optional[GoalType] = None
    frequency: Optional[RecurrenceFrequency] = None
    interval: Optional[int] = None
    days_of_week: Optional[List[int]] = None
    day_of_month: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

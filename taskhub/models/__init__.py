"""SQLModel table definitions."""
from taskhub.models.enums import (
    GoalType,
    RecurrenceFrequency,
    TaskEventType,
    TaskPriority,
    TaskStatus,
    TaskUnit,
)
from taskhub.models.user import User
from taskhub.models.task import Task, TaskAssignment, TaskEvent
from taskhub.models.recurring_template import RecurringTaskTemplate, RecurringTaskTemplateAssignee

__all__ = [
    "GoalType",
    "RecurrenceFrequency",
    "TaskEventType",
    "TaskPriority",
    "TaskStatus",
    "TaskUnit",
    "User",
    "Task",
    "TaskAssignment",
    "TaskEvent",
    "RecurringTaskTemplate",
    "RecurringTaskTemplateAssignee",
]

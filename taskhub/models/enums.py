"""Enumerations shared by task and template models."""
from enum import Enum


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    REJECTED = "REJECTED"


class TaskUnit(str, Enum):
    NONE = "NONE"
    HOURS = "HOURS"
    METERS = "METERS"
    KILOMETERS = "KILOMETERS"
    LITERS = "LITERS"
    KILOGRAMS = "KILOGRAMS"


class GoalType(str, Enum):
    OPEN = "OPEN"
    FIXED = "FIXED"


class RecurrenceFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class TaskEventType(str, Enum):
    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    TASK_STATUS_CHANGED = "TASK_STATUS_CHANGED"
    TASK_PRIORITY_CHANGED = "TASK_PRIORITY_CHANGED"
    ASSIGNMENT_CREATED = "ASSIGNMENT_CREATED"
    ASSIGNMENT_UPDATED = "ASSIGNMENT_UPDATED"
    ASSIGNMENT_DELETED = "ASSIGNMENT_DELETED"
    COMMENT_CREATED = "COMMENT_CREATED"
    COMMENT_UPDATED = "COMMENT_UPDATED"
    COMMENT_DELETED = "COMMENT_DELETED"
    PROGRESS_LOGGED = "PROGRESS_LOGGED"
    SUBTASK_ADDED = "SUBTASK_ADDED"
    SUBTASK_REMOVED = "SUBTASK_REMOVED"
    RECURRING_TEMPLATE_CREATED = "RECURRING_TEMPLATE_CREATED"
    RECURRING_TEMPLATE_UPDATED = "RECURRING_TEMPLATE_UPDATED"
    RECURRING_TEMPLATE_DEACTIVATED = "RECURRING_TEMPLATE_DEACTIVATED"
    RECURRING_INSTANCE_GENERATED = "RECURRING_INSTANCE_GENERATED"

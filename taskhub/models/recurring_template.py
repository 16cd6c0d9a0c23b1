"""Recurring task template models for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import JSON, Column, ForeignKey, String, Text, UniqueConstraint
from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional
import uuid

from taskhub.models.enums import GoalType, RecurrenceFrequency, TaskPriority, TaskUnit
from taskhub.utils.clock import utcnow

if TYPE_CHECKING:
    from taskhub.models.user import User


class RecurringTaskTemplate(SQLModel, table=True):
    """Recurrence definition from which task occurrences are stamped out."""

    __tablename__ = "recurring_task_templates"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    unit: TaskUnit = Field(default=TaskUnit.NONE)
    target_quantity: Optional[float] = Field(default=None)
    goal_type: GoalType = Field(default=GoalType.OPEN)
    created_by: str = Field(
        sa_column=Column(String, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    )

    # Recurrence settings
    frequency: RecurrenceFrequency
    interval: int = Field(default=1)
    days_of_week: Optional[List[int]] = Field(default=None, sa_column=Column(JSON, nullable=True))  # 0-6, Sunday first
    day_of_month: Optional[int] = Field(default=None)  # 1-31
    start_date: date = Field(index=True)
    end_date: Optional[date] = Field(default=None)  # inclusive

    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    creator: Optional["User"] = Relationship()
    default_assignees: List["RecurringTaskTemplateAssignee"] = Relationship(
        back_populates="template",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "passive_deletes": True}
    )


class RecurringTaskTemplateAssignee(SQLModel, table=True):
    """User automatically assigned to every new occurrence of a template."""

    __tablename__ = "recurring_task_template_assignees"
    __table_args__ = (
        UniqueConstraint(
            "template_id",
            "user_id",
            name="recurring_task_template_assignees_template_id_user_id_key",
        ),
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    template_id: str = Field(
        sa_column=Column(
            String,
            ForeignKey("recurring_task_templates.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    user_id: str = Field(
        sa_column=Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    )

    # Relationships
    template: Optional[RecurringTaskTemplate] = Relationship(back_populates="default_assignees")
    user: Optional["User"] = Relationship()

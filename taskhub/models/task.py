"""Task, assignment and task event models for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text, UniqueConstraint
from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from taskhub.models.enums import GoalType, TaskEventType, TaskPriority, TaskStatus, TaskUnit
from taskhub.utils.clock import utcnow

if TYPE_CHECKING:
    from taskhub.models.user import User


class Task(SQLModel, table=True):
    """Task entity; recurring occurrences carry a template back-reference."""

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint(
            "recurring_template_id",
            "occurrence_date",
            name="tasks_recurring_template_id_occurrence_date_key",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_by: str = Field(
        sa_column=Column(String, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    )
    title: str = Field(max_length=200, min_length=1)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    status: TaskStatus = Field(default=TaskStatus.PENDING, index=True)
    deadline: datetime = Field(index=True)
    scheduled_date: Optional[date] = Field(default=None, index=True)

    # Quantitative goal tracking
    unit: TaskUnit = Field(default=TaskUnit.NONE)
    goal_type: GoalType = Field(default=GoalType.OPEN)
    target_quantity: Optional[float] = Field(default=None)
    current_quantity: float = Field(default=0)

    # Recurring occurrences only
    recurring_template_id: Optional[str] = Field(
        default=None,
        sa_column=Column(
            String,
            ForeignKey("recurring_task_templates.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
    )
    occurrence_date: Optional[date] = Field(default=None, sa_column=Column(Date, nullable=True))

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    assignments: List["TaskAssignment"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "passive_deletes": True}
    )


class TaskAssignment(SQLModel, table=True):
    """A user assigned to a task."""

    __tablename__ = "task_assignments"
    __table_args__ = (
        UniqueConstraint("task_id", "user_id", name="task_assignments_task_id_user_id_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    user_id: str = Field(
        sa_column=Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    )
    assigned_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = Field(default=None)

    # Relationships
    task: Optional[Task] = Relationship(back_populates="assignments")
    user: Optional["User"] = Relationship()


class TaskEvent(SQLModel, table=True):
    """Audit trail entry attached to a task."""

    __tablename__ = "task_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    actor_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    )
    type: TaskEventType = Field(index=True)
    message: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    assignment_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("task_assignments.id", ondelete="SET NULL"), nullable=True)
    )
    created_at: datetime = Field(default_factory=utcnow)

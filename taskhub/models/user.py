"""User model for SQLModel."""
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional
import uuid

from taskhub.utils.clock import utcnow


class User(SQLModel, table=True):
    """User entity; tasks and templates reference it as creator or assignee."""

    __tablename__ = "users"

    user_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        index=True
    )
    email: str = Field(unique=True, index=True, max_length=255)
    name: Optional[str] = Field(default=None, max_length=255)
    position: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

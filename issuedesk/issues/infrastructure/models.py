"""
Issue Infrastructure Models
===========================

SQLAlchemy ORM models for the issue lifecycle.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from issuedesk.config import IssueStatus, SLAStatus
from issuedesk.infrastructure.database import Base


class UserModel(Base):
    """
    Database model for User entity.

    Maps to the 'users' table.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )


class IssueModel(Base):
    """
    Database model for Issue entity.

    Maps to the 'issues' table. Comments are owned by the issue and stored
    inline as a JSON list.
    """
    __tablename__ = "issues"

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Issue content
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    department: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(50), nullable=False, index=True, default=IssueStatus.OPEN.value)
    sla_status: Mapped[str] = mapped_column(String(50), nullable=False, default=SLAStatus.ON_TRACK.value)
    is_escalated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # People (referenced by id)
    reporter_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    assignee_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_by: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    comments: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)


class ActivityModel(Base):
    """
    Database model for Activity entity.

    Maps to the 'activities' table. Rows are only ever inserted; the
    autoincrement ``sequence`` is the insertion order.
    """
    __tablename__ = "activities"

    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    issue_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

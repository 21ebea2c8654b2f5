"""
Configuration Module
====================

Application settings and configuration management using Pydantic.

Settings cover the runtime concerns only (server, storage, logging, background
monitor). The SLA offsets and the status transition table are fixed business
rules and live in the domain layer, not here.
"""

from enum import Enum
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="issuedesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Storage ==========
    storage_backend: str = Field(
        default="memory",
        description="Entity store backend: 'memory' or 'database'"
    )
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/issuedesk",
        description="SQLAlchemy async connection URL"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)
    seed_demo_users: bool = Field(
        default=True,
        description="Create the admin / IT staff / employee demo accounts on startup"
    )

    # ========== SLA Monitor ==========
    sla_sweep_interval: int = Field(
        default=60,
        description="Seconds between background SLA sweeps (0 disables the monitor)",
        ge=0
    )

    # ========== API ==========
    recent_activity_default_limit: int = Field(
        default=10,
        description="Default page size for the recent activity feed",
        ge=1,
        le=500
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Ensure the storage backend is a known one."""
        allowed = {"memory", "database"}
        if v not in allowed:
            raise ValueError(f"storage_backend must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class UserRole(str, Enum):
    """Roles an authenticated user can hold."""
    EMPLOYEE = "employee"
    DEPARTMENT = "department"
    ADMIN = "admin"


class Department(str, Enum):
    """Departments that own issues."""
    IT = "IT"
    HR = "HR"
    ADMIN = "Admin"
    FINANCE = "Finance"
    LEGAL = "Legal"


class IssueStatus(str, Enum):
    """Issue lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    COMPLETED = "completed"
    VERIFIED = "verified"
    REJECTED = "rejected"
    CLOSED = "closed"
    ESCALATED = "escalated"


class Priority(str, Enum):
    """Issue priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SLAStatus(str, Enum):
    """SLA status states."""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"
    COMPLETED = "completed"


class ActivityAction(str, Enum):
    """Kinds of mutation recorded in the activity log."""
    CREATED = "created"
    UPDATED_STATUS = "updated_status"
    ASSIGNED = "assigned"
    ESCALATED = "escalated"
    COMMENTED = "commented"
    DEPARTMENT_CHANGED = "department_changed"


# ========== Lifecycle groups ==========

TERMINAL_STATUSES = [IssueStatus.VERIFIED, IssueStatus.CLOSED]

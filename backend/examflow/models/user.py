"""
ExamFlow - User Models
SQLAlchemy models for setters and takers
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from examflow.core.database import Base, utcnow


class UserRole(str, Enum):
    """User roles for RBAC."""
    SETTER = "SETTER"
    TAKER = "TAKER"


class User(Base):
    """An account that either authors exams (setter) or takes them (taker)."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(String(20), default=UserRole.TAKER)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow
    )

    @property
    def is_setter(self) -> bool:
        return self.role == UserRole.SETTER

    @property
    def is_taker(self) -> bool:
        return self.role == UserRole.TAKER

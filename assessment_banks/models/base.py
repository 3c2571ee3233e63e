"""
Declarative base, shared column types and the timestamp mixin.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Enum, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# SQLite only autoincrements INTEGER PRIMARY KEY
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowState(str, enum.Enum):
    """Lifecycle states shared by banks, questions and alignments."""
    ACTIVE = "active"
    INDEPENDENTLY_EDITED = "independently_edited"
    DELETED = "deleted"


class TimestampMixin:
    """Mixin for automatic timestamp management."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


WorkflowStateType = Enum(
    WorkflowState,
    name="workflow_state",
    native_enum=False,
    length=32,
    values_callable=lambda states: [s.value for s in states],
)

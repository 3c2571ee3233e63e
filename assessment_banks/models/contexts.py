"""
Accounts, courses, groups and users: the contexts that own question banks.
"""
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntId, TimestampMixin


@dataclass(frozen=True)
class AccountRef:
    id: int
    kind = "Account"


@dataclass(frozen=True)
class CourseRef:
    id: int
    kind = "Course"


ContextRef = Union[AccountRef, CourseRef]


def context_code(ref: ContextRef) -> str:
    """``course_12`` / ``account_3``."""
    return f"{ref.kind.lower()}_{ref.id}"


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    root_account_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("accounts.id"), nullable=True)

    root_account: Mapped[Optional["Account"]] = relationship(remote_side="Account.id")

    @property
    def ref(self) -> AccountRef:
        return AccountRef(self.id)

    @property
    def short_name(self) -> str:
        return self.name

    @property
    def resolved_root_account_id(self) -> int:
        return self.root_account_id or self.id


class Wiki(Base, TimestampMixin):
    __tablename__ = "wikis"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    title: Mapped[str] = mapped_column(String(255))


class Course(Base, TimestampMixin):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    course_code: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("accounts.id"))
    root_account_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("accounts.id"), nullable=True)
    usage_rights_required: Mapped[bool] = mapped_column(Boolean, default=False)
    wiki_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("wikis.id"), nullable=True)

    account: Mapped[Account] = relationship(foreign_keys=[account_id])
    wiki: Mapped[Optional[Wiki]] = relationship()

    @property
    def ref(self) -> CourseRef:
        return CourseRef(self.id)

    @property
    def short_name(self) -> str:
        return self.course_code or self.name

    @property
    def resolved_root_account_id(self) -> Optional[int]:
        if self.root_account_id:
            return self.root_account_id
        return self.account.resolved_root_account_id if self.account else None


class Group(Base, TimestampMixin):
    """A student group; its tool context is the account or course it lives in."""

    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint("(account_id IS NULL) <> (course_id IS NULL)", name="ck_groups_one_context"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    account_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("accounts.id"), nullable=True)
    course_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("courses.id"), nullable=True)

    account: Mapped[Optional[Account]] = relationship()
    course: Mapped[Optional[Course]] = relationship()

    @property
    def context(self) -> Union[Account, Course]:
        return self.course if self.course is not None else self.account


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    prefers_high_contrast: Mapped[bool] = mapped_column(Boolean, default=False)


class ContextPermission(Base):
    """One capability held by a user on an account or a course."""

    __tablename__ = "context_permissions"
    __table_args__ = (
        CheckConstraint("(account_id IS NULL) <> (course_id IS NULL)", name="ck_context_permissions_one_context"),
        Index("ix_context_permissions_user", "user_id", "account_id", "course_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"))
    account_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("accounts.id"), nullable=True)
    course_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("courses.id"), nullable=True)
    capability: Mapped[str] = mapped_column(String(64))

"""ORM models for users, the question catalog, day records and badges."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dailyten.db.base import Base


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A participant, keyed by their messaging-platform id."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("current_streak >= 0", name="ck_users_current_streak"),
        CheckConstraint("best_streak >= 0", name="ck_users_best_streak"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    missed_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Set when the transport reports the recipient blocked or deactivated.
    is_blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    blocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    progress: Mapped[list[DailyProgress]] = relationship("DailyProgress", back_populates="user")
    badges: Mapped[list[UserBadge]] = relationship("UserBadge", back_populates="user")


# ---------------------------------------------------------------------------
# Question catalog
# ---------------------------------------------------------------------------


class Question(Base):
    """A daily prompt."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)


# ---------------------------------------------------------------------------
# Day records
# ---------------------------------------------------------------------------


class DailyProgress(Base):
    """One user's record for one calendar date."""

    __tablename__ = "daily_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),
        CheckConstraint("answers_count >= 0", name="ck_daily_progress_answers"),
        CheckConstraint(
            "question_changes_count BETWEEN 0 AND 3", name="ck_daily_progress_changes"
        ),
        CheckConstraint(
            "NOT is_completed OR answers_count >= 10", name="ck_daily_progress_completed_threshold"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day: Mapped[date] = mapped_column("date", Date, nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(Integer, ForeignKey("questions.id"), nullable=False)
    answers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    question_changes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Set by day-closing; a closed record is final.
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    user: Mapped[User] = relationship("User", back_populates="progress")
    question: Mapped[Question] = relationship("Question", lazy="joined", innerjoin=True)


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class Badge(Base):
    """Streak badge catalog entry."""

    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    emoji: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    requirement: Mapped[int] = mapped_column(Integer, nullable=False)


class UserBadge(Base):
    """A badge earned by a user. At most one row per (user, badge), ever."""

    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id: Mapped[int] = mapped_column(Integer, ForeignKey("badges.id"), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="badges")
    badge: Mapped[Badge] = relationship("Badge", lazy="joined")

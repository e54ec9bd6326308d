"""Baseline schema: users, questions, daily progress and streak badges.

Revision ID: 001_baseline
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa  # noqa: F401
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id                  SERIAL PRIMARY KEY,
            telegram_id         BIGINT NOT NULL UNIQUE,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT now(),
            completed_days      INT NOT NULL DEFAULT 0,
            missed_days         INT NOT NULL DEFAULT 0,
            current_streak      INT NOT NULL DEFAULT 0,
            best_streak         INT NOT NULL DEFAULT 0,
            last_completed_date DATE,
            is_blocked          BOOLEAN NOT NULL DEFAULT FALSE,
            blocked_at          TIMESTAMPTZ,
            CONSTRAINT ck_users_current_streak CHECK (current_streak >= 0),
            CONSTRAINT ck_users_best_streak CHECK (best_streak >= 0)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS questions (
            id   SERIAL PRIMARY KEY,
            text TEXT NOT NULL
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS daily_progress (
            id                     SERIAL PRIMARY KEY,
            user_id                INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            date                   DATE NOT NULL,
            question_id            INT NOT NULL REFERENCES questions(id),
            answers_count          INT NOT NULL DEFAULT 0,
            is_completed           BOOLEAN NOT NULL DEFAULT FALSE,
            question_changes_count INT NOT NULL DEFAULT 0,
            completed_at           TIMESTAMPTZ,
            is_closed              BOOLEAN NOT NULL DEFAULT FALSE,
            CONSTRAINT uq_daily_progress_user_date UNIQUE (user_id, date),
            CONSTRAINT ck_daily_progress_answers CHECK (answers_count >= 0),
            CONSTRAINT ck_daily_progress_changes CHECK (question_changes_count BETWEEN 0 AND 3),
            CONSTRAINT ck_daily_progress_completed_threshold CHECK (NOT is_completed OR answers_count >= 10)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_daily_progress_date ON daily_progress (date)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id          SERIAL PRIMARY KEY,
            name        VARCHAR(64) NOT NULL UNIQUE,
            emoji       VARCHAR(16) NOT NULL,
            description TEXT NOT NULL,
            requirement INT NOT NULL
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id        SERIAL PRIMARY KEY,
            user_id   INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id  INT NOT NULL REFERENCES badges(id),
            earned_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_user_badges_user_badge UNIQUE (user_id, badge_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS badges CASCADE")
    op.execute("DROP TABLE IF EXISTS daily_progress CASCADE")
    op.execute("DROP TABLE IF EXISTS questions CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")

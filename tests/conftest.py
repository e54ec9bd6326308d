"""Shared test fixtures.

Tests run against a throwaway aiosqlite database built from the ORM
metadata, so no external services are needed.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from dailyten.clock import utcnow
from dailyten.db.base import Base
from dailyten.db.models import Badge, DailyProgress, Question, User, UserBadge
from dailyten.progress.seed import seed_badges, seed_questions

DAY = date(2026, 3, 10)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed sqlite engine with real BEGIN/SAVEPOINT semantics."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, _connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session, empty schema."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """Session with badges and the starter question catalog loaded."""
    await seed_badges(db_session)
    await seed_questions(db_session)
    return db_session


@pytest.fixture
def messenger() -> AsyncMock:
    """Messenger double recording every send."""
    mock = AsyncMock()
    mock.send = AsyncMock(return_value=None)
    return mock


async def make_user(db: AsyncSession, telegram_id: int, **fields) -> User:
    user = User(telegram_id=telegram_id, created_at=utcnow(), **fields)
    db.add(user)
    await db.commit()
    return user


async def make_record(
    db: AsyncSession,
    user: User,
    day: date = DAY,
    question: Question | None = None,
    **fields,
) -> DailyProgress:
    if question is None:
        question = (await db.execute(select(Question).order_by(Question.id).limit(1))).scalar_one()
    record = DailyProgress(user_id=user.id, day=day, question_id=question.id, question=question, **fields)
    db.add(record)
    await db.commit()
    return record


async def give_badge(db: AsyncSession, user: User, name: str) -> None:
    badge = (await db.execute(select(Badge).where(Badge.name == name))).scalar_one()
    db.add(UserBadge(user_id=user.id, badge_id=badge.id, earned_at=utcnow()))
    await db.commit()

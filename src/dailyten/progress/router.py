"""Read-only progress API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dailyten.clock import today
from dailyten.database import get_session
from dailyten.progress.badge_service import list_badges
from dailyten.progress.catalog import question_stats
from dailyten.progress.schemas import (
    AllBadgesResponse,
    BadgeResponse,
    QuestionStatsEntry,
    QuestionStatsResponse,
    SystemStatsResponse,
    UserStatsResponse,
)
from dailyten.progress.stats_service import get_system_stats, get_user_stats

router = APIRouter(prefix="/api/v1", tags=["Progress"])


@router.get("/badges", response_model=AllBadgesResponse)
async def get_badges(db: AsyncSession = Depends(get_session)):
    """Get all badge definitions."""
    badges = await list_badges(db)
    return AllBadgesResponse(
        badges=[
            BadgeResponse(name=b.name, emoji=b.emoji, description=b.description, requirement=b.requirement)
            for b in badges
        ]
    )


@router.get("/stats/overview", response_model=SystemStatsResponse)
async def get_overview(db: AsyncSession = Depends(get_session)):
    """Population-wide counters for today."""
    return SystemStatsResponse(**await get_system_stats(db, today()))


@router.get("/stats/questions", response_model=QuestionStatsResponse)
async def get_question_stats(db: AsyncSession = Depends(get_session)):
    """Assignment and completion counts per question."""
    stats = await question_stats(db)
    return QuestionStatsResponse(questions=[QuestionStatsEntry(**s) for s in stats])


@router.get("/users/{telegram_id}/stats", response_model=UserStatsResponse)
async def get_user(telegram_id: int, db: AsyncSession = Depends(get_session)):
    """Streak, badge and today's progress for one user."""
    return UserStatsResponse(**await get_user_stats(db, telegram_id, today()))

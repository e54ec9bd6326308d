"""Pydantic response models for the read-only progress endpoints."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel


# --- Badge ---


class BadgeResponse(BaseModel):
    name: str
    emoji: str
    description: str
    requirement: int


class EarnedBadgeResponse(BadgeResponse):
    earned_at: dt.datetime


class NextBadgeResponse(BaseModel):
    name: str
    requirement: int
    days_left: int


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


# --- User ---


class TodayResponse(BaseModel):
    date: dt.date
    question: str
    answers_count: int
    is_completed: bool
    question_changes_count: int


class UserStatsResponse(BaseModel):
    telegram_id: int
    created_at: dt.datetime
    completed_days: int
    missed_days: int
    current_streak: int
    effective_streak: int
    best_streak: int
    active_days: int = 0
    total_answers: int = 0
    last_completed_date: dt.date | None = None
    is_blocked: bool = False
    badges: list[EarnedBadgeResponse] = []
    next_badge: NextBadgeResponse | None = None
    today: TodayResponse | None = None


# --- Overview ---


class SystemStatsResponse(BaseModel):
    date: dt.date
    total_users: int
    blocked_users: int
    active_today: int
    completed_today: int
    completion_rate_today: float
    total_questions: int
    best_streak_overall: int


class QuestionStatsEntry(BaseModel):
    question_id: int
    text: str
    times_assigned: int
    times_completed: int
    completion_rate: float


class QuestionStatsResponse(BaseModel):
    questions: list[QuestionStatsEntry]

"""Seed data: streak badges and the starter question catalog."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dailyten.db.models import Badge, Question

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    {"name": "Beginner", "emoji": "\U0001F525", "description": "3 days in a row", "requirement": 3},
    {"name": "Enthusiast", "emoji": "\U0001F31F", "description": "7 days in a row", "requirement": 7},
    {"name": "Master", "emoji": "\U0001F48E", "description": "30 days in a row", "requirement": 30},
    {"name": "Legend", "emoji": "\U0001F451", "description": "100 days in a row", "requirement": 100},
]

QUESTION_SEED_DATA: list[str] = [
    "How could you use an ordinary paperclip?",
    "What would you name a cafe for cats and their owners?",
    "How could a city make its streets quieter?",
    "What could you build from an empty cardboard box?",
    "How could you make waiting in line more fun?",
    "What new holidays should the world celebrate?",
    "How could you explain the internet to someone from 1850?",
    "What could replace keys for opening doors?",
    "How could you reuse an old umbrella?",
    "What would a school for robots teach?",
    "How could you make a rainy weekend memorable?",
    "What are new uses for a brick?",
    "How could a library attract more teenagers?",
    "What gadgets would help you wake up on time?",
    "What would you sell in a shop on the Moon?",
    "How could you thank a neighbour without spending money?",
    "What could make grocery shopping faster?",
    "How could you turn a daily commute into a game?",
    "What would change if people could not lie?",
    "How could you reuse last year's calendar?",
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert missing badge definitions. Returns number of badges added."""
    existing = set((await db.execute(select(Badge.name))).scalars())
    added = 0
    for badge_data in BADGE_SEED_DATA:
        if badge_data["name"] in existing:
            continue
        db.add(Badge(**badge_data))
        added += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", added)
    return added


async def seed_questions(db: AsyncSession, questions: list[str] | None = None) -> int:
    """Load the starter catalog into an empty questions table."""
    count = (await db.execute(select(func.count(Question.id)))).scalar_one()
    if count:
        return 0

    questions = QUESTION_SEED_DATA if questions is None else questions
    db.add_all(Question(text=text) for text in questions)
    await db.commit()
    logger.info("Loaded %d questions", len(questions))
    return len(questions)

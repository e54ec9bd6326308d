"""
Message templates for the daily loop.

Each template function returns (text, controls). Wording is deliberately
plain; only the numbers carry meaning.
"""

from __future__ import annotations

from dailyten import COMPLETION_THRESHOLD, MAX_QUESTION_CHANGES
from dailyten.db.models import Badge, DailyProgress
from dailyten.messaging.transport import CHANGE_QUESTION_ACTION, Control

FILLED = "✅"
EMPTY = "⬜"


def progress_bar(current: int, total: int = COMPLETION_THRESHOLD) -> str:
    filled = min(max(current, 0), total)
    return FILLED * filled + EMPTY * (total - filled)


def days_word(count: int) -> str:
    return "day" if count == 1 else "days"


def question_controls(changes_count: int, is_completed: bool = False) -> list[Control]:
    """The change-question button, hidden once finished or out of changes."""
    if is_completed or changes_count >= MAX_QUESTION_CHANGES:
        return []
    remaining = MAX_QUESTION_CHANGES - changes_count
    return [Control(f"\U0001F504 Another question ({remaining} left)", CHANGE_QUESTION_ACTION)]


def daily_question(record: DailyProgress) -> tuple[str, list[Control]]:
    text = (
        f"Question of the day: {record.question.text}\n\n"
        f"{progress_bar(record.answers_count)}\n\n"
        f"Send {COMPLETION_THRESHOLD} answers before the end of the day. "
        "One per message or as a list."
    )
    return text, question_controls(record.question_changes_count, record.is_completed)


def progress_update(record: DailyProgress) -> tuple[str, list[Control]]:
    if record.is_completed:
        return completion(record)
    remaining = COMPLETION_THRESHOLD - record.answers_count
    text = (
        f"{progress_bar(record.answers_count)}\n\n"
        f"Answers: {record.answers_count}/{COMPLETION_THRESHOLD}. {remaining} to go."
    )
    return text, question_controls(record.question_changes_count)


def completion(record: DailyProgress) -> tuple[str, list[Control]]:
    text = (
        f"{progress_bar(record.answers_count)}\n\n"
        f"{FILLED} Done for today! A new question arrives tomorrow."
    )
    return text, []


def reminder(record: DailyProgress | None, final: bool = False) -> tuple[str, list[Control]]:
    answers = record.answers_count if record else 0
    header = "\U0001F514 Last reminder!" if final else "⏰ Reminder!"
    if answers:
        body = f"You have {answers}/{COMPLETION_THRESHOLD} answers. {COMPLETION_THRESHOLD - answers} to go."
    else:
        body = f"Don't forget today's question: send {COMPLETION_THRESHOLD} answers."
    if final:
        body += "\nLess than two hours left to keep your streak."
    controls = question_controls(record.question_changes_count) if record else []
    return f"{header}\n\n{body}", controls


def badge_earned(badge: Badge) -> tuple[str, list[Control]]:
    return f"{badge.emoji} New badge: {badge.name} ({badge.description})", []


# (upper bound of current streak, line); the last entry has no bound.
STREAK_TIERS: list[tuple[int | None, str]] = [
    (1, "\U0001F4AA Start a new streak! Answer today's question."),
    (7, "\U0001F331 Great start. Keep it going."),
    (30, "⚡ You're on the right track. Impressive streak."),
    (100, "\U0001F31F Incredible! You're a true master."),
    (None, "\U0001F451 Legendary streak! You inspire others."),
]


def streak_motivation(streak: int) -> str:
    for bound, line in STREAK_TIERS:
        if bound is None or streak < bound:
            return line
    return STREAK_TIERS[-1][1]


def weekly_digest(stats: dict) -> tuple[str, list[Control]]:
    current = stats["effective_streak"]
    best = stats["best_streak"]
    lines = [
        "\U0001F4CA Your week",
        "",
        f"\U0001F525 Current streak: {current} {days_word(current)}",
    ]
    if best:
        lines.append(f"\U0001F3C6 Best streak: {best} {days_word(best)}")
    lines += [
        f"{FILLED} Days completed: {stats['completed_days']}",
        f"\U0001F4C5 Active days: {stats['active_days']}",
        f"\U0001F4A1 Total answers: {stats['total_answers']}",
    ]
    if stats["badges"]:
        lines.append("")
        lines.extend(f"{b['emoji']} {b['name']}" for b in stats["badges"])
    upcoming = stats.get("next_badge")
    if upcoming:
        lines.append("")
        lines.append(f"{upcoming['days_left']} {days_word(upcoming['days_left'])} until {upcoming['name']}.")
    lines.append("")
    lines.append(streak_motivation(current))
    return "\n".join(lines), []

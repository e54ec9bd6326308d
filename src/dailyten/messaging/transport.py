"""Outbound messaging transport.

The core only needs `send`; a recipient that blocked or deactivated the bot
is reported as RecipientUnreachable so batch jobs can mark it and move on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest, Forbidden

from dailyten.errors import RecipientUnreachable

CHANGE_QUESTION_ACTION = "change_question"

_UNREACHABLE_BAD_REQUESTS = ("chat not found", "user not found")


@dataclass(frozen=True)
class Control:
    """An inline button attached to a message."""

    label: str
    action: str


class Messenger(Protocol):
    async def send(self, user_id: int, text: str, controls: list[Control] | None = None) -> None: ...


def build_keyboard(controls: list[Control] | None) -> InlineKeyboardMarkup | None:
    """One button per row, callback data carries the action name."""
    if not controls:
        return None
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(c.label, callback_data=c.action)] for c in controls]
    )


class TelegramMessenger:
    """Messenger backed by a python-telegram-bot Bot."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    @classmethod
    def from_token(cls, token: str) -> TelegramMessenger:
        return cls(Bot(token=token))

    async def start(self) -> None:
        await self._bot.initialize()

    async def close(self) -> None:
        await self._bot.shutdown()

    async def send(self, user_id: int, text: str, controls: list[Control] | None = None) -> None:
        try:
            await self._bot.send_message(
                chat_id=user_id,
                text=text,
                reply_markup=build_keyboard(controls),
            )
        except Forbidden as e:
            raise RecipientUnreachable(user_id, e.message) from e
        except BadRequest as e:
            if any(marker in e.message.lower() for marker in _UNREACHABLE_BAD_REQUESTS):
                raise RecipientUnreachable(user_id, e.message) from e
            raise

"""Error taxonomy for the progress core.

Rejected operations subclass ValueError so callers can treat them the same
way they treat any other invalid request.
"""

from __future__ import annotations


class DailyTenError(Exception):
    """Base class for all errors raised by the core."""


class ProgressError(DailyTenError, ValueError):
    """An operation on a user's day record was rejected."""


class NotFound(ProgressError):
    """Referenced user, question or record does not exist."""


class LimitExceeded(ProgressError):
    """The question-change quota for the day is exhausted."""


class AlreadyCompleted(ProgressError):
    """Mutation attempted on a completed or closed day record."""


class QuestionChanged(ProgressError):
    """Answers were submitted for a question that has since been replaced."""


class RecipientUnreachable(DailyTenError):
    """The messaging transport cannot deliver to this user any more."""

    def __init__(self, user_id: int, reason: str = "") -> None:
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Recipient {user_id} unreachable: {reason}" if reason else f"Recipient {user_id} unreachable")


class StoreUnavailable(DailyTenError):
    """The persistence layer failed to serve a request."""

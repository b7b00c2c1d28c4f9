from __future__ import annotations

from typing import Optional


class DebateError(Exception):
    """Base for every recoverable, user-facing failure of a debate operation."""

    default_message = "Something went wrong with that request."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidCommandError(DebateError):
    default_message = "That command is missing or has invalid options."


class SelfChallengeError(DebateError):
    default_message = "You cannot challenge yourself!"


class InvalidOpponentError(DebateError):
    default_message = "You cannot challenge bots!"


class ConcurrencyLimitError(DebateError):
    def __init__(self, user_id: int, limit: int):
        self.user_id = user_id
        self.limit = limit
        super().__init__(f"User {user_id} already has {limit} active debates.")


class NotFoundError(DebateError):
    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind.capitalize()} {item_id} was not found.")


class NotAuthorizedError(DebateError):
    default_message = "You are not allowed to do that."


class InvalidStateError(DebateError):
    default_message = "This debate is not active!"


class InvalidWinnerError(DebateError):
    default_message = "Winner must be a participant in the debate!"

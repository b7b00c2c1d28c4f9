from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .debate_errors import InvalidCommandError
from .debate_models import ContextRef
from .debate_shared import DEFAULT_DURATION, LEADERBOARD_SIZE, MAX_DURATION, MAX_TOPIC_LENGTH, MIN_DURATION


def _require_id(value, label: str) -> None:
    if value is None or value == "":
        raise InvalidCommandError(f"Missing {label}.")


@dataclass(frozen=True)
class IssueChallenge:
    challenger_id: int
    opponent_id: int
    topic: str
    duration_minutes: int = DEFAULT_DURATION
    opponent_is_bot: bool = False
    context: Optional[ContextRef] = None

    def __post_init__(self):
        _require_id(self.challenger_id, "challenger")
        _require_id(self.opponent_id, "opponent")
        topic = (self.topic or "").strip()
        if not topic:
            raise InvalidCommandError("A debate topic is required.")
        if len(topic) > MAX_TOPIC_LENGTH:
            raise InvalidCommandError(f"Debate topics are limited to {MAX_TOPIC_LENGTH} characters.")
        object.__setattr__(self, "topic", topic)
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise InvalidCommandError("Duration must be a whole number of minutes.")
        if not MIN_DURATION <= self.duration_minutes <= MAX_DURATION:
            raise InvalidCommandError(f"Duration must be between {MIN_DURATION} and {MAX_DURATION} minutes.")


@dataclass(frozen=True)
class RespondToChallenge:
    challenge_id: str
    responder_id: int
    accept: bool

    def __post_init__(self):
        _require_id(self.challenge_id, "challenge id")
        _require_id(self.responder_id, "responder")


@dataclass(frozen=True)
class QueryProfile:
    user_id: int

    def __post_init__(self):
        _require_id(self.user_id, "user")


@dataclass(frozen=True)
class QueryLeaderboard:
    limit: int = LEADERBOARD_SIZE

    def __post_init__(self):
        if self.limit < 1:
            raise InvalidCommandError("Leaderboard size must be at least 1.")


@dataclass(frozen=True)
class QueryActiveDebates:
    user_id: int

    def __post_init__(self):
        _require_id(self.user_id, "user")


@dataclass(frozen=True)
class ResolveDebate:
    debate_id: str
    requester_id: int
    winner_id: int

    def __post_init__(self):
        object.__setattr__(self, "debate_id", (self.debate_id or "").strip())
        _require_id(self.debate_id, "debate id")
        _require_id(self.requester_id, "requester")
        _require_id(self.winner_id, "winner")


Command = Union[
    IssueChallenge,
    RespondToChallenge,
    QueryProfile,
    QueryLeaderboard,
    QueryActiveDebates,
    ResolveDebate,
]

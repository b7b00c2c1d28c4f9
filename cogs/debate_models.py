from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Tuple

from .debate_shared import CHALLENGE_TIMEOUT, DEFAULT_RATING


class DebateStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ContextRef:
    guild_id: Optional[int] = None
    channel_id: Optional[int] = None


@dataclass
class UserProfile:
    user_id: int
    rating: int = DEFAULT_RATING
    wins: int = 0
    losses: int = 0
    active_debates: int = 0
    total_debates: int = 0

    @property
    def win_rate(self) -> Optional[int]:
        if self.total_debates <= 0:
            return None
        return int(math.floor(self.wins / self.total_debates * 100 + 0.5))


@dataclass
class Challenge:
    id: str
    challenger_id: int
    opponent_id: int
    topic: str
    duration_minutes: int
    created_at: datetime
    context: ContextRef = field(default_factory=ContextRef)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + CHALLENGE_TIMEOUT


@dataclass
class Debate:
    id: str
    participant_ids: Tuple[int, int]
    topic: str
    duration_minutes: int
    start_time: datetime
    status: DebateStatus = DebateStatus.ACTIVE
    context: ContextRef = field(default_factory=ContextRef)
    expired_at: Optional[datetime] = None

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def is_active(self) -> bool:
        return self.status is DebateStatus.ACTIVE

    def involves(self, user_id: int) -> bool:
        return user_id in self.participant_ids

    def opponent_of(self, user_id: int) -> int:
        first, second = self.participant_ids
        return second if user_id == first else first

    def remaining_minutes(self, now: datetime) -> int:
        seconds = (self.end_time - now).total_seconds()
        return max(0, int(math.floor(seconds / 60.0 + 0.5)))


@dataclass(frozen=True)
class ChallengeOutcome:
    challenge: Challenge
    accepted: bool
    debate: Optional[Debate] = None


@dataclass(frozen=True)
class RatingChange:
    debate: Debate
    winner_id: int
    loser_id: int
    winner_delta: int
    loser_delta: int
    new_winner_rating: int
    new_loser_rating: int

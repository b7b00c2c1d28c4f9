from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .debate_models import Challenge, Debate, DebateStatus, UserProfile
from .debate_shared import LEADERBOARD_SIZE, RATING_FLOOR


def short_id() -> str:
    return uuid.uuid4().hex[:8]


class UserRegistry:
    def __init__(self):
        self._profiles: Dict[int, UserProfile] = {}

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[UserProfile]:
        return iter(list(self._profiles.values()))

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._profiles

    def get(self, user_id: int) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    def get_or_create(self, user_id: int) -> UserProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            profile = UserProfile(user_id=user_id)
            self._profiles[user_id] = profile
        return profile

    def increment_active(self, user_id: int) -> None:
        self.get_or_create(user_id).active_debates += 1

    def decrement_active(self, user_id: int) -> None:
        profile = self.get_or_create(user_id)
        profile.active_debates = max(0, profile.active_debates - 1)

    def apply_win(self, user_id: int, delta: int) -> UserProfile:
        profile = self.get_or_create(user_id)
        profile.rating += delta
        profile.wins += 1
        profile.total_debates += 1
        profile.active_debates -= 1
        return profile

    def apply_loss(self, user_id: int, delta: int) -> UserProfile:
        profile = self.get_or_create(user_id)
        profile.rating = max(RATING_FLOOR, profile.rating - delta)
        profile.losses += 1
        profile.total_debates += 1
        profile.active_debates -= 1
        return profile

    def leaderboard(self, limit: int = LEADERBOARD_SIZE) -> List[Tuple[int, UserProfile]]:
        # sorted() is stable, so equal ratings keep registration order
        ranked = sorted(self._profiles.items(), key=lambda item: item[1].rating, reverse=True)
        return ranked[:limit]


class ChallengeStore:
    def __init__(self, id_factory: Callable[[], str] = short_id):
        self._challenges: Dict[str, Challenge] = {}
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._challenges)

    def __contains__(self, challenge_id: str) -> bool:
        return challenge_id in self._challenges

    def __iter__(self) -> Iterator[Challenge]:
        return iter(list(self._challenges.values()))

    def new_id(self) -> str:
        challenge_id = self._id_factory()
        while challenge_id in self._challenges:
            challenge_id = self._id_factory()
        return challenge_id

    def add(self, challenge: Challenge) -> Challenge:
        self._challenges[challenge.id] = challenge
        return challenge

    def get(self, challenge_id: str) -> Optional[Challenge]:
        return self._challenges.get(challenge_id)

    def remove(self, challenge_id: str) -> Optional[Challenge]:
        return self._challenges.pop(challenge_id, None)


class DebateStore:
    def __init__(self, id_factory: Callable[[], str] = short_id):
        self._debates: Dict[str, Debate] = {}
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._debates)

    def __contains__(self, debate_id: str) -> bool:
        return debate_id in self._debates

    def new_id(self) -> str:
        debate_id = self._id_factory()
        while debate_id in self._debates:
            debate_id = self._id_factory()
        return debate_id

    def add(self, debate: Debate) -> Debate:
        self._debates[debate.id] = debate
        return debate

    def get(self, debate_id: str) -> Optional[Debate]:
        return self._debates.get(debate_id)

    def remove(self, debate_id: str) -> Optional[Debate]:
        return self._debates.pop(debate_id, None)

    def active(self, user_id: Optional[int] = None) -> List[Debate]:
        return [
            debate
            for debate in self._debates.values()
            if debate.is_active and (user_id is None or debate.involves(user_id))
        ]

    def count(self, status: DebateStatus) -> int:
        return sum(1 for debate in self._debates.values() if debate.status is status)

    def purge_expired(self, before: datetime) -> List[str]:
        purged = []
        for debate_id, debate in list(self._debates.items()):
            if debate.status is not DebateStatus.EXPIRED:
                continue
            if debate.expired_at is not None and debate.expired_at > before:
                continue
            self._debates.pop(debate_id)
            purged.append(debate_id)
        return purged

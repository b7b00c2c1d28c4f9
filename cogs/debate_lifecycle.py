from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .debate_commands import (
    Command,
    IssueChallenge,
    QueryActiveDebates,
    QueryLeaderboard,
    QueryProfile,
    ResolveDebate,
    RespondToChallenge,
)
from .debate_errors import (
    ConcurrencyLimitError,
    InvalidCommandError,
    InvalidOpponentError,
    InvalidStateError,
    InvalidWinnerError,
    NotAuthorizedError,
    NotFoundError,
    SelfChallengeError,
)
from .debate_models import (
    Challenge,
    ChallengeOutcome,
    ContextRef,
    Debate,
    DebateStatus,
    RatingChange,
    UserProfile,
)
from .debate_rating import compute_delta
from .debate_scheduler import ExpiryScheduler, ScheduledAction
from .debate_shared import (
    CHALLENGE_TIMEOUT,
    DEFAULT_DURATION,
    EXPIRED_DEBATE_RETENTION,
    LEADERBOARD_SIZE,
    MAX_ACTIVE_DEBATES,
    logger,
)
from .debate_storage import ChallengeStore, DebateStore, UserRegistry


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DebateController:
    """Owns the user registry and both stores and drives every state transition.

    Profile counters only ever move together with debate creation, resolution
    and expiry, which all happen here.
    """

    def __init__(
        self,
        users: Optional[UserRegistry] = None,
        challenges: Optional[ChallengeStore] = None,
        debates: Optional[DebateStore] = None,
        scheduler: Optional[ExpiryScheduler] = None,
        clock: Callable[[], datetime] = utcnow,
        max_active: int = MAX_ACTIVE_DEBATES,
        retention: Optional[timedelta] = EXPIRED_DEBATE_RETENTION,
    ):
        self.users = users if users is not None else UserRegistry()
        self.challenges = challenges if challenges is not None else ChallengeStore()
        self.debates = debates if debates is not None else DebateStore()
        self.scheduler = scheduler if scheduler is not None else ExpiryScheduler()
        self.clock = clock
        self.max_active = max_active
        self.retention = retention
        self._challenge_timers: Dict[str, ScheduledAction] = {}
        self._debate_timers: Dict[str, ScheduledAction] = {}

    def now(self) -> datetime:
        return self.clock()

    def _check_capacity(self, *user_ids: int) -> None:
        for uid in user_ids:
            if self.users.get_or_create(uid).active_debates >= self.max_active:
                raise ConcurrencyLimitError(uid, self.max_active)

    def issue_challenge(
        self,
        challenger_id: int,
        opponent_id: int,
        topic: str,
        duration_minutes: int = DEFAULT_DURATION,
        context: Optional[ContextRef] = None,
        opponent_is_bot: bool = False,
    ) -> Challenge:
        if challenger_id == opponent_id:
            raise SelfChallengeError()
        if opponent_is_bot:
            raise InvalidOpponentError()
        self._check_capacity(challenger_id, opponent_id)
        now = self.now()
        challenge = Challenge(
            id=self.challenges.new_id(),
            challenger_id=challenger_id,
            opponent_id=opponent_id,
            topic=topic,
            duration_minutes=duration_minutes,
            created_at=now,
            context=context or ContextRef(),
        )
        self.challenges.add(challenge)
        self._challenge_timers[challenge.id] = self.scheduler.schedule(
            challenge.expires_at,
            lambda: self._expire_challenge(challenge.id),
            name=f"challenge-expiry:{challenge.id}",
        )
        logger.info("Challenge %s issued by %s to %s (%s min)", challenge.id, challenger_id, opponent_id, duration_minutes)
        return challenge

    def _expire_challenge(self, challenge_id: str) -> None:
        self._challenge_timers.pop(challenge_id, None)
        if self.challenges.remove(challenge_id) is not None:
            logger.info("Challenge %s expired without a response", challenge_id)

    def respond_to_challenge(self, challenge_id: str, responder_id: int, accept: bool) -> ChallengeOutcome:
        challenge = self.challenges.get(challenge_id)
        if challenge is None:
            raise NotFoundError("challenge", challenge_id)
        if responder_id != challenge.opponent_id:
            raise NotAuthorizedError("Only the challenged user can respond to this challenge!")
        if not accept:
            self._drop_challenge(challenge_id)
            logger.info("Challenge %s declined by %s", challenge_id, responder_id)
            return ChallengeOutcome(challenge=challenge, accepted=False)
        self._check_capacity(challenge.challenger_id, challenge.opponent_id)
        debate = Debate(
            id=self.debates.new_id(),
            participant_ids=(challenge.challenger_id, challenge.opponent_id),
            topic=challenge.topic,
            duration_minutes=challenge.duration_minutes,
            start_time=self.now(),
            context=challenge.context,
        )
        self.debates.add(debate)
        for uid in debate.participant_ids:
            self.users.increment_active(uid)
        self._drop_challenge(challenge_id)
        self._debate_timers[debate.id] = self.scheduler.schedule(
            debate.end_time,
            lambda: self._expire_debate(debate.id),
            name=f"debate-expiry:{debate.id}",
        )
        logger.info("Challenge %s accepted, debate %s started", challenge_id, debate.id)
        return ChallengeOutcome(challenge=challenge, accepted=True, debate=debate)

    def _drop_challenge(self, challenge_id: str) -> None:
        self.challenges.remove(challenge_id)
        timer = self._challenge_timers.pop(challenge_id, None)
        if timer is not None:
            timer.cancel()

    def _expire_debate(self, debate_id: str) -> None:
        self._debate_timers.pop(debate_id, None)
        debate = self.debates.get(debate_id)
        if debate is None or not debate.is_active:
            return
        now = self.now()
        debate.status = DebateStatus.EXPIRED
        debate.expired_at = now
        for uid in debate.participant_ids:
            self.users.decrement_active(uid)
        logger.info("Debate %s expired without a winner", debate_id)
        if self.retention is not None:
            self.scheduler.schedule(now + self.retention, self.purge_expired, name=f"debate-purge:{debate_id}")

    def purge_expired(self) -> List[str]:
        if self.retention is None:
            return []
        cutoff = self.now() - self.retention
        purged = self.debates.purge_expired(cutoff)
        if purged:
            logger.info("Evicted %s expired debate(s)", len(purged))
        return purged

    def resolve(self, debate_id: str, requester_id: int, winner_id: int) -> RatingChange:
        debate = self.debates.get(debate_id)
        if debate is None:
            raise NotFoundError("debate", debate_id)
        if not debate.is_active:
            raise InvalidStateError()
        if not debate.involves(requester_id):
            raise NotAuthorizedError("You are not a participant in this debate!")
        if not debate.involves(winner_id):
            raise InvalidWinnerError()
        loser_id = debate.opponent_of(winner_id)
        winner = self.users.get_or_create(winner_id)
        loser = self.users.get_or_create(loser_id)
        delta = compute_delta(winner.rating, loser.rating)
        self.users.apply_win(winner_id, delta)
        self.users.apply_loss(loser_id, delta)
        debate.status = DebateStatus.COMPLETED
        self.debates.remove(debate_id)
        timer = self._debate_timers.pop(debate_id, None)
        if timer is not None:
            timer.cancel()
        logger.info("Debate %s resolved: %s beat %s (+%s)", debate_id, winner_id, loser_id, delta)
        return RatingChange(
            debate=debate,
            winner_id=winner_id,
            loser_id=loser_id,
            winner_delta=delta,
            loser_delta=delta,
            new_winner_rating=winner.rating,
            new_loser_rating=loser.rating,
        )

    def get_profile(self, user_id: int) -> UserProfile:
        return self.users.get_or_create(user_id)

    def list_active(self, user_id: int) -> List[Debate]:
        return self.debates.active(user_id)

    def list_leaderboard(self, limit: int = LEADERBOARD_SIZE) -> List[Tuple[int, UserProfile]]:
        return self.users.leaderboard(limit)

    def run_due(self, now: Optional[datetime] = None) -> int:
        return self.scheduler.run_due(now or self.now())

    def stats(self) -> Dict[str, Any]:
        return {
            "activeDebates": self.debates.count(DebateStatus.ACTIVE),
            "expiredDebates": self.debates.count(DebateStatus.EXPIRED),
            "pendingChallenges": len(self.challenges),
            "registeredUsers": len(self.users),
            "scheduledActions": len(self.scheduler),
        }

    def execute(self, command: Command) -> Any:
        if isinstance(command, IssueChallenge):
            return self.issue_challenge(
                command.challenger_id,
                command.opponent_id,
                command.topic,
                command.duration_minutes,
                context=command.context,
                opponent_is_bot=command.opponent_is_bot,
            )
        if isinstance(command, RespondToChallenge):
            return self.respond_to_challenge(command.challenge_id, command.responder_id, command.accept)
        if isinstance(command, ResolveDebate):
            return self.resolve(command.debate_id, command.requester_id, command.winner_id)
        if isinstance(command, QueryProfile):
            return self.get_profile(command.user_id)
        if isinstance(command, QueryLeaderboard):
            return self.list_leaderboard(command.limit)
        if isinstance(command, QueryActiveDebates):
            return self.list_active(command.user_id)
        raise InvalidCommandError(f"Unsupported command {type(command).__name__}.")

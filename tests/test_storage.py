from datetime import datetime, timedelta, timezone

from cogs.debate_models import Challenge, Debate, DebateStatus
from cogs.debate_storage import ChallengeStore, DebateStore, UserRegistry

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_debate(debate_id, participants=(1, 2), status=DebateStatus.ACTIVE, expired_at=None):
    return Debate(
        id=debate_id,
        participant_ids=participants,
        topic="Tabs or spaces",
        duration_minutes=10,
        start_time=T0,
        status=status,
        expired_at=expired_at,
    )


def make_challenge(challenge_id, challenger=1, opponent=2):
    return Challenge(
        id=challenge_id,
        challenger_id=challenger,
        opponent_id=opponent,
        topic="Pineapple on pizza",
        duration_minutes=15,
        created_at=T0,
    )


class TestUserRegistry:
    def test_get_or_create_uses_defaults_once(self):
        users = UserRegistry()
        first = users.get_or_create(7)
        first.rating = 1200
        assert users.get_or_create(7) is first
        assert users.get_or_create(7).rating == 1200
        assert len(users) == 1
        assert users.get(8) is None
        assert len(users) == 1

    def test_default_profile(self):
        profile = UserRegistry().get_or_create(1)
        assert (profile.rating, profile.wins, profile.losses) == (1000, 0, 0)
        assert (profile.active_debates, profile.total_debates) == (0, 0)
        assert profile.win_rate is None

    def test_apply_win_and_loss(self):
        users = UserRegistry()
        users.increment_active(1)
        users.increment_active(2)
        winner = users.apply_win(1, 16)
        loser = users.apply_loss(2, 16)
        assert (winner.rating, winner.wins, winner.total_debates, winner.active_debates) == (1016, 1, 1, 0)
        assert (loser.rating, loser.losses, loser.total_debates, loser.active_debates) == (984, 1, 1, 0)
        assert winner.win_rate == 100
        assert loser.win_rate == 0

    def test_loss_never_drops_below_floor(self):
        users = UserRegistry()
        users.get_or_create(2).rating = 105
        users.increment_active(2)
        assert users.apply_loss(2, 16).rating == 100

    def test_decrement_active_floors_at_zero(self):
        users = UserRegistry()
        users.decrement_active(3)
        assert users.get(3).active_debates == 0

    def test_leaderboard_is_stable_and_limited(self):
        users = UserRegistry()
        for uid in (5, 6, 7, 8):
            users.get_or_create(uid)
        users.get(7).rating = 1100
        rows = users.leaderboard(limit=3)
        assert [uid for uid, _ in rows] == [7, 5, 6]


class TestChallengeStore:
    def test_new_id_skips_collisions(self):
        ids = iter(["aaa", "aaa", "bbb"])
        store = ChallengeStore(id_factory=lambda: next(ids))
        first = store.new_id()
        store.add(make_challenge(first))
        assert store.new_id() == "bbb"

    def test_remove_is_idempotent(self):
        store = ChallengeStore()
        store.add(make_challenge("abc"))
        assert "abc" in store
        assert store.remove("abc").id == "abc"
        assert store.remove("abc") is None
        assert len(store) == 0


class TestDebateStore:
    def test_active_filters_by_user_and_status(self):
        store = DebateStore()
        store.add(make_debate("a", (1, 2)))
        store.add(make_debate("b", (3, 1), status=DebateStatus.EXPIRED, expired_at=T0))
        store.add(make_debate("c", (1, 4)))
        store.add(make_debate("d", (5, 6)))
        assert [d.id for d in store.active(1)] == ["a", "c"]
        assert [d.id for d in store.active()] == ["a", "c", "d"]
        assert store.count(DebateStatus.EXPIRED) == 1

    def test_purge_expired_respects_cutoff(self):
        store = DebateStore()
        store.add(make_debate("old", status=DebateStatus.EXPIRED, expired_at=T0))
        store.add(make_debate("new", status=DebateStatus.EXPIRED, expired_at=T0 + timedelta(minutes=30)))
        store.add(make_debate("live"))
        assert store.purge_expired(T0 + timedelta(minutes=10)) == ["old"]
        assert "new" in store
        assert "live" in store

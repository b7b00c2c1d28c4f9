import logging
from datetime import datetime, timedelta, timezone

from cogs.debate_scheduler import ExpiryScheduler

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_runs_only_due_actions_in_time_order():
    scheduler = ExpiryScheduler()
    fired = []
    scheduler.schedule(T0 + timedelta(minutes=10), lambda: fired.append("late"))
    scheduler.schedule(T0 + timedelta(minutes=5), lambda: fired.append("early"))
    scheduler.schedule(T0 + timedelta(minutes=5), lambda: fired.append("early-second"))

    assert scheduler.run_due(T0 + timedelta(minutes=4)) == 0
    assert scheduler.run_due(T0 + timedelta(minutes=5)) == 2
    assert fired == ["early", "early-second"]
    assert len(scheduler) == 1
    assert scheduler.next_fire_time() == T0 + timedelta(minutes=10)


def test_cancelled_actions_never_fire():
    scheduler = ExpiryScheduler()
    fired = []
    handle = scheduler.schedule(T0, lambda: fired.append("x"), name="x")
    handle.cancel()
    assert len(scheduler) == 0
    assert scheduler.next_fire_time() is None
    assert scheduler.run_due(T0 + timedelta(hours=1)) == 0
    assert fired == []
    assert not handle.pending


def test_actions_fire_once():
    scheduler = ExpiryScheduler()
    fired = []
    handle = scheduler.schedule(T0, lambda: fired.append(1))
    scheduler.run_due(T0)
    scheduler.run_due(T0 + timedelta(minutes=1))
    assert fired == [1]
    assert handle.fired


def test_failing_action_is_logged_and_others_still_run(caplog):
    scheduler = ExpiryScheduler()
    fired = []

    def boom():
        raise RuntimeError("store exploded")

    scheduler.schedule(T0, boom, name="boom")
    scheduler.schedule(T0, lambda: fired.append("after"))
    with caplog.at_level(logging.ERROR, logger="debatebot"):
        assert scheduler.run_due(T0) == 2
    assert fired == ["after"]
    assert "boom" in caplog.text


def test_clear_cancels_everything():
    scheduler = ExpiryScheduler()
    handle = scheduler.schedule(T0, lambda: None)
    scheduler.clear()
    assert handle.cancelled
    assert len(scheduler) == 0

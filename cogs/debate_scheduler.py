from __future__ import annotations

import heapq
import itertools
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .debate_shared import logger


class ScheduledAction:
    def __init__(self, fire_at: datetime, action: Callable[[], None], name: Optional[str] = None):
        self.fire_at = fire_at
        self.action = action
        self.name = name or getattr(action, "__name__", "action")
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self) -> str:
        return f"<ScheduledAction {self.name} at {self.fire_at.isoformat()}>"


class ExpiryScheduler:
    """Holds deferred ``(fire_at, action)`` pairs until a driver calls :meth:`run_due`.

    Actions must check current state before acting; one that fires after its
    target was already resolved is expected to do nothing.
    """

    def __init__(self):
        self._heap: List[Tuple[datetime, int, ScheduledAction]] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return sum(1 for _, _, entry in self._heap if entry.pending)

    def schedule(self, fire_at: datetime, action: Callable[[], None], name: Optional[str] = None) -> ScheduledAction:
        entry = ScheduledAction(fire_at, action, name)
        heapq.heappush(self._heap, (fire_at, next(self._counter), entry))
        return entry

    def next_fire_time(self) -> Optional[datetime]:
        while self._heap and not self._heap[0][2].pending:
            heapq.heappop(self._heap)
        if not self._heap:
            return None
        return self._heap[0][0]

    def run_due(self, now: datetime) -> int:
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, entry = heapq.heappop(self._heap)
            if not entry.pending:
                continue
            entry.fired = True
            try:
                entry.action()
            except Exception:
                logger.exception("Scheduled action %s failed", entry.name)
            fired += 1
        return fired

    def clear(self) -> None:
        for _, _, entry in self._heap:
            entry.cancel()
        self._heap.clear()

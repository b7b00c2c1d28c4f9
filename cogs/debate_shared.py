from __future__ import annotations

import logging
import os
from datetime import timedelta

DEFAULT_RATING = 1000
RATING_FLOOR = 100
K_FACTOR = 32

MAX_ACTIVE_DEBATES = 3
MIN_DURATION = 5
MAX_DURATION = 60
DEFAULT_DURATION = 30
MAX_TOPIC_LENGTH = 1024
LEADERBOARD_SIZE = 10

CHALLENGE_TIMEOUT = timedelta(minutes=5)
EXPIRED_DEBATE_RETENTION = timedelta(hours=1)

STATUS_HOST = os.getenv("STATUS_HOST", "0.0.0.0")
STATUS_PORT = int(os.getenv("PORT", "3000"))
EXPIRY_POLL_SECONDS = float(os.getenv("EXPIRY_POLL_SECONDS", "5"))

ACCEPT_PREFIX = "debate_accept:"
DECLINE_PREFIX = "debate_decline:"

logger = logging.getLogger("debatebot")


def format_delta(delta: int) -> str:
    return f"{delta:+d}"

from __future__ import annotations

import math

from .debate_shared import K_FACTOR


def expected_score(winner_rating: float, loser_rating: float) -> float:
    return 1.0 / (1.0 + 10 ** ((loser_rating - winner_rating) / 400.0))


def compute_delta(winner_rating: int, loser_rating: int) -> int:
    """Rating points the winner gains (and the loser gives up) for one result.

    Beating a higher-rated opponent pays more than beating a lower-rated one.
    """
    expected = expected_score(winner_rating, loser_rating)
    # half-up, the raw value is never negative
    return int(math.floor(K_FACTOR * (1.0 - expected) + 0.5))

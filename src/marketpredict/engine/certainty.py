"""Self-calibrating certainty from a company's own forecast track record."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from marketpredict.models.direction import Direction
from marketpredict.models.prediction import Prediction

logger = logging.getLogger(__name__)

DEFAULT_CERTAINTY = Decimal("0.5")
SMALL_STREAK_CERTAINTY = Decimal("0.6")
MIN_MATCHES_FOR_FULL_CERTAINTY = 3
LOOKBACK_DAYS = 30


def estimate_certainty(
    history: list[Prediction],
    direction: Direction,
    now: datetime,
    lookback_days: int = LOOKBACK_DAYS,
) -> Decimal:
    """Hit rate of resolved same-direction predictions made in the lookback window.

    No matching history gives 0.5. A perfect record over fewer than three
    matches is capped at 0.6.
    """
    cutoff = now - timedelta(days=lookback_days)
    matching = [
        p for p in history
        if p.is_resolved and p.direction == direction and p.prediction_date > cutoff
    ]
    correct = [p for p in matching if p.correct]

    certainty = DEFAULT_CERTAINTY
    if matching:
        certainty = Decimal(len(correct)) / Decimal(len(matching))

    if certainty == 1 and len(matching) < MIN_MATCHES_FOR_FULL_CERTAINTY:
        certainty = SMALL_STREAK_CERTAINTY

    logger.info(
        "Correct predictions [%d] / matching predictions [%d] -> certainty %s",
        len(correct), len(matching), certainty,
    )
    return certainty

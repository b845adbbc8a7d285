from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from marketpredict.models.direction import Direction


@dataclass(frozen=True)
class LearningModelRecord:
    """Historical analogue: the pattern seen before a move, and the move itself."""

    company_id: str
    previous_quote_direction: Direction
    previous_sentiment_direction: Direction
    sentiment_difference_from_average: Decimal
    resulting_quote_change: Decimal
    id: int | None = None

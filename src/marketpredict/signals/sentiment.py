"""Sentiment derivations over a company's story history.

A company's sentiment for a day is the sum of every entity score of every
story dated that day. Only days on or before the reference date count.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal

from marketpredict.exceptions import SentimentError
from marketpredict.models.direction import Direction
from marketpredict.models.sentiment import StorySentiment

MIN_SENTIMENT_DAYS = 2


def daily_sentiment(sentiments: list[StorySentiment], as_of: datetime) -> list[tuple[date, int]]:
    """Per-day sentiment totals up to ``as_of``, oldest day first."""
    cutoff = as_of.date()
    totals: dict[date, int] = defaultdict(int)
    for story in sentiments:
        day = story.story_date.date()
        if day <= cutoff:
            totals[day] += story.total
    return sorted(totals.items())


def _require_days(sentiments: list[StorySentiment], as_of: datetime) -> list[tuple[date, int]]:
    days = daily_sentiment(sentiments, as_of)
    if len(days) < MIN_SENTIMENT_DAYS:
        company_id = sentiments[0].company_id if sentiments else ""
        raise SentimentError(company_id, len(days))
    return days


def previous_sentiment_direction(sentiments: list[StorySentiment], as_of: datetime) -> Direction:
    days = _require_days(sentiments, as_of)
    return Direction.of_change(Decimal(days[-1][1] - days[-2][1]))


def last_sentiment_difference_from_average(
    sentiments: list[StorySentiment], as_of: datetime
) -> Decimal:
    """Latest day's sentiment minus the mean of all daily totals (signed)."""
    days = _require_days(sentiments, as_of)
    scores = [Decimal(total) for _, total in days]
    average = sum(scores, Decimal(0)) / len(scores)
    return scores[-1] - average

from marketpredict.signals.quotes import QUOTE_WINDOW, previous_price_direction
from marketpredict.signals.sentiment import (
    daily_sentiment,
    last_sentiment_difference_from_average,
    previous_sentiment_direction,
)

__all__ = [
    "QUOTE_WINDOW",
    "daily_sentiment",
    "last_sentiment_difference_from_average",
    "previous_price_direction",
    "previous_sentiment_direction",
]

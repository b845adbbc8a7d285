from __future__ import annotations

from marketpredict.models.company import Company, Exchange
from marketpredict.models.direction import Direction
from marketpredict.models.learning import LearningModelRecord
from marketpredict.models.prediction import Prediction
from marketpredict.models.quote import Quote
from marketpredict.models.sentiment import EntitySentiment, StorySentiment

__all__ = [
    # direction
    "Direction",
    # company
    "Company",
    "Exchange",
    # quote
    "Quote",
    # sentiment
    "EntitySentiment",
    "StorySentiment",
    # learning model
    "LearningModelRecord",
    # prediction
    "Prediction",
]

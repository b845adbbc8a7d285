"""Event sink for the prediction engine.

Messages are written to ``markets.messages`` and announced with
``pg_notify`` in the same statement, so a listener on the topic channel
wakes up only once the row is committed.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from enum import StrEnum

from marketpredict.registry.db import Database

logger = logging.getLogger(__name__)


class Topic(StrEnum):
    PREDICTION_GENERATED = "PredictionGenerated"
    MISSING_QUOTE_DATA = "MissingQuoteData"


class MessageBus:
    def __init__(self, db: Database) -> None:
        self._db = db

    def publish(self, topic: Topic, payload: dict) -> int:
        """Store and announce a message. Returns the message id."""
        body = json.dumps(payload, default=str)
        rows = self._db.execute(
            "WITH msg AS ("
            "INSERT INTO markets.messages (topic, payload) VALUES (%s, %s::jsonb) RETURNING id"
            ") SELECT id, pg_notify(%s, %s) FROM msg",
            (topic.value, body, topic.value, body),
        )
        logger.debug("Published %s: %s", topic.value, body)
        return rows[0]["id"]

    def prediction_generated(self, prediction_id: int) -> int:
        return self.publish(Topic.PREDICTION_GENERATED, {"prediction_id": prediction_id})

    def missing_quote_data(self, exchange_id: str, day: date | datetime) -> int:
        if isinstance(day, datetime):
            day = day.date()
        return self.publish(
            Topic.MISSING_QUOTE_DATA,
            {"exchange_id": exchange_id, "date": day.isoformat()},
        )

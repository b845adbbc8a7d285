from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal

from marketpredict.exceptions import CompanyNotFoundError
from marketpredict.models.company import Company, Exchange
from marketpredict.models.direction import Direction
from marketpredict.models.learning import LearningModelRecord
from marketpredict.models.prediction import Prediction
from marketpredict.models.quote import Quote
from marketpredict.models.sentiment import EntitySentiment, StorySentiment
from marketpredict.registry.db import Database

logger = logging.getLogger(__name__)

_PREDICTION_COLUMNS = (
    "id, company_id, prediction_date, validity_period_ms, direction, "
    "predicted_change, predicted_change_percent, certainty, last_bid, last_ask, "
    "potential_earning_per_share, correct, actual_change, actual_earning_per_share, "
    "validated_at"
)

_QUOTE_COLUMNS = "id, company_id, quote_date, open, close, bid, ask, intraday"


def _utc(value: datetime | None) -> datetime | None:
    """Normalize a TIMESTAMPTZ read back from the store to UTC."""
    return value.astimezone(timezone.utc) if value is not None else None


class Registry:
    """Query layer bridging Python models and the markets schema."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Companies and exchanges
    # ------------------------------------------------------------------

    def get_company(self, company_id: str) -> Company:
        rows = self._db.execute(
            "SELECT id, name, exchange_id FROM markets.companies WHERE id = %s",
            (company_id,),
        )
        if not rows:
            raise CompanyNotFoundError("Company", company_id)
        r = rows[0]
        return Company(id=r["id"], name=r["name"] or "", exchange_id=r["exchange_id"])

    def get_exchange(self, exchange_id: str) -> Exchange:
        rows = self._db.execute(
            "SELECT id, name, intraday FROM markets.exchanges WHERE id = %s",
            (exchange_id,),
        )
        if not rows:
            raise CompanyNotFoundError("Exchange", exchange_id)
        r = rows[0]
        return Exchange(id=r["id"], name=r["name"] or "", intraday=bool(r["intraday"]))

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def get_last_quotes(self, company_id: str, limit: int = 7) -> list[Quote]:
        """Most recent ``limit`` end-of-day quotes, returned oldest first."""
        rows = self._db.execute(
            f"SELECT * FROM ("
            f"SELECT {_QUOTE_COLUMNS} FROM markets.quotes "
            f"WHERE company_id = %s AND intraday = FALSE "
            f"ORDER BY quote_date DESC LIMIT %s"
            f") recent ORDER BY quote_date ASC",
            (company_id, limit),
        )
        return [self._row_to_quote(r) for r in rows]

    def get_quote_before(self, company_id: str, before: datetime) -> Quote | None:
        """Latest end-of-day quote strictly before ``before``."""
        rows = self._db.execute(
            f"SELECT {_QUOTE_COLUMNS} FROM markets.quotes "
            f"WHERE company_id = %s AND intraday = FALSE AND quote_date < %s "
            f"ORDER BY quote_date DESC LIMIT 1",
            (company_id, before),
        )
        return self._row_to_quote(rows[0]) if rows else None

    def get_quote_at(self, company_id: str, day: datetime) -> Quote | None:
        """End-of-day quote stamped exactly at ``day`` (already truncated to midnight)."""
        rows = self._db.execute(
            f"SELECT {_QUOTE_COLUMNS} FROM markets.quotes "
            f"WHERE company_id = %s AND intraday = FALSE AND quote_date = %s "
            f"LIMIT 1",
            (company_id, day),
        )
        return self._row_to_quote(rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Sentiment
    # ------------------------------------------------------------------

    def get_story_sentiments(self, company_id: str) -> list[StorySentiment]:
        rows = self._db.execute(
            "SELECT id, company_id, story_date, entity_sentiments "
            "FROM markets.story_sentiments WHERE company_id = %s "
            "ORDER BY story_date",
            (company_id,),
        )
        return [self._row_to_story_sentiment(r) for r in rows]

    # ------------------------------------------------------------------
    # Learning model
    # ------------------------------------------------------------------

    def get_learning_model_records(
        self,
        company_id: str,
        previous_quote_direction: Direction,
        previous_sentiment_direction: Direction,
    ) -> list[LearningModelRecord]:
        """Historical analogues recorded for this exact pattern."""
        rows = self._db.execute(
            "SELECT id, company_id, previous_quote_direction, previous_sentiment_direction, "
            "sentiment_difference_from_average, resulting_quote_change "
            "FROM markets.learning_model_records "
            "WHERE company_id = %s AND previous_quote_direction = %s "
            "AND previous_sentiment_direction = %s",
            (company_id, previous_quote_direction.value, previous_sentiment_direction.value),
        )
        return [
            LearningModelRecord(
                id=r["id"],
                company_id=r["company_id"],
                previous_quote_direction=Direction(r["previous_quote_direction"]),
                previous_sentiment_direction=Direction(r["previous_sentiment_direction"]),
                sentiment_difference_from_average=Decimal(str(r["sentiment_difference_from_average"])),
                resulting_quote_change=Decimal(str(r["resulting_quote_change"])),
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def get_open_predictions(self, company_id: str | None = None) -> list[Prediction]:
        """Predictions not yet validated, for one company or all of them."""
        if company_id is None:
            rows = self._db.execute(
                f"SELECT {_PREDICTION_COLUMNS} FROM markets.predictions "
                f"WHERE correct IS NULL ORDER BY prediction_date"
            )
        else:
            rows = self._db.execute(
                f"SELECT {_PREDICTION_COLUMNS} FROM markets.predictions "
                f"WHERE company_id = %s AND correct IS NULL ORDER BY prediction_date",
                (company_id,),
            )
        return [self._row_to_prediction(r) for r in rows]

    def get_recent_predictions(self, company_id: str, limit: int = 100) -> list[Prediction]:
        rows = self._db.execute(
            f"SELECT {_PREDICTION_COLUMNS} FROM markets.predictions "
            f"WHERE company_id = %s ORDER BY prediction_date DESC LIMIT %s",
            (company_id, limit),
        )
        return [self._row_to_prediction(r) for r in rows]

    def save_prediction(self, prediction: Prediction) -> int:
        """Insert a new prediction or update an existing one by id.

        Sets ``prediction.id`` on insert. Returns the id.
        """
        if prediction.id is None:
            rows = self._db.execute(
                "INSERT INTO markets.predictions "
                "(company_id, prediction_date, validity_period_ms, direction, "
                "predicted_change, predicted_change_percent, certainty, last_bid, last_ask, "
                "potential_earning_per_share) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING id",
                (
                    prediction.company_id,
                    prediction.prediction_date,
                    prediction.validity_period,
                    prediction.direction.value,
                    prediction.predicted_change,
                    prediction.predicted_change_percent,
                    prediction.certainty,
                    prediction.last_bid,
                    prediction.last_ask,
                    prediction.potential_earning_per_share,
                ),
            )
            prediction.id = rows[0]["id"]
            return prediction.id

        self._db.execute(
            "UPDATE markets.predictions SET "
            "certainty = %s, correct = %s, actual_change = %s, "
            "actual_earning_per_share = %s, validated_at = %s "
            "WHERE id = %s",
            (
                prediction.certainty,
                prediction.correct,
                prediction.actual_change,
                prediction.actual_earning_per_share,
                prediction.validated_at,
                prediction.id,
            ),
        )
        return prediction.id

    def get_prediction_summary(self) -> dict:
        """Counts of open, resolved and correct predictions."""
        rows = self._db.execute(
            "SELECT "
            "COUNT(*) FILTER (WHERE correct IS NULL) AS open, "
            "COUNT(*) FILTER (WHERE correct IS NOT NULL) AS resolved, "
            "COUNT(*) FILTER (WHERE correct) AS correct "
            "FROM markets.predictions"
        )
        if not rows:
            return {"open": 0, "resolved": 0, "correct": 0, "accuracy": 0.0}
        r = rows[0]
        resolved = r["resolved"] or 0
        correct = r["correct"] or 0
        return {
            "open": r["open"] or 0,
            "resolved": resolved,
            "correct": correct,
            "accuracy": correct / resolved if resolved else 0.0,
        }

    # ------------------------------------------------------------------
    # Cron audit
    # ------------------------------------------------------------------

    def log_cron_start(self, job_name: str) -> int:
        """Log the start of a job run. Returns cron_run id."""
        rows = self._db.execute(
            "INSERT INTO markets.cron_runs (job_name, started_at, status) "
            "VALUES (%s, NOW(), 'running') RETURNING id",
            (job_name,),
        )
        return rows[0]["id"]

    def log_cron_finish(self, cron_id: int, status: str, error: str | None = None) -> None:
        self._db.execute(
            "UPDATE markets.cron_runs SET finished_at = NOW(), status = %s, error = %s WHERE id = %s",
            (status, error, cron_id),
        )

    # ------------------------------------------------------------------
    # Row mappers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_quote(r: dict) -> Quote:
        return Quote(
            id=r["id"],
            company_id=r["company_id"],
            date=_utc(r["quote_date"]),
            open=Decimal(str(r["open"])),
            close=Decimal(str(r["close"])),
            bid=Decimal(str(r["bid"])),
            ask=Decimal(str(r["ask"])),
            intraday=bool(r["intraday"]),
        )

    @staticmethod
    def _row_to_story_sentiment(r: dict) -> StorySentiment:
        raw = r["entity_sentiments"]
        if isinstance(raw, str):
            raw = json.loads(raw)
        return StorySentiment(
            id=r["id"],
            company_id=r["company_id"],
            story_date=_utc(r["story_date"]),
            entity_sentiments=[
                EntitySentiment(entity=e["entity"], sentiment=int(e["sentiment"]))
                for e in raw or []
            ],
        )

    @staticmethod
    def _row_to_prediction(r: dict) -> Prediction:
        def _dec(value) -> Decimal | None:
            return Decimal(str(value)) if value is not None else None

        return Prediction(
            id=r["id"],
            company_id=r["company_id"],
            prediction_date=_utc(r["prediction_date"]),
            validity_period=int(r["validity_period_ms"]),
            direction=Direction(r["direction"]),
            predicted_change=Decimal(str(r["predicted_change"])),
            predicted_change_percent=Decimal(str(r["predicted_change_percent"])),
            certainty=Decimal(str(r["certainty"])),
            last_bid=Decimal(str(r["last_bid"])),
            last_ask=Decimal(str(r["last_ask"])),
            potential_earning_per_share=Decimal(str(r["potential_earning_per_share"])),
            correct=r["correct"],
            actual_change=_dec(r["actual_change"]),
            actual_earning_per_share=_dec(r["actual_earning_per_share"]),
            validated_at=_utc(r["validated_at"]),
        )

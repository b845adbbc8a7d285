from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from marketpredict.engine.analogues import candidate_changes, predicted_change
from marketpredict.engine.calendar import Roll, roll_off_weekend
from marketpredict.engine.certainty import LOOKBACK_DAYS, estimate_certainty
from marketpredict.engine.reconcile import ReconcileAction, reconcile
from marketpredict.exceptions import PredictionDataError, PredictionRunError
from marketpredict.messaging import MessageBus
from marketpredict.models.direction import Direction
from marketpredict.models.prediction import Prediction
from marketpredict.registry.queries import Registry
from marketpredict.signals.quotes import QUOTE_WINDOW, previous_price_direction
from marketpredict.signals.sentiment import (
    last_sentiment_difference_from_average,
    previous_sentiment_direction,
)

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100
HORIZON_DAYS = 1


@dataclass
class GenerationResult:
    company_id: str
    action: ReconcileAction | None = None  # None: no forecast could be made
    prediction: Prediction | None = None

    @property
    def generated(self) -> bool:
        return self.action is ReconcileAction.CREATE_NEW


class PredictionGenerator:
    """Builds a next-day forecast for one company from its historical analogues."""

    def __init__(
        self,
        registry: Registry,
        bus: MessageBus,
        *,
        quote_window: int = QUOTE_WINDOW,
        history_limit: int = HISTORY_LIMIT,
        lookback_days: int = LOOKBACK_DAYS,
        horizon_days: int = HORIZON_DAYS,
    ) -> None:
        self._registry = registry
        self._bus = bus
        self._quote_window = quote_window
        self._history_limit = history_limit
        self._lookback_days = lookback_days
        self._horizon_days = horizon_days

    def generate(self, company_id: str, now: datetime | None = None) -> GenerationResult:
        """Generate, update or skip the forecast for ``company_id``.

        1. Load the last end-of-day quotes and all story sentiments
        2. Derive the previous price and sentiment directions
        3. Average the analogues recorded for that pattern into a predicted change
        4. Score certainty from the company's recent track record
        5. Reconcile against open forecasts: discard, update in place, or store
           and announce a new one

        Insufficient data ends the run quietly. Anything else is logged and
        raised as PredictionRunError.
        """
        now = now or datetime.now(timezone.utc)
        result = GenerationResult(company_id=company_id)

        try:
            company = self._registry.get_company(company_id)
            logger.info("Prediction generator running for company [%s] [%s]", company.id, company.name)

            quotes = self._registry.get_last_quotes(company.id, self._quote_window)
            sentiments = self._registry.get_story_sentiments(company.id)

            if not quotes:
                logger.info("No quotes for company [%s] - no prediction", company.id)
                return result

            last_quote = quotes[-1]

            records = self._registry.get_learning_model_records(
                company.id,
                previous_price_direction(quotes, self._quote_window),
                previous_sentiment_direction(sentiments, last_quote.date),
            )
            sentiment_difference = last_sentiment_difference_from_average(sentiments, last_quote.date)

            change = predicted_change(candidate_changes(records, sentiment_difference))
            if change is None:
                logger.info("Not enough quote data to predict average change for [%s]", company.id)
                return result

            direction = Direction.of_change(change)
            expiry = roll_off_weekend(now + timedelta(days=self._horizon_days), Roll.FORWARD)

            history = self._registry.get_recent_predictions(company.id, self._history_limit)
            certainty = estimate_certainty(history, direction, now, self._lookback_days)

            candidate = Prediction(
                company_id=company.id,
                prediction_date=now,
                validity_period=(expiry - now) // timedelta(milliseconds=1),
                direction=direction,
                predicted_change=change,
                predicted_change_percent=change / last_quote.close * 100,
                certainty=certainty,
                last_bid=last_quote.bid,
                last_ask=last_quote.ask,
                potential_earning_per_share=abs(last_quote.bid - (last_quote.ask - change)),
            )

            decision = reconcile(candidate, self._registry.get_open_predictions(company.id))
            result.action = decision.action

            if decision.action is ReconcileAction.DISCARD:
                logger.info("Duplicate prediction generated for company [%s] - ignoring", company.name)
                result.prediction = decision.target
                return result

            if decision.action is ReconcileAction.UPDATE_EXISTING:
                target = decision.target
                target.certainty = decision.new_certainty
                self._registry.save_prediction(target)
                logger.info(
                    "Duplicate prediction generated for company [%s] with different certainty - updated %s",
                    company.name, target.id,
                )
                result.prediction = target
                return result

            candidate.id = self._registry.save_prediction(candidate)
            logger.info(
                "Prediction %s generated for company [%s]: %s %s (certainty %s)",
                candidate.id, company.name, direction.value, change, certainty,
            )
            self._bus.prediction_generated(candidate.id)
            result.prediction = candidate
            return result

        except PredictionDataError as exc:
            logger.info("No prediction for company [%s]: %s", company_id, exc.message)
            return GenerationResult(company_id=company_id)
        except Exception as exc:
            logger.exception("Prediction generation failed for company [%s]", company_id)
            raise PredictionRunError(f"Prediction generation failed for {company_id}") from exc

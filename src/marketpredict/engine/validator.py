from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from marketpredict.engine.calendar import Roll, roll_off_weekend, truncate_to_day
from marketpredict.exceptions import PredictionRunError
from marketpredict.messaging import MessageBus
from marketpredict.models.company import Company, Exchange
from marketpredict.models.direction import Direction
from marketpredict.models.prediction import Prediction
from marketpredict.models.quote import Quote
from marketpredict.registry.queries import Registry

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    resolved: list[Prediction] = field(default_factory=list)
    pending: list[Prediction] = field(default_factory=list)  # overdue but missing quotes
    missing_data: list[tuple[str, datetime]] = field(default_factory=list)


class PredictionValidator:
    """Grades overdue open predictions against realized end-of-day quotes."""

    def __init__(self, registry: Registry, bus: MessageBus) -> None:
        self._registry = registry
        self._bus = bus

    def validate(self, now: datetime | None = None) -> ValidationResult:
        """Resolve every overdue open prediction that has quotes at both ends.

        The window opens on the prediction date rolled back to a business day
        and closes at its expiry rolled forward to one. Predictions lacking
        either quote stay open and one missing-data request is published per
        (exchange, day) after the scan.
        """
        now = now or datetime.now(timezone.utc)
        result = ValidationResult()
        missing: dict[tuple[str, datetime], None] = {}
        companies: dict[str, tuple[Company, Exchange]] = {}

        try:
            open_predictions = self._registry.get_open_predictions()
            overdue = [p for p in open_predictions if p.is_overdue(now)]
            logger.info(
                "Validating %d overdue of %d open predictions", len(overdue), len(open_predictions)
            )

            for prediction in overdue:
                if prediction.company_id not in companies:
                    company = self._registry.get_company(prediction.company_id)
                    exchange = self._registry.get_exchange(company.exchange_id)
                    companies[prediction.company_id] = (company, exchange)
                company, exchange = companies[prediction.company_id]

                start = roll_off_weekend(prediction.prediction_date, Roll.BACKWARD)
                quote_at_start = self._quote_at(exchange, company, start)
                if quote_at_start is None:
                    logger.debug(
                        "Quote at prediction not present for date [%s] - requesting retrieval",
                        truncate_to_day(start).date(),
                    )
                    missing.setdefault((exchange.id, truncate_to_day(start)), None)
                    result.pending.append(prediction)
                    continue

                end = roll_off_weekend(prediction.expires_at, Roll.FORWARD)
                quote_at_end = self._quote_at(exchange, company, end)
                if quote_at_end is None:
                    logger.debug(
                        "Quote at end of prediction not present for date [%s] - requesting retrieval",
                        truncate_to_day(end).date(),
                    )
                    missing.setdefault((exchange.id, truncate_to_day(end)), None)
                    result.pending.append(prediction)
                    continue

                self._resolve(prediction, quote_at_start, quote_at_end, now)
                self._registry.save_prediction(prediction)
                logger.info(
                    "Prediction validated for company [%s] direction [%s] - correct? [%s]",
                    company.name, prediction.direction.value, prediction.correct,
                )
                result.resolved.append(prediction)

            for exchange_id, day in missing:
                logger.debug(
                    "Requesting retrieval of quote data for date [%s] for exchange [%s]",
                    day.date(), exchange_id,
                )
                self._bus.missing_quote_data(exchange_id, day)
                result.missing_data.append((exchange_id, day))

        except Exception as exc:
            logger.exception("Prediction validation failed")
            raise PredictionRunError("Prediction validation failed") from exc

        return result

    @staticmethod
    def _resolve(prediction: Prediction, start: Quote, end: Quote, now: datetime) -> None:
        if start.open > end.close:
            actual = Direction.DOWN
        elif start.open < end.close:
            actual = Direction.UP
        else:
            actual = Direction.NONE

        prediction.correct = actual == prediction.direction
        prediction.actual_change = end.close - start.open
        prediction.actual_earning_per_share = abs(
            prediction.last_bid - (prediction.last_ask - prediction.actual_change)
        )
        prediction.validated_at = now

    def _quote_at(self, exchange: Exchange, company: Company, moment: datetime) -> Quote | None:
        """End-of-day quote realized at ``moment``.

        Exchanges sampled intraday take the latest end-of-day quote strictly
        before ``moment``; otherwise, or when none exists, the quote stamped on
        that day.
        """
        if exchange.intraday:
            quote = self._registry.get_quote_before(company.id, moment)
            if quote is not None:
                return quote
        return self._registry.get_quote_at(company.id, truncate_to_day(moment))

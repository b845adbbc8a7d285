from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from marketpredict.models.direction import Direction


@dataclass
class Prediction:
    company_id: str
    prediction_date: datetime
    validity_period: int  # milliseconds from prediction_date to expiry
    direction: Direction
    predicted_change: Decimal
    predicted_change_percent: Decimal
    certainty: Decimal
    last_bid: Decimal
    last_ask: Decimal
    potential_earning_per_share: Decimal
    correct: bool | None = None
    actual_change: Decimal | None = None
    actual_earning_per_share: Decimal | None = None
    validated_at: datetime | None = None
    id: int | None = None

    @property
    def is_resolved(self) -> bool:
        return self.correct is not None

    @property
    def expires_at(self) -> datetime:
        return self.prediction_date + timedelta(milliseconds=self.validity_period)

    def is_overdue(self, now: datetime) -> bool:
        return now > self.expires_at

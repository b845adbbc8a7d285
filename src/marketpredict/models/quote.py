from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class Quote:
    company_id: str
    date: datetime
    open: Decimal
    close: Decimal
    bid: Decimal
    ask: Decimal
    intraday: bool = False  # True = sub-day sample, False = end-of-day
    id: int | None = None

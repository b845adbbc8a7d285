"""Errors raised by the prediction engine.

``PredictionDataError`` and its subclasses mark expected insufficiency: the
inputs for an instrument cannot support a forecast yet. Callers log them and
end the run without mutating anything. Everything else is unexpected and is
surfaced to the job runner as ``PredictionRunError``.
"""

from __future__ import annotations


class PredictionDataError(Exception):
    """Base error for inputs that cannot support a forecast."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class QuotePriceCalculationError(PredictionDataError):
    """Raised when the quote history is too short to derive a price direction."""

    def __init__(self, company_id: str, available: int, required: int) -> None:
        super().__init__(
            f"Not enough quotes for company {company_id}: "
            f"{available} available, {required} required"
        )
        self.company_id = company_id
        self.available = available
        self.required = required


class SentimentError(PredictionDataError):
    """Raised when sentiment history is too sparse to derive a direction."""

    def __init__(self, company_id: str, available_days: int) -> None:
        super().__init__(
            f"Not enough sentiment history for company {company_id}: "
            f"{available_days} day(s) available"
        )
        self.company_id = company_id
        self.available_days = available_days


class CompanyNotFoundError(LookupError):
    """Raised when a company or exchange id is unknown to the registry."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class PredictionRunError(RuntimeError):
    """Wraps an unexpected failure that aborted a generator or validator run."""

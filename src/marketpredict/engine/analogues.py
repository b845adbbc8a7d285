"""Historical analogue filtering for the prediction generator."""

from __future__ import annotations

from decimal import Decimal

from marketpredict.models.learning import LearningModelRecord


def below_difference(
    records: list[LearningModelRecord], sentiment_difference: Decimal
) -> list[LearningModelRecord]:
    """Analogues whose recorded sentiment deviation is strictly below ``sentiment_difference``."""
    return [r for r in records if r.sentiment_difference_from_average < sentiment_difference]


def _mean(values: list[Decimal]) -> Decimal:
    return sum(values, Decimal(0)) / len(values)


def candidate_changes(
    records: list[LearningModelRecord], sentiment_difference: Decimal
) -> list[Decimal]:
    """Quote-change candidates whose mean becomes the predicted change.

    Average and maximum of the filtered analogues, then the "above difference"
    average. That last one uses the same filter as the first, so the average
    carries double weight; tests pin this until the filter is deliberately
    changed. Empty when no analogue qualifies.
    """
    below = [r.resulting_quote_change for r in below_difference(records, sentiment_difference)]
    above = [r.resulting_quote_change for r in below_difference(records, sentiment_difference)]

    candidates: list[Decimal] = []
    if below:
        candidates.append(_mean(below))
        candidates.append(max(below))
    if above:
        candidates.append(_mean(above))
    return candidates


def predicted_change(candidates: list[Decimal]) -> Decimal | None:
    if not candidates:
        return None
    return _mean(candidates)

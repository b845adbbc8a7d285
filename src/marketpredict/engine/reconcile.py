from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from marketpredict.models.prediction import Prediction


class ReconcileAction(StrEnum):
    DISCARD = "DISCARD"
    UPDATE_EXISTING = "UPDATE_EXISTING"
    CREATE_NEW = "CREATE_NEW"


@dataclass(frozen=True)
class Reconciliation:
    action: ReconcileAction
    target: Prediction | None = None
    new_certainty: Decimal | None = None


def reconcile(candidate: Prediction, open_predictions: list[Prediction]) -> Reconciliation:
    """Decide how a fresh forecast relates to the company's open forecasts.

    Matching is exact on direction and predicted change. The first match
    wins: same certainty discards the candidate, different certainty
    updates the open forecast in place.
    """
    for existing in open_predictions:
        if (
            existing.direction == candidate.direction
            and existing.predicted_change == candidate.predicted_change
        ):
            if existing.certainty == candidate.certainty:
                return Reconciliation(ReconcileAction.DISCARD, target=existing)
            return Reconciliation(
                ReconcileAction.UPDATE_EXISTING,
                target=existing,
                new_certainty=candidate.certainty,
            )
    return Reconciliation(ReconcileAction.CREATE_NEW)

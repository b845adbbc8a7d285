from marketpredict.engine.calendar import Roll, roll_off_weekend
from marketpredict.engine.certainty import estimate_certainty
from marketpredict.engine.generator import GenerationResult, PredictionGenerator
from marketpredict.engine.reconcile import ReconcileAction, Reconciliation, reconcile
from marketpredict.engine.validator import PredictionValidator, ValidationResult

__all__ = [
    "GenerationResult",
    "PredictionGenerator",
    "PredictionValidator",
    "ReconcileAction",
    "Reconciliation",
    "Roll",
    "ValidationResult",
    "estimate_certainty",
    "reconcile",
    "roll_off_weekend",
]

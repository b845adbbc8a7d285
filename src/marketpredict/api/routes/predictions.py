"""Prediction job triggers and open-forecast listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from marketpredict.api.deps import get_generator, get_registry, get_validator
from marketpredict.engine.generator import PredictionGenerator
from marketpredict.engine.validator import PredictionValidator
from marketpredict.exceptions import CompanyNotFoundError, PredictionRunError
from marketpredict.models.prediction import Prediction
from marketpredict.registry.queries import Registry

router = APIRouter()


def _prediction_json(p: Prediction) -> dict:
    return {
        "id": p.id,
        "companyId": p.company_id,
        "predictionDate": p.prediction_date.isoformat(),
        "expiresAt": p.expires_at.isoformat(),
        "validityPeriod": p.validity_period,
        "direction": p.direction.value,
        "predictedChange": float(p.predicted_change),
        "predictedChangePercent": float(p.predicted_change_percent),
        "certainty": float(p.certainty),
        "lastBid": float(p.last_bid),
        "lastAsk": float(p.last_ask),
        "potentialEarningPerShare": float(p.potential_earning_per_share),
        "correct": p.correct,
        "actualChange": float(p.actual_change) if p.actual_change is not None else None,
        "actualEarningPerShare": (
            float(p.actual_earning_per_share) if p.actual_earning_per_share is not None else None
        ),
    }


@router.post("/predictions/generate/{company_id}")
def generate_prediction(
    company_id: str,
    generator: PredictionGenerator = Depends(get_generator),
) -> dict:
    try:
        result = generator.generate(company_id)
    except PredictionRunError as exc:
        if isinstance(exc.__cause__, CompanyNotFoundError):
            raise HTTPException(status_code=404, detail=str(exc.__cause__))
        raise HTTPException(status_code=500, detail=str(exc))

    return {
        "companyId": company_id,
        "action": result.action.value if result.action else None,
        "prediction": _prediction_json(result.prediction) if result.prediction else None,
    }


@router.post("/predictions/validate")
def validate_predictions(validator: PredictionValidator = Depends(get_validator)) -> dict:
    try:
        result = validator.validate()
    except PredictionRunError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    return {
        "resolved": [_prediction_json(p) for p in result.resolved],
        "pending": len(result.pending),
        "missingData": [
            {"exchangeId": exchange_id, "date": day.date().isoformat()}
            for exchange_id, day in result.missing_data
        ],
    }


@router.get("/predictions/open/{company_id}")
def open_predictions(company_id: str, registry: Registry = Depends(get_registry)) -> dict:
    predictions = registry.get_open_predictions(company_id)
    return {"predictions": [_prediction_json(p) for p in predictions]}

"""Threshold estimation routes."""

from typing import List, Optional, Union

from fastapi import APIRouter
from pydantic import Field

from ...metrics.threshold import TimeTrialObservation, estimate_threshold
from ..schemas import CamelModel


router = APIRouter()


class TrialInput(CamelModel):
    """One maximal time trial."""

    distance_m: float = Field(..., gt=0, description="Trial distance in meters")
    time_sec: float = Field(..., gt=0, description="Elapsed time in seconds")
    heart_rate: Optional[int] = Field(None, ge=0)
    rpe: Optional[float] = Field(None, ge=0, le=10)


class ThresholdRequest(CamelModel):
    trials: List[TrialInput]
    recovery_hours_between_trials: Optional[Union[float, List[float]]] = None


class ThresholdResponse(CamelModel):
    threshold_velocity: float
    threshold_pace_sec: float
    threshold_pace: str
    capacity_reserve_m: float
    r_squared: float
    fit_quality: str
    confidence: str
    trial_count: int
    warnings: List[str]
    recommendations: List[str]


@router.post("/thresholds/estimate", response_model=ThresholdResponse)
def estimate(request: ThresholdRequest) -> ThresholdResponse:
    """Estimate threshold velocity and capacity reserve from time trials."""
    observations = [
        TimeTrialObservation(
            distance_m=t.distance_m,
            time_sec=t.time_sec,
            heart_rate=t.heart_rate,
            rpe=t.rpe,
        )
        for t in request.trials
    ]
    result = estimate_threshold(observations, request.recovery_hours_between_trials)
    return ThresholdResponse(**result.to_dict())

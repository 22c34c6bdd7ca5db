"""Training load routes: nightly trigger, history and risk digest."""

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ...exceptions import NotFoundError
from ...metrics.load import TrainingLoadSample, describe_zone
from ...services.load_monitor import LoadMonitorService, utc_today
from ..deps import get_load_monitor, verify_cron_secret
from ..schemas import CamelModel


router = APIRouter()


class BatchResultResponse(CamelModel):
    """Counts returned by the nightly update."""

    processed: int
    updated: int
    errors: int
    timestamp: str


class LoadSampleResponse(CamelModel):
    """One daily training load sample."""

    date: str
    daily_load: float
    acute_load: float
    chronic_load: float
    ratio: float
    zone: str
    injury_risk: str

    @classmethod
    def from_sample(cls, sample: TrainingLoadSample) -> "LoadSampleResponse":
        data = sample.to_dict()
        data.pop("athlete_id")
        return cls(**data)


class LoadHistoryResponse(CamelModel):
    athlete_id: str
    samples: List[LoadSampleResponse]
    current_zone: str
    guidance: Dict[str, str]


class DigestAthlete(CamelModel):
    athlete_id: str
    ratio: float
    acute_load: float
    chronic_load: float
    zone: str


class RiskDigestResponse(CamelModel):
    date: str
    zone_counts: Dict[str, int]
    high_risk: List[DigestAthlete]


@router.post(
    "/cron/training-load",
    response_model=BatchResultResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def trigger_training_load_update(
    day: Optional[date] = Query(None, alias="date", description="Day to compute (default: today UTC)"),
    service: LoadMonitorService = Depends(get_load_monitor),
) -> BatchResultResponse:
    """Run the nightly training load update."""
    result = service.run_nightly_update(day)
    return BatchResultResponse(**result.to_dict())


@router.get("/athletes/{athlete_id}/training-load", response_model=LoadHistoryResponse)
def get_training_load_history(
    athlete_id: str,
    days: int = Query(28, ge=1, le=365),
    service: LoadMonitorService = Depends(get_load_monitor),
) -> LoadHistoryResponse:
    """Daily load samples for an athlete, newest first."""
    samples = service.get_history(athlete_id, days=days)
    if not samples:
        raise NotFoundError("Training load history", athlete_id)

    current = samples[0].zone
    return LoadHistoryResponse(
        athlete_id=athlete_id,
        samples=[LoadSampleResponse.from_sample(s) for s in samples],
        current_zone=current.value,
        guidance=describe_zone(current),
    )


@router.get("/training-load/risk-digest", response_model=RiskDigestResponse)
def get_risk_digest(
    service: LoadMonitorService = Depends(get_load_monitor),
) -> RiskDigestResponse:
    """Athletes grouped by load zone, with the high-risk list."""
    digest = service.build_risk_digest(utc_today())
    return RiskDigestResponse(
        date=digest.date.isoformat(),
        zone_counts={zone.value: len(samples) for zone, samples in digest.by_zone.items()},
        high_risk=[
            DigestAthlete(
                athlete_id=s.athlete_id,
                ratio=round(s.ratio, 2),
                acute_load=round(s.acute_load, 2),
                chronic_load=round(s.chronic_load, 2),
                zone=s.zone.value,
            )
            for s in digest.high_risk
        ],
    )

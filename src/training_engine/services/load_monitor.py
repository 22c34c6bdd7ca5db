"""
Nightly training load monitor.

For every active athlete, folds yesterday's session into the acute and
chronic load averages and writes one TrainingLoadSample for today.
A failure for one athlete is logged and counted; the batch always runs
to the end.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional
import logging

from ..metrics.load import (
    HIGH_RISK_ZONES,
    OPTIMAL_UPPER_RATIO,
    LoadZone,
    TrainingLoadSample,
    compute_load_sample,
)
from .base import TrainingLoadRepository


logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of one nightly run."""

    processed: int = 0
    updated: int = 0
    errors: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "errors": self.errors,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class RiskDigest:
    """Athletes grouped by load zone for the daily coach digest."""

    date: date
    by_zone: Dict[LoadZone, List[TrainingLoadSample]]
    high_risk: List[TrainingLoadSample]

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "by_zone": {
                zone.value: [s.to_dict() for s in samples]
                for zone, samples in self.by_zone.items()
            },
            "high_risk": [s.to_dict() for s in self.high_risk],
            "high_risk_count": len(self.high_risk),
        }


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class LoadMonitorService:
    """Computes and stores daily workload samples.

    Usage:
        service = LoadMonitorService(repository)
        result = service.run_nightly_update()
    """

    def __init__(self, repository: TrainingLoadRepository):
        self.repository = repository

    def update_athlete(self, athlete_id: str, day: date) -> TrainingLoadSample:
        """Compute and store the sample for one athlete on ``day``.

        Uses the session completed the day before and the latest sample
        strictly before ``day``, so recomputing the same day is idempotent.
        """
        session = self.repository.get_completed_session(athlete_id, day - timedelta(days=1))
        previous = self.repository.get_latest_sample_before(athlete_id, day)

        sample = compute_load_sample(athlete_id, day, session, previous)
        self.repository.save_sample(sample)

        entered_high_risk = sample.zone in HIGH_RISK_ZONES and (
            previous is None or previous.zone != sample.zone
        )
        if entered_high_risk:
            logger.warning(
                f"Athlete {athlete_id} entered {sample.zone.value} zone "
                f"(ratio {sample.ratio:.2f}, acute {sample.acute_load:.1f}, "
                f"chronic {sample.chronic_load:.1f})"
            )

        return sample

    def run_nightly_update(self, day: Optional[date] = None) -> BatchResult:
        """Update every active athlete for ``day`` (today UTC by default).

        Returns:
            BatchResult with processed/updated/error counts.
        """
        day = day or utc_today()
        athlete_ids = self.repository.get_active_athlete_ids()
        logger.info(f"Starting training load update for {len(athlete_ids)} athletes ({day})")

        result = BatchResult()
        for athlete_id in athlete_ids:
            result.processed += 1
            try:
                self.update_athlete(athlete_id, day)
                result.updated += 1
            except Exception as e:
                result.errors += 1
                logger.error(f"Training load update failed for athlete {athlete_id}: {e}")

        result.timestamp = datetime.now(timezone.utc)
        logger.info(
            f"Training load update complete: {result.processed} processed, "
            f"{result.updated} updated, {result.errors} errors"
        )
        return result

    def get_history(self, athlete_id: str, days: int = 28, end: Optional[date] = None) -> List[TrainingLoadSample]:
        """Samples for the last ``days`` days, newest first."""
        end = end or utc_today()
        start = end - timedelta(days=days - 1)
        return self.repository.get_samples(athlete_id, start, end)

    def build_risk_digest(self, day: Optional[date] = None) -> RiskDigest:
        """Group each athlete's latest sample by zone.

        High-risk athletes are those above the optimal band (CAUTION and
        up), highest ratio first.
        """
        day = day or utc_today()
        samples = self.repository.get_latest_samples(day)

        by_zone: Dict[LoadZone, List[TrainingLoadSample]] = {zone: [] for zone in LoadZone}
        for sample in samples:
            by_zone[sample.zone].append(sample)

        high_risk = sorted(
            (s for s in samples if s.ratio > OPTIMAL_UPPER_RATIO),
            key=lambda s: s.ratio,
            reverse=True,
        )
        return RiskDigest(date=day, by_zone=by_zone, high_risk=high_risk)

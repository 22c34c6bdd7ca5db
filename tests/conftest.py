"""Pytest configuration and fixtures."""

from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Set, Tuple

import pytest

from training_engine.decisions.confidence import (
    BehaviorSnapshot,
    DetectedPattern,
    LoadSnapshot,
    PerceptionSnapshot,
    ReadinessSnapshot,
)
from training_engine.metrics.load import (
    LoadZone,
    TrainingLoadSample,
    TrainingSession,
    classify_ratio,
)


class InMemoryLoadRepository:
    """Dictionary-backed fake of the training load repository."""

    def __init__(self):
        self.athletes: Set[str] = set()
        self.sessions: Dict[Tuple[str, date], TrainingSession] = {}
        self.samples: Dict[Tuple[str, date], TrainingLoadSample] = {}
        self.failing_athletes: Set[str] = set()

    def add_athlete(self, athlete_id: str) -> None:
        self.athletes.add(athlete_id)

    def add_session(self, athlete_id: str, day: date, duration_min: float, intensity: Optional[str] = None) -> None:
        self.athletes.add(athlete_id)
        self.sessions[(athlete_id, day)] = TrainingSession(
            athlete_id=athlete_id, date=day, duration_min=duration_min, intensity=intensity
        )

    def get_active_athlete_ids(self) -> List[str]:
        return sorted(self.athletes)

    def get_completed_session(self, athlete_id: str, day: date) -> Optional[TrainingSession]:
        if athlete_id in self.failing_athletes:
            raise RuntimeError("corrupt session record")
        return self.sessions.get((athlete_id, day))

    def get_latest_sample_before(self, athlete_id: str, day: date) -> Optional[TrainingLoadSample]:
        candidates = [s for (a, d), s in self.samples.items() if a == athlete_id and d < day]
        return max(candidates, key=lambda s: s.date) if candidates else None

    def save_sample(self, sample: TrainingLoadSample) -> None:
        self.samples[(sample.athlete_id, sample.date)] = sample

    def get_samples(self, athlete_id: str, start: date, end: date) -> List[TrainingLoadSample]:
        found = [s for (a, d), s in self.samples.items() if a == athlete_id and start <= d <= end]
        return sorted(found, key=lambda s: s.date, reverse=True)

    def get_latest_samples(self, day: date) -> List[TrainingLoadSample]:
        latest: Dict[str, TrainingLoadSample] = {}
        for (athlete_id, d), sample in self.samples.items():
            if d <= day and (athlete_id not in latest or d > latest[athlete_id].date):
                latest[athlete_id] = sample
        return [latest[a] for a in sorted(latest)]


def make_sample(
    athlete_id: str,
    day: date,
    acute: float,
    chronic: float,
    ratio: Optional[float] = None,
) -> TrainingLoadSample:
    """Build a stored sample whose zone matches its ratio."""
    if ratio is None:
        ratio = acute / chronic if chronic else 0.0
    zone, risk = classify_ratio(ratio)
    return TrainingLoadSample(
        athlete_id=athlete_id,
        date=day,
        daily_load=0.0,
        acute_load=acute,
        chronic_load=chronic,
        ratio=ratio,
        zone=zone,
        injury_risk=risk,
    )


@pytest.fixture
def repository():
    """Fresh in-memory repository."""
    return InMemoryLoadRepository()


@pytest.fixture
def today():
    return date(2026, 3, 10)


@pytest.fixture
def now():
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def complete_snapshot(now):
    """Perception snapshot with all nine data points, captured just now."""
    return PerceptionSnapshot(
        captured_at=now - timedelta(minutes=10),
        readiness=ReadinessSnapshot(
            readiness_score=72.0,
            sleep_quality=80.0,
            hrv_status="BALANCED",
            fatigue_level=4.0,
        ),
        load=LoadSnapshot(acute_load=60.0, chronic_load=40.0, zone=LoadZone.DANGER),
        behavior=BehaviorSnapshot(
            patterns=[
                DetectedPattern(name="missed_sessions", confidence=0.9),
                DetectedPattern(name="declining_sleep", confidence=0.7),
            ],
            overall_severity="HIGH",
        ),
    )


@pytest.fixture
def sample_factory():
    """Factory for stored load samples."""
    return make_sample

"""
Persistence port used by the services.

The engine never talks to a database directly; services receive an object
satisfying this protocol.
"""

from datetime import date
from typing import List, Optional, Protocol, runtime_checkable

from ..metrics.load import TrainingLoadSample, TrainingSession


@runtime_checkable
class TrainingLoadRepository(Protocol):
    """Read/write access to per-athlete sessions and load samples."""

    def get_active_athlete_ids(self) -> List[str]:
        """Athletes with at least one session or an active program."""
        ...

    def get_completed_session(self, athlete_id: str, day: date) -> Optional[TrainingSession]:
        """The athlete's completed session on ``day``, if any."""
        ...

    def get_latest_sample_before(self, athlete_id: str, day: date) -> Optional[TrainingLoadSample]:
        """Most recent sample strictly before ``day``."""
        ...

    def save_sample(self, sample: TrainingLoadSample) -> None:
        """Insert or replace the sample for (athlete, date)."""
        ...

    def get_samples(self, athlete_id: str, start: date, end: date) -> List[TrainingLoadSample]:
        """Samples in [start, end], newest first."""
        ...

    def get_latest_samples(self, day: date) -> List[TrainingLoadSample]:
        """Latest sample on or before ``day`` for every athlete."""
        ...

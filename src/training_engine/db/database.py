"""SQLite database for athletes, sessions and training load samples."""

import sqlite3
import os
from datetime import date
from pathlib import Path
from typing import Optional, List
from contextlib import contextmanager

from ..exceptions import DatabaseError, ValidationError
from ..metrics.load import InjuryRisk, LoadZone, TrainingLoadSample, TrainingSession
from .schema import SCHEMA


def get_default_db_path() -> Path:
    """Get the default database path."""
    env_path = os.environ.get("TRAINING_ENGINE_DB_PATH")
    if env_path:
        return Path(env_path)

    # src/training_engine/db/database.py -> project root
    return Path(__file__).parent.parent.parent.parent / "training_engine.db"


def _row_to_sample(row: sqlite3.Row) -> TrainingLoadSample:
    return TrainingLoadSample(
        athlete_id=row["athlete_id"],
        date=date.fromisoformat(row["date"]),
        daily_load=row["daily_load"],
        acute_load=row["acute_load"],
        chronic_load=row["chronic_load"],
        ratio=row["ratio"],
        zone=LoadZone(row["zone"]),
        injury_risk=InjuryRisk(row["injury_risk"]),
    )


class TrainingDatabase:
    """SQLite implementation of the training load repository."""

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the training database.

        Args:
            db_path: Path to SQLite database file. If not provided,
                     uses TRAINING_ENGINE_DB_PATH env var or default location.
        """
        if db_path:
            self.db_path = Path(db_path)
        else:
            self.db_path = get_default_db_path()

        self._init_db()

    def _init_db(self):
        """Initialize database tables."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise DatabaseError(f"Could not open database: {e}", operation="connect") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # === Athlete and Session Methods ===

    def upsert_athlete(
        self,
        athlete_id: str,
        name: Optional[str] = None,
        has_active_program: bool = False,
    ) -> None:
        """Create or update an athlete."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO athletes (id, name, has_active_program)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    has_active_program = excluded.has_active_program
                """,
                (athlete_id, name, int(has_active_program)),
            )

    def add_session(
        self,
        athlete_id: str,
        day: date,
        duration_min: float,
        intensity: Optional[str] = None,
        completed: bool = True,
    ) -> int:
        """Log a training session and return its id."""
        if duration_min < 0:
            raise ValidationError(
                "Session duration must not be negative", field="duration_min"
            )
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO training_sessions (athlete_id, date, duration_min, intensity, completed)
                VALUES (?, ?, ?, ?, ?)
                """,
                (athlete_id, day.isoformat(), duration_min, intensity, int(completed)),
            )
            return cursor.lastrowid

    def get_active_athlete_ids(self) -> List[str]:
        """Athletes with an active program or at least one session."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT id FROM athletes WHERE has_active_program = 1
                UNION
                SELECT DISTINCT athlete_id FROM training_sessions
                ORDER BY 1
                """
            ).fetchall()
            return [row[0] for row in rows]

    def get_completed_session(self, athlete_id: str, day: date) -> Optional[TrainingSession]:
        """The longest completed session on ``day``."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT athlete_id, date, duration_min, intensity
                FROM training_sessions
                WHERE athlete_id = ? AND date = ? AND completed = 1
                ORDER BY duration_min DESC, id DESC
                LIMIT 1
                """,
                (athlete_id, day.isoformat()),
            ).fetchone()

            if row:
                return TrainingSession(
                    athlete_id=row["athlete_id"],
                    date=date.fromisoformat(row["date"]),
                    duration_min=row["duration_min"],
                    intensity=row["intensity"],
                )
            return None

    # === Training Load Methods ===

    def save_sample(self, sample: TrainingLoadSample) -> None:
        """Save or replace the sample for (athlete, date)."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO training_load_samples
                (athlete_id, date, daily_load, acute_load, chronic_load, ratio,
                 zone, injury_risk, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (
                    sample.athlete_id,
                    sample.date.isoformat(),
                    sample.daily_load,
                    sample.acute_load,
                    sample.chronic_load,
                    sample.ratio,
                    sample.zone.value,
                    sample.injury_risk.value,
                ),
            )

    def get_latest_sample_before(self, athlete_id: str, day: date) -> Optional[TrainingLoadSample]:
        """Most recent sample strictly before ``day``."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM training_load_samples
                WHERE athlete_id = ? AND date < ?
                ORDER BY date DESC LIMIT 1
                """,
                (athlete_id, day.isoformat()),
            ).fetchone()

            if row:
                return _row_to_sample(row)
            return None

    def get_samples(self, athlete_id: str, start: date, end: date) -> List[TrainingLoadSample]:
        """Samples for a date range, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM training_load_samples
                WHERE athlete_id = ? AND date >= ? AND date <= ?
                ORDER BY date DESC
                """,
                (athlete_id, start.isoformat(), end.isoformat()),
            ).fetchall()

            return [_row_to_sample(row) for row in rows]

    def get_latest_samples(self, day: date) -> List[TrainingLoadSample]:
        """Latest sample on or before ``day`` for every athlete."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT s.* FROM training_load_samples s
                JOIN (
                    SELECT athlete_id, MAX(date) AS latest
                    FROM training_load_samples
                    WHERE date <= ?
                    GROUP BY athlete_id
                ) m ON s.athlete_id = m.athlete_id AND s.date = m.latest
                ORDER BY s.athlete_id
                """,
                (day.isoformat(),),
            ).fetchall()

            return [_row_to_sample(row) for row in rows]

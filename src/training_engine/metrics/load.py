"""Training load calculations (session load, EWMA, acute:chronic ratio)."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..exceptions import ValidationError


class SessionIntensity(str, Enum):
    """Intensity label recorded on a completed training session."""
    RECOVERY = "RECOVERY"
    EASY = "EASY"
    MODERATE = "MODERATE"
    THRESHOLD = "THRESHOLD"
    INTERVAL = "INTERVAL"
    MAX = "MAX"


class LoadZone(str, Enum):
    """Workload ratio zone."""
    DETRAINING = "DETRAINING"
    OPTIMAL = "OPTIMAL"
    CAUTION = "CAUTION"
    DANGER = "DANGER"
    CRITICAL = "CRITICAL"


class InjuryRisk(str, Enum):
    """Injury risk attached to a load zone."""
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


# Load multiplier per session intensity (load = minutes * multiplier)
INTENSITY_MULTIPLIERS: Dict[SessionIntensity, float] = {
    SessionIntensity.RECOVERY: 0.5,
    SessionIntensity.EASY: 0.6,
    SessionIntensity.MODERATE: 0.75,
    SessionIntensity.THRESHOLD: 1.0,
    SessionIntensity.INTERVAL: 1.2,
    SessionIntensity.MAX: 1.5,
}
DEFAULT_INTENSITY_MULTIPLIER = 0.7

# Smoothing weights. These approximate a 7-day and a 28-day window; the zone
# thresholds below were tuned against exactly these values.
ACUTE_ALPHA = 0.4
CHRONIC_ALPHA = 0.1

# Ratio boundaries shared with the race acceptance evaluator
DETRAINING_RATIO = 0.8
OPTIMAL_UPPER_RATIO = 1.3
CAUTION_UPPER_RATIO = 1.5
DANGER_UPPER_RATIO = 2.0

# (upper bound, zone, risk), evaluated in order. A ratio equal to the upper
# bound belongs to that row, except for the detraining row which is open.
ZONE_TABLE: List[Tuple[float, LoadZone, InjuryRisk]] = [
    (DETRAINING_RATIO, LoadZone.DETRAINING, InjuryRisk.LOW),
    (OPTIMAL_UPPER_RATIO, LoadZone.OPTIMAL, InjuryRisk.LOW),
    (CAUTION_UPPER_RATIO, LoadZone.CAUTION, InjuryRisk.MODERATE),
    (DANGER_UPPER_RATIO, LoadZone.DANGER, InjuryRisk.HIGH),
]
CRITICAL_ZONE: Tuple[LoadZone, InjuryRisk] = (LoadZone.CRITICAL, InjuryRisk.VERY_HIGH)

HIGH_RISK_ZONES = frozenset({LoadZone.DANGER, LoadZone.CRITICAL})

# Coach-facing guidance per zone
ZONE_GUIDANCE: Dict[LoadZone, Dict[str, str]] = {
    LoadZone.DETRAINING: {
        "label": "Detraining",
        "description": "Load too low - risk of losing fitness",
        "action": "Gradually increase training volume",
    },
    LoadZone.OPTIMAL: {
        "label": "Optimal",
        "description": "Load is in the sweet spot for adaptation",
        "action": "Continue the current progression",
    },
    LoadZone.CAUTION: {
        "label": "Caution",
        "description": "Moderate risk - monitor closely",
        "action": "Hold load steady and add an easy day",
    },
    LoadZone.DANGER: {
        "label": "Danger",
        "description": "High risk - reduce load immediately",
        "action": "Cut volume and intensity for the coming days",
    },
    LoadZone.CRITICAL: {
        "label": "Critical",
        "description": "Very high risk - immediate rest recommended",
        "action": "Replace planned sessions with rest or recovery",
    },
}


@dataclass
class TrainingSession:
    """A completed training session as read from persistence."""

    athlete_id: str
    date: date
    duration_min: float
    intensity: Optional[str] = None


@dataclass
class TrainingLoadSample:
    """One smoothed load sample per athlete per calendar day."""

    athlete_id: str
    date: date
    daily_load: float
    acute_load: float
    chronic_load: float
    ratio: float
    zone: LoadZone
    injury_risk: InjuryRisk

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "athlete_id": self.athlete_id,
            "date": self.date.isoformat(),
            "daily_load": round(self.daily_load, 1),
            "acute_load": round(self.acute_load, 2),
            "chronic_load": round(self.chronic_load, 2),
            "ratio": round(self.ratio, 2),
            "zone": self.zone.value,
            "injury_risk": self.injury_risk.value,
        }


def get_intensity_multiplier(intensity: Optional[str]) -> float:
    """Look up the load multiplier for an intensity label (case-insensitive)."""
    if not intensity:
        return DEFAULT_INTENSITY_MULTIPLIER
    try:
        return INTENSITY_MULTIPLIERS[SessionIntensity(intensity.upper())]
    except ValueError:
        return DEFAULT_INTENSITY_MULTIPLIER


def calculate_session_load(session: Optional[TrainingSession]) -> float:
    """
    Daily load contributed by a session.

    Args:
        session: Yesterday's completed session, or None for a rest day

    Returns:
        duration (minutes) * intensity multiplier, 0 when there was no session

    Raises:
        ValidationError: If the session has a negative duration
    """
    if session is None:
        return 0.0
    if session.duration_min < 0:
        raise ValidationError(
            f"Session duration must not be negative, got {session.duration_min}",
            field="duration_min",
        )
    return session.duration_min * get_intensity_multiplier(session.intensity)


def calculate_ewma(previous: Optional[float], value: float, alpha: float) -> float:
    """
    Exponentially weighted moving average step.

    EWMA = alpha * value + (1 - alpha) * previous. Without a previous value
    the new value is returned unchanged.
    """
    if previous is None:
        return value
    return alpha * value + (1 - alpha) * previous


def calculate_ratio(acute: float, chronic: float) -> float:
    """Acute:chronic workload ratio, 0 when there is no chronic load."""
    if chronic > 0:
        return acute / chronic
    return 0.0


def classify_ratio(ratio: float) -> Tuple[LoadZone, InjuryRisk]:
    """
    Map a workload ratio to its zone and injury risk.

    - < 0.8: DETRAINING / LOW
    - 0.8 - 1.3: OPTIMAL / LOW
    - 1.3 - 1.5: CAUTION / MODERATE
    - 1.5 - 2.0: DANGER / HIGH
    - > 2.0: CRITICAL / VERY_HIGH
    """
    first_upper, first_zone, first_risk = ZONE_TABLE[0]
    if ratio < first_upper:
        return first_zone, first_risk
    for upper, zone, risk in ZONE_TABLE[1:]:
        if ratio <= upper:
            return zone, risk
    return CRITICAL_ZONE


def describe_zone(zone: LoadZone) -> Dict[str, str]:
    """Coach-facing label, description and recommended action for a zone."""
    return ZONE_GUIDANCE[zone]


def compute_load_sample(
    athlete_id: str,
    day: date,
    session: Optional[TrainingSession],
    previous: Optional[TrainingLoadSample],
) -> TrainingLoadSample:
    """
    Advance an athlete's smoothed load state by one day.

    Args:
        athlete_id: Athlete the sample belongs to
        day: Date the new sample is written for
        session: The previous day's completed session, if any
        previous: The athlete's most recent sample before ``day``

    Returns:
        The new TrainingLoadSample for ``day``
    """
    daily_load = calculate_session_load(session)

    acute = calculate_ewma(
        previous.acute_load if previous else None, daily_load, ACUTE_ALPHA
    )
    chronic = calculate_ewma(
        previous.chronic_load if previous else None, daily_load, CHRONIC_ALPHA
    )
    ratio = calculate_ratio(acute, chronic)
    zone, risk = classify_ratio(ratio)

    return TrainingLoadSample(
        athlete_id=athlete_id,
        date=day,
        daily_load=daily_load,
        acute_load=acute,
        chronic_load=chronic,
        ratio=ratio,
        zone=zone,
        injury_risk=risk,
    )

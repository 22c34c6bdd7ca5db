"""
Confidence scoring for autonomously proposed coaching actions.

Five factors, each normalised to 0-1, are combined with fixed weights:

- data freshness (15%): how old the perception snapshot is
- data completeness (25%): share of the expected data points present
- pattern strength (15%): confidence of detected behavioural patterns
- historical accuracy (10%): how often this action type was right before
- safety alignment (35%): whether the action protects the athlete

The weighted score decides whether an action may be applied automatically,
needs a human in the loop, or must not proceed.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..exceptions import ValidationError
from ..metrics.load import LoadZone
from .base import Decision, DecisionFactor, FactorWeight


class ActionType(str, Enum):
    """Kinds of action an autonomous agent can propose."""
    REDUCE_LOAD = "REDUCE_LOAD"
    REDUCE_INTENSITY = "REDUCE_INTENSITY"
    SKIP_WORKOUT = "SKIP_WORKOUT"
    REST_DAY = "REST_DAY"
    ESCALATE_TO_COACH = "ESCALATE_TO_COACH"
    FLAG_INJURY = "FLAG_INJURY"
    MODIFY_WORKOUT = "MODIFY_WORKOUT"
    INCREASE_LOAD = "INCREASE_LOAD"
    SEND_MESSAGE = "SEND_MESSAGE"
    SCHEDULE_CHECKIN = "SCHEDULE_CHECKIN"


class ActionUrgency(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ConfidenceLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class ActionGate(str, Enum):
    """What the confidence score allows the agent to do."""
    AUTO_APPLY = "AUTO_APPLY"
    SUPERVISED = "SUPERVISED"
    BLOCKED = "BLOCKED"


LOAD_REDUCTION_ACTIONS = frozenset({
    ActionType.REDUCE_LOAD,
    ActionType.REDUCE_INTENSITY,
    ActionType.SKIP_WORKOUT,
    ActionType.REST_DAY,
})
ESCALATION_ACTIONS = frozenset({
    ActionType.ESCALATE_TO_COACH,
    ActionType.FLAG_INJURY,
})

FACTOR_WEIGHTS: Dict[str, float] = {
    "data_freshness": 0.15,
    "data_completeness": 0.25,
    "pattern_strength": 0.15,
    "historical_accuracy": 0.10,
    "safety_alignment": 0.35,
}

FACTOR_LABELS: Dict[str, str] = {
    "data_freshness": "Data freshness",
    "data_completeness": "Data completeness",
    "pattern_strength": "Pattern strength",
    "historical_accuracy": "Historical accuracy",
    "safety_alignment": "Safety alignment",
}

DEFAULT_HISTORICAL_ACCURACY = 0.7

AUTO_APPLY_THRESHOLD = 0.8
SUPERVISED_THRESHOLD = 0.6

# (lower bound, level), checked in order
LEVEL_THRESHOLDS = [
    (0.95, ConfidenceLevel.VERY_HIGH),
    (AUTO_APPLY_THRESHOLD, ConfidenceLevel.HIGH),
    (SUPERVISED_THRESHOLD, ConfidenceLevel.MEDIUM),
]

SEVERITY_MULTIPLIERS: Dict[str, float] = {
    "CRITICAL": 1.0,
    "HIGH": 0.9,
    "MEDIUM": 0.7,
    "LOW": 0.5,
}
DEFAULT_SEVERITY_MULTIPLIER = 0.3
NO_PATTERN_STRENGTH = 0.5

LOAD_REDUCTION_SAFETY: Dict[LoadZone, float] = {
    LoadZone.CRITICAL: 1.0,
    LoadZone.DANGER: 0.95,
    LoadZone.CAUTION: 0.85,
}
LOAD_REDUCTION_DEFAULT_SAFETY = 0.7
URGENT_SAFETY = 1.0
ESCALATION_INJURED_SAFETY = 0.95
ESCALATION_DEFAULT_SAFETY = 0.7
DEFAULT_SAFETY = 0.6

EXPECTED_DATA_POINTS = 9


@dataclass
class ProposedAction:
    """An action proposed by the autonomous agent."""

    action_type: ActionType
    urgency: ActionUrgency = ActionUrgency.NORMAL


@dataclass
class ReadinessSnapshot:
    readiness_score: Optional[float] = None
    sleep_quality: Optional[float] = None
    hrv_status: Optional[str] = None
    fatigue_level: Optional[float] = None


@dataclass
class LoadSnapshot:
    acute_load: Optional[float] = None
    chronic_load: Optional[float] = None
    zone: Optional[LoadZone] = None


@dataclass
class DetectedPattern:
    name: str
    confidence: float  # 0-1


@dataclass
class BehaviorSnapshot:
    patterns: Optional[List[DetectedPattern]] = None
    overall_severity: Optional[str] = None


@dataclass
class PerceptionSnapshot:
    """What the agent knew about the athlete when it proposed the action."""

    captured_at: datetime
    readiness: Optional[ReadinessSnapshot] = None
    load: Optional[LoadSnapshot] = None
    behavior: Optional[BehaviorSnapshot] = None
    has_active_injury: bool = False


@dataclass
class ConfidenceAssessment(Decision):
    """Confidence score for a proposed action."""

    score: float = 0.0
    level: ConfidenceLevel = ConfidenceLevel.LOW
    breakdown: Dict[str, float] = field(default_factory=dict)

    @property
    def gate(self) -> ActionGate:
        return ActionGate(self.recommendation)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({
            "score": self.score,
            "level": self.level.value,
            "breakdown": {k: round(v, 3) for k, v in self.breakdown.items()},
            "can_auto_apply": can_auto_apply(self.score),
            "requires_supervision": requires_supervision(self.score),
            "blocked": is_blocked(self.score),
        })
        return result


def _snapshot_age_hours(captured_at: datetime, now: datetime) -> float:
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max(0.0, (now - captured_at).total_seconds() / 3600)


def score_data_freshness(age_hours: float) -> float:
    """
    1.0 under an hour old, decaying linearly to 0.5 at 6h and to 0.1 at 24h.
    Anything older scores 0.1.
    """
    if age_hours < 1:
        return 1.0
    if age_hours <= 6:
        return 1.0 - 0.5 * (age_hours - 1) / 5
    if age_hours <= 24:
        return 0.5 - 0.4 * (age_hours - 6) / 18
    return 0.1


def score_data_completeness(snapshot: PerceptionSnapshot) -> float:
    """Fraction of the nine expected data points that are present."""
    readiness = snapshot.readiness or ReadinessSnapshot()
    load = snapshot.load or LoadSnapshot()
    behavior = snapshot.behavior or BehaviorSnapshot()

    values = [
        readiness.readiness_score,
        readiness.sleep_quality,
        readiness.hrv_status,
        readiness.fatigue_level,
        load.acute_load,
        load.chronic_load,
        load.zone,
        behavior.patterns,
        behavior.overall_severity,
    ]
    present = sum(1 for v in values if v is not None)
    return present / EXPECTED_DATA_POINTS


def score_pattern_strength(behavior: Optional[BehaviorSnapshot]) -> float:
    """Average pattern confidence scaled by the overall severity grade."""
    if behavior is None or not behavior.patterns:
        return NO_PATTERN_STRENGTH

    avg_confidence = sum(p.confidence for p in behavior.patterns) / len(behavior.patterns)
    severity = (behavior.overall_severity or "").upper()
    multiplier = SEVERITY_MULTIPLIERS.get(severity, DEFAULT_SEVERITY_MULTIPLIER)
    return avg_confidence * multiplier


def score_safety_alignment(action: ProposedAction, snapshot: PerceptionSnapshot) -> float:
    """How strongly the action protects the athlete given their current state."""
    if action.urgency is ActionUrgency.URGENT:
        return URGENT_SAFETY

    if action.action_type in LOAD_REDUCTION_ACTIONS:
        zone = snapshot.load.zone if snapshot.load else None
        return LOAD_REDUCTION_SAFETY.get(zone, LOAD_REDUCTION_DEFAULT_SAFETY)

    if action.action_type in ESCALATION_ACTIONS:
        if snapshot.has_active_injury:
            return ESCALATION_INJURED_SAFETY
        return ESCALATION_DEFAULT_SAFETY

    return DEFAULT_SAFETY


def confidence_level(score: float) -> ConfidenceLevel:
    """Discretise a confidence score."""
    for lower, level in LEVEL_THRESHOLDS:
        if score >= lower:
            return level
    return ConfidenceLevel.LOW


def can_auto_apply(score: float) -> bool:
    return score >= AUTO_APPLY_THRESHOLD


def requires_supervision(score: float) -> bool:
    return SUPERVISED_THRESHOLD <= score < AUTO_APPLY_THRESHOLD


def is_blocked(score: float) -> bool:
    return score < SUPERVISED_THRESHOLD


def gate_for_score(score: float) -> ActionGate:
    if can_auto_apply(score):
        return ActionGate.AUTO_APPLY
    if score >= SUPERVISED_THRESHOLD:
        return ActionGate.SUPERVISED
    return ActionGate.BLOCKED


def _weight_class(weight: float) -> FactorWeight:
    if weight >= 0.25:
        return FactorWeight.HIGH
    if weight >= 0.15:
        return FactorWeight.MEDIUM
    return FactorWeight.LOW


def _factor_reasoning(name: str, value: float, age_hours: float) -> str:
    if name == "data_freshness":
        return f"Snapshot is {age_hours:.1f}h old"
    if name == "data_completeness":
        present = round(value * EXPECTED_DATA_POINTS)
        return f"{present} of {EXPECTED_DATA_POINTS} expected data points present"
    if name == "pattern_strength":
        return f"Pattern signal strength {value:.2f}"
    if name == "historical_accuracy":
        return f"Past accuracy for this action type {value:.0%}"
    return f"Safety alignment {value:.2f}"


def calculate_confidence(
    action: ProposedAction,
    snapshot: PerceptionSnapshot,
    historical_accuracy: Optional[float] = None,
    now: Optional[datetime] = None,
) -> ConfidenceAssessment:
    """
    Score how much a proposed action can be trusted.

    Args:
        action: The proposed action (type and urgency)
        snapshot: Perception snapshot the action was based on
        historical_accuracy: Prior accuracy for this action type (0-1);
            0.7 when unknown
        now: Reference time, defaults to the current UTC time

    Returns:
        ConfidenceAssessment with score, level and gate

    Raises:
        ValidationError: If historical_accuracy is outside 0-1
    """
    now = now or datetime.now(timezone.utc)
    age_hours = _snapshot_age_hours(snapshot.captured_at, now)

    if historical_accuracy is None:
        historical_accuracy = DEFAULT_HISTORICAL_ACCURACY
    elif not 0.0 <= historical_accuracy <= 1.0:
        raise ValidationError(
            f"Historical accuracy must be between 0 and 1, got {historical_accuracy}",
            field="historical_accuracy",
        )

    breakdown = {
        "data_freshness": score_data_freshness(age_hours),
        "data_completeness": score_data_completeness(snapshot),
        "pattern_strength": score_pattern_strength(snapshot.behavior),
        "historical_accuracy": historical_accuracy,
        "safety_alignment": score_safety_alignment(action, snapshot),
    }

    score = round(
        sum(FACTOR_WEIGHTS[name] * value for name, value in breakdown.items()), 2
    )
    level = confidence_level(score)
    gate = gate_for_score(score)

    factors = [
        DecisionFactor(
            label=FACTOR_LABELS[name],
            weight=_weight_class(FACTOR_WEIGHTS[name]),
            reasoning=_factor_reasoning(name, value, age_hours),
            score=value,
        )
        for name, value in breakdown.items()
    ]

    return ConfidenceAssessment(
        factors=factors,
        recommendation=gate.value,
        rationale=(
            f"Confidence {score:.2f} ({level.value}) for "
            f"{action.action_type.value.lower()}: {gate.value.lower().replace('_', ' ')}"
        ),
        score=score,
        level=level,
        breakdown=breakdown,
    )


def explain_confidence(assessment: ConfidenceAssessment) -> List[str]:
    """
    Operator-facing observations about a confidence assessment.

    Advisory text only, at most four lines.
    """
    breakdown = assessment.breakdown
    observations = []

    if breakdown.get("data_freshness", 1.0) < 0.5:
        observations.append("Athlete data is stale; a fresh check-in would raise confidence.")
    if breakdown.get("data_completeness", 1.0) < 0.7:
        missing = EXPECTED_DATA_POINTS - round(
            breakdown.get("data_completeness", 0.0) * EXPECTED_DATA_POINTS
        )
        observations.append(f"{missing} expected data points are missing.")
    if breakdown.get("pattern_strength", 0.0) >= 0.7:
        observations.append("Detected behaviour patterns strongly support this action.")
    if breakdown.get("safety_alignment", 0.0) >= 0.9:
        observations.append("Action is strongly aligned with athlete safety.")

    return observations[:4]

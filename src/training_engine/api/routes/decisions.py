"""Decision routes: action confidence and race acceptance."""

from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter
from pydantic import Field

from ...decisions.confidence import (
    ActionType,
    ActionUrgency,
    BehaviorSnapshot,
    DetectedPattern,
    LoadSnapshot,
    PerceptionSnapshot,
    ProposedAction,
    ReadinessSnapshot,
    calculate_confidence,
    explain_confidence,
)
from ...decisions.race_acceptance import (
    AthleteRaceStatus,
    GoalRace,
    MotivationLevel,
    PhaseGoal,
    ProposedRace,
    RaceImportance,
    recommend_race,
)
from ...metrics.load import LoadZone
from ..schemas import CamelModel, DecisionFactorResponse, factors_to_response


router = APIRouter()


# =============================================================================
# Confidence scoring
# =============================================================================


class ActionInput(CamelModel):
    action_type: ActionType
    urgency: ActionUrgency = ActionUrgency.NORMAL


class ReadinessInput(CamelModel):
    readiness_score: Optional[float] = None
    sleep_quality: Optional[float] = None
    hrv_status: Optional[str] = None
    fatigue_level: Optional[float] = None


class LoadInput(CamelModel):
    acute_load: Optional[float] = None
    chronic_load: Optional[float] = None
    zone: Optional[LoadZone] = None


class PatternInput(CamelModel):
    name: str
    confidence: float = Field(..., ge=0, le=1)


class BehaviorInput(CamelModel):
    patterns: Optional[List[PatternInput]] = None
    overall_severity: Optional[str] = None


class SnapshotInput(CamelModel):
    captured_at: datetime
    readiness: Optional[ReadinessInput] = None
    load: Optional[LoadInput] = None
    behavior: Optional[BehaviorInput] = None
    has_active_injury: bool = False

    def to_snapshot(self) -> PerceptionSnapshot:
        behavior = None
        if self.behavior is not None:
            patterns = None
            if self.behavior.patterns is not None:
                patterns = [
                    DetectedPattern(name=p.name, confidence=p.confidence)
                    for p in self.behavior.patterns
                ]
            behavior = BehaviorSnapshot(
                patterns=patterns,
                overall_severity=self.behavior.overall_severity,
            )
        return PerceptionSnapshot(
            captured_at=self.captured_at,
            readiness=ReadinessSnapshot(**self.readiness.model_dump()) if self.readiness else None,
            load=LoadSnapshot(**self.load.model_dump()) if self.load else None,
            behavior=behavior,
            has_active_injury=self.has_active_injury,
        )


class ConfidenceRequest(CamelModel):
    action: ActionInput
    snapshot: SnapshotInput
    historical_accuracy: Optional[float] = Field(None, ge=0, le=1)


class ConfidenceResponse(CamelModel):
    score: float
    level: str
    recommendation: str
    rationale: str
    factors: List[DecisionFactorResponse]
    breakdown: Dict[str, float]
    can_auto_apply: bool
    requires_supervision: bool
    blocked: bool
    explanations: List[str]


@router.post("/decisions/confidence", response_model=ConfidenceResponse)
def score_action_confidence(request: ConfidenceRequest) -> ConfidenceResponse:
    """Score how far an autonomously proposed action can be trusted."""
    action = ProposedAction(
        action_type=request.action.action_type,
        urgency=request.action.urgency,
    )
    assessment = calculate_confidence(
        action,
        request.snapshot.to_snapshot(),
        historical_accuracy=request.historical_accuracy,
    )
    data = assessment.to_dict()
    return ConfidenceResponse(
        score=assessment.score,
        level=assessment.level.value,
        recommendation=assessment.recommendation,
        rationale=assessment.rationale,
        factors=factors_to_response(assessment.factors),
        breakdown=data["breakdown"],
        can_auto_apply=data["can_auto_apply"],
        requires_supervision=data["requires_supervision"],
        blocked=data["blocked"],
        explanations=explain_confidence(assessment),
    )


# =============================================================================
# Race acceptance
# =============================================================================


class RaceInput(CamelModel):
    race_date: date
    importance: RaceImportance
    name: Optional[str] = None


class GoalRaceInput(CamelModel):
    race_date: date
    importance: RaceImportance = RaceImportance.A


class AthleteStatusInput(CamelModel):
    days_since_last_race: Optional[int] = Field(None, ge=0)
    workload_ratio: Optional[float] = Field(None, ge=0)
    phase_goals: List[PhaseGoal] = Field(default_factory=list)
    motivation: MotivationLevel = MotivationLevel.MODERATE


class RaceAcceptanceRequest(CamelModel):
    race: RaceInput
    status: AthleteStatusInput
    goal_race: Optional[GoalRaceInput] = None


class RaceAcceptanceResponse(CamelModel):
    recommendation: str
    rationale: str
    factors: List[DecisionFactorResponse]


@router.post("/decisions/race-acceptance", response_model=RaceAcceptanceResponse)
def race_acceptance(request: RaceAcceptanceRequest) -> RaceAcceptanceResponse:
    """Recommend whether an athlete should take on a proposed race."""
    goal = None
    if request.goal_race is not None:
        goal = GoalRace(
            race_date=request.goal_race.race_date,
            importance=request.goal_race.importance,
        )
    decision = recommend_race(
        ProposedRace(**request.race.model_dump()),
        AthleteRaceStatus(**request.status.model_dump()),
        goal,
    )
    return RaceAcceptanceResponse(
        recommendation=decision.recommendation,
        rationale=decision.rationale,
        factors=factors_to_response(decision.factors),
    )

"""
Race acceptance recommendation.

Runs a checklist of qualitative rules (recovery since the last race,
workload ratio, proximity to the goal race, active phase goals,
motivation and race importance). Each rule emits at most one factor.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, List, Optional

from ..metrics.load import DETRAINING_RATIO, OPTIMAL_UPPER_RATIO
from .base import Decision, DecisionFactor, FactorWeight, Vote, tally_votes


class RaceImportance(str, Enum):
    """A = season goal, B = important, C = minor/tune-up."""
    A = "A"
    B = "B"
    C = "C"


class PhaseGoal(str, Enum):
    VOLUME_BUILDING = "VOLUME_BUILDING"
    RECOVERY = "RECOVERY"
    COMPETITION = "COMPETITION"
    TAPER = "TAPER"


class MotivationLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class RaceRecommendation(str, Enum):
    DECLINE = "DECLINE"
    LIKELY_DECLINE = "LIKELY_DECLINE"
    ACCEPT_AS_TRAINING = "ACCEPT_AS_TRAINING"
    ACCEPT_WITH_MINI_TAPER = "ACCEPT_WITH_MINI_TAPER"


MIN_RECOVERY_DAYS = 7
FULL_RECOVERY_DAYS = 14

# Upper part of the optimal band
ELEVATED_RATIO = 1.2

GOAL_RACE_BLOCK_DAYS = 14
GOAL_RACE_CAUTION_DAYS = 21
GOAL_RACE_TUNE_UP_DAYS = 42

PHASE_GOAL_RULES = {
    PhaseGoal.VOLUME_BUILDING: (
        FactorWeight.MEDIUM, Vote.SKIP,
        "Racing interrupts the current volume-building block",
    ),
    PhaseGoal.RECOVERY: (
        FactorWeight.HIGH, Vote.SKIP,
        "Athlete is in a recovery phase",
    ),
    PhaseGoal.COMPETITION: (
        FactorWeight.MEDIUM, Vote.ACCEPT,
        "Competition phase - racing is part of the plan",
    ),
    PhaseGoal.TAPER: (
        FactorWeight.MEDIUM, Vote.SKIP,
        "Athlete is tapering for a goal race",
    ),
}

RECOMMENDATION_TEXT = {
    RaceRecommendation.DECLINE: "Decline: a high-priority factor rules this race out",
    RaceRecommendation.LIKELY_DECLINE: "Likely decline: more factors argue against racing",
    RaceRecommendation.ACCEPT_AS_TRAINING: "Accept as a training stimulus without tapering",
    RaceRecommendation.ACCEPT_WITH_MINI_TAPER: "Accept with a short taper of 3-5 days",
}


@dataclass
class ProposedRace:
    race_date: date
    importance: RaceImportance
    name: Optional[str] = None


@dataclass
class GoalRace:
    race_date: date
    importance: RaceImportance = RaceImportance.A


@dataclass
class AthleteRaceStatus:
    """Current state of the athlete relevant to racing."""

    days_since_last_race: Optional[int] = None
    workload_ratio: Optional[float] = None
    phase_goals: List[PhaseGoal] = field(default_factory=list)
    motivation: MotivationLevel = MotivationLevel.MODERATE


Rule = Callable[[ProposedRace, AthleteRaceStatus, Optional[GoalRace]], Optional[DecisionFactor]]


def _recovery_factor(race, status, goal) -> Optional[DecisionFactor]:
    days = status.days_since_last_race
    if days is None:
        return None
    if days < MIN_RECOVERY_DAYS:
        return DecisionFactor(
            label="Recovery since last race",
            weight=FactorWeight.HIGH,
            vote=Vote.SKIP,
            reasoning=f"Only {days} days since the last race; at least {MIN_RECOVERY_DAYS} needed",
        )
    if days < FULL_RECOVERY_DAYS:
        vote = Vote.CONSIDER if race.importance is RaceImportance.C else Vote.SKIP
        return DecisionFactor(
            label="Recovery since last race",
            weight=FactorWeight.MEDIUM,
            vote=vote,
            reasoning=f"{days} days since the last race; partial recovery",
        )
    return DecisionFactor(
        label="Recovery since last race",
        weight=FactorWeight.LOW,
        vote=Vote.ACCEPT,
        reasoning=f"{days} days since the last race; fully recovered",
    )


def _workload_factor(race, status, goal) -> Optional[DecisionFactor]:
    ratio = status.workload_ratio
    if ratio is None:
        return None
    if ratio > OPTIMAL_UPPER_RATIO:
        return DecisionFactor(
            label="Workload ratio",
            weight=FactorWeight.HIGH,
            vote=Vote.SKIP,
            reasoning=f"Workload ratio {ratio:.2f} is above {OPTIMAL_UPPER_RATIO}; injury risk elevated",
        )
    if ratio > ELEVATED_RATIO:
        vote = Vote.CONSIDER if race.importance is RaceImportance.C else Vote.SKIP
        return DecisionFactor(
            label="Workload ratio",
            weight=FactorWeight.MEDIUM,
            vote=vote,
            reasoning=f"Workload ratio {ratio:.2f} is at the top of the optimal range",
        )
    if ratio < DETRAINING_RATIO:
        return DecisionFactor(
            label="Workload ratio",
            weight=FactorWeight.MEDIUM,
            vote=Vote.CONSIDER,
            reasoning=f"Workload ratio {ratio:.2f} is low; a race adds useful stimulus",
        )
    return None


def _goal_race_factor(race, status, goal) -> Optional[DecisionFactor]:
    if goal is None:
        return None
    days = (goal.race_date - race.race_date).days
    goal_label = f"{goal.importance.value}-priority goal race"
    if days < 0:
        return None
    if days < GOAL_RACE_BLOCK_DAYS:
        return DecisionFactor(
            label="Goal race proximity",
            weight=FactorWeight.HIGH,
            vote=Vote.SKIP,
            reasoning=f"{goal_label} is only {days} days later",
        )
    if days < GOAL_RACE_CAUTION_DAYS:
        vote = Vote.CONSIDER if race.importance is RaceImportance.C else Vote.SKIP
        return DecisionFactor(
            label="Goal race proximity",
            weight=FactorWeight.MEDIUM,
            vote=vote,
            reasoning=f"{goal_label} is {days} days later; recovery would cut into the build-up",
        )
    if days <= GOAL_RACE_TUNE_UP_DAYS:
        if race.importance is RaceImportance.C:
            vote, reasoning = Vote.ACCEPT, f"Good tune-up {days} days before the {goal_label}"
        else:
            vote, reasoning = Vote.CONSIDER, f"{goal_label} is {days} days later"
        return DecisionFactor(
            label="Goal race proximity",
            weight=FactorWeight.LOW,
            vote=vote,
            reasoning=reasoning,
        )
    return None


def _phase_goal_rule(phase: PhaseGoal) -> Rule:
    weight, vote, reasoning = PHASE_GOAL_RULES[phase]

    def rule(race, status, goal) -> Optional[DecisionFactor]:
        if phase not in status.phase_goals:
            return None
        return DecisionFactor(
            label=f"Phase goal: {phase.value.lower().replace('_', ' ')}",
            weight=weight,
            vote=vote,
            reasoning=reasoning,
        )

    return rule


def _motivation_factor(race, status, goal) -> Optional[DecisionFactor]:
    if status.motivation is MotivationLevel.LOW:
        if race.importance is RaceImportance.C:
            return DecisionFactor(
                label="Motivation",
                weight=FactorWeight.MEDIUM,
                vote=Vote.CONSIDER,
                reasoning="Motivation is low; a low-key race may help rekindle it",
            )
        return DecisionFactor(
            label="Motivation",
            weight=FactorWeight.MEDIUM,
            vote=Vote.SKIP,
            reasoning="Motivation is low for a significant race",
        )
    if status.motivation is MotivationLevel.HIGH:
        return DecisionFactor(
            label="Motivation",
            weight=FactorWeight.LOW,
            vote=Vote.ACCEPT,
            reasoning="Athlete is motivated to race",
        )
    return None


def _importance_factor(race, status, goal) -> Optional[DecisionFactor]:
    if race.importance is RaceImportance.A:
        return DecisionFactor(
            label="Race importance",
            weight=FactorWeight.MEDIUM,
            vote=Vote.ACCEPT,
            reasoning="A-priority race",
        )
    return None


RULES: List[Rule] = [
    _recovery_factor,
    _workload_factor,
    _goal_race_factor,
    *(_phase_goal_rule(phase) for phase in PhaseGoal),
    _motivation_factor,
    _importance_factor,
]


def _accept_variant(importance: RaceImportance) -> RaceRecommendation:
    if importance is RaceImportance.C:
        return RaceRecommendation.ACCEPT_AS_TRAINING
    return RaceRecommendation.ACCEPT_WITH_MINI_TAPER


def aggregate_race_factors(
    factors: List[DecisionFactor],
    importance: RaceImportance,
) -> RaceRecommendation:
    """
    Turn race factors into a final category.

    Any HIGH-weight SKIP declines outright. Otherwise more SKIP than
    ACCEPT+CONSIDER votes means likely decline, and a clear ACCEPT lead
    means accept. Ties and CONSIDER-heavy mixes accept C races as training
    and decline anything bigger.
    """
    tally = tally_votes(factors)

    if tally.high_weight_skip:
        return RaceRecommendation.DECLINE
    if tally.skip > tally.positive:
        return RaceRecommendation.LIKELY_DECLINE
    if tally.accept > tally.skip and tally.accept >= tally.consider:
        return _accept_variant(importance)
    if importance is RaceImportance.C:
        return RaceRecommendation.ACCEPT_AS_TRAINING
    return RaceRecommendation.LIKELY_DECLINE


def recommend_race(
    race: ProposedRace,
    status: AthleteRaceStatus,
    goal_race: Optional[GoalRace] = None,
) -> Decision:
    """
    Recommend whether the athlete should take on a proposed race.

    Args:
        race: The race under consideration
        status: Recovery, workload, phase goals and motivation
        goal_race: Upcoming goal race, if any

    Returns:
        Decision with every triggered factor, the final category and a
        one-line rationale
    """
    factors = [
        factor
        for factor in (rule(race, status, goal_race) for rule in RULES)
        if factor is not None
    ]
    recommendation = aggregate_race_factors(factors, race.importance)

    tally = tally_votes(factors)
    rationale = (
        f"{RECOMMENDATION_TEXT[recommendation]} "
        f"({tally.skip} skip, {tally.consider} consider, {tally.accept} accept)"
    )

    return Decision(
        factors=factors,
        recommendation=recommendation.value,
        rationale=rationale,
    )

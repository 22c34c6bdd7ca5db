"""Weighted, explainable decisions."""

from .base import Decision, DecisionFactor, FactorWeight, Vote, VoteTally, tally_votes
from .confidence import (
    ActionGate,
    ActionType,
    ActionUrgency,
    ConfidenceAssessment,
    ConfidenceLevel,
    PerceptionSnapshot,
    ProposedAction,
    calculate_confidence,
    explain_confidence,
)
from .race_acceptance import (
    AthleteRaceStatus,
    GoalRace,
    ProposedRace,
    RaceImportance,
    RaceRecommendation,
    recommend_race,
)

__all__ = [
    "Decision",
    "DecisionFactor",
    "FactorWeight",
    "Vote",
    "VoteTally",
    "tally_votes",
    "ActionGate",
    "ActionType",
    "ActionUrgency",
    "ConfidenceAssessment",
    "ConfidenceLevel",
    "PerceptionSnapshot",
    "ProposedAction",
    "calculate_confidence",
    "explain_confidence",
    "AthleteRaceStatus",
    "GoalRace",
    "ProposedRace",
    "RaceImportance",
    "RaceRecommendation",
    "recommend_race",
]

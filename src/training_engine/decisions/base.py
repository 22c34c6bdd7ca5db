"""
Shared contract for weighted, explainable decisions.

A decision evaluates a fixed checklist of factors. Each factor carries a
weight class, a directional vote or a numeric contribution, and the
reasoning behind it. The aggregate keeps every factor so the outcome can
always be explained.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class FactorWeight(str, Enum):
    """How much a factor counts in the aggregate."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Vote(str, Enum):
    """Direction a factor pushes the decision."""
    SKIP = "SKIP"
    CONSIDER = "CONSIDER"
    ACCEPT = "ACCEPT"


@dataclass(frozen=True)
class DecisionFactor:
    """One labelled input to a decision."""

    label: str
    weight: FactorWeight
    reasoning: str
    vote: Optional[Vote] = None
    score: Optional[float] = None  # numeric contribution, 0-1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "label": self.label,
            "weight": self.weight.value,
            "vote": self.vote.value if self.vote else None,
            "score": round(self.score, 3) if self.score is not None else None,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class VoteTally:
    """Vote counts across a list of factors."""

    skip: int = 0
    consider: int = 0
    accept: int = 0
    high_weight_skip: bool = False

    @property
    def positive(self) -> int:
        """Votes that lean towards going ahead."""
        return self.accept + self.consider


def tally_votes(factors: Iterable[DecisionFactor]) -> VoteTally:
    """Count votes; factors without a vote are ignored."""
    counts = {vote: 0 for vote in Vote}
    high_weight_skip = False
    for factor in factors:
        if factor.vote is None:
            continue
        counts[factor.vote] += 1
        if factor.vote is Vote.SKIP and factor.weight is FactorWeight.HIGH:
            high_weight_skip = True
    return VoteTally(
        skip=counts[Vote.SKIP],
        consider=counts[Vote.CONSIDER],
        accept=counts[Vote.ACCEPT],
        high_weight_skip=high_weight_skip,
    )


@dataclass
class Decision:
    """Aggregate output: factors, a final category and a one-line rationale."""

    factors: List[DecisionFactor]
    recommendation: str
    rationale: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "factors": [f.to_dict() for f in self.factors],
            "recommendation": self.recommendation,
            "rationale": self.rationale,
        }

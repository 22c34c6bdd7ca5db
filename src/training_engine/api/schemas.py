"""Shared request/response models for the API."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ..decisions.base import DecisionFactor


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


class CamelModel(BaseModel):
    """Base model exposing camelCase field aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DecisionFactorResponse(CamelModel):
    """One factor of a decision."""

    label: str
    weight: str
    vote: Optional[str] = None
    score: Optional[float] = None
    reasoning: str

    @classmethod
    def from_factor(cls, factor: DecisionFactor) -> "DecisionFactorResponse":
        return cls(
            label=factor.label,
            weight=factor.weight.value,
            vote=factor.vote.value if factor.vote else None,
            score=round(factor.score, 3) if factor.score is not None else None,
            reasoning=factor.reasoning,
        )


def factors_to_response(factors: List[DecisionFactor]) -> List[DecisionFactorResponse]:
    return [DecisionFactorResponse.from_factor(f) for f in factors]

"""Team spell data model."""

from enum import StrEnum

from pydantic import BaseModel, Field

from .ability import AbilityEffect, TargetType


class SpellTiming(StrEnum):
    """When a team spell fires during battle."""
    EARLY = "early"  # Round 1
    MID = "mid"  # Any living ally below 70% HP
    LATE = "late"  # Any living ally below 40% HP


class Spell(BaseModel):
    """Team-wide spell cast once per battle."""
    id: str
    name: str
    description: str = ""
    target_type: TargetType
    effects: list[AbilityEffect] = Field(..., min_length=1)

    model_config = {"frozen": True}

"""Ability and effect data models.

Effects form a closed union discriminated on ``type``; every effect kind
has exactly one handler in the ability system.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


DamageType = Literal["physical", "magical", "true"]

ModifiableStat = Literal["attack", "armor", "speed", "initiative", "dodge", "attack_count", "range"]

TargetType = Literal[
    "self",
    "ally",
    "enemy",
    "area",
    "all_enemies",
    "all_allies",
    "lowest_hp_ally",
    "lowest_hp_enemy",
]

PassiveTrigger = Literal[
    "on_battle_start",
    "on_turn_start",
    "on_hit",
    "on_damaged",
    "on_kill",
    "on_death",
    "on_ally_death",
    "on_low_hp",
]


class _Effect(BaseModel):
    model_config = {"frozen": True}


class DamageEffect(_Effect):
    type: Literal["damage"] = "damage"
    value: int = 0
    damage_type: DamageType = "magical"
    attack_scaling: float = 0.0
    # Fraction of the triggering amount (thorns reflect)
    damage_ratio: float = 0.0


class HealEffect(_Effect):
    type: Literal["heal"] = "heal"
    value: int = 0
    attack_scaling: float = 0.0
    # Fraction of the triggering amount (lifesteal)
    damage_ratio: float = 0.0


class BuffEffect(_Effect):
    type: Literal["buff"] = "buff"
    stat: ModifiableStat
    value: Optional[int] = None
    percentage: Optional[float] = None
    duration: Optional[int] = Field(default=None, description="Rounds; None is permanent")
    stackable: bool = False
    max_stacks: int = 5


class DebuffEffect(_Effect):
    type: Literal["debuff"] = "debuff"
    stat: ModifiableStat
    value: Optional[int] = None
    percentage: Optional[float] = None
    duration: Optional[int] = Field(default=None, description="Rounds; None is permanent")
    stackable: bool = False
    max_stacks: int = 5


class StunEffect(_Effect):
    type: Literal["stun"] = "stun"
    duration: int = 1


class TauntEffect(_Effect):
    type: Literal["taunt"] = "taunt"
    duration: int = 1


class ShieldEffect(_Effect):
    type: Literal["shield"] = "shield"
    value: int
    attack_scaling: float = 0.0
    duration: Optional[int] = None


class DotEffect(_Effect):
    type: Literal["dot"] = "dot"
    value: int
    damage_type: DamageType = "magical"
    duration: int


class HotEffect(_Effect):
    type: Literal["hot"] = "hot"
    value: int
    duration: int


class CleanseEffect(_Effect):
    type: Literal["cleanse"] = "cleanse"
    count: Optional[int] = Field(default=None, description="Max effects removed; None removes all")


class DispelEffect(_Effect):
    type: Literal["dispel"] = "dispel"
    count: Optional[int] = Field(default=None, description="Max effects removed; None removes all")


class SummonEffect(_Effect):
    type: Literal["summon"] = "summon"
    summon_unit_id: str
    count: int = 1


AbilityEffect = Annotated[
    Union[
        DamageEffect,
        HealEffect,
        BuffEffect,
        DebuffEffect,
        StunEffect,
        TauntEffect,
        ShieldEffect,
        DotEffect,
        HotEffect,
        CleanseEffect,
        DispelEffect,
        SummonEffect,
    ],
    Field(discriminator="type"),
]


class ActiveAbility(BaseModel):
    """Ability used as a unit's action when ready."""
    type: Literal["active"] = "active"
    id: str
    name: str
    description: str = ""
    target_type: TargetType = "enemy"
    range: int = Field(default=1, ge=0)
    area_size: int = Field(default=0, ge=0, description="Square radius for area abilities")
    cooldown: int = Field(default=3, ge=0, description="Rounds before reuse")
    max_uses: Optional[int] = Field(default=None, ge=1, description="None is repeatable")
    effects: list[AbilityEffect] = Field(..., min_length=1)

    model_config = {"frozen": True}


class PassiveAbility(BaseModel):
    """Ability evaluated automatically whenever its trigger event occurs."""
    type: Literal["passive"] = "passive"
    id: str
    name: str
    description: str = ""
    trigger: PassiveTrigger
    trigger_threshold: Optional[float] = Field(default=None, description="HP ratio for on_low_hp")
    max_triggers: Optional[int] = None
    effects: list[AbilityEffect] = Field(..., min_length=1)

    model_config = {"frozen": True}


Ability = Annotated[Union[ActiveAbility, PassiveAbility], Field(discriminator="type")]

# Data Models
from .unit import UnitTemplate, UnitStats, UnitRole
from .ability import (
    Ability,
    AbilityEffect,
    ActiveAbility,
    PassiveAbility,
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
)
from .spell import Spell, SpellTiming

__all__ = [
    "UnitTemplate",
    "UnitStats",
    "UnitRole",
    "Ability",
    "AbilityEffect",
    "ActiveAbility",
    "PassiveAbility",
    "DamageEffect",
    "HealEffect",
    "BuffEffect",
    "DebuffEffect",
    "StunEffect",
    "TauntEffect",
    "ShieldEffect",
    "DotEffect",
    "HotEffect",
    "CleanseEffect",
    "DispelEffect",
    "SummonEffect",
    "Spell",
    "SpellTiming",
]

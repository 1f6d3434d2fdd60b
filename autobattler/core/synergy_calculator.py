"""Synergy Calculator for the battle engine.

Detects team synergies from role counts and applies their stat bonuses
to battle units once, at battle setup.
"""

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from .constants import (
    COMBAT_CONSTANTS,
    ROLE_CONTROL,
    ROLE_MAGE,
    ROLE_MELEE_DPS,
    ROLE_RANGED_DPS,
    ROLE_SUPPORT,
    ROLE_TANK,
)

if TYPE_CHECKING:
    from ..combat.combat_unit import BattleUnit


SYNERGY_STATS: Tuple[str, ...] = ("hp", "atk", "armor", "speed", "initiative", "dodge")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class SynergyBonus:
    """
    A single stat bonus.

    Attributes:
        stat: One of SYNERGY_STATS, or "all".
        percentage: Multiplier added to 1 (0.10 = +10%).
        flat: Optional flat amount added after the percentage.
    """

    stat: str
    percentage: float
    flat: Optional[int] = None


@dataclass(frozen=True)
class Synergy:
    """Synergy definition."""

    id: str
    name: str
    description: str
    required_roles: Tuple[Tuple[str, int], ...]
    bonuses: Tuple[SynergyBonus, ...]
    # Roles that must be absent from the team
    forbidden_roles: Tuple[str, ...] = ()


@dataclass
class ActiveSynergy:
    """A synergy active for a team, with the template IDs that enable it."""

    synergy: Synergy
    contributing_units: List[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.synergy.id


# =============================================================================
# SYNERGY DEFINITIONS
# =============================================================================
# Application order is the order of this tuple.
SYNERGIES: Tuple[Synergy, ...] = (
    # Role synergies
    Synergy(
        id="frontline",
        name="Frontline",
        description="+10% HP with 2+ tanks",
        required_roles=((ROLE_TANK, 2),),
        bonuses=(SynergyBonus("hp", 0.10),),
    ),
    Synergy(
        id="magic_circle",
        name="Magic Circle",
        description="+15% attack with 2+ mages",
        required_roles=((ROLE_MAGE, 2),),
        bonuses=(SynergyBonus("atk", 0.15),),
    ),
    Synergy(
        id="assassin_guild",
        name="Assassin Guild",
        description="+20% dodge with 2+ melee fighters",
        required_roles=((ROLE_MELEE_DPS, 2),),
        bonuses=(SynergyBonus("dodge", 0.20),),
    ),
    Synergy(
        id="ranger_corps",
        name="Ranger Corps",
        description="+10% attack and speed with 2+ ranged fighters",
        required_roles=((ROLE_RANGED_DPS, 2),),
        bonuses=(SynergyBonus("atk", 0.10), SynergyBonus("speed", 0.10)),
    ),
    Synergy(
        id="healing_aura",
        name="Healing Aura",
        description="+15% HP with 2+ supports",
        required_roles=((ROLE_SUPPORT, 2),),
        bonuses=(SynergyBonus("hp", 0.15),),
    ),
    # Composition synergies
    Synergy(
        id="balanced",
        name="Balanced",
        description="+5% to all stats with a tank, a melee fighter and a support",
        required_roles=((ROLE_TANK, 1), (ROLE_MELEE_DPS, 1), (ROLE_SUPPORT, 1)),
        bonuses=(SynergyBonus("all", 0.05),),
    ),
    Synergy(
        id="arcane_army",
        name="Arcane Army",
        description="+10% attack and initiative with a mage and a controller",
        required_roles=((ROLE_MAGE, 1), (ROLE_CONTROL, 1)),
        bonuses=(SynergyBonus("atk", 0.10), SynergyBonus("initiative", 0.10)),
    ),
    Synergy(
        id="iron_wall",
        name="Iron Wall",
        description="+20% armor with 3+ tanks",
        required_roles=((ROLE_TANK, 3),),
        bonuses=(SynergyBonus("armor", 0.20),),
    ),
    Synergy(
        id="glass_cannon",
        name="Glass Cannon",
        description="+25% attack with 3+ mages and no tanks",
        required_roles=((ROLE_MAGE, 3),),
        bonuses=(SynergyBonus("atk", 0.25),),
        forbidden_roles=(ROLE_TANK,),
    ),
    Synergy(
        id="swift_strike",
        name="Swift Strike",
        description="+15% initiative with a ranged and a melee fighter",
        required_roles=((ROLE_RANGED_DPS, 1), (ROLE_MELEE_DPS, 1)),
        bonuses=(SynergyBonus("initiative", 0.15),),
    ),
)


def get_synergy_by_id(synergy_id: str) -> Optional[Synergy]:
    """Get a synergy definition by ID."""
    for synergy in SYNERGIES:
        if synergy.id == synergy_id:
            return synergy
    return None


def count_roles(roles: Iterable[str]) -> Dict[str, int]:
    """Count units per role."""
    counts: Dict[str, int] = {}
    for role in roles:
        counts[role] = counts.get(role, 0) + 1
    return counts


def calculate_synergies(team: Iterable[Tuple[str, str]]) -> List[ActiveSynergy]:
    """
    Detect active synergies for a team.

    Args:
        team: (template_id, role) pairs, one per unit.

    Returns:
        Active synergies in definition order.
    """
    members = list(team)
    if not members:
        return []

    role_counts = count_roles(role for _, role in members)
    active: List[ActiveSynergy] = []

    for synergy in SYNERGIES:
        if any(role_counts.get(role, 0) < count for role, count in synergy.required_roles):
            continue
        if any(role_counts.get(role, 0) > 0 for role in synergy.forbidden_roles):
            continue

        required = {role for role, _ in synergy.required_roles}
        active.append(
            ActiveSynergy(
                synergy=synergy,
                contributing_units=[unit_id for unit_id, role in members if role in required],
            )
        )

    return active


def _apply_bonus(unit: "BattleUnit", stat: str, bonus: SynergyBonus, dodge_cap: float) -> None:
    multiplier = 1 + bonus.percentage
    stats = unit.stats

    if stat == "hp":
        stats.hp = round_half_up(stats.hp * multiplier)
        unit.max_hp = stats.hp
        unit.current_hp = round_half_up(unit.current_hp * multiplier)
        if bonus.flat is not None:
            stats.hp += bonus.flat
            unit.max_hp = stats.hp
            unit.current_hp += bonus.flat
    elif stat == "dodge":
        stats.dodge = min(dodge_cap, round_half_up(stats.dodge * multiplier))
        if bonus.flat is not None:
            stats.dodge = min(dodge_cap, stats.dodge + bonus.flat)
    else:
        value = round_half_up(getattr(stats, stat) * multiplier)
        if bonus.flat is not None:
            value += bonus.flat
        setattr(stats, stat, value)


def apply_synergy_bonuses(
    units: List["BattleUnit"],
    synergies: List[ActiveSynergy],
    dodge_cap: float = COMBAT_CONSTANTS["MAX_DODGE_CHANCE"],
) -> List["BattleUnit"]:
    """
    Apply synergy bonuses to a team's units, in place.

    Each bonus rounds half-up before the next one multiplies, so the
    result depends on the order of SYNERGIES.

    Args:
        units: Units of one team.
        synergies: Active synergies from calculate_synergies.
        dodge_cap: Maximum dodge after any dodge bonus.

    Returns:
        The same list of units.
    """
    for active in synergies:
        for bonus in active.synergy.bonuses:
            stats = SYNERGY_STATS if bonus.stat == "all" else (bonus.stat,)
            for unit in units:
                for stat in stats:
                    _apply_bonus(unit, stat, bonus, dodge_cap)
    return units


def calculate_total_stat_bonus(synergies: List[ActiveSynergy], stat: str) -> float:
    """Sum of percentage bonuses to a stat (informational, no compounding)."""
    total = 0.0
    for active in synergies:
        for bonus in active.synergy.bonuses:
            if bonus.stat == stat or bonus.stat == "all":
                total += bonus.percentage
    return total

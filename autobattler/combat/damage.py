"""Damage & Defense Resolver for the battle engine.

Physical damage is reduced by armor and floored at min_damage; magic
damage ignores armor. Dodge rolls draw from the battle's seeded PRNG.

Formula helpers take stat blocks (anything with atk, atk_count, armor and
dodge attributes, e.g. CombatStats or EffectiveStats) so callers can pass
either base or buff-modified stats. HP helpers take the unit and never
mutate it.
"""

from dataclasses import dataclass
from typing import Any, Tuple, Union

from ..core.config import (
    DEFAULT_BATTLE_CONFIG,
    DEFAULT_DAMAGE_CONFIG,
    BattleConfig,
    DamageConfig,
)
from ..core.random import SeededRandom, seeded_random


@dataclass(frozen=True)
class DamageOutcome:
    """Result of applying damage to a unit."""

    new_hp: int
    killed: bool
    overkill: int


@dataclass(frozen=True)
class HealOutcome:
    """Result of applying healing to a unit."""

    new_hp: int
    overheal: int


@dataclass(frozen=True)
class AttackOutcome:
    """Result of resolving one attack."""

    damage: int
    dodged: bool
    killed: bool
    new_hp: int
    overkill: int


def calculate_physical_damage(
    attacker: Any,
    target: Any,
    config: BattleConfig = DEFAULT_BATTLE_CONFIG,
    damage_config: DamageConfig = DEFAULT_DAMAGE_CONFIG,
) -> int:
    """
    Physical damage of one attack action.

    Args:
        attacker: Attacker stat block.
        target: Target stat block.
        config: Supplies the min_damage floor.
        damage_config: Supplies the raw formula.

    Returns:
        max(min_damage, formula(atk, armor, atk_count)).
    """
    effective_armor = max(0, target.armor)
    raw = damage_config.physical_formula(attacker.atk, effective_armor, attacker.atk_count)
    return max(config.min_damage, int(raw))


def calculate_magic_damage(
    attacker: Any,
    damage_config: DamageConfig = DEFAULT_DAMAGE_CONFIG,
) -> int:
    """Magic damage of one attack action. Armor plays no part."""
    return int(damage_config.magic_formula(attacker.atk, attacker.atk_count))


def effective_dodge_chance(target: Any, config: BattleConfig = DEFAULT_BATTLE_CONFIG) -> float:
    """Dodge probability in [0, 1], capped at dodge_cap_percent."""
    return max(0.0, min(target.dodge, config.dodge_cap_percent)) / 100


def roll_dodge(
    target: Any,
    rng: Union[SeededRandom, int],
    config: BattleConfig = DEFAULT_BATTLE_CONFIG,
) -> bool:
    """
    Roll whether an attack is dodged.

    Args:
        target: Target stat block.
        rng: Battle PRNG (one draw is consumed) or a plain integer seed.
        config: Supplies the dodge cap.

    Returns:
        True if the roll is below the capped dodge chance.
    """
    roll = rng.next() if isinstance(rng, SeededRandom) else seeded_random(rng)
    return roll < effective_dodge_chance(target, config)


def apply_damage(unit: Any, amount: int) -> DamageOutcome:
    """HP after damage, floored at 0. The unit is not modified."""
    new_hp = max(0, unit.current_hp - amount)
    overkill = amount - unit.current_hp if amount > unit.current_hp else 0
    return DamageOutcome(new_hp=new_hp, killed=new_hp == 0, overkill=overkill)


def apply_healing(unit: Any, amount: int) -> HealOutcome:
    """HP after healing, clamped at max_hp. The unit is not modified."""
    potential = unit.current_hp + amount
    new_hp = min(unit.max_hp, potential)
    return HealOutcome(new_hp=new_hp, overheal=max(0, potential - unit.max_hp))


def resolve_physical_attack(
    attacker_stats: Any,
    target: Any,
    target_stats: Any,
    rng: Union[SeededRandom, int],
    config: BattleConfig = DEFAULT_BATTLE_CONFIG,
    damage_config: DamageConfig = DEFAULT_DAMAGE_CONFIG,
) -> AttackOutcome:
    """
    Roll dodge, then compute physical damage against a unit.

    Args:
        attacker_stats: Attacker stat block.
        target: Target unit (for HP).
        target_stats: Target stat block (for armor and dodge).
        rng: Battle PRNG or seed for the dodge roll.
        config: Battle tuning.
        damage_config: Damage formulas.
    """
    if roll_dodge(target_stats, rng, config):
        return AttackOutcome(
            damage=0, dodged=True, killed=False, new_hp=target.current_hp, overkill=0
        )

    damage = calculate_physical_damage(attacker_stats, target_stats, config, damage_config)
    result = apply_damage(target, damage)
    return AttackOutcome(
        damage=damage,
        dodged=False,
        killed=result.killed,
        new_hp=result.new_hp,
        overkill=result.overkill,
    )


def resolve_magic_attack(
    attacker_stats: Any,
    target: Any,
    target_stats: Any,
    rng: Union[SeededRandom, int],
    config: BattleConfig = DEFAULT_BATTLE_CONFIG,
    damage_config: DamageConfig = DEFAULT_DAMAGE_CONFIG,
) -> AttackOutcome:
    """Compute magic damage against a unit. Dodge applies only if configured."""
    if config.dodge_affects_magic and roll_dodge(target_stats, rng, config):
        return AttackOutcome(
            damage=0, dodged=True, killed=False, new_hp=target.current_hp, overkill=0
        )

    damage = calculate_magic_damage(attacker_stats, damage_config)
    result = apply_damage(target, damage)
    return AttackOutcome(
        damage=damage,
        dodged=False,
        killed=result.killed,
        new_hp=result.new_hp,
        overkill=result.overkill,
    )


def calculate_armor_reduction(
    armor: int,
    incoming_damage: int,
    config: BattleConfig = DEFAULT_BATTLE_CONFIG,
) -> Tuple[int, int]:
    """
    Split incoming damage into what gets through and what armor blocks.

    Returns:
        (reduced_damage, damage_blocked)
    """
    effective_armor = max(0, armor)
    blocked = max(0, min(effective_armor, incoming_damage - config.min_damage))
    reduced = max(config.min_damage, incoming_damage - effective_armor)
    return reduced, blocked


def can_survive_damage(unit: Any, damage: int) -> bool:
    return unit.current_hp > damage

"""Targeting System for the battle engine.

Handles target selection logic including:
- Nearest enemy targeting (tanks, supports, controllers)
- Weakest enemy targeting (melee fighters)
- Highest threat targeting (ranged fighters, mages)
- Taunt, which overrides every strategy
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence

from ..core.config import DEFAULT_GRID_CONFIG, GridConfig
from ..core.constants import (
    CRITICAL_HP_THRESHOLD,
    ROLE_CONTROL,
    ROLE_MAGE,
    ROLE_MELEE_DPS,
    ROLE_RANGED_DPS,
    ROLE_SUPPORT,
    ROLE_TANK,
    WOUNDED_HP_THRESHOLD,
)
from .combat_unit import BattleUnit
from .grid import Grid, Position, is_in_range, is_valid_position, manhattan_distance


class TargetStrategy(Enum):
    """Target selection strategies."""

    NEAREST = "nearest"  # Minimum Manhattan distance
    WEAKEST = "weakest"  # Minimum current HP
    HIGHEST_THREAT = "highest_threat"  # Damage, missing HP, proximity, role


# Threat multiplier by the target's role
THREAT_ROLE_MODIFIERS: Dict[str, float] = {
    ROLE_MAGE: 1.3,
    ROLE_SUPPORT: 1.2,
    ROLE_RANGED_DPS: 1.1,
    ROLE_TANK: 0.8,
}

ROLE_STRATEGIES: Dict[str, TargetStrategy] = {
    ROLE_TANK: TargetStrategy.NEAREST,
    ROLE_MELEE_DPS: TargetStrategy.WEAKEST,
    ROLE_RANGED_DPS: TargetStrategy.HIGHEST_THREAT,
    ROLE_MAGE: TargetStrategy.HIGHEST_THREAT,
    ROLE_SUPPORT: TargetStrategy.NEAREST,
    ROLE_CONTROL: TargetStrategy.NEAREST,
}


def strategy_for_role(role: str) -> TargetStrategy:
    """Default targeting strategy for a unit role."""
    return ROLE_STRATEGIES.get(role, TargetStrategy.NEAREST)


def can_target(attacker: BattleUnit, target: BattleUnit, attack_range: Optional[int] = None) -> bool:
    """
    True iff the target is alive and within range.

    Args:
        attacker: Attacking unit.
        target: Candidate target.
        attack_range: Range to use instead of attacker.range (e.g. buffed).
    """
    if not target.alive:
        return False
    reach = attacker.range if attack_range is None else attack_range
    return is_in_range(attacker.position, target.position, reach)


def get_enemies_in_range(
    attacker: BattleUnit, enemies: Sequence[BattleUnit], attack_range: Optional[int] = None
) -> List[BattleUnit]:
    return [enemy for enemy in enemies if can_target(attacker, enemy, attack_range)]


def calculate_threat_level(enemy: BattleUnit, attacker: BattleUnit) -> float:
    """
    Threat score of an enemy from the attacker's point of view.

    (atk * atk_count + missing HP ratio * 50 + max(0, 10 - distance))
    multiplied by the enemy's role modifier.
    """
    if not enemy.alive:
        return 0.0

    damage_score = enemy.stats.atk * enemy.stats.atk_count
    survivability_score = (1 - enemy.hp_ratio) * 50
    proximity_score = max(0, 10 - manhattan_distance(attacker.position, enemy.position))
    modifier = THREAT_ROLE_MODIFIERS.get(enemy.role, 1.0)
    return (damage_score + survivability_score + proximity_score) * modifier


def _apply_strategy(
    attacker: BattleUnit, candidates: List[BattleUnit], strategy: TargetStrategy
) -> Optional[BattleUnit]:
    # min()/max() return the first extreme element, so ties keep list order
    if not candidates:
        return None
    if strategy == TargetStrategy.WEAKEST:
        return min(candidates, key=lambda u: u.current_hp)
    if strategy == TargetStrategy.HIGHEST_THREAT:
        return max(candidates, key=lambda u: calculate_threat_level(u, attacker))
    return min(candidates, key=lambda u: manhattan_distance(attacker.position, u.position))


def _find_taunter(attacker: BattleUnit, candidates: List[BattleUnit]) -> Optional[BattleUnit]:
    taunting = [unit for unit in candidates if unit.has_taunt]
    return _apply_strategy(attacker, taunting, TargetStrategy.NEAREST)


def select_target(
    attacker: BattleUnit,
    candidates: Sequence[BattleUnit],
    strategy: TargetStrategy = TargetStrategy.NEAREST,
    attack_range: Optional[int] = None,
) -> Optional[BattleUnit]:
    """
    Select an attack target among candidates in range.

    Priority: a taunting enemy in range, then the strategy over the
    in-range candidates.

    Returns:
        The chosen unit, or None if no candidate can be targeted.
    """
    eligible = get_enemies_in_range(attacker, candidates, attack_range)
    if not eligible:
        return None

    taunter = _find_taunter(attacker, eligible)
    if taunter is not None:
        return taunter

    return _apply_strategy(attacker, eligible, strategy)


def select_pursuit_target(
    attacker: BattleUnit,
    enemies: Sequence[BattleUnit],
    strategy: TargetStrategy = TargetStrategy.NEAREST,
) -> Optional[BattleUnit]:
    """
    Select the enemy to move toward when nothing is in range.

    A living taunter anywhere on the grid still wins over the strategy.
    """
    living = [enemy for enemy in enemies if enemy.alive]
    if not living:
        return None

    taunter = _find_taunter(attacker, living)
    if taunter is not None:
        return taunter

    return _apply_strategy(attacker, living, strategy)


def select_heal_target(allies: Sequence[BattleUnit]) -> Optional[BattleUnit]:
    """
    Select the ally a healing ability should target.

    Only allies below WOUNDED_HP_THRESHOLD qualify. Critical allies (below
    CRITICAL_HP_THRESHOLD) come first, then the lowest HP ratio, then the
    lowest instance ID.

    Returns:
        The ally to heal, or None if nobody is wounded enough.
    """
    wounded = [a for a in allies if a.alive and a.hp_ratio < WOUNDED_HP_THRESHOLD]
    critical = [a for a in wounded if a.hp_ratio < CRITICAL_HP_THRESHOLD]
    pool = critical or wounded
    if not pool:
        return None
    return min(pool, key=lambda a: (a.hp_ratio, a.instance_id))


def find_attack_positions(
    attacker: BattleUnit,
    target: BattleUnit,
    grid: Grid,
    config: GridConfig = DEFAULT_GRID_CONFIG,
    attack_range: Optional[int] = None,
) -> List[Position]:
    """
    Free cells from which the attacker could hit the target.

    The attacker's own cell counts as free. Cells are ordered by distance
    from the attacker, then row, then column.

    Returns:
        Candidate cells; empty if none exist.
    """
    reach = attacker.range if attack_range is None else attack_range
    positions = []
    for dy in range(-reach, reach + 1):
        for dx in range(-reach, reach + 1):
            if abs(dx) + abs(dy) > reach:
                continue
            cell_pos = Position(target.position.x + dx, target.position.y + dy)
            if not is_valid_position(cell_pos, config):
                continue
            cell = grid[cell_pos.y][cell_pos.x]
            if cell_pos != attacker.position and (cell.is_occupied or not cell.walkable):
                continue
            positions.append(cell_pos)

    positions.sort(key=lambda p: (manhattan_distance(attacker.position, p), p.y, p.x))
    return positions

"""Turn Order Scheduler for the battle engine.

The queue is rebuilt fresh at the start of every round: living units
sorted by initiative (descending), then speed (descending), then their
position in the input list.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .combat_unit import BattleUnit
from .grid import Team

StatsGetter = Callable[[BattleUnit], Any]


def _base_stats(unit: BattleUnit) -> Any:
    return unit.stats


def build_turn_queue(
    units: Sequence[BattleUnit], stats_of: StatsGetter = _base_stats
) -> List[BattleUnit]:
    """
    Build the turn queue for a round.

    Pure: the input is not modified, and equal inputs give equal output.
    Python's sort is stable, so exact ties keep input order.

    Args:
        units: All units (dead units are filtered out).
        stats_of: Returns the stat block to sort on (defaults to unit.stats).

    Returns:
        Living units in acting order.
    """
    living = [unit for unit in units if unit.alive]
    return sorted(
        living,
        key=lambda unit: (-stats_of(unit).initiative, -stats_of(unit).speed),
    )


def get_next_unit(queue: Sequence[BattleUnit]) -> Optional[BattleUnit]:
    """First living unit in the queue."""
    for unit in queue:
        if unit.alive:
            return unit
    return None


def remove_dead_units(queue: Sequence[BattleUnit]) -> List[BattleUnit]:
    return [unit for unit in queue if unit.alive]


def has_living_units(queue: Sequence[BattleUnit]) -> bool:
    return any(unit.alive for unit in queue)


def get_living_units_by_team(queue: Sequence[BattleUnit], team: Team) -> List[BattleUnit]:
    return [unit for unit in queue if unit.alive and unit.team == team]


def count_living_units_by_team(queue: Sequence[BattleUnit]) -> Dict[Team, int]:
    """Living unit count for each team."""
    counts = {Team.PLAYER: 0, Team.BOT: 0}
    for unit in queue:
        if unit.alive:
            counts[unit.team] += 1
    return counts


def find_unit_by_id(queue: Sequence[BattleUnit], instance_id: str) -> Optional[BattleUnit]:
    for unit in queue:
        if unit.instance_id == instance_id:
            return unit
    return None


@dataclass
class TurnQueueValidation:
    """Result of validate_turn_queue."""

    valid: bool
    errors: List[str] = field(default_factory=list)


def validate_turn_queue(queue: Sequence[BattleUnit]) -> TurnQueueValidation:
    """
    Check a queue for duplicate IDs and HP/alive mismatches.

    Returns:
        Validation result listing every problem found.
    """
    errors: List[str] = []
    seen = set()

    for unit in queue:
        if unit.instance_id in seen:
            errors.append(f"Duplicate unit instance ID: {unit.instance_id}")
        seen.add(unit.instance_id)

    for unit in queue:
        if unit.current_hp < 0:
            errors.append(f"Unit {unit.instance_id} has negative HP: {unit.current_hp}")
        if unit.current_hp == 0 and unit.alive:
            errors.append(f"Unit {unit.instance_id} has 0 HP but is marked alive")
        if unit.current_hp > 0 and not unit.alive:
            errors.append(f"Unit {unit.instance_id} has HP but is marked dead")

    return TurnQueueValidation(valid=not errors, errors=errors)


def is_turn_queue_sorted(
    queue: Sequence[BattleUnit], stats_of: StatsGetter = _base_stats
) -> bool:
    """True if living units are in non-increasing (initiative, speed) order."""
    living = [unit for unit in queue if unit.alive]
    for prev, curr in zip(living, living[1:]):
        prev_key = (stats_of(prev).initiative, stats_of(prev).speed)
        curr_key = (stats_of(curr).initiative, stats_of(curr).speed)
        if prev_key < curr_key:
            return False
    return True

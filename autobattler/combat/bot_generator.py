"""Bot team generation.

Builds deterministic bot rosters within a budget. Difficulty picks the
strategy:
- easy: random affordable units
- medium: one tank, melee and ranged unit first, then random fill
- hard: one of several preset compositions, then random fill
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import DEFAULT_GRID_CONFIG, GridConfig
from ..core.constants import ROLE_MELEE_DPS, ROLE_RANGED_DPS, ROLE_TANK
from ..core.exceptions import ConfigValidationError
from ..core.random import SeededRandom
from ..data.loaders import get_purchasable_units
from ..data.models.unit import UnitTemplate
from .battle_engine import RosterEntry
from .grid import Position

logger = logging.getLogger(__name__)

MAX_TEAM_SIZE = 8
BASIC_TEAM_SIZE = 6


class BotDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DIFFICULTY_BUDGETS: Dict[BotDifficulty, int] = {
    BotDifficulty.EASY: 20,
    BotDifficulty.MEDIUM: 25,
    BotDifficulty.HARD: 30,
}

# Preset compositions for hard bots
HARD_PRESETS: Tuple[Tuple[str, ...], ...] = (
    ("guardian", "rogue", "berserker", "warlock"),  # Tank + burst
    ("crossbowman", "enchanter", "mage", "priest"),  # Ranged + control
    ("knight", "archer", "mage", "bard"),  # Balanced
)

FRONT_LINE_ROLES = (ROLE_TANK, ROLE_MELEE_DPS)


def _fill(
    team: List[UnitTemplate],
    budget: int,
    candidates: Sequence[UnitTemplate],
    rng: SeededRandom,
    max_size: int,
) -> int:
    """Add shuffled affordable candidates until budget or size runs out. Returns budget left."""
    for template in rng.shuffle(candidates):
        if len(team) >= max_size:
            break
        if template.cost <= budget:
            team.append(template)
            budget -= template.cost
    return budget


def _easy_team(budget: int, pool: Sequence[UnitTemplate], rng: SeededRandom) -> List[UnitTemplate]:
    team: List[UnitTemplate] = []
    _fill(team, budget, pool, rng, BASIC_TEAM_SIZE)
    return team


def _medium_team(budget: int, pool: Sequence[UnitTemplate], rng: SeededRandom) -> List[UnitTemplate]:
    team: List[UnitTemplate] = []
    for role in (ROLE_TANK, ROLE_MELEE_DPS, ROLE_RANGED_DPS):
        affordable = [t for t in pool if t.role == role and t.cost <= budget]
        choice = rng.pick(rng.shuffle(affordable))
        if choice is not None:
            team.append(choice)
            budget -= choice.cost
    _fill(team, budget, pool, rng, BASIC_TEAM_SIZE)
    return team


def _hard_team(budget: int, pool: Sequence[UnitTemplate], rng: SeededRandom) -> List[UnitTemplate]:
    by_id = {t.id: t for t in pool}
    preset = HARD_PRESETS[rng.next_int(0, len(HARD_PRESETS) - 1)]

    team: List[UnitTemplate] = []
    for unit_id in preset:
        template = by_id.get(unit_id)
        if template is not None and template.cost <= budget:
            team.append(template)
            budget -= template.cost
    _fill(team, budget, pool, rng, MAX_TEAM_SIZE)
    return team


_STRATEGIES = {
    BotDifficulty.EASY: _easy_team,
    BotDifficulty.MEDIUM: _medium_team,
    BotDifficulty.HARD: _hard_team,
}


def place_bot_units(
    templates: Sequence[UnitTemplate],
    grid_config: GridConfig = DEFAULT_GRID_CONFIG,
) -> List[Position]:
    """
    Deployment cells for bot units, in template order.

    Tanks and melee units go to the enemy row closest to the player side,
    everything else to the row behind it. A full row spills over into the
    remaining enemy rows.

    Raises:
        ConfigValidationError: No player or enemy rows, or more units than
            enemy deployment cells.
    """
    if not grid_config.enemy_rows or not grid_config.player_rows:
        raise ConfigValidationError("Bot placement needs both player and enemy rows")
    rows = sorted(grid_config.enemy_rows, key=lambda row: _distance_to_player(row, grid_config))
    front_row = rows[0]
    back_row = rows[1] if len(rows) > 1 else rows[0]

    free: Dict[int, List[int]] = {row: list(range(grid_config.width)) for row in rows}
    positions: List[Position] = []

    for template in templates:
        preferred = front_row if template.role in FRONT_LINE_ROLES else back_row
        row = preferred if free[preferred] else next((r for r in rows if free[r]), None)
        if row is None:
            raise ConfigValidationError(
                f"Cannot place {len(templates)} units in {len(rows)} enemy rows"
            )
        positions.append(Position(free[row].pop(0), row))

    return positions


def _distance_to_player(row: int, grid_config: GridConfig) -> int:
    return min(abs(row - player_row) for player_row in grid_config.player_rows)


def generate_bot_team(
    budget: Optional[int] = None,
    seed: int = 0,
    grid_config: GridConfig = DEFAULT_GRID_CONFIG,
    difficulty: BotDifficulty = BotDifficulty.EASY,
    pool: Optional[Sequence[UnitTemplate]] = None,
) -> List[RosterEntry]:
    """
    Generate a bot roster.

    Args:
        budget: Total unit cost allowed (difficulty default if None).
        seed: Seed for every random choice.
        grid_config: Grid whose enemy rows receive the units.
        difficulty: Selection strategy.
        pool: Templates to choose from (purchasable catalog units if None).

    Returns:
        Roster entries in placement order; the same seed yields the same roster.
    """
    difficulty = BotDifficulty(difficulty)
    if budget is None:
        budget = DIFFICULTY_BUDGETS[difficulty]
    if pool is None:
        pool = get_purchasable_units()

    rng = SeededRandom(seed)
    templates = _STRATEGIES[difficulty](budget, list(pool), rng)
    positions = place_bot_units(templates, grid_config)

    logger.debug(
        "Generated %s bot team (budget %d, seed %d): %s",
        difficulty.value, budget, seed, [t.id for t in templates],
    )

    return [
        RosterEntry(unit_template_id=template.id, position=position)
        for template, position in zip(templates, positions)
    ]


def validate_bot_team(templates: Sequence[UnitTemplate], max_budget: int) -> bool:
    """Whether a team is non-empty, within size limits and within budget."""
    if not templates or len(templates) > MAX_TEAM_SIZE:
        return False
    return sum(t.cost for t in templates) <= max_budget

"""Engine configuration objects and their validators.

Configs are immutable and passed explicitly into every simulation call,
so concurrent battles with different settings never interfere.
"""

from dataclasses import dataclass, field
from typing import Callable, Tuple

from .constants import (
    BATTLE_LIMITS,
    COMBAT_CONSTANTS,
    ENEMY_ROWS,
    GRID_HEIGHT,
    GRID_WIDTH,
    PLAYER_ROWS,
)
from .exceptions import ConfigValidationError


PhysicalFormula = Callable[[int, int, int], int]
MagicFormula = Callable[[int, int], int]


def default_physical_formula(atk: int, armor: int, atk_count: int) -> int:
    """Raw physical damage before the minimum-damage floor."""
    return (atk - armor) * atk_count


def default_magic_formula(atk: int, atk_count: int) -> int:
    """Magic damage ignores armor."""
    return atk * atk_count


@dataclass(frozen=True)
class GridConfig:
    """
    Battlefield dimensions and deployment zones.

    Attributes:
        width: Number of columns (x axis).
        height: Number of rows (y axis).
        player_rows: Rows the player team may deploy into.
        enemy_rows: Rows the bot team may deploy into.
    """

    width: int = GRID_WIDTH
    height: int = GRID_HEIGHT
    player_rows: Tuple[int, ...] = PLAYER_ROWS
    enemy_rows: Tuple[int, ...] = ENEMY_ROWS

    def rows_for_team(self, team: str) -> Tuple[int, ...]:
        """Deployment rows for "player" or "bot"."""
        return self.player_rows if team == "player" else self.enemy_rows


@dataclass(frozen=True)
class BattleConfig:
    """Battle limits and combat tuning."""

    max_rounds: int = BATTLE_LIMITS["MAX_ROUNDS"]
    min_damage: int = BATTLE_LIMITS["MIN_DAMAGE"]
    dodge_cap_percent: float = COMBAT_CONSTANTS["MAX_DODGE_CHANCE"]
    dodge_affects_magic: bool = bool(COMBAT_CONSTANTS["DODGE_AFFECTS_MAGIC"])


@dataclass(frozen=True)
class DamageConfig:
    """Pluggable damage formulas."""

    physical_formula: PhysicalFormula = field(default=default_physical_formula)
    magic_formula: MagicFormula = field(default=default_magic_formula)


DEFAULT_GRID_CONFIG = GridConfig()
DEFAULT_BATTLE_CONFIG = BattleConfig()
DEFAULT_DAMAGE_CONFIG = DamageConfig()


# =============================================================================
# VALIDATORS
# =============================================================================


def validate_grid_config(config: GridConfig) -> None:
    """
    Validate grid dimensions and deployment zones.

    Raises:
        ConfigValidationError: With a descriptive message on the first problem.
    """
    if config.width <= 0 or config.height <= 0:
        raise ConfigValidationError("Grid dimensions must be positive")

    for row in config.player_rows:
        if row < 0 or row >= config.height:
            raise ConfigValidationError(f"Player row {row} is outside grid bounds")

    for row in config.enemy_rows:
        if row < 0 or row >= config.height:
            raise ConfigValidationError(f"Enemy row {row} is outside grid bounds")

    enemy_rows = set(config.enemy_rows)
    for row in config.player_rows:
        if row in enemy_rows:
            raise ConfigValidationError(
                f"Row {row} is assigned to both player and enemy deployment zones"
            )


def validate_battle_config(config: BattleConfig) -> None:
    """
    Validate battle limits.

    Raises:
        ConfigValidationError: With a descriptive message on the first problem.
    """
    if config.max_rounds <= 0:
        raise ConfigValidationError("Max rounds must be positive")

    if config.min_damage < 0:
        raise ConfigValidationError("Min damage cannot be negative")

    if config.dodge_cap_percent < 0 or config.dodge_cap_percent > 100:
        raise ConfigValidationError("Dodge cap must be between 0 and 100")


def validate_engine_config(grid: GridConfig, battle: BattleConfig) -> None:
    """Validate the full engine configuration (grid first, then battle)."""
    validate_grid_config(grid)
    validate_battle_config(battle)

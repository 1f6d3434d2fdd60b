# Core engine modules
from .constants import (
    GRID_WIDTH,
    GRID_HEIGHT,
    PLAYER_ROWS,
    ENEMY_ROWS,
    BATTLE_LIMITS,
    COMBAT_CONSTANTS,
    PATHFINDING_CONSTANTS,
    UNIT_ROLES,
)
from .exceptions import (
    AutobattlerError,
    ConfigValidationError,
    TeamSetupError,
    UnknownUnitError,
    BattleSimulationError,
)
from .random import SeededRandom, seeded_random, shuffle
from .config import (
    GridConfig,
    BattleConfig,
    DamageConfig,
    DEFAULT_GRID_CONFIG,
    DEFAULT_BATTLE_CONFIG,
    DEFAULT_DAMAGE_CONFIG,
    validate_grid_config,
    validate_battle_config,
    validate_engine_config,
)
from .synergy_calculator import (
    SYNERGIES,
    Synergy,
    SynergyBonus,
    ActiveSynergy,
    calculate_synergies,
    apply_synergy_bonuses,
    calculate_total_stat_bonus,
)

"""Autobattler Battle Constants."""

from typing import Final

# =============================================================================
# GRID
# =============================================================================
GRID_WIDTH: Final[int] = 8
GRID_HEIGHT: Final[int] = 10

# Deployment zones (rows each team may place units in at battle start)
PLAYER_ROWS: Final[tuple[int, ...]] = (0, 1)
ENEMY_ROWS: Final[tuple[int, ...]] = (8, 9)

# =============================================================================
# BATTLE LIMITS
# =============================================================================
BATTLE_LIMITS: Final[dict[str, int]] = {
    "MAX_ROUNDS": 100,
    "MIN_DAMAGE": 1,
    # Supervisory timeout for callers; never enforced inside the engine
    "SIMULATION_TIMEOUT_MS": 5000,
}

# =============================================================================
# COMBAT
# =============================================================================
COMBAT_CONSTANTS: Final[dict[str, float | bool]] = {
    "MAX_DODGE_CHANCE": 50,
    "DODGE_AFFECTS_MAGIC": False,
}

# =============================================================================
# PATHFINDING
# =============================================================================
PATHFINDING_CONSTANTS: Final[dict[str, int]] = {
    "MAX_ITERATIONS": 1000,
    "MOVEMENT_COST": 1,
}

# =============================================================================
# UNIT ROLES
# =============================================================================
ROLE_TANK: Final[str] = "tank"
ROLE_MELEE_DPS: Final[str] = "melee_dps"
ROLE_RANGED_DPS: Final[str] = "ranged_dps"
ROLE_MAGE: Final[str] = "mage"
ROLE_SUPPORT: Final[str] = "support"
ROLE_CONTROL: Final[str] = "control"

UNIT_ROLES: Final[tuple[str, ...]] = (
    ROLE_TANK,
    ROLE_MELEE_DPS,
    ROLE_RANGED_DPS,
    ROLE_MAGE,
    ROLE_SUPPORT,
    ROLE_CONTROL,
)

# =============================================================================
# SPELL TIMINGS
# =============================================================================
# A "mid" spell fires once any living ally drops below this HP ratio
SPELL_MID_HP_THRESHOLD: Final[float] = 0.7
# A "late" spell fires once any living ally drops below this HP ratio
SPELL_LATE_HP_THRESHOLD: Final[float] = 0.4


# =============================================================================
# AI
# =============================================================================
# Allies below this HP ratio are considered wounded for healing abilities
WOUNDED_HP_THRESHOLD: Final[float] = 0.5
# Wounded allies below this ratio are healed before any other
CRITICAL_HP_THRESHOLD: Final[float] = 0.25

# Minimum enemies hit before an area ability is worth casting
AOE_MIN_TARGETS: Final[int] = 2

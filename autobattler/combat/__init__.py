"""Battle simulation module.

This module provides a complete battle simulation system including:
- Grid positioning and A* pathfinding
- Turn order, targeting and damage resolution
- Abilities, status effects, passives and team spells
- Event log and battle state machine
- Monte Carlo win rate simulation and bot team generation
"""

# Grid
from .grid import Position, GridCell, Team, create_empty_grid, manhattan_distance

# Pathfinding
from .pathfinding import (
    PathFinder,
    PathNode,
    find_path,
    has_path,
    find_path_with_max_length,
    find_closest_reachable_position,
)

# Units
from .combat_unit import BattleUnit, CombatStats, StatusEffect, UnitSnapshot

# Damage
from .damage import (
    calculate_physical_damage,
    calculate_magic_damage,
    roll_dodge,
    apply_damage,
    apply_healing,
    resolve_physical_attack,
    resolve_magic_attack,
)

# Turn order
from .turn_order import build_turn_queue, validate_turn_queue, TurnQueueValidation

# Targeting
from .targeting import TargetStrategy, select_target, select_heal_target, calculate_threat_level

# Effects
from .status_effects import StatusEffectSystem, EffectiveStats
from .ability import AbilitySystem
from .passives import PassiveSystem
from .spells import SpellSystem, TeamSpell

# Events
from .events import BattleEvent, BattleEventEmitter, EventCollector, EventType

# Engine
from .battle_engine import (
    BattleEngine,
    BattlePhase,
    BattleResult,
    RosterEntry,
    simulate_battle,
    analyze_battle_result,
)

# Simulation
from .simulation import BattleSimulator, SimulationResult, quick_simulate

# Bot teams
from .bot_generator import BotDifficulty, generate_bot_team

__all__ = [
    # Grid
    "Position",
    "GridCell",
    "Team",
    "create_empty_grid",
    "manhattan_distance",
    # Pathfinding
    "PathFinder",
    "PathNode",
    "find_path",
    "has_path",
    "find_path_with_max_length",
    "find_closest_reachable_position",
    # Units
    "BattleUnit",
    "CombatStats",
    "StatusEffect",
    "UnitSnapshot",
    # Damage
    "calculate_physical_damage",
    "calculate_magic_damage",
    "roll_dodge",
    "apply_damage",
    "apply_healing",
    "resolve_physical_attack",
    "resolve_magic_attack",
    # Turn order
    "build_turn_queue",
    "validate_turn_queue",
    "TurnQueueValidation",
    # Targeting
    "TargetStrategy",
    "select_target",
    "select_heal_target",
    "calculate_threat_level",
    # Effects
    "StatusEffectSystem",
    "EffectiveStats",
    "AbilitySystem",
    "PassiveSystem",
    "SpellSystem",
    "TeamSpell",
    # Events
    "BattleEvent",
    "BattleEventEmitter",
    "EventCollector",
    "EventType",
    # Engine
    "BattleEngine",
    "BattlePhase",
    "BattleResult",
    "RosterEntry",
    "simulate_battle",
    "analyze_battle_result",
    # Simulation
    "BattleSimulator",
    "SimulationResult",
    "quick_simulate",
    # Bot teams
    "BotDifficulty",
    "generate_bot_team",
]

"""Battle Engine.

The round-by-round battle state machine that orchestrates all systems:
- Roster validation, unit placement and synergies
- Round loop (status ticks, spells, turn queue, move -> act)
- Win/draw detection
- Event log and result
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from ..core.config import (
    DEFAULT_BATTLE_CONFIG,
    DEFAULT_DAMAGE_CONFIG,
    DEFAULT_GRID_CONFIG,
    BattleConfig,
    DamageConfig,
    GridConfig,
    validate_engine_config,
)
from ..core.exceptions import BattleSimulationError, TeamSetupError, UnknownUnitError
from ..core.random import SeededRandom
from ..core.synergy_calculator import ActiveSynergy, apply_synergy_bonuses, calculate_synergies
from ..data.loaders import get_ability_by_id, get_spell_by_id, get_unit_by_id
from ..data.models.unit import UnitTemplate
from .ability import AbilitySystem
from .battle_context import DAMAGE_KIND_ATTACK, DAMAGE_KIND_DOT, BattleContext
from .combat_unit import BattleUnit, UnitSnapshot
from .damage import resolve_magic_attack, resolve_physical_attack
from .events import BattleEvent, BattleEventEmitter, EventCollector, EventType
from .grid import Position, Team, is_valid_position
from .passives import PassiveSystem
from .pathfinding import find_closest_reachable_position, find_path
from .spells import SpellSystem, TeamSpell
from .status_effects import EffectiveStats, StatusEffectSystem
from .targeting import (
    find_attack_positions,
    select_pursuit_target,
    select_target,
    strategy_for_role,
)
from .turn_order import build_turn_queue, validate_turn_queue

logger = logging.getLogger(__name__)

Winner = Literal["player", "bot", "draw"]


class BattlePhase(Enum):
    """Battle phases."""

    SETUP = auto()  # Validating and placing units
    ROUND_LOOP = auto()  # Rounds in progress
    FINISHED = auto()  # battle_end emitted


@dataclass(frozen=True)
class RosterEntry:
    """One unit a team places before battle."""

    unit_template_id: str
    position: Position


class FinalState(BaseModel):
    player_units: List[UnitSnapshot]
    bot_units: List[UnitSnapshot]


class BattleMetadata(BaseModel):
    total_rounds: int
    seed: int
    synergies: Dict[str, List[str]] = Field(default_factory=dict)


class BattleResult(BaseModel):
    """Outcome of a battle with its full event log."""

    events: List[BattleEvent]
    winner: Winner
    final_state: FinalState
    metadata: BattleMetadata


class BattleAnalysis(BaseModel):
    """Summary statistics of a battle result."""

    total_rounds: int
    total_events: int
    events_by_type: Dict[str, int]
    surviving_units: Dict[str, int]
    damage_dealt: Dict[str, int]


@dataclass
class BattleState:
    """Current state of a battle."""

    phase: BattlePhase = BattlePhase.SETUP
    current_round: int = 0
    winner: Optional[Winner] = None
    end_reason: Optional[str] = None
    synergies: Dict[Team, List[ActiveSynergy]] = field(default_factory=dict)


class BattleEngine:
    """
    Deterministic battle simulation engine.

    Usage:
        engine = BattleEngine(player_roster, bot_roster, seed=12345)
        result = engine.run_battle()

    Or round by round:
        engine.setup_battle()
        while engine.run_round():
            pass
        result = engine.get_result()
    """

    def __init__(
        self,
        player_roster: Sequence[RosterEntry],
        bot_roster: Sequence[RosterEntry],
        grid_config: GridConfig = DEFAULT_GRID_CONFIG,
        battle_config: BattleConfig = DEFAULT_BATTLE_CONFIG,
        damage_config: DamageConfig = DEFAULT_DAMAGE_CONFIG,
        seed: int = 0,
        spells: Optional[Mapping[str, Iterable[TeamSpell]]] = None,
        templates: Optional[Mapping[str, UnitTemplate]] = None,
    ):
        """
        Initialize battle engine.

        Args:
            player_roster: Player units and their deployment cells.
            bot_roster: Bot units and their deployment cells.
            grid_config: Grid dimensions and deployment rows.
            battle_config: Round limit and combat tuning.
            damage_config: Damage formulas.
            seed: Seed for every random draw in the battle.
            spells: Team spells keyed by "player" / "bot".
            templates: Extra unit templates, taking precedence over the catalog.
        """
        self.player_roster = list(player_roster)
        self.bot_roster = list(bot_roster)
        self.seed = seed
        self.templates = dict(templates or {})

        self.emitter = BattleEventEmitter()
        self.collector = EventCollector(self.emitter)
        self.state = BattleState()

        self.context = BattleContext(
            units=[],
            grid_config=grid_config,
            battle_config=battle_config,
            damage_config=damage_config,
            rng=SeededRandom(seed),
            emitter=self.emitter,
            status_effects=StatusEffectSystem(),
        )
        self.ability_system = AbilitySystem(self.context, get_ability_by_id, self._get_template)
        self.passives = PassiveSystem(self.context, self.ability_system, get_ability_by_id)
        self.context.passives = self.passives

        self.loadouts = {Team(team): list(team_spells) for team, team_spells in (spells or {}).items()}
        self.spell_system: Optional[SpellSystem] = None

    @property
    def units(self) -> List[BattleUnit]:
        return self.context.units

    def _get_template(self, template_id: str) -> UnitTemplate:
        if template_id in self.templates:
            return self.templates[template_id]
        return get_unit_by_id(template_id)

    # =========================================================================
    # SETUP
    # =========================================================================

    def setup_battle(self) -> None:
        """
        Validate inputs, place units, apply synergies and start-of-battle
        passives, and emit the round 0 round_start event.

        Raises:
            ConfigValidationError: Invalid grid or battle config.
            TeamSetupError: Invalid roster.
            UnknownUnitError: Unknown ability or spell ID.
        """
        if self.state.phase != BattlePhase.SETUP:
            raise BattleSimulationError("Battle already set up")

        config = self.context.grid_config
        validate_engine_config(config, self.context.battle_config)

        player_templates = self._validate_roster(self.player_roster, Team.PLAYER)
        bot_templates = self._validate_roster(self.bot_roster, Team.BOT)

        for team, roster, templates in (
            (Team.PLAYER, self.player_roster, player_templates),
            (Team.BOT, self.bot_roster, bot_templates),
        ):
            team_units = [
                BattleUnit.from_template(template, team, entry.position, index)
                for index, (entry, template) in enumerate(zip(roster, templates))
            ]
            synergies = calculate_synergies((t.id, t.role) for t in templates)
            apply_synergy_bonuses(team_units, synergies, self.context.battle_config.dodge_cap_percent)
            self.state.synergies[team] = synergies
            self.context.units.extend(team_units)

            logger.debug(
                "%s team: %d units, synergies: %s",
                team.value, len(team_units), [s.id for s in synergies] or "none",
            )

        for unit in self.units:
            self.ability_system.init_unit(unit)
        self.spell_system = SpellSystem(
            self.context, self.ability_system, get_spell_by_id, self.loadouts
        )

        self.context.emit(
            EventType.ROUND_START,
            metadata={
                "message": "Battle begins",
                "player_units": len(self.player_roster),
                "bot_units": len(self.bot_roster),
                "synergies": self._synergy_ids(),
            },
        )

        for unit in list(self.units):
            self.passives.on_battle_start(unit)

        self.state.phase = BattlePhase.ROUND_LOOP
        logger.debug("Battle set up with seed %d", self.seed)

    def _validate_roster(self, roster: Sequence[RosterEntry], team: Team) -> List[UnitTemplate]:
        config = self.context.grid_config
        rows = config.rows_for_team(team.value)
        errors: List[str] = []
        templates: List[UnitTemplate] = []
        seen: Dict[Position, int] = {}

        if not roster:
            errors.append("Team must contain at least one unit")

        for index, entry in enumerate(roster):
            try:
                templates.append(self._get_template(entry.unit_template_id))
            except UnknownUnitError:
                errors.append(f"Unit {index} has unknown template: {entry.unit_template_id}")

            pos = entry.position
            if not is_valid_position(pos, config):
                errors.append(f"Unit {index} position ({pos.x}, {pos.y}) is outside grid bounds")
            elif pos.y not in rows:
                errors.append(
                    f"Unit {index} position ({pos.x}, {pos.y}) is outside {team.value} deployment rows"
                )

            if pos in seen:
                errors.append(f"Units {seen[pos]} and {index} share position ({pos.x}, {pos.y})")
            else:
                seen[pos] = index

        if errors:
            raise TeamSetupError(team.value, errors)
        return templates

    # =========================================================================
    # ROUND LOOP
    # =========================================================================

    def run_round(self) -> bool:
        """
        Execute one full round.

        Returns:
            True if the battle continues, False once it has finished.

        Raises:
            BattleSimulationError: On an internal invariant violation.
        """
        if self.state.phase != BattlePhase.ROUND_LOOP:
            return False

        try:
            return self._run_round()
        except BattleSimulationError:
            logger.warning(
                "Battle aborted in round %d (seed %d)", self.state.current_round, self.seed,
                exc_info=True,
            )
            raise

    def _run_round(self) -> bool:
        if self.state.current_round >= self.context.battle_config.max_rounds:
            self._end_battle("draw", "Maximum rounds reached")
            return False

        self.state.current_round += 1
        self.context.round_number = self.state.current_round
        round_number = self.state.current_round

        self.context.emit(EventType.ROUND_START, metadata={"message": f"Round {round_number} begins"})

        # Step 1: status effects tick at the round boundary
        self._tick_status_effects()
        if self._check_battle_end():
            return False

        # Step 2: team spells
        for team in (Team.PLAYER, Team.BOT):
            self.spell_system.check_spells(team)
            if self._check_battle_end():
                return False

        # Step 3: turn queue, rebuilt fresh every round
        queue = build_turn_queue(self.units, self.context.effective_stats)
        validation = validate_turn_queue(queue)
        if not validation.valid:
            raise BattleSimulationError("; ".join(validation.errors), round_number)

        # Step 4: each unit's turn
        for unit in queue:
            if not unit.alive:
                continue  # Died earlier this round
            self._take_turn(unit)
            if self._check_battle_end():
                return False

        # Step 5: cooldowns tick at round end
        for unit in self.units:
            if unit.alive:
                self.ability_system.tick_cooldowns(unit)

        logger.debug(
            "Round %d done: %d player / %d bot units alive",
            round_number, len(self.context.living(Team.PLAYER)), len(self.context.living(Team.BOT)),
        )
        return True

    def _tick_status_effects(self) -> None:
        for unit in list(self.units):
            if not unit.alive:
                continue
            result = self.context.status_effects.tick(unit)
            if result.is_empty:
                continue

            self.context.emit(
                EventType.STATUS_TICK,
                unit.instance_id,
                target_id=unit.instance_id,
                metadata={
                    "dot_damage": result.dot_damage,
                    "hot_healing": result.hot_healing,
                    "expired": [s.source_ability_id for s in result.expired],
                },
            )
            for status, damage in result.dot_ticks:
                source = self.context.find_unit(status.source_unit_id)
                if source is not None:
                    source.total_damage_dealt += damage
                self.context.emit(
                    EventType.DAMAGE,
                    status.source_unit_id,
                    target_id=unit.instance_id,
                    damage=damage,
                    ability_id=status.source_ability_id,
                    metadata={"damage_type": status.effect.damage_type, "kind": DAMAGE_KIND_DOT},
                )
            if result.killed:
                killer_id = result.dot_ticks[-1][0].source_unit_id
                self.context.kill(unit, killer_id, self.context.find_unit(killer_id))
                continue
            for status, healing in result.hot_ticks:
                self.context.emit(
                    EventType.HEAL,
                    status.source_unit_id,
                    target_id=unit.instance_id,
                    healing=healing,
                    ability_id=status.source_ability_id,
                )
            self.passives.update_conditional(unit)

    def _take_turn(self, unit: BattleUnit) -> None:
        """Turn of one unit: passives, then ability, attack, or move and attack."""
        if not unit.alive:
            raise BattleSimulationError(
                f"Dead unit {unit.instance_id} cannot act", self.state.current_round
            )
        if unit.is_stunned:
            logger.debug("Round %d: %s is stunned", self.state.current_round, unit.instance_id)
            return

        self.passives.on_turn_start(unit)
        if not unit.alive or not self.context.enemies_of(unit):
            return

        if self.ability_system.try_use_ability(unit):
            return

        stats = self.context.effective_stats(unit)
        strategy = strategy_for_role(unit.role)
        enemies = self.context.enemies_of(unit)

        target = select_target(unit, enemies, strategy, stats.range)
        if target is None:
            pursuit = select_pursuit_target(unit, enemies, strategy)
            if pursuit is None:
                return
            self._move_toward(unit, pursuit, stats)
            target = select_target(unit, self.context.enemies_of(unit), strategy, stats.range)

        if target is not None:
            self._attack(unit, target, stats)

    def _move_toward(self, unit: BattleUnit, target: BattleUnit, stats: EffectiveStats) -> None:
        """Move up to speed cells toward a cell from which target is in range."""
        config = self.context.grid_config
        grid = self.context.build_grid()

        best_path: List[Position] = []
        for cell in find_attack_positions(unit, target, grid, config, stats.range):
            if cell == unit.position:
                return
            if best_path and len(best_path) - 1 <= unit.position.distance_to(cell):
                break  # No later cell can be reached sooner
            path = find_path(unit.position, cell, grid, config=config)
            if path and (not best_path or len(path) < len(best_path)):
                best_path = path

        if not best_path:
            fallback = find_closest_reachable_position(
                unit.position, target.position, grid, stats.speed, config
            )
            if fallback is None:
                return
            best_path = find_path(unit.position, fallback, grid, config=config)
            if not best_path:
                return

        steps = best_path[1: stats.speed + 1]
        destination = steps[-1]
        if not is_valid_position(destination, config) or grid[destination.y][destination.x].is_occupied:
            raise BattleSimulationError(
                f"Invalid move of {unit.instance_id} to {destination}", self.state.current_round
            )

        origin = unit.position
        unit.position = destination
        self.context.emit(
            EventType.MOVE,
            unit.instance_id,
            from_position=origin,
            to_position=destination,
            metadata={"path": [(p.x, p.y) for p in steps], "pursuing": target.instance_id},
        )

    def _attack(self, unit: BattleUnit, target: BattleUnit, stats: EffectiveStats) -> None:
        if not target.alive:
            raise BattleSimulationError(
                f"{unit.instance_id} attacked dead unit {target.instance_id}",
                self.state.current_round,
            )

        config = self.context.battle_config
        damage_config = self.context.damage_config
        target_stats = self.context.effective_stats(target)
        magical = unit.role == "mage"

        if magical:
            outcome = resolve_magic_attack(stats, target, target_stats, self.context.rng, config, damage_config)
        else:
            outcome = resolve_physical_attack(stats, target, target_stats, self.context.rng, config, damage_config)

        damage_type = "magical" if magical else "physical"
        self.context.emit(
            EventType.ATTACK,
            unit.instance_id,
            target_id=target.instance_id,
            damage=outcome.damage,
            metadata={"damage_type": damage_type, "dodged": outcome.dodged},
        )
        if outcome.dodged:
            return

        self.context.deal_damage(
            unit.instance_id, target, outcome.damage, damage_type, DAMAGE_KIND_ATTACK, source=unit
        )

    # =========================================================================
    # END OF BATTLE
    # =========================================================================

    def _check_battle_end(self) -> bool:
        player_alive = bool(self.context.living(Team.PLAYER))
        bot_alive = bool(self.context.living(Team.BOT))

        if player_alive and bot_alive:
            return False
        if not player_alive and not bot_alive:
            self._end_battle("draw", "All units eliminated")
        elif player_alive:
            self._end_battle("player", "Team eliminated")
        else:
            self._end_battle("bot", "Team eliminated")
        return True

    def _end_battle(self, winner: Winner, reason: str) -> None:
        self.state.winner = winner
        self.state.end_reason = reason
        self.context.emit(EventType.BATTLE_END, metadata={"winner": winner, "reason": reason})
        self.state.phase = BattlePhase.FINISHED
        self.collector.detach()
        logger.debug(
            "Battle finished in round %d: %s (%s)", self.state.current_round, winner, reason
        )

    def is_finished(self) -> bool:
        return self.state.phase == BattlePhase.FINISHED

    def run_battle(self) -> BattleResult:
        """
        Run the battle to completion.

        Returns:
            BattleResult with the full event log.
        """
        if self.state.phase == BattlePhase.SETUP:
            self.setup_battle()
        while self.run_round():
            pass
        return self.get_result()

    def get_result(self) -> BattleResult:
        if not self.is_finished():
            raise BattleSimulationError("Battle has not finished")

        return BattleResult(
            events=self.collector.events,
            winner=self.state.winner,
            final_state=FinalState(
                player_units=[u.snapshot() for u in self.units if u.team == Team.PLAYER],
                bot_units=[u.snapshot() for u in self.units if u.team == Team.BOT],
            ),
            metadata=BattleMetadata(
                total_rounds=self.state.current_round,
                seed=self.seed,
                synergies=self._synergy_ids(),
            ),
        )

    def _synergy_ids(self) -> Dict[str, List[str]]:
        return {
            team.value: [s.id for s in synergies]
            for team, synergies in self.state.synergies.items()
        }


def simulate_battle(
    player_roster: Sequence[RosterEntry],
    bot_roster: Sequence[RosterEntry],
    grid_config: GridConfig = DEFAULT_GRID_CONFIG,
    battle_config: BattleConfig = DEFAULT_BATTLE_CONFIG,
    damage_config: DamageConfig = DEFAULT_DAMAGE_CONFIG,
    seed: int = 0,
    spells: Optional[Mapping[str, Iterable[TeamSpell]]] = None,
    templates: Optional[Mapping[str, UnitTemplate]] = None,
) -> BattleResult:
    """
    Simulate a full battle.

    Same inputs and seed always produce the same event log and winner.

    Raises:
        ConfigValidationError: Invalid configs (TeamSetupError for rosters).
        BattleSimulationError: Internal invariant violation; the battle is aborted.
    """
    engine = BattleEngine(
        player_roster,
        bot_roster,
        grid_config=grid_config,
        battle_config=battle_config,
        damage_config=damage_config,
        seed=seed,
        spells=spells,
        templates=templates,
    )
    return engine.run_battle()


def analyze_battle_result(result: BattleResult) -> BattleAnalysis:
    """Count events by type, survivors per team, and damage dealt per team."""
    events_by_type: Dict[str, int] = {}
    for event in result.events:
        events_by_type[event.type] = events_by_type.get(event.type, 0) + 1

    damage_dealt = {"player": 0, "bot": 0}
    for event in result.events:
        if event.type != EventType.DAMAGE or event.damage is None:
            continue
        if event.actor_id.startswith("player_"):
            damage_dealt["player"] += event.damage
        elif event.actor_id.startswith("bot_"):
            damage_dealt["bot"] += event.damage

    return BattleAnalysis(
        total_rounds=result.metadata.total_rounds,
        total_events=len(result.events),
        events_by_type=events_by_type,
        surviving_units={
            "player": sum(1 for u in result.final_state.player_units if u.alive),
            "bot": sum(1 for u in result.final_state.bot_units if u.alive),
        },
        damage_dealt=damage_dealt,
    )

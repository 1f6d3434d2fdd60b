"""Shared state of one running battle.

Like the targeting and item-effect contexts of the combat engine, the
context bundles the references every subsystem needs (units, configs,
PRNG, emitter, status effects) and owns the single damage and healing
pipeline, so shields, deaths and passive triggers are handled the same
way for attacks, abilities, spells and status ticks.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from ..core.config import BattleConfig, DamageConfig, GridConfig
from ..core.exceptions import BattleSimulationError
from ..core.random import SeededRandom
from .combat_unit import BattleUnit
from .damage import apply_damage, apply_healing
from .events import SYSTEM_ACTOR, BattleEvent, BattleEventEmitter, EventType
from .grid import Grid, Team, create_grid_with_units
from .status_effects import EffectiveStats, StatusEffectSystem

if TYPE_CHECKING:
    from .passives import PassiveSystem


# Damage kinds; only attacks and abilities trigger on-hit / on-damaged passives
DAMAGE_KIND_ATTACK = "attack"
DAMAGE_KIND_ABILITY = "ability"
DAMAGE_KIND_DOT = "dot"
DAMAGE_KIND_REFLECT = "reflect"
TRIGGERING_KINDS = (DAMAGE_KIND_ATTACK, DAMAGE_KIND_ABILITY)


@dataclass(frozen=True)
class EffectSource:
    """
    Who is applying an effect.

    Attributes:
        actor_id: Instance ID for units, "{team}_spell_{id}" for spells.
        team: Team the source fights for.
        ability_id: Ability or spell being resolved.
        unit: The acting unit; None for team spells.
    """

    actor_id: str
    team: Team
    ability_id: str
    unit: Optional[BattleUnit] = None

    @classmethod
    def from_unit(cls, unit: BattleUnit, ability_id: str) -> "EffectSource":
        return cls(actor_id=unit.instance_id, team=unit.team, ability_id=ability_id, unit=unit)


@dataclass
class BattleContext:
    """Everything one battle's subsystems share."""

    units: List[BattleUnit]
    grid_config: GridConfig
    battle_config: BattleConfig
    damage_config: DamageConfig
    rng: SeededRandom
    emitter: BattleEventEmitter
    status_effects: StatusEffectSystem
    round_number: int = 0
    passives: Optional["PassiveSystem"] = None
    _next_index: Dict[Team, int] = field(default_factory=dict)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def living(self, team: Optional[Team] = None) -> List[BattleUnit]:
        return [u for u in self.units if u.alive and (team is None or u.team == team)]

    def allies_of(self, unit: BattleUnit) -> List[BattleUnit]:
        """Living units of the same team, including the unit itself."""
        return self.living(unit.team)

    def enemies_of(self, unit: BattleUnit) -> List[BattleUnit]:
        return self.living(unit.team.opponent)

    def find_unit(self, instance_id: str) -> Optional[BattleUnit]:
        for unit in self.units:
            if unit.instance_id == instance_id:
                return unit
        return None

    def effective_stats(self, unit: BattleUnit) -> EffectiveStats:
        return self.status_effects.get_modified_stats(unit)

    def build_grid(self) -> Grid:
        """Occupancy grid of the current living units."""
        return create_grid_with_units(self.units, self.grid_config)

    def next_unit_index(self, team: Team) -> int:
        """Index for the next instance ID on a team (roster size so far)."""
        if team not in self._next_index:
            self._next_index[team] = sum(1 for u in self.units if u.team == team)
        index = self._next_index[team]
        self._next_index[team] = index + 1
        return index

    def add_unit(self, unit: BattleUnit) -> None:
        if self.find_unit(unit.instance_id) is not None:
            raise BattleSimulationError(
                f"Duplicate unit instance ID: {unit.instance_id}", self.round_number
            )
        self.units.append(unit)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def emit(self, event_type: EventType, actor_id: str = SYSTEM_ACTOR, **fields) -> BattleEvent:
        """Create an event for the current round and dispatch it."""
        event = BattleEvent(round=self.round_number, type=event_type, actor_id=actor_id, **fields)
        self.emitter.emit(event)
        return event

    # =========================================================================
    # DAMAGE & HEALING
    # =========================================================================

    def deal_damage(
        self,
        source_id: str,
        target: BattleUnit,
        amount: int,
        damage_type: str,
        kind: str,
        ability_id: Optional[str] = None,
        source: Optional[BattleUnit] = None,
    ) -> int:
        """
        Apply damage to a unit through shields, then HP.

        Emits a damage event, followed by a death event if the unit dies.
        Attacks and abilities then trigger the target's on-damaged and the
        source's on-hit passives.

        Args:
            source_id: Actor ID recorded on the events.
            target: Living unit taking damage.
            amount: Damage before shields.
            damage_type: "physical", "magical" or "true" (informational).
            kind: One of the DAMAGE_KIND_* constants.
            ability_id: Ability, spell or effect source, if any.
            source: The damaging unit, if it is one.

        Returns:
            Damage that got through shields.

        Raises:
            BattleSimulationError: If the target is already dead.
        """
        if not target.alive:
            raise BattleSimulationError(
                f"Cannot damage dead unit {target.instance_id}", self.round_number
            )

        amount = max(0, amount)
        remaining, absorbed = self.status_effects.absorb_damage(target, amount)
        outcome = apply_damage(target, remaining)
        target.current_hp = outcome.new_hp
        target.total_damage_taken += remaining
        if source is not None:
            source.total_damage_dealt += remaining

        self.emit(
            EventType.DAMAGE,
            source_id,
            target_id=target.instance_id,
            damage=remaining,
            ability_id=ability_id,
            metadata={
                "damage_type": damage_type,
                "kind": kind,
                "absorbed": absorbed,
                "overkill": outcome.overkill,
                "remaining_hp": outcome.new_hp,
            },
        )

        if outcome.killed:
            self.kill(target, source_id, source)
        elif self.passives is not None:
            if kind in TRIGGERING_KINDS and remaining > 0 and source is not None:
                self.passives.on_damaged(target, source, remaining)
            self.passives.update_conditional(target)

        if (
            self.passives is not None
            and kind in TRIGGERING_KINDS
            and remaining > 0
            and source is not None
            and source.alive
        ):
            self.passives.on_hit(source, target, remaining)

        return remaining

    def kill(self, unit: BattleUnit, killer_id: str, killer: Optional[BattleUnit] = None) -> None:
        """Mark a unit dead and emit its death event."""
        unit.current_hp = 0
        unit.alive = False
        if killer is not None and killer is not unit:
            killer.kills += 1

        self.emit(
            EventType.DEATH,
            killer_id,
            target_id=unit.instance_id,
            killed_units=[unit.instance_id],
            to_position=unit.position,
        )

        if self.passives is not None:
            self.passives.on_death(unit)
            for ally in self.allies_of(unit):
                self.passives.on_ally_death(ally, unit)
            if killer is not None and killer.alive and killer is not unit:
                self.passives.on_kill(killer, unit)

    def heal(
        self,
        source_id: str,
        target: BattleUnit,
        amount: int,
        ability_id: Optional[str] = None,
        source: Optional[BattleUnit] = None,
    ) -> int:
        """
        Heal a living unit, clamped at max HP, and emit a heal event.

        Returns:
            HP actually restored (0 for dead units).
        """
        if not target.alive or amount <= 0:
            return 0

        outcome = apply_healing(target, amount)
        healed = outcome.new_hp - target.current_hp
        target.current_hp = outcome.new_hp
        if source is not None:
            source.total_healing_done += healed

        self.emit(
            EventType.HEAL,
            source_id,
            target_id=target.instance_id,
            healing=healed,
            ability_id=ability_id,
            metadata={"overheal": outcome.overheal, "remaining_hp": outcome.new_hp},
        )

        if self.passives is not None:
            self.passives.update_conditional(target)
        return healed

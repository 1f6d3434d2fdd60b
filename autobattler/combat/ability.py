"""Ability System for the battle engine.

Runs active abilities through their lifecycle (ready -> triggered ->
cooldown | consumed) and resolves every effect kind through a single
dispatcher shared with passives and team spells.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..core.constants import AOE_MIN_TARGETS
from ..core.exceptions import BattleSimulationError
from ..core.synergy_calculator import round_half_up
from ..data.models.ability import (
    Ability,
    AbilityEffect,
    ActiveAbility,
    BuffEffect,
    CleanseEffect,
    DamageEffect,
    DebuffEffect,
    DispelEffect,
    DotEffect,
    HealEffect,
    HotEffect,
    ShieldEffect,
    StunEffect,
    SummonEffect,
    TauntEffect,
)
from ..data.models.unit import UnitTemplate
from .battle_context import (
    DAMAGE_KIND_ABILITY,
    DAMAGE_KIND_REFLECT,
    BattleContext,
    EffectSource,
)
from .combat_unit import AbilityRuntime, AbilityState, BattleUnit
from .damage import calculate_armor_reduction
from .events import EventType
from .grid import (
    Position,
    Team,
    get_unit_at_position,
    get_units_in_aoe,
    is_in_range,
    is_valid_position,
)
from .targeting import select_heal_target, select_target, strategy_for_role

logger = logging.getLogger(__name__)

AbilityLookup = Callable[[str], Ability]
TemplateLookup = Callable[[str], UnitTemplate]


class AbilitySystem:
    """
    Manages active ability use and effect resolution.

    Usage:
        abilities = AbilitySystem(context, get_ability_by_id, get_unit_by_id)
        abilities.init_unit(unit)
        if abilities.try_use_ability(unit):
            ...  # the unit's action this turn was an ability
    """

    def __init__(
        self,
        context: BattleContext,
        ability_lookup: AbilityLookup,
        template_lookup: TemplateLookup,
    ):
        """
        Initialize ability system.

        Args:
            context: Shared battle context.
            ability_lookup: Resolves ability IDs to definitions.
            template_lookup: Resolves unit template IDs (for summons).
        """
        self.context = context
        self.ability_lookup = ability_lookup
        self.template_lookup = template_lookup

        # One handler per effect kind
        self._handlers: Dict[type, Callable[..., None]] = {
            DamageEffect: self._apply_damage,
            HealEffect: self._apply_heal,
            BuffEffect: self._apply_status,
            DebuffEffect: self._apply_status,
            StunEffect: self._apply_status,
            TauntEffect: self._apply_status,
            DotEffect: self._apply_status,
            HotEffect: self._apply_status,
            ShieldEffect: self._apply_shield,
            CleanseEffect: self._apply_cleanse,
            DispelEffect: self._apply_dispel,
            SummonEffect: self._apply_summon,
        }

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def init_unit(self, unit: BattleUnit) -> None:
        """Create runtime state for each of the unit's active abilities."""
        for ability_id in unit.abilities:
            ability = self.ability_lookup(ability_id)
            if isinstance(ability, ActiveAbility):
                unit.ability_states[ability_id] = AbilityRuntime(ability_id=ability_id)

    def get_active_abilities(self, unit: BattleUnit) -> List[ActiveAbility]:
        return [
            ability for ability in (self.ability_lookup(a) for a in unit.abilities)
            if isinstance(ability, ActiveAbility)
        ]

    def is_ready(self, unit: BattleUnit, ability_id: str) -> bool:
        runtime = unit.ability_states.get(ability_id)
        return runtime is not None and runtime.state == AbilityState.READY

    def try_use_ability(self, unit: BattleUnit) -> bool:
        """
        Use the first ready ability that has valid targets.

        Returns:
            True if an ability was used (the unit's action for the turn).
        """
        for ability in self.get_active_abilities(unit):
            if not self.is_ready(unit, ability.id):
                continue
            targets = self.resolve_targets(unit, ability)
            if targets:
                self.use_ability(unit, ability, targets)
                return True
        return False

    def use_ability(
        self, unit: BattleUnit, ability: ActiveAbility, targets: Sequence[BattleUnit]
    ) -> None:
        """
        Fire an ability at resolved targets and move it to cooldown.

        Raises:
            BattleSimulationError: If the caster is dead or the ability
                is not ready.
        """
        if not unit.alive:
            raise BattleSimulationError(
                f"Dead unit {unit.instance_id} cannot use {ability.id}",
                self.context.round_number,
            )
        runtime = unit.ability_states.get(ability.id)
        if runtime is None or runtime.state != AbilityState.READY:
            raise BattleSimulationError(
                f"Ability {ability.id} of {unit.instance_id} is not ready",
                self.context.round_number,
            )

        runtime.state = AbilityState.TRIGGERED
        self.context.emit(
            EventType.ABILITY,
            unit.instance_id,
            target_id=targets[0].instance_id if len(targets) == 1 else None,
            target_ids=[t.instance_id for t in targets],
            ability_id=ability.id,
            metadata={"target_type": ability.target_type},
        )
        logger.debug(
            "Round %d: %s uses %s on %d target(s)",
            self.context.round_number, unit.instance_id, ability.id, len(targets),
        )

        source = EffectSource.from_unit(unit, ability.id)
        for effect in ability.effects:
            self.apply_effect(effect, source, targets)

        runtime.uses += 1
        if ability.max_uses is not None and runtime.uses >= ability.max_uses:
            runtime.state = AbilityState.CONSUMED
        elif ability.cooldown > 0:
            runtime.state = AbilityState.COOLDOWN
            runtime.cooldown_remaining = ability.cooldown
        else:
            runtime.state = AbilityState.READY

    def tick_cooldowns(self, unit: BattleUnit) -> None:
        """Advance cooldowns by one round."""
        for runtime in unit.ability_states.values():
            if runtime.state != AbilityState.COOLDOWN:
                continue
            runtime.cooldown_remaining -= 1
            if runtime.cooldown_remaining <= 0:
                runtime.cooldown_remaining = 0
                runtime.state = AbilityState.READY

    # =========================================================================
    # TARGETING
    # =========================================================================

    def resolve_targets(self, unit: BattleUnit, ability: ActiveAbility) -> List[BattleUnit]:
        """
        Targets an ability would hit right now.

        Returns:
            Targets in resolution order; empty if the ability should not
            be used this turn.
        """
        context = self.context
        target_type = ability.target_type
        allies = context.allies_of(unit)
        enemies = context.enemies_of(unit)

        if target_type == "self":
            if not self._enemy_engaged(unit, ability):
                return []
            if any(isinstance(e, SummonEffect) for e in ability.effects):
                if self._free_cell_near(unit.position) is None:
                    return []
            return [unit]

        if target_type == "enemy":
            target = select_target(unit, enemies, strategy_for_role(unit.role), ability.range)
            return [target] if target is not None else []

        if target_type == "area":
            center = select_target(unit, enemies, strategy_for_role(unit.role), ability.range)
            if center is None:
                return []
            hit = get_units_in_aoe(
                center.position, ability.area_size, enemies, context.grid_config
            )
            if len(hit) < min(AOE_MIN_TARGETS, len(enemies)):
                return []
            return hit

        if target_type in ("ally", "lowest_hp_ally"):
            in_range = self._in_range(unit, allies, ability.range)
            if any(isinstance(e, HealEffect) for e in ability.effects):
                target = select_heal_target(in_range)
            else:
                target = min(in_range, key=lambda a: (a.hp_ratio, a.instance_id), default=None)
            return [target] if target is not None else []

        if target_type == "lowest_hp_enemy":
            in_range = self._in_range(unit, enemies, ability.range)
            return [min(in_range, key=lambda e: e.current_hp)] if in_range else []

        if target_type == "all_allies":
            return allies if self._enemy_engaged(unit, ability) else []

        if target_type == "all_enemies":
            return enemies

        raise BattleSimulationError(f"Unknown target type: {target_type}", context.round_number)

    def resolve_team_targets(self, team: Team, target_type: str) -> List[BattleUnit]:
        """
        Targets for a team spell. Spells have unlimited range.

        Returns:
            Targets; empty if the spell would have no effect.
        """
        allies = self.context.living(team)
        enemies = self.context.living(team.opponent)

        if target_type in ("self", "all_allies"):
            return allies
        if target_type in ("enemy", "area", "all_enemies"):
            return enemies
        if target_type in ("ally", "lowest_hp_ally"):
            wounded = [a for a in allies if a.current_hp < a.max_hp]
            return [min(wounded, key=lambda a: (a.hp_ratio, a.instance_id))] if wounded else []
        if target_type == "lowest_hp_enemy":
            return [min(enemies, key=lambda e: e.current_hp)] if enemies else []
        raise BattleSimulationError(
            f"Unknown target type: {target_type}", self.context.round_number
        )

    def _in_range(self, unit: BattleUnit, units: List[BattleUnit], reach: int) -> List[BattleUnit]:
        return [u for u in units if is_in_range(unit.position, u.position, reach)]

    def _enemy_engaged(self, unit: BattleUnit, ability: ActiveAbility) -> bool:
        # Self and team-wide buffs wait until an enemy is about to be in reach
        stats = self.context.effective_stats(unit)
        reach = max(ability.range, stats.range) + stats.speed
        return any(
            is_in_range(unit.position, enemy.position, reach)
            for enemy in self.context.enemies_of(unit)
        )

    # =========================================================================
    # EFFECT DISPATCH
    # =========================================================================

    def apply_effect(
        self,
        effect: AbilityEffect,
        source: EffectSource,
        targets: Sequence[BattleUnit],
        trigger_amount: int = 0,
    ) -> None:
        """
        Resolve one effect against its targets.

        Args:
            effect: Effect payload.
            source: Who applies it.
            targets: Units it applies to (dead ones are skipped).
            trigger_amount: Damage that triggered a passive, for ratio effects.

        Raises:
            BattleSimulationError: For an effect kind with no handler.
        """
        handler = self._handlers.get(type(effect))
        if handler is None:
            raise BattleSimulationError(
                f"No handler for effect type: {getattr(effect, 'type', type(effect).__name__)}",
                self.context.round_number,
            )
        handler(effect, source, targets, trigger_amount)

    def _scaled_amount(
        self, source: EffectSource, value: int, attack_scaling: float,
        damage_ratio: float, trigger_amount: int,
    ) -> int:
        amount = value
        if attack_scaling and source.unit is not None:
            amount += round_half_up(self.context.effective_stats(source.unit).atk * attack_scaling)
        if damage_ratio:
            amount += round_half_up(trigger_amount * damage_ratio)
        return amount

    def _apply_damage(
        self, effect: DamageEffect, source: EffectSource,
        targets: Sequence[BattleUnit], trigger_amount: int,
    ) -> None:
        amount = self._scaled_amount(
            source, effect.value, effect.attack_scaling, effect.damage_ratio, trigger_amount
        )
        kind = DAMAGE_KIND_REFLECT if effect.damage_ratio else DAMAGE_KIND_ABILITY

        for target in targets:
            if not target.alive:
                continue
            damage = amount
            if effect.damage_type == "physical":
                armor = self.context.effective_stats(target).armor
                damage, _ = calculate_armor_reduction(armor, amount, self.context.battle_config)
            if damage <= 0:
                continue
            self.context.deal_damage(
                source.actor_id, target, damage, effect.damage_type, kind,
                ability_id=source.ability_id, source=source.unit,
            )

    def _apply_heal(
        self, effect: HealEffect, source: EffectSource,
        targets: Sequence[BattleUnit], trigger_amount: int,
    ) -> None:
        amount = self._scaled_amount(
            source, effect.value, effect.attack_scaling, effect.damage_ratio, trigger_amount
        )
        for target in targets:
            self.context.heal(
                source.actor_id, target, amount, ability_id=source.ability_id, source=source.unit
            )

    def _apply_status(
        self, effect, source: EffectSource, targets: Sequence[BattleUnit], trigger_amount: int
    ) -> None:
        # Buffs, HoTs and taunt help the target; the rest hurt it
        helpful = effect.type in ("buff", "hot", "taunt")
        event_type = EventType.BUFF if helpful else EventType.DEBUFF

        for target in targets:
            applied = self.context.status_effects.apply_effect(
                target, effect, source.actor_id, source.ability_id
            )
            if not applied:
                continue
            self.context.emit(
                event_type,
                source.actor_id,
                target_id=target.instance_id,
                ability_id=source.ability_id,
                metadata=effect.model_dump(exclude_none=True),
            )

    def _apply_shield(
        self, effect: ShieldEffect, source: EffectSource,
        targets: Sequence[BattleUnit], trigger_amount: int,
    ) -> None:
        amount = self._scaled_amount(source, effect.value, effect.attack_scaling, 0.0, 0)
        for target in targets:
            shield = self.context.status_effects.add_shield(
                target, effect, amount, source.actor_id, source.ability_id
            )
            if shield is None:
                continue
            self.context.emit(
                EventType.BUFF,
                source.actor_id,
                target_id=target.instance_id,
                ability_id=source.ability_id,
                metadata={"type": "shield", "amount": amount, "duration": effect.duration},
            )

    def _apply_cleanse(
        self, effect: CleanseEffect, source: EffectSource,
        targets: Sequence[BattleUnit], trigger_amount: int,
    ) -> None:
        for target in targets:
            if not target.alive:
                continue
            removed = self.context.status_effects.cleanse(target, effect.count)
            self.context.emit(
                EventType.BUFF,
                source.actor_id,
                target_id=target.instance_id,
                ability_id=source.ability_id,
                metadata={"type": "cleanse", "removed": [s.kind for s in removed]},
            )

    def _apply_dispel(
        self, effect: DispelEffect, source: EffectSource,
        targets: Sequence[BattleUnit], trigger_amount: int,
    ) -> None:
        for target in targets:
            if not target.alive:
                continue
            removed = self.context.status_effects.dispel(target, effect.count)
            self.context.emit(
                EventType.DEBUFF,
                source.actor_id,
                target_id=target.instance_id,
                ability_id=source.ability_id,
                metadata={"type": "dispel", "removed": [s.kind for s in removed]},
            )

    def _apply_summon(
        self, effect: SummonEffect, source: EffectSource,
        targets: Sequence[BattleUnit], trigger_amount: int,
    ) -> None:
        template = self.template_lookup(effect.summon_unit_id)
        anchor = source.unit.position if source.unit is not None else None

        for _ in range(effect.count):
            cell = self._free_cell_near(anchor) if anchor is not None else None
            if cell is None:
                break
            summon = BattleUnit.from_template(
                template,
                source.team,
                cell,
                self.context.next_unit_index(source.team),
                is_summon=True,
            )
            self.context.add_unit(summon)
            self.init_unit(summon)
            self.context.emit(
                EventType.ABILITY,
                source.actor_id,
                target_id=summon.instance_id,
                to_position=cell,
                ability_id=source.ability_id,
                metadata={"summon": summon.template_id},
            )
            if self.context.passives is not None:
                self.context.passives.on_battle_start(summon)

    def _free_cell_near(self, origin: Position) -> Optional[Position]:
        """Nearest unoccupied cell to origin (radius 1, then 2), scan order."""
        config = self.context.grid_config
        for radius in (1, 2):
            for dy in range(-radius, radius + 1):
                for dx in range(-radius, radius + 1):
                    if abs(dx) + abs(dy) != radius:
                        continue
                    cell = Position(origin.x + dx, origin.y + dy)
                    if not is_valid_position(cell, config):
                        continue
                    if get_unit_at_position(cell, self.context.units) is None:
                        return cell
        return None

"""Passive abilities for the battle engine.

Passives are data: a trigger plus effects. The system evaluates a unit's
passives whenever their trigger occurs and resolves the effects through
the ability system's dispatcher.

Built-in passives:
- evasion: +15 dodge for the whole battle (on_battle_start)
- rage: +50% attack while below 50% HP (on_low_hp, conditional)
- thorns: reflect 20% of damage taken (on_damaged)
- lifesteal: heal for 20% of damage dealt (on_hit)
"""

import logging
from typing import List, Optional

from ..data.models.ability import (
    BuffEffect,
    CleanseEffect,
    HealEffect,
    HotEffect,
    PassiveAbility,
    ShieldEffect,
    SummonEffect,
    TauntEffect,
)
from .ability import AbilityLookup, AbilitySystem
from .battle_context import BattleContext, EffectSource
from .combat_unit import BattleUnit
from .events import EventType

logger = logging.getLogger(__name__)

# Effects that always land on the passive's owner
SELF_EFFECTS = (BuffEffect, HealEffect, HotEffect, ShieldEffect, TauntEffect, CleanseEffect, SummonEffect)


class PassiveSystem:
    """
    Evaluates passive abilities on their trigger events.

    Usage:
        passives = PassiveSystem(context, ability_system, get_ability_by_id)
        context.passives = passives
        passives.on_battle_start(unit)
    """

    def __init__(
        self,
        context: BattleContext,
        ability_system: AbilitySystem,
        ability_lookup: AbilityLookup,
    ):
        self.context = context
        self.ability_system = ability_system
        self.ability_lookup = ability_lookup

    def get_passives(self, unit: BattleUnit, trigger: Optional[str] = None) -> List[PassiveAbility]:
        """A unit's passive abilities, optionally filtered by trigger."""
        passives = []
        for ability_id in unit.abilities:
            ability = self.ability_lookup(ability_id)
            if isinstance(ability, PassiveAbility) and (trigger is None or ability.trigger == trigger):
                passives.append(ability)
        return passives

    # =========================================================================
    # TRIGGERS
    # =========================================================================

    def on_battle_start(self, unit: BattleUnit) -> None:
        self._trigger(unit, "on_battle_start")
        self.update_conditional(unit)

    def on_turn_start(self, unit: BattleUnit) -> None:
        self._trigger(unit, "on_turn_start")

    def on_hit(self, unit: BattleUnit, target: BattleUnit, damage: int) -> None:
        """The unit dealt damage with an attack or ability."""
        self._trigger(unit, "on_hit", other=target, amount=damage)

    def on_damaged(self, unit: BattleUnit, attacker: BattleUnit, damage: int) -> None:
        """The unit took damage from an attack or ability."""
        self._trigger(unit, "on_damaged", other=attacker, amount=damage)

    def on_kill(self, unit: BattleUnit, victim: BattleUnit) -> None:
        self._trigger(unit, "on_kill", other=victim)

    def on_death(self, unit: BattleUnit) -> None:
        self._trigger(unit, "on_death", allow_dead=True)

    def on_ally_death(self, unit: BattleUnit, ally: BattleUnit) -> None:
        self._trigger(unit, "on_ally_death", other=ally)

    def update_conditional(self, unit: BattleUnit) -> None:
        """
        Switch on_low_hp passives on or off for the unit's current HP.

        The passive's effects are applied while HP is below the threshold
        and removed once it climbs back to or above it.
        """
        for passive in self.get_passives(unit, "on_low_hp"):
            threshold = passive.trigger_threshold if passive.trigger_threshold is not None else 0.5
            below = unit.alive and unit.hp_ratio < threshold
            active = passive.id in unit.conditional_passives

            if below and not active:
                unit.conditional_passives.add(passive.id)
                logger.debug("%s: %s activated", unit.instance_id, passive.id)
                self._resolve(unit, passive)
            elif not below and active:
                unit.conditional_passives.discard(passive.id)
                removed = self.context.status_effects.remove_effects_from_ability(unit, passive.id)
                if removed and unit.alive:
                    self.context.emit(
                        EventType.DEBUFF,
                        unit.instance_id,
                        target_id=unit.instance_id,
                        ability_id=passive.id,
                        metadata={"type": "passive_expired", "removed": [s.kind for s in removed]},
                    )

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def _trigger(
        self,
        unit: BattleUnit,
        trigger: str,
        other: Optional[BattleUnit] = None,
        amount: int = 0,
        allow_dead: bool = False,
    ) -> None:
        if not unit.alive and not allow_dead:
            return
        for passive in self.get_passives(unit, trigger):
            count = unit.passive_triggers.get(passive.id, 0)
            if passive.max_triggers is not None and count >= passive.max_triggers:
                continue
            unit.passive_triggers[passive.id] = count + 1
            self._resolve(unit, passive, other, amount)

    def _resolve(
        self,
        unit: BattleUnit,
        passive: PassiveAbility,
        other: Optional[BattleUnit] = None,
        amount: int = 0,
    ) -> None:
        source = EffectSource.from_unit(unit, passive.id)
        for effect in passive.effects:
            if isinstance(effect, SELF_EFFECTS):
                targets = [unit]
            elif other is not None and other.alive and other.team != unit.team:
                targets = [other]
            else:
                continue
            self.ability_system.apply_effect(effect, source, targets, trigger_amount=amount)

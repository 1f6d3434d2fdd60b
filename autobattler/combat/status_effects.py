"""Status Effects System for the battle engine.

Handles buffs, debuffs and crowd control effects including:
- Stun and taunt
- Damage and healing over time (ticked once per round)
- Stat modifiers (flat and percentage, stackable)
- Shields
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.synergy_calculator import round_half_up
from ..data.models.ability import ShieldEffect
from .combat_unit import BattleUnit, ShieldInstance, StatusEffect, StatusPayload


# Modifiable stat name -> CombatStats attribute
STAT_ATTRIBUTES: Dict[str, str] = {
    "attack": "atk",
    "attack_count": "atk_count",
    "armor": "armor",
    "speed": "speed",
    "initiative": "initiative",
    "dodge": "dodge",
    "range": "range",
}


@dataclass(frozen=True)
class EffectiveStats:
    """Stats after buffs and debuffs. HP is never modified by effects."""

    atk: int
    atk_count: int
    armor: int
    speed: int
    initiative: int
    dodge: int
    range: int


@dataclass
class TickResult:
    """
    Outcome of one round-boundary tick on a unit.

    Attributes:
        dot_ticks: (effect, damage) per damage-over-time effect, in order.
        hot_ticks: (effect, healing) per heal-over-time effect, in order.
        dot_damage: Total DoT damage dealt.
        hot_healing: Total HoT healing received.
        expired: Effects removed because their duration ran out.
        killed: True if DoT damage killed the unit.
    """

    dot_ticks: List[Tuple[StatusEffect, int]] = field(default_factory=list)
    hot_ticks: List[Tuple[StatusEffect, int]] = field(default_factory=list)
    dot_damage: int = 0
    hot_healing: int = 0
    expired: List[StatusEffect] = field(default_factory=list)
    killed: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.dot_ticks or self.hot_ticks or self.expired)


class StatusEffectSystem:
    """
    Applies, stacks, ticks and removes status effects on battle units.

    Effects live on the unit itself, so the system holds no per-battle state.

    Usage:
        effects = StatusEffectSystem()
        effects.apply_effect(unit, buff, source_unit_id, ability_id)
        stats = effects.get_modified_stats(unit)
    """

    def apply_effect(
        self,
        unit: BattleUnit,
        effect: StatusPayload,
        source_unit_id: str,
        source_ability_id: str,
    ) -> bool:
        """
        Apply a status effect to a unit.

        An effect of the same kind from the same ability either gains a
        stack (stackable buffs/debuffs below max_stacks) or has its
        duration refreshed to the longer of the two.

        Returns:
            True if the effect was applied, stacked or refreshed.
        """
        if not unit.alive:
            return False

        duration = effect.duration
        existing = self._find_effect(unit, effect, source_ability_id)

        if existing is not None:
            stackable = getattr(effect, "stackable", False)
            max_stacks = getattr(effect, "max_stacks", 1)
            if stackable and existing.stacks < max_stacks:
                existing.stacks += 1
            existing.remaining_duration = self._longer(existing.remaining_duration, duration)
            return True

        unit.status_effects.append(
            StatusEffect(
                effect=effect,
                source_unit_id=source_unit_id,
                source_ability_id=source_ability_id,
                remaining_duration=duration,
            )
        )
        return True

    def remove_effects_from_ability(self, unit: BattleUnit, ability_id: str) -> List[StatusEffect]:
        """Remove every effect a given ability applied."""
        removed = [e for e in unit.status_effects if e.source_ability_id == ability_id]
        unit.status_effects = [e for e in unit.status_effects if e.source_ability_id != ability_id]
        return removed

    def cleanse(self, unit: BattleUnit, count: Optional[int] = None) -> List[StatusEffect]:
        """
        Remove harmful effects (debuffs, stuns, DoTs), oldest first.

        Args:
            unit: Target unit.
            count: Maximum number removed; None removes all.
        """
        return self._remove_matching(unit, lambda e: e.is_harmful, count)

    def dispel(self, unit: BattleUnit, count: Optional[int] = None) -> List[StatusEffect]:
        """
        Remove timed beneficial effects (buffs, HoTs) and all shields.

        Permanent buffs from passives survive a dispel.
        """
        removed = self._remove_matching(
            unit, lambda e: e.is_beneficial and not e.is_permanent, count
        )
        if count is None or len(removed) < count:
            unit.shields = []
        return removed

    def add_shield(
        self,
        unit: BattleUnit,
        effect: ShieldEffect,
        amount: int,
        source_unit_id: str,
        source_ability_id: str,
    ) -> Optional[ShieldInstance]:
        """Attach a shield of the given amount. Dead units get nothing."""
        if not unit.alive or amount <= 0:
            return None
        shield = ShieldInstance(
            amount=amount,
            source_unit_id=source_unit_id,
            source_ability_id=source_ability_id,
            remaining_duration=effect.duration,
        )
        unit.shields.append(shield)
        return shield

    def absorb_damage(self, unit: BattleUnit, amount: int) -> Tuple[int, int]:
        """
        Absorb damage with shields, oldest first.

        Returns:
            (damage remaining after shields, damage absorbed)
        """
        remaining = amount
        for shield in unit.shields:
            if remaining <= 0:
                break
            absorbed = min(shield.amount, remaining)
            shield.amount -= absorbed
            remaining -= absorbed
        unit.shields = [s for s in unit.shields if s.amount > 0]
        return remaining, amount - remaining

    def tick(self, unit: BattleUnit) -> TickResult:
        """
        Process one round boundary for a unit.

        DoTs are applied first, then HoTs (a unit killed by its DoTs is
        not healed). Every timed effect and shield then loses one round
        of duration and expired ones are removed.
        """
        result = TickResult()
        if not unit.alive:
            return result

        for status in unit.status_effects:
            if status.kind == "dot":
                damage = status.effect.value * status.stacks
                result.dot_ticks.append((status, damage))
                result.dot_damage += damage
            elif status.kind == "hot":
                healing = status.effect.value * status.stacks
                result.hot_ticks.append((status, healing))

        if result.dot_damage > 0:
            unit.current_hp = max(0, unit.current_hp - result.dot_damage)
            unit.total_damage_taken += result.dot_damage
            if unit.current_hp == 0:
                unit.alive = False
                result.killed = True

        if unit.alive:
            for status, healing in result.hot_ticks:
                before = unit.current_hp
                unit.current_hp = min(unit.max_hp, unit.current_hp + healing)
                result.hot_healing += unit.current_hp - before
        else:
            result.hot_ticks = []

        kept = []
        for status in unit.status_effects:
            if status.remaining_duration is not None:
                status.remaining_duration -= 1
            if status.is_expired:
                result.expired.append(status)
            else:
                kept.append(status)
        unit.status_effects = kept

        for shield in unit.shields:
            if shield.remaining_duration is not None:
                shield.remaining_duration -= 1
        unit.shields = [
            s for s in unit.shields
            if s.remaining_duration is None or s.remaining_duration > 0
        ]

        return result

    def get_modified_stats(self, unit: BattleUnit) -> EffectiveStats:
        """
        Fold buffs and debuffs into the unit's stats.

        Each stat becomes round((base + flat) * (1 + percentage)), where
        flat and percentage sum every buff (positive) and debuff (negative)
        times its stacks. Results are clamped: attack, attack count, speed
        and range at least 1, armor and initiative at least 0, dodge 0-100.
        """
        flat = {name: 0 for name in STAT_ATTRIBUTES}
        percentage = {name: 0.0 for name in STAT_ATTRIBUTES}

        for status in unit.status_effects:
            if status.kind not in ("buff", "debuff"):
                continue
            sign = 1 if status.kind == "buff" else -1
            effect = status.effect
            if effect.value is not None:
                flat[effect.stat] += sign * effect.value * status.stacks
            if effect.percentage is not None:
                percentage[effect.stat] += sign * effect.percentage * status.stacks

        def modified(name: str, base: int) -> int:
            return round_half_up((base + flat[name]) * (1 + percentage[name]))

        stats = unit.stats
        return EffectiveStats(
            atk=max(1, modified("attack", stats.atk)),
            atk_count=max(1, modified("attack_count", stats.atk_count)),
            armor=max(0, modified("armor", stats.armor)),
            speed=max(1, modified("speed", stats.speed)),
            initiative=max(0, modified("initiative", stats.initiative)),
            dodge=min(100, max(0, modified("dodge", stats.dodge))),
            range=max(1, modified("range", unit.range)),
        )

    def has_effect(self, unit: BattleUnit, kind: str) -> bool:
        return any(e.kind == kind for e in unit.status_effects)

    def _find_effect(
        self, unit: BattleUnit, effect: StatusPayload, source_ability_id: str
    ) -> Optional[StatusEffect]:
        stat = getattr(effect, "stat", None)
        for status in unit.status_effects:
            if (
                status.source_ability_id == source_ability_id
                and status.kind == effect.type
                and getattr(status.effect, "stat", None) == stat
            ):
                return status
        return None

    def _remove_matching(self, unit: BattleUnit, predicate, count: Optional[int]) -> List[StatusEffect]:
        removed: List[StatusEffect] = []
        kept: List[StatusEffect] = []
        for status in unit.status_effects:
            if predicate(status) and (count is None or len(removed) < count):
                removed.append(status)
            else:
                kept.append(status)
        unit.status_effects = kept
        return removed

    @staticmethod
    def _longer(current: Optional[int], new: Optional[int]) -> Optional[int]:
        if current is None or new is None:
            return None
        return max(current, new)

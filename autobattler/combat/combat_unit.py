"""Battle Unit for the battle engine.

Manages unit state during a battle: HP, position, status effects,
shields and per-ability runtime state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Union

from pydantic import BaseModel

from ..data.models.ability import (
    BuffEffect,
    DebuffEffect,
    DotEffect,
    HotEffect,
    StunEffect,
    TauntEffect,
)
from ..data.models.unit import UnitTemplate
from .grid import Position, Team


StatusPayload = Union[BuffEffect, DebuffEffect, StunEffect, TauntEffect, DotEffect, HotEffect]


class AbilityState(Enum):
    """Active ability lifecycle: ready -> triggered -> cooldown | consumed."""

    READY = "ready"
    TRIGGERED = "triggered"  # Effects being applied this turn
    COOLDOWN = "cooldown"
    CONSUMED = "consumed"  # max_uses reached


@dataclass
class CombatStats:
    """
    Mutable copy of a template's stats.

    Synergies modify these once at setup; buffs and debuffs never do
    (see StatusEffectSystem.get_modified_stats).
    """

    hp: int
    atk: int
    atk_count: int
    armor: int
    speed: int
    initiative: int
    dodge: int


@dataclass
class StatusEffect:
    """
    Active status effect on a unit.

    Attributes:
        effect: The effect payload (buff, debuff, stun, taunt, dot or hot).
        source_unit_id: Unit that applied the effect.
        source_ability_id: Ability or spell that applied the effect.
        remaining_duration: Rounds left; None is permanent.
        stacks: Current stack count.
    """

    effect: StatusPayload
    source_unit_id: str
    source_ability_id: str
    remaining_duration: Optional[int]
    stacks: int = 1

    @property
    def kind(self) -> str:
        return self.effect.type

    @property
    def is_permanent(self) -> bool:
        return self.remaining_duration is None

    @property
    def is_expired(self) -> bool:
        return self.remaining_duration is not None and self.remaining_duration <= 0

    @property
    def is_harmful(self) -> bool:
        """Removed by cleanse."""
        return self.kind in ("debuff", "stun", "dot")

    @property
    def is_beneficial(self) -> bool:
        """Removed by dispel."""
        return self.kind in ("buff", "hot")


@dataclass
class ShieldInstance:
    """Damage absorption pool."""

    amount: int
    source_unit_id: str
    source_ability_id: str
    remaining_duration: Optional[int] = None


@dataclass
class AbilityRuntime:
    """Per-battle state of one active ability."""

    ability_id: str
    state: AbilityState = AbilityState.READY
    cooldown_remaining: int = 0
    uses: int = 0


class UnitSnapshot(BaseModel):
    """Final state of a unit, as reported in a battle result."""

    instance_id: str
    template_id: str
    team: str
    position: tuple[int, int]
    current_hp: int
    max_hp: int
    alive: bool
    damage_dealt: int
    damage_taken: int
    healing_done: int
    kills: int

    model_config = {"frozen": True}


@dataclass
class BattleUnit:
    """
    A unit participating in a battle.

    Dead units stay in the roster with alive=False; they are skipped by
    the turn queue and by targeting.
    """

    # Identification
    instance_id: str  # "{team}_{template_id}_{index}"
    template_id: str
    name: str
    role: str
    cost: int
    team: Team

    stats: CombatStats
    range: int
    position: Position
    max_hp: int
    current_hp: int
    alive: bool = True

    abilities: List[str] = field(default_factory=list)
    status_effects: List[StatusEffect] = field(default_factory=list)
    shields: List[ShieldInstance] = field(default_factory=list)
    ability_states: Dict[str, AbilityRuntime] = field(default_factory=dict)

    # Passive bookkeeping
    passive_triggers: Dict[str, int] = field(default_factory=dict)
    conditional_passives: Set[str] = field(default_factory=set)

    is_summon: bool = False

    # Combat statistics
    total_damage_dealt: int = 0
    total_damage_taken: int = 0
    total_healing_done: int = 0
    kills: int = 0

    @classmethod
    def from_template(
        cls,
        template: UnitTemplate,
        team: Team,
        position: Position,
        index: int,
        is_summon: bool = False,
    ) -> "BattleUnit":
        """
        Create a BattleUnit from a template.

        Args:
            template: Static unit definition.
            team: Team assignment.
            position: Starting cell.
            index: Index of the unit within its team, used in the instance ID.
            is_summon: True for units created mid-battle.

        Returns:
            New BattleUnit at full HP.
        """
        base = template.stats
        stats = CombatStats(
            hp=base.hp,
            atk=base.atk,
            atk_count=base.atk_count,
            armor=base.armor,
            speed=base.speed,
            initiative=base.initiative,
            dodge=base.dodge,
        )
        return cls(
            instance_id=f"{team.value}_{template.id}_{index}",
            template_id=template.id,
            name=template.name,
            role=template.role,
            cost=template.cost,
            team=team,
            stats=stats,
            range=template.range,
            position=position,
            max_hp=base.hp,
            current_hp=base.hp,
            abilities=list(template.abilities),
            is_summon=is_summon,
        )

    @property
    def hp_ratio(self) -> float:
        if self.max_hp <= 0:
            return 0.0
        return self.current_hp / self.max_hp

    @property
    def is_stunned(self) -> bool:
        return any(e.kind == "stun" and not e.is_expired for e in self.status_effects)

    @property
    def has_taunt(self) -> bool:
        return any(e.kind == "taunt" and not e.is_expired for e in self.status_effects)

    @property
    def total_shield(self) -> int:
        return sum(s.amount for s in self.shields)

    @property
    def can_act(self) -> bool:
        return self.alive and not self.is_stunned

    def snapshot(self) -> UnitSnapshot:
        """Immutable view of the current state."""
        return UnitSnapshot(
            instance_id=self.instance_id,
            template_id=self.template_id,
            team=self.team.value,
            position=(self.position.x, self.position.y),
            current_hp=self.current_hp,
            max_hp=self.max_hp,
            alive=self.alive,
            damage_dealt=self.total_damage_dealt,
            damage_taken=self.total_damage_taken,
            healing_done=self.total_healing_done,
            kills=self.kills,
        )

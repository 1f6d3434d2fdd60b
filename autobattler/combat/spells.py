"""Team spells for the battle engine.

A team may bring spells, each with a timing:
- early: fires in round 1
- mid: fires once any living ally is below 70% HP
- late: fires once any living ally is below 40% HP

Each spell fires at most once per battle. Timings are checked at the
start of every round, after status effects tick.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from ..core.constants import SPELL_LATE_HP_THRESHOLD, SPELL_MID_HP_THRESHOLD
from ..data.models.spell import Spell, SpellTiming
from .ability import AbilitySystem
from .battle_context import BattleContext, EffectSource
from .events import EventType
from .grid import Team

logger = logging.getLogger(__name__)

SpellLookup = Callable[[str], Spell]

TIMING_THRESHOLDS: Dict[str, float] = {
    SpellTiming.MID.value: SPELL_MID_HP_THRESHOLD,
    SpellTiming.LATE.value: SPELL_LATE_HP_THRESHOLD,
}


class TeamSpell(BaseModel):
    """A spell a team brings into battle."""

    spell_id: str
    timing: SpellTiming

    model_config = {"frozen": True, "use_enum_values": True}


@dataclass
class SpellSlot:
    """Runtime state of one team spell."""

    spell: Spell
    timing: str
    team: Team
    fired: bool = False


def should_fire(timing: str, round_number: int, hp_ratios: Iterable[float]) -> bool:
    """
    Whether a spell with this timing fires now.

    Args:
        timing: "early", "mid" or "late".
        round_number: Current round (1-based).
        hp_ratios: HP ratios of the team's living units.
    """
    if timing == SpellTiming.EARLY:
        return round_number == 1
    threshold = TIMING_THRESHOLDS[str(timing)]
    return any(ratio < threshold for ratio in hp_ratios)


class SpellSystem:
    """
    Tracks and fires both teams' spells.

    Usage:
        spells = SpellSystem(context, ability_system, get_spell_by_id, loadouts)
        spells.check_spells(Team.PLAYER)
    """

    def __init__(
        self,
        context: BattleContext,
        ability_system: AbilitySystem,
        spell_lookup: SpellLookup,
        loadouts: Optional[Mapping[Team, Iterable[TeamSpell]]] = None,
    ):
        self.context = context
        self.ability_system = ability_system
        self.slots: Dict[Team, List[SpellSlot]] = {Team.PLAYER: [], Team.BOT: []}

        for team, team_spells in (loadouts or {}).items():
            for team_spell in team_spells:
                self.slots[team].append(
                    SpellSlot(
                        spell=spell_lookup(team_spell.spell_id),
                        timing=team_spell.timing,
                        team=team,
                    )
                )

    def check_spells(self, team: Team) -> List[Spell]:
        """
        Fire every pending spell of a team whose timing condition holds.

        A spell with no valid targets stays pending.

        Returns:
            Spells fired, in loadout order.
        """
        fired = []
        for slot in self.slots[team]:
            if slot.fired:
                continue
            allies = self.context.living(team)
            if not allies:
                break
            if not should_fire(slot.timing, self.context.round_number, [u.hp_ratio for u in allies]):
                continue
            if self.cast(slot):
                fired.append(slot.spell)
        return fired

    def cast(self, slot: SpellSlot) -> bool:
        """Resolve a spell now. Returns False if it had no targets."""
        spell = slot.spell
        targets = self.ability_system.resolve_team_targets(slot.team, spell.target_type)
        if not targets:
            return False

        slot.fired = True
        source = EffectSource(
            actor_id=f"{slot.team.value}_spell_{spell.id}",
            team=slot.team,
            ability_id=spell.id,
        )
        self.context.emit(
            EventType.ABILITY,
            source.actor_id,
            target_id=targets[0].instance_id if len(targets) == 1 else None,
            target_ids=[t.instance_id for t in targets],
            ability_id=spell.id,
            metadata={"is_spell": True, "timing": slot.timing, "team": slot.team.value},
        )
        logger.debug(
            "Round %d: %s team casts %s (%s)",
            self.context.round_number, slot.team.value, spell.id, slot.timing,
        )

        for effect in spell.effects:
            self.ability_system.apply_effect(effect, source, [t for t in targets if t.alive])
        return True

    def pending(self, team: Team) -> List[SpellSlot]:
        return [slot for slot in self.slots[team] if not slot.fired]

"""Tests for team spells."""

import pytest

from autobattler.combat.events import EventType
from autobattler.combat.grid import Team
from autobattler.combat.spells import SpellSystem, TeamSpell, should_fire
from autobattler.data.loaders import get_spell_by_id


@pytest.fixture
def make_spells(make_battle):
    """Battle plus a spell system with the given player loadout."""

    def factory(units, player_spells, bot_spells=()):
        battle = make_battle(units)
        battle.spells = SpellSystem(
            battle.context,
            battle.abilities,
            get_spell_by_id,
            {Team.PLAYER: list(player_spells), Team.BOT: list(bot_spells)},
        )
        return battle

    return factory


class TestShouldFire:
    """Timing conditions."""

    def test_early_round_one_only(self):
        assert should_fire("early", 1, [1.0])
        assert not should_fire("early", 2, [0.1])

    def test_mid_threshold(self):
        assert not should_fire("mid", 3, [1.0, 0.7])
        assert should_fire("mid", 3, [1.0, 0.69])

    def test_late_threshold(self):
        assert not should_fire("late", 3, [0.4])
        assert should_fire("late", 3, [0.39])


class TestSpellSystem:
    """SpellSystem tests."""

    def test_holy_light_clamped(self, make_spells, make_unit):
        ally = make_unit("ally", hp=100)
        ally.current_hp = 95
        enemy = make_unit("enemy", team=Team.BOT)
        battle = make_spells([ally, enemy], [TeamSpell(spell_id="holy_light", timing="early")])

        fired = battle.spells.check_spells(Team.PLAYER)

        assert [s.id for s in fired] == ["holy_light"]
        assert ally.current_hp == 100
        assert ally.current_hp <= ally.max_hp

    def test_no_target_stays_pending(self, make_spells, make_unit):
        ally = make_unit("ally", hp=100)
        enemy = make_unit("enemy", team=Team.BOT)
        battle = make_spells([ally, enemy], [TeamSpell(spell_id="holy_light", timing="early")])
        assert battle.spells.check_spells(Team.PLAYER) == []
        assert len(battle.spells.pending(Team.PLAYER)) == 1

    def test_death_coil_kills(self, make_spells, make_unit):
        ally = make_unit("ally")
        enemy = make_unit("enemy", team=Team.BOT, hp=30)
        battle = make_spells([ally, enemy], [TeamSpell(spell_id="death_coil", timing="early")])

        battle.spells.check_spells(Team.PLAYER)

        assert not enemy.alive
        types = [e.type for e in battle.collector.events]
        assert types == [EventType.ABILITY, EventType.DAMAGE, EventType.DEATH]
        cast = battle.collector.events[0]
        assert cast.actor_id == "player_spell_death_coil"
        assert cast.metadata["is_spell"] is True
        assert battle.collector.events[-1].target_id == enemy.instance_id

    def test_fires_once(self, make_spells, make_unit):
        ally = make_unit("ally")
        enemy = make_unit("enemy", team=Team.BOT, hp=100)
        battle = make_spells([ally, enemy], [TeamSpell(spell_id="death_coil", timing="mid")])

        ally.current_hp = 60
        assert len(battle.spells.check_spells(Team.PLAYER)) == 1
        assert battle.spells.check_spells(Team.PLAYER) == []
        assert enemy.current_hp == 60

    def test_mid_waits_for_damage(self, make_spells, make_unit):
        ally = make_unit("ally")
        enemy = make_unit("enemy", team=Team.BOT)
        battle = make_spells([ally, enemy], [TeamSpell(spell_id="frost_nova", timing="mid")])
        assert battle.spells.check_spells(Team.PLAYER) == []
        ally.current_hp = 50
        battle.context.round_number = 4
        assert [s.id for s in battle.spells.check_spells(Team.PLAYER)] == ["frost_nova"]
        assert enemy.is_stunned

    def test_disenchant_strips_buffs(self, make_spells, make_unit):
        from autobattler.data.models.ability import BuffEffect

        ally = make_unit("ally")
        enemy = make_unit("enemy", team=Team.BOT)
        battle = make_spells([ally, enemy], [], [TeamSpell(spell_id="disenchant", timing="early")])
        battle.context.status_effects.apply_effect(
            ally, BuffEffect(stat="attack", value=5, duration=2), ally.instance_id, "inspire"
        )
        battle.spells.check_spells(Team.BOT)
        assert ally.status_effects == []

    def test_arcane_barrier_shields_all(self, make_spells, make_unit):
        a = make_unit("a")
        b = make_unit("b", position=(1, 0))
        enemy = make_unit("enemy", team=Team.BOT)
        battle = make_spells([a, b, enemy], [TeamSpell(spell_id="arcane_barrier", timing="early")])
        battle.spells.check_spells(Team.PLAYER)
        assert a.total_shield == 20
        assert b.total_shield == 20

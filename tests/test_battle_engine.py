"""Tests for the battle engine round loop and battle results."""

import pytest

from autobattler.core.config import BattleConfig, GridConfig
from autobattler.core.exceptions import BattleSimulationError, ConfigValidationError, TeamSetupError
from autobattler.combat import damage
from autobattler.combat.battle_engine import (
    BattleEngine,
    BattlePhase,
    RosterEntry,
    analyze_battle_result,
    simulate_battle,
)
from autobattler.combat.events import EventType
from autobattler.combat.grid import Position
from autobattler.combat.spells import TeamSpell
from autobattler.data.models.ability import DotEffect


def entry(template_id, x, y):
    return RosterEntry(unit_template_id=template_id, position=Position(x, y))


@pytest.fixture
def player_roster():
    return [entry("knight", 2, 1), entry("guardian", 4, 1), entry("mage", 3, 0)]


@pytest.fixture
def bot_roster():
    return [entry("archer", 3, 9)]


@pytest.fixture
def mismatch_templates(make_template):
    """A very strong unit against a very weak one."""
    return {
        "giant": make_template("giant", hp=500, atk=50, speed=3, initiative=10),
        "weakling": make_template("weakling", hp=10, atk=1, speed=1, initiative=1),
    }


class TestBattleSetup:
    """Roster validation and the opening event."""

    def test_opening_round_start(self, player_roster, bot_roster):
        engine = BattleEngine(player_roster, bot_roster, seed=12345)
        engine.setup_battle()

        first = engine.collector.events[0]
        assert first.type == EventType.ROUND_START
        assert first.round == 0
        assert first.metadata["player_units"] == 3
        assert first.metadata["bot_units"] == 1
        assert engine.state.phase == BattlePhase.ROUND_LOOP

    def test_setup_twice_raises(self, player_roster, bot_roster):
        engine = BattleEngine(player_roster, bot_roster)
        engine.setup_battle()
        with pytest.raises(BattleSimulationError):
            engine.setup_battle()

    def test_empty_team(self, bot_roster):
        with pytest.raises(TeamSetupError) as exc_info:
            simulate_battle([], bot_roster)
        assert exc_info.value.team == "player"
        assert exc_info.value.errors == ["Team must contain at least one unit"]

    def test_unknown_template(self, player_roster):
        with pytest.raises(TeamSetupError) as exc_info:
            simulate_battle(player_roster, [entry("dragon", 0, 9)])
        assert exc_info.value.team == "bot"
        assert exc_info.value.errors == ["Unit 0 has unknown template: dragon"]

    def test_position_outside_grid(self, bot_roster):
        with pytest.raises(TeamSetupError) as exc_info:
            simulate_battle([entry("knight", 8, 0)], bot_roster)
        assert exc_info.value.errors == ["Unit 0 position (8, 0) is outside grid bounds"]

    def test_position_outside_deployment_rows(self, bot_roster):
        with pytest.raises(TeamSetupError) as exc_info:
            simulate_battle([entry("knight", 0, 5)], bot_roster)
        assert exc_info.value.errors == [
            "Unit 0 position (0, 5) is outside player deployment rows"
        ]

    def test_shared_position(self, bot_roster):
        roster = [entry("knight", 1, 1), entry("mage", 1, 1)]
        with pytest.raises(TeamSetupError) as exc_info:
            simulate_battle(roster, bot_roster)
        assert exc_info.value.errors == ["Units 0 and 1 share position (1, 1)"]

    def test_errors_are_config_errors(self, bot_roster):
        with pytest.raises(ConfigValidationError):
            simulate_battle([], bot_roster)

    def test_invalid_grid_config(self, player_roster, bot_roster):
        grid = GridConfig(width=0)
        with pytest.raises(ConfigValidationError):
            simulate_battle(player_roster, bot_roster, grid_config=grid)


class TestBattleLoop:
    """Full battles."""

    def test_battle_terminates(self, player_roster, bot_roster):
        result = simulate_battle(player_roster, bot_roster, seed=12345)

        assert result.winner in ("player", "bot", "draw")
        assert result.metadata.total_rounds <= 100
        assert result.metadata.seed == 12345
        assert result.events[-1].type == EventType.BATTLE_END
        assert result.events[-1].metadata["winner"] == result.winner

    def test_deterministic(self, player_roster, bot_roster):
        first = simulate_battle(player_roster, bot_roster, seed=777)
        second = simulate_battle(player_roster, bot_roster, seed=777)

        assert first.winner == second.winner
        assert [e.model_dump() for e in first.events] == [e.model_dump() for e in second.events]
        assert first.final_state == second.final_state

    def test_event_rounds_never_decrease(self, player_roster, bot_roster):
        result = simulate_battle(player_roster, bot_roster, seed=12345)
        rounds = [e.round for e in result.events]
        assert rounds == sorted(rounds)

    def test_dead_units_do_not_act(self, player_roster, bot_roster):
        result = simulate_battle(player_roster, bot_roster, seed=12345)
        dead = set()
        for event in result.events:
            if event.type in (EventType.MOVE, EventType.ATTACK):
                assert event.actor_id not in dead
            if event.type == EventType.DEATH:
                dead.add(event.target_id)

    def test_hp_within_bounds(self, player_roster, bot_roster):
        result = simulate_battle(player_roster, bot_roster, seed=12345)
        for unit in result.final_state.player_units + result.final_state.bot_units:
            assert 0 <= unit.current_hp <= unit.max_hp
            assert unit.alive == (unit.current_hp > 0)

    def test_strong_team_wins(self, mismatch_templates):
        result = simulate_battle(
            [entry("giant", 0, 1)],
            [entry("weakling", 0, 8)],
            seed=1,
            templates=mismatch_templates,
        )

        assert result.winner == "player"
        assert result.events[-1].metadata["reason"] == "Team eliminated"
        assert not result.final_state.bot_units[0].alive
        assert result.final_state.player_units[0].kills == 1

    def test_max_rounds_draw(self):
        """Units that cannot reach each other draw at the round limit."""
        result = simulate_battle(
            [entry("knight", 0, 0)],
            [entry("knight", 7, 9)],
            battle_config=BattleConfig(max_rounds=1),
            seed=3,
        )

        assert result.winner == "draw"
        assert result.metadata.total_rounds == 1
        assert result.events[-1].metadata["reason"] == "Maximum rounds reached"

    def test_both_teams_wiped_draw(self):
        """Lethal DoTs on both sides resolve in the same tick."""
        engine = BattleEngine([entry("knight", 0, 0)], [entry("knight", 7, 9)], seed=3)
        engine.setup_battle()
        knight, enemy = engine.units
        engine.context.status_effects.apply_effect(
            knight, DotEffect(value=1000, duration=2), enemy.instance_id, "corruption"
        )
        engine.context.status_effects.apply_effect(
            enemy, DotEffect(value=1000, duration=2), knight.instance_id, "corruption"
        )

        assert not engine.run_round()
        result = engine.get_result()
        assert result.winner == "draw"
        assert result.metadata.total_rounds == 1
        assert result.events[-1].metadata["reason"] == "All units eliminated"
        assert [e.target_id for e in result.events if e.type == EventType.DEATH] == [
            knight.instance_id,
            enemy.instance_id,
        ]

    def test_round_by_round(self, player_roster, bot_roster):
        engine = BattleEngine(player_roster, bot_roster, seed=12345)
        engine.setup_battle()
        with pytest.raises(BattleSimulationError):
            engine.get_result()

        rounds = 0
        while engine.run_round():
            rounds += 1

        assert engine.is_finished()
        assert not engine.run_round()
        assert engine.get_result().metadata.total_rounds == engine.state.current_round

    def test_spells_cast_in_battle(self, player_roster, bot_roster):
        spells = {"player": [TeamSpell(spell_id="death_coil", timing="early")]}
        result = simulate_battle(player_roster, bot_roster, seed=12345, spells=spells)

        casts = [
            e for e in result.events
            if e.type == EventType.ABILITY and e.metadata.get("is_spell")
        ]
        assert len(casts) == 1
        assert casts[0].round == 1
        assert casts[0].actor_id == "player_spell_death_coil"
        assert casts[0].target_id == "bot_archer_0"

    def test_synergies_reported(self):
        result = simulate_battle(
            [entry("knight", 0, 1), entry("guardian", 1, 1)],
            [entry("archer", 0, 9)],
            seed=5,
        )
        assert result.metadata.synergies["bot"] == []
        assert "frontline" in result.metadata.synergies["player"]


class TestDodgeCap:
    """Stacked dodge against the configured cap during a battle."""

    @pytest.fixture
    def brute_templates(self, make_template):
        return {"brute": make_template("brute", hp=2000, atk=5, speed=4, initiative=20)}

    @pytest.fixture
    def rogues(self):
        # Two melee fighters: assassin_guild takes 20 dodge to 24, evasion adds 15
        return [entry("rogue", 3, 1), entry("rogue", 4, 1)]

    def test_attack_rolls_against_cap(self, monkeypatch, brute_templates, rogues):
        chances = []
        original = damage.effective_dodge_chance

        def recording(target, config=damage.DEFAULT_BATTLE_CONFIG):
            chance = original(target, config)
            chances.append((target.dodge, chance))
            return chance

        monkeypatch.setattr(damage, "effective_dodge_chance", recording)
        result = simulate_battle(
            rogues,
            [entry("brute", 3, 8)],
            battle_config=BattleConfig(max_rounds=8, dodge_cap_percent=30),
            seed=11,
            templates=brute_templates,
        )

        assert "assassin_guild" in result.metadata.synergies["player"]
        rogue_rolls = [chance for dodge, chance in chances if dodge == 39]
        assert rogue_rolls
        assert all(chance == pytest.approx(0.3) for chance in rogue_rolls)

    def test_zero_cap_never_dodges(self, brute_templates, rogues):
        result = simulate_battle(
            rogues,
            [entry("brute", 3, 8)],
            battle_config=BattleConfig(max_rounds=8, dodge_cap_percent=0),
            seed=11,
            templates=brute_templates,
        )

        attacks_on_rogues = [
            e for e in result.events
            if e.type == EventType.ATTACK and e.target_id.startswith("player_")
        ]
        assert attacks_on_rogues
        assert not any(e.metadata["dodged"] for e in attacks_on_rogues)


class TestAnalyzeBattleResult:
    """analyze_battle_result tests."""

    def test_summary(self, mismatch_templates):
        result = simulate_battle(
            [entry("giant", 0, 1)],
            [entry("weakling", 0, 8)],
            seed=1,
            templates=mismatch_templates,
        )
        analysis = analyze_battle_result(result)

        assert analysis.total_events == len(result.events)
        assert sum(analysis.events_by_type.values()) == analysis.total_events
        assert analysis.surviving_units == {"player": 1, "bot": 0}
        assert analysis.damage_dealt["player"] >= 10
        assert analysis.events_by_type["battle_end"] == 1

"""Tests for BattleUnit."""

import pytest

from autobattler.combat.combat_unit import BattleUnit, CombatStats
from autobattler.combat.grid import Position, Team
from autobattler.data.loaders import get_unit_by_id
from autobattler.data.models.ability import StunEffect


class TestBattleUnit:
    """Tests for BattleUnit class."""

    @pytest.fixture
    def knight(self):
        return BattleUnit.from_template(get_unit_by_id("knight"), Team.PLAYER, Position(2, 1), 0)

    def test_from_template(self, knight):
        """Unit starts at full HP with template stats."""
        assert knight.instance_id == "player_knight_0"
        assert knight.current_hp == knight.max_hp == 120
        assert knight.stats == CombatStats(
            hp=120, atk=12, atk_count=1, armor=8, speed=2, initiative=8, dodge=5
        )
        assert knight.abilities == ["shield_wall"]
        assert knight.alive
        assert not knight.is_summon

    def test_bot_instance_id(self):
        unit = BattleUnit.from_template(get_unit_by_id("mage"), Team.BOT, Position(0, 9), 3)
        assert unit.instance_id == "bot_mage_3"
        assert unit.range == 3

    def test_template_unchanged(self, knight):
        """Battle damage never touches the catalog template."""
        knight.current_hp = 1
        knight.stats.atk = 99
        assert get_unit_by_id("knight").stats.atk == 12
        assert get_unit_by_id("knight").stats.hp == 120

    def test_hp_ratio(self, knight):
        knight.current_hp = 30
        assert knight.hp_ratio == 0.25

    def test_stunned_cannot_act(self, knight, make_battle):
        battle = make_battle([knight])
        battle.context.status_effects.apply_effect(knight, StunEffect(duration=1), "bot_x_0", "stun_bolt")
        assert knight.is_stunned
        assert not knight.can_act

    def test_dead_cannot_act(self, knight):
        knight.alive = False
        assert not knight.can_act

    def test_snapshot(self, knight):
        knight.current_hp = 100
        knight.total_damage_dealt = 15
        snapshot = knight.snapshot()

        assert snapshot.instance_id == "player_knight_0"
        assert snapshot.team == "player"
        assert snapshot.position == (2, 1)
        assert snapshot.current_hp == 100
        assert snapshot.damage_dealt == 15
        assert snapshot.kills == 0

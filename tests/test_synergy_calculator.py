"""Tests for synergy detection and bonuses."""

import pytest

from autobattler.core.synergy_calculator import (
    SYNERGIES,
    apply_synergy_bonuses,
    calculate_synergies,
    calculate_total_stat_bonus,
    count_roles,
    get_synergy_by_id,
    round_half_up,
)


def ids(synergies):
    return [s.id for s in synergies]


class TestRounding:
    """round_half_up tests."""

    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.4, 2), (-0.5, 0)])
    def test_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestCalculateSynergies:
    """calculate_synergies tests."""

    def test_empty_team(self):
        assert calculate_synergies([]) == []

    def test_frontline(self):
        team = [("knight", "tank"), ("guardian", "tank")]
        active = calculate_synergies(team)
        assert ids(active) == ["frontline"]
        assert active[0].contributing_units == ["knight", "guardian"]

    def test_iron_wall_includes_frontline(self):
        team = [("knight", "tank"), ("guardian", "tank"), ("knight", "tank")]
        assert ids(calculate_synergies(team)) == ["frontline", "iron_wall"]

    def test_balanced(self):
        team = [("knight", "tank"), ("rogue", "melee_dps"), ("priest", "support")]
        assert "balanced" in ids(calculate_synergies(team))

    def test_glass_cannon_forbids_tanks(self):
        mages = [("mage", "mage"), ("warlock", "mage"), ("mage", "mage")]
        assert "glass_cannon" in ids(calculate_synergies(mages))
        assert "glass_cannon" not in ids(calculate_synergies(mages + [("knight", "tank")]))

    def test_definition_order(self):
        team = [("archer", "ranged_dps"), ("crossbowman", "ranged_dps"), ("rogue", "melee_dps")]
        assert ids(calculate_synergies(team)) == ["ranger_corps", "swift_strike"]

    def test_lookup(self):
        assert get_synergy_by_id("frontline") is SYNERGIES[0]
        assert get_synergy_by_id("nope") is None

    def test_count_roles(self):
        assert count_roles(["tank", "mage", "tank"]) == {"tank": 2, "mage": 1}


class TestApplyBonuses:
    """apply_synergy_bonuses tests."""

    def test_hp_bonus_raises_max_and_current(self, make_unit):
        units = [make_unit("a", role="tank", hp=120), make_unit("b", role="tank", hp=150)]
        apply_synergy_bonuses(units, calculate_synergies([("a", "tank"), ("b", "tank")]))
        assert units[0].max_hp == 132
        assert units[0].current_hp == 132
        assert units[1].stats.hp == 165

    def test_stepwise_rounding(self, make_unit):
        """Each bonus rounds before the next multiplies."""
        unit = make_unit("a", role="ranged_dps", atk=15, speed=2)
        team = [("a", "ranged_dps"), ("b", "ranged_dps"), ("c", "mage"), ("d", "mage")]
        apply_synergy_bonuses([unit], calculate_synergies(team))
        # magic_circle: 15 * 1.15 = 17.25 -> 17; ranger_corps: 17 * 1.1 = 18.7 -> 19
        assert unit.stats.atk == 19
        # 2 * 1.1 = 2.2 -> 2
        assert unit.stats.speed == 2

    def test_dodge_capped(self, make_unit):
        unit = make_unit("a", role="melee_dps", dodge=45)
        synergies = calculate_synergies([("a", "melee_dps"), ("b", "melee_dps")])
        apply_synergy_bonuses([unit], synergies, dodge_cap=50)
        assert unit.stats.dodge == 50

    def test_all_stats(self, make_unit):
        unit = make_unit("a", hp=100, atk=20, armor=10, speed=2, initiative=10, dodge=10)
        team = [("k", "tank"), ("r", "melee_dps"), ("p", "support")]
        apply_synergy_bonuses([unit], calculate_synergies(team))
        stats = unit.stats
        assert (stats.hp, stats.atk, stats.armor, stats.initiative) == (105, 21, 11, 11)
        # 2 * 1.05 = 2.1 -> 2, 10 * 1.05 = 10.5 -> 11
        assert stats.speed == 2
        assert stats.dodge == 11

    def test_total_stat_bonus(self):
        team = [("k", "tank"), ("r", "melee_dps"), ("p", "support"), ("g", "tank")]
        total = calculate_total_stat_bonus(calculate_synergies(team), "hp")
        assert total == pytest.approx(0.15)

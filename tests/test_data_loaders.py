"""Tests for data loaders."""

import pytest

from autobattler.core.exceptions import UnknownUnitError
from autobattler.data.loaders import (
    load_units,
    get_unit_by_id,
    get_units_by_role,
    get_purchasable_units,
    load_abilities,
    get_ability_by_id,
    get_active_abilities,
    get_passive_abilities,
    load_spells,
    get_spell_by_id,
)
from autobattler.data.models.ability import ActiveAbility, PassiveAbility


class TestUnitLoader:
    """Tests for unit catalog loading."""

    def test_load_units_returns_list(self):
        units = load_units()
        assert isinstance(units, list)
        assert len(units) == 13

    def test_unique_ids(self):
        ids = [u.id for u in load_units()]
        assert len(ids) == len(set(ids))

    def test_get_unit_by_id_found(self):
        knight = get_unit_by_id("knight")
        assert knight.name == "Knight"
        assert knight.role == "tank"
        assert knight.stats.hp == 120
        assert knight.stats.armor == 8
        assert knight.abilities == ["shield_wall"]

    def test_get_unit_by_id_not_found(self):
        with pytest.raises(UnknownUnitError) as exc_info:
            get_unit_by_id("dragon")
        assert str(exc_info.value) == "Unknown unit: dragon"
        assert exc_info.value.item_id == "dragon"

    def test_get_units_by_role(self):
        tanks = get_units_by_role("tank")
        assert {u.id for u in tanks} == {"knight", "guardian"}

    def test_purchasable_excludes_summons(self):
        ids = {u.id for u in get_purchasable_units()}
        assert "skeleton" not in ids
        assert "necromancer" in ids

    def test_every_ability_reference_resolves(self):
        for unit in load_units():
            for ability_id in unit.abilities:
                assert get_ability_by_id(ability_id).id == ability_id


class TestAbilityLoader:
    """Tests for ability catalog loading."""

    def test_load_abilities_keyed_by_id(self):
        abilities = load_abilities()
        assert all(key == ability.id for key, ability in abilities.items())

    def test_active_and_passive_split(self):
        active = get_active_abilities()
        passive = get_passive_abilities()
        assert all(isinstance(a, ActiveAbility) for a in active)
        assert all(isinstance(p, PassiveAbility) for p in passive)
        assert len(active) + len(passive) == len(load_abilities())

    def test_fireball(self):
        fireball = get_ability_by_id("fireball")
        assert fireball.target_type == "area"
        assert fireball.area_size == 1
        assert fireball.effects[0].type == "damage"
        assert fireball.effects[0].attack_scaling == 0.5

    def test_raise_dead_limited_uses(self):
        raise_dead = get_ability_by_id("raise_dead")
        assert raise_dead.max_uses == 2
        assert raise_dead.effects[0].summon_unit_id == "skeleton"

    def test_thorns_is_passive(self):
        assert isinstance(get_ability_by_id("thorns"), PassiveAbility)

    def test_unknown_ability(self):
        with pytest.raises(UnknownUnitError):
            get_ability_by_id("meteor")


class TestSpellLoader:
    """Tests for spell catalog loading."""

    def test_load_spells(self):
        spells = load_spells()
        assert set(spells) == {
            "holy_light", "death_coil", "rally", "regrowth",
            "arcane_barrier", "purify", "disenchant", "frost_nova",
        }

    def test_death_coil(self):
        spell = get_spell_by_id("death_coil")
        assert spell.target_type == "lowest_hp_enemy"
        assert spell.effects[0].value == 40
        assert spell.effects[0].damage_type == "magical"

    def test_unknown_spell(self):
        with pytest.raises(UnknownUnitError):
            get_spell_by_id("meteor_swarm")

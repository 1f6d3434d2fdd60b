"""Shared fixtures for battle engine tests."""

from types import SimpleNamespace

import pytest

from autobattler.core.config import DEFAULT_BATTLE_CONFIG, DEFAULT_DAMAGE_CONFIG, DEFAULT_GRID_CONFIG
from autobattler.core.random import SeededRandom
from autobattler.combat.ability import AbilitySystem
from autobattler.combat.battle_context import BattleContext
from autobattler.combat.combat_unit import BattleUnit
from autobattler.combat.events import BattleEventEmitter, EventCollector
from autobattler.combat.grid import Position, Team
from autobattler.combat.passives import PassiveSystem
from autobattler.combat.status_effects import StatusEffectSystem
from autobattler.data.loaders import get_ability_by_id, get_unit_by_id
from autobattler.data.models.unit import UnitStats, UnitTemplate


def build_template(
    template_id="dummy",
    role="tank",
    hp=100,
    atk=10,
    atk_count=1,
    armor=0,
    speed=2,
    initiative=5,
    dodge=0,
    range=1,
    abilities=(),
    cost=3,
):
    return UnitTemplate(
        id=template_id,
        name=template_id.title(),
        role=role,
        cost=cost,
        stats=UnitStats(
            hp=hp,
            atk=atk,
            atk_count=atk_count,
            armor=armor,
            speed=speed,
            initiative=initiative,
            dodge=dodge,
        ),
        range=range,
        abilities=list(abilities),
    )


@pytest.fixture
def make_template():
    """Factory for custom unit templates."""
    return build_template


@pytest.fixture
def make_unit():
    """Factory for battle units: make_unit("knight", team, (x, y), index, **stats)."""

    def factory(template_id="dummy", team=Team.PLAYER, position=(0, 0), index=0, **stats):
        template = build_template(template_id, **stats)
        return BattleUnit.from_template(template, team, Position(*position), index)

    return factory


@pytest.fixture
def catalog_unit():
    """Factory for battle units built from the bundled catalog."""

    def factory(template_id, team=Team.PLAYER, position=(0, 0), index=0):
        return BattleUnit.from_template(get_unit_by_id(template_id), team, Position(*position), index)

    return factory


@pytest.fixture
def make_battle():
    """
    Factory wiring a context with ability and passive systems.

    Returns a namespace with context, abilities, passives and collector.
    """

    def factory(units, seed=12345, battle_config=DEFAULT_BATTLE_CONFIG):
        emitter = BattleEventEmitter()
        context = BattleContext(
            units=list(units),
            grid_config=DEFAULT_GRID_CONFIG,
            battle_config=battle_config,
            damage_config=DEFAULT_DAMAGE_CONFIG,
            rng=SeededRandom(seed),
            emitter=emitter,
            status_effects=StatusEffectSystem(),
            round_number=1,
        )
        abilities = AbilitySystem(context, get_ability_by_id, get_unit_by_id)
        passives = PassiveSystem(context, abilities, get_ability_by_id)
        context.passives = passives
        for unit in context.units:
            abilities.init_unit(unit)
        return SimpleNamespace(
            context=context,
            abilities=abilities,
            passives=passives,
            collector=EventCollector(emitter),
        )

    return factory

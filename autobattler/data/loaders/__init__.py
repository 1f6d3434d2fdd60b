# Data Loaders
from .unit_loader import (
    load_units,
    get_unit_by_id,
    get_units_by_role,
    get_purchasable_units,
)
from .ability_loader import (
    load_abilities,
    get_ability_by_id,
    get_active_abilities,
    get_passive_abilities,
)
from .spell_loader import (
    load_spells,
    get_spell_by_id,
)

__all__ = [
    # Unit loaders
    "load_units",
    "get_unit_by_id",
    "get_units_by_role",
    "get_purchasable_units",
    # Ability loaders
    "load_abilities",
    "get_ability_by_id",
    "get_active_abilities",
    "get_passive_abilities",
    # Spell loaders
    "load_spells",
    "get_spell_by_id",
]

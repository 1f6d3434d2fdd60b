"""Ability data loader."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import TypeAdapter

from ...core.exceptions import UnknownUnitError
from ..models.ability import Ability, ActiveAbility, PassiveAbility

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "json"
ABILITIES_FILE = DATA_DIR / "abilities.json"

_ability_adapter = TypeAdapter(list[Ability])


@lru_cache(maxsize=1)
def load_abilities() -> dict[str, ActiveAbility | PassiveAbility]:
    """Load all abilities from JSON.

    Returns:
        Dictionary mapping ability ID to ability.
    """
    with open(ABILITIES_FILE, "r", encoding="utf-8") as f:
        data = json.load(f)

    abilities = _ability_adapter.validate_python(data["abilities"])
    logger.debug("Loaded %d abilities from %s", len(abilities), ABILITIES_FILE)
    return {ability.id: ability for ability in abilities}


def get_ability_by_id(ability_id: str) -> ActiveAbility | PassiveAbility:
    """Get an ability by its ID.

    Raises:
        UnknownUnitError: If the ability is not in the catalog.
    """
    abilities = load_abilities()
    if ability_id not in abilities:
        raise UnknownUnitError("ability", ability_id)
    return abilities[ability_id]


def get_active_abilities() -> list[ActiveAbility]:
    """Get all active abilities."""
    return [a for a in load_abilities().values() if isinstance(a, ActiveAbility)]


def get_passive_abilities() -> list[PassiveAbility]:
    """Get all passive abilities."""
    return [a for a in load_abilities().values() if isinstance(a, PassiveAbility)]


def clear_cache() -> None:
    """Clear the ability cache."""
    load_abilities.cache_clear()

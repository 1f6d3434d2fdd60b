"""Team spell data loader."""

import json
from functools import lru_cache
from pathlib import Path

from ...core.exceptions import UnknownUnitError
from ..models.spell import Spell

DATA_DIR = Path(__file__).parent.parent / "json"
SPELLS_FILE = DATA_DIR / "spells.json"


@lru_cache(maxsize=1)
def load_spells() -> dict[str, Spell]:
    """Load all team spells from JSON.

    Returns:
        Dictionary mapping spell ID to Spell.
    """
    with open(SPELLS_FILE, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {s["id"]: Spell.model_validate(s) for s in data["spells"]}


def get_spell_by_id(spell_id: str) -> Spell:
    """Get a spell by its ID.

    Raises:
        UnknownUnitError: If the spell is not in the catalog.
    """
    spells = load_spells()
    if spell_id not in spells:
        raise UnknownUnitError("spell", spell_id)
    return spells[spell_id]


def clear_cache() -> None:
    """Clear the spell cache."""
    load_spells.cache_clear()

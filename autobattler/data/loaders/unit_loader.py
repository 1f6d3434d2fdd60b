"""Unit template data loader."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from ...core.exceptions import UnknownUnitError
from ..models.unit import UnitTemplate

logger = logging.getLogger(__name__)

# Get the data directory path
DATA_DIR = Path(__file__).parent.parent / "json"
UNITS_FILE = DATA_DIR / "units.json"


@lru_cache(maxsize=1)
def load_units() -> list[UnitTemplate]:
    """Load all unit templates from JSON.

    Returns:
        List of all UnitTemplate objects, in catalog order.
    """
    with open(UNITS_FILE, "r", encoding="utf-8") as f:
        data = json.load(f)

    units = [UnitTemplate.model_validate(unit_data) for unit_data in data["units"]]
    logger.debug("Loaded %d unit templates from %s", len(units), UNITS_FILE)
    return units


def get_unit_by_id(unit_id: str) -> UnitTemplate:
    """Get a unit template by its ID.

    Args:
        unit_id: The unique unit identifier.

    Returns:
        The matching UnitTemplate.

    Raises:
        UnknownUnitError: If no template has this ID.
    """
    for unit in load_units():
        if unit.id == unit_id:
            return unit
    raise UnknownUnitError("unit", unit_id)


def get_units_by_role(role: str) -> list[UnitTemplate]:
    """Get all unit templates of a role."""
    return [u for u in load_units() if u.role == role]


def get_purchasable_units() -> list[UnitTemplate]:
    """Get templates a team may buy (summons excluded)."""
    return [u for u in load_units() if u.purchasable]


def clear_cache() -> None:
    """Clear the unit cache. Useful for testing or hot-reloading data."""
    load_units.cache_clear()

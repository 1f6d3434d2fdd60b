"""Unit template data model."""

from enum import StrEnum

from pydantic import BaseModel, Field


class UnitRole(StrEnum):
    """Unit combat role."""
    TANK = "tank"
    MELEE_DPS = "melee_dps"
    RANGED_DPS = "ranged_dps"
    MAGE = "mage"
    SUPPORT = "support"
    CONTROL = "control"


class UnitStats(BaseModel):
    """Unit base statistics."""
    hp: int = Field(..., gt=0)
    atk: int = Field(..., ge=0)
    atk_count: int = Field(default=1, ge=1, description="Attacks per action")
    armor: int = Field(default=0, ge=0)
    speed: int = Field(default=1, ge=0, description="Cells moved per turn")
    initiative: int = Field(default=0, ge=0, description="Turn order priority")
    dodge: int = Field(default=0, ge=0, le=100, description="Dodge chance in percent")

    model_config = {"frozen": True}


class UnitTemplate(BaseModel):
    """Static unit definition. Never mutated during a battle."""
    id: str = Field(..., description="Unique identifier (lowercase, underscores)")
    name: str = Field(..., description="Display name")
    role: UnitRole
    cost: int = Field(..., ge=1)
    stats: UnitStats
    range: int = Field(default=1, ge=1, description="Attack range in cells (Manhattan)")
    abilities: list[str] = Field(default_factory=list, description="Ability IDs")
    purchasable: bool = Field(default=True, description="False for summons")

    model_config = {"frozen": True, "use_enum_values": True}

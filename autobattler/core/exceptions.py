"""Battle engine exceptions."""

from typing import List, Optional


class AutobattlerError(Exception):
    """Base class for all engine errors."""


class ConfigValidationError(AutobattlerError, ValueError):
    """Invalid grid, battle or engine configuration."""


class TeamSetupError(ConfigValidationError):
    """A roster failed validation before the battle started."""

    def __init__(self, team: str, errors: List[str]):
        self.team = team
        self.errors = list(errors)
        super().__init__(f"Invalid {team} team setup: {', '.join(self.errors)}")


class UnknownUnitError(AutobattlerError, KeyError):
    """Unit, ability or spell id not present in the catalog."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"Unknown {kind}: {item_id}")

    def __str__(self) -> str:
        return self.args[0]


class BattleSimulationError(AutobattlerError, RuntimeError):
    """
    Internal invariant violation during a battle.

    The battle is aborted; callers decide whether to retry with a new seed.
    """

    def __init__(self, reason: str, round_number: Optional[int] = None):
        self.reason = reason
        self.round_number = round_number
        message = reason if round_number is None else f"Round {round_number}: {reason}"
        super().__init__(message)

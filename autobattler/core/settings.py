"""
Engine settings.

Process-wide defaults read from the environment (prefix ``AUTOBATTLER_``)
or a ``.env`` file. The engine itself never reads these; callers build
explicit config objects from them.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import BattleConfig, validate_battle_config


class EngineSettings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(env_prefix="AUTOBATTLER_", env_file=".env", extra="ignore")

    DEBUG: bool = False

    # Battle
    MAX_ROUNDS: int = 100
    MIN_DAMAGE: int = 1
    DODGE_CAP_PERCENT: float = 50
    DODGE_AFFECTS_MAGIC: bool = False

    # Simulation
    DEFAULT_SEED: int = 12345
    SIMULATION_WORKERS: int = 4
    SIMULATION_TIMEOUT_MS: int = 5000

    def battle_config(self) -> BattleConfig:
        """Build a validated BattleConfig from these settings."""
        config = BattleConfig(
            max_rounds=self.MAX_ROUNDS,
            min_damage=self.MIN_DAMAGE,
            dodge_cap_percent=self.DODGE_CAP_PERCENT,
            dodge_affects_magic=self.DODGE_AFFECTS_MAGIC,
        )
        validate_battle_config(config)
        return config


settings = EngineSettings()

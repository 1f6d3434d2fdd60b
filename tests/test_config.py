"""Tests for engine configuration validation."""

import pytest

from autobattler.core.config import (
    BattleConfig,
    DEFAULT_BATTLE_CONFIG,
    DEFAULT_GRID_CONFIG,
    GridConfig,
    validate_battle_config,
    validate_engine_config,
    validate_grid_config,
)
from autobattler.core.exceptions import ConfigValidationError
from autobattler.core.settings import EngineSettings


class TestGridConfigValidation:
    """validate_grid_config tests."""

    def test_default_is_valid(self):
        validate_grid_config(DEFAULT_GRID_CONFIG)

    def test_defaults(self):
        """Default grid is 8x10 with two deployment rows per side."""
        assert DEFAULT_GRID_CONFIG.width == 8
        assert DEFAULT_GRID_CONFIG.height == 10
        assert DEFAULT_GRID_CONFIG.player_rows == (0, 1)
        assert DEFAULT_GRID_CONFIG.enemy_rows == (8, 9)

    @pytest.mark.parametrize("width,height", [(0, 10), (8, 0), (-1, 5)])
    def test_non_positive_dimensions(self, width, height):
        with pytest.raises(ConfigValidationError, match="^Grid dimensions must be positive$"):
            validate_grid_config(GridConfig(width=width, height=height))

    def test_player_row_out_of_bounds(self):
        config = GridConfig(player_rows=(0, 10))
        with pytest.raises(ConfigValidationError) as exc:
            validate_grid_config(config)
        assert str(exc.value) == "Player row 10 is outside grid bounds"

    def test_enemy_row_out_of_bounds(self):
        config = GridConfig(enemy_rows=(-1, 9))
        with pytest.raises(ConfigValidationError) as exc:
            validate_grid_config(config)
        assert str(exc.value) == "Enemy row -1 is outside grid bounds"

    def test_overlapping_rows(self):
        config = GridConfig(player_rows=(0, 5), enemy_rows=(5, 9))
        with pytest.raises(ConfigValidationError) as exc:
            validate_grid_config(config)
        assert str(exc.value) == "Row 5 is assigned to both player and enemy deployment zones"

    def test_is_value_error(self):
        """Validation errors are ValueErrors."""
        with pytest.raises(ValueError):
            validate_grid_config(GridConfig(width=0))


class TestBattleConfigValidation:
    """validate_battle_config tests."""

    def test_default_is_valid(self):
        validate_battle_config(DEFAULT_BATTLE_CONFIG)

    def test_max_rounds(self):
        with pytest.raises(ConfigValidationError) as exc:
            validate_battle_config(BattleConfig(max_rounds=0))
        assert str(exc.value) == "Max rounds must be positive"

    def test_min_damage(self):
        with pytest.raises(ConfigValidationError) as exc:
            validate_battle_config(BattleConfig(min_damage=-1))
        assert str(exc.value) == "Min damage cannot be negative"

    @pytest.mark.parametrize("cap", [-1, 101])
    def test_dodge_cap(self, cap):
        with pytest.raises(ConfigValidationError) as exc:
            validate_battle_config(BattleConfig(dodge_cap_percent=cap))
        assert str(exc.value) == "Dodge cap must be between 0 and 100"

    def test_engine_config_checks_grid_first(self):
        """Grid errors are reported before battle errors."""
        with pytest.raises(ConfigValidationError) as exc:
            validate_engine_config(GridConfig(width=0), BattleConfig(max_rounds=0))
        assert str(exc.value) == "Grid dimensions must be positive"

    def test_configs_are_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_BATTLE_CONFIG.max_rounds = 5


class TestEngineSettings:
    """EngineSettings tests."""

    def test_defaults(self):
        settings = EngineSettings()
        assert settings.MAX_ROUNDS == 100
        assert settings.DEFAULT_SEED == 12345

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("AUTOBATTLER_MAX_ROUNDS", "25")
        monkeypatch.setenv("AUTOBATTLER_DODGE_CAP_PERCENT", "30")
        config = EngineSettings().battle_config()
        assert config.max_rounds == 25
        assert config.dodge_cap_percent == 30

    def test_invalid_environment_rejected(self, monkeypatch):
        monkeypatch.setenv("AUTOBATTLER_MAX_ROUNDS", "0")
        with pytest.raises(ConfigValidationError):
            EngineSettings().battle_config()

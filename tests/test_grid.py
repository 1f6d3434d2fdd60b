"""Tests for the square grid."""

import pytest

from autobattler.core.config import GridConfig
from autobattler.combat.grid import (
    Position,
    Team,
    create_empty_grid,
    create_grid_with_units,
    get_aoe_positions,
    get_closest_unit,
    get_neighbors,
    get_positions_in_movement_range,
    get_unit_at_position,
    get_units_in_range,
    is_in_range,
    is_valid_position,
    is_walkable,
    manhattan_distance,
)


class TestPosition:
    """Position tests."""

    def test_distance(self):
        assert Position(0, 0).distance_to(Position(3, 5)) == 8

    def test_hashable(self):
        assert len({Position(1, 2), Position(1, 2), Position(2, 1)}) == 2

    def test_team_opponent(self):
        assert Team.PLAYER.opponent is Team.BOT
        assert Team.BOT.opponent is Team.PLAYER


class TestBounds:
    """is_valid_position tests."""

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (8, 0), (0, 10), (8, 10)])
    def test_out_of_bounds(self, x, y):
        assert not is_valid_position(Position(x, y))

    @pytest.mark.parametrize("x,y", [(0, 0), (7, 9), (3, 4)])
    def test_in_bounds(self, x, y):
        assert is_valid_position(Position(x, y))

    def test_custom_config(self):
        config = GridConfig(width=3, height=3, player_rows=(0,), enemy_rows=(2,))
        assert not is_valid_position(Position(3, 0), config)


class TestGrid:
    """Grid construction and queries."""

    def test_empty_grid_shape(self):
        grid = create_empty_grid()
        assert len(grid) == 10
        assert all(len(row) == 8 for row in grid)
        assert grid[4][3].position == Position(3, 4)

    def test_units_occupy_cells(self, make_unit):
        alive = make_unit("a", position=(2, 3))
        dead = make_unit("b", position=(4, 4))
        dead.alive = False
        grid = create_grid_with_units([alive, dead])
        assert grid[3][2].occupant_id == alive.instance_id
        assert not grid[4][4].is_occupied
        assert not is_walkable(Position(2, 3), grid)
        assert is_walkable(Position(4, 4), grid)

    def test_neighbors_order_and_bounds(self):
        """Neighbors come up, down, left, right and stay on the grid."""
        assert get_neighbors(Position(3, 3)) == [
            Position(3, 2), Position(3, 4), Position(2, 3), Position(4, 3)
        ]
        assert get_neighbors(Position(0, 0)) == [Position(0, 1), Position(1, 0)]

    def test_manhattan(self):
        assert manhattan_distance(Position(1, 1), Position(4, 5)) == 7

    def test_in_range_is_inclusive(self):
        assert is_in_range(Position(0, 0), Position(1, 1), 2)
        assert not is_in_range(Position(0, 0), Position(1, 2), 2)

    def test_unit_at_position_skips_dead(self, make_unit):
        corpse = make_unit("corpse", position=(2, 2))
        corpse.alive = False
        standing = make_unit("standing", position=(2, 3))
        units = [corpse, standing]
        assert get_unit_at_position(Position(2, 2), units) is None
        assert get_unit_at_position(Position(2, 3), units) is standing

    def test_units_in_range(self, make_unit):
        near = make_unit("near", position=(1, 1))
        far = make_unit("far", position=(7, 9))
        assert get_units_in_range(Position(0, 0), 2, [near, far]) == [near]

    def test_closest_unit_tie_keeps_order(self, make_unit):
        a = make_unit("a", position=(2, 0))
        b = make_unit("b", position=(0, 2))
        assert get_closest_unit(Position(0, 0), [a, b]) is a
        assert get_closest_unit(Position(0, 0), [b, a]) is b

    def test_movement_range_excludes_start_and_blocked(self, make_unit):
        blocker = make_unit("blocker", position=(1, 0))
        grid = create_grid_with_units([blocker])
        reachable = get_positions_in_movement_range(Position(0, 0), 1, grid)
        assert reachable == [Position(0, 1)]

    def test_aoe_is_square_clipped_to_grid(self):
        assert len(get_aoe_positions(Position(3, 3), 1)) == 9
        assert len(get_aoe_positions(Position(0, 0), 1)) == 4

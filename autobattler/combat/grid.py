"""Grid System for the battle engine.

Square grid with (x, y) coordinates: x is the column, y the row.
Movement is 4-directional and distances are Manhattan.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Set

from ..core.config import DEFAULT_GRID_CONFIG, GridConfig

if TYPE_CHECKING:
    from .combat_unit import BattleUnit


class Team(Enum):
    """Team identification."""

    PLAYER = "player"  # Deploys in the low rows
    BOT = "bot"  # Deploys in the high rows

    @property
    def opponent(self) -> "Team":
        return Team.BOT if self is Team.PLAYER else Team.PLAYER


@dataclass(frozen=True)
class Position:
    """
    Grid coordinate.

    Attributes:
        x: Column index (0 to width - 1).
        y: Row index (0 to height - 1).
    """

    x: int
    y: int

    def distance_to(self, other: "Position") -> int:
        """Manhattan distance to another position."""
        return manhattan_distance(self, other)

    def __repr__(self) -> str:
        return f"Position({self.x}, {self.y})"


@dataclass
class GridCell:
    """A single grid cell and its occupant."""

    position: Position
    walkable: bool = True
    occupant_id: Optional[str] = None

    @property
    def is_occupied(self) -> bool:
        return self.occupant_id is not None


Grid = List[List[GridCell]]

# Up, down, left, right
DIRECTIONS = ((0, -1), (0, 1), (-1, 0), (1, 0))


# =============================================================================
# CONSTRUCTION
# =============================================================================


def create_empty_grid(config: GridConfig = DEFAULT_GRID_CONFIG) -> Grid:
    """
    Create a grid with no occupants.

    Returns:
        grid[y][x] cells, height rows of width cells.
    """
    return [
        [GridCell(Position(x, y)) for x in range(config.width)]
        for y in range(config.height)
    ]


def create_grid_with_units(
    units: Iterable["BattleUnit"], config: GridConfig = DEFAULT_GRID_CONFIG
) -> Grid:
    """Create a grid with every living unit's cell marked occupied."""
    grid = create_empty_grid(config)
    for unit in units:
        if unit.alive and is_valid_position(unit.position, config):
            grid[unit.position.y][unit.position.x].occupant_id = unit.instance_id
    return grid


# =============================================================================
# QUERIES
# =============================================================================


def is_valid_position(position: Position, config: GridConfig = DEFAULT_GRID_CONFIG) -> bool:
    """Bounds check only."""
    return 0 <= position.x < config.width and 0 <= position.y < config.height


def is_walkable(position: Position, grid: Grid) -> bool:
    """True if the cell exists, is walkable and has no occupant."""
    if position.y < 0 or position.y >= len(grid):
        return False
    row = grid[position.y]
    if position.x < 0 or position.x >= len(row):
        return False
    cell = row[position.x]
    return cell.walkable and not cell.is_occupied


def get_neighbors(position: Position, config: GridConfig = DEFAULT_GRID_CONFIG) -> List[Position]:
    """In-bounds orthogonal neighbors in up, down, left, right order."""
    neighbors = []
    for dx, dy in DIRECTIONS:
        neighbor = Position(position.x + dx, position.y + dy)
        if is_valid_position(neighbor, config):
            neighbors.append(neighbor)
    return neighbors


def manhattan_distance(a: Position, b: Position) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


def is_in_range(origin: Position, target: Position, attack_range: int) -> bool:
    return manhattan_distance(origin, target) <= attack_range


def get_units_in_range(
    center: Position, radius: int, units: Iterable["BattleUnit"]
) -> List["BattleUnit"]:
    """Living units within a Manhattan radius, in input order."""
    return [
        unit for unit in units
        if unit.alive and is_in_range(center, unit.position, radius)
    ]


def get_closest_unit(origin: Position, units: Sequence["BattleUnit"]) -> Optional["BattleUnit"]:
    """
    Closest living unit by Manhattan distance.

    Exact ties keep the earliest unit in list order.
    """
    closest = None
    best_distance = None
    for unit in units:
        if not unit.alive:
            continue
        distance = manhattan_distance(origin, unit.position)
        if best_distance is None or distance < best_distance:
            closest = unit
            best_distance = distance
    return closest


def get_unit_at_position(
    position: Position, units: Iterable["BattleUnit"]
) -> Optional["BattleUnit"]:
    """Living unit standing on a cell, if any."""
    for unit in units:
        if unit.alive and unit.position == position:
            return unit
    return None


def get_positions_in_movement_range(
    start: Position,
    movement: int,
    grid: Grid,
    config: GridConfig = DEFAULT_GRID_CONFIG,
) -> List[Position]:
    """
    Cells reachable within a step budget (BFS over walkable cells).

    The start cell is excluded. Order is BFS discovery order.
    """
    visited: Set[Position] = {start}
    reachable: List[Position] = []
    queue = deque([(start, 0)])

    while queue:
        position, steps = queue.popleft()
        if steps >= movement:
            continue
        for neighbor in get_neighbors(position, config):
            if neighbor in visited or not is_walkable(neighbor, grid):
                continue
            visited.add(neighbor)
            reachable.append(neighbor)
            queue.append((neighbor, steps + 1))

    return reachable


def get_aoe_positions(
    center: Position, radius: int, config: GridConfig = DEFAULT_GRID_CONFIG
) -> List[Position]:
    """In-bounds cells of the square of the given radius around center."""
    positions = []
    for y in range(center.y - radius, center.y + radius + 1):
        for x in range(center.x - radius, center.x + radius + 1):
            position = Position(x, y)
            if is_valid_position(position, config):
                positions.append(position)
    return positions


def get_units_in_aoe(
    center: Position,
    radius: int,
    units: Iterable["BattleUnit"],
    config: GridConfig = DEFAULT_GRID_CONFIG,
) -> List["BattleUnit"]:
    """Living units inside a square area, in input order."""
    area = set(get_aoe_positions(center, radius, config))
    return [unit for unit in units if unit.alive and unit.position in area]

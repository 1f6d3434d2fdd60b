"""A* Pathfinding for the battle engine.

Implements A* on the square grid for unit movement: Manhattan heuristic,
4-directional steps of cost 1, bounded search.
"""

from collections import deque
from dataclasses import dataclass, field
from heapq import heappop, heappush
from itertools import count
from typing import Dict, Iterable, List, Optional, Set

from ..core.config import DEFAULT_GRID_CONFIG, GridConfig
from ..core.constants import PATHFINDING_CONSTANTS
from ..core.exceptions import BattleSimulationError
from .grid import Grid, Position, get_neighbors, is_valid_position, manhattan_distance


@dataclass(order=True)
class PathNode:
    """A* search node."""

    f_score: int  # g + h (total estimated cost)
    h_score: int  # Prefer nodes closer to the goal on f ties
    sequence: int  # Insertion order, final tie-break
    position: Position = field(compare=False)
    g_score: int = field(compare=False)  # Actual cost from start
    parent: Optional["PathNode"] = field(default=None, compare=False)


class PathFinder:
    """
    A* pathfinding on the square grid.

    Usage:
        finder = PathFinder(grid, config)
        path = finder.find_path(start, goal, obstacles)
    """

    def __init__(self, grid: Grid, config: GridConfig = DEFAULT_GRID_CONFIG):
        """
        Initialize pathfinder.

        Args:
            grid: Occupancy grid; occupied cells are obstacles.
            config: Grid dimensions.
        """
        self.grid = grid
        self.config = config
        self.last_iterations = 0

    def find_path(
        self,
        start: Position,
        goal: Position,
        obstacles: Optional[Iterable[Position]] = None,
        max_iterations: int = PATHFINDING_CONSTANTS["MAX_ITERATIONS"],
    ) -> List[Position]:
        """
        Find shortest path from start to goal.

        Args:
            start: Starting position (the mover's own cell never blocks).
            goal: Target position.
            obstacles: Extra blocked positions on top of grid occupancy.
            max_iterations: Maximum search iterations.

        Returns:
            Path as list of positions (including start and goal), or an
            empty list if start == goal, the goal is blocked, or no path
            is found within max_iterations.

        Raises:
            BattleSimulationError: If start or goal lies outside the grid.
        """
        for label, position in (("start", start), ("goal", goal)):
            if not is_valid_position(position, self.config):
                raise BattleSimulationError(
                    f"Pathfinding {label} {position} is outside grid bounds"
                )

        self.last_iterations = 0
        if start == goal:
            return []

        blocked = self._blocked_positions(obstacles)
        blocked.discard(start)
        if goal in blocked:
            return []

        # A* initialization
        sequence = count()
        open_set: List[PathNode] = []
        closed_set: Set[Position] = set()
        g_scores: Dict[Position, int] = {start: 0}

        h = manhattan_distance(start, goal)
        heappush(open_set, PathNode(h, h, next(sequence), start, 0))

        while open_set and self.last_iterations < max_iterations:
            self.last_iterations += 1
            current = heappop(open_set)

            # Goal reached
            if current.position == goal:
                return self._reconstruct_path(current)

            # Skip if already processed
            if current.position in closed_set:
                continue

            closed_set.add(current.position)

            for neighbor_pos in get_neighbors(current.position, self.config):
                if neighbor_pos in blocked or neighbor_pos in closed_set:
                    continue

                tentative_g = current.g_score + PATHFINDING_CONSTANTS["MOVEMENT_COST"]

                # Skip if we've found a better path already
                if neighbor_pos in g_scores and tentative_g >= g_scores[neighbor_pos]:
                    continue

                g_scores[neighbor_pos] = tentative_g
                h = manhattan_distance(neighbor_pos, goal)
                heappush(
                    open_set,
                    PathNode(
                        f_score=tentative_g + h,
                        h_score=h,
                        sequence=next(sequence),
                        position=neighbor_pos,
                        g_score=tentative_g,
                        parent=current,
                    ),
                )

        # No path found
        return []

    def _blocked_positions(self, obstacles: Optional[Iterable[Position]]) -> Set[Position]:
        blocked = set(obstacles) if obstacles is not None else set()
        for row in self.grid:
            for cell in row:
                if cell.is_occupied or not cell.walkable:
                    blocked.add(cell.position)
        return blocked

    def _reconstruct_path(self, node: PathNode) -> List[Position]:
        """Reconstruct path from goal node back to start."""
        path = []
        current: Optional[PathNode] = node
        while current is not None:
            path.append(current.position)
            current = current.parent
        path.reverse()
        return path


def find_path(
    start: Position,
    goal: Position,
    grid: Grid,
    obstacles: Optional[Iterable[Position]] = None,
    max_iterations: int = PATHFINDING_CONSTANTS["MAX_ITERATIONS"],
    config: GridConfig = DEFAULT_GRID_CONFIG,
) -> List[Position]:
    """Shortest path from start to goal; see PathFinder.find_path."""
    return PathFinder(grid, config).find_path(start, goal, obstacles, max_iterations)


def has_path(
    start: Position,
    goal: Position,
    grid: Grid,
    obstacles: Optional[Iterable[Position]] = None,
    config: GridConfig = DEFAULT_GRID_CONFIG,
) -> bool:
    """True if a non-empty path exists."""
    return len(find_path(start, goal, grid, obstacles, config=config)) > 0


def find_path_with_max_length(
    start: Position,
    goal: Position,
    grid: Grid,
    max_length: int,
    obstacles: Optional[Iterable[Position]] = None,
    config: GridConfig = DEFAULT_GRID_CONFIG,
) -> List[Position]:
    """
    Path to the goal, only if it takes at most max_length steps.

    Returns:
        The full path (start cell included), or [] if there is no path
        or the goal is farther than max_length steps.
    """
    path = find_path(start, goal, grid, obstacles, config=config)
    if len(path) - 1 > max_length:
        return []
    return path


def find_closest_reachable_position(
    start: Position,
    target: Position,
    grid: Grid,
    max_steps: int,
    config: GridConfig = DEFAULT_GRID_CONFIG,
) -> Optional[Position]:
    """
    Reachable cell nearest to target within a step budget.

    Only cells strictly closer to target than start are considered; ties
    keep BFS discovery order (up, down, left, right).

    Returns:
        The best cell, or None if no move gets closer.
    """
    best: Optional[Position] = None
    best_distance = manhattan_distance(start, target)

    visited: Set[Position] = {start}
    queue = deque([(start, 0)])
    while queue:
        position, steps = queue.popleft()
        if steps >= max_steps:
            continue
        for neighbor in get_neighbors(position, config):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            cell = grid[neighbor.y][neighbor.x]
            if cell.is_occupied or not cell.walkable:
                continue
            distance = manhattan_distance(neighbor, target)
            if distance < best_distance:
                best = neighbor
                best_distance = distance
            queue.append((neighbor, steps + 1))

    return best

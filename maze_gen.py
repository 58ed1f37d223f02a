# maze_gen.py
from collections import deque
from typing import NamedTuple, Optional

# Import from other project modules
import constants as const
from errors import GridTooSmall, UnreachableExpansion
from grid_core import CylinderGrid, Coord
from utils import RandomSource


class FrontierNode(NamedTuple):
    x: int
    y: int
    depth: int  # Path length from the park cell


class MazeResult:
    """Outcome of one maze build: where it starts, where it opens, and queue statistics."""

    def __init__(self, park_cell: Coord, start_cell: Coord, has_mark: bool):
        self.park_cell = park_cell
        self.start_cell = start_cell
        self.has_mark = has_mark
        self.exit_cell: Optional[Coord] = None
        self.exit_depth = 0
        self.entry_angle = 0.0  # Degrees
        self.test_pattern = False
        self.front_insertions = 0
        self.back_insertions = 0
        self.dead_ends = 0

    @property
    def front_ratio(self) -> float:
        total = self.front_insertions + self.back_insertions
        return self.front_insertions / total if total else 0.0

    def __repr__(self) -> str:
        return (
            f"MazeResult(exit={self.exit_cell}, depth={self.exit_depth}, "
            f"angle={self.entry_angle:.1f})"
        )


def place_park(grid: CylinderGrid, park_vertical: bool = False, mark: bool = True) -> MazeResult:
    """
    Opens the fixed passages of the final parked position, plus the 2x2
    mark loop next to it when there is room. Returns a result whose
    start_cell is where the random walk begins.
    """
    helix = grid.helix
    columns = grid.group_step
    if park_vertical:
        if grid.height < helix + 3:
            raise GridTooSmall(f"Grid height {grid.height} has no room for a vertical park.")
        for n in range(helix + 2):  # Down to final
            grid.set_flags(0, n, const.FLAG_U | const.FLAG_D)
            grid.set_flags(0, n + 1, const.FLAG_D)
        x, y = 0, helix + 2
        park_cell = (0, helix + 1)
        has_mark = mark and columns > 2 and grid.height > helix + 4
        if has_mark:
            grid.set_flags(x, y, const.FLAG_D | const.FLAG_U | const.FLAG_R)
            grid.set_flags(x, y + 1, const.FLAG_D | const.FLAG_R)
            grid.set_flags(x + 1, y, const.FLAG_D | const.FLAG_U | const.FLAG_L)
            grid.set_flags(x + 1, y + 1, const.FLAG_D | const.FLAG_L)
            grid.set_flags(x + 1, y - 1, const.FLAG_U)
            x, y = x + 1, y - 1
    else:
        if grid.height < helix + 2:
            raise GridTooSmall(f"Grid height {grid.height} has no room for the park row.")
        park_cell = (0, helix + 1)
        x, y = grid.open_edge(0, helix + 1, const.FLAG_R)  # Left to final
        has_mark = mark and columns > 3 and grid.height > helix + 3
        if has_mark:
            grid.set_flags(x, y, const.FLAG_L | const.FLAG_R | const.FLAG_U)
            grid.set_flags(x + 1, y, const.FLAG_L | const.FLAG_U)
            grid.set_flags(x + 1, y + 1, const.FLAG_L | const.FLAG_D)
            grid.set_flags(x, y + 1, const.FLAG_L | const.FLAG_R | const.FLAG_D)
            grid.set_flags(x - 1, y + 1, const.FLAG_R)
            x, y = x - 1, y + 1
    return MazeResult(park_cell=park_cell, start_cell=(x, y), has_mark=has_mark)


def _choose_direction(grid: CylinderGrid, node: FrontierNode, rng: RandomSource) -> Optional[int]:
    """Weighted random pick among free neighbours, None at a dead end."""
    available = [
        (flag, bias)
        for flag, bias in const.DIRECTION_BIAS_ORDER
        if grid.is_free(*grid.neighbour(node.x, node.y, flag))
    ]
    total = sum(bias for _, bias in available)
    if not total:
        return None
    v = rng.random_int(total)
    for flag, bias in available:
        v -= bias
        if v < 0:
            return flag
    raise UnreachableExpansion(
        f"Direction draw {v + total} of {total} at ({node.x}, {node.y}) matched no direction."
    )


def _grow_maze(
    grid: CylinderGrid,
    result: MazeResult,
    rng: RandomSource,
    complexity: int,
    align_exit: bool,
) -> int:
    """Runs the biased frontier walk from result.start_cell. Returns the exit column."""
    frontier = deque([FrontierNode(result.start_cell[0], result.start_cell[1], 0)])
    front_limit = abs(complexity)
    max_depth = 0
    exit_x = 0

    while frontier:
        node = frontier.popleft()
        direction = _choose_direction(grid, node, rng)
        if direction is None:
            result.dead_ends += 1
            continue
        if not grid.is_free(*grid.neighbour(node.x, node.y, direction)):
            raise UnreachableExpansion(f"Cell next to ({node.x}, {node.y}) is no longer free.")
        nx, ny = grid.open_edge(node.x, node.y, direction)

        # Longest path that reaches the top
        if (
            node.depth > max_depth
            and grid.is_invalid(*grid.neighbour(nx, ny, const.FLAG_U))
            and (not align_exit or nx % grid.group_step == 0)
        ):
            max_depth = node.depth
            exit_x = nx

        # Front of the queue makes long corridors, back makes many short branches
        new_node = FrontierNode(nx, ny, node.depth + 1)
        v = rng.random_int(const.COMPLEXITY_LIMIT)
        if v < front_limit:
            frontier.appendleft(new_node)
            result.front_insertions += 1
        else:
            frontier.append(new_node)
            result.back_insertions += 1
        if complexity <= 0 and v < -complexity:
            frontier.appendleft(node)
            result.front_insertions += 1
        else:
            frontier.append(node)
            result.back_insertions += 1

    result.exit_depth = max_depth
    return exit_x


def _apply_test_pattern(grid: CylinderGrid, align_exit: bool) -> int:
    """Opens every rightward edge between valid cells. Returns the exit column."""
    for x, y in grid.get_all_cells():
        if not grid.is_invalid(x, y) and not grid.is_invalid(x + 1, y):
            grid.open_edge(x, y, const.FLAG_R)
    exit_x = 0
    if not align_exit:
        while exit_x + 1 < grid.width and not grid.is_invalid(exit_x + 1, grid.height - 2):
            exit_x += 1
    return exit_x


def carve_exit_channel(grid: CylinderGrid, exit_x: int) -> Coord:
    """
    Opens a vertical channel from the top of the grid down to the first valid
    cell in the exit column and each of its symmetric columns. Returns that
    cell in the exit column itself.
    """
    exit_cell = (exit_x, 0)
    for x in range(exit_x % grid.group_step, grid.width, grid.group_step):
        y = grid.height - 1
        while y and grid.is_invalid(x, y):
            grid.flags[x, y] |= const.FLAG_U | const.FLAG_D
            y -= 1
        grid.flags[x, y] |= const.FLAG_U
        if x == exit_x:
            exit_cell = (x, y)
    return exit_cell


def generate_maze(
    grid: CylinderGrid,
    rng: RandomSource,
    complexity: int = const.DEFAULT_MAZE_COMPLEXITY,
    park_vertical: bool = False,
    mark: bool = True,
    align_exit: bool = False,
    test_pattern: bool = False,
) -> MazeResult:
    """
    Generates the maze passages in place on the grid (whose invalid band must
    already be set) and returns where the maze starts and exits.

    complexity is -10..10; its magnitude is the chance in ten that a newly
    found cell goes to the front of the queue. Zero or negative values also
    send the current cell to the front with the same draw.
    """
    if not -const.COMPLEXITY_LIMIT <= complexity <= const.COMPLEXITY_LIMIT:
        raise ValueError(f"Complexity {complexity} is outside -10..10.")
    print(f"--- Starting Maze Generation ({grid.width}x{grid.height}, complexity {complexity}) ---")

    result = place_park(grid, park_vertical=park_vertical, mark=mark)
    print(f"  Park cell {result.park_cell}, walk starts at {result.start_cell}, mark: {result.has_mark}")

    if test_pattern:
        result.test_pattern = True
        exit_x = _apply_test_pattern(grid, align_exit)
    else:
        exit_x = _grow_maze(grid, result, rng, complexity, align_exit)
        print(
            f"  Path length {result.exit_depth}, front/back insertions "
            f"{result.front_insertions}/{result.back_insertions}, dead ends {result.dead_ends}"
        )

    result.exit_cell = carve_exit_channel(grid, exit_x)
    result.entry_angle = 360.0 * exit_x / grid.width
    print(f"--- Maze Generation Complete: exit {result.exit_cell} at {result.entry_angle:.2f} deg ---")
    return result

# grid_core.py
import numpy as np
from typing import List, Tuple, Iterator

# Import from other project modules
import constants as const
from errors import GridTooSmall

Coord = Tuple[int, int]


class CylinderGrid:
    """
    A W x H maze grid wrapped around a cylinder.

    Column x is the angular position and row y the axial position. Moving past
    either angular edge shifts y by the helix count, so rows form a spiral when
    helix > 0. With nubs > 1 every logical cell appears `nubs` times, W/nubs
    columns apart, and all copies are read and written together.

    Direction flags and validity are kept in separate arrays so that an
    invalid cell can still carry flags (the exit channel does this).
    """

    def __init__(self, width: int, height: int, helix: int = 0, nubs: int = 1):
        if nubs < 1:
            raise ValueError(f"Nub count must be positive, got {nubs}.")
        if helix < 0:
            raise ValueError(f"Helix must not be negative, got {helix}.")
        if width < const.MIN_GRID_WIDTH or height < const.MIN_GRID_HEIGHT:
            raise GridTooSmall(f"Grid {width}x{height} is too small for a maze.")
        if width % nubs:
            raise ValueError(f"Grid width {width} is not a multiple of nubs ({nubs}).")
        if width // nubs < const.MIN_COLUMNS_PER_NUB:
            raise GridTooSmall(
                f"Grid width {width} leaves fewer than {const.MIN_COLUMNS_PER_NUB} columns per nub."
            )
        if helix % nubs:
            raise ValueError(f"Helix {helix} does not divide between {nubs} nubs.")

        self.width = width
        self.height = height
        self.helix = helix
        self.nubs = nubs
        self.group_step = width // nubs  # Columns between symmetric copies
        self.group_rise = helix // nubs  # Rows dropped per copy step

        self.flags = np.zeros((width, height), dtype=np.uint8)
        self.invalid = np.zeros((width, height), dtype=bool)

    def __repr__(self) -> str:
        return (
            f"CylinderGrid({self.width}x{self.height}, helix={self.helix}, nubs={self.nubs})"
        )

    # --- Addressing ---
    def wrap(self, x: int, y: int) -> Coord:
        """Normalises x into [0, W), moving y by the helix at each seam crossing."""
        while x < 0:
            x += self.width
            y -= self.helix
        while x >= self.width:
            x -= self.width
            y += self.helix
        return x, y

    def neighbour(self, x: int, y: int, direction: int) -> Coord:
        if direction not in const.DIRECTION_OFFSETS:
            raise ValueError(f"Unknown direction flag {direction!r}.")
        dx, dy = const.DIRECTION_OFFSETS[direction]
        return self.wrap(x + dx, y + dy)

    def group_cells(self, x: int, y: int) -> List[Coord]:
        """
        Lists the physical cells of the symmetric group containing (x, y),
        starting with (x, y) itself. Rows may be out of range.
        """
        x, y = self.wrap(x, y)
        cells = [(x, y)]
        for _ in range(self.nubs - 1):
            x += self.group_step
            if x >= self.width:
                x -= self.width
                y += self.helix
            y -= self.group_rise
            cells.append((x, y))
        return cells

    def canonical(self, x: int, y: int) -> Coord:
        """The copy of (x, y) whose column lies in [0, W/nubs)."""
        for cx, cy in self.group_cells(x, y):
            if cx < self.group_step:
                return cx, cy
        raise AssertionError(f"No canonical copy for ({x}, {y})")  # pragma: no cover

    # --- Queries ---
    def group_flags(self, x: int, y: int) -> int:
        """Bitwise OR of the direction flags of every in-range copy."""
        mask = 0
        for cx, cy in self.group_cells(x, y):
            if 0 <= cy < self.height:
                mask |= int(self.flags[cx, cy])
        return mask

    def is_invalid(self, x: int, y: int) -> bool:
        """True if any copy is out of range or marked invalid."""
        for cx, cy in self.group_cells(x, y):
            if not (0 <= cy < self.height) or self.invalid[cx, cy]:
                return True
        return False

    def is_free(self, x: int, y: int) -> bool:
        """A cell the maze may still move into: valid and without any edge."""
        return not self.is_invalid(x, y) and self.group_flags(x, y) == 0

    def is_emitted(self, x: int, y: int) -> bool:
        """Valid cells with at least one open edge get geometry."""
        return not self.is_invalid(x, y) and self.group_flags(x, y) != 0

    # --- Updates ---
    def set_flags(self, x: int, y: int, mask: int):
        """ORs mask into every in-range copy of (x, y)."""
        for cx, cy in self.group_cells(x, y):
            if 0 <= cy < self.height:
                self.flags[cx, cy] |= mask

    def open_edge(self, x: int, y: int, direction: int) -> Coord:
        """Opens the passage from (x, y) in direction and returns the neighbour."""
        nx, ny = self.neighbour(x, y, direction)
        self.set_flags(x, y, direction)
        self.set_flags(nx, ny, const.OPPOSITE_FLAG[direction])
        return nx, ny

    def mark_invalid(self, x: int, y: int):
        x, y = self.wrap(x, y)
        if 0 <= y < self.height:
            self.invalid[x, y] = True

    # --- Iteration ---
    def size(self) -> int:
        return self.width * self.height

    def get_all_cells(self) -> Iterator[Coord]:
        """Physical cells, row by row, the order geometry is emitted in."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def logical_cells(self) -> Iterator[Coord]:
        """One representative per valid symmetric group."""
        for y in range(self.height):
            for x in range(self.group_step):
                if not self.is_invalid(x, y):
                    yield x, y

    def logical_edges(self) -> List[Tuple[Coord, Coord]]:
        """Open passages between valid groups, each listed once from its left/lower end."""
        edges = []
        for x, y in self.logical_cells():
            mask = self.group_flags(x, y)
            for direction in (const.FLAG_R, const.FLAG_U):
                if not mask & direction:
                    continue
                nx, ny = self.neighbour(x, y, direction)
                if self.is_invalid(nx, ny):
                    continue
                edges.append(((x, y), self.canonical(nx, ny)))
        return edges

    def linked_neighbours(self, x: int, y: int) -> List[Coord]:
        """Canonical neighbours reachable through open passages."""
        mask = self.group_flags(x, y)
        linked = []
        for direction in const.DIRECTION_OFFSETS:
            if mask & direction:
                nx, ny = self.neighbour(x, y, direction)
                if not self.is_invalid(nx, ny):
                    linked.append(self.canonical(nx, ny))
        return linked

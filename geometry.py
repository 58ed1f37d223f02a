# geometry.py
import numpy as np
import math
from typing import Optional

# Import from other project modules
import constants as const
from grid_core import CylinderGrid

# Radial layers of a slice ring
LAYER_BACK = 0  # Plain wall behind the maze
LAYER_RECESS = 1  # Floor of a carved passage
LAYER_FACE = 2  # Flush surface of the maze wall

# Radial layer of each of the four axial levels of a cell
LEVEL_LAYERS = (LAYER_FACE, LAYER_RECESS, LAYER_RECESS, LAYER_FACE)


class MazeLayout:
    """
    Physical placement of one maze: the cylinder it is cut into, how the grid
    maps onto it, and the z range it occupies.

    base is the lowest z a passage may reach, height the top of the part.
    y0 is the z of row 0 at column 0 before the per-slice helical rise.
    """

    def __init__(
        self,
        radius: float,
        inside: bool,
        width: int,
        height: int,
        y0: float,
        base: float,
        top: float,
        step: float = const.DEFAULT_MAZE_STEP,
        helix: int = 0,
        nubs: int = 1,
        margin: float = const.DEFAULT_MAZE_MARGIN,
        maze_thickness: float = const.DEFAULT_MAZE_THICKNESS,
        back_thickness: float = const.DEFAULT_WALL_THICKNESS,
        base_z: Optional[float] = None,
        top_rim_z: Optional[float] = None,
        nub_skew: Optional[float] = None,
        park_vertical: bool = False,
    ):
        if radius <= 0 or step <= 0:
            raise ValueError(f"Radius ({radius}) and maze step ({step}) must be positive.")
        if maze_thickness <= 0:
            raise ValueError(f"Maze thickness must be positive, got {maze_thickness}.")
        self.radius = radius
        self.inside = inside
        self.width = width
        self.height = height
        self.y0 = y0
        self.base = base
        self.top = top
        self.step = step
        self.helix = helix
        self.nubs = nubs
        self.margin = margin
        self.maze_thickness = maze_thickness
        self.back_thickness = back_thickness
        self.base_z = base if base_z is None else base_z
        self.top_rim_z = top - margin if top_rim_z is None else top_rim_z
        # Skewing the cut keeps the groove printable; zero gives a symmetric cut
        self.nub_skew = step / 8 if nub_skew is None else nub_skew
        self.park_vertical = park_vertical

    @classmethod
    def for_part(
        cls,
        radius: float,
        inside: bool,
        base: float,
        top: float,
        step: float = const.DEFAULT_MAZE_STEP,
        helix: int = 0,
        nubs: int = 1,
        margin: float = const.DEFAULT_MAZE_MARGIN,
        maze_thickness: float = const.DEFAULT_MAZE_THICKNESS,
        park_vertical: bool = False,
        **kwargs,
    ) -> "MazeLayout":
        """Derives grid width, row count and row origin from the part dimensions."""
        passage_radius = radius + (maze_thickness if inside else -maze_thickness)
        width = int(passage_radius * 2 * math.pi / step) // nubs * nubs
        usable = top - base - margin - (step / 4 if park_vertical else 0) - step / 8
        rows = int(usable / step) + 2 + helix  # One above, one below and helix below
        y0 = base + step / 2 - step * (helix + 1) + step / 8
        return cls(
            radius=radius,
            inside=inside,
            width=width,
            height=rows,
            y0=y0,
            base=base,
            top=top,
            step=step,
            helix=helix,
            nubs=nubs,
            margin=margin,
            maze_thickness=maze_thickness,
            park_vertical=park_vertical,
            **kwargs,
        )

    @property
    def slice_count(self) -> int:
        return self.width * const.SLICES_PER_CELL

    @property
    def row_rise(self) -> float:
        """Z rise per grid column from the helix."""
        return self.step * self.helix / self.width

    def make_grid(self) -> CylinderGrid:
        """Creates the maze grid with cells outside the usable height marked invalid."""
        grid = CylinderGrid(self.width, self.height, helix=self.helix, nubs=self.nubs)
        apply_height_band(grid, self)
        return grid

    def __repr__(self) -> str:
        side = "inside" if self.inside else "outside"
        return f"MazeLayout({side} r={self.radius:.2f}, {self.width}x{self.height})"


def apply_height_band(grid: CylinderGrid, layout: MazeLayout):
    """Marks cells too low (into the base) or too high (above the margin) as invalid."""
    xs, ys = np.meshgrid(np.arange(grid.width), np.arange(grid.height), indexing="ij")
    z = layout.step * ys + layout.y0 + layout.row_rise * xs
    low = layout.base + layout.step / 2 + layout.step / 8
    high = layout.top - layout.step / 2 - layout.margin - layout.step / 8
    band = (z < low - const.GEOMETRY_TOLERANCE) | (z > high + const.GEOMETRY_TOLERANCE)
    grid.invalid |= band


def compute_slice_rings(layout: MazeLayout) -> np.ndarray:
    """
    Returns an array of shape (4W, 3, 2): the x/y position of every slice
    boundary on the back, recess and face layers.
    """
    count = layout.slice_count
    angles = 2 * math.pi * (np.arange(count) - 1.5) / count
    if not layout.inside:
        angles = 2 * math.pi - angles
    r = layout.radius
    t = layout.maze_thickness
    if layout.inside:
        radii = np.array([r + t + layout.back_thickness, r + t, r])
    else:
        radii = np.array([r - t - layout.back_thickness, r - t, r])
    rings = np.empty((count, 3, 2))
    rings[:, :, 0] = np.outer(np.sin(angles), radii)
    rings[:, :, 1] = np.outer(np.cos(angles), radii)
    return rings


def cell_level_z(layout: MazeLayout, row: int, slice_index: int) -> np.ndarray:
    """Z of the four axial levels of a cell at one of its slices."""
    rise = layout.row_rise / const.SLICES_PER_CELL  # Per slice
    level_step = layout.step / 8
    centre = layout.y0 - rise * 1.5 + row * layout.step + rise * slice_index
    return centre + np.array(
        [
            -3 * level_step,
            -level_step - layout.nub_skew,
            level_step - layout.nub_skew,
            3 * level_step,
        ]
    )

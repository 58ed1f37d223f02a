# nubs.py
import numpy as np
import math
from typing import List, Optional

# Import from other project modules
import constants as const
from errors import GridTooSmall
from mesh_builder import PolyhedronMesh, combine_meshes
from utils import RandomSource, rotate_points_z

# Faces of one nub prism. Points 0-15 are the 4x4 front grid (Z major),
# 16-31 the matching grid pushed back into the wall.
NUB_FACES = (
    [[z * 4 + x + 20, z * 4 + x + 21, z * 4 + x + 17] for z in range(3) for x in range(3)]
    + [[z * 4 + x + 20, z * 4 + x + 17, z * 4 + x + 16] for z in range(3) for x in range(3)]
    + [f for z in range(3) for f in (
        [z * 4 + 4, z * 4 + 20, z * 4 + 16],
        [z * 4 + 4, z * 4 + 16, z * 4 + 0],
        [z * 4 + 23, z * 4 + 7, z * 4 + 3],
        [z * 4 + 23, z * 4 + 3, z * 4 + 19],
    )]
    + [f for x in range(3) for f in (
        [x + 28, x + 12, x + 13],
        [x + 28, x + 13, x + 29],
        [x + 0, x + 16, x + 17],
        [x + 0, x + 17, x + 1],
    )]
    + [
        [0, 1, 5], [0, 5, 4], [4, 5, 9], [4, 9, 8], [8, 9, 12], [9, 13, 12],
        [1, 2, 6], [1, 6, 5], [5, 6, 10], [5, 10, 9], [9, 10, 14], [9, 14, 13],
        [2, 3, 6], [3, 7, 6], [6, 7, 11], [6, 11, 10], [10, 11, 15], [10, 15, 14],
    ]
)


class NubSpec:
    """
    Where and how big the nubs on one wall of a part are.

    radius is the wall surface the nubs stand on; inside nubs point inwards
    into an outside maze of the next part in, outside nubs point outwards.
    height is the top of the part; nubs sit just below it.
    """

    def __init__(
        self,
        radius: float,
        inside: bool,
        height: float,
        entry_angle: float = 0.0,
        step: float = const.DEFAULT_MAZE_STEP,
        helix: int = 0,
        nubs: int = 1,
        maze_thickness: float = const.DEFAULT_MAZE_THICKNESS,
        clearance: float = const.DEFAULT_CLEARANCE,
        nub_r_clearance: float = const.DEFAULT_NUB_R_CLEARANCE,
        nub_z_clearance: float = const.DEFAULT_NUB_Z_CLEARANCE,
        nub_skew: Optional[float] = None,
        park_vertical: bool = False,
    ):
        if nubs < 1:
            raise ValueError(f"Nub count must be positive, got {nubs}.")
        if nub_z_clearance >= step / 4:
            raise ValueError(f"Nub Z clearance {nub_z_clearance} leaves no nub at step {step}.")
        self.radius = radius
        self.inside = inside
        self.height = height
        self.entry_angle = entry_angle
        self.step = step
        self.helix = helix
        self.nubs = nubs
        self.maze_thickness = maze_thickness
        self.clearance = clearance
        self.nub_r_clearance = nub_r_clearance
        self.nub_z_clearance = nub_z_clearance
        self.nub_skew = step / 8 if nub_skew is None else nub_skew
        self.park_vertical = park_vertical

    @property
    def tip_radius(self) -> float:
        """Radius of the raised middle of the nub, before clearance."""
        return self.radius + (-self.maze_thickness if self.inside else self.maze_thickness)

    @property
    def maze_width(self) -> int:
        """Column count of the maze the nub runs in."""
        side = -self.clearance if self.inside else self.clearance
        return int((self.tip_radius + side) * 2 * math.pi / self.step) // self.nubs * self.nubs

    def copy_angles(self) -> List[float]:
        return [self.entry_angle + k * 360.0 / self.nubs for k in range(self.nubs)]

    def __repr__(self) -> str:
        side = "inside" if self.inside else "outside"
        return f"NubSpec({side} r={self.radius:.2f}, x{self.nubs} at {self.entry_angle:.1f} deg)"


def nub_points(spec: NubSpec) -> np.ndarray:
    """The 32 points of a single nub at angle zero."""
    width = spec.maze_width
    if width < const.MIN_GRID_WIDTH:
        raise GridTooSmall(f"Nub radius {spec.radius:.2f} gives a maze only {width} columns wide.")
    da = 2 * math.pi / width / 4  # Angle per quarter cell
    dz = spec.step / 4 - spec.nub_z_clearance
    my = spec.step * da * 4 * spec.helix / (spec.radius * 2 * math.pi)
    if spec.inside:
        da = -da
    a = -da * 1.5  # Centre
    z = spec.height - spec.step / 2 - (0 if spec.park_vertical else spec.step / 8) - dz * 1.5 - my * 1.5

    gap = spec.nub_r_clearance if spec.inside else -spec.nub_r_clearance
    r = spec.radius + gap
    ri = spec.tip_radius + gap
    points = []
    for row in range(4):
        for col in range(4):
            raised = col in (1, 2) and row in (1, 2)
            rad = ri if raised else r
            points.append(
                (
                    rad * math.sin(a + da * col),
                    rad * math.cos(a + da * col),
                    z + row * dz + col * my + (spec.nub_skew if row in (1, 2) else 0),
                )
            )
    # Back in to wall
    r += spec.clearance - spec.nub_r_clearance if spec.inside else spec.nub_r_clearance - spec.clearance
    for row in range(4):
        for col in range(4):
            points.append(
                (
                    r * math.sin(a + da * col),
                    r * math.cos(a + da * col),
                    z + row * dz + col * my + (spec.nub_skew if row in (1, 2) else 0),
                )
            )
    return np.array(points)


def build_nub_mesh(spec: NubSpec) -> PolyhedronMesh:
    """All nubs of one wall, rotated to the entry angle and spread evenly around."""
    print(f"\n--- Creating Nubs ({spec}) ---")
    base = nub_points(spec)
    name = f"nubs_{'inside' if spec.inside else 'outside'}"
    copies = [
        PolyhedronMesh(rotate_points_z(base, angle), NUB_FACES, f"{name}_{k}")
        for k, angle in enumerate(spec.copy_angles())
    ]
    return combine_meshes(copies, name)


def draw_entry_angle(rng: RandomSource) -> float:
    """A whole-degree angle for a joint that may sit anywhere."""
    return float(rng.random_int(360))

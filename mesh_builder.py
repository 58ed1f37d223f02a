# mesh_builder.py

import numpy as np
import trimesh
from collections import Counter
from scipy.spatial import cKDTree
from scipy.spatial.distance import pdist
from typing import Dict, List, NamedTuple, Optional, Tuple

import constants as const

# Import from other project modules
from errors import PointBudgetExceeded, TopologyLookupFailure
from geometry import (
    LAYER_BACK,
    LAYER_FACE,
    LAYER_RECESS,
    LEVEL_LAYERS,
    MazeLayout,
    cell_level_z,
    compute_slice_rings,
)
from grid_core import CylinderGrid, Coord


class PointRef(NamedTuple):
    """A point index plus which surface it belongs to (recess floor or not)."""

    index: int
    recess: bool


class PolyhedronMesh:
    """Points plus polygon faces (lists of point indices) of one closed solid."""

    def __init__(self, points, faces: List[List[int]], name: str = "polyhedron"):
        self.points = np.asarray(points, dtype=float).reshape(-1, 3)
        self.faces = [list(face) for face in faces]
        self.name = name

    def __repr__(self) -> str:
        return f"PolyhedronMesh({self.name}: {len(self.points)}V, {len(self.faces)}F)"

    def triangles(self) -> np.ndarray:
        """Fan-triangulates every polygon face."""
        tris = []
        for face in self.faces:
            for i in range(1, len(face) - 1):
                tris.append([face[0], face[i], face[i + 1]])
        return np.array(tris, dtype=np.int64).reshape(-1, 3)

    def to_trimesh(self) -> trimesh.Trimesh:
        return trimesh.Trimesh(vertices=self.points, faces=self.triangles(), process=False)

    def boundary_edges(self) -> List[Tuple[int, int]]:
        """
        Directed edges that break the closed-manifold rule: used more than
        once, or without the matching reverse edge.
        """
        directed = Counter()
        for face in self.faces:
            for i, a in enumerate(face):
                directed[(a, face[(i + 1) % len(face)])] += 1
        bad = []
        for (a, b), count in directed.items():
            if count != 1 or directed.get((b, a), 0) != 1:
                bad.append((a, b))
        return sorted(bad)

    @property
    def is_closed(self) -> bool:
        return not self.boundary_edges()

    def referenced_points(self) -> np.ndarray:
        used = sorted({i for face in self.faces for i in face})
        return self.points[used]

    def has_coincident_points(self) -> bool:
        """Checks if any two referenced vertices are too close together."""
        verts = self.referenced_points()
        if verts.shape[0] <= 1:
            return False
        tolerance = np.sqrt(const.MESH_VERTEX_DISTANCE_TOLERANCE_SQ)
        return bool(cKDTree(verts).query_pairs(tolerance))

    def degenerate_faces(self) -> List[int]:
        """Faces with two corners (not necessarily adjacent) at the same position."""
        bad = []
        for n, face in enumerate(self.faces):
            verts = self.points[face]
            if len(face) < 3 or np.any(pdist(verts) ** 2 < const.MESH_VERTEX_DISTANCE_TOLERANCE_SQ):
                bad.append(n)
        return bad


def find_boundary_edges(meshes: List[PolyhedronMesh]) -> Dict[str, List[Tuple[int, int]]]:
    """Open or non-manifold edges per named mesh, only for meshes that have any."""
    found = {}
    for mesh in meshes:
        edges = mesh.boundary_edges()
        if edges:
            print(f"WARN: {mesh.name} has {len(edges)} unmatched edges, e.g. {edges[:3]}")
            found[mesh.name] = edges
    return found


def combine_meshes(meshes: List[PolyhedronMesh], name: str) -> PolyhedronMesh:
    """Concatenates disjoint solids, renumbering faces."""
    points, faces = [], []
    offset = 0
    for mesh in meshes:
        points.append(mesh.points)
        faces.extend([[i + offset for i in face] for face in mesh.faces])
        offset += len(mesh.points)
    if not points:
        return PolyhedronMesh(np.empty((0, 3)), [], name)
    return PolyhedronMesh(np.vstack(points), faces, name)


class SliceState:
    """
    Bookkeeping for one angular slice: every point emitted on its boundary
    line in order, and the left/right points currently bounding the strip
    between this line and the next.
    """

    def __init__(self, index: int, capacity: Optional[int] = None):
        self.index = index
        self.capacity = capacity
        self.history: List[PointRef] = []
        self.base: Dict[int, PointRef] = {}  # Layer -> base ring point
        self.left: Optional[PointRef] = None
        self.right: Optional[PointRef] = None

    def record(self, ref: PointRef):
        if self.capacity is not None and len(self.history) >= self.capacity:
            raise PointBudgetExceeded(
                f"Slice {self.index} exceeded its capacity of {self.capacity} points."
            )
        self.history.append(ref)

    def locate(self, index: int, start: int = 0) -> int:
        """Position of the first history entry for index at or after start."""
        for position in range(start, len(self.history)):
            if self.history[position].index == index:
                return position
        raise TopologyLookupFailure(
            f"Bad render: point {index} not found on slice {self.index} after position {start}."
        )

    def run(self, start: int, stop: int, recess: bool) -> List[int]:
        """Indices in history[start:stop] lying on the given surface."""
        return [ref.index for ref in self.history[start:stop] if ref.recess == recess]


class MeshBuilder:
    """
    Accumulates points and faces for a ring of slices. Faces are produced by
    advancing each strip's boundary upwards, so the strips stitch together
    into one closed surface.
    """

    def __init__(self, slice_count: int, capacity: Optional[int] = None):
        self.slice_count = slice_count
        self.points: List[Tuple[float, float, float]] = []
        self.faces: List[List[int]] = []
        self.slices = [SliceState(s, capacity) for s in range(slice_count)]

    def add_point(self, s: int, x: float, y: float, z: float, recess: bool = False) -> PointRef:
        ref = PointRef(len(self.points), recess)
        self.slices[s].record(ref)
        self.points.append((float(x), float(y), float(z)))
        return ref

    def add_base_point(self, s: int, layer: int, x: float, y: float, z: float) -> PointRef:
        ref = self.add_point(s, x, y, z, recess=(layer == LAYER_RECESS))
        self.slices[s].base[layer] = ref
        return ref

    def close_histories(self):
        """Each slice's history loops back to its first (base back) point."""
        for state in self.slices:
            state.record(state.history[0])

    def advance(self, s: int, left: PointRef, right: PointRef):
        """
        Moves strip s from its current boundary to (left, right), emitting
        the faces that cover the area between. The points passed on each
        side, on the same surface as the old boundary, are included so the
        neighbouring strips share every edge.
        """
        if not 0 <= s < self.slice_count:
            raise TopologyLookupFailure(f"Bad render: slice {s} out of range.")
        state = self.slices[s]
        right_state = self.slices[(s + 1) % self.slice_count]

        if state.left is None:
            # New - draw to bottom
            state.left = state.base[LAYER_RECESS if left.recess else LAYER_FACE]
            state.right = right_state.base[LAYER_RECESS if right.recess else LAYER_FACE]
            self.faces.append(
                [
                    state.left.index,
                    state.right.index,
                    right_state.base[LAYER_BACK].index,
                    state.base[LAYER_BACK].index,
                ]
            )

        if left == state.left and right == state.right:
            return

        start = state.locate(state.left.index)
        stop = state.locate(left.index, start)
        left_run = state.run(start, stop, state.left.recess)
        face = left_run + [left.index]
        if left_run:
            face.append(right.index)
            self.faces.append(face)

        start = right_state.locate(state.right.index)
        stop = right_state.locate(right.index, start)
        if not left_run or start < stop:
            right_run = right_state.run(start, stop, state.right.recess)[::-1]
            if left_run:
                face = [right.index] + right_run + [state.left.index]
            else:
                face = face + [right.index] + right_run
            self.faces.append(face)

        state.left = left
        state.right = right

    def build(self, name: str) -> PolyhedronMesh:
        return PolyhedronMesh(self.points, self.faces, name)


def slice_capacity(top: float, step: float) -> int:
    """Default per-slice point budget for a part of the given height."""
    return int(top / (step / 4)) + const.SLICE_POINT_MARGIN


def _stitch_cell(builder: MeshBuilder, grid: CylinderGrid, x: int, y: int, cell_start: Dict[Coord, int]):
    """Emits the faces of one cell's four strips, joining to the cell on its right."""
    flags = grid.group_flags(x, y)
    p = cell_start[(x, y)]
    s = x * const.SLICES_PER_CELL

    def face(k: int) -> PointRef:
        return PointRef(p + k, False)

    def recess(k: int) -> PointRef:
        return PointRef(p + k, True)

    # Left
    if not flags & const.FLAG_D:
        builder.advance(s, face(0), face(1))
    builder.advance(s, face(0), recess(5))
    if flags & const.FLAG_L:
        builder.advance(s, recess(4), recess(5))
        builder.advance(s, recess(8), recess(9))
    builder.advance(s, face(12), recess(9))
    if not flags & const.FLAG_U:
        builder.advance(s, face(12), face(13))
    # Middle
    if not flags & const.FLAG_D:
        builder.advance(s + 1, face(1), face(2))
    builder.advance(s + 1, recess(5), recess(6))
    builder.advance(s + 1, recess(9), recess(10))
    if not flags & const.FLAG_U:
        builder.advance(s + 1, face(13), face(14))
    # Right
    if not flags & const.FLAG_D:
        builder.advance(s + 2, face(2), face(3))
    builder.advance(s + 2, recess(6), face(3))
    if flags & const.FLAG_R:
        builder.advance(s + 2, recess(6), recess(7))
        builder.advance(s + 2, recess(10), recess(11))
    builder.advance(s + 2, recess(10), face(15))
    if not flags & const.FLAG_U:
        builder.advance(s + 2, face(14), face(15))
    # Joining to right
    nx, ny = grid.wrap(x + 1, y)
    pr = cell_start.get((nx, ny))
    if pr is not None:
        builder.advance(s + 3, face(3), PointRef(pr, False))
        if flags & const.FLAG_R:
            builder.advance(s + 3, recess(7), PointRef(pr + 4, True))
            builder.advance(s + 3, recess(11), PointRef(pr + 8, True))
        builder.advance(s + 3, face(15), PointRef(pr + 12, False))


def build_maze_mesh(
    layout: MazeLayout,
    grid: CylinderGrid,
    capacity: Optional[int] = None,
    name: str = "maze",
) -> PolyhedronMesh:
    """
    Turns a generated maze into one closed polyhedron: a tube whose maze side
    carries recessed passages where the grid has open edges.
    """
    print(f"\n--- Creating Maze Polyhedron ({'inside' if layout.inside else 'outside'}) ---")
    count = layout.slice_count
    rings = compute_slice_rings(layout)
    builder = MeshBuilder(count, capacity)

    # Base points
    for layer in (LAYER_BACK, LAYER_RECESS, LAYER_FACE):
        for s in range(count):
            builder.add_base_point(s, layer, rings[s, layer, 0], rings[s, layer, 1], layout.base_z)

    # Points for each maze location
    cell_start: Dict[Coord, int] = {}
    for x, y in grid.get_all_cells():
        if not grid.is_emitted(x, y):
            continue
        cell_start[(x, y)] = len(builder.points)
        first = x * const.SLICES_PER_CELL
        slices = range(first, first + const.SLICES_PER_CELL)
        levels = {s: cell_level_z(layout, y, s) for s in slices}
        for level, layer in enumerate(LEVEL_LAYERS):
            for s in slices:
                builder.add_point(
                    s, rings[s, layer, 0], rings[s, layer, 1], levels[s][level],
                    recess=(layer == LAYER_RECESS),
                )

    # Top points, all on the outer surface of the solid
    top = len(builder.points)
    for layer, z in ((LAYER_FACE, layout.top_rim_z), (LAYER_RECESS, layout.top), (LAYER_BACK, layout.top)):
        for s in range(count):
            builder.add_point(s, rings[s, layer, 0], rings[s, layer, 1], z)
    builder.close_histories()
    print(f"  Emitted {len(builder.points)} points for {len(cell_start)} cells.")

    for x, y in grid.get_all_cells():
        if (x, y) in cell_start:
            _stitch_cell(builder, grid, x, y, cell_start)

    # Top rim, over the top, down the back and across the base
    for s in range(count):
        sr = (s + 1) % count
        state = builder.slices[s]
        left_recess = state.left is not None and state.left.recess
        right_recess = state.right is not None and state.right.recess
        builder.advance(
            s,
            PointRef(top + s + (count if left_recess else 0), False),
            PointRef(top + sr + (count if right_recess else 0), False),
        )
        builder.advance(s, PointRef(top + s + count, False), PointRef(top + sr + count, False))
        builder.advance(s, PointRef(top + s + 2 * count, False), PointRef(top + sr + 2 * count, False))
        builder.advance(s, state.base[LAYER_BACK], builder.slices[sr].base[LAYER_BACK])

    mesh = builder.build(name)
    print(f"  Maze polyhedron complete: {len(mesh.points)}V, {len(mesh.faces)}F")
    return mesh


def build_park_ridge(layout: MazeLayout, park_thickness: float, name: str = "park") -> PolyhedronMesh:
    """
    Small ridges across the park position of each nub that the nub has to
    click over, holding the box closed.
    """
    if park_thickness <= 0:
        return PolyhedronMesh(np.empty((0, 3)), [], name)
    rings = compute_slice_rings(layout)
    step = layout.step
    rise = layout.row_rise
    points = []
    for n in range(0, layout.width, layout.width // layout.nubs):
        for row in range(4):
            for col in range(4):
                s = n * const.SLICES_PER_CELL + col + (0 if layout.park_vertical else 2)
                z = (
                    layout.y0
                    - rise * 1.5 / 4
                    + (layout.helix + 1) * step
                    + row * step / 4
                    + rise * col / 4
                    + (step / 8 if layout.park_vertical else rise / 2 - step * 3 / 8)
                )
                x, y = rings[s, LAYER_RECESS]
                on_ridge = row in (1, 2) if layout.park_vertical else col in (1, 2)
                if on_ridge:
                    # Ridge height instead of surface
                    x, y = (
                        rings[s, LAYER_RECESS] * (layout.maze_thickness - park_thickness)
                        + rings[s, LAYER_FACE] * park_thickness
                    ) / layout.maze_thickness
                elif layout.park_vertical:
                    z -= layout.nub_skew
                points.append((rings[s, LAYER_BACK, 0], rings[s, LAYER_BACK, 1], z))
                points.append((x, y, z))

    faces = []
    for n in range(layout.nubs):
        p = n * 32

        def add(a, b, c, d):
            faces.append([p + a, p + b, p + c])
            faces.append([p + a, p + c, p + d])

        for col in range(0, 6, 2):
            add(col, col + 1, col + 3, col + 2)
            for row in range(0, 24, 8):
                add(col + row, col + 2 + row, col + 10 + row, col + 8 + row)
                add(col + 1 + row, col + 9 + row, col + 11 + row, col + 3 + row)
            add(col + 25, col + 24, col + 26, col + 27)
        for row in range(0, 24, 8):
            add(row, row + 8, row + 9, row + 1)
            add(row + 6, row + 7, row + 15, row + 14)
    return PolyhedronMesh(points, faces, name)

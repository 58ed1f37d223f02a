# assembler.py
from typing import List, Optional

# Import from other project modules
import constants as const
from geometry import MazeLayout
from grid_core import CylinderGrid
from maze_gen import MazeResult, generate_maze
from mesh_builder import PolyhedronMesh, build_maze_mesh, build_park_ridge, find_boundary_edges, slice_capacity
from nubs import NubSpec, build_nub_mesh, draw_entry_angle
from utils import RandomSource, normalise_nubs


class BoxParameters:
    """
    Dimensions and options for a whole box. Part 1 is the innermost; each
    further part slides over the previous one.
    """

    def __init__(
        self,
        parts: int = const.DEFAULT_PARTS,
        base_thickness: float = const.DEFAULT_BASE_THICKNESS,
        base_gap: float = const.DEFAULT_BASE_GAP,
        base_height: float = const.DEFAULT_BASE_HEIGHT,
        core_diameter: float = const.DEFAULT_CORE_DIAMETER,
        core_height: float = const.DEFAULT_CORE_HEIGHT,
        core_gap: float = const.DEFAULT_CORE_GAP,
        core_solid: bool = False,
        wall_thickness: float = const.DEFAULT_WALL_THICKNESS,
        maze_thickness: float = const.DEFAULT_MAZE_THICKNESS,
        maze_step: float = const.DEFAULT_MAZE_STEP,
        maze_margin: float = const.DEFAULT_MAZE_MARGIN,
        maze_complexity: int = const.DEFAULT_MAZE_COMPLEXITY,
        clearance: float = const.DEFAULT_CLEARANCE,
        nub_r_clearance: float = const.DEFAULT_NUB_R_CLEARANCE,
        nub_z_clearance: float = const.DEFAULT_NUB_Z_CLEARANCE,
        park_thickness: float = const.DEFAULT_PARK_THICKNESS,
        helix: int = const.DEFAULT_HELIX,
        nubs: int = const.DEFAULT_NUBS,
        inside: bool = False,
        flip: bool = False,
        park_vertical: bool = False,
        no_mark: bool = False,
        base_wide: bool = False,
        symmetric_cut: bool = False,
        test_maze: bool = False,
    ):
        if parts < 1:
            raise ValueError(f"A box needs at least one part, got {parts}.")
        for label, value in (
            ("wall thickness", wall_thickness),
            ("maze thickness", maze_thickness),
            ("maze step", maze_step),
            ("core diameter", core_diameter),
        ):
            if value <= 0:
                raise ValueError(f"The {label} must be positive, got {value}.")
        if helix < 0:
            raise ValueError(f"Helix must not be negative, got {helix}.")
        if not -const.COMPLEXITY_LIMIT <= maze_complexity <= const.COMPLEXITY_LIMIT:
            raise ValueError(f"Maze complexity {maze_complexity} is outside -10..10.")

        self.parts = parts
        self.base_thickness = base_thickness
        self.base_gap = base_gap
        self.base_height = base_height
        self.core_diameter = core_diameter
        self.core_height = core_height
        self.core_solid = core_solid
        # A solid core needs room for the nubs to get past the top of the first maze
        self.core_gap = max(core_gap, maze_step * 2) if core_solid else core_gap
        self.wall_thickness = wall_thickness
        self.maze_thickness = maze_thickness
        self.maze_step = maze_step
        self.maze_margin = maze_margin
        self.maze_complexity = maze_complexity
        self.clearance = clearance
        self.nub_r_clearance = nub_r_clearance
        self.nub_z_clearance = nub_z_clearance
        self.park_thickness = park_thickness
        self.helix = helix
        self.nubs = normalise_nubs(helix, nubs)
        if self.nubs != nubs:
            print(f"WARN: Nub count {nubs} does not suit helix {helix}, using {self.nubs}.")
        self.inside = inside
        self.flip = flip
        self.park_vertical = park_vertical
        self.no_mark = no_mark
        self.base_wide = base_wide
        self.symmetric_cut = symmetric_cut
        self.test_maze = test_maze

    @property
    def nub_skew(self) -> float:
        return 0.0 if self.symmetric_cut else self.maze_step / 8

    def __repr__(self) -> str:
        return (
            f"BoxParameters(parts={self.parts}, helix={self.helix}, nubs={self.nubs}, "
            f"{'inside' if self.inside else 'outside'}{', flip' if self.flip else ''})"
        )


class PartPlan:
    """Which walls of one part carry a maze, and its radii and height."""

    def __init__(self, part: int, maze_inside: bool, maze_outside: bool, inner_radius: float,
                 outer_radius: float, height: float):
        self.part = part
        self.maze_inside = maze_inside
        self.maze_outside = maze_outside
        self.inner_radius = inner_radius  # r0
        self.outer_radius = outer_radius  # r1
        self.height = height

    def __repr__(self) -> str:
        return (
            f"PartPlan({self.part}: r {self.inner_radius:.2f}..{self.outer_radius:.2f}, "
            f"h {self.height:.2f}, maze in={self.maze_inside} out={self.maze_outside})"
        )


class PartResult:
    """Everything generated for one part."""

    def __init__(self, plan: PartPlan):
        self.plan = plan
        self.layouts: List[MazeLayout] = []
        self.grids: List[CylinderGrid] = []
        self.mazes: List[MazeResult] = []
        self.meshes: List[PolyhedronMesh] = []
        self.nubs: List[NubSpec] = []
        self.entry_angle = 0.0

    @property
    def part(self) -> int:
        return self.plan.part

    @property
    def is_closed(self) -> bool:
        return not find_boundary_edges(self.meshes)

    def summary(self) -> str:
        lines = [f"Part {self.part}: {self.plan}"]
        for layout, maze in zip(self.layouts, self.mazes):
            lines.append(f"  {layout} -> {maze}")
        for mesh in self.meshes:
            lines.append(f"  {mesh}")
        lines.append(f"  Entry angle {self.entry_angle:.2f} deg")
        return "\n".join(lines)


def plan_part(params: BoxParameters, part: int) -> PartPlan:
    """Works out which walls of a part carry a maze, and its radii and height."""
    if not 1 <= part <= params.parts:
        raise ValueError(f"Part {part} is outside 1..{params.parts}.")
    maze_inside = params.inside
    maze_outside = not params.inside
    if params.flip:
        if part & 1:
            maze_inside = not maze_inside
        else:
            maze_outside = not maze_outside
    if part == 1:
        maze_inside = False
    if part == params.parts:
        maze_outside = False

    step = params.wall_thickness + params.maze_thickness + params.clearance
    r1 = params.core_diameter / 2 + params.wall_thickness + (part - 1) * step
    if params.core_solid:
        # Makes part 2 the core diameter
        r1 -= step - (params.maze_thickness if params.inside else 0)
    r0 = r1 - params.wall_thickness
    if maze_inside and part > 1:
        r0 -= params.maze_thickness
    if maze_outside and part < params.parts:
        r1 += params.maze_thickness

    height = (
        (params.core_gap + params.base_height if params.core_solid else 0)
        + params.core_height
        + params.base_thickness
        + (params.base_thickness + params.base_gap) * (part - 1)
    )
    if part == 1:
        height -= params.core_height if params.core_solid else params.core_gap
    if part > 1:
        height -= params.base_height  # Base of the previous part adds this
    return PartPlan(part, maze_inside, maze_outside, r0, r1, height)


def maze_layout_for(params: BoxParameters, plan: PartPlan, inside: bool) -> MazeLayout:
    """Layout of the inside or outside maze of a part."""
    part = plan.part
    base = params.base_thickness if inside else params.base_height
    if inside:
        if part > 2:
            base += params.base_height  # Nubs don't go all the way to the end
        if part == 2:
            base += params.core_height if params.core_solid else params.core_gap
        base += params.base_gap
    if inside:
        back = params.wall_thickness if part < params.parts else params.clearance + const.BACK_EXTRA_CLEARANCE
    else:
        back = params.wall_thickness
    lowered = params.base_wide and not inside and part > 1
    return MazeLayout.for_part(
        radius=plan.inner_radius if inside else plan.outer_radius,
        inside=inside,
        base=base,
        top=plan.height,
        step=params.maze_step,
        helix=params.helix,
        nubs=params.nubs,
        margin=params.maze_margin,
        maze_thickness=params.maze_thickness,
        park_vertical=params.park_vertical,
        back_thickness=back,
        base_z=params.base_thickness - params.clearance,
        top_rim_z=plan.height - (0 if lowered else params.maze_margin),
        nub_skew=params.nub_skew,
    )


def _build_maze(params: BoxParameters, result: PartResult, rng: RandomSource, inside: bool):
    plan = result.plan
    layout = maze_layout_for(params, plan, inside)
    grid = layout.make_grid()
    maze = generate_maze(
        grid,
        rng,
        complexity=params.maze_complexity,
        park_vertical=params.park_vertical,
        mark=not inside and not params.no_mark,
        align_exit=params.flip and not inside,
        test_pattern=params.test_maze,
    )
    side = "inside" if inside else "outside"
    capacity = slice_capacity(plan.height, params.maze_step)
    result.layouts.append(layout)
    result.grids.append(grid)
    result.mazes.append(maze)
    result.meshes.append(build_maze_mesh(layout, grid, capacity, name=f"part{plan.part}_maze_{side}"))
    ridge = build_park_ridge(layout, params.park_thickness, name=f"part{plan.part}_park_{side}")
    if ridge.faces:
        result.meshes.append(ridge)
    result.entry_angle = maze.entry_angle


def build_part(params: BoxParameters, part: int, rng: RandomSource) -> PartResult:
    """
    Builds the mazes and nubs of one part. Random draws happen in a fixed
    order: inside maze, outside maze, then the entry angle.
    """
    plan = plan_part(params, part)
    print(f"\n--- Building Part {part} of {params.parts} ---")
    print(f"  {plan}")
    result = PartResult(plan)
    if plan.maze_inside:
        _build_maze(params, result, rng, inside=True)
    if plan.maze_outside:
        _build_maze(params, result, rng, inside=False)

    if (plan.maze_outside and not params.flip and part == params.parts) or (
        not plan.maze_outside and part + 1 == params.parts
    ):
        result.entry_angle = 0.0  # Aligned with the lid
    elif part < params.parts and not params.base_wide:
        result.entry_angle = draw_entry_angle(rng)

    nub_args = dict(
        height=plan.height,
        entry_angle=result.entry_angle,
        step=params.maze_step,
        helix=params.helix,
        nubs=params.nubs,
        maze_thickness=params.maze_thickness,
        clearance=params.clearance,
        nub_r_clearance=params.nub_r_clearance,
        nub_z_clearance=params.nub_z_clearance,
        nub_skew=params.nub_skew,
        park_vertical=params.park_vertical,
    )
    if not plan.maze_inside and part > 1:
        result.nubs.append(NubSpec(plan.inner_radius, True, **nub_args))
    if not plan.maze_outside and part < params.parts:
        result.nubs.append(NubSpec(plan.outer_radius, False, **nub_args))
    for spec in result.nubs:
        result.meshes.append(build_nub_mesh(spec))
    print(f"--- Part {part} complete: {len(result.meshes)} solids, entry {result.entry_angle:.2f} deg ---")
    return result


def build_box(params: BoxParameters, rng: Optional[RandomSource] = None,
              only_part: Optional[int] = None) -> List[PartResult]:
    """Builds every part (or just one) in order, sharing one random source."""
    if rng is None:
        rng = RandomSource()
    print(f"--- Building Puzzle Box {params} (seed {rng.seed}) ---")
    parts = [only_part] if only_part else range(1, params.parts + 1)
    return [build_part(params, part, rng) for part in parts]

# --- Cell Direction Flags ---
FLAG_L = 0x01  # Left (towards lower x)
FLAG_R = 0x02  # Right (towards higher x)
FLAG_U = 0x04  # Up (towards higher y)
FLAG_D = 0x08  # Down (towards lower y)
FLAG_ALL = FLAG_L | FLAG_R | FLAG_U | FLAG_D

DIRECTION_OFFSETS = {
    FLAG_L: (-1, 0),
    FLAG_R: (1, 0),
    FLAG_U: (0, 1),
    FLAG_D: (0, -1),
}
OPPOSITE_FLAG = {FLAG_L: FLAG_R, FLAG_R: FLAG_L, FLAG_U: FLAG_D, FLAG_D: FLAG_U}

# --- Maze Generation ---
# Weights for the random direction choice. Order matters: it is the order
# the weighted draw is resolved in (right, left, down, up).
BIAS_L = 2
BIAS_R = 1
BIAS_U = 1
BIAS_D = 4
DIRECTION_BIAS_ORDER = ((FLAG_R, BIAS_R), (FLAG_L, BIAS_L), (FLAG_D, BIAS_D), (FLAG_U, BIAS_U))
COMPLEXITY_LIMIT = 10  # Complexity is -10..10, draw is 0..9
DEFAULT_MAZE_COMPLEXITY = 5

# --- Grid Structure ---
MIN_GRID_WIDTH = 3
MIN_GRID_HEIGHT = 1
MIN_COLUMNS_PER_NUB = 2
SLICES_PER_CELL = 4  # Angular micro-slices per maze cell
POINTS_PER_CELL = 16  # 4 levels x 4 slices
SLICE_POINT_MARGIN = 10  # Extra per-slice capacity on top of height / (step / 4)

# --- Box Dimensions (mm) ---
DEFAULT_PARTS = 4
DEFAULT_BASE_THICKNESS = 1.6
DEFAULT_BASE_GAP = 0.4  # Z clearance
DEFAULT_BASE_HEIGHT = 10.0
DEFAULT_CORE_DIAMETER = 10.0
DEFAULT_CORE_HEIGHT = 50.0
DEFAULT_CORE_GAP = 0.0
DEFAULT_WALL_THICKNESS = 1.2
DEFAULT_MAZE_THICKNESS = 2.0
DEFAULT_MAZE_STEP = 3.0
DEFAULT_MAZE_MARGIN = 1.0
DEFAULT_CLEARANCE = 0.4  # General X/Y clearance between parts
DEFAULT_NUB_R_CLEARANCE = 0.1  # Extra radial clearance, should be less than clearance
DEFAULT_NUB_Z_CLEARANCE = 0.2  # Extra Z clearance per 1/4 maze step
DEFAULT_PARK_THICKNESS = 0.7
DEFAULT_HELIX = 3
DEFAULT_NUBS = DEFAULT_HELIX
BACK_EXTRA_CLEARANCE = 0.01  # Added to clearance for the last part's inside maze back face

# --- Tolerances ---
GEOMETRY_TOLERANCE = 1e-9  # For floating point comparisons
MESH_VERTEX_DISTANCE_TOLERANCE_SQ = (
    1e-12  # Squared tolerance for merging/checking degenerate
)

# --- Visualization ---
VIS_FIGURE_SIZE = (12, 6)
VIS_CELL_OUTLINE_COLOR = "lightgrey"
VIS_CELL_OUTLINE_LW = 0.5
VIS_INVALID_COLOR = "whitesmoke"
VIS_LINK_LINE_STYLE = "g-"
VIS_LINK_LINE_LW = 1.5
VIS_LINK_LINE_ALPHA = 0.8
VIS_SOLUTION_LINE_STYLE = "r-"
VIS_SOLUTION_LINE_LW = 2.0
VIS_SOLUTION_LINE_ALPHA = 0.9
VIS_ENTRY_MARKER = "go"
VIS_ENTRY_MARKER_SIZE = 6
VIS_EXIT_MARKER = "ro"
VIS_EXIT_MARKER_SIZE = 6

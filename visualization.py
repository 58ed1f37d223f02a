# visualization.py
import matplotlib.pyplot as plt
import matplotlib.cm as cm
import matplotlib.colors as mcolors
import numpy as np
from collections import deque
from typing import List, Tuple, Optional, Dict

# Import from other project modules
from grid_core import CylinderGrid, Coord
from maze_gen import MazeResult
import constants as const


# --- Pathfinding (Often used with visualization) ---
def find_solution_path(
    grid: CylinderGrid, start_cell: Optional[Coord], end_cell: Optional[Coord]
) -> Optional[List[Coord]]:
    """
    Finds the shortest path between two cells using Breadth-First Search on
    open passages. Cells are compared by their canonical symmetric copy, and
    the returned path is made of canonical cells.
    """
    print(f"--- Finding path from {start_cell} to {end_cell} ---")
    if start_cell is None or end_cell is None:
        print("ERROR: Invalid start or end cell provided.")
        return None
    if grid.is_invalid(*start_cell) or grid.is_invalid(*end_cell):
        print("ERROR: Start or end cell lies outside the usable grid.")
        return None

    start = grid.canonical(*start_cell)
    end = grid.canonical(*end_cell)
    queue = deque([start])
    predecessor: Dict[Coord, Optional[Coord]] = {start: None}
    path_found = False

    while queue:
        current = queue.popleft()
        if current == end:
            path_found = True
            print("  Path found!")
            break
        for neighbour in grid.linked_neighbours(*current):
            if neighbour not in predecessor:
                predecessor[neighbour] = current
                queue.append(neighbour)

    if not path_found:
        print("  Path not found!")
        return None

    # Reconstruct path
    path: List[Coord] = []
    curr: Optional[Coord] = end
    while curr is not None:
        path.append(curr)
        curr = predecessor[curr]
    path.reverse()
    print(f"  Path length: {len(path)} cells.")
    return path


def cell_distances(grid: CylinderGrid, start_cell: Coord) -> Dict[Coord, int]:
    """Passage distance from start_cell to every reachable canonical cell."""
    start = grid.canonical(*start_cell)
    distances = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbour in grid.linked_neighbours(*current):
            if neighbour not in distances:
                distances[neighbour] = distances[current] + 1
                queue.append(neighbour)
    return distances


# --- Visualization Helpers ---
def _setup_unrolled_plot(grid: CylinderGrid) -> Tuple[plt.Figure, plt.Axes]:
    """Axes for the maze unrolled flat: column across, row up."""
    fig, ax = plt.subplots(figsize=const.VIS_FIGURE_SIZE)
    ax.set_xlim(-0.5, grid.width - 0.5)
    ax.set_ylim(-0.5, grid.height - 0.5)
    ax.set_aspect("equal")
    ax.set_xticks(np.arange(0, grid.width, grid.group_step))  # Symmetric copies start here
    ax.set_xlabel("Column")
    ax.set_ylabel("Row")
    return fig, ax


def _draw_cell_outlines(ax: plt.Axes, grid: CylinderGrid):
    """Shades invalid cells and outlines the rest."""
    for x, y in grid.get_all_cells():
        invalid = grid.is_invalid(x, y)
        ax.add_patch(
            plt.Rectangle(
                (x - 0.5, y - 0.5), 1, 1,
                facecolor=const.VIS_INVALID_COLOR if invalid else "none",
                edgecolor=const.VIS_CELL_OUTLINE_COLOR,
                lw=const.VIS_CELL_OUTLINE_LW,
            )
        )


def _draw_links(ax: plt.Axes, grid: CylinderGrid, style=None, lw=None, alpha=None) -> int:
    """Draws a line for every open passage. Passages across the seam are drawn as two stubs."""
    style = style or const.VIS_LINK_LINE_STYLE
    lw = lw or const.VIS_LINK_LINE_LW
    alpha = alpha or const.VIS_LINK_LINE_ALPHA
    link_count = 0
    for x, y in grid.get_all_cells():
        mask = int(grid.flags[x, y])
        for direction in (const.FLAG_R, const.FLAG_U):
            if not mask & direction:
                continue
            dx, dy = const.DIRECTION_OFFSETS[direction]
            if x + dx < grid.width:
                ax.plot([x, x + dx], [y, y + dy], style, lw=lw, alpha=alpha)
            else:
                nx, ny = grid.wrap(x + dx, y)
                ax.plot([x, x + 0.5], [y, y], style, lw=lw, alpha=alpha)
                ax.plot([nx - 0.5, nx], [ny, ny], style, lw=lw, alpha=alpha)
            link_count += 1
    return link_count


def _draw_entry_exit(ax: plt.Axes, maze: MazeResult, **kwargs):
    """Marks the park cell and the exit cell."""
    px, py = maze.park_cell
    ax.plot(px, py, const.VIS_ENTRY_MARKER,
            markersize=kwargs.get("entry_msize", const.VIS_ENTRY_MARKER_SIZE),
            mfc=kwargs.get("entry_mfc", "lime"),
            mec=kwargs.get("entry_mec", "black"),
            label="Park")
    if maze.exit_cell:
        ex, ey = maze.exit_cell
        ax.plot(ex, ey, const.VIS_EXIT_MARKER,
                markersize=kwargs.get("exit_msize", const.VIS_EXIT_MARKER_SIZE),
                mfc=kwargs.get("exit_mfc", "red"),
                mec=kwargs.get("exit_mec", "black"),
                label="Exit")


def _save(fig: plt.Figure, filename: str):
    fig.savefig(filename, dpi=150, bbox_inches="tight")
    plt.close(fig)


# --- Main Visualization Functions ---

def visualize_maze_links(grid: CylinderGrid, maze: MazeResult, filename="maze_links.png"):
    """Visualizes the generated maze passages on the unrolled cylinder."""
    print(f"--- Generating Maze Links Visualization: {filename} ---")
    try:
        fig, ax = _setup_unrolled_plot(grid)
        _draw_cell_outlines(ax, grid)
        link_count = _draw_links(ax, grid)
        _draw_entry_exit(ax, maze)
        ax.set_title(f"Maze Links ({link_count} Passages, helix {grid.helix}, {grid.nubs} nubs)")
        ax.legend(loc="upper right")
        _save(fig, filename)
        print(f"  Links visualization saved to {filename}")
    except Exception as e:
        print(f"ERROR during visualization: {e}")


def visualize_maze_solution(grid: CylinderGrid, maze: MazeResult, filename="maze_solution.png"):
    """Finds and visualizes the solution path from the exit down to the park position."""
    print(f"--- Generating Maze Solution Visualization: {filename} ---")
    solution_path = find_solution_path(grid, maze.exit_cell, maze.park_cell)
    if not solution_path:
        print("  Could not find solution path, cannot visualize.")
        return

    try:
        fig, ax = _setup_unrolled_plot(grid)
        _draw_cell_outlines(ax, grid)
        _draw_links(ax, grid, alpha=0.3)

        print(f"  Visualizing solution path ({len(solution_path)} cells)...")
        # Split where the path crosses the seam
        segment = [solution_path[0]]
        for prev, cell in zip(solution_path, solution_path[1:]):
            if abs(cell[0] - prev[0]) > 1:
                xs, ys = zip(*segment)
                ax.plot(xs, ys, const.VIS_SOLUTION_LINE_STYLE,
                        lw=const.VIS_SOLUTION_LINE_LW, alpha=const.VIS_SOLUTION_LINE_ALPHA)
                segment = []
            segment.append(cell)
        xs, ys = zip(*segment)
        ax.plot(xs, ys, const.VIS_SOLUTION_LINE_STYLE,
                lw=const.VIS_SOLUTION_LINE_LW, alpha=const.VIS_SOLUTION_LINE_ALPHA)

        _draw_entry_exit(ax, maze, entry_msize=const.VIS_ENTRY_MARKER_SIZE + 2,
                         exit_msize=const.VIS_EXIT_MARKER_SIZE + 2)
        ax.set_title(f"Maze Solution Path ({len(solution_path)} cells)")
        _save(fig, filename)
        print(f"  Solution visualization saved to {filename}")
    except Exception as e:
        print(f"ERROR during visualization: {e}")


def visualize_maze_connectivity(grid: CylinderGrid, maze: MazeResult, filename="maze_connectivity.png"):
    """Colours every cell by its passage distance from the park position."""
    print(f"--- Generating Connectivity Visualization: {filename} ---")
    distances = cell_distances(grid, maze.park_cell)
    logical_count = sum(1 for _ in grid.logical_cells())
    print(f"  Connectivity check visited {len(distances)}/{logical_count} cells.")
    if len(distances) < logical_count:
        print("  WARN: Not all cells are reachable from the park position.")

    image = np.full((grid.height, grid.width), np.nan)
    for x, y in grid.get_all_cells():
        if not grid.is_invalid(x, y):
            image[y, x] = distances.get(grid.canonical(x, y), np.nan)
    try:
        fig, ax = _setup_unrolled_plot(grid)
        cmap = cm.viridis
        norm = mcolors.Normalize(vmin=0, vmax=max(1, max(distances.values())))
        ax.imshow(np.ma.masked_invalid(image), origin="lower", cmap=cmap, norm=norm,
                  extent=(-0.5, grid.width - 0.5, -0.5, grid.height - 0.5))
        sm = plt.cm.ScalarMappable(cmap=cmap, norm=norm)
        sm.set_array([])
        cbar = plt.colorbar(sm, ax=ax, shrink=0.7, aspect=20, pad=0.02)
        cbar.set_label("Distance from Park Position")
        ax.set_title(f"Maze Connectivity ({len(distances)}/{logical_count} Reachable)")
        _save(fig, filename)
        print(f"  Connectivity visualization saved to {filename}")
    except Exception as e:
        print(f"ERROR during visualization: {e}")

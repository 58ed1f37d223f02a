"""Tests for path finding and the unrolled maze plots."""

from maze_gen import generate_maze
from utils import RandomSource
from visualization import (
    cell_distances,
    find_solution_path,
    visualize_maze_connectivity,
    visualize_maze_links,
    visualize_maze_solution,
)


def test_solution_runs_from_exit_to_park(open_grid):
    maze = generate_maze(open_grid, RandomSource(12))
    path = find_solution_path(open_grid, maze.exit_cell, maze.park_cell)
    assert path is not None
    assert path[0] == open_grid.canonical(*maze.exit_cell)
    assert path[-1] == open_grid.canonical(*maze.park_cell)
    for a, b in zip(path, path[1:]):
        assert b in open_grid.linked_neighbours(*a)


def test_missing_cell_gives_no_path(open_grid):
    generate_maze(open_grid, RandomSource(12))
    assert find_solution_path(open_grid, None, (0, 1)) is None


def test_invalid_cell_gives_no_path(helix_layout):
    grid = helix_layout.make_grid()
    maze = generate_maze(grid, RandomSource(2))
    assert find_solution_path(grid, (0, 0), maze.park_cell) is None


def test_every_cell_reachable(open_grid):
    maze = generate_maze(open_grid, RandomSource(3))
    distances = cell_distances(open_grid, maze.park_cell)
    assert len(distances) == len(list(open_grid.logical_cells()))
    assert distances[open_grid.canonical(*maze.park_cell)] == 0


def test_plots_written(tmp_path, helix_layout):
    grid = helix_layout.make_grid()
    maze = generate_maze(grid, RandomSource(8))
    names = ["links", "solution", "connectivity"]
    visualize_maze_links(grid, maze, filename=str(tmp_path / "links.png"))
    visualize_maze_solution(grid, maze, filename=str(tmp_path / "solution.png"))
    visualize_maze_connectivity(grid, maze, filename=str(tmp_path / "connectivity.png"))
    for name in names:
        assert (tmp_path / f"{name}.png").stat().st_size > 0

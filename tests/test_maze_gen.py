"""Tests for maze generation: tree property, park, mark, exit and complexity."""

from collections import deque

import pytest

import constants as const
from errors import GridTooSmall, UnreachableExpansion
from grid_core import CylinderGrid
from maze_gen import carve_exit_channel, generate_maze, place_park
from utils import LCGRandomSource, RandomSource


def _reachable(grid, start):
    start = grid.canonical(*start)
    seen = {start}
    queue = deque([start])
    while queue:
        for cell in grid.linked_neighbours(*queue.popleft()):
            if cell not in seen:
                seen.add(cell)
                queue.append(cell)
    return seen


def _assert_tree(grid, result):
    """Open passages form a tree over the reachable cells, plus one loop for the mark."""
    reached = _reachable(grid, result.park_cell)
    extra = 1 if result.has_mark else 0
    assert len(grid.logical_edges()) == len(reached) - 1 + extra


class ScriptedRandom(RandomSource):
    """Returns a fixed value for every draw."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random_int(self, limit):
        return self.value if self.value >= 0 else limit


class TestTreeProperty:
    @pytest.mark.parametrize("seed", range(8))
    def test_open_grid_is_spanning_tree(self, open_grid, seed):
        result = generate_maze(open_grid, RandomSource(seed))
        _assert_tree(open_grid, result)
        assert len(_reachable(open_grid, result.park_cell)) == len(list(open_grid.logical_cells()))

    @pytest.mark.parametrize("complexity", [-10, -5, 0, 3, 10])
    def test_tree_for_any_complexity(self, complexity):
        grid = CylinderGrid(18, 12, helix=3, nubs=3)
        result = generate_maze(grid, LCGRandomSource(5), complexity=complexity)
        _assert_tree(grid, result)

    def test_tree_with_band(self, helix_layout):
        grid = helix_layout.make_grid()
        result = generate_maze(grid, RandomSource(3))
        _assert_tree(grid, result)

    def test_without_mark_no_loop(self):
        grid = CylinderGrid(16, 10)
        result = generate_maze(grid, RandomSource(11), mark=False)
        assert not result.has_mark
        _assert_tree(grid, result)

    @pytest.mark.parametrize("seed", range(4))
    def test_vertical_park_is_tree(self, seed):
        grid = CylinderGrid(18, 14, helix=3, nubs=3)
        result = generate_maze(grid, RandomSource(seed), park_vertical=True)
        assert result.has_mark
        _assert_tree(grid, result)


class TestPark:
    def test_horizontal_park_and_mark(self):
        grid = CylinderGrid(16, 10, helix=0, nubs=1)
        result = place_park(grid)
        y = 1
        assert result.park_cell == (0, y)
        assert result.has_mark
        assert grid.flags[0, y] == const.FLAG_R
        assert grid.flags[1, y] == const.FLAG_L | const.FLAG_R | const.FLAG_U
        assert grid.flags[2, y] == const.FLAG_L | const.FLAG_U
        assert grid.flags[2, y + 1] == const.FLAG_L | const.FLAG_D
        assert grid.flags[1, y + 1] == const.FLAG_L | const.FLAG_R | const.FLAG_D
        assert grid.flags[0, y + 1] == const.FLAG_R
        assert result.start_cell == (0, y + 1)

    def test_no_mark_when_too_narrow(self):
        grid = CylinderGrid(9, 10, nubs=3)
        result = place_park(grid)
        assert not result.has_mark
        assert result.start_cell == (1, 1)

    def test_vertical_park(self):
        grid = CylinderGrid(12, 10, helix=0)
        result = place_park(grid, park_vertical=True)
        assert grid.flags[0, 0] == const.FLAG_U | const.FLAG_D
        assert grid.flags[0, 1] == const.FLAG_U | const.FLAG_D
        assert grid.flags[0, 2] & const.FLAG_D
        assert grid.flags[0, 2] & const.FLAG_R
        assert grid.flags[1, 1] == const.FLAG_U
        assert result.start_cell == (1, 1)

    def test_park_needs_rows(self):
        with pytest.raises(GridTooSmall):
            place_park(CylinderGrid(12, 4, helix=3, nubs=3))


class TestExit:
    @pytest.mark.parametrize("seed", range(6))
    def test_aligned_exit_column(self, open_grid, seed):
        result = generate_maze(open_grid, RandomSource(seed), align_exit=True)
        assert result.exit_cell[0] % 8 == 0
        assert result.entry_angle in (0.0, 120.0, 240.0)

    def test_exit_is_on_top_row_of_open_grid(self, open_grid):
        result = generate_maze(open_grid, RandomSource(2))
        x, y = result.exit_cell
        assert y == open_grid.height - 1
        assert open_grid.flags[x, y] & const.FLAG_U
        assert result.entry_angle == pytest.approx(360.0 * x / open_grid.width)

    def test_channel_runs_through_invalid_cells(self):
        grid = CylinderGrid(6, 8)
        grid.invalid[:, 5:] = True
        assert carve_exit_channel(grid, 2) == (2, 4)
        assert grid.flags[2, 7] == const.FLAG_U | const.FLAG_D
        assert grid.flags[2, 5] == const.FLAG_U | const.FLAG_D
        assert grid.flags[2, 4] == const.FLAG_U

    def test_channel_in_every_copy(self, open_grid):
        carve_exit_channel(open_grid, 9)
        for x in (1, 9, 17):
            assert open_grid.flags[x, 9] & const.FLAG_U

    def test_path_length_recorded(self, open_grid):
        result = generate_maze(open_grid, RandomSource(4))
        assert result.exit_depth > 0


class TestComplexity:
    def test_zero_never_inserts_at_front(self, open_grid):
        result = generate_maze(open_grid, RandomSource(1), complexity=0)
        assert result.front_ratio == 0.0

    def test_ten_always_inserts_at_front(self, open_grid):
        result = generate_maze(open_grid, RandomSource(1), complexity=10)
        assert result.front_ratio == 0.5  # New cell at the front, current cell at the back

    def test_minus_ten_always_front(self, open_grid):
        result = generate_maze(open_grid, RandomSource(1), complexity=-10)
        assert result.front_ratio == 1.0

    def test_middle_mixes(self):
        grid = CylinderGrid(30, 20)
        result = generate_maze(grid, RandomSource(8), complexity=5)
        assert 0.0 < result.front_ratio < 0.5

    def test_front_ratio_rises_with_complexity(self):
        ratios = []
        for complexity in (0, 3, 6, 9):
            grid = CylinderGrid(30, 20)
            ratios.append(generate_maze(grid, RandomSource(14), complexity=complexity).front_ratio)
        assert ratios == sorted(set(ratios))

    def test_high_complexity_makes_longer_paths(self):
        def mean_depth(complexity):
            depths = []
            for seed in range(4):
                grid = CylinderGrid(30, 20)
                depths.append(generate_maze(grid, LCGRandomSource(seed), complexity=complexity).exit_depth)
            return sum(depths) / len(depths)

        assert mean_depth(9) > mean_depth(0)

    @pytest.mark.parametrize("complexity", [-11, 11])
    def test_out_of_range(self, open_grid, complexity):
        with pytest.raises(ValueError):
            generate_maze(open_grid, RandomSource(1), complexity=complexity)


class TestDeterminism:
    def test_same_seed_same_maze(self):
        a, b = CylinderGrid(18, 12, helix=3, nubs=3), CylinderGrid(18, 12, helix=3, nubs=3)
        ra = generate_maze(a, LCGRandomSource(77))
        rb = generate_maze(b, LCGRandomSource(77))
        assert (a.flags == b.flags).all()
        assert ra.exit_cell == rb.exit_cell

    def test_bad_draw_is_reported(self, open_grid):
        with pytest.raises(UnreachableExpansion) as excinfo:
            generate_maze(open_grid, ScriptedRandom(-1))
        assert excinfo.value.kind == "unreachable_expansion"


class TestTestPattern:
    def test_every_row_is_open_right(self):
        grid = CylinderGrid(8, 6)
        result = generate_maze(grid, RandomSource(0), test_pattern=True)
        assert result.test_pattern
        for x, y in grid.get_all_cells():
            assert grid.flags[x, y] & const.FLAG_R
            assert grid.flags[x, y] & const.FLAG_L
        assert result.exit_cell == (7, 5)

    def test_aligned_pattern_exits_at_zero(self):
        grid = CylinderGrid(8, 6)
        result = generate_maze(grid, RandomSource(0), test_pattern=True, align_exit=True)
        assert result.exit_cell == (0, 5)


def test_generation_reports_dead_ends(open_grid, capsys):
    result = generate_maze(open_grid, RandomSource(10))
    assert result.dead_ends > 0
    assert f"dead ends {result.dead_ends}" in capsys.readouterr().out

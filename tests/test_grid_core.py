"""Tests for cylinder grid addressing and symmetric copies."""

import pytest

import constants as const
from errors import GridTooSmall, PuzzleBoxError
from grid_core import CylinderGrid


class TestWrap:
    def test_in_range_unchanged(self):
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        assert grid.wrap(5, 2) == (5, 2)

    @pytest.mark.parametrize("x", [0, 3, 11])
    def test_right_seam_moves_up_by_helix(self, x):
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        assert grid.wrap(x + 12, 1) == (x, 1 + 3)

    def test_left_seam_moves_down_by_helix(self):
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        assert grid.wrap(-1, 5) == (11, 2)

    def test_multiple_turns(self):
        grid = CylinderGrid(10, 8, helix=2, nubs=1)
        assert grid.wrap(25, 0) == (5, 4)

    def test_no_helix_keeps_row(self):
        grid = CylinderGrid(10, 8)
        assert grid.wrap(-3, 4) == (7, 4)

    def test_neighbour_across_seam(self):
        grid = CylinderGrid(6, 5, helix=1, nubs=1)
        assert grid.neighbour(5, 1, const.FLAG_R) == (0, 2)
        assert grid.neighbour(0, 2, const.FLAG_L) == (5, 1)

    def test_unknown_direction(self):
        grid = CylinderGrid(6, 5)
        with pytest.raises(ValueError):
            grid.neighbour(0, 0, const.FLAG_L | const.FLAG_R)


class TestConstruction:
    @pytest.mark.parametrize("width, height", [(2, 5), (5, 0), (0, 0)])
    def test_too_small(self, width, height):
        with pytest.raises(GridTooSmall) as excinfo:
            CylinderGrid(width, height)
        assert excinfo.value.kind == "grid_too_small"
        assert isinstance(excinfo.value, PuzzleBoxError)

    def test_one_column_per_nub_is_too_small(self):
        with pytest.raises(GridTooSmall):
            CylinderGrid(4, 5, nubs=4)

    def test_width_must_divide_by_nubs(self):
        with pytest.raises(ValueError):
            CylinderGrid(10, 5, nubs=3)

    def test_helix_must_divide_by_nubs(self):
        with pytest.raises(ValueError):
            CylinderGrid(12, 5, helix=4, nubs=3)

    def test_starts_empty(self):
        grid = CylinderGrid(12, 4, helix=3, nubs=3)
        assert grid.size() == 48
        assert not grid.flags.any()
        assert not grid.invalid.any()
        assert len(list(grid.get_all_cells())) == 48


class TestSymmetricGroups:
    def test_group_without_helix(self):
        grid = CylinderGrid(12, 6, helix=0, nubs=3)
        assert grid.group_cells(1, 2) == [(1, 2), (5, 2), (9, 2)]

    def test_group_with_helix_per_nub(self):
        # One row down per copy keeps every copy on the same helical turn
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        assert grid.group_cells(1, 5) == [(1, 5), (5, 4), (9, 3)]

    def test_group_wraps_past_seam(self):
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        assert grid.group_cells(9, 3) == [(9, 3), (1, 5), (5, 4)]

    def test_group_with_half_helix(self):
        grid = CylinderGrid(12, 8, helix=4, nubs=2)
        assert grid.group_cells(2, 3) == [(2, 3), (8, 1)]
        assert grid.group_cells(8, 1) == [(8, 1), (2, 3)]

    def test_canonical_copy(self):
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        assert grid.canonical(9, 3) == (1, 5)
        assert grid.canonical(1, 5) == (1, 5)

    def test_set_flags_writes_every_copy(self):
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        grid.set_flags(5, 4, const.FLAG_U)
        for x, y in [(1, 5), (5, 4), (9, 3)]:
            assert grid.flags[x, y] == const.FLAG_U
        assert int(grid.flags.sum()) == 3 * const.FLAG_U

    def test_out_of_range_copy_makes_group_invalid(self):
        grid = CylinderGrid(12, 8, helix=3, nubs=3)
        # (9, -1) is below the grid
        assert grid.is_invalid(1, 1)
        assert not grid.is_invalid(1, 2)

    def test_invalid_copy_makes_group_invalid(self):
        grid = CylinderGrid(12, 6, nubs=3)
        grid.mark_invalid(9, 2)
        assert grid.is_invalid(1, 2)
        assert grid.is_invalid(5, 2)
        assert not grid.is_free(1, 2)

    def test_group_flags_are_combined(self):
        grid = CylinderGrid(12, 6, nubs=3)
        grid.flags[5, 2] = const.FLAG_L
        assert grid.group_flags(1, 2) == const.FLAG_L
        assert grid.is_emitted(9, 2)


class TestEdges:
    def test_open_edge_sets_both_ends(self):
        grid = CylinderGrid(6, 5)
        assert grid.open_edge(2, 2, const.FLAG_U) == (2, 3)
        assert grid.flags[2, 2] == const.FLAG_U
        assert grid.flags[2, 3] == const.FLAG_D

    def test_open_edge_across_seam(self):
        grid = CylinderGrid(6, 5, helix=1)
        assert grid.open_edge(5, 1, const.FLAG_R) == (0, 2)
        assert grid.flags[5, 1] == const.FLAG_R
        assert grid.flags[0, 2] == const.FLAG_L

    def test_logical_edges_and_neighbours(self):
        grid = CylinderGrid(12, 6, nubs=3)
        grid.open_edge(3, 2, const.FLAG_R)  # Into the next copy's column 0
        grid.open_edge(1, 2, const.FLAG_U)
        edges = grid.logical_edges()
        assert ((3, 2), (0, 2)) in edges
        assert ((1, 2), (1, 3)) in edges
        assert len(edges) == 2
        assert sorted(grid.linked_neighbours(0, 2)) == [(3, 2)]

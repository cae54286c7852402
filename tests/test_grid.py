"""Tests for cell sizing and the grid index."""

import math

import numpy as np
import pytest

from singledetect.detection import GridIndex, Point, Viewport, cell_side_for


@pytest.fixture
def grid(viewport):
    return GridIndex(viewport, cell_side_for(45.0))


class TestCellSide:
    def test_not_smaller_than_threshold(self):
        assert cell_side_for(45.0) >= 45.0
        assert cell_side_for(45.0) == pytest.approx(45.0)

    @pytest.mark.parametrize("bad", [0.0, -1.0, math.inf, math.nan])
    def test_invalid_threshold(self, bad):
        with pytest.raises(ValueError):
            cell_side_for(bad)

    def test_neighbors_within_threshold_are_adjacent_cells(self, grid):
        rng = np.random.default_rng(7)
        for _ in range(2000):
            ax, ay = rng.uniform(0, 600), rng.uniform(0, 500)
            angle = rng.uniform(0, 2 * math.pi)
            r = 45.0 if rng.random() < 0.3 else rng.uniform(0, 45.0)
            bx, by = ax + r * math.cos(angle), ay + r * math.sin(angle)
            if math.hypot(ax - bx, ay - by) > 45.0:
                continue
            (acx, acy), (bcx, bcy) = grid.cell_of(ax, ay), grid.cell_of(bx, by)
            assert abs(acx - bcx) <= 1
            assert abs(acy - bcy) <= 1

    def test_cells_two_apart_are_beyond_threshold(self, grid):
        rng = np.random.default_rng(11)
        for _ in range(2000):
            ax, ay = rng.uniform(0, 600), rng.uniform(0, 500)
            bx, by = rng.uniform(0, 600), rng.uniform(0, 500)
            (acx, acy), (bcx, bcy) = grid.cell_of(ax, ay), grid.cell_of(bx, by)
            if abs(acx - bcx) >= 2 or abs(acy - bcy) >= 2:
                assert math.hypot(ax - bx, ay - by) > 45.0


class TestGridGeometry:
    def test_dimensions_round_up(self, grid):
        assert grid.width == 14  # ceil(600 / 45)
        assert grid.height == 12  # ceil(500 / 45)

    def test_tiny_viewport_has_one_cell(self):
        grid = GridIndex(Viewport(0, 0, 10, 10), cell_side_for(45.0))
        assert (grid.width, grid.height) == (1, 1)

    def test_cell_of(self, grid):
        assert grid.cell_of(0, 0) == (0, 0)
        assert grid.cell_of(44.9, 44.9) == (0, 0)
        assert grid.cell_of(46, 91) == (1, 2)
        assert grid.cell_of(599.9, 499.9) == (13, 11)

    def test_cell_of_clamps_out_of_viewport(self, grid):
        assert grid.cell_of(-100, -5) == (0, 0)
        assert grid.cell_of(10_000, 250) == (13, 5)
        assert grid.cell_of(600, 500) == (13, 11)

    def test_cell_of_with_offset_viewport(self):
        grid = GridIndex(Viewport(100, 100, 700, 600), cell_side_for(45.0))
        assert grid.cell_of(100, 100) == (0, 0)
        assert grid.cell_of(150, 100) == (1, 0)

    def test_invalid_cell_side(self, viewport):
        with pytest.raises(ValueError):
            GridIndex(viewport, 0)


class TestGridCells:
    def test_neighbor_cells_interior(self, grid):
        cells = set(grid.neighbor_cells(5, 5))
        assert len(cells) == 9
        assert (4, 4) in cells and (6, 6) in cells

    def test_neighbor_cells_clipped_at_corners(self, grid):
        assert set(grid.neighbor_cells(0, 0)) == {(0, 0), (1, 0), (0, 1), (1, 1)}
        assert len(set(grid.neighbor_cells(13, 11))) == 4

    def test_neighbor_cells_wider_radius(self, grid):
        assert len(set(grid.neighbor_cells(5, 5, radius=2))) == 25

    def test_ring_cells(self, grid):
        assert list(grid.ring_cells(5, 5, 0)) == [(5, 5)]
        ring = set(grid.ring_cells(5, 5, 2))
        assert len(ring) == 16
        assert all(max(abs(x - 5), abs(y - 5)) == 2 for x, y in ring)

    def test_ring_cells_clipped(self, grid):
        assert set(grid.ring_cells(0, 0, 1)) == {(1, 0), (0, 1), (1, 1)}
        assert list(grid.ring_cells(0, 0, 20)) == []

    def test_rings_partition_block(self, grid):
        block = set(grid.neighbor_cells(3, 4, radius=3))
        rings = [c for r in range(4) for c in grid.ring_cells(3, 4, r)]
        assert len(rings) == len(set(rings))
        assert set(rings) == block


class TestGridMembership:
    def test_insert_assigns_cell(self, grid):
        p = Point(1, 100, 10)
        grid.insert(p)
        assert p.cell == (2, 0)
        assert p in grid
        assert grid.points_in((2, 0)) == [p]
        assert len(grid) == 1

    def test_set_position_moves_bucket(self, grid):
        p = Point(1, 10, 10)
        grid.insert(p)
        p.set_position(100, 10)
        assert p.cell == (2, 0)
        assert grid.points_in((0, 0)) == []
        assert grid.points_in((2, 0)) == [p]
        assert grid.occupied_cells == 1

    def test_move_within_cell_keeps_bucket(self, grid):
        p = Point(1, 10, 10)
        grid.insert(p)
        p.set_position(20, 30)
        assert p.cell == (0, 0)
        assert grid.points_in((0, 0)) == [p]

    def test_move_out_of_viewport_clamps(self, grid):
        p = Point(1, 10, 10)
        grid.insert(p)
        p.set_position(-50, 1000)
        assert p.cell == (0, 11)
        assert grid.points_in((0, 11)) == [p]

    def test_cell_matches_position_after_many_moves(self, grid):
        rng = np.random.default_rng(3)
        points = [Point(i, *rng.uniform(0, 500, 2)) for i in range(50)]
        for p in points:
            grid.insert(p)
        for _ in range(20):
            for p in points:
                p.set_position(*(np.array([p.x, p.y]) + rng.integers(-30, 30, 2)))
        for p in points:
            assert p.cell == grid.cell_of(p.x, p.y)
            assert p in grid.points_in(p.cell)
        assert sum(len(grid.points_in(c)) for c in grid.neighbor_cells(0, 0, 20)) == 50

    def test_remove(self, grid):
        p = Point(1, 10, 10)
        grid.insert(p)
        grid.remove(p)
        assert p.cell is None
        assert p not in grid
        assert len(grid) == 0
        assert grid.occupied_cells == 0
        p.set_position(100, 100)
        assert p.cell is None

    def test_point_bound_to_one_index(self, grid, viewport):
        other = GridIndex(viewport, cell_side_for(45.0))
        p = Point(1, 10, 10)
        grid.insert(p)
        with pytest.raises(ValueError):
            other.insert(p)
        with pytest.raises(ValueError):
            other.remove(p)

    def test_candidates(self, grid):
        a, b, c = Point(1, 10, 10), Point(2, 60, 60), Point(3, 200, 200)
        for p in (a, b, c):
            grid.insert(p)
        assert set(grid.candidates(a.cell)) == {a, b}
        assert set(grid.candidates(c.cell)) == {c}


class TestNonFiniteCoordinates:
    def test_cell_of_clamps_infinities(self, grid):
        assert grid.cell_of(math.inf, 0) == (13, 0)
        assert grid.cell_of(-math.inf, 0) == (0, 0)
        assert grid.cell_of(250, math.inf) == (5, 11)
        assert grid.cell_of(-1e308, 1e308) == (0, 11)

    def test_cell_of_rejects_nan(self, grid):
        with pytest.raises(ValueError):
            grid.cell_of(math.nan, 10)

    @pytest.mark.parametrize("x, cell", [(math.inf, (13, 0)), (-math.inf, (0, 0))])
    def test_set_position_to_infinity(self, grid, x, cell):
        p = Point(1, 200, 10)
        grid.insert(p)
        p.set_position(x, 0)
        assert p.x == x
        assert p.cell == cell
        assert grid.points_in(cell) == [p]
        assert grid.points_in((4, 0)) == []

    def test_nan_move_leaves_point_unchanged(self, grid):
        p = Point(1, 200, 10)
        grid.insert(p)
        with pytest.raises(ValueError):
            p.set_position(math.nan, 10)
        assert (p.x, p.y) == (200.0, 10.0)
        assert p.cell == (4, 0)
        assert grid.points_in((4, 0)) == [p]

    def test_strategies_agree_with_infinite_points(self, make_engine, random_coords):
        from singledetect.detection import GridStrategy, NaiveStrategy

        engine = make_engine(random_coords(13, 80))
        far_east, far_west = engine.points[0], engine.points[1]
        far_east.set_position(math.inf, 0)
        far_west.set_position(-math.inf, 0)

        naive, grid = NaiveStrategy(), GridStrategy()
        singles = grid.find_singles(engine)
        assert singles == naive.find_singles(engine)
        assert {far_east, far_west} <= singles

        origin = engine.points[5]
        for k in (1, 10, 78):
            assert [n.point.uid for n in grid.find_knn(engine, origin, k)] == [
                n.point.uid for n in naive.find_knn(engine, origin, k)
            ]

        engine.refresh_singles()
        assert engine.singles == singles

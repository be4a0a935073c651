import numpy as np
import pytest

from mandelbmp.escape import escape_time, escape_time_grid
from mandelbmp.viewport import Viewport


def test_origin_never_escapes():
    assert escape_time(0.0, 0.0) == 1000
    assert escape_time(0.0, 0.0, max_iteration=10) == 10


@pytest.mark.parametrize("x0, y0", [(2.0, 0.0), (0.0, -2.0), (3.0, 4.0), (-1.5, 1.5), (1e6, -1e6)])
def test_points_outside_radius_leave_on_first_step(x0, y0):
    # The orbit starts at 0, so the first step lands on c itself.
    assert escape_time(x0, y0) == 1


def test_known_escape_times():
    assert escape_time(1.5, 0.0, max_iteration=10) == 2
    assert escape_time(-1.0, 0.0) == 1000
    assert escape_time(0.5, 0.0) == 5


def test_custom_radius():
    # With a radius of 1, c = 1.5 is outside after the first step.
    assert escape_time(1.5, 0.0, max_iteration=10, radius=1.0) == 1


@pytest.mark.parametrize("x0, y0", [(0.25, 0.5), (-0.75, 0.1), (0.3, -0.6), (-1.8, 0.0), (float("nan"), 0.0), (float("inf"), 0.0)])
def test_result_is_bounded(x0, y0):
    result = escape_time(x0, y0, max_iteration=64)
    assert 0 <= result <= 64


def test_grid_matches_scalar_evaluation():
    viewport = Viewport(width=11, height=7, x_min=-2.5, x_max=1.0, y_min=-1.0, y_max=1.0)
    xs = viewport.columns()
    ys = viewport.rows()

    grid = escape_time_grid(xs, ys, max_iteration=60)

    assert grid.shape == (7, 11)
    expected = np.array([[escape_time(x, y, max_iteration=60) for x in xs] for y in ys])
    np.testing.assert_array_equal(grid, expected)


def test_grid_bounds_and_origin():
    grid = escape_time_grid(np.array([-3.0, 0.0, 0.5]), np.array([0.0]), max_iteration=25)

    np.testing.assert_array_equal(grid, [[1, 25, 5]])
    assert grid.min() >= 0 and grid.max() <= 25


def test_grid_respects_radius():
    grid = escape_time_grid(np.array([1.5]), np.array([0.0]), max_iteration=10, radius=1.0)

    assert grid[0, 0] == escape_time(1.5, 0.0, max_iteration=10, radius=1.0)

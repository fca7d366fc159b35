import math

import numpy as np
import pytest

from models.label_grid import LabelGrid
from services.hit_tester import HitTester, round_half_up


def test_corners_map_to_grid_corners(wide_grid):
    tester = HitTester()
    assert tester.cell_at(wide_grid, 0.0, 0.0) == (0, 0)
    assert tester.cell_at(wide_grid, 1.0, 1.0) == (wide_grid.height - 1, wide_grid.width - 1)


@pytest.mark.parametrize(
    "nx,ny",
    [(-0.1, 0.5), (1.1, 0.5), (0.5, -0.1), (0.5, 1.1), (math.nan, 0.5), (0.5, math.inf)],
)
def test_out_of_range_positions_are_declined(wide_grid, nx, ny):
    tester = HitTester()
    assert tester.cell_at(wide_grid, nx, ny) is None
    assert tester.label_at(wide_grid, nx, ny) is None


def test_no_grid_declines():
    assert HitTester().label_at(None, 0.5, 0.5) is None


def test_x_drives_columns_and_y_drives_rows_on_non_square_grid(wide_grid):
    # 2 rows x 4 cols: right edge of the top row is column 3, not row 1
    tester = HitTester()
    assert tester.cell_at(wide_grid, 1.0, 0.0) == (0, 3)
    assert tester.label_at(wide_grid, 1.0, 0.0) == "c3"
    assert tester.cell_at(wide_grid, 0.0, 1.0) == (1, 0)
    assert tester.label_at(wide_grid, 0.0, 1.0) == "c4"
    # 1/3 of the width lands on column 1
    assert tester.cell_at(wide_grid, 1 / 3, 0.0) == (0, 1)


def test_tall_grid_mapping():
    grid = LabelGrid(np.arange(5).reshape(5, 1), ["a", "b", "c", "d", "e"])
    tester = HitTester()
    assert tester.cell_at(grid, 1.0, 0.5) == (2, 0)
    assert tester.label_at(grid, 0.0, 1.0) == "e"


def test_tap_on_bottom_row_returns_road(sky_road_grid):
    assert HitTester().label_at(sky_road_grid, 0.5, 0.9) == "road"
    assert HitTester().label_at(sky_road_grid, 0.2, 0.1) == "sky"


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(1.5) == 2
    assert round_half_up(2.49) == 2
    assert round_half_up(0.0) == 0

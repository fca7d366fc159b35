import numpy as np
import pytest

from config.constants import DIM_COLOR_RGBA, HIGHLIGHT_COLOR_RGBA
from models.errors import RenderError
from models.label_grid import LabelGrid
from services.mask_renderer import MaskRenderer


def test_selected_label_is_highlighted_and_others_dimmed(sky_road_grid):
    overlay = MaskRenderer().render(sky_road_grid, "road")

    assert overlay.label == "road"
    assert overlay.rgba.shape == (2, 2, 4)
    assert overlay.rgba.dtype == np.uint8
    for col in range(2):
        assert tuple(overlay.rgba[0, col]) == DIM_COLOR_RGBA
        assert tuple(overlay.rgba[1, col]) == HIGHLIGHT_COLOR_RGBA


def test_overlay_is_rendered_at_grid_resolution(wide_grid):
    overlay = MaskRenderer().render(wide_grid, "c5")
    assert (overlay.height, overlay.width) == (2, 4)
    highlighted = np.all(overlay.rgba == HIGHLIGHT_COLOR_RGBA, axis=-1)
    assert highlighted.tolist() == [
        [False, False, False, False],
        [False, True, False, False],
    ]


def test_render_is_deterministic(wide_grid):
    renderer = MaskRenderer()
    first = renderer.render(wide_grid, "c2")
    second = renderer.render(wide_grid, "c2")
    assert np.array_equal(first.rgba, second.rgba)


def test_label_absent_from_grid_renders_all_dim():
    grid = LabelGrid([[0, 0]], ["sky", "road"])
    overlay = MaskRenderer().render(grid, "road")
    assert np.all(overlay.rgba == DIM_COLOR_RGBA)


def test_duplicate_names_are_both_highlighted():
    grid = LabelGrid([[0, 1, 2]], ["person", "car", "person"])
    overlay = MaskRenderer().render(grid, "person")
    assert np.all(overlay.rgba[0, [0, 2]] == HIGHLIGHT_COLOR_RGBA)
    assert np.all(overlay.rgba[0, 1] == DIM_COLOR_RGBA)


def test_custom_colors(sky_road_grid):
    renderer = MaskRenderer(highlight_color=(255, 0, 0, 255), dim_color=(0, 0, 0, 0))
    overlay = renderer(sky_road_grid, "sky")
    assert tuple(overlay.rgba[0, 0]) == (255, 0, 0, 255)
    assert tuple(overlay.rgba[1, 1]) == (0, 0, 0, 0)


def test_allocation_failure_raises_render_error(sky_road_grid, monkeypatch):
    def _boom(label):
        raise MemoryError("out of memory")

    monkeypatch.setattr(sky_road_grid, "mask_for", _boom)
    with pytest.raises(RenderError):
        MaskRenderer().render(sky_road_grid, "sky")

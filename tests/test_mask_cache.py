import pytest

from models.errors import UnknownLabelError
from models.label_grid import LabelGrid
from services.mask_cache import MaskCache
from services.mask_renderer import MaskRenderer


class CountingRenderer:
    def __init__(self):
        self.calls = []
        self._renderer = MaskRenderer()

    def __call__(self, grid, label):
        self.calls.append(label)
        return self._renderer.render(grid, label)


def test_second_get_does_not_rerender(sky_road_grid):
    renderer = CountingRenderer()
    cache = MaskCache(renderer)
    cache.reset(sky_road_grid)

    first = cache.get("road")
    second = cache.get("road")

    assert renderer.calls == ["road"]
    assert second is first
    assert "road" in cache
    assert len(cache) == 1


def test_invalidate_all_forces_rerender(sky_road_grid):
    renderer = CountingRenderer()
    cache = MaskCache(renderer)
    cache.reset(sky_road_grid)

    cache.get("sky")
    cache.invalidate_all()
    assert len(cache) == 0
    cache.get("sky")

    assert renderer.calls == ["sky", "sky"]


def test_reset_with_new_grid_drops_entries(sky_road_grid):
    renderer = CountingRenderer()
    cache = MaskCache(renderer)
    cache.reset(sky_road_grid)
    cache.get("sky")

    new_grid = LabelGrid([[1, 1], [1, 0]], ["sky", "road"])
    cache.reset(new_grid)
    overlay = cache.get("sky")

    assert cache.grid is new_grid
    assert renderer.calls == ["sky", "sky"]
    assert overlay.rgba[1, 1, 3] == 255


def test_unknown_label_is_rejected_and_not_stored(sky_road_grid):
    renderer = CountingRenderer()
    cache = MaskCache(renderer)
    cache.reset(sky_road_grid)

    with pytest.raises(UnknownLabelError):
        cache.get("water")
    assert "water" not in cache
    assert renderer.calls == []


def test_get_without_grid_raises():
    cache = MaskCache(CountingRenderer())
    with pytest.raises(UnknownLabelError):
        cache.get("sky")

import pytest

from watermarker.core.datatypes import GridPlacement, SinglePlacement
from watermarker.iop.placement import PlacementResolver


def test_single_inside_footprint():
    config = SinglePlacement(1, 2)
    assert PlacementResolver.resolve(1, 2, config, 3, 2) == (0, 0)
    assert PlacementResolver.resolve(3, 3, config, 3, 2) == (2, 1)


@pytest.mark.parametrize("x, y", [(0, 2), (1, 1), (4, 2), (1, 4), (0, 0)])
def test_single_outside_footprint(x, y):
    assert PlacementResolver.resolve(x, y, SinglePlacement(1, 2), 3, 2) is None


def test_grid_always_resolves():
    config = GridPlacement()
    assert PlacementResolver.resolve(0, 0, config, 3, 2) == (0, 0)
    assert PlacementResolver.resolve(7, 5, config, 3, 2) == (1, 1)


def test_grid_periodicity():
    config = GridPlacement()
    width, height = 3, 2
    for y in range(6):
        for x in range(9):
            sample = PlacementResolver.resolve(x, y, config, width, height)
            assert sample == (x % width, y % height)
            assert sample == PlacementResolver.resolve(x + width, y, config, width, height)
            assert sample == PlacementResolver.resolve(x, y + height, config, width, height)


def test_unknown_config():
    with pytest.raises(TypeError):
        PlacementResolver.resolve(0, 0, "grid", 1, 1)

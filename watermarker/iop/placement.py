from typing import Optional, Tuple

from numba import njit

from watermarker.core.datatypes import GridPlacement, PlacementConfig, SinglePlacement

MODE_SINGLE = 0
MODE_GRID = 1


@njit
def _resolve_coord(x, y, mode, offset_x, offset_y, water_width, water_height):
    """
    Map a base coordinate to (found, wx, wy) in the watermark.

    Grid always hits, tiling from the base origin. Single only hits inside
    the footprint starting at (offset_x, offset_y).
    """
    if mode == MODE_GRID:
        return True, x % water_width, y % water_height
    wx = x - offset_x
    wy = y - offset_y
    if wx >= 0 and wx < water_width and wy >= 0 and wy < water_height:
        return True, wx, wy
    return False, 0, 0


class PlacementResolver:
    """
    Resolves base-image coordinates into watermark sampling coordinates for
    the two placement modes.
    """

    @staticmethod
    def mode_of(config: PlacementConfig) -> Tuple[int, int, int]:
        """(mode, offset_x, offset_y) as plain ints for the JIT kernels."""
        if isinstance(config, SinglePlacement):
            return MODE_SINGLE, config.offset_x, config.offset_y
        if isinstance(config, GridPlacement):
            return MODE_GRID, 0, 0
        raise TypeError(f"Unknown placement config: {config!r}")

    @classmethod
    def resolve(cls,
                x: int,
                y: int,
                config: PlacementConfig,
                water_width: int,
                water_height: int) -> Optional[Tuple[int, int]]:
        """
        Returns the watermark pixel coordinate sampled at base (x, y), or None
        when (x, y) lies outside a Single placement's footprint.
        """
        mode, offset_x, offset_y = cls.mode_of(config)
        found, wx, wy = _resolve_coord(x, y, mode, offset_x, offset_y, water_width, water_height)
        if not found:
            return None
        return int(wx), int(wy)

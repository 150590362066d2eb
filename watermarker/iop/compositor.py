import logging
from typing import Optional

import numba
import numpy as np
from numba import njit, prange

from watermarker.core.datatypes import (
    BlendParams, ImageBuffer, InvalidPlacementError, InvalidTransparencyPercentError,
    PlacementConfig, SinglePlacement, TransparencyConfig
)
from watermarker.iop.blend import _blend_channel
from watermarker.iop.colorkey import ColorKeyMatcher, _is_keyed_out
from watermarker.iop.placement import PlacementResolver, _resolve_coord

logger = logging.getLogger(__name__)


@njit(parallel=True)
def _composite_loop(base, water, out, mode, offset_x, offset_y,
                    use_alpha, has_key, key_red, key_green, key_blue, percent):
    """
    The per-pixel loop, optimized with Numba.

    Rows are split across threads with prange; every thread owns whole output
    rows, so each output pixel is written exactly once and never read back.
    """
    height = out.shape[0]
    width = out.shape[1]
    water_height = water.shape[0]
    water_width = water.shape[1]
    water_has_alpha = water.shape[2] == 4
    for row in prange(height):
        y = np.int64(row)
        for x in range(width):
            base_red = np.int64(base[y, x, 0])
            base_green = np.int64(base[y, x, 1])
            base_blue = np.int64(base[y, x, 2])

            water_red = np.int64(0)
            water_green = np.int64(0)
            water_blue = np.int64(0)
            water_alpha = np.int64(255)
            keyed = True

            found, wx, wy = _resolve_coord(x, y, mode, offset_x, offset_y, water_width, water_height)
            if found:
                water_red = np.int64(water[wy, wx, 0])
                water_green = np.int64(water[wy, wx, 1])
                water_blue = np.int64(water[wy, wx, 2])
                if water_has_alpha:
                    water_alpha = np.int64(water[wy, wx, 3])
                keyed = _is_keyed_out(water_red, water_green, water_blue, water_alpha, water_has_alpha,
                                      use_alpha, has_key, key_red, key_green, key_blue)

            if keyed:
                out[y, x, 0] = base_red
                out[y, x, 1] = base_green
                out[y, x, 2] = base_blue
            else:
                out[y, x, 0] = _blend_channel(base_red, water_red, percent)
                out[y, x, 1] = _blend_channel(base_green, water_green, percent)
                out[y, x, 2] = _blend_channel(base_blue, water_blue, percent)
    return out


class Compositor:
    """
    Compositor

    description:
        blends a watermark into a base image with per-pixel integer weighting,
        placed once at an offset or tiled over the whole base.

    steps:
        1. re-validate placement and blend parameters
        2. resolve every base pixel to a watermark sample (or none)
        3. drop samples rejected by the alpha channel / color key
        4. blend and write each output pixel once

    usage:
        out = Compositor(base, watermark, placement, transparency, blend_params).run()
    """
    def __init__(self,
                 base: ImageBuffer,
                 watermark: ImageBuffer,
                 placement: PlacementConfig,
                 transparency: Optional[TransparencyConfig] = None,
                 blend_params: Optional[BlendParams] = None,
                 num_threads: Optional[int] = None) -> None:
        self.base = base
        self.watermark = watermark
        self.placement = placement
        self.transparency = transparency or TransparencyConfig()
        self.blend_params = blend_params or BlendParams()
        self.num_threads = num_threads

    def _validate(self) -> None:
        if self.watermark.width > self.base.width or self.watermark.height > self.base.height:
            raise InvalidPlacementError(
                f"Watermark {self.watermark.size} is larger than the base image {self.base.size}"
            )
        if isinstance(self.placement, SinglePlacement):
            self.placement.validate(self.base.size, self.watermark.size)
        percent = self.blend_params.transparency_percent
        if not 0 <= percent <= 100:
            raise InvalidTransparencyPercentError(f"Transparency percentage out of range: {percent}")

    def run(self) -> ImageBuffer:
        self._validate()
        mode, offset_x, offset_y = PlacementResolver.mode_of(self.placement)
        has_key, key_red, key_green, key_blue = ColorKeyMatcher.key_channels(self.transparency)
        logger.debug("Compositing %dx%d watermark onto %dx%d base (%s, %d%%)",
                     self.watermark.width, self.watermark.height, self.base.width, self.base.height,
                     type(self.placement).__name__, self.blend_params.transparency_percent)

        output = ImageBuffer.create(self.base.width, self.base.height)
        previous_threads = numba.get_num_threads()
        if self.num_threads is not None:
            numba.set_num_threads(max(1, min(self.num_threads, numba.config.NUMBA_NUM_THREADS)))
        try:
            _composite_loop(self.base.data, self.watermark.data, output.data,
                            mode, offset_x, offset_y,
                            bool(self.transparency.use_alpha_channel), has_key,
                            key_red, key_green, key_blue,
                            int(self.blend_params.transparency_percent))
        finally:
            numba.set_num_threads(previous_threads)
        return output.freeze()


def composite(base: ImageBuffer,
              watermark: ImageBuffer,
              placement: PlacementConfig,
              transparency: Optional[TransparencyConfig] = None,
              blend_params: Optional[BlendParams] = None,
              num_threads: Optional[int] = None) -> ImageBuffer:
    return Compositor(base, watermark, placement, transparency, blend_params, num_threads).run()

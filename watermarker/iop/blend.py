from typing import Optional

from numba import njit

from watermarker.core.datatypes import InvalidTransparencyPercentError, Pixel


@njit
def _blend_channel(base, water, percent):
    # operands are non-negative, so floor division truncates
    return (percent * water + (100 - percent) * base) // 100


def blend(base_pixel: Pixel,
          watermark_pixel: Optional[Pixel],
          is_transparent: bool,
          transparency_percent: int) -> Pixel:
    """
    Weighted mix of one base pixel with one watermark pixel.

    Args:
        base_pixel: pixel of the base image.
        watermark_pixel: sampled watermark pixel, None outside the footprint.
        is_transparent: verdict of the ColorKeyMatcher for watermark_pixel.
        transparency_percent: watermark weight, 0-100.

    Returns:
        Pixel: opaque RGB pixel (alpha is None).
    """
    if not 0 <= transparency_percent <= 100:
        raise InvalidTransparencyPercentError(
            f"Transparency percentage must be in [0, 100], got {transparency_percent}"
        )
    if watermark_pixel is None or is_transparent:
        return Pixel(base_pixel.red, base_pixel.green, base_pixel.blue)
    return Pixel(
        int(_blend_channel(base_pixel.red, watermark_pixel.red, transparency_percent)),
        int(_blend_channel(base_pixel.green, watermark_pixel.green, transparency_percent)),
        int(_blend_channel(base_pixel.blue, watermark_pixel.blue, transparency_percent)),
    )

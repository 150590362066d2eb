from numba import njit

from watermarker.core.datatypes import Pixel, TransparencyConfig


@njit
def _is_keyed_out(red, green, blue, alpha, has_alpha, use_alpha, has_key, key_red, key_green, key_blue):
    """
    Transparency rule shared by the compositing kernel.

    Alpha wins when requested and present, otherwise the RGB color key.
    """
    if use_alpha and has_alpha:
        return alpha == 0
    if has_key:
        return red == key_red and green == key_green and blue == key_blue
    return False


class ColorKeyMatcher:
    """
    Decides whether a watermark pixel is fully transparent, either through
    its alpha channel or through an explicit RGB transparency color.
    """

    @staticmethod
    def key_channels(config: TransparencyConfig):
        """(has_key, red, green, blue) as plain ints for the JIT kernels."""
        if config.color_key is None:
            return False, 0, 0, 0
        return True, config.color_key.red, config.color_key.green, config.color_key.blue

    @classmethod
    def is_transparent(cls, pixel: Pixel, config: TransparencyConfig) -> bool:
        has_key, key_red, key_green, key_blue = cls.key_channels(config)
        has_alpha = pixel.alpha is not None
        return bool(_is_keyed_out(
            pixel.red, pixel.green, pixel.blue,
            pixel.alpha if has_alpha else 255, has_alpha,
            bool(config.use_alpha_channel), has_key, key_red, key_green, key_blue,
        ))

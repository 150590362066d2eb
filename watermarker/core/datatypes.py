"""
Core data types for the watermark compositor.

Pixels, image buffers, placement / transparency / blend configuration and
the error hierarchy shared by every other module.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np


class WatermarkError(Exception):
    """Base class of every error raised by watermarker"""
    pass


class OutOfBoundsError(WatermarkError):
    """Coordinate access outside a buffer's extent"""
    pass


class InvalidPlacementError(WatermarkError):
    """The watermark footprint would leave the base image"""
    pass


class InvalidTransparencyPercentError(WatermarkError):
    """Transparency percentage outside 0-100"""
    pass


class ImmutableBufferError(WatermarkError):
    """Write attempted on a frozen buffer"""
    pass


class UnsupportedFormatError(WatermarkError):
    """Image whose color model is not 3-component 24/32-bit"""
    pass


class InputFileNotFoundError(WatermarkError):
    pass


class InvalidInputError(WatermarkError):
    """Malformed user input (numbers, methods, filenames)"""
    pass


class ConfigError(WatermarkError):
    """Missing or malformed job configuration"""
    pass


def _check_channel(name: str, value: int) -> None:
    if not 0 <= value <= 255:
        raise ValueError(f"{name} channel must be in [0, 255], got {value}")


@dataclass(frozen=True)
class Pixel:
    """
    One RGB(A) sample.

    alpha is None when the source image carries no alpha channel.
    """
    red: int
    green: int
    blue: int
    alpha: Optional[int] = None

    def __post_init__(self):
        _check_channel("red", self.red)
        _check_channel("green", self.green)
        _check_channel("blue", self.blue)
        if self.alpha is not None:
            _check_channel("alpha", self.alpha)

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (self.red, self.green, self.blue)


@dataclass
class ImageBuffer:
    """
    Rectangular grid of RGB(A) pixels.

    data is a uint8 array shaped (height, width, channels) with 3 (RGB) or
    4 (RGBA) channels. Buffers coming from the loader are frozen; the output
    of the compositor is written once and then frozen.
    """
    data: np.ndarray
    width: int
    height: int
    channels: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("ImageBuffer width and height must be positive")
        if self.data.ndim != 3:
            raise ValueError(f"Invalid data shape: {self.data.shape}")
        if self.data.shape[:2] != (self.height, self.width):
            raise ValueError(f"Data shape {self.data.shape} doesn't match dimensions {(self.height, self.width)}")
        if self.channels not in (3, 4) or self.data.shape[2] != self.channels:
            raise ValueError(f"Channels mismatch: expected 3 or 4, got {self.data.shape[2]}")
        if self.data.dtype != np.uint8:
            raise ValueError(f"ImageBuffer data must be uint8, got {self.data.dtype}")

    @classmethod
    def create(cls, width: int, height: int, has_alpha: bool = False) -> 'ImageBuffer':
        """Allocate a black buffer; the alpha channel, if any, is fully opaque."""
        if width <= 0 or height <= 0:
            raise ValueError("ImageBuffer width and height must be positive")
        channels = 4 if has_alpha else 3
        data = np.zeros((height, width, channels), dtype=np.uint8)
        if has_alpha:
            data[..., 3] = 255
        return cls(data=data, width=width, height=height, channels=channels)

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'ImageBuffer':
        if array.ndim != 3:
            raise ValueError(f"Invalid data shape: {array.shape}")
        height, width, channels = array.shape
        return cls(data=array, width=width, height=height, channels=channels)

    @property
    def size(self) -> Tuple[int, int]:
        """Image size (width, height)"""
        return (self.width, self.height)

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @property
    def frozen(self) -> bool:
        return not self.data.flags.writeable

    def freeze(self) -> 'ImageBuffer':
        self.data.flags.writeable = False
        return self

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBoundsError(f"({x}, {y}) is outside the {self.width}x{self.height} buffer")

    def get(self, x: int, y: int) -> Pixel:
        self._check_bounds(x, y)
        values = self.data[y, x]
        alpha = int(values[3]) if self.has_alpha else None
        return Pixel(int(values[0]), int(values[1]), int(values[2]), alpha)

    def set(self, x: int, y: int, pixel: Pixel) -> None:
        self._check_bounds(x, y)
        if self.frozen:
            raise ImmutableBufferError("Cannot write into a frozen ImageBuffer")
        self.data[y, x, :3] = pixel.rgb
        if self.has_alpha:
            self.data[y, x, 3] = 255 if pixel.alpha is None else pixel.alpha


@dataclass(frozen=True)
class SinglePlacement:
    """Watermark placed once with its top-left corner at (offset_x, offset_y)."""
    offset_x: int
    offset_y: int

    def validate(self, base_size: Tuple[int, int], watermark_size: Tuple[int, int]) -> None:
        max_x = base_size[0] - watermark_size[0]
        max_y = base_size[1] - watermark_size[1]
        if not (0 <= self.offset_x <= max_x and 0 <= self.offset_y <= max_y):
            raise InvalidPlacementError(
                f"Offset ({self.offset_x}, {self.offset_y}) is outside [0-{max_x}] x [0-{max_y}]"
            )


@dataclass(frozen=True)
class GridPlacement:
    """Watermark tiled from (0, 0) with a period equal to its size."""
    pass


PlacementConfig = Union[SinglePlacement, GridPlacement]


@dataclass(frozen=True)
class TransparencyConfig:
    """
    Which watermark pixels are skipped entirely.

    use_alpha_channel only matters for watermarks with a true alpha channel,
    color_key (RGB, alpha ignored) only for those without one.
    """
    use_alpha_channel: bool = False
    color_key: Optional[Pixel] = None


@dataclass(frozen=True)
class BlendParams:
    transparency_percent: int = 50  # 0 = pure base, 100 = pure watermark

    def __post_init__(self):
        percent = self.transparency_percent
        if isinstance(percent, bool) or not isinstance(percent, (int, np.integer)) or not 0 <= percent <= 100:
            raise InvalidTransparencyPercentError(
                f"Transparency percentage must be an integer in [0, 100], got {percent!r}"
            )


@dataclass(frozen=True)
class ImageFormat:
    """Color model reported by the loader"""
    mode: str
    color_components: int
    bit_depth: int
    has_alpha: bool

"""
image_io - Pillow loader and writer for the compositor.

The loader only accepts 3-component color models of 24 or 32 bits per pixel
(RGB, RGBX, RGBA). Anything else is rejected before compositing starts.
"""

import logging
import os
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from watermarker.core.datatypes import (
    ImageBuffer, ImageFormat, InputFileNotFoundError, InvalidInputError, UnsupportedFormatError
)

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

# Pillow mode -> (color components, bits per pixel, true alpha channel)
_COLOR_MODELS = {
    "1": (1, 1, False),
    "L": (1, 8, False),
    "LA": (1, 16, True),
    "La": (1, 16, True),
    "I": (1, 32, False),
    "I;16": (1, 16, False),
    "I;16B": (1, 16, False),
    "I;16L": (1, 16, False),
    "F": (1, 32, False),
    "P": (3, 8, False),
    "PA": (3, 16, True),
    "RGB": (3, 24, False),
    "RGBX": (3, 32, False),
    "RGBA": (3, 32, True),
    "RGBa": (3, 32, True),
    "CMYK": (4, 32, False),
}

_OUTPUT_FORMATS = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
}


def describe_mode(mode: str) -> ImageFormat:
    """Color model of a Pillow mode; unknown modes fall back to 8 bits per band."""
    if mode in _COLOR_MODELS:
        components, depth, has_alpha = _COLOR_MODELS[mode]
    else:
        bands = Image.getmodebands(mode)
        components, depth, has_alpha = bands, 8 * bands, False
    return ImageFormat(mode=mode, color_components=components, bit_depth=depth, has_alpha=has_alpha)


def _raw_bits_per_band(img: Image.Image) -> int:
    """Bits per band of the decoder's raw mode, e.g. 16 for PNG 'RGB;16B'."""
    if not img.tile:
        return 8
    rawmode = img.tile[0][3]
    if isinstance(rawmode, tuple):
        rawmode = rawmode[0] if rawmode else ""
    if isinstance(rawmode, str) and ";16" in rawmode:
        return 16
    return 8


def describe_image(img: Image.Image) -> ImageFormat:
    """describe_mode, corrected for 16-bit-per-channel files Pillow opens as 8-bit RGB(A)."""
    image_format = describe_mode(img.mode)
    if img.mode in ("RGB", "RGBA") and _raw_bits_per_band(img) == 16:
        image_format = ImageFormat(mode=image_format.mode,
                                   color_components=image_format.color_components,
                                   bit_depth=16 * len(img.getbands()),
                                   has_alpha=image_format.has_alpha)
    return image_format


def check_format(image_format: ImageFormat, role: str = "image") -> None:
    if image_format.color_components != 3:
        raise UnsupportedFormatError(f"The number of {role} color components isn't 3.")
    if image_format.bit_depth not in (24, 32):
        raise UnsupportedFormatError(f"The {role} isn't 24 or 32-bit.")


def load_image(path: PathLike, role: str = "image") -> Tuple[ImageBuffer, ImageFormat]:
    """
    Reads an image file into a frozen ImageBuffer.

    Args:
        path: image file path.
        role: 'image' or 'watermark', used in the error messages.

    Returns:
        (ImageBuffer, ImageFormat): RGB buffer, or RGBA when the file carries
        a true alpha channel, plus the reported color model.
    """
    path = Path(path)
    if not path.is_file():
        raise InputFileNotFoundError(f"The file {path} doesn't exist.")

    try:
        with Image.open(path) as img:
            # the tile list is cleared by load()
            image_format = describe_image(img)
            check_format(image_format, role)
            img.load()
            target_mode = "RGBA" if image_format.has_alpha else "RGB"
            data = np.array(img.convert(target_mode), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise UnsupportedFormatError(f"Cannot read the {role} file {path}: {e}") from e

    logger.info("Loaded %s '%s' (%dx%d, %s, %d-bit)", role, path, data.shape[1], data.shape[0],
                image_format.mode, image_format.bit_depth)
    return ImageBuffer.from_array(data).freeze(), image_format


def output_format_for(path: PathLike) -> str:
    """Pillow format name for an output filename: PNG or JPEG."""
    fmt = _OUTPUT_FORMATS.get(Path(path).suffix.lower())
    if fmt is None:
        raise InvalidInputError('The output file extension isn\'t "jpg" or "png".')
    return fmt


def to_pil(buffer: ImageBuffer) -> Image.Image:
    # copy: frozen buffers are read only
    return Image.fromarray(np.array(buffer.data, dtype=np.uint8, copy=True))


def save_image(buffer: ImageBuffer, path: PathLike) -> Path:
    """Writes the buffer as opaque 24-bit RGB in the container named by the extension."""
    path = Path(path)
    fmt = output_format_for(path)
    img = to_pil(buffer)
    if img.mode != "RGB":
        img = img.convert("RGB")
    if path.parent and not path.parent.exists():
        os.makedirs(path.parent, exist_ok=True)
    img.save(path, fmt)
    logger.info("Saved %dx%d %s image to '%s'", buffer.width, buffer.height, fmt, path)
    return path

"""
intake - parse and validate the user-supplied watermark parameters.

Every function raises a WatermarkError subclass whose message is ready to be
shown to the user as is.
"""

import re
from pathlib import Path

from watermarker.core.datatypes import (
    GridPlacement, ImageBuffer, InvalidInputError, InvalidPlacementError,
    InvalidTransparencyPercentError, Pixel, PlacementConfig, SinglePlacement
)
from watermarker.utils.image_io import output_format_for

PLACEMENT_METHODS = ("single", "grid")

_INTEGER = re.compile(r"[+-]?\d+")
_SIGNED = re.compile(r"-?\d+")
_CHANNEL = re.compile(r"\d+")


def check_watermark_fits(base: ImageBuffer, watermark: ImageBuffer) -> None:
    if watermark.height > base.height or watermark.width > base.width:
        raise InvalidPlacementError("The watermark's dimensions are larger.")


def parse_yes(text: str) -> bool:
    return text.strip() == "yes"


def parse_transparency_percent(text: str) -> int:
    text = text.strip()
    if not _INTEGER.fullmatch(text):
        raise InvalidInputError("The transparency percentage isn't an integer number.")
    percent = int(text)
    if not 0 <= percent <= 100:
        raise InvalidTransparencyPercentError("The transparency percentage is out of range.")
    return percent


def parse_placement_method(text: str) -> str:
    method = text.strip()
    if method not in PLACEMENT_METHODS:
        raise InvalidInputError("The position method input is invalid.")
    return method


def position_prompt(base: ImageBuffer, watermark: ImageBuffer) -> str:
    return (f"Input the watermark position "
            f"([x 0-{base.width - watermark.width}] [y 0-{base.height - watermark.height}]):")


def parse_position(text: str, base: ImageBuffer, watermark: ImageBuffer) -> SinglePlacement:
    """'x y' -> SinglePlacement keeping the watermark fully inside the base."""
    tokens = text.strip().split(" ")
    if len(tokens) != 2 or not all(_SIGNED.fullmatch(t) for t in tokens):
        raise InvalidInputError("The position input is invalid.")
    placement = SinglePlacement(int(tokens[0]), int(tokens[1]))
    check_position(placement, base, watermark)
    return placement


def check_position(placement: SinglePlacement, base: ImageBuffer, watermark: ImageBuffer) -> None:
    try:
        placement.validate(base.size, watermark.size)
    except InvalidPlacementError as e:
        raise InvalidPlacementError("The position input is out of range.") from e


def make_placement(method: str, position=None) -> PlacementConfig:
    if parse_placement_method(method) == "grid":
        return GridPlacement()
    if not isinstance(position, (list, tuple)) or len(position) != 2:
        raise InvalidInputError("The position input is invalid.")
    try:
        return SinglePlacement(int(position[0]), int(position[1]))
    except (TypeError, ValueError) as e:
        raise InvalidInputError("The position input is invalid.") from e


def parse_color_key(text: str) -> Pixel:
    """'r g b' -> Pixel, each channel read independently."""
    tokens = text.strip().split(" ")
    if len(tokens) != 3 or not all(_CHANNEL.fullmatch(t) and int(t) <= 255 for t in tokens):
        raise InvalidInputError("The transparency color input is invalid.")
    return Pixel(int(tokens[0]), int(tokens[1]), int(tokens[2]))


def make_color_key(values) -> Pixel:
    if not isinstance(values, (list, tuple)) or len(values) != 3:
        raise InvalidInputError("The transparency color input is invalid.")
    try:
        return Pixel(*(int(v) for v in values))
    except (TypeError, ValueError) as e:
        raise InvalidInputError("The transparency color input is invalid.") from e


def parse_output_path(text: str) -> Path:
    path = Path(text.strip())
    output_format_for(path)
    return path

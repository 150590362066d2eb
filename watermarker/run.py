"""
run - command line entry point for watermarker.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from watermarker.core.datatypes import (
    BlendParams, GridPlacement, InvalidInputError, TransparencyConfig, WatermarkError
)
from watermarker.core.pipeline import WatermarkJob, run_job, run_pipeline
from watermarker.utils import intake
from watermarker.utils.image_io import load_image


def interactive_session(ask: Optional[Callable[[], str]] = None,
                        say: Optional[Callable[[str], None]] = None) -> WatermarkJob:
    """
    Console workflow: ask for each parameter in turn and validate it before
    asking the next one.

    step:
        1. base image, then watermark image (format and size checks)
        2. alpha channel or transparency color, depending on the watermark
        3. transparency percentage
        4. position method and position
        5. output filename
    """
    ask = ask or input
    say = say or print

    say("Input the image filename:")
    base_path = Path(ask().strip())
    base, _ = load_image(base_path, role="image")

    say("Input the watermark image filename:")
    watermark_path = Path(ask().strip())
    watermark, watermark_format = load_image(watermark_path, role="watermark")
    intake.check_watermark_fits(base, watermark)

    transparency = TransparencyConfig()
    if watermark_format.has_alpha:
        say("Do you want to use the watermark's Alpha channel?")
        if intake.parse_yes(ask()):
            transparency = TransparencyConfig(use_alpha_channel=True)
    else:
        say("Do you want to set a transparency color?")
        if intake.parse_yes(ask()):
            say("Input a transparency color ([Red] [Green] [Blue]):")
            transparency = TransparencyConfig(color_key=intake.parse_color_key(ask()))

    say("Input the watermark transparency percentage (Integer 0-100):")
    percent = intake.parse_transparency_percent(ask())

    say("Choose the position method (single, grid):")
    method = intake.parse_placement_method(ask())
    if method == "single":
        say(intake.position_prompt(base, watermark))
        placement = intake.parse_position(ask(), base, watermark)
    else:
        placement = GridPlacement()

    say("Input the output image filename (jpg or png extension):")
    output_path = intake.parse_output_path(ask())

    return WatermarkJob(
        base_path=base_path,
        watermark_path=watermark_path,
        output_path=output_path,
        placement=placement,
        transparency=transparency,
        blend=BlendParams(percent),
    )


def job_from_args(args: argparse.Namespace) -> WatermarkJob:
    for name in ('watermark', 'output'):
        if getattr(args, name) is None:
            raise InvalidInputError(f"--{name} is required together with --image")
    placement = intake.make_placement(args.placement, args.position)
    color_key = intake.make_color_key(args.color_key) if args.color_key is not None else None
    return WatermarkJob(
        base_path=Path(args.image),
        watermark_path=Path(args.watermark),
        output_path=intake.parse_output_path(args.output),
        placement=placement,
        transparency=TransparencyConfig(use_alpha_channel=args.use_alpha, color_key=color_key),
        blend=BlendParams(intake.parse_transparency_percent(str(args.transparency))),
        num_threads=args.threads,
    )


def arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watermarker",
        description="Blend a watermark image into a base image, once or as a grid. "
                    "Without arguments the parameters are asked for interactively."
    )
    parser.add_argument('-c', '--config', help="YAML job file")
    parser.add_argument('--image', help="Path to the base image")
    parser.add_argument('--watermark', help="Path to the watermark image")
    parser.add_argument('-o', '--output', help="Output image path (.png or .jpg)")
    parser.add_argument('-t', '--transparency', type=int, default=50,
                        help="Watermark transparency percentage (0-100)")
    parser.add_argument('--placement', choices=intake.PLACEMENT_METHODS, default='single',
                        help="Position method")
    parser.add_argument('--position', type=int, nargs=2, metavar=('X', 'Y'), default=[0, 0],
                        help="Watermark offset for the single position method")
    parser.add_argument('--use-alpha', action='store_true',
                        help="Skip fully transparent watermark pixels (alpha channel)")
    parser.add_argument('--color-key', type=int, nargs=3, metavar=('R', 'G', 'B'),
                        help="Transparency color of the watermark")
    parser.add_argument('--threads', type=int, help="Number of compositing threads")
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help="Log progress (-vv for debug output)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = arg_parser().parse_args(argv)
    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s:%(message)s")

    try:
        if args.config:
            output_path = run_pipeline(args.config)
        elif args.image:
            output_path = run_job(job_from_args(args))
        else:
            output_path = run_job(interactive_session())
    except WatermarkError as e:
        print(e)
        return 1

    print(f"The watermarked image {output_path} has been created.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

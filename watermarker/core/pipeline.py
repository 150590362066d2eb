"""
pipeline - runs one watermark job, from a YAML config or from parameters
collected elsewhere (the interactive command line).
"""

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from watermarker.core.datatypes import (
    BlendParams, ConfigError, PlacementConfig, SinglePlacement, TransparencyConfig
)
from watermarker.iop.compositor import Compositor
from watermarker.utils import intake
from watermarker.utils.image_io import load_image, output_format_for, save_image

logger = logging.getLogger(__name__)


@dataclass
class WatermarkJob:
    """Everything needed to produce one watermarked image"""
    base_path: Path
    watermark_path: Path
    output_path: Path
    placement: PlacementConfig
    transparency: TransparencyConfig = field(default_factory=TransparencyConfig)
    blend: BlendParams = field(default_factory=BlendParams)
    num_threads: Optional[int] = None


def _require(config: dict, key: str):
    if key not in config or config[key] is None:
        raise ConfigError(f"Missing '{key}' in watermark config")
    return config[key]


def _require_file(config: dict, key: str) -> str:
    value = _require(config, key)
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a file path, got {value!r}")
    return value


def _optional_list(section: dict, key: str, length: int):
    value = section.get(key)
    if value is not None and (not isinstance(value, (list, tuple)) or len(value) != length):
        raise ConfigError(f"'{key}' must be a list of {length} integers, got {value!r}")
    return value


def load_job(config_path: str) -> WatermarkJob:
    """
    Builds a WatermarkJob from a YAML config file.

    Relative file paths are resolved against the directory of the config file.
    """
    # Get the absolute path of the config file to resolve other paths correctly
    base_dir = os.path.dirname(os.path.abspath(config_path))
    logger.info("1. Loading configuration from: %s", config_path)
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    if not isinstance(config, dict):
        raise ConfigError(f"Watermark config {config_path} must be a mapping")

    placement_cfg = config.get('placement') or {}
    if not isinstance(placement_cfg, dict):
        raise ConfigError("'placement' must be a mapping")
    placement = intake.make_placement(str(placement_cfg.get('method', 'single')),
                                      _optional_list(placement_cfg, 'position', 2))

    transparency_cfg = config.get('transparency') or {}
    if not isinstance(transparency_cfg, dict):
        raise ConfigError("'transparency' must be a mapping")
    color_key = _optional_list(transparency_cfg, 'color_key', 3)
    transparency = TransparencyConfig(
        use_alpha_channel=bool(transparency_cfg.get('use_alpha_channel', False)),
        color_key=intake.make_color_key(color_key) if color_key is not None else None,
    )

    percent = intake.parse_transparency_percent(str(_require(config, 'transparency_percent')))
    output_path = Path(base_dir) / _require_file(config, 'output_file')
    output_format_for(output_path)

    threads = config.get('threads')
    if threads is not None and (isinstance(threads, bool) or not isinstance(threads, int) or threads < 1):
        raise ConfigError(f"'threads' must be a positive integer, got {threads!r}")

    return WatermarkJob(
        base_path=Path(base_dir) / _require_file(config, 'input_file'),
        watermark_path=Path(base_dir) / _require_file(config, 'watermark_file'),
        output_path=output_path,
        placement=placement,
        transparency=transparency,
        blend=BlendParams(percent),
        num_threads=threads,
    )


def run_job(job: WatermarkJob) -> Path:
    """
    Loads both images, validates the geometry, composites and saves.

    Returns:
        Path: the written output file.
    """
    start_time = time.time()
    logger.info("2. Loading images: %s, %s", job.base_path, job.watermark_path)
    base, _ = load_image(job.base_path, role="image")
    watermark, watermark_format = load_image(job.watermark_path, role="watermark")
    intake.check_watermark_fits(base, watermark)
    if isinstance(job.placement, SinglePlacement):
        intake.check_position(job.placement, base, watermark)

    # only one transparency strategy applies, chosen by the watermark's color model
    transparency = job.transparency
    if watermark_format.has_alpha and transparency.color_key is not None:
        logger.warning("Watermark has an alpha channel, ignoring the transparency color")
        transparency = TransparencyConfig(use_alpha_channel=transparency.use_alpha_channel)
    elif not watermark_format.has_alpha and transparency.use_alpha_channel:
        logger.warning("Watermark has no alpha channel, ignoring use_alpha_channel")
        transparency = TransparencyConfig(color_key=transparency.color_key)

    logger.info("3. Compositing (%s, %d%% transparency)",
                type(job.placement).__name__, job.blend.transparency_percent)
    output = Compositor(base, watermark, job.placement, transparency, job.blend,
                        num_threads=job.num_threads).run()

    logger.info("4. Saving final image to: %s", job.output_path)
    save_image(output, job.output_path)
    logger.info("Finished in %.2f seconds", time.time() - start_time)
    return job.output_path


def run_pipeline(config_path: str) -> Path:
    return run_job(load_job(config_path))

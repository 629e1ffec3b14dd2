"""Command line entry point.

Renders one of the preset scenes and writes it as a plain-text PPM image,
to a file or to standard output. Log messages go to standard error, so the
image can be piped straight into a viewer or converter.

Usage:
    pathtracer [options]

Options:
    --scene NAME        Preset scene: two-spheres or showcase (default: two-spheres)
    --width WIDTH       Image width in pixels (default: 200)
    --height HEIGHT     Image height in pixels (default: 100)
    --samples SAMPLES   Number of samples per pixel (default: 20)
    --max-depth DEPTH   Maximum bounces per sample (default: 12)
    --seed SEED         Render seed (default: 0)
    --output OUTPUT     Output file path, or - for stdout (default: -)
    --batch-size SIZE   Samples per progress update (default: 10)
    --arch ARCH         Taichi backend: auto, gpu or cpu (default: auto)
    --verbose / --quiet Log level DEBUG / WARNING (default: INFO)

Example:
    pathtracer --width 400 --height 200 --samples 100 --seed 7 > spheres.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

from pathtracer.config import MAX_BOUNCES, RenderConfig

logger = logging.getLogger(__name__)

SCENE_CHOICES = ("two-spheres", "showcase")
ARCH_CHOICES = ("auto", "gpu", "cpu")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a sphere scene with Monte Carlo path tracing and write a PPM image.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_CHOICES,
        default="two-spheres",
        help="Preset scene (default: two-spheres)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=200,
        help="Image width in pixels (default: 200)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=100,
        help="Image height in pixels (default: 100)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=20,
        help="Number of samples per pixel (default: 20)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=MAX_BOUNCES,
        help=f"Maximum bounces per sample (default: {MAX_BOUNCES})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Render seed (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help="Output file path, or - for stdout (default: -)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=ARCH_CHOICES,
        default="auto",
        help="Taichi backend; auto tries the GPU and falls back to the CPU (default: auto)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log per-batch progress",
    )
    verbosity.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the level selected on the command line."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def init_taichi(arch: str = "auto") -> None:
    """Initialize Taichi on the requested backend."""
    if arch == "cpu":
        ti.init(arch=ti.cpu)
        logger.info("Using CPU backend")
        return

    if arch == "gpu":
        ti.init(arch=ti.gpu)
        logger.info("Using GPU backend")
        return

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        logger.info("Using GPU backend")
    except Exception as e:
        logger.warning("GPU backend unavailable (%s), falling back to CPU", e)
        ti.init(arch=ti.cpu)
        logger.info("Using CPU backend")


def render_scene(config: RenderConfig, scene_name: str, output: str) -> None:
    """Render a preset scene and write it as PPM.

    Args:
        config: Validated render settings.
        scene_name: One of SCENE_CHOICES.
        output: Output file path, or "-" for stdout.

    Raises:
        ValueError: If the scene name or any setting is invalid.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.presets import SCENE_PRESETS

    if scene_name not in SCENE_PRESETS:
        raise ValueError(f"Unknown scene: {scene_name!r}")

    logger.info("Creating %s scene (%dx%d)", scene_name, config.width, config.height)
    scene, camera = SCENE_PRESETS[scene_name](aspect_ratio=config.aspect_ratio)
    setup_camera(camera)

    renderer = ProgressiveRenderer(
        config.width,
        config.height,
        seed=config.seed,
        max_depth=config.max_depth,
    )

    start_time = time.perf_counter()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.perf_counter() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0.0
        logger.debug(
            "Progress: %d/%d samples (%.1f%%) - %.1f spp/s",
            current,
            target,
            100.0 * current / target,
            samples_per_sec,
        )

    renderer.render(
        num_samples=config.samples_per_pixel,
        batch_size=config.batch_size,
        callback=progress_callback,
    )

    if output == "-":
        renderer.save_ppm(sys.stdout)
        sys.stdout.flush()
    else:
        output_file = Path(output)
        renderer.save_ppm(output_file)
        logger.info("Saved to: %s", output_file.absolute())


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        config = RenderConfig(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            batch_size=args.batch_size,
        )
    except ValueError as e:
        logger.error("Invalid settings: %s", e)
        return 2

    init_taichi(args.arch)

    try:
        render_scene(config, args.scene, args.output)
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Render failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

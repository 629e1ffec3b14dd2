#!/usr/bin/env python3
"""Render the two-sphere scene and a few seeds of the material showcase.

This script shows the library API without the command line wrapper: it builds
the scenes, renders them progressively with a fixed seed and writes PPM files
next to the working directory.

Usage:
    python examples/render_spheres.py [--samples SAMPLES]

Example:
    python examples/render_spheres.py --samples 50
"""

from __future__ import annotations

import argparse
import logging
import sys

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Render the preset sphere scenes.")
    parser.add_argument(
        "--samples",
        type=int,
        default=20,
        help="Number of samples per pixel (default: 20)",
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
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    ti.init(arch=ti.cpu)

    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.presets import (
        create_material_showcase_scene,
        create_two_sphere_scene,
    )

    aspect_ratio = args.width / args.height

    _, camera = create_two_sphere_scene(aspect_ratio=aspect_ratio)
    setup_camera(camera)
    renderer = ProgressiveRenderer(args.width, args.height, seed=1)
    renderer.render(args.samples, batch_size=5)
    renderer.save_ppm("two_spheres.ppm")
    logger.info("Wrote two_spheres.ppm")

    # Same scene content every time; only the generator streams change
    _, camera = create_material_showcase_scene(aspect_ratio=aspect_ratio)
    setup_camera(camera)
    for seed in (1, 2, 3):
        renderer = ProgressiveRenderer(args.width, args.height, seed=seed)
        renderer.render(args.samples, batch_size=5)
        renderer.save_ppm(f"showcase_seed{seed}.ppm")
        logger.info("Wrote showcase_seed%d.ppm", seed)

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Batched sample accumulation on top of the integrator.

ProgressiveRenderer owns the render settings (size, seed, bounce limit) and
adds samples to the integrator's global buffers in batches, reporting after
each batch. Sample indices continue from the samples already accumulated, so
the image after N samples is the same however the N samples were batched,
and a render can be stopped and resumed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.scene.presets import create_two_sphere_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(200, 100, seed=7)
    >>> for done, total in renderer.render_progressive(100, batch_size=25):
    ...     print(f"{done}/{total}")
    >>> renderer.save_ppm("spheres.ppm")
"""

import logging
import os
import time
from collections.abc import Callable, Generator
from typing import TextIO

import numpy as np
import numpy.typing as npt

from pathtracer.config import MAX_BOUNCES, MAX_SEED
from pathtracer.core.integrator import (
    clear_render_target,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.output.export import GAMMA, image_to_uint8, write_ppm

logger = logging.getLogger(__name__)

# Called with (samples accumulated so far, samples when this call finishes)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Accumulates samples for the current scene and camera.

    The pixel data lives in the integrator's Taichi fields, so only one
    renderer is meaningful at a time; creating one resets the buffers.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Render seed selecting the generator streams.
        max_depth: Maximum number of scattering events per sample.
    """

    def __init__(
        self,
        width: int,
        height: int,
        seed: int = 0,
        max_depth: int = MAX_BOUNCES,
    ) -> None:
        """Set up a cleared render target of the given size.

        Args:
            width: Image width in pixels, at most MAX_IMAGE_WIDTH.
            height: Image height in pixels, at most MAX_IMAGE_HEIGHT.
            seed: Render seed in [0, 2**31 - 1].
            max_depth: Maximum number of scattering events per sample.

        Raises:
            ValueError: If dimensions are invalid, the seed is out of range
                or max_depth is negative.
        """
        if not 0 <= seed <= MAX_SEED:
            raise ValueError(f"seed = {seed} must be in [0, {MAX_SEED}]")
        if max_depth < 0:
            raise ValueError(f"max_depth = {max_depth} must be non-negative")

        self._width = width
        self._height = height
        self._seed = seed
        self._max_depth = max_depth
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Samples accumulated per pixel since the last reset."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard all accumulated samples, keeping the image size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Switch to a new image size, discarding accumulated samples.

        An invalid size raises ValueError and leaves the renderer unchanged.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples samples per pixel to the image.

        Args:
            num_samples: Samples to add. Zero or negative adds nothing.
            batch_size: Samples per kernel launch, and so per callback.
            callback: Called after each batch with (accumulated, target).

        Raises:
            ValueError: If batch_size is not positive.

        Example:
            >>> renderer.render(64, batch_size=16, callback=lambda done, total: print(done))
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Generator form of render(), yielding (accumulated, target) per batch.

        Closing the generator early keeps the batches already rendered.

        Raises:
            ValueError: If batch_size is not positive.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size = {batch_size} must be positive")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        logger.info(
            "Rendering %dx%d, %d spp (seed=%d, max_depth=%d)",
            self._width,
            self._height,
            num_samples,
            self._seed,
            self._max_depth,
        )
        start_time = time.perf_counter()

        remaining = num_samples
        while remaining > 0:
            count = min(batch_size, remaining)
            render_image(count, max_depth=self._max_depth, seed=self._seed)
            remaining -= count

            current = self.sample_count
            logger.debug("Accumulated %d/%d samples", current, target_samples)
            yield (current, target_samples)

        logger.info(
            "Finished %d spp in %.2fs",
            num_samples,
            time.perf_counter() - start_time,
        )

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear image as a NumPy array.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32, row 0
            at the top. Values are not clamped.
        """
        return get_linear_image_numpy()

    def get_pixels(self, gamma: float = GAMMA) -> npt.NDArray[np.uint8]:
        """The image as clamped, gamma corrected uint8 pixels, shape (height, width, 3)."""
        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_ppm(self, target: str | os.PathLike[str] | TextIO) -> None:
        """Write the rendered image as PPM.

        Args:
            target: Output file path or writable text stream.
        """
        write_ppm(self.get_pixels(), target)
        logger.info("Wrote %dx%d PPM image", self._width, self._height)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(width={self._width}, height={self._height}, "
            f"seed={self._seed}, samples={self.sample_count})"
        )

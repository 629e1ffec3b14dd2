"""Monte Carlo path tracing over the sphere scene.

This module implements the main rendering kernel. Each camera sample follows
one scattering chain through the scene: every hit asks the surface material
for a single scattered ray and multiplies the path throughput by its
attenuation. The chain ends when the ray escapes to the sky gradient or
stops scattering.

Every sample draws from its own generator stream keyed by (seed, pixel,
sample index), and per-pixel linear color sums persist across render calls,
so a render is reproducible and can be extended batch by batch.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.presets import create_two_sphere_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(200, 100)
    >>> render_image(num_samples=100, seed=7)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.config import MAX_BOUNCES, MAX_SEED
from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampler import init_rng, next_float
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min avoids re-hitting the surface a ray just left
T_MIN = 0.001
# Largest finite f32
T_MAX = 3.4e38

# Sky gradient endpoints
HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Buffers are allocated once at this size; renders use the top-left corner
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Active image size
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear color sum per pixel (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Samples added per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Set once setup_render_target has run
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Select the active image size and zero the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Zero the color sums and sample counts, keeping the image size."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Return the active (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along a ray that escapes the scene.

    Blends from white at the horizon (looking straight down) to light blue
    straight up, based on the y component of the unit direction.
    """
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * HORIZON_COLOR + t * ZENITH_COLOR


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Scatter off whichever material material_id names.

    Returns (scattered_direction, attenuation, did_scatter, rng); an
    unregistered material_id absorbs the ray.
    """
    kind = get_material_type(material_id)
    slot = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    state = rng

    if kind == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter, state = scatter_lambertian_by_id(
            slot, normal, state
        )

    elif kind == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter, state = scatter_metal_by_id(
            slot, incident_direction, normal, state
        )

    elif kind == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter, state = scatter_dielectric_by_id(
            slot, incident_direction, normal, state
        )

    return scattered_direction, attenuation, did_scatter, state


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, rng: ti.u32):
    """Estimate the color carried back along a ray.

    Walks the scattering chain iteratively. At bounce depth d:
    - a miss returns throughput * background_color(direction)
    - a hit with d < max_depth scatters; absorption returns black, otherwise
      the throughput is multiplied by the attenuation and the walk continues
      from the hit point
    - a hit with d >= max_depth returns black

    Args:
        ray: The primary ray.
        max_depth: Maximum number of scattering events.
        rng: The generator state.

    Returns:
        A tuple of (color, rng).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray
    state = rng

    active = 1

    for depth in range(max_depth + 1):
        if active == 1:
            hit_record = intersect_scene(current, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background_color(current.direction)
                active = 0
            elif depth < max_depth:
                scattered_direction, attenuation, did_scatter, state = _scatter_material(
                    hit_record.material_id, current.direction, hit_record.normal, state
                )
                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput *= attenuation
                    current = make_ray(hit_record.point, scattered_direction)
            else:
                # Out of bounces
                active = 0

    return color, state


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    sample_offset: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    """Render num_samples samples per pixel and add them to the color sums.

    Sample k of this call is global sample sample_offset + k, which selects
    its generator stream. Samples are added one at a time in index order, so
    splitting a render into several calls gives bit-identical sums.
    """
    for i, j in ti.ndrange(width, height):
        pixel_index = j * width + i
        for k in range(num_samples):
            rng = init_rng(seed, pixel_index, sample_offset + k)

            # Jitter within the pixel for anti-aliasing
            du, rng = next_float(rng)
            dv, rng = next_float(rng)
            u = (ti.cast(i, ti.f32) + du) / ti.cast(width, ti.f32)
            v = (ti.cast(j, ti.f32) + dv) / ti.cast(height, ti.f32)

            ray, rng = get_ray(u, v, rng)
            color, rng = ray_color(ray, max_depth, rng)

            # Non-finite channels count as black
            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    color[c] = 0.0

            _color_buffer[i, j] += color
            _sample_count[i, j] += 1


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, seed: ti.i32) -> vec3:
    """Trace one ray through the scene with the stream for (seed, 0, 0)."""
    rng = init_rng(seed, 0, 0)
    color, rng = ray_color(make_ray(origin, direction), max_depth, rng)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_render_arguments(max_depth: int, seed: int) -> None:
    if max_depth < 0:
        raise ValueError(f"max_depth = {max_depth} must be non-negative")
    if not 0 <= seed <= MAX_SEED:
        raise ValueError(f"seed = {seed} must be in [0, {MAX_SEED}]")


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_BOUNCES,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Compute the color of a single ray against the current scene.

    Runs in its own single-threaded kernel; meant for tests and debugging.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), any non-zero length.
        max_depth: Maximum number of scattering events.
        seed: Selects the generator stream.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If max_depth is negative or seed is out of range.
    """
    _check_render_arguments(max_depth, seed)

    color = _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
        seed,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_BOUNCES, seed: int = 0) -> None:
    """Add num_samples samples to every pixel.

    Sample indices continue from the current total, so N calls of one sample
    each produce the same image as one call of N samples.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum number of scattering events per sample.
        seed: Render seed in [0, MAX_SEED].

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples or max_depth is negative, or the seed is
            out of range.
    """
    _check_render_target_initialized()
    if num_samples < 0:
        raise ValueError(f"num_samples = {num_samples} must be non-negative")
    _check_render_arguments(max_depth, seed)

    if num_samples == 0:
        return

    width, height = get_image_dimensions()
    sample_offset = get_total_samples()

    logger.debug(
        "Rendering %d spp at %dx%d (offset=%d, max_depth=%d, seed=%d)",
        num_samples,
        width,
        height,
        sample_offset,
        max_depth,
        seed,
    )
    _render_samples(width, height, num_samples, sample_offset, max_depth, seed)


def get_total_samples() -> int:
    """Samples accumulated per pixel since the last clear.

    Every render adds the same count to each pixel, so pixel (0, 0) speaks for
    the whole image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear image as a NumPy array.

    The array shape is (height, width, 3) with row 0 at the top of the image.
    Values are not clamped. Pixels with no samples are black.

    Returns:
        NumPy array of shape (height, width, 3) with dtype float32.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    color_sum = _color_buffer.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    image = color_sum / np.maximum(counts, 1)[:, :, np.newaxis]

    # Buffers are indexed (x, y) with y = 0 at the bottom; images are (row, column) from the top
    image = np.flipud(np.transpose(image, (1, 0, 2)))

    return np.ascontiguousarray(image, dtype=np.float32)

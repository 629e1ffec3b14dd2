"""Deterministic random number generation for Monte Carlo sampling.

Every camera sample owns an independent generator stream derived from
(seed, pixel index, sample index). The stream state is a single u32 that is
passed into and returned from each sampling function, so a render is fully
reproducible for a given seed no matter how Taichi schedules pixels across
threads.

The generator is xorshift32 seeded through an integer hash. Quality is more
than sufficient for path tracing and the state fits in a register.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = init_rng(42, 0, 0)
    ...     value, state = next_float(state)
    ...     return value
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import length_squared

# Type alias for 3D vectors
vec3 = tm.vec3

# Upper bound on rejection sampling iterations. The acceptance rate is about
# 52% for the sphere and 79% for the disk, so this is never reached in practice.
MAX_REJECTION_ATTEMPTS = 64

# 2^-24, maps the top 24 bits of a u32 onto [0, 1)
_FLOAT_SCALE = 1.0 / 16777216.0


@ti.func
def hash_u32(value: ti.u32) -> ti.u32:
    """Wang hash of a 32-bit unsigned integer."""
    x = value
    x = (x ^ ti.u32(61)) ^ (x >> ti.u32(16))
    x *= ti.u32(9)
    x = x ^ (x >> ti.u32(4))
    x *= ti.u32(668265261)
    x = x ^ (x >> ti.u32(15))
    return x


@ti.func
def init_rng(seed: ti.i32, pixel_index: ti.i32, sample_index: ti.i32) -> ti.u32:
    """Derive the generator state for one camera sample.

    Args:
        seed: The render seed.
        pixel_index: Linear pixel index (j * width + i).
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero u32 generator state.
    """
    state = hash_u32(ti.cast(sample_index, ti.u32))
    state = hash_u32(ti.cast(pixel_index, ti.u32) ^ state)
    state = hash_u32(ti.cast(seed, ti.u32) ^ state)
    # xorshift has a fixed point at zero
    if state == ti.u32(0):
        state = ti.u32(0x2545F491)
    return state


@ti.func
def next_float(state: ti.u32):
    """Advance the generator and draw a uniform float.

    Args:
        state: The current generator state.

    Returns:
        A tuple of (value, new_state) with value uniform in [0, 1).
    """
    x = state
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    value = ti.cast(x >> ti.u32(8), ti.f32) * _FLOAT_SCALE
    return value, x


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point strictly inside the unit sphere.

    Samples the cube [-1, 1]^3 uniformly and rejects points with squared
    length >= 1.

    Args:
        state: The current generator state.

    Returns:
        A tuple of (point, new_state).
    """
    p = vec3(0.0, 0.0, 0.0)
    rng = state
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, rng = next_float(rng)
            y, rng = next_float(rng)
            z, rng = next_float(rng)
            candidate = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 2.0 * z - 1.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p, rng


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Same rejection scheme as random_in_unit_sphere, projected to 2D. Used for
    thin-lens aperture sampling.

    Args:
        state: The current generator state.

    Returns:
        A tuple of (point, new_state) where point is (x, y, 0).
    """
    p = vec3(0.0, 0.0, 0.0)
    rng = state
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, rng = next_float(rng)
            y, rng = next_float(rng)
            candidate = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 0.0)
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p, rng

"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities (reflect, refract, Schlick)
    sampler: Counter-based random number streams and rejection samplers
    integrator: Light transport loop, render target and rendering kernels
    progressive: Batched, resumable rendering on top of the integrator

All compute-intensive operations use Taichi kernels. The integrator walks the
scattering chain iteratively with a bounded bounce count instead of recursing.
"""

from .ray import (
    Ray,
    length_squared,
    make_ray,
    ray_at,
    reflect,
    refract,
    schlick,
    vec3,
)
from .sampler import (
    hash_u32,
    init_rng,
    next_float,
    random_in_unit_disk,
    random_in_unit_sphere,
)

# Note: integrator and progressive are NOT imported here because they declare
# Taichi fields at import time. Import them directly after ti.init():
#   from pathtracer.core.progressive import ProgressiveRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "reflect",
    "refract",
    "schlick",
    "hash_u32",
    "init_rng",
    "next_float",
    "random_in_unit_sphere",
    "random_in_unit_disk",
]

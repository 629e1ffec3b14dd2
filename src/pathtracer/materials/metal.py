"""Metal (specular reflective) material implementation.

This module implements specular reflection with optional roughness (fuzz).
Perfect metals (roughness=0) produce mirror reflections, while rougher metals
scatter reflected rays within a sphere around the mirror direction.

The reflection formula is:
    R = I - 2(I . N)N

applied to the normalized incident direction I. The fuzzed direction is
R + roughness * p for a random point p in the unit sphere. When that
direction no longer leaves the surface the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_metal(
    >>> #     albedo, roughness, incident_dir, normal, rng
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect
from pathtracer.core.sampler import random_in_unit_sphere
from pathtracer.materials.lambertian import check_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    roughness: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        roughness: The surface roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal.
        rng: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng) where:
        - scattered_direction: The fuzzed reflection (not normalized). It is
          returned even when absorbed so callers can inspect it.
        - attenuation: The albedo.
        - did_scatter: 1 if dot(scattered_direction, normal) > 0, else 0.
        - rng: The advanced generator state.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)

    fuzz, state = random_in_unit_sphere(rng)
    scattered_direction = reflected + roughness * fuzz

    did_scatter = 0
    if tm.dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    attenuation = albedo
    return scattered_direction, attenuation, did_scatter, state


# =============================================================================
# Registry (indexed by the type-local index held in scene.manager)
# =============================================================================

# Capacity of the metal registry
MAX_METAL_MATERIALS = 256

# Registry fields; entries past the count are stale
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_roughnesses = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Only the count is reset; stale entries are overwritten by later adds.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    roughness: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component must be in [0, 1].
        roughness: The surface roughness. Default is 0 (perfect mirror).
            Values outside [0, 1] are clamped.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    check_albedo(albedo)

    slot = num_metal_materials[None]
    if slot >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[slot] = vec3(albedo[0], albedo[1], albedo[2])
    metal_roughnesses[slot] = clamp_roughness(roughness)
    num_metal_materials[None] = slot + 1
    return slot


def clamp_roughness(roughness: float) -> float:
    """Clamp a roughness value to [0, 1]."""
    return min(max(float(roughness), 0.0), 1.0)


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_roughness(material_idx: ti.i32) -> ti.f32:
    """Get the (clamped) roughness for a metal material by index."""
    return metal_roughnesses[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Scatter off a registered metal material.

    Args:
        material_idx: The index of the material in the registry.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal at the hit point.
        rng: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
    """
    albedo = get_metal_albedo(material_idx)
    roughness = get_metal_roughness(material_idx)
    return scatter_metal(albedo, roughness, incident_direction, normal, rng)

"""Lambertian (ideal diffuse) material implementation.

A diffuse surface scatters toward normal + p, where p is a uniformly random
point inside the unit sphere. The resulting directions favour the normal and
never point into the surface. Attenuation is the albedo and diffuse surfaces
never absorb a ray outright.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_lambertian(
    >>> #     albedo, normal, rng
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, rng: ti.u32):
    """Sample a scattered ray direction for a Lambertian surface.

    The scattered ray originates at the hit point; the caller builds it from
    the returned direction.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The unit surface normal at the hit point.
        rng: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng) where:
        - scattered_direction: normal + random point in the unit sphere
          (not normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1.
        - rng: The advanced generator state.
    """
    offset, state = random_in_unit_sphere(rng)
    scattered_direction = normal + offset
    attenuation = albedo
    did_scatter = 1
    return scattered_direction, attenuation, did_scatter, state


# =============================================================================
# Registry (indexed by the type-local index held in scene.manager)
# =============================================================================

# Capacity of the Lambertian registry
MAX_LAMBERTIAN_MATERIALS = 256

# Registry fields; entries past the count are stale
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def check_albedo(albedo: tuple[float, float, float]) -> None:
    """Raise ValueError unless every albedo component is in [0, 1]."""
    for channel, component in zip("RGB", albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(f"Albedo {channel} = {component} is outside [0, 1]")


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Only the count is reset; stale entries are overwritten by later adds.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component must be in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    check_albedo(albedo)

    slot = num_lambertian_materials[None]
    if slot >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[slot] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = slot + 1
    return slot


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, rng: ti.u32):
    """Scatter off a registered Lambertian material.

    Args:
        material_idx: The index of the material in the registry.
        normal: The unit surface normal at the hit point.
        rng: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, normal, rng)

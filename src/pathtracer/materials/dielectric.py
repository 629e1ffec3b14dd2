"""Dielectric (glass/water) material implementation.

This module implements clear refractive materials.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when the Snell discriminant is not positive

Each interaction picks a single outgoing ray: refraction when it exists and a
uniform draw is at least the Schlick reflectance, mirror reflection otherwise.
Whether the ray is entering or leaving the medium is decided by the sign of
dot(incident, normal), so the sphere normal never has to be flipped by the
intersection code.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_dielectric(
    >>> #     ior, incident_dir, normal, rng
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect, refract, schlick
from pathtracer.core.sampler import next_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit outward surface normal.
        rng: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng) where:
        - scattered_direction: The refracted or reflected direction.
        - attenuation: Always white; the medium does not absorb.
        - did_scatter: Always 1.
        - rng: The advanced generator state.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    d_dot_n = tm.dot(incident_direction, normal)
    d_length = tm.length(incident_direction)

    # Entering the medium from outside
    outward_normal = normal
    index_i = 1.0
    index_r = ior
    cosine = -d_dot_n / d_length

    if d_dot_n > 0.0:
        # Leaving the medium
        outward_normal = -normal
        index_i = ior
        index_r = 1.0
        cosine = ior * d_dot_n / d_length

    reflected = reflect(tm.normalize(incident_direction), normal)
    refracted, did_refract = refract(incident_direction, outward_normal, index_i, index_r)
    reflectance = schlick(cosine, ior)

    draw, state = next_float(rng)

    scattered_direction = reflected
    if did_refract == 1 and draw >= reflectance:
        scattered_direction = refracted

    did_scatter = 1
    return scattered_direction, attenuation, did_scatter, state


# =============================================================================
# Registry (indexed by the type-local index held in scene.manager)
# =============================================================================

# Capacity of the dielectric registry
MAX_DIELECTRIC_MATERIALS = 256

# Registry fields; entries past the count are stale
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Only the count is reset; stale entries are overwritten by later adds.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(
            f"Index of refraction = {ior} is not positive. "
            "IOR must be > 0 for Snell's law to be defined."
        )

    slot = num_dielectric_materials[None]
    if slot >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[slot] = ior
    num_dielectric_materials[None] = slot + 1
    return slot


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Scatter off a registered dielectric material.

    Args:
        material_idx: The index of the material in the registry.
        incident_direction: The incoming ray direction.
        normal: The unit outward surface normal at the hit point.
        rng: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, rng)

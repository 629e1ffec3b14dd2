"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass and the small set of vector operations
the materials and integrator need. Everything here is a pure Taichi function;
random sampling lives in ``pathtracer.core.sampler`` because it threads an
explicit generator state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; camera and scattered rays are generally not.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Args:
        v: The input vector.

    Returns:
        The squared Euclidean length of the vector.
    """
    return tm.dot(v, v)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. The normal should be unit length for
    correct results; the incident vector may have any length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, index_i: ti.f32, index_r: ti.f32):
    """Refract an incident vector through a surface using Snell's law.

    The incident direction is normalized internally. The normal must face the
    side the ray arrives from (dot(incident, normal) <= 0).

    Args:
        incident: The incoming direction vector (any length).
        normal: The unit surface normal on the incident side.
        index_i: Refractive index of the medium the ray travels in.
        index_r: Refractive index of the medium the ray enters.

    Returns:
        A tuple of (refracted_direction, did_refract) where did_refract is 0
        when the Snell discriminant is not positive (total internal
        reflection). The direction is a zero vector in that case.
    """
    unit = tm.normalize(incident)
    dt = tm.dot(unit, normal)
    ratio = index_i / index_r
    discriminant = 1.0 - ratio * ratio * (1.0 - dt * dt)

    refracted = vec3(0.0, 0.0, 0.0)
    did_refract = 0
    if discriminant > 0.0:
        refracted = ratio * (unit - normal * dt) - normal * ti.sqrt(discriminant)
        did_refract = 1
    return refracted, did_refract


@ti.func
def schlick(cosine: ti.f32, ior: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 = ((1 - n) / (1 + n))^2
    R(cos) = r0 + (1 - r0) * (1 - cos)^5

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ior: Refractive index of the material.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ior) / (1.0 + ior)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)

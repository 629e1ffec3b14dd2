"""Sphere primitive with ray-sphere intersection.

This module provides a Sphere dataclass and the intersection function used by
the scene aggregate. The quadratic is solved in the half-b form:

    a = dot(d, d)
    b = dot(oc, d)          (half of the traditional linear coefficient)
    c = dot(oc, oc) - r^2
    discriminant = b^2 - a*c

The nearer root is tested first, so when both roots lie in the query window
the closer one is reported.

The normal is (hit_point - center) / radius. For a negative radius this points
toward the center, which is how hollow glass shells are modelled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normal
            inward.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter at the intersection, strictly inside the query
            window. Only valid if hit == 1.
        point: The intersection point, equal to ray_at(ray, t).
            Only valid if hit == 1.
        normal: (point - center) / radius. Unit length and outward for a
            positive radius. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-sphere intersection within (t_min, t_max).

    Args:
        ray: The ray to test. The direction need not be normalized.
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on the ray parameter (avoids
            self-intersection).
        t_max: Exclusive upper bound on the ray parameter.

    Returns:
        A HitRecord. A tangent ray (discriminant == 0) and a degenerate ray
        with a zero-length direction both report a miss.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant > 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearer root first
        t = (-b - sqrt_d) / a
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = (-b + sqrt_d) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(ray, t)
            hit_normal = (hit_point - sphere.center) / sphere.radius

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)

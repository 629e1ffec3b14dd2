"""Scene-level sphere intersection testing.

The scene aggregate stores spheres in Taichi fields and answers nearest-hit
queries by a linear scan. Each sphere carries a material ID into the material
arena, so hit records stay small and no material data is copied per hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene, vec3
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Nearest sphere hit along a ray, tagged with the sphere's material.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The ray parameter of the nearest intersection.
        point: The intersection point.
        normal: (point - center) / radius of the sphere that was hit.
        material_id: The unified material ID of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# One slot per sphere; slots past num_spheres are stale
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all spheres from the scene.

    Resets the sphere count to zero. Field data is overwritten as new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Negative radii are allowed and
            produce inward-facing normals.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is zero.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")

    slot = num_spheres[None]
    if slot >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[slot] = center
    sphere_radii[slot] = radius
    sphere_material_ids[slot] = material_id
    num_spheres[None] = slot + 1
    return slot


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _with_material(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Attach a material ID to a sphere hit record."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        material_id=material_id,
    )


@ti.func
def _miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def intersect_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> SceneHitRecord:
    """Find the nearest sphere hit along a ray.

    Every sphere is queried with the window (t_min, closest), where closest
    starts at t_max and shrinks to each new hit distance. The result is the
    globally nearest hit; on exact ties the earlier sphere wins.

    Args:
        ray: The ray to test.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The nearest SceneHitRecord, or a miss record.
    """
    closest_t = t_max
    result = _miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, Sphere(center=sphere_centers[i], radius=sphere_radii[i]), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _with_material(rec, sphere_material_ids[i])

    return result

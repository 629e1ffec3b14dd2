"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Spheres are the only primitive. Intersection routines are Taichi functions
(@ti.func) returning a HitRecord whose hit flag tells the caller whether the
remaining fields are meaningful.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
]

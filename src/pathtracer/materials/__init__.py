"""Materials module for light-scattering models.

This module implements the three surface responses of the path tracer:

Components:
    lambertian: Ideal diffuse reflection (normal + random unit-sphere point)
    metal: Specular reflection with optional roughness, absorbing rays that
        fuzz below the surface
    dielectric: Glass-like refraction with Schlick reflectance and total
        internal reflection

Each material provides:
    - scatter_*(): Sample the outgoing direction for one interaction
    - scatter_*_by_id(): The same, reading parameters from the registry
    - add_*_material() / clear_*_materials(): Host-side registry management

Every scatter function takes the generator state as its last argument and
returns (scattered_direction, attenuation, did_scatter, rng). The scattered
ray always starts at the hit point.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clamp_roughness,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_material_count,
    get_metal_roughness,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clamp_roughness",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_roughness",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
]

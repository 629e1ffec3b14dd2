"""Scene module for scene management and hit records.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Sphere storage and nearest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made test scenes

The scene module manages:
    - Sphere storage in GPU-friendly Taichi fields
    - Material ID assignment and lookup
    - Conversion of scenes to and from plain dictionaries

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
"""

# Scene intersection and hit records
from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)

# Scene manager for coordinating spheres and materials
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)

# Preset scenes
from .presets import (
    SCENE_PRESETS,
    create_material_showcase_scene,
    create_two_sphere_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets module
    "create_two_sphere_scene",
    "create_material_showcase_scene",
    "SCENE_PRESETS",
]

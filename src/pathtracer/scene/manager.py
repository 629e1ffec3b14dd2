"""Scene building: spheres plus the material arena.

Each material lives once in the registry of its own type (lambertian, metal
or dielectric). The manager hands out a scene-wide material ID for it and
records, in two Taichi fields, which registry and which slot that ID refers
to. Spheres only carry the scene-wide ID, and the integrator resolves it with
get_material_type / get_material_type_index before scattering.

A scene can be exported to and rebuilt from a plain dictionary:

    {
        "materials": [{"type": "metal", "albedo": [r, g, b], "roughness": f}, ...],
        "spheres": [{"center": [x, y, z], "radius": r, "material_id": i}, ...],
    }

where material_id is a position in the materials list.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=glass)
    0
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable

import taichi as ti
import taichi.math as tm

from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clamp_roughness,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Which registry a material lives in."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Three registries of 256 entries each
MAX_MATERIALS = 768

# material ID -> MaterialType, and material ID -> slot in that type's registry
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Look up the MaterialType of a material ID, or -1 if it is not registered."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Look up the registry slot of a material ID, or -1 if it is not registered."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Host-side record of a registered material.

    Attributes:
        material_id: Scene-wide material ID.
        material_type: Registry the material lives in.
        type_index: Slot within that registry.
        params: Parameters as stored (roughness already clamped).
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Host-side record of a sphere."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Scene description as plain lists, in material ID and sphere order."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_vec3(values: Any, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Builds the one live scene held in the global Taichi fields.

    Constructing a SceneManager wipes the sphere list, the three material
    registries and the material ID table.

    Attributes:
        materials: MaterialInfo per material ID.
        spheres: SphereInfo per sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), roughness=0.3)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        0
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        1
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Materials
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Give a registry slot the next scene-wide material ID."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its material ID.

        Raises:
            ValueError: If albedo does not have 3 components in [0, 1].
            RuntimeError: If a registry is full.
        """
        albedo = _as_vec3(albedo, "albedo")
        slot = add_lambertian_material(albedo)
        return self._register_material(MaterialType.LAMBERTIAN, slot, {"albedo": albedo})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        roughness: float = 0.0,
    ) -> int:
        """Register a metal material and return its material ID.

        Roughness is clamped to [0, 1]; 0 is a perfect mirror.

        Raises:
            ValueError: If albedo does not have 3 components in [0, 1].
            RuntimeError: If a registry is full.
        """
        albedo = _as_vec3(albedo, "albedo")
        slot = add_metal_material(albedo, roughness)
        params = {"albedo": albedo, "roughness": clamp_roughness(roughness)}
        return self._register_material(MaterialType.METAL, slot, params)

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a glass-like material and return its material ID.

        Raises:
            ValueError: If ior is not positive.
            RuntimeError: If a registry is full.
        """
        slot = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, slot, {"ior": float(ior)})

    def get_material_count(self) -> int:
        """Number of registered materials."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Return the record for a material ID, or None if it is unknown."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere that uses an already registered material.

        Args:
            center: Sphere center (x, y, z).
            radius: Non-zero radius. A negative radius flips the normals
                inward, which turns a sphere placed inside a glass sphere
                into a hollow bubble.
            material_id: ID returned by one of the add_*_material methods.

        Returns:
            The sphere index.

        Raises:
            ValueError: If material_id is not registered or radius is zero.
            RuntimeError: If the sphere list is full.
        """
        if not 0 <= material_id < num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_vec3(center, "center")
        radius = float(radius)
        sphere_index = add_sphere(vec3(*center), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, center, radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with its own diffuse material; returns (sphere_index, material_id)."""
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        roughness: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with its own metal material; returns (sphere_index, material_id)."""
        material_id = self.add_metal_material(albedo, roughness)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with its own glass material; returns (sphere_index, material_id)."""
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        """Number of spheres in the scene."""
        return get_sphere_count()

    # =========================================================================
    # Scene description
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Describe the current scene as a SceneConfig."""
        materials = []
        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            entry.update(
                (key, list(value) if isinstance(value, tuple) else value)
                for key, value in info.params.items()
            )
            materials.append(entry)

        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Materials are registered in list order, so a sphere's material_id
        is a position in config.materials.

        Raises:
            ValueError: On an unknown material type, a sphere entry missing
                center, radius or material_id, or invalid parameters.
        """
        self.clear()

        for entry in config.materials:
            kind = str(entry.get("type", "")).lower()
            loader = _MATERIAL_LOADERS.get(kind)
            if loader is None:
                raise ValueError(f"Unknown material type: {kind!r}")
            loader(self, entry)

        for position, entry in enumerate(config.spheres):
            missing = [key for key in _SPHERE_KEYS if key not in entry]
            if missing:
                raise ValueError(f"Sphere {position} is missing {', '.join(missing)}")
            self.add_sphere(entry["center"], entry["radius"], int(entry["material_id"]))

    def to_dict(self) -> dict[str, Any]:
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the current scene with one read from a to_dict() style dictionary."""
        self.from_config(
            SceneConfig(
                materials=list(data.get("materials", [])),
                spheres=list(data.get("spheres", [])),
            )
        )

    @staticmethod
    def get_max_spheres() -> int:
        """Capacity of the sphere list."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Capacity of the material ID table."""
        return MAX_MATERIALS


# Keys every sphere entry must provide
_SPHERE_KEYS = ("center", "radius", "material_id")

# Material "type" name -> how to register an entry of that type
_MATERIAL_LOADERS: dict[str, Callable[[SceneManager, dict[str, Any]], int]] = {
    "lambertian": lambda scene, entry: scene.add_lambertian_material(
        entry.get("albedo", (0.5, 0.5, 0.5))
    ),
    "metal": lambda scene, entry: scene.add_metal_material(
        entry.get("albedo", (0.8, 0.8, 0.8)), entry.get("roughness", 0.0)
    ),
    "dielectric": lambda scene, entry: scene.add_dielectric_material(entry.get("ior", 1.5)),
}

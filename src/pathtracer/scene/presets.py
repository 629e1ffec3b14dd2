"""Ready-made sphere scenes.

This module provides factory functions for the standard test scenes:

- Two spheres: a small diffuse sphere resting on a huge diffuse ground
  sphere under the sky gradient. The camera sits at the origin looking down
  -z with a 90 degree vertical field of view, so the default 2:1 aspect ratio
  reproduces the classic 4 x 2 viewport one unit in front of the eye.
- Material showcase: diffuse, metal and glass spheres side by side, including
  a hollow glass bubble (a glass sphere with a negative-radius sphere inside
  it), viewed from above with a shallow depth of field.

Each factory clears the global scene and returns (SceneManager, camera).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pathtracer.scene.presets import create_two_sphere_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

import logging
import math

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Scene Constants
# =============================================================================

# Diffuse gray used for both spheres of the two-sphere scene
DIFFUSE_GRAY = (0.5, 0.5, 0.5)

# Ground sphere: its top touches y = -0.5
GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0

# Showcase materials
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GROUND_ALBEDO = (0.8, 0.8, 0.0)
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_ROUGHNESS = 0.3
SILVER_ALBEDO = (0.8, 0.8, 0.8)
GLASS_IOR = 1.5


def create_two_sphere_scene(
    aspect_ratio: float = 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the two-sphere diffuse scene.

    Contains:
    - A sphere of radius 0.5 at (0, 0, -1)
    - A ground sphere of radius 100 at (0, -100.5, -1)
    Both use a gray Lambertian material.

    Args:
        aspect_ratio: Image width divided by height. Default 2.0.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).

    Example:
        >>> scene, camera = create_two_sphere_scene(aspect_ratio=1.0)
        >>> scene.get_sphere_count()
        2
    """
    scene = SceneManager()

    diffuse = scene.add_lambertian_material(albedo=DIFFUSE_GRAY)
    ground = scene.add_lambertian_material(albedo=DIFFUSE_GRAY)

    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=diffuse)
    scene.add_sphere(center=GROUND_CENTER, radius=GROUND_RADIUS, material_id=ground)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_distance=1.0,
    )

    logger.debug("Created two-sphere scene with %d spheres", scene.get_sphere_count())
    return scene, camera


def create_material_showcase_scene(
    aspect_ratio: float = 2.0,
    aperture: float = 0.1,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a scene exercising every material type.

    Contains, left to right along x at z = -1:
    - A glass bubble: a glass sphere of radius 0.5 with a radius -0.45
      sphere inside it, whose inward normals make it a hollow shell
    - A diffuse blue sphere
    - A rough gold metal sphere
    Plus a polished silver sphere behind them and a yellowish diffuse ground.

    The camera looks at the center sphere from above and to the side and
    focuses on it.

    Args:
        aspect_ratio: Image width divided by height. Default 2.0.
        aperture: Lens diameter. Default 0.1; 0 gives a pinhole camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    center = scene.add_lambertian_material(albedo=CENTER_ALBEDO)
    gold = scene.add_metal_material(albedo=GOLD_ALBEDO, roughness=GOLD_ROUGHNESS)
    silver = scene.add_metal_material(albedo=SILVER_ALBEDO, roughness=0.0)
    glass = scene.add_dielectric_material(ior=GLASS_IOR)

    scene.add_sphere(center=GROUND_CENTER, radius=GROUND_RADIUS, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=center)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=0.5, material_id=gold)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, material_id=glass)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=-0.45, material_id=glass)
    scene.add_sphere(center=(0.5, 0.5, -2.5), radius=1.0, material_id=silver)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)
    focus_distance = math.dist(lookfrom, lookat)

    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=aperture,
        focus_distance=focus_distance,
    )

    logger.debug("Created material showcase scene with %d spheres", scene.get_sphere_count())
    return scene, camera


# Preset registry used by the command line interface
SCENE_PRESETS = {
    "two-spheres": create_two_sphere_scene,
    "showcase": create_material_showcase_scene,
}

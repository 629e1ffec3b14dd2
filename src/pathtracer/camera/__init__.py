"""Camera module for view and ray generation.

Components:
    thin_lens: Perspective camera with thin-lens depth of field

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Sample the lens aperture for depth of field
    - Support look-at positioning with up vector

Ray generation uses normalized device coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]

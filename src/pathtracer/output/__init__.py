"""Output module for converting and writing rendered images.

Components:
    export: Clamping, gamma correction, quantization and PPM writing

Example:
    >>> from pathtracer.output import image_to_uint8, write_ppm
    >>> write_ppm(image_to_uint8(linear_image), "output.ppm")
"""

from pathtracer.output.export import (
    GAMMA,
    apply_gamma,
    clamp_image,
    compute_rmse,
    format_ppm,
    image_to_uint8,
    quantize,
    write_ppm,
)

__all__ = [
    "GAMMA",
    "clamp_image",
    "apply_gamma",
    "quantize",
    "image_to_uint8",
    "format_ppm",
    "write_ppm",
    "compute_rmse",
]

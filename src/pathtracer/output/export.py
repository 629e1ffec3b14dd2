"""Image export utilities for rendered images.

This module turns the averaged linear image into 8-bit pixels and writes them
as plain-text PPM (P3).

Pipeline:
    1. Clamp each channel to [0, 1]
    2. Gamma correct with gamma 2 (square root)
    3. Quantize with floor(255.999 * c)

Clamping happens before gamma so bright pixels saturate at 255 instead of
wrapping around when converted to 8 bits.

Example:
    >>> from pathtracer.output.export import image_to_uint8, write_ppm
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(200, 100)
    >>> renderer.render(100)
    >>> write_ppm(image_to_uint8(renderer.get_image_numpy()), "output.ppm")
"""

from __future__ import annotations

import os
from typing import TextIO

import numpy as np
import numpy.typing as npt

# Display gamma; the correction is c ** (1 / GAMMA)
GAMMA = 2.0

# Just under 256 so that 1.0 maps to 255
QUANTIZE_SCALE = 255.999


def clamp_image(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Clamp a linear image to [0, 1].

    NaN values become 0.
    """
    image = np.nan_to_num(image, nan=0.0, posinf=1.0, neginf=0.0)
    return np.clip(image, 0.0, 1.0).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = GAMMA,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction: c^(1/gamma).

    Args:
        image: Image array with values in [0, 1].
        gamma: Gamma value (default 2.0).

    Returns:
        Gamma-corrected image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma = {gamma} must be positive")

    if gamma == 2.0:
        result = np.sqrt(image)
    else:
        result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def quantize(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Map [0, 1] values to 8-bit with floor(255.999 * c)."""
    return np.floor(QUANTIZE_SCALE * image).astype(np.uint8)


def image_to_uint8(
    image: npt.NDArray[np.floating],
    *,
    gamma: float = GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 2.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    return quantize(apply_gamma(clamp_image(image), gamma))


def format_ppm(pixels: npt.NDArray[np.uint8]) -> str:
    """Format an 8-bit RGB image as a plain-text PPM (P3) document.

    The header is "P3", then "<width> <height>", then "255". Each pixel
    follows on its own line as "r g b", rows from top to bottom and left to
    right within a row.

    Args:
        pixels: Array of shape (H, W, 3) with row 0 at the top.

    Returns:
        The PPM text, ending with a newline.

    Raises:
        ValueError: If the array is not (H, W, 3).
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {pixels.shape}")

    height, width, _ = pixels.shape
    lines = ["P3", f"{width} {height}", "255"]
    for r, g, b in pixels.reshape(-1, 3).tolist():
        lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


def write_ppm(
    pixels: npt.NDArray[np.uint8],
    target: str | os.PathLike[str] | TextIO,
) -> None:
    """Write an 8-bit RGB image as PPM to a path or an open text stream.

    Args:
        pixels: Array of shape (H, W, 3) with row 0 at the top.
        target: Output file path, or a writable text stream such as
            sys.stdout.
    """
    text = format_ppm(pixels)

    if hasattr(target, "write"):
        target.write(text)
    else:
        with open(target, "w", encoding="ascii") as f:
            f.write(text)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))

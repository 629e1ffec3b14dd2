"""Render settings.

RenderConfig collects the knobs of a single render and validates them on
construction. It imports no Taichi modules, so it can be built before
ti.init() is called.

Example:
    >>> from pathtracer.config import RenderConfig
    >>> config = RenderConfig(width=400, height=200, samples_per_pixel=50, seed=7)
    >>> config.aspect_ratio
    2.0
"""

from dataclasses import asdict, dataclass
from typing import Any

# Default maximum number of scattering events per camera sample
MAX_BOUNCES = 12

# Render seeds are passed to the kernels as i32
MAX_SEED = 2**31 - 1


@dataclass(frozen=True)
class RenderConfig:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of camera samples averaged per pixel.
        max_depth: Maximum number of scattering events per sample.
        seed: Render seed in [0, 2**31 - 1].
        batch_size: Samples rendered between progress updates.
    """

    width: int = 200
    height: int = 100
    samples_per_pixel: int = 20
    max_depth: int = MAX_BOUNCES
    seed: int = 0
    batch_size: int = 10

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions ({self.width}x{self.height}) must be positive")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be positive")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must be non-negative")
        if not 0 <= self.seed <= MAX_SEED:
            raise ValueError(f"seed = {self.seed} must be in [0, {MAX_SEED}]")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size = {self.batch_size} must be positive")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def to_dict(self) -> dict[str, Any]:
        """Export the settings to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Build a config from a dictionary, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)

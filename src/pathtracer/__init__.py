"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package provides GPU-accelerated ray tracing using Taichi, with support for:
- Diffuse, metal and glass materials
- Sphere primitives, including negative-radius hollow spheres
- A thin-lens camera with depth of field
- Seeded, reproducible progressive rendering
- Plain-text PPM output

Subpackages:
    core: Rays, random sampling, the integrator and the progressive renderer
    geometry: Sphere primitive and intersection
    materials: Scattering models
    scene: Scene management, nearest-hit queries and preset scenes
    camera: Thin-lens camera with ray generation
    output: Gamma correction, quantization and PPM export

Modules that declare Taichi fields must be imported after ti.init().
"""

__version__ = "0.1.0"

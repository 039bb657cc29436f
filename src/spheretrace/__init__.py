"""Taichi-based sphere ray tracer.

Renders an image by casting jittered rays from a fixed pinhole camera into a
scene of spheres. Each ray is colored by a bounded-depth bounce loop with
Lambertian and fuzzy-metal scattering and a sky gradient background, and the
samples for a pixel are averaged progressively.

Subpackages:
    core: Ray and vector helpers, color evaluation, sampling driver
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian and metal scattering with material registries
    scene: Sphere storage, nearest-hit queries, scene manager and presets
    camera: Fixed pinhole camera with sub-pixel jitter
    preview: Gamma/tone mapping, image export and Matplotlib preview
"""

__version__ = "0.1.0"

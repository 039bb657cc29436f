"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random sampling
    integrator: Ray color evaluation, render target and rendering kernels
    progressive: Sampling driver and render settings
"""

from .ray import (
    Ray,
    dot,
    length,
    length_squared,
    lerp,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_sphere,
    ray_at,
    reflect,
    vec3,
)

# integrator and progressive import the scene and camera packages, so they are
# not imported here. Use spheretrace.core.integrator or
# spheretrace.core.progressive directly.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "dot",
    "length",
    "length_squared",
    "normalize",
    "reflect",
    "near_zero",
    "lerp",
    "random_in_unit_sphere",
]

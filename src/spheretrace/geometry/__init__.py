"""Geometry module: the sphere primitive.

Intersection routines are Taichi functions (@ti.func) called from kernels:
    rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
]

"""Sphere primitive with ray-sphere intersection.

The intersection substitutes the ray into the implicit sphere equation and
solves the resulting quadratic with the half-b formulation:

    a*t^2 + 2*b*t + c = 0

    a = dot(direction, direction)
    b = dot(origin - center, direction)
    c = dot(origin - center, origin - center) - radius^2

A tangent ray (discriminant exactly zero) is reported as a miss, which keeps
grazing rays from producing isolated shading artifacts.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import dot

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection, strictly inside the
            (t_min, t_max) window of the query. Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The outward unit normal (point - center) / radius.
            It is never flipped toward the ray. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def _make_sphere_hit(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t: ti.f32,
) -> HitRecord:
    point = ray_origin + t * ray_direction
    return HitRecord(
        hit=1,
        t=t,
        point=point,
        normal=(point - sphere.center) / sphere.radius,
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The smaller root is tried first. If it lies outside (t_min, t_max), for
    example because the ray starts inside the sphere, the larger root is
    tried. Both bounds are exclusive.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be
            normalized, must be non-zero).
        sphere: The sphere to test intersection against.
        t_min: Lower bound of the valid t window (exclusive).
        t_max: Upper bound of the valid t window (exclusive).

    Returns:
        A HitRecord. Check the hit field to determine if intersection
        occurred.
    """
    oc = ray_origin - sphere.center
    a = dot(ray_direction, ray_direction)
    b = dot(oc, ray_direction)
    c = dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - a * c

    # Taichi requires the result to be declared in the outer scope
    result = HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
    )

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t_near = (-b - sqrt_d) / a
        if t_min < t_near < t_max:
            result = _make_sphere_hit(ray_origin, ray_direction, sphere, t_near)
        else:
            t_far = (-b + sqrt_d) / a
            if t_min < t_far < t_max:
                result = _make_sphere_hit(ray_origin, ray_direction, sphere, t_far)

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a kernel."""
    return Sphere(center=center, radius=radius)

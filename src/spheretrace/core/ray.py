"""Ray data structure and vector utilities for the sphere tracer.

This module provides the Ray dataclass and the vector helpers used by the
intersection, scattering and shading code. All helpers are Taichi functions
so they can be called from inside kernels.

Dot products always go through ``dot()``. The ``*`` operator on ``vec3`` is
component-wise, never a dot product.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 0.5)  # (0, 0, -0.5)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            normalized, but must be non-zero.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Precondition: ``v`` is not the zero vector. Ray directions are non-zero by
    construction, so callers never pass one. The precondition is checked when
    Taichi runs with ``debug=True``.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    len_v = length(v)
    assert len_v > 0.0, "normalize() called on a zero-length vector"
    return v / len_v


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes ``incident - 2 * dot(incident, normal) * normal``. The normal
    should be unit length for correct results.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def lerp(a: vec3, b: vec3, t: ti.f32) -> vec3:
    """Linearly interpolate between a (t=0) and b (t=1)."""
    return (1.0 - t) * a + t * b


# =============================================================================
# Random Sampling
# =============================================================================


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit ball.

    Rejection sampling: draw each component uniformly in [-1, 1] until the
    point satisfies length_squared(p) <= 1. The result is uniform over the
    ball volume, not its surface. About 1.9 draws are needed on average and
    the loop has no iteration cap; it terminates with probability 1.

    Returns:
        A random point with length <= 1.
    """
    p = vec3(1.0, 1.0, 1.0)
    while length_squared(p) > 1.0:
        p = vec3(
            ti.random(ti.f32) * 2.0 - 1.0,
            ti.random(ti.f32) * 2.0 - 1.0,
            ti.random(ti.f32) * 2.0 - 1.0,
        )
    return p

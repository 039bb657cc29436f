"""Scene-level sphere storage and nearest-hit queries.

The scene is an ordered list of spheres kept in Taichi fields, each sphere
carrying the id of its material. ``intersect_scene`` tests every sphere with
the same (t_min, t_max) window and keeps the hit with the smallest t, so the
result does not depend on insertion order. There is no spatial index; a query
is O(n) in the number of spheres.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.intersection import (
    ...     add_sphere, clear_scene, hit_scene
    ... )
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    >>> add_sphere((0, -100.5, -1), 100.0, material_id=1)
    >>> hit_scene((0, 0, 0), (0, 0, -1))
    SceneHit(t=0.5, ...)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from spheretrace.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Default query window, matching the color evaluation
DEFAULT_T_MIN = 1e-3
DEFAULT_T_MAX = 1e10


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The smallest ray parameter among all sphere hits in the window.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The outward unit normal at the intersection point.
            Only valid if hit == 1.
        material_id: The material ID of the hit sphere.
            -1 indicates a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@dataclass
class SceneHit:
    """Python-side copy of a SceneHitRecord for a hit.

    Attributes:
        t: The ray parameter of the nearest hit.
        point: The hit point (x, y, z).
        normal: The outward unit normal (x, y, z).
        material_id: The material ID of the hit sphere.
        sphere_index: The storage index of the hit sphere.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    material_id: int
    sphere_index: int


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere (vec3 or 3-sequence).
        radius: The radius of the sphere.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        material_id=material_id,
    )


@ti.func
def _intersect_scene_indexed(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Nearest-hit query that also reports the index of the hit sphere.

    Returns:
        A tuple of (SceneHitRecord, sphere_index). sphere_index is -1 on a miss.
    """
    result = _make_miss_record()
    hit_index = -1

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
        # The first hit initializes the best; later hits must be strictly nearer
        if rec.hit == 1 and (result.hit == 0 or rec.t < result.t):
            result = _to_scene_hit_record(rec, sphere_material_ids[i])
            hit_index = i

    return result, hit_index


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Test a ray against every sphere in the scene.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound of the valid t window (exclusive).
        t_max: Upper bound of the valid t window (exclusive).

    Returns:
        A SceneHitRecord for the nearest hit, or a miss record.
    """
    result, _ = _intersect_scene_indexed(ray_origin, ray_direction, t_min, t_max)
    return result


# =============================================================================
# Python-side Query
# =============================================================================

_query_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())
_query_sphere_index = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _run_scene_query(t_min: ti.f32, t_max: ti.f32):
    # Single iteration outer loop keeps the sphere loop serial
    for _ in range(1):
        rec, index = _intersect_scene_indexed(
            _query_origin[None], _query_direction[None], t_min, t_max
        )
        _query_hit[None] = rec.hit
        _query_t[None] = rec.t
        _query_point[None] = rec.point
        _query_normal[None] = rec.normal
        _query_material_id[None] = rec.material_id
        _query_sphere_index[None] = index


def hit_scene(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float = DEFAULT_T_MIN,
    t_max: float = DEFAULT_T_MAX,
) -> SceneHit | None:
    """Find the nearest hit for a single ray from Python.

    Useful for scene inspection and tests. Rendering code calls
    intersect_scene() inside kernels instead.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), non-zero.
        t_min: Lower bound of the valid t window (exclusive).
        t_max: Upper bound of the valid t window (exclusive).

    Returns:
        A SceneHit, or None if no sphere is hit.

    Raises:
        ValueError: If direction is the zero vector.
    """
    if direction[0] == 0 and direction[1] == 0 and direction[2] == 0:
        raise ValueError("Ray direction must be non-zero")
    _query_origin[None] = [origin[0], origin[1], origin[2]]
    _query_direction[None] = [direction[0], direction[1], direction[2]]
    _run_scene_query(t_min, t_max)

    if _query_hit[None] == 0:
        return None

    point = _query_point[None]
    normal = _query_normal[None]
    return SceneHit(
        t=float(_query_t[None]),
        point=(float(point[0]), float(point[1]), float(point[2])),
        normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        material_id=int(_query_material_id[None]),
        sphere_index=int(_query_sphere_index[None]),
    )

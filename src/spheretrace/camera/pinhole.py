"""Fixed pinhole camera for primary ray generation.

The camera is described directly by its image plane: an origin, the
lower-left corner of the plane, and the horizontal and vertical span vectors.
A ray for normalized image coordinates (u, v) goes from the origin through

    lower_left_corner + u * horizontal + v * vertical

with u = 0 at the left edge, u = 1 at the right edge, v = 0 at the bottom and
v = 1 at the top. There is no field of view, focus or motion blur control.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.pinhole import Camera, setup_camera, get_ray
    >>>
    >>> setup_camera(Camera())  # 2:1 image plane at z = -1
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti

from spheretrace.core.ray import Ray, make_ray, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for the fixed pinhole camera.

    The defaults give a 4 x 2 image plane one unit in front of the origin,
    looking down -Z, which suits a 2:1 image.

    Attributes:
        origin: Camera position in world space (x, y, z).
        lower_left_corner: Lower-left corner of the image plane.
        horizontal: Vector spanning the full image width.
        vertical: Vector spanning the full image height.
    """

    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lower_left_corner: tuple[float, float, float] = (-2.0, -1.0, -1.0)
    horizontal: tuple[float, float, float] = (4.0, 0.0, 0.0)
    vertical: tuple[float, float, float] = (0.0, 2.0, 0.0)

    @classmethod
    def for_aspect_ratio(cls, aspect_ratio: float) -> "Camera":
        """Build the default camera with the image plane widened to an aspect ratio.

        The plane stays 2 units tall and centered on the -Z axis.

        Args:
            aspect_ratio: Image width divided by height.

        Raises:
            ValueError: If the aspect ratio is not positive.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {aspect_ratio}")
        width = 2.0 * aspect_ratio
        return cls(
            origin=(0.0, 0.0, 0.0),
            lower_left_corner=(-width / 2.0, -1.0, -1.0),
            horizontal=(width, 0.0, 0.0),
            vertical=(0.0, 2.0, 0.0),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Store the camera in Taichi fields for use by kernels.

    Must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the horizontal or vertical span has zero length, which
            would make every ray through that axis degenerate.
    """
    origin = np.array(camera.origin, dtype=np.float32)
    lower_left = np.array(camera.lower_left_corner, dtype=np.float32)
    horizontal = np.array(camera.horizontal, dtype=np.float32)
    vertical = np.array(camera.vertical, dtype=np.float32)

    for name, span in (("horizontal", horizontal), ("vertical", vertical)):
        if np.linalg.norm(span) == 0.0:
            raise ValueError(f"Camera {name} span must be non-zero")

    _camera_origin[None] = origin.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    The direction is the vector from the origin to the image-plane point and
    is not normalized.

    Args:
        u: Horizontal coordinate in [0, 1] (left to right).
        v: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray from the camera origin through the image-plane point.
    """
    point_on_plane = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    origin = _camera_origin[None]
    return make_ray(origin, point_on_plane - origin)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate a ray through a random point of a pixel.

    The jitter is uniform in [0, 1) along each pixel axis, so averaging many
    samples anti-aliases edges.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray through a random point inside the pixel.
    """
    u = (ti.cast(pixel_i, ti.f32) + ti.random(ti.f32)) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + ti.random(ti.f32)) / ti.cast(height, ti.f32)
    return get_ray(u, v)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (position) in world space."""
    return _camera_origin[None]


# =============================================================================
# Python-side Helpers
# =============================================================================

_probe_uv = ti.field(dtype=ti.f32, shape=2)
_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _probe_ray():
    ray = get_ray(_probe_uv[0], _probe_uv[1])
    _probe_origin[None] = ray.origin
    _probe_direction[None] = ray.direction


def camera_ray(u: float, v: float) -> tuple[tuple[float, ...], tuple[float, ...]]:
    """Compute the camera ray for (u, v) from Python.

    Returns:
        Tuple of (origin, direction), each an (x, y, z) tuple.
    """
    _probe_uv[0] = u
    _probe_uv[1] = v
    _probe_ray()
    origin = _probe_origin[None]
    direction = _probe_direction[None]
    return (
        (float(origin[0]), float(origin[1]), float(origin[2])),
        (float(direction[0]), float(direction[1]), float(direction[2])),
    )


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, lower_left, horizontal and vertical vectors.
    """
    fields = {
        "origin": _camera_origin,
        "lower_left": _lower_left_corner,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
    }
    info = {}
    for name, vec_field in fields.items():
        value = vec_field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info

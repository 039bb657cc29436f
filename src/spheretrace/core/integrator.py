"""Ray color evaluation and the per-pixel sampling kernels.

The color of a ray is defined recursively: find the nearest hit, let the
material scatter the ray, and multiply the color of the scattered ray by the
attenuation. A ray that escapes sees the sky gradient; an absorbed ray or a
ray that runs out of bounce budget contributes black. Since the recursion is
tail-recursive in the attenuation product, it is evaluated here as a loop
carrying a running throughput, which gives the same result without call
depth.

Key features:
    - Material dispatch (Lambertian, Metal) through unified material ids
    - Bounded depth: at most max_depth scatters and max_depth + 1 scene queries
    - Sky gradient background, no other light sources
    - Normal-shading mode for inspecting geometry
    - Progressive per-pixel accumulation with jittered samples

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.integrator import color, render_image, setup_render_target
    >>> from spheretrace.scene.presets import create_two_sphere_scene
    >>> from spheretrace.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>> color((0, 0, 0), (0, 1, 0))  # Straight up: sky blue (0.5, 0.7, 1.0)
    >>> setup_render_target(200, 100)
    >>> render_image(num_samples=100)
"""

from enum import IntEnum

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from spheretrace.camera.pinhole import get_ray_jittered
from spheretrace.core.ray import lerp, normalize
from spheretrace.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from spheretrace.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from spheretrace.scene.intersection import intersect_scene
from spheretrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum number of scatter events per path
MAX_DEPTH = 50

# Lower bound of the hit window. A literal 0.0 lets scattered rays re-hit the
# surface they start on (shadow acne); 0.0 is still accepted if requested.
T_MIN = 1e-3
T_MAX = 1e10

# Sky gradient endpoints
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)


class ShadeMode(IntEnum):
    """How a ray that hits a surface is colored.

    MATERIAL scatters through the hit material (the normal render).
    NORMALS maps the outward normal to RGB as 0.5 * (normal + 1).
    """

    MATERIAL = 0
    NORMALS = 1


# =============================================================================
# Integrator Configuration
# =============================================================================

_max_depth = ti.field(dtype=ti.i32, shape=())
_t_min = ti.field(dtype=ti.f32, shape=())
_shade_mode = ti.field(dtype=ti.i32, shape=())


def configure_integrator(
    max_depth: int | None = None,
    t_min: float | None = None,
    shade_mode: ShadeMode | None = None,
) -> None:
    """Set the parameters used by render_image().

    Arguments left as None keep their current value.

    Args:
        max_depth: Maximum number of scatter events per path (>= 0).
        t_min: Lower bound of the hit window (>= 0).
        shade_mode: How surface hits are colored.

    Raises:
        ValueError: If max_depth or t_min is negative.
    """
    if max_depth is not None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        _max_depth[None] = max_depth
    if t_min is not None:
        if t_min < 0.0:
            raise ValueError(f"t_min must be non-negative, got {t_min}")
        _t_min[None] = t_min
    if shade_mode is not None:
        _shade_mode[None] = int(shade_mode)


def reset_integrator_config() -> None:
    """Restore the default integrator parameters."""
    configure_integrator(max_depth=MAX_DEPTH, t_min=T_MIN, shade_mode=ShadeMode.MATERIAL)


def get_integrator_config() -> dict[str, object]:
    """Get the current integrator parameters."""
    return {
        "max_depth": int(_max_depth[None]),
        "t_min": float(_t_min[None]),
        "shade_mode": ShadeMode(int(_shade_mode[None])),
    }


reset_integrator_config()


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (running average per pixel)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    This is the full preallocated buffer; use get_image_dimensions() for the
    active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Shading
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen by a ray that escapes the scene.

    Blends from white (straight down) to sky blue (straight up) on the
    vertical component of the normalized direction.
    """
    t = 0.5 * (normalize(direction).y + 1.0)
    return lerp(SKY_WHITE, SKY_BLUE, t)


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
):
    """Dispatch to the scatter function of the hit material.

    Unknown material ids absorb the ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(
            albedo, hit_point, normal
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal
        )

    return scattered_direction, attenuation, did_scatter


@ti.func
def ray_color(
    origin: vec3,
    direction: vec3,
    max_depth: ti.i32,
    t_min: ti.f32,
    shade_mode: ti.i32,
):
    """Compute the color carried back along one ray.

    Each iteration is one level of the recursive definition:
      1. Find the nearest hit in (t_min, T_MAX).
      2. Miss: return throughput * background.
      3. Hit with depth < max_depth: scatter; absorbed returns black,
         otherwise multiply the throughput by the attenuation and continue
         with the scattered ray from the hit point.
      4. Hit with the budget exhausted: return black.

    Args:
        origin: Ray origin.
        direction: Ray direction (non-zero).
        max_depth: Maximum number of scatter events.
        t_min: Lower bound of the hit window.
        shade_mode: A ShadeMode value.

    Returns:
        A tuple of (radiance, queries) where queries is the number of scene
        intersection queries made (at most max_depth + 1).
    """
    ray_origin = origin
    ray_direction = direction
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    queries = 0

    # Taichi doesn't support break in ti.func loops, so an active flag ends the path
    active = 1

    for depth in range(max_depth + 1):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, t_min, T_MAX)
            queries += 1

            if rec.hit == 0:
                radiance = throughput * background(ray_direction)
                active = 0
            elif shade_mode == int(ShadeMode.NORMALS):
                radiance = 0.5 * (rec.normal + 1.0)
                active = 0
            elif depth < max_depth:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, ray_direction, rec.point, rec.normal
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction
            else:
                active = 0

    return radiance, queries


# =============================================================================
# Single-ray Evaluation (Python-callable)
# =============================================================================

_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_queries = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _trace_probe(max_depth: ti.i32, t_min: ti.f32, shade_mode: ti.i32):
    # Single iteration outer loop keeps the bounce loop serial
    for _ in range(1):
        radiance, queries = ray_color(
            _probe_origin[None], _probe_direction[None], max_depth, t_min, shade_mode
        )
        _probe_color[None] = radiance
        _probe_queries[None] = queries


def _run_probe(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    t_min: float,
    shade_mode: ShadeMode,
) -> None:
    if direction[0] == 0 and direction[1] == 0 and direction[2] == 0:
        raise ValueError("Ray direction must be non-zero")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    if t_min < 0.0:
        raise ValueError(f"t_min must be non-negative, got {t_min}")
    _probe_origin[None] = [origin[0], origin[1], origin[2]]
    _probe_direction[None] = [direction[0], direction[1], direction[2]]
    _trace_probe(max_depth, t_min, int(shade_mode))


def color(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    t_min: float = T_MIN,
    shade_mode: ShadeMode = ShadeMode.MATERIAL,
) -> tuple[float, float, float]:
    """Compute the color of a single ray against the current scene.

    Scatter sampling draws from Taichi's random generator, so repeated calls
    on diffuse or fuzzy surfaces return different estimates.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), non-zero.
        max_depth: Maximum number of scatter events.
        t_min: Lower bound of the hit window.
        shade_mode: How surface hits are colored.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If direction is the zero vector, or max_depth or t_min
            is negative.
    """
    _run_probe(origin, direction, max_depth, t_min, shade_mode)
    c = _probe_color[None]
    return (float(c[0]), float(c[1]), float(c[2]))


def trace_ray_queries(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    t_min: float = T_MIN,
) -> int:
    """Count the scene queries made while coloring one ray.

    Returns:
        The number of intersection queries, at most max_depth + 1.
    """
    _run_probe(origin, direction, max_depth, t_min, ShadeMode.MATERIAL)
    return int(_probe_queries[None])


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32):
    """Render one jittered sample per pixel and fold it into the running average."""
    max_depth = _max_depth[None]
    t_min = _t_min[None]
    shade_mode = _shade_mode[None]

    for i, j in ti.ndrange(width, height):
        ray = get_ray_jittered(i, j, width, height)
        sample, _queries = ray_color(ray.origin, ray.direction, max_depth, t_min, shade_mode)

        # Clamp negative values (numerical errors)
        sample = tm.max(sample, vec3(0.0, 0.0, 0.0))

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(sample[c]) or tm.isinf(sample[c]):
                sample[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (sample - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    result = vec3(0.0, 0.0, 0.0)
    for _ in range(1):
        ray = get_ray_jittered(pixel_i, pixel_j, width, height)
        result, _queries = ray_color(
            ray.origin, ray.direction, _max_depth[None], _t_min[None], _shade_mode[None]
        )
    return result


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
    """Render a single jittered sample for one pixel without accumulating it.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    sample = _render_single_pixel(pixel_i, pixel_j, width, height)

    return (float(sample[0]), float(sample[1]), float(sample[2]))


def render_image(num_samples: int = 1) -> None:
    """Accumulate samples into every pixel of the render target.

    Can be called repeatedly; the buffer keeps the running average.

    Args:
        num_samples: Number of samples to render per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_normalized_image_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged image as a NumPy array.

    Values are clamped to [0, 1]. The array has shape (height, width, 3)
    with the top image row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Taichi rows start at the bottom, image rows at the top
    image = np.flipud(image)

    image = np.clip(image, 0.0, 1.0)

    return image.astype(np.float32)

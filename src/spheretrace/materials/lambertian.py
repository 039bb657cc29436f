"""Lambertian (ideal diffuse) material implementation.

A diffuse surface sends the scattered ray from the hit point toward a random
point inside the unit ball centered at ``hit_point + normal``:

    target = hit_point + normal + random_in_unit_sphere()
    direction = target - hit_point

The attenuation is the material albedo. Diffuse surfaces never absorb a ray
outright in this model; energy is lost only through the albedo factor.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(
    >>> #     albedo, hit_point, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import near_zero, random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class LambertianMaterial:
    """Lambertian (ideal diffuse) material properties.

    Attributes:
        albedo: The diffuse reflectance color (RGB). Components are
            non-negative and normally in [0, 1], but are not clamped.
    """

    albedo: vec3


@ti.func
def scatter_lambertian(
    albedo: vec3,
    hit_point: vec3,
    normal: vec3,
):
    """Scatter a ray off a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        hit_point: The intersection point on the surface.
        normal: The outward unit normal at the hit point.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: target - hit_point (not normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1.
    """
    target = hit_point + normal + random_in_unit_sphere()
    scattered_direction = target - hit_point

    # The sample can cancel the normal exactly; keep the direction non-zero
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Components above 1 are accepted as given.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is negative.
    """
    for i, component in enumerate(albedo):
        if component < 0.0:
            raise ValueError(
                f"Albedo component {i} = {component} is negative. "
                "Attenuation factors must be non-negative."
            )

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(
    material_idx: ti.i32,
    hit_point: vec3,
    normal: vec3,
):
    """Scatter off a Lambertian material looked up by registry index.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, hit_point, normal)

"""Metal (specular reflective) material implementation.

This module implements mirror reflection with an optional fuzz term. The
incoming direction is normalized and reflected about the surface normal:

    R = D - 2(D . N)N

and then perturbed by ``fuzz * random_in_unit_sphere()``. Fuzz 0 is a perfect
mirror; fuzz 1 is the roughest surface allowed. Fuzz values are clamped into
[0, 1] when a material is created.

If the perturbed direction does not point away from the surface
(``dot(direction, normal) <= 0``) the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import (
    dot,
    normalize,
    random_in_unit_sphere,
    reflect,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class MetalMaterial:
    """Metal (specular reflective) material properties.

    Attributes:
        albedo: The reflective color (RGB) tinting reflected light.
        fuzz: The surface roughness in [0, 1]. 0 = perfect mirror.
    """

    albedo: vec3
    fuzz: ti.f32


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1].

    Out-of-range values are capped silently rather than rejected.
    """
    return min(max(fuzz, 0.0), 1.0)


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The surface roughness in [0, 1].
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The outward unit normal at the hit point.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The perturbed reflection (not renormalized).
        - attenuation: The albedo.
        - did_scatter: 1 if the direction leaves the surface, 0 if absorbed.
    """
    reflected = reflect(normalize(incident_direction), normal)
    scattered_direction = reflected + fuzz * random_in_unit_sphere()

    did_scatter = 1
    if dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
        fuzz: The surface roughness. Default is 0 (perfect mirror).
            Values outside [0, 1] are clamped.

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

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the (already clamped) fuzz for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter off a metal material looked up by registry index.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, incident_direction, normal)

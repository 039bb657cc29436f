"""Scene manager coordinating spheres and their materials.

Materials are shared, immutable values referenced by integer handles. The
SceneManager hands out a unified ``material_id`` for every material it
creates and records which material type (Lambertian or Metal) and which
type-local registry slot the id maps to. Spheres store only the id, so any
number of spheres can share one material for the whole render.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- Methods for adding spheres with materials in one call
- Dict round-tripping of the whole scene

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
    >>> # The integrator dispatches on get_material_type(material_id)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from spheretrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from spheretrace.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from spheretrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator.
    """

    LAMBERTIAN = 0
    METAL = 1


# Maximum number of materials across all types
MAX_MATERIALS = 512  # 256 per type * 2 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    registries (e.g., lambertian_albedos[type_index]).

    Returns:
        The index into the type-specific material array, or -1 for invalid
        material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as stored (fuzz already clamped).
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data form of a scene.

    Attributes:
        materials: List of material configurations, in material_id order.
        spheres: List of sphere configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_vec3_tuple(values: Any) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


def _check_sphere_slot(radius: float) -> None:
    """Raise before any registration if a sphere with this radius cannot be added."""
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    if get_sphere_count() >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")


class SceneManager:
    """Scene builder with automatic material tracking.

    The scene storage lives in module-level Taichi fields, so there is one
    active scene per process. Creating a SceneManager clears it.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float],
    ) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is negative.
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN,
            type_index,
            {"albedo": _as_vec3_tuple(albedo)},
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The surface roughness. Clamped into [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is negative.
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL,
            type_index,
            {"albedo": _as_vec3_tuple(albedo), "fuzz": clamp_fuzz(fuzz)},
        )

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.
        """
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid or radius is not positive.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_vec3_tuple(center)
        sphere_index = add_sphere(center, radius, material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        _check_sphere_slot(radius)
        material_id = self.add_lambertian_material(albedo)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        _check_sphere_slot(radius)
        material_id = self.add_metal_material(albedo, fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            params = {
                key: list(value) if isinstance(value, tuple) else value
                for key, value in mat.params.items()
            }
            mat_config: dict[str, Any] = {
                "type": mat.material_type.name.lower(),
                **params,
            }
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first. Materials are loaded before spheres
        so that sphere material ids resolve. If any entry is invalid, the
        previous scene is restored before the error propagates.

        Raises:
            ValueError: If the configuration contains invalid data.
            RuntimeError: If the configuration exceeds a capacity limit.
        """
        previous = self.to_config()
        try:
            self._load_config(config)
        except (ValueError, RuntimeError):
            self._load_config(previous)
            raise

    def _load_config(self, config: SceneConfig) -> None:
        self.clear()

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                albedo = _as_vec3_tuple(mat_config.get("albedo", [0.5, 0.5, 0.5]))
                self.add_lambertian_material(albedo)
            elif mat_type == "metal":
                albedo = _as_vec3_tuple(mat_config.get("albedo", [0.8, 0.8, 0.8]))
                fuzz = mat_config.get("fuzz", 0.0)
                self.add_metal_material(albedo, fuzz)
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            center = _as_vec3_tuple(sphere_config.get("center", [0, 0, 0]))
            radius = sphere_config.get("radius", 1.0)
            material_id = sphere_config.get("material_id", 0)
            self.add_sphere(center, radius, material_id)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (JSON compatible)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        self.from_config(config)

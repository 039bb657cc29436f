"""Scene module: sphere storage, scene queries and scene construction.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit queries
    manager: SceneManager with unified material ids and dict round-tripping
    presets: Built-in scenes
"""

from .intersection import (
    MAX_SPHERES,
    SceneHit,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    hit_scene,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    SCENE_PRESETS,
    create_metal_spheres_scene,
    create_preset_scene,
    create_two_sphere_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "SceneHit",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "hit_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "create_two_sphere_scene",
    "create_metal_spheres_scene",
    "create_preset_scene",
    "SCENE_PRESETS",
]

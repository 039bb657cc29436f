"""Built-in scene configurations.

Each factory clears the active scene, fills it with spheres and materials, and
returns the SceneManager together with a Camera suited to the scene. Both
scenes use the classic layout: a small sphere one unit in front of the camera
resting on a huge "ground" sphere of radius 100.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.presets import create_two_sphere_scene
    >>> from spheretrace.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>> scene.get_sphere_count()
    2
"""

from collections.abc import Callable

from spheretrace.camera.pinhole import Camera
from spheretrace.scene.manager import SceneManager

# =============================================================================
# Scene Constants
# =============================================================================

CENTER_SPHERE_CENTER = (0.0, 0.0, -1.0)
CENTER_SPHERE_RADIUS = 0.5
CENTER_SPHERE_ALBEDO = (0.8, 0.3, 0.3)

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0
GROUND_ALBEDO = (0.8, 0.8, 0.0)

# Metal spheres flanking the center sphere
GOLD_CENTER = (1.0, 0.0, -1.0)
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_FUZZ = 0.3

SILVER_CENTER = (-1.0, 0.0, -1.0)
SILVER_ALBEDO = (0.8, 0.8, 0.8)
SILVER_FUZZ = 1.0

DEFAULT_ASPECT_RATIO = 2.0


# =============================================================================
# Scene Factories
# =============================================================================


def create_two_sphere_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the two-sphere diffuse scene.

    - Center sphere at (0, 0, -1), radius 0.5, Lambertian albedo (0.8, 0.3, 0.3)
    - Ground sphere at (0, -100.5, -1), radius 100, Lambertian albedo (0.8, 0.8, 0)

    A ray from the origin toward (0, 0, -1) hits the center sphere at t = 0.5.

    Args:
        aspect_ratio: Image width divided by height. Default 2.0 matches the
            default 200x100 image.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()

    scene.add_lambertian_sphere(CENTER_SPHERE_CENTER, CENTER_SPHERE_RADIUS, CENTER_SPHERE_ALBEDO)
    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_ALBEDO)

    return scene, Camera.for_aspect_ratio(aspect_ratio)


def create_metal_spheres_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the diffuse-plus-metal scene.

    The two-sphere layout with a fuzzy gold sphere on the right and a fully
    fuzzed silver sphere on the left.

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()

    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_ALBEDO)
    scene.add_lambertian_sphere(CENTER_SPHERE_CENTER, CENTER_SPHERE_RADIUS, CENTER_SPHERE_ALBEDO)
    scene.add_metal_sphere(GOLD_CENTER, CENTER_SPHERE_RADIUS, GOLD_ALBEDO, fuzz=GOLD_FUZZ)
    scene.add_metal_sphere(SILVER_CENTER, CENTER_SPHERE_RADIUS, SILVER_ALBEDO, fuzz=SILVER_FUZZ)

    return scene, Camera.for_aspect_ratio(aspect_ratio)


# Scene names accepted by the command-line renderer
SCENE_PRESETS: dict[str, Callable[[float], tuple[SceneManager, Camera]]] = {
    "two-spheres": create_two_sphere_scene,
    "metal": create_metal_spheres_scene,
}


def create_preset_scene(
    name: str,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create a built-in scene by name.

    Raises:
        ValueError: If the name is not in SCENE_PRESETS.
    """
    factory = SCENE_PRESETS.get(name)
    if factory is None:
        valid = ", ".join(sorted(SCENE_PRESETS))
        raise ValueError(f"Unknown scene '{name}'. Valid scenes: {valid}")
    return factory(aspect_ratio)

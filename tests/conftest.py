"""Pytest configuration for spheretrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and render state around each test."""
    # Import here so Taichi is initialized before any fields are created
    from spheretrace.core.integrator import clear_render_target, reset_integrator_config
    from spheretrace.materials.lambertian import clear_lambertian_materials
    from spheretrace.materials.metal import clear_metal_materials
    from spheretrace.scene.intersection import clear_scene
    from spheretrace.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        _clear_material_tracking()
        clear_render_target()
        reset_integrator_config()

    _clear_all()

    yield

    _clear_all()

"""Pytest configuration for renderer tests.

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
    ti.init(arch=ti.cpu, default_fp=ti.f64)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and render target state around each test."""
    # Import here so Taichi is initialized first
    from rtweekend.core.integrator import reset_render_target
    from rtweekend.materials.dielectric import clear_dielectric_materials
    from rtweekend.materials.lambertian import clear_lambertian_materials
    from rtweekend.materials.metal import clear_metal_materials
    from rtweekend.scene.intersection import clear_scene
    from rtweekend.scene.manager import reset_material_slots

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_slots()
        reset_render_target()

    _clear_all()

    yield

    _clear_all()

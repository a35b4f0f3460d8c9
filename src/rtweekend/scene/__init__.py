"""Scene module for scene storage and construction.

Components:
    intersection: Sphere storage and closest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    presets: Stock scenes with matching cameras

Scene data is organized for kernel access in Structure-of-Arrays fields
and is read-only while rendering.
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
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
    SCENES,
    create_material_scene,
    create_random_spheres_scene,
    create_two_sphere_scene,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
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
    # Presets module
    "SCENES",
    "create_two_sphere_scene",
    "create_material_scene",
    "create_random_spheres_scene",
]

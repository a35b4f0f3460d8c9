"""Material models.

Each material provides a Taichi scatter function returning
(direction, attenuation, did_scatter, state) and a field-backed registry
of material parameters.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Refraction and Fresnel reflection for glass-like materials
"""

from .dielectric import (
    MAX_DIELECTRIC_MATERIALS,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
)
from .lambertian import (
    MAX_LAMBERTIAN_MATERIALS,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .metal import (
    MAX_METAL_MATERIALS,
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)

__all__ = [
    "scatter_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    "MAX_LAMBERTIAN_MATERIALS",
    "scatter_metal",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_material_count",
    "MAX_METAL_MATERIALS",
    "scatter_dielectric",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_ior",
    "get_dielectric_material_count",
    "MAX_DIELECTRIC_MATERIALS",
]

"""Metal (specular reflective) material implementation.

This module implements reflection for metallic surfaces with an optional
fuzz parameter that randomizes the reflected direction:
    - fuzz = 0: Perfect mirror reflection
    - fuzz > 0: Blurred reflection, the mirrored direction offset by a random
      point in a sphere of radius fuzz

A fuzzed direction can end up pointing into the surface; such rays are
absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import normalize, random_in_unit_sphere, real, reflect, vec3
from rtweekend.materials.registry import claim_slot, validate_albedo


@ti.func
def fuzzed_reflection(incident_direction: vec3, normal: vec3, fuzz: real, offset: vec3) -> vec3:
    """Mirror the incident direction and perturb it.

    Args:
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The surface normal (unit length, facing the incident ray).
        fuzz: The fuzz radius in [0, 1].
        offset: A point in the unit sphere.

    Returns:
        reflect(unit(incident), normal) + fuzz * offset, not renormalized.
    """
    reflected = reflect(normalize(incident_direction), normal)
    return reflected + fuzz * offset


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: real,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Sample a scattered ray direction for a metal material.

    Metals tint the reflected light by their albedo. The ray is absorbed
    when the scattered direction does not point away from the surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: The reflection roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length).
        state: The random generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state):
        - scattered_direction: The fuzzed reflection (returned even when absorbed).
        - attenuation: The albedo.
        - did_scatter: 1 if dot(scattered_direction, normal) > 0, else 0.
        - state: The advanced generator state.
    """
    offset, s = random_in_unit_sphere(state)
    scattered_direction = fuzzed_reflection(incident_direction, normal, fuzz, offset)

    did_scatter = 0
    if tm.dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    return scattered_direction, albedo, did_scatter, s


# Registry of metal materials, indexed by slot

MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=real, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=real, shape=MAX_METAL_MATERIALS)
metal_count = ti.field(dtype=ti.i32, shape=())


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Store a metal's albedo and fuzz and return its slot.

    Raises:
        ValueError: If a component of albedo or fuzz is outside [0, 1].
        RuntimeError: If all MAX_METAL_MATERIALS slots are used.
    """
    values = validate_albedo(albedo)
    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(f"Fuzz = {fuzz} is outside [0, 1]")

    idx = claim_slot(metal_count, MAX_METAL_MATERIALS, "metal")
    metal_albedos[idx] = values
    metal_fuzzes[idx] = float(fuzz)
    return idx


def clear_metal_materials() -> None:
    """Forget every metal material. Slots are reused from 0."""
    metal_count[None] = 0


def get_metal_material_count() -> int:
    """Number of metal materials registered."""
    return int(metal_count[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Albedo stored in a metal slot."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> real:
    """Fuzz radius stored in a metal slot."""
    return metal_fuzzes[material_idx]

"""Lambertian (ideal diffuse) material implementation.

Scattered directions are the surface normal plus a random unit vector, which
produces a cosine-weighted distribution over the hemisphere around the
normal. With that distribution the BRDF, cosine and pdf terms cancel and the
attenuation is simply the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_lambertian(
    >>> #     albedo, normal, state
    >>> # )
"""

import taichi as ti

from rtweekend.core.ray import near_zero, random_unit_vector, real, vec3
from rtweekend.materials.registry import claim_slot, validate_albedo


@ti.func
def lambertian_direction(normal: vec3, unit_offset: vec3) -> vec3:
    """Combine the normal with a unit offset into a scatter direction.

    When the offset nearly cancels the normal the sum would be degenerate,
    so the normal itself is returned instead.

    Args:
        normal: The surface normal at the hit point (unit length).
        unit_offset: A unit vector drawn uniformly from the sphere.

    Returns:
        A non-zero scatter direction (not normalized).
    """
    direction = normal + unit_offset
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Sample a scattered ray direction for a Lambertian material.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The surface normal at the hit point (unit length).
        state: The random generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state):
        - scattered_direction: normal + random unit vector (never zero).
        - attenuation: The albedo.
        - did_scatter: Always 1; diffuse surfaces never absorb a ray outright.
        - state: The advanced generator state.
    """
    offset, s = random_unit_vector(state)
    direction = lambertian_direction(normal, offset)
    return direction, albedo, 1, s


# Registry of diffuse materials, indexed by slot

MAX_LAMBERTIAN_MATERIALS = 512

lambertian_albedos = ti.Vector.field(3, dtype=real, shape=MAX_LAMBERTIAN_MATERIALS)
lambertian_count = ti.field(dtype=ti.i32, shape=())


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its slot.

    Raises:
        ValueError: If a component of albedo is outside [0, 1].
        RuntimeError: If all MAX_LAMBERTIAN_MATERIALS slots are used.
    """
    values = validate_albedo(albedo)
    idx = claim_slot(lambertian_count, MAX_LAMBERTIAN_MATERIALS, "Lambertian")
    lambertian_albedos[idx] = values
    return idx


def clear_lambertian_materials() -> None:
    """Forget every diffuse material. Slots are reused from 0."""
    lambertian_count[None] = 0


def get_lambertian_material_count() -> int:
    """Number of diffuse materials registered."""
    return int(lambertian_count[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Albedo stored in a diffuse slot."""
    return lambertian_albedos[material_idx]

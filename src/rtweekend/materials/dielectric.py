"""Dielectric (glass/water) material implementation.

This module implements clear dielectrics that both reflect and refract
light.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when (n1 / n2) * sin(theta1) > 1

The material randomly chooses between reflection and refraction with the
Schlick reflectance as the reflection probability, which increases at
grazing angles.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import normalize, real, reflect, refract, schlick_fresnel, vec3
from rtweekend.core.rng import random_f64
from rtweekend.materials.registry import claim_slot


@ti.func
def refraction_ratio(ior: real, front_face: ti.i32) -> real:
    """Ratio n_incident / n_transmitted for a ray crossing the surface.

    Entering the medium (front face) gives 1 / ior, leaving it gives ior.
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def dielectric_direction(
    ior: real,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    sample: real,
) -> vec3:
    """Choose between reflection and refraction for a given uniform sample.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The surface normal facing the incident ray (unit length).
        front_face: 1 if the ray hits the outside of the surface, else 0.
        sample: A uniform draw in [0, 1) compared against the reflectance.

    Returns:
        The reflected or refracted direction (unit length).
    """
    ratio = refraction_ratio(ior, front_face)
    unit_direction = normalize(incident_direction)

    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))

    cannot_refract = ratio * sin_theta > 1.0

    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or schlick_fresnel(cos_theta, ratio) > sample:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)
    return direction


@ti.func
def scatter_dielectric(
    ior: real,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Compute the scattered ray direction for a dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction.
        normal: The surface normal facing the incident ray (unit length).
        front_face: 1 if ray is hitting the outside of the surface,
            0 if ray is inside the material hitting from within.
        state: The random generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state):
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White; clear glass absorbs nothing.
        - did_scatter: Always 1.
        - state: The advanced generator state.
    """
    sample, s = random_f64(state)
    direction = dielectric_direction(ior, incident_direction, normal, front_face, sample)
    attenuation = vec3(1.0, 1.0, 1.0)
    return direction, attenuation, 1, s


# Registry of dielectric materials, indexed by slot

MAX_DIELECTRIC_MATERIALS = 256

dielectric_iors = ti.field(dtype=real, shape=MAX_DIELECTRIC_MATERIALS)
dielectric_count = ti.field(dtype=ti.i32, shape=())


def add_dielectric_material(ior: float = 1.5) -> int:
    """Store an index of refraction and return its slot.

    The ior is relative to the medium outside the surface: about 1.33 for
    water and 1.5 for glass. Values below 1 describe a pocket of thinner
    medium, such as an air bubble in water.

    Raises:
        ValueError: If ior is not positive.
        RuntimeError: If all MAX_DIELECTRIC_MATERIALS slots are used.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction = {ior} is not positive")

    idx = claim_slot(dielectric_count, MAX_DIELECTRIC_MATERIALS, "dielectric")
    dielectric_iors[idx] = float(ior)
    return idx


def clear_dielectric_materials() -> None:
    """Forget every dielectric material. Slots are reused from 0."""
    dielectric_count[None] = 0


def get_dielectric_material_count() -> int:
    """Number of dielectric materials registered."""
    return int(dielectric_count[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> real:
    """Index of refraction stored in a dielectric slot."""
    return dielectric_iors[material_idx]

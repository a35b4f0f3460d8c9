"""Sphere storage and closest-hit queries.

Spheres live in parallel Taichi fields filled from Python before a render.
Kernels find the nearest hit with a linear scan over all of them. Each
sphere stores the unified id of the material that shades it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
"""

import taichi as ti

from rtweekend.core.ray import real, vec3
from rtweekend.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove every sphere. Field contents are overwritten by later adds."""
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Append a sphere and return its index.

    The radius is signed. A negative radius flips the outward normal.

    Raises:
        RuntimeError: If MAX_SPHERES spheres are already stored.
    """
    idx = int(num_spheres[None])
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [float(c) for c in center]
    sphere_radii[idx] = float(radius)
    sphere_material_ids[idx] = int(material_id)
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Number of spheres currently stored."""
    return int(num_spheres[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: real,
    t_max: real,
) -> HitRecord:
    """Nearest hit of the ray with t in [t_min, t_max], or a miss record.

    The upper bound shrinks to each accepted hit, so on a tie the sphere
    added first wins.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(
            ray_origin, ray_direction, sphere, t_min, closest_t, sphere_material_ids[i]
        )
        if rec.hit == 1 and (result.hit == 0 or rec.t < closest_t):
            closest_t = rec.t
            result = rec

    return result

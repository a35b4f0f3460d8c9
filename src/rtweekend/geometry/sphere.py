"""Sphere primitive with robust ray-sphere intersection.

This module provides the HitRecord and Sphere dataclasses and the
intersection function. Roots are computed with the reformulated quadratic
from Ray Tracing Gems, which avoids catastrophic cancellation when b^2 is
nearly equal to 4ac.

A sphere with a negative radius has inward-pointing outward normals, which
turns it into a hollow shell (used for thin glass bubbles). A sphere with
zero radius has no surface and is never hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import real, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The signed radius. Negative values flip the normals.
    """

    center: vec3
    radius: real


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected anything (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, always facing against the ray.
        front_face: 1 if the ray struck the outside of the surface, 0 if it
            arrived from inside.
        material_id: The material ID of the hit primitive, -1 on a miss.

    All fields other than hit are only meaningful when hit == 1.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def _solve_quadratic_robust(h: real, a: real, c: real, sqrt_d: real):
    """Solve a*t^2 + 2*h*t + c = 0 without catastrophic cancellation.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-300:
        # q vanishes only for grazing rays; use the textbook roots
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a normal against the incoming ray.

    Args:
        ray_direction: The direction of the incoming ray.
        outward_normal: The geometric normal pointing out of the surface.

    Returns:
        Tuple of (front_face, normal) where normal opposes ray_direction.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: real,
    t_max: real,
    material_id: ti.i32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The ray-sphere intersection is found by solving:
        |ray_origin + t * ray_direction - center|^2 = radius^2

    which expands to a*t^2 + 2*h*t + c = 0 with:
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    The smaller root is tried first, then the larger; the first one inside
    [t_min, t_max] is reported.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.
        material_id: Material ID stored in the record on a hit.

    Returns:
        A HitRecord; check the hit field to determine if intersection occurred.
    """
    result = make_miss_record()

    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    if sphere.radius != 0.0 and discriminant >= 0.0:
        sqrt_d = tm.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = t_min <= t and t <= t_max
        if not valid:
            t = t1
            valid = t_min <= t and t <= t_max

        if valid:
            point = ray_origin + t * ray_direction
            # Dividing by the signed radius flips normals of hollow spheres
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = set_face_normal(ray_direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: real) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)

"""Ray data structure and vector utilities for path tracing.

This module provides the fundamental Ray dataclass and the vector algebra
used throughout the renderer. Points, directions and colors all share the
same double precision 3-component vector type. All operations are designed
to work within Taichi kernels.

Random sampling helpers take an explicit generator state (see
``rtweekend.core.rng``) and return the advanced state with their result.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = vec3(0.0, 0.0, 0.0)
    >>> direction = vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from rtweekend.core.rng import random_range

# Scalar type for all geometry and color math
real = ti.f64

# 3D vector type used as point, direction and color
vec3 = ti.types.vector(3, real)


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; intersection code accounts for its magnitude.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> real:
    """Compute the Euclidean length of a vector."""
    return tm.sqrt(tm.dot(v, v))


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The input must be non-zero; a zero vector yields a non-finite result.
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> real:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The mirrored direction, with the same length as incident.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta: real) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    The caller is responsible for ruling out total internal reflection.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal facing the incident ray (unit length).
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction (unit length).
    """
    cos_theta = tm.min(-tm.dot(unit_incident, normal), 1.0)
    r_out_perp = eta * (unit_incident + cos_theta * normal)
    r_out_parallel = -tm.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_fresnel(cosine: real, ref_idx: real) -> real:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    An index-matched interface (ref_idx == 1) reflects nothing.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate reflectance in [0, 1].
    """
    result = 0.0
    if ref_idx != 1.0:
        r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
        r0 = r0 * r0
        result = r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
    return result


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component of v is within 1e-8 of zero."""
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3(state: ti.u32, low: real, high: real):
    """Draw a vector with each component uniform in [low, high).

    Returns:
        A tuple of (vector, new_state).
    """
    x, s = random_range(state, low, high)
    y, s = random_range(s, low, high)
    z, s = random_range(s, low, high)
    return vec3(x, y, z), s


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point inside the unit sphere.

    Uses rejection sampling over the enclosing cube.

    Returns:
        A tuple of (point with length < 1, new_state).
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    # Bounded rejection loop; each attempt succeeds with probability ~0.52
    for _ in range(100):
        if not found:
            candidate, s = random_vec3(s, -1.0, 1.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Returns:
        A tuple of (unit vector, new_state).
    """
    p = vec3(0.0, 0.0, 1.0)
    s = state
    found = False
    for _ in range(100):
        if not found:
            candidate, s = random_vec3(s, -1.0, 1.0)
            len_sq = length_squared(candidate)
            # Reject points too close to the origin to normalize safely
            if 1e-160 < len_sq and len_sq < 1.0:
                p = candidate / tm.sqrt(len_sq)
                found = True
    return p, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Used for lens sampling in the thin-lens camera.

    Returns:
        A tuple of (point (x, y, 0) with x^2 + y^2 < 1, new_state).
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    for _ in range(100):
        if not found:
            x, s = random_range(s, -1.0, 1.0)
            y, s = random_range(s, -1.0, 1.0)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = True
    return p, s

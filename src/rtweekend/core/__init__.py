"""Core rendering module.

Components:
    ray: Ray data structure, vector algebra and random direction helpers
    rng: Per-sample random streams
    color: Sky background and display encoding
    integrator: Path tracing kernels and the render target
    progressive: Batched progressive rendering driver

All compute-intensive operations use Taichi kernels.
"""

from .color import sky_color, to_display_bytes
from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    ray_at,
    real,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .rng import next_state, random_f64, random_range, seed_state, wang_hash

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from rtweekend.core.integrator or rtweekend.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "real",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "wang_hash",
    "seed_state",
    "next_state",
    "random_f64",
    "random_range",
    "sky_color",
    "to_display_bytes",
]

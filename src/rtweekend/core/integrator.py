"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernels: camera rays are traced through
the scene, bounce off surfaces according to their material, and pick up the
sky gradient when they escape. Each pixel accumulates a running sum of its
samples in a preallocated render target.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Iterative bounce loop with a path throughput product
    - Per-sample generator state derived from (seed, pixel, sample), so a
      render is reproducible and independent of batching
    - NaN/Inf samples dropped before accumulation
    - Atomic progress counter

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.core.integrator import (
    ...     render_samples, setup_render_target, get_color_sum_numpy
    ... )
    >>> from rtweekend.scene.presets import create_two_sphere_scene
    >>> from rtweekend.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_samples(start_sample=0, count=10, max_depth=50, seed=1)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from rtweekend.camera.thin_lens import get_ray
from rtweekend.core.color import sky_color
from rtweekend.core.ray import real, vec3
from rtweekend.core.rng import random_f64, seed_state
from rtweekend.materials.dielectric import get_dielectric_ior, scatter_dielectric
from rtweekend.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from rtweekend.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from rtweekend.scene.intersection import intersect_scene
from rtweekend.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
DEFAULT_MAX_DEPTH = 50

# Intersection interval; T_MIN skips hits at the ray origin ("shadow acne")
T_MIN = 0.001
T_MAX = 1e30

# Generator seeds are 32-bit
SEED_MASK = 0xFFFFFFFF

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1280
MAX_IMAGE_HEIGHT = 1280

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of radiance samples per pixel, indexed (i, j) with j = 0 the bottom row
_color_sum = ti.Vector.field(3, dtype=real, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Pixels that finished their samples in the latest render pass
_pixels_completed = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT so the render kernels
    compile once for every image size.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _pixels_completed[None] = 0


def reset_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def get_pixels_completed() -> int:
    """Get the number of pixels finished in the latest render pass."""
    return int(_pixels_completed[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing the ray).
        front_face: 1 if hit front face, 0 if back face.
        state: The random generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state).
        Unknown material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_lambertian(
            albedo, normal, state
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_metal(
            albedo, fuzz, incident_direction, normal, state
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_dielectric(
            ior, incident_direction, normal, front_face, state
        )

    return scattered_direction, attenuation, did_scatter, s


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Each hit multiplies the path throughput by the material attenuation and
    continues with the scattered ray from the hit point. A miss adds the sky
    color weighted by the throughput. Absorbed paths and paths still bouncing
    after max_depth hits contribute black.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_depth: Maximum number of surface interactions.
        state: The random generator state.

    Returns:
        A tuple of (radiance, state).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    s = state

    ray_origin = origin
    ray_direction = direction
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                radiance = throughput * sky_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, s = _scatter_material(
                    hit_record.material_id,
                    ray_direction,
                    hit_record.normal,
                    hit_record.front_face,
                    s,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    return radiance, s


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN and infinite components with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    jitter: ti.i32,
) -> vec3:
    """Render one sample of one pixel.

    The generator state depends only on the seed, the flattened pixel index
    (j * width + i) and the sample index.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        sample_index: Index of this sample within the pixel.
        max_depth: Maximum number of surface interactions.
        seed: The render seed.
        jitter: 1 to offset the sample randomly within the pixel, 0 to use
            the pixel's lower-left corner.

    Returns:
        The sampled radiance with non-finite components set to zero.
    """
    state = seed_state(seed, pixel_j * width + pixel_i, sample_index)

    jx = 0.0
    jy = 0.0
    if jitter != 0:
        jx, state = random_f64(state)
        jy, state = random_f64(state)

    u = (ti.cast(pixel_i, real) + jx) / ti.cast(width, real)
    v = (ti.cast(pixel_j, real) + jy) / ti.cast(height, real)

    ray, state = get_ray(u, v, state)
    color, state = trace_ray(ray.origin, ray.direction, max_depth, state)
    return _sanitize(color)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(
    width: ti.i32,
    height: ti.i32,
    start_sample: ti.i32,
    count: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    jitter: ti.i32,
):
    """Render samples [start_sample, start_sample + count) for every pixel."""
    for i, j in ti.ndrange(width, height):
        color_sum = vec3(0.0, 0.0, 0.0)
        for k in range(count):
            color_sum += sample_pixel(
                i, j, width, height, start_sample + k, max_depth, seed, jitter
            )
        _color_sum[i, j] += color_sum
        ti.atomic_add(_pixels_completed[None], 1)


@ti.kernel
def _render_single_sample(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    jitter: ti.i32,
) -> vec3:
    """Render one sample of one pixel without touching the render target."""
    return sample_pixel(pixel_i, pixel_j, width, height, sample_index, max_depth, seed, jitter)


@ti.kernel
def _trace_single_ray(
    ox: real,
    oy: real,
    oz: real,
    dx: real,
    dy: real,
    dz: real,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Trace one ray from a fixed origin and direction."""
    state = seed_state(seed, 0, 0)
    color, _ = trace_ray(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, state)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def render_samples(
    start_sample: int,
    count: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
    jitter: bool = True,
) -> None:
    """Accumulate a batch of samples for every pixel.

    Sample indices are absolute, so rendering samples 0..9 in one batch or
    in several smaller ones produces the same sums.

    Args:
        start_sample: Index of the first sample in the batch.
        count: Number of samples per pixel in the batch.
        max_depth: Maximum number of surface interactions per path.
        seed: The render seed.
        jitter: Whether to jitter sample positions within each pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    _pixels_completed[None] = 0
    _render_samples(
        width, height, start_sample, count, max_depth, seed & SEED_MASK, int(bool(jitter))
    )


def render_sample(
    pixel_i: int,
    pixel_j: int,
    sample_index: int = 0,
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
    jitter: bool = True,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for inspection and testing. It uses
    the same generator stream as render_samples(), so the result equals that
    sample's contribution to the full render.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        sample_index: Index of the sample within the pixel.
        max_depth: Maximum number of surface interactions.
        seed: The render seed.
        jitter: Whether to jitter the sample position.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_sample(
        pixel_i, pixel_j, width, height, sample_index, max_depth, seed & SEED_MASK,
        int(bool(jitter)),
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_single_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Trace one ray through the current scene.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_depth: Maximum number of surface interactions.
        seed: Seed for the generator driving the scatter draws.

    Returns:
        Tuple of (R, G, B) linear radiance.
    """
    color = _trace_single_ray(
        float(origin[0]), float(origin[1]), float(origin[2]),
        float(direction[0]), float(direction[1]), float(direction[2]),
        max_depth, seed & SEED_MASK,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_color_sum_numpy() -> np.ndarray:
    """Get the accumulated radiance sums as a NumPy array.

    Returns:
        Array of shape (height, width, 3), dtype float64, with the top image
        row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_sum.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (j = 0 is the bottom row, images start at the top)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float64)

"""Color helpers: background radiance and display encoding.

The background is a vertical gradient from white at the bottom to sky blue
at the top. Display encoding turns accumulated linear radiance sums into
8-bit channel values with gamma-2 encoding.
"""

import numpy as np
import numpy.typing as npt
import taichi as ti

from rtweekend.core.ray import normalize, vec3

# Gradient endpoints for rays that escape the scene
HORIZON_COLOR = (1.0, 1.0, 1.0)
ZENITH_COLOR = (0.5, 0.7, 1.0)

# Largest channel value before scaling; keeps 256 * value below 256
DISPLAY_CLAMP_MAX = 0.999


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Radiance arriving along a ray that missed every primitive.

    Args:
        direction: The ray direction (any non-zero length).

    Returns:
        Linear interpolation between white (t=0) and sky blue (t=1) where
        t = 0.5 * (unit_direction.y + 1).
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    horizon = vec3(HORIZON_COLOR[0], HORIZON_COLOR[1], HORIZON_COLOR[2])
    zenith = vec3(ZENITH_COLOR[0], ZENITH_COLOR[1], ZENITH_COLOR[2])
    return (1.0 - t) * horizon + t * zenith


def to_display_bytes(
    color_sum: npt.ArrayLike,
    samples_per_pixel: int,
) -> npt.NDArray[np.uint8]:
    """Convert accumulated radiance sums to 8-bit display values.

    Divides by the sample count, applies gamma-2 encoding (square root),
    clamps to [0, 0.999] and scales by 256. Clamping before scaling keeps
    every channel at or below 255.

    Args:
        color_sum: Sum of linear radiance samples, shape (..., 3).
        samples_per_pixel: Number of samples that went into each sum.

    Returns:
        Array of the same shape with dtype uint8.

    Raises:
        ValueError: If samples_per_pixel is not positive.
    """
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")

    scaled = np.asarray(color_sum, dtype=np.float64) / float(samples_per_pixel)
    # Non-finite channels encode as black
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=0.0, neginf=0.0)
    encoded = np.sqrt(np.maximum(scaled, 0.0))
    clamped = np.clip(encoded, 0.0, DISPLAY_CLAMP_MAX)
    return (256.0 * clamped).astype(np.uint8)

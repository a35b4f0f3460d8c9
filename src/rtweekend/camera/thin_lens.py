"""Thin-lens camera model for perspective ray generation with defocus blur.

This module implements a positionable camera that generates primary rays for
rendering. The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Defocus blur through a circular lens aperture

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at focus_dist in front of the lens, so objects at that
distance stay sharp. With a zero aperture every ray starts at the camera
origin and the camera behaves as a pinhole.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     lookfrom=(0.0, 0.0, 0.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=90.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> # Within a Taichi kernel, with an explicit generator state:
    >>> # ray, state = get_ray(0.5, 0.5, state)  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from rtweekend.core.ray import make_ray, random_in_unit_disk, real, vec3

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 disables defocus blur.
        focus_dist: Distance from the lens to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0

    def validate(self) -> None:
        """Check that the camera parameters describe a usable view.

        Raises:
            ValueError: If any parameter is out of range or the view
                direction is degenerate.
        """
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov = {self.vfov} must be in (0, 180) degrees")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist = {self.focus_dist} must be positive")
        if self.aperture < 0.0:
            raise ValueError(f"aperture = {self.aperture} must not be negative")

        view = np.array(self.lookfrom, dtype=np.float64) - np.array(self.lookat, dtype=np.float64)
        if np.linalg.norm(view) == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(np.cross(np.array(self.vup, dtype=np.float64), view)) == 0.0:
            raise ValueError("vup must not be parallel to the view direction")


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (lens center)
_camera_origin = ti.Vector.field(3, dtype=real, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=real, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=real, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=real, shape=())  # Backward (opposite view)

# Viewport vectors at the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=real, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=real, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=real, shape=())  # Lower-left of viewport

_lens_radius = ti.field(dtype=real, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and viewport geometry
    from the provided camera parameters. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Raises:
        ValueError: If the camera parameters are invalid.
    """
    camera.validate()

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)

    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    v = np.cross(w, u)

    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0

    logger.debug(
        "Camera at %s looking at %s, vfov=%.1f, aperture=%.3f, focus_dist=%.3f",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.aperture,
        camera.focus_dist,
    )


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: real, t: real, state: ti.u32):
    """Generate a ray through normalized image coordinates (s, t).

    The coordinates are normalized: s runs left to right and t bottom to top,
    both over [0, 1]. The ray starts at a random point on the lens disk and
    passes through the corresponding point on the focus plane. The returned
    direction is not normalized.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).
        state: The random generator state.

    Returns:
        A tuple of (ray, state). The state is unchanged when the lens
        radius is zero.
    """
    origin = _camera_origin[None]
    offset = vec3(0.0, 0.0, 0.0)
    s_out = state

    lens_radius = _lens_radius[None]
    if lens_radius > 0.0:
        disk, s_next = random_in_unit_disk(state)
        rd = lens_radius * disk
        offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y
        s_out = s_next

    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(origin + offset, target - origin - offset), s_out


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (lens center) in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def _triple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _triple(_camera_origin),
        "u": _triple(_camera_u),
        "v": _triple(_camera_v),
        "w": _triple(_camera_w),
        "horizontal": _triple(_viewport_horizontal),
        "vertical": _triple(_viewport_vertical),
        "lower_left": _triple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }

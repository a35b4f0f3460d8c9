"""Progressive renderer for batched sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple samples per pixel in one kernel launch)
- Progress callbacks and a generator interface
- Display encoding and file output

Every sample is identified by its absolute index, so splitting a render into
batches, or into several render() calls, does not change the result for a
given seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.core.progressive import ProgressiveRenderer
    >>> from rtweekend.scene.presets import create_two_sphere_scene
    >>> from rtweekend.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100, seed=7)
    >>> renderer.save_ppm("image.ppm")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from rtweekend.core.color import to_display_bytes
from rtweekend.core.integrator import (
    DEFAULT_MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_color_sum_numpy,
    get_pixels_completed,
    render_sample,
    render_samples,
    setup_render_target,
)
from rtweekend.output.export import format_ppm, save_png, write_ppm

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Parameters of a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples averaged per pixel.
        max_depth: Maximum number of surface interactions per path.
        seed: Seed of the per-sample random streams.
        jitter: Whether samples are jittered within the pixel.
        batch_size: Samples per pixel rendered per kernel launch.
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: int = 0
    jitter: bool = True
    batch_size: int = 10

    @classmethod
    def from_aspect_ratio(
        cls,
        width: int,
        aspect_ratio: float,
        **kwargs,
    ) -> RenderSettings:
        """Create settings with the height derived as int(width / aspect_ratio).

        Raises:
            ValueError: If aspect_ratio is not positive.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {aspect_ratio} must be positive")
        return cls(width=width, height=int(width / aspect_ratio), **kwargs)

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any setting is out of range.
        """
        if not 0 < self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width = {self.width} must be in [1, {MAX_IMAGE_WIDTH}]")
        if not 0 < self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height = {self.height} must be in [1, {MAX_IMAGE_HEIGHT}]")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be positive")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must not be negative")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size = {self.batch_size} must be positive")


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps track of the image size and of how many samples per
    pixel have been accumulated, and delegates to the global integrator
    buffers (which are Taichi fields). Only one render target exists per
    Taichi runtime, so creating a renderer resets it.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 1280).
            height: Image height in pixels (max 1280).

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        self._width = width
        self._height = height
        self._sample_count = 0
        setup_render_target(width, height)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> ProgressiveRenderer:
        """Create a renderer sized for validated settings."""
        settings.validate()
        return cls(settings.width, settings.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return self._sample_count

    @property
    def pixels_completed(self) -> int:
        """Get the number of pixels finished in the latest batch."""
        return get_pixels_completed()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color sums and sample count, allowing a fresh render
        without changing the image dimensions.
        """
        clear_render_target()
        self._sample_count = 0

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self._sample_count = 0

    def render(
        self,
        num_samples: int = 1,
        max_depth: int = DEFAULT_MAX_DEPTH,
        seed: int = 0,
        jitter: bool = True,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image; later
        calls continue the sample sequence, so the seed should stay the same.

        Args:
            num_samples: Number of samples per pixel to add.
            max_depth: Maximum number of surface interactions per path.
            seed: Seed of the per-sample random streams.
            jitter: Whether samples are jittered within the pixel.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(
            num_samples, max_depth=max_depth, seed=seed, jitter=jitter, batch_size=batch_size
        ):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        max_depth: int = DEFAULT_MAX_DEPTH,
        seed: int = 0,
        jitter: bool = True,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        This is a generator-based alternative to render() with callbacks.

        Args:
            num_samples: Number of samples per pixel to add.
            max_depth: Maximum number of surface interactions per path.
            seed: Seed of the per-sample random streams.
            jitter: Whether samples are jittered within the pixel.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size = {batch_size} must be positive")

        target_samples = self._sample_count + num_samples
        logger.info(
            "Rendering %dx%d, %d samples per pixel (batch %d, max depth %d, seed %d)",
            self._width,
            self._height,
            num_samples,
            batch_size,
            max_depth,
            seed,
        )

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_samples(self._sample_count, batch, max_depth, seed, jitter)
            self._sample_count += batch
            remaining -= batch
            logger.debug("Accumulated %d/%d samples", self._sample_count, target_samples)
            yield (self._sample_count, target_samples)

    def render_settings(
        self,
        settings: RenderSettings,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render all samples described by settings.

        Raises:
            ValueError: If the settings are invalid or do not match the
                renderer's size.
        """
        settings.validate()
        if (settings.width, settings.height) != (self._width, self._height):
            raise ValueError(
                f"Settings size {settings.width}x{settings.height} does not match "
                f"renderer size {self._width}x{self._height}"
            )
        self.render(
            settings.samples_per_pixel,
            max_depth=settings.max_depth,
            seed=settings.seed,
            jitter=settings.jitter,
            batch_size=settings.batch_size,
            callback=callback,
        )

    def render_sample(
        self,
        pixel_i: int,
        pixel_j: int,
        sample_index: int = 0,
        max_depth: int = DEFAULT_MAX_DEPTH,
        seed: int = 0,
        jitter: bool = True,
    ) -> tuple[float, float, float]:
        """Render one sample of one pixel without accumulating it.

        Uses the same random stream as render(), so the result equals that
        sample's contribution to a full render with the same seed.

        Args:
            pixel_i: Pixel x-coordinate (0 = left).
            pixel_j: Pixel y-coordinate (0 = bottom).
            sample_index: Index of the sample within the pixel.
            max_depth: Maximum number of surface interactions.
            seed: Seed of the per-sample random streams.
            jitter: Whether the sample is jittered within the pixel.

        Returns:
            Tuple of (R, G, B) linear radiance.
        """
        return render_sample(pixel_i, pixel_j, sample_index, max_depth, seed, jitter)

    def get_color_sum(self) -> npt.NDArray[np.float64]:
        """Get the raw accumulated radiance sums, top row first."""
        return get_color_sum_numpy()

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the averaged linear image as a NumPy array.

        Returns:
            Array of shape (height, width, 3), top row first. All zeros when
            no samples have been rendered.
        """
        color_sum = get_color_sum_numpy()
        if self._sample_count == 0:
            return np.zeros_like(color_sum)
        return color_sum / float(self._sample_count)

    def get_pixels(self) -> npt.NDArray[np.uint8]:
        """Get the display-encoded 8-bit image.

        Returns:
            Array of shape (height, width, 3) with dtype uint8, top row first.

        Raises:
            RuntimeError: If no samples have been rendered.
        """
        if self._sample_count == 0:
            raise RuntimeError("No samples rendered. Call render() first.")
        return to_display_bytes(get_color_sum_numpy(), self._sample_count)

    def to_ppm(self) -> str:
        """Get the display-encoded image as P3 pixel map text."""
        return format_ppm(self.get_pixels())

    def save_ppm(self, filepath: str | os.PathLike[str]) -> None:
        """Save the display-encoded image as a P3 pixel map file."""
        write_ppm(filepath, self.get_pixels())

    def save_png(self, filepath: str | os.PathLike[str]) -> None:
        """Save the display-encoded image as a PNG file."""
        save_png(filepath, self.get_pixels())

    def save_image(self, filepath: str | os.PathLike[str]) -> None:
        """Save the image, choosing the format from the file extension.

        Raises:
            ValueError: If the extension is neither .ppm nor .png.
        """
        extension = os.path.splitext(os.fspath(filepath))[1].lower()
        if extension == ".ppm":
            self.save_ppm(filepath)
        elif extension == ".png":
            self.save_png(filepath)
        else:
            raise ValueError(f"Unsupported image format: {extension!r} (use .ppm or .png)")

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )

"""Image export utilities for rendered images.

This module writes 8-bit display pixels produced by the renderer to files.

Supported formats:
    - Plain PPM (P3 text pixel map)
    - PNG (8-bit via Pillow)

Pixel arrays have shape (height, width, 3) and dtype uint8, with the top
image row first.

Example:
    >>> from rtweekend.output.export import write_ppm
    >>> from rtweekend.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> write_ppm("image.ppm", renderer.get_pixels())
"""

from __future__ import annotations

import logging
import os

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Largest channel value written to the P3 header
PPM_MAX_VALUE = 255


def _check_pixels(pixels: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Validate a pixel array and return it as uint8."""
    array = np.asarray(pixels)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected pixels of shape (height, width, 3), got {array.shape}")
    if array.dtype != np.uint8:
        if array.size and (array.min() < 0 or array.max() > PPM_MAX_VALUE):
            raise ValueError("Pixel values must be in [0, 255]")
        array = array.astype(np.uint8)
    return array


def format_ppm(pixels: npt.ArrayLike) -> str:
    """Format pixels as a plain-text P3 pixel map.

    The output is the header ``P3\\n<width> <height>\\n255\\n`` followed by
    one ``R G B`` line per pixel, rows top to bottom and columns left to
    right.

    Args:
        pixels: Array of shape (height, width, 3) with values in [0, 255].

    Returns:
        The complete pixel map text.

    Raises:
        ValueError: If the array has the wrong shape or value range.
    """
    array = _check_pixels(pixels)
    height, width, _ = array.shape

    lines = [f"P3\n{width} {height}\n{PPM_MAX_VALUE}\n"]
    lines.extend(f"{r} {g} {b}\n" for r, g, b in array.reshape(-1, 3).tolist())
    return "".join(lines)


def write_ppm(filepath: str | os.PathLike[str], pixels: npt.ArrayLike) -> None:
    """Write pixels to a plain-text P3 pixel map file.

    Args:
        filepath: Output file path.
        pixels: Array of shape (height, width, 3) with values in [0, 255].

    Raises:
        ValueError: If the array has the wrong shape or value range.
        OSError: If the file cannot be written.
    """
    text = format_ppm(pixels)
    with open(filepath, "w", encoding="ascii", newline="\n") as f:
        f.write(text)
    logger.info("Wrote %s", filepath)


def save_png(filepath: str | os.PathLike[str], pixels: npt.ArrayLike) -> None:
    """Save pixels as an 8-bit RGB PNG file.

    Args:
        filepath: Output file path (should end in .png).
        pixels: Array of shape (height, width, 3) with values in [0, 255].

    Raises:
        ValueError: If the array has the wrong shape or value range.
        OSError: If the file cannot be written.
    """
    array = _check_pixels(pixels)
    pil_image = PILImage.fromarray(np.ascontiguousarray(array))
    pil_image.save(filepath)
    logger.info("Wrote %s", filepath)

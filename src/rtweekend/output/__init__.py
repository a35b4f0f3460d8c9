"""Output writers for rendered images."""

from .export import format_ppm, save_png, write_ppm

__all__ = ["format_ppm", "write_ppm", "save_png"]

#!/usr/bin/env python3
"""Render one of the stock sphere scenes.

This script builds a scene, sets up its camera, renders it progressively and
writes the result as a P3 pixel map or PNG.

Usage:
    python examples/render_scene.py [options]

Options:
    --scene NAME          two-spheres, materials or random (default: two-spheres)
    --width WIDTH         Image width in pixels (default: 400)
    --aspect-ratio RATIO  Width / height (default: 16/9)
    --samples SAMPLES     Number of samples per pixel (default: 100)
    --max-depth DEPTH     Maximum bounces per path (default: 50)
    --seed SEED           Random seed (default: 0)
    --output OUTPUT       Output file path, .ppm or .png (default: image.ppm)
    --batch-size SIZE     Samples per progress update (default: 10)
    --no-jitter           Sample pixel corners instead of random positions
    --quiet               Suppress progress output
    --cpu                 Force the CPU backend

Example:
    python examples/render_scene.py --scene materials --samples 50 --output materials.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

SCENE_NAMES = ("two-spheres", "materials", "random")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a stock sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_NAMES,
        default="two-spheres",
        help="Scene to render (default: two-spheres)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Image width divided by height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path, .ppm or .png (default: image.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--no-jitter",
        action="store_true",
        help="Disable sub-pixel jitter",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    return parser.parse_args()


def render_scene(
    scene_name: str,
    settings,
    output_path: str = "image.ppm",
    quiet: bool = False,
) -> Path:
    """Render a stock scene and save it to a file.

    Args:
        scene_name: One of SCENE_NAMES.
        settings: RenderSettings for the render.
        output_path: Output file path (.ppm or .png).
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from rtweekend.camera.thin_lens import setup_camera
    from rtweekend.core.progressive import ProgressiveRenderer
    from rtweekend.scene.presets import SCENES

    aspect_ratio = settings.width / settings.height
    if not quiet:
        print(f"Creating {scene_name} scene ({settings.width}x{settings.height})...")

    factory = SCENES[scene_name]
    if scene_name == "random":
        _, camera = factory(seed=settings.seed, aspect_ratio=aspect_ratio)
    else:
        _, camera = factory(aspect_ratio=aspect_ratio)
    setup_camera(camera)

    renderer = ProgressiveRenderer.from_settings(settings)

    if not quiet:
        print(f"Rendering {settings.samples_per_pixel} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render_settings(settings, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    renderer.save_image(output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    from rtweekend.utils.logconfig import setup_logging

    setup_logging("rtweekend", level=logging.ERROR if args.quiet else logging.WARNING)

    # Initialize Taichi
    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu, default_fp=ti.f64)
    else:
        try:
            ti.init(arch=ti.gpu, default_fp=ti.f64)
            if not args.quiet:
                print("Using GPU backend")
        except Exception:
            ti.init(arch=ti.cpu, default_fp=ti.f64)
            if not args.quiet:
                print("Using CPU backend")

    try:
        from rtweekend.core.progressive import RenderSettings

        settings = RenderSettings.from_aspect_ratio(
            args.width,
            args.aspect_ratio,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            jitter=not args.no_jitter,
            batch_size=args.batch_size,
        )
        settings.validate()
        render_scene(args.scene, settings, output_path=args.output, quiet=args.quiet)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

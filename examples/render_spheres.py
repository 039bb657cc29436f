#!/usr/bin/env python3
"""Render one of the built-in sphere scenes.

Creates the scene, sets up the camera, renders with progressive refinement,
and writes the averaged image. The output format follows the file extension
(.png, .ppm, ...).

Usage:
    python examples/render_spheres.py [options]

Options:
    --width WIDTH         Image width in pixels (default: 200)
    --height HEIGHT       Image height in pixels (default: 100)
    --samples SAMPLES     Number of samples per pixel (default: 100)
    --max-depth DEPTH     Maximum scatter events per path (default: 50)
    --t-min T_MIN         Lower bound of the hit window (default: 0.001)
    --scene NAME          Scene to render: two-spheres or metal (default: two-spheres)
    --normals             Color hits by their surface normal instead of materials
    --output OUTPUT       Output file path (default: spheres.png)
    --seed SEED           Random seed for reproducible renders
    --batch-size SIZE     Samples per progress update (default: 10)
    --quiet               Suppress progress output
    --cpu                 Force the CPU backend

Example:
    python examples/render_spheres.py --scene metal --samples 50 --output metal.ppm
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti

SCENE_CHOICES = ("two-spheres", "metal")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=200,
        help="Image width in pixels (default: 200)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=100,
        help="Image height in pixels (default: 100)",
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
        help="Maximum scatter events per path (default: 50)",
    )
    parser.add_argument(
        "--t-min",
        type=float,
        default=1e-3,
        help="Lower bound of the hit window (default: 0.001)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_CHOICES,
        default="two-spheres",
        help="Scene to render (default: two-spheres)",
    )
    parser.add_argument(
        "--normals",
        action="store_true",
        help="Color hits by their surface normal instead of materials",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible renders",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
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
    return parser.parse_args(argv)


def render_spheres(
    settings,
    scene_name: str = "two-spheres",
    output_path: str = "spheres.png",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render a built-in scene and save it to a file.

    Args:
        settings: RenderSettings for the render.
        scene_name: Name of the built-in scene.
        output_path: Output file path. The extension selects the format.
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before any fields are created
    from spheretrace.camera.pinhole import setup_camera
    from spheretrace.core.progressive import ProgressiveRenderer
    from spheretrace.preview.export import save_png
    from spheretrace.scene.presets import create_preset_scene

    if not quiet:
        print(f"Creating '{scene_name}' scene ({settings.width}x{settings.height})...")

    scene, camera = create_preset_scene(scene_name, aspect_ratio=settings.aspect_ratio)
    setup_camera(camera)

    renderer = ProgressiveRenderer.from_settings(settings)

    if not quiet:
        print(
            f"Rendering {scene.get_sphere_count()} spheres at "
            f"{settings.samples} samples per pixel..."
        )

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

    renderer.render(
        num_samples=settings.samples,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(renderer, output_file, gamma=settings.gamma)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Taichi must be initialized before the spheretrace modules create fields
    init_kwargs = {} if args.seed is None else {"random_seed": args.seed}
    backend = "CPU"
    if args.cpu:
        ti.init(arch=ti.cpu, **init_kwargs)
    else:
        try:
            ti.init(arch=ti.gpu, **init_kwargs)
            backend = "GPU"
        except Exception:
            ti.init(arch=ti.cpu, **init_kwargs)
    if not args.quiet:
        print(f"Using {backend} backend")

    from spheretrace.core.integrator import ShadeMode
    from spheretrace.core.progressive import RenderSettings

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples=args.samples,
            max_depth=args.max_depth,
            t_min=args.t_min,
            shade_mode=ShadeMode.NORMALS if args.normals else ShadeMode.MATERIAL,
        )
        render_spheres(
            settings,
            scene_name=args.scene,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

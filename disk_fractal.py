"""
Generate a self-similar abstract image by repeatedly copying circular regions of a
floating-point canvas onto other circular regions with a rotation and a color shift,
then squash the unbounded accumulator into 8-bit RGB using a magnitude-median width.

Basic usage:
    venv/bin/python disk_fractal.py --size 400 --seed 7

Key optional flags (see --help for all):
    --unique-trans N               Number of distinct transformations in the pool (default: 100).
    --num-trans N                  Number of transformations applied to the canvas (default: 1000).
    --size PX                      Side length of the square canvas (default: 1000).
    --seed N                       Seed for the random source (default: 0).
    --output-dir PATH              Folder for the auto-named output image (default: cwd).
    --output PATH                  Explicit output path; overrides the auto-generated name.

The same four parameters always reproduce the same image.
"""

from __future__ import annotations

import argparse
import math
import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image

Pixel = Tuple[int, int]
Color = Tuple[float, float, float]
Canvas = List[List[List[float]]]

BUCKET_WIDTH = 0.01


class ConfigError(ValueError):
    """Raised when render parameters cannot produce an image."""


@dataclass
class RenderParams:
    unique_trans: int = 100
    num_trans: int = 1000
    size: int = 1000
    seed: int = 0

    def validate(self) -> None:
        """Fail fast on parameters that make the generator ranges degenerate."""
        if self.size < 1:
            raise ConfigError(f"size must be at least 1, got {self.size}")
        if self.unique_trans < 1:
            raise ConfigError(f"unique_trans must be at least 1, got {self.unique_trans}")
        if self.num_trans < 0:
            raise ConfigError(f"num_trans must not be negative, got {self.num_trans}")
        if self.seed < 0:
            raise ConfigError(f"seed must not be negative, got {self.seed}")

    def filename(self) -> str:
        return f"img-{self.unique_trans}-{self.num_trans}-{self.size}-{self.seed}.png"


@dataclass(frozen=True)
class Transformation:
    """
    Copy rule from a source disk to a destination disk.
    Points are scaled by dst_radius / src_radius, rotated by `rotation` and shifted
    in color by `color_offset`.
    """

    src_center: Pixel
    src_radius: int
    dst_center: Pixel
    dst_radius: int
    color_offset: Color
    rotation: float


def clearance(center: Pixel, size: int) -> int:
    """Largest radius a disk centered at `center` can have without leaving the canvas."""
    row, col = center
    return min(row, col, size - 1 - row, size - 1 - col)


def generate(size: int, rng: random.Random) -> Transformation:
    """
    Draw one random transformation whose source and destination disks both fit
    inside a `size` x `size` canvas.
    """
    src_center = (rng.randint(0, size - 1), rng.randint(0, size - 1))
    src_radius = rng.randint(0, clearance(src_center, size))
    # dst_radius <= src_radius <= (size - 1) / 2 keeps the center range non-empty.
    dst_radius = rng.randint(0, src_radius)
    dst_center = (
        rng.randint(dst_radius, size - 1 - dst_radius),
        rng.randint(dst_radius, size - 1 - dst_radius),
    )
    # An i.i.d. normal vector has no preferred direction in color space.
    color_offset = (rng.gauss(0.0, 1.0), rng.gauss(0.0, 1.0), rng.gauss(0.0, 1.0))
    rotation = rng.random() * math.tau
    return Transformation(
        src_center=src_center,
        src_radius=src_radius,
        dst_center=dst_center,
        dst_radius=dst_radius,
        color_offset=color_offset,
        rotation=rotation,
    )


def build_pool(unique_trans: int, size: int, rng: random.Random) -> List[Transformation]:
    """Generate the fixed pool of transformations sampled during compositing."""
    return [generate(size, rng) for _ in range(unique_trans)]


def new_canvas(size: int) -> Canvas:
    """Zero-filled grid of RGB accumulators addressed as canvas[row][col]."""
    return [[[0.0, 0.0, 0.0] for _ in range(size)] for _ in range(size)]


def sample_index(rng: random.Random, unique_trans: int) -> int:
    """
    Pick a pool index from a triangular distribution peaked at 0, so early
    transformations are applied far more often than late ones.
    """
    index = int(rng.triangular(0.0, float(unique_trans), 0.0))
    return min(index, unique_trans - 1)


def _to_index(value: float) -> int:
    """Truncate toward zero, saturating negatives at 0."""
    return max(0, int(value))


def apply(canvas: Canvas, trans: Transformation) -> None:
    """
    Copy the source disk onto the destination disk in place.
    Offsets run over [-radius, radius) on both axes; writes overwrite and later
    offsets may read pixels written earlier in the same call.
    """
    radius = trans.src_radius
    radius_sq = radius * radius
    src_row, src_col = trans.src_center
    dst_row, dst_col = trans.dst_center
    off_r, off_g, off_b = trans.color_offset
    for dr in range(-radius, radius):
        for dc in range(-radius, radius):
            dist_sq = dr * dr + dc * dc
            if dist_sq > radius_sq:
                continue
            dst_dist = math.sqrt(dist_sq) * trans.dst_radius / radius
            # Angle is measured from the row axis.
            dst_angle = math.atan2(dc, dr) + trans.rotation
            r, g, b = canvas[src_row + dr][src_col + dc]
            target_row = _to_index(dst_row + math.cos(dst_angle) * dst_dist)
            target_col = _to_index(dst_col + math.sin(dst_angle) * dst_dist)
            canvas[target_row][target_col] = [r + off_r, g + off_g, b + off_b]


def composite(
    pool: Sequence[Transformation], num_trans: int, size: int, rng: random.Random
) -> Canvas:
    """Apply `num_trans` sampled transformations to a fresh canvas."""
    canvas = new_canvas(size)
    for _ in range(num_trans):
        apply(canvas, pool[sample_index(rng, len(pool))])
    return canvas


def build_histogram(canvas: Canvas) -> List[int]:
    """Count channel magnitudes in buckets of BUCKET_WIDTH, growing the list on demand."""
    buckets: List[int] = []
    for row in canvas:
        for color in row:
            for channel in color:
                index = int(abs(channel) / BUCKET_WIDTH)
                if index >= len(buckets):
                    buckets.extend([0] * (index - len(buckets) + 1))
                buckets[index] += 1
    return buckets


def characteristic_width(histogram: Sequence[int], size: int) -> Tuple[int, float]:
    """
    Walk the magnitude histogram until more than half of all channel values are
    covered and return (running count, width at that bucket).
    Bucket 0 is halved since folding signs doubles the mass near zero.
    Falls back to BUCKET_WIDTH when the half-mass point is never passed.
    """
    threshold = size * size * 3 // 2
    count = 0
    for i, bucket in enumerate(histogram):
        count += bucket // 2 if i == 0 else bucket
        if count > threshold:
            return count, i * BUCKET_WIDTH
    return count, BUCKET_WIDTH


def squash(value: float, width: float) -> int:
    """
    Logistic squash to [0, 255]: negative -> bright, positive -> dark, 0 -> 128.
    Ties round half away from zero.
    """
    z = value / width
    if z > 0:
        e = math.exp(-z)  # Underflows to 0 instead of overflowing.
        level = 255.0 * e / (1.0 + e)
    else:
        level = 255.0 / (1.0 + math.exp(z))
    return int(math.floor(level + 0.5))


def tone_map(canvas: Canvas, width: float) -> Image.Image:
    """Convert the accumulator into an RGB image; canvas rows run along the x axis."""
    size = len(canvas)
    img = Image.new("RGB", (size, size))
    pixels = img.load()
    for r, row in enumerate(canvas):
        for c, color in enumerate(row):
            pixels[r, c] = tuple(squash(channel, width) for channel in color)
    return img


def make_image(params: RenderParams) -> Image.Image:
    """Run the full pipeline for one parameter set."""
    params.validate()
    rng = random.Random(params.seed)  # Single RNG: pool draws first, then compositing.
    pool = build_pool(params.unique_trans, params.size, rng)
    canvas = composite(pool, params.num_trans, params.size, rng)
    count, width = characteristic_width(build_histogram(canvas), params.size)
    print(f"{count} {width}")
    return tone_map(canvas, width)


def save_image(img: Image.Image, dest: Path) -> None:
    """Write the image, creating the destination folder if needed."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    img.save(dest)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    defaults = RenderParams()
    parser = argparse.ArgumentParser(
        description="Render a self-similar image from randomly generated disk transformations."
    )
    parser.add_argument(
        "--unique-trans",
        type=int,
        default=defaults.unique_trans,
        help=f"Number of transformations in the pool (default: {defaults.unique_trans}).",
    )
    parser.add_argument(
        "--num-trans",
        type=int,
        default=defaults.num_trans,
        help=f"Number of transformation applications (default: {defaults.num_trans}).",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=defaults.size,
        help=f"Canvas side length in pixels (default: {defaults.size}).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.seed,
        help=f"Seed for the random source (default: {defaults.seed}).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Folder that receives the auto-named image.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Explicit output path; overrides the auto-generated filename.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    params = RenderParams(
        unique_trans=args.unique_trans,
        num_trans=args.num_trans,
        size=args.size,
        seed=args.seed,
    )
    try:
        params.validate()
    except ConfigError as exc:
        raise SystemExit(f"Invalid parameters: {exc}") from exc

    out_path: Path = args.output or args.output_dir / params.filename()
    print(out_path)
    img = make_image(params)
    try:
        save_image(img, out_path)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Failed to save image to {out_path}: {exc}") from exc
    print(f"Saved image to: {out_path} (size={img.size[0]}x{img.size[1]})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

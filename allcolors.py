#!/usr/bin/env python3
"""
Grow a painting that uses every color of the palette exactly once.

Growth starts from a symmetric seed layout (2, 3 or 4 seeds) on a blank
canvas, or from every foreground pixel of a mask image. Frames are written
to the output directory every few hundred placements.
"""

import argparse
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

from frames import embellish, load_mask, save_frame
from growth import (
    Canvas, GrowthError, GrowthLoop, GrowthResult,
    DEFAULT_HEIGHT, DEFAULT_SENTINEL, DEFAULT_WIDTH, PLUS_ARM_LENGTH,
    SAVE_EVERY_N_FRAMES, SEED_LAYOUTS,
    frontier_from_mask, initial_frontier, plus_cluster, seed_points,
)
from palette import DEFAULT_SEED, PaletteSpec, color_queue


@dataclass
class RunConfig:
    """Everything a single growth run needs."""
    source: str = '3'  # Seed layout number or mask image path
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    arm: int = PLUS_ARM_LENGTH
    palette: PaletteSpec = field(default_factory=PaletteSpec)
    seed: int = DEFAULT_SEED
    save_every: int = SAVE_EVERY_N_FRAMES
    output_dir: Optional[Path] = Path('output')  # None disables frame writing
    embellish: bool = True
    final_frame: bool = True
    sentinel: int = DEFAULT_SENTINEL


def parse_layout(source: str) -> Optional[int]:
    """Seed layout number if source names one, else None (a mask path)."""
    return int(source) if source in {str(n) for n in SEED_LAYOUTS} else None


def prepare_canvas(config: RunConfig) -> tuple:
    """
    Build the blank canvas and its initial frontier.

    Raises:
        FileNotFoundError: If the mask image doesn't exist
        ValueError: If the mask is not a valid image
    """
    layout = parse_layout(config.source)
    if layout is None:
        mask = load_mask(config.source)
        h, w = mask.shape
        canvas = Canvas(w, h, sentinel=config.sentinel)
        return canvas, initial_frontier(canvas, frontier_from_mask(mask))

    canvas = Canvas(config.width, config.height, sentinel=config.sentinel)
    seeds = seed_points(layout, config.width, config.height)
    return canvas, initial_frontier(canvas, plus_cluster(seeds, config.arm))


def run_growth(config: RunConfig, verbose: bool = True) -> tuple[GrowthResult, Canvas]:
    """
    Run one growth to a terminal state.

    Returns:
        Tuple of (result, canvas) with the finished canvas.

    Raises:
        PaletteMismatch: If the palette does not enumerate as configured
        GrowthError: If a growth invariant breaks mid-run
        OSError: If a frame cannot be written
    """
    rng = np.random.default_rng(config.seed)
    queue = color_queue(config.palette, rng)
    canvas, frontier = prepare_canvas(config)

    if config.output_dir is not None:
        config.output_dir.mkdir(parents=True, exist_ok=True)

    def write(frame, progress):
        if verbose:
            print(f"{progress.snapshot_index}/{max_saves} "
                  f"{progress.remaining} {progress.frontier_size}")
        if config.output_dir is not None:
            if config.embellish:
                frame = embellish(frame, config.sentinel)
            save_frame(frame, config.output_dir, progress.snapshot_index)

    if verbose:
        print(f"Canvas: {canvas.width}x{canvas.height}, palette: {len(queue):,} colors, "
              f"frontier: {len(frontier):,}")

    loop = GrowthLoop(canvas, frontier, queue, rng,
                      snapshot_every=config.save_every, on_snapshot=write)
    max_saves = len(queue) // config.save_every

    result = loop.run()

    if config.final_frame and result.placed % config.save_every != 0:
        loop.emit_snapshot()
        result.snapshots = loop.snapshot_index

    return result, canvas


def add_palette_arguments(parser) -> None:
    parser.add_argument(
        '--levels',
        nargs=3, type=int, metavar=('B', 'G', 'R'),
        default=list(PaletteSpec().levels),
        help='Palette levels per channel (default: %(default)s)'
    )
    parser.add_argument(
        '--steps',
        nargs=3, type=int, metavar=('B', 'G', 'R'),
        default=list(PaletteSpec().steps),
        help='Palette step per channel (default: %(default)s)'
    )
    parser.add_argument(
        '--seed',
        type=int, default=DEFAULT_SEED,
        help='Random seed for palette shuffle and tie-breaking (default: %(default)s)'
    )
    parser.add_argument(
        '--save-every',
        type=int, default=SAVE_EVERY_N_FRAMES,
        help='Write a frame every N placements (default: %(default)s)'
    )
    parser.add_argument(
        '--no-embellish',
        action='store_true',
        help='Write raw frames without the gap-filling filter'
    )


def print_summary(result: GrowthResult, elapsed: float) -> None:
    print(f"Placed {result.placed:,} colors, {result.unplaced:,} left unplaced "
          f"({result.state.value}) in {elapsed:.2f}s")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Grow an image that uses every palette color exactly once.'
    )
    parser.add_argument(
        'source',
        help='Seed layout (2, 3 or 4) or path to a mask image'
    )
    parser.add_argument(
        '--output', '-o',
        default='output',
        help='Directory for frames (default: %(default)s)'
    )
    parser.add_argument('--width', type=int, default=DEFAULT_WIDTH)
    parser.add_argument('--height', type=int, default=DEFAULT_HEIGHT)
    parser.add_argument(
        '--arm',
        type=int, default=PLUS_ARM_LENGTH,
        help='Arm length of the plus around each seed (default: %(default)s)'
    )
    add_palette_arguments(parser)

    args = parser.parse_args(argv)

    try:
        config = RunConfig(
            source=args.source,
            width=args.width,
            height=args.height,
            arm=args.arm,
            palette=PaletteSpec(levels=tuple(args.levels), steps=tuple(args.steps)),
            seed=args.seed,
            save_every=args.save_every,
            output_dir=Path(args.output),
            embellish=not args.no_embellish,
        )
        start = time.perf_counter()
        result, _ = run_growth(config)
    except (FileNotFoundError, ValueError, GrowthError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    print_summary(result, time.perf_counter() - start)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())

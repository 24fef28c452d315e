#!/usr/bin/env python3
"""Batch grow paintings from every mask image in a directory."""

import argparse
import sys
import time
from collections import Counter
from pathlib import Path

from allcolors import RunConfig, add_palette_arguments, run_growth
from frames import find_images
from growth import GrowthError
from palette import PaletteSpec


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Grow one painting per mask image in a directory.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Directory containing mask images'
    )
    parser.add_argument(
        '--output', '-o',
        required=True,
        help='Directory for frames, one subdirectory per mask'
    )
    add_palette_arguments(parser)

    args = parser.parse_args(argv)

    input_dir = Path(args.input)
    output_dir = Path(args.output)

    # Validate input directory
    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {input_dir}", file=sys.stderr)
        return 2

    images = find_images(input_dir)
    if not images:
        print(f"No images found in {input_dir}", file=sys.stderr)
        return 2

    try:
        palette = PaletteSpec(levels=tuple(args.levels), steps=tuple(args.steps))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    total = len(images)
    succeeded = 0
    failed = []
    states = Counter()
    placed = unplaced = 0

    batch_start = time.perf_counter()

    for i, image_path in enumerate(images, 1):
        config = RunConfig(
            source=str(image_path),
            palette=palette,
            seed=args.seed,
            save_every=args.save_every,
            output_dir=output_dir / image_path.stem,
            embellish=not args.no_embellish,
        )
        try:
            img_start = time.perf_counter()
            result, _ = run_growth(config, verbose=False)
            img_elapsed = time.perf_counter() - img_start

            print(f"[{i}/{total}] {image_path.name} → {result.placed:,} placed, "
                  f"{result.unplaced:,} unplaced, {result.snapshots} frames ({img_elapsed:.2f}s)")
            succeeded += 1
            states[result.state.value] += 1
            placed += result.placed
            unplaced += result.unplaced

        except (ValueError, GrowthError, OSError) as e:
            print(f"[{i}/{total}] {image_path.name} → {type(e).__name__}: {e}", file=sys.stderr)
            failed.append((image_path.name, type(e).__name__))

    batch_elapsed = time.perf_counter() - batch_start

    print()
    print(f"Completed: {succeeded}/{total} succeeded in {batch_elapsed:.2f}s")
    if succeeded > 0:
        print(f"Colors: {placed:,} placed, {unplaced:,} unplaced")
        print("States: " + ", ".join(f"{state} x{n}" for state, n in sorted(states.items())))
    if failed:
        print("Failed: " + ", ".join(f"{name} ({kind})" for name, kind in failed))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())

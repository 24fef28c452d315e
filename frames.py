#!/usr/bin/env python3
"""
Image input/output around the growth engine: source masks in, frames out.
"""

from pathlib import Path

import numpy as np
from PIL import Image
from scipy.ndimage import grey_dilation, median_filter


# =============================================================================
# Constants
# =============================================================================

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.bmp'}
FILTER_SIZE = 3  # Dilation and median window
GAP_FILL_WEIGHT = 0.5  # Gaps get half the filtered neighborhood color


# =============================================================================
# Input
# =============================================================================

def load_mask(image_path: str) -> np.ndarray:
    """
    Load an image as a boolean foreground mask.

    Every pixel whose grayscale value is above zero is foreground.

    Returns:
        bool array of shape (height, width)

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If file is not a valid image or exceeds size limits
    """
    try:
        img = Image.open(image_path)
    except FileNotFoundError:
        raise FileNotFoundError(f"Image not found: {image_path}")
    except Exception as e:
        raise ValueError(f"Could not open image: {e}")

    width, height = img.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValueError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    if width * height > MAX_IMAGE_PIXELS:
        raise ValueError(
            f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
        )

    return np.array(img.convert('L')) > 0


def find_images(directory: Path) -> list[Path]:
    """Find all image files in directory."""
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


# =============================================================================
# Output
# =============================================================================

def embellish(frame: np.ndarray, sentinel: int = 0) -> np.ndarray:
    """
    Soften a blue-first frame for display.

    Dilates and median-filters the frame, then fills unset pixels with half
    of the filtered color. Set pixels are left untouched.

    Args:
        frame: uint8 array of shape (height, width, 3)
        sentinel: First-channel value marking unset pixels

    Returns:
        New uint8 array of the same shape
    """
    size = (FILTER_SIZE, FILTER_SIZE, 1)  # Per channel
    filtered = grey_dilation(frame, size=size)
    filtered = median_filter(filtered, size=size, mode='nearest')

    unset = frame[:, :, 0] == sentinel
    gaps = filtered.astype(np.float64) * unset[:, :, np.newaxis]

    mixed = frame.astype(np.float64) + GAP_FILL_WEIGHT * gaps
    return np.clip(np.rint(mixed), 0, 255).astype(np.uint8)


def frame_path(output_dir: Path, index: int) -> Path:
    return output_dir / f"image{index:04d}.png"


def save_frame(frame: np.ndarray, output_dir: Path, index: int) -> Path:
    """Write a blue-first frame as output_dir/imageNNNN.png (RGB)."""
    output_path = frame_path(output_dir, index)
    Image.fromarray(np.ascontiguousarray(frame[:, :, ::-1])).save(output_path)
    return output_path


if __name__ == '__main__':
    import sys

    if len(sys.argv) < 2:
        print("Usage: python frames.py <mask_image>")
        sys.exit(1)

    try:
        mask = load_mask(sys.argv[1])
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    h, w = mask.shape
    print(f"Mask: {w}x{h}, {int(mask.sum()):,} foreground pixels "
          f"({mask.mean():.1%})")

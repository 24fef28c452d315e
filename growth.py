#!/usr/bin/env python3
"""
Color growth engine.

Places every palette color exactly once on a canvas, each at the frontier
position whose already-set neighbors it matches best, so similar colors
cluster and the painting grows outward from its seeds.
Four parts: Canvas → Frontier Set → Position Scorer → Growth Loop
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

import numpy as np


# =============================================================================
# Constants
# =============================================================================

DEFAULT_SENTINEL = 0  # First-channel value marking an unset pixel
NEIGHBOR_RADIUS = 1  # 3x3 neighborhood for scoring and frontier expansion

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
PLUS_ARM_LENGTH = 5  # Arm length of the plus-shaped cluster around each seed
SAVE_EVERY_N_FRAMES = 512

# Seed layouts as (x, y) fractions of the canvas size
SEED_LAYOUTS = {
    2: ((0.33, 0.5), (0.67, 0.5)),
    3: ((0.33, 0.4), (0.67, 0.4), (0.50, 0.69)),
    4: ((0.33, 0.36), (0.67, 0.36), (0.36, 0.64), (0.64, 0.64)),
}


# =============================================================================
# Errors
# =============================================================================

class GrowthError(Exception):
    """Broken growth invariant. Always fatal for the run."""


class InvalidPosition(GrowthError):
    """Write outside the canvas or onto an already-set pixel."""


class FrontierNotFound(GrowthError, KeyError):
    """Removal of a position that is not in the frontier."""


# =============================================================================
# Canvas
# =============================================================================

class Canvas:
    """
    Blue-first uint8 pixel grid with a per-pixel set/unset state.

    A pixel is unset while its first channel equals the sentinel. The grid is
    stored with a sentinel-filled margin so neighborhoods near the border can
    be gathered without bounds checks.
    """

    def __init__(self, width: int, height: int, sentinel: int = DEFAULT_SENTINEL,
                 margin: int = NEIGHBOR_RADIUS):
        if width < 1 or height < 1:
            raise ValueError(f"Canvas size {width}x{height} must be positive")
        self.width = width
        self.height = height
        self.sentinel = sentinel
        self.margin = margin
        self._padded = np.full(
            (height + 2 * margin, width + 2 * margin, 3), sentinel, dtype=np.uint8
        )
        self.pixels = self._padded[margin:margin + height, margin:margin + width]
        self.set_count = 0

    def in_bounds(self, pos: tuple) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def is_unset(self, pos: tuple) -> bool:
        if not self.in_bounds(pos):
            raise InvalidPosition(f"Position {pos} outside {self.width}x{self.height} canvas")
        x, y = pos
        return self.pixels[y, x, 0] == self.sentinel

    def get(self, pos: tuple) -> Optional[tuple]:
        """Color at pos, or None while the pixel is unset."""
        if not self.in_bounds(pos):
            raise InvalidPosition(f"Position {pos} outside {self.width}x{self.height} canvas")
        if self.is_unset(pos):
            return None
        x, y = pos
        return tuple(int(c) for c in self.pixels[y, x])

    def set(self, pos: tuple, color) -> None:
        if not self.in_bounds(pos):
            raise InvalidPosition(f"Position {pos} outside {self.width}x{self.height} canvas")
        if not self.is_unset(pos):
            raise InvalidPosition(f"Position {pos} is already set")
        if color[0] == self.sentinel:
            raise ValueError(f"Color {tuple(color)} collides with the unset sentinel")
        x, y = pos
        self.pixels[y, x] = color
        self.set_count += 1

    def neighbors_within_radius(self, pos: tuple, radius: int = NEIGHBOR_RADIUS) -> list:
        """All in-bounds positions of the square around pos, pos included."""
        x, y = pos
        return [
            (nx, ny)
            for nx in range(max(x - radius, 0), min(x + radius, self.width - 1) + 1)
            for ny in range(max(y - radius, 0), min(y + radius, self.height - 1) + 1)
        ]

    def free_neighbors(self, pos: tuple, radius: int = NEIGHBOR_RADIUS) -> list:
        return [n for n in self.neighbors_within_radius(pos, radius) if self.is_unset(n)]

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the grid, safe to hand to a writer."""
        frame = self.pixels.copy()
        frame.setflags(write=False)
        return frame


# =============================================================================
# Frontier Set
# =============================================================================

class FrontierSet:
    """
    Unset positions eligible for the next placement.

    Members live in a dense (n, 2) coordinate array indexed by a dict, so
    insert, remove and lookup are O(1) on average and the whole frontier can
    be scored as one array. Removal swaps the last member into the hole.
    """

    def __init__(self, positions: Iterable = ()):
        self._index = {}
        self._coords = np.empty((64, 2), dtype=np.int64)
        for pos in positions:
            self.insert(pos)

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, pos) -> bool:
        return self.contains(pos)

    def __iter__(self):
        return iter(self.members())

    def contains(self, pos: tuple) -> bool:
        return (int(pos[0]), int(pos[1])) in self._index

    def insert(self, pos: tuple) -> None:
        pos = (int(pos[0]), int(pos[1]))
        if pos in self._index:
            return
        size = len(self._index)
        if size == len(self._coords):
            self._coords = np.concatenate([self._coords, np.empty_like(self._coords)])
        self._coords[size] = pos
        self._index[pos] = size

    def remove(self, pos: tuple) -> None:
        pos = (int(pos[0]), int(pos[1]))
        slot = self._index.pop(pos, None)
        if slot is None:
            raise FrontierNotFound(pos)
        last = len(self._index)
        if slot != last:
            moved = self._coords[last]
            self._coords[slot] = moved
            self._index[(int(moved[0]), int(moved[1]))] = slot

    def is_empty(self) -> bool:
        return not self._index

    def members(self) -> list:
        return list(self._index)

    def coords(self) -> np.ndarray:
        """(n, 2) array of (x, y) members. Invalidated by the next mutation."""
        return self._coords[:len(self._index)]


# =============================================================================
# Position Scorer
# =============================================================================

def score(canvas: Canvas, pos: tuple, color, radius: int = NEIGHBOR_RADIUS) -> float:
    """
    Local-fit cost of placing color at pos. Lower is better.

    Sums the channel-space distance to every set neighbor in the square
    around pos and divides by the squared neighbor count. A position with no
    set neighbor scores 0.
    """
    b, g, r = (int(c) for c in color)
    diff = 0.0
    count = 0
    for nx, ny in canvas.neighbors_within_radius(pos, radius):
        if canvas.is_unset((nx, ny)):
            continue
        nb, ng, nr = (int(c) for c in canvas.pixels[ny, nx])
        diff += math.sqrt((nb - b) ** 2 + (ng - g) ** 2 + (nr - r) ** 2)
        count += 1
    # Squared divisor favors dense neighborhoods
    divisor = float(max(count, 1))
    return diff / (divisor * divisor)


def score_frontier(canvas: Canvas, coords: np.ndarray, color,
                   radius: int = NEIGHBOR_RADIUS) -> np.ndarray:
    """
    Vectorized score() for every (x, y) row of coords.

    Visits the neighborhood in the same order as score() so both give
    identical floats.
    """
    if radius > canvas.margin:
        raise ValueError(f"Radius {radius} exceeds canvas margin {canvas.margin}")
    color = np.asarray(color, dtype=np.int64)
    off_canvas = (
        (coords[:, 0] < 0) | (coords[:, 0] >= canvas.width)
        | (coords[:, 1] < 0) | (coords[:, 1] >= canvas.height)
    )
    if off_canvas.any():
        x, y = coords[np.argmax(off_canvas)]
        raise InvalidPosition(
            f"Position {(int(x), int(y))} outside {canvas.width}x{canvas.height} canvas"
        )
    xs = coords[:, 0] + canvas.margin
    ys = coords[:, 1] + canvas.margin

    diff = np.zeros(len(coords), dtype=np.float64)
    count = np.zeros(len(coords), dtype=np.int64)
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            neighbors = canvas._padded[ys + dy, xs + dx].astype(np.int64)
            is_set = neighbors[:, 0] != canvas.sentinel
            dist = np.sqrt(((neighbors - color) ** 2).sum(axis=1).astype(np.float64))
            diff += np.where(is_set, dist, 0.0)
            count += is_set

    divisor = np.maximum(count, 1).astype(np.float64)
    return diff / (divisor * divisor)


# =============================================================================
# Seeds
# =============================================================================

def seed_points(layout: int, width: int, height: int) -> list:
    """Symmetric seed points for a 2, 3 or 4 seed layout."""
    if layout not in SEED_LAYOUTS:
        raise ValueError(f"Unknown seed layout {layout!r}, expected one of {sorted(SEED_LAYOUTS)}")
    return sorted({(int(fx * width), int(fy * height)) for fx, fy in SEED_LAYOUTS[layout]})


def plus_cluster(points: Iterable, arm: int = PLUS_ARM_LENGTH) -> list:
    """Plus-shaped runs of positions around each point, sorted by (x, y)."""
    positions = set()
    for x, y in points:
        positions.update((nx, y) for nx in range(x - arm, x + arm + 1))
        positions.update((x, ny) for ny in range(y - arm, y + arm + 1))
    return sorted(positions)


def frontier_from_mask(mask: np.ndarray) -> list:
    """Every true cell of a (height, width) mask as (x, y), sorted by (x, y)."""
    xs, ys = np.nonzero(np.asarray(mask, dtype=bool).T)
    return [(int(x), int(y)) for x, y in zip(xs, ys)]


def initial_frontier(canvas: Canvas, positions: Iterable) -> FrontierSet:
    """Frontier of the given positions that lie on the canvas and are unset."""
    return FrontierSet(
        pos for pos in positions if canvas.in_bounds(pos) and canvas.is_unset(pos)
    )


# =============================================================================
# Growth Loop
# =============================================================================

class GrowthState(Enum):
    RUNNING = 'running'
    DONE_QUEUE_EMPTY = 'done_queue_empty'
    DONE_FRONTIER_EMPTY = 'done_frontier_empty'
    FAILED = 'failed'


@dataclass
class GrowthProgress:
    """Counters for reporting only."""
    placed: int
    remaining: int
    frontier_size: int
    snapshot_index: int


@dataclass
class GrowthResult:
    state: GrowthState
    placed: int
    unplaced: int
    snapshots: int


SnapshotCallback = Callable[[np.ndarray, GrowthProgress], None]


class GrowthLoop:
    """
    Select-place-expand loop.

    Each step pops the last color of the queue, scores every frontier
    position for it, shuffles the candidates so ties break at random, places
    the color at the lowest score and adds the newly exposed unset neighbors
    to the frontier. The whole frontier is rescored per color since scores
    depend on the color being placed.
    """

    def __init__(self, canvas: Canvas, frontier: FrontierSet, queue: np.ndarray,
                 rng: np.random.Generator, snapshot_every: int = SAVE_EVERY_N_FRAMES,
                 on_snapshot: Optional[SnapshotCallback] = None):
        if snapshot_every < 1:
            raise ValueError(f"snapshot_every must be positive, got {snapshot_every}")
        self.canvas = canvas
        self.frontier = frontier
        self.queue = np.asarray(queue, dtype=np.uint8).reshape(-1, 3)
        self.rng = rng
        self.snapshot_every = snapshot_every
        self.on_snapshot = on_snapshot

        self.remaining = len(self.queue)
        self.placed = 0
        self.snapshot_index = 0
        self.state = GrowthState.RUNNING

    @property
    def progress(self) -> GrowthProgress:
        return GrowthProgress(
            placed=self.placed,
            remaining=self.remaining,
            frontier_size=len(self.frontier),
            snapshot_index=self.snapshot_index,
        )

    def select_position(self, color) -> tuple:
        """Lowest-scoring frontier position for color, ties broken by shuffle."""
        coords = self.frontier.coords()
        scores = score_frontier(self.canvas, coords, color)
        order = self.rng.permutation(len(scores))
        best = order[np.argmin(scores[order])]
        return int(coords[best, 0]), int(coords[best, 1])

    def step(self) -> GrowthState:
        if self.state is not GrowthState.RUNNING:
            return self.state
        if self.remaining == 0:
            self.state = GrowthState.DONE_QUEUE_EMPTY
            return self.state
        if self.frontier.is_empty():
            self.state = GrowthState.DONE_FRONTIER_EMPTY
            return self.state

        color = self.queue[self.remaining - 1]
        self.remaining -= 1
        try:
            pos = self.select_position(color)
            self.frontier.remove(pos)
            self.canvas.set(pos, color)
        except (GrowthError, ValueError):
            self.state = GrowthState.FAILED
            raise
        self.placed += 1

        for neighbor in self.canvas.free_neighbors(pos):
            self.frontier.insert(neighbor)

        if self.placed % self.snapshot_every == 0:
            self.emit_snapshot()
        return self.state

    def emit_snapshot(self) -> None:
        self.snapshot_index += 1
        if self.on_snapshot is not None:
            self.on_snapshot(self.canvas.snapshot(), self.progress)

    def run(self) -> GrowthResult:
        """Step until a terminal state. Invariant violations propagate."""
        while self.step() is GrowthState.RUNNING:
            pass
        return GrowthResult(
            state=self.state,
            placed=self.placed,
            unplaced=self.remaining,
            snapshots=self.snapshot_index,
        )

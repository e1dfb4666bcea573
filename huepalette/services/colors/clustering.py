"""
Perceptual color clustering.

Weighted K-means++ in OKLab. The generator is seeded from the pixel content
itself so that identical pixel sets always produce identical palettes.
"""

import math
from typing import List, Optional

import numpy as np
from loguru import logger

from huepalette.config import config
from .conversion import oklab_to_oklch, oklch_to_rgb, rgb_array_to_oklab, rgb_to_hsl
from .models import OklabColor, WeightedColor, sort_by_weight

MAX_REPETITIONS = 20
SEED_SAMPLE_SIZE = 100
VARIANCE_SAMPLE_SIZE = 500
_ASSIGN_CHUNK = 20000


class SeededRandom:
    """Linear congruential generator yielding floats in [0, 1)."""

    MODULUS = 2 ** 32

    def __init__(self, seed: int):
        self.seed = seed % self.MODULUS

    def next(self) -> float:
        self.seed = (self.seed * 1664525 + 1013904223) % self.MODULUS
        return self.seed / self.MODULUS


def _to_int32(value: int) -> int:
    return ((value + 2 ** 31) % 2 ** 32) - 2 ** 31


def generate_seed(pixels: np.ndarray) -> int:
    """Hash a stride-sampled subset of the pixel values into a non-negative seed."""
    n = pixels.shape[0]
    if n == 0:
        return 0
    step = max(1, n // min(SEED_SAMPLE_SIZE, n))

    hash_value = 0
    for r, g, b in pixels[::step].tolist():
        for channel in (r, g, b):
            hash_value = _to_int32((hash_value << 5) - hash_value + channel)
    return abs(hash_value)


def saturation_repetitions(r: int, g: int, b: int) -> int:
    """Duplication count (1-20) favouring vivid, mid-lightness pixels."""
    hsl = rgb_to_hsl(r, g, b)
    saturation = hsl.s

    if saturation > 75:
        boost = (saturation / 100) ** 1.5 * 12
    elif saturation > 50:
        boost = (saturation / 100) ** 1.6 * 7
    elif saturation > 25:
        boost = (saturation / 100) ** 1.3 * 2.5
    else:
        boost = 0.3

    if 20 <= hsl.l <= 80:
        boost *= 1.8

    return max(1, min(MAX_REPETITIONS, int(math.floor(boost + 0.5))))


def apply_saturation_bias(pixels: np.ndarray) -> np.ndarray:
    """
    Repeat each pixel according to its saturation/lightness curve.

    Args:
        pixels: (N, 3) uint8 array

    Returns:
        (M, 3) uint8 array with M >= N, order preserved
    """
    if pixels.shape[0] == 0:
        return pixels

    # Repetitions depend only on the color, so compute once per unique value
    unique, inverse = np.unique(pixels, axis=0, return_inverse=True)
    counts = np.array(
        [saturation_repetitions(int(r), int(g), int(b)) for r, g, b in unique],
        dtype=np.int64,
    )
    return np.repeat(pixels, counts[inverse.reshape(-1)], axis=0)


def _squared_distances(points: np.ndarray, centroid: np.ndarray) -> np.ndarray:
    diff = points - centroid
    return np.einsum("ij,ij->i", diff, diff)


def kmeans_plus_plus(points: np.ndarray, k: int, rng: SeededRandom) -> List[int]:
    """
    Choose k seed indices. The first is the midpoint of the array; each later
    seed is drawn with probability proportional to (min distance)^3.
    """
    n = points.shape[0]
    chosen = [n // 2]
    min_dist = np.sqrt(_squared_distances(points, points[chosen[0]]))

    for _ in range(1, k):
        weighted = min_dist ** 3
        cumulative = np.cumsum(weighted)
        threshold = rng.next() * float(cumulative[-1])
        selected = int(np.searchsorted(cumulative, threshold, side="left"))
        selected = min(selected, n - 1)
        chosen.append(selected)
        min_dist = np.minimum(min_dist, np.sqrt(_squared_distances(points, points[selected])))

    return chosen


def _assign(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Nearest centroid per point; ties go to the lowest centroid index."""
    assignments = np.empty(points.shape[0], dtype=np.int64)
    for start in range(0, points.shape[0], _ASSIGN_CHUNK):
        block = points[start:start + _ASSIGN_CHUNK]
        diff = block[:, None, :] - centroids[None, :, :]
        distances = np.einsum("ijk,ijk->ij", diff, diff)
        assignments[start:start + _ASSIGN_CHUNK] = np.argmin(distances, axis=1)
    return assignments


def cluster(
    pixels: np.ndarray,
    k: int,
    max_iterations: Optional[int] = None,
    epsilon: Optional[float] = None,
) -> List[WeightedColor]:
    """
    Weighted K-means++ clustering in OKLab.

    Args:
        pixels: (N, 3) uint8 pixel set, already saturation-biased if desired
        k: Number of clusters requested
        max_iterations: Iteration bound (defaults to config.KMEANS_MAX_ITERATIONS)
        epsilon: Centroid movement below which iteration stops

    Returns:
        Weighted colors sorted by weight descending; weights sum to 1.0
    """
    max_iterations = max_iterations or config.KMEANS_MAX_ITERATIONS
    epsilon = config.KMEANS_EPSILON if epsilon is None else epsilon

    n = pixels.shape[0]
    if n == 0 or k <= 0:
        return []
    if n <= k:
        return [
            WeightedColor(r=int(r), g=int(g), b=int(b), weight=1 / n)
            for r, g, b in pixels.tolist()
        ]

    points = rgb_array_to_oklab(pixels)
    rng = SeededRandom(generate_seed(pixels))

    seeds = kmeans_plus_plus(points, k, rng)
    centroids = points[seeds].copy()
    centroid_rgb = [tuple(int(v) for v in pixels[i]) for i in seeds]

    assignments = np.full(n, -1, dtype=np.int64)
    sizes = np.zeros(k, dtype=np.int64)
    last_change = math.inf
    iteration = 0

    while iteration < max_iterations:
        iteration += 1
        new_assignments = _assign(points, centroids)
        changes = int(np.count_nonzero(new_assignments != assignments))
        assignments = new_assignments
        sizes = np.bincount(assignments, minlength=k)

        if changes < n * config.KMEANS_CHANGE_THRESHOLD:
            break
        if changes >= last_change * 0.99:
            break
        last_change = changes

        max_shift = 0.0
        for j in np.nonzero(sizes)[0]:
            members = points[assignments == j]
            mean = members.mean(axis=0)
            shift = float(np.abs(mean - centroids[j]).sum())
            max_shift = max(max_shift, shift)

            centroids[j] = mean
            oklch = oklab_to_oklch(OklabColor(l=float(mean[0]), a=float(mean[1]), b=float(mean[2])))
            centroid_rgb[j] = oklch_to_rgb(oklch)

        if max_shift < epsilon:
            break

    logger.debug(f"K-means converged after {iteration} iterations (n={n}, k={k})")

    result = [
        WeightedColor(
            r=centroid_rgb[j][0],
            g=centroid_rgb[j][1],
            b=centroid_rgb[j][2],
            weight=int(sizes[j]) / n,
        )
        for j in range(k)
        if sizes[j] > 0
    ]
    return sort_by_weight(result)


def determine_optimal_color_count(
    foreground: np.ndarray,
    background: np.ndarray,
    requested: Optional[int] = None,
) -> int:
    """
    Palette size from the spread of the sampled pixels.

    Uses the mean OKLab distance to the sample centroid: flat images get
    around 5 colors, busy ones up to 15.
    """
    if requested:
        return requested

    total = foreground.shape[0] + background.shape[0]
    if total == 0:
        return 5
    step = max(1, total // min(VARIANCE_SAMPLE_SIZE, total))
    samples = np.concatenate([foreground[::step], background[::step]], axis=0)

    points = rgb_array_to_oklab(samples)
    spread = float(np.linalg.norm(points - points.mean(axis=0), axis=1).mean())

    if spread < 0.1:
        count = 5 + spread * 30
    elif spread < 0.3:
        count = 8 + (spread - 0.1) * 20
    else:
        count = 12 + min((spread - 0.3) * 10, 3)

    return max(5, min(15, int(math.floor(count + 0.5))))

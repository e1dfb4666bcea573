"""
Color records shared by the extraction stages.

Pixel sets travel between stages as ``(N, 3)`` uint8 numpy arrays; the records
below are the per-color values that come out of conversion and clustering.
"""
from dataclasses import dataclass, replace
from typing import Iterable, List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class PixelSample:
    """A raw sampled pixel, channels in [0, 255]."""
    r: int
    g: int
    b: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True)
class OklabColor:
    l: float
    a: float
    b: float


@dataclass(frozen=True)
class OklchColor:
    l: float  # Lightness [0, 1]
    c: float  # Chroma [0, ~0.4]
    h: float  # Hue degrees [0, 360)


@dataclass(frozen=True)
class HslColor:
    h: int  # Hue degrees [0, 360)
    s: int  # Saturation percent [0, 100]
    l: int  # Lightness percent [0, 100]


@dataclass(frozen=True)
class WeightedColor:
    """
    A cluster output color with its share of the pixel set.

    Weights within one set sum to 1.0 and are conserved by every merge.
    """
    r: int
    g: int
    b: int
    weight: float

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def with_weight(self, weight: float) -> "WeightedColor":
        return replace(self, weight=weight)


@dataclass(frozen=True, eq=False)
class SampledPixels:
    """PixelSampler output: kept pixels and the mask reading for each."""
    pixels: np.ndarray  # (N, 3) uint8
    is_foreground: np.ndarray  # (N,) bool

    def __len__(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True, eq=False)
class PixelSplit:
    """Foreground/background pixel sets handed to clustering."""
    foreground: np.ndarray
    background: np.ndarray
    used_luminance_split: bool

    @property
    def total(self) -> int:
        return int(self.foreground.shape[0] + self.background.shape[0])

    @property
    def foreground_ratio(self) -> float:
        return self.foreground.shape[0] / self.total if self.total else 0.0


def total_weight(colors: Iterable[WeightedColor]) -> float:
    """Sum of weights, used for the conservation checks."""
    return sum(color.weight for color in colors)


def sort_by_weight(colors: Sequence[WeightedColor]) -> List[WeightedColor]:
    """Stable descending sort by weight."""
    return sorted(colors, key=lambda color: -color.weight)

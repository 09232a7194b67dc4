# src/rasterstretch/stretch/nodata.py

"""
This module decides, per pixel, whether the pixel counts as data.

A rule set is an ordered collection of slabs. Each slab is either one
[min, max] interval shared by every band or one interval per band; a pixel
matches a slab when every band value lies inside its interval. A pixel is
no-data if it matches any slab, unless the rule set is inverted (valid-range
mode), in which case the verdict is flipped. NaN in any band is always no-data.

All values are float64 by the time they reach the classifier: the raster I/O
layer normalizes every native pixel type on read.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from rasterstretch.exceptions import ConfigurationError

log = logging.getLogger(__name__)

__all__ = [
    "Interval",
    "Slab",
    "NodataRules"
]

Interval = Tuple[float, float]

@dataclass(frozen=True)
class Slab:
    """
    One interval rule of a no-data rule set.

    Args:
        intervals: One (min, max) pair shared by all bands, or one per band.
    """
    intervals: Tuple[Interval, ...]

    def __post_init__(self):
        if not self.intervals:
            raise ConfigurationError("A no-data slab needs at least one interval")
        for lo, hi in self.intervals:
            if lo > hi:
                log.warning(f"No-data interval [{lo}, {hi}] is empty and will never match")

    @classmethod
    def from_sequence(cls, intervals: Sequence[Sequence[float]]) -> 'Slab':
        """Build a slab from nested sequences such as [[0, 0], [-inf, 10]]."""
        parsed = []
        for item in intervals:
            if len(item) != 2:
                raise ConfigurationError(
                    f"No-data intervals must be [min, max] pairs, got {list(item)}"
                )
            parsed.append((float(item[0]), float(item[1])))
        return cls(tuple(parsed))

    @property
    def is_shared(self) -> bool:
        return len(self.intervals) == 1

    def bounds(self, band_count: int) -> np.ndarray:
        """Per-band bounds as a (band_count, 2) array."""
        if self.is_shared:
            return np.tile(np.asarray(self.intervals, dtype=np.float64), (band_count, 1))
        if len(self.intervals) != band_count:
            raise ConfigurationError(
                f"No-data slab has {len(self.intervals)} intervals for {band_count} bands"
            )
        return np.asarray(self.intervals, dtype=np.float64)

@dataclass(frozen=True)
class NodataRules:
    """
    Ordered slab rules plus the global inversion flag.

    Args:
        slabs: Slabs OR-ed together.
        invert: Flip every slab verdict (the slabs then describe valid data).
    """
    slabs: Tuple[Slab, ...] = ()
    invert: bool = False

    @property
    def is_empty(self) -> bool:
        return len(self.slabs) == 0

    @classmethod
    def from_intervals(cls, intervals: Sequence[Sequence[float]]) -> 'NodataRules':
        """Rules where pixels inside the intervals are no-data."""
        if not intervals:
            return cls()
        return cls(slabs=(Slab.from_sequence(intervals),))

    @classmethod
    def from_valid_range(cls, intervals: Sequence[Sequence[float]]) -> 'NodataRules':
        """Rules where only pixels inside the intervals are data."""
        if not intervals:
            return cls()
        return cls(slabs=(Slab.from_sequence(intervals),), invert=True)

    @classmethod
    def from_dataset_nodata(cls, nodata: Sequence[Optional[float]]) -> 'NodataRules':
        """
        Rules from a dataset's intrinsic per-band no-data values.

        Bands without a declared value accept any value, so the slab only
        constrains the bands that declare one.
        """
        if all(v is None for v in nodata):
            return cls()

        intervals = []
        for v in nodata:
            if v is None:
                intervals.append((-math.inf, math.inf))
            else:
                intervals.append((float(v), float(v)))
        return cls(slabs=(Slab(tuple(intervals)),))

    @classmethod
    def from_config(cls, config, dataset_nodata: Sequence[Optional[float]]) -> 'NodataRules':
        """
        Build the run's rules from explicit no-data intervals, explicit valid
        ranges, or (when neither is given) the dataset's own no-data values.
        """
        if config.ndv and config.valid_range:
            raise ConfigurationError("No-data intervals and valid ranges cannot be used together")
        if config.ndv:
            return cls.from_intervals(config.ndv)
        if config.valid_range:
            return cls.from_valid_range(config.valid_range)
        return cls.from_dataset_nodata(dataset_nodata)

    def validate(self, band_count: int):
        """Reject slabs whose interval count is neither 1 nor band_count."""
        for i, slab in enumerate(self.slabs):
            if not slab.is_shared and len(slab.intervals) != band_count:
                raise ConfigurationError(
                    f"No-data slab {i} has {len(slab.intervals)} intervals; "
                    f"expected 1 or {band_count} (one per band)"
                )

    def mask(self, block: np.ndarray) -> np.ndarray:
        """
        Classify every pixel of a block.

        Args:
            block: (bands, n) float64 values.

        Returns:
            np.ndarray: (n,) bool, True where the pixel is no-data.
        """
        band_count, n = block.shape
        matched = np.zeros(n, dtype=bool)

        for slab in self.slabs:
            bounds = slab.bounds(band_count)
            inside = (block >= bounds[:, 0:1]) & (block <= bounds[:, 1:2])
            matched |= inside.all(axis=0)

        if self.invert:
            matched = ~matched

        matched |= np.isnan(block).any(axis=0)
        return matched

    def classify(self, values: Sequence[float]) -> bool:
        """True if the pixel with one value per band is no-data."""
        column = np.asarray(values, dtype=np.float64).reshape(-1, 1)
        return bool(self.mask(column)[0])

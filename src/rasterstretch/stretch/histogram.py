# src/rasterstretch/stretch/histogram.py

"""
This module builds exact per-band histograms by streaming raster blocks.

Counts are accumulated into one table per band, indexed by the band's Binning.
Mean and standard deviation are derived from the completed table (so their
precision is bounded by the bin width), while min and max are tracked from the
raw values during the pass.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, TextIO, Tuple, Dict, Any

import numpy as np
from numba import jit
from rasterio.windows import Window

from .binning import Binning
from .nodata import NodataRules

log = logging.getLogger(__name__)

__all__ = [
    "Histogram",
    "HistogramAccumulator",
    "compute_minmax",
    "compute_histograms",
    "write_histogram_report"
]

@dataclass
class Histogram:
    """
    Distribution of one band's data pixels.

    Attributes:
        binning: Mapping between values and count indices.
        counts: uint64 count per bin.
        data_count: Number of pixels classified as data.
        ndv_count: Number of pixels classified as no-data.
        min, max: Raw extremes of the data pixels (NaN and +inf excluded).
        mean, stddev: Derived from the bin table; NaN when data_count is 0.
    """
    binning: Binning
    counts: np.ndarray
    data_count: int = 0
    ndv_count: int = 0
    min: float = math.nan
    max: float = math.nan
    mean: float = math.nan
    stddev: float = math.nan

    @property
    def total_count(self) -> int:
        return self.data_count + self.ndv_count

    def bin_values(self) -> np.ndarray:
        return self.binning.bin_values()

    def summary(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "stddev": self.stddev,
            "data_count": self.data_count,
            "ndv_count": self.ndv_count
        }

@jit(nopython=True, cache=True)
def _count_bins(counts: np.ndarray, bins: np.ndarray):
    """
    Increment counts[bins[i]] for every i.

    Explicit loop for numba; the count table is modified in place.
    """
    for i in range(len(bins)):
        counts[bins[i]] += np.uint64(1)

def _tracked_extremes(
    values: np.ndarray,
    finite_only: bool = False
) -> Optional[Tuple[float, float]]:
    """
    (min, max) over values, ignoring NaN and +inf. None if nothing is left.

    With finite_only, -inf is ignored as well.
    """
    if finite_only:
        tracked = values[np.isfinite(values)]
    else:
        tracked = values[~np.isnan(values) & (values != np.inf)]
    if tracked.size == 0:
        return None
    return float(tracked.min()), float(tracked.max())

class _ExtremesTracker:
    """Running per-band (min, max) across blocks."""

    def __init__(self, band_count: int, finite_only: bool = False):
        self.lo = [math.nan] * band_count
        self.hi = [math.nan] * band_count
        self._seen = [False] * band_count
        self._finite_only = finite_only

    def update(self, band_idx: int, values: np.ndarray):
        extremes = _tracked_extremes(values, self._finite_only)
        if extremes is None:
            return
        lo, hi = extremes
        if not self._seen[band_idx]:
            self.lo[band_idx], self.hi[band_idx] = lo, hi
            self._seen[band_idx] = True
        else:
            self.lo[band_idx] = min(self.lo[band_idx], lo)
            self.hi[band_idx] = max(self.hi[band_idx], hi)

class HistogramAccumulator:
    """
    Accumulates one histogram per band over a sequence of blocks.

    Args:
        binnings: One Binning per band, in band order.
    """

    def __init__(self, binnings: Sequence[Binning]):
        self.binnings = list(binnings)
        self._counts = [np.zeros(b.bin_count, dtype=np.uint64) for b in self.binnings]
        self._ndv_counts = [0] * len(self.binnings)
        self._extremes = _ExtremesTracker(len(self.binnings))

    @property
    def band_count(self) -> int:
        return len(self.binnings)

    def update(self, block: np.ndarray, mask: np.ndarray):
        """
        Add one block.

        Args:
            block: (bands, n) float64 pixel values.
            mask: (n,) bool no-data mask for the block.
        """
        if block.shape[0] != self.band_count:
            raise ValueError(
                f"Block has {block.shape[0]} bands, accumulator expects {self.band_count}"
            )

        valid = ~mask
        ndv_in_block = int(mask.sum())

        for band_idx, binning in enumerate(self.binnings):
            self._ndv_counts[band_idx] += ndv_in_block
            values = block[band_idx, valid]
            if values.size == 0:
                continue
            _count_bins(self._counts[band_idx], binning.to_bins(values))
            self._extremes.update(band_idx, values)

    def finalize(self) -> List[Histogram]:
        """Derive summary statistics from the completed count tables."""
        histograms = []
        for band_idx, binning in enumerate(self.binnings):
            counts = self._counts[band_idx]
            hg = Histogram(
                binning=binning,
                counts=counts,
                ndv_count=self._ndv_counts[band_idx],
                min=self._extremes.lo[band_idx],
                max=self._extremes.hi[band_idx]
            )
            hg.data_count = int(counts.sum())

            if hg.data_count > 0:
                weights = counts.astype(np.float64)
                values = binning.bin_values()
                hg.mean = float(np.dot(values, weights) / hg.data_count)
                variance = float(np.dot((values - hg.mean) ** 2, weights) / hg.data_count)
                hg.stddev = math.sqrt(variance)

            histograms.append(hg)
        return histograms

def compute_minmax(
    blocks: Iterable[Tuple[Window, np.ndarray]],
    rules: NodataRules,
    band_count: int
) -> List[Tuple[float, float]]:
    """
    Preliminary pass collecting each band's finite (min, max) over data pixels.

    Infinities are left out so the range can size a binning; they still
    land on the end bins. Bands with no finite data pixels report (nan, nan).
    """
    tracker = _ExtremesTracker(band_count, finite_only=True)
    for window, block in blocks:
        valid = ~rules.mask(block)
        for band_idx in range(band_count):
            tracker.update(band_idx, block[band_idx, valid])
    return list(zip(tracker.lo, tracker.hi))

def compute_histograms(
    blocks: Iterable[Tuple[Window, np.ndarray]],
    rules: NodataRules,
    binnings: Sequence[Binning]
) -> List[Histogram]:
    """Full accumulation pass over (window, block) pairs."""
    accumulator = HistogramAccumulator(binnings)
    for window, block in blocks:
        log.debug(f"Accumulating block {window}")
        accumulator.update(block, rules.mask(block))
    return accumulator.finalize()

def write_histogram_report(histograms: Sequence[Histogram], stream: TextIO):
    """Write per-band statistics followed by every bin's value and count."""
    for band_idx, hg in enumerate(histograms, start=1):
        stream.write(
            f"band {band_idx}: min={hg.min:f}, max={hg.max:f}, mean={hg.mean:f}, "
            f"stddev={hg.stddev:f}, valid_count={hg.data_count}, ndv_count={hg.ndv_count}\n"
        )
        for i, (value, count) in enumerate(zip(hg.bin_values(), hg.counts)):
            stream.write(f"bin {i}: val={value:f} cnt={int(count)}\n")

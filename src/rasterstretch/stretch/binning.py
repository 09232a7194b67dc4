# src/rasterstretch/stretch/binning.py

"""
This module maps real pixel values to bounded integer bins and back.

The same Binning is used to build a band's histogram and, for lookup-table
stretches, to index the table during the output pass.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from rasterstretch.exceptions import BinningError

log = logging.getLogger(__name__)

__all__ = [
    "Binning",
    "DEFAULT_BIN_COUNT",
    "needs_observed_range"
]

DEFAULT_BIN_COUNT = 10_000_000

# dtype -> (bin_count, offset) for integral types binned one value per bin
_INTEGRAL_BINNINGS = {
    np.dtype("uint8"): (256, 0.0),
    np.dtype("int8"): (256, -128.0),
    np.dtype("uint16"): (65536, 0.0),
    np.dtype("int16"): (65536, -32768.0),
}

def needs_observed_range(dtype: Union[str, np.dtype]) -> bool:
    """True if bands of this dtype are binned over their observed min/max."""
    return np.dtype(dtype) not in _INTEGRAL_BINNINGS

@dataclass(frozen=True)
class Binning:
    """
    Affine mapping between values and bin indices.

    Args:
        bin_count: Number of bins (>= 1).
        offset: Value represented by bin 0.
        scale: Width of one bin (> 0).
    """
    bin_count: int
    offset: float
    scale: float

    def __post_init__(self):
        if self.bin_count < 1:
            raise ValueError(f"bin_count must be >= 1, got {self.bin_count}")
        if not (self.scale > 0 and math.isfinite(self.scale)):
            raise ValueError(f"scale must be finite and > 0, got {self.scale}")
        if not math.isfinite(self.offset):
            raise ValueError(f"offset must be finite, got {self.offset}")

    @classmethod
    def from_range(
        cls,
        lo: float,
        hi: float,
        bin_count: int = DEFAULT_BIN_COUNT
    ) -> 'Binning':
        """
        Spread bin_count bins evenly over [lo, hi].

        A zero-width or non-finite range falls back to unit-width bins
        starting at whichever bound is finite (or 0).
        """
        if math.isfinite(lo) and math.isfinite(hi) and hi > lo and bin_count > 1:
            scale = (hi - lo) / (bin_count - 1)
            if scale > 0:
                return cls(bin_count=bin_count, offset=float(lo), scale=scale)

        if math.isfinite(lo):
            offset = float(lo)
        elif math.isfinite(hi):
            offset = float(hi)
        else:
            offset = 0.0

        log.debug(f"Degenerate value range [{lo}, {hi}]; using unit bin width at {offset}")
        return cls(bin_count=bin_count, offset=offset, scale=1.0)

    @classmethod
    def for_dtype(
        cls,
        dtype: Union[str, np.dtype],
        value_range: Optional[Tuple[float, float]] = None,
        bin_count: int = DEFAULT_BIN_COUNT
    ) -> 'Binning':
        """
        Select the binning for a band of the given native pixel type.

        8 and 16-bit integral types get one bin per representable value.
        Every other type needs the band's observed (min, max) in value_range.
        """
        dtype = np.dtype(dtype)
        if dtype in _INTEGRAL_BINNINGS:
            count, offset = _INTEGRAL_BINNINGS[dtype]
            return cls(bin_count=count, offset=offset, scale=1.0)

        if value_range is None:
            raise ValueError(f"Bands of type {dtype} need an observed value range to be binned")
        return cls.from_range(value_range[0], value_range[1], bin_count=bin_count)

    @property
    def last_bin(self) -> int:
        return self.bin_count - 1

    def to_bin(self, value: float) -> int:
        """Bin index for a single value. NaN raises BinningError."""
        if math.isnan(value):
            raise BinningError("NaN reached the binning step; it should have been classified as no-data")
        if value == -math.inf:
            return 0
        if value == math.inf:
            return self.last_bin

        idx = math.floor((value - self.offset) / self.scale + 0.5)
        return min(max(idx, 0), self.last_bin)

    def to_bins(self, values: np.ndarray) -> np.ndarray:
        """Vectorized to_bin. Returns an int64 array shaped like values."""
        values = np.asarray(values, dtype=np.float64)
        if np.isnan(values).any():
            raise BinningError("NaN reached the binning step; it should have been classified as no-data")

        with np.errstate(over="ignore", invalid="ignore"):
            idx = np.floor((values - self.offset) / self.scale + 0.5)
        np.clip(idx, 0, self.last_bin, out=idx)
        return idx.astype(np.int64)

    def from_bin(self, idx: int) -> float:
        return idx * self.scale + self.offset

    def bin_values(self) -> np.ndarray:
        """Value represented by every bin, in bin order."""
        return np.arange(self.bin_count, dtype=np.float64) * self.scale + self.offset

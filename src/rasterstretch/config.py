# src/rasterstretch/config.py

"""
This module defines the immutable run configuration.

A StretchConfig is built once at startup and passed explicitly to every
component that needs it. Validation happens at construction, so a config
that exists is a config that can run.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from rasterstretch.exceptions import ConfigurationError

log = logging.getLogger(__name__)

__all__ = [
    "OUTPUT_RANGE",
    "DEFAULT_OUTPUT_FORMAT",
    "StretchPolicy",
    "StretchConfig"
]

OUTPUT_RANGE = 256
DEFAULT_OUTPUT_FORMAT = "GTiff"

class StretchPolicy(Enum):
    """
    How stretch parameters are derived from the histograms.

    Options:
        LINEAR: Normalize each band to a target mean and standard deviation.
        PERCENTILE: Map a cumulative-percentile window onto the output range.
        HISTEQ: Equalize toward a discretized Gaussian (flat when variance is 0).
        NONE: Identity; values are cast and clamped to the output range.
    """
    LINEAR = "linear"
    PERCENTILE = "percentile"
    HISTEQ = "histeq"
    NONE = "none"

def _as_intervals(value) -> Tuple[Tuple[float, float], ...]:
    if not value:
        return ()
    intervals = []
    for item in value:
        if len(item) != 2:
            raise ConfigurationError(f"Intervals must be [min, max] pairs, got {list(item)}")
        intervals.append((float(item[0]), float(item[1])))
    return tuple(intervals)

def _as_pair(value, name: str) -> Optional[Tuple[float, float]]:
    if value is None:
        return None
    if len(value) != 2:
        raise ConfigurationError(f"{name} takes exactly two numbers, got {list(value)}")
    return float(value[0]), float(value[1])

@dataclass(frozen=True)
class StretchConfig:
    """
    Configuration for one stretch run.

    Exactly one of linear_stretch, percentile_range, histeq or dump_histogram
    must be set.

    Args:
        src_path: Source raster.
        dst_path: Destination raster (not used in dump mode).
        output_format: rasterio/GDAL driver name for the destination.
        ndv: No-data intervals, one shared or one per band.
        valid_range: Valid-data intervals, one shared or one per band.
        out_ndv: Output byte written for no-data pixels.
        linear_stretch: (target_mean, target_stddev).
        percentile_range: (from_percentile, to_percentile) in [0, 1].
        histeq: Variance of the Gaussian target (0 for a flat target).
        dump_histogram: Only compute and report the histograms.
    """
    src_path: Optional[Union[str, Path]] = None
    dst_path: Optional[Union[str, Path]] = None
    output_format: str = DEFAULT_OUTPUT_FORMAT
    ndv: Tuple[Tuple[float, float], ...] = ()
    valid_range: Tuple[Tuple[float, float], ...] = ()
    out_ndv: int = 0
    linear_stretch: Optional[Tuple[float, float]] = None
    percentile_range: Optional[Tuple[float, float]] = None
    histeq: Optional[float] = None
    dump_histogram: bool = False

    def __post_init__(self):
        # Normalize container types before validating
        object.__setattr__(self, "src_path", Path(self.src_path) if self.src_path else None)
        object.__setattr__(self, "dst_path", Path(self.dst_path) if self.dst_path else None)
        object.__setattr__(self, "output_format", self.output_format or DEFAULT_OUTPUT_FORMAT)
        object.__setattr__(self, "ndv", _as_intervals(self.ndv))
        object.__setattr__(self, "valid_range", _as_intervals(self.valid_range))
        object.__setattr__(self, "linear_stretch", _as_pair(self.linear_stretch, "linear_stretch"))
        object.__setattr__(self, "percentile_range", _as_pair(self.percentile_range, "percentile_range"))
        if self.histeq is not None:
            object.__setattr__(self, "histeq", float(self.histeq))
        self._validate()

    def _validate(self):
        modes = [
            self.linear_stretch is not None,
            self.percentile_range is not None,
            self.histeq is not None,
            self.dump_histogram
        ]
        if sum(modes) != 1:
            raise ConfigurationError(
                "Exactly one mode must be chosen: linear stretch, percentile range, "
                f"histogram equalization or histogram dump (got {sum(modes)})"
            )

        if self.src_path is None:
            raise ConfigurationError("Missing source path")
        if self.dst_path is None and not self.dump_histogram:
            raise ConfigurationError("Missing destination path")

        if self.linear_stretch is not None:
            target_mean, target_stddev = self.linear_stretch
            if not all(math.isfinite(v) and v >= 0 for v in self.linear_stretch):
                raise ConfigurationError(
                    f"Linear stretch targets must be finite and >= 0, got mean={target_mean}, stddev={target_stddev}"
                )

        if self.percentile_range is not None:
            lo, hi = self.percentile_range
            if not (math.isfinite(lo) and math.isfinite(hi) and 0 <= lo < hi <= 1):
                raise ConfigurationError(
                    f"Percentile range must satisfy 0 <= from < to <= 1, got [{lo}, {hi}]"
                )

        if self.histeq is not None and not (math.isfinite(self.histeq) and self.histeq >= 0):
            raise ConfigurationError(f"Histogram equalization variance must be finite and >= 0, got {self.histeq}")

        if self.ndv and self.valid_range:
            raise ConfigurationError("No-data intervals and valid ranges cannot be used together")

        if not (0 <= self.out_ndv < OUTPUT_RANGE):
            raise ConfigurationError(f"Output no-data value must be in [0, {OUTPUT_RANGE - 1}], got {self.out_ndv}")

    @property
    def policy(self) -> StretchPolicy:
        if self.linear_stretch is not None:
            return StretchPolicy.LINEAR
        if self.percentile_range is not None:
            return StretchPolicy.PERCENTILE
        if self.histeq is not None:
            return StretchPolicy.HISTEQ
        return StretchPolicy.NONE

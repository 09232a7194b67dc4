# src/rasterstretch/stretch/planner.py

"""
This module derives per-band stretch parameters from histograms.

A plan is either linear (scale, offset), applied per pixel as
trunc((value - offset) * scale), or a lookup table indexed by source bin.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np

from rasterstretch.config import OUTPUT_RANGE, StretchConfig, StretchPolicy
from rasterstretch.exceptions import StretchError

from .histogram import Histogram

log = logging.getLogger(__name__)

__all__ = [
    "LinearPlan",
    "TablePlan",
    "StretchPlan",
    "identity_plan",
    "plan_from_deviation",
    "plan_from_percentile",
    "plan_from_equalization",
    "gaussian_target",
    "avoid_nodata_collision",
    "plan_stretch"
]

@dataclass(frozen=True)
class LinearPlan:
    """out = trunc((value - offset) * scale), clamped to the output range."""
    scale: float
    offset: float

@dataclass(frozen=True, eq=False)
class TablePlan:
    """
    Lookup table with one output byte per source bin.

    Args:
        lookup: uint8 array, indexed by Binning.to_bin(value).
    """
    lookup: np.ndarray

StretchPlan = Union[LinearPlan, TablePlan]

def identity_plan() -> LinearPlan:
    return LinearPlan(scale=1.0, offset=0.0)

def plan_from_deviation(
    histogram: Histogram,
    target_mean: float,
    target_stddev: float
) -> LinearPlan:
    """
    Linear stretch that moves the band to target_mean / target_stddev.

    A band with zero spread (or a target_stddev of 0) gets scale 0, so every
    data pixel lands on level 0 whatever target_mean is: a linear plan has no
    additive output term. The collision bump then moves that level off
    out_ndv (to 1 for the default out_ndv of 0).
    """
    if histogram.data_count == 0:
        log.warning("Band has no data pixels; deviation stretch falls back to a flat plan")
        return LinearPlan(scale=0.0, offset=0.0)

    if histogram.stddev == 0:
        return LinearPlan(scale=0.0, offset=histogram.mean)

    scale = target_stddev / histogram.stddev
    if scale == 0:
        return LinearPlan(scale=0.0, offset=histogram.mean)
    return LinearPlan(scale=scale, offset=histogram.mean - target_mean / scale)

def plan_from_percentile(
    histogram: Histogram,
    from_percentile: float,
    to_percentile: float,
    output_range: int = OUTPUT_RANGE
) -> LinearPlan:
    """
    Linear stretch mapping a cumulative-percentile window onto [0, output_range - 1].

    from_idx is the last bin whose cumulative count before the bin does not
    exceed data_count * from_percentile. to_idx is the last bin whose cumulative
    count through the bin does not exceed data_count * to_percentile; the scan
    stops at the first bin overshooting that limit. A collapsed or inverted
    window falls back to the full bin range.
    """
    counts = histogram.counts
    bin_count = histogram.binning.bin_count
    start_count = int(histogram.data_count * from_percentile)
    end_count = int(histogram.data_count * to_percentile)

    cum_through = np.cumsum(counts)
    cum_before = cum_through - counts

    overshoot = np.flatnonzero(cum_through > end_count)
    if overshoot.size:
        last_scanned = int(overshoot[0])
        to_idx = last_scanned - 1
    else:
        last_scanned = bin_count - 1
        to_idx = bin_count - 1

    from_candidates = np.flatnonzero(cum_before[:last_scanned + 1] <= start_count)
    from_idx = int(from_candidates[-1]) if from_candidates.size else -1

    if from_idx < 0 or to_idx < 0:
        raise StretchError(
            f"Could not locate the percentile window [{from_percentile}, {to_percentile}] "
            f"(from_idx={from_idx}, to_idx={to_idx})"
        )

    if from_idx >= to_idx:
        log.debug(f"Degenerate percentile window ({from_idx}, {to_idx}); using the full bin range")
        from_idx, to_idx = 0, bin_count - 1

    from_val = histogram.binning.from_bin(from_idx)
    to_val = histogram.binning.from_bin(to_idx)
    span = to_val - from_val

    scale = (output_range - 1) / span if span > 0 else 0.0
    return LinearPlan(scale=scale, offset=from_val)

def gaussian_target(variance: float, level_count: int = OUTPUT_RANGE) -> np.ndarray:
    """
    Discretized Gaussian centered on level_count // 2, normalized to sum to 1.
    A variance of 0 yields a flat target.
    """
    if variance == 0:
        target = np.ones(level_count, dtype=np.float64)
    else:
        x = (np.arange(level_count, dtype=np.float64) - level_count // 2) / variance
        target = np.exp(-x * x)
    return target / target.sum()

def plan_from_equalization(
    histogram: Histogram,
    variance: float,
    output_range: int = OUTPUT_RANGE
) -> TablePlan:
    """
    Inverse-CDF match of the band's histogram onto a Gaussian target.

    Entry i is the smallest output level whose cumulative target mass is not
    less than the source's cumulative mass through bin i.
    """
    target_cdf = np.cumsum(gaussian_target(variance, output_range))

    if histogram.data_count == 0:
        return TablePlan(lookup=np.zeros(histogram.binning.bin_count, dtype=np.uint8))

    source_cdf = np.cumsum(histogram.counts) / float(histogram.data_count)
    levels = np.searchsorted(target_cdf, source_cdf, side="left")
    np.clip(levels, 0, output_range - 1, out=levels)
    return TablePlan(lookup=levels.astype(np.uint8))

def avoid_nodata_collision(
    values: np.ndarray,
    out_ndv: int,
    output_range: int = OUTPUT_RANGE
) -> np.ndarray:
    """
    Move data bytes equal to out_ndv one level toward the middle of the range.
    Modifies values in place and returns it.
    """
    replacement = out_ndv + 1 if out_ndv < output_range // 2 else out_ndv - 1
    values[values == out_ndv] = replacement
    return values

def plan_stretch(
    histograms: Sequence[Histogram],
    config: StretchConfig
) -> List[StretchPlan]:
    """One plan per band for the policy selected in config."""
    policy = config.policy

    if policy == StretchPolicy.LINEAR:
        target_mean, target_stddev = config.linear_stretch
        plans = [plan_from_deviation(hg, target_mean, target_stddev) for hg in histograms]

    elif policy == StretchPolicy.PERCENTILE:
        from_p, to_p = config.percentile_range
        plans = [plan_from_percentile(hg, from_p, to_p) for hg in histograms]

    elif policy == StretchPolicy.HISTEQ:
        plans = []
        for hg in histograms:
            table = plan_from_equalization(hg, config.histeq)
            avoid_nodata_collision(table.lookup, config.out_ndv)
            plans.append(table)

    else:
        log.warning("No transformation was specified; input values are cast to 8 bits")
        plans = [identity_plan() for _ in histograms]

    for band_idx, plan in enumerate(plans, start=1):
        if isinstance(plan, LinearPlan):
            log.info(f"band {band_idx}: linear scale={plan.scale:g}, offset={plan.offset:g}")
        else:
            log.info(f"band {band_idx}: lookup table with {plan.lookup.size} entries")

    return plans

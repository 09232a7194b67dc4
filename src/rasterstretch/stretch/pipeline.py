# src/rasterstretch/stretch/pipeline.py

"""
This module orchestrates a complete stretch run.

Steps:
    1. Open the source and build the no-data rules.
    2. Choose one Binning per band (with a min/max pass for non-integral types).
    3. Accumulate the histograms.
    4. Either report them (dump mode) or plan the stretch and stream the
       output raster block by block.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO

from rasterstretch.config import StretchConfig
from rasterstretch.exceptions import RasterIOError
from rasterstretch.raster.io import BlockReader, available_drivers, create_destination, open_source
from rasterstretch.raster.resources import ensure_histogram_memory

from .apply import apply_stretch
from .binning import Binning, needs_observed_range
from .histogram import Histogram, compute_histograms, compute_minmax, write_histogram_report
from .nodata import NodataRules
from .planner import StretchPlan, plan_stretch

log = logging.getLogger(__name__)

__all__ = [
    "StretchResult",
    "select_binnings",
    "run"
]

@dataclass
class StretchResult:
    """
    Outcome of a run.

    Attributes:
        histograms: One histogram per band.
        plans: One plan per band (None in dump mode).
        output_path: Written raster (None in dump mode).
    """
    histograms: List[Histogram]
    plans: Optional[List[StretchPlan]] = None
    output_path: Optional[Path] = None

def select_binnings(reader: BlockReader, rules: NodataRules) -> List[Binning]:
    """
    One Binning per band from its native type.

    Non-integral bands are binned over their observed range, which costs one
    extra pass over the raster (shared by all such bands).
    """
    info = reader.info
    minmax = None
    binnings = []

    for band_idx, dtype in enumerate(info.dtypes):
        if needs_observed_range(dtype):
            if minmax is None:
                log.info("Computing min/max...")
                minmax = compute_minmax(reader.iter_blocks(), rules, info.count)
            binning = Binning.for_dtype(dtype, value_range=minmax[band_idx])
        else:
            binning = Binning.for_dtype(dtype)

        log.debug(
            f"band {band_idx + 1} ({dtype}): {binning.bin_count} bins, "
            f"offset={binning.offset:g}, scale={binning.scale:g}"
        )
        binnings.append(binning)

    return binnings

def run(config: StretchConfig, report_stream: Optional[TextIO] = None) -> StretchResult:
    """
    Execute the run described by config.

    Args:
        config: Validated run configuration.
        report_stream: Where dump mode writes the histogram report.

    Returns:
        StretchResult: Histograms, plans and output path.
    """
    if not config.dump_histogram and config.output_format not in available_drivers():
        raise RasterIOError(f"Output driver '{config.output_format}' is not available")

    with open_source(config.src_path) as reader:
        info = reader.info
        log.info(f"Input size is {info.width}, {info.height}, {info.count}")

        rules = NodataRules.from_config(config, info.nodata)
        rules.validate(info.count)

        binnings = select_binnings(reader, rules)
        ensure_histogram_memory([b.bin_count for b in binnings])

        log.info("Computing histogram...")
        histograms = compute_histograms(reader.iter_blocks(), rules, binnings)
        for band_idx, hg in enumerate(histograms, start=1):
            log.info(
                f"band {band_idx}: min={hg.min:f}, max={hg.max:f}, mean={hg.mean:f}, "
                f"stddev={hg.stddev:f}, valid_count={hg.data_count}, ndv_count={hg.ndv_count}"
            )

        if config.dump_histogram:
            if report_stream is not None:
                write_histogram_report(histograms, report_stream)
            return StretchResult(histograms=histograms)

        plans = plan_stretch(histograms, config)
        out_nodata = None if rules.is_empty else config.out_ndv

        with create_destination(config.dst_path, info, config.output_format, nodata=out_nodata) as writer:
            log.info("Computing output...")
            apply_stretch(reader.iter_blocks(), rules, plans, binnings, config.out_ndv, writer)

    log.info(f"Successfully wrote {config.dst_path}")
    return StretchResult(histograms=histograms, plans=plans, output_path=config.dst_path)

# src/rasterstretch/stretch/apply.py

"""
This module performs the output pass: every pixel is classified again and
mapped to an output byte with its band's stretch plan.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple

import numexpr as ne
import numpy as np
from rasterio.windows import Window

from rasterstretch.config import OUTPUT_RANGE

from .binning import Binning
from .nodata import NodataRules
from .planner import LinearPlan, StretchPlan, avoid_nodata_collision

log = logging.getLogger(__name__)

__all__ = [
    "apply_linear",
    "apply_table",
    "apply_block",
    "apply_stretch"
]

def apply_linear(
    values: np.ndarray,
    plan: LinearPlan,
    output_range: int = OUTPUT_RANGE
) -> np.ndarray:
    """
    Map values with trunc((v - offset) * scale), clamped to [0, output_range - 1].

    Non-finite intermediates clamp as well: +inf to the top level, -inf and
    NaN (inf * 0) to 0.
    """
    if values.size == 0:
        return np.empty(0, dtype=np.uint8)

    result = ne.evaluate(
        "(v - offset) * scale",
        local_dict={"v": values, "offset": plan.offset, "scale": plan.scale}
    )
    result[np.isnan(result)] = 0.0
    np.clip(result, 0, output_range - 1, out=result)
    return np.trunc(result).astype(np.uint8)

def apply_table(
    values: np.ndarray,
    lookup: np.ndarray,
    binning: Binning
) -> np.ndarray:
    return lookup[binning.to_bins(values)]

def apply_block(
    block: np.ndarray,
    mask: np.ndarray,
    plans: Sequence[StretchPlan],
    binnings: Sequence[Binning],
    out_ndv: int,
    out: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Stretch one block.

    Args:
        block: (bands, n) float64 pixel values.
        mask: (n,) bool no-data mask.
        plans: One plan per band.
        binnings: One binning per band (used by table plans).
        out_ndv: Byte written for no-data pixels; never produced for data pixels.
        out: Optional (bands, n) uint8 buffer to fill.

    Returns:
        np.ndarray: (bands, n) uint8 output block.
    """
    band_count, n = block.shape
    if out is None:
        out = np.empty((band_count, n), dtype=np.uint8)

    valid = ~mask
    for band_idx in range(band_count):
        plan = plans[band_idx]
        values = block[band_idx, valid]

        if isinstance(plan, LinearPlan):
            stretched = apply_linear(values, plan)
        else:
            stretched = apply_table(values, plan.lookup, binnings[band_idx])

        avoid_nodata_collision(stretched, out_ndv)

        band_out = out[band_idx]
        band_out[valid] = stretched
        band_out[mask] = out_ndv

    return out

def apply_stretch(
    blocks: Iterable[Tuple[Window, np.ndarray]],
    rules: NodataRules,
    plans: Sequence[StretchPlan],
    binnings: Sequence[Binning],
    out_ndv: int,
    writer
):
    """
    Stream (window, block) pairs through apply_block into writer.

    The output buffer is allocated once and reused; it only grows if a
    block is larger than any seen before.
    """
    buffer = None
    for window, block in blocks:
        band_count, n = block.shape
        if buffer is None or buffer.shape[1] < n:
            buffer = np.empty((band_count, n), dtype=np.uint8)

        out = buffer[:, :n]
        apply_block(block, rules.mask(block), plans, binnings, out_ndv, out=out)
        log.debug(f"Writing block {window}")
        writer.write_block(window, out)

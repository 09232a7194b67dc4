# src/rasterstretch/raster/resources.py

"""
This module performs static analysis on raster files and system hardware.

It checks two key aspects before processing:
- Internal block/tile structure of the raster (Block Structure Analysis)
- Memory safety for allocating the per-band histogram tables (Memory Estimation)
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import psutil

from rasterstretch.exceptions import ResourceError

log = logging.getLogger(__name__)

__all__ = [
    "BlockStructure",
    "MemoryEstimate",
    "analyze_structure",
    "estimate_histogram_memory",
    "ensure_histogram_memory"
]

# count table + float64 weights + bin values while deriving statistics
DEFAULT_SAFETY_FACTOR = 3.0
MIN_FREE_GB = 0.25

@dataclass(frozen=True)
class BlockStructure:
    """
    Analysis of a raster's internal storage layout.

    Args:
        is_tiled: True if raster has native tiles (not full-width strips)
        is_striped: True if raster is structured as strips (full-width blocks)
        block_shape: Tuple of (block_height, block_width) in pixels
    """
    is_tiled: bool
    is_striped: bool
    block_shape: Tuple[int, int]

    @property
    def tiff_compatible_tiles(self) -> bool:
        """True if the block shape can be reused as GeoTIFF tiles (multiples of 16)."""
        block_h, block_w = self.block_shape
        return self.is_tiled and block_h % 16 == 0 and block_w % 16 == 0

@dataclass(frozen=True)
class MemoryEstimate:
    """
    Estimation of memory requirements and safety for the histogram tables.

    Args:
        total_required_bytes: Total bytes required (with overhead)
        available_system_bytes: Currently available system memory in bytes
        is_safe: Boolean indicating if allocating is considered safe
        reason: Explanation for the safety assessment
    """
    total_required_bytes: int
    available_system_bytes: int
    is_safe: bool
    reason: str

def analyze_structure(block_shape: Tuple[int, int], width: int) -> BlockStructure:
    """
    Determines if the raster is physically tiled or striped.

    Args:
        block_shape: (block_height, block_width) of band 1.
        width: Raster width in pixels.

    Returns:
        BlockStructure: Contains flags for tiled/striped and block shape.
    """
    block_h, block_w = block_shape

    # A file is considered "striped" if it:
    #   1) has block shapes that are full width
    #   2) is structured as a single row of pixels
    is_striped = (block_w == width) or (block_h == 1)

    return BlockStructure(
        is_tiled=not is_striped,
        is_striped=is_striped,
        block_shape=(block_h, block_w)
    )

def estimate_histogram_memory(
    bin_counts: Sequence[int],
    safety_factor: float = DEFAULT_SAFETY_FACTOR,
    min_free_gb: float = MIN_FREE_GB
) -> MemoryEstimate:
    """
    Checks if the count tables for the given bin counts fit in RAM.

    Args:
        bin_counts: Number of bins of each band's histogram.
        safety_factor: Multiplier for the temporaries used while deriving statistics.
        min_free_gb: Minimum free GB to leave available after allocating.

    Returns:
        MemoryEstimate: Contains total required bytes, available bytes, safety boolean, and reason.
    """
    itemsize = np.dtype(np.uint64).itemsize
    raw_bytes = sum(bin_counts) * itemsize
    total_required = int(raw_bytes * safety_factor)

    mem = psutil.virtual_memory()
    min_free_bytes = int(min_free_gb * (1024**3))
    is_safe = (total_required + min_free_bytes) <= mem.available

    reason = f"Req: {total_required/1e9:.2f}GB, Avail: {mem.available/1e9:.2f}GB"

    return MemoryEstimate(total_required, mem.available, is_safe, reason)

def ensure_histogram_memory(bin_counts: Sequence[int]) -> MemoryEstimate:
    """Raise ResourceError if the histogram tables would not fit in memory."""
    estimate = estimate_histogram_memory(bin_counts)
    if not estimate.is_safe:
        log.error(f"Histogram tables do not fit in memory: {estimate.reason}")
        raise ResourceError(f"Not enough memory for histogram tables ({estimate.reason})")

    log.debug(f"Histogram memory check passed: {estimate.reason}")
    return estimate

# src/rasterstretch/raster/__init__.py
#
# Copyright (c) The rasterstretch project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The raster subpackage provides block-wise raster I/O on top of rasterio,
along with block structure and memory analysis.
"""

# I/O operations
from .io import (
    RasterInfo,
    BlockReader,
    BlockWriter,
    open_source,
    create_destination,
    available_drivers
)

# Resource management
from .resources import (
    BlockStructure,
    MemoryEstimate,
    analyze_structure,
    estimate_histogram_memory,
    ensure_histogram_memory
)

# Shared utilities
from .utils import (
    resolve_envi_path,
    is_complex_dtype,
    is_supported_dtype
)

__all__ = [
    # I/O
    "RasterInfo",
    "BlockReader",
    "BlockWriter",
    "open_source",
    "create_destination",
    "available_drivers",

    # Resources
    "BlockStructure",
    "MemoryEstimate",
    "analyze_structure",
    "estimate_histogram_memory",
    "ensure_histogram_memory",

    # Utils
    "resolve_envi_path",
    "is_complex_dtype",
    "is_supported_dtype"
]

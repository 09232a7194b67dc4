# src/rasterstretch/__init__.py
#
# Copyright (c) The rasterstretch project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
rasterstretch rescales multi-band rasters of any pixel type to 8 bits
using histogram-derived stretches, keeping no-data out of the statistics
and out of the output range.
"""

from .exceptions import (
    StretchError,
    ConfigurationError,
    BinningError,
    RasterError,
    RasterIOError,
    ResourceError
)
from .config import (
    OUTPUT_RANGE,
    StretchPolicy,
    StretchConfig
)
from . import raster
from . import stretch
from .stretch import run

__version__ = "0.1.0"

__all__ = [
    "StretchError",
    "ConfigurationError",
    "BinningError",
    "RasterError",
    "RasterIOError",
    "ResourceError",
    "OUTPUT_RANGE",
    "StretchPolicy",
    "StretchConfig",
    "raster",
    "stretch",
    "run"
]

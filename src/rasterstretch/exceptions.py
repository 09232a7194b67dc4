# src/rasterstretch/exceptions.py

"""
This module defines the exception hierarchy shared by all rasterstretch modules.

Library code raises these; only the command-line entry point turns them into
an exit status.
"""

__all__ = [
    "StretchError",
    "ConfigurationError",
    "BinningError",
    "RasterError",
    "RasterIOError",
    "ResourceError"
]

class StretchError(Exception):
    """Base class for every error raised by rasterstretch."""

class ConfigurationError(StretchError):
    """Invalid run configuration or malformed no-data rule set."""

class BinningError(StretchError):
    """A value that cannot be binned (NaN) reached the binning model."""

class RasterError(StretchError):
    """Base class for raster dataset problems."""

class RasterIOError(RasterError, IOError):
    """A raster could not be opened, created, read or written."""

class ResourceError(StretchError):
    """The run would not fit in the memory currently available."""

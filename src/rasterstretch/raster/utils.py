# src/rasterstretch/raster/utils.py

"""
This module provides shared utility functions for raster operations.
"""
import logging
from pathlib import Path
from typing import Union

import numpy as np

log = logging.getLogger(__name__)

__all__ = [
    "resolve_envi_path",
    "is_complex_dtype",
    "is_supported_dtype"
]

def resolve_envi_path(path: Union[str, Path]) -> Path:
    """
    Resolve ENVI header/binary file confusion.
    If 'image.hdr' is passed, redirects to 'image' (binary).
    """
    path = Path(path)
    if path.suffix.lower() == '.hdr':
        binary_path = path.with_suffix('')
        if binary_path.exists():
            log.debug(f"Redirecting {path.name} to binary file {binary_path.name}")
            return binary_path
    return path

def is_complex_dtype(dtype: Union[str, np.dtype]) -> bool:
    return np.issubdtype(np.dtype(dtype), np.complexfloating)

def is_supported_dtype(dtype: Union[str, np.dtype]) -> bool:
    """False for rasterio pixel types without a numpy equivalent, such as 'complex_int16'."""
    try:
        np.dtype(dtype)
    except TypeError:
        return False
    return True

# src/rasterstretch/raster/io.py

"""
This module handles all disk-based operations for raster data.

Blocks are read in the source's native block geometry and handed to the
stretch engine as (bands, n) float64 arrays, whatever the native pixel type.
Output blocks are written back as 8-bit in the same geometry.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generator, Optional, Tuple, Union

import numpy as np
import rasterio
from rasterio.errors import RasterioIOError
from rasterio.windows import Window

from rasterstretch.exceptions import RasterIOError

from .resources import analyze_structure
from .utils import resolve_envi_path, is_complex_dtype, is_supported_dtype

log = logging.getLogger(__name__)

__all__ = [
    "RasterInfo",
    "BlockReader",
    "BlockWriter",
    "open_source",
    "create_destination",
    "available_drivers"
]

@dataclass(frozen=True)
class RasterInfo:
    """
    Metadata the stretch engine needs from a source raster.

    Args:
        width, height, count: Raster dimensions and band count.
        dtypes: Native pixel type of each band.
        nodata: Intrinsic no-data value of each band (None when absent).
        block_shape: (block_height, block_width) of band 1.
        crs: Coordinate reference system (may be None).
        transform: Affine geotransform.
    """
    width: int
    height: int
    count: int
    dtypes: Tuple[str, ...]
    nodata: Tuple[Optional[float], ...]
    block_shape: Tuple[int, int]
    crs: Any = None
    transform: Any = None

    @classmethod
    def from_dataset(cls, src) -> 'RasterInfo':
        return cls(
            width=src.width,
            height=src.height,
            count=src.count,
            dtypes=tuple(src.dtypes),
            nodata=tuple(src.nodatavals),
            block_shape=tuple(src.block_shapes[0]),
            crs=src.crs,
            transform=src.transform
        )

class BlockReader:
    """Reads all bands of a dataset block by block as float64."""

    def __init__(self, src: rasterio.DatasetReader):
        self._src = src
        self.info = RasterInfo.from_dataset(src)
        self._complex = any(is_complex_dtype(dt) for dt in self.info.dtypes)

    def read_block(self, window: Window) -> np.ndarray:
        """
        Read one window of every band.

        Returns:
            np.ndarray: (bands, n) float64, complex bands reduced to their real part.
        """
        if self._complex:
            data = np.real(self._src.read(window=window)).astype(np.float64)
        else:
            data = self._src.read(window=window, out_dtype="float64")
        return data.reshape(self.info.count, -1)

    def iter_blocks(self) -> Generator[Tuple[Window, np.ndarray], None, None]:
        """Yield (window, block) over the native block grid of band 1."""
        for _, window in self._src.block_windows(1):
            yield window, self.read_block(window)

class BlockWriter:
    """Writes (bands, n) uint8 blocks into an open 8-bit dataset."""

    def __init__(self, dst):
        self._dst = dst

    def write_block(self, window: Window, data: np.ndarray):
        height, width = int(window.height), int(window.width)
        for band_idx in range(data.shape[0]):
            self._dst.write(data[band_idx].reshape(height, width), band_idx + 1, window=window)

def available_drivers() -> dict:
    """Short name -> long name of every raster driver GDAL has registered."""
    with rasterio.Env() as env:
        return env.drivers()

@contextmanager
def open_source(path: Union[str, Path]) -> Generator[BlockReader, None, None]:
    """
    Open a source raster for block reading.

    Raises:
        FileNotFoundError: If the path does not exist.
        RasterIOError: If the raster cannot be opened, has zero width or height,
            or holds a pixel type numpy cannot represent (e.g. complex_int16).
    """
    path = resolve_envi_path(Path(path))

    if not path.exists():
        raise FileNotFoundError(f"Raster file not found: {path}")

    log.debug(f"Opening raster: {path.name}")

    try:
        src = rasterio.open(path)
    except RasterioIOError as e:
        raise RasterIOError(f"Failed to open raster {path}: {e}") from e

    with src:
        if src.width == 0 or src.height == 0:
            raise RasterIOError(f"Raster {path} has zero width or height")

        unsupported = sorted({dt for dt in src.dtypes if not is_supported_dtype(dt)})
        if unsupported:
            raise RasterIOError(f"Raster {path} has unsupported pixel type(s): {', '.join(unsupported)}")

        yield BlockReader(src)

@contextmanager
def create_destination(
    path: Union[str, Path],
    info: RasterInfo,
    driver: str,
    nodata: Optional[int] = None
) -> Generator[BlockWriter, None, None]:
    """
    Create an 8-bit raster matching the source's size and georeferencing.

    Args:
        path: Output file path.
        info: Source metadata; size, band count, CRS and transform are copied.
        driver: rasterio/GDAL driver short name.
        nodata: Optional no-data byte to record on the output.

    Raises:
        RasterIOError: If the driver is unavailable or the dataset cannot be created.
    """
    if driver not in available_drivers():
        raise RasterIOError(f"Output driver '{driver}' is not available")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    profile = {
        'driver': driver,
        'width': info.width,
        'height': info.height,
        'count': info.count,
        'dtype': 'uint8',
        'crs': info.crs,
        'transform': info.transform,
        'nodata': nodata
    }

    structure = analyze_structure(info.block_shape, info.width)
    if driver == 'GTiff' and structure.tiff_compatible_tiles:
        block_h, block_w = structure.block_shape
        profile.update(tiled=True, blockxsize=block_w, blockysize=block_h)

    log.info(f"Creating {driver} output {info.width}x{info.height}x{info.count} → {path}")

    try:
        dst = rasterio.open(path, 'w', **profile)
    except Exception as e:
        raise RasterIOError(f"Failed to create output raster {path}: {e}") from e

    with dst:
        yield BlockWriter(dst)

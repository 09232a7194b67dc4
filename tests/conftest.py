# tests/conftest.py

import pytest
import numpy as np
import rasterio
from rasterio.transform import Affine
from rasterio.crs import CRS

@pytest.fixture
def mock_raster_factory(tmp_path):
    """
    Fixture: Returns a factory writing small GeoTIFFs into the temp dir.

    The factory takes a (bands, height, width) or (height, width) array and
    optional nodata / tiling settings, and returns the file path.
    """
    def _factory(
        name,
        data,
        dtype=None,
        nodata=None,
        crs="EPSG:32619",
        blocksize=None
    ):
        data = np.asarray(data)
        if data.ndim == 2:
            data = data[np.newaxis, :, :]
        if dtype is not None:
            data = data.astype(dtype)

        count, height, width = data.shape
        profile = {
            'driver': 'GTiff',
            'height': height,
            'width': width,
            'count': count,
            'dtype': data.dtype.name,
            'crs': CRS.from_string(crs),
            'transform': Affine.translation(500000, 5000000 + height) * Affine.scale(1, -1),
            'nodata': nodata
        }
        if blocksize:
            profile.update(tiled=True, blockxsize=blocksize, blockysize=blocksize)

        path = tmp_path / name
        with rasterio.open(path, 'w', **profile) as dst:
            dst.write(data)
        return path

    return _factory

@pytest.fixture
def ramp_4x4_path(mock_raster_factory):
    """Single-band 8-bit 4x4 image holding 10, 20, ..., 160."""
    data = np.arange(10, 170, 10, dtype=np.uint8).reshape(4, 4)
    return mock_raster_factory("ramp.tif", data)

@pytest.fixture
def float_scene_path(mock_raster_factory):
    """
    Two-band float32 32x32 image, tiled in 16x16 blocks.

    Band 1 is a gradient, band 2 noise. The top-left 4x4 corner is -9999 in
    both bands (declared no-data) and one pixel of band 2 is NaN.
    """
    rng = np.random.default_rng(42)
    data = np.zeros((2, 32, 32), dtype=np.float32)
    data[0] = np.linspace(0, 1, 32 * 32).reshape(32, 32)
    data[1] = rng.normal(100.0, 15.0, size=(32, 32))
    data[:, :4, :4] = -9999.0
    data[1, 20, 20] = np.nan
    return mock_raster_factory("scene.tif", data, nodata=-9999.0, blocksize=16)

@pytest.fixture
def rng():
    return np.random.default_rng(1234)

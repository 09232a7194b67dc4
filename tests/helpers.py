# tests/helpers.py

import numpy as np
import rasterio

def read_bands(path) -> np.ndarray:
    """Read every band of a raster as a (bands, height, width) array."""
    with rasterio.open(path) as src:
        return src.read()

def assert_grid_match(path_a, path_b):
    """Strictly verify two rasters share the exact same grid."""
    with rasterio.open(path_a) as a, rasterio.open(path_b) as b:
        assert a.crs == b.crs, \
            f"CRS mismatch: {a.crs} != {b.crs}"

        assert (a.height, a.width) == (b.height, b.width), \
            f"Shape mismatch: {(a.height, a.width)} != {(b.height, b.width)}"

        assert np.allclose(np.array(a.transform), np.array(b.transform), atol=1e-9), \
            "Transform mismatch (Pixel alignment error)"

def assert_no_collision(output: np.ndarray, nodata_mask: np.ndarray, out_ndv: int):
    """Data pixels never equal out_ndv and no-data pixels always do."""
    assert np.all(output[:, nodata_mask] == out_ndv), "No-data pixel not written as out_ndv"
    assert not np.any(output[:, ~nodata_mask] == out_ndv), "Data pixel collides with out_ndv"

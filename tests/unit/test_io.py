# tests/unit/test_io.py

import numpy as np
import pytest

from rasterstretch.exceptions import RasterIOError
from rasterstretch.raster.io import open_source
from rasterstretch.raster.utils import is_complex_dtype, is_supported_dtype

class _FakeDataset:
    """Minimal stand-in for a rasterio dataset holding an exotic pixel type."""

    def __init__(self, dtypes):
        self.width = 4
        self.height = 4
        self.dtypes = dtypes

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

def test_open_source_reports_info(float_scene_path):
    with open_source(float_scene_path) as reader:
        info = reader.info
        first_window, first_block = next(reader.iter_blocks())

    assert (info.width, info.height, info.count) == (32, 32, 2)
    assert info.dtypes == ("float32", "float32")
    assert info.nodata == (-9999.0, -9999.0)
    assert info.block_shape == (16, 16)
    assert info.crs.to_epsg() == 32619

    assert first_block.dtype == np.float64
    assert first_block.shape == (2, 16 * 16)

def test_supported_dtypes():
    assert is_supported_dtype("uint8")
    assert is_supported_dtype("complex64")
    assert not is_supported_dtype("complex_int16")
    assert is_complex_dtype("complex64")
    assert not is_complex_dtype("float32")

def test_open_source_rejects_unrepresentable_dtype(tmp_path, monkeypatch):
    path = tmp_path / "cint16.tif"
    path.touch()
    monkeypatch.setattr(
        "rasterstretch.raster.io.rasterio.open",
        lambda *args, **kwargs: _FakeDataset(("complex_int16",))
    )

    with pytest.raises(RasterIOError, match="complex_int16"):
        with open_source(path):
            pass

def test_open_source_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        with open_source(tmp_path / "missing.tif"):
            pass

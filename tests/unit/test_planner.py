# tests/unit/test_planner.py

import logging

import pytest
import numpy as np

from rasterstretch.config import StretchConfig
from rasterstretch.exceptions import StretchError
from rasterstretch.stretch.apply import apply_block
from rasterstretch.stretch.binning import Binning
from rasterstretch.stretch.histogram import HistogramAccumulator
from rasterstretch.stretch.planner import (
    LinearPlan,
    TablePlan,
    avoid_nodata_collision,
    gaussian_target,
    plan_from_deviation,
    plan_from_equalization,
    plan_from_percentile,
    plan_stretch
)

def _histogram(values, binning=None):
    values = np.asarray(values, dtype=np.float64).reshape(1, -1)
    acc = HistogramAccumulator([binning or Binning.for_dtype("uint8")])
    acc.update(values, np.zeros(values.shape[1], dtype=bool))
    return acc.finalize()[0]

def _weighted_moments(hg, plan):
    """Mean and stddev of the un-clamped linear output over the histogram."""
    out = (hg.bin_values() - plan.offset) * plan.scale
    weights = hg.counts.astype(np.float64)
    mean = np.dot(out, weights) / weights.sum()
    std = np.sqrt(np.dot((out - mean) ** 2, weights) / weights.sum())
    return mean, std

# --- Deviation-normalized linear stretch ---

def test_deviation_reproduces_targets(rng):
    hg = _histogram(rng.integers(30, 200, size=5000))
    plan = plan_from_deviation(hg, target_mean=128.0, target_stddev=40.0)

    mean, std = _weighted_moments(hg, plan)

    assert mean == pytest.approx(128.0)
    assert std == pytest.approx(40.0)

def test_deviation_with_zero_spread():
    hg = _histogram([42] * 10)
    plan = plan_from_deviation(hg, target_mean=128.0, target_stddev=40.0)

    assert plan.scale == 0.0
    assert plan.offset == pytest.approx(42.0)

def test_deviation_with_zero_spread_outputs_single_level():
    hg = _histogram([42] * 10)
    plan = plan_from_deviation(hg, target_mean=128.0, target_stddev=40.0)

    out = apply_block(np.full((1, 10), 42.0), np.zeros(10, dtype=bool), [plan], [hg.binning], out_ndv=0)

    assert out.tolist() == [[1] * 10]

# --- Percentile window ---

def test_percentile_full_window_is_identity_for_full_range():
    hg = _histogram(np.arange(256))
    plan = plan_from_percentile(hg, 0.0, 1.0)

    assert plan.offset == 0.0
    assert plan.scale == pytest.approx(1.0)

def test_percentile_window_endpoints():
    hg = _histogram(np.arange(100))
    plan = plan_from_percentile(hg, 0.1, 0.9)

    # from: last bin with 10 or fewer pixels before it -> 10
    # to: last bin with 90 or fewer pixels up to and including it -> 89
    assert plan.offset == 10.0
    assert plan.scale == pytest.approx(255.0 / 79.0)

def test_percentile_collapsed_window_uses_full_range():
    hg = _histogram([5] * 100)
    plan = plan_from_percentile(hg, 0.02, 0.98)

    assert plan.offset == 0.0
    assert plan.scale == pytest.approx(1.0)

def test_percentile_window_not_found():
    hg = _histogram([0] * 100)

    with pytest.raises(StretchError):
        plan_from_percentile(hg, 0.1, 0.5)

# --- Histogram equalization ---

def test_gaussian_target_shape():
    flat = gaussian_target(0.0)
    assert flat.sum() == pytest.approx(1.0)
    assert np.allclose(flat, 1.0 / 256)

    bell = gaussian_target(40.0)
    assert bell.sum() == pytest.approx(1.0)
    assert int(np.argmax(bell)) == 128
    assert bell[0] < bell[64] < bell[128]

def test_equalization_to_flat_target_on_uniform_source():
    hg = _histogram(np.arange(256))
    plan = plan_from_equalization(hg, variance=0.0)

    assert isinstance(plan, TablePlan)
    assert plan.lookup.dtype == np.uint8
    assert np.array_equal(plan.lookup, np.arange(256, dtype=np.uint8))

def test_equalization_is_monotonic(rng):
    hg = _histogram(rng.normal(60, 10, size=3000).clip(0, 255).round())
    plan = plan_from_equalization(hg, variance=50.0)

    assert plan.lookup.size == hg.binning.bin_count
    assert np.all(np.diff(plan.lookup.astype(int)) >= 0)
    # Pixels past the last populated bin reach the top of the target
    assert plan.lookup[-1] == 255

def test_equalization_spreads_narrow_source():
    hg = _histogram([100] * 50 + [101] * 50)
    plan = plan_from_equalization(hg, variance=0.0)

    assert plan.lookup[100] == 127
    assert plan.lookup[101] == 255

# --- No-data collision ---

def test_collision_bump_direction():
    low = np.array([0, 1, 2, 0], dtype=np.uint8)
    assert avoid_nodata_collision(low, 0).tolist() == [1, 1, 2, 1]

    high = np.array([255, 254, 128], dtype=np.uint8)
    assert avoid_nodata_collision(high, 255).tolist() == [254, 254, 128]

    middle = np.array([128, 127], dtype=np.uint8)
    assert avoid_nodata_collision(middle, 128).tolist() == [127, 127]

# --- Dispatch ---

def test_plan_stretch_histeq_tables_avoid_out_ndv():
    hg = _histogram(np.arange(256))
    config = StretchConfig(src_path="in.tif", dst_path="out.tif", histeq=0.0, out_ndv=0)

    plans = plan_stretch([hg, hg], config)

    assert len(plans) == 2
    for plan in plans:
        assert isinstance(plan, TablePlan)
        assert not np.any(plan.lookup == 0)

def test_plan_stretch_linear():
    hg = _histogram([10, 20, 30, 40])
    config = StretchConfig(src_path="in.tif", dst_path="out.tif", linear_stretch=(128, 50))

    plans = plan_stretch([hg], config)

    assert isinstance(plans[0], LinearPlan)
    assert plans[0].scale == pytest.approx(50.0 / hg.stddev)

def test_plan_stretch_without_policy_warns(caplog):
    hg = _histogram([1, 2, 3])
    config = StretchConfig(src_path="in.tif", dump_histogram=True)

    with caplog.at_level(logging.WARNING):
        plans = plan_stretch([hg], config)

    assert plans == [LinearPlan(scale=1.0, offset=0.0)]
    assert "No transformation was specified" in caplog.text

# src/rasterstretch/stretch/__init__.py
#
# Copyright (c) The rasterstretch project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The stretch subpackage provides the statistical stretch engine:
value binning, no-data classification, histogram accumulation,
stretch planning and the block-streaming output pass.
"""

# Binning model
from .binning import (
    Binning,
    DEFAULT_BIN_COUNT,
    needs_observed_range
)

# No-data classification
from .nodata import (
    Slab,
    NodataRules
)

# Histogram accumulation
from .histogram import (
    Histogram,
    HistogramAccumulator,
    compute_minmax,
    compute_histograms,
    write_histogram_report
)

# Stretch planning
from .planner import (
    LinearPlan,
    TablePlan,
    identity_plan,
    plan_from_deviation,
    plan_from_percentile,
    plan_from_equalization,
    gaussian_target,
    avoid_nodata_collision,
    plan_stretch
)

# Output pass
from .apply import (
    apply_linear,
    apply_table,
    apply_block,
    apply_stretch
)

# Orchestration
from .pipeline import (
    StretchResult,
    select_binnings,
    run
)

__all__ = [
    # Binning
    "Binning",
    "DEFAULT_BIN_COUNT",
    "needs_observed_range",

    # No-data
    "Slab",
    "NodataRules",

    # Histogram
    "Histogram",
    "HistogramAccumulator",
    "compute_minmax",
    "compute_histograms",
    "write_histogram_report",

    # Planner
    "LinearPlan",
    "TablePlan",
    "identity_plan",
    "plan_from_deviation",
    "plan_from_percentile",
    "plan_from_equalization",
    "gaussian_target",
    "avoid_nodata_collision",
    "plan_stretch",

    # Apply
    "apply_linear",
    "apply_table",
    "apply_block",
    "apply_stretch",

    # Pipeline
    "StretchResult",
    "select_binnings",
    "run"
]

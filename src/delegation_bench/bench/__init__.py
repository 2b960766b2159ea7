"""Benchmark harness comparing the delegation protocol variants.

Public API
----------
- :class:`BenchmarkHarness` -- runs trials and parameter sweeps.
- :class:`MetricsCollector` -- thread-safe sink for trial records.
- :func:`format_table` / :func:`write_run_csv` -- report output.
"""
from __future__ import annotations

from delegation_bench.bench.harness import (
    BenchmarkHarness,
    BenchmarkReport,
    SweepReport,
    SweepStep,
    measure,
    permission_atoms,
)
from delegation_bench.bench.metrics import (
    METRICS,
    MetricsCollector,
    MetricSummary,
    TrialRecord,
    VariantSummary,
    percentile,
)
from delegation_bench.bench.reporting import (
    format_sweep,
    format_table,
    write_run_csv,
    write_sweep_csv,
)

__all__ = [
    "METRICS",
    "BenchmarkHarness",
    "BenchmarkReport",
    "MetricSummary",
    "MetricsCollector",
    "SweepReport",
    "SweepStep",
    "TrialRecord",
    "VariantSummary",
    "format_sweep",
    "format_table",
    "measure",
    "percentile",
    "permission_atoms",
    "write_run_csv",
    "write_sweep_csv",
]

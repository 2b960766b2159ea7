"""Console and CSV output of benchmark results.

CSV output follows the layout of the original evaluation: one file per
metric, one column per protocol variant, one row per trial (or per sweep
step).  Latencies are written in microseconds.
"""
from __future__ import annotations

import csv
import logging
from pathlib import Path

from delegation_bench.bench.harness import BenchmarkReport, SweepReport
from delegation_bench.bench.metrics import LATENCY_METRICS, METRICS, VP_LENGTH
from delegation_bench.core.types import ProtocolName

logger = logging.getLogger(__name__)

_HEADER = ("variant", "metric", "mean", "p50", "p95", "min", "max")


def format_table(report: BenchmarkReport) -> str:
    """Render the per-variant aggregates of *report* as a text table."""
    rows: list[tuple[str, ...]] = [_HEADER]
    for variant, summary in report.summaries.items():
        for metric in METRICS:
            aggregate = summary.metrics.get(metric)
            if aggregate is None:
                continue
            unit = "B" if metric == VP_LENGTH else "us"
            rows.append(
                (
                    variant.value,
                    f"{metric} ({unit})",
                    f"{aggregate.mean:.1f}",
                    f"{aggregate.p50:.1f}",
                    f"{aggregate.p95:.1f}",
                    f"{aggregate.min:.1f}",
                    f"{aggregate.max:.1f}",
                )
            )
        failures = f"{summary.failures}/{summary.trials}"
        if summary.failure_kinds:
            kinds = ", ".join(f"{k}={n}" for k, n in sorted(summary.failure_kinds.items()))
            failures = f"{failures} ({kinds})"
        rows.append((variant.value, "failures", failures, "", "", "", ""))

    widths = [max(len(row[i]) for row in rows) for i in range(len(_HEADER))]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip() for row in rows]
    lines.insert(1, "  ".join("-" * w for w in widths))
    return "\n".join(lines)


def format_sweep(sweep: SweepReport, metric: str = "vp_verification") -> str:
    """Render the mean of *metric* per sweep step, one column per variant."""
    variants = _variants_of(sweep)
    rows = [(sweep.dimension, *(v.value for v in variants))]
    for step in sweep.steps:
        cells = [str(step.value)]
        for variant in variants:
            aggregate = step.report.summaries[variant].metrics.get(metric)
            cells.append("-" if aggregate is None else f"{aggregate.mean:.1f}")
        rows.append(tuple(cells))
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    return "\n".join(
        "  ".join(cell.rjust(w) for cell, w in zip(row, widths)) for row in rows
    )


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def _variants_of(sweep: SweepReport) -> list[ProtocolName]:
    if not sweep.steps:
        return []
    return list(sweep.steps[0].report.summaries)


def _write(path: Path, header: list[str], rows: list[list[object]]) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(header)
        writer.writerows(rows)


def _cell(value: float | None, metric: str) -> object:
    if value is None:
        return ""
    if metric in LATENCY_METRICS:
        return round(value)
    return value


def write_run_csv(report: BenchmarkReport, directory: Path, prefix: str = "run") -> list[Path]:
    """Write one CSV file per metric with one row per trial.

    Returns the paths written.
    """
    directory.mkdir(parents=True, exist_ok=True)
    variants = list(report.summaries)
    by_variant = {
        v: sorted((r for r in report.records if r.variant == v), key=lambda r: r.trial)
        for v in variants
    }
    trials = max((len(records) for records in by_variant.values()), default=0)

    written: list[Path] = []
    for metric in METRICS:
        rows: list[list[object]] = []
        for trial in range(trials):
            row: list[object] = [trial]
            for variant in variants:
                records = by_variant[variant]
                value = records[trial].value(metric) if trial < len(records) else None
                row.append(_cell(value, metric))
            rows.append(row)
        path = directory / f"{prefix}_{metric}.csv"
        _write(path, ["trial", *(v.value for v in variants)], rows)
        written.append(path)
    logger.info("Wrote %d CSV file(s) to %s", len(written), directory)
    return written


def write_sweep_csv(sweep: SweepReport, directory: Path) -> list[Path]:
    """Write one CSV file per metric with the mean of each sweep step."""
    directory.mkdir(parents=True, exist_ok=True)
    variants = _variants_of(sweep)

    written: list[Path] = []
    for metric in METRICS:
        rows: list[list[object]] = []
        for step in sweep.steps:
            row: list[object] = [step.value]
            for variant in variants:
                aggregate = step.report.summaries[variant].metrics.get(metric)
                row.append(_cell(None if aggregate is None else aggregate.mean, metric))
            rows.append(row)
        path = directory / f"{sweep.dimension}_{metric}.csv"
        _write(path, [sweep.dimension, *(v.value for v in variants)], rows)
        written.append(path)
    logger.info("Wrote %d CSV file(s) to %s", len(written), directory)
    return written

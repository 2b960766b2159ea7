"""Per-trial measurements and their aggregation.

Every trial produces one :class:`TrialRecord`.  Records are appended to a
:class:`MetricsCollector`, which may be shared by worker threads, and are
summarised per protocol variant into :class:`MetricSummary` values
(mean, median, 95th percentile, minimum, maximum).
"""
from __future__ import annotations

import math
import statistics
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from delegation_bench.core.types import ProtocolName

# Metric names double as CSV file stems.
VC_ISSUANCE = "vc_issuance"
VP_ISSUANCE = "vp_issuance"
VP_VERIFICATION = "vp_verification"
VP_LENGTH = "vp_jwt_length"

METRICS: tuple[str, ...] = (VC_ISSUANCE, VP_ISSUANCE, VP_VERIFICATION, VP_LENGTH)
LATENCY_METRICS: tuple[str, ...] = (VC_ISSUANCE, VP_ISSUANCE, VP_VERIFICATION)

OUTCOME_OK = "ok"


@dataclass(slots=True)
class TrialRecord:
    """Measurements of one issue/assemble/verify pipeline run.

    Latencies are in microseconds, averaged over the configured number of
    iterations.  A value is ``None`` when the trial failed before reaching
    the operation.  ``outcome`` is ``"ok"`` or the failure kind, e.g.
    ``"ScopeViolation"``.
    """

    variant: ProtocolName
    trial: int
    depth: int
    permissions: int
    vc_issuance: float | None = None
    vp_issuance: float | None = None
    vp_verification: float | None = None
    vp_jwt_length: int | None = None
    outcome: str = OUTCOME_OK
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == OUTCOME_OK

    def value(self, metric: str) -> float | None:
        if metric not in METRICS:
            raise KeyError(metric)
        return getattr(self, metric)


def percentile(samples: Sequence[float], fraction: float) -> float:
    """Nearest-rank percentile of *samples* (``0 < fraction <= 1``)."""
    if not samples:
        raise ValueError("percentile of an empty sample")
    ordered = sorted(samples)
    rank = max(1, math.ceil(fraction * len(ordered)))
    return float(ordered[rank - 1])


@dataclass(slots=True)
class MetricSummary:
    """Distribution of one metric over a set of trials."""

    count: int
    mean: float
    p50: float
    p95: float
    min: float
    max: float

    @classmethod
    def from_samples(cls, samples: Iterable[float]) -> MetricSummary | None:
        values = [float(s) for s in samples]
        if not values:
            return None
        return cls(
            count=len(values),
            mean=statistics.fmean(values),
            p50=statistics.median(values),
            p95=percentile(values, 0.95),
            min=min(values),
            max=max(values),
        )


@dataclass(slots=True)
class VariantSummary:
    """Aggregated results of every trial of one protocol variant."""

    variant: ProtocolName
    trials: int
    failures: int
    metrics: dict[str, MetricSummary] = field(default_factory=dict)
    failure_kinds: dict[str, int] = field(default_factory=dict)


class MetricsCollector:
    """Thread-safe sink for :class:`TrialRecord` values."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[TrialRecord] = []

    def record(self, trial: TrialRecord) -> None:
        with self._lock:
            self._records.append(trial)

    @property
    def records(self) -> list[TrialRecord]:
        """Snapshot of the records, ordered by variant then trial index."""
        with self._lock:
            snapshot = list(self._records)
        return sorted(snapshot, key=lambda r: (r.variant.value, r.trial))

    def for_variant(self, variant: ProtocolName) -> list[TrialRecord]:
        return [r for r in self.records if r.variant == variant]

    def summarize(self, variants: Sequence[ProtocolName]) -> dict[ProtocolName, VariantSummary]:
        """Aggregate the records of each of *variants*.

        Failed trials count towards ``failures`` and contribute every
        measurement they reached.
        """
        summaries: dict[ProtocolName, VariantSummary] = {}
        for variant in variants:
            records = self.for_variant(variant)
            summary = VariantSummary(
                variant=variant,
                trials=len(records),
                failures=sum(1 for r in records if not r.ok),
            )
            for record in records:
                if not record.ok:
                    summary.failure_kinds[record.outcome] = (
                        summary.failure_kinds.get(record.outcome, 0) + 1
                    )
            for metric in METRICS:
                aggregate = MetricSummary.from_samples(
                    v for r in records if (v := r.value(metric)) is not None
                )
                if aggregate is not None:
                    summary.metrics[metric] = aggregate
            summaries[variant] = summary
        return summaries

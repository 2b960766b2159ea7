"""Benchmark harness.

The harness drives the full issue -> assemble -> verify pipeline for each
protocol variant and records four metrics per trial:

* **vc_issuance** -- latency of issuing the leaf credential of the chain;
* **vp_issuance** -- latency of assembling the holder-bound presentation;
* **vp_verification** -- latency of decoding and verifying it;
* **vp_jwt_length** -- byte length of the encoded presentation.

It is written once against :class:`~delegation_bench.core.interfaces.ProtocolVariant`;
nothing here depends on which variant is being measured.

Trials are independent: each one generates its own keypairs and builds
its own chain, so they may run on a thread pool.  In that mode latencies
are measured with per-thread CPU time so that concurrently running trials
do not inflate each other's numbers.
"""
from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Literal, TypeVar

from delegation_bench.bench.metrics import MetricsCollector, TrialRecord, VariantSummary
from delegation_bench.core.config import BenchmarkConfig
from delegation_bench.core.errors import DelegationError
from delegation_bench.core.interfaces import ProtocolVariant
from delegation_bench.core.types import DelegationCredential, ProtocolName, Scope
from delegation_bench.identity.keys import generate_keypairs
from delegation_bench.protocols.registry import get_variant
from delegation_bench.wire.codec import decode_presentation, encode_presentation, encoded_length

logger = logging.getLogger(__name__)

T = TypeVar("T")

PERMISSION_TEMPLATE = "https://vc.example/resources/r1:p{index}"

SweepDimension = Literal["depth", "permissions"]


def permission_atoms(count: int) -> list[str]:
    """The first *count* permission atoms used by every trial."""
    return [PERMISSION_TEMPLATE.format(index=i) for i in range(count)]


def measure(
    func: Callable[[], T], iterations: int, clock: Callable[[], int]
) -> tuple[float, T]:
    """Run *func* *iterations* times; return its mean latency (us) and last result."""
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}")
    start = clock()
    result = func()
    total = clock() - start
    for _ in range(iterations - 1):
        start = clock()
        result = func()
        total += clock() - start
    return total / iterations / 1000, result


@dataclass(slots=True)
class BenchmarkReport:
    """All records of a run and their per-variant aggregates."""

    config: BenchmarkConfig
    records: list[TrialRecord]
    summaries: dict[ProtocolName, VariantSummary]


@dataclass(slots=True)
class SweepStep:
    """One point of a parameter sweep."""

    value: int
    report: BenchmarkReport


@dataclass(slots=True)
class SweepReport:
    dimension: SweepDimension
    steps: list[SweepStep] = field(default_factory=list)


class BenchmarkHarness:
    """Runs trials of every configured protocol variant.

    Parameters
    ----------
    config:
        Validated benchmark parameters.
    variants:
        Protocol implementations to measure.  Defaults to the variants
        named in *config*.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        variants: Sequence[ProtocolVariant] | None = None,
    ) -> None:
        self.config = config
        self.variants: list[ProtocolVariant] = (
            list(variants) if variants is not None else [get_variant(n) for n in config.variants]
        )
        clock_name = "thread_time_ns" if config.workers > 1 else "perf_counter_ns"
        self._clock: Callable[[], int] = getattr(time, clock_name)

    # -- Runs ---------------------------------------------------------------

    def run(self) -> BenchmarkReport:
        """Run ``config.trials`` trials of each variant.

        A :class:`DelegationError` marks a trial as failed; any other
        exception aborts the whole run.
        """
        collector = MetricsCollector()
        jobs = [
            (variant, trial)
            for variant in self.variants
            for trial in range(self.config.trials)
        ]
        logger.info(
            "Running %d trial(s) of %s at depth %d with %d permission(s)",
            self.config.trials,
            ", ".join(v.name for v in self.variants),
            self.config.depth,
            self.config.permissions,
        )

        if self.config.workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                futures = [
                    pool.submit(self.run_trial, variant, trial) for variant, trial in jobs
                ]
                for future in futures:
                    collector.record(future.result())
        else:
            for variant, trial in jobs:
                collector.record(self.run_trial(variant, trial))

        names = [v.name for v in self.variants]
        summaries = collector.summarize(names)
        for name in names:
            if summaries[name].failures:
                logger.warning(
                    "%s: %d of %d trial(s) failed",
                    name,
                    summaries[name].failures,
                    summaries[name].trials,
                )
        return BenchmarkReport(
            config=self.config, records=collector.records, summaries=summaries
        )

    def sweep(self, dimension: SweepDimension, maximum: int) -> SweepReport:
        """Repeat :meth:`run` for each value ``1..maximum`` of *dimension*.

        ``"depth"`` varies the number of delegators at the configured
        permission count; ``"permissions"`` varies the permission count at
        the configured depth.
        """
        if dimension not in ("depth", "permissions"):
            raise ValueError(f"Unknown sweep dimension: {dimension!r}")
        if maximum < 1:
            raise ValueError("Sweep maximum must be at least 1")

        report = SweepReport(dimension=dimension)
        for value in range(1, maximum + 1):
            update: dict[str, object] = {dimension: value}
            if dimension == "permissions" and self.config.disclose is not None:
                update["disclose"] = min(self.config.disclose, value)
            config = BenchmarkConfig.model_validate(
                {**self.config.model_dump(), **update}
            )
            step = BenchmarkHarness(config, self.variants)
            report.steps.append(SweepStep(value=value, report=step.run()))
        return report

    # -- Trials -------------------------------------------------------------

    def run_trial(self, variant: ProtocolVariant, trial: int) -> TrialRecord:
        """Issue a fresh chain, present it and verify it once."""
        config = self.config
        record = TrialRecord(
            variant=variant.name,
            trial=trial,
            depth=config.depth,
            permissions=config.permissions,
        )
        try:
            self._pipeline(variant, record)
        except DelegationError as exc:
            record.outcome = exc.kind
            record.error_code = exc.code
            logger.debug("Trial %d of %s failed: %s", trial, variant.name, exc.message)
        return record

    def _pipeline(self, variant: ProtocolVariant, record: TrialRecord) -> None:
        config = self.config
        ttl = timedelta(seconds=config.validity_seconds)
        keys = generate_keypairs(config.depth + 1, config.algorithm)
        permissions = frozenset(permission_atoms(config.permissions))

        # Intermediate hops; the leaf hop is the measured one.
        parent: DelegationCredential | None = None
        chain: list[DelegationCredential] = []
        for hop in range(config.depth - 1):
            parent = variant.issue(
                keys[hop],
                keys[hop + 1].identity,
                Scope(permissions=permissions, max_depth=config.depth - hop),
                parent,
                ttl=ttl,
            )
            chain.append(parent)

        leaf_index = config.depth - 1
        leaf_scope = Scope(permissions=permissions, max_depth=1)
        record.vc_issuance, leaf = measure(
            lambda: variant.issue(
                keys[leaf_index], keys[leaf_index + 1].identity, leaf_scope, parent, ttl=ttl
            ),
            config.iterations,
            self._clock,
        )
        chain.append(leaf)

        holder = keys[-1]
        disclose = (
            permission_atoms(config.disclose) if config.disclose is not None else None
        )
        nonce = secrets.token_urlsafe(32)
        record.vp_issuance, presentation = measure(
            lambda: variant.assemble(chain, holder, nonce=nonce, disclose=disclose),
            config.iterations,
            self._clock,
        )
        token = encode_presentation(presentation, holder, variant.name)
        record.vp_jwt_length = encoded_length(token)

        trusted_roots = frozenset({keys[0].identity})
        record.vp_verification, result = measure(
            lambda: variant.verify(
                decode_presentation(token),
                trusted_roots,
                expected_holder=holder.identity,
                expected_nonce=nonce,
            ),
            config.iterations,
            self._clock,
        )
        if result.error is not None:
            record.outcome = result.error.kind
            record.error_code = result.error.code

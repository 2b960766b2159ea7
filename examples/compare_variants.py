#!/usr/bin/env python3
"""delegation-bench comparison -- depth sweep over both variants.

Runs a small depth sweep through the benchmark harness, prints the mean
verification latency and presentation size per depth, and writes the
per-metric CSV files to ``./results``.

Run:
    python examples/compare_variants.py
"""
from __future__ import annotations

import logging
from pathlib import Path

from delegation_bench import BenchmarkConfig
from delegation_bench.bench import BenchmarkHarness, format_sweep, write_sweep_csv


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = BenchmarkConfig(trials=5, permissions=4, disclose=2)
    sweep = BenchmarkHarness(config).sweep("depth", 6)

    print(format_sweep(sweep, "vp_verification"))
    print()
    print(format_sweep(sweep, "vp_jwt_length"))

    paths = write_sweep_csv(sweep, Path("results"))
    print(f"\nWrote {len(paths)} CSV files to ./results")


if __name__ == "__main__":
    main()

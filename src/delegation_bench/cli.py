"""
delegation-bench CLI

Command-line interface for the delegation protocol benchmark.

Usage:
    delegation-bench run --depth 5 --trials 20
    delegation-bench run --variant pjv --workers 4 --csv-dir ./csv_dir
    delegation-bench sweep depth --max 10 --permissions 10 --disclose 4
    delegation-bench sweep permissions --max 10 --depth 3

Every option can also be set through a DELEGATION_BENCH_* environment
variable, e.g. DELEGATION_BENCH_DEPTH=10.
"""
import json
import logging
import sys
from dataclasses import asdict
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from delegation_bench import __version__
from delegation_bench.bench.harness import BenchmarkHarness
from delegation_bench.bench.metrics import METRICS
from delegation_bench.bench.reporting import (
    format_sweep,
    format_table,
    write_run_csv,
    write_sweep_csv,
)
from delegation_bench.core.config import BenchmarkConfig
from delegation_bench.core.types import ProtocolName

logger = logging.getLogger(__name__)

ENV_PREFIX = "DELEGATION_BENCH_"

app = typer.Typer(
    name="delegation-bench",
    help="Benchmark transitive delegation with verifiable credentials",
    add_completion=False,
)


class Dimension(StrEnum):
    DEPTH = "depth"
    PERMISSIONS = "permissions"


def _env(name: str) -> str:
    return f"{ENV_PREFIX}{name}"


# Shared option declarations

VariantOpt = Annotated[
    Optional[list[ProtocolName]],
    typer.Option("--variant", "-v", help="Protocol variant to measure (repeatable)"),
]
DepthOpt = Annotated[
    int, typer.Option(help="Credentials per delegation chain", envvar=_env("DEPTH"))
]
TrialsOpt = Annotated[
    int, typer.Option(help="Trials per variant", envvar=_env("TRIALS"))
]
IterationsOpt = Annotated[
    int,
    typer.Option(help="Repetitions averaged per measured operation", envvar=_env("ITERATIONS")),
]
AlgorithmOpt = Annotated[
    str, typer.Option(help="Key algorithm: EdDSA or ES256", envvar=_env("ALGORITHM"))
]
PermissionsOpt = Annotated[
    int, typer.Option(help="Permissions granted by the root", envvar=_env("PERMISSIONS"))
]
DiscloseOpt = Annotated[
    Optional[int],
    typer.Option(help="Permissions disclosed in each presentation", envvar=_env("DISCLOSE")),
]
ValidityOpt = Annotated[
    int,
    typer.Option(help="Credential validity in seconds", envvar=_env("VALIDITY_SECONDS")),
]
WorkersOpt = Annotated[
    int, typer.Option(help="Worker threads running trials", envvar=_env("WORKERS"))
]
CsvDirOpt = Annotated[
    Optional[Path],
    typer.Option(help="Write one CSV file per metric to this directory", envvar=_env("CSV_DIR")),
]


def _build_config(**values: object) -> BenchmarkConfig:
    if not values.get("variants"):
        values.pop("variants", None)
    try:
        config = BenchmarkConfig.model_validate(values)
    except ValidationError as exc:
        for error in exc.errors():
            field = ".".join(str(p) for p in error["loc"]) or "config"
            typer.echo(f"Error: {field}: {error['msg']}", err=True)
        raise typer.Exit(2) from exc
    logger.debug("Benchmark configuration: %s", config.model_dump_json())
    return config


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"delegation-bench {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option(help="Logging level written to stderr", envvar=_env("LOG_LEVEL")),
    ] = "WARNING",
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True),
    ] = False,
) -> None:
    """Compare the proposed protocol against the PJV baseline"""
    logging.basicConfig(
        level=log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def run(
    variant: VariantOpt = None,
    depth: DepthOpt = 3,
    trials: TrialsOpt = 10,
    iterations: IterationsOpt = 1,
    algorithm: AlgorithmOpt = "EdDSA",
    permissions: PermissionsOpt = 3,
    disclose: DiscloseOpt = None,
    validity_seconds: ValidityOpt = 3600,
    workers: WorkersOpt = 1,
    csv_dir: CsvDirOpt = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print records as JSON")] = False,
) -> None:
    """Run trials of each variant and print aggregated metrics"""
    config = _build_config(
        variants=variant,
        depth=depth,
        trials=trials,
        iterations=iterations,
        algorithm=algorithm,
        permissions=permissions,
        disclose=disclose,
        validity_seconds=validity_seconds,
        workers=workers,
        csv_dir=csv_dir,
    )
    report = BenchmarkHarness(config).run()

    if as_json:
        records = [{**asdict(r), "variant": r.variant.value} for r in report.records]
        typer.echo(json.dumps(records, indent=2))
    else:
        typer.echo(format_table(report))

    if config.csv_dir is not None:
        paths = write_run_csv(report, config.csv_dir)
        typer.echo(f"Wrote {len(paths)} CSV file(s) to {config.csv_dir}", err=True)

    if any(s.failures for s in report.summaries.values()):
        raise typer.Exit(1)


@app.command()
def sweep(
    dimension: Annotated[Dimension, typer.Argument(help="Parameter to sweep")],
    maximum: Annotated[
        int, typer.Option("--max", help="Largest value of the swept parameter", min=1)
    ] = 10,
    variant: VariantOpt = None,
    depth: DepthOpt = 3,
    trials: TrialsOpt = 10,
    iterations: IterationsOpt = 1,
    algorithm: AlgorithmOpt = "EdDSA",
    permissions: PermissionsOpt = 3,
    disclose: DiscloseOpt = None,
    validity_seconds: ValidityOpt = 3600,
    workers: WorkersOpt = 1,
    csv_dir: CsvDirOpt = None,
) -> None:
    """Repeat the benchmark for each value 1..MAX of a parameter"""
    config = _build_config(
        variants=variant,
        depth=depth,
        trials=trials,
        iterations=iterations,
        algorithm=algorithm,
        permissions=permissions,
        disclose=disclose,
        validity_seconds=validity_seconds,
        workers=workers,
        csv_dir=csv_dir,
    )
    report = BenchmarkHarness(config).sweep(dimension.value, maximum)

    for metric in METRICS:
        typer.echo(f"\n{metric} (mean)")
        typer.echo(format_sweep(report, metric))

    if config.csv_dir is not None:
        paths = write_sweep_csv(report, config.csv_dir)
        typer.echo(f"Wrote {len(paths)} CSV file(s) to {config.csv_dir}", err=True)


if __name__ == "__main__":
    app()

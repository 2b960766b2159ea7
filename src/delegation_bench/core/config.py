"""Benchmark configuration.

Defines the validated configuration model consumed by the benchmark
harness.  The protocol engine itself never reads configuration; the
harness turns these values into keypairs, scopes and chain depths and
passes them explicitly to every operation.
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from delegation_bench.core.types import ProtocolName

KeyAlgorithm = Literal["EdDSA", "ES256"]


class BenchmarkConfig(BaseModel):
    """Configuration for a benchmark run.

    All fields carry defaults matching the original evaluation (one hour
    credential validity, Ed25519 keys) so that an empty configuration is
    enough for a quick local run.
    """

    model_config = ConfigDict(frozen=True)

    variants: tuple[ProtocolName, ...] = Field(
        default=(ProtocolName.PROPOSED, ProtocolName.PJV),
        min_length=1,
        description="Protocol variants to measure, in report column order.",
    )
    depth: int = Field(
        default=3,
        ge=1,
        description="Number of credentials in each delegation chain.",
    )
    trials: int = Field(
        default=10,
        ge=1,
        description="Independent trials per variant.",
    )
    iterations: int = Field(
        default=1,
        ge=1,
        description=(
            "Repetitions of each measured operation within a trial; the "
            "reported latency is their mean."
        ),
    )
    algorithm: KeyAlgorithm = Field(
        default="EdDSA",
        description="Signature algorithm for every identity keypair.",
    )
    permissions: int = Field(
        default=3,
        ge=1,
        description="Permission atoms granted by the root credential.",
    )
    disclose: int | None = Field(
        default=None,
        ge=1,
        description=(
            "Number of leaf permissions disclosed in the presentation; "
            "None discloses the full leaf scope."
        ),
    )
    validity_seconds: int = Field(
        default=3600,
        ge=1,
        description="Validity period of each issued credential.",
    )
    workers: int = Field(
        default=1,
        ge=1,
        description="Worker threads running trials in parallel.",
    )
    csv_dir: Path | None = Field(
        default=None,
        description="Directory receiving one CSV file per metric.",
    )

    @model_validator(mode="after")
    def _check_disclosure(self) -> BenchmarkConfig:
        if self.disclose is not None and self.disclose > self.permissions:
            msg = (
                f"Cannot disclose more permissions than those included in the "
                f"credential [{self.disclose} > {self.permissions}]"
            )
            raise ValueError(msg)
        return self

"""Core types, errors, configuration and interfaces."""
from __future__ import annotations

from delegation_bench.core.canonical import canonical_bytes, canonical_json, compute_hash
from delegation_bench.core.config import BenchmarkConfig, KeyAlgorithm
from delegation_bench.core.errors import (
    ChainBroken,
    ChainError,
    DelegationError,
    DepthExceeded,
    EncodingError,
    ExpiredCredential,
    InvalidSignature,
    MalformedPresentation,
    ScopeViolation,
    UnsupportedAlgorithm,
    UntrustedRoot,
    error_from_code,
)
from delegation_bench.core.interfaces import CanonicalizationStrategy, ProtocolVariant
from delegation_bench.core.types import (
    ClaimSet,
    DelegationCredential,
    IdentityId,
    Presentation,
    ProtocolName,
    Scope,
    utc_instant,
)

__all__ = [
    "BenchmarkConfig",
    "CanonicalizationStrategy",
    "ChainBroken",
    "ChainError",
    "ClaimSet",
    "DelegationCredential",
    "DelegationError",
    "DepthExceeded",
    "EncodingError",
    "ExpiredCredential",
    "IdentityId",
    "InvalidSignature",
    "KeyAlgorithm",
    "MalformedPresentation",
    "Presentation",
    "ProtocolName",
    "ProtocolVariant",
    "Scope",
    "ScopeViolation",
    "UnsupportedAlgorithm",
    "UntrustedRoot",
    "canonical_bytes",
    "canonical_json",
    "compute_hash",
    "error_from_code",
    "utc_instant",
]

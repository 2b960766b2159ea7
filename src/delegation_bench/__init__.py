"""delegation-bench -- Transitive delegation with verifiable credentials.

A comparative benchmark of two protocols that let an issuer grant a scoped
permission, let the subject re-delegate a narrowed permission, and let any
holder prove the resulting chain to an offline verifier.

Packages
--------
- Core types, errors, config, interfaces (:mod:`delegation_bench.core`)
- Identity key material (:mod:`delegation_bench.identity`)
- Scope algebra (:mod:`delegation_bench.scope`)
- Protocol variants (:mod:`delegation_bench.protocols`)
- Presentation wire format (:mod:`delegation_bench.wire`)
- Benchmark harness (:mod:`delegation_bench.bench`)
"""
from __future__ import annotations

__version__ = "0.1.0"

from delegation_bench.core.config import BenchmarkConfig
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
from delegation_bench.core.interfaces import ProtocolVariant
from delegation_bench.core.types import (
    DelegationCredential,
    IdentityId,
    Presentation,
    ProtocolName,
    Scope,
)
from delegation_bench.identity import Keypair
from delegation_bench.protocols import (
    PJVProtocol,
    ProposedProtocol,
    VerificationResult,
    get_variant,
)
from delegation_bench.scope import can_delegate, intersect, is_subset, narrows, restrict
from delegation_bench.wire import decode_presentation, encode_presentation

__all__ = [
    "__version__",
    # Core
    "BenchmarkConfig",
    "DelegationCredential",
    "IdentityId",
    "Presentation",
    "ProtocolName",
    "ProtocolVariant",
    "Scope",
    # Errors
    "ChainBroken",
    "ChainError",
    "DelegationError",
    "DepthExceeded",
    "EncodingError",
    "ExpiredCredential",
    "InvalidSignature",
    "MalformedPresentation",
    "ScopeViolation",
    "UnsupportedAlgorithm",
    "UntrustedRoot",
    "error_from_code",
    # Identity
    "Keypair",
    # Scope algebra
    "can_delegate",
    "intersect",
    "is_subset",
    "narrows",
    "restrict",
    # Protocols
    "PJVProtocol",
    "ProposedProtocol",
    "VerificationResult",
    "get_variant",
    # Wire
    "decode_presentation",
    "encode_presentation",
]

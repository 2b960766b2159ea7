"""Delegation protocol variants.

This subpackage implements issuance, presentation assembly and offline
verification for the two protocols under comparison.

Public API
----------
- :class:`ProposedProtocol` -- hash-chained credentials.
- :class:`PJVProtocol` -- credentials re-signing their accumulated ancestry.
- :class:`DelegationProtocol` -- shared issue/assemble/verify machinery.
- :class:`VerificationResult` -- outcome of :meth:`DelegationProtocol.verify`.
- :func:`get_variant` -- resolve a variant by name.
"""
from __future__ import annotations

from delegation_bench.protocols.assembler import ChainAssembler
from delegation_bench.protocols.issuer import DEFAULT_TTL, CredentialIssuer
from delegation_bench.protocols.pjv import PJVProtocol, PJVStrategy
from delegation_bench.protocols.proposed import ProposedProtocol, ProposedStrategy, chain_head
from delegation_bench.protocols.registry import available_variants, get_variant
from delegation_bench.protocols.variant import DelegationProtocol
from delegation_bench.protocols.verifier import ChainVerifier, VerificationResult

__all__ = [
    "DEFAULT_TTL",
    "ChainAssembler",
    "ChainVerifier",
    "CredentialIssuer",
    "DelegationProtocol",
    "PJVProtocol",
    "PJVStrategy",
    "ProposedProtocol",
    "ProposedStrategy",
    "VerificationResult",
    "available_variants",
    "chain_head",
    "get_variant",
]

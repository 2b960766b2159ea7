"""A delegation protocol assembled from its canonicalization strategy.

:class:`DelegationProtocol` satisfies
:class:`~delegation_bench.core.interfaces.ProtocolVariant` by delegating
each role to the shared issuer, assembler and verifier, all bound to the
same strategy.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from delegation_bench.core.types import (
    DelegationCredential,
    IdentityId,
    Presentation,
    ProtocolName,
    Scope,
)
from delegation_bench.protocols.assembler import ChainAssembler
from delegation_bench.protocols.issuer import CredentialIssuer
from delegation_bench.protocols.verifier import ChainVerifier, VerificationResult

if TYPE_CHECKING:
    from delegation_bench.core.interfaces import CanonicalizationStrategy
    from delegation_bench.identity.keys import Keypair


class DelegationProtocol:
    """Issue, assemble and verify with one canonicalization strategy."""

    def __init__(self, strategy: CanonicalizationStrategy) -> None:
        self._strategy = strategy
        self._issuer = CredentialIssuer(strategy)
        self._assembler = ChainAssembler(strategy)
        self._verifier = ChainVerifier(strategy)

    @property
    def name(self) -> ProtocolName:
        return self._strategy.name

    @property
    def strategy(self) -> CanonicalizationStrategy:
        return self._strategy

    def issue(
        self,
        issuer_keypair: Keypair,
        subject: IdentityId,
        requested_scope: Scope,
        parent: DelegationCredential | None = None,
        *,
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> DelegationCredential:
        return self._issuer.issue(
            issuer_keypair, subject, requested_scope, parent, ttl=ttl, now=now
        )

    def assemble(
        self,
        credentials: Sequence[DelegationCredential],
        holder_keypair: Keypair,
        *,
        nonce: str | None = None,
        disclose: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> Presentation:
        return self._assembler.assemble(
            credentials, holder_keypair, nonce=nonce, disclose=disclose, now=now
        )

    def verify(
        self,
        presentation: Presentation,
        trusted_roots: frozenset[str],
        *,
        now: datetime | None = None,
        expected_holder: str | None = None,
        expected_nonce: str | None = None,
    ) -> VerificationResult:
        return self._verifier.verify(
            presentation,
            trusted_roots,
            now=now,
            expected_holder=expected_holder,
            expected_nonce=expected_nonce,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name.value!r})"

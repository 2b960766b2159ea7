"""Structural interfaces consumed by the benchmark harness.

The harness is written once against :class:`ProtocolVariant`; each
delegation protocol under comparison supplies a concrete implementation
(see :mod:`delegation_bench.protocols`).

The Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from delegation_bench.core.types import (
    ClaimSet,
    DelegationCredential,
    IdentityId,
    Presentation,
    ProtocolName,
    Scope,
)

if TYPE_CHECKING:
    from delegation_bench.identity.keys import Keypair
    from delegation_bench.protocols.verifier import VerificationResult


@runtime_checkable
class CanonicalizationStrategy(Protocol):
    """Per-variant rules for linking and serialising signed payloads.

    The strategy is the only place where the two protocols differ; the
    issuer, assembler and verifier are shared and parameterised by it.
    """

    @property
    def name(self) -> ProtocolName:
        ...

    def link(
        self, parent: DelegationCredential | None
    ) -> tuple[str | None, tuple[ClaimSet, ...]]:
        """Return the ``(parent_reference, hierarchy)`` a child of *parent* carries."""
        ...

    def signing_payload(self, credential: DelegationCredential) -> bytes:
        """Bytes covered by the issuer signature of *credential*."""
        ...

    def binding_payload(self, presentation: Presentation) -> bytes:
        """Bytes covered by the holder-binding proof of *presentation*."""
        ...


@runtime_checkable
class ProtocolVariant(Protocol):
    """A complete delegation protocol: issue, assemble, verify.

    Implementations MUST be stateless between calls so that one instance
    can serve concurrent trials.
    """

    @property
    def name(self) -> ProtocolName:
        """Stable identifier of the variant."""
        ...

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
        """Issue a credential delegating *requested_scope* to *subject*.

        Raises :class:`ScopeViolation` if the hop does not narrow *parent*.
        """
        ...

    def assemble(
        self,
        credentials: Sequence[DelegationCredential],
        holder_keypair: Keypair,
        *,
        nonce: str | None = None,
        disclose: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> Presentation:
        """Bundle a root-to-leaf chain into a holder-bound presentation."""
        ...

    def verify(
        self,
        presentation: Presentation,
        trusted_roots: frozenset[str],
        *,
        now: datetime | None = None,
        expected_holder: str | None = None,
        expected_nonce: str | None = None,
    ) -> VerificationResult:
        """Decide whether *presentation* proves its claimed scope."""
        ...

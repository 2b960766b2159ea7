"""The PJV baseline: credentials that re-sign their whole ancestry.

Each credential carries the claim sets (signatures included) of every
ancestor in its ``hierarchy`` and references its parent by identifier.
The issuer signature covers the accumulated bundle, so credential size
grows linearly with depth and a presentation grows quadratically.

The holder-binding proof signs the canonical serialisation of the
complete presentation.
"""
from __future__ import annotations

from delegation_bench.core.canonical import canonical_bytes
from delegation_bench.core.types import (
    ClaimSet,
    DelegationCredential,
    Presentation,
    ProtocolName,
)
from delegation_bench.protocols.variant import DelegationProtocol


class PJVStrategy:
    """Canonicalization rules of the PJV baseline."""

    name = ProtocolName.PJV

    def link(
        self, parent: DelegationCredential | None
    ) -> tuple[str | None, tuple[ClaimSet, ...]]:
        if parent is None:
            return None, ()
        return parent.credential_id, (*parent.hierarchy, parent.claim_set())

    def signing_payload(self, credential: DelegationCredential) -> bytes:
        return canonical_bytes(credential.unsigned_fields())

    def binding_payload(self, presentation: Presentation) -> bytes:
        return canonical_bytes(presentation.model_dump(mode="json", exclude={"proof"}))


class PJVProtocol(DelegationProtocol):
    """The PJV baseline bound to its canonicalization strategy."""

    def __init__(self) -> None:
        super().__init__(PJVStrategy())

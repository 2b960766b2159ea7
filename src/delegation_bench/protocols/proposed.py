"""The proposed protocol: hash-chained delegation credentials.

Each credential embeds ``sha256(parent.signature)`` as its parent
reference.  A credential's size is therefore independent of its position
in the chain, and the chain can only be verified in root-to-leaf order
since each link commits to exactly one predecessor.

The holder-binding proof signs the *head* of the chain: a hash folded
over every credential signature, together with the holder, nonce,
timestamp and disclosed permissions.
"""
from __future__ import annotations

from collections.abc import Sequence

from delegation_bench.core.canonical import canonical_bytes, compute_hash
from delegation_bench.core.types import (
    ClaimSet,
    DelegationCredential,
    Presentation,
    ProtocolName,
)
from delegation_bench.protocols.variant import DelegationProtocol


def chain_head(credentials: Sequence[DelegationCredential]) -> str:
    """Fold the credential signatures, root first, into a single digest."""
    head = compute_hash(b"")
    for credential in credentials:
        head = compute_hash(head + credential.signature)
    return head


class ProposedStrategy:
    """Canonicalization rules of the proposed protocol."""

    name = ProtocolName.PROPOSED

    def link(
        self, parent: DelegationCredential | None
    ) -> tuple[str | None, tuple[ClaimSet, ...]]:
        if parent is None:
            return None, ()
        return compute_hash(parent.signature), ()

    def signing_payload(self, credential: DelegationCredential) -> bytes:
        return canonical_bytes(credential.unsigned_fields(exclude={"hierarchy"}))

    def binding_payload(self, presentation: Presentation) -> bytes:
        payload = presentation.model_dump(mode="json", exclude={"credentials", "proof"})
        payload["chain_head"] = chain_head(presentation.credentials)
        return canonical_bytes(payload)


class ProposedProtocol(DelegationProtocol):
    """The proposed protocol bound to its canonicalization strategy."""

    def __init__(self) -> None:
        super().__init__(ProposedStrategy())

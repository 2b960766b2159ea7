"""Presentation assembly.

The holder bundles its root-to-leaf chain into a :class:`Presentation`
and binds it to itself with a proof made by its private key.  Assembly
performs a fast local pre-check of the chain's structure; no signature is
verified here, that is the verifier's job.
"""
from __future__ import annotations

import logging
import secrets
from collections.abc import Iterable, Sequence
from datetime import datetime
from itertools import pairwise
from typing import TYPE_CHECKING

from delegation_bench.core.errors import ChainBroken, ScopeViolation
from delegation_bench.core.types import DelegationCredential, Presentation, utc_instant
from delegation_bench.scope.algebra import narrows, restrict

if TYPE_CHECKING:
    from delegation_bench.core.interfaces import CanonicalizationStrategy
    from delegation_bench.identity.keys import Keypair

logger = logging.getLogger(__name__)

NONCE_BYTES = 32


class ChainAssembler:
    """Assembles holder-bound presentations for one protocol variant."""

    def __init__(self, strategy: CanonicalizationStrategy) -> None:
        self._strategy = strategy

    def assemble(
        self,
        credentials: Sequence[DelegationCredential],
        holder_keypair: Keypair,
        *,
        nonce: str | None = None,
        disclose: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> Presentation:
        """Bundle *credentials* into a presentation signed by the holder.

        Parameters
        ----------
        credentials:
            The chain, root first.
        holder_keypair:
            Keypair of the leaf credential's subject.
        nonce:
            Verifier challenge; a fresh 256-bit nonce when omitted.
        disclose:
            Subset of the leaf permissions to claim.  ``None`` claims the
            full leaf scope.
        now:
            Presentation timestamp; defaults to the current UTC time.

        Raises
        ------
        ChainBroken
            If the chain is empty, its root references a parent, a
            subject/issuer link is broken, the leaf subject is not the
            holder, or it mixes protocol variants.
        ScopeViolation
            If a hop does not narrow its parent, or *disclose* is empty or
            not a subset of the leaf scope.
        """
        chain = tuple(credentials)
        self._check_structure(chain, holder_keypair.identity)

        for parent, child in pairwise(chain):
            if not narrows(parent.scope, child.scope):
                raise ScopeViolation(
                    "Delegated scope is not a narrowing of the parent scope",
                    details={"credential_id": child.credential_id},
                )

        disclosed = None
        if disclose is not None:
            disclosed = restrict(chain[-1].scope, disclose).permissions

        unsigned = Presentation(
            variant=self._strategy.name,
            credentials=chain,
            holder=holder_keypair.identity,
            nonce=nonce if nonce is not None else secrets.token_urlsafe(NONCE_BYTES),
            created_at=utc_instant(now),
            disclosed=disclosed,
        )
        proof = holder_keypair.sign(self._strategy.binding_payload(unsigned))
        logger.debug(
            "Assembled %s presentation of depth %d", self._strategy.name, len(chain)
        )
        return unsigned.model_copy(update={"proof": proof})

    # -- Private helpers ----------------------------------------------------

    def _check_structure(
        self, chain: tuple[DelegationCredential, ...], holder: str
    ) -> None:
        if not chain:
            raise ChainBroken("A presentation needs at least one credential")
        if chain[0].parent_reference is not None:
            raise ChainBroken(
                "The first credential must be a root credential",
                details={"credential_id": chain[0].credential_id},
            )
        for credential in chain:
            if credential.variant != self._strategy.name:
                raise ChainBroken(
                    f"Credential {credential.credential_id} belongs to the "
                    f"{credential.variant} protocol",
                    details={"credential_id": credential.credential_id},
                )
        for index, (parent, child) in enumerate(pairwise(chain), start=1):
            if parent.subject != child.issuer:
                raise ChainBroken(
                    f"Credential {index} is not issued by the subject of credential {index - 1}",
                    details={"position": index},
                )
        if chain[-1].subject != holder:
            raise ChainBroken(
                "The holder is not the subject of the leaf credential",
                details={"leaf_subject": chain[-1].subject},
            )

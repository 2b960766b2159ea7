"""Offline chain verification.

The verifier decides whether a presentation proves its claimed scope
using only the presentation, a set of trusted root identities and the
current time.  Checks run in a fixed order and stop at the first failure:

1. **Trusted root** -- the root issuer is in the trusted set.
2. **Linkage** -- every credential is issued by the subject of its
   predecessor, the root has no parent, and the holder is the leaf subject.
3. **Signatures** -- each credential's parent reference (and, for PJV, its
   hierarchy) is recomputed from the presented predecessor and its issuer
   signature is checked over the recomputed payload.
4. **Narrowing** -- each hop narrows its parent; the disclosed permissions
   are a subset of the leaf scope.
5. **Expiry** -- ``now <= expires_at`` for every credential.
6. **Depth** -- no credential sits higher above the leaf than its depth
   budget allows.
7. **Holder binding** -- the holder's proof over the presentation.

Protocol failures are never raised out of :meth:`ChainVerifier.verify`;
they are returned in a :class:`VerificationResult`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from itertools import pairwise
from typing import TYPE_CHECKING

from delegation_bench.core.errors import (
    ChainBroken,
    ChainError,
    DepthExceeded,
    EncodingError,
    ExpiredCredential,
    InvalidSignature,
    ScopeViolation,
    UntrustedRoot,
)
from delegation_bench.core.types import DelegationCredential, Presentation, Scope, utc_instant
from delegation_bench.identity.keys import verify_signature
from delegation_bench.scope.algebra import narrows, restrict

if TYPE_CHECKING:
    from delegation_bench.core.interfaces import CanonicalizationStrategy

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VerificationResult:
    """Outcome of a presentation verification.

    Attributes
    ----------
    valid:
        ``True`` if every check passed.
    scope:
        The effective granted scope on success: the leaf scope, or its
        restriction to the disclosed permissions.
    error:
        The first decisive failure, or ``None`` on success.
    depth:
        Number of credentials in the verified chain.
    """

    valid: bool
    scope: Scope | None = None
    error: ChainError | None = None
    depth: int = 0

    @property
    def failure_kind(self) -> str | None:
        return None if self.error is None else self.error.kind

    def raise_for_failure(self) -> Scope:
        """Return the granted scope, or raise the recorded failure."""
        if self.error is not None:
            raise self.error
        if self.scope is None:
            raise ValueError("A successful result must carry the granted scope")
        return self.scope


class ChainVerifier:
    """Verifies presentations of one protocol variant.

    Parameters
    ----------
    strategy:
        The variant's :class:`CanonicalizationStrategy`.
    """

    def __init__(self, strategy: CanonicalizationStrategy) -> None:
        self._strategy = strategy

    def verify(
        self,
        presentation: Presentation,
        trusted_roots: frozenset[str],
        *,
        now: datetime | None = None,
        expected_holder: str | None = None,
        expected_nonce: str | None = None,
    ) -> VerificationResult:
        """Run the seven verification steps against *presentation*.

        Parameters
        ----------
        presentation:
            The presentation to verify.  It is never modified.
        trusted_roots:
            Identities accepted as root issuers.
        now:
            Verification instant; defaults to the current UTC time.  A
            naive value is read as UTC.
        expected_holder:
            If given, the presenter the verifier is talking to.
        expected_nonce:
            If given, the challenge the verifier issued.

        Returns
        -------
        VerificationResult
            Success with the granted scope, or the first failure.
        """
        now = utc_instant(now)
        depth = len(presentation.credentials)
        try:
            scope = self._run_steps(
                presentation, trusted_roots, now, expected_holder, expected_nonce
            )
        except ChainError as exc:
            logger.debug(
                "Rejected %s presentation of depth %d: %s (%s)",
                self._strategy.name,
                depth,
                exc.code,
                exc.message,
            )
            return VerificationResult(valid=False, error=exc, depth=depth)
        return VerificationResult(valid=True, scope=scope, depth=depth)

    # -- Steps --------------------------------------------------------------

    def _run_steps(
        self,
        presentation: Presentation,
        trusted_roots: frozenset[str],
        now: datetime,
        expected_holder: str | None,
        expected_nonce: str | None,
    ) -> Scope:
        chain = presentation.credentials

        # Step 1
        if not chain:
            raise ChainBroken("The presentation contains no credentials")
        if chain[0].issuer not in trusted_roots:
            raise UntrustedRoot(details={"issuer": chain[0].issuer})

        # Step 2
        self._check_linkage(presentation, expected_holder)

        # Step 3
        if presentation.variant != self._strategy.name:
            raise InvalidSignature(
                f"Presentation was produced by the {presentation.variant} protocol"
            )
        predecessor: DelegationCredential | None = None
        for position, credential in enumerate(chain):
            self._check_credential_signature(position, credential, predecessor)
            predecessor = credential

        # Step 4
        for position, (parent, child) in enumerate(pairwise(chain), start=1):
            if not narrows(parent.scope, child.scope):
                raise ScopeViolation(details={"position": position})
        leaf_scope = chain[-1].scope
        granted = leaf_scope
        if presentation.disclosed is not None:
            granted = restrict(leaf_scope, presentation.disclosed)

        # Step 5
        for position, credential in enumerate(chain):
            if credential.expires_at is not None and now > credential.expires_at:
                raise ExpiredCredential(
                    details={
                        "position": position,
                        "expires_at": credential.expires_at.isoformat(),
                    }
                )

        # Step 6
        for position, credential in enumerate(chain):
            below = len(chain) - position
            if below > credential.scope.max_depth:
                raise DepthExceeded(
                    details={
                        "position": position,
                        "max_depth": credential.scope.max_depth,
                        "required": below,
                    }
                )

        # Step 7
        if not self._signature_ok(
            presentation.holder,
            self._strategy.binding_payload(presentation),
            presentation.proof,
        ):
            raise InvalidSignature("Holder-binding proof is invalid")
        if expected_nonce is not None and presentation.nonce != expected_nonce:
            raise InvalidSignature("Holder-binding proof answers a different challenge")

        return granted

    def _check_linkage(
        self, presentation: Presentation, expected_holder: str | None
    ) -> None:
        chain = presentation.credentials
        if chain[0].parent_reference is not None:
            raise ChainBroken("The first credential must be a root credential")
        for position, (parent, child) in enumerate(pairwise(chain), start=1):
            if parent.subject != child.issuer:
                raise ChainBroken(
                    f"Credential {position} is not issued by the subject of its predecessor",
                    details={"position": position},
                )
        if presentation.holder != chain[-1].subject:
            raise ChainBroken("The holder is not the subject of the leaf credential")
        if expected_holder is not None and presentation.holder != expected_holder:
            raise ChainBroken("The presentation was made by an unexpected holder")

    def _check_credential_signature(
        self,
        position: int,
        credential: DelegationCredential,
        predecessor: DelegationCredential | None,
    ) -> None:
        if credential.variant != self._strategy.name:
            raise InvalidSignature(
                f"Credential {position} belongs to the {credential.variant} protocol",
                details={"position": position},
            )
        expected_reference, expected_hierarchy = self._strategy.link(predecessor)
        if (
            credential.parent_reference != expected_reference
            or credential.hierarchy != expected_hierarchy
        ):
            raise InvalidSignature(
                f"Credential {position} does not commit to its predecessor",
                details={"position": position},
            )
        if not self._signature_ok(
            credential.issuer,
            self._strategy.signing_payload(credential),
            credential.signature,
        ):
            raise InvalidSignature(
                f"Signature of credential {position} is invalid",
                details={"position": position},
            )

    @staticmethod
    def _signature_ok(identity: str, payload: bytes, signature: str) -> bool:
        try:
            return verify_signature(identity, payload, signature)
        except EncodingError:
            return False

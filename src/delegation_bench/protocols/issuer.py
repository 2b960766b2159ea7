"""Credential issuance.

A :class:`CredentialIssuer` creates one delegation hop: it checks that the
requested scope narrows the parent credential, fixes the validity window,
asks the variant's canonicalization strategy for the parent link, and
signs the resulting payload with the issuer's private key.

Nothing is issued when a check fails; :class:`ScopeViolation` is raised
instead.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from delegation_bench.core.errors import ScopeViolation
from delegation_bench.core.types import DelegationCredential, IdentityId, Scope, utc_instant
from delegation_bench.scope.algebra import can_delegate, narrows

if TYPE_CHECKING:
    from delegation_bench.core.interfaces import CanonicalizationStrategy
    from delegation_bench.identity.keys import Keypair

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=1)
"""Validity period of a credential whose requested scope has no expiry."""


class CredentialIssuer:
    """Issues delegation credentials for one protocol variant.

    Parameters
    ----------
    strategy:
        The variant's :class:`CanonicalizationStrategy`.
    """

    def __init__(self, strategy: CanonicalizationStrategy) -> None:
        self._strategy = strategy

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

        Parameters
        ----------
        issuer_keypair:
            Keypair of the delegator.  For a non-root hop its identity must
            be the subject of *parent*.
        subject:
            Identity of the delegate.
        requested_scope:
            Scope to grant.  When ``expires_at`` is unset the credential
            expires *ttl* after *now*, clamped to the parent's expiry.
        parent:
            The credential the issuer holds, or ``None`` for a root.
        ttl:
            Validity period; defaults to :data:`DEFAULT_TTL`.
        now:
            Issuance instant; defaults to the current UTC time.  A naive
            value is read as UTC.

        Returns
        -------
        DelegationCredential
            The signed, immutable credential.

        Raises
        ------
        ScopeViolation
            If the scope is empty or has a depth budget below 1, the issuer
            does not hold *parent*, the parent's depth budget is exhausted,
            or the scope does not narrow the parent's.
        """
        now = utc_instant(now)
        ttl = DEFAULT_TTL if ttl is None else ttl

        if not requested_scope.permissions:
            raise ScopeViolation("The permissions array is empty")

        expires_at = requested_scope.expires_at
        if expires_at is None:
            expires_at = now + ttl
            if parent is not None and parent.expires_at is not None:
                expires_at = min(expires_at, parent.expires_at)
        scope = requested_scope.model_copy(update={"expires_at": expires_at})

        if parent is not None:
            self._check_parent(issuer_keypair, scope, parent)
        # The budget counts the credential itself.
        if scope.max_depth < 1:
            raise ScopeViolation(
                "A credential needs a depth budget of at least 1",
                details={"max_depth": scope.max_depth},
            )

        parent_reference, hierarchy = self._strategy.link(parent)
        unsigned = DelegationCredential(
            credential_id=str(uuid.uuid4()),
            variant=self._strategy.name,
            issuer=issuer_keypair.identity,
            subject=subject,
            scope=scope,
            issued_at=now,
            parent_reference=parent_reference,
            hierarchy=hierarchy,
        )
        signature = issuer_keypair.sign(self._strategy.signing_payload(unsigned))
        credential = unsigned.model_copy(update={"signature": signature})

        logger.debug(
            "Issued %s credential %s (root=%s, %d permissions)",
            self._strategy.name,
            credential.credential_id,
            parent is None,
            len(scope.permissions),
        )
        return credential

    # -- Private helpers ----------------------------------------------------

    def _check_parent(
        self,
        issuer_keypair: Keypair,
        scope: Scope,
        parent: DelegationCredential,
    ) -> None:
        if parent.variant != self._strategy.name:
            raise ScopeViolation(
                f"Cannot extend a {parent.variant} credential with {self._strategy.name}",
                details={"parent_variant": str(parent.variant)},
            )
        if issuer_keypair.identity != parent.subject:
            raise ScopeViolation(
                "Only the subject of the parent credential may delegate it",
                details={"parent_id": parent.credential_id},
            )
        if not can_delegate(parent.scope):
            raise ScopeViolation(
                "Delegation depth budget of the parent credential is exhausted",
                details={
                    "parent_id": parent.credential_id,
                    "max_depth": parent.scope.max_depth,
                },
            )
        if not narrows(parent.scope, scope):
            raise ScopeViolation(
                "Requested scope is not a narrowing of the parent scope",
                details={
                    "parent_id": parent.credential_id,
                    "extra_permissions": sorted(scope.permissions - parent.scope.permissions),
                },
            )

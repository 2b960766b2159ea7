"""Shared domain types for the delegation protocol engine.

This module defines the value types, enums and Pydantic models shared by
both protocol variants.  All public symbols are re-exported from
``delegation_bench.core``.

Key design decisions:
* ``IdentityId`` is a ``NewType`` wrapper around ``str``: a ``did:jwk``
  identifier from which the public key can be resolved offline.
* Every model is frozen.  Credentials and presentations are never mutated
  after signing; tampering in tests goes through ``model_copy``.
* Permission sets serialise as *sorted* lists so that the canonical JSON
  of a model is deterministic.
* Enums use *string* values so they serialise cleanly to JSON.
"""
from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any, NewType

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_serializer

# ---------------------------------------------------------------------------
# Value types (NewType wrappers)
# ---------------------------------------------------------------------------

IdentityId = NewType("IdentityId", str)
"""Identity identifier in the form ``did:jwk:<base64url public JWK>``."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def utc_instant(value: datetime | None = None) -> datetime:
    """Return *value* as an aware UTC datetime, or the current time.

    Naive datetimes are taken to be in UTC.
    """
    if value is None:
        return _utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ProtocolName(enum.StrEnum):
    """The two delegation protocol variants under comparison.

    * **PROPOSED** -- each credential embeds a hash of its parent's
      signature, forming a hash chain.
    * **PJV** -- each credential re-signs the accumulated claim sets of all
      its ancestors (baseline from prior work).
    """

    PROPOSED = "proposed"
    PJV = "pjv"


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------

class Scope(BaseModel):
    """An immutable permission scope.

    ``max_depth`` is the delegation depth budget: the number of credentials
    the chain may contain from the credential carrying this scope down to
    the leaf, inclusive.  ``expires_at`` bounds the validity window; it is
    optional on a *requested* scope and always set on an issued one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    permissions: frozenset[str] = Field(
        description="Permission atoms, e.g. 'https://vc.example/resources/r1:p0'.",
    )
    max_depth: int = Field(
        default=3,
        ge=0,
        description="Remaining delegation depth budget.",
    )
    expires_at: AwareDatetime | None = None

    @field_serializer("permissions")
    def _serialize_permissions(self, value: frozenset[str]) -> list[str]:
        return sorted(value)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

class ClaimSet(BaseModel):
    """A signed credential's claims without its accumulated hierarchy.

    The PJV variant embeds one of these per ancestor in every credential it
    issues, so the whole accumulated claim set is re-signed at each hop.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    credential_id: str
    issuer: IdentityId
    subject: IdentityId
    scope: Scope
    issued_at: AwareDatetime
    parent_reference: str | None = None
    signature: str


class DelegationCredential(BaseModel):
    """A signed delegation from ``issuer`` to ``subject`` over ``scope``.

    The signature covers every field except itself, including the parent
    reference and the hierarchy, so any tamper invalidates it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    credential_id: str = Field(description="UUID v4 identifying this credential.")
    variant: ProtocolName
    issuer: IdentityId
    subject: IdentityId
    scope: Scope
    issued_at: AwareDatetime = Field(default_factory=_utcnow)
    parent_reference: str | None = Field(
        default=None,
        description="Reference to the parent credential; absent for the root.",
    )
    hierarchy: tuple[ClaimSet, ...] = Field(
        default=(),
        description="Accumulated ancestor claim sets (PJV only).",
    )
    signature: str = ""

    @property
    def expires_at(self) -> datetime | None:
        """Expiry of this credential, i.e. the upper bound of its scope."""
        return self.scope.expires_at

    @property
    def is_root(self) -> bool:
        return self.parent_reference is None

    def claim_set(self) -> ClaimSet:
        """Return this credential's claims (and signature) sans hierarchy."""
        return ClaimSet(
            credential_id=self.credential_id,
            issuer=self.issuer,
            subject=self.subject,
            scope=self.scope,
            issued_at=self.issued_at,
            parent_reference=self.parent_reference,
            signature=self.signature,
        )

    def unsigned_fields(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        """JSON-mode dump of every field covered by the signature."""
        excluded = {"signature"} | (exclude or set())
        return self.model_dump(mode="json", exclude=excluded)


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

class Presentation(BaseModel):
    """A holder-bound, root-to-leaf sequence of delegation credentials.

    ``proof`` is produced by the holder's private key over the variant's
    binding payload; it proves possession of the leaf subject's key.
    ``disclosed`` optionally narrows the claimed permissions to a subset
    of the leaf scope.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    variant: ProtocolName
    credentials: tuple[DelegationCredential, ...]
    holder: IdentityId
    nonce: str
    created_at: AwareDatetime = Field(default_factory=_utcnow)
    disclosed: frozenset[str] | None = None
    proof: str = ""

    @field_serializer("disclosed")
    def _serialize_disclosed(self, value: frozenset[str] | None) -> list[str] | None:
        return None if value is None else sorted(value)

    @property
    def root(self) -> DelegationCredential:
        return self.credentials[0]

    @property
    def leaf(self) -> DelegationCredential:
        return self.credentials[-1]

    @property
    def depth(self) -> int:
        """Number of delegation hops in the chain."""
        return len(self.credentials)

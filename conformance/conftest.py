"""Shared fixtures for delegation protocol conformance tests.

Provides keypairs, scope generators, chain builders and tamper helpers
reused by every property test.  Random generators are seeded so that a
failing case can be replayed.
"""
from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

import pytest

from delegation_bench.core.types import DelegationCredential, Presentation, Scope
from delegation_bench.identity.keys import Keypair, generate_keypairs
from delegation_bench.protocols import PJVProtocol, ProposedProtocol
from delegation_bench.protocols.variant import DelegationProtocol

# ---------------------------------------------------------------------------
# Common values used across tests
# ---------------------------------------------------------------------------
NOW = datetime(2026, 6, 15, 8, 0, tzinfo=UTC)
VERIFY_AT = NOW + timedelta(minutes=5)
ATOMS = tuple(f"https://vc.example/resources/r1:p{i}" for i in range(8))
SEEDS = list(range(12))
VARIANTS = [ProposedProtocol, PJVProtocol]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(params=VARIANTS, ids=["proposed", "pjv"])
def protocol(request: pytest.FixtureRequest) -> DelegationProtocol:
    return request.param()


@pytest.fixture()
def keys() -> list[Keypair]:
    """Eight parties; keys[0] is the trusted root."""
    return generate_keypairs(8)


# ---------------------------------------------------------------------------
# Scope helpers
# ---------------------------------------------------------------------------
def random_narrowing(rng: random.Random, parent: Scope) -> Scope:
    """Draw a random scope that narrows *parent*."""
    size = rng.randint(1, len(parent.permissions))
    permissions = frozenset(rng.sample(sorted(parent.permissions), size))
    max_depth = rng.randint(0, parent.max_depth - 1)
    expires_at = parent.expires_at
    if expires_at is not None:
        expires_at -= timedelta(seconds=rng.randint(0, 600))
    return Scope(permissions=permissions, max_depth=max_depth, expires_at=expires_at)


def random_root_scope(rng: random.Random, depth: int) -> Scope:
    size = rng.randint(1, len(ATOMS))
    return Scope(
        permissions=frozenset(rng.sample(ATOMS, size)),
        max_depth=depth + rng.randint(0, 2),
        expires_at=NOW + timedelta(hours=rng.randint(1, 4)),
    )


# ---------------------------------------------------------------------------
# Chain helpers
# ---------------------------------------------------------------------------
def make_chain(
    protocol: DelegationProtocol,
    keys: list[Keypair],
    depth: int,
    *,
    rng: random.Random | None = None,
) -> list[DelegationCredential]:
    """Issue a chain keys[0] -> keys[1] -> ... -> keys[depth].

    With *rng*, every hop draws a random narrowing scope whose depth
    budget still lets the chain reach *depth*; otherwise every hop keeps
    all permissions and spends exactly one unit of depth.
    """
    credentials: list[DelegationCredential] = []
    parent: DelegationCredential | None = None
    scope = (
        random_root_scope(rng, depth)
        if rng is not None
        else Scope(permissions=frozenset(ATOMS[:3]), max_depth=depth)
    )
    for hop in range(depth):
        parent = protocol.issue(keys[hop], keys[hop + 1].identity, scope, parent, now=NOW)
        credentials.append(parent)
        remaining = depth - hop - 1
        if rng is not None and remaining:
            scope = random_narrowing(rng, parent.scope)
            scope = scope.model_copy(update={"max_depth": max(scope.max_depth, remaining)})
        else:
            scope = Scope(permissions=parent.scope.permissions, max_depth=parent.scope.max_depth - 1)
    return credentials


def present(
    protocol: DelegationProtocol,
    credentials: list[DelegationCredential],
    holder: Keypair,
) -> Presentation:
    return protocol.assemble(credentials, holder, nonce="conformance", now=VERIFY_AT)


def resign(holder: Keypair, protocol: DelegationProtocol, vp: Presentation) -> Presentation:
    """Re-create the holder proof after the credentials were modified."""
    unsigned = vp.model_copy(update={"proof": ""})
    proof = holder.sign(protocol.strategy.binding_payload(unsigned))
    return unsigned.model_copy(update={"proof": proof})


def replace_credential(
    vp: Presentation, index: int, credential: DelegationCredential
) -> Presentation:
    credentials = list(vp.credentials)
    credentials[index] = credential
    return vp.model_copy(update={"credentials": tuple(credentials)})


def sign_raw(
    protocol: DelegationProtocol,
    issuer: Keypair,
    unsigned: DelegationCredential,
) -> DelegationCredential:
    """Sign a hand-built credential, bypassing the issuance checks."""
    signature = issuer.sign(protocol.strategy.signing_payload(unsigned))
    return unsigned.model_copy(update={"signature": signature})

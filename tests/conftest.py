"""Shared fixtures for the unit tests.

Provides both protocol variants and a factory building well-formed
delegation chains of any depth.
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

import pytest

from delegation_bench.core.types import DelegationCredential, Scope
from delegation_bench.identity.keys import Keypair, generate_keypairs
from delegation_bench.protocols import PJVProtocol, ProposedProtocol
from delegation_bench.protocols.variant import DelegationProtocol

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)
PERMISSIONS = ("https://vc.example/resources/r1:p0",
               "https://vc.example/resources/r1:p1",
               "https://vc.example/resources/r1:p2")


@dataclass
class Chain:
    """A delegation chain issued by ``keys[0]`` and held by ``keys[-1]``."""

    protocol: DelegationProtocol
    keys: list[Keypair]
    credentials: list[DelegationCredential]

    @property
    def root(self) -> Keypair:
        return self.keys[0]

    @property
    def holder(self) -> Keypair:
        return self.keys[-1]

    @property
    def trusted_roots(self) -> frozenset[str]:
        return frozenset({self.root.identity})


ChainFactory = Callable[..., Chain]


def build_chain(
    protocol: DelegationProtocol,
    depth: int = 3,
    *,
    permissions: Sequence[str] = PERMISSIONS,
    algorithm: str = "EdDSA",
    now: datetime = NOW,
) -> Chain:
    """Issue *depth* credentials, each hop narrowing the depth budget by one."""
    keys = generate_keypairs(depth + 1, algorithm)
    credentials: list[DelegationCredential] = []
    parent: DelegationCredential | None = None
    for hop in range(depth):
        parent = protocol.issue(
            keys[hop],
            keys[hop + 1].identity,
            Scope(permissions=frozenset(permissions), max_depth=depth - hop),
            parent,
            now=now,
        )
        credentials.append(parent)
    return Chain(protocol=protocol, keys=keys, credentials=credentials)


@pytest.fixture(params=[ProposedProtocol, PJVProtocol], ids=["proposed", "pjv"])
def protocol(request: pytest.FixtureRequest) -> DelegationProtocol:
    return request.param()


@pytest.fixture
def chain_factory() -> ChainFactory:
    return build_chain

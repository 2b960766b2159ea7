"""Tests for offline chain verification.

Each of the seven verification steps is exercised passing and failing
independently, for both protocol variants:

1. Trusted root             -> UntrustedRoot
2. Linkage / holder         -> ChainBroken
3. Credential signatures    -> InvalidSignature
4. Narrowing / disclosure   -> ScopeViolation
5. Expiry                   -> ExpiredCredential
6. Depth budget             -> DepthExceeded
7. Holder binding / nonce   -> InvalidSignature
"""
from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import NOW, PERMISSIONS, Chain, ChainFactory
from delegation_bench.core.errors import (
    ChainBroken,
    DepthExceeded,
    ExpiredCredential,
    InvalidSignature,
    ScopeViolation,
    UntrustedRoot,
)
from delegation_bench.core.types import DelegationCredential, Presentation, Scope
from delegation_bench.identity.keys import Keypair
from delegation_bench.protocols import PJVProtocol, ProposedProtocol, VerificationResult
from delegation_bench.protocols.variant import DelegationProtocol

AT = NOW + timedelta(minutes=1)


def _present(chain: Chain, **kwargs: object) -> Presentation:
    kwargs.setdefault("nonce", "challenge-1")
    kwargs.setdefault("now", AT)
    return chain.protocol.assemble(chain.credentials, chain.holder, **kwargs)  # type: ignore[arg-type]


def _verify(chain: Chain, vp: Presentation, **kwargs: object) -> VerificationResult:
    kwargs.setdefault("now", AT)
    return chain.protocol.verify(vp, chain.trusted_roots, **kwargs)  # type: ignore[arg-type]


def _resign_presentation(chain: Chain, vp: Presentation) -> Presentation:
    """Recompute the holder proof so only credential-level tampering remains."""
    unsigned = vp.model_copy(update={"proof": ""})
    proof = chain.holder.sign(chain.protocol.strategy.binding_payload(unsigned))
    return unsigned.model_copy(update={"proof": proof})


def _replace(vp: Presentation, index: int, credential: DelegationCredential) -> Presentation:
    credentials = list(vp.credentials)
    credentials[index] = credential
    return vp.model_copy(update={"credentials": tuple(credentials)})


# ===================================================================
# Success
# ===================================================================

class TestValidPresentations:
    @pytest.mark.parametrize("depth", [1, 2, 5])
    def test_valid_chain(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory, depth: int
    ) -> None:
        chain = chain_factory(protocol, depth=depth)
        result = _verify(chain, _present(chain))
        assert result.valid
        assert result.error is None
        assert result.scope == chain.credentials[-1].scope
        assert result.depth == depth

    def test_es256_chain(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=3, algorithm="ES256")
        assert _verify(chain, _present(chain)).valid

    def test_disclosed_scope_returned(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain, disclose=[PERMISSIONS[1]])
        result = _verify(chain, vp)
        assert result.valid
        assert result.scope is not None
        assert result.scope.permissions == frozenset({PERMISSIONS[1]})

    def test_expected_holder_and_nonce(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        result = _verify(
            chain,
            _present(chain),
            expected_holder=chain.holder.identity,
            expected_nonce="challenge-1",
        )
        assert result.valid

    def test_raise_for_failure_returns_scope(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        scope = _verify(chain, _present(chain)).raise_for_failure()
        assert scope == chain.credentials[-1].scope

    def test_raise_for_failure_without_scope(self) -> None:
        with pytest.raises(ValueError, match="granted scope"):
            VerificationResult(valid=True).raise_for_failure()

    def test_verification_does_not_mutate(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=3)
        vp = _present(chain)
        before = vp.model_dump_json()
        _verify(chain, vp)
        assert vp.model_dump_json() == before


# ===================================================================
# Step 1 -- trusted root
# ===================================================================

class TestTrustedRoot:
    def test_untrusted_root(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        result = protocol.verify(_present(chain), frozenset({Keypair.generate().identity}), now=AT)
        assert not result.valid
        assert isinstance(result.error, UntrustedRoot)
        assert result.failure_kind == "UntrustedRoot"

    def test_empty_trust_set(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=1)
        result = protocol.verify(_present(chain), frozenset(), now=AT)
        assert isinstance(result.error, UntrustedRoot)

    def test_empty_presentation(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=1)
        vp = _present(chain).model_copy(update={"credentials": ()})
        assert isinstance(_verify(chain, vp).error, ChainBroken)

    def test_raise_for_failure(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=1)
        result = protocol.verify(_present(chain), frozenset(), now=AT)
        with pytest.raises(UntrustedRoot):
            result.raise_for_failure()


# ===================================================================
# Step 2 -- linkage
# ===================================================================

class TestLinkage:
    def test_dropped_middle_credential(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=3)
        vp = _present(chain)
        broken = vp.model_copy(update={"credentials": (vp.credentials[0], vp.credentials[2])})
        assert isinstance(_verify(chain, broken).error, ChainBroken)

    def test_swapped_credentials(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=3)
        vp = _present(chain)
        first, second, third = vp.credentials
        swapped = vp.model_copy(update={"credentials": (first, third, second)})
        assert isinstance(_verify(chain, swapped).error, ChainBroken)

    def test_non_root_first(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=3)
        vp = _present(chain)
        # Trust the second issuer so the root check passes.
        trusted = frozenset({chain.keys[1].identity})
        truncated = vp.model_copy(update={"credentials": vp.credentials[1:]})
        result = protocol.verify(truncated, trusted, now=AT)
        assert isinstance(result.error, ChainBroken)

    def test_holder_not_leaf_subject(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain).model_copy(update={"holder": chain.keys[1].identity})
        assert isinstance(_verify(chain, vp).error, ChainBroken)

    def test_unexpected_holder(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        result = _verify(chain, _present(chain), expected_holder=Keypair.generate().identity)
        assert isinstance(result.error, ChainBroken)


# ===================================================================
# Step 3 -- credential signatures
# ===================================================================

class TestCredentialSignatures:
    def test_tampered_permissions(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2, permissions=PERMISSIONS)
        vp = _present(chain)
        leaf = vp.credentials[1]
        narrower = leaf.model_copy(
            update={"scope": leaf.scope.model_copy(update={"permissions": frozenset(PERMISSIONS[:1])})}
        )
        tampered = _resign_presentation(chain, _replace(vp, 1, narrower))
        assert isinstance(_verify(chain, tampered).error, InvalidSignature)

    def test_tampered_expiry(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain)
        leaf = vp.credentials[1]
        earlier = leaf.model_copy(
            update={"scope": leaf.scope.model_copy(update={"expires_at": NOW + timedelta(minutes=30)})}
        )
        tampered = _resign_presentation(chain, _replace(vp, 1, earlier))
        assert isinstance(_verify(chain, tampered).error, InvalidSignature)

    def test_tampered_root_subject(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=1)
        vp = _present(chain)
        other = Keypair.generate()
        root = vp.credentials[0].model_copy(update={"subject": other.identity})
        forged = protocol.assemble([root], other, now=AT)
        assert isinstance(_verify(chain, forged).error, InvalidSignature)

    def test_tampered_parent_reference(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain)
        leaf = vp.credentials[1].model_copy(update={"parent_reference": "sha256:" + "0" * 64})
        tampered = _resign_presentation(chain, _replace(vp, 1, leaf))
        assert isinstance(_verify(chain, tampered).error, InvalidSignature)

    def test_substituted_parent(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain)
        # Re-issue the root to the same subject: linkage still holds but the
        # leaf commits to the original root.
        substitute = protocol.issue(
            chain.root,
            chain.keys[1].identity,
            Scope(permissions=frozenset(PERMISSIONS), max_depth=2),
            now=NOW,
        )
        tampered = _resign_presentation(chain, _replace(vp, 0, substitute))
        assert isinstance(_verify(chain, tampered).error, InvalidSignature)

    def test_forged_signature(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain)
        forger = Keypair.generate()
        leaf = vp.credentials[1]
        forged = leaf.model_copy(
            update={"signature": forger.sign(protocol.strategy.signing_payload(leaf))}
        )
        tampered = _resign_presentation(chain, _replace(vp, 1, forged))
        assert isinstance(_verify(chain, tampered).error, InvalidSignature)

    def test_unresolvable_issuer(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=1)
        vp = _present(chain)
        result = protocol.verify(vp, frozenset({chain.root.identity}), now=AT)
        assert result.valid
        bogus = "did:web:example.com"
        root = vp.credentials[0].model_copy(update={"issuer": bogus})
        tampered = _resign_presentation(chain, _replace(vp, 0, root))
        result = protocol.verify(tampered, frozenset({bogus}), now=AT)
        assert isinstance(result.error, InvalidSignature)

    def test_cross_variant_presentation(self, chain_factory: ChainFactory) -> None:
        chain = chain_factory(ProposedProtocol(), depth=2)
        result = PJVProtocol().verify(_present(chain), chain.trusted_roots, now=AT)
        assert isinstance(result.error, InvalidSignature)


class TestPJVHierarchy:
    def test_tampered_hierarchy_entry(self, chain_factory: ChainFactory) -> None:
        chain = chain_factory(PJVProtocol(), depth=3)
        vp = _present(chain)
        leaf = vp.credentials[2]
        entry = leaf.hierarchy[0].model_copy(update={"signature": "AAAA"})
        forged = leaf.model_copy(update={"hierarchy": (entry, leaf.hierarchy[1])})
        tampered = _resign_presentation(chain, _replace(vp, 2, forged))
        assert isinstance(_verify(chain, tampered).error, InvalidSignature)

    def test_truncated_hierarchy(self, chain_factory: ChainFactory) -> None:
        chain = chain_factory(PJVProtocol(), depth=3)
        vp = _present(chain)
        leaf = vp.credentials[2]
        forged = leaf.model_copy(update={"hierarchy": leaf.hierarchy[1:]})
        tampered = _resign_presentation(chain, _replace(vp, 2, forged))
        assert isinstance(_verify(chain, tampered).error, InvalidSignature)


# ===================================================================
# Step 4 -- narrowing and disclosure
# ===================================================================

class TestNarrowing:
    def test_widening_hop_signed_by_delegator(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2, permissions=PERMISSIONS[:1])
        root = chain.credentials[0]
        # The delegator signs a wider scope by hand, bypassing issuance checks.
        parent_reference, hierarchy = protocol.strategy.link(root)
        unsigned = DelegationCredential(
            credential_id="wide",
            variant=protocol.name,
            issuer=chain.keys[1].identity,
            subject=chain.holder.identity,
            scope=Scope(permissions=frozenset(PERMISSIONS), max_depth=1, expires_at=root.expires_at),
            issued_at=NOW,
            parent_reference=parent_reference,
            hierarchy=hierarchy,
        )
        wide = unsigned.model_copy(
            update={"signature": chain.keys[1].sign(protocol.strategy.signing_payload(unsigned))}
        )
        vp = _present(chain)
        tampered = _resign_presentation(chain, _replace(vp, 1, wide))
        assert isinstance(_verify(chain, tampered).error, ScopeViolation)

    def test_disclosure_outside_leaf(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain).model_copy(update={"disclosed": frozenset({"admin"})})
        assert isinstance(_verify(chain, _resign_presentation(chain, vp)).error, ScopeViolation)


# ===================================================================
# Step 5 -- expiry
# ===================================================================

class TestExpiry:
    def test_expired_chain(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        result = _verify(chain, _present(chain), now=NOW + timedelta(hours=2))
        assert isinstance(result.error, ExpiredCredential)

    def test_valid_at_exact_expiry(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        expiry = chain.credentials[-1].expires_at
        assert _verify(chain, _present(chain), now=expiry).valid

    def test_expired_after_instant(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        expiry = chain.credentials[-1].expires_at
        assert expiry is not None
        result = _verify(chain, _present(chain), now=expiry + timedelta(microseconds=1))
        assert isinstance(result.error, ExpiredCredential)

    def test_naive_instant_read_as_utc(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain)
        assert _verify(chain, vp, now=AT.replace(tzinfo=None)).valid
        late = (NOW + timedelta(hours=2)).replace(tzinfo=None)
        assert isinstance(_verify(chain, vp, now=late).error, ExpiredCredential)


# ===================================================================
# Step 6 -- depth budget
# ===================================================================

class TestDepthBudget:
    def test_child_beyond_budget(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=1)
        root = chain.credentials[0]
        delegate = Keypair.generate()
        # Forge a child of a depth-1 root; it narrows (max_depth 0) but the
        # chain is now longer than the root allows.
        parent_reference, hierarchy = protocol.strategy.link(root)
        unsigned = DelegationCredential(
            credential_id="too-deep",
            variant=protocol.name,
            issuer=chain.holder.identity,
            subject=delegate.identity,
            scope=Scope(permissions=root.scope.permissions, max_depth=0, expires_at=root.expires_at),
            issued_at=NOW,
            parent_reference=parent_reference,
            hierarchy=hierarchy,
        )
        child = unsigned.model_copy(
            update={"signature": chain.holder.sign(protocol.strategy.signing_payload(unsigned))}
        )
        vp = protocol.assemble([root, child], delegate, now=AT)
        result = _verify(chain, vp)
        assert isinstance(result.error, DepthExceeded)
        assert result.error.details["position"] == 0


# ===================================================================
# Step 7 -- holder binding
# ===================================================================

class TestHolderBinding:
    def test_proof_by_other_key(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain)
        impostor = Keypair.generate()
        forged = vp.model_copy(
            update={"proof": impostor.sign(protocol.strategy.binding_payload(vp))}
        )
        assert isinstance(_verify(chain, forged).error, InvalidSignature)

    def test_replayed_with_new_nonce(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain).model_copy(update={"nonce": "challenge-2"})
        assert isinstance(_verify(chain, vp).error, InvalidSignature)

    def test_wrong_challenge(self, protocol: DelegationProtocol, chain_factory: ChainFactory) -> None:
        chain = chain_factory(protocol, depth=2)
        result = _verify(chain, _present(chain), expected_nonce="other")
        assert isinstance(result.error, InvalidSignature)

    def test_widened_disclosure_after_signing(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain, disclose=[PERMISSIONS[0]])
        widened = vp.model_copy(update={"disclosed": None})
        assert isinstance(_verify(chain, widened).error, InvalidSignature)


# ===================================================================
# Ordering of checks
# ===================================================================

class TestStepOrder:
    def test_untrusted_root_reported_before_expiry(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        result = protocol.verify(_present(chain), frozenset(), now=NOW + timedelta(days=1))
        assert isinstance(result.error, UntrustedRoot)

    def test_signature_reported_before_expiry(
        self, protocol: DelegationProtocol, chain_factory: ChainFactory
    ) -> None:
        chain = chain_factory(protocol, depth=2)
        vp = _present(chain)
        leaf = vp.credentials[1].model_copy(update={"signature": "AAAA"})
        tampered = _resign_presentation(chain, _replace(vp, 1, leaf))
        result = _verify(chain, tampered, now=NOW + timedelta(days=1))
        assert isinstance(result.error, InvalidSignature)

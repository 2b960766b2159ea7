#!/usr/bin/env python3
"""delegation-bench quickstart -- a three-hop delegation chain.

Demonstrates the core workflow for both protocol variants:

1. Generate identity keypairs for a root issuer and two delegates.
2. Issue a root credential granting three permissions.
3. Re-delegate a narrowed scope down the chain.
4. Assemble a holder-bound presentation disclosing one permission.
5. Encode it as a compact JWS and decode it on the verifier side.
6. Verify the chain offline against the trusted root.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

from delegation_bench import Scope, decode_presentation, encode_presentation, get_variant
from delegation_bench.identity import generate_keypairs
from delegation_bench.wire import encoded_length

PERMISSIONS = frozenset(
    f"https://vc.example/resources/r1:p{i}" for i in range(3)
)


def run(variant_name: str) -> None:
    protocol = get_variant(variant_name)
    print(f"== {protocol.name} ==")

    # -- Step 1: Identities --------------------------------------------------
    root, middle, leaf = generate_keypairs(3)
    print(f"[1] Root identity: {root.identity[:40]}...")

    # -- Step 2: Root credential ---------------------------------------------
    granted = protocol.issue(root, middle.identity, Scope(permissions=PERMISSIONS, max_depth=2))
    print(f"[2] Root credential issued, expires {granted.expires_at:%H:%M:%S}")

    # -- Step 3: Narrowed re-delegation --------------------------------------
    narrowed = Scope(permissions=frozenset(sorted(PERMISSIONS)[:2]), max_depth=1)
    delegated = protocol.issue(middle, leaf.identity, narrowed, granted)
    print(f"[3] Delegated {len(narrowed.permissions)} permissions to the leaf")

    # -- Step 4: Presentation ------------------------------------------------
    disclosed = sorted(narrowed.permissions)[:1]
    presentation = protocol.assemble([granted, delegated], leaf, disclose=disclosed)
    print(f"[4] Presentation assembled with nonce {presentation.nonce[:12]}...")

    # -- Step 5: Wire round-trip ---------------------------------------------
    token = encode_presentation(presentation, leaf, protocol.name)
    received = decode_presentation(token)
    print(f"[5] Encoded presentation: {encoded_length(token)} bytes")

    # -- Step 6: Offline verification ----------------------------------------
    result = protocol.verify(
        received, frozenset({root.identity}), expected_nonce=presentation.nonce
    )
    if result.valid and result.scope is not None:
        print(f"[6] Verified: {sorted(result.scope.permissions)}")
    else:
        print(f"[6] Rejected: [{result.error.code}] {result.error.message}")  # type: ignore[union-attr]
    print()


if __name__ == "__main__":
    for name in ("proposed", "pjv"):
        run(name)

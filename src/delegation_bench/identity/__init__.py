"""Identity key material.

Public API
----------
- :class:`Keypair` -- an EdDSA or ES256 keypair with a ``did:jwk`` identity.
- :func:`resolve_identity` -- recover the public key from an identity.
- :func:`verify_signature` -- check a signature against an identity.
"""
from __future__ import annotations

from delegation_bench.identity.keys import (
    SUPPORTED_ALGORITHMS,
    Keypair,
    generate_keypairs,
    identity_from_public_key,
    resolve_identity,
    verify_signature,
)

__all__ = [
    "SUPPORTED_ALGORITHMS",
    "Keypair",
    "generate_keypairs",
    "identity_from_public_key",
    "resolve_identity",
    "verify_signature",
]

"""Identity key material.

Every party (root issuer, intermediate delegate, holder) owns a
:class:`Keypair`.  Its public identifier is a ``did:jwk`` DID: the
base64url encoding of the canonical public JWK.  A verifier can therefore
resolve the public key of any identity embedded in a credential without
contacting its owner.

Two signature algorithms are supported, the same pair PyJWT exposes for
compact JWS:

* **EdDSA** -- Ed25519 (RFC 8032), the algorithm used by the original
  evaluation.
* **ES256** -- ECDSA with the NIST P-256 curve and SHA-256; signatures are
  the raw ``r || s`` form used by JWS.
"""
from __future__ import annotations

import binascii
import json
from functools import lru_cache
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from jwt.algorithms import get_default_algorithms
from jwt.exceptions import InvalidKeyError
from jwt.utils import base64url_decode, base64url_encode

from delegation_bench.core.canonical import canonical_bytes
from delegation_bench.core.errors import UnsupportedAlgorithm
from delegation_bench.core.types import IdentityId

# ---------------------------------------------------------------------------
# Type aliases for key types
# ---------------------------------------------------------------------------

PrivateKey = ec.EllipticCurvePrivateKey | ed25519.Ed25519PrivateKey
PublicKey = ec.EllipticCurvePublicKey | ed25519.Ed25519PublicKey

SUPPORTED_ALGORITHMS: tuple[str, ...] = ("EdDSA", "ES256")
"""Signature algorithms accepted for identity keypairs."""

DID_JWK_PREFIX = "did:jwk:"

_KTY_ALGORITHMS = {"OKP": "EdDSA", "EC": "ES256"}
_ALGORITHMS = get_default_algorithms()


def _algorithm(name: str) -> Any:
    if name not in SUPPORTED_ALGORITHMS:
        raise UnsupportedAlgorithm(
            f"Unsupported key algorithm: '{name}'. "
            f"Supported: {', '.join(SUPPORTED_ALGORITHMS)}.",
            details={"algorithm": name},
        )
    return _ALGORITHMS[name]


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def identity_from_public_key(public_key: PublicKey, algorithm: str) -> IdentityId:
    """Derive the stable ``did:jwk`` identifier of *public_key*."""
    jwk = _algorithm(algorithm).to_jwk(public_key, as_dict=True)
    encoded = base64url_encode(canonical_bytes(jwk)).decode("ascii")
    return IdentityId(f"{DID_JWK_PREFIX}{encoded}")


@lru_cache(maxsize=4096)
def resolve_identity(identity: str) -> tuple[str, PublicKey]:
    """Resolve a ``did:jwk`` identifier to ``(algorithm, public_key)``.

    Raises
    ------
    UnsupportedAlgorithm
        If *identity* is not a well-formed ``did:jwk`` of a supported key
        type.
    """
    if not identity.startswith(DID_JWK_PREFIX):
        raise UnsupportedAlgorithm(
            "Identity is not a did:jwk identifier",
            details={"identity": identity},
        )
    try:
        jwk = json.loads(base64url_decode(identity[len(DID_JWK_PREFIX):]))
        algorithm = _KTY_ALGORITHMS[jwk["kty"]]
        public_key = _ALGORITHMS[algorithm].from_jwk(jwk)
    except (binascii.Error, ValueError, KeyError, TypeError, InvalidKeyError) as exc:
        raise UnsupportedAlgorithm(
            f"Cannot resolve identity public key: {exc}",
            details={"identity": identity},
        ) from exc
    return algorithm, public_key


def verify_signature(identity: str, data: bytes, signature: str) -> bool:
    """Check a base64url *signature* over *data* against *identity*'s key.

    Returns ``False`` for a wrong or malformed signature.  An identity that
    cannot be resolved raises :class:`UnsupportedAlgorithm`.
    """
    algorithm, public_key = resolve_identity(identity)
    try:
        raw = base64url_decode(signature)
        return bool(_ALGORITHMS[algorithm].verify(data, public_key, raw))
    except (binascii.Error, ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# Keypair
# ---------------------------------------------------------------------------

class Keypair:
    """An asymmetric identity keypair.

    The private half never leaves this object except through
    :attr:`private_key`, which the presentation codec needs to sign the
    compact JWS.  ``repr()`` shows only the public identifier.
    """

    __slots__ = ("_private_key", "algorithm", "identity")

    def __init__(self, private_key: PrivateKey, algorithm: str = "EdDSA") -> None:
        _algorithm(algorithm)
        self._private_key = private_key
        self.algorithm = algorithm
        self.identity = identity_from_public_key(private_key.public_key(), algorithm)

    @classmethod
    def generate(cls, algorithm: str = "EdDSA") -> Keypair:
        """Generate a fresh keypair for *algorithm*."""
        _algorithm(algorithm)
        if algorithm == "EdDSA":
            private_key: PrivateKey = ed25519.Ed25519PrivateKey.generate()
        else:
            private_key = ec.generate_private_key(ec.SECP256R1())
        return cls(private_key, algorithm)

    @property
    def private_key(self) -> PrivateKey:
        return self._private_key

    @property
    def public_key(self) -> PublicKey:
        return self._private_key.public_key()

    def sign(self, data: bytes) -> str:
        """Sign *data* and return the base64url-encoded signature."""
        raw = _ALGORITHMS[self.algorithm].sign(data, self._private_key)
        return base64url_encode(raw).decode("ascii")

    def __repr__(self) -> str:
        return f"Keypair(algorithm={self.algorithm!r}, identity={self.identity!r})"


def generate_keypairs(count: int, algorithm: str = "EdDSA") -> list[Keypair]:
    """Generate *count* independent keypairs, e.g. one per delegator."""
    return [Keypair.generate(algorithm) for _ in range(count)]

"""Delegation benchmark error-code hierarchy.

Every failure the protocol engine can report is a concrete exception class
carrying a stable error code.

Hierarchy
---------
::

    DelegationError
    +-- ChainError        (DB-E1xx)  issuance and verification failures
    +-- EncodingError     (DB-E2xx)  key material and wire codec failures

Usage
-----
Issuance raises concrete subclasses directly::

    raise ScopeViolation("requested permissions exceed the parent scope")

Verification never raises them; the first decisive error is carried by the
returned :class:`~delegation_bench.protocols.verifier.VerificationResult`.
Catch by category::

    try:
        ...
    except ChainError:
        # handles ScopeViolation, ChainBroken, InvalidSignature, etc.
        ...
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class DelegationError(Exception):
    """Base exception for all delegation protocol errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"DB-E100"``.
    message : str
        Human-readable description (MUST NOT contain private key material).
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "DB-E000"
    message: str = "Unknown delegation error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        """The failure kind, i.e. the concrete class name."""
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a plain report dictionary."""
        payload: dict[str, Any] = {
            "code": self.code,
            "kind": self.kind,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class ChainError(DelegationError):
    """DB-E1xx -- Delegation chain issuance and verification errors."""

    code = "DB-E1XX"


class EncodingError(DelegationError):
    """DB-E2xx -- Key material and presentation encoding errors."""

    code = "DB-E2XX"


# ===================================================================
# DB-E1xx  Chain errors
# ===================================================================

class ScopeViolation(ChainError):
    """DB-E100 -- A delegation hop does not narrow its parent's scope."""

    code = "DB-E100"
    message = "Delegated scope is not a narrowing of the parent scope"
    resolution = (
        "Request a subset of the parent's permissions with a smaller "
        "depth budget and an expiry no later than the parent's."
    )


class ChainBroken(ChainError):
    """DB-E101 -- Subject/issuer linkage between credentials is broken."""

    code = "DB-E101"
    message = "Delegation chain linkage is broken"
    resolution = (
        "Present the credentials in root-to-leaf order, each issued by "
        "the subject of the previous one, ending at the presenter."
    )


class InvalidSignature(ChainError):
    """DB-E102 -- A credential signature or the holder-binding proof is invalid."""

    code = "DB-E102"
    message = "Signature verification failed"
    resolution = "The presentation has been tampered with or signed by the wrong key."


class ExpiredCredential(ChainError):
    """DB-E103 -- A credential in the chain has expired."""

    code = "DB-E103"
    message = "Delegation credential has expired"
    resolution = "Request a fresh delegation from the issuer."


class DepthExceeded(ChainError):
    """DB-E104 -- The chain is longer than a credential's depth budget allows."""

    code = "DB-E104"
    message = "Delegation depth budget exceeded"
    resolution = (
        "The delegate must act directly, without further delegation."
    )


class UntrustedRoot(ChainError):
    """DB-E105 -- The root credential was not issued by a trusted root."""

    code = "DB-E105"
    message = "Root issuer is not trusted by the verifier"
    resolution = "Add the root issuer identity to the verifier's trusted roots."


# ===================================================================
# DB-E2xx  Encoding errors
# ===================================================================

class MalformedPresentation(EncodingError):
    """DB-E200 -- An encoded presentation could not be decoded."""

    code = "DB-E200"
    message = "Malformed presentation token"
    resolution = (
        "Verify the token is a compact JWS produced by encode_presentation."
    )


class UnsupportedAlgorithm(EncodingError):
    """DB-E201 -- The key algorithm or identity format is not supported."""

    code = "DB-E201"
    message = "Unsupported key algorithm"
    resolution = "Use one of the supported algorithms: EdDSA, ES256."


# ---------------------------------------------------------------------------
# Lookup helper
# ---------------------------------------------------------------------------

_CODE_MAP: dict[str, type[DelegationError]] = {
    cls.code: cls
    for cls in [
        # E1xx
        ScopeViolation,
        ChainBroken,
        InvalidSignature,
        ExpiredCredential,
        DepthExceeded,
        UntrustedRoot,
        # E2xx
        MalformedPresentation,
        UnsupportedAlgorithm,
    ]
}


def error_from_code(code: str, message: str | None = None) -> DelegationError:
    """Instantiate the correct exception class for an error code.

    Parameters
    ----------
    code:
        An error code such as ``"DB-E102"``.
    message:
        Optional override for the default error message.

    Raises
    ------
    KeyError
        If *code* is not a recognised error code.
    """
    cls = _CODE_MAP[code]
    return cls(message) if message else cls()

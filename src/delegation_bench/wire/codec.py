"""Compact JWS encoding of presentations.

A presentation travels as a compact JWS signed by the holder, with
``typ: "vp+jwt"`` and the holder identity as ``kid`` so that the decoder
can resolve the verification key from the token alone.  The payload
carries the presentation under the ``vp`` claim; every credential of the
chain is included for both variants.  The byte length of the token is the
"VP length" metric reported by the benchmark.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

import jwt
from pydantic import ValidationError

from delegation_bench.core.errors import MalformedPresentation, UnsupportedAlgorithm
from delegation_bench.core.types import Presentation, ProtocolName
from delegation_bench.identity.keys import resolve_identity

if TYPE_CHECKING:
    from delegation_bench.identity.keys import Keypair

VP_TYPE = "vp+jwt"


def encode_presentation(
    presentation: Presentation,
    holder_keypair: Keypair,
    variant: ProtocolName | str,
) -> str:
    """Serialise *presentation* to a compact JWS signed by the holder.

    Raises
    ------
    MalformedPresentation
        If the presentation belongs to another variant or another holder.
    """
    if presentation.variant != ProtocolName(variant):
        raise MalformedPresentation(
            f"Cannot encode a {presentation.variant} presentation as {variant}",
        )
    if presentation.holder != holder_keypair.identity:
        raise MalformedPresentation(
            "Only the holder of a presentation may encode it",
        )

    payload: dict[str, Any] = {
        "iss": holder_keypair.identity,
        "nonce": presentation.nonce,
        "vp": presentation.model_dump(mode="json"),
    }
    headers = {"typ": VP_TYPE, "kid": holder_keypair.identity}
    token: str = jwt.encode(
        payload,
        holder_keypair.private_key,
        algorithm=holder_keypair.algorithm,
        headers=headers,
    )
    return token


def decode_presentation(token: str) -> Presentation:
    """Check the JWS of *token* and parse the presentation it carries.

    Only the transport signature is checked here; the chain itself must
    still go through :meth:`ChainVerifier.verify`.

    Raises
    ------
    MalformedPresentation
        If the token is not a well-formed, correctly signed ``vp+jwt``.
    """
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as exc:
        raise MalformedPresentation(f"Cannot read token header: {exc}") from exc

    if header.get("typ") != VP_TYPE:
        raise MalformedPresentation(
            f"Unexpected token type: {header.get('typ')!r}",
            details={"typ": header.get("typ")},
        )
    kid = header.get("kid")
    if not isinstance(kid, str):
        raise MalformedPresentation("Token header has no holder key identifier")

    try:
        algorithm, public_key = resolve_identity(kid)
    except UnsupportedAlgorithm as exc:
        raise MalformedPresentation(f"Cannot resolve holder key: {exc.message}") from exc

    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            public_key,
            algorithms=[algorithm],
            options={"require": ["iss"]},
        )
    except jwt.InvalidTokenError as exc:
        raise MalformedPresentation(f"Token verification failed: {exc}") from exc

    if payload["iss"] != kid:
        raise MalformedPresentation("Token issuer does not match its key identifier")
    try:
        presentation = Presentation.model_validate(payload.get("vp"))
    except ValidationError as exc:
        raise MalformedPresentation(
            f"Token does not carry a valid presentation: {exc.error_count()} error(s)",
        ) from exc
    if presentation.holder != kid:
        raise MalformedPresentation("Presentation holder does not match the token signer")
    return presentation


def encoded_length(token: str) -> int:
    """Length in bytes of an encoded presentation."""
    return len(token.encode("ascii"))

"""Presentation wire format (compact JWS)."""
from __future__ import annotations

from delegation_bench.wire.codec import (
    VP_TYPE,
    decode_presentation,
    encode_presentation,
    encoded_length,
)

__all__ = [
    "VP_TYPE",
    "decode_presentation",
    "encode_presentation",
    "encoded_length",
]

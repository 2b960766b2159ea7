"""Canonical JSON serialisation and hashing.

Signatures in both protocol variants are computed over the RFC 8785 (JCS)
canonical JSON form of a payload, so that issuer and verifier derive the
same bytes from the same structured data regardless of key order.
"""
from __future__ import annotations

import hashlib
import json
import math
from typing import Any

from pydantic import BaseModel

HASH_PREFIX = "sha256:"


# ---------------------------------------------------------------------------
# RFC 8785 canonical JSON serialisation
# ---------------------------------------------------------------------------

def _jcs_serialize_value(value: Any) -> str:
    """Serialise a single JSON value per RFC 8785 (JCS).

    * Strings: minimal UTF-8 encoding, mandatory escapes only.
    * Numbers: shortest representation, integers preferred when the value
      has no fractional part.
    * Booleans / null: lowercase literals.
    * Objects: keys sorted by Unicode code-point order.
    * Arrays (and tuples): elements in order.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            msg = "NaN and Infinity are not valid JSON values"
            raise ValueError(msg)
        if value == int(value):
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        elements = ",".join(_jcs_serialize_value(v) for v in value)
        return f"[{elements}]"
    if isinstance(value, dict):
        pairs = ",".join(
            f"{json.dumps(k, ensure_ascii=False)}:{_jcs_serialize_value(value[k])}"
            for k in sorted(value.keys())
        )
        return "{" + pairs + "}"
    msg = f"Unsupported type for JCS serialisation: {type(value)}"
    raise TypeError(msg)


def canonical_json(data: dict[str, Any] | list[Any] | BaseModel) -> str:
    """Return an RFC 8785 canonical JSON string.

    Pydantic models are dumped in JSON mode first, so datetimes become
    ISO 8601 strings and permission sets become sorted lists.
    """
    obj = data.model_dump(mode="json") if isinstance(data, BaseModel) else data
    return _jcs_serialize_value(obj)


def canonical_bytes(data: dict[str, Any] | list[Any] | BaseModel) -> bytes:
    """UTF-8 encoding of :func:`canonical_json`, ready to be signed."""
    return canonical_json(data).encode("utf-8")


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

def compute_hash(data: str | bytes) -> str:
    """Compute the SHA-256 hex digest of *data*, prefixed with ``sha256:``."""
    raw = data.encode("utf-8") if isinstance(data, str) else data
    return f"{HASH_PREFIX}{hashlib.sha256(raw).hexdigest()}"

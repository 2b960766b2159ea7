"""Lookup of protocol variants by name."""
from __future__ import annotations

from delegation_bench.core.types import ProtocolName
from delegation_bench.protocols.pjv import PJVProtocol
from delegation_bench.protocols.proposed import ProposedProtocol
from delegation_bench.protocols.variant import DelegationProtocol

_VARIANTS: dict[ProtocolName, type[DelegationProtocol]] = {
    ProtocolName.PROPOSED: ProposedProtocol,
    ProtocolName.PJV: PJVProtocol,
}


def get_variant(name: ProtocolName | str) -> DelegationProtocol:
    """Return a fresh protocol instance for *name*.

    Raises
    ------
    ValueError
        If *name* is not a known protocol variant.
    """
    return _VARIANTS[ProtocolName(name)]()


def available_variants() -> list[ProtocolName]:
    return list(_VARIANTS)

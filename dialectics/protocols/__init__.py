"""
Protocol instantiations of the elimination engine.

Each protocol is a configuration value (a ``ProtocolCatalogue``), never a
subclass of the engine.
"""

from types import MappingProxyType
from typing import List, Mapping

from dialectics.core.errors import ValidationError
from dialectics.core.taxonomy import ProtocolCatalogue
from dialectics.protocols import atp, cbp, cdp, cffp, emp, hep

PROTOCOLS: Mapping[str, ProtocolCatalogue] = MappingProxyType(
    {
        module.CATALOGUE.protocol_id: module.CATALOGUE
        for module in (cffp, cdp, cbp, hep, atp, emp)
    }
)


def get_protocol(protocol_id: str) -> ProtocolCatalogue:
    """
    Look up a protocol catalogue by id.

    Raises:
        ValidationError: if the id names no known protocol
    """
    try:
        return PROTOCOLS[protocol_id]
    except KeyError:
        raise ValidationError(
            f"Unknown protocol '{protocol_id}'. Known: {sorted(PROTOCOLS)}",
            record_ids=[protocol_id],
        ) from None


def list_protocols() -> List[str]:
    return list(PROTOCOLS)


__all__ = ["PROTOCOLS", "get_protocol", "list_protocols"]

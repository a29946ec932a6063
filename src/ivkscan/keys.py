"""
Viewing key parsing: container decoding and Orchard component extraction.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

from . import unified
from .backend import OrchardBackend, get_backend
from .errors import (
    ComponentNotFound,
    ComponentTooShort,
    MalformedComponent,
    UnsupportedComponent,
)
from .unified import KeyComponent, Network, OrchardComponent, SaplingComponent

logger = logging.getLogger(__name__)

ORCHARD_FVK_SIZE = 96

# Sapling extended full viewing keys (ZIP 32, not unified)
_SAPLING_EXTFVK_PREFIXES = ("zxviews", "zxviewtestsapling")


class KeyType(Enum):
    UFVK_MAINNET = "ufvk-mainnet"
    UFVK_TESTNET = "ufvk-testnet"
    UNKNOWN = "unknown"


def detect_key_type(viewing_key: str) -> KeyType:
    # "uviewtest" must be tested first, it extends "uview"
    if viewing_key.startswith(unified.UFVK_HRPS[Network.TEST]):
        return KeyType.UFVK_TESTNET
    if viewing_key.startswith(unified.UFVK_HRPS[Network.MAIN]):
        return KeyType.UFVK_MAINNET
    return KeyType.UNKNOWN


def extract_orchard_component(components: Sequence[KeyComponent]) -> bytes:
    """
    Return the 96-byte Orchard FVK from a decoded component list.

    Raises ComponentNotFound without an Orchard item, ComponentTooShort if
    it has fewer than 96 bytes and MalformedComponent if it has more.
    """
    for component in components:
        if not isinstance(component, OrchardComponent):
            continue
        size = len(component.data)
        if size < ORCHARD_FVK_SIZE:
            raise ComponentTooShort(
                f"Orchard FVK too short: expected {ORCHARD_FVK_SIZE} bytes, got {size}",
                "orchard",
            )
        if size != ORCHARD_FVK_SIZE:
            raise MalformedComponent(
                f"Orchard FVK must be {ORCHARD_FVK_SIZE} bytes, got {size}", "orchard"
            )
        return component.data
    raise ComponentNotFound("No Orchard FVK found in viewing key", "orchard")


def extract_ivk(component: bytes) -> bytes:
    """
    Bytes [64, 96) of an Orchard FVK: the rivk field.

    In Orchard the raw rivk is the IVK seed; it is returned as-is.
    """
    if len(component) != ORCHARD_FVK_SIZE:
        raise MalformedComponent(
            f"Orchard FVK must be {ORCHARD_FVK_SIZE} bytes, got {len(component)}", "orchard"
        )
    return bytes(component[64:96])


def extract_sapling_component(components: Sequence[KeyComponent]) -> bytes:
    for component in components:
        if isinstance(component, SaplingComponent):
            raise UnsupportedComponent("Sapling viewing key support is not implemented yet")
    raise ComponentNotFound("No Sapling FVK found in viewing key", "sapling")


def parse_orchard_ivk(viewing_key: str) -> bytes:
    """Decode a UFVK and return its Orchard IVK seed (rivk)."""
    _network, components = unified.decode(viewing_key)
    return extract_ivk(extract_orchard_component(components))


def parse_sapling_ivk(viewing_key: str) -> bytes:
    if viewing_key.startswith(_SAPLING_EXTFVK_PREFIXES):
        raise UnsupportedComponent("Sapling ExtFVK parsing not yet implemented")
    _network, components = unified.decode(viewing_key)
    return extract_sapling_component(components)


def load_full_viewing_key(viewing_key: str, backend: Optional[OrchardBackend] = None) -> Any:
    """Decode a UFVK into the backend's Orchard FullViewingKey."""
    backend = get_backend(backend)
    _network, components = unified.decode(viewing_key)
    fvk = backend.fvk_from_bytes(extract_orchard_component(components))
    if fvk is None:
        raise MalformedComponent("Orchard FVK bytes are not a valid key", "orchard")
    return fvk


@dataclass(frozen=True)
class ViewingKeyInfo:
    network: Network
    pools: Tuple[str, ...]

    @property
    def has_orchard(self) -> bool:
        return "orchard" in self.pools

    @property
    def has_sapling(self) -> bool:
        return "sapling" in self.pools

    @property
    def has_transparent(self) -> bool:
        return "transparent" in self.pools

    def to_dict(self):
        return {
            "network": self.network.value,
            "type": "unified",
            "components": {
                "hasOrchard": self.has_orchard,
                "hasSapling": self.has_sapling,
                "hasTransparent": self.has_transparent,
            },
        }


def inspect_viewing_key(viewing_key: str) -> ViewingKeyInfo:
    network, components = unified.decode(viewing_key)
    info = ViewingKeyInfo(network, tuple(c.pool for c in components))
    logger.debug("Viewing key for %s with pools %s", network.value, ",".join(info.pools))
    return info

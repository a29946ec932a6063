"""
Unified full viewing key container (ZIP 316 encoding).

Layout of an encoded key::

    items   = for each item, ascending typecode:
                  CompactSize(typecode) || CompactSize(len) || data
    raw     = items || hrp padded with zero bytes to 16 bytes
    encoded = Bech32m(hrp, F4Jumble(raw))

The HRP selects the network. Items are decoded into typed components;
typecodes this package does not know are kept as UnknownComponent so a
decoded key re-encodes to the same item list.
"""

import hashlib
import struct
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Dict, List, Sequence, Tuple, Union

from . import bech32
from .errors import InvalidEncoding, UnsupportedNetwork
from .serialization import compact_size_uint, read_compact_size_uint

PADDING_LEN = 16

F4JUMBLE_MIN_LEN = 48
F4JUMBLE_MAX_LEN = 4194368
_F4_HASH_LEN = 64
_F4_H_PERSONAL = b"UA_F4Jumble_H"
_F4_G_PERSONAL = b"UA_F4Jumble_G"


# ============================================================
# Networks
# ============================================================
class Network(Enum):
    MAIN = "mainnet"
    TEST = "testnet"


UFVK_HRPS: Dict[Network, str] = {
    Network.MAIN: "uview",
    Network.TEST: "uviewtest",
}
_NETWORK_BY_HRP = {hrp: net for net, hrp in UFVK_HRPS.items()}
_NETWORK_ALIASES = {
    "mainnet": Network.MAIN,
    "main": Network.MAIN,
    "testnet": Network.TEST,
    "test": Network.TEST,
}


def parse_network(value: Union[str, Network]) -> Network:
    """Map "mainnet"/"main"/"testnet"/"test" (or a Network) to a Network."""
    if isinstance(value, Network):
        return value
    net = _NETWORK_ALIASES.get(str(value).strip().lower())
    if net is None:
        raise UnsupportedNetwork(
            f"Invalid network: {value!r}. Use 'mainnet' or 'testnet'", "network"
        )
    return net


# ============================================================
# Key components
# ============================================================
class Typecode(IntEnum):
    P2PKH = 0x00
    P2SH = 0x01
    SAPLING = 0x02
    ORCHARD = 0x03


@dataclass(frozen=True)
class OrchardComponent:
    """Orchard FVK: ak (32) || nk (32) || rivk (32)."""

    data: bytes
    typecode: ClassVar[int] = Typecode.ORCHARD
    pool: ClassVar[str] = "orchard"


@dataclass(frozen=True)
class SaplingComponent:
    data: bytes
    typecode: ClassVar[int] = Typecode.SAPLING
    pool: ClassVar[str] = "sapling"


@dataclass(frozen=True)
class TransparentComponent:
    data: bytes
    typecode: ClassVar[int] = Typecode.P2PKH
    pool: ClassVar[str] = "transparent"


@dataclass(frozen=True)
class UnknownComponent:
    typecode: int
    data: bytes
    pool: ClassVar[str] = "unknown"


KeyComponent = Union[OrchardComponent, SaplingComponent, TransparentComponent, UnknownComponent]

_COMPONENT_TYPES = {
    Typecode.ORCHARD: OrchardComponent,
    Typecode.SAPLING: SaplingComponent,
    Typecode.P2PKH: TransparentComponent,
}
_SHIELDED_TYPECODES = (Typecode.SAPLING, Typecode.ORCHARD)


def component_from_item(typecode: int, data: bytes) -> KeyComponent:
    cls = _COMPONENT_TYPES.get(typecode)
    if cls is None:
        return UnknownComponent(typecode, bytes(data))
    return cls(bytes(data))


# ============================================================
# F4Jumble
# ============================================================
def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def _f4_h(i: int, u: bytes, length: int) -> bytes:
    person = _F4_H_PERSONAL + bytes([i, 0, 0])
    return hashlib.blake2b(u, digest_size=length, person=person).digest()


def _f4_g(i: int, u: bytes, length: int) -> bytes:
    out = bytearray()
    for j in range((length + _F4_HASH_LEN - 1) // _F4_HASH_LEN):
        person = _F4_G_PERSONAL + bytes([i]) + struct.pack("<H", j)
        out += hashlib.blake2b(u, digest_size=_F4_HASH_LEN, person=person).digest()
    return bytes(out[:length])


def _f4_split(message: bytes) -> int:
    if not F4JUMBLE_MIN_LEN <= len(message) <= F4JUMBLE_MAX_LEN:
        raise InvalidEncoding(
            f"F4Jumble input must be {F4JUMBLE_MIN_LEN}..{F4JUMBLE_MAX_LEN} bytes, "
            f"got {len(message)}"
        )
    return min(_F4_HASH_LEN, len(message) // 2)


def f4jumble(message: bytes) -> bytes:
    left = _f4_split(message)
    a, b = message[:left], message[left:]
    x = _xor(b, _f4_g(0, a, len(b)))
    y = _xor(a, _f4_h(0, x, left))
    d = _xor(x, _f4_g(1, y, len(b)))
    c = _xor(y, _f4_h(1, d, left))
    return c + d


def f4jumble_inv(message: bytes) -> bytes:
    left = _f4_split(message)
    c, d = message[:left], message[left:]
    y = _xor(c, _f4_h(1, d, left))
    x = _xor(d, _f4_g(1, y, len(d)))
    a = _xor(y, _f4_h(0, x, left))
    b = _xor(x, _f4_g(0, a, len(d)))
    return a + b


# ============================================================
# Encode / decode
# ============================================================
def _padding(hrp: str) -> bytes:
    return hrp.encode("ascii").ljust(PADDING_LEN, b"\x00")


def _check_items(typecodes: Sequence[int]) -> None:
    if not typecodes:
        raise InvalidEncoding("Unified viewing key has no items")
    if list(typecodes) != sorted(set(typecodes)):
        raise InvalidEncoding("Unified viewing key items are duplicated or out of order")
    if Typecode.P2SH in typecodes:
        raise InvalidEncoding("P2SH item is not valid in a viewing key")
    if not any(tc in _SHIELDED_TYPECODES for tc in typecodes):
        raise InvalidEncoding("Unified viewing key has no shielded item")


def encode(network: Union[str, Network], components: Sequence[KeyComponent]) -> str:
    """Encode components as a UFVK string for ``network``."""
    hrp = UFVK_HRPS[parse_network(network)]
    ordered = sorted(components, key=lambda c: c.typecode)
    _check_items([c.typecode for c in ordered])

    raw = b"".join(
        compact_size_uint(c.typecode) + compact_size_uint(len(c.data)) + c.data
        for c in ordered
    )
    return bech32.encode(hrp, f4jumble(raw + _padding(hrp)))


def _network_for_hrp(hrp: str) -> Network:
    net = _NETWORK_BY_HRP.get(hrp)
    if net is not None:
        return net
    if hrp.startswith("uview"):
        raise UnsupportedNetwork(f"Unsupported viewing key network prefix {hrp!r}", "network")
    raise InvalidEncoding(f"Not a unified full viewing key (prefix {hrp!r})")


def _parse_items(raw: bytes) -> List[KeyComponent]:
    components = []
    offset = 0
    try:
        while offset < len(raw):
            typecode, offset = read_compact_size_uint(raw, offset)
            length, offset = read_compact_size_uint(raw, offset)
            if offset + length > len(raw):
                raise InvalidEncoding(
                    f"Item with typecode {typecode} truncated: "
                    f"needs {length} bytes, {len(raw) - offset} left"
                )
            components.append(component_from_item(typecode, raw[offset:offset + length]))
            offset += length
    except ValueError as e:
        raise InvalidEncoding(f"Malformed item header: {e}") from None
    _check_items([c.typecode for c in components])
    return components


def decode(encoded: str) -> Tuple[Network, List[KeyComponent]]:
    """
    Decode a UFVK string into (network, components).

    Raises InvalidEncoding for checksum/layout failures and
    UnsupportedNetwork for viewing keys of other networks.
    """
    hrp, payload = bech32.decode(encoded.strip())
    if hrp is None:
        raise InvalidEncoding("Invalid Bech32m string (checksum or character set)")
    network = _network_for_hrp(hrp)

    if len(payload) < F4JUMBLE_MIN_LEN:
        raise InvalidEncoding(f"Payload too short: {len(payload)} bytes")
    raw = f4jumble_inv(payload)
    if raw[-PADDING_LEN:] != _padding(hrp):
        raise InvalidEncoding("Padding does not match the key prefix")

    return network, _parse_items(raw[:-PADDING_LEN])

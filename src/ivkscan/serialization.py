"""
Byte-level helpers shared by the key container and transaction parsers.
"""

import re
import struct
from typing import Optional, Tuple

from .errors import EncodingError

_LOWER_HEX = re.compile(r"[0-9a-f]*")


def compact_size_uint(n: int) -> bytes:
    """Encode integer as a CompactSize uint."""
    if n < 0xfd:
        return struct.pack('<B', n)
    elif n <= 0xffff:
        return b'\xfd' + struct.pack('<H', n)
    elif n <= 0xffffffff:
        return b'\xfe' + struct.pack('<L', n)
    else:
        return b'\xff' + struct.pack('<Q', n)


def read_compact_size_uint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Read a CompactSize uint, returning (value, new_offset).

    Non-canonical encodings (a wider form than the value needs) are
    rejected, as consensus parsers do.
    """
    if offset >= len(data):
        raise ValueError("Not enough data")

    first_byte = data[offset]
    if first_byte < 0xfd:
        return first_byte, offset + 1
    elif first_byte == 0xfd:
        width, fmt, minimum = 2, '<H', 0xfd
    elif first_byte == 0xfe:
        width, fmt, minimum = 4, '<L', 0x10000
    else:
        width, fmt, minimum = 8, '<Q', 0x100000000

    if offset + 1 + width > len(data):
        raise ValueError("Not enough data")
    value = struct.unpack(fmt, data[offset + 1:offset + 1 + width])[0]
    if value < minimum:
        raise ValueError(f"Non-canonical CompactSize encoding of {value}")
    return value, offset + 1 + width


def decode_hex(value: str, field: str, length: Optional[int] = None) -> bytes:
    """
    Decode a lowercase hex field (no ``0x`` prefix, no whitespace),
    optionally enforcing its size.

    Raises EncodingError naming ``field`` on bad characters, odd length or
    a decoded size other than ``length``.
    """
    if not isinstance(value, str):
        raise EncodingError(f"{field}: expected hex string, got {type(value).__name__}", field)
    if not _LOWER_HEX.fullmatch(value) or len(value) % 2:
        raise EncodingError(f"{field}: invalid hex", field)
    raw = bytes.fromhex(value)
    if length is not None and len(raw) != length:
        raise EncodingError(
            f"{field}: expected {length} bytes, got {len(raw)}", field
        )
    return raw

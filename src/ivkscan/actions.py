"""
Shielded outputs and match results.

A FullAction is an Orchard action as it appears on chain; a CompactAction
is the subset served by lightwalletd, whose ciphertext is cut to the
52-byte note plaintext prefix (enough for value and ownership, no memo).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Union

from .errors import EncodingError
from .serialization import decode_hex

NULLIFIER_SIZE = 32
CMX_SIZE = 32
EPHEMERAL_KEY_SIZE = 32
COMPACT_CIPHERTEXT_SIZE = 52
ENC_CIPHERTEXT_SIZE = 580
MEMO_SIZE = 512

ZATOSHIS_PER_ZEC = 100_000_000


class Scope(Enum):
    EXTERNAL = "External"
    INTERNAL = "Internal"


# Trial order. External wins if an output validates under both.
SCOPES = (Scope.EXTERNAL, Scope.INTERNAL)


@dataclass(frozen=True)
class OutputRef:
    """Caller-assigned location of an output; opaque to the matchers."""

    txid: str = ""
    height: Optional[int] = None


def _check_size(name: str, value: bytes, size: int) -> None:
    if len(value) != size:
        raise EncodingError(f"{name}: expected {size} bytes, got {len(value)}", name)


@dataclass(frozen=True)
class FullAction:
    nullifier: bytes
    cmx: bytes
    ephemeral_key: bytes
    enc_ciphertext: bytes
    ref: OutputRef = field(default_factory=OutputRef)

    def __post_init__(self):
        _check_size("nullifier", self.nullifier, NULLIFIER_SIZE)
        _check_size("cmx", self.cmx, CMX_SIZE)
        _check_size("ephemeral_key", self.ephemeral_key, EPHEMERAL_KEY_SIZE)
        _check_size("enc_ciphertext", self.enc_ciphertext, ENC_CIPHERTEXT_SIZE)


@dataclass(frozen=True)
class CompactAction:
    nullifier: bytes
    cmx: bytes
    ephemeral_key: bytes
    ciphertext: bytes
    ref: OutputRef = field(default_factory=OutputRef)

    def __post_init__(self):
        _check_size("nullifier", self.nullifier, NULLIFIER_SIZE)
        _check_size("cmx", self.cmx, CMX_SIZE)
        _check_size("ephemeral_key", self.ephemeral_key, EPHEMERAL_KEY_SIZE)
        _check_size("ciphertext", self.ciphertext, COMPACT_CIPHERTEXT_SIZE)

    @classmethod
    def from_hex(
        cls,
        nullifier: str,
        cmx: str,
        ephemeral_key: str,
        ciphertext: str,
        txid: str = "",
        height: Optional[int] = None,
    ) -> "CompactAction":
        """Build from lowercase hex fields, rejecting any wrong-sized field."""
        return cls(
            decode_hex(nullifier, "nullifier", NULLIFIER_SIZE),
            decode_hex(cmx, "cmx", CMX_SIZE),
            decode_hex(ephemeral_key, "ephemeral_key", EPHEMERAL_KEY_SIZE),
            decode_hex(ciphertext, "ciphertext", COMPACT_CIPHERTEXT_SIZE),
            OutputRef(txid, height),
        )


ShieldedOutput = Union[FullAction, CompactAction]


@dataclass(frozen=True)
class MatchResult:
    """
    A decrypted output.

    ``value`` is in zatoshis. ``memo`` is None when the output carries no
    readable text (always for compact actions). ``index`` is the output's
    position in the caller's list or the transaction's action list;
    ``account_index`` is set by the multi-account search.
    """

    ref: OutputRef
    value: int
    memo: Optional[str]
    scope: Scope
    index: Optional[int] = None
    account_index: Optional[int] = None

    @property
    def zec(self) -> Decimal:
        return Decimal(self.value) / ZATOSHIS_PER_ZEC

    def to_dict(self) -> Dict:
        out = {
            "txid": self.ref.txid,
            "height": self.ref.height,
            "index": self.index,
            "value": self.value,
            "amount": str(self.zec),
            "memo": self.memo,
            "scope": self.scope.value,
            "pool": "orchard",
        }
        if self.account_index is not None:
            out["account_index"] = self.account_index
        return out

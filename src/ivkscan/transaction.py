"""
Raw transaction parsing, far enough to reach the Orchard actions.

Only v5 (NU5) transactions carry an Orchard bundle; earlier versions
parse to an empty action list. The v5 layout (ZIP 225)::

    header | versionGroupId | consensusBranchId | lockTime | expiryHeight
    transparent: vin[], vout[]
    sapling:     spends[96], outputs[756], valueBalance, anchor,
                 proofs, sigs, bindingSig
    orchard:     actions[820], flags, valueBalance, anchor,
                 proofs, sigs, bindingSig
"""

import logging
import struct
from typing import List, Optional, Union

from .actions import (
    CMX_SIZE,
    ENC_CIPHERTEXT_SIZE,
    EPHEMERAL_KEY_SIZE,
    NULLIFIER_SIZE,
    FullAction,
    OutputRef,
)
from .errors import MalformedTransaction
from .serialization import decode_hex, read_compact_size_uint

logger = logging.getLogger(__name__)

TX_VERSION_V5 = 5
V5_VERSION_GROUP_ID = 0x26A7270A

SAPLING_SPEND_SIZE = 96
SAPLING_OUTPUT_SIZE = 756
SAPLING_PROOF_SIZE = 192
SIGNATURE_SIZE = 64
VALUE_CV_SIZE = 32
RK_SIZE = 32
OUT_CIPHERTEXT_SIZE = 80
ORCHARD_ACTION_SIZE = (
    VALUE_CV_SIZE + NULLIFIER_SIZE + RK_SIZE + CMX_SIZE
    + EPHEMERAL_KEY_SIZE + ENC_CIPHERTEXT_SIZE + OUT_CIPHERTEXT_SIZE
)


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def read(self, n: int, what: str) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise MalformedTransaction(
                f"Transaction truncated reading {what}: need {n} bytes at offset "
                f"{self.offset}, have {len(self.data) - self.offset}",
                "tx",
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def skip(self, n: int, what: str) -> None:
        self.read(n, what)

    def uint32(self, what: str) -> int:
        return struct.unpack("<I", self.read(4, what))[0]

    def compact_size(self, what: str) -> int:
        try:
            value, self.offset = read_compact_size_uint(self.data, self.offset)
        except ValueError as e:
            raise MalformedTransaction(f"Bad {what} count: {e}", "tx") from None
        return value


def _skip_transparent(r: _Reader) -> None:
    for _ in range(r.compact_size("transparent input")):
        r.skip(36, "prevout")
        r.skip(r.compact_size("scriptSig length"), "scriptSig")
        r.skip(4, "sequence")
    for _ in range(r.compact_size("transparent output")):
        r.skip(8, "value")
        r.skip(r.compact_size("scriptPubKey length"), "scriptPubKey")


def _skip_sapling(r: _Reader) -> None:
    n_spends = r.compact_size("sapling spend")
    r.skip(n_spends * SAPLING_SPEND_SIZE, "sapling spends")
    n_outputs = r.compact_size("sapling output")
    r.skip(n_outputs * SAPLING_OUTPUT_SIZE, "sapling outputs")
    if n_spends + n_outputs > 0:
        r.skip(8, "sapling value balance")
    if n_spends > 0:
        r.skip(32, "sapling anchor")
    r.skip(n_spends * (SAPLING_PROOF_SIZE + SIGNATURE_SIZE), "sapling spend proofs and signatures")
    r.skip(n_outputs * SAPLING_PROOF_SIZE, "sapling output proofs")
    if n_spends + n_outputs > 0:
        r.skip(SIGNATURE_SIZE, "sapling binding signature")


def _read_action(r: _Reader, ref: OutputRef) -> FullAction:
    r.skip(VALUE_CV_SIZE, "cv_net")
    nullifier = r.read(NULLIFIER_SIZE, "nullifier")
    r.skip(RK_SIZE, "rk")
    cmx = r.read(CMX_SIZE, "cmx")
    ephemeral_key = r.read(EPHEMERAL_KEY_SIZE, "ephemeral key")
    enc_ciphertext = r.read(ENC_CIPHERTEXT_SIZE, "encCiphertext")
    r.skip(OUT_CIPHERTEXT_SIZE, "outCiphertext")
    return FullAction(nullifier, cmx, ephemeral_key, enc_ciphertext, ref)


def _read_orchard(r: _Reader, ref: OutputRef) -> List[FullAction]:
    n_actions = r.compact_size("orchard action")
    if n_actions * ORCHARD_ACTION_SIZE > len(r.data) - r.offset:
        raise MalformedTransaction(f"Orchard action count {n_actions} exceeds transaction size", "tx")
    actions = [_read_action(r, ref) for _ in range(n_actions)]
    if n_actions:
        r.skip(1 + 8 + 32, "orchard flags, value balance and anchor")
        r.skip(r.compact_size("orchard proof length"), "orchard proofs")
        r.skip(n_actions * SIGNATURE_SIZE, "orchard spend auth signatures")
        r.skip(SIGNATURE_SIZE, "orchard binding signature")
    return actions


def orchard_actions(
    tx: Union[bytes, str],
    txid: str = "",
    height: Optional[int] = None,
) -> List[FullAction]:
    """
    Return the Orchard actions of a raw transaction (bytes or hex).

    Each action carries OutputRef(txid, height). Raises
    MalformedTransaction if the bytes do not parse.
    """
    raw = decode_hex(tx, "tx") if isinstance(tx, str) else bytes(tx)
    r = _Reader(raw)

    header = r.uint32("header")
    version = header & 0x7FFFFFFF
    overwintered = bool(header >> 31)
    if not overwintered or version < TX_VERSION_V5:
        logger.debug("Transaction version %d has no Orchard bundle", version)
        return []
    if version != TX_VERSION_V5:
        raise MalformedTransaction(f"Unsupported transaction version {version}", "tx")

    group_id = r.uint32("version group id")
    if group_id != V5_VERSION_GROUP_ID:
        raise MalformedTransaction(f"Unexpected v5 version group id 0x{group_id:08x}", "tx")
    r.skip(4 + 4 + 4, "branch id, lock time and expiry height")

    _skip_transparent(r)
    _skip_sapling(r)
    actions = _read_orchard(r, OutputRef(txid, height))

    if r.offset != len(raw):
        raise MalformedTransaction(
            f"{len(raw) - r.offset} trailing bytes after transaction", "tx"
        )
    logger.debug("Parsed %d Orchard actions", len(actions))
    return actions

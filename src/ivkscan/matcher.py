"""
Single-output trial decryption.

Each output is tried under the External IVK and then the Internal IVK;
the first scope that decrypts wins. Not owning an output is the common
case and returns None.
"""

import logging
from typing import Any, List, Optional, Sequence, Union

from .actions import (
    SCOPES,
    CompactAction,
    FullAction,
    MatchResult,
    ShieldedOutput,
)
from .backend import OrchardBackend, get_backend
from .keys import load_full_viewing_key
from .transaction import orchard_actions

logger = logging.getLogger(__name__)


def parse_memo(memo: Optional[bytes]) -> Optional[str]:
    """
    Memo text, or None when there is nothing readable.

    The field is clipped at the first zero byte and must then be valid
    UTF-8 with at least one non-blank character.
    """
    if not memo:
        return None
    end = memo.find(b"\x00")
    clipped = memo[:end] if end >= 0 else memo
    if not clipped:
        return None
    try:
        text = clipped.decode("utf-8")
    except UnicodeDecodeError:
        return None
    if not text.strip():
        return None
    return text


def try_decrypt(
    output: ShieldedOutput,
    fvk: Any,
    backend: Optional[OrchardBackend] = None,
    index: Optional[int] = None,
) -> Optional[MatchResult]:
    """Trial-decrypt one output with both scopes of ``fvk``."""
    backend = get_backend(backend)
    full = isinstance(output, FullAction)

    for scope in SCOPES:
        ivk = backend.prepare_ivk(backend.incoming_viewing_key(fvk, scope))
        if full:
            note = backend.try_note_decryption(ivk, output)
        else:
            note = backend.try_compact_note_decryption(ivk, output)
        if note is None:
            continue
        return MatchResult(
            ref=output.ref,
            value=note.value,
            memo=parse_memo(note.memo) if full else None,
            scope=scope,
            index=index,
        )
    return None


def match_actions(
    actions: Sequence[ShieldedOutput],
    fvk: Any,
    backend: Optional[OrchardBackend] = None,
    first_only: bool = False,
) -> List[MatchResult]:
    backend = get_backend(backend)
    matches = []
    for i, action in enumerate(actions):
        result = try_decrypt(action, fvk, backend, index=i)
        if result is None:
            continue
        matches.append(result)
        if first_only:
            break
    return matches


def decrypt_transaction(
    tx: Union[bytes, str],
    viewing_key: str,
    backend: Optional[OrchardBackend] = None,
    txid: str = "",
    height: Optional[int] = None,
) -> List[MatchResult]:
    """Every Orchard action of ``tx`` that ``viewing_key`` decrypts."""
    backend = get_backend(backend)
    fvk = load_full_viewing_key(viewing_key, backend)
    actions = orchard_actions(tx, txid, height)
    matches = match_actions(actions, fvk, backend)
    logger.info(
        "Decrypted %d of %d Orchard actions", len(matches), len(actions),
        extra={"outputs": len(actions), "matched": len(matches)},
    )
    return matches


def decrypt_full_output(
    tx: Union[bytes, str],
    viewing_key: str,
    backend: Optional[OrchardBackend] = None,
    txid: str = "",
    height: Optional[int] = None,
) -> Optional[MatchResult]:
    """
    First Orchard action of a raw transaction owned by ``viewing_key``.

    Returns None if no action decrypts, including transactions without
    an Orchard bundle.
    """
    backend = get_backend(backend)
    fvk = load_full_viewing_key(viewing_key, backend)
    matches = match_actions(orchard_actions(tx, txid, height), fvk, backend, first_only=True)
    return matches[0] if matches else None


def decrypt_compact_output(
    nullifier_hex: str,
    cmx_hex: str,
    ephemeral_key_hex: str,
    ciphertext_hex: str,
    viewing_key: str,
    backend: Optional[OrchardBackend] = None,
    txid: str = "",
    height: Optional[int] = None,
) -> Optional[MatchResult]:
    """Trial-decrypt one lightwalletd compact action. Memo is always None."""
    output = CompactAction.from_hex(
        nullifier_hex, cmx_hex, ephemeral_key_hex, ciphertext_hex, txid, height
    )
    backend = get_backend(backend)
    return try_decrypt(output, load_full_viewing_key(viewing_key, backend), backend)

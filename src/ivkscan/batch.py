"""
Batch trial decryption of compact outputs.

Scanning N outputs one at a time prepares 2N IVKs. Here the External and
Internal IVKs are prepared once and the backend's batch primitive checks
every output against both, reporting the first scope that matched.

Input validation is all-or-nothing: one malformed output fails the whole
call before any decryption is attempted.
"""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Union

from . import config
from .actions import SCOPES, CompactAction, MatchResult
from .backend import OrchardBackend, get_backend
from .errors import EncodingError, IvkScanError
from .keys import load_full_viewing_key

logger = logging.getLogger(__name__)

_HEX_FIELDS = (
    ("nullifier", ("nullifier",)),
    ("cmx", ("cmx",)),
    ("ephemeral_key", ("ephemeral_key", "ephemeralKey")),
    ("ciphertext", ("ciphertext",)),
)


# ============================================================
# Input parsing
# ============================================================
def _parse_entry(i: int, entry: Any) -> CompactAction:
    if not isinstance(entry, dict):
        raise EncodingError(f"outputs[{i}]: expected an object, got {type(entry).__name__}", f"outputs[{i}]")

    fields = []
    for name, keys in _HEX_FIELDS:
        value = next((entry[k] for k in keys if k in entry), None)
        if value is None:
            raise EncodingError(f"outputs[{i}].{name}: missing", f"outputs[{i}].{name}")
        fields.append(value)

    height = entry.get("height")
    if height is not None and (not isinstance(height, int) or isinstance(height, bool) or height < 0):
        raise EncodingError(f"outputs[{i}].height: expected a block height, got {height!r}", f"outputs[{i}].height")

    txid = entry.get("txid")
    if txid is None:
        txid = ""
    elif not isinstance(txid, str):
        raise EncodingError(f"outputs[{i}].txid: expected a string, got {type(txid).__name__}", f"outputs[{i}].txid")

    try:
        return CompactAction.from_hex(*fields, txid=txid, height=height)
    except EncodingError as e:
        field = f"outputs[{i}].{e.field}"
        raise EncodingError(f"outputs[{i}].{e}", field) from None


def parse_compact_outputs(outputs: Union[str, bytes, Sequence[Dict]]) -> List[CompactAction]:
    """
    Parse a JSON array (or already-loaded list) of compact outputs::

        {"nullifier": hex, "cmx": hex, "ephemeral_key": hex,
         "ciphertext": hex, "txid": str, "height": int}

    ``ephemeralKey`` is accepted for ``ephemeral_key``.
    """
    if isinstance(outputs, (str, bytes)):
        try:
            outputs = json.loads(outputs)
        except ValueError as e:
            raise EncodingError(f"Failed to parse outputs JSON: {e}", "outputs") from None
    if not isinstance(outputs, list):
        raise EncodingError("outputs must be a JSON array", "outputs")
    return [_parse_entry(i, entry) for i, entry in enumerate(outputs)]


# ============================================================
# Matching
# ============================================================
def _check_outputs(outputs: Sequence[CompactAction]) -> None:
    for i, output in enumerate(outputs):
        if not isinstance(output, CompactAction):
            raise EncodingError(
                f"outputs[{i}]: expected CompactAction, got {type(output).__name__}", f"outputs[{i}]"
            )


def _prepare_scope_ivks(fvk: Any, backend: OrchardBackend) -> List[Any]:
    """External and Internal IVKs of ``fvk``, prepared, in SCOPES order."""
    return [backend.prepare_ivk(backend.incoming_viewing_key(fvk, scope)) for scope in SCOPES]


def _match_prepared(
    prepared: Sequence[Any],
    outputs: Sequence[CompactAction],
    backend: OrchardBackend,
    start: int = 0,
) -> List[MatchResult]:
    """Matches among ``outputs``, indexed from ``start``."""
    results = backend.batch_compact_note_decryption(prepared, outputs)
    if len(results) != len(outputs):
        raise IvkScanError(
            f"Backend {backend.name} returned {len(results)} results for {len(outputs)} outputs"
        )

    matches = []
    for i, hit in enumerate(results):
        if hit is None:
            continue
        note, ivk_idx = hit
        matches.append(MatchResult(
            ref=outputs[i].ref,
            value=note.value,
            memo=None,
            scope=SCOPES[ivk_idx],
            index=start + i,
        ))
    return matches


def batch_match(
    outputs: Sequence[CompactAction],
    fvk: Any,
    backend: Optional[OrchardBackend] = None,
) -> List[MatchResult]:
    """
    Match every output against both scopes of ``fvk`` in one pass.

    Returns only the matches, each with ``index`` set to the output's
    position in ``outputs``.
    """
    _check_outputs(outputs)
    if not outputs:
        return []
    backend = get_backend(backend)
    return _match_prepared(_prepare_scope_ivks(fvk, backend), outputs, backend)


def scan_compact_outputs(
    outputs: Sequence[CompactAction],
    fvk: Any,
    backend: Optional[OrchardBackend] = None,
    workers: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> List[MatchResult]:
    """
    batch_match over chunks of ``outputs`` on a thread pool.

    The two IVKs are prepared once and shared by every chunk. The result
    is the same as one batch_match call over the whole list, in index
    order.
    """
    backend = get_backend(backend)
    workers = workers or config.NUM_WORKERS
    chunk_size = chunk_size or config.BATCH_CHUNK_SIZE
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    _check_outputs(outputs)

    total = len(outputs)
    t0 = time.time()
    prepared = _prepare_scope_ivks(fvk, backend) if outputs else []
    if not outputs:
        matches = []
    elif workers <= 1 or total <= chunk_size:
        matches = _match_prepared(prepared, outputs, backend)
    else:
        def _match_chunk(start):
            return _match_prepared(prepared, outputs[start:start + chunk_size], backend, start)

        matches = []
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for chunk_matches in pool.map(_match_chunk, range(0, total, chunk_size)):
                matches.extend(chunk_matches)

    elapsed = time.time() - t0
    logger.info(
        "Scanned %d compact outputs in %.3fs: %d matched",
        total, elapsed, len(matches),
        extra={"outputs": total, "matched": len(matches), "elapsed_s": round(elapsed, 3)},
    )
    return matches


def batch_filter_outputs(
    outputs_json: Union[str, bytes, Sequence[Dict]],
    viewing_key: str,
    backend: Optional[OrchardBackend] = None,
    workers: Optional[int] = None,
) -> List[Dict]:
    """
    Filter compact outputs down to the ones ``viewing_key`` owns.

    Returns ``[{"index", "txid", "height", "scope"}, ...]`` for matches
    only. Any malformed output raises EncodingError naming the field.
    """
    outputs = parse_compact_outputs(outputs_json)
    backend = get_backend(backend)
    fvk = load_full_viewing_key(viewing_key, backend)
    return [
        {
            "index": m.index,
            "txid": m.ref.txid,
            "height": m.ref.height,
            "scope": m.scope.value,
        }
        for m in scan_compact_outputs(outputs, fvk, backend, workers=workers)
    ]

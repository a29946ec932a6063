"""
Orchard cryptography backends.

Curve arithmetic and note decryption are not implemented here. The
matchers drive an OrchardBackend, which wraps whatever provides the
Orchard key algebra and the trial-decryption primitive (bindings to the
Rust ``orchard`` crate, a test double, ...).

Select one with IVKSCAN_BACKEND="package.module:Factory", or pass a
backend instance to any operation that takes ``backend=``.
"""

import abc
import importlib
import logging
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from . import config
from .actions import CompactAction, FullAction, Scope
from .errors import BackendUnavailable

logger = logging.getLogger(__name__)


class DecryptedNote(NamedTuple):
    value: int
    memo: Optional[bytes] = None  # 512-byte memo field, full actions only


class OrchardBackend(abc.ABC):
    """Key algebra and trial decryption for the Orchard pool."""

    name = "abstract"

    # --- key algebra ---
    @abc.abstractmethod
    def spending_key_from_bytes(self, data: bytes) -> Optional[Any]:
        """Return a spending key, or None if ``data`` is not a valid one."""

    @abc.abstractmethod
    def full_viewing_key(self, spending_key: Any) -> Any:
        pass

    @abc.abstractmethod
    def fvk_to_bytes(self, fvk: Any) -> bytes:
        """96-byte ak || nk || rivk encoding."""

    @abc.abstractmethod
    def fvk_from_bytes(self, data: bytes) -> Optional[Any]:
        """Parse a 96-byte FVK, or None if the bytes are not a valid key."""

    @abc.abstractmethod
    def incoming_viewing_key(self, fvk: Any, scope: Scope) -> Any:
        pass

    @abc.abstractmethod
    def prepare_ivk(self, ivk: Any) -> Any:
        """Precompute whatever makes repeated trial decryption cheap."""

    # --- trial decryption ---
    @abc.abstractmethod
    def try_note_decryption(self, prepared_ivk: Any, action: FullAction) -> Optional[DecryptedNote]:
        pass

    @abc.abstractmethod
    def try_compact_note_decryption(
        self, prepared_ivk: Any, action: CompactAction
    ) -> Optional[DecryptedNote]:
        pass

    def batch_compact_note_decryption(
        self,
        prepared_ivks: Sequence[Any],
        actions: Sequence[CompactAction],
    ) -> List[Optional[Tuple[DecryptedNote, int]]]:
        """
        For each action, the note and index of the first IVK that decrypts it.

        Backends with a native batch primitive should override this; the
        default just tries the IVKs in order.
        """
        results: List[Optional[Tuple[DecryptedNote, int]]] = []
        for action in actions:
            hit = None
            for ivk_idx, ivk in enumerate(prepared_ivks):
                note = self.try_compact_note_decryption(ivk, action)
                if note is not None:
                    hit = (note, ivk_idx)
                    break
            results.append(hit)
        return results


# ============================================================
# Backend selection
# ============================================================
_BACKEND: Optional[OrchardBackend] = None


def load_backend(spec: str) -> OrchardBackend:
    """Import ``module:attr`` and call it to build a backend."""
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise BackendUnavailable(f"Backend must be given as 'module:attribute', got {spec!r}")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise BackendUnavailable(f"Cannot load Orchard backend {spec!r}: {e}") from e

    backend = factory()
    if not isinstance(backend, OrchardBackend):
        raise BackendUnavailable(f"{spec!r} did not produce an OrchardBackend")
    logger.info("Loaded Orchard backend %s from %s", backend.name, spec)
    return backend


def set_backend(backend: Optional[OrchardBackend]) -> None:
    global _BACKEND
    _BACKEND = backend


def get_backend(backend: Optional[OrchardBackend] = None) -> OrchardBackend:
    """Return ``backend`` if given, else the configured process-wide one."""
    global _BACKEND
    if backend is not None:
        return backend
    if _BACKEND is None:
        if not config.BACKEND:
            raise BackendUnavailable(
                "No Orchard backend configured. Set IVKSCAN_BACKEND=module:Factory "
                "or pass backend= explicitly."
            )
        _BACKEND = load_backend(config.BACKEND)
    return _BACKEND


def get_engine() -> str:
    """Name of the active backend, or "none"."""
    try:
        return get_backend().name
    except BackendUnavailable:
        return "none"

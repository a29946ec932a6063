"""
Error types raised by ivkscan.

Everything here is a caller-facing fault or a capability gap. A key that
simply does not own an output is not an error: matchers return ``None``
(or an empty list) for that.
"""

from typing import Optional


class IvkScanError(Exception):
    """Base class for all ivkscan errors."""


# ============================================================
# Encoding errors (bad caller input)
# ============================================================
class EncodingError(IvkScanError, ValueError):
    """Malformed key, hex or binary field. ``field`` names the culprit."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidEncoding(EncodingError):
    """Checksum, character set or container layout failure."""


class UnsupportedNetwork(EncodingError):
    """The key or request targets a network other than main/test."""


class ComponentNotFound(EncodingError):
    """The container holds no component of the requested pool."""


class MalformedComponent(EncodingError):
    """A component is present but has the wrong size or content."""


class ComponentTooShort(MalformedComponent):
    pass


class MalformedTransaction(EncodingError):
    """Raw transaction bytes could not be parsed."""


# ============================================================
# Derivation errors
# ============================================================
class DerivationError(IvkScanError):
    pass


class InvalidMnemonic(DerivationError, ValueError):
    """Wordlist or checksum validation failed."""


class KeyDerivationFailed(DerivationError):
    """Key material was rejected by the spending key validity check."""


class InvalidAccountIndex(DerivationError, ValueError):
    """Account index is not an integer in 0 .. 2**32 - 1."""


# ============================================================
# Capability and environment errors
# ============================================================
class UnsupportedComponent(IvkScanError):
    """Recognised pool that this package cannot process yet (Sapling)."""


class BackendUnavailable(IvkScanError):
    """No Orchard backend configured, or it failed to load."""


class RpcError(IvkScanError, RuntimeError):
    """Node RPC transport or protocol failure."""

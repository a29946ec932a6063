"""
ivkscan: Orchard viewing key scanning.

Find which shielded outputs belong to a wallet, and recover their value
and memo, holding only a unified full viewing key (or the seed phrase it
was derived from). Orchard curve arithmetic and note decryption are
delegated to a pluggable backend (see ivkscan.backend).
"""

__version__ = "0.3.0"

from .errors import (
    BackendUnavailable,
    ComponentNotFound,
    ComponentTooShort,
    DerivationError,
    EncodingError,
    InvalidAccountIndex,
    InvalidEncoding,
    InvalidMnemonic,
    IvkScanError,
    KeyDerivationFailed,
    MalformedComponent,
    MalformedTransaction,
    RpcError,
    UnsupportedComponent,
    UnsupportedNetwork,
)
from .unified import Network, OrchardComponent, SaplingComponent
from .actions import CompactAction, FullAction, MatchResult, OutputRef, Scope
from .backend import DecryptedNote, OrchardBackend, get_backend, set_backend
from .keys import (
    KeyType,
    detect_key_type,
    extract_ivk,
    extract_orchard_component,
    inspect_viewing_key,
    parse_orchard_ivk,
)
from .seed import (
    derive_account_key_material,
    derive_viewing_key_from_seed,
    validate_mnemonic,
    word_count,
)
from .matcher import (
    decrypt_compact_output,
    decrypt_full_output,
    decrypt_transaction,
    try_decrypt,
)
from .batch import batch_filter_outputs, batch_match
from .accounts import find_owning_account

__all__ = [
    # Errors
    "IvkScanError",
    "EncodingError",
    "InvalidEncoding",
    "UnsupportedNetwork",
    "ComponentNotFound",
    "MalformedComponent",
    "ComponentTooShort",
    "MalformedTransaction",
    "DerivationError",
    "InvalidMnemonic",
    "InvalidAccountIndex",
    "KeyDerivationFailed",
    "UnsupportedComponent",
    "BackendUnavailable",
    "RpcError",

    # Types
    "Network",
    "OrchardComponent",
    "SaplingComponent",
    "Scope",
    "OutputRef",
    "FullAction",
    "CompactAction",
    "MatchResult",
    "KeyType",

    # Backend
    "OrchardBackend",
    "DecryptedNote",
    "get_backend",
    "set_backend",

    # Operations
    "detect_key_type",
    "inspect_viewing_key",
    "parse_orchard_ivk",
    "extract_orchard_component",
    "extract_ivk",
    "validate_mnemonic",
    "word_count",
    "derive_account_key_material",
    "derive_viewing_key_from_seed",
    "try_decrypt",
    "decrypt_full_output",
    "decrypt_compact_output",
    "decrypt_transaction",
    "batch_match",
    "batch_filter_outputs",
    "find_owning_account",

    "__version__",
]

"""
Seed phrase to per-account viewing keys.

Pipeline::

    phrase --BIP39 (empty passphrase)--> 64-byte seed
           --account mixing-->            32-byte key material
           --backend-->                   SpendingKey -> FullViewingKey
           --unified.encode-->            "uview1..." / "uviewtest1..."

The seed, key material and spending key live only inside the call that
derives them and are never logged.
"""

import abc
import logging
from typing import Any, List, Optional, Union

from mnemonic import Mnemonic

from . import unified
from .backend import OrchardBackend, get_backend
from .errors import (
    InvalidAccountIndex,
    InvalidMnemonic,
    KeyDerivationFailed,
    MalformedComponent,
)
from .keys import ORCHARD_FVK_SIZE
from .unified import Network, OrchardComponent

logger = logging.getLogger(__name__)

SEED_SIZE = 64
KEY_MATERIAL_SIZE = 32
MAX_ACCOUNT_INDEX = 0xFFFFFFFF
VALID_WORD_COUNTS = (12, 15, 18, 21, 24)

# ============================================================
# BIP39 utilities
# ============================================================
_MNEMONIC: Optional[Mnemonic] = None


def get_mnemonic() -> Mnemonic:
    global _MNEMONIC
    if _MNEMONIC is None:
        _MNEMONIC = Mnemonic("english")
    return _MNEMONIC


def get_wordlist() -> List[str]:
    return get_mnemonic().wordlist


def normalize_phrase(phrase: str) -> str:
    """Lowercase and collapse whitespace so pasted phrases validate."""
    return " ".join(phrase.lower().split())


def validate_mnemonic(phrase: str) -> bool:
    words = normalize_phrase(phrase).split()
    if len(words) not in VALID_WORD_COUNTS:
        return False
    try:
        return get_mnemonic().check(" ".join(words))
    except (ValueError, LookupError):
        return False


def word_count(phrase: str) -> int:
    if not validate_mnemonic(phrase):
        raise InvalidMnemonic("Invalid seed phrase. Please check your words.")
    return len(normalize_phrase(phrase).split())


def mnemonic_to_seed(phrase: str) -> bytes:
    """Validated phrase to its 64-byte BIP39 seed (empty passphrase)."""
    if not validate_mnemonic(phrase):
        raise InvalidMnemonic("Invalid seed phrase. Please check your words.")
    return Mnemonic.to_seed(normalize_phrase(phrase), passphrase="")


# ============================================================
# Account derivation
# ============================================================
class AccountDerivation(abc.ABC):
    """Maps (seed, account index) to 32 bytes of spending key material."""

    name = "abstract"

    @abc.abstractmethod
    def key_material(self, seed: bytes, account_index: int) -> bytes:
        pass


class XorAccountDerivation(AccountDerivation):
    """
    Key material used by existing wallets: the first 32 seed bytes, each
    XORed with one byte of the little-endian account index, cycling every
    4 bytes. Not ZIP 32; kept bit-exact so previously derived keys still
    match.
    """

    name = "xor"

    def key_material(self, seed: bytes, account_index: int) -> bytes:
        return derive_account_key_material(seed, account_index)


DEFAULT_DERIVATION = XorAccountDerivation()


def check_account_index(account_index: int) -> int:
    if not isinstance(account_index, int) or isinstance(account_index, bool):
        raise InvalidAccountIndex(f"account index must be an int, got {type(account_index).__name__}")
    if not 0 <= account_index <= MAX_ACCOUNT_INDEX:
        raise InvalidAccountIndex(f"account index must be in 0..{MAX_ACCOUNT_INDEX}, got {account_index}")
    return account_index


def derive_account_key_material(seed: bytes, account_index: int) -> bytes:
    """out[i] = seed[i] ^ ((account_index >> ((i % 4) * 8)) & 0xFF) for i < 32."""
    if len(seed) != SEED_SIZE:
        raise ValueError(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")
    check_account_index(account_index)
    return bytes(
        seed[i] ^ ((account_index >> ((i % 4) * 8)) & 0xFF)
        for i in range(KEY_MATERIAL_SIZE)
    )


def derive_spending_key(key_material: bytes, backend: Optional[OrchardBackend] = None) -> Any:
    if len(key_material) != KEY_MATERIAL_SIZE:
        raise ValueError(f"key material must be {KEY_MATERIAL_SIZE} bytes, got {len(key_material)}")
    spending_key = get_backend(backend).spending_key_from_bytes(bytes(key_material))
    if spending_key is None:
        raise KeyDerivationFailed("Failed to derive spending key from seed")
    return spending_key


def derive_full_viewing_key(spending_key: Any, backend: Optional[OrchardBackend] = None) -> bytes:
    """96-byte encoding of the FVK for ``spending_key``."""
    backend = get_backend(backend)
    fvk_bytes = backend.fvk_to_bytes(backend.full_viewing_key(spending_key))
    if len(fvk_bytes) != ORCHARD_FVK_SIZE:
        raise MalformedComponent(
            f"Backend produced a {len(fvk_bytes)}-byte FVK, expected {ORCHARD_FVK_SIZE}",
            "orchard",
        )
    return fvk_bytes


def assemble_viewing_key(fvk_bytes: bytes, network: Union[str, Network]) -> str:
    """Wrap a 96-byte Orchard FVK as a single-item UFVK for ``network``."""
    net = unified.parse_network(network)
    return unified.encode(net, [OrchardComponent(bytes(fvk_bytes))])


def viewing_key_for_account(
    seed: bytes,
    account_index: int,
    network: Union[str, Network],
    backend: Optional[OrchardBackend] = None,
    derivation: Optional[AccountDerivation] = None,
) -> str:
    """Seed (already expanded) to the encoded UFVK of one account."""
    derivation = derivation or DEFAULT_DERIVATION
    net = unified.parse_network(network)
    spending_key = derive_spending_key(derivation.key_material(seed, account_index), backend)
    return assemble_viewing_key(derive_full_viewing_key(spending_key, backend), net)


def derive_viewing_key_from_seed(
    phrase: str,
    account_index: int = 0,
    network: Union[str, Network] = "mainnet",
    backend: Optional[OrchardBackend] = None,
    derivation: Optional[AccountDerivation] = None,
) -> str:
    """
    Derive the UFVK of ``account_index`` from a BIP39 phrase.

    Raises InvalidMnemonic, InvalidAccountIndex, KeyDerivationFailed or
    UnsupportedNetwork.
    """
    net = unified.parse_network(network)
    check_account_index(account_index)
    ufvk = viewing_key_for_account(mnemonic_to_seed(phrase), account_index, net, backend, derivation)
    logger.debug("Derived %s viewing key for account %d", net.value, account_index)
    return ufvk

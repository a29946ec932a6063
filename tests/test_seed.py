"""
Test suite for ivkscan.seed: BIP39 handling and per-account viewing key
derivation.
"""

import unittest

from fakes import FakeOrchardBackend

from ivkscan import unified
from ivkscan.errors import (
    DerivationError,
    InvalidAccountIndex,
    InvalidMnemonic,
    KeyDerivationFailed,
    UnsupportedNetwork,
)
from ivkscan.keys import KeyType, detect_key_type, extract_orchard_component
from ivkscan.seed import (
    AccountDerivation,
    derive_account_key_material,
    derive_viewing_key_from_seed,
    get_wordlist,
    mnemonic_to_seed,
    normalize_phrase,
    validate_mnemonic,
    word_count,
)

ABANDON = "abandon " * 11 + "about"
ABANDON_24 = "abandon " * 23 + "art"
ABANDON_SEED = bytes.fromhex(
    "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
    "9a5ac40b389cd370d086206dec8aa6c43daea6690f20ad3d8d48b2d2ce9e38e4"
)


class TestMnemonic(unittest.TestCase):

    def test_wordlist(self):
        words = get_wordlist()
        self.assertEqual(len(words), 2048)
        self.assertEqual(words[0], "abandon")

    def test_valid_phrases(self):
        self.assertTrue(validate_mnemonic(ABANDON))
        self.assertTrue(validate_mnemonic(ABANDON_24))

    def test_normalized_before_validation(self):
        messy = "  ABANDON  " + "abandon\t" * 10 + "About\n"
        self.assertEqual(normalize_phrase(messy), ABANDON)
        self.assertTrue(validate_mnemonic(messy))

    def test_bad_checksum(self):
        self.assertFalse(validate_mnemonic("abandon " * 11 + "abandon"))

    def test_unknown_word(self):
        self.assertFalse(validate_mnemonic("abandon " * 11 + "zcashy"))

    def test_wrong_word_count(self):
        self.assertFalse(validate_mnemonic("abandon " * 10 + "about"))
        self.assertFalse(validate_mnemonic(""))

    def test_word_count(self):
        self.assertEqual(word_count(ABANDON), 12)
        self.assertEqual(word_count(ABANDON_24), 24)
        with self.assertRaises(InvalidMnemonic):
            word_count("invalid seed phrase test")

    def test_seed(self):
        self.assertEqual(mnemonic_to_seed(ABANDON), ABANDON_SEED)

    def test_seed_invalid_phrase(self):
        with self.assertRaises(InvalidMnemonic):
            mnemonic_to_seed("invalid seed phrase test")


class TestAccountKeyMaterial(unittest.TestCase):

    def test_account_zero_is_seed_prefix(self):
        self.assertEqual(derive_account_key_material(ABANDON_SEED, 0), ABANDON_SEED[:32])

    def test_index_bytes_cycle_little_endian(self):
        km = derive_account_key_material(ABANDON_SEED, 0x01020304)
        for i in range(32):
            expected = ABANDON_SEED[i] ^ [0x04, 0x03, 0x02, 0x01][i % 4]
            self.assertEqual(km[i], expected)

    def test_formula(self):
        for idx in (1, 7, 255, 256, 0xFFFFFFFF):
            expected = bytes(
                ABANDON_SEED[i] ^ ((idx >> ((i % 4) * 8)) & 0xFF) for i in range(32)
            )
            self.assertEqual(derive_account_key_material(ABANDON_SEED, idx), expected)

    def test_distinct_accounts(self):
        materials = {derive_account_key_material(ABANDON_SEED, i) for i in range(10)}
        self.assertEqual(len(materials), 10)

    def test_bad_seed_length(self):
        with self.assertRaises(ValueError):
            derive_account_key_material(ABANDON_SEED[:32], 0)

    def test_bad_index(self):
        for idx in (-1, 1 << 32, True, "0"):
            with self.assertRaises(InvalidAccountIndex):
                derive_account_key_material(ABANDON_SEED, idx)

    def test_bad_index_is_derivation_error(self):
        with self.assertRaises(DerivationError):
            derive_account_key_material(ABANDON_SEED, -1)


class TestDeriveViewingKey(unittest.TestCase):

    def setUp(self):
        self.backend = FakeOrchardBackend()

    def test_testnet_prefix(self):
        key = derive_viewing_key_from_seed(ABANDON, 0, "testnet", backend=self.backend)
        self.assertTrue(key.startswith("uviewtest"))
        self.assertIs(detect_key_type(key), KeyType.UFVK_TESTNET)

    def test_mainnet_prefix(self):
        key = derive_viewing_key_from_seed(ABANDON, 0, "mainnet", backend=self.backend)
        self.assertTrue(key.startswith("uview1"))
        self.assertFalse(key.startswith("uviewtest"))

    def test_deterministic(self):
        a = derive_viewing_key_from_seed(ABANDON, 3, "mainnet", backend=self.backend)
        b = derive_viewing_key_from_seed(ABANDON, 3, "mainnet", backend=FakeOrchardBackend())
        self.assertEqual(a, b)

    def test_accounts_differ(self):
        a = derive_viewing_key_from_seed(ABANDON, 0, backend=self.backend)
        b = derive_viewing_key_from_seed(ABANDON, 1, backend=self.backend)
        self.assertNotEqual(a, b)

    def test_orchard_only_container(self):
        key = derive_viewing_key_from_seed(ABANDON, 0, "testnet", backend=self.backend)
        network, components = unified.decode(key)
        self.assertIs(network, unified.Network.TEST)
        self.assertEqual(len(components), 1)
        self.assertEqual(len(extract_orchard_component(components)), 96)

    def test_backend_sees_key_material(self):
        derive_viewing_key_from_seed(ABANDON, 5, backend=self.backend)
        self.assertEqual(
            self.backend.key_material_seen,
            [derive_account_key_material(ABANDON_SEED, 5)],
        )

    def test_unsupported_network(self):
        for network in ("regtest", "foo"):
            with self.assertRaises(UnsupportedNetwork):
                derive_viewing_key_from_seed(ABANDON, 0, network, backend=self.backend)

    def test_invalid_mnemonic(self):
        with self.assertRaises(InvalidMnemonic):
            derive_viewing_key_from_seed("invalid seed phrase test", backend=self.backend)

    def test_rejected_key_material(self):
        backend = FakeOrchardBackend(rejected={ABANDON_SEED[:32]})
        with self.assertRaises(KeyDerivationFailed):
            derive_viewing_key_from_seed(ABANDON, 0, backend=backend)

    def test_custom_derivation(self):
        class Constant(AccountDerivation):
            name = "constant"

            def key_material(self, seed, account_index):
                return b"\x42" * 32

        a = derive_viewing_key_from_seed(ABANDON, 0, backend=self.backend, derivation=Constant())
        b = derive_viewing_key_from_seed(ABANDON, 9, backend=self.backend, derivation=Constant())
        self.assertEqual(a, b)
        self.assertEqual(self.backend.key_material_seen, [b"\x42" * 32] * 2)

    def test_bad_account_index(self):
        with self.assertRaises(InvalidAccountIndex):
            derive_viewing_key_from_seed(ABANDON, -1, backend=self.backend)
        self.assertEqual(self.backend.key_material_seen, [])

    def test_derivation_is_abstract(self):
        with self.assertRaises(TypeError):
            AccountDerivation()

        class Incomplete(AccountDerivation):
            name = "incomplete"

        with self.assertRaises(TypeError):
            Incomplete()

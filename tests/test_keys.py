"""
Tests for ivkscan.keys: key type detection, Orchard component extraction
and key inspection.
"""

import pytest

from ivkscan import unified
from ivkscan.errors import (
    ComponentNotFound,
    ComponentTooShort,
    InvalidEncoding,
    MalformedComponent,
    UnsupportedComponent,
)
from ivkscan.keys import (
    KeyType,
    detect_key_type,
    extract_ivk,
    extract_orchard_component,
    inspect_viewing_key,
    load_full_viewing_key,
    parse_orchard_ivk,
    parse_sapling_ivk,
)
from ivkscan.unified import (
    Network,
    OrchardComponent,
    SaplingComponent,
    TransparentComponent,
)

FVK = bytes(range(96))


class TestDetectKeyType:

    def test_mainnet(self):
        assert detect_key_type("uview1abc") is KeyType.UFVK_MAINNET

    def test_testnet_checked_before_mainnet(self):
        assert detect_key_type("uviewtest1abc") is KeyType.UFVK_TESTNET

    @pytest.mark.parametrize("key", ["zxviews1abc", "utest1abc", "", "UVIEW1ABC"])
    def test_unknown(self, key):
        assert detect_key_type(key) is KeyType.UNKNOWN


class TestExtract:

    def test_ivk_is_rivk_slice(self):
        assert extract_ivk(FVK) == FVK[64:96]
        assert len(extract_ivk(FVK)) == 32

    def test_extract_from_components(self):
        components = [SaplingComponent(b"\x01" * 128), OrchardComponent(FVK)]
        assert extract_orchard_component(components) == FVK

    def test_no_orchard(self):
        with pytest.raises(ComponentNotFound) as exc:
            extract_orchard_component([SaplingComponent(b"\x01" * 128)])
        assert exc.value.field == "orchard"

    def test_too_short(self):
        with pytest.raises(ComponentTooShort, match="expected 96 bytes, got 95"):
            extract_orchard_component([OrchardComponent(FVK[:95])])

    def test_too_long(self):
        with pytest.raises(MalformedComponent) as exc:
            extract_orchard_component([OrchardComponent(FVK + b"\x00")])
        assert not isinstance(exc.value, ComponentTooShort)

    def test_extract_ivk_wrong_size(self):
        with pytest.raises(MalformedComponent):
            extract_ivk(FVK[:64])

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            extract_orchard_component([])


class TestParseViewingKey:

    def test_parse_orchard_ivk(self):
        key = unified.encode("mainnet", [OrchardComponent(FVK)])
        assert parse_orchard_ivk(key) == FVK[64:96]

    def test_short_component_in_encoded_key(self):
        key = unified.encode("testnet", [OrchardComponent(FVK[:95])])
        with pytest.raises(ComponentTooShort):
            parse_orchard_ivk(key)

    def test_sapling_only_key(self):
        key = unified.encode("mainnet", [SaplingComponent(b"\x01" * 128)])
        with pytest.raises(ComponentNotFound):
            parse_orchard_ivk(key)

    def test_invalid_string(self):
        with pytest.raises(InvalidEncoding):
            parse_orchard_ivk("uview1notavalidkey")

    def test_load_full_viewing_key(self, backend):
        key = unified.encode("mainnet", [OrchardComponent(FVK)])
        assert load_full_viewing_key(key, backend) == FVK

    def test_load_rejected_by_backend(self, backend, monkeypatch):
        monkeypatch.setattr(backend, "fvk_from_bytes", lambda data: None)
        key = unified.encode("mainnet", [OrchardComponent(FVK)])
        with pytest.raises(MalformedComponent, match="not a valid key"):
            load_full_viewing_key(key, backend)


class TestSapling:

    @pytest.mark.parametrize("key", ["zxviews1qqqq", "zxviewtestsapling1qqqq"])
    def test_extfvk_unsupported(self, key):
        with pytest.raises(UnsupportedComponent):
            parse_sapling_ivk(key)

    def test_unified_with_sapling_unsupported(self):
        key = unified.encode(
            "mainnet", [SaplingComponent(b"\x01" * 128), OrchardComponent(FVK)]
        )
        with pytest.raises(UnsupportedComponent):
            parse_sapling_ivk(key)

    def test_unified_without_sapling(self):
        key = unified.encode("mainnet", [OrchardComponent(FVK)])
        with pytest.raises(ComponentNotFound):
            parse_sapling_ivk(key)


class TestInspect:

    def test_pools(self):
        key = unified.encode(
            "testnet",
            [TransparentComponent(b"\x02" * 65), OrchardComponent(FVK)],
        )
        info = inspect_viewing_key(key)
        assert info.network is Network.TEST
        assert info.has_orchard
        assert info.has_transparent
        assert not info.has_sapling

    def test_to_dict(self):
        key = unified.encode("mainnet", [OrchardComponent(FVK)])
        assert inspect_viewing_key(key).to_dict() == {
            "network": "mainnet",
            "type": "unified",
            "components": {
                "hasOrchard": True,
                "hasSapling": False,
                "hasTransparent": False,
            },
        }

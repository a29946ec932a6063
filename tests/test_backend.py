"""
Tests for backend loading and the default batch primitive.
"""

import pytest

from fakes import FakeOrchardBackend, foreign_ivk, make_compact_action

from ivkscan import backend as backend_mod
from ivkscan import config
from ivkscan.backend import get_backend, get_engine, load_backend, set_backend
from ivkscan.errors import BackendUnavailable


class TestSelection:

    def test_unconfigured(self, monkeypatch):
        monkeypatch.setattr(config, "BACKEND", "")
        with pytest.raises(BackendUnavailable, match="IVKSCAN_BACKEND"):
            get_backend()
        assert get_engine() == "none"

    def test_explicit_wins(self):
        fake = FakeOrchardBackend()
        set_backend(FakeOrchardBackend())
        assert get_backend(fake) is fake

    def test_loaded_from_config_once(self, monkeypatch):
        monkeypatch.setattr(config, "BACKEND", "fakes:FakeOrchardBackend")
        first = get_backend()
        assert isinstance(first, FakeOrchardBackend)
        assert get_backend() is first
        assert get_engine() == "fake"

    def test_set_backend(self):
        fake = FakeOrchardBackend()
        set_backend(fake)
        assert backend_mod.get_backend() is fake


class TestLoadBackend:

    def test_load(self):
        assert isinstance(load_backend("fakes:PermissiveBackend"), FakeOrchardBackend)

    @pytest.mark.parametrize("spec", ["fakes", ":FakeOrchardBackend", "fakes:"])
    def test_bad_spec(self, spec):
        with pytest.raises(BackendUnavailable, match="module:attribute"):
            load_backend(spec)

    def test_missing_module(self):
        with pytest.raises(BackendUnavailable, match="Cannot load"):
            load_backend("no_such_module_ivkscan:Backend")

    def test_missing_attribute(self):
        with pytest.raises(BackendUnavailable, match="Cannot load"):
            load_backend("fakes:NoSuchBackend")

    def test_not_a_backend(self):
        with pytest.raises(BackendUnavailable, match="did not produce"):
            load_backend("fakes:foreign_ivk")


class TestDefaultBatch:

    def test_first_ivk_wins(self, backend):
        ivk_a, ivk_b = foreign_ivk(), foreign_ivk()
        actions = [
            make_compact_action(ivk_b, 1),
            make_compact_action(foreign_ivk(), 2),
            make_compact_action(ivk_a, 3),
        ]
        results = backend.batch_compact_note_decryption([ivk_a, ivk_b], actions)
        assert results[0][0].value == 1 and results[0][1] == 1
        assert results[1] is None
        assert results[2][0].value == 3 and results[2][1] == 0

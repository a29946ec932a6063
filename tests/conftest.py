"""
Shared pytest fixtures for the ivkscan test suite.
"""

import pytest

from fakes import FakeOrchardBackend

from ivkscan.actions import Scope
from ivkscan.backend import set_backend
from ivkscan.seed import assemble_viewing_key

ABANDON_PHRASE = "abandon " * 11 + "about"


@pytest.fixture(autouse=True)
def _reset_backend():
    """No test inherits a process-wide backend from another."""
    set_backend(None)
    yield
    set_backend(None)


@pytest.fixture
def backend():
    return FakeOrchardBackend()


@pytest.fixture
def fvk(backend):
    """96-byte FVK of a fixed test wallet."""
    return backend.full_viewing_key(backend.spending_key_from_bytes(b"\x11" * 32))


@pytest.fixture
def viewing_key(fvk):
    return assemble_viewing_key(fvk, "testnet")


@pytest.fixture
def external_ivk(backend, fvk):
    return backend.incoming_viewing_key(fvk, Scope.EXTERNAL)


@pytest.fixture
def internal_ivk(backend, fvk):
    return backend.incoming_viewing_key(fvk, Scope.INTERNAL)


@pytest.fixture
def phrase():
    return ABANDON_PHRASE

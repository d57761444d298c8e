"""Shared fixtures for the FROST Taproot test suite."""

import random

import pytest

from core.types import KeyMaterial
from frost import generate_with_dealer, split

SCALAR_ONE_HEX = "00" * 31 + "01"


@pytest.fixture
def rng():
    """Deterministic randomness source."""
    return random.Random(0xF205)


@pytest.fixture
def material(rng):
    """3-of-5 key material from the trusted dealer."""
    key_packages, public_key_package = generate_with_dealer(5, 3, rng=rng)
    return KeyMaterial(key_packages=key_packages, public_key_package=public_key_package)


@pytest.fixture
def split_material(rng):
    """3-of-5 key material for the secret scalar 1."""
    key_packages, public_key_package = split(1, 5, 3, rng=rng)
    return KeyMaterial(key_packages=key_packages, public_key_package=public_key_package)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run in an empty directory with no signer settings in the environment."""
    for name in (
        "PRIVATE_KEY",
        "FROST_MIN_SIGNERS",
        "FROST_MAX_SIGNERS",
        "BITCOIN_NETWORK",
        "FROST_STORE_PATH",
        "FROST_LOG_FILE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path

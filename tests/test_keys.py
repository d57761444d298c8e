"""Trusted-dealer provisioning, split and reconstruction."""

import dataclasses

import pytest

from core.errors import (
    FrostError,
    InsufficientSignersError,
    InvalidSecretError,
    InvalidShareError,
)
from frost import generate_with_dealer, reconstruct, split
from frost.curve import G, ORDER
from frost.keys import deal_shares, key_package_from_secret_share


def test_generate_default_parameters(rng):
    key_packages, public_key_package = generate_with_dealer(rng=rng)

    assert list(key_packages) == [1, 2, 3, 4, 5]
    assert public_key_package.min_signers == 3
    assert list(public_key_package.verifying_shares) == [1, 2, 3, 4, 5]
    for identifier, key_package in key_packages.items():
        assert key_package.identifier == identifier
        assert key_package.min_signers == 3
        assert key_package.verifying_key == public_key_package.verifying_key
        assert key_package.verifying_share == key_package.signing_share * G
        assert public_key_package.verifying_shares[identifier] == key_package.verifying_share


@pytest.mark.parametrize("secret", [1, 2, 0xDEADBEEF, ORDER - 1])
def test_split_verifying_key_is_secret_times_generator(secret, rng):
    _, public_key_package = split(secret, 5, 3, rng=rng)
    assert public_key_package.verifying_key == secret * G


def test_split_of_one_is_generator(split_material):
    assert split_material.public_key_package.verifying_key == G


@pytest.mark.parametrize("secret", [0, ORDER, ORDER + 5, -1])
def test_split_rejects_invalid_secret(secret, rng):
    with pytest.raises(InvalidSecretError):
        split(secret, 5, 3, rng=rng)


@pytest.mark.parametrize("min_signers,max_signers", [(0, 5), (4, 3), (-1, 2)])
def test_invalid_threshold_parameters(min_signers, max_signers, rng):
    with pytest.raises(FrostError):
        generate_with_dealer(max_signers, min_signers, rng=rng)


def test_custom_identifiers(rng):
    key_packages, public_key_package = generate_with_dealer(
        3, 2, identifiers=[7, 3, 11], rng=rng
    )
    assert list(key_packages) == [3, 7, 11]
    assert list(public_key_package.verifying_shares) == [3, 7, 11]


def test_duplicate_identifiers_rejected(rng):
    with pytest.raises(FrostError):
        generate_with_dealer(3, 2, identifiers=[1, 1, 2], rng=rng)


def test_reconstruct_from_any_threshold_subset(rng):
    secret = 0x1234567890ABCDEF
    key_packages, _ = split(secret, 5, 3, rng=rng)
    packages = list(key_packages.values())

    assert reconstruct(packages[:3]) == secret
    assert reconstruct(packages[2:]) == secret
    assert reconstruct([packages[0], packages[2], packages[4]]) == secret
    assert reconstruct(packages) == secret


def test_reconstruct_below_threshold_fails(split_material):
    packages = list(split_material.key_packages.values())[:2]
    with pytest.raises(InsufficientSignersError) as excinfo:
        reconstruct(packages)
    assert excinfo.value.required == 3
    assert excinfo.value.available == 2


def test_tampered_share_fails_commitment_check(rng):
    shares, _ = deal_shares(42, 5, 3, rng=rng)
    share = shares[4]
    tampered = dataclasses.replace(share, signing_share=(share.signing_share + 1) % ORDER)

    with pytest.raises(InvalidShareError) as excinfo:
        key_package_from_secret_share(tampered)
    assert excinfo.value.identifier == 4


def test_dealer_is_randomized(rng):
    _, first = generate_with_dealer(rng=rng)
    _, second = generate_with_dealer(rng=rng)
    assert first.verifying_key != second.verifying_key


def test_signing_share_hidden_from_repr(material):
    key_package = material.key_packages[1]
    assert str(key_package.signing_share) not in repr(key_package)

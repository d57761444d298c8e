"""Trusted-dealer key provisioning.

A dealer samples a degree ``t - 1`` polynomial whose constant term is the
group signing key, hands every participant the polynomial's value at its
identifier and publishes the Feldman commitment to the coefficients. Each
share is checked against the commitment before it becomes a KeyPackage.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.errors import (
    FrostError,
    InsufficientSignersError,
    InvalidSecretError,
    InvalidShareError,
)
from core.types import KeyPackage, ParticipantId, PublicKeyPackage, SecretShare
from frost.curve import (
    G,
    ORDER,
    CurvePoint,
    lagrange_coefficient,
    random_scalar,
    sum_points,
)

logger = logging.getLogger(__name__)

MAX_SIGNERS = 5
MIN_SIGNERS = 3


def default_identifiers(max_signers: int) -> Tuple[ParticipantId, ...]:
    """Identifiers 1, 2, ..., n."""
    return tuple(ParticipantId(i) for i in range(1, max_signers + 1))


def validate_num_signers(min_signers: int, max_signers: int) -> None:
    """Check 1 <= t <= n.

    Raises:
        FrostError: If the threshold parameters are inconsistent
    """
    if not all(isinstance(arg, int) for arg in (min_signers, max_signers)):
        raise FrostError("min_signers and max_signers must be integers")
    if min_signers < 1:
        raise FrostError(f"min_signers must be at least 1, got {min_signers}")
    if min_signers > max_signers:
        raise FrostError(
            f"Threshold ({min_signers}) cannot exceed total participants ({max_signers})"
        )


def _validate_identifiers(identifiers: Sequence[int], max_signers: int) -> None:
    if len(identifiers) != max_signers:
        raise FrostError(
            f"Expected {max_signers} identifiers, got {len(identifiers)}"
        )
    if len(set(identifiers)) != len(identifiers):
        raise FrostError("Participant identifiers must be unique")
    for identifier in identifiers:
        if not 0 < identifier < ORDER:
            raise FrostError(f"Identifier {identifier} is not a non-zero scalar")


def evaluate_polynomial(coefficients: Sequence[int], x: int) -> int:
    """Evaluate the polynomial at ``x`` using Horner's method."""
    y = 0
    for coefficient in reversed(coefficients):
        y = (y * x + coefficient) % ORDER
    return y


def evaluate_commitment(commitment: Sequence[CurvePoint], x: int) -> CurvePoint:
    """Evaluate the committed polynomial in the exponent: sum C_k * x^k."""
    # ∏ 𝜙_k^(x^k), 0 ≤ k ≤ t - 1
    return sum_points(
        (pow(x, k, ORDER) * point) for k, point in enumerate(commitment)
    )


def deal_shares(
    secret: int,
    max_signers: int,
    min_signers: int,
    identifiers: Optional[Sequence[int]] = None,
    rng=None,
) -> Tuple[Dict[ParticipantId, SecretShare], Tuple[CurvePoint, ...]]:
    """Split ``secret`` into Shamir shares with a Feldman commitment.

    Returns:
        Mapping identifier -> SecretShare (ordered by identifier) and the
        commitment vector
    """
    validate_num_signers(min_signers, max_signers)
    if not 0 < secret < ORDER:
        raise InvalidSecretError("Secret must be a non-zero scalar below the group order")
    if identifiers is None:
        identifiers = default_identifiers(max_signers)
    _validate_identifiers(identifiers, max_signers)

    # (a_0, ..., a_(t - 1)), a_0 = s
    coefficients: List[int] = [secret] + [
        random_scalar(rng) for _ in range(min_signers - 1)
    ]
    commitment = tuple(coefficient * G for coefficient in coefficients)

    shares = {}
    for identifier in sorted(identifiers):
        participant_id = ParticipantId(identifier)
        shares[participant_id] = SecretShare(
            identifier=participant_id,
            signing_share=evaluate_polynomial(coefficients, identifier),
            commitment=commitment,
        )

    # Drop the only copy of the polynomial
    coefficients[:] = [0] * len(coefficients)

    logger.debug(f"Dealt {len(shares)} shares with threshold {min_signers}")
    return shares, commitment


def verify_secret_share(share: SecretShare) -> CurvePoint:
    """Check a share against its commitment and return the verifying share.

    Raises:
        InvalidShareError: If f(i) * G does not match the commitment
    """
    if not 0 < share.signing_share < ORDER:
        raise InvalidShareError(share.identifier, "signing share out of range")
    expected = evaluate_commitment(share.commitment, share.identifier)
    verifying_share = share.signing_share * G
    if verifying_share != expected:
        raise InvalidShareError(share.identifier, "does not match the commitment")
    return verifying_share


def key_package_from_secret_share(share: SecretShare) -> KeyPackage:
    """Verify a SecretShare and turn it into a long-lived KeyPackage."""
    verifying_share = verify_secret_share(share)
    return KeyPackage(
        identifier=share.identifier,
        signing_share=share.signing_share,
        verifying_share=verifying_share,
        verifying_key=share.commitment[0],
        min_signers=len(share.commitment),
    )


def public_key_package_from_commitment(
    commitment: Sequence[CurvePoint], identifiers: Iterable[int]
) -> PublicKeyPackage:
    verifying_shares = {
        ParticipantId(identifier): evaluate_commitment(commitment, identifier)
        for identifier in sorted(identifiers)
    }
    return PublicKeyPackage(
        verifying_shares=verifying_shares,
        verifying_key=commitment[0],
        min_signers=len(commitment),
    )


def _provision(
    secret: int,
    max_signers: int,
    min_signers: int,
    identifiers: Optional[Sequence[int]],
    rng,
) -> Tuple[Dict[ParticipantId, KeyPackage], PublicKeyPackage]:
    shares, commitment = deal_shares(secret, max_signers, min_signers, identifiers, rng)

    # Each share is verified against the commitment before it is accepted.
    # In practice the shares would reach their holders over confidential,
    # authenticated channels.
    key_packages = {
        identifier: key_package_from_secret_share(share)
        for identifier, share in shares.items()
    }
    public_key_package = public_key_package_from_commitment(commitment, shares)

    logger.info(
        f"Provisioned {len(key_packages)} key packages with threshold {min_signers}"
    )
    return key_packages, public_key_package


def generate_with_dealer(
    max_signers: int = MAX_SIGNERS,
    min_signers: int = MIN_SIGNERS,
    identifiers: Optional[Sequence[int]] = None,
    rng=None,
) -> Tuple[Dict[ParticipantId, KeyPackage], PublicKeyPackage]:
    """Generate a fresh group key and split it among ``max_signers`` participants.

    Args:
        max_signers: Number of shares n
        min_signers: Threshold t
        identifiers: Optional identifiers (default 1..n)
        rng: Randomness source with ``getrandbits`` (default: OS randomness)

    Returns:
        Ordered mapping identifier -> KeyPackage, and the PublicKeyPackage

    Raises:
        InvalidShareError: If any dealt share fails verification
        RandomnessError: If the randomness source fails
    """
    validate_num_signers(min_signers, max_signers)
    logger.info(f"Generating {min_signers}-of-{max_signers} key with trusted dealer")
    return _provision(random_scalar(rng), max_signers, min_signers, identifiers, rng)


def split(
    secret: int,
    max_signers: int = MAX_SIGNERS,
    min_signers: int = MIN_SIGNERS,
    identifiers: Optional[Sequence[int]] = None,
    rng=None,
) -> Tuple[Dict[ParticipantId, KeyPackage], PublicKeyPackage]:
    """Split an existing signing key; the group verifying key equals ``secret * G``.

    Raises:
        InvalidSecretError: If ``secret`` is zero or not below the group order
    """
    if not isinstance(secret, int) or not 0 < secret < ORDER:
        raise InvalidSecretError("Secret must be a non-zero scalar below the group order")
    validate_num_signers(min_signers, max_signers)
    logger.info(f"Splitting supplied key into {min_signers}-of-{max_signers} shares")
    return _provision(secret, max_signers, min_signers, identifiers, rng)


def reconstruct(key_packages: Iterable[KeyPackage]) -> int:
    """Recover the group signing key from at least ``t`` KeyPackages.

    Raises:
        InsufficientSignersError: If fewer than ``t`` packages are given
    """
    key_packages = list(key_packages)
    if not key_packages:
        raise InsufficientSignersError(required=1, available=0)
    min_signers = key_packages[0].min_signers
    if len(key_packages) < min_signers:
        raise InsufficientSignersError(required=min_signers, available=len(key_packages))

    identifiers = [key_package.identifier for key_package in key_packages]
    secret = 0
    for key_package in key_packages:
        lam = lagrange_coefficient(identifiers, key_package.identifier)
        secret = (secret + lam * key_package.signing_share) % ORDER
    return secret

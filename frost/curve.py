"""secp256k1 primitives used by the FROST protocol.

Point arithmetic is delegated to the ``ecdsa`` package and BIP-340
verification to libsecp256k1 through ``coincurve``; scalars are plain
Python integers reduced modulo the group order. Points travel through the
rest of the code base as ``ecdsa.ellipticcurve.PointJacobi`` objects (or the
``INFINITY`` singleton for the identity).
"""

import hashlib
import logging
import secrets
from typing import Iterable, Union

from coincurve import PublicKeyXOnly
from ecdsa import SECP256k1
from ecdsa.ellipticcurve import INFINITY, Point, PointJacobi
from ecdsa.errors import MalformedPointError

from core.errors import InvalidPointError, RandomnessError

logger = logging.getLogger(__name__)

CurvePoint = Union[PointJacobi, Point]

# secp256k1 constants
G: PointJacobi = SECP256k1.generator
ORDER: int = SECP256k1.order
FIELD_PRIME: int = SECP256k1.curve.p()

SCALAR_SIZE = 32
COMPRESSED_POINT_SIZE = 33

# Rejection sampling gives up after this many unusable draws
MAX_SAMPLING_ATTEMPTS = 16


def default_rng() -> secrets.SystemRandom:
    """Return a fresh OS-backed randomness source."""
    return secrets.SystemRandom()


def is_identity(point: CurvePoint) -> bool:
    """Check whether a point is the point at infinity."""
    return point == INFINITY


def has_even_y(point: CurvePoint) -> bool:
    if is_identity(point):
        raise InvalidPointError("The point at infinity has no y-coordinate")
    return point.y() % 2 == 0


def point_to_bytes(point: CurvePoint) -> bytes:
    """Serialize a point in SEC 1 compressed form (33 bytes)."""
    if is_identity(point):
        raise InvalidPointError("Cannot serialize the point at infinity")
    return point.to_bytes("compressed")


def point_from_bytes(data: bytes) -> PointJacobi:
    """Deserialize a SEC 1 compressed point.

    Raises:
        InvalidPointError: If the bytes do not encode a point on secp256k1
    """
    if len(data) != COMPRESSED_POINT_SIZE:
        raise InvalidPointError(
            f"Expected {COMPRESSED_POINT_SIZE} bytes for a compressed point, got {len(data)}"
        )
    # ecdsa would silently reduce x mod p
    if int.from_bytes(data[1:], "big") >= FIELD_PRIME:
        raise InvalidPointError("Point x-coordinate is not below the field size")
    try:
        return PointJacobi.from_bytes(
            SECP256k1.curve, data, valid_encodings=("compressed",), order=ORDER
        )
    except MalformedPointError as e:
        raise InvalidPointError(f"Invalid compressed point: {e}") from e


def xonly_bytes(point: CurvePoint) -> bytes:
    """Return the 32-byte x-coordinate of a point (BIP-340 x-only key)."""
    if is_identity(point):
        raise InvalidPointError("The point at infinity has no x-coordinate")
    return point.x().to_bytes(SCALAR_SIZE, "big")


def lift_x(xonly: bytes) -> PointJacobi:
    """Return the even-y point with the given x-coordinate."""
    if len(xonly) != SCALAR_SIZE:
        raise InvalidPointError(f"Expected {SCALAR_SIZE} bytes for an x-only key")
    return point_from_bytes(b"\x02" + xonly)


def scalar_to_bytes(scalar: int) -> bytes:
    return (scalar % ORDER).to_bytes(SCALAR_SIZE, "big")


def scalar_from_bytes(data: bytes) -> int:
    """Decode a 32-byte big-endian scalar, rejecting values >= the order."""
    if len(data) != SCALAR_SIZE:
        raise ValueError(f"Expected {SCALAR_SIZE} bytes for a scalar, got {len(data)}")
    value = int.from_bytes(data, "big")
    if value >= ORDER:
        raise ValueError("Scalar is not reduced modulo the group order")
    return value


def tagged_hash(tag: Union[str, bytes], data: bytes) -> bytes:
    """BIP-340 tagged hash: SHA256(SHA256(tag) || SHA256(tag) || data)."""
    if isinstance(tag, str):
        tag = tag.encode()
    tag_hash = hashlib.sha256(tag).digest()
    return hashlib.sha256(tag_hash + tag_hash + data).digest()


def hash_to_scalar(tag: Union[str, bytes], data: bytes) -> int:
    return int.from_bytes(tagged_hash(tag, data), "big") % ORDER


def random_bytes(rng, size: int = SCALAR_SIZE) -> bytes:
    """Draw ``size`` bytes from ``rng`` (any object with ``getrandbits``)."""
    try:
        return rng.getrandbits(size * 8).to_bytes(size, "big")
    except Exception as e:
        raise RandomnessError(f"Randomness source failed: {e}") from e


def random_scalar(rng=None) -> int:
    """Sample a uniformly random non-zero scalar by rejection sampling.

    Raises:
        RandomnessError: If the source fails or keeps producing unusable values
    """
    if rng is None:
        rng = default_rng()
    for _ in range(MAX_SAMPLING_ATTEMPTS):
        candidate = int.from_bytes(random_bytes(rng), "big")
        if 0 < candidate < ORDER:
            return candidate
        logger.debug("Rejected out-of-range scalar sample")
    raise RandomnessError(
        f"No usable scalar after {MAX_SAMPLING_ATTEMPTS} draws"
    )


def sum_points(points: Iterable[CurvePoint]) -> CurvePoint:
    total: CurvePoint = INFINITY
    for point in points:
        total = total + point
    return total


def lagrange_coefficient(identifiers: Iterable[int], identifier: int, x: int = 0) -> int:
    """Lagrange coefficient of ``identifier`` over ``identifiers`` evaluated at ``x``.

    Raises:
        ValueError: If identifiers repeat or ``identifier`` is not among them
    """
    identifiers = tuple(identifiers)
    if len(identifiers) != len(set(identifiers)):
        raise ValueError("Participant identifiers must be unique.")
    if identifier not in identifiers:
        raise ValueError(f"Identifier {identifier} is not in the interpolation set.")

    # λ_i(x) = ∏ (x - x_j)/(x_i - x_j), j ≠ i
    numerator = 1
    denominator = 1
    for other in identifiers:
        if other == identifier:
            continue
        numerator = numerator * (x - other) % ORDER
        denominator = denominator * (identifier - other) % ORDER
    return (numerator * pow(denominator, ORDER - 2, ORDER)) % ORDER


def challenge(nonce_commitment: CurvePoint, public_key: CurvePoint, message: bytes) -> int:
    """BIP-340 challenge c = H_challenge(x(R) || x(P) || m) mod n."""
    return hash_to_scalar(
        "BIP0340/challenge",
        xonly_bytes(nonce_commitment) + xonly_bytes(public_key) + message,
    )


def schnorr_verify(message: bytes, public_key: bytes, signature: bytes) -> bool:
    """Verify a BIP-340 signature against a 32-byte x-only public key.

    Verification is done by libsecp256k1, independently of the signing code.
    """
    if len(public_key) != SCALAR_SIZE or len(signature) != 2 * SCALAR_SIZE:
        return False
    try:
        xonly_key = PublicKeyXOnly(bytes(public_key))
    except ValueError:
        return False
    return xonly_key.verify(bytes(signature), bytes(message))


def negate_if(point: CurvePoint, condition: bool) -> CurvePoint:
    if condition and not is_identity(point):
        return -point
    return point

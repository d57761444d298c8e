"""FROST(secp256k1, SHA-256) signing math with BIP-340 compatible output.

The functions here are shared by participants (Round 2) and the
coordinator (share verification and aggregation). Signatures are x-only:
whenever the group commitment R or the signing key has an odd y-coordinate,
nonces or signing shares are negated so the aggregate verifies under
BIP-340.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable

from core.errors import InvalidPointError, RandomnessError, SigningError
from core.types import (
    GroupSignature,
    KeyPackage,
    ParticipantId,
    SignatureShare,
    SigningCommitments,
    SigningNonces,
    SigningPackage,
)
from frost.curve import (
    G,
    MAX_SAMPLING_ATTEMPTS,
    ORDER,
    CurvePoint,
    challenge,
    has_even_y,
    hash_to_scalar,
    is_identity,
    lagrange_coefficient,
    negate_if,
    point_to_bytes,
    random_bytes,
    scalar_to_bytes,
    sum_points,
    tagged_hash,
    xonly_bytes,
)

logger = logging.getLogger(__name__)

CONTEXT_STRING = b"FROST-secp256k1-SHA256-TR-v1"


def _tag(name: str) -> bytes:
    return CONTEXT_STRING + b"/" + name.encode()


def serialize_identifier(identifier: int) -> bytes:
    return scalar_to_bytes(identifier)


@dataclass(frozen=True)
class KeyContext:
    """The key a session signs for, plus the accumulated tweak.

    For the untweaked group key ``gacc`` is 1 and ``tacc`` is 0. For a
    Taproot output key Q = g*P + t*G, ``gacc`` is g (the negation applied to
    reach the even-y internal key) and ``tacc`` is t.
    """
    key: CurvePoint
    gacc: int = 1
    tacc: int = 0

    @classmethod
    def untweaked(cls, verifying_key: CurvePoint) -> "KeyContext":
        if is_identity(verifying_key):
            raise InvalidPointError("The group verifying key is the point at infinity")
        return cls(key=verifying_key)

    @classmethod
    def taproot(cls, verifying_key: CurvePoint, merkle_root: bytes = b"") -> "KeyContext":
        """Key-path context for the BIP-341 output key of ``verifying_key``."""
        if is_identity(verifying_key):
            raise InvalidPointError("The group verifying key is the point at infinity")
        even = has_even_y(verifying_key)
        internal_key = negate_if(verifying_key, not even)
        tweak = taproot_tweak(verifying_key, merkle_root)
        output_key = sum_points((internal_key, tweak * G))
        if is_identity(output_key):
            raise InvalidPointError("Taproot tweak produced the point at infinity")
        return cls(key=output_key, gacc=1 if even else ORDER - 1, tacc=tweak)

    @property
    def xonly(self) -> bytes:
        return xonly_bytes(self.key)

    @property
    def parity_factor(self) -> int:
        """1 if the signing key has even y, -1 (mod n) otherwise."""
        return 1 if has_even_y(self.key) else ORDER - 1


def taproot_tweak(internal_key: CurvePoint, merkle_root: bytes = b"") -> int:
    """BIP-341 TapTweak of the x-only internal key (no script tree by default)."""
    digest = tagged_hash("TapTweak", xonly_bytes(internal_key) + merkle_root)
    tweak = int.from_bytes(digest, "big")
    if tweak >= ORDER:
        raise InvalidPointError("Taproot tweak is not below the group order")
    return tweak


def generate_nonce(signing_share: int, rng) -> int:
    """Hedged nonce: H_nonce(random || signing_share), resampled if zero."""
    secret_bytes = scalar_to_bytes(signing_share)
    for _ in range(MAX_SAMPLING_ATTEMPTS):
        nonce = hash_to_scalar(_tag("nonce"), random_bytes(rng) + secret_bytes)
        if nonce != 0:
            return nonce
        logger.debug("Resampling zero nonce")
    raise RandomnessError(f"No non-zero nonce after {MAX_SAMPLING_ATTEMPTS} draws")


def encode_group_commitment_list(commitments: Iterable[SigningCommitments]) -> bytes:
    """ser(i) || D_i || E_i for every participant, in ascending identifier order."""
    encoded = b""
    for item in sorted(commitments, key=lambda c: c.identifier):
        encoded += (
            serialize_identifier(item.identifier)
            + point_to_bytes(item.hiding)
            + point_to_bytes(item.binding)
        )
    return encoded


def binding_factors(
    signing_package: SigningPackage, key_context: KeyContext
) -> Dict[ParticipantId, int]:
    """rho_i = H_rho(x(Y) || H_msg(m) || H_com(B) || ser(i)) for each participant."""
    prefix = (
        key_context.xonly
        + tagged_hash(_tag("msg"), signing_package.message)
        + tagged_hash(
            _tag("com"),
            encode_group_commitment_list(signing_package.commitments.values()),
        )
    )
    return {
        identifier: hash_to_scalar(_tag("rho"), prefix + serialize_identifier(identifier))
        for identifier in signing_package.identifiers
    }


def group_commitment(
    signing_package: SigningPackage, factors: Dict[ParticipantId, int]
) -> CurvePoint:
    """R = sum(D_i + rho_i * E_i)."""
    R = sum_points(
        commitments.hiding + factors[identifier] * commitments.binding
        for identifier, commitments in signing_package.commitments.items()
    )
    if is_identity(R):
        raise SigningError("Group commitment is the point at infinity")
    return R


@dataclass(frozen=True)
class SessionValues:
    """Values every party derives identically from a SigningPackage."""
    binding_factors: Dict[ParticipantId, int]
    group_commitment: CurvePoint
    challenge: int


def session_values(signing_package: SigningPackage, key_context: KeyContext) -> SessionValues:
    factors = binding_factors(signing_package, key_context)
    R = group_commitment(signing_package, factors)
    c = challenge(R, key_context.key, signing_package.message)
    return SessionValues(binding_factors=factors, group_commitment=R, challenge=c)


def compute_signature_share(
    key_package: KeyPackage,
    nonces: SigningNonces,
    signing_package: SigningPackage,
    key_context: KeyContext,
) -> SignatureShare:
    """z_i = d_i + e_i * rho_i + lambda_i * s_i * c."""
    values = session_values(signing_package, key_context)
    identifier = key_package.identifier

    # d_i, e_i; negated if R is odd
    hiding, binding = nonces.hiding, nonces.binding
    if not has_even_y(values.group_commitment):
        hiding = ORDER - hiding
        binding = ORDER - binding

    lam = lagrange_coefficient(signing_package.identifiers, identifier)
    # s_i; negated if the signing key is odd
    signing_share = (
        key_context.parity_factor * key_context.gacc * key_package.signing_share
    ) % ORDER

    share = (
        hiding
        + binding * values.binding_factors[identifier]
        + lam * signing_share * values.challenge
    ) % ORDER
    return SignatureShare(identifier=identifier, share=share)


def verify_signature_share(
    signature_share: SignatureShare,
    verifying_share: CurvePoint,
    signing_package: SigningPackage,
    key_context: KeyContext,
    values: SessionValues,
) -> bool:
    """Check z_i * G == R_i + c * lambda_i * Y_i (with the BIP-340 negations)."""
    identifier = signature_share.identifier
    if not 0 <= signature_share.share < ORDER:
        return False
    commitments = signing_package.commitments.get(identifier)
    if commitments is None:
        return False

    R_i = sum_points(
        (commitments.hiding, values.binding_factors[identifier] * commitments.binding)
    )
    R_i = negate_if(R_i, not has_even_y(values.group_commitment))

    lam = lagrange_coefficient(signing_package.identifiers, identifier)
    factor = (
        values.challenge * lam * key_context.parity_factor * key_context.gacc
    ) % ORDER

    return signature_share.share * G == sum_points((R_i, factor * verifying_share))


def aggregate_shares(
    signature_shares: Iterable[SignatureShare],
    key_context: KeyContext,
    values: SessionValues,
) -> GroupSignature:
    """z = sum(z_i) + c * g * tacc; the signature is (R, z)."""
    z = sum(share.share for share in signature_shares) % ORDER
    z = (z + values.challenge * key_context.parity_factor * key_context.tacc) % ORDER
    return GroupSignature(R=values.group_commitment, z=z)

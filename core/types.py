"""Core types for the FROST Taproot demonstrator."""

from dataclasses import dataclass, field
from typing import Dict, NewType, Tuple

from ecdsa.ellipticcurve import PointJacobi

from core.errors import SigningError

# Type aliases
ParticipantId = NewType("ParticipantId", int)  # Non-zero scalar, Shamir evaluation point

SCALAR_SIZE = 32


@dataclass(frozen=True)
class SecretShare:
    """A dealer-issued share plus the commitment needed to verify it."""
    identifier: ParticipantId
    signing_share: int = field(repr=False)
    commitment: Tuple[PointJacobi, ...]  # C_k = a_k * G, k = 0..t-1


@dataclass(frozen=True)
class KeyPackage:
    """Long-lived material held by one participant between sessions."""
    identifier: ParticipantId
    signing_share: int = field(repr=False)
    verifying_share: PointJacobi
    verifying_key: PointJacobi
    min_signers: int


@dataclass(frozen=True)
class PublicKeyPackage:
    """Group-wide public record."""
    verifying_shares: Dict[ParticipantId, PointJacobi]
    verifying_key: PointJacobi
    min_signers: int


@dataclass
class KeyMaterial:
    """In-memory contents of the key material store."""
    key_packages: Dict[ParticipantId, KeyPackage]  # ordered by identifier
    public_key_package: PublicKeyPackage


@dataclass(frozen=True)
class SigningCommitments:
    """Public images (D, E) of one participant's nonces."""
    identifier: ParticipantId
    hiding: PointJacobi
    binding: PointJacobi


class SigningNonces:
    """Secret (hiding, binding) nonce pair for a single signing session.

    The scalars live in a mutable buffer so they can be overwritten once
    Round 2 is done. Reading them after that raises SigningError.
    """

    def __init__(self, hiding: int, binding: int, commitments: SigningCommitments):
        self._buffer = bytearray(
            hiding.to_bytes(SCALAR_SIZE, "big") + binding.to_bytes(SCALAR_SIZE, "big")
        )
        self._zeroized = False
        self.commitments = commitments

    @property
    def hiding(self) -> int:
        self._check_live()
        return int.from_bytes(self._buffer[:SCALAR_SIZE], "big")

    @property
    def binding(self) -> int:
        self._check_live()
        return int.from_bytes(self._buffer[SCALAR_SIZE:], "big")

    @property
    def is_zeroized(self) -> bool:
        return self._zeroized

    def zeroize(self) -> None:
        """Overwrite the nonce storage with zeros."""
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._zeroized = True

    def _check_live(self) -> None:
        if self._zeroized:
            raise SigningError(
                f"Nonces of participant {self.commitments.identifier} were already used"
            )

    def __repr__(self) -> str:
        return (
            f"SigningNonces(identifier={self.commitments.identifier}, "
            f"hiding=<redacted>, binding=<redacted>)"
        )


@dataclass
class SigningPackage:
    """Round-2 input assembled by the coordinator."""
    message: bytes
    commitments: Dict[ParticipantId, SigningCommitments]  # ordered by identifier

    @property
    def identifiers(self) -> Tuple[ParticipantId, ...]:
        return tuple(self.commitments)


@dataclass(frozen=True)
class SignatureShare:
    """One participant's Round-2 output."""
    identifier: ParticipantId
    share: int


@dataclass(frozen=True)
class GroupSignature:
    """Aggregated BIP-340 Schnorr signature (R, z)."""
    R: PointJacobi
    z: int

    def serialize(self) -> bytes:
        """Return x(R) || z, 64 bytes."""
        return self.R.x().to_bytes(SCALAR_SIZE, "big") + self.z.to_bytes(SCALAR_SIZE, "big")

    def hex(self) -> str:
        return self.serialize().hex()

"""Core types and errors for the FROST Taproot demonstrator."""

from core.errors import (
    FrostError,
    ConfigurationError,
    InvalidSecretError,
    InvalidShareError,
    InsufficientSignersError,
    DuplicateParticipantError,
    InvalidPointError,
    SigningError,
    RandomnessError,
    StoreError,
    StoreNotFoundError,
    CorruptStoreError,
)
from core.types import (
    ParticipantId,
    SecretShare,
    KeyPackage,
    PublicKeyPackage,
    KeyMaterial,
    SigningCommitments,
    SigningNonces,
    SigningPackage,
    SignatureShare,
    GroupSignature,
)

__all__ = [
    "FrostError",
    "ConfigurationError",
    "InvalidSecretError",
    "InvalidShareError",
    "InsufficientSignersError",
    "DuplicateParticipantError",
    "InvalidPointError",
    "SigningError",
    "RandomnessError",
    "StoreError",
    "StoreNotFoundError",
    "CorruptStoreError",
    "ParticipantId",
    "SecretShare",
    "KeyPackage",
    "PublicKeyPackage",
    "KeyMaterial",
    "SigningCommitments",
    "SigningNonces",
    "SigningPackage",
    "SignatureShare",
    "GroupSignature",
]

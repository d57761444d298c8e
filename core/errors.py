"""Error types for the FROST Taproot demonstrator."""

from typing import Optional


class FrostError(Exception):
    """Base exception for all FROST errors."""
    pass


class ConfigurationError(FrostError):
    """Errors related to configuration."""
    pass


class InvalidSecretError(FrostError):
    """A supplied secret scalar is zero or out of range."""
    pass


class InvalidShareError(FrostError):
    """A share failed its commitment check or Round-2 verification."""
    def __init__(self, identifier: Optional[int], details: str = ""):
        self.identifier = identifier
        self.details = details
        message = f"Invalid share from participant {identifier}"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)


class InsufficientSignersError(FrostError):
    """Fewer participants than the threshold are available."""
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Not enough signers: need {required}, got {available}"
        )


class DuplicateParticipantError(FrostError):
    """An identifier appears twice in one signing session."""
    def __init__(self, identifier: int):
        self.identifier = identifier
        super().__init__(f"Participant {identifier} appears more than once")


class InvalidPointError(FrostError):
    """A curve point cannot be decoded or used as a Taproot internal key."""
    pass


class SigningError(FrostError):
    """Protocol misuse during a signing session (e.g. reused nonces)."""
    pass


class RandomnessError(FrostError):
    """The randomness source failed or kept returning unusable values."""
    pass


class StoreError(FrostError):
    """Errors related to the key material store."""
    pass


class StoreNotFoundError(StoreError):
    """The key material store does not exist."""
    pass


class CorruptStoreError(StoreError):
    """The key material store cannot be read or is structurally invalid."""
    pass

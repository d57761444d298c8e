"""FROST threshold signature implementation."""

from frost.coordinator import FrostCoordinator, threshold_sign
from frost.keys import generate_with_dealer, reconstruct, split
from frost.participant import FrostParticipant
from frost.signing import KeyContext

__all__ = [
    "FrostCoordinator",
    "FrostParticipant",
    "KeyContext",
    "generate_with_dealer",
    "reconstruct",
    "split",
    "threshold_sign",
]

"""Loading of an externally supplied signing key (PRIVATE_KEY)."""

import binascii
import logging
from typing import Optional

from ecdsa import SECP256k1, SigningKey
from ecdsa.errors import MalformedPointError

from core.errors import InvalidSecretError

logger = logging.getLogger(__name__)


class SecretKey:
    """A secp256k1 signing key held in wipeable storage.

    Use as a context manager so the buffer is overwritten as soon as the
    key is no longer needed.
    """

    def __init__(self, secret: bytes):
        self._buffer = bytearray(secret)
        self._wiped = False

    @property
    def scalar(self) -> int:
        if self._wiped:
            raise InvalidSecretError("Secret key has been wiped")
        return int.from_bytes(self._buffer, "big")

    def verifying_key_bytes(self) -> bytes:
        """Compressed SEC 1 public key for this secret."""
        signing_key = SigningKey.from_secret_exponent(self.scalar, curve=SECP256k1)
        return signing_key.get_verifying_key().to_string("compressed")

    def wipe(self) -> None:
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._wiped = True

    def __enter__(self) -> "SecretKey":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return "SecretKey(<redacted>)"


def load_secret_key(private_key_hex: Optional[str]) -> SecretKey:
    """Parse a hex-encoded 32-byte scalar.

    Args:
        private_key_hex: Hex string, optionally prefixed with ``0x``

    Returns:
        SecretKey instance

    Raises:
        InvalidSecretError: If the value is missing, malformed, zero or not
            below the group order
    """
    if not private_key_hex or not private_key_hex.strip():
        raise InvalidSecretError("PRIVATE_KEY is not set")

    private_key_hex = private_key_hex.strip()
    if private_key_hex.lower().startswith("0x"):
        private_key_hex = private_key_hex[2:]

    try:
        private_key_bytes = bytearray(binascii.unhexlify(private_key_hex))
    except (binascii.Error, ValueError) as e:
        raise InvalidSecretError("PRIVATE_KEY is not valid hex") from e

    try:
        # Range check 1 <= k < n is done by the curve library
        SigningKey.from_string(bytes(private_key_bytes), curve=SECP256k1)
    except MalformedPointError as e:
        raise InvalidSecretError(
            "PRIVATE_KEY must be a 32-byte scalar between 1 and n - 1"
        ) from e

    secret_key = SecretKey(private_key_bytes)
    for i in range(len(private_key_bytes)):
        private_key_bytes[i] = 0

    logger.info("Loaded signing key from PRIVATE_KEY")
    return secret_key

"""FROST Taproot signer application service."""

import logging
import random
from dataclasses import dataclass
from typing import Optional, Tuple

from config import FrostConfig
from core.types import GroupSignature, KeyMaterial
from frost import generate_with_dealer, split, threshold_sign
from frost.curve import random_bytes
from keystore import KeyStore
from secret_key import load_secret_key
from taproot import TaprootIdentity, derive_identity

logger = logging.getLogger(__name__)

# Signed as the ASCII bytes of the hex string, not the 32 bytes it encodes
TEST_MESSAGE = b"0x68c158664c20d9d7df31a747782bcc9d36d1f595c36184ee0fc62627e2a72fc0"


@dataclass(frozen=True)
class SignatureResult:
    """Outcome of one threshold signing session."""
    signature: GroupSignature
    verdict: bool
    identity: TaprootIdentity
    key_path: bool


class FrostTaprootApp:
    """Threshold key provisioning, Taproot addressing and signing.

    Wires the key provisioner, the key material store, the Taproot deriver
    and the threshold signer together for the CLI commands.
    """

    def __init__(self, config: FrostConfig, rng=None):
        """Initialize the application.

        Args:
            config: Validated configuration
            rng: Randomness source for provisioning and signing (default: OS
                randomness)
        """
        self.config = config
        self.rng = rng
        self.store = KeyStore(config.store_path)

        logger.debug(
            f"Initialized FROST Taproot app ({config.min_signers}-of-"
            f"{config.max_signers}, {config.network.value})"
        )

    def session_rng(self):
        """Return a randomness stream for one provisioning or signing session.

        An injected deterministic source is never shared between sessions:
        each session gets a child ``random.Random`` seeded with 32 bytes drawn
        from it. OS-backed sources are used directly and ``None`` leaves the
        choice to the callee, which creates a fresh ``SystemRandom``.
        """
        if self.rng is None or isinstance(self.rng, random.SystemRandom):
            return self.rng
        return random.Random(int.from_bytes(random_bytes(self.rng), "big"))

    def generate_keys(self) -> Tuple[KeyMaterial, TaprootIdentity]:
        """Generate fresh key material, persist it and derive its address."""
        key_packages, public_key_package = generate_with_dealer(
            max_signers=self.config.max_signers,
            min_signers=self.config.min_signers,
            rng=self.session_rng(),
        )
        material = KeyMaterial(key_packages=key_packages, public_key_package=public_key_package)
        identity = derive_identity(public_key_package.verifying_key, self.config.network)

        self.store.save(material)
        logger.info(f"Generated group key with address {identity.address}")
        return material, identity

    def load_keys(self) -> Tuple[KeyMaterial, TaprootIdentity]:
        """Read the key material store and derive its address."""
        material = self.store.load()
        identity = derive_identity(
            material.public_key_package.verifying_key, self.config.network
        )
        return material, identity

    def split_private_key(self) -> KeyMaterial:
        """Split the configured PRIVATE_KEY into key packages.

        The raw secret is wiped as soon as the shares are dealt.

        Raises:
            InvalidSecretError: If PRIVATE_KEY is missing or invalid
        """
        with load_secret_key(self.config.private_key) as secret_key:
            key_packages, public_key_package = split(
                secret_key.scalar,
                max_signers=self.config.max_signers,
                min_signers=self.config.min_signers,
                rng=self.session_rng(),
            )
        return KeyMaterial(key_packages=key_packages, public_key_package=public_key_package)

    def generate_address(self) -> TaprootIdentity:
        """Split PRIVATE_KEY and derive the Taproot identity of the group key."""
        material = self.split_private_key()
        identity = derive_identity(
            material.public_key_package.verifying_key, self.config.network
        )
        logger.info(f"Derived address {identity.address} from supplied key")
        return identity

    def generate_signature(
        self, message: Optional[bytes] = None, key_path: bool = False
    ) -> SignatureResult:
        """Split PRIVATE_KEY and threshold-sign ``message``.

        Args:
            message: Message to sign (default: the built-in test message)
            key_path: Sign for the Taproot output key so the signature is
                valid for a key-path spend

        Returns:
            SignatureResult with the aggregate signature and its verdict
        """
        if message is None:
            message = TEST_MESSAGE

        material = self.split_private_key()
        identity = derive_identity(
            material.public_key_package.verifying_key, self.config.network
        )
        signature, verdict = threshold_sign(
            message, material, rng=self.session_rng(), key_path=key_path
        )
        return SignatureResult(
            signature=signature, verdict=verdict, identity=identity, key_path=key_path
        )

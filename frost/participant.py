"""FROST participant implementation."""

import logging
from typing import Optional

from core.errors import SigningError
from core.types import (
    KeyPackage,
    ParticipantId,
    SignatureShare,
    SigningCommitments,
    SigningNonces,
    SigningPackage,
)
from frost.curve import G, default_rng
from frost.signing import KeyContext, compute_signature_share, generate_nonce

logger = logging.getLogger(__name__)


class FrostParticipant:
    """Represents a participant in the FROST protocol.

    Each participant holds its KeyPackage and, between Round 1 and Round 2
    of a session, the secret nonces behind the commitments it published.
    """

    def __init__(self, key_package: KeyPackage):
        """Initialize FROST participant.

        Args:
            key_package: This participant's long-lived key material
        """
        self.key_package = key_package
        self._nonces: Optional[SigningNonces] = None
        logger.debug(f"Initialized FROST participant {self.identifier}")

    @property
    def identifier(self) -> ParticipantId:
        return self.key_package.identifier

    def commit(self, rng=None) -> SigningCommitments:
        """Round 1: draw fresh nonces and publish their commitments.

        Any nonces left over from an abandoned session are wiped first.

        Args:
            rng: Randomness source with ``getrandbits`` (default: OS randomness)

        Returns:
            The (D, E) commitments to send to the coordinator
        """
        if rng is None:
            rng = default_rng()
        self.discard_nonces()

        # (d_i, e_i) ⭠ $ ℤ*_q x ℤ*_q
        hiding = generate_nonce(self.key_package.signing_share, rng)
        binding = generate_nonce(self.key_package.signing_share, rng)
        # (D_i, E_i) = (g^d_i, g^e_i)
        commitments = SigningCommitments(
            identifier=self.identifier,
            hiding=hiding * G,
            binding=binding * G,
        )
        self._nonces = SigningNonces(hiding, binding, commitments)
        logger.debug(f"Participant {self.identifier} committed to fresh nonces")
        return commitments

    def sign(
        self,
        signing_package: SigningPackage,
        key_context: Optional[KeyContext] = None,
    ) -> SignatureShare:
        """Round 2: produce this participant's signature share.

        The nonces are erased whether or not signing succeeds, so a
        SigningPackage can never be answered twice with the same nonces.

        Args:
            signing_package: Message and commitments chosen by the coordinator
            key_context: Key being signed for (default: untweaked group key)

        Raises:
            SigningError: If there are no live nonces or the package does
                not carry this participant's commitments
        """
        nonces = self._nonces
        if nonces is None or nonces.is_zeroized:
            raise SigningError(
                f"Participant {self.identifier} has no unused nonces - run Round 1 first"
            )
        try:
            own = signing_package.commitments.get(self.identifier)
            if own is None:
                raise SigningError(
                    f"Signing package does not include participant {self.identifier}"
                )
            if own.hiding != nonces.commitments.hiding or own.binding != nonces.commitments.binding:
                raise SigningError(
                    f"Signing package carries altered commitments for participant {self.identifier}"
                )

            if key_context is None:
                key_context = KeyContext.untweaked(self.key_package.verifying_key)
            share = compute_signature_share(
                self.key_package, nonces, signing_package, key_context
            )
        finally:
            self.discard_nonces()

        logger.info(f"Participant {self.identifier} created signature share")
        return share

    def discard_nonces(self) -> None:
        if self._nonces is not None:
            self._nonces.zeroize()
            self._nonces = None

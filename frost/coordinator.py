"""FROST signing coordinator."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from core.errors import (
    DuplicateParticipantError,
    InsufficientSignersError,
    InvalidShareError,
)
from core.types import (
    GroupSignature,
    KeyMaterial,
    ParticipantId,
    PublicKeyPackage,
    SignatureShare,
    SigningCommitments,
    SigningPackage,
)
from frost.curve import default_rng, schnorr_verify
from frost.participant import FrostParticipant
from frost.signing import (
    KeyContext,
    aggregate_shares,
    session_values,
    verify_signature_share,
)

logger = logging.getLogger(__name__)


class FrostCoordinator:
    """Coordinates FROST threshold signature protocol.

    The coordinator picks the signing set, assembles the SigningPackage
    from Round-1 commitments, checks every Round-2 share against the
    signer's verifying share and aggregates them into one signature.
    """

    def __init__(
        self,
        public_key_package: PublicKeyPackage,
        key_context: Optional[KeyContext] = None,
    ):
        """Initialize FROST coordinator.

        Args:
            public_key_package: Group public record (borrowed for verification)
            key_context: Key to sign for (default: untweaked group verifying key)
        """
        self.public_key_package = public_key_package
        self.threshold = public_key_package.min_signers
        self.key_context = key_context or KeyContext.untweaked(
            public_key_package.verifying_key
        )
        logger.info(
            f"Initialized FROST coordinator: {self.threshold} of "
            f"{len(public_key_package.verifying_shares)}"
        )

    def select_signers(self, identifiers: Iterable[int]) -> List[ParticipantId]:
        """Pick the ``t`` smallest identifiers.

        Raises:
            DuplicateParticipantError: If an identifier is listed twice
            InsufficientSignersError: If fewer than ``t`` are available
        """
        seen = set()
        for identifier in identifiers:
            if identifier in seen:
                raise DuplicateParticipantError(identifier)
            seen.add(identifier)
        if len(seen) < self.threshold:
            raise InsufficientSignersError(required=self.threshold, available=len(seen))
        return [ParticipantId(i) for i in sorted(seen)[: self.threshold]]

    def create_signing_package(
        self, commitments: Iterable[SigningCommitments], message: bytes
    ) -> SigningPackage:
        """Assemble the Round-2 input from the collected commitments.

        Raises:
            DuplicateParticipantError: If two commitments share an identifier
            InvalidShareError: If a commitment comes from an unknown participant
            InsufficientSignersError: If fewer than ``t`` commitments are given
        """
        ordered: Dict[ParticipantId, SigningCommitments] = {}
        for item in sorted(commitments, key=lambda c: c.identifier):
            if item.identifier in ordered:
                raise DuplicateParticipantError(item.identifier)
            if item.identifier not in self.public_key_package.verifying_shares:
                raise InvalidShareError(item.identifier, "unknown participant")
            ordered[item.identifier] = item

        if len(ordered) < self.threshold:
            raise InsufficientSignersError(required=self.threshold, available=len(ordered))

        return SigningPackage(message=bytes(message), commitments=ordered)

    def aggregate(
        self,
        signing_package: SigningPackage,
        signature_shares: Mapping[ParticipantId, SignatureShare],
    ) -> GroupSignature:
        """Verify every share, then aggregate them into (R, z).

        Raises:
            InvalidShareError: Naming the first participant whose share is
                missing, unexpected or fails verification
        """
        if len(signing_package.commitments) < self.threshold:
            raise InsufficientSignersError(
                required=self.threshold, available=len(signing_package.commitments)
            )
        for identifier in signature_shares:
            if identifier not in signing_package.commitments:
                raise InvalidShareError(identifier, "not part of this signing session")

        logger.info(f"Aggregating {len(signature_shares)} signature shares")
        values = session_values(signing_package, self.key_context)

        for identifier in signing_package.identifiers:
            share = signature_shares.get(identifier)
            if share is None:
                raise InvalidShareError(identifier, "missing signature share")
            if share.identifier != identifier:
                raise InvalidShareError(identifier, "share is labelled with another identifier")
            verifying_share = self.public_key_package.verifying_shares[identifier]
            if not verify_signature_share(
                share, verifying_share, signing_package, self.key_context, values
            ):
                logger.warning(f"Signature share from participant {identifier} failed verification")
                raise InvalidShareError(identifier, "signature share failed verification")

        return aggregate_shares(
            (signature_shares[i] for i in signing_package.identifiers),
            self.key_context,
            values,
        )

    def verify(self, message: bytes, signature: GroupSignature) -> bool:
        """BIP-340 verification against the key this coordinator signs for."""
        return schnorr_verify(message, self.key_context.xonly, signature.serialize())

    def coordinate_signing(
        self,
        message: bytes,
        participants: Iterable[FrostParticipant],
        rng=None,
    ) -> Tuple[GroupSignature, bool]:
        """Coordinate a full signing session.

        Args:
            message: Message to sign (may be empty)
            participants: Available participants; the ``t`` smallest
                identifiers are used
            rng: Randomness source for this session only

        Returns:
            The aggregate signature and its verification verdict
        """
        participants = list(participants)
        by_id = {}
        for participant in participants:
            if participant.identifier in by_id:
                raise DuplicateParticipantError(participant.identifier)
            by_id[participant.identifier] = participant

        selected = [by_id[i] for i in self.select_signers(by_id)]
        if rng is None:
            rng = default_rng()
        logger.info(
            f"Coordinating signing with participants {[p.identifier for p in selected]}"
        )

        try:
            # Round 1: each participant commits to fresh nonces
            commitments = [participant.commit(rng) for participant in selected]
            signing_package = self.create_signing_package(commitments, message)

            # Round 2: each participant answers the signing package
            signature_shares = {
                participant.identifier: participant.sign(signing_package, self.key_context)
                for participant in selected
            }
        finally:
            for participant in selected:
                participant.discard_nonces()

        signature = self.aggregate(signing_package, signature_shares)
        verdict = self.verify(signing_package.message, signature)
        if verdict:
            logger.info("Group signature verified")
        else:
            logger.error("Group signature failed verification although every share verified")
        return signature, verdict


def threshold_sign(
    message: bytes,
    key_material: KeyMaterial,
    rng=None,
    key_path: bool = False,
) -> Tuple[GroupSignature, bool]:
    """Run one signing session over the store's KeyPackages.

    Args:
        message: Message to sign
        key_material: KeyPackages plus the PublicKeyPackage
        rng: Randomness source for this session (default: OS randomness)
        key_path: Sign for the Taproot output key instead of the untweaked
            group key

    Raises:
        InsufficientSignersError: If fewer than ``t`` KeyPackages are available
    """
    public_key_package = key_material.public_key_package
    if key_path:
        key_context = KeyContext.taproot(public_key_package.verifying_key)
    else:
        key_context = KeyContext.untweaked(public_key_package.verifying_key)

    coordinator = FrostCoordinator(public_key_package, key_context)
    participants = [
        FrostParticipant(key_package) for key_package in key_material.key_packages.values()
    ]
    return coordinator.coordinate_signing(message, participants, rng)

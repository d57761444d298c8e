"""Taproot (BIP-341) identity for the FROST group key."""

import logging
from dataclasses import dataclass
from enum import Enum

from bip_utils import Bech32ChecksumError, P2TRAddrDecoder, P2TRAddrEncoder

from core.errors import InvalidPointError
from frost.curve import CurvePoint, is_identity, point_to_bytes, xonly_bytes
from frost.signing import KeyContext

logger = logging.getLogger(__name__)


class BitcoinNetwork(Enum):
    """Bitcoin network types."""
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"

    @property
    def hrp(self) -> str:
        """Bech32m human-readable part for SegWit addresses."""
        return {
            BitcoinNetwork.MAINNET: "bc",
            BitcoinNetwork.TESTNET: "tb",
            BitcoinNetwork.SIGNET: "tb",
            BitcoinNetwork.REGTEST: "bcrt",
        }[self]


@dataclass(frozen=True)
class TaprootIdentity:
    """Key-path-only Taproot rendering of a group verifying key."""
    internal_key: str  # x-only, hex
    output_key: str  # x-only tweaked key, hex (the witness program)
    address: str
    network: BitcoinNetwork


def p2tr_address(
    verifying_key: CurvePoint, network: BitcoinNetwork = BitcoinNetwork.MAINNET
) -> str:
    """Render the untweaked internal key as a P2TR address with no script tree.

    Raises:
        InvalidPointError: If the key is the identity or the encoder rejects it
    """
    if is_identity(verifying_key):
        raise InvalidPointError("Cannot derive a Taproot address from the point at infinity")
    try:
        return P2TRAddrEncoder.EncodeKey(point_to_bytes(verifying_key), hrp=network.hrp)
    except (TypeError, ValueError) as e:
        raise InvalidPointError(f"Taproot encoder rejected the group key: {e}") from e


def decode_p2tr_address(
    address: str, network: BitcoinNetwork = BitcoinNetwork.MAINNET
) -> bytes:
    """Return the 32-byte witness program (output key) of a P2TR address."""
    try:
        return P2TRAddrDecoder.DecodeAddr(address, hrp=network.hrp)
    except (Bech32ChecksumError, TypeError, ValueError) as e:
        raise InvalidPointError(f"Not a valid P2TR address for {network.value}: {e}") from e


def derive_identity(
    verifying_key: CurvePoint, network: BitcoinNetwork = BitcoinNetwork.MAINNET
) -> TaprootIdentity:
    """Derive internal key, output key and address for the group key."""
    address = p2tr_address(verifying_key, network)
    output_key = KeyContext.taproot(verifying_key).xonly
    identity = TaprootIdentity(
        internal_key=xonly_bytes(verifying_key).hex(),
        output_key=output_key.hex(),
        address=address,
        network=network,
    )
    logger.debug(f"Derived Taproot identity {identity}")
    return identity

"""Key material store: identifier -> KeyPackage plus the PublicKeyPackage."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Union

from pydantic import BaseModel, ValidationError, field_validator

from core.errors import CorruptStoreError, InvalidPointError, StoreNotFoundError
from core.types import KeyMaterial, KeyPackage, ParticipantId, PublicKeyPackage
from frost.curve import (
    COMPRESSED_POINT_SIZE,
    SCALAR_SIZE,
    point_from_bytes,
    point_to_bytes,
    scalar_from_bytes,
    scalar_to_bytes,
)
from frost.signing import CONTEXT_STRING

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = "my_map.json"
STORE_VERSION = 0


def _check_hex(value: str, size: int, what: str) -> str:
    if len(value) != 2 * size:
        raise ValueError(f"{what} must be {size} bytes of hex")
    try:
        bytes.fromhex(value)
    except ValueError as e:
        raise ValueError(f"{what} is not valid hex") from e
    return value.lower()


class StoreHeader(BaseModel):
    """Format header."""
    version: int
    ciphersuite: str


class KeyPackageModel(BaseModel):
    """Serialized KeyPackage."""
    identifier: str
    signing_share: str
    verifying_share: str
    verifying_key: str
    min_signers: int

    @field_validator("identifier", "signing_share")
    @classmethod
    def _scalar_hex(cls, value: str) -> str:
        return _check_hex(value, SCALAR_SIZE, "scalar")

    @field_validator("verifying_share", "verifying_key")
    @classmethod
    def _point_hex(cls, value: str) -> str:
        return _check_hex(value, COMPRESSED_POINT_SIZE, "point")


class PublicKeyPackageModel(BaseModel):
    """Serialized PublicKeyPackage."""
    verifying_shares: Dict[str, str]
    verifying_key: str
    min_signers: int

    @field_validator("verifying_shares")
    @classmethod
    def _shares_hex(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {
            _check_hex(identifier, SCALAR_SIZE, "identifier"): _check_hex(
                point, COMPRESSED_POINT_SIZE, "point"
            )
            for identifier, point in value.items()
        }

    @field_validator("verifying_key")
    @classmethod
    def _point_hex(cls, value: str) -> str:
        return _check_hex(value, COMPRESSED_POINT_SIZE, "point")


class KeyStoreModel(BaseModel):
    """Whole-file schema."""
    header: StoreHeader
    key_packages: Dict[str, KeyPackageModel]
    public_key_package: PublicKeyPackageModel


def _identifier_hex(identifier: int) -> str:
    return scalar_to_bytes(identifier).hex()


def _parse_identifier(value: str) -> ParticipantId:
    identifier = scalar_from_bytes(bytes.fromhex(value))
    if identifier == 0:
        raise ValueError("identifier must be non-zero")
    return ParticipantId(identifier)


def to_model(material: KeyMaterial) -> KeyStoreModel:
    public_key_package = material.public_key_package
    return KeyStoreModel(
        header=StoreHeader(version=STORE_VERSION, ciphersuite=CONTEXT_STRING.decode()),
        key_packages={
            _identifier_hex(identifier): KeyPackageModel(
                identifier=_identifier_hex(key_package.identifier),
                signing_share=scalar_to_bytes(key_package.signing_share).hex(),
                verifying_share=point_to_bytes(key_package.verifying_share).hex(),
                verifying_key=point_to_bytes(key_package.verifying_key).hex(),
                min_signers=key_package.min_signers,
            )
            for identifier, key_package in material.key_packages.items()
        },
        public_key_package=PublicKeyPackageModel(
            verifying_shares={
                _identifier_hex(identifier): point_to_bytes(point).hex()
                for identifier, point in public_key_package.verifying_shares.items()
            },
            verifying_key=point_to_bytes(public_key_package.verifying_key).hex(),
            min_signers=public_key_package.min_signers,
        ),
    )


def from_model(model: KeyStoreModel) -> KeyMaterial:
    """Convert a validated model into KeyMaterial, checking cross-field structure.

    Raises:
        ValueError: If the contents are structurally inconsistent
        InvalidPointError: If a point does not decode
    """
    if model.header.version != STORE_VERSION:
        raise ValueError(f"unsupported store version {model.header.version}")
    if model.header.ciphersuite != CONTEXT_STRING.decode():
        raise ValueError(f"unsupported ciphersuite {model.header.ciphersuite}")

    pkp_model = model.public_key_package
    verifying_key = point_from_bytes(bytes.fromhex(pkp_model.verifying_key))
    verifying_shares = {}
    for identifier_hex in sorted(pkp_model.verifying_shares):
        identifier = _parse_identifier(identifier_hex)
        verifying_shares[identifier] = point_from_bytes(
            bytes.fromhex(pkp_model.verifying_shares[identifier_hex])
        )
    if not 1 <= pkp_model.min_signers <= len(verifying_shares):
        raise ValueError("min_signers is inconsistent with the number of verifying shares")
    public_key_package = PublicKeyPackage(
        verifying_shares=verifying_shares,
        verifying_key=verifying_key,
        min_signers=pkp_model.min_signers,
    )

    key_packages = {}
    for key_hex in sorted(model.key_packages):
        kp_model = model.key_packages[key_hex]
        if kp_model.identifier != key_hex:
            raise ValueError(f"map key {key_hex} does not match its identifier")
        identifier = _parse_identifier(kp_model.identifier)
        signing_share = scalar_from_bytes(bytes.fromhex(kp_model.signing_share))
        if signing_share == 0:
            raise ValueError(f"signing share of {identifier} is zero")
        key_package = KeyPackage(
            identifier=identifier,
            signing_share=signing_share,
            verifying_share=point_from_bytes(bytes.fromhex(kp_model.verifying_share)),
            verifying_key=point_from_bytes(bytes.fromhex(kp_model.verifying_key)),
            min_signers=kp_model.min_signers,
        )
        if key_package.verifying_key != verifying_key:
            raise ValueError(f"key package {identifier} has a different verifying key")
        if key_package.min_signers != public_key_package.min_signers:
            raise ValueError(f"key package {identifier} has a different threshold")
        if (
            identifier not in verifying_shares
            or verifying_shares[identifier] != key_package.verifying_share
        ):
            raise ValueError(f"key package {identifier} is not in the public key package")
        key_packages[identifier] = key_package

    return KeyMaterial(key_packages=key_packages, public_key_package=public_key_package)


class KeyStore:
    """JSON file holding the key material of one FROST group.

    The file is single-writer and rewritten in full on every save. Writes
    go to a temporary file that is renamed over the target on success.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_STORE_PATH):
        """Initialize the store.

        Args:
            path: Path to the JSON store file
        """
        self.path = Path(path)
        logger.debug(f"Using key store at {self.path}")

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, material: KeyMaterial) -> None:
        """Atomically write the key material.

        Raises:
            CorruptStoreError: If the file cannot be written
        """
        payload = to_model(material).model_dump_json(indent=2)
        directory = self.path.parent

        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise CorruptStoreError(f"Failed to write key store {self.path}: {e}") from e

        logger.info(
            f"Saved {len(material.key_packages)} key packages to {self.path}"
        )

    def load(self) -> KeyMaterial:
        """Read and structurally validate the key material.

        Shares are not re-verified cryptographically.

        Raises:
            StoreNotFoundError: If the file does not exist
            CorruptStoreError: If the file cannot be read or is malformed
        """
        try:
            contents = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StoreNotFoundError(f"Key store not found: {self.path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptStoreError(f"Failed to read key store {self.path}: {e}") from e

        try:
            model = KeyStoreModel.model_validate_json(contents)
        except ValidationError as e:
            raise CorruptStoreError(
                f"Key store {self.path} is malformed ({e.error_count()} errors)"
            ) from e

        try:
            material = from_model(model)
        except (ValueError, InvalidPointError) as e:
            raise CorruptStoreError(f"Key store {self.path} is inconsistent: {e}") from e

        logger.info(f"Loaded {len(material.key_packages)} key packages from {self.path}")
        return material

"""Configuration management for the FROST Taproot signer."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import toml

from core.errors import ConfigurationError
from keystore import DEFAULT_STORE_PATH
from taproot import BitcoinNetwork

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_int(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _parse_network(value: str) -> BitcoinNetwork:
    try:
        return BitcoinNetwork(str(value).lower())
    except ValueError as e:
        choices = ", ".join(n.value for n in BitcoinNetwork)
        raise ConfigurationError(
            f"Unknown Bitcoin network {value!r} (expected one of: {choices})"
        ) from e


@dataclass
class FrostConfig:
    """Signer configuration."""

    # Threshold parameters
    min_signers: int = 3
    max_signers: int = 5

    # Taproot settings
    network: BitcoinNetwork = BitcoinNetwork.MAINNET

    # Key material store
    store_path: str = DEFAULT_STORE_PATH

    # Externally supplied secret for split mode (hex)
    private_key: Optional[str] = field(default=None, repr=False)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "FrostConfig":
        """Load configuration from environment variables.

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        return cls(
            min_signers=_parse_int("FROST_MIN_SIGNERS", os.getenv("FROST_MIN_SIGNERS", "3")),
            max_signers=_parse_int("FROST_MAX_SIGNERS", os.getenv("FROST_MAX_SIGNERS", "5")),
            network=_parse_network(os.getenv("BITCOIN_NETWORK", "mainnet")),
            store_path=os.getenv("FROST_STORE_PATH", DEFAULT_STORE_PATH),
            private_key=os.getenv("PRIVATE_KEY") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("FROST_LOG_FILE") or None,
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "FrostConfig":
        """Load configuration from TOML file.

        Keys match the field names. ``private_key`` falls back to the
        ``PRIVATE_KEY`` environment variable so the secret can stay out of
        the file.

        Args:
            config_path: Path to configuration file

        Returns:
            FrostConfig instance

        Raises:
            ConfigurationError: If config is invalid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading configuration from {config_path}")

        try:
            with open(config_path, "r") as f:
                config_data = toml.load(f)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigurationError(f"Failed to parse configuration file: {e}") from e

        unknown = set(config_data) - {
            "min_signers",
            "max_signers",
            "network",
            "store_path",
            "private_key",
            "log_level",
            "log_file",
        }
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )

        return cls(
            min_signers=_parse_int("min_signers", config_data.get("min_signers", 3)),
            max_signers=_parse_int("max_signers", config_data.get("max_signers", 5)),
            network=_parse_network(config_data.get("network", "mainnet")),
            store_path=str(config_data.get("store_path", DEFAULT_STORE_PATH)),
            private_key=config_data.get("private_key") or os.getenv("PRIVATE_KEY") or None,
            log_level=str(config_data.get("log_level", "INFO")),
            log_file=config_data.get("log_file"),
        )

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.min_signers < 1:
            raise ConfigurationError("min_signers must be at least 1")

        if self.min_signers > self.max_signers:
            raise ConfigurationError(
                f"min_signers ({self.min_signers}) cannot exceed "
                f"max_signers ({self.max_signers})"
            )

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level {self.log_level!r}")

        if not self.store_path:
            raise ConfigurationError("store_path is required")

        logger.debug("Configuration validated successfully")

"""Main entry point for the FROST Taproot signer."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from app import FrostTaprootApp
from config import FrostConfig
from core.errors import FrostError
from core.types import KeyMaterial
from taproot import TaprootIdentity

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file receiving a copy of the log
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="frost-taproot",
        description="FROST threshold Schnorr signing for Bitcoin Taproot",
    )
    parser.add_argument("name", nargs="?", help="Optional name to operate on")
    parser.add_argument(
        "-d",
        "--debug",
        action="count",
        default=0,
        help="Turn debugging information on",
    )
    parser.add_argument(
        "-c", "--config", type=Path, help="TOML configuration file (default: environment)"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.add_parser("generate", help="Generate key packages and save them to the store")
    subparsers.add_parser("load", help="Load and validate the key packages in the store")
    subparsers.add_parser("test", help="Split PRIVATE_KEY and print its Taproot address")
    verify_parser = subparsers.add_parser(
        "verify", help="Split PRIVATE_KEY, threshold-sign the test message and verify"
    )
    verify_parser.add_argument(
        "--key-path",
        action="store_true",
        help="Sign for the tweaked Taproot output key instead of the internal key",
    )
    return parser


def load_config(config_path: Optional[Path]) -> FrostConfig:
    if config_path is not None:
        config = FrostConfig.from_file(config_path)
    else:
        config = FrostConfig.from_env()
    config.validate()
    return config


def print_identity(material: Optional[KeyMaterial], identity: TaprootIdentity) -> None:
    if material is not None:
        public_key_package = material.public_key_package
        print(
            f"Key packages: {len(material.key_packages)} "
            f"(threshold {public_key_package.min_signers} of "
            f"{len(public_key_package.verifying_shares)})"
        )
    print(f"Group verifying key: {identity.internal_key}")
    print(f"Taproot output key: {identity.output_key}")
    print(f"Address ({identity.network.value}): {identity.address}")


def run_command(app: FrostTaprootApp, args: argparse.Namespace) -> int:
    """Run one subcommand.

    Returns:
        Exit code
    """
    if args.command == "generate":
        material, identity = app.generate_keys()
        print_identity(material, identity)
        return 0

    if args.command == "load":
        material, identity = app.load_keys()
        print_identity(material, identity)
        return 0

    if args.command == "test":
        identity = app.generate_address()
        print_identity(None, identity)
        return 0

    if args.command == "verify":
        result = app.generate_signature(key_path=args.key_path)
        signed_key = result.identity.output_key if result.key_path else result.identity.internal_key
        print(f"Signing key: {signed_key}")
        print(f"Signature: {result.signature.hex()}")
        print(f"Verified: {'true' if result.verdict else 'false'}")
        return 0 if result.verdict else 1

    raise ValueError(f"Unknown command {args.command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (default: ``sys.argv[1:]``)

    Returns:
        Exit code
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse has already printed usage or help; usage errors exit 1 like the rest
        return 0 if e.code in (0, None) else 1

    try:
        config = load_config(args.config)
    except FrostError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    setup_logging("DEBUG" if args.debug else config.log_level, config.log_file)
    logger.debug(f"Debug level {args.debug}, configuration {config}")

    if args.name:
        print(f"Value for name: {args.name}")

    if args.command is None:
        parser.print_help()
        return 0

    try:
        app = FrostTaprootApp(config)
        return run_command(app, args)
    except FrostError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line interface for the transaction executor.

Provides commands for hashing and submitting prepared transactions.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from pycardano import Address, Transaction

from txexec import __version__
from txexec.config import ExecutorConfig, NetworkType, SigningImpl, set_config
from txexec.core.controller import (
    BehaviorOption,
    ExecutionBehavior,
    TransactionController,
    confirmation_wait,
    dry_run,
    signing_impl,
)
from txexec.errors import TransactionEncodingError
from txexec.node.blockfrost import BlockfrostAdapter
from txexec.payload import transaction_hash
from txexec.signing.interface import Account, KeyStoreError
from txexec.signing.keystore import LocalKeyStore

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_PARAMS = 2


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="txexec",
        description="Sign, submit and confirm Cardano transactions",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Hash command
    hash_parser = subparsers.add_parser("hash", help="Print a transaction's hash")
    hash_parser.add_argument(
        "--tx-file",
        required=True,
        help="File holding the transaction CBOR hex or a cardano-cli text envelope",
    )

    # Submit command
    submit_parser = subparsers.add_parser("submit", help="Sign and submit a transaction")
    submit_parser.add_argument(
        "--tx-file",
        required=True,
        help="File holding the unsigned transaction",
    )
    submit_parser.add_argument(
        "--network",
        choices=[n.value for n in NetworkType],
        help="Cardano network (default: TXEXEC_NETWORK or preprod)",
    )
    submit_parser.add_argument(
        "--blockfrost-project-id",
        help="Blockfrost project ID",
    )
    submit_parser.add_argument(
        "--signing-key",
        help="Path to signing key file (software signing)",
    )
    submit_parser.add_argument(
        "--hardware",
        action="store_true",
        help="Sign on the hardware signer instead of a key file",
    )
    submit_parser.add_argument(
        "--sender-address",
        help="Expected sender address (required with --hardware)",
    )
    submit_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Sign only, do not submit",
    )
    submit_parser.add_argument(
        "--wait",
        type=int,
        help="Seconds to wait for confirmation (default: TXEXEC_CONFIRMATION_WAIT_SECONDS or 0)",
    )
    submit_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    submit_parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    return parser


def load_transaction(path: str) -> Transaction:
    """
    Read a transaction from a file.

    Accepts bare CBOR hex or a JSON text envelope with a "cborHex" field.
    """
    text = Path(path).read_text().strip()
    if text.startswith("{"):
        text = json.loads(text)["cborHex"]
    return Transaction.from_cbor(text)


def config_from_args(args: argparse.Namespace) -> ExecutorConfig:
    """
    Build the executor configuration for a submit run.

    Only flags given on the command line override the environment; the
    rest come from TXEXEC_* variables or the .env file.
    """
    overrides = {
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    if args.network:
        overrides["network"] = NetworkType(args.network)
    if args.blockfrost_project_id:
        overrides["blockfrost_project_id"] = args.blockfrost_project_id
    if args.signing_key:
        overrides["signing_key_path"] = args.signing_key
    if args.hardware:
        overrides["signing_impl"] = SigningImpl.HARDWARE
    if args.dry_run:
        overrides["dry_run"] = True
    if args.wait is not None:
        overrides["confirmation_wait_seconds"] = args.wait
    return ExecutorConfig(**overrides)


def build_options(config: ExecutorConfig) -> List[BehaviorOption]:
    """Translate the configured execution defaults into behavior options."""
    behavior = ExecutionBehavior.from_config(config)
    return [
        confirmation_wait(behavior.confirmation_wait_seconds),
        dry_run(behavior.dry_run),
        signing_impl(behavior.signing_impl),
    ]


def hash_command(args: argparse.Namespace) -> int:
    """Print the hash of a transaction file."""
    try:
        tx = load_transaction(args.tx_file)
        print(transaction_hash(tx))
    except (OSError, ValueError, KeyError, TransactionEncodingError) as e:
        print(f"Could not hash transaction: {e}", file=sys.stderr)
        return EXIT_FAILED
    return EXIT_OK


async def submit_transaction(args: argparse.Namespace) -> int:
    """Run one transaction through the controller."""
    keystore: Optional[LocalKeyStore] = None
    account: Optional[Account] = None

    try:
        config = config_from_args(args)
        set_config(config)

        tx = load_transaction(args.tx_file)

        if args.sender_address:
            account = Account(address=Address.from_primitive(args.sender_address))
        if config.signing_impl == SigningImpl.SOFTWARE:
            keystore = LocalKeyStore(config)
            account = keystore.load_from_config()

        node = BlockfrostAdapter(config)
        controller = TransactionController(
            node,
            keystore,
            account,
            tx,
            *build_options(config),
            config=config,
        )
    except (OSError, ValueError, KeyError, KeyStoreError) as e:
        # BadTransactionParamError and pydantic's ValidationError are ValueErrors
        print(f"Bad parameters: {e}", file=sys.stderr)
        return EXIT_BAD_PARAMS

    try:
        error = await controller.execute_transaction()
    finally:
        await node.disconnect()

    print(f"Transaction: {controller.transaction_hash()}")

    if error is not None:
        print(f"Failed: {error}")
        return EXIT_FAILED

    if config.dry_run:
        print("Dry run: signed, not submitted")
        print(f"Signed CBOR: {controller.transaction.to_cbor_hex()}")
        return EXIT_OK

    print("Submitted")
    receipt = controller.receipt
    if receipt is not None and receipt.tx_hash:
        print(f"Confirmed in block {receipt.block_height} (fee {receipt.resources.fee} lovelace)")
    if controller.result_error is not None:
        print(f"Warning: transaction failed on chain: {controller.result_error}")

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_BAD_PARAMS)

    # Setup logging
    log_level = getattr(args, "log_level", "INFO")
    log_json = getattr(args, "log_json", False)
    setup_logging(log_level, log_json)

    # Run appropriate command
    if args.command == "hash":
        sys.exit(hash_command(args))
    elif args.command == "submit":
        sys.exit(asyncio.run(submit_transaction(args)))


if __name__ == "__main__":
    main()

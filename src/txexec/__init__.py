"""
Cardano Transaction Executor

Signs a prepared transaction with a software key store or a hardware signer,
submits it to the network and optionally waits for its receipt.
"""

__version__ = "0.1.0"

from txexec.config import SigningImpl
from txexec.core.controller import (
    ConfirmationState,
    ExecutionBehavior,
    TransactionController,
    confirmation_wait,
    dry_run,
    hardware_signing,
    signing_impl,
)
from txexec.errors import (
    BadTransactionParamError,
    BroadcastRejectedError,
    ConfirmationTimeoutError,
    ExecutionError,
    TransactionEncodingError,
    TransactionResultError,
)

__all__ = [
    "BadTransactionParamError",
    "BroadcastRejectedError",
    "ConfirmationState",
    "ConfirmationTimeoutError",
    "ExecutionBehavior",
    "ExecutionError",
    "SigningImpl",
    "TransactionController",
    "TransactionEncodingError",
    "TransactionResultError",
    "confirmation_wait",
    "dry_run",
    "hardware_signing",
    "signing_impl",
]

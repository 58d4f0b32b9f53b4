"""
Core module.

Contains the transaction controller and its behavior options.
"""

from txexec.core.controller import (
    BehaviorOption,
    ConfirmationState,
    ExecutionBehavior,
    ExecutionResult,
    TransactionController,
    confirmation_wait,
    dry_run,
    hardware_signing,
    signing_impl,
)

__all__ = [
    "BehaviorOption",
    "ConfirmationState",
    "ExecutionBehavior",
    "ExecutionResult",
    "TransactionController",
    "confirmation_wait",
    "dry_run",
    "hardware_signing",
    "signing_impl",
]

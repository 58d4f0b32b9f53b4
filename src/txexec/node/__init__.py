"""
Node Integration Layer.

Provides abstracted transaction submission and receipt lookup.
"""

from txexec.node.interface import (
    BroadcastResult,
    NodeConnectionError,
    NodeInterface,
    ReceiptNotFoundError,
    ResourceUsage,
    TransactionReceipt,
    TransactionSubmitError,
)
from txexec.node.blockfrost import BlockfrostAdapter

__all__ = [
    "BlockfrostAdapter",
    "BroadcastResult",
    "NodeConnectionError",
    "NodeInterface",
    "ReceiptNotFoundError",
    "ResourceUsage",
    "TransactionReceipt",
    "TransactionSubmitError",
]

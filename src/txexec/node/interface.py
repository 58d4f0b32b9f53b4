"""
Abstract interface for Cardano network access.

Defines the contract the transaction controller needs from a network client:
broadcasting a signed transaction and fetching its receipt afterwards.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from pycardano import Transaction


@dataclass(frozen=True)
class BroadcastResult:
    """
    Network acknowledgment of a submitted transaction.

    A zero code means the transaction was accepted into the mempool, not that
    it was executed.

    Attributes:
        code: Zero on acceptance, otherwise the rejection code
        message: Raw rejection message returned by the network
        tx_hash: Transaction hash echoed back by the network, if any
    """
    code: int = 0
    message: bytes = b""
    tx_hash: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.code == 0

    @property
    def message_text(self) -> str:
        """Rejection message decoded for humans."""
        return self.message.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ResourceUsage:
    """Resources consumed by an executed transaction."""
    fee: int = 0                       # Lovelace paid
    size: int = 0                      # Serialized size in bytes


@dataclass(frozen=True)
class TransactionReceipt:
    """
    Execution outcome of a transaction included in a block.

    The default value is the empty receipt: zero status and zero resource
    usage. It stands in for a real receipt when confirmation is skipped.
    """
    tx_hash: str = ""
    block_hash: str = ""
    block_height: int = 0
    slot: int = 0
    result: int = 0                    # 0 = success, anything else = failed
    result_message: str = ""
    resources: ResourceUsage = field(default_factory=ResourceUsage)

    @property
    def succeeded(self) -> bool:
        return self.result == 0


# Status code recorded when phase-2 script validation failed on chain
RECEIPT_RESULT_FAILED = 1


class NodeInterface(ABC):
    """
    Abstract interface for Cardano network access.

    Implementations must keep transport failures (raised) distinguishable from
    application-level rejections (a non-zero BroadcastResult.code).
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the node/API.

        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the node/API."""
        pass

    @abstractmethod
    async def broadcast(self, tx: Transaction) -> BroadcastResult:
        """
        Submit a signed transaction to the network.

        Args:
            tx: Signed transaction to submit

        Returns:
            The network's acknowledgment

        Raises:
            NodeConnectionError: If the network could not be reached
        """
        pass

    @abstractmethod
    async def get_receipt_by_hash(self, tx_hash: str) -> TransactionReceipt:
        """
        Get the execution receipt of a transaction.

        Args:
            tx_hash: Hex-encoded transaction hash

        Returns:
            Receipt of the transaction

        Raises:
            ReceiptNotFoundError: If the transaction is not on chain yet
            NodeConnectionError: If the lookup failed
        """
        pass

    async def __aenter__(self) -> "NodeInterface":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()


class NodeConnectionError(Exception):
    """Raised when connection to node fails."""
    pass


class TransactionSubmitError(NodeConnectionError):
    """Raised when transaction submission fails before reaching the mempool."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class ReceiptNotFoundError(Exception):
    """Raised when no receipt exists (yet) for a transaction hash."""

    def __init__(self, tx_hash: str):
        super().__init__(f"No receipt for transaction {tx_hash}")
        self.tx_hash = tx_hash

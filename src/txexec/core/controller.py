"""
Transaction execution controller.

Drives a single transaction through sign -> broadcast -> confirm. Each stage
takes the accumulated ExecutionResult and returns a new one; once a fatal
error is recorded every later stage hands the result back untouched.
"""

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

import structlog

from pycardano import Transaction

from txexec import payload
from txexec.config import (
    MAX_CONFIRMATION_WAIT_SECONDS,
    ExecutorConfig,
    SigningImpl,
)
from txexec.errors import (
    BadTransactionParamError,
    BroadcastRejectedError,
    ConfirmationTimeoutError,
    TransactionEncodingError,
    TransactionResultError,
)
from txexec.node.interface import (
    BroadcastResult,
    NodeConnectionError,
    NodeInterface,
    ReceiptNotFoundError,
    TransactionReceipt,
)
from txexec.signing.interface import Account, HardwareSigner, KeyStore, SigningError
from txexec.signing.strategy import SigningStrategy, select_strategy

logger = structlog.get_logger(__name__)

POLL_INTERVAL_SECONDS = 1


@dataclass(frozen=True)
class ExecutionBehavior:
    """
    How a transaction is executed. Fixed once the controller is built.

    Attributes:
        dry_run: Sign only; skip broadcast and confirmation
        signing_impl: Which signing strategy to use
        confirmation_wait_seconds: Seconds to poll for a receipt (0 = don't wait)
    """
    dry_run: bool = False
    signing_impl: SigningImpl = SigningImpl.SOFTWARE
    confirmation_wait_seconds: int = 0

    @classmethod
    def from_config(cls, config: ExecutorConfig) -> "ExecutionBehavior":
        return cls(
            dry_run=config.dry_run,
            signing_impl=config.signing_impl,
            confirmation_wait_seconds=config.confirmation_wait_seconds,
        )


BehaviorOption = Callable[[ExecutionBehavior], ExecutionBehavior]


def dry_run(enabled: bool = True) -> BehaviorOption:
    """Skip broadcast and confirmation."""
    def option(behavior: ExecutionBehavior) -> ExecutionBehavior:
        return replace(behavior, dry_run=enabled)
    return option


def signing_impl(impl: SigningImpl) -> BehaviorOption:
    """Select the signing strategy."""
    try:
        impl = SigningImpl(impl)
    except ValueError:
        raise BadTransactionParamError(f"unknown signing implementation: {impl!r}")

    def option(behavior: ExecutionBehavior) -> ExecutionBehavior:
        return replace(behavior, signing_impl=impl)
    return option


def hardware_signing() -> BehaviorOption:
    """Sign on the hardware device instead of the key store."""
    return signing_impl(SigningImpl.HARDWARE)


def confirmation_wait(seconds: int) -> BehaviorOption:
    """Poll for a receipt for up to `seconds` after broadcast."""
    if not isinstance(seconds, int) or not 0 <= seconds <= MAX_CONFIRMATION_WAIT_SECONDS:
        raise BadTransactionParamError(
            f"confirmation wait must be between 0 and {MAX_CONFIRMATION_WAIT_SECONDS} seconds"
        )

    def option(behavior: ExecutionBehavior) -> ExecutionBehavior:
        return replace(behavior, confirmation_wait_seconds=seconds)
    return option


class ConfirmationState(str, Enum):
    """Progress of the confirmation step."""
    IDLE = "idle"                 # Not reached yet
    POLLING = "polling"           # Querying the network for a receipt
    CONFIRMED = "confirmed"       # Receipt found
    TIMED_OUT = "timed_out"       # Wait window exhausted without a receipt
    SKIPPED = "skipped"           # Earlier failure, dry run or zero wait


@dataclass(frozen=True)
class ExecutionResult:
    """
    Everything the pipeline has produced so far.

    Each field is written at most once. execution_error blocks all later
    fields; result_error is informational and never blocks anything.
    """
    transaction: Transaction
    execution_error: Optional[Exception] = None
    result_error: Optional[TransactionResultError] = None
    broadcast_result: Optional[BroadcastResult] = None
    receipt: Optional[TransactionReceipt] = None
    confirmation_state: ConfirmationState = ConfirmationState.IDLE

    @property
    def failed(self) -> bool:
        return self.execution_error is not None

    def with_error(self, error: Exception) -> "ExecutionResult":
        """Record a fatal error unless one is already recorded."""
        if self.failed:
            return self
        return replace(self, execution_error=error)


class TransactionController:
    """
    Drives the signing, submission and confirmation of one transaction.

    Usage:
        ```python
        controller = TransactionController(
            node, keystore, account, tx,
            confirmation_wait(30),
        )
        error = await controller.execute_transaction()
        if error is None and controller.result_error is None:
            print(controller.receipt)
        ```

    A controller executes exactly once and is then inspected through its
    result accessors.
    """

    def __init__(
        self,
        node: NodeInterface,
        keystore: Optional[KeyStore],
        account: Optional[Account],
        tx: Transaction,
        *options: BehaviorOption,
        hardware_signer: Optional[HardwareSigner] = None,
        config: Optional[ExecutorConfig] = None,
    ):
        """
        Initialize the controller.

        Args:
            node: Network client used for broadcast and receipt lookup
            keystore: Key store for software signing
            account: Sending account; for hardware signing the returned
                signature must belong to it
            tx: Unsigned transaction
            options: Behavior options (dry_run(), confirmation_wait(), ...)
            hardware_signer: Device signer (defaults to the local WebSocket bridge)
            config: Executor configuration for the default hardware signer

        Raises:
            BadTransactionParamError: If a required collaborator is missing
        """
        if node is None:
            raise BadTransactionParamError("transaction has bad parameters: no network client")
        if tx is None:
            raise BadTransactionParamError("transaction has bad parameters: no transaction")

        behavior = ExecutionBehavior()
        for option in options:
            behavior = option(behavior)

        if behavior.signing_impl == SigningImpl.SOFTWARE and (keystore is None or account is None):
            raise BadTransactionParamError(
                "transaction has bad parameters: software signing needs a key store and an account"
            )
        if behavior.signing_impl == SigningImpl.HARDWARE and account is None:
            raise BadTransactionParamError(
                "transaction has bad parameters: hardware signing needs the expected sender account"
            )

        self.node = node
        self.account = account
        self.behavior = behavior
        self._strategy: SigningStrategy = select_strategy(
            behavior.signing_impl,
            keystore=keystore,
            hardware_signer=hardware_signer,
            config=config,
        )
        self._result = ExecutionResult(transaction=tx)
        self._executed = False

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def execute_transaction(self) -> Optional[Exception]:
        """
        Sign, broadcast and confirm the transaction.

        Returns:
            The first fatal error, or None on success
        """
        if self._executed:
            raise RuntimeError("Controller has already executed its transaction")
        self._executed = True

        logger.info(
            "tx_execution_started",
            signing_impl=self.behavior.signing_impl.value,
            dry_run=self.behavior.dry_run,
            confirmation_wait_seconds=self.behavior.confirmation_wait_seconds,
        )

        result = self._result
        try:
            result = await self.sign(result)
            result = await self.broadcast(result)
            result = await self.confirm(result)
        finally:
            # Keep whatever the completed stages produced
            self._result = result

        if result.failed:
            logger.error("tx_execution_failed", error=str(result.execution_error))
        else:
            logger.info(
                "tx_execution_finished",
                confirmation_state=result.confirmation_state.value,
                result_error=str(result.result_error) if result.result_error else None,
            )

        return result.execution_error

    async def sign(self, result: ExecutionResult) -> ExecutionResult:
        """Attach the sender's signature using the selected strategy."""
        if result.failed:
            return result

        try:
            signed_tx = await self._strategy.sign(result.transaction, self.account)
        except (SigningError, TransactionEncodingError) as e:
            logger.error("tx_signing_failed", signing_impl=self._strategy.impl.value, error=str(e))
            return result.with_error(e)

        logger.info("tx_signed", signing_impl=self._strategy.impl.value)
        return replace(result, transaction=signed_tx)

    async def broadcast(self, result: ExecutionResult) -> ExecutionResult:
        """Submit the signed transaction to the network."""
        if result.failed or self.behavior.dry_run:
            return result

        try:
            ack = await self.node.broadcast(result.transaction)
        except NodeConnectionError as e:
            logger.error("tx_broadcast_failed", error=str(e))
            return result.with_error(e)

        if not ack.accepted:
            logger.warning("tx_broadcast_rejected", code=ack.code, message=ack.message_text)
            return result.with_error(BroadcastRejectedError(ack.code, ack.message_text))

        logger.info("tx_broadcast", tx_hash=ack.tx_hash)
        return replace(result, broadcast_result=ack)

    async def confirm(self, result: ExecutionResult) -> ExecutionResult:
        """Wait for the transaction's receipt within the confirmation window."""
        if result.failed:
            return replace(result, confirmation_state=ConfirmationState.SKIPPED)

        wait_seconds = self.behavior.confirmation_wait_seconds
        if self.behavior.dry_run or wait_seconds == 0:
            return replace(
                result,
                receipt=TransactionReceipt(),
                confirmation_state=ConfirmationState.SKIPPED,
            )

        try:
            tx_hash = payload.transaction_hash(result.transaction)
        except TransactionEncodingError as e:
            logger.error("tx_hash_failed", error=str(e))
            return replace(
                result.with_error(TransactionEncodingError("could not get transaction hash")),
                confirmation_state=ConfirmationState.SKIPPED,
            )

        result = replace(result, confirmation_state=ConfirmationState.POLLING)
        logger.info("tx_confirmation_waiting", tx_hash=tx_hash, wait_seconds=wait_seconds)

        remaining = wait_seconds
        while True:
            try:
                receipt = await self.node.get_receipt_by_hash(tx_hash)
            except (ReceiptNotFoundError, NodeConnectionError) as e:
                logger.debug("tx_receipt_unavailable", tx_hash=tx_hash, remaining=remaining, error=str(e))
            else:
                return self._record_receipt(result, receipt)

            if remaining <= 0:
                logger.warning("tx_confirmation_timeout", tx_hash=tx_hash, wait_seconds=wait_seconds)
                return replace(
                    result.with_error(ConfirmationTimeoutError(wait_seconds)),
                    confirmation_state=ConfirmationState.TIMED_OUT,
                )

            await asyncio.sleep(POLL_INTERVAL_SECONDS)
            remaining -= 1

    def _record_receipt(
        self,
        result: ExecutionResult,
        receipt: TransactionReceipt,
    ) -> ExecutionResult:
        result_error = None
        if not receipt.succeeded:
            result_error = TransactionResultError(receipt.result, receipt.result_message)
            logger.warning(
                "tx_failed_on_chain",
                tx_hash=receipt.tx_hash,
                result=receipt.result,
                message=receipt.result_message,
            )
        else:
            logger.info("tx_confirmed", tx_hash=receipt.tx_hash, block_height=receipt.block_height)

        return replace(
            result,
            receipt=receipt,
            result_error=result_error,
            confirmation_state=ConfirmationState.CONFIRMED,
        )

    # ------------------------------------------------------------------
    # Transaction data
    # ------------------------------------------------------------------

    def get_raw_data(self) -> bytes:
        """Canonical bytes of the transaction body."""
        return payload.raw_payload(self.transaction)

    def transaction_hash(self) -> str:
        """
        Hex-encoded Blake2b-256 hash of the raw payload.

        Raises:
            TransactionEncodingError: If the transaction body cannot be encoded
        """
        return payload.transaction_hash(self.transaction)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    @property
    def result(self) -> ExecutionResult:
        return self._result

    @property
    def transaction(self) -> Transaction:
        """The current transaction; replaced by software signing."""
        return self._result.transaction

    @property
    def execution_error(self) -> Optional[Exception]:
        return self._result.execution_error

    @property
    def result_error(self) -> Optional[TransactionResultError]:
        return self._result.result_error

    def get_result_error(self) -> Optional[TransactionResultError]:
        """Informational on-chain failure, set only after a receipt was found."""
        return self._result.result_error

    @property
    def broadcast_result(self) -> Optional[BroadcastResult]:
        return self._result.broadcast_result

    @property
    def receipt(self) -> Optional[TransactionReceipt]:
        return self._result.receipt

    @property
    def confirmation_state(self) -> ConfirmationState:
        return self._result.confirmation_state

"""
Transaction execution errors.

Fatal errors halt the pipeline and are returned by
TransactionController.execute_transaction(). TransactionResultError is
informational only. BadTransactionParamError is raised before anything runs.
"""


class ExecutionError(Exception):
    """Base exception for fatal pipeline errors."""
    pass


class BadTransactionParamError(ValueError):
    """Raised when invalid params are given to the controller before execution."""

    def __init__(self, message: str = "transaction has bad parameters"):
        super().__init__(message)


class TransactionEncodingError(ExecutionError):
    """Raised when the transaction's raw payload cannot be encoded."""
    pass


class BroadcastRejectedError(ExecutionError):
    """Raised when the network answers a broadcast with a non-zero code."""

    def __init__(self, code: int, message: str):
        super().__init__(f"bad transaction: {message}")
        self.code = code
        self.network_message = message


class ConfirmationTimeoutError(ExecutionError):
    """Raised when no receipt shows up within the confirmation window."""

    def __init__(self, wait_seconds: int):
        super().__init__(f"could not confirm transaction after {wait_seconds} seconds")
        self.wait_seconds = wait_seconds


class TransactionResultError(Exception):
    """On-chain execution failed although the network accepted the transaction."""

    def __init__(self, result: int, message: str):
        super().__init__(message or f"transaction failed on chain with status {result}")
        self.result = result

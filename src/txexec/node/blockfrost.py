"""
Blockfrost API adapter for node integration.

Provides transaction submission and receipt lookup via the Blockfrost API service.
"""

from typing import Any, Optional

import httpx
import structlog

from pycardano import Transaction

from txexec.config import ExecutorConfig, get_config
from txexec.node.interface import (
    RECEIPT_RESULT_FAILED,
    BroadcastResult,
    NodeConnectionError,
    NodeInterface,
    ReceiptNotFoundError,
    ResourceUsage,
    TransactionReceipt,
    TransactionSubmitError,
)

logger = structlog.get_logger(__name__)

# Submit responses that mean "the network looked at the transaction and refused it"
REJECTION_STATUS_CODES = (400, 425)


class BlockfrostAdapter(NodeInterface):
    """
    Blockfrost API adapter.

    Implements the NodeInterface using Blockfrost's REST API.
    """

    def __init__(
        self,
        config: Optional[ExecutorConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the Blockfrost adapter.

        Args:
            config: Executor configuration. Uses global config if not provided.
            client: Pre-built HTTP client (tests inject one with a mock transport)
        """
        self.config = config or get_config()
        self.base_url = self.config.blockfrost_url
        self.project_id = self.config.blockfrost_project_id
        self._client: Optional[httpx.AsyncClient] = client

    @property
    def headers(self) -> dict:
        """Get request headers with API key."""
        return {
            "project_id": self.project_id or "",
            "Content-Type": "application/json",
        }

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        if not self.project_id:
            raise NodeConnectionError("Blockfrost project ID not configured")

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.config.request_timeout_seconds,
        )

        # Test connection
        try:
            response = await self._client.get("/health")
            if response.status_code != 200:
                raise NodeConnectionError(f"Blockfrost health check failed: {response.text}")
            logger.info("blockfrost_connected", base_url=self.base_url)
        except httpx.RequestError as e:
            raise NodeConnectionError(f"Failed to connect to Blockfrost: {e}")

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("blockfrost_disconnected")

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> Any:
        """Make an API request. Returns None on 404."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.request(method, path, **kwargs)

            if response.status_code == 404:
                return None

            if response.status_code != 200:
                error_msg = response.text
                logger.error(
                    "blockfrost_request_failed",
                    path=path,
                    status=response.status_code,
                    error=error_msg,
                )
                raise NodeConnectionError(f"Blockfrost API error: {error_msg}")

            return response.json()

        except httpx.RequestError as e:
            logger.error("blockfrost_request_error", path=path, error=str(e))
            raise NodeConnectionError(f"Blockfrost request failed: {e}")
        except ValueError as e:
            logger.error("blockfrost_bad_response", path=path, error=str(e))
            raise NodeConnectionError(f"Blockfrost returned invalid JSON: {e}")

    async def broadcast(self, tx: Transaction) -> BroadcastResult:
        """Submit a signed transaction."""
        tx_cbor = tx.to_cbor()

        if not self._client:
            await self.connect()

        try:
            response = await self._client.post(
                "/tx/submit",
                content=tx_cbor,
                headers={
                    **self.headers,
                    "Content-Type": "application/cbor",
                },
            )
        except httpx.RequestError as e:
            raise TransactionSubmitError(f"Transaction submission request failed: {e}")

        if response.status_code == 200:
            try:
                tx_hash = response.json()
            except ValueError as e:
                logger.error("tx_submit_bad_response", error=str(e))
                raise TransactionSubmitError(
                    f"Blockfrost returned invalid JSON for the submission: {e}",
                    error_code=str(response.status_code),
                )
            logger.info("tx_submitted", tx_hash=tx_hash)
            return BroadcastResult(code=0, tx_hash=tx_hash)

        if response.status_code in REJECTION_STATUS_CODES:
            message = _error_message(response)
            logger.warning(
                "tx_submit_rejected",
                status=response.status_code,
                error=message,
            )
            return BroadcastResult(
                code=response.status_code,
                message=message.encode("utf-8"),
            )

        logger.error("tx_submit_failed", status=response.status_code, error=response.text)
        raise TransactionSubmitError(
            f"Transaction submission failed: {response.text}",
            error_code=str(response.status_code),
        )

    async def get_receipt_by_hash(self, tx_hash: str) -> TransactionReceipt:
        """Get the receipt of an on-chain transaction."""
        data = await self._request("GET", f"/txs/{tx_hash}")

        if not data:
            raise ReceiptNotFoundError(tx_hash)

        try:
            valid = data.get("valid_contract", True)
            receipt = TransactionReceipt(
                tx_hash=data.get("hash", tx_hash),
                block_hash=data.get("block", ""),
                block_height=int(data.get("block_height") or 0),
                slot=int(data.get("slot") or 0),
                result=0 if valid else RECEIPT_RESULT_FAILED,
                result_message="" if valid else "script validation failed, collateral consumed",
                resources=ResourceUsage(
                    fee=int(data.get("fees") or 0),
                    size=int(data.get("size") or 0),
                ),
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.error("receipt_malformed", tx_hash=tx_hash, error=str(e))
            raise NodeConnectionError(f"Malformed Blockfrost transaction data: {e}")

        logger.debug("receipt_fetched", tx_hash=tx_hash, block_height=receipt.block_height)
        return receipt


def _error_message(response: httpx.Response) -> str:
    """Extract the human-readable message from a Blockfrost error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text

    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or response.text)
    return str(body)

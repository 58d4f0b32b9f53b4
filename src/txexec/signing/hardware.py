"""
WebSocket hardware signer.

Talks JSON-RPC to a signing bridge on the local machine that forwards the
transaction body to a hardware wallet and returns the device's witness.
"""

import asyncio
import json
import uuid
from typing import Optional

import structlog
import websockets
from websockets.exceptions import WebSocketException

from pycardano import PaymentVerificationKey, VerificationKeyWitness

from txexec.config import ExecutorConfig, get_config
from txexec.signing.interface import HardwareSigner, HardwareSignerError

logger = structlog.get_logger(__name__)

SIGN_METHOD = "signTransaction"


class WebSocketHardwareSigner(HardwareSigner):
    """
    Hardware signer reached through a local WebSocket bridge.

    Request:
        {"jsonrpc": "2.0", "method": "signTransaction",
         "params": {"transactionBody": "<cbor hex>"}, "id": "<uuid>"}

    Response:
        {"jsonrpc": "2.0", "id": "<uuid>",
         "result": {"verificationKey": "<hex>", "signature": "<hex>"}}
    """

    def __init__(self, config: Optional[ExecutorConfig] = None):
        self.config = config or get_config()
        self.url = self.config.hardware_signer_url
        self.timeout = self.config.hardware_signer_timeout_seconds

    async def sign(self, raw_data: bytes) -> VerificationKeyWitness:
        """Ask the device to sign a transaction body."""
        request_id = str(uuid.uuid4())
        request = {
            "jsonrpc": "2.0",
            "method": SIGN_METHOD,
            "params": {"transactionBody": raw_data.hex()},
            "id": request_id,
        }

        logger.info("hardware_sign_requested", url=self.url, body_size=len(raw_data))

        try:
            async with websockets.connect(self.url, ping_interval=30, ping_timeout=10) as ws:
                await ws.send(json.dumps(request))
                # The device waits for the user to confirm on screen
                message = await asyncio.wait_for(ws.recv(), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise HardwareSignerError(f"Hardware signer did not answer within {self.timeout} seconds")
        except (OSError, WebSocketException) as e:
            raise HardwareSignerError(f"Hardware signer unreachable at {self.url}: {e}")

        return _parse_response(message, request_id)


def _parse_response(message, request_id: str) -> VerificationKeyWitness:
    try:
        data = json.loads(message)
    except ValueError as e:
        raise HardwareSignerError(f"Malformed hardware signer response: {e}")

    if data.get("id") != request_id:
        raise HardwareSignerError("Hardware signer answered a different request")

    if "error" in data:
        error = data["error"] or {}
        raise HardwareSignerError(error.get("message", "Unknown hardware signer error"))

    result = data.get("result") or {}
    try:
        vkey = PaymentVerificationKey.from_primitive(bytes.fromhex(result["verificationKey"]))
        signature = bytes.fromhex(result["signature"])
    except (KeyError, TypeError, ValueError) as e:
        raise HardwareSignerError(f"Malformed hardware signature: {e}")

    logger.info("hardware_signature_received", vkey_hash=str(vkey.hash())[:16] + "...")
    return VerificationKeyWitness(vkey, signature)

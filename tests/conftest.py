"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import List, Optional
from unittest.mock import AsyncMock, patch

import pytest
from nacl.encoding import RawEncoder
from nacl.hash import blake2b
from pycardano import (
    Address,
    Network,
    PaymentSigningKey,
    PaymentVerificationKey,
    Transaction,
    TransactionBody,
    TransactionId,
    TransactionInput,
    TransactionOutput,
    TransactionWitnessSet,
    Value,
    VerificationKeyWitness,
)

from txexec.config import ExecutorConfig, NetworkType
from txexec.node.interface import (
    BroadcastResult,
    NodeInterface,
    ReceiptNotFoundError,
    TransactionReceipt,
)
from txexec.signing.interface import Account, HardwareSigner
from txexec.signing.keystore import generate_test_key


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> ExecutorConfig:
    """Create a test configuration."""
    return ExecutorConfig(
        network=NetworkType.PREPROD,
        blockfrost_project_id="test_project_id",
        blockfrost_base_url="https://blockfrost.test/api/v0",
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def generate_test_tx_hash(index: int = 0) -> str:
    """Generate a deterministic test transaction hash."""
    base = "abcd1234" * 8  # 64 chars
    return base[:60] + f"{index:04d}"


def build_unsigned_tx(address: Address, index: int = 0) -> Transaction:
    """Build a simple unsigned transaction paying back to `address`."""
    tx_body = TransactionBody(
        inputs=[TransactionInput(TransactionId.from_primitive(generate_test_tx_hash(index)), 0)],
        outputs=[TransactionOutput(address, Value(1_000_000))],
        fee=200_000,
    )
    return Transaction(tx_body, TransactionWitnessSet())


# ============================================================================
# Signer Fixtures
# ============================================================================

@pytest.fixture
def test_keystore(test_config):
    """Key store holding one random key, and the account it controls."""
    return generate_test_key(test_config)


@pytest.fixture
def keystore(test_keystore):
    return test_keystore[0]


@pytest.fixture
def account(test_keystore) -> Account:
    return test_keystore[1]


@pytest.fixture
def sample_tx(account) -> Transaction:
    """Unsigned transaction sent by the test account."""
    return build_unsigned_tx(account.address)


class FakeHardwareSigner(HardwareSigner):
    """Hardware signer backed by an in-memory key."""

    def __init__(self, signing_key: PaymentSigningKey, signature: Optional[bytes] = None):
        self.signing_key = signing_key
        self.signature = signature
        self.requests: List[bytes] = []

    async def sign(self, raw_data: bytes) -> VerificationKeyWitness:
        self.requests.append(raw_data)
        digest = blake2b(raw_data, 32, encoder=RawEncoder)
        signature = self.signature or self.signing_key.sign(digest)
        return VerificationKeyWitness(
            PaymentVerificationKey.from_signing_key(self.signing_key),
            signature,
        )


@pytest.fixture
def hardware_key() -> PaymentSigningKey:
    return PaymentSigningKey.generate()


@pytest.fixture
def hardware_account(hardware_key) -> Account:
    """Account whose key lives on the fake device."""
    vkey = PaymentVerificationKey.from_signing_key(hardware_key)
    return Account(address=Address(vkey.hash(), network=Network.TESTNET), label="device")


@pytest.fixture
def hardware_signer(hardware_key) -> FakeHardwareSigner:
    return FakeHardwareSigner(hardware_key)


# ============================================================================
# Mock Node Interface
# ============================================================================

class MockNodeInterface(NodeInterface):
    """Mock node interface for testing."""

    def __init__(self):
        self.broadcast_result = BroadcastResult(code=0, tx_hash=generate_test_tx_hash(99))
        self.broadcast_error: Optional[Exception] = None
        self.receipt: Optional[TransactionReceipt] = None
        self.receipt_after = 0               # lookups that miss before the receipt appears
        self.lookup_errors: List[Exception] = []
        self.broadcasts: List[Transaction] = []
        self.receipt_queries: List[str] = []
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def broadcast(self, tx: Transaction) -> BroadcastResult:
        self.broadcasts.append(tx)
        if self.broadcast_error is not None:
            raise self.broadcast_error
        return self.broadcast_result

    async def get_receipt_by_hash(self, tx_hash: str) -> TransactionReceipt:
        self.receipt_queries.append(tx_hash)
        if self.lookup_errors:
            raise self.lookup_errors.pop(0)
        if self.receipt is None or len(self.receipt_queries) <= self.receipt_after:
            raise ReceiptNotFoundError(tx_hash)
        return self.receipt


@pytest.fixture
def mock_node() -> MockNodeInterface:
    """Create a mock node interface."""
    return MockNodeInterface()


@pytest.fixture
def no_sleep():
    """Make the confirmation poller's one-second waits instant."""
    with patch("txexec.core.controller.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def make_tx():
    """Factory for unsigned transactions."""
    return build_unsigned_tx

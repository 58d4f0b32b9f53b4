"""
Signing strategy selection.

The controller signs through exactly one of two strategies:

- SOFTWARE: the key store signs and hands back a replacement transaction
- HARDWARE: the device signs the raw payload; its witness is checked against
  the expected sender and appended to the existing witness list in place
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from pycardano import Transaction, TransactionWitnessSet, VerificationKeyWitness

from txexec.config import ExecutorConfig, SigningImpl
from txexec.payload import body_hash, raw_payload
from txexec.signing.interface import (
    Account,
    HardwareSigner,
    KeyStore,
    KeyStoreError,
    SignatureVerificationError,
)

logger = structlog.get_logger(__name__)


class SigningStrategy(ABC):
    """Attaches the sender's signature to a transaction."""

    impl: SigningImpl

    @abstractmethod
    async def sign(self, tx: Transaction, account: Optional[Account]) -> Transaction:
        """
        Sign a transaction.

        Args:
            tx: Transaction to sign
            account: Expected sender

        Returns:
            The signed transaction

        Raises:
            SigningError: If signing fails
            TransactionEncodingError: If the raw payload cannot be encoded
        """
        pass


class SoftwareSigningStrategy(SigningStrategy):
    """Delegates to a key store holding the sender's key."""

    impl = SigningImpl.SOFTWARE

    def __init__(self, keystore: Optional[KeyStore]):
        self.keystore = keystore

    async def sign(self, tx: Transaction, account: Optional[Account]) -> Transaction:
        if self.keystore is None or account is None:
            raise KeyStoreError("Software signing requires a key store and an account")
        return self.keystore.sign_transaction(account, tx)


class HardwareSigningStrategy(SigningStrategy):
    """Delegates to an external device and verifies what it returns."""

    impl = SigningImpl.HARDWARE

    def __init__(self, signer: HardwareSigner):
        self.signer = signer

    async def sign(self, tx: Transaction, account: Optional[Account]) -> Transaction:
        data = raw_payload(tx)
        witness = await self.signer.sign(data)

        verify_witness(witness, body_hash(tx), account)

        witness_set = tx.transaction_witness_set
        if witness_set is None:
            tx.transaction_witness_set = TransactionWitnessSet(vkey_witnesses=[witness])
        elif witness_set.vkey_witnesses is None:
            witness_set.vkey_witnesses = [witness]
        else:
            witness_set.vkey_witnesses.append(witness)

        return tx


def verify_witness(
    witness: VerificationKeyWitness,
    tx_hash: bytes,
    account: Optional[Account],
) -> None:
    """
    Check that a witness signs tx_hash with the account's payment key.

    Raises:
        SignatureVerificationError: If the signature is invalid or belongs to
            another key
    """
    if account is None:
        raise SignatureVerificationError("No expected sender to verify the signature against")

    try:
        VerifyKey(witness.vkey.payload).verify(tx_hash, witness.signature)
    except (BadSignatureError, ValueError, TypeError) as e:
        raise SignatureVerificationError(f"signature verification failed: {e}")

    if witness.vkey.hash() != account.payment_key_hash:
        logger.warning(
            "signature_sender_mismatch",
            expected=str(account.payment_key_hash),
            actual=str(witness.vkey.hash()),
        )
        raise SignatureVerificationError(
            "signature verification failed: sender address doesn't match the hardware signer's key"
        )


def select_strategy(
    impl: SigningImpl,
    keystore: Optional[KeyStore] = None,
    hardware_signer: Optional[HardwareSigner] = None,
    config: Optional[ExecutorConfig] = None,
) -> SigningStrategy:
    """
    Pick the signing strategy for a SigningImpl tag.

    The hardware strategy falls back to the local WebSocket signer when no
    hardware signer is given.
    """
    if impl == SigningImpl.HARDWARE:
        if hardware_signer is None:
            from txexec.signing.hardware import WebSocketHardwareSigner
            hardware_signer = WebSocketHardwareSigner(config)
        return HardwareSigningStrategy(hardware_signer)

    return SoftwareSigningStrategy(keystore)

"""
Local key store - software signing.

Manages payment signing keys per account and signs transactions with them.
"""

from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import structlog

from pycardano import (
    Address,
    Network,
    PaymentSigningKey,
    PaymentVerificationKey,
    Transaction,
    TransactionWitnessSet,
    VerificationKeyWitness,
)

from txexec.config import ExecutorConfig, NetworkType, get_config
from txexec.signing.interface import Account, KeyStore, KeyStoreError

logger = structlog.get_logger(__name__)


class LocalKeyStore(KeyStore):
    """
    In-memory key store for payment signing keys.

    Supports loading keys from:
    - File path (standard Cardano signing key format)
    - CBOR-encoded key (for environment variable configuration)

    Keys are indexed by the address they control. A locked account has no key
    in the store and cannot sign until its key is loaded again.
    """

    def __init__(self, config: Optional[ExecutorConfig] = None):
        """
        Initialize the key store.

        Args:
            config: Executor configuration
        """
        self.config = config or get_config()
        self._keys: Dict[str, PaymentSigningKey] = {}

    @property
    def network(self) -> Network:
        return Network.MAINNET if self.config.network == NetworkType.MAINNET else Network.TESTNET

    def add_signing_key(
        self,
        signing_key: PaymentSigningKey,
        label: Optional[str] = None,
    ) -> Account:
        """
        Add a signing key and return the account it controls.

        Args:
            signing_key: Payment signing key
            label: Optional account name

        Returns:
            Account bound to the key's enterprise address
        """
        verification_key = PaymentVerificationKey.from_signing_key(signing_key)
        address = Address(verification_key.hash(), network=self.network)
        self._keys[str(address)] = signing_key
        return Account(address=address, label=label)

    def load_key_from_file(self, key_path: str, label: Optional[str] = None) -> Account:
        """
        Load signing key from a file.

        Args:
            key_path: Path to the signing key file
            label: Optional account name
        """
        path = Path(key_path)
        if not path.exists():
            raise FileNotFoundError(f"Signing key file not found: {key_path}")

        account = self.add_signing_key(PaymentSigningKey.load(str(path)), label)
        logger.info("signing_key_loaded", path=key_path, address=str(account.address)[:30] + "...")
        return account

    def load_key_from_cbor(self, cbor_hex: str, label: Optional[str] = None) -> Account:
        """
        Load signing key from CBOR hex string.

        Args:
            cbor_hex: CBOR-encoded signing key in hex
            label: Optional account name
        """
        account = self.add_signing_key(PaymentSigningKey.from_cbor(cbor_hex), label)
        logger.info("signing_key_loaded_from_cbor", address=str(account.address)[:30] + "...")
        return account

    def load_from_config(self) -> Account:
        """Load signing key from configuration."""
        if self.config.signing_key_path:
            return self.load_key_from_file(self.config.signing_key_path)
        if self.config.signing_key_cbor:
            return self.load_key_from_cbor(self.config.signing_key_cbor)
        raise KeyStoreError("No signing key configured")

    def has_account(self, account: Account) -> bool:
        return str(account.address) in self._keys

    @property
    def accounts(self) -> List[str]:
        return list(self._keys)

    def lock(self, account: Account) -> None:
        """Drop an account's key from memory."""
        if self._keys.pop(str(account.address), None) is not None:
            logger.info("account_locked", address=str(account.address)[:30] + "...")

    def sign_transaction(self, account: Account, tx: Transaction) -> Transaction:
        """
        Add the account's signature to a transaction.

        Existing witnesses are kept; the returned transaction is a new object.
        """
        signing_key = self._keys.get(str(account.address))
        if signing_key is None:
            raise KeyStoreError(f"No signing key loaded for account {account}")

        tx_hash = tx.transaction_body.hash()
        vkey_witness = VerificationKeyWitness(
            PaymentVerificationKey.from_signing_key(signing_key),
            signing_key.sign(tx_hash),
        )

        existing_witnesses = tx.transaction_witness_set or TransactionWitnessSet()
        vkey_witnesses = list(existing_witnesses.vkey_witnesses or [])
        vkey_witnesses.append(vkey_witness)

        signed_tx = replace(
            tx,
            transaction_witness_set=replace(existing_witnesses, vkey_witnesses=vkey_witnesses),
        )

        logger.debug("transaction_signed", tx_hash=tx_hash.hex()[:16] + "...")
        return signed_tx


def generate_test_key(
    config: Optional[ExecutorConfig] = None,
) -> Tuple[LocalKeyStore, Account]:
    """
    Generate a key store holding one new random key, for testing.

    WARNING: Do not use in production. The key is not persisted.

    Returns:
        The key store and the account of the generated key
    """
    keystore = LocalKeyStore(config)
    account = keystore.add_signing_key(PaymentSigningKey.generate(), label="test")

    logger.warning("test_key_generated", address=str(account.address)[:30] + "...")

    return keystore, account

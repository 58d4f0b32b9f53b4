"""
Signing collaborators.

Defines the signer identity and the two signing backends the controller can
delegate to: a key store holding key material locally and a hardware signer
that never exposes it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from pycardano import Address, Transaction, VerificationKeyWitness


@dataclass(frozen=True)
class Account:
    """
    An account whose key signs transactions.

    Attributes:
        address: Address owned by the account's payment key
        label: Optional human-readable name
    """
    address: Address
    label: Optional[str] = None

    @property
    def payment_key_hash(self):
        """Hash of the payment verification key behind the address."""
        return self.address.payment_part

    def __str__(self) -> str:
        return self.label or str(self.address)


class KeyStore(ABC):
    """Signs transactions with locally held key material."""

    @abstractmethod
    def sign_transaction(self, account: Account, tx: Transaction) -> Transaction:
        """
        Sign a transaction with an account's key.

        Args:
            account: Account whose key signs
            tx: Transaction to sign

        Returns:
            A new, fully signed transaction replacing the input

        Raises:
            KeyStoreError: If the key is missing or locked
        """
        pass


class HardwareSigner(ABC):
    """Signs raw transaction bytes on an external device."""

    @abstractmethod
    async def sign(self, raw_data: bytes) -> VerificationKeyWitness:
        """
        Sign a transaction's raw payload.

        Args:
            raw_data: CBOR-encoded transaction body

        Returns:
            Exactly one witness (verification key + signature)

        Raises:
            HardwareSignerError: If the transport or device fails
        """
        pass


class SigningError(Exception):
    """Base exception for signing failures."""
    pass


class KeyStoreError(SigningError):
    """Raised when the key store cannot sign for an account."""
    pass


class HardwareSignerError(SigningError):
    """Raised when the hardware signer cannot be reached or refuses to sign."""
    pass


class SignatureVerificationError(SigningError):
    """Raised when a returned signature does not belong to the expected sender."""
    pass

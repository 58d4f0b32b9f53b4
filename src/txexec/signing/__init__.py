"""
Signing module.

Handles software (key store) and hardware (external device) transaction signing.
"""

from txexec.config import SigningImpl
from txexec.signing.interface import (
    Account,
    HardwareSigner,
    HardwareSignerError,
    KeyStore,
    KeyStoreError,
    SignatureVerificationError,
    SigningError,
)
from txexec.signing.keystore import LocalKeyStore, generate_test_key
from txexec.signing.hardware import WebSocketHardwareSigner
from txexec.signing.strategy import (
    HardwareSigningStrategy,
    SigningStrategy,
    SoftwareSigningStrategy,
    select_strategy,
    verify_witness,
)

__all__ = [
    "Account",
    "HardwareSigner",
    "HardwareSignerError",
    "HardwareSigningStrategy",
    "KeyStore",
    "KeyStoreError",
    "LocalKeyStore",
    "SignatureVerificationError",
    "SigningError",
    "SigningImpl",
    "SigningStrategy",
    "SoftwareSigningStrategy",
    "WebSocketHardwareSigner",
    "generate_test_key",
    "select_strategy",
    "verify_witness",
]

"""
Raw payload and hash of a transaction.

The raw payload is the CBOR encoding of the transaction body. Witnesses are
not part of it, so signing never changes the hash.
"""

from pycardano import Transaction
from pycardano.exception import PyCardanoException

from txexec.errors import TransactionEncodingError

ENCODING_ERRORS = (PyCardanoException, AttributeError, TypeError, ValueError)


def raw_payload(tx: Transaction) -> bytes:
    """Encode the transaction body to its canonical bytes."""
    try:
        return tx.transaction_body.to_cbor()
    except ENCODING_ERRORS as e:
        raise TransactionEncodingError(f"could not encode transaction body: {e}") from e


def body_hash(tx: Transaction) -> bytes:
    """Blake2b-256 hash of the transaction body; this is what signers sign."""
    try:
        return tx.transaction_body.hash()
    except ENCODING_ERRORS as e:
        raise TransactionEncodingError(f"could not encode transaction body: {e}") from e


def transaction_hash(tx: Transaction) -> str:
    """Hex-encoded hash of the transaction body."""
    return body_hash(tx).hex()

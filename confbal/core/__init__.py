"""
Confidential Balance Protocol Core Data Structures
"""

from confbal.core.types import (
    Point,
    Ciphertext,
    KeyPair,
    EncryptedBalance,
    ProofBundle,
    field_to_bytes,
    bytes_to_field,
)

__all__ = [
    "Point",
    "Ciphertext",
    "KeyPair",
    "EncryptedBalance",
    "ProofBundle",
    "field_to_bytes",
    "bytes_to_field",
]

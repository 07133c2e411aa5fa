"""
Confidential Balance Protocol Cryptographic Primitives
"""

from confbal.crypto.curve import (
    GENERATOR,
    is_on_curve,
    validate_point,
    point_add,
    point_negate,
    point_subtract,
    scalar_multiply,
    base_multiply,
)
from confbal.crypto.bsgs import BabyStepGiantStep, get_bsgs, table_size
from confbal.crypto.elgamal import (
    generate_randomness,
    derive_keypair,
    derive_public_key,
    encrypt,
    decrypt,
    decrypt_to_point,
    homomorphic_add,
    homomorphic_subtract,
    parse_scalar,
)

__all__ = [
    # Curve
    "GENERATOR",
    "is_on_curve",
    "validate_point",
    "point_add",
    "point_negate",
    "point_subtract",
    "scalar_multiply",
    "base_multiply",
    # Discrete log
    "BabyStepGiantStep",
    "get_bsgs",
    "table_size",
    # ElGamal
    "generate_randomness",
    "derive_keypair",
    "derive_public_key",
    "encrypt",
    "decrypt",
    "decrypt_to_point",
    "homomorphic_add",
    "homomorphic_subtract",
    "parse_scalar",
]

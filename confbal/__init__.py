"""
Confidential Balance Protocol

ElGamal-encrypted token balances on the Grumpkin embedded curve, with
zero-knowledge proofs of deposit, withdraw and transfer transitions and
the calldata layouts the on-chain verifier expects.
"""

__version__ = "0.1.0"
__author__ = "Confidential Balance Protocol"

from confbal.constants import CURVE_ORDER, FIELD_MODULUS, MAX_BALANCE

__all__ = [
    "CURVE_ORDER",
    "FIELD_MODULUS",
    "MAX_BALANCE",
    "__version__",
]

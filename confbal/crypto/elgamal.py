"""
ElGamal Encryption on the Embedded Curve

- c1 = r·G (ephemeral key)
- c2 = r·PK + m·G (encrypted message)

Additively homomorphic in m for ciphertexts under the same public key.
Decryption recovers m·G and then m by bounded baby-step giant-step.
"""

from __future__ import annotations
import logging
from typing import Optional, Union

from Crypto.Random import get_random_bytes

from confbal.constants import (
    CURVE_ORDER,
    FIELD_ELEMENT_SIZE,
    MAX_BALANCE,
    SCALAR_MASK,
)
from confbal.core.types import Ciphertext, KeyPair, Point
from confbal.crypto.bsgs import get_bsgs
from confbal.crypto.curve import (
    base_multiply,
    point_add,
    point_subtract,
    scalar_multiply,
    validate_point,
)
from confbal.errors import DecryptionFailedError

logger = logging.getLogger(__name__)

Scalar = Union[int, str]


def parse_scalar(value: Scalar) -> int:
    """Accept an int, a decimal string, or a 0x-prefixed hex string."""
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text, 10)


def _check_private_key(private_key: int) -> int:
    if not 0 < private_key < CURVE_ORDER:
        raise ValueError("private key must be in [1, curve order)")
    return private_key


def generate_randomness() -> int:
    """
    Fresh encryption randomness.

    32 random bytes masked to 253 bits, hence strictly below the group
    order. Must never be reused: equal c1 values link ciphertexts.
    """
    while True:
        value = int.from_bytes(get_random_bytes(FIELD_ELEMENT_SIZE), "big") & SCALAR_MASK
        if value:
            return value


def derive_public_key(private_key: Scalar) -> Point:
    return base_multiply(_check_private_key(parse_scalar(private_key)))


def derive_keypair(seed: Optional[Scalar] = None) -> KeyPair:
    """
    Derive a key pair.

    Args:
        seed: Optional private scalar for deterministic keys (testing only).
              Without it the private key is drawn from a CSPRNG.

    Returns:
        KeyPair with public_key = private_key·G
    """
    if seed is None:
        private_key = generate_randomness()
    else:
        private_key = _check_private_key(parse_scalar(seed))
    return KeyPair(private_key=private_key, public_key=base_multiply(private_key))


def encrypt(public_key: Point, message: int, randomness: Scalar) -> Ciphertext:
    """
    Encrypt `message` to `public_key`.

    Raises:
        InvalidPointError: If public_key is off-curve or the (0, 0) sentinel
        ValueError: If message is negative or randomness is out of range
    """
    validate_point(public_key, allow_identity=False)
    if message < 0:
        raise ValueError(f"message must be non-negative: {message}")
    r = parse_scalar(randomness)
    if not 0 < r < CURVE_ORDER:
        raise ValueError("randomness must be in [1, curve order)")

    c1 = base_multiply(r)
    c2 = point_add(scalar_multiply(public_key, r), base_multiply(message))
    return Ciphertext(c1, c2)


def decrypt_to_point(ciphertext: Ciphertext, private_key: Scalar) -> Point:
    """m·G = c2 - sk·c1."""
    sk = _check_private_key(parse_scalar(private_key))
    validate_point(ciphertext.c1)
    validate_point(ciphertext.c2)
    return point_subtract(ciphertext.c2, scalar_multiply(ciphertext.c1, sk))


def decrypt(
    ciphertext: Ciphertext,
    private_key: Scalar,
    max_value: int = MAX_BALANCE,
    baby_steps: Optional[int] = None,
) -> int:
    """
    Decrypt a ciphertext to its integer message.

    A zero ciphertext (c2.x == 0) is the never-funded marker and decrypts
    to 0 without search.

    Raises:
        DecryptionFailedError: If no message in [0, max_value] matches,
            which is the expected outcome for a wrong key
    """
    if ciphertext.is_zero:
        logger.debug("Zero ciphertext, skipping discrete log search")
        return 0

    message_point = decrypt_to_point(ciphertext, private_key)
    value = get_bsgs(max_value, baby_steps).solve(message_point)
    if value is None:
        raise DecryptionFailedError(max_value)
    return value


def homomorphic_add(ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
    """
    Enc(a) + Enc(b) = Enc(a + b).

    Only meaningful when both ciphertexts share a public key; not checked here.
    """
    return Ciphertext(point_add(ct1.c1, ct2.c1), point_add(ct1.c2, ct2.c2))


def homomorphic_subtract(ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
    """
    Enc(a) - Enc(b) = Enc(a - b).

    Only meaningful when both ciphertexts share a public key; not checked here.
    """
    return Ciphertext(point_subtract(ct1.c1, ct2.c1), point_subtract(ct1.c2, ct2.c2))

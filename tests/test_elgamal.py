"""
Confidential Balance Protocol ElGamal Tests
"""

import pytest
from unittest.mock import patch

from confbal.constants import CURVE_ORDER, SCALAR_MASK
from confbal.core.types import Ciphertext, Point
from confbal.crypto.curve import GENERATOR, base_multiply
from confbal.crypto.elgamal import (
    decrypt,
    decrypt_to_point,
    derive_keypair,
    derive_public_key,
    encrypt,
    generate_randomness,
    homomorphic_add,
    homomorphic_subtract,
    parse_scalar,
)
from confbal.errors import DecryptionFailedError, ErrorCode, InvalidPointError


class TestKeys:
    """Tests for key derivation and randomness."""

    def test_seeded_keypair_deterministic(self):
        """Test a seed always yields the same key pair."""
        assert derive_keypair(42) == derive_keypair(42)
        assert derive_keypair(42).public_key == base_multiply(42)

    def test_seed_formats(self):
        """Test int, decimal and hex seeds agree."""
        assert derive_keypair("42") == derive_keypair(42)
        assert derive_keypair("0x2a") == derive_keypair(42)

    def test_random_keypair(self):
        """Test unseeded key pairs are valid and distinct."""
        kp1 = derive_keypair()
        kp2 = derive_keypair()
        assert 0 < kp1.private_key < CURVE_ORDER
        assert kp1.public_key == base_multiply(kp1.private_key)
        assert kp1.private_key != kp2.private_key

    def test_invalid_private_key(self):
        """Test zero and out-of-range keys are rejected."""
        with pytest.raises(ValueError):
            derive_public_key(0)
        with pytest.raises(ValueError):
            derive_keypair(CURVE_ORDER)

    def test_randomness_masked(self):
        """Test randomness fits in 253 bits."""
        for _ in range(20):
            r = generate_randomness()
            assert 0 < r <= SCALAR_MASK < CURVE_ORDER

    def test_randomness_redraws_zero(self):
        """Test a zero draw is discarded."""
        draws = iter([bytes(32), b"\xff" * 32])
        with patch("confbal.crypto.elgamal.get_random_bytes", lambda n: next(draws)):
            assert generate_randomness() == SCALAR_MASK

    def test_parse_scalar(self):
        """Test scalar parsing."""
        assert parse_scalar(" 0xFF ") == 255
        assert parse_scalar("255") == 255
        assert parse_scalar(255) == 255


class TestEncryptDecrypt:
    """Tests for ElGamal round trips."""

    def test_key_42_scenario(self, keypair, test_bound):
        """Test encrypt 500 under key 42 and decrypt with 42 and 43."""
        ct = encrypt(keypair.public_key, 500, 987654321)
        assert decrypt(ct, 42, max_value=test_bound) == 500

        try:
            wrong = decrypt(ct, 43, max_value=test_bound)
        except DecryptionFailedError:
            wrong = None
        assert wrong != 500

    def test_roundtrip(self, keypair, test_bound):
        """Test decrypt(encrypt(m)) == m for assorted messages."""
        for m in (1, 7, 99, 1234, test_bound):
            ct = encrypt(keypair.public_key, m, generate_randomness())
            assert decrypt(ct, keypair.private_key, max_value=test_bound) == m

    def test_message_zero(self, keypair, test_bound):
        """Test message 0 round-trips and is not the zero marker."""
        ct = encrypt(keypair.public_key, 0, generate_randomness())
        assert not ct.is_zero
        assert decrypt(ct, keypair.private_key, max_value=test_bound) == 0

    def test_ciphertext_structure(self, keypair):
        """Test c1 = rG and c2 = r·PK + mG."""
        ct = encrypt(keypair.public_key, 3, 11)
        assert ct.c1 == base_multiply(11)
        assert ct.c2 == base_multiply(11 * 42 + 3)
        assert decrypt_to_point(ct, 42) == base_multiply(3)

    def test_randomized(self, keypair):
        """Test fresh randomness gives distinct ciphertexts."""
        ct1 = encrypt(keypair.public_key, 5, generate_randomness())
        ct2 = encrypt(keypair.public_key, 5, generate_randomness())
        assert ct1 != ct2

    def test_zero_ciphertext_shortcut(self, keypair):
        """Test zero ciphertext decrypts to 0 without search."""
        with patch("confbal.crypto.elgamal.get_bsgs") as bsgs:
            assert decrypt(Ciphertext.zero(), keypair.private_key) == 0
            bsgs.assert_not_called()

    def test_wrong_key_exhausts_bound(self, keypair, other_keypair, test_bound):
        """Test a wrong key fails with the search bound attached."""
        ct = encrypt(keypair.public_key, 250, 4242)
        with pytest.raises(DecryptionFailedError) as exc:
            decrypt(ct, other_keypair.private_key, max_value=test_bound)
        assert exc.value.code == ErrorCode.DECRYPTION_FAILED
        assert exc.value.bound == test_bound

    def test_invalid_public_key(self):
        """Test off-curve and sentinel keys are rejected."""
        with pytest.raises(InvalidPointError):
            encrypt(Point(GENERATOR.x, GENERATOR.y + 1), 1, 5)
        with pytest.raises(InvalidPointError):
            encrypt(Point.identity(), 1, 5)

    def test_invalid_inputs(self, keypair):
        """Test negative messages and bad randomness."""
        with pytest.raises(ValueError):
            encrypt(keypair.public_key, -1, 5)
        with pytest.raises(ValueError):
            encrypt(keypair.public_key, 1, 0)
        with pytest.raises(ValueError):
            encrypt(keypair.public_key, 1, CURVE_ORDER)


class TestHomomorphism:
    """Tests for homomorphic operations."""

    def test_add(self, keypair, test_bound):
        """Test Enc(a) + Enc(b) decrypts to a + b."""
        ct1 = encrypt(keypair.public_key, 300, generate_randomness())
        ct2 = encrypt(keypair.public_key, 450, generate_randomness())
        total = homomorphic_add(ct1, ct2)
        assert decrypt(total, keypair.private_key, max_value=test_bound) == 750

    def test_subtract(self, keypair, test_bound):
        """Test Enc(a) - Enc(b) decrypts to a - b."""
        ct1 = encrypt(keypair.public_key, 1000, generate_randomness())
        ct2 = encrypt(keypair.public_key, 400, generate_randomness())
        diff = homomorphic_subtract(ct1, ct2)
        assert decrypt(diff, keypair.private_key, max_value=test_bound) == 600

    def test_subtract_to_zero(self, keypair, test_bound):
        """Test Enc(a) - Enc(a) decrypts to 0."""
        ct1 = encrypt(keypair.public_key, 77, 5)
        ct2 = encrypt(keypair.public_key, 77, 9)
        diff = homomorphic_subtract(ct1, ct2)
        assert decrypt(diff, keypair.private_key, max_value=test_bound) == 0

    def test_add_to_zero_balance(self, keypair, test_bound):
        """Test adding to the never-funded marker."""
        ct = encrypt(keypair.public_key, 25, generate_randomness())
        total = homomorphic_add(Ciphertext.zero(), ct)
        assert total == ct
        assert decrypt(total, keypair.private_key, max_value=test_bound) == 25

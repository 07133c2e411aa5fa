"""
Confidential Balance Protocol Type Tests
"""

import pytest

from confbal.constants import ENCRYPTED_BALANCE_SIZE, FIELD_MODULUS
from confbal.core.types import Ciphertext, EncryptedBalance, KeyPair, Point, ProofBundle
from confbal.crypto.curve import GENERATOR


class TestPoint:
    """Tests for Point type."""

    def test_identity(self):
        """Test (0, 0) sentinel."""
        p = Point.identity()
        assert p.is_identity
        assert p == Point()
        assert not GENERATOR.is_identity

    def test_out_of_range_rejected(self):
        """Test coordinates must be field elements."""
        with pytest.raises(ValueError):
            Point(FIELD_MODULUS, 0)
        with pytest.raises(ValueError):
            Point(0, -1)

    def test_bytes_roundtrip(self):
        """Test 64-byte x || y encoding."""
        data = GENERATOR.to_bytes()
        assert len(data) == 64
        assert data[:32] == (1).to_bytes(32, "big")
        assert Point.from_bytes(data) == GENERATOR

    def test_from_bytes_offset(self):
        """Test reading a point at an offset."""
        data = bytes(64) + GENERATOR.to_bytes()
        assert Point.from_bytes(data, 64) == GENERATOR

    def test_from_bytes_short(self):
        """Test short input is rejected."""
        with pytest.raises(ValueError):
            Point.from_bytes(bytes(63))

    def test_to_circuit_is_decimal(self):
        """Test circuit representation uses decimal strings."""
        assert GENERATOR.to_circuit() == {"x": "1", "y": str(GENERATOR.y)}


class TestCiphertext:
    """Tests for Ciphertext type."""

    def test_zero(self):
        """Test never-funded ciphertext."""
        ct = Ciphertext.zero()
        assert ct.is_zero
        assert ct.to_encrypted_balance().data == bytes(ENCRYPTED_BALANCE_SIZE)

    def test_is_zero_only_checks_c2_x(self):
        """Test zero marker is c2.x == 0."""
        assert Ciphertext(GENERATOR, Point.identity()).is_zero
        assert not Ciphertext(Point.identity(), GENERATOR).is_zero

    def test_encrypted_balance_roundtrip(self):
        """Test Ciphertext <-> EncryptedBalance."""
        ct = Ciphertext(GENERATOR, Point(5, 6))
        assert ct.to_encrypted_balance().to_ciphertext() == ct


class TestEncryptedBalance:
    """Tests for EncryptedBalance type."""

    def test_default_is_zero(self):
        """Test default balance is the zero marker."""
        balance = EncryptedBalance()
        assert balance.is_zero
        assert bytes(balance) == bytes(128)

    def test_wrong_length(self):
        """Test 128-byte length is enforced."""
        with pytest.raises(ValueError):
            EncryptedBalance(bytes(127))

    def test_hex_roundtrip(self):
        """Test hex conversion with and without prefix."""
        data = bytes(range(128))
        balance = EncryptedBalance(data)
        assert EncryptedBalance.from_hex(balance.hex()) == balance
        assert EncryptedBalance.from_hex("0x" + balance.hex()) == balance

    def test_serialization(self):
        """Test serialization returns the raw bytes."""
        data = bytes(range(128))
        assert EncryptedBalance(data).serialize() == data


class TestKeyPair:
    """Tests for KeyPair type."""

    def test_repr_redacts_private_key(self, keypair):
        """Test the private key never appears in repr."""
        text = repr(keypair)
        assert "redacted" in text
        assert str(keypair.private_key) not in text
        assert hex(keypair.private_key) not in text

    def test_private_key_hex(self):
        """Test hex export."""
        kp = KeyPair(private_key=42, public_key=GENERATOR)
        assert kp.private_key_hex() == "0x" + "0" * 62 + "2a"


class TestProofBundle:
    """Tests for ProofBundle type."""

    def test_dict_roundtrip(self):
        """Test JSON-friendly conversion."""
        bundle = ProofBundle(proof=b"\x01\x02", public_inputs=("0x01", "0x02"))
        data = bundle.to_dict()
        assert data == {"proof": "0x0102", "public_inputs": ["0x01", "0x02"]}
        assert ProofBundle.from_dict(data) == bundle

"""
Confidential Balance Protocol Types

Point, Ciphertext and key types on the Grumpkin embedded curve, plus the
wire containers exchanged with the circuits and the contract.

All multi-byte integers are BIG-ENDIAN unless noted.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple

from confbal.constants import (
    FIELD_MODULUS,
    FIELD_ELEMENT_SIZE,
    POINT_SIZE,
    ENCRYPTED_BALANCE_SIZE,
)


def field_to_bytes(value: int) -> bytes:
    """Serialize a field element as a 32-byte big-endian word."""
    return value.to_bytes(FIELD_ELEMENT_SIZE, "big")


def bytes_to_field(data: bytes) -> int:
    """Parse a 32-byte big-endian word (unsigned)."""
    return int.from_bytes(data, "big", signed=False)


@dataclass(frozen=True, slots=True)
class Point:
    """
    Affine point on the embedded curve.

    SIZE: 64 bytes
    SERIALIZATION: x || y
    NOTE: (0, 0) is the "absent/unregistered" sentinel and also encodes
    the point at infinity.
    """
    x: int = 0
    y: int = 0

    def __post_init__(self):
        for name, value in (("x", self.x), ("y", self.y)):
            if not 0 <= value < FIELD_MODULUS:
                raise ValueError(f"Point.{name} out of field range: {value}")

    def __repr__(self) -> str:
        return f"Point(x={self.x:#x}, y={self.y:#x})"

    @property
    def is_identity(self) -> bool:
        return self.x == 0 and self.y == 0

    @classmethod
    def identity(cls) -> Point:
        return cls(0, 0)

    def to_bytes(self) -> bytes:
        """64-byte key encoding (x || y), as registered on-chain."""
        return field_to_bytes(self.x) + field_to_bytes(self.y)

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> Point:
        chunk = data[offset:offset + POINT_SIZE]
        if len(chunk) != POINT_SIZE:
            raise ValueError(f"Point must be {POINT_SIZE} bytes, got {len(chunk)}")
        return cls(
            bytes_to_field(chunk[:FIELD_ELEMENT_SIZE]),
            bytes_to_field(chunk[FIELD_ELEMENT_SIZE:]),
        )

    def to_circuit(self) -> Dict[str, str]:
        """Decimal-string struct accepted as a Noir EmbeddedCurvePoint input."""
        return {"x": str(self.x), "y": str(self.y)}

    def to_hex(self) -> Dict[str, str]:
        return {"x": f"0x{self.x:064x}", "y": f"0x{self.y:064x}"}


@dataclass(frozen=True, slots=True)
class Ciphertext:
    """
    ElGamal ciphertext (c1, c2).

    c1 = r·G
    c2 = r·PK + m·G
    """
    c1: Point
    c2: Point

    @classmethod
    def zero(cls) -> Ciphertext:
        """Ciphertext of a never-funded balance."""
        return cls(Point.identity(), Point.identity())

    @property
    def is_zero(self) -> bool:
        return self.c2.x == 0

    def to_circuit(self) -> Tuple[Dict[str, str], Dict[str, str]]:
        return self.c1.to_circuit(), self.c2.to_circuit()

    def to_encrypted_balance(self) -> EncryptedBalance:
        return EncryptedBalance(self.c1.to_bytes() + self.c2.to_bytes())


@dataclass(frozen=True, slots=True)
class KeyPair:
    """
    Private scalar and its public point.

    NOTE: The private key never leaves the owning context.
    """
    private_key: int
    public_key: Point

    def __repr__(self) -> str:
        # Never expose the private scalar
        return f"KeyPair(public_key={self.public_key}, private_key=<redacted>)"

    def private_key_hex(self) -> str:
        return f"0x{self.private_key:064x}"


@dataclass(frozen=True, slots=True)
class EncryptedBalance:
    """
    On-chain encrypted balance.

    SIZE: 128 bytes
    SERIALIZATION: c1.x || c1.y || c2.x || c2.y
    """
    data: bytes = bytes(ENCRYPTED_BALANCE_SIZE)

    def __post_init__(self):
        if len(self.data) != ENCRYPTED_BALANCE_SIZE:
            raise ValueError(
                f"EncryptedBalance must be {ENCRYPTED_BALANCE_SIZE} bytes, got {len(self.data)}"
            )

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"EncryptedBalance({self.data.hex()[:16]}...)"

    def hex(self) -> str:
        return self.data.hex()

    @classmethod
    def from_hex(cls, hex_string: str) -> EncryptedBalance:
        if hex_string.startswith(("0x", "0X")):
            hex_string = hex_string[2:]
        return cls(bytes.fromhex(hex_string))

    @property
    def is_zero(self) -> bool:
        """True for the canonical never-funded marker (c2.x == 0)."""
        return bytes_to_field(self.data[2 * FIELD_ELEMENT_SIZE:3 * FIELD_ELEMENT_SIZE]) == 0

    def to_ciphertext(self) -> Ciphertext:
        return Ciphertext(
            Point.from_bytes(self.data, 0),
            Point.from_bytes(self.data, POINT_SIZE),
        )

    def serialize(self) -> bytes:
        return self.data


@dataclass(frozen=True, slots=True)
class ProofBundle:
    """
    Proof and its public inputs.

    Ordering of public_inputs is fixed by the circuit: declared public
    inputs first, then return values.
    """
    proof: bytes
    public_inputs: Tuple[str, ...]

    def __repr__(self) -> str:
        return f"ProofBundle(proof={len(self.proof)} bytes, public_inputs={len(self.public_inputs)})"

    def to_dict(self) -> dict:
        return {
            "proof": "0x" + self.proof.hex(),
            "public_inputs": list(self.public_inputs),
        }

    @classmethod
    def from_dict(cls, data: dict) -> ProofBundle:
        proof_hex = data["proof"]
        if proof_hex.startswith("0x"):
            proof_hex = proof_hex[2:]
        return cls(bytes.fromhex(proof_hex), tuple(data["public_inputs"]))

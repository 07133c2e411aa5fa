"""
Public Input Codec

Bridges circuit public inputs to the contract's fixed-offset calldata.

Deposit / Withdraw (416 bytes), public input index i at offset 32·i:
    [0..64]     sender_pubkey (x, y)
    [64..192]   old_balance (x1.x, x1.y, x2.x, x2.y)
    [192..224]  sender_address
    [224..256]  token
    [256..288]  revealed_amount          - OUTPUT
    [288..416]  new_balance              - OUTPUT

Transfer (704 bytes):
    [0..12]     zero padding
    [12..32]    receiver_address (20 bytes)          <- input 0
    [32..96]    receiver_pubkey                      <- inputs 1-2
    [96..224]   receiver_old_balance                 <- inputs 3-6
    [224..288]  sender_pubkey                        <- inputs 7-8
    [288..416]  sender_old_balance                   <- inputs 9-12
    [416..428]  zero padding
    [428..448]  token (20 bytes)                     <- input 13
    [448..576]  sender_new_balance       - OUTPUT    <- inputs 14-17
    [576..704]  receiver_new_balance     - OUTPUT    <- inputs 18-21

Every field element is an unsigned big-endian integer modulo the field
order; never signed.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, Union

from confbal.constants import (
    ADDRESS_SIZE,
    DEPOSIT_LAYOUT_SIZE,
    DEPOSIT_PUBLIC_INPUT_COUNT,
    ENCRYPTED_BALANCE_SIZE,
    FIELD_ELEMENT_SIZE,
    FIELD_MODULUS,
    TRANSFER_LAYOUT_SIZE,
    TRANSFER_PUBLIC_INPUT_COUNT,
)
from confbal.core.types import (
    Ciphertext,
    EncryptedBalance,
    Point,
    bytes_to_field,
    field_to_bytes,
)
from confbal.errors import MalformedPublicInputsError

FieldLike = Union[str, int]

_ADDRESS_MASK = (1 << (8 * ADDRESS_SIZE)) - 1

# (public input index, byte offset, width). Width 20 writes the low 20 bytes
# of the word right-aligned in its 32-byte slot.
TRANSFER_SLOTS: Tuple[Tuple[int, int, int], ...] = (
    (0, 12, ADDRESS_SIZE),
    (1, 32, FIELD_ELEMENT_SIZE),
    (2, 64, FIELD_ELEMENT_SIZE),
    (3, 96, FIELD_ELEMENT_SIZE),
    (4, 128, FIELD_ELEMENT_SIZE),
    (5, 160, FIELD_ELEMENT_SIZE),
    (6, 192, FIELD_ELEMENT_SIZE),
    (7, 224, FIELD_ELEMENT_SIZE),
    (8, 256, FIELD_ELEMENT_SIZE),
    (9, 288, FIELD_ELEMENT_SIZE),
    (10, 320, FIELD_ELEMENT_SIZE),
    (11, 352, FIELD_ELEMENT_SIZE),
    (12, 384, FIELD_ELEMENT_SIZE),
    (13, 428, ADDRESS_SIZE),
    (14, 448, FIELD_ELEMENT_SIZE),
    (15, 480, FIELD_ELEMENT_SIZE),
    (16, 512, FIELD_ELEMENT_SIZE),
    (17, 544, FIELD_ELEMENT_SIZE),
    (18, 576, FIELD_ELEMENT_SIZE),
    (19, 608, FIELD_ELEMENT_SIZE),
    (20, 640, FIELD_ELEMENT_SIZE),
    (21, 672, FIELD_ELEMENT_SIZE),
)


def parse_field_element(value: FieldLike) -> int:
    """
    Parse a field element.

    0x-prefixed strings are hex, other strings are decimal. The result is
    reduced modulo the field order.

    Raises:
        MalformedPublicInputsError: If the value is negative or unparseable
    """
    if isinstance(value, int):
        parsed = value
    else:
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                parsed = int(text[2:], 16)
            else:
                parsed = int(text, 10)
        except ValueError:
            raise MalformedPublicInputsError(f"Not a field element: {value!r}") from None
    if parsed < 0:
        raise MalformedPublicInputsError(f"Field elements are unsigned: {value!r}")
    return parsed % FIELD_MODULUS


def field_to_hex(value: int) -> str:
    return f"0x{value:064x}"


def address_to_field(address: FieldLike) -> int:
    """Parse a 20-byte address (0x hex or int) into its field value."""
    value = parse_field_element(address)
    if value & ~_ADDRESS_MASK:
        raise ValueError(f"Address wider than {ADDRESS_SIZE} bytes: {address!r}")
    return value


def field_to_address(value: int) -> str:
    return "0x" + value.to_bytes(ADDRESS_SIZE, "big").hex()


def _require(public_inputs: Sequence[FieldLike], count: int, layout: str) -> None:
    if len(public_inputs) < count:
        raise MalformedPublicInputsError(
            f"{layout} layout expects at least {count} public inputs, got {len(public_inputs)}",
            expected=count,
            actual=len(public_inputs),
        )


def encode_deposit_layout(public_inputs: Sequence[FieldLike]) -> bytes:
    """
    Pack deposit/withdraw public inputs into the 416-byte contract layout.

    Raises:
        MalformedPublicInputsError: If fewer than 13 inputs are given
    """
    _require(public_inputs, DEPOSIT_PUBLIC_INPUT_COUNT, "Deposit")
    buf = bytearray(DEPOSIT_LAYOUT_SIZE)
    for index in range(DEPOSIT_PUBLIC_INPUT_COUNT):
        offset = index * FIELD_ELEMENT_SIZE
        buf[offset:offset + FIELD_ELEMENT_SIZE] = field_to_bytes(
            parse_field_element(public_inputs[index])
        )
    return bytes(buf)


def encode_transfer_layout(public_inputs: Sequence[FieldLike]) -> bytes:
    """
    Pack transfer public inputs into the 704-byte contract layout.

    Bytes 0-11 and 416-427 stay zero; they are part of the contract ABI.

    Raises:
        MalformedPublicInputsError: If fewer than 22 inputs are given
    """
    _require(public_inputs, TRANSFER_PUBLIC_INPUT_COUNT, "Transfer")
    buf = bytearray(TRANSFER_LAYOUT_SIZE)
    for index, offset, width in TRANSFER_SLOTS:
        word = field_to_bytes(parse_field_element(public_inputs[index]))
        buf[offset:offset + width] = word[FIELD_ELEMENT_SIZE - width:]
    return bytes(buf)


# ==============================================================================
# Decoding
# ==============================================================================

def _word(data: bytes, offset: int) -> int:
    return bytes_to_field(data[offset:offset + FIELD_ELEMENT_SIZE])


def _point_at(data: bytes, offset: int) -> Point:
    try:
        return Point(_word(data, offset), _word(data, offset + FIELD_ELEMENT_SIZE))
    except ValueError as e:
        raise MalformedPublicInputsError(str(e)) from e


def _ciphertext_at(data: bytes, offset: int) -> Ciphertext:
    return Ciphertext(_point_at(data, offset), _point_at(data, offset + 2 * FIELD_ELEMENT_SIZE))


def decode_encrypted_balance(data: Union[bytes, EncryptedBalance]) -> Tuple[Point, Point]:
    """
    Split a 128-byte encrypted balance into (c1, c2).

    Raises:
        MalformedPublicInputsError: If data is not 128 bytes or a word is
            not a field element
    """
    raw = bytes(data)
    if len(raw) != ENCRYPTED_BALANCE_SIZE:
        raise MalformedPublicInputsError(
            f"Encrypted balance must be {ENCRYPTED_BALANCE_SIZE} bytes, got {len(raw)}",
            expected=ENCRYPTED_BALANCE_SIZE,
            actual=len(raw),
        )
    ct = _ciphertext_at(raw, 0)
    return ct.c1, ct.c2


def parse_user_balance(data: Union[bytes, EncryptedBalance]) -> Dict[str, Dict[str, str]]:
    """Decimal-string points as the circuit expects them."""
    c1, c2 = decode_encrypted_balance(data)
    return {"x1": c1.to_circuit(), "x2": c2.to_circuit()}


@dataclass(frozen=True)
class DepositLayout:
    """Named view of a 416-byte deposit/withdraw buffer."""
    sender_public_key: Point
    old_balance: Ciphertext
    sender_address: str
    token: str
    revealed_amount: int
    new_balance: Ciphertext


@dataclass(frozen=True)
class TransferLayout:
    """Named view of a 704-byte transfer buffer."""
    receiver_address: str
    receiver_public_key: Point
    receiver_old_balance: Ciphertext
    sender_public_key: Point
    sender_old_balance: Ciphertext
    token: str
    sender_new_balance: Ciphertext
    receiver_new_balance: Ciphertext


def _check_size(data: bytes, size: int, layout: str) -> None:
    if len(data) != size:
        raise MalformedPublicInputsError(
            f"{layout} layout must be {size} bytes, got {len(data)}",
            expected=size,
            actual=len(data),
        )


def decode_deposit_layout(data: bytes) -> DepositLayout:
    _check_size(data, DEPOSIT_LAYOUT_SIZE, "Deposit")
    return DepositLayout(
        sender_public_key=_point_at(data, 0),
        old_balance=_ciphertext_at(data, 64),
        sender_address=field_to_address(_word(data, 192) & _ADDRESS_MASK),
        token=field_to_address(_word(data, 224) & _ADDRESS_MASK),
        revealed_amount=_word(data, 256),
        new_balance=_ciphertext_at(data, 288),
    )


def decode_transfer_layout(data: bytes) -> TransferLayout:
    _check_size(data, TRANSFER_LAYOUT_SIZE, "Transfer")
    if any(data[0:12]) or any(data[416:428]):
        raise MalformedPublicInputsError("Transfer layout padding must be zero")
    return TransferLayout(
        receiver_address=field_to_address(_word(data, 0)),
        receiver_public_key=_point_at(data, 32),
        receiver_old_balance=_ciphertext_at(data, 96),
        sender_public_key=_point_at(data, 224),
        sender_old_balance=_ciphertext_at(data, 288),
        token=field_to_address(_word(data, 416)),
        sender_new_balance=_ciphertext_at(data, 448),
        receiver_new_balance=_ciphertext_at(data, 576),
    )


def layout_words(data: bytes) -> List[str]:
    """Hex dump of a layout buffer, one 32-byte word per entry."""
    return [
        "0x" + data[i:i + FIELD_ELEMENT_SIZE].hex()
        for i in range(0, len(data), FIELD_ELEMENT_SIZE)
    ]

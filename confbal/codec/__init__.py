"""
Confidential Balance Protocol Codec
"""

from confbal.codec.public_inputs import (
    parse_field_element,
    field_to_hex,
    address_to_field,
    field_to_address,
    encode_deposit_layout,
    encode_transfer_layout,
    decode_encrypted_balance,
    parse_user_balance,
    decode_deposit_layout,
    decode_transfer_layout,
    layout_words,
    DepositLayout,
    TransferLayout,
)

__all__ = [
    "parse_field_element",
    "field_to_hex",
    "address_to_field",
    "field_to_address",
    "encode_deposit_layout",
    "encode_transfer_layout",
    "decode_encrypted_balance",
    "parse_user_balance",
    "decode_deposit_layout",
    "decode_transfer_layout",
    "layout_words",
    "DepositLayout",
    "TransferLayout",
]

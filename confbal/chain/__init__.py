"""
Confidential Balance Protocol Chain Access
"""

from confbal.chain.rpc import (
    RpcClient,
    BALANCE_OF_ENC_SELECTOR,
    function_selector,
    encode_balance_of_enc,
    decode_balance_result,
)

__all__ = [
    "RpcClient",
    "BALANCE_OF_ENC_SELECTOR",
    "function_selector",
    "encode_balance_of_enc",
    "decode_balance_result",
]

"""
Balance Recovery

Turns an on-chain encrypted balance back into a display string. Balances
are stored in hundredths, so 1234 is shown as "12.34".
"""

from __future__ import annotations
import logging
from typing import Optional, Union

from confbal.codec.public_inputs import FieldLike
from confbal.constants import BALANCE_DISPLAY_DECIMALS, MAX_BALANCE
from confbal.core.types import Ciphertext, EncryptedBalance
from confbal.crypto.elgamal import Scalar, decrypt
from confbal.chain.rpc import RpcClient
from confbal.errors import DecryptionFailedError, WrongPrivateKeyError

logger = logging.getLogger(__name__)

ZERO_DISPLAY = "0." + "0" * BALANCE_DISPLAY_DECIMALS


def format_balance(value: int, decimals: int = BALANCE_DISPLAY_DECIMALS) -> str:
    """Fixed-point display of an integer amount of 10^-decimals units."""
    if value < 0:
        raise ValueError(f"balance must be non-negative: {value}")
    digits = str(value).rjust(decimals + 1, "0")
    return f"{digits[:-decimals]}.{digits[-decimals:]}"


def recover_balance(
    encrypted_balance: Union[EncryptedBalance, Ciphertext, bytes],
    private_key: Scalar,
    max_value: int = MAX_BALANCE,
    baby_steps: Optional[int] = None,
) -> str:
    """
    Decrypt a balance for display.

    The never-funded marker (c2.x == 0) is "0.00" without any search.

    Raises:
        WrongPrivateKeyError: If no balance in [0, max_value] matches
        MalformedPublicInputsError / ValueError: If the bytes are not a
            128-byte balance
    """
    if isinstance(encrypted_balance, Ciphertext):
        ciphertext = encrypted_balance
    else:
        balance = encrypted_balance
        if not isinstance(balance, EncryptedBalance):
            balance = EncryptedBalance(bytes(balance))
        if balance.is_zero:
            return ZERO_DISPLAY
        ciphertext = balance.to_ciphertext()

    if ciphertext.is_zero:
        return ZERO_DISPLAY

    try:
        value = decrypt(ciphertext, private_key, max_value, baby_steps)
    except DecryptionFailedError as e:
        logger.warning(f"Balance search exhausted up to {e.bound}")
        raise WrongPrivateKeyError(e.bound) from e
    return format_balance(value)


class BalanceReader:
    """
    Fetches on-chain balances and recovers their plaintext.

    Args:
        rpc: RpcClient bound to the token contract
        max_balance: Discrete-log search bound
        baby_steps: Optional BSGS table size cap
    """

    def __init__(self, rpc: RpcClient, max_balance: int = MAX_BALANCE,
                 baby_steps: Optional[int] = None):
        self.rpc = rpc
        self.max_balance = max_balance
        self.baby_steps = baby_steps

    async def fetch_and_recover(self, token: FieldLike, user: FieldLike,
                                private_key: Scalar) -> str:
        balance = await self.rpc.balance_of_enc(token, user)
        return recover_balance(balance, private_key, self.max_balance, self.baby_steps)

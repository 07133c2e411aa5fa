"""
Confidential Balance Protocol Balance Recovery
"""

from confbal.balance.recovery import (
    BalanceReader,
    format_balance,
    recover_balance,
    ZERO_DISPLAY,
)

__all__ = [
    "BalanceReader",
    "format_balance",
    "recover_balance",
    "ZERO_DISPLAY",
]

"""
Transaction construction for deposit accounts.
"""

from .tx_builder import NETWORK_PASSPHRASES, DepositTransactionBuilder

__all__ = [
    "DepositTransactionBuilder",
    "NETWORK_PASSPHRASES",
]

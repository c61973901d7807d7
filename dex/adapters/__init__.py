"""
dex/adapters/ - On-chain module adapters.

Adapters:
- contracts: entry/view function builders (amm, clob, router, custom_coin)
- views: view result parsers (untyped JSON -> snapshots)
"""

from dex.adapters.contracts import (
    AmmContract,
    ClobContract,
    ContractAddresses,
    CustomCoinContract,
    RouterContract,
)

__all__ = [
    "AmmContract",
    "ClobContract",
    "ContractAddresses",
    "CustomCoinContract",
    "RouterContract",
]

"""
dex/venue.py - Uniform price view over AMM and CLOB snapshots.

VenuePrice = AmmVenue | ClobVenue. Both expose `kind` and `mid_price()`
so the arbitrage engine compares venues without duck-typing snapshots.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from core.constants import VenueKind
from core.models import OrderBookSnapshot, PoolSnapshot
from dex import amm, orderbook


@dataclass(frozen=True)
class AmmVenue:
    pool: PoolSnapshot
    base: Optional[str] = None  # defaults to token_x

    @property
    def kind(self) -> VenueKind:
        return VenueKind.AMM

    def mid_price(self) -> Optional[Decimal]:
        if self.base is None:
            return amm.mid_price(self.pool)
        return amm.price_of(self.pool, self.base)


@dataclass(frozen=True)
class ClobVenue:
    book: OrderBookSnapshot

    @property
    def kind(self) -> VenueKind:
        return VenueKind.CLOB

    def mid_price(self) -> Optional[Decimal]:
        return orderbook.mid_price(self.book)


VenuePrice = Union[AmmVenue, ClobVenue]


def venue_for(snapshot: Union[PoolSnapshot, OrderBookSnapshot], base: Optional[str] = None) -> VenuePrice:
    """Wrap a raw snapshot in its venue variant."""
    if isinstance(snapshot, PoolSnapshot):
        return AmmVenue(pool=snapshot, base=base)
    if isinstance(snapshot, OrderBookSnapshot):
        return ClobVenue(book=snapshot)
    raise TypeError(f"Not a venue snapshot: {type(snapshot).__name__}")

# PATH: strategy/__init__.py
"""Strategy package for DUET: arbitrage detection, routing, config."""

from strategy.arbitrage import (
    MarketPair,
    OpportunityBoard,
    detect_opportunities,
    summarize_opportunities,
)
from strategy.routing import RouteDescriptor, canonical_order, choose_route

__all__ = [
    "MarketPair",
    "OpportunityBoard",
    "detect_opportunities",
    "summarize_opportunities",
    "RouteDescriptor",
    "canonical_order",
    "choose_route",
]

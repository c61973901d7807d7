#!/usr/bin/env python3
"""
strategy/jobs/run_monitor.py - CLI entrypoint for cross-venue monitoring.

Fetches pool reserves and order book depth for every configured market,
ranks AMM/CLOB opportunities and logs them. Read-only: nothing is signed
or submitted.

Usage:
    python -m strategy.jobs.run_monitor --once
    python -m strategy.jobs.run_monitor --config config/strategy.yaml
"""

import asyncio
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import click

from chains.client import NodeClient
from core.exceptions import DuetError
from core.format_money import format_money, format_pct
from core.logging import get_logger, log_error, log_opportunity, set_global_context, setup_logging
from core.models import ArbitrageOpportunity, PoolKey, Token
from core.time import now_ms
from discovery.registry import TokenRegistry, load_token_registry
from dex.adapters.contracts import AmmContract, ClobContract, load_contract_addresses
from strategy.arbitrage import MarketPair, OpportunityBoard, detect_opportunities, summarize_opportunities
from strategy.config import MarketConfig, StrategyConfig, load_strategy_config
from strategy.jobs.refresh import RefreshScope

logger = get_logger("duet.monitor")


@dataclass(frozen=True)
class WatchedMarket:
    """Configured market resolved against the token registry."""
    base: Token
    quote: Token
    key: PoolKey

    @property
    def label(self) -> str:
        return f"{self.base.symbol}/{self.quote.symbol}"

    @property
    def decimals_x(self) -> int:
        return self.base.decimals if self.key.token_x == self.base.address else self.quote.decimals

    @property
    def decimals_y(self) -> int:
        return self.quote.decimals if self.key.token_y == self.quote.address else self.base.decimals


def resolve_markets(markets: List[MarketConfig], registry: TokenRegistry) -> List[WatchedMarket]:
    resolved = []
    for market in markets:
        base = registry.require(market.base)
        quote = registry.require(market.quote)
        resolved.append(
            WatchedMarket(
                base=base,
                quote=quote,
                key=PoolKey.from_pair(base.address, quote.address, market.fee_tier),
            )
        )
    return resolved


class Monitor:
    """One scan = fetch every market, rank, publish a new board."""

    def __init__(
        self,
        client: NodeClient,
        markets: List[WatchedMarket],
        config: StrategyConfig,
        amm: Optional[AmmContract] = None,
        clob: Optional[ClobContract] = None,
    ):
        self.client = client
        self.markets = markets
        self.config = config
        self.amm = amm or AmmContract()
        self.clob = clob or ClobContract()
        self.board = OpportunityBoard(max_age_ms=int(config.refresh.arbitrage_seconds * 1000))

    async def fetch_pair(self, market: WatchedMarket) -> MarketPair:
        """Snapshots for one market; a failed fetch leaves that side empty."""
        pool = book = None
        try:
            pool = await self.client.fetch_pool(self.amm, market.key, market.decimals_x, market.decimals_y)
            book = await self.client.fetch_order_book(
                self.clob,
                market.base.address,
                market.quote.address,
                self.config.thresholds.depth_levels,
                market.base.decimals,
            )
        except DuetError as e:
            log_error(logger, e.code.value, e.message, market=market.label)
        return MarketPair(pool=pool, book=book, label=market.label)

    async def scan(self) -> List[ArbitrageOpportunity]:
        pairs = [await self.fetch_pair(market) for market in self.markets]
        stamp = now_ms()
        ranked = detect_opportunities(
            pairs,
            notional_cap=self.config.thresholds.notional_cap,
            min_margin_pct=self.config.thresholds.min_margin_pct,
            detected_at_ms=stamp,
        )
        self.board = self.board.updated(ranked, computed_at_ms=stamp)

        for opp in ranked:
            log_opportunity(
                logger,
                opp.pair,
                format_pct(opp.margin_pct),
                format_money(opp.profit_potential),
                opp.direction.value,
                amount=str(opp.recommended_amount),
            )
        stats = summarize_opportunities(ranked)
        logger.info(
            f"Scan complete: {stats.count} opportunities",
            extra={"context": {"markets": len(self.markets), **stats.to_dict()}},
        )
        return ranked


async def run_monitor(monitor: Monitor, once: bool, interval_seconds: float) -> None:
    if once:
        await monitor.scan()
        return

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with RefreshScope() as scope:
        scope.every("arbitrage", interval_seconds, monitor.scan)
        await stop.wait()
    logger.info("Monitor loop terminated")


@click.command()
@click.option("--once", is_flag=True, help="Run a single scan and exit")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None,
              help="Strategy YAML (default: config/strategy.yaml)")
@click.option("--tokens", "tokens_path", type=click.Path(exists=True, path_type=Path), default=None,
              help="Tokens YAML (default: config/tokens.yaml)")
@click.option("--node-url", default=None, help="Node REST URL (default: DUET_NODE_URL or testnet)")
@click.option("--log-level", "-l", default="INFO", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]))
@click.option("--json-logs/--no-json-logs", default=True)
def main(
    once: bool,
    config_path: Optional[Path],
    tokens_path: Optional[Path],
    node_url: Optional[str],
    log_level: str,
    json_logs: bool,
) -> None:
    """DUET monitor - ranked AMM/CLOB opportunities from live venue data."""
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="duet-monitor")

    try:
        config = load_strategy_config(config_path)
        registry = load_token_registry(tokens_path)
        markets = resolve_markets(config.markets, registry)
    except DuetError as e:
        log_error(logger, e.code.value, e.message, **e.details)
        sys.exit(1)

    addresses = load_contract_addresses()

    async def run() -> None:
        async with NodeClient(node_url) as client:
            monitor = Monitor(client, markets, config, AmmContract(addresses), ClobContract(addresses))
            logger.info(
                "Starting DUET monitor",
                extra={"context": {
                    "node_url": client.node_url,
                    "markets": [m.label for m in markets],
                    "once": once,
                }},
            )
            try:
                await run_monitor(monitor, once, config.refresh.arbitrage_seconds)
            finally:
                logger.info("Node stats", extra={"context": client.get_stats_summary()})

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Monitor interrupted")


if __name__ == "__main__":
    main()

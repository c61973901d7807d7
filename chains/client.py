"""
chains/client.py - Node REST client for view calls, and the signer boundary.

Provides:
- NodeClient: POST {node_url}/view over a pooled httpx.AsyncClient
- Request statistics (latency, success rate, last error)
- Signer protocol for the external wallet

The client never signs or submits transactions. Submission goes through
a Signer supplied by the wallet integration.
"""

import os
import time
from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

import httpx
from dotenv import load_dotenv

from core.exceptions import ErrorCode, InfraError
from core.logging import get_logger
from core.models import OrderBookSnapshot, PoolKey, PoolSnapshot, TxReceipt, TxRequest, ViewRequest
from dex.adapters import views
from dex.adapters.contracts import AmmContract, ClobContract

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_NODE_URL = "https://fullnode.testnet.aptoslabs.com/v1"


@runtime_checkable
class Signer(Protocol):
    """External wallet: signs and submits one transaction request."""

    async def sign_and_submit(self, request: TxRequest) -> TxReceipt:
        ...


@dataclass
class NodeStats:
    """Statistics for the node endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None
    last_success_ts: int | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


def resolve_node_url(node_url: str | None = None) -> str:
    """Explicit URL, else DUET_NODE_URL, else the public testnet node."""
    url = node_url or os.getenv("DUET_NODE_URL") or DEFAULT_NODE_URL
    return url.rstrip("/")


class NodeClient:
    """
    Read-only node access.

    Usage:
        client = NodeClient()
        result = await client.view(amm.get_pool_reserves(x, y, 5))
        await client.close()
    """

    def __init__(
        self,
        node_url: str | None = None,
        timeout_seconds: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.node_url = resolve_node_url(node_url)
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.stats = NodeStats(url=self.node_url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "NodeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _fail(self, code: ErrorCode, message: str, request: ViewRequest) -> InfraError:
        self.stats.failed_requests += 1
        self.stats.last_error = message
        logger.debug(f"View call failed: {request.function}: {message}")
        return InfraError(
            code=code,
            message=message,
            details={"url": self.node_url, "function": request.function},
        )

    async def view(self, request: ViewRequest) -> list:
        """
        Execute a view function.

        Returns:
            The JSON array of return values (untyped; see dex/adapters/views.py)

        Raises:
            InfraError: timeout, transport error, non-2xx status, non-array body
        """
        client = await self._get_client()
        self.stats.total_requests += 1
        start_ms = int(time.time() * 1000)

        try:
            resp = await client.post(f"{self.node_url}/view", json=request.to_body())
        except httpx.TimeoutException:
            latency_ms = int(time.time() * 1000) - start_ms
            raise self._fail(ErrorCode.INFRA_TIMEOUT, f"Timeout after {latency_ms}ms", request)
        except httpx.HTTPError as e:
            raise self._fail(ErrorCode.INFRA_HTTP_ERROR, f"HTTP error: {e}", request)

        latency_ms = int(time.time() * 1000) - start_ms

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400:
            detail = body.get("message") if isinstance(body, dict) else resp.text[:200]
            raise self._fail(
                ErrorCode.VIEW_CALL_FAILED,
                f"View call rejected ({resp.status_code}): {detail}",
                request,
            )

        if not isinstance(body, list):
            raise self._fail(ErrorCode.VIEW_CALL_FAILED, "View response is not a JSON array", request)

        self.stats.successful_requests += 1
        self.stats.total_latency_ms += latency_ms
        self.stats.last_success_ts = int(time.time() * 1000)
        return body

    async def fetch_pool(
        self,
        amm: AmmContract,
        key: PoolKey,
        decimals_x: int,
        decimals_y: int,
    ) -> Optional[PoolSnapshot]:
        """Pool reserves as a snapshot, or None when the result is malformed."""
        result = await self.view(amm.get_pool_reserves(key.token_x, key.token_y, key.fee_tier))
        return views.parse_pool_reserves(
            result,
            key,
            decimals_x=decimals_x,
            decimals_y=decimals_y,
            timestamp_ms=int(time.time() * 1000),
        )

    async def fetch_order_book(
        self,
        clob: ClobContract,
        base: str,
        quote: str,
        levels: int,
        base_decimals: int,
    ) -> Optional[OrderBookSnapshot]:
        """Depth snapshot, or None when malformed, crossed or unordered."""
        result = await self.view(clob.get_order_book_depth(base, quote, levels))
        return views.parse_order_book_depth(
            result,
            base,
            quote,
            base_decimals=base_decimals,
            timestamp_ms=int(time.time() * 1000),
        )

    def get_stats_summary(self) -> dict:
        """Get statistics summary."""
        return {
            "url": self.stats.url,
            "total_requests": self.stats.total_requests,
            "success_rate": round(self.stats.success_rate, 3),
            "avg_latency_ms": self.stats.avg_latency_ms,
            "last_error": self.stats.last_error,
        }

"""Fee-market data sources for EVM chains."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from web3 import AsyncWeb3

from payrouter.models.types import Chain

logger = structlog.get_logger()


@dataclass(frozen=True)
class FeeData:
    """Fee data for one chain, in wei per gas unit.

    Attributes:
        max_fee_per_gas: EIP-1559 fee cap (None on chains without a base fee)
        gas_price: Legacy gas price
    """

    max_fee_per_gas: int | None = None
    gas_price: int | None = None

    @property
    def native_fee_per_unit(self) -> int | None:
        """Fee-market-aware price if present, else the legacy one."""
        if self.max_fee_per_gas:
            return self.max_fee_per_gas
        if self.gas_price:
            return self.gas_price
        return None


class FeeDataSource(Protocol):
    """Protocol for fee data lookups. Implementations may raise on any failure."""

    async def get_fee_data(self, chain: Chain) -> FeeData: ...


class Web3FeeDataSource:
    """Reads fee data from EVM JSON-RPC endpoints via web3.

    maxFeePerGas is derived the way wallets do it: twice the latest base fee
    plus the node's suggested priority fee.
    """

    def __init__(self, rpc_urls: Mapping[Chain, str]) -> None:
        self._rpc_urls = dict(rpc_urls)
        self._clients: dict[Chain, AsyncWeb3] = {}

    def _client(self, chain: Chain) -> AsyncWeb3:
        client = self._clients.get(chain)
        if client is not None:
            return client
        url = self._rpc_urls.get(chain)
        if not url:
            raise LookupError(f"No RPC URL configured for {chain.value}")
        client = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(url))
        self._clients[chain] = client
        return client

    async def get_fee_data(self, chain: Chain) -> FeeData:
        w3 = self._client(chain)
        block: Any = await w3.eth.get_block("latest")
        gas_price = int(await w3.eth.gas_price)

        base_fee = block.get("baseFeePerGas") if hasattr(block, "get") else None
        if base_fee is None:
            return FeeData(gas_price=gas_price)

        priority_fee = int(await w3.eth.max_priority_fee)
        return FeeData(max_fee_per_gas=2 * int(base_fee) + priority_fee, gas_price=gas_price)


__all__ = ["FeeData", "FeeDataSource", "Web3FeeDataSource"]

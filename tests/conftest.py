"""Pytest configuration, fakes and fixtures.

The fakes stand in for the network-facing collaborators (price feeds, RPC
fee data, liquidity providers) so components can be wired exactly as in
production through their constructors.
"""

from collections.abc import Mapping

import pytest

from payrouter.cache import MemoryCache
from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.constants import BridgeProvider
from payrouter.errors import PriceSourceError
from payrouter.gas.estimator import GasEstimator
from payrouter.gas.fee_data import FeeData
from payrouter.graph.builder import LiquidityGraph
from payrouter.graph.liquidity import BridgeLiquidity, PoolLiquidity, StaticLiquiditySource
from payrouter.models.types import Chain, Confidence, normalize_symbol
from payrouter.pricing.oracle import PriceOracle
from payrouter.pricing.sources import StaticPriceSource
from payrouter.pricing.types import PriceObservation
from payrouter.routing.engine import RoutingEngine
from payrouter.routing.optimizer import RouteOptimizer
from tests.helpers.constants import GWEI, START_TIME, TEST_PRICES

# =============================================================================
# Mock classes for dependency injection
# =============================================================================


class FakeClock:
    """Manually advanced clock.

    Usage:
        clock = FakeClock()
        oracle = PriceOracle(..., clock=clock)
        clock.advance(61)
    """

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePriceSource:
    """Price source with a fixed table.

    Usage:
        # Live-looking source that knows a few symbols
        source = FakePriceSource(prices={"ETH": 2000.0})

        # Source that fails for specific symbols
        source = FakePriceSource(failing={"STX"})
    """

    def __init__(
        self,
        prices: Mapping[str, float] | None = None,
        name: str = "fake-live",
        priority: int = 1,
        confidence: Confidence = Confidence.HIGH,
        failing: set[str] | None = None,
        clock: FakeClock | None = None,
    ) -> None:
        prices = TEST_PRICES if prices is None else prices
        self.prices = {normalize_symbol(k): v for k, v in prices.items()}
        self.name = name
        self.priority = priority
        self.confidence = confidence
        self.failing = {normalize_symbol(s) for s in (failing or set())}
        self.clock = clock
        self.calls: list[str] = []  # Track calls for assertions

    async def fetch_price(self, symbol: str) -> PriceObservation:
        key = normalize_symbol(symbol)
        self.calls.append(key)
        if key in self.failing:
            raise PriceSourceError(f"{self.name} unavailable for {key}")
        if key not in self.prices:
            raise PriceSourceError(f"{self.name} has no data for {key}")
        updated_at = self.clock() if self.clock is not None else START_TIME
        return PriceObservation(price=self.prices[key], updated_at=updated_at)


class FakeFeeDataSource:
    """Fee data source returning fixed per-chain values, or raising.

    Usage:
        fee_data = FakeFeeDataSource({Chain.ETHEREUM: FeeData(gas_price=20 * GWEI)})
        broken = FakeFeeDataSource(error=TimeoutError("rpc down"))
    """

    def __init__(
        self,
        fee_data: Mapping[Chain, FeeData] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.fee_data = dict(fee_data or {})
        self.error = error
        self.calls: list[Chain] = []

    async def get_fee_data(self, chain: Chain) -> FeeData:
        self.calls.append(chain)
        if self.error is not None:
            raise self.error
        if chain not in self.fee_data:
            raise LookupError(f"No fee data for {chain.value}")
        return self.fee_data[chain]


class CountingLiquiditySource(StaticLiquiditySource):
    """Static liquidity tables that record lookups and can fail selected providers."""

    def __init__(self, failing_providers: set[str] | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.failing_providers = failing_providers or set()
        self.pool_calls: list[tuple[Chain, str, str, str]] = []
        self.bridge_calls: list[tuple[Chain, Chain, str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.pool_calls) + len(self.bridge_calls)

    async def pool_liquidity(
        self, chain: Chain, token_a: str, token_b: str, provider: str
    ) -> PoolLiquidity:
        self.pool_calls.append((chain, token_a, token_b, provider))
        if provider in self.failing_providers:
            raise ConnectionError(f"{provider} unreachable")
        return await super().pool_liquidity(chain, token_a, token_b, provider)

    async def bridge_liquidity(
        self, from_chain: Chain, to_chain: Chain, token: str, provider: str
    ) -> BridgeLiquidity:
        self.bridge_calls.append((from_chain, to_chain, token, provider))
        if provider in self.failing_providers:
            raise ConnectionError(f"{provider} unreachable")
        return await super().bridge_liquidity(from_chain, to_chain, token, provider)


# =============================================================================
# Configuration
# =============================================================================

# One bridge (0.1%) from ethereum to stacks and one DEX per chain (0.3%)
SINGLE_BRIDGE_CONFIG: RouterConfig = DEFAULT_ROUTER_CONFIG.with_overrides(
    bridge_providers=(BridgeProvider("allbridge", (Chain.ETHEREUM, Chain.STACKS)),),
    dex_providers={Chain.ETHEREUM: ("uniswap",), Chain.STACKS: ("velar",)},
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> MemoryCache:
    return MemoryCache(clock=clock)


@pytest.fixture
def live_source(clock) -> FakePriceSource:
    return FakePriceSource(clock=clock)


@pytest.fixture
def fallback_source(clock) -> StaticPriceSource:
    return StaticPriceSource(clock=clock)


@pytest.fixture
def fee_data() -> FakeFeeDataSource:
    """20 gwei on ethereum, 0.1 gwei on arbitrum; other chains have no RPC."""
    return FakeFeeDataSource(
        {
            Chain.ETHEREUM: FeeData(max_fee_per_gas=20 * GWEI, gas_price=18 * GWEI),
            Chain.ARBITRUM: FeeData(gas_price=GWEI // 10),
        }
    )


@pytest.fixture
def config() -> RouterConfig:
    return SINGLE_BRIDGE_CONFIG


@pytest.fixture
def liquidity() -> CountingLiquiditySource:
    return CountingLiquiditySource()


@pytest.fixture
def oracle(live_source, fallback_source, cache, config, clock) -> PriceOracle:
    return PriceOracle(
        sources=[live_source, fallback_source], cache=cache, config=config, clock=clock
    )


@pytest.fixture
def gas_estimator(oracle, fee_data, config, clock) -> GasEstimator:
    return GasEstimator(oracle, fee_data=fee_data, config=config, clock=clock)


@pytest.fixture
def graph(oracle, gas_estimator, liquidity, cache, config, clock) -> LiquidityGraph:
    return LiquidityGraph(
        oracle,
        gas_estimator,
        liquidity_source=liquidity,
        cache=cache,
        config=config,
        clock=clock,
    )


@pytest.fixture
def engine(oracle, gas_estimator, graph, config) -> RoutingEngine:
    return RoutingEngine(oracle, gas_estimator, graph, RouteOptimizer(config.max_hops), config)

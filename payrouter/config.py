"""Router configuration.

RouterConfig is built once at startup and validated eagerly: unknown chains,
native tokens without a fallback price and a settlement chain without the
settlement token are rejected here rather than during a lookup.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from payrouter.constants import (
    BRIDGE_PROVIDERS,
    BRIDGE_TOKENS,
    CHAINS,
    DEX_PROVIDERS,
    FALLBACK_PRICES_USD,
    SETTLEMENT_CHAIN,
    SETTLEMENT_TOKEN,
    TOKENS,
    BridgeProvider,
    ChainInfo,
    TokenInfo,
)
from payrouter.errors import ConfigurationError
from payrouter.models.types import Chain, Confidence, normalize_symbol

DEFAULT_STALENESS_THRESHOLDS: dict[Confidence, float] = {
    Confidence.HIGH: 60.0,
    Confidence.MEDIUM: 300.0,
    Confidence.LOW: 900.0,
}


@dataclass(frozen=True)
class RouterConfig:
    """Centralized configuration for the routing engine.

    Attributes:
        max_hops: Longest path the optimizer will enumerate
        slippage_cap: Upper bound on modeled swap slippage (fraction)
        reference_notional_usd: Trade size used to annotate edges with cost/slippage
        graph_freshness_seconds: A cached graph younger than this is reused verbatim
        graph_cache_ttl_seconds: TTL of a published graph in the shared cache
        price_cache_ttl_seconds: TTL of a price in the shared cache
        gas_price_cache_seconds: Per-chain lifetime of a fetched gas price
        fetch_timeout_seconds: Deadline for any single external call
        quote_validity_seconds: How long a quote may be honoured
        price_refresh_interval_seconds: Period of the background price refresh
        staleness_thresholds: Maximum age of a cached price per confidence tier
        settlement_chain: Chain holding the destination stable token
        settlement_token: Default destination token
    """

    max_hops: int = 4
    slippage_cap: float = 0.10
    reference_notional_usd: float = 1000.0
    graph_freshness_seconds: float = 60.0
    graph_cache_ttl_seconds: int = 120
    price_cache_ttl_seconds: int = 300
    gas_price_cache_seconds: float = 30.0
    fetch_timeout_seconds: float = 10.0
    quote_validity_seconds: float = 30.0
    price_refresh_interval_seconds: float = 30.0
    staleness_thresholds: Mapping[Confidence, float] = field(
        default_factory=lambda: dict(DEFAULT_STALENESS_THRESHOLDS)
    )

    settlement_chain: Chain = SETTLEMENT_CHAIN
    settlement_token: str = SETTLEMENT_TOKEN

    chains: Mapping[Chain, ChainInfo] = field(default_factory=lambda: dict(CHAINS))
    tokens: Mapping[Chain, Mapping[str, TokenInfo]] = field(default_factory=lambda: dict(TOKENS))
    dex_providers: Mapping[Chain, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEX_PROVIDERS)
    )
    bridge_providers: tuple[BridgeProvider, ...] = BRIDGE_PROVIDERS
    bridge_tokens: tuple[str, ...] = BRIDGE_TOKENS
    fallback_prices: Mapping[str, float] = field(default_factory=lambda: dict(FALLBACK_PRICES_USD))

    rpc_urls: Mapping[Chain, str] = field(default_factory=dict)
    coinmarketcap_api_key: str | None = None
    redis_url: str | None = None

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if self.max_hops < 1:
            raise ConfigurationError(f"max_hops must be >= 1, got {self.max_hops}")
        if not 0.0 < self.slippage_cap <= 1.0:
            raise ConfigurationError(f"slippage_cap must be in (0, 1], got {self.slippage_cap}")
        if self.reference_notional_usd <= 0:
            raise ConfigurationError("reference_notional_usd must be positive")
        if self.fetch_timeout_seconds <= 0:
            raise ConfigurationError("fetch_timeout_seconds must be positive")

        missing_tiers = set(Confidence) - set(self.staleness_thresholds)
        if missing_tiers:
            raise ConfigurationError(
                f"Missing staleness thresholds for {sorted(t.value for t in missing_tiers)}"
            )

        for chain in (
            *self.tokens,
            *self.dex_providers,
            *self.rpc_urls,
            *(c for bridge in self.bridge_providers for c in bridge.chains),
        ):
            if not isinstance(chain, Chain):
                raise ConfigurationError(f"Unknown chain in configuration: {chain!r}")
            if chain not in self.chains:
                raise ConfigurationError(f"No chain parameters for {chain.value}")

        for chain, chain_tokens in self.tokens.items():
            for symbol, info in chain_tokens.items():
                if info.symbol != symbol:
                    raise ConfigurationError(
                        f"Token key {symbol} on {chain.value} does not match symbol {info.symbol}"
                    )
                if not 0 <= info.decimals <= 77:
                    raise ConfigurationError(f"Invalid decimals for {chain.value}:{symbol}")

        fallback_symbols = {normalize_symbol(s) for s in self.fallback_prices}
        for chain, info in self.chains.items():
            if normalize_symbol(info.native_token) not in fallback_symbols:
                raise ConfigurationError(
                    f"Native token {info.native_token} of {chain.value} has no fallback price"
                )

        if self.settlement_token not in self.tokens.get(self.settlement_chain, {}):
            raise ConfigurationError(
                f"Settlement token {self.settlement_token} is not configured "
                f"on {self.settlement_chain.value}"
            )
        if not self.dex_providers.get(self.settlement_chain):
            raise ConfigurationError(
                f"No DEX providers configured on settlement chain {self.settlement_chain.value}"
            )

    def token_info(self, chain: Chain, symbol: str) -> TokenInfo | None:
        return self.tokens.get(chain, {}).get(symbol)

    def native_token(self, chain: Chain) -> str:
        return self.chains[chain].native_token

    def is_evm(self, chain: Chain) -> bool:
        return self.chains[chain].evm

    def with_overrides(self, **changes: object) -> "RouterConfig":
        """Return a validated copy with some fields replaced."""
        return replace(self, **changes)  # type: ignore[arg-type]

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RouterConfig":
        """Build a config from environment variables.

        Recognised variables:
        - PAYROUTER_MAX_HOPS, PAYROUTER_SLIPPAGE_CAP, PAYROUTER_FETCH_TIMEOUT
        - PAYROUTER_QUOTE_VALIDITY
        - COINMARKETCAP_API_KEY, REDIS_URL
        - <CHAIN>_RPC_URL for every EVM chain (e.g. ETHEREUM_RPC_URL)
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        if "PAYROUTER_MAX_HOPS" in env:
            overrides["max_hops"] = int(env["PAYROUTER_MAX_HOPS"])
        if "PAYROUTER_SLIPPAGE_CAP" in env:
            overrides["slippage_cap"] = float(env["PAYROUTER_SLIPPAGE_CAP"])
        if "PAYROUTER_FETCH_TIMEOUT" in env:
            overrides["fetch_timeout_seconds"] = float(env["PAYROUTER_FETCH_TIMEOUT"])
        if "PAYROUTER_QUOTE_VALIDITY" in env:
            overrides["quote_validity_seconds"] = float(env["PAYROUTER_QUOTE_VALIDITY"])

        rpc_urls = {
            chain: env[f"{chain.value.upper()}_RPC_URL"]
            for chain, info in CHAINS.items()
            if info.evm and env.get(f"{chain.value.upper()}_RPC_URL")
        }

        return cls(
            rpc_urls=rpc_urls,
            coinmarketcap_api_key=env.get("COINMARKETCAP_API_KEY") or None,
            redis_url=env.get("REDIS_URL") or None,
            **overrides,  # type: ignore[arg-type]
        )


DEFAULT_ROUTER_CONFIG = RouterConfig()

"""Token USD pricing: ranked sources and the caching PriceOracle."""

from payrouter.pricing.oracle import PriceOracle, default_price_sources
from payrouter.pricing.sources import (
    CoinGeckoSource,
    CoinMarketCapSource,
    PriceSource,
    StaticPriceSource,
)
from payrouter.pricing.types import CachedPrice, PriceObservation, TokenPrice

__all__ = [
    "PriceOracle",
    "default_price_sources",
    "PriceSource",
    "CoinGeckoSource",
    "CoinMarketCapSource",
    "StaticPriceSource",
    "CachedPrice",
    "PriceObservation",
    "TokenPrice",
]

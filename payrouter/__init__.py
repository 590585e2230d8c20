"""Cross-chain payment router - route search and cost oracles."""

from payrouter.config import RouterConfig
from payrouter.errors import (
    GraphBuildFailure,
    NoRouteFound,
    PriceUnavailable,
    QuoteExpired,
    RouterError,
)
from payrouter.models import PaymentIntent, Quote, Route, RouteStep
from payrouter.routing import QuoteService, RoutingEngine, get_default_engine

__version__ = "0.1.0"
__all__ = [
    "RouterConfig",
    "RouterError",
    "GraphBuildFailure",
    "NoRouteFound",
    "PriceUnavailable",
    "QuoteExpired",
    "PaymentIntent",
    "Quote",
    "Route",
    "RouteStep",
    "QuoteService",
    "RoutingEngine",
    "get_default_engine",
    "__version__",
]

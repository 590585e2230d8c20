from payrouter.routing.engine import RoutingEngine, get_default_engine, rank_key
from payrouter.routing.optimizer import RouteOptimizer, classify_route
from payrouter.routing.quote import QuoteService

__all__ = [
    "RoutingEngine",
    "get_default_engine",
    "rank_key",
    "RouteOptimizer",
    "classify_route",
    "QuoteService",
]

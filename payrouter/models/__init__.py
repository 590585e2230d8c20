"""Pydantic models for payment intents, routes and quotes."""

from payrouter.models.intent import DEFAULT_DESTINATION_TOKEN, PaymentIntent
from payrouter.models.route import Quote, Route, RouteStep
from payrouter.models.types import (
    BaseUnits,
    Chain,
    Confidence,
    RouteStatus,
    RouteType,
    TxType,
    node_id,
    normalize_symbol,
)

__all__ = [
    # Types
    "BaseUnits",
    "Chain",
    "Confidence",
    "RouteStatus",
    "RouteType",
    "TxType",
    "node_id",
    "normalize_symbol",
    # Intent
    "DEFAULT_DESTINATION_TOKEN",
    "PaymentIntent",
    # Routes
    "Quote",
    "Route",
    "RouteStep",
]

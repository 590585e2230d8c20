"""Time-limited quotes built on the routing engine."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from payrouter.errors import QuoteExpired
from payrouter.models.intent import PaymentIntent
from payrouter.models.route import Quote
from payrouter.routing.engine import RoutingEngine

logger = structlog.get_logger()

MAX_QUOTED_ROUTES = 3


class QuoteService:
    """Prices a payment intent and attaches the best routes.

    The quote deadline is fixed when the request arrives. A route that is
    only ready after the deadline is discarded rather than quoted.

    Args:
        engine: Routing engine
        clock: Source of the current time in seconds
        max_routes: Number of ranked routes included in the quote
    """

    def __init__(
        self,
        engine: RoutingEngine,
        clock: Callable[[], float] = time.time,
        max_routes: int = MAX_QUOTED_ROUTES,
    ) -> None:
        self.engine = engine
        self._clock = clock
        self.max_routes = max_routes

    async def get_quote(self, intent: PaymentIntent) -> Quote:
        """Quote `intent`.

        Raises:
            QuoteExpired: If routing finished after the validity window
            PriceUnavailable, NoRouteFound, GraphBuildFailure: From the engine
        """
        requested_at = self._clock()
        expires_at = requested_at + self.engine.config.quote_validity_seconds
        logger.info(
            "quote_requested",
            intent_id=intent.id,
            source_chain=intent.source_chain.value,
            source_token=intent.source_token,
            amount=intent.amount,
            destination_token=intent.destination_token,
        )

        source = self.engine.graph.source_node(intent)
        input_usd = await self.engine.price_oracle.base_units_to_usd(
            source.token, intent.amount, source.decimals
        )
        routes = await self.engine.rank_routes(intent)

        finished_at = self._clock()
        if finished_at >= expires_at:
            logger.warning(
                "quote_expired",
                intent_id=intent.id,
                elapsed_seconds=round(finished_at - requested_at, 3),
            )
            raise QuoteExpired(
                f"Route for intent {intent.id} computed after quote deadline "
                f"({finished_at - requested_at:.1f}s elapsed)"
            )

        best = routes[0]
        quote = Quote(
            payment_intent_id=intent.id,
            input_amount=intent.amount,
            input_token=intent.source_token,
            input_chain=intent.source_chain,
            input_amount_usd=input_usd,
            output_token=intent.destination_token,
            output_amount_usd=input_usd - best.total_cost_usd,
            routes=routes[: self.max_routes],
            best_route=best,
            expires_at=datetime.fromtimestamp(expires_at, UTC),
            created_at=datetime.fromtimestamp(requested_at, UTC),
        )
        logger.info(
            "quote_created",
            quote_id=quote.id,
            intent_id=intent.id,
            input_amount_usd=round(input_usd, 6),
            output_amount_usd=round(quote.output_amount_usd, 6),
            route_type=best.route_type.value,
        )
        return quote


__all__ = ["QuoteService", "MAX_QUOTED_ROUTES"]

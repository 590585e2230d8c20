"""Tests for QuoteService."""

from datetime import UTC, datetime

import pytest

from payrouter.errors import QuoteExpired
from payrouter.models.types import Chain, RouteType
from payrouter.routing.quote import QuoteService
from tests.helpers.constants import START_TIME
from tests.helpers.factories import make_intent


class SlowClock:
    """Clock that jumps forward every time it is read."""

    def __init__(self, step: float) -> None:
        self.now = START_TIME
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class TestGetQuote:
    """Quotes carry the input value, best route and a 30s expiry."""

    @pytest.mark.asyncio
    async def test_quote_fields(self, engine, clock):
        intent = make_intent()

        quote = await QuoteService(engine, clock=clock).get_quote(intent)

        assert quote.payment_intent_id == intent.id
        assert quote.input_amount == "100000000"
        assert quote.input_chain == Chain.ETHEREUM
        assert quote.input_amount_usd == pytest.approx(100.0)
        assert quote.output_token == "USDh"
        assert quote.best_route.route_type == RouteType.BRIDGE
        assert quote.routes[0] == quote.best_route
        assert quote.output_amount_usd == pytest.approx(100.0 - quote.best_route.total_cost_usd)
        assert quote.expires_at == datetime.fromtimestamp(START_TIME + 30, UTC)

    @pytest.mark.asyncio
    async def test_routes_limited(self, engine, clock):
        quote = await QuoteService(engine, clock=clock, max_routes=2).get_quote(make_intent())
        assert len(quote.routes) <= 2

    @pytest.mark.asyncio
    async def test_quote_not_expired_at_creation(self, engine):
        quote = await QuoteService(engine).get_quote(make_intent())
        assert not quote.is_expired()

    @pytest.mark.asyncio
    async def test_late_route_discarded(self, engine):
        """Routing that finishes after the deadline raises instead of quoting."""
        with pytest.raises(QuoteExpired):
            await QuoteService(engine, clock=SlowClock(step=31)).get_quote(make_intent())

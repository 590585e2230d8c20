"""API endpoints for the payment router."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from payrouter.errors import USER_FACING_ERRORS
from payrouter.models.intent import PaymentIntent
from payrouter.models.route import Quote
from payrouter.routing.engine import RoutingEngine, get_default_engine
from payrouter.routing.quote import QuoteService

logger = structlog.get_logger()

router = APIRouter()


def get_engine() -> RoutingEngine:
    """Dependency provider for the routing engine.

    Override this in tests to inject an engine wired to fakes:
        app.dependency_overrides[get_engine] = lambda: engine

    Returns:
        The routing engine to quote with.
    """
    return get_default_engine()


@router.post("/quote", response_model=Quote, response_model_by_alias=True)
async def quote(
    intent: PaymentIntent,
    engine: RoutingEngine = Depends(get_engine),
) -> Quote:
    """Quote a payment intent.

    Error Handling:
        - Invalid request schema: 422 Validation Error (Pydantic)
        - No price, no route or expired quote: 422 with the reason
        - Anything else: logged with traceback, 500
    """
    try:
        return await QuoteService(engine).get_quote(intent)
    except USER_FACING_ERRORS as e:
        logger.info("quote_rejected", intent_id=intent.id, reason=type(e).__name__, detail=str(e))
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.exception("quote_failed", intent_id=intent.id)
        raise HTTPException(status_code=500, detail="Internal routing error") from e

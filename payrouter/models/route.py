"""Pydantic models for routes, route steps and quotes.

A Route is serialized as-is for quote persistence and later execution
dispatch, so field aliases follow the camelCase wire format.
"""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator

from payrouter.models.types import BaseUnits, Chain, Fraction, RouteStatus, RouteType, TxType


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RouteStep(BaseModel):
    """One hop of a route: a single swap, bridge or transfer."""

    type: TxType
    from_chain: Chain = Field(alias="fromChain")
    to_chain: Chain = Field(alias="toChain")
    from_token: str = Field(alias="fromToken")
    to_token: str = Field(alias="toToken")
    from_token_address: str | None = Field(default=None, alias="fromTokenAddress")
    to_token_address: str | None = Field(default=None, alias="toTokenAddress")
    amount: BaseUnits = Field(default="0", description="Input amount in base units.")
    provider: str
    gas_estimate: float = Field(default=0.0, alias="gasEstimate", description="Gas in USD.")
    fee: float = Field(default=0.0, description="Provider fee in USD.")
    estimated_slippage: Fraction | None = Field(default=None, alias="estimatedSlippage")

    model_config = {"populate_by_name": True}

    @property
    def from_node_id(self) -> str:
        return f"{self.from_chain.value}:{self.from_token}"

    @property
    def to_node_id(self) -> str:
        return f"{self.to_chain.value}:{self.to_token}"

    @property
    def edge_id(self) -> str:
        """Identity of the graph edge this step traverses."""
        return f"{self.from_node_id}->{self.to_node_id}:{self.provider}"


class Route(BaseModel):
    """A candidate execution plan from the intent's source to the settlement token.

    Invariants (checked on construction):
    - steps is non-empty
    - consecutive steps chain: steps[i].to == steps[i + 1].from
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    payment_intent_id: str = Field(default="", alias="paymentIntentId")
    route_type: RouteType = Field(alias="routeType")
    steps: list[RouteStep] = Field(min_length=1)
    estimated_gas_cost_usd: float = Field(default=0.0, alias="estimatedGasCostUSD")
    estimated_slippage: float = Field(default=0.0, alias="estimatedSlippage")
    estimated_time_seconds: float = Field(default=0.0, alias="estimatedTimeSeconds")
    total_cost_usd: float = Field(default=0.0, alias="totalCostUSD")
    status: RouteStatus = RouteStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_steps_chain(self) -> "Route":
        for prev, nxt in zip(self.steps, self.steps[1:], strict=False):
            if prev.to_node_id != nxt.from_node_id:
                raise ValueError(
                    f"Route steps do not chain: {prev.to_node_id} != {nxt.from_node_id}"
                )
        return self

    @property
    def hop_count(self) -> int:
        return len(self.steps)

    @property
    def signature(self) -> str:
        """Stable textual identity of the path, used as the last sort key."""
        return "|".join(step.edge_id for step in self.steps)

    @property
    def node_ids(self) -> list[str]:
        """Node ids visited by the route, in order."""
        return [self.steps[0].from_node_id] + [step.to_node_id for step in self.steps]


class Quote(BaseModel):
    """A priced route offered to the payer for a limited time."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    payment_intent_id: str = Field(alias="paymentIntentId")
    input_amount: BaseUnits = Field(alias="inputAmount")
    input_token: str = Field(alias="inputToken")
    input_chain: Chain = Field(alias="inputChain")
    input_amount_usd: float = Field(alias="inputAmountUSD")
    output_token: str = Field(alias="outputToken")
    output_amount_usd: float = Field(alias="outputAmountUSD")
    routes: list[Route]
    best_route: Route = Field(alias="bestRoute")
    expires_at: datetime = Field(alias="expiresAt")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")

    model_config = {"populate_by_name": True}

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

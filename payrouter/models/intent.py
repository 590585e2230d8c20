"""Payment intent model supplied by the quote/payment flow."""

import uuid

from pydantic import BaseModel, Field

from payrouter.models.types import BaseUnits, Chain

DEFAULT_DESTINATION_TOKEN = "USDh"


class PaymentIntent(BaseModel):
    """A request to move `amount` of `source_token` into the settlement token."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source_chain: Chain = Field(alias="sourceChain")
    source_token: str = Field(alias="sourceToken", min_length=1)
    source_token_address: str | None = Field(default=None, alias="sourceTokenAddress")
    # Only needed for tokens missing from the configured token tables
    source_token_decimals: int | None = Field(
        default=None, alias="sourceTokenDecimals", ge=0, le=77
    )
    amount: BaseUnits = Field(description="Amount in source token base units.")
    destination_token: str = Field(default=DEFAULT_DESTINATION_TOKEN, alias="destinationToken")

    model_config = {"populate_by_name": True}

"""Price observation types."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from payrouter.models.types import Confidence


@dataclass(frozen=True)
class PriceObservation:
    """Raw result of one price source.

    Attributes:
        price: USD per whole token
        updated_at: Unix time at which the source last updated the price
    """

    price: float
    updated_at: float


class TokenPrice(BaseModel):
    """A USD price with its provenance.

    `timestamp` is when the underlying source last updated, not when it was
    fetched.
    """

    price: float = Field(gt=0)
    source: str
    timestamp: float
    confidence: Confidence


class CachedPrice(TokenPrice):
    """A TokenPrice wrapped with the time it entered the cache."""

    cached_at: float = Field(alias="cachedAt")

    model_config = {"populate_by_name": True}

    def to_price(self) -> TokenPrice:
        return TokenPrice(
            price=self.price,
            source=self.source,
            timestamp=self.timestamp,
            confidence=self.confidence,
        )

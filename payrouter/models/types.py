"""Shared type definitions for routing models.

Chain identity is a closed enum. Token identity is a symbol string that is
checked against the configured token tables at load time.
"""

from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, Field


class Chain(str, Enum):
    """Chains known to the router."""

    ETHEREUM = "ethereum"
    ARBITRUM = "arbitrum"
    BASE = "base"
    POLYGON = "polygon"
    OPTIMISM = "optimism"
    STACKS = "stacks"
    SOLANA = "solana"
    BITCOIN = "bitcoin"


class TxType(str, Enum):
    """Kind of on-chain operation; also the kind of a graph edge."""

    SWAP = "swap"
    BRIDGE = "bridge"
    TRANSFER = "transfer"


class RouteType(str, Enum):
    """Shape of a route, derived from its steps."""

    DIRECT = "direct"
    BRIDGE = "bridge"
    MULTI_HOP = "multi_hop"


class RouteStatus(str, Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class Confidence(str, Enum):
    """Confidence tier of a price observation."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def validate_base_units(value: Any) -> str:
    """Validate a non-negative integer amount expressed in token base units.

    Amounts travel as decimal strings so that 18-decimal balances never pass
    through a float.

    Args:
        value: Value to validate (string or int)

    Returns:
        The amount as a decimal string

    Raises:
        ValueError: If value is not a non-negative decimal integer
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a decimal integer, got bool")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Amount cannot be negative: {value}")
        return str(value)

    if not isinstance(value, str):
        raise ValueError(f"Amount must be string or int, got {type(value).__name__}")

    try:
        int_value = int(value)
    except ValueError as err:
        raise ValueError(f"Amount must be a decimal integer string: '{value}'") from err

    if int_value < 0:
        raise ValueError(f"Amount cannot be negative: {value}")

    return str(int_value)


# Integer amount in base units, as decimal string (validated)
BaseUnits = Annotated[
    str,
    BeforeValidator(validate_base_units),
    Field(description="Integer token amount in base units, as decimal string"),
]

# Fraction in [0, 1]
Fraction = Annotated[float, Field(ge=0.0, le=1.0)]


def node_id(chain: Chain | str, token: str) -> str:
    """Composite identity of a (chain, token) graph node."""
    chain_value = chain.value if isinstance(chain, Chain) else chain
    return f"{chain_value}:{token}"


def normalize_symbol(symbol: str) -> str:
    """Canonical form of a token symbol for price and cache lookups."""
    return symbol.strip().upper()

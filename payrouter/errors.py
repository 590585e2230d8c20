"""Router error classes.

Only failures that make the overall computation meaningless reach callers.
Per-source and per-edge failures are absorbed and logged where they occur.
"""


class RouterError(Exception):
    """Base error for routing operations."""

    pass


class ConfigurationError(RouterError):
    """Chain, token or provider tables are inconsistent."""

    pass


class PriceUnavailable(RouterError):
    """Every price source, including the fallback table, failed for a symbol."""

    def __init__(self, symbol: str, detail: str | None = None) -> None:
        self.symbol = symbol
        message = f"No price available for {symbol}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NoRouteFound(RouterError):
    """The built graph has no path from source to destination within the hop bound."""

    def __init__(self, source: str, destination: str, max_hops: int) -> None:
        self.source = source
        self.destination = destination
        self.max_hops = max_hops
        super().__init__(f"No route from {source} to {destination} within {max_hops} hops")


class GraphBuildFailure(RouterError):
    """Mandatory structural edges could not be constructed."""

    pass


class QuoteExpired(RouterError):
    """A route arrived after its quote's validity window closed."""

    pass


class PriceSourceError(RouterError):
    """A single price source could not produce a price; the next one is tried."""

    pass


# Errors that mean "cannot quote this payment right now" rather than a fault
USER_FACING_ERRORS: tuple[type[RouterError], ...] = (PriceUnavailable, NoRouteFound, QuoteExpired)

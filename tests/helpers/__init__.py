"""Test helpers module for shared test utilities.

- constants: Prices, amounts and the fake clock epoch
- factories: Intent, node and edge factory functions
"""

from tests.helpers.constants import GWEI, START_TIME, TEST_PRICES, USDC_100
from tests.helpers.factories import make_edge, make_intent, make_node

__all__ = [
    # Constants
    "GWEI",
    "START_TIME",
    "TEST_PRICES",
    "USDC_100",
    # Factories
    "make_intent",
    "make_node",
    "make_edge",
]

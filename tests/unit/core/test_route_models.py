"""Tests for intent, route and quote models."""

import pytest
from pydantic import ValidationError

from payrouter.models.intent import PaymentIntent
from payrouter.models.route import Route, RouteStep
from payrouter.models.types import Chain, RouteType, TxType


def make_step(from_token="USDC", to_token="USDh", **kwargs) -> RouteStep:
    defaults = {
        "type": TxType.SWAP,
        "from_chain": Chain.STACKS,
        "to_chain": Chain.STACKS,
        "from_token": from_token,
        "to_token": to_token,
        "provider": "velar",
    }
    defaults.update(kwargs)
    return RouteStep(**defaults)


class TestPaymentIntent:
    def test_camel_case_input(self):
        intent = PaymentIntent.model_validate(
            {"sourceChain": "arbitrum", "sourceToken": "USDC", "amount": 5}
        )
        assert intent.source_chain == Chain.ARBITRUM
        assert intent.amount == "5"
        assert intent.destination_token == "USDh"

    @pytest.mark.parametrize("amount", ["-1", "1.5", "abc", True, 1.5])
    def test_invalid_amounts(self, amount):
        with pytest.raises(ValidationError):
            PaymentIntent(source_chain=Chain.ETHEREUM, source_token="USDC", amount=amount)

    def test_large_amount_kept_exact(self):
        amount = "123456789012345678901234567890"
        intent = PaymentIntent(source_chain=Chain.ETHEREUM, source_token="WETH", amount=amount)
        assert intent.amount == amount


class TestRoute:
    def test_steps_must_chain(self):
        with pytest.raises(ValidationError, match="do not chain"):
            Route(
                route_type=RouteType.MULTI_HOP,
                steps=[make_step("USDC", "STX"), make_step("USDT", "USDh")],
            )

    def test_steps_required(self):
        with pytest.raises(ValidationError):
            Route(route_type=RouteType.DIRECT, steps=[])

    def test_signature_and_nodes(self):
        route = Route(
            route_type=RouteType.MULTI_HOP,
            steps=[make_step("USDC", "STX"), make_step("STX", "USDh", provider="alex")],
        )
        assert route.node_ids == ["stacks:USDC", "stacks:STX", "stacks:USDh"]
        assert route.signature == "stacks:USDC->stacks:STX:velar|stacks:STX->stacks:USDh:alex"

    def test_serializes_with_wire_aliases(self):
        route = Route(route_type=RouteType.DIRECT, steps=[make_step(estimated_slippage=0.01)])

        data = route.model_dump(by_alias=True, mode="json")

        assert data["routeType"] == "direct"
        assert "totalCostUSD" in data and "estimatedGasCostUSD" in data
        assert data["steps"][0]["estimatedSlippage"] == 0.01
        assert data["steps"][0]["amount"] == "0"

"""Tests for FeeData and the web3-backed fee source."""

import pytest

from payrouter.gas.fee_data import FeeData, Web3FeeDataSource
from payrouter.models.types import Chain


class TestFeeData:
    """native_fee_per_unit picks the fee-market field first."""

    def test_prefers_max_fee(self):
        assert FeeData(max_fee_per_gas=30, gas_price=20).native_fee_per_unit == 30

    def test_legacy_fallback(self):
        assert FeeData(gas_price=20).native_fee_per_unit == 20

    def test_empty(self):
        assert FeeData().native_fee_per_unit is None


class TestWeb3FeeDataSource:
    """Client construction and the missing-URL failure."""

    @pytest.mark.asyncio
    async def test_missing_rpc_url_raises(self):
        source = Web3FeeDataSource({})
        with pytest.raises(LookupError):
            await source.get_fee_data(Chain.ETHEREUM)

    def test_client_reused_per_chain(self):
        source = Web3FeeDataSource({Chain.ETHEREUM: "http://localhost:8545"})
        assert source._client(Chain.ETHEREUM) is source._client(Chain.ETHEREUM)

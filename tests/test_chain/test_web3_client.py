"""Tests for Web3ChainClient with the contract and eth module mocked out.

No RPC traffic: the AsyncWeb3 provider is constructed but never used.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3 import AsyncWeb3

from reserve_sampler.chain.abi import AGGREGATED_RESERVE_DATA_COMPONENTS
from reserve_sampler.chain.web3_client import Web3ChainClient
from reserve_sampler.config import ChainSettings, MarketSettings

MARKET = MarketSettings()


def _struct(symbol: str) -> tuple:
    values = {c["name"]: 0 for c in AGGREGATED_RESERVE_DATA_COMPONENTS}
    values.update(
        {
            "underlyingAsset": "0x4200000000000000000000000000000000000006",
            "name": symbol,
            "symbol": symbol,
            "decimals": 18,
        }
    )
    return tuple(values[c["name"]] for c in AGGREGATED_RESERVE_DATA_COMPONENTS)


@pytest.fixture
def client() -> Web3ChainClient:
    return Web3ChainClient(ChainSettings(), MARKET.ui_pool_data_provider)


class TestGetReservesData:
    @pytest.mark.asyncio
    async def test_calls_contract_at_block(self, client: Web3ChainClient) -> None:
        call = AsyncMock(return_value=([_struct("WETH"), _struct("USDC")], (1, 2, 3, 8)))
        contract = MagicMock()
        contract.functions.getReservesData.return_value.call = call
        client._data_provider = contract

        batch = await client.get_reserves_data(MARKET.pool_addresses_provider, 28_539_010)

        contract.functions.getReservesData.assert_called_once_with(
            AsyncWeb3.to_checksum_address(MARKET.pool_addresses_provider)
        )
        call.assert_awaited_once_with(block_identifier=28_539_010)
        assert [r.symbol for r in batch.reserves] == ["WETH", "USDC"]
        assert batch.base_currency.network_base_token_price_in_usd == 3

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, client: Web3ChainClient) -> None:
        contract = MagicMock()
        contract.functions.getReservesData.return_value.call = AsyncMock(
            side_effect=ConnectionError("refused")
        )
        client._data_provider = contract

        with pytest.raises(ConnectionError):
            await client.get_reserves_data(MARKET.pool_addresses_provider, 1)


class TestBlockSource:
    @pytest.mark.asyncio
    async def test_block_timestamp(self, client: Web3ChainClient) -> None:
        eth = MagicMock()
        eth.get_block = AsyncMock(return_value={"number": 5, "timestamp": 1_735_000_000})
        client._w3 = MagicMock(eth=eth)

        assert await client.get_block_timestamp(5) == 1_735_000_000
        eth.get_block.assert_awaited_once_with(5)


class TestConnect:
    @pytest.mark.asyncio
    async def test_rejects_wrong_chain(self) -> None:
        client = Web3ChainClient(ChainSettings(chain_id=8453), MARKET.ui_pool_data_provider)

        async def _chain_id() -> int:
            return 1

        eth = MagicMock()
        type(eth).chain_id = property(lambda self: _chain_id())
        client._w3 = MagicMock(eth=eth)

        with pytest.raises(ValueError, match="expected 8453"):
            await client.connect()

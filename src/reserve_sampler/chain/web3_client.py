"""web3.py implementation of the chain interfaces.

Wraps AsyncWeb3 over HTTP. Contract reads are pinned to the requested block
so a snapshot reflects state at that block, not at the current head.
"""

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3

from reserve_sampler.chain.abi import UI_POOL_DATA_PROVIDER_ABI
from reserve_sampler.chain.client import BlockSource, ReserveDataSource
from reserve_sampler.chain.parser import parse_reserves_data
from reserve_sampler.config import ChainSettings
from reserve_sampler.logging import get_logger
from reserve_sampler.models import ReserveBatch

logger = get_logger(__name__)


class Web3ChainClient(ReserveDataSource, BlockSource):
    """AsyncWeb3 client bound to one UiPoolDataProviderV3 deployment."""

    def __init__(self, settings: ChainSettings, ui_pool_data_provider: str) -> None:
        self._settings = settings
        provider = AsyncHTTPProvider(
            settings.rpc_url,
            request_kwargs={
                "timeout": aiohttp.ClientTimeout(total=settings.request_timeout)
            },
        )
        self._w3 = AsyncWeb3(provider)
        self._data_provider = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(ui_pool_data_provider),
            abi=UI_POOL_DATA_PROVIDER_ABI,
        )

    @property
    def w3(self) -> AsyncWeb3:
        """Access the underlying AsyncWeb3 instance."""
        return self._w3

    async def connect(self) -> None:
        """Verify the endpoint serves the configured chain."""
        chain_id = await self._w3.eth.chain_id
        if chain_id != self._settings.chain_id:
            raise ValueError(
                f"RPC endpoint serves chain {chain_id}, expected {self._settings.chain_id}"
            )
        logger.info("chain_connected", chain_id=chain_id)

    async def close(self) -> None:
        """Release the provider's HTTP session."""
        await self._w3.provider.disconnect()
        logger.info("chain_connection_closed")

    async def get_reserves_data(
        self, pool_addresses_provider: str, block_number: int
    ) -> ReserveBatch:
        result = await self._data_provider.functions.getReservesData(
            AsyncWeb3.to_checksum_address(pool_addresses_provider)
        ).call(block_identifier=block_number)
        batch = parse_reserves_data(result)
        logger.debug(
            "reserves_data_fetched",
            block_number=block_number,
            reserves=len(batch.reserves),
        )
        return batch

    async def get_block_number(self) -> int:
        return await self._w3.eth.block_number

    async def get_block_timestamp(self, block_number: int) -> int:
        block = await self._w3.eth.get_block(block_number)
        return int(block["timestamp"])

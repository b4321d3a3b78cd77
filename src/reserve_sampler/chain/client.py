"""Abstract chain interfaces.

ReserveDataSource is the only capability the fetch path depends on: one
read-only batched query. BlockSource serves the interval trigger. Concrete
transports implement one or both, keeping web3 details out of the sampler.
"""

from abc import ABC, abstractmethod

from reserve_sampler.models import ReserveBatch


class ReserveDataSource(ABC):
    """Read-only batched reserve query."""

    @abstractmethod
    async def get_reserves_data(
        self, pool_addresses_provider: str, block_number: int
    ) -> ReserveBatch:
        """Return every reserve of the market and the base currency info at a block."""
        ...


class BlockSource(ABC):
    """Chain head and block header access."""

    @abstractmethod
    async def get_block_number(self) -> int:
        """Return the latest block number."""
        ...

    @abstractmethod
    async def get_block_timestamp(self, block_number: int) -> int:
        """Return the Unix timestamp (seconds) of a block."""
        ...

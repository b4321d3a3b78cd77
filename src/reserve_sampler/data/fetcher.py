"""Retry-protected reserve fetch for one block.

Issues exactly one batched getReservesData query per attempt, so RPC cost
per sampled block is constant regardless of how many reserves the market
lists. Transport errors are normalized to TransientFetchError and retried
under the configured RetryPolicy; exhaustion surfaces as FetchExhausted.
"""

import asyncio

from reserve_sampler.chain.client import ReserveDataSource
from reserve_sampler.exceptions import TransientFetchError
from reserve_sampler.logging import get_logger
from reserve_sampler.models import ReserveBatch
from reserve_sampler.retry import DEFAULT_POLICY, RetryPolicy, SleepFn, retry_async

logger = get_logger(__name__)


class ReserveFetcher:
    """Fetches the full reserve list and base currency info at a block.

    Usage:
        fetcher = ReserveFetcher(chain_client, pool_addresses_provider)
        batch = await fetcher.fetch_all(block_number)
    """

    def __init__(
        self,
        source: ReserveDataSource,
        pool_addresses_provider: str,
        policy: RetryPolicy = DEFAULT_POLICY,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._source = source
        self._pool_addresses_provider = pool_addresses_provider
        self._policy = policy
        self._sleep = sleep

    async def fetch_all(self, block_number: int) -> ReserveBatch:
        """Return the reserves (in contract order) and base currency at a block.

        Raises:
            FetchExhausted: every attempt failed.
        """

        async def _attempt() -> ReserveBatch:
            try:
                return await self._source.get_reserves_data(
                    self._pool_addresses_provider, block_number
                )
            except Exception as e:
                raise TransientFetchError(
                    f"getReservesData failed at block {block_number}: {e}"
                ) from e

        batch = await retry_async(
            _attempt,
            self._policy,
            sleep=self._sleep,
            retry_on=(TransientFetchError,),
            description="fetch_reserves_data",
        )
        logger.debug(
            "reserves_fetched",
            block_number=block_number,
            reserves=len(batch.reserves),
        )
        return batch

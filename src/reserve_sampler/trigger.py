"""Block-interval trigger -- fires the sampler every N blocks.

Uses head polling over the chain client's BlockSource. Sample blocks are
start_block, start_block + interval, start_block + 2 * interval, ... and are
dispatched in ascending order, one at a time, as soon as the head reaches
them. A handler is awaited to completion before the next block is
dispatched.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from reserve_sampler.chain.client import BlockSource
from reserve_sampler.logging import get_logger
from reserve_sampler.models import BlockEvent

logger = get_logger(__name__)

BlockHandler = Callable[[BlockEvent], Awaitable[Any]]


def first_sample_block(at_or_after: int, start_block: int, interval: int) -> int:
    """Return the first sample block >= at_or_after on the start/interval grid."""
    if at_or_after <= start_block:
        return start_block
    offset = at_or_after - start_block
    steps = -(-offset // interval)  # ceil division
    return start_block + steps * interval


class BlockIntervalTrigger:
    """Polls the chain head and dispatches every interval-th block.

    Args:
        blocks: Head and header source.
        handler: Coroutine invoked once per sample block.
        start_block: First block to sample.
        block_interval: Distance between sampled blocks.
        poll_interval: Seconds to wait between head polls.
        max_blocks_per_poll: Upper bound on blocks dispatched per poll so a
            long catch-up does not starve the stop signal.
    """

    def __init__(
        self,
        blocks: BlockSource,
        handler: BlockHandler,
        start_block: int,
        block_interval: int,
        poll_interval: float = 2.0,
        max_blocks_per_poll: int = 50,
    ) -> None:
        if block_interval < 1:
            raise ValueError("block_interval must be at least 1")
        self._blocks = blocks
        self._handler = handler
        self._start_block = start_block
        self._interval = block_interval
        self._poll_interval = poll_interval
        self._max_blocks_per_poll = max_blocks_per_poll
        self._next_block = start_block
        self._running = False
        self._dispatching = False
        self._stopping = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def next_block(self) -> int:
        """The next block that will be dispatched."""
        return self._next_block

    @property
    def is_running(self) -> bool:
        return self._running

    def resume_after(self, block_number: int | None) -> None:
        """Skip ahead past a block that has already been sampled."""
        if block_number is None:
            return
        self._next_block = max(
            self._next_block,
            first_sample_block(block_number + 1, self._start_block, self._interval),
        )
        logger.info("trigger_resumed", next_block=self._next_block)

    async def start(self) -> None:
        """Begin polling in the background."""
        if self._running:
            logger.warning("block_trigger_already_running")
            return
        self._running = True
        self._stopping = False
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "block_trigger_started",
            next_block=self._next_block,
            interval=self._interval,
            poll_interval=self._poll_interval,
        )

    async def stop(self) -> None:
        """Stop polling.

        A handler that is already running is awaited to completion and no
        further block is dispatched. Only the head poll and the sleep between
        polls are cancelled.
        """
        self._running = False
        self._stopping = True
        if self._task is not None:
            if not self._dispatching:
                self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("block_trigger_stopped", next_block=self._next_block)

    async def run_forever(self) -> None:
        """Start and block until stop() is called from elsewhere."""
        await self.start()
        assert self._task is not None
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except Exception:
                logger.warning("block_trigger_poll_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._poll_interval)

    async def poll_once(self) -> int:
        """Dispatch every due sample block up to the current head.

        Returns the number of blocks dispatched. A handler failure is logged
        and the block is not retried.
        """
        head = await self._blocks.get_block_number()
        dispatched = 0

        while (
            self._next_block <= head
            and dispatched < self._max_blocks_per_poll
            and not self._stopping
        ):
            block_number = self._next_block
            timestamp = await self._blocks.get_block_timestamp(block_number)
            event = BlockEvent(block_number=block_number, block_timestamp=timestamp)
            self._dispatching = True
            try:
                await self._handler(event)
            except Exception:
                logger.error(
                    "block_handler_failed",
                    block_number=block_number,
                    exc_info=True,
                )
            finally:
                self._dispatching = False
            self._next_block = block_number + self._interval
            dispatched += 1

        if dispatched:
            logger.debug(
                "block_trigger_dispatched",
                head=head,
                dispatched=dispatched,
                next_block=self._next_block,
            )
        return dispatched

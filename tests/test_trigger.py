"""Tests for BlockIntervalTrigger and sample block arithmetic.

The block source is an AsyncMock; poll_once is driven directly so tests do
not depend on the background loop's timing.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from reserve_sampler.chain.client import BlockSource
from reserve_sampler.models import BlockEvent
from reserve_sampler.trigger import BlockIntervalTrigger, first_sample_block


@pytest.fixture
def blocks() -> AsyncMock:
    source = AsyncMock(spec=BlockSource)
    source.get_block_timestamp.side_effect = lambda n: 1_700_000_000 + 2 * n
    return source


@pytest.fixture
def handled() -> list[BlockEvent]:
    return []


@pytest.fixture
def handler(handled: list[BlockEvent]):
    async def _handle(event: BlockEvent) -> None:
        handled.append(event)

    return _handle


class TestFirstSampleBlock:
    @pytest.mark.parametrize(
        "at_or_after,expected",
        [
            (0, 100),
            (100, 100),
            (101, 110),
            (109, 110),
            (110, 110),
            (111, 120),
        ],
    )
    def test_grid(self, at_or_after: int, expected: int) -> None:
        assert first_sample_block(at_or_after, start_block=100, interval=10) == expected

    def test_interval_one(self) -> None:
        assert first_sample_block(12345, start_block=0, interval=1) == 12345


class TestPollOnce:
    @pytest.mark.asyncio
    async def test_head_before_start_dispatches_nothing(self, blocks, handler, handled) -> None:
        blocks.get_block_number.return_value = 99
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        assert await trigger.poll_once() == 0
        assert handled == []
        assert trigger.next_block == 100

    @pytest.mark.asyncio
    async def test_dispatches_every_interval_in_order(self, blocks, handler, handled) -> None:
        blocks.get_block_number.return_value = 135
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        assert await trigger.poll_once() == 4

        assert [e.block_number for e in handled] == [100, 110, 120, 130]
        assert handled[0] == BlockEvent(block_number=100, block_timestamp=1_700_000_200)
        assert trigger.next_block == 140

    @pytest.mark.asyncio
    async def test_does_not_repeat_blocks_across_polls(self, blocks, handler, handled) -> None:
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        blocks.get_block_number.return_value = 110
        await trigger.poll_once()
        blocks.get_block_number.return_value = 115
        await trigger.poll_once()
        blocks.get_block_number.return_value = 120
        await trigger.poll_once()

        assert [e.block_number for e in handled] == [100, 110, 120]

    @pytest.mark.asyncio
    async def test_caps_blocks_per_poll(self, blocks, handler, handled) -> None:
        blocks.get_block_number.return_value = 1_000
        trigger = BlockIntervalTrigger(
            blocks, handler, start_block=100, block_interval=10, max_blocks_per_poll=3
        )

        assert await trigger.poll_once() == 3
        assert trigger.next_block == 130

    @pytest.mark.asyncio
    async def test_handler_failure_is_not_retried(self, blocks, handled) -> None:
        calls: list[int] = []

        async def failing(event: BlockEvent) -> None:
            calls.append(event.block_number)
            raise RuntimeError("boom")

        blocks.get_block_number.return_value = 120
        trigger = BlockIntervalTrigger(blocks, failing, start_block=100, block_interval=10)

        assert await trigger.poll_once() == 3
        assert calls == [100, 110, 120]
        assert trigger.next_block == 130

    @pytest.mark.asyncio
    async def test_timestamp_failure_leaves_block_pending(self, blocks, handler, handled) -> None:
        blocks.get_block_number.return_value = 100
        blocks.get_block_timestamp.side_effect = ConnectionError("rpc")
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        with pytest.raises(ConnectionError):
            await trigger.poll_once()

        assert handled == []
        assert trigger.next_block == 100


class TestResume:
    def test_resume_after_latest_sampled_block(self, blocks, handler) -> None:
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        trigger.resume_after(150)

        assert trigger.next_block == 160

    def test_resume_off_grid_rounds_up(self, blocks, handler) -> None:
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        trigger.resume_after(153)

        assert trigger.next_block == 160

    def test_resume_with_empty_store_keeps_start(self, blocks, handler) -> None:
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        trigger.resume_after(None)

        assert trigger.next_block == 100

    def test_resume_never_moves_backwards(self, blocks, handler) -> None:
        trigger = BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=10)

        trigger.resume_after(50)

        assert trigger.next_block == 100

    def test_rejects_zero_interval(self, blocks, handler) -> None:
        with pytest.raises(ValueError):
            BlockIntervalTrigger(blocks, handler, start_block=100, block_interval=0)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, blocks, handler, handled) -> None:
        blocks.get_block_number.return_value = 110
        trigger = BlockIntervalTrigger(
            blocks, handler, start_block=100, block_interval=10, poll_interval=0.01
        )

        await trigger.start()
        assert trigger.is_running
        for _ in range(100):
            if len(handled) >= 2:
                break
            await asyncio.sleep(0.01)
        await trigger.stop()

        assert not trigger.is_running
        assert [e.block_number for e in handled] == [100, 110]

    @pytest.mark.asyncio
    async def test_poll_errors_keep_loop_alive(self, blocks, handler, handled) -> None:
        blocks.get_block_number.side_effect = [ConnectionError("rpc"), 100, 100, 100, 100]
        trigger = BlockIntervalTrigger(
            blocks, handler, start_block=100, block_interval=10, poll_interval=0.01
        )

        await trigger.start()
        for _ in range(100):
            if handled:
                break
            await asyncio.sleep(0.01)
        await trigger.stop()

        assert [e.block_number for e in handled] == [100]

    @pytest.mark.asyncio
    async def test_stop_lets_running_handler_finish(self, blocks) -> None:
        blocks.get_block_number.return_value = 200
        started = asyncio.Event()
        finished: list[int] = []

        async def _slow_handle(event: BlockEvent) -> None:
            started.set()
            await asyncio.sleep(0.05)
            finished.append(event.block_number)

        trigger = BlockIntervalTrigger(
            blocks, _slow_handle, start_block=100, block_interval=10, poll_interval=0.01
        )

        await trigger.start()
        await asyncio.wait_for(started.wait(), timeout=1)
        await trigger.stop()

        assert finished == [100]
        assert trigger.next_block == 110

    @pytest.mark.asyncio
    async def test_stop_while_idle_cancels_sleep(self, blocks, handler, handled) -> None:
        blocks.get_block_number.return_value = 50
        trigger = BlockIntervalTrigger(
            blocks, handler, start_block=100, block_interval=10, poll_interval=60
        )

        await trigger.start()
        await asyncio.sleep(0.01)
        await asyncio.wait_for(trigger.stop(), timeout=1)

        assert not trigger.is_running
        assert handled == []

"""Block sampler -- runs Fetch -> Compute -> Persist for one triggered block.

Each invocation is self-contained:
  1. FETCH: one retried batched query for every reserve at the block
  2. COMPUTE: derive metrics per reserve, in fetch order
  3. REPORT: render the metrics block to the line sink
  4. PERSIST: insert one snapshot row per reserve

Failure scopes differ by stage. A fetch that exhausts its retries ends the
invocation with nothing written for the block. A failed insert only costs
that reserve's row; the remaining reserves are still processed. Nothing but
cancellation escapes handle_block.
"""

import structlog

from reserve_sampler.data.fetcher import ReserveFetcher
from reserve_sampler.data.store import SnapshotStore
from reserve_sampler.exceptions import FetchExhausted, PersistenceError
from reserve_sampler.logging import get_logger
from reserve_sampler.metrics import build_snapshot, compute_metrics
from reserve_sampler.models import BlockEvent, BlockSummary, InvocationState, RawReserve
from reserve_sampler.reporting import (
    LineSink,
    emit,
    log_sink,
    render_base_currency,
    render_block_footer,
    render_block_header,
    render_reserve_report,
)

logger = get_logger(__name__)


class BlockSampler:
    """Samples every reserve of the market at a triggered block.

    Args:
        fetcher: Retry-protected reserve fetcher.
        store: Snapshot store receiving one row per reserve.
        sink: Line consumer for the rendered report. Defaults to the log.
    """

    def __init__(
        self,
        fetcher: ReserveFetcher,
        store: SnapshotStore,
        sink: LineSink = log_sink,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._sink = sink

    async def handle_block(self, event: BlockEvent) -> BlockSummary:
        """Sample one block and return what happened.

        Reserves are processed sequentially in the order the contract
        returned them.
        """
        summary = BlockSummary(block_number=event.block_number)

        with structlog.contextvars.bound_contextvars(block_number=event.block_number):
            summary.state = InvocationState.FETCHING
            self._report(render_block_header(event.block_number))

            try:
                batch = await self._fetcher.fetch_all(event.block_number)
            except FetchExhausted as e:
                summary.state = InvocationState.FETCH_FAILED
                summary.error = str(e)
                logger.error("block_fetch_failed", attempts=e.attempts, error=str(e))
                return summary
            except Exception as e:
                summary.state = InvocationState.FETCH_FAILED
                summary.error = str(e)
                logger.error("block_fetch_failed", error=str(e), exc_info=True)
                return summary

            summary.state = InvocationState.PROCESSING
            summary.reserves_fetched = len(batch.reserves)
            self._report(render_base_currency(batch.base_currency))

            for reserve in batch.reserves:
                if await self._process_reserve(reserve, event):
                    summary.persisted.append(reserve.underlying_asset)
                else:
                    summary.failed.append(reserve.underlying_asset)

            self._report(render_block_footer(event.block_number))
            summary.state = InvocationState.DONE

            logger.info(
                "block_sampled",
                block_timestamp=event.block_timestamp,
                reserves=summary.reserves_fetched,
                persisted=summary.persisted_count,
                failed=summary.failed_count,
            )
        return summary

    async def _process_reserve(self, reserve: RawReserve, event: BlockEvent) -> bool:
        """Compute, report and persist one reserve. Returns True if the row was written."""
        try:
            metrics = compute_metrics(reserve)
            snapshot = build_snapshot(metrics, event)
        except Exception as e:
            logger.error(
                "reserve_compute_failed",
                asset=reserve.underlying_asset,
                symbol=reserve.symbol,
                error=str(e),
                exc_info=True,
            )
            return False

        self._report(render_reserve_report(metrics))

        try:
            await self._store.insert_snapshot(snapshot)
        except PersistenceError as e:
            logger.warning(
                "snapshot_persist_failed",
                asset=reserve.underlying_asset,
                symbol=reserve.symbol,
                error=str(e),
            )
            return False
        except Exception as e:
            logger.error(
                "snapshot_persist_failed",
                asset=reserve.underlying_asset,
                symbol=reserve.symbol,
                error=str(e),
                exc_info=True,
            )
            return False
        return True

    def _report(self, lines: list[str]) -> None:
        try:
            emit(lines, self._sink)
        except Exception:
            logger.warning("report_sink_failed", exc_info=True)

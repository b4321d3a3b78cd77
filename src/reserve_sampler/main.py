"""Entry point for the reserve sampler.

Wires all components together, optionally serves the snapshot API, and
starts the block-interval trigger. When the API is enabled (default), the
trigger and the API share one asyncio event loop via uvicorn's programmatic
API and FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. SnapshotDatabase + SnapshotStore
4. Web3ChainClient (reserve query + block source)
5. ReserveFetcher (retry-protected fetch)
6. BlockSampler (fetch -> compute -> persist)
7. BlockIntervalTrigger (fires the sampler every N blocks)
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from reserve_sampler.chain.web3_client import Web3ChainClient
from reserve_sampler.config import AppSettings
from reserve_sampler.data.database import SnapshotDatabase
from reserve_sampler.data.fetcher import ReserveFetcher
from reserve_sampler.data.store import SnapshotStore
from reserve_sampler.logging import get_logger, setup_logging
from reserve_sampler.sampler import BlockSampler
from reserve_sampler.trigger import BlockIntervalTrigger


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all sampler components from settings.

    Note: Does NOT open the database or the RPC connection -- that happens
    in _startup().
    """
    database = SnapshotDatabase(settings.storage.db_path)
    store = SnapshotStore(database)

    chain_client = Web3ChainClient(
        settings.chain, settings.market.ui_pool_data_provider
    )

    fetcher = ReserveFetcher(
        chain_client,
        settings.market.pool_addresses_provider,
        policy=settings.retry.to_policy(),
    )

    sampler = BlockSampler(fetcher, store)

    trigger = BlockIntervalTrigger(
        blocks=chain_client,
        handler=sampler.handle_block,
        start_block=settings.market.start_block,
        block_interval=settings.market.block_interval,
        poll_interval=settings.trigger.poll_interval,
        max_blocks_per_poll=settings.trigger.max_blocks_per_poll,
    )

    return {
        "database": database,
        "store": store,
        "chain_client": chain_client,
        "fetcher": fetcher,
        "sampler": sampler,
        "trigger": trigger,
    }


async def _startup(components: dict[str, Any]) -> None:
    """Open the database and RPC connection, then resume the trigger."""
    await components["database"].connect()
    await components["chain_client"].connect()
    latest = await components["store"].get_latest_block()
    components["trigger"].resume_after(latest)


async def _shutdown(components: dict[str, Any]) -> None:
    await components["trigger"].stop()
    await components["chain_client"].close()
    await components["database"].close()


def _setup_signal_handlers(stop: Any) -> None:
    """Register SIGINT/SIGTERM to run the given stop coroutine function.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("reserve_sampler.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage sampler lifecycle within the FastAPI application."""
    logger = get_logger("reserve_sampler.main")
    components = app.state.components

    app.state.store = components["store"]
    app.state.trigger = components["trigger"]

    await _startup(components)
    await components["trigger"].start()

    logger.info("lifespan_started")

    yield

    await _shutdown(components)
    logger.info("reserve_sampler_stopped")


async def run() -> None:
    """Run the reserve sampler.

    When the API is enabled (API_ENABLED=true, the default), uvicorn serves
    the snapshot API and the lifespan manages the trigger. Otherwise the
    trigger runs directly until a shutdown signal arrives.
    """
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("reserve_sampler.main")

    components = _build_components(settings)

    if settings.api.enabled:
        from reserve_sampler.api.app import create_api_app

        app = create_api_app(lifespan=lifespan)
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.api.host,
            port=settings.api.port,
            start_block=settings.market.start_block,
            interval=settings.market.block_interval,
        )

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        logger.info(
            "starting_without_api",
            start_block=settings.market.start_block,
            interval=settings.market.block_interval,
        )
        trigger: BlockIntervalTrigger = components["trigger"]
        _setup_signal_handlers(trigger.stop)

        try:
            await _startup(components)
            await trigger.run_forever()
        finally:
            await _shutdown(components)
            logger.info("reserve_sampler_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()

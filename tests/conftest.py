"""Shared test fixtures for the reserve sampler."""

from dataclasses import replace

import pytest
import pytest_asyncio

from reserve_sampler.config import (
    AppSettings,
    ChainSettings,
    MarketSettings,
    RetrySettings,
    StorageSettings,
)
from reserve_sampler.data.database import SnapshotDatabase
from reserve_sampler.data.store import SnapshotStore
from reserve_sampler.models import BaseCurrencyInfo, RawReserve, ReserveBatch

USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
WETH = "0x4200000000000000000000000000000000000006"
CBBTC = "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf"


def make_reserve(**overrides) -> RawReserve:
    """Return a USDC-like reserve; keyword arguments override fields."""
    base = RawReserve(
        underlying_asset=USDC,
        symbol="USDC",
        decimals=6,
        price_in_market_reference_currency=100_000_000,  # $1.00
        available_liquidity=500_000_000,  # 500 USDC
        total_scaled_variable_debt=500_000_000,  # 500 USDC
        liquidity_rate=5 * 10**25,  # 5%
        variable_borrow_rate=8 * 10**25,  # 8%
        reserve_factor=1000,  # 10%
        base_ltv_as_collateral=7500,  # 75%
        reserve_liquidation_threshold=7800,  # 78%
        reserve_liquidation_bonus=10500,  # 105%
        borrowing_enabled=True,
        supply_cap=100,
        borrow_cap=90,
    )
    return replace(base, **overrides)


def make_batch(*reserves: RawReserve) -> ReserveBatch:
    return ReserveBatch(
        reserves=list(reserves),
        base_currency=BaseCurrencyInfo(
            market_reference_currency_price_in_usd=100_000_000,
            network_base_token_price_in_usd=350_000_000_000,  # $3500
        ),
    )


@pytest.fixture
def reserve() -> RawReserve:
    return make_reserve()


@pytest.fixture
def three_reserves() -> list[RawReserve]:
    return [
        make_reserve(),
        make_reserve(
            underlying_asset=WETH,
            symbol="WETH",
            decimals=18,
            price_in_market_reference_currency=350_000_000_000,
            available_liquidity=3 * 10**18,
            total_scaled_variable_debt=1 * 10**18,
        ),
        make_reserve(
            underlying_asset=CBBTC,
            symbol="cbBTC",
            decimals=8,
            price_in_market_reference_currency=6_000_000_000_000,
            available_liquidity=0,
            total_scaled_variable_debt=0,
            borrowing_enabled=False,
        ),
    ]


@pytest.fixture
def mock_settings(tmp_path) -> AppSettings:
    """Return AppSettings with test defaults (local db, zero retry delay)."""
    return AppSettings(
        log_level="DEBUG",
        chain=ChainSettings(rpc_url="http://localhost:8545"),
        market=MarketSettings(start_block=100, block_interval=10),
        retry=RetrySettings(max_attempts=3, initial_delay=0.0, multiplier=2.0),
        storage=StorageSettings(db_path=str(tmp_path / "snapshots.db")),
    )


@pytest_asyncio.fixture
async def database(tmp_path):
    """Connected SnapshotDatabase backed by a temporary file."""
    db = SnapshotDatabase(str(tmp_path / "snapshots.db"))
    await db.connect()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def store(database) -> SnapshotStore:
    return SnapshotStore(database)

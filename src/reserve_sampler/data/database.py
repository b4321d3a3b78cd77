"""Async SQLite database manager for reserve snapshot persistence.

Uses aiosqlite for non-blocking database operations with WAL mode
for concurrent read/write performance.
"""

import os
from typing import Self

import aiosqlite

from reserve_sampler.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

# uint256 values do not fit SQLite's 64-bit INTEGER; they are stored as TEXT.
_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS market_parameters (
    m_token_address TEXT NOT NULL,
    block_number INTEGER NOT NULL,
    price TEXT,
    total_borrows TEXT,
    utilization REAL,
    collateral_factor TEXT,
    reserves TEXT,
    reserve_factor TEXT,
    supply_cap TEXT,
    borrow_cap TEXT,
    liquidation_incentive TEXT,
    borrow_enabled INTEGER NOT NULL DEFAULT 0,
    block_timestamp INTEGER,
    PRIMARY KEY (m_token_address, block_number)
);

CREATE TABLE IF NOT EXISTS user_positions (
    id TEXT PRIMARY KEY,
    user_address TEXT NOT NULL,
    m_token_address TEXT NOT NULL,
    borrow_balance TEXT NOT NULL DEFAULT '0',
    supply_balance TEXT NOT NULL DEFAULT '0',
    last_updated_block INTEGER NOT NULL,
    last_updated_timestamp INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS user_transactions (
    id TEXT PRIMARY KEY,
    user_address TEXT NOT NULL,
    m_token_address TEXT NOT NULL,
    transaction_type TEXT NOT NULL,
    amount TEXT NOT NULL,
    token_amount TEXT,
    related_address TEXT,
    block_number INTEGER NOT NULL,
    block_timestamp INTEGER NOT NULL,
    transaction_hash TEXT NOT NULL
);
"""

_CREATE_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_market_parameters_block
    ON market_parameters(block_number);

CREATE INDEX IF NOT EXISTS idx_user_positions_user
    ON user_positions(user_address);

CREATE INDEX IF NOT EXISTS idx_user_positions_market
    ON user_positions(m_token_address);

CREATE INDEX IF NOT EXISTS idx_user_transactions_user
    ON user_transactions(user_address);

CREATE INDEX IF NOT EXISTS idx_user_transactions_market
    ON user_transactions(m_token_address);

CREATE INDEX IF NOT EXISTS idx_user_transactions_type
    ON user_transactions(transaction_type);

CREATE INDEX IF NOT EXISTS idx_user_transactions_block
    ON user_transactions(block_number);
"""


class SnapshotDatabase:
    """Async SQLite connection manager for reserve snapshots.

    Manages database lifecycle including schema creation, WAL mode
    configuration, and clean resource cleanup.

    Usage:
        async with SnapshotDatabase("data/snapshots.db") as db:
            await db.db.execute("SELECT ...")
    """

    def __init__(self, db_path: str = "data/snapshots.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """Open database connection, configure pragmas, and create schema.

        Creates the parent directory if it does not exist.
        """
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")

        await self._create_tables()
        await self._ensure_schema_version()

        logger.info("snapshot_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("snapshot_db_closed", db_path=self._db_path)

    async def _create_tables(self) -> None:
        assert self._connection is not None
        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.executescript(_CREATE_INDEXES_SQL)
        await self._connection.commit()

    async def _ensure_schema_version(self) -> None:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT version FROM schema_version LIMIT 1"
        )
        row = await cursor.fetchone()
        if row is None:
            await self._connection.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            await self._connection.commit()
            logger.info("schema_version_set", version=SCHEMA_VERSION)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()

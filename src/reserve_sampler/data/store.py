"""Typed SQLite read/write abstraction for reserve snapshots.

Provides SnapshotStore with typed methods for inserting and querying
market_parameters rows. All SQL is isolated behind this interface.

CRITICAL: Raw on-chain integers are stored as TEXT in SQLite and restored as
int on read. Snapshots are write-once: there is no update or delete path.
"""

import asyncio
import sqlite3
from decimal import Decimal

from reserve_sampler.data.database import SnapshotDatabase
from reserve_sampler.exceptions import PersistenceError
from reserve_sampler.logging import get_logger
from reserve_sampler.models import ReserveSnapshot

logger = get_logger(__name__)

_SNAPSHOT_COLUMNS = (
    "m_token_address, block_number, price, total_borrows, utilization, "
    "collateral_factor, reserves, reserve_factor, supply_cap, borrow_cap, "
    "liquidation_incentive, borrow_enabled, block_timestamp"
)


def _row_to_snapshot(row: sqlite3.Row) -> ReserveSnapshot:
    return ReserveSnapshot(
        m_token_address=row["m_token_address"],
        block_number=row["block_number"],
        price=int(row["price"]),
        total_borrows=int(row["total_borrows"]),
        utilization=Decimal(str(row["utilization"])),
        collateral_factor=int(row["collateral_factor"]),
        reserves=int(row["reserves"]),
        reserve_factor=int(row["reserve_factor"]),
        supply_cap=int(row["supply_cap"]),
        borrow_cap=int(row["borrow_cap"]),
        liquidation_incentive=int(row["liquidation_incentive"]),
        borrow_enabled=bool(row["borrow_enabled"]),
        block_timestamp=row["block_timestamp"],
    )


class SnapshotStore:
    """Async SQLite store for per-block reserve snapshots.

    Usage:
        async with SnapshotDatabase("data/snapshots.db") as database:
            store = SnapshotStore(database)
            await store.insert_snapshot(snapshot)
    """

    def __init__(self, database: SnapshotDatabase) -> None:
        self._database = database
        self._write_lock = asyncio.Lock()

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def insert_snapshot(self, snapshot: ReserveSnapshot) -> None:
        """Insert one snapshot row.

        Plain INSERT: a row that already exists for (asset, block) is a
        primary key violation. Any sqlite failure is raised as
        PersistenceError and the connection is rolled back so the next
        insert starts clean.

        The execute and its commit or rollback run under one lock: the
        connection is shared, so a rollback must never reach an insert
        from a concurrent caller that has not committed yet.
        """
        async with self._write_lock:
            await self._insert_locked(snapshot)

        logger.debug(
            "snapshot_inserted",
            asset=snapshot.m_token_address,
            block_number=snapshot.block_number,
        )

    async def _insert_locked(self, snapshot: ReserveSnapshot) -> None:
        db = self._database.db
        try:
            await db.execute(
                f"INSERT INTO market_parameters ({_SNAPSHOT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    snapshot.m_token_address,
                    snapshot.block_number,
                    str(snapshot.price),
                    str(snapshot.total_borrows),
                    float(snapshot.utilization),
                    str(snapshot.collateral_factor),
                    str(snapshot.reserves),
                    str(snapshot.reserve_factor),
                    str(snapshot.supply_cap),
                    str(snapshot.borrow_cap),
                    str(snapshot.liquidation_incentive),
                    1 if snapshot.borrow_enabled else 0,
                    snapshot.block_timestamp,
                ),
            )
            await db.commit()
        except sqlite3.Error as e:
            await db.rollback()
            raise PersistenceError(
                f"insert failed for {snapshot.m_token_address} "
                f"at block {snapshot.block_number}: {e}",
                asset=snapshot.m_token_address,
                block_number=snapshot.block_number,
            ) from e

    #──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def get_snapshot(
        self, m_token_address: str, block_number: int
    ) -> ReserveSnapshot | None:
        cursor = await self._database.db.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM market_parameters "
            "WHERE lower(m_token_address) = lower(?) AND block_number = ?",
            (m_token_address, block_number),
        )
        row = await cursor.fetchone()
        return _row_to_snapshot(row) if row is not None else None

    async def get_block_snapshots(self, block_number: int) -> list[ReserveSnapshot]:
        """Return all snapshots for one block in insertion order."""
        cursor = await self._database.db.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM market_parameters "
            "WHERE block_number = ? ORDER BY rowid",
            (block_number,),
        )
        rows = await cursor.fetchall()
        return [_row_to_snapshot(r) for r in rows]

    async def get_asset_history(
        self, m_token_address: str, limit: int = 100
    ) -> list[ReserveSnapshot]:
        """Return the most recent snapshots for an asset, newest first."""
        cursor = await self._database.db.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM market_parameters "
            "WHERE lower(m_token_address) = lower(?) ORDER BY block_number DESC LIMIT ?",
            (m_token_address, limit),
        )
        rows = await cursor.fetchall()
        return [_row_to_snapshot(r) for r in rows]

    async def get_latest_block(self) -> int | None:
        """Return the highest block number with at least one snapshot."""
        cursor = await self._database.db.execute(
            "SELECT MAX(block_number) FROM market_parameters"
        )
        row = await cursor.fetchone()
        return row[0] if row is not None else None

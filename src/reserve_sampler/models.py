"""Shared data models for the reserve sampler.

CRITICAL: On-chain quantities stay Python int end to end. Fractional values
are Decimal and only appear after conversion. Never use float for amounts.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class BlockEvent:
    """A block selected by the interval trigger for sampling."""

    block_number: int
    block_timestamp: int  # Unix seconds


@dataclass(frozen=True)
class RawReserve:
    """One reserve as returned by getReservesData, in raw fixed-point units."""

    underlying_asset: str
    symbol: str
    decimals: int
    price_in_market_reference_currency: int  # 8 decimals
    available_liquidity: int
    total_scaled_variable_debt: int
    liquidity_rate: int  # ray
    variable_borrow_rate: int  # ray
    reserve_factor: int  # bps
    base_ltv_as_collateral: int  # bps
    reserve_liquidation_threshold: int  # bps
    reserve_liquidation_bonus: int  # bps
    borrowing_enabled: bool
    supply_cap: int
    borrow_cap: int


@dataclass(frozen=True)
class BaseCurrencyInfo:
    """Reference currency prices for one fetch. Display only, never persisted."""

    market_reference_currency_price_in_usd: int  # 8 decimals
    network_base_token_price_in_usd: int  # 8 decimals


@dataclass(frozen=True)
class ReserveBatch:
    """Result of one batched reserve query."""

    reserves: list[RawReserve]
    base_currency: BaseCurrencyInfo


@dataclass(frozen=True)
class ReserveMetrics:
    """Derived metrics for one reserve.

    Carries the raw integers the snapshot row needs alongside the
    human-scaled display strings rendered by the reporting module.
    """

    underlying_asset: str
    symbol: str
    decimals: int

    # Raw values, persisted as-is
    price: int
    available_liquidity: int
    total_borrows: int
    reserve_factor: int
    collateral_factor: int
    liquidation_threshold: int
    liquidation_incentive: int
    borrow_enabled: bool
    supply_cap: int
    borrow_cap: int

    # Derived
    utilization: Decimal  # percent, 0-100

    # Display strings
    price_usd: str
    available_liquidity_amount: str
    available_liquidity_usd: str
    total_borrows_amount: str
    total_borrows_usd: str
    supply_apy: str
    borrow_apy: str
    reserve_factor_pct: str
    ltv_pct: str
    liquidation_threshold_pct: str
    liquidation_bonus_pct: str
    supply_cap_amount: str
    supply_cap_usd: str
    borrow_cap_amount: str
    borrow_cap_usd: str


@dataclass(frozen=True)
class ReserveSnapshot:
    """One persisted row keyed by (m_token_address, block_number)."""

    m_token_address: str
    block_number: int
    price: int
    total_borrows: int
    utilization: Decimal
    collateral_factor: int
    reserves: int
    reserve_factor: int
    supply_cap: int
    borrow_cap: int
    liquidation_incentive: int
    borrow_enabled: bool
    block_timestamp: int


class InvocationState(str, Enum):
    """Lifecycle of one block invocation."""

    IDLE = "idle"
    FETCHING = "fetching"
    PROCESSING = "processing"
    DONE = "done"
    FETCH_FAILED = "fetch_failed"


@dataclass
class BlockSummary:
    """Outcome of sampling one block."""

    block_number: int
    state: InvocationState = InvocationState.IDLE
    reserves_fetched: int = 0
    persisted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def persisted_count(self) -> int:
        return len(self.persisted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

"""Pure metric computation for lending reserves.

Converts raw fixed-point reserve fields into utilization, USD values, and
percentages. No I/O and no module-level scale state: every scale factor is
an explicit parameter with the protocol's default.

Integer arithmetic is used until the last step. The single conversion to
Decimal happens in _scaled(), which works at a precision wide enough for any
uint256, so large balances never lose digits.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext

from reserve_sampler.models import BlockEvent, RawReserve, ReserveMetrics, ReserveSnapshot

RAY_DECIMALS = 27
USD_DECIMALS = 8
BASIS_POINT_DECIMALS = 2
CAP_EXPONENT = 6  # caps are scaled by 10**6 before conversion

# uint256 has 78 decimal digits; leave headroom for the product of two of them
_PRECISION = 160


def _scaled(value: int, exponent: int) -> Decimal:
    """Return value / 10**exponent as an exact Decimal."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(value).scaleb(-exponent)


def _fixed(value: Decimal, places: int) -> str:
    """Render value with exactly `places` decimals, rounding half up."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        quantum = Decimal(1).scaleb(-places)
        return f"{value.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def _mul(a: Decimal, b: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return a * b


# ──────────────────────────────────────────────
# Unit conversions
# ──────────────────────────────────────────────


def format_basis_points(value: int, bps_decimals: int = BASIS_POINT_DECIMALS) -> str:
    """Basis points to percent with 2 places: 1000 -> "10.00"."""
    return _fixed(_scaled(value, bps_decimals), 2)


def ray_to_percent(value: int, ray_decimals: int = RAY_DECIMALS) -> str:
    """Ray fixed point to percent with 2 places: 5e25 -> "5.00"."""
    return _fixed(_scaled(value, ray_decimals - 2), 2)


def price_to_usd(value: int, usd_decimals: int = USD_DECIMALS) -> Decimal:
    """Oracle price in 8-decimal fixed point to dollars."""
    return _scaled(value, usd_decimals)


def format_price_usd(value: int, usd_decimals: int = USD_DECIMALS) -> str:
    return _fixed(price_to_usd(value, usd_decimals), 2)


def token_places(decimals: int) -> int:
    """Display places for a token: 4 for tokens with more than 6 decimals."""
    return 4 if decimals > 6 else decimals


def token_amount(value: int, decimals: int) -> str:
    """Raw token units to whole tokens, e.g. 1_500_000 at 6 decimals -> "1.500000"."""
    return _fixed(_scaled(value, decimals), token_places(decimals))


def amount_in_usd(
    amount: int,
    price: int,
    decimals: int,
    usd_decimals: int = USD_DECIMALS,
) -> str:
    """Dollar value of a raw token amount at an 8-decimal oracle price."""
    value = _mul(_scaled(amount, decimals), price_to_usd(price, usd_decimals))
    return _fixed(value, 2)


def cap_in_usd(
    cap: int,
    price: int,
    decimals: int,
    cap_exponent: int = CAP_EXPONENT,
    usd_decimals: int = USD_DECIMALS,
) -> str:
    """Dollar value of a supply or borrow cap.

    The cap is multiplied by 10**cap_exponent and then converted exactly
    like amount_in_usd.
    """
    return amount_in_usd(cap * 10**cap_exponent, price, decimals, usd_decimals)


def utilization(available_liquidity: int, total_debt: int) -> Decimal:
    """Borrowed share of total supply in percent, truncated to 2 places.

    Computed as (debt * 10000 // supply) / 100 so every step but the last
    division stays in integers. Zero supply yields zero.
    """
    total_supply = available_liquidity + total_debt
    if total_supply <= 0:
        return Decimal("0")
    bps = total_debt * 10000 // total_supply
    return _scaled(bps, 2)


# ──────────────────────────────────────────────
# Record builders
# ──────────────────────────────────────────────


def compute_metrics(
    reserve: RawReserve,
    *,
    ray_decimals: int = RAY_DECIMALS,
    usd_decimals: int = USD_DECIMALS,
    cap_exponent: int = CAP_EXPONENT,
) -> ReserveMetrics:
    """Derive the full metrics record for one reserve."""
    decimals = reserve.decimals
    price = reserve.price_in_market_reference_currency
    debt = reserve.total_scaled_variable_debt

    return ReserveMetrics(
        underlying_asset=reserve.underlying_asset,
        symbol=reserve.symbol,
        decimals=decimals,
        price=price,
        available_liquidity=reserve.available_liquidity,
        total_borrows=debt,
        reserve_factor=reserve.reserve_factor,
        collateral_factor=reserve.base_ltv_as_collateral,
        liquidation_threshold=reserve.reserve_liquidation_threshold,
        liquidation_incentive=reserve.reserve_liquidation_bonus,
        borrow_enabled=reserve.borrowing_enabled,
        supply_cap=reserve.supply_cap,
        borrow_cap=reserve.borrow_cap,
        utilization=utilization(reserve.available_liquidity, debt),
        price_usd=format_price_usd(price, usd_decimals),
        available_liquidity_amount=token_amount(reserve.available_liquidity, decimals),
        available_liquidity_usd=amount_in_usd(
            reserve.available_liquidity, price, decimals, usd_decimals
        ),
        total_borrows_amount=token_amount(debt, decimals),
        total_borrows_usd=amount_in_usd(debt, price, decimals, usd_decimals),
        supply_apy=ray_to_percent(reserve.liquidity_rate, ray_decimals),
        borrow_apy=ray_to_percent(reserve.variable_borrow_rate, ray_decimals),
        reserve_factor_pct=format_basis_points(reserve.reserve_factor),
        ltv_pct=format_basis_points(reserve.base_ltv_as_collateral),
        liquidation_threshold_pct=format_basis_points(
            reserve.reserve_liquidation_threshold
        ),
        liquidation_bonus_pct=format_basis_points(reserve.reserve_liquidation_bonus),
        supply_cap_amount=token_amount(reserve.supply_cap, decimals),
        supply_cap_usd=cap_in_usd(
            reserve.supply_cap, price, decimals, cap_exponent, usd_decimals
        ),
        borrow_cap_amount=token_amount(reserve.borrow_cap, decimals),
        borrow_cap_usd=cap_in_usd(
            reserve.borrow_cap, price, decimals, cap_exponent, usd_decimals
        ),
    )


def build_snapshot(metrics: ReserveMetrics, event: BlockEvent) -> ReserveSnapshot:
    """Map a metrics record onto the persisted row for the given block.

    The reserves column has no source in the reserve query and is always 0.
    """
    return ReserveSnapshot(
        m_token_address=metrics.underlying_asset,
        block_number=event.block_number,
        price=metrics.price,
        total_borrows=metrics.total_borrows,
        utilization=metrics.utilization,
        collateral_factor=metrics.collateral_factor,
        reserves=0,
        reserve_factor=metrics.reserve_factor,
        supply_cap=metrics.supply_cap,
        borrow_cap=metrics.borrow_cap,
        liquidation_incentive=metrics.liquidation_incentive,
        borrow_enabled=metrics.borrow_enabled,
        block_timestamp=event.block_timestamp,
    )

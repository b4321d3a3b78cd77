"""Maps decoded getReservesData output onto typed models.

web3 decodes struct outputs as plain tuples in ABI component order. Mappings
keyed by component name are accepted too, so fixtures and other transports
can hand over dicts.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from reserve_sampler.chain.abi import (
    AGGREGATED_RESERVE_DATA_COMPONENTS,
    BASE_CURRENCY_INFO_COMPONENTS,
)
from reserve_sampler.models import BaseCurrencyInfo, RawReserve, ReserveBatch

_RESERVE_FIELDS = [c["name"] for c in AGGREGATED_RESERVE_DATA_COMPONENTS]
_BASE_CURRENCY_FIELDS = [c["name"] for c in BASE_CURRENCY_INFO_COMPONENTS]


def _as_mapping(raw: Any, names: list[str]) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        if len(raw) != len(names):
            raise ValueError(
                f"expected {len(names)} struct fields, got {len(raw)}"
            )
        return dict(zip(names, raw))
    raise TypeError(f"cannot decode struct from {type(raw).__name__}")


def parse_reserve(raw: Any) -> RawReserve:
    """Build a RawReserve from one AggregatedReserveData struct."""
    data = _as_mapping(raw, _RESERVE_FIELDS)
    return RawReserve(
        underlying_asset=str(data["underlyingAsset"]),
        symbol=str(data["symbol"]),
        decimals=int(data["decimals"]),
        price_in_market_reference_currency=int(data["priceInMarketReferenceCurrency"]),
        available_liquidity=int(data["availableLiquidity"]),
        total_scaled_variable_debt=int(data["totalScaledVariableDebt"]),
        liquidity_rate=int(data["liquidityRate"]),
        variable_borrow_rate=int(data["variableBorrowRate"]),
        reserve_factor=int(data["reserveFactor"]),
        base_ltv_as_collateral=int(data["baseLTVasCollateral"]),
        reserve_liquidation_threshold=int(data["reserveLiquidationThreshold"]),
        reserve_liquidation_bonus=int(data["reserveLiquidationBonus"]),
        borrowing_enabled=bool(data["borrowingEnabled"]),
        supply_cap=int(data["supplyCap"]),
        borrow_cap=int(data["borrowCap"]),
    )


def parse_base_currency(raw: Any) -> BaseCurrencyInfo:
    data = _as_mapping(raw, _BASE_CURRENCY_FIELDS)
    return BaseCurrencyInfo(
        market_reference_currency_price_in_usd=int(data["marketReferenceCurrencyPriceInUsd"]),
        network_base_token_price_in_usd=int(data["networkBaseTokenPriceInUsd"]),
    )


def parse_reserves_data(result: Sequence[Any]) -> ReserveBatch:
    """Parse the (reserves[], baseCurrencyInfo) pair returned by getReservesData.

    Reserve order is preserved.
    """
    reserves_raw, base_currency_raw = result
    return ReserveBatch(
        reserves=[parse_reserve(r) for r in reserves_raw],
        base_currency=parse_base_currency(base_currency_raw),
    )

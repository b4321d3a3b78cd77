"""Text rendering of sampled metrics for a line-oriented sink.

Rendering is separate from computation: metrics.compute_metrics returns a
record and these functions turn it into lines. A sink is any callable that
accepts one line of text.
"""

from collections.abc import Callable

from reserve_sampler.logging import get_logger
from reserve_sampler.metrics import format_price_usd
from reserve_sampler.models import BaseCurrencyInfo, ReserveMetrics

logger = get_logger(__name__)

LineSink = Callable[[str], None]


def render_block_header(block_number: int) -> list[str]:
    return ["", f"========== RESERVE METRICS (Block {block_number}) =========="]


def render_block_footer(block_number: int) -> list[str]:
    return [f"========== END OF METRICS (Block {block_number}) ==========", ""]


def render_base_currency(info: BaseCurrencyInfo) -> list[str]:
    """Render the per-block reference currency prices."""
    return [
        "",
        "--- Base Currency Info ---",
        "Market Reference Currency Price: "
        f"${format_price_usd(info.market_reference_currency_price_in_usd)} USD",
        f"Network Base Token Price: ${format_price_usd(info.network_base_token_price_in_usd)} USD",
    ]


def render_reserve_report(m: ReserveMetrics) -> list[str]:
    """Render one reserve's metrics as a block of display lines."""
    symbol = m.symbol
    return [
        "",
        f"--- {symbol} METRICS ---",
        f"Address: {m.underlying_asset}",
        f"Price: ${m.price_usd}",
        f"Available Liquidity: {m.available_liquidity_amount} {symbol} (${m.available_liquidity_usd})",
        f"Total Variable Debt: {m.total_borrows_amount} {symbol} (${m.total_borrows_usd})",
        f"Utilization: {m.utilization:.2f}%",
        f"Supply APY: {m.supply_apy}%",
        f"Borrow APY: {m.borrow_apy}%",
        f"Reserve Factor: {m.reserve_factor_pct}%",
        f"LTV: {m.ltv_pct}%",
        f"Liquidation Threshold: {m.liquidation_threshold_pct}%",
        f"Liquidation Bonus: {m.liquidation_bonus_pct}%",
        f"Borrowing Enabled: {str(m.borrow_enabled).lower()}",
        f"Supply Cap: {m.supply_cap_amount} {symbol} (${m.supply_cap_usd})",
        f"Borrow Cap: {m.borrow_cap_amount} {symbol} (${m.borrow_cap_usd})",
    ]


def log_sink(line: str) -> None:
    """Default sink: forward each non-empty line to the structured log."""
    if line:
        logger.info("report_line", line=line)


def emit(lines: list[str], sink: LineSink) -> None:
    for line in lines:
        sink(line)

from __future__ import annotations

import math
from dataclasses import fields

from .config import DEFAULT_CONFIG, ScreeningConfig
from .errors import InvalidFundamentals
from .models import FundamentalMetrics, FundamentalsSnapshot

NUMERIC_FIELDS = [f.name for f in fields(FundamentalsSnapshot) if f.name != "asof_date"]


def validate_fundamentals(snapshot: FundamentalsSnapshot) -> None:
    """Reject snapshots that would produce non-finite ratios."""
    nums = {}
    for name in NUMERIC_FIELDS:
        value = getattr(snapshot, name)
        try:
            nums[name] = float(value)
        except (TypeError, ValueError):
            raise InvalidFundamentals(name, f"not a number ({value!r})") from None
        if not math.isfinite(nums[name]):
            raise InvalidFundamentals(name, "not finite")

    if nums["current_liabilities"] <= 0:
        raise InvalidFundamentals("current_liabilities", "must be positive")
    if nums["total_equity"] <= 0:
        raise InvalidFundamentals("total_equity", "must be positive")


def analyze_fundamentals(snapshot: FundamentalsSnapshot) -> FundamentalMetrics:
    validate_fundamentals(snapshot)
    liabilities = float(snapshot.current_liabilities)
    assets = float(snapshot.current_assets)

    return FundamentalMetrics(
        market_cap=float(snapshot.market_cap),
        cash_position=float(snapshot.cash_and_equivalents),
        total_debt=float(snapshot.total_debt),
        current_ratio=assets / liabilities,
        quick_ratio=(assets - liabilities) / liabilities,
        debt_to_equity=float(snapshot.total_debt) / float(snapshot.total_equity),
        free_cash_flow=float(snapshot.free_cash_flow),
    )


def has_strong_fundamentals(
    metrics: FundamentalMetrics, config: ScreeningConfig = DEFAULT_CONFIG
) -> tuple[bool, str]:
    cash_floor = metrics.market_cap * config.min_cash_to_market_cap
    if not metrics.cash_position > cash_floor:
        return False, f"cash {metrics.cash_position:,.0f} not above {cash_floor:,.0f}"

    if not metrics.current_ratio > config.min_current_ratio:
        return False, f"current ratio {metrics.current_ratio:.2f} <= {config.min_current_ratio:.2f}"

    if not metrics.free_cash_flow > config.min_free_cash_flow:
        return False, f"free cash flow {metrics.free_cash_flow:,.0f} <= {config.min_free_cash_flow:,.0f}"

    return True, ""

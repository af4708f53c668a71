from __future__ import annotations

import logging
from typing import Callable, Iterable

import pandas as pd

from .config import DEFAULT_CONFIG, ScreeningConfig
from .errors import InsufficientHistory, InvalidFundamentals, InvalidHistory
from .market_data import fetch_daily_history, fetch_fundamentals
from .models import FundamentalsSnapshot, PriceBar, ScreeningVerdict
from .screening import evaluate

logger = logging.getLogger(__name__)

HistoryFetcher = Callable[[str], "list[PriceBar]"]
FundamentalsFetcher = Callable[[str], "FundamentalsSnapshot | None"]

COLUMNS = [
    "symbol",
    "status",
    "qualified",
    "rejection_reason",
    "error_kind",
    "duration_weeks",
    "tightness",
    "volume_trend",
    "close_volatility",
    "current_ratio",
    "cash_position",
    "market_cap",
    "volume_contraction",
    "price_consolidation",
    "low_volatility",
    "retest_pattern",
]


def normalize_symbol(text: str) -> str:
    symbol = (text or "").strip().upper()
    # class shares are quoted with a dash (BRK.B -> BRK-B)
    if "." in symbol and len(symbol.split(".")[-1]) == 1:
        return symbol.replace(".", "-")
    return symbol


def _error_row(symbol: str, kind: str, reason: str) -> dict:
    row = {col: None for col in COLUMNS}
    row.update(symbol=symbol, status="error", qualified=False, error_kind=kind, rejection_reason=reason)
    return row


def verdict_row(symbol: str, verdict: ScreeningVerdict) -> dict:
    row = {col: None for col in COLUMNS}
    row.update(
        symbol=symbol,
        status=verdict.status.value,
        qualified=verdict.qualified,
        rejection_reason=verdict.rejection_reason,
    )
    base = verdict.base_formation
    if base is not None:
        row.update(
            duration_weeks=base.duration_weeks,
            tightness=base.price_range.tightness,
            volume_trend=base.volume_profile.trend.value,
            close_volatility=base.weekly_closes.volatility,
        )
    fm = verdict.fundamentals
    if fm is not None:
        row.update(current_ratio=fm.current_ratio, cash_position=fm.cash_position, market_cap=fm.market_cap)
    signals = verdict.technical_signals
    if signals is not None:
        row.update(
            volume_contraction=signals.volume_contraction,
            price_consolidation=signals.price_consolidation,
            low_volatility=signals.low_volatility,
            retest_pattern=signals.retest_pattern,
        )
    return row


def screen_symbol(
    symbol: str,
    config: ScreeningConfig = DEFAULT_CONFIG,
    history_fetcher: HistoryFetcher | None = None,
    fundamentals_fetcher: FundamentalsFetcher | None = None,
) -> dict:
    history_fetcher = history_fetcher or fetch_daily_history
    fundamentals_fetcher = fundamentals_fetcher or fetch_fundamentals

    history = history_fetcher(symbol)
    snapshot = fundamentals_fetcher(symbol)
    if snapshot is None:
        logger.info("%s: no fundamentals, skipped", symbol)
        return _error_row(symbol, "MissingFundamentals", "fundamentals unavailable")

    try:
        verdict = evaluate(history, snapshot, config)
    except InsufficientHistory as exc:
        logger.info("%s: skipped, %s", symbol, exc)
        return _error_row(symbol, "InsufficientHistory", str(exc))
    except (InvalidHistory, InvalidFundamentals) as exc:
        logger.warning("%s: data quality problem, %s", symbol, exc)
        return _error_row(symbol, type(exc).__name__, str(exc))

    return verdict_row(symbol, verdict)


def screen_symbols(
    symbols: Iterable[str],
    config: ScreeningConfig = DEFAULT_CONFIG,
    history_fetcher: HistoryFetcher | None = None,
    fundamentals_fetcher: FundamentalsFetcher | None = None,
) -> pd.DataFrame:
    rows = []
    seen = set()
    for raw in symbols:
        symbol = normalize_symbol(raw)
        if not symbol or symbol in seen:
            continue
        seen.add(symbol)
        rows.append(screen_symbol(symbol, config, history_fetcher, fundamentals_fetcher))

    df = pd.DataFrame(rows, columns=COLUMNS)
    if df.empty:
        return df

    df["_qualified_sort"] = df["qualified"].astype(int)
    df = df.sort_values(
        by=["_qualified_sort", "tightness"],
        ascending=[False, True],
        na_position="last",
    ).drop(columns=["_qualified_sort"])
    return df.reset_index(drop=True)


def apply_filters(df: pd.DataFrame, filters: dict) -> pd.DataFrame:
    out = df.copy()

    if filters.get("qualified_only"):
        out = out[out["qualified"].astype(bool)]

    statuses = filters.get("statuses") or []
    if statuses:
        out = out[out["status"].isin(statuses)]

    max_tightness = filters.get("max_tightness")
    if max_tightness is not None:
        out = out[out["tightness"].notna() & (out["tightness"] <= float(max_tightness))]

    keyword = (filters.get("keyword") or "").strip().lower()
    if keyword:
        out = out[out["symbol"].str.lower().str.contains(keyword, na=False)]

    return out

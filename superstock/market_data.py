from __future__ import annotations

import logging
from datetime import datetime, timezone

import pandas as pd
import yfinance as yf

from .config import DEFAULT_HISTORY_PERIOD
from .models import FundamentalsSnapshot, PriceBar

logger = logging.getLogger(__name__)

CASH_KEYS = [
    "Cash And Cash Equivalents",
    "Cash Cash Equivalents And Short Term Investments",
    "CashAndCashEquivalents",
]

DEBT_KEYS = [
    "Total Debt",
    "TotalDebt",
]

CURRENT_ASSETS_KEYS = [
    "Current Assets",
    "Total Current Assets",
    "CurrentAssets",
]

CURRENT_LIABILITIES_KEYS = [
    "Current Liabilities",
    "Total Current Liabilities",
    "CurrentLiabilities",
]

EQUITY_KEYS = [
    "Stockholders Equity",
    "Total Stockholder Equity",
    "Total Equity Gross Minority Interest",
    "StockholdersEquity",
]

FCF_KEYS = [
    "Free Cash Flow",
    "FreeCashFlow",
]


def _safe_float(value) -> float | None:
    if value is None:
        return None
    try:
        num = float(value)
    except Exception:
        return None
    if pd.isna(num):
        return None
    return num


def _pick_row(df: pd.DataFrame | None, keys: list[str]) -> pd.Series | None:
    if df is None or df.empty:
        return None
    for key in keys:
        if key in df.index:
            selected = df.loc[key]
            return selected.iloc[0] if isinstance(selected, pd.DataFrame) else selected
    for idx in df.index:
        idx_text = str(idx).lower().replace(" ", "")
        if any(key.lower().replace(" ", "") == idx_text for key in keys):
            selected = df.loc[idx]
            return selected.iloc[0] if isinstance(selected, pd.DataFrame) else selected
    return None


def _newest_values(series: pd.Series | None, max_len: int) -> list[float]:
    if series is None:
        return []
    work = series
    if isinstance(series.index, pd.DatetimeIndex):
        work = series.sort_index(ascending=False)
    return pd.to_numeric(work, errors="coerce").dropna().astype(float).tolist()[:max_len]


def _latest_statement_value(ticker, attrs: list[str], keys: list[str]) -> float | None:
    for attr in attrs:
        row = _pick_row(getattr(ticker, attr, pd.DataFrame()), keys)
        vals = _newest_values(row, max_len=1)
        if vals:
            return vals[0]
    return None


def _normalize_daily_history(history: pd.DataFrame) -> pd.DataFrame:
    keep = ["Open", "High", "Low", "Close", "Volume"]
    if history is None or history.empty or not isinstance(history.index, pd.DatetimeIndex):
        return pd.DataFrame(columns=keep)

    daily = history.copy()
    if daily.index.tz is not None:
        daily.index = daily.index.tz_localize(None)

    for col in keep:
        if col not in daily.columns:
            daily[col] = pd.NA
        daily[col] = pd.to_numeric(daily[col], errors="coerce")
    daily = daily[keep].dropna(subset=["Open", "High", "Low", "Close"])
    daily["Volume"] = daily["Volume"].fillna(0.0)
    daily = daily[~daily.index.duplicated(keep="last")]
    return daily.sort_index()


def frame_to_bars(daily: pd.DataFrame) -> list[PriceBar]:
    return [
        PriceBar(
            date=ts.date(),
            open=float(row.Open),
            high=float(row.High),
            low=float(row.Low),
            close=float(row.Close),
            volume=float(row.Volume),
        )
        for ts, row in zip(daily.index, daily.itertuples(index=False))
    ]


def fetch_daily_history(symbol: str, period: str = DEFAULT_HISTORY_PERIOD) -> list[PriceBar]:
    try:
        history = yf.Ticker(symbol).history(period=period, interval="1d", auto_adjust=False)
    except Exception as exc:
        logger.warning("history fetch failed for %s: %s", symbol, exc)
        return []
    if not isinstance(history, pd.DataFrame):
        return []
    return frame_to_bars(_normalize_daily_history(history))


def _extract_market_cap(ticker, info: dict) -> float | None:
    candidates = [info.get("marketCap"), info.get("market_cap")]
    try:
        fi = ticker.fast_info
        candidates.extend([fi.get("market_cap"), fi.get("marketCap")])
    except Exception:
        pass

    for candidate in candidates:
        val = _safe_float(candidate)
        if val and val > 0:
            return val
    return None


def _extract_free_cash_flow(ticker, info: dict) -> float | None:
    q_row = _pick_row(getattr(ticker, "quarterly_cashflow", pd.DataFrame()), FCF_KEYS)
    quarters = _newest_values(q_row, max_len=4)
    if len(quarters) == 4:
        return float(sum(quarters))

    annual = _latest_statement_value(ticker, ["cashflow"], FCF_KEYS)
    if annual is not None:
        return annual
    return _safe_float(info.get("freeCashflow"))


def extract_fundamentals(ticker, info: dict) -> FundamentalsSnapshot | None:
    balance_attrs = ["quarterly_balance_sheet", "balance_sheet"]
    values = {
        "market_cap": _extract_market_cap(ticker, info),
        "cash_and_equivalents": _latest_statement_value(ticker, balance_attrs, CASH_KEYS),
        "total_debt": _latest_statement_value(ticker, balance_attrs, DEBT_KEYS),
        "current_assets": _latest_statement_value(ticker, balance_attrs, CURRENT_ASSETS_KEYS),
        "current_liabilities": _latest_statement_value(ticker, balance_attrs, CURRENT_LIABILITIES_KEYS),
        "total_equity": _latest_statement_value(ticker, balance_attrs, EQUITY_KEYS),
        "free_cash_flow": _extract_free_cash_flow(ticker, info),
    }
    if values["cash_and_equivalents"] is None:
        values["cash_and_equivalents"] = _safe_float(info.get("totalCash"))
    if values["total_debt"] is None:
        # companies without borrowings often omit the row entirely
        values["total_debt"] = _safe_float(info.get("totalDebt")) or 0.0

    missing = [k for k, v in values.items() if v is None]
    if missing:
        logger.info("fundamentals incomplete, missing %s", ", ".join(missing))
        return None
    return FundamentalsSnapshot(asof_date=datetime.now(timezone.utc), **values)


def fetch_fundamentals(symbol: str) -> FundamentalsSnapshot | None:
    try:
        ticker = yf.Ticker(symbol)
        info = ticker.info or {}
        return extract_fundamentals(ticker, info)
    except Exception as exc:
        logger.warning("fundamentals fetch failed for %s: %s", symbol, exc)
        return None

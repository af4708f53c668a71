from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .config import TRADING_DAYS_PER_WEEK
from .models import PriceBar, WeeklyBar

DAILY_COLUMNS = ["Open", "High", "Low", "Close", "Volume"]


def bars_to_frame(bars: Sequence[PriceBar]) -> pd.DataFrame:
    if not bars:
        return pd.DataFrame(columns=DAILY_COLUMNS, index=pd.DatetimeIndex([], name="Date"))
    daily = pd.DataFrame(
        {
            "Open": [float(b.open) for b in bars],
            "High": [float(b.high) for b in bars],
            "Low": [float(b.low) for b in bars],
            "Close": [float(b.close) for b in bars],
            "Volume": [float(b.volume) for b in bars],
        },
        index=pd.DatetimeIndex(pd.to_datetime([b.date for b in bars]), name="Date"),
    )
    return daily


def _group_fixed(daily: pd.DataFrame) -> pd.DataFrame:
    # oldest-first blocks of five bars; only the newest block can be short
    keys = np.arange(len(daily)) // TRADING_DAYS_PER_WEEK
    dated = daily.assign(Date=daily.index)
    grouped = dated.groupby(keys)
    return pd.DataFrame(
        {
            "Start": grouped["Date"].first(),
            "End": grouped["Date"].last(),
            "High": grouped["High"].max(),
            "Low": grouped["Low"].min(),
            "Close": grouped["Close"].last(),
            "Volume": grouped["Volume"].mean(),
            "Bars": grouped["Close"].size(),
        }
    )


def _group_calendar(daily: pd.DataFrame) -> pd.DataFrame:
    dated = daily.assign(Date=daily.index)
    weekly = pd.DataFrame(
        {
            "Start": dated["Date"].resample("W-FRI").first(),
            "End": dated["Date"].resample("W-FRI").last(),
            "High": dated["High"].resample("W-FRI").max(),
            "Low": dated["Low"].resample("W-FRI").min(),
            "Close": dated["Close"].resample("W-FRI").last(),
            "Volume": dated["Volume"].resample("W-FRI").mean(),
            "Bars": dated["Close"].resample("W-FRI").count(),
        }
    )
    # weeks without a single session (long market closures)
    return weekly[weekly["Bars"] > 0]


def aggregate_weekly(bars: Sequence[PriceBar], grouping: str = "fixed") -> list[WeeklyBar]:
    """Roll chronological daily bars up into weekly bars, oldest first.

    ``fixed`` groups every five consecutive sessions regardless of the
    calendar; ``calendar`` groups Monday-to-Friday weeks so holiday weeks come
    out shorter.
    """
    daily = bars_to_frame(bars)
    if daily.empty:
        return []
    if grouping == "calendar":
        weekly = _group_calendar(daily)
    elif grouping == "fixed":
        weekly = _group_fixed(daily)
    else:
        raise ValueError(f"unknown weekly grouping: {grouping!r}")

    return [
        WeeklyBar(
            start_date=pd.Timestamp(row.Start).date(),
            end_date=pd.Timestamp(row.End).date(),
            high=float(row.High),
            low=float(row.Low),
            close=float(row.Close),
            average_volume=float(row.Volume),
            bar_count=int(row.Bars),
        )
        for row in weekly.itertuples(index=False)
    ]

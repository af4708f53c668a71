from __future__ import annotations

from typing import Sequence

import numpy as np

from .config import SignalConfig
from .metrics import close_volatility
from .models import TechnicalSignals, WeeklyBar


def has_volume_contraction(window: Sequence[WeeklyBar], cfg: SignalConfig) -> bool:
    volumes = np.array([w.average_volume for w in window], dtype=float)
    if volumes.size <= cfg.recent_weeks:
        return False
    window_mean = float(np.mean(volumes))
    if window_mean <= 0:
        return False
    recent_mean = float(np.mean(volumes[-cfg.recent_weeks :]))
    return recent_mean <= window_mean * (1.0 - cfg.volume_contraction_threshold)


def has_price_consolidation(window: Sequence[WeeklyBar], cfg: SignalConfig) -> bool:
    closes = [w.close for w in window[-cfg.recent_weeks :]]
    if not closes:
        return False
    low = min(closes)
    if low <= 0:
        return False
    return (max(closes) - low) / low <= cfg.consolidation_threshold


def has_low_volatility(window: Sequence[WeeklyBar], cfg: SignalConfig) -> bool:
    return close_volatility([w.close for w in window]) <= cfg.max_close_volatility


def has_retest_pattern(window: Sequence[WeeklyBar], cfg: SignalConfig) -> bool:
    """Recent weeks came back down to the earlier base low and held it."""
    lookback = cfg.retest_lookback_weeks
    if len(window) <= lookback:
        return False

    prior_low = min(w.low for w in window[:-lookback])
    recent_low = min(w.low for w in window[-lookback:])
    if prior_low <= 0:
        return False

    touched = abs(recent_low - prior_low) / prior_low <= cfg.retest_tolerance
    return touched and window[-1].close > recent_low


def compute_technical_signals(window: Sequence[WeeklyBar], cfg: SignalConfig) -> TechnicalSignals:
    return TechnicalSignals(
        volume_contraction=has_volume_contraction(window, cfg),
        price_consolidation=has_price_consolidation(window, cfg),
        low_volatility=has_low_volatility(window, cfg),
        retest_pattern=has_retest_pattern(window, cfg),
    )

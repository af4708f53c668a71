from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .config import DEFAULT_CONFIG, ScreeningConfig
from .errors import InsufficientHistory, InvalidHistory
from .models import BaseFormation, PriceRange, VolumeProfile, VolumeTrend, WeeklyBar, WeeklyCloses

logger = logging.getLogger(__name__)


def close_volatility(closes: Sequence[float]) -> float:
    """Coefficient of variation of ``closes`` (population std / mean)."""
    arr = np.asarray(closes, dtype=float)
    if arr.size == 0:
        raise InvalidHistory("no closes to measure volatility")
    mean = float(np.mean(arr))
    if mean <= 0:
        raise InvalidHistory(f"mean weekly close must be positive, got {mean}")
    return float(np.std(arr, ddof=0)) / mean


def classify_volume_trend(volumes: Sequence[float], threshold: float) -> VolumeTrend:
    arr = np.asarray(volumes, dtype=float)
    half = arr.size // 2
    if half == 0:
        return VolumeTrend.FLAT

    # the middle bar of an odd window belongs to neither half
    first = float(np.mean(arr[:half]))
    second = float(np.mean(arr[arr.size - half :]))
    if first == 0:
        return VolumeTrend.FLAT if second == 0 else VolumeTrend.INCREASING

    change = (second - first) / first
    if change <= -threshold:
        return VolumeTrend.DECLINING
    if change >= threshold:
        return VolumeTrend.INCREASING
    return VolumeTrend.FLAT


def compute_price_range(window: Sequence[WeeklyBar]) -> PriceRange:
    high = max(w.high for w in window)
    low = min(w.low for w in window)
    if low <= 0:
        raise InvalidHistory(f"base low must be positive, got {low}")
    return PriceRange(high=high, low=low)


def analyze_base_formation(weekly: Sequence[WeeklyBar], config: ScreeningConfig = DEFAULT_CONFIG) -> BaseFormation:
    weeks = config.min_base_duration_weeks
    if len(weekly) < weeks:
        raise InsufficientHistory(required=weeks, available=len(weekly), unit="weekly bars")

    window = list(weekly[-weeks:])
    closes = tuple(w.close for w in window)
    volumes = [w.average_volume for w in window]

    base = BaseFormation(
        duration_weeks=len(window),
        price_range=compute_price_range(window),
        volume_profile=VolumeProfile(
            average=float(np.mean(volumes)),
            trend=classify_volume_trend(volumes, config.volume_decline_threshold),
        ),
        weekly_closes=WeeklyCloses(prices=closes, volatility=close_volatility(closes)),
    )
    logger.debug(
        "base over %d weeks: range %.4f-%.4f, volume %s",
        base.duration_weeks,
        base.price_range.low,
        base.price_range.high,
        base.volume_profile.trend.value,
    )
    return base


def is_qualifying_base(base: BaseFormation, config: ScreeningConfig = DEFAULT_CONFIG) -> tuple[bool, str]:
    if base.duration_weeks < config.min_base_duration_weeks:
        return False, f"base too short ({base.duration_weeks} < {config.min_base_duration_weeks} weeks)"

    tightness = base.price_range.tightness
    if tightness > config.tight_base_threshold:
        return False, f"base too loose ({tightness:.2%} > {config.tight_base_threshold:.2%})"

    if base.volume_profile.trend is not VolumeTrend.DECLINING:
        return False, f"volume {base.volume_profile.trend.value}, not declining"

    return True, ""

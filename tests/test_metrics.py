from datetime import date, timedelta

import numpy as np
import pytest

from superstock.config import DEFAULT_CONFIG
from superstock.errors import InsufficientHistory, InvalidHistory
from superstock.metrics import (
    analyze_base_formation,
    classify_volume_trend,
    close_volatility,
    compute_price_range,
    is_qualifying_base,
)
from superstock.models import BaseFormation, PriceRange, VolumeProfile, VolumeTrend, WeeklyBar, WeeklyCloses


def _weeks(closes, highs=None, lows=None, volumes=None):
    start = date(2025, 1, 6)
    out = []
    for i, close in enumerate(closes):
        out.append(
            WeeklyBar(
                start_date=start + timedelta(weeks=i),
                end_date=start + timedelta(weeks=i, days=4),
                high=highs[i] if highs else close,
                low=lows[i] if lows else close,
                close=close,
                average_volume=volumes[i] if volumes else 100.0,
                bar_count=5,
            )
        )
    return out


def test_close_volatility_is_coefficient_of_variation():
    assert close_volatility([100.0, 100.0, 100.0]) == 0.0
    assert round(close_volatility([90.0, 110.0]), 6) == 0.1


def test_close_volatility_rejects_non_positive_mean():
    with pytest.raises(InvalidHistory):
        close_volatility([0.0, 0.0])
    with pytest.raises(InvalidHistory):
        close_volatility([])


def test_volume_trend_labels():
    assert classify_volume_trend(np.linspace(100, 50, 12), 0.30) == VolumeTrend.DECLINING
    assert classify_volume_trend([100, 100, 100, 100], 0.30) == VolumeTrend.FLAT
    assert classify_volume_trend([100, 100, 130, 140], 0.30) == VolumeTrend.INCREASING
    assert classify_volume_trend([100, 100, 80, 80], 0.30) == VolumeTrend.FLAT


def test_volume_trend_drop_exactly_at_threshold_is_declining():
    assert classify_volume_trend([100, 100, 70, 70], 0.30) == VolumeTrend.DECLINING


def test_volume_trend_skips_middle_bar_of_odd_window():
    # the 1000 in the middle must not count toward either half
    assert classify_volume_trend([100, 100, 1000, 50, 50], 0.30) == VolumeTrend.DECLINING


def test_volume_trend_zero_first_half():
    assert classify_volume_trend([0, 0, 0, 0], 0.30) == VolumeTrend.FLAT
    assert classify_volume_trend([0, 0, 10, 10], 0.30) == VolumeTrend.INCREASING
    assert classify_volume_trend([10], 0.30) == VolumeTrend.FLAT


def test_price_range_rejects_zero_low():
    with pytest.raises(InvalidHistory):
        compute_price_range(_weeks([100.0, 100.0], lows=[98.0, 0.0]))


def test_analyze_base_uses_trailing_window_only():
    closes = [50.0] * 3 + [100.0] * 12
    highs = [60.0] * 3 + [100.0] * 12
    lows = [40.0] * 3 + [98.0] * 12
    volumes = [500.0] * 3 + list(np.linspace(100, 50, 12))

    base = analyze_base_formation(_weeks(closes, highs, lows, volumes), DEFAULT_CONFIG)

    assert base.duration_weeks == 12
    assert base.price_range == PriceRange(high=100.0, low=98.0)
    assert base.weekly_closes.prices == tuple([100.0] * 12)
    assert base.volume_profile.trend == VolumeTrend.DECLINING


def test_analyze_base_requires_full_window():
    with pytest.raises(InsufficientHistory) as excinfo:
        analyze_base_formation(_weeks([100.0] * 11), DEFAULT_CONFIG)

    assert str(excinfo.value) == "need at least 12 weekly bars, got 11"


def _base(duration=12, high=100.0, low=98.0, trend=VolumeTrend.DECLINING):
    return BaseFormation(
        duration_weeks=duration,
        price_range=PriceRange(high=high, low=low),
        volume_profile=VolumeProfile(average=75.0, trend=trend),
        weekly_closes=WeeklyCloses(prices=(100.0,) * duration, volatility=0.0),
    )


def test_qualifying_base_gate():
    assert is_qualifying_base(_base()) == (True, "")

    ok, reason = is_qualifying_base(_base(duration=8))
    assert not ok and "short" in reason

    ok, reason = is_qualifying_base(_base(high=106.0, low=100.0))
    assert not ok and "loose" in reason

    ok, reason = is_qualifying_base(_base(trend=VolumeTrend.INCREASING))
    assert not ok and "increasing" in reason


def test_tightness_at_threshold_passes():
    assert is_qualifying_base(_base(high=105.0, low=100.0))[0]

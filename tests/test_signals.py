from datetime import date, timedelta

import pytest

from superstock.config import SignalConfig
from superstock.models import WeeklyBar
from superstock.signals import (
    compute_technical_signals,
    has_low_volatility,
    has_price_consolidation,
    has_retest_pattern,
    has_volume_contraction,
)

CFG = SignalConfig()


def _weeks(closes, lows=None, volumes=None):
    start = date(2025, 1, 6)
    return [
        WeeklyBar(
            start_date=start + timedelta(weeks=i),
            end_date=start + timedelta(weeks=i, days=4),
            high=close + 1.0,
            low=lows[i] if lows else close - 1.0,
            close=close,
            average_volume=volumes[i] if volumes else 100.0,
            bar_count=5,
        )
        for i, close in enumerate(closes)
    ]


def test_volume_contraction():
    shrinking = _weeks([100.0] * 12, volumes=[100.0] * 8 + [40.0] * 4)
    steady = _weeks([100.0] * 12)

    assert has_volume_contraction(shrinking, CFG)
    assert not has_volume_contraction(steady, CFG)


def test_volume_contraction_needs_more_than_recent_weeks():
    assert not has_volume_contraction(_weeks([100.0] * 4, volumes=[100, 100, 10, 10]), CFG)


def test_price_consolidation_looks_at_recent_closes():
    tight = _weeks([80.0, 120.0, 90.0, 100.0, 101.0, 100.5, 102.0])
    wide = _weeks([100.0, 100.0, 100.0, 100.0, 110.0, 100.0, 100.0])

    assert has_price_consolidation(tight, CFG)
    assert not has_price_consolidation(wide, CFG)


def test_low_volatility():
    assert has_low_volatility(_weeks([100.0, 101.0, 99.0, 100.0]), CFG)
    assert not has_low_volatility(_weeks([80.0, 120.0, 80.0, 120.0]), CFG)


def test_retest_pattern():
    lows = [98.0, 99.0, 99.5, 99.0, 99.2, 98.5, 99.0]
    closes = [100.0] * 7

    assert has_retest_pattern(_weeks(closes, lows=lows), CFG)


def test_no_retest_when_recent_lows_stay_far_above():
    lows = [90.0, 95.0, 96.0, 99.0, 99.0, 99.0, 99.0]
    assert not has_retest_pattern(_weeks([100.0] * 7, lows=lows), CFG)


def test_no_retest_when_latest_close_sits_on_the_low():
    lows = [98.0, 99.0, 99.0, 99.0, 99.0, 99.0, 98.0]
    closes = [100.0] * 6 + [98.0]
    assert not has_retest_pattern(_weeks(closes, lows=lows), CFG)


def test_compute_technical_signals_bundles_flags():
    signals = compute_technical_signals(_weeks([100.0] * 12), CFG)

    assert signals.price_consolidation
    assert signals.low_volatility
    assert not signals.volume_contraction
    assert signals.retest_pattern


@pytest.mark.parametrize("field", ["recent_weeks", "retest_lookback_weeks"])
def test_signal_config_rejects_empty_windows(field):
    with pytest.raises(ValueError):
        SignalConfig(**{field: 0})

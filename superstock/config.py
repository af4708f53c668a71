from __future__ import annotations

from dataclasses import dataclass, field, replace

TRADING_DAYS_PER_WEEK = 5

TIGHT_BASE_THRESHOLD = 0.05
MIN_BASE_DURATION_WEEKS = 12
VOLUME_DECLINE_THRESHOLD = 0.30

MIN_CURRENT_RATIO = 2.0
MIN_CASH_TO_MARKET_CAP = 1.0
MIN_FREE_CASH_FLOW = 0.0

WEEKLY_GROUPINGS = ("fixed", "calendar")

DEFAULT_HISTORY_PERIOD = "1y"


@dataclass(frozen=True)
class SignalConfig:
    """Thresholds for the technical signal flags."""

    recent_weeks: int = 4
    volume_contraction_threshold: float = 0.20  # recent volume at least 20% under the window mean
    consolidation_threshold: float = 0.03  # max (high - low) / low of recent closes
    max_close_volatility: float = 0.02  # coefficient of variation of weekly closes
    retest_lookback_weeks: int = 3
    retest_tolerance: float = 0.02

    def __post_init__(self) -> None:
        if self.recent_weeks < 1:
            raise ValueError("recent_weeks must be at least 1")
        if self.retest_lookback_weeks < 1:
            raise ValueError("retest_lookback_weeks must be at least 1")


@dataclass(frozen=True)
class ScreeningConfig:
    min_base_duration_weeks: int = MIN_BASE_DURATION_WEEKS
    tight_base_threshold: float = TIGHT_BASE_THRESHOLD
    volume_decline_threshold: float = VOLUME_DECLINE_THRESHOLD
    min_current_ratio: float = MIN_CURRENT_RATIO
    min_cash_to_market_cap: float = MIN_CASH_TO_MARKET_CAP
    min_free_cash_flow: float = MIN_FREE_CASH_FLOW
    weekly_grouping: str = "fixed"
    signals: SignalConfig = field(default_factory=SignalConfig)

    def __post_init__(self) -> None:
        if self.min_base_duration_weeks < 2:
            raise ValueError("min_base_duration_weeks must be at least 2")
        if self.weekly_grouping not in WEEKLY_GROUPINGS:
            raise ValueError(f"weekly_grouping must be one of {WEEKLY_GROUPINGS}")
        if not 0 < self.volume_decline_threshold < 1:
            raise ValueError("volume_decline_threshold must be a fraction in (0, 1)")

    @property
    def min_history_days(self) -> int:
        return self.min_base_duration_weeks * TRADING_DAYS_PER_WEEK

    def with_overrides(self, **overrides) -> "ScreeningConfig":
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


DEFAULT_CONFIG = ScreeningConfig()

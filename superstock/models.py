from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class PriceBar:
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class WeeklyBar:
    start_date: date
    end_date: date
    high: float
    low: float
    close: float
    average_volume: float
    bar_count: int


@dataclass(frozen=True)
class FundamentalsSnapshot:
    market_cap: float
    cash_and_equivalents: float
    total_debt: float
    current_assets: float
    current_liabilities: float
    total_equity: float
    free_cash_flow: float
    asof_date: datetime | None = None


class VolumeTrend(str, Enum):
    DECLINING = "declining"
    FLAT = "flat"
    INCREASING = "increasing"


class VerdictStatus(str, Enum):
    QUALIFIED = "qualified"
    FAILED_BASE_FORMATION = "failed_base_formation"
    FAILED_FUNDAMENTALS = "failed_fundamentals"


@dataclass(frozen=True)
class PriceRange:
    high: float
    low: float

    @property
    def tightness(self) -> float:
        return (self.high - self.low) / self.low


@dataclass(frozen=True)
class VolumeProfile:
    average: float
    trend: VolumeTrend


@dataclass(frozen=True)
class WeeklyCloses:
    prices: tuple[float, ...]
    volatility: float


@dataclass(frozen=True)
class BaseFormation:
    duration_weeks: int
    price_range: PriceRange
    volume_profile: VolumeProfile
    weekly_closes: WeeklyCloses


@dataclass(frozen=True)
class FundamentalMetrics:
    market_cap: float
    cash_position: float
    total_debt: float
    current_ratio: float
    quick_ratio: float
    debt_to_equity: float
    free_cash_flow: float


@dataclass(frozen=True)
class TechnicalSignals:
    volume_contraction: bool
    price_consolidation: bool
    low_volatility: bool
    retest_pattern: bool


@dataclass(frozen=True)
class SectorAnalysis:
    sector: str
    correlated_stocks: tuple[str, ...] = ()
    sector_trend: str = "neutral"  # bullish / bearish / neutral
    relative_strength: float | None = None


@dataclass(frozen=True)
class SentimentIndicators:
    media_sentiment: str = "neutral"  # positive / negative / neutral
    media_coverage: int = 0
    media_sources: tuple[str, ...] = ()
    analyst_recommendations: dict[str, int] = field(default_factory=dict)  # buy / hold / sell
    price_targets: dict[str, float] = field(default_factory=dict)  # low / high / average


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class ScreeningVerdict:
    """Outcome of one screening run.

    A disqualified verdict still carries whatever stages were computed before
    the failing gate (the base formation, and the fundamentals when the
    fundamentals gate rejected), so callers can show why it failed.
    """

    status: VerdictStatus
    base_formation: BaseFormation | None = None
    fundamentals: FundamentalMetrics | None = None
    technical_signals: TechnicalSignals | None = None
    sector_analysis: SectorAnalysis | None = None
    sentiment: SentimentIndicators | None = None
    rejection_reason: str = ""

    @property
    def qualified(self) -> bool:
        return self.status is VerdictStatus.QUALIFIED

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))

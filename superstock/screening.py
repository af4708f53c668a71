"""Superstock screening pipeline.

``evaluate`` runs the stages in order and stops at the first gate that
rejects the security:

1. weekly aggregation of the daily history
2. base-formation analysis over the trailing window
3. base gate (duration, tightness, declining volume)
4. fundamentals ratios
5. fundamentals gate (cash over market cap, liquidity, free cash flow)
6. technical signal flags

A rejected gate is a normal verdict. Inputs the pipeline cannot evaluate
raise a ``ScreeningError`` subclass before any stage runs.
"""
from __future__ import annotations

import logging
import math
from typing import Sequence

from .config import DEFAULT_CONFIG, ScreeningConfig
from .errors import InsufficientHistory, InvalidHistory
from .fundamentals import analyze_fundamentals, has_strong_fundamentals, validate_fundamentals
from .metrics import analyze_base_formation, is_qualifying_base
from .models import (
    FundamentalsSnapshot,
    PriceBar,
    ScreeningVerdict,
    SectorAnalysis,
    SentimentIndicators,
    VerdictStatus,
)
from .signals import compute_technical_signals
from .weekly import aggregate_weekly

logger = logging.getLogger(__name__)


def validate_history(daily_history: Sequence[PriceBar], config: ScreeningConfig = DEFAULT_CONFIG) -> None:
    required = config.min_history_days
    if len(daily_history) < required:
        raise InsufficientHistory(required=required, available=len(daily_history))

    prev = None
    for bar in daily_history:
        if prev is not None and not bar.date > prev.date:
            raise InvalidHistory(f"bars out of order at {bar.date} (after {prev.date})")
        try:
            values = [float(v) for v in (bar.open, bar.high, bar.low, bar.close, bar.volume)]
        except (TypeError, ValueError):
            raise InvalidHistory(f"non-numeric value in bar {bar.date}") from None
        if not all(math.isfinite(v) for v in values):
            raise InvalidHistory(f"non-finite value in bar {bar.date}")
        high, low, volume = values[1], values[2], values[4]
        if volume < 0:
            raise InvalidHistory(f"negative volume in bar {bar.date}")
        if low > high:
            raise InvalidHistory(f"low above high in bar {bar.date}")
        prev = bar


def evaluate(
    daily_history: Sequence[PriceBar],
    fundamentals: FundamentalsSnapshot,
    config: ScreeningConfig = DEFAULT_CONFIG,
    sector_analysis: SectorAnalysis | None = None,
    sentiment: SentimentIndicators | None = None,
) -> ScreeningVerdict:
    validate_history(daily_history, config)
    validate_fundamentals(fundamentals)

    weekly = aggregate_weekly(daily_history, grouping=config.weekly_grouping)
    base = analyze_base_formation(weekly, config)
    ok, reason = is_qualifying_base(base, config)
    if not ok:
        logger.info("failed base formation: %s", reason)
        return ScreeningVerdict(
            status=VerdictStatus.FAILED_BASE_FORMATION,
            base_formation=base,
            rejection_reason=reason,
        )

    metrics = analyze_fundamentals(fundamentals)
    ok, reason = has_strong_fundamentals(metrics, config)
    if not ok:
        logger.info("failed fundamentals: %s", reason)
        return ScreeningVerdict(
            status=VerdictStatus.FAILED_FUNDAMENTALS,
            base_formation=base,
            fundamentals=metrics,
            rejection_reason=reason,
        )

    window = weekly[-config.min_base_duration_weeks :]
    signals = compute_technical_signals(window, config.signals)
    logger.debug("qualified with signals %s", signals)
    return ScreeningVerdict(
        status=VerdictStatus.QUALIFIED,
        base_formation=base,
        fundamentals=metrics,
        technical_signals=signals,
        sector_analysis=sector_analysis,
        sentiment=sentiment,
    )

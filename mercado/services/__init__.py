"""Service layer for Mercado"""

from .trend_service import (
    MarketValuePoint,
    MomentumTrends,
    PlayerMomentum,
    TrendAnalysis,
    TrendService,
    analyze_trend,
    momentum_score,
)

__all__ = [
    "MarketValuePoint",
    "MomentumTrends",
    "PlayerMomentum",
    "TrendAnalysis",
    "TrendService",
    "analyze_trend",
    "momentum_score",
]

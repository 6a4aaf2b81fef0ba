"""Single source of truth for player market value trends.

Everything below the TrendService class boundary is pure: it takes already
fetched market value points and returns trend labels, percentages and the
momentum score. TrendService only adds the fetch through the API client.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..laliga_client import LaLigaAPIError, parse_datetime

logger = logging.getLogger(__name__)

# Absolute percent change under which a window counts as flat
STABLE_THRESHOLD_PCT = 2.0

# Momentum blend: recent day, short trend, weekly context
MOMENTUM_WEIGHTS = {
    "last_1_days": 0.4,
    "last_3_days": 0.4,
    "last_7_days": 0.2,
}

RISING = "rising"
FALLING = "falling"
STABLE = "stable"
INSUFFICIENT_DATA = "insufficient_data"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class MarketValuePoint:
    """Single market value observation."""

    date: datetime
    market_value: int  # Euros


@dataclass
class TrendAnalysis:
    """Windowed trend over the most recent market value points."""

    trend: str = UNKNOWN  # rising / falling / stable / insufficient_data / unknown
    change: int = 0
    change_percent: float = 0.0
    data_points: int = 0
    latest_value: int | None = None
    oldest_value: int | None = None
    summary: str = "No market data available"

    @property
    def has_data(self) -> bool:
        return self.trend not in (UNKNOWN, INSUFFICIENT_DATA)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trend": self.trend,
            "change": self.change,
            "change_percent": self.change_percent,
            "data_points": self.data_points,
            "latest_value": self.latest_value,
            "oldest_value": self.oldest_value,
            "summary": self.summary,
        }


@dataclass
class MomentumTrends:
    """Short-window percent changes feeding the momentum score."""

    last_1_days: float = 0.0
    last_3_days: float = 0.0
    last_7_days: float = 0.0


@dataclass
class PlayerMomentum:
    """Momentum attached to a player for opportunity ranking."""

    trends: MomentumTrends = field(default_factory=MomentumTrends)
    momentum_score: float = 0.0


def _recent_points(points: Iterable[MarketValuePoint], limit: int) -> list[MarketValuePoint]:
    """Positive-valued points, newest first, at most `limit` of them.

    sorted() is stable, so points sharing a date keep their input order.
    """
    usable = [p for p in points or [] if p.market_value > 0]
    usable = sorted(usable, key=lambda p: p.date, reverse=True)
    return usable[: max(limit, 0)]


def _percent(change: int, base: int) -> float:
    return round(change / base * 100, 2)


def analyze_trend(points: Iterable[MarketValuePoint] | None, window_size: int = 5) -> TrendAnalysis:
    """Classify the trend over the `window_size` most recent observations.

    Args:
        points: Market value observations in any order
        window_size: Number of most recent usable points to compare

    Returns:
        TrendAnalysis comparing the newest point of the window with the oldest
        point of the same window (not the oldest of the whole history).
    """
    window = _recent_points(points, window_size)

    if not window:
        return TrendAnalysis()

    if len(window) < 2:
        return TrendAnalysis(
            trend=INSUFFICIENT_DATA,
            data_points=len(window),
            summary="Not enough data points",
        )

    latest_value = window[0].market_value
    oldest_value = window[-1].market_value
    if oldest_value <= 0:
        return TrendAnalysis(data_points=len(window))

    change = latest_value - oldest_value
    change_percent = _percent(change, oldest_value)
    millions = f"{change / 1_000_000:.1f}M€"

    if abs(change_percent) < STABLE_THRESHOLD_PCT:
        trend = STABLE
        summary = f"Stable price ({change_percent}% change)"
    elif change > 0:
        trend = RISING
        summary = f"📈 Rising +{change_percent}% ({millions}) in {window_size} days"
    else:
        trend = FALLING
        summary = f"📉 Falling {change_percent}% ({millions}) in {window_size} days"

    return TrendAnalysis(
        trend=trend,
        change=change,
        change_percent=change_percent,
        data_points=len(window),
        latest_value=latest_value,
        oldest_value=oldest_value,
        summary=summary,
    )


def trend_percentage(points: Iterable[MarketValuePoint] | None, days: int) -> float:
    """Percent change over the last `days` days.

    Uses days + 1 observations so a one-day window compares two points.
    Returns 0.0 when fewer than two usable points exist.
    """
    window = _recent_points(points, days + 1)
    if len(window) < 2 or window[-1].market_value <= 0:
        return 0.0
    return _percent(window[0].market_value - window[-1].market_value, window[-1].market_value)


def momentum_score(trends: MomentumTrends | Mapping[str, float] | None) -> float:
    """Weighted blend of 1/3/7-day percent changes, rounded to 2 decimals.

    Unbounded: positive is favorable momentum, negative unfavorable.
    Missing windows count as 0.
    """
    if trends is None:
        return 0.0
    if isinstance(trends, Mapping):
        values = {key: trends.get(key) or 0.0 for key in MOMENTUM_WEIGHTS}
    else:
        values = {key: getattr(trends, key, 0.0) or 0.0 for key in MOMENTUM_WEIGHTS}

    score = sum(weight * values[key] for key, weight in MOMENTUM_WEIGHTS.items())
    return round(score, 2)


def calculate_momentum(points: Iterable[MarketValuePoint] | None) -> PlayerMomentum:
    """Compute the 1/3/7-day trends and their momentum score."""
    points = list(points or [])
    trends = MomentumTrends(
        last_1_days=trend_percentage(points, 1),
        last_3_days=trend_percentage(points, 3),
        last_7_days=trend_percentage(points, 7),
    )
    return PlayerMomentum(trends=trends, momentum_score=momentum_score(trends))


class TrendService:
    """Fetches market value history and runs the pure trend functions on it."""

    def __init__(self, api_client, short_window: int = 5, long_window: int = 10):
        """
        Args:
            api_client: LaLigaClient instance (has get_player_market_value)
            short_window: Points used for the short trend
            long_window: Points used for the long trend
        """
        self.client = api_client
        self.short_window = short_window
        self.long_window = long_window

    def get_history(self, player_id: str) -> list[MarketValuePoint]:
        """Fetch and parse the market value history of a player."""
        return self.parse_history(self.client.get_player_market_value(player_id))

    def get_trends(self, player_id: str) -> tuple[TrendAnalysis, TrendAnalysis]:
        """Short and long window trends for a player."""
        points = self.get_history(player_id)
        return self.analyze(points)

    def analyze(self, points: list[MarketValuePoint]) -> tuple[TrendAnalysis, TrendAnalysis]:
        return (
            analyze_trend(points, self.short_window),
            analyze_trend(points, self.long_window),
        )

    def get_momentum(self, player_id: str) -> PlayerMomentum:
        return calculate_momentum(self.get_history(player_id))

    def enrich_with_momentum(self, players: list) -> list:
        """Attach PlayerMomentum to each player (need .id and .momentum).

        Players whose history cannot be fetched or parsed are returned unchanged.
        """
        for player in players:
            try:
                player.momentum = self.get_momentum(player.id)
            except LaLigaAPIError as e:
                logger.warning("No momentum for player %s: %s", player.id, e)
            except Exception as e:
                logger.error("Failed to compute momentum for player %s: %s", player.id, e)
        return players

    @staticmethod
    def parse_history(raw: list[dict[str, Any]] | None) -> list[MarketValuePoint]:
        """Pure function: raw API data -> MarketValuePoint list. No I/O.

        Keeps input order; entries without a date are dropped.
        """
        points = []
        for item in raw or []:
            moment = parse_datetime(item.get("date"))
            if moment is None:
                continue
            value = int(item.get("marketValue", 0) or 0)
            points.append(MarketValuePoint(date=moment, market_value=value))
        return points

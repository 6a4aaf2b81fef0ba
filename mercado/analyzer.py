"""Player analysis records, alerts and score routing"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar

from .laliga_client import Player, SaleInfo
from .scoring import market_score, portfolio_score, worth_it_score
from .services.trend_service import FALLING, RISING, MarketValuePoint, TrendAnalysis, analyze_trend


class PlayerCategory(str, Enum):
    """Who the player belongs to; decides which score applies"""

    MY_PLAYER = "my-player"
    MARKET_PLAYER = "market-player"
    OTHER_MANAGER_PLAYER = "other-manager-player"


@dataclass
class PlayerAnalysis:
    """Everything the scorers need to know about one player"""

    player_id: str
    name: str
    position: str
    team: str
    current_value: int
    trend_5d: TrendAnalysis
    trend_10d: TrendAnalysis
    alerts: list[str] = field(default_factory=list)
    sale_expiration_hours: int | None = None
    buyout_protection_hours: int | None = None
    buyout_clause: int | None = None
    sale_info: SaleInfo | None = None

    @property
    def is_for_sale(self) -> bool:
        return self.sale_info is not None

    @property
    def current_value_formatted(self) -> str:
        return format_millions(self.current_value)


@dataclass
class ScoredAnalysis:
    """A PlayerAnalysis plus the single score that applies to its category"""

    analysis: PlayerAnalysis
    score: int

    category: ClassVar[PlayerCategory]
    mode: ClassVar[str]


@dataclass
class PortfolioAnalysis(ScoredAnalysis):
    """One of your own players, scored with portfolio_score"""

    category = PlayerCategory.MY_PLAYER
    mode = "portfolio"


@dataclass
class MarketAnalysis(ScoredAnalysis):
    """Open market player, scored with market_score"""

    category = PlayerCategory.MARKET_PLAYER
    mode = "market"


@dataclass
class BuyoutAnalysis(ScoredAnalysis):
    """Another manager's player, scored with worth_it_score"""

    category = PlayerCategory.OTHER_MANAGER_PLAYER
    mode = "buyout"


@dataclass
class ActionRecommendation:
    """Suggested action shown next to an analysis"""

    icon: str
    title: str
    description: str
    tone: str  # success / info / warning / danger / accent


SCORERS = {
    PlayerCategory.MY_PLAYER: (portfolio_score, PortfolioAnalysis),
    PlayerCategory.MARKET_PLAYER: (market_score, MarketAnalysis),
    PlayerCategory.OTHER_MANAGER_PLAYER: (worth_it_score, BuyoutAnalysis),
}

ANALYSIS_MODES = {
    "portfolio": PortfolioAnalysis,
    "market": MarketAnalysis,
    "buyout": BuyoutAnalysis,
}

SORT_OPTIONS = (
    "mode-default",
    "best-opportunities",
    "alerts",
    "value",
    "trend-5d",
    "trend-10d",
    "buyout-low",
    "buyout-high",
    "protection",
)

LOW_BUYOUT_ALERT_RATIO = 1.5
VALUE_DEAL_RATIO = 0.8


def format_millions(value: int | float) -> str:
    return f"{value / 1_000_000:.1f}M€"


def hours_until(moment: datetime | None, now: datetime | None = None) -> int | None:
    """Whole hours until `moment`, rounded up. Negative once it has passed."""
    if moment is None:
        return None
    now = now or datetime.now(timezone.utc)
    return math.ceil((moment - now).total_seconds() / 3600)


def build_alerts(analysis: PlayerAnalysis, is_my_player: bool = False) -> list[str]:
    """Free-text warnings for trend swings, and for your own players, sales and buyouts"""
    alerts = []
    trend_5d = analysis.trend_5d
    trend_10d = analysis.trend_10d

    if trend_5d.trend == FALLING and abs(trend_5d.change_percent) > 5:
        alerts.append(f"⚠️ Significant drop in 5 days: {trend_5d.change_percent}%")
    if trend_5d.trend == RISING and trend_5d.change_percent > 10:
        alerts.append(f"🚀 Strong growth in 5 days: +{trend_5d.change_percent}%")
    if trend_10d.trend == FALLING and abs(trend_10d.change_percent) > 10:
        alerts.append(f"📉 Major decline in 10 days: {trend_10d.change_percent}%")

    if not is_my_player:
        return alerts

    if analysis.sale_info is not None:
        hours = analysis.sale_expiration_hours
        if hours is not None and 0 < hours <= 48:
            alerts.append(f"⏰ Sale expires in {hours}h")
        elif hours is not None and 0 < hours <= 168:
            alerts.append(f"⏰ Sale expires in {math.ceil(hours / 24)} days")
        alerts.append(
            f"💰 Your player is on sale for {format_millions(analysis.sale_info.sale_price)}"
        )

    if analysis.buyout_clause:
        if analysis.buyout_clause < analysis.current_value * LOW_BUYOUT_ALERT_RATIO:
            alerts.append(f"⚠️ Low buyout clause: {format_millions(analysis.buyout_clause)}")

        hours = analysis.buyout_protection_hours
        if hours is not None:
            if hours <= 0:
                alerts.append(
                    "🚨 Buyout clause protection has EXPIRED - player can be bought out!"
                )
            elif hours <= 48:
                alerts.append(f"🔓 Buyout clause protection expires in {hours}h")
            elif hours <= 168:
                alerts.append(
                    f"🔓 Buyout clause protection expires in {math.ceil(hours / 24)} days"
                )

    return alerts


def build_player_analysis(
    player: Player,
    points: list[MarketValuePoint],
    category: PlayerCategory,
    now: datetime | None = None,
    current_value: int | None = None,
    short_window: int = 5,
    long_window: int = 10,
) -> PlayerAnalysis:
    """
    Build the analysis for a fully-populated player record

    Buyout data of other managers' players must already be merged into
    `player`; nothing is patched in afterwards.
    """
    now = now or datetime.now(timezone.utc)
    is_my_player = category == PlayerCategory.MY_PLAYER

    analysis = PlayerAnalysis(
        player_id=player.id,
        name=player.display_name,
        position=player.position,
        team=player.team_name or "Unknown",
        current_value=current_value or player.market_value or 0,
        trend_5d=analyze_trend(points, short_window),
        trend_10d=analyze_trend(points, long_window),
    )

    if is_my_player and player.sale_info is not None:
        analysis.sale_info = player.sale_info
        analysis.sale_expiration_hours = hours_until(player.sale_info.expiration_date, now)

    if category != PlayerCategory.MARKET_PLAYER and player.buyout_clause:
        analysis.buyout_clause = player.buyout_clause
        analysis.buyout_protection_hours = hours_until(player.buyout_clause_locked_end_time, now)

    analysis.alerts = build_alerts(analysis, is_my_player=is_my_player)
    return analysis


def score_analysis(
    analysis: PlayerAnalysis, category: PlayerCategory | None = None
) -> ScoredAnalysis:
    """Run the scorer for `category` once. Unknown category falls back to market."""
    scorer, variant = SCORERS[category or PlayerCategory.MARKET_PLAYER]
    return variant(analysis=analysis, score=scorer(analysis))


def recommend_action(scored: ScoredAnalysis) -> ActionRecommendation | None:
    """Pick the headline action for an analysis, if any applies"""
    analysis = scored.analysis
    trend_5d = analysis.trend_5d.change_percent
    trend_10d = analysis.trend_10d.change_percent
    hours = analysis.buyout_protection_hours

    if isinstance(scored, PortfolioAnalysis):
        if scored.score >= 80:
            return ActionRecommendation(
                "🌟",
                "Star Performer",
                "Excellent growth. Consider increasing buyout protection.",
                "success",
            )
        if trend_5d < -8 and trend_10d < -15:
            return ActionRecommendation(
                "⚠️", "Sell Candidate", "Declining value. Consider selling soon.", "danger"
            )
        if hours is not None and hours <= 24:
            return ActionRecommendation(
                "🛡️", "Protection Expiring", "Increase buyout clause to protect this player.",
                "warning",
            )
        if trend_5d > 10 or trend_10d > 20:
            return ActionRecommendation(
                "🚀", "Rising Star", "Strong growth trend. Hold and protect.", "info"
            )

    elif isinstance(scored, MarketAnalysis):
        if scored.score >= 80:
            return ActionRecommendation(
                "🔥", "Hot Buy", "Excellent market opportunity. Buy now!", "success"
            )
        if scored.score >= 60:
            return ActionRecommendation(
                "👍", "Good Buy", "Solid investment with growth potential.", "info"
            )
        if trend_5d < -10 and trend_10d < -20:
            return ActionRecommendation(
                "🚫", "Avoid", "Poor trend. Look for better options.", "danger"
            )

    elif isinstance(scored, BuyoutAnalysis):
        if scored.score >= 80:
            return ActionRecommendation(
                "💎", "Premium Buyout", "Excellent opportunity. Consider buyout immediately.",
                "success",
            )
        if scored.score >= 60 and hours is not None and hours <= 72:
            return ActionRecommendation(
                "⚡", "Act Fast", "Good opportunity expiring soon. Decide quickly.", "warning"
            )
        if scored.score >= 60:
            return ActionRecommendation(
                "🎯", "Good Opportunity", "Solid buyout candidate. Consider your budget.", "info"
            )
        clause = analysis.buyout_clause
        if clause and clause < analysis.current_value * VALUE_DEAL_RATIO:
            return ActionRecommendation(
                "💰", "Value Deal", "Buyout below market value. Great deal!", "accent"
            )

    return None


def filter_analyses(
    analyses: list[ScoredAnalysis],
    mode: str | None = None,
    trends: set[str] | None = None,
    positions: set[str] | None = None,
    min_alerts: int = 0,
) -> list[ScoredAnalysis]:
    """Keep the analyses matching an analysis mode and the display filters"""
    if mode is not None and mode not in ANALYSIS_MODES:
        raise ValueError(f"Unknown analysis mode: {mode}")

    result = []
    for scored in analyses:
        analysis = scored.analysis
        if mode is not None:
            if not isinstance(scored, ANALYSIS_MODES[mode]):
                continue
            if mode == "buyout" and not (analysis.buyout_clause and scored.score):
                continue
        if trends is not None and analysis.trend_5d.trend not in trends:
            continue
        if positions is not None and analysis.position not in positions:
            continue
        if len(analysis.alerts) < min_alerts:
            continue
        result.append(scored)
    return result


def _sort_key(sort_by: str):
    def pct(scored: ScoredAnalysis, window: str) -> float:
        return getattr(scored.analysis, window).change_percent

    keys = {
        "mode-default": lambda s: -s.score,
        "best-opportunities": lambda s: (
            not s.analysis.buyout_clause,
            -worth_it_score(s.analysis),
        ),
        "alerts": lambda s: (-len(s.analysis.alerts), -abs(pct(s, "trend_5d"))),
        "value": lambda s: -s.analysis.current_value,
        "trend-5d": lambda s: -pct(s, "trend_5d"),
        "trend-10d": lambda s: -pct(s, "trend_10d"),
        "buyout-low": lambda s: (not s.analysis.buyout_clause, s.analysis.buyout_clause or 0),
        "buyout-high": lambda s: (not s.analysis.buyout_clause, -(s.analysis.buyout_clause or 0)),
        "protection": lambda s: (
            s.analysis.buyout_protection_hours is None,
            s.analysis.buyout_protection_hours or 0,
        ),
    }
    if sort_by not in keys:
        raise ValueError(f"Unknown sort option: {sort_by}")
    return keys[sort_by]


def sort_analyses(
    analyses: list[ScoredAnalysis], sort_by: str = "mode-default"
) -> list[ScoredAnalysis]:
    """Return a sorted copy; players missing the sorted field go last"""
    return sorted(analyses, key=_sort_key(sort_by))

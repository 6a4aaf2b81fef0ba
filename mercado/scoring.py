"""Opportunity scoring for owned, market and buyout players.

All thresholds below are hand-tuned heuristics carried over from the
dashboard. They are kept as named constants so they can be tuned in one
place; none of them has a documented derivation.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .analyzer import PlayerAnalysis
    from .laliga_client import Player

# Trend tiers: ((min 5d %, min 10d %), points). First tier where either
# window exceeds its threshold wins.
WORTH_IT_TREND_TIERS = (
    ((10, 20), 25),
    ((5, 10), 20),
    ((0, 5), 15),
    ((-5, -10), 10),
    ((-10, -20), 5),
)
PORTFOLIO_TREND_TIERS = (
    ((15, 25), 40),
    ((8, 15), 35),
    ((3, 8), 30),
    ((-2, -5), 25),
    ((-8, -15), 15),
)
PORTFOLIO_TREND_FLOOR = 5
MARKET_TREND_TIERS = (
    ((10, 20), 50),
    ((5, 10), 40),
    ((0, 5), 30),
    ((-5, -10), 20),
    ((-10, -20), 10),
)

# Buyout clause / market value: (upper bound, points)
BUYOUT_RATIO_TIERS = ((0.8, 50), (1.0, 40), (1.2, 25), (1.5, 10))

# Hours until the buyout clause can be exercised
WORTH_IT_PROTECTION_TIERS = ((0, 20), (24, 18), (72, 15), (168, 12))  # hours <= bound
WORTH_IT_PROTECTION_DEFAULT = 5
WORTH_IT_PROTECTION_UNKNOWN = 20
PORTFOLIO_PROTECTION_TIERS = ((168, 30), (72, 25), (24, 15))  # hours > bound
PORTFOLIO_PROTECTION_DEFAULT = 5
PORTFOLIO_PROTECTION_UNKNOWN = 20

# Market value tiers in euros: (lower bound, points), value > bound
WORTH_IT_VALUE_TIERS = ((50_000_000, 5), (20_000_000, 4), (10_000_000, 3), (5_000_000, 2))
WORTH_IT_VALUE_FLOOR = 1
PORTFOLIO_VALUE_TIERS = ((50_000_000, 10), (20_000_000, 8), (10_000_000, 6), (5_000_000, 4))
PORTFOLIO_VALUE_FLOOR = 2
MARKET_VALUE_TIERS = ((50_000_000, 15), (20_000_000, 25), (10_000_000, 30), (5_000_000, 25))
MARKET_VALUE_FLOOR = 20

# Portfolio sale status
SELL_DECLINE_THRESHOLD_PCT = -5
SALE_DECLINING_POINTS = 20
SALE_NOT_DECLINING_POINTS = 5
NOT_FOR_SALE_POINTS = 15

# Market stability: |5d - 10d| upper bound, points
STABILITY_TIERS = ((5, 20), (10, 15), (20, 10))
STABILITY_FLOOR = 5

# Opportunity ranking
GOOD_BUYOUT_RATIO = 1.2
GREAT_BUYOUT_RATIO = 1.0
GOOD_BUYOUT_BONUS = 40
GREAT_BUYOUT_BONUS = 20
VALUE_CAP = 50_000_000
VALUE_WEIGHT = 20
POSITIVE_MOMENTUM_FACTOR = 0.5
POSITIVE_MOMENTUM_CAP = 15
NEGATIVE_MOMENTUM_FACTOR = 0.3
NEGATIVE_MOMENTUM_FLOOR = -10
AVERAGE_POINTS_CAP = 10
AVERAGE_POINTS_WEIGHT = 10
URGENCY_TIERS = ((12, 5), (24, 3), (48, 1))  # hours left <= bound


def _trend_points(trend_5d: float, trend_10d: float, tiers, floor: int = 0) -> int:
    for (min_5d, min_10d), points in tiers:
        if trend_5d > min_5d or trend_10d > min_10d:
            return points
    return floor


def _above_tier(value: int, tiers, floor: int) -> int:
    for bound, points in tiers:
        if value > bound:
            return points
    return floor


def _trend_pair(analysis: "PlayerAnalysis") -> tuple[float, float]:
    return analysis.trend_5d.change_percent, analysis.trend_10d.change_percent


def worth_it_score(analysis: "PlayerAnalysis") -> int:
    """
    Score (0-100) for buying out another manager's player

    Factors:
    - Buyout clause vs market value (0-50)
    - Trend strength (0-25)
    - Time until the clause can be exercised (0-20)
    - Market value tier (0-5)

    Returns 0 when the player has no buyout clause.
    """
    if not analysis.buyout_clause:
        return 0

    score = 0

    # 1. Value vs buyout ratio
    if analysis.current_value > 0:
        ratio = analysis.buyout_clause / analysis.current_value
        for bound, points in BUYOUT_RATIO_TIERS:
            if ratio < bound:
                score += points
                break

    # 2. Trend strength
    score += _trend_points(*_trend_pair(analysis), WORTH_IT_TREND_TIERS)

    # 3. Protection remaining (unknown = available now)
    hours = analysis.buyout_protection_hours
    if hours is None:
        score += WORTH_IT_PROTECTION_UNKNOWN
    else:
        for bound, points in WORTH_IT_PROTECTION_TIERS:
            if hours <= bound:
                score += points
                break
        else:
            score += WORTH_IT_PROTECTION_DEFAULT

    # 4. Value tier
    score += _above_tier(analysis.current_value, WORTH_IT_VALUE_TIERS, WORTH_IT_VALUE_FLOOR)

    return round(score)


def portfolio_score(analysis: "PlayerAnalysis") -> int:
    """
    Score (0-100) for a player in your own squad

    Factors:
    - Trend strength (0-40)
    - Buyout protection remaining (0-30)
    - Sale status (0-20): selling a declining player is good, a rising one is not
    - Market value tier (0-10)
    """
    trend_5d, trend_10d = _trend_pair(analysis)

    score = _trend_points(trend_5d, trend_10d, PORTFOLIO_TREND_TIERS, PORTFOLIO_TREND_FLOOR)

    hours = analysis.buyout_protection_hours
    if hours is None:
        score += PORTFOLIO_PROTECTION_UNKNOWN
    else:
        score += _above_tier(hours, PORTFOLIO_PROTECTION_TIERS, PORTFOLIO_PROTECTION_DEFAULT)

    if analysis.is_for_sale:
        if trend_5d < SELL_DECLINE_THRESHOLD_PCT:
            score += SALE_DECLINING_POINTS
        else:
            score += SALE_NOT_DECLINING_POINTS
    else:
        score += NOT_FOR_SALE_POINTS

    score += _above_tier(analysis.current_value, PORTFOLIO_VALUE_TIERS, PORTFOLIO_VALUE_FLOOR)

    return round(score)


def market_score(analysis: "PlayerAnalysis") -> int:
    """
    Score (0-100) for a player on the open market

    Factors:
    - Trend strength (0-50)
    - Market value tier (0-30), mid-priced players preferred
    - Trend stability between 5d and 10d windows (0-20)
    """
    trend_5d, trend_10d = _trend_pair(analysis)

    score = _trend_points(trend_5d, trend_10d, MARKET_TREND_TIERS)
    score += _above_tier(analysis.current_value, MARKET_VALUE_TIERS, MARKET_VALUE_FLOOR)

    spread = abs(trend_5d - trend_10d)
    for bound, points in STABILITY_TIERS:
        if spread < bound:
            score += points
            break
    else:
        score += STABILITY_FLOOR

    return round(score)


def _hours_left(moment: datetime, now: datetime) -> float:
    return (moment - now).total_seconds() / 3600


def opportunity_score(player: "Player", now: datetime | None = None) -> float:
    """
    Composite score used to order buy opportunities (higher first)

    Not normalized: buyout, value and momentum bonuses can stack past 100.
    """
    now = now or datetime.now(timezone.utc)
    score = 0.0

    # 1. Cheap buyout clause
    if player.buyout_clause and player.market_value:
        ratio = player.buyout_clause / player.market_value
        if ratio < GOOD_BUYOUT_RATIO:
            score += GOOD_BUYOUT_BONUS
            if ratio < GREAT_BUYOUT_RATIO:
                score += GREAT_BUYOUT_BONUS

    # 2. Market value, capped
    score += min(player.market_value / VALUE_CAP, 1) * VALUE_WEIGHT

    # 3. Momentum
    momentum = player.momentum.momentum_score if player.momentum else 0.0
    if momentum > 0:
        score += min(momentum * POSITIVE_MOMENTUM_FACTOR, POSITIVE_MOMENTUM_CAP)
    elif momentum < 0:
        score += max(momentum * NEGATIVE_MOMENTUM_FACTOR, NEGATIVE_MOMENTUM_FLOOR)

    # 4. Points
    score += min(player.average_points / AVERAGE_POINTS_CAP, 1) * AVERAGE_POINTS_WEIGHT

    # 5. Sale about to close
    if player.sale_info and player.sale_info.expiration_date:
        hours = _hours_left(player.sale_info.expiration_date, now)
        for bound, points in URGENCY_TIERS:
            if hours <= bound:
                score += points
                break

    return score


def sort_opportunities(players: list["Player"], now: datetime | None = None) -> list["Player"]:
    """Best deals first. Returns a new list."""
    now = now or datetime.now(timezone.utc)
    return sorted(players, key=lambda p: opportunity_score(p, now), reverse=True)

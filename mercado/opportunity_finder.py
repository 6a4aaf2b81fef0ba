"""Buyout opportunities among other managers' players"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .laliga_client import Player
from .scoring import GOOD_BUYOUT_RATIO, sort_opportunities

EXPIRING_PROTECTION_HOURS = 72
LOW_BUYOUT_PROTECTION_WINDOW = timedelta(days=2)
DEFAULT_MINIMUM_MOMENTUM = 5

SORT_FIELDS = (
    "name",
    "market_value",
    "points",
    "average_points",
    "position",
    "buyout_clause",
    "sale_price",
)


@dataclass
class OpportunityReport:
    """Ranked opponent players plus the quick-look groupings"""

    players: list[Player] = field(default_factory=list)  # Best opportunity first
    low_buyout: list[Player] = field(default_factory=list)
    expiring_protection: list[Player] = field(default_factory=list)
    trending_up: list[Player] = field(default_factory=list)
    summary: dict = field(default_factory=dict)
    now: datetime | None = None  # Reference time used for ranking

    @classmethod
    def build(cls, players: list[Player], now: datetime | None = None) -> "OpportunityReport":
        now = now or datetime.now(timezone.utc)
        return cls(
            players=sort_opportunities(players, now),
            low_buyout=players_with_low_buyout(players, now),
            expiring_protection=players_with_expiring_protection(players, now),
            trending_up=trending_up_players(players),
            summary=summary_stats(players),
            now=now,
        )


def summary_stats(players: list[Player]) -> dict:
    """Totals for a list of players"""
    total_value = sum(p.market_value for p in players)
    total_points = sum(p.points for p in players)
    average_points = round(total_points / len(players), 1) if players else 0

    return {
        "total_players": len(players),
        "total_value": total_value,
        "total_points": total_points,
        "average_points": average_points,
    }


def _is_protection_expiring_soon(player: Player, now: datetime) -> bool:
    # No lock time means the clause can be exercised now
    if player.buyout_clause_locked_end_time is None:
        return True
    return player.buyout_clause_locked_end_time - now <= LOW_BUYOUT_PROTECTION_WINDOW


def players_with_low_buyout(players: list[Player], now: datetime | None = None) -> list[Player]:
    """Buyout clause under 1.2x market value and protection ending within two days"""
    now = now or datetime.now(timezone.utc)
    return [
        p
        for p in players
        if p.buyout_clause
        and p.buyout_clause < p.market_value * GOOD_BUYOUT_RATIO
        and _is_protection_expiring_soon(p, now)
    ]


def players_with_expiring_protection(
    players: list[Player], now: datetime | None = None, hours: int = EXPIRING_PROTECTION_HOURS
) -> list[Player]:
    """Players whose buyout protection ends within `hours` (already expired included)"""
    now = now or datetime.now(timezone.utc)
    result = []
    for player in players:
        if player.buyout_clause_locked_end_time is None:
            continue
        hours_left = (player.buyout_clause_locked_end_time - now).total_seconds() / 3600
        if hours_left <= hours:
            result.append(player)
    return result


def trending_up_players(
    players: list[Player], minimum_momentum: float = DEFAULT_MINIMUM_MOMENTUM
) -> list[Player]:
    return [
        p for p in players if p.momentum and p.momentum.momentum_score > minimum_momentum
    ]


def sort_players(players: list[Player], sort_by: str, order: str = "desc") -> list[Player]:
    """Sort a copy of `players` by one of SORT_FIELDS"""
    keys = {
        "name": lambda p: p.display_name.lower(),
        "market_value": lambda p: p.market_value,
        "points": lambda p: p.points,
        "average_points": lambda p: p.average_points,
        "position": lambda p: p.position_id,
        "buyout_clause": lambda p: p.buyout_clause or 0,
        "sale_price": lambda p: p.sale_info.sale_price if p.sale_info else 0,
    }
    if sort_by not in keys:
        raise ValueError(f"Unknown sort field: {sort_by}")
    if order not in ("asc", "desc"):
        raise ValueError(f"Unknown sort order: {order}")
    return sorted(players, key=keys[sort_by], reverse=order == "desc")

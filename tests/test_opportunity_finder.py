"""Tests for buyout opportunity groupings and player sorting"""

from datetime import datetime, timedelta, timezone

import pytest

from mercado.laliga_client import Player, SaleInfo
from mercado.opportunity_finder import (
    OpportunityReport,
    players_with_expiring_protection,
    players_with_low_buyout,
    sort_players,
    summary_stats,
    trending_up_players,
)
from mercado.services.trend_service import PlayerMomentum

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_player(player_id: str, **overrides) -> Player:
    fields = {
        "id": player_id,
        "name": f"Player {player_id}",
        "position_id": 3,
        "team_name": "Test FC",
        "market_value": 10_000_000,
    }
    fields.update(overrides)
    return Player(**fields)


def locked_for(hours: float) -> datetime:
    return NOW + timedelta(hours=hours)


class TestSummaryStats:
    def test_empty(self):
        assert summary_stats([]) == {
            "total_players": 0,
            "total_value": 0,
            "total_points": 0,
            "average_points": 0,
        }

    def test_totals(self):
        players = [
            make_player("1", market_value=5_000_000, points=10),
            make_player("2", market_value=7_000_000, points=15),
        ]
        stats = summary_stats(players)
        assert stats["total_players"] == 2
        assert stats["total_value"] == 12_000_000
        assert stats["total_points"] == 25
        assert stats["average_points"] == 12.5


class TestLowBuyout:
    def test_unlocked_cheap_clause(self):
        player = make_player("1", buyout_clause=11_000_000)
        assert players_with_low_buyout([player], NOW) == [player]

    def test_lock_ending_within_two_days(self):
        player = make_player(
            "1", buyout_clause=11_000_000, buyout_clause_locked_end_time=locked_for(24)
        )
        assert players_with_low_buyout([player], NOW) == [player]

    def test_lock_ending_later(self):
        player = make_player(
            "1", buyout_clause=11_000_000, buyout_clause_locked_end_time=locked_for(72)
        )
        assert players_with_low_buyout([player], NOW) == []

    def test_expensive_clause(self):
        player = make_player("1", buyout_clause=15_000_000)
        assert players_with_low_buyout([player], NOW) == []

    def test_no_clause(self):
        assert players_with_low_buyout([make_player("1")], NOW) == []


class TestExpiringProtection:
    def test_selects_players_within_window(self):
        soon = make_player("soon", buyout_clause_locked_end_time=locked_for(24))
        expired = make_player("expired", buyout_clause_locked_end_time=locked_for(-5))
        later = make_player("later", buyout_clause_locked_end_time=locked_for(100))
        unknown = make_player("unknown")

        result = players_with_expiring_protection([soon, expired, later, unknown], NOW)

        assert result == [soon, expired]

    def test_custom_window(self):
        player = make_player("1", buyout_clause_locked_end_time=locked_for(100))
        assert players_with_expiring_protection([player], NOW, hours=120) == [player]


class TestTrendingUp:
    def test_strictly_above_minimum(self):
        hot = make_player("hot", momentum=PlayerMomentum(momentum_score=6))
        flat = make_player("flat", momentum=PlayerMomentum(momentum_score=5))
        none = make_player("none")
        assert trending_up_players([hot, flat, none]) == [hot]


class TestSortPlayers:
    @pytest.fixture
    def players(self):
        return [
            make_player("1", name="Zeta", market_value=5_000_000, buyout_clause=9_000_000),
            make_player(
                "2",
                name="alpha",
                market_value=20_000_000,
                sale_info=SaleInfo(sale_price=21_000_000, expiration_date=None),
            ),
            make_player("3", name="Mid", market_value=10_000_000),
        ]

    @staticmethod
    def ids(players):
        return [p.id for p in players]

    def test_market_value_desc(self, players):
        assert self.ids(sort_players(players, "market_value")) == ["2", "3", "1"]

    def test_name_asc_is_case_insensitive(self, players):
        assert self.ids(sort_players(players, "name", "asc")) == ["2", "3", "1"]

    def test_missing_values_count_as_zero(self, players):
        assert self.ids(sort_players(players, "buyout_clause")) == ["1", "2", "3"]
        assert self.ids(sort_players(players, "sale_price"))[0] == "2"

    def test_returns_copy(self, players):
        original = list(players)
        sort_players(players, "market_value")
        assert players == original

    def test_unknown_field(self, players):
        with pytest.raises(ValueError):
            sort_players(players, "height")

    def test_unknown_order(self, players):
        with pytest.raises(ValueError):
            sort_players(players, "name", "sideways")


class TestOpportunityReport:
    def test_build(self):
        cheap = make_player(
            "cheap", buyout_clause=9_000_000, buyout_clause_locked_end_time=locked_for(10)
        )
        hot = make_player(
            "hot",
            buyout_clause=30_000_000,
            buyout_clause_locked_end_time=locked_for(60),
            momentum=PlayerMomentum(momentum_score=12),
        )

        report = OpportunityReport.build([hot, cheap], NOW)

        assert [p.id for p in report.players] == ["cheap", "hot"]
        assert report.low_buyout == [cheap]
        assert report.expiring_protection == [hot, cheap]
        assert report.now == NOW
        assert report.trending_up == [hot]
        assert report.summary["total_players"] == 2

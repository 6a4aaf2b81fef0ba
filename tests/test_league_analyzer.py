"""Tests for league-wide analysis with a mocked LaLiga client"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from mercado.analyzer import BuyoutAnalysis, MarketAnalysis, PlayerCategory, PortfolioAnalysis
from mercado.config import Settings
from mercado.laliga_client import (
    MANAGER_LISTING,
    OFFICIAL_LISTING,
    LaLigaAPIError,
    League,
    MarketListing,
    Owner,
    Player,
    TeamStanding,
)
from mercado.league_analyzer import LeagueAnalyzer
from mercado.scoring import worth_it_score

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

HISTORY = [
    {"date": "2025-02-25T00:00:00Z", "marketValue": 10_000_000},
    {"date": "2025-02-26T00:00:00Z", "marketValue": 10_400_000},
    {"date": "2025-02-27T00:00:00Z", "marketValue": 10_600_000},
    {"date": "2025-02-28T00:00:00Z", "marketValue": 10_800_000},
    {"date": "2025-03-01T00:00:00Z", "marketValue": 11_000_000},
]


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


def listing(player: Player, kind: str) -> MarketListing:
    return MarketListing(
        id=f"listing-{player.id}",
        kind=kind,
        player=player,
        sale_price=player.market_value,
        expiration_date=NOW + timedelta(hours=20),
    )


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        laliga_token="token",
        request_delay_seconds=0,
        team_request_delay_seconds=0,
    )


@pytest.fixture
def client():
    client = Mock()
    client.get_league.return_value = League(id="L1", name="Liga", team_id="T1")
    client.get_team.return_value = [make_player("mine")]
    client.get_market.return_value = [
        listing(make_player("free"), OFFICIAL_LISTING),
        listing(make_player("rival"), MANAGER_LISTING),
        listing(make_player("mine"), MANAGER_LISTING),
    ]
    client.get_player_market_value.return_value = HISTORY
    client.get_player_info.return_value = {"marketValue": 11_000_000}
    client.get_league_ranking.return_value = [
        TeamStanding(team_id="T1", manager_id="M1", manager_name="Me"),
        TeamStanding(team_id="T2", manager_id="M2", manager_name="Rival"),
    ]
    client.get_league_team.return_value = [
        make_player(
            "rival",
            buyout_clause=8_000_000,
            buyout_clause_locked_end_time=NOW + timedelta(hours=1),
            owner=Owner(id="M2", name="Rival", team_name="Rival"),
        )
    ]
    return client


class TestAnalyzeLeague:
    """Test the full league run"""

    def test_scores_every_category_once(self, client, settings):
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        results = analyzer.analyze_league("L1", now=NOW)

        by_id = {s.analysis.player_id: s for s in results}
        assert set(by_id) == {"mine", "free", "rival"}
        assert isinstance(by_id["mine"], PortfolioAnalysis)
        assert isinstance(by_id["free"], MarketAnalysis)
        assert isinstance(by_id["rival"], BuyoutAnalysis)
        assert [s.score for s in results] == sorted((s.score for s in results), reverse=True)

    def test_roster_buyout_data_is_merged_before_scoring(self, client, settings):
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        results = analyzer.analyze_league("L1", now=NOW)

        rival = next(s for s in results if s.analysis.player_id == "rival")
        assert rival.analysis.buyout_clause == 8_000_000
        assert rival.analysis.buyout_protection_hours == 1
        assert rival.score == worth_it_score(rival.analysis)
        assert rival.score > 0

    def test_uses_current_value_from_player_info(self, client, settings):
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        results = analyzer.analyze_league("L1", now=NOW)

        assert all(s.analysis.current_value == 11_000_000 for s in results)
        assert all(s.analysis.trend_5d.trend == "rising" for s in results)

    def test_skips_rosters_without_manager_listings(self, client, settings):
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        results = analyzer.analyze_league("L1", include_other_managers=False, now=NOW)

        client.get_league_ranking.assert_not_called()
        assert {s.analysis.player_id for s in results} == {"mine", "free"}

    def test_market_limit(self, client, settings):
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        results = analyzer.analyze_league("L1", max_market_players=1, now=NOW)

        assert {s.analysis.player_id for s in results} == {"mine", "free"}

    def test_progress_callback(self, client, settings):
        on_progress = Mock()
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        analyzer.analyze_league("L1", now=NOW, on_progress=on_progress)

        assert on_progress.call_count == 4
        on_progress.assert_called_with(4, 4)

    def test_pauses_between_requests(self, client):
        sleep = Mock()
        settings = Settings(
            _env_file=None, request_delay_seconds=0.5, team_request_delay_seconds=0.2
        )
        analyzer = LeagueAnalyzer(client, settings, sleep=sleep)

        analyzer.analyze_league("L1", now=NOW)

        sleep.assert_any_call(0.5)
        sleep.assert_any_call(0.2)

    def test_malformed_history_skips_only_that_player(self, client, settings):
        client.get_team.return_value = [make_player("bad"), make_player("good")]
        client.get_player_market_value.side_effect = lambda player_id: (
            [{"date": 1700000000, "marketValue": 5}] if player_id == "bad" else HISTORY
        )
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        results = analyzer.analyze_league(
            "L1", include_market=False, include_other_managers=False, now=NOW
        )

        assert [s.analysis.player_id for s in results] == ["good"]

    def test_malformed_player_info_skips_only_that_player(self, client, settings):
        client.get_team.return_value = [make_player("bad"), make_player("good")]
        client.get_player_info.side_effect = lambda player_id: (
            ["not", "a", "dict"] if player_id == "bad" else {"marketValue": 11_000_000}
        )
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        results = analyzer.analyze_league(
            "L1", include_market=False, include_other_managers=False, now=NOW
        )

        assert [s.analysis.player_id for s in results] == ["good"]

    def test_league_failure_propagates(self, client, settings):
        client.get_league.side_effect = LaLigaAPIError("League L1 not found", status_code=404)
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        with pytest.raises(LaLigaAPIError):
            analyzer.analyze_league("L1", now=NOW)


class TestAnalyzePlayer:
    """Test per-player fetch failures"""

    def test_skips_unreachable_market_player(self, client, settings):
        client.get_player_market_value.side_effect = LaLigaAPIError("down", status_code=500)
        client.get_player_info.side_effect = LaLigaAPIError("down", status_code=500)
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        assert analyzer.analyze_player(make_player("x"), PlayerCategory.MARKET_PLAYER, NOW) is None

    def test_keeps_unreachable_own_player(self, client, settings):
        client.get_player_market_value.side_effect = LaLigaAPIError("down", status_code=500)
        client.get_player_info.side_effect = LaLigaAPIError("down", status_code=500)
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        scored = analyzer.analyze_player(
            make_player("x", market_value=9_000_000), PlayerCategory.MY_PLAYER, NOW
        )

        assert isinstance(scored, PortfolioAnalysis)
        assert scored.analysis.current_value == 9_000_000
        assert scored.analysis.trend_5d.trend == "unknown"

    def test_history_without_info(self, client, settings):
        client.get_player_info.side_effect = LaLigaAPIError("down", status_code=500)
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        scored = analyzer.analyze_player(make_player("x"), PlayerCategory.MARKET_PLAYER, NOW)

        assert scored.analysis.current_value == 10_000_000
        assert scored.analysis.trend_5d.change_percent == 10.0


class TestCollectRosters:
    """Test roster indexing"""

    def test_continues_after_failed_team(self, client, settings):
        client.get_league_team.side_effect = [
            LaLigaAPIError("boom", status_code=500),
            [make_player("p2")],
        ]
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        index = analyzer.collect_rosters("L1")

        assert list(index) == ["p2"]

    def test_excludes_own_team(self, client, settings):
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        analyzer.collect_rosters("L1", exclude_team_id="T1")

        assert client.get_league_team.call_count == 1
        assert client.get_league_team.call_args.args == ("L1", "T2")


class TestFindOpportunities:
    """Test the opponent buyout scan"""

    def test_ranks_expiring_players_with_momentum(self, client, settings):
        client.get_league_team.return_value = [
            make_player(
                "soon",
                buyout_clause=9_000_000,
                buyout_clause_locked_end_time=NOW + timedelta(hours=5),
            ),
            make_player(
                "later",
                buyout_clause=9_000_000,
                buyout_clause_locked_end_time=NOW + timedelta(days=10),
            ),
        ]
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        report = analyzer.find_opportunities("L1", now=NOW)

        assert [p.id for p in report.players] == ["soon"]
        assert report.players[0].momentum is not None
        assert report.players[0].momentum.trends.last_1_days == pytest.approx(1.85)
        client.get_league_team.assert_called_once()

    def test_malformed_history_leaves_momentum_empty(self, client, settings):
        client.get_league_team.return_value = [
            make_player("bad", buyout_clause_locked_end_time=NOW + timedelta(hours=5)),
            make_player("good", buyout_clause_locked_end_time=NOW + timedelta(hours=6)),
        ]
        client.get_player_market_value.side_effect = lambda player_id: (
            [{"date": 1700000000, "marketValue": 5}] if player_id == "bad" else HISTORY
        )
        analyzer = LeagueAnalyzer(client, settings, sleep=Mock())

        report = analyzer.find_opportunities("L1", now=NOW)

        by_id = {p.id: p for p in report.players}
        assert set(by_id) == {"bad", "good"}
        assert by_id["bad"].momentum is None
        assert by_id["good"].momentum is not None
        assert report.now == NOW

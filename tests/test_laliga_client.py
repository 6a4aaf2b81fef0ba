"""Tests for the LaLiga Fantasy API client"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

from mercado.laliga_client import (
    LaLigaAPIError,
    LaLigaClient,
    MarketListing,
    Owner,
    Player,
    TeamStanding,
    get_position_name,
    parse_datetime,
)

PLAYER_MASTER = {
    "id": 53,
    "name": "Pedro González",
    "nickname": "Pedri",
    "positionId": 3,
    "playerStatus": "ok",
    "team": {"id": 3, "name": "FC Barcelona"},
    "marketValue": 45_000_000,
    "points": 120,
    "averagePoints": 6.5,
}


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


def respond(session, payload, status_code=200):
    response = Mock(status_code=status_code, text="error body")
    response.json.return_value = payload
    session.get.return_value = response
    return response


class TestParsing:
    """Test conversions of raw API payloads"""

    def test_parse_datetime(self):
        assert parse_datetime("2025-01-01T10:00:00Z") == datetime(
            2025, 1, 1, 10, tzinfo=timezone.utc
        )
        assert parse_datetime("2025-01-01").tzinfo is not None
        assert parse_datetime(None) is None
        assert parse_datetime("") is None

    def test_position_names(self):
        assert get_position_name(1) == "GK"
        assert get_position_name(4) == "FWD"
        assert get_position_name(9) == "Unknown"

    def test_player_from_team_player(self):
        owner = Owner(id="7", name="Rival", team_name="Rival FC")
        player = Player.from_team_player(
            {
                "playerMaster": PLAYER_MASTER,
                "buyoutClause": 60_000_000,
                "buyoutClauseLockedEndTime": "2025-03-02T12:00:00Z",
                "playerMarket": {"id": 99, "salePrice": 50_000_000, "numberOfOffers": 2},
            },
            owner=owner,
        )
        assert player.id == "53"
        assert player.display_name == "Pedri"
        assert player.position == "MID"
        assert player.team_name == "FC Barcelona"
        assert player.buyout_clause == 60_000_000
        assert player.buyout_clause_locked_end_time == datetime(
            2025, 3, 2, 12, tzinfo=timezone.utc
        )
        assert player.sale_info.sale_price == 50_000_000
        assert player.sale_info.market_id == "99"
        assert player.sale_info.number_of_offers == 2
        assert player.owner is owner

    def test_market_listing(self):
        listing = MarketListing.from_dict(
            {
                "id": 1001,
                "discr": "marketPlayerTeam",
                "salePrice": 47_000_000,
                "expirationDate": "2025-03-01T20:00:00Z",
                "numberOfBids": 3,
                "playerMaster": PLAYER_MASTER,
            }
        )
        assert listing.is_from_manager()
        assert not listing.is_official()
        assert listing.player.id == "53"
        assert listing.player.sale_info.sale_price == 47_000_000
        assert listing.number_of_bids == 3

    def test_listing_defaults_to_official(self):
        listing = MarketListing.from_dict({"id": 5, "salePrice": 1, "playerMaster": PLAYER_MASTER})
        assert listing.is_official()

    def test_team_standing(self):
        standing = TeamStanding.from_dict(
            {
                "position": 2,
                "points": 800,
                "team": {"id": 44, "manager": {"id": 8, "managerName": "Rival"}},
            }
        )
        assert standing.team_id == "44"
        assert standing.owner() == Owner(id="8", name="Rival", team_name="Rival")


class TestLaLigaClient:
    """Test HTTP handling with a mocked session"""

    def test_sets_bearer_token(self, session):
        LaLigaClient(token="abc", session=session)
        assert session.headers["Authorization"] == "Bearer abc"

    def test_get_leagues(self, session):
        respond(
            session,
            [
                {
                    "id": 1,
                    "name": "Liga",
                    "managersNumber": 8,
                    "team": {"id": 7, "money": 1_000_000, "teamValue": 200_000_000},
                }
            ],
        )
        client = LaLigaClient(token="abc", session=session)

        leagues = client.get_leagues()

        assert len(leagues) == 1
        assert leagues[0].id == "1"
        assert leagues[0].team_id == "7"
        assert leagues[0].team_money == 1_000_000
        session.get.assert_called_once_with(
            "https://api-fantasy.llt-services.com/api/v4/leagues",
            params={"x-lang": "es"},
            timeout=30.0,
        )

    def test_error_status(self, session):
        respond(session, None, status_code=401)
        client = LaLigaClient(token="abc", session=session)

        with pytest.raises(LaLigaAPIError) as exc_info:
            client.get_leagues()

        assert exc_info.value.status_code == 401
        assert "Failed to fetch leagues: 401" in str(exc_info.value)

    def test_network_error(self, session):
        session.get.side_effect = requests.ConnectionError("boom")
        client = LaLigaClient(token="abc", session=session)

        with pytest.raises(LaLigaAPIError) as exc_info:
            client.get_player_info("53")

        assert exc_info.value.status_code is None

    def test_league_not_found(self, session):
        respond(session, [{"id": 1, "name": "Liga", "team": {"id": 7}}])
        client = LaLigaClient(token="abc", session=session)

        with pytest.raises(LaLigaAPIError) as exc_info:
            client.get_league("2")

        assert exc_info.value.status_code == 404

    def test_get_league_team_owner_from_payload(self, session):
        respond(
            session,
            {
                "manager": {"id": 8, "managerName": "Rival"},
                "players": [{"playerMaster": PLAYER_MASTER, "buyoutClause": 50_000_000}],
            },
        )
        client = LaLigaClient(token="abc", session=session)

        players = client.get_league_team("L1", "44")

        assert players[0].owner.name == "Rival"
        assert players[0].buyout_clause == 50_000_000

    def test_market_value_history(self, session):
        history = [{"date": "2025-03-01", "marketValue": 45_000_000}]
        respond(session, history)
        client = LaLigaClient(token="abc", session=session, base_url="https://example.test/api/")

        assert client.get_player_market_value("53") == history
        assert session.get.call_args.args[0] == "https://example.test/api/v3/player/53/market-value"

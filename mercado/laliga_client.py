"""
LaLiga Fantasy API client
https://api-fantasy.llt-services.com/api
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import requests

if TYPE_CHECKING:
    from .config import Settings
    from .services.trend_service import PlayerMomentum

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api-fantasy.llt-services.com/api"

# Market listing discriminators
OFFICIAL_LISTING = "marketPlayerLeague"
MANAGER_LISTING = "marketPlayerTeam"

POSITIONS = {
    1: "GK",
    2: "DEF",
    3: "MID",
    4: "FWD",
    5: "CH",
}


class LaLigaAPIError(Exception):
    """Raised when the LaLiga Fantasy API returns an error or is unreachable"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an API timestamp into an aware UTC datetime.

    Accepts full ISO strings (with or without a trailing Z) and bare dates.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_position_name(position_id: int) -> str:
    """Convert position code to short name"""
    return POSITIONS.get(position_id, "Unknown")


@dataclass
class Owner:
    """Manager who owns a player"""

    id: str
    name: str
    team_name: str


@dataclass
class SaleInfo:
    """Active sale of a player on the market"""

    sale_price: int
    expiration_date: datetime | None
    number_of_offers: int = 0
    market_id: str | None = None  # Needed to withdraw the listing

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SaleInfo":
        return cls(
            sale_price=int(data.get("salePrice", 0) or 0),
            expiration_date=parse_datetime(data.get("expirationDate")),
            number_of_offers=data.get("numberOfOffers", data.get("numberOfBids", 0)) or 0,
            market_id=str(data["id"]) if data.get("id") is not None else None,
        )


@dataclass
class League:
    """League the user plays in, with the user's own team"""

    id: str
    name: str
    team_id: str
    team_money: int = 0
    team_value: int = 0
    managers_number: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "League":
        team = data.get("team") or {}
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            team_id=str(team.get("id", "")),
            team_money=team.get("money", 0) or 0,
            team_value=team.get("teamValue", 0) or 0,
            managers_number=data.get("managersNumber", 0) or 0,
        )


@dataclass
class Player:
    """A player as seen from a squad, a roster or a market listing"""

    id: str
    name: str
    position_id: int
    team_name: str
    market_value: int
    points: int = 0
    average_points: float = 0.0
    nickname: str | None = None
    status: str = ""
    team_id: str = ""
    buyout_clause: int | None = None
    buyout_clause_locked_end_time: datetime | None = None
    sale_info: SaleInfo | None = None
    owner: Owner | None = None
    momentum: "PlayerMomentum | None" = None  # Filled by TrendService

    @classmethod
    def from_master(cls, master: dict[str, Any], **extra) -> "Player":
        """Build from a playerMaster object"""
        team = master.get("team") or {}
        return cls(
            id=str(master.get("id", "")),
            name=master.get("name", ""),
            nickname=master.get("nickname"),
            position_id=master.get("positionId", 0) or 0,
            status=master.get("playerStatus", ""),
            team_id=str(team.get("id", "")),
            team_name=team.get("name", "Unknown"),
            market_value=int(master.get("marketValue", 0) or 0),
            points=master.get("points", 0) or 0,
            average_points=float(master.get("averagePoints", 0.0) or 0.0),
            **extra,
        )

    @classmethod
    def from_team_player(cls, data: dict[str, Any], owner: Owner | None = None) -> "Player":
        """Build from a roster entry (has buyout clause and optional sale)"""
        market = data.get("playerMarket")
        return cls.from_master(
            data.get("playerMaster") or {},
            buyout_clause=data.get("buyoutClause") or None,
            buyout_clause_locked_end_time=parse_datetime(data.get("buyoutClauseLockedEndTime")),
            sale_info=SaleInfo.from_dict(market) if market else None,
            owner=owner,
        )

    @property
    def display_name(self) -> str:
        return self.nickname or self.name or f"Player {self.id}"

    @property
    def position(self) -> str:
        return get_position_name(self.position_id)


@dataclass
class MarketListing:
    """Player listed on the league market"""

    id: str
    kind: str  # OFFICIAL_LISTING or MANAGER_LISTING
    player: Player
    sale_price: int
    expiration_date: datetime | None
    number_of_bids: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MarketListing":
        sale_info = SaleInfo.from_dict(data)
        player = Player.from_master(data.get("playerMaster") or {}, sale_info=sale_info)
        if not player.id:
            player.id = str(data.get("id", ""))
        return cls(
            id=str(data.get("id", "")),
            kind=data.get("discr", OFFICIAL_LISTING),
            player=player,
            sale_price=sale_info.sale_price,
            expiration_date=sale_info.expiration_date,
            number_of_bids=data.get("numberOfBids", 0) or 0,
        )

    def is_official(self) -> bool:
        """Check if the league itself is selling (not another manager)"""
        return self.kind == OFFICIAL_LISTING

    def is_from_manager(self) -> bool:
        return self.kind == MANAGER_LISTING


@dataclass
class TeamStanding:
    """One row of the league ranking"""

    team_id: str
    manager_id: str
    manager_name: str
    position: int | None = None
    points: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TeamStanding":
        team = data.get("team") or {}
        manager = team.get("manager") or {}
        return cls(
            team_id=str(team.get("id", "")),
            manager_id=str(manager.get("id", "")),
            manager_name=manager.get("managerName", ""),
            position=data.get("position"),
            points=data.get("points", 0) or 0,
        )

    def owner(self) -> Owner:
        return Owner(id=self.manager_id, name=self.manager_name, team_name=self.manager_name)


class LaLigaClient:
    """Client for the LaLiga Fantasy API"""

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        language: str = "es",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        if token:
            self.set_token(token)

    @classmethod
    def from_settings(cls, settings: "Settings", token: str | None = None) -> "LaLigaClient":
        return cls(
            token=token or settings.laliga_token,
            base_url=settings.api_base_url,
            language=settings.api_language,
            timeout=settings.request_timeout,
        )

    def set_token(self, token: str) -> None:
        """Use a bearer token for all following requests"""
        self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _get(self, path: str, resource: str) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s", path)

        try:
            response = self.session.get(url, params={"x-lang": self.language}, timeout=self.timeout)
        except requests.RequestException as e:
            raise LaLigaAPIError(f"Failed to fetch {resource}: {e}") from e

        if response.status_code == 200:
            return response.json()
        raise LaLigaAPIError(
            f"Failed to fetch {resource}: {response.status_code} - {response.text}",
            status_code=response.status_code,
        )

    def get_leagues(self) -> list[League]:
        """
        Get the user's leagues
        GET /v4/leagues
        """
        data = self._get("/v4/leagues", "leagues")
        return [League.from_dict(item) for item in data or []]

    def get_league(self, league_id: str) -> League:
        """Find one of the user's leagues by id"""
        for league in self.get_leagues():
            if league.id == str(league_id):
                return league
        raise LaLigaAPIError(f"League {league_id} not found", status_code=404)

    def get_team(self, team_id: str) -> list[Player]:
        """
        Get the players of the user's own team
        GET /v3/teams/{team_id}
        """
        data = self._get(f"/v3/teams/{team_id}", "squad")
        return [Player.from_team_player(p) for p in (data or {}).get("players", [])]

    def get_league_team(
        self, league_id: str, team_id: str, owner: Owner | None = None
    ) -> list[Player]:
        """
        Get any team's roster in a league (includes buyout clauses)
        GET /v3/leagues/{league_id}/teams/{team_id}
        """
        data = self._get(f"/v3/leagues/{league_id}/teams/{team_id}", f"team {team_id}") or {}
        if owner is None and data.get("manager"):
            manager = data["manager"]
            owner = Owner(
                id=str(manager.get("id", "")),
                name=manager.get("managerName", ""),
                team_name=manager.get("managerName", ""),
            )
        return [Player.from_team_player(p, owner=owner) for p in data.get("players", [])]

    def get_league_ranking(self, league_id: str) -> list[TeamStanding]:
        """
        Get the league ranking (one entry per team)
        GET /v5/leagues/{league_id}/ranking
        """
        data = self._get(f"/v5/leagues/{league_id}/ranking", "ranking")
        return [TeamStanding.from_dict(item) for item in data or []]

    def get_market(self, league_id: str) -> list[MarketListing]:
        """
        Get market listings, both official and from other managers
        GET /v3/league/{league_id}/market
        """
        data = self._get(f"/v3/league/{league_id}/market", "market")
        return [MarketListing.from_dict(item) for item in data or []]

    def get_player_market_value(self, player_id: str) -> list[dict[str, Any]]:
        """
        Get the raw market value history of a player
        GET /v3/player/{player_id}/market-value
        """
        return self._get(f"/v3/player/{player_id}/market-value", "market value history") or []

    def get_player_info(self, player_id: str) -> dict[str, Any]:
        """
        Get player details (current market value, stats)
        GET /v3/player/{player_id}
        """
        return self._get(f"/v3/player/{player_id}", "player info") or {}
